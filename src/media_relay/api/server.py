"""FastAPI server exposing resolve and stream endpoints."""

import logging
from typing import Optional

from fastapi import FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from .. import __version__
from ..config import RelayConfig
from ..errors import MediaRelayError
from ..extractor import list_native_platforms
from ..pipeline import MediaPipeline
from ..platforms import PROFILES, list_supported_platforms


logger = logging.getLogger(__name__)


def create_app(
    config: Optional[RelayConfig] = None,
    pipeline: Optional[MediaPipeline] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        config: Runtime settings (defaults used when omitted)
        pipeline: Pre-built pipeline, mainly for tests

    Returns:
        Configured FastAPI app
    """
    config = config or RelayConfig()
    app = FastAPI(
        title="Media Relay",
        description="Resolve platform URLs into playable media and stream them",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "HEAD", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Content-Length", "Content-Range", "Accept-Ranges", "Content-Disposition"],
    )

    pipeline = pipeline or MediaPipeline(config)
    app.state.pipeline = pipeline

    @app.on_event("shutdown")
    async def shutdown_event():
        """Drop any temp files still on disk."""
        pipeline.close()

    @app.exception_handler(MediaRelayError)
    async def relay_error_handler(request: Request, exc: MediaRelayError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        headers = {}
        if exc.status_code == 416 and "size" in exc.details:
            headers["Content-Range"] = f"bytes */{exc.details['size']}"
        return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=headers)

    # ==================== META ====================

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "version": __version__}

    @app.get("/api/platforms")
    async def platforms():
        """List supported platforms with their strategy chains."""
        native = set(list_native_platforms())
        return {
            "platforms": [
                {
                    "id": profile.platform.value,
                    "name": profile.display_name,
                    "media_class": profile.media_class.value,
                    "chain": list(profile.chain),
                    "native_api": profile.platform.value in native,
                }
                for profile in sorted(PROFILES.values(), key=lambda p: p.platform.value)
            ],
            "total": len(list_supported_platforms()),
        }

    # ==================== RESOLVE ====================

    @app.get("/api/info")
    async def info(url: str = Query(..., min_length=1)):
        """Resolve a URL without streaming it."""
        result = await pipeline.resolve_only(url)
        return result.model_dump(mode="json")

    async def _deliver(url: str, range_header: Optional[str], disposition: str) -> StreamingResponse:
        delivery = await pipeline.resolve_and_deliver(url, range_header, disposition)
        # Iterating the delivery runs its cleanup when the stream ends or the client goes away
        return StreamingResponse(
            delivery,
            status_code=delivery.status_code,
            headers=delivery.headers,
            media_type=delivery.headers.get("Content-Type"),
        )

    @app.get("/api/stream")
    async def stream(
        url: str = Query(..., min_length=1),
        range: Optional[str] = Header(None),
    ):
        """Stream media inline, honouring Range."""
        return await _deliver(url, range, "inline")

    @app.get("/api/download")
    async def download(
        url: str = Query(..., min_length=1),
        range: Optional[str] = Header(None),
    ):
        """Stream media as an attachment."""
        return await _deliver(url, range, "attachment")

    return app


def run_server(config: Optional[RelayConfig] = None, debug: bool = False):
    """
    Run the API server.

    Args:
        config: Runtime settings
        debug: Enable debug logging in uvicorn
    """
    import uvicorn

    config = config or RelayConfig()
    app = create_app(config)
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="debug" if debug else config.log_level.lower(),
    )
