"""Delivery proxy: relay remote media or serve a temp file, with ranges."""

import asyncio
import inspect
import logging
import mimetypes
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional, Union

import aiohttp

from ..errors import AssetGoneError, RangeNotSatisfiable, UpstreamDeliveryError
from ..platforms.profiles import request_headers
from ..resolver.models import MediaResult
from ..storage import TempAssetStore
from ..utils.formatting import content_disposition
from .ranges import parse_range


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

CloseCallback = Callable[[], Union[None, Awaitable[None]]]


class DeliveryResponse:
    """Status, headers and a byte stream for the HTTP layer to send.

    Iterate it exactly once. ``aclose()`` is idempotent and runs cleanup
    (upstream connection, temp file) whether or not the body was consumed.
    """

    def __init__(
        self,
        status_code: int,
        headers: dict[str, str],
        body: AsyncIterator[bytes],
        on_close: Optional[CloseCallback] = None,
    ):
        self.status_code = status_code
        self.headers = headers
        self._body = body
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._stream()

    async def _stream(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._body:
                yield chunk
        finally:
            await self.aclose()

    async def read(self) -> bytes:
        """Collect the whole body. Only sensible for small payloads."""
        return b"".join([chunk async for chunk in self])

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            aclose = getattr(self._body, "aclose", None)
            if aclose is not None:
                await aclose()
        finally:
            if self._on_close is not None:
                result = self._on_close()
                if inspect.isawaitable(result):
                    await result


class DeliveryProxy:
    """Streams a MediaResult to the caller."""

    def __init__(
        self,
        store: Optional[TempAssetStore] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        connect_timeout: float = 15.0,
    ):
        self.store = store
        self.chunk_size = chunk_size
        self.connect_timeout = connect_timeout

    async def stream(
        self,
        result: MediaResult,
        range_header: Optional[str] = None,
        disposition: str = "attachment",
    ) -> DeliveryResponse:
        """
        Open a byte stream for a resolved result.

        Args:
            result: Resolved media
            range_header: Caller's Range header, if any
            disposition: ``attachment`` or ``inline``

        Returns:
            DeliveryResponse ready to be sent

        Raises:
            UpstreamDeliveryError: If the origin refuses the request
            AssetGoneError: If a temp file vanished before delivery
            RangeNotSatisfiable: If the range lies outside a local file
        """
        if result.local_asset_path:
            return await self._stream_local(result, range_header, disposition)
        return await self._stream_remote(result, range_header, disposition)

    async def _stream_remote(
        self,
        result: MediaResult,
        range_header: Optional[str],
        disposition: str,
    ) -> DeliveryResponse:
        headers = request_headers(result.source_platform, result.media_url or "")
        headers["Range"] = range_header or "bytes=0-"
        headers["Accept-Encoding"] = "identity"

        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self.connect_timeout)
        # Bytes are relayed as sent so Content-Length and Content-Range stay true
        session = aiohttp.ClientSession(timeout=timeout, auto_decompress=False)
        try:
            response = await session.get(result.media_url, headers=headers, allow_redirects=True)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await session.close()
            raise UpstreamDeliveryError(None, f"Could not reach origin: {str(e) or type(e).__name__}") from e

        if response.status >= 400:
            status = response.status
            response.release()
            await session.close()
            raise UpstreamDeliveryError(status)

        out_headers = {
            "Content-Type": response.headers.get("Content-Type") or result.content_type or "application/octet-stream",
            "Accept-Ranges": "bytes",
            "Content-Disposition": content_disposition(result.title, result.extension, disposition),
        }
        if response.headers.get("Content-Encoding"):
            out_headers["Content-Encoding"] = response.headers["Content-Encoding"]

        content_range = response.headers.get("Content-Range")
        if response.status == 206 and range_header:
            status_code = 206
            if content_range:
                out_headers["Content-Range"] = content_range
            if response.headers.get("Content-Length"):
                out_headers["Content-Length"] = response.headers["Content-Length"]
        else:
            # A 206 answering our own default range is a full body to the caller
            status_code = 200
            total = None
            if content_range and "/" in content_range:
                total = content_range.rsplit("/", 1)[1].strip()
            if total and total != "*":
                out_headers["Content-Length"] = total
            elif response.headers.get("Content-Length"):
                out_headers["Content-Length"] = response.headers["Content-Length"]

        chunk_size = self.chunk_size

        async def body() -> AsyncIterator[bytes]:
            try:
                async for chunk in response.content.iter_chunked(chunk_size):
                    yield chunk
            except aiohttp.ClientError as e:
                raise UpstreamDeliveryError(response.status, f"Upstream broke mid-stream: {str(e)}") from e

        async def close() -> None:
            response.release()
            await session.close()

        return DeliveryResponse(status_code, out_headers, body(), close)

    async def _stream_local(
        self,
        result: MediaResult,
        range_header: Optional[str],
        disposition: str,
    ) -> DeliveryResponse:
        path = Path(result.local_asset_path)
        release = self._releaser(path)

        try:
            size = path.stat().st_size
        except FileNotFoundError:
            logger.error("Temp asset %s disappeared before delivery", path)
            release()
            raise AssetGoneError(str(path))

        try:
            byte_range = parse_range(range_header, size)
        except RangeNotSatisfiable:
            release()
            raise

        headers = {
            "Content-Type": result.content_type or _guess_type(result.extension),
            "Accept-Ranges": "bytes",
            "Content-Disposition": content_disposition(result.title, result.extension, disposition),
        }
        if byte_range is not None:
            status_code = 206
            start, length = byte_range.start, byte_range.length
            headers["Content-Range"] = byte_range.content_range(size)
        else:
            status_code = 200
            start, length = 0, size
        headers["Content-Length"] = str(length)

        body = self._read_file(path, start, length)
        return DeliveryResponse(status_code, headers, body, release)

    async def _read_file(self, path: Path, start: int, length: int) -> AsyncIterator[bytes]:
        """Yield ``length`` bytes from ``start``, one chunk at a time."""
        loop = asyncio.get_running_loop()
        f = await loop.run_in_executor(None, open, path, "rb")
        try:
            await loop.run_in_executor(None, f.seek, start)
            remaining = length
            while remaining > 0:
                chunk = await loop.run_in_executor(None, f.read, min(self.chunk_size, remaining))
                if not chunk:
                    break
                remaining -= len(chunk)
                yield chunk
        finally:
            f.close()

    def _releaser(self, path: Path) -> Callable[[], None]:
        def release() -> None:
            if self.store is not None:
                self.store.release_path(path)
            else:
                path.unlink(missing_ok=True)
        return release


def _guess_type(extension: str) -> str:
    return mimetypes.guess_type(f"media.{extension}")[0] or "application/octet-stream"
