"""Resolution pipeline: classify, run the chain, normalize, deliver."""

import logging
import uuid
from dataclasses import dataclass
from typing import Mapping, Optional

from .config import RelayConfig
from .delivery import DeliveryProxy, DeliveryResponse
from .errors import ExtractionExhausted, UnsupportedPlatform
from .extractor import Extractor, ExtractionRequest, ExtractOptions, PageFetcher, YtDlpEngine, default_extractors
from .platforms import classify, profile_for, request_headers
from .resolver import ChainOutcome, ChainResolver, MediaResult, normalize
from .storage import TempAssetStore
from .validator import CandidateValidator


logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """A normalized result plus the chain run that produced it."""

    result: MediaResult
    outcome: ChainOutcome


class MediaPipeline:
    """Entry point for both inbound operations.

    Collaborators are built from the config unless injected, so tests can
    swap extractors, the validator or the store without touching the rest.
    """

    def __init__(
        self,
        config: Optional[RelayConfig] = None,
        store: Optional[TempAssetStore] = None,
        extractors: Optional[Mapping[str, Extractor]] = None,
        validator: Optional[CandidateValidator] = None,
        proxy: Optional[DeliveryProxy] = None,
    ):
        self.config = config or RelayConfig()
        self.store = store or TempAssetStore(self.config.storage.temp_dir)

        if extractors is None:
            engine = YtDlpEngine(
                cookies_from_browser=self.config.ytdlp.cookies_from_browser,
                socket_timeout=self.config.ytdlp.socket_timeout,
            )
            fetcher = PageFetcher(
                fallback_user_agents=self.config.scrape.fallback_user_agents,
                use_cloudscraper=self.config.scrape.use_cloudscraper,
                random_user_agent=self.config.scrape.random_user_agent,
            )
            extractors = default_extractors(self.store, engine, fetcher)

        self.validator = validator or CandidateValidator(
            probe_timeout=self.config.timeouts.probe,
            min_video_bytes=self.config.validator.min_video_bytes,
            min_audio_bytes=self.config.validator.min_audio_bytes,
            probe_bytes=self.config.validator.probe_bytes,
        )
        self.resolver = ChainResolver(
            extractors,
            self.validator,
            self.store,
            extract_timeout=self.config.timeouts.extract,
        )
        self.proxy = proxy or DeliveryProxy(
            self.store,
            chunk_size=self.config.delivery.chunk_size,
            connect_timeout=self.config.timeouts.delivery_connect,
        )

    async def resolve(self, url: str, materialize: bool = True) -> Resolution:
        """
        Classify a URL and run its strategy chain.

        Raises:
            UnsupportedPlatform: If no platform rule matches
            ExtractionExhausted: If every strategy failed
        """
        platform = classify(url)
        if platform is None:
            raise UnsupportedPlatform(url)

        profile = profile_for(platform)
        request_id = uuid.uuid4().hex
        request = ExtractionRequest(source_url=url, platform=platform, request_id=request_id)
        options = ExtractOptions(
            profile=profile,
            request_id=request_id,
            timeout=self.config.timeouts.extract,
            headers=request_headers(platform, url),
            materialize=materialize,
        )

        logger.info("[%s] Resolving %s as %s via %s", request_id[:8], url, platform.value, " > ".join(profile.chain))
        outcome = await self.resolver.resolve(request, profile, options)
        if not outcome.succeeded:
            raise ExtractionExhausted(platform.value, outcome.attempts)

        result = normalize(outcome.candidate, outcome.validation, platform, url, outcome.notices)
        return Resolution(result=result, outcome=outcome)

    async def resolve_only(self, url: str) -> MediaResult:
        """
        Resolve metadata without delivering bytes.

        Any file buffered along the way is released before returning, so the
        result never points at local storage.
        """
        resolution = await self.resolve(url)
        result = resolution.result
        if result.local_asset_path:
            self.store.release_path(result.local_asset_path)
            result = result.model_copy(update={"local_asset_path": None})
        return result

    async def resolve_and_deliver(
        self,
        url: str,
        range_header: Optional[str] = None,
        disposition: str = "attachment",
    ) -> DeliveryResponse:
        """
        Resolve a URL and open its byte stream.

        Args:
            url: Content URL from the caller
            range_header: Caller's Range header, if any
            disposition: ``attachment`` or ``inline``

        Returns:
            DeliveryResponse; the caller must iterate or ``aclose()`` it
        """
        result = (await self.resolve(url)).result
        try:
            return await self.proxy.stream(result, range_header, disposition)
        except BaseException:
            if result.local_asset_path:
                self.store.release_path(result.local_asset_path)
            raise

    def close(self) -> None:
        """Release every temp file still tracked."""
        self.store.close()
