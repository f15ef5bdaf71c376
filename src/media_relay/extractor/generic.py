"""Generic tool extractor: delegate to yt-dlp and pick a relayable format."""

import asyncio
import logging
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import urlsplit

from ..platforms.classifier import DIRECT_EXTENSIONS
from ..platforms.models import GENERIC, MediaClass, Platform
from ..storage import TempAsset, TempAssetStore
from .base import (
    Confidence,
    ExtractOptions,
    Extractor,
    MediaCandidate,
    NotFound,
    UnsupportedShape,
)
from .engine import (
    YTDLP_ERRORS,
    YtDlpEngine,
    best_thumbnail,
    classify_error,
    first_entry,
    pick_format,
    quality_label,
)


logger = logging.getLogger(__name__)

MIN_MATERIALIZED_BYTES = 10_000

_AUDIO_EXTENSIONS = (".mp3", ".m4a", ".aac", ".ogg", ".oga", ".opus", ".flac", ".wav")
_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp")


def direct_media_class(url: str) -> MediaClass:
    """Guess the media class of a plain file link from its extension."""
    path = urlsplit(url).path.lower()
    if path.endswith(_AUDIO_EXTENSIONS):
        return MediaClass.AUDIO
    if path.endswith(_IMAGE_EXTENSIONS):
        return MediaClass.IMAGE
    return MediaClass.VIDEO


async def materialize(
    engine: YtDlpEngine,
    store: TempAssetStore,
    url: str,
    platform: Platform,
    options: ExtractOptions,
    media_class: MediaClass,
    min_bytes: int = MIN_MATERIALIZED_BYTES,
) -> TempAsset:
    """
    Download a URL through the engine into a fresh temp asset.

    Raises:
        UnsupportedShape: If nothing usable was written
    """
    extension = "m4a" if media_class == MediaClass.AUDIO else "mp4"
    format_selector = "bestaudio/best" if media_class == MediaClass.AUDIO else "best"

    with store.scoped(platform.value, extension, options.request_id) as asset:
        template = str(asset.path.with_suffix("")) + ".%(ext)s"
        download = asyncio.ensure_future(engine.download(url, template, format_selector, options.headers))
        try:
            await asyncio.shield(download)
        except asyncio.CancelledError:
            # The worker thread cannot be stopped; sweep its output once it exits
            download.add_done_callback(lambda task: _release_late_download(store, asset, task))
            raise
        except YTDLP_ERRORS as e:
            raise classify_error(e) from e

        final = store.finalize(asset)
        if final is None:
            raise UnsupportedShape("Download produced no file")
        if final.size() <= min_bytes:
            raise UnsupportedShape(f"Downloaded file too small ({final.size()} bytes)")

        logger.info("Materialized %s into %s", url, final.path.name)
        return final


def _release_late_download(store: TempAssetStore, asset: TempAsset, task: asyncio.Future) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Abandoned download for %s failed: %s", asset.stem, task.exception())
    store.release(asset)
    logger.info("Removed output of abandoned download %s", asset.stem)


class GenericToolExtractor(Extractor):
    """Resolves through yt-dlp, which knows most platforms' player internals."""

    name = GENERIC

    def __init__(
        self,
        engine: Optional[YtDlpEngine] = None,
        store: Optional[TempAssetStore] = None,
        min_materialized_bytes: int = MIN_MATERIALIZED_BYTES,
    ):
        self.engine = engine or YtDlpEngine()
        self.store = store
        self.min_materialized_bytes = min_materialized_bytes

    async def attempt(self, url: str, platform: Platform, options: ExtractOptions) -> MediaCandidate:
        if platform == Platform.DIRECT:
            return self._direct_candidate(url)

        try:
            info = await self.engine.extract_info(url, options.headers)
        except YTDLP_ERRORS as e:
            raise classify_error(e) from e

        info = first_entry(info or {})
        if not info:
            raise NotFound("yt-dlp returned no entries")

        media_class = options.media_class
        if media_class in (MediaClass.IMAGE, MediaClass.UNKNOWN):
            media_class = MediaClass.VIDEO

        title = self._strip_suffixes(info.get('title'), options.profile.title_suffixes)
        thumbnail = best_thumbnail(info)

        fmt = pick_format(info, media_class)
        if fmt:
            if media_class == MediaClass.VIDEO and fmt.get('vcodec') == 'none':
                media_class = MediaClass.AUDIO
            return MediaCandidate(
                raw_url=fmt['url'],
                media_class=media_class,
                strategy=self.name,
                confidence=Confidence.MEDIUM,
                title=title,
                thumbnail_url=thumbnail,
                quality_hint=quality_label(fmt),
                extension=fmt.get('ext'),
            )

        if not options.materialize or self.store is None:
            raise UnsupportedShape("No directly relayable format")

        page_url = info.get('webpage_url') or url
        asset = await materialize(
            self.engine, self.store, page_url, platform, options, media_class,
            min_bytes=self.min_materialized_bytes,
        )
        return MediaCandidate(
            raw_url=None,
            media_class=media_class,
            strategy=self.name,
            confidence=Confidence.MEDIUM,
            title=title,
            thumbnail_url=thumbnail,
            quality_hint="Best available",
            extension=asset.path.suffix.lstrip(".") or None,
            local_asset=asset,
        )

    def _direct_candidate(self, url: str) -> MediaCandidate:
        """A plain file link is already the media; the validator confirms it."""
        path = PurePosixPath(urlsplit(url).path)
        if not path.name.lower().endswith(DIRECT_EXTENSIONS):
            raise UnsupportedShape("Not a direct media link")
        return MediaCandidate(
            raw_url=url,
            media_class=direct_media_class(url),
            strategy=self.name,
            confidence=Confidence.MEDIUM,
            title=self._clean_text(path.stem.replace("_", " ").replace("-", " ")),
            quality_hint="Original",
            extension=path.suffix.lstrip(".").lower(),
        )
