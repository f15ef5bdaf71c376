"""Search substitution: find the same track on a catalog that can be relayed."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup

from ..platforms.models import SEARCH, MediaClass, Platform
from ..storage import TempAssetStore
from .base import (
    Confidence,
    ExtractOptions,
    Extractor,
    MediaCandidate,
    NotFound,
    UnsupportedShape,
    UpstreamError,
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
from .fetch import PageFetcher
from .generic import materialize
from .patterns import extract_meta, page_title


logger = logging.getLogger(__name__)


@dataclass
class TrackInfo:
    """What a catalog page says about its track."""

    title: str
    artist: Optional[str] = None
    artwork_url: Optional[str] = None

    @property
    def display(self) -> str:
        return f"{self.artist} - {self.title}" if self.artist else self.title

    @property
    def query(self) -> str:
        return f"{self.display} audio"


@dataclass
class CatalogHit:
    """First search result from a catalog."""

    title: Optional[str]
    page_url: str
    source: str
    media_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    extension: Optional[str] = None
    quality_hint: Optional[str] = None


class CatalogSearch(ABC):
    """Searchable catalog of playable media."""

    source: str = "unknown"

    @abstractmethod
    async def search(self, query: str, media_class: MediaClass, options: ExtractOptions) -> Optional[CatalogHit]:
        """Return the first hit for a query, or None."""
        pass


class YtDlpCatalogSearch(CatalogSearch):
    """Searches YouTube through yt-dlp's ``ytsearch1:`` pseudo-URL."""

    source = "youtube"

    def __init__(self, engine: Optional[YtDlpEngine] = None):
        self.engine = engine or YtDlpEngine()

    async def search(self, query: str, media_class: MediaClass, options: ExtractOptions) -> Optional[CatalogHit]:
        try:
            info = await self.engine.extract_info(f"ytsearch1:{query}")
        except YTDLP_ERRORS as e:
            raise classify_error(e) from e

        entry = first_entry(info or {})
        if not entry:
            return None

        page_url = entry.get('webpage_url') or entry.get('original_url') or entry.get('url')
        if not page_url:
            return None

        fmt = pick_format(entry, media_class)
        return CatalogHit(
            title=entry.get('title'),
            page_url=page_url,
            source=self.source,
            media_url=fmt['url'] if fmt else None,
            thumbnail_url=best_thumbnail(entry),
            extension=fmt.get('ext') if fmt else None,
            quality_hint=quality_label(fmt) if fmt else None,
        )


class SearchSubstitutionExtractor(Extractor):
    """Resolves a track by searching for it elsewhere.

    Catalog pages (Spotify, Deezer, ...) expose metadata but no playable
    stream. The result is a different recording of the same track, so it is
    always flagged as a substitution.
    """

    name = SEARCH

    def __init__(
        self,
        catalog: Optional[CatalogSearch] = None,
        fetcher: Optional[PageFetcher] = None,
        store: Optional[TempAssetStore] = None,
        engine: Optional[YtDlpEngine] = None,
    ):
        self.engine = engine or YtDlpEngine()
        self.catalog = catalog or YtDlpCatalogSearch(self.engine)
        self.fetcher = fetcher or PageFetcher()
        self.store = store

    async def attempt(self, url: str, platform: Platform, options: ExtractOptions) -> MediaCandidate:
        track = await self.read_track(url, options)
        query = track.query
        logger.info("Searching %s for %r", getattr(self.catalog, "source", "catalog"), query)

        hit = await self.catalog.search(query, MediaClass.AUDIO, options)
        if hit is None:
            raise NotFound(f"No catalog hit for {query!r}")

        candidate = MediaCandidate(
            raw_url=hit.media_url,
            media_class=MediaClass.AUDIO,
            strategy=self.name,
            confidence=Confidence.LOW,
            title=track.display,
            thumbnail_url=track.artwork_url or hit.thumbnail_url,
            quality_hint=hit.quality_hint,
            extension=hit.extension,
            substituted=True,
            substitution_query=query,
            substitution_source=hit.page_url,
        )
        if hit.media_url:
            return candidate

        if not options.materialize or self.store is None:
            raise UnsupportedShape("Catalog hit has no relayable stream")

        asset = await materialize(self.engine, self.store, hit.page_url, platform, options, MediaClass.AUDIO)
        candidate.local_asset = asset
        candidate.extension = asset.path.suffix.lstrip(".") or None
        candidate.quality_hint = "Best available"
        return candidate

    async def read_track(self, url: str, options: ExtractOptions) -> TrackInfo:
        """
        Read title, artist and artwork from a catalog page.

        Raises:
            NotFound: If the page has no usable title
        """
        page = await self.fetcher.fetch(url, options.headers, timeout=options.timeout)
        if page.status in (404, 410):
            raise NotFound(f"HTTP {page.status}")
        if page.status != 200:
            raise UpstreamError(f"HTTP {page.status}")

        soup = BeautifulSoup(page.text, "html.parser")
        title = self._strip_suffixes(page_title(soup), options.profile.title_suffixes)
        if not title:
            raise NotFound("Catalog page has no title")

        artist = None
        description = extract_meta(soup, "og:description")
        if description and "·" in description:
            artist = self._clean_text(description.split("·", 1)[0])

        return TrackInfo(title=title, artist=artist, artwork_url=extract_meta(soup, "og:image"))
