"""Scrape extractor: fetch the page and walk the media pattern tiers."""

import logging
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from ..platforms.models import SCRAPE, MediaClass, Platform
from .base import (
    Confidence,
    ExtractOptions,
    Extractor,
    MediaCandidate,
    NotFound,
    UnsupportedShape,
    UpstreamError,
)
from .fetch import PageFetcher
from .patterns import Tier, extract_meta, find_media, page_title


logger = logging.getLogger(__name__)

_CONFIDENCE = {
    Tier.STRUCTURED: Confidence.MEDIUM,
    Tier.META: Confidence.MEDIUM,
    Tier.REGEX: Confidence.LOW,
    Tier.IMAGE_FALLBACK: Confidence.LOW,
}


class ScrapeExtractor(Extractor):
    """Pulls media URLs straight out of a platform's HTML."""

    name = SCRAPE

    def __init__(self, fetcher: Optional[PageFetcher] = None):
        self.fetcher = fetcher or PageFetcher()

    async def attempt(self, url: str, platform: Platform, options: ExtractOptions) -> MediaCandidate:
        page = await self.fetcher.fetch(url, options.headers, timeout=options.timeout)

        if page.status in (404, 410):
            raise NotFound(f"HTTP {page.status}")
        if page.status != 200:
            raise UpstreamError(f"HTTP {page.status}")

        if page.is_media:
            # The link pointed at the file itself, e.g. a CDN image URL
            media_class = MediaClass(page.content_type.split("/")[0])
            name = PurePosixPath(urlsplit(page.url).path).name
            return MediaCandidate(
                raw_url=page.url,
                media_class=media_class,
                strategy=self.name,
                confidence=Confidence.MEDIUM,
                title=self._clean_text(name),
                quality_hint="Original",
                content_type=page.content_type,
            )
        if not page.is_html:
            raise UnsupportedShape(f"Unexpected content type {page.content_type}")

        return self._parse_html(page.text, options)

    def _parse_html(self, text: str, options: ExtractOptions) -> MediaCandidate:
        """Turn a page into a candidate, or raise NotFound."""
        profile = options.profile
        soup = BeautifulSoup(text, "html.parser")

        match = find_media(text, profile, soup)
        if match is None:
            raise NotFound("No media pattern matched")

        logger.debug("Scrape matched %s (tier %d)", match.source, match.tier)

        title = self._strip_suffixes(page_title(soup), profile.title_suffixes)
        thumbnail = extract_meta(soup, "og:image") or extract_meta(soup, "twitter:image")
        if match.media_class == MediaClass.IMAGE:
            thumbnail = match.url

        return MediaCandidate(
            raw_url=match.url,
            media_class=match.media_class,
            strategy=self.name,
            confidence=_CONFIDENCE[match.tier],
            title=title,
            thumbnail_url=thumbnail,
            quality_hint=match.quality_hint,
        )
