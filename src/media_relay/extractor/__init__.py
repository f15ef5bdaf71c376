"""Extraction strategies."""

from typing import Optional

from ..platforms.models import GENERIC, NATIVE, SCRAPE, SEARCH
from ..storage import TempAssetStore
from .base import (
    Confidence,
    ExtractError,
    ExtractionRequest,
    ExtractOptions,
    ExtractTimeout,
    Extractor,
    MediaCandidate,
    NotFound,
    UnsupportedShape,
    UpstreamError,
)
from .engine import YtDlpEngine, pick_format
from .fetch import Page, PageFetcher
from .generic import GenericToolExtractor
from .native import NativeApiExtractor, get_client, list_native_platforms, register_client
from .scrape import ScrapeExtractor
from .search import CatalogHit, CatalogSearch, SearchSubstitutionExtractor, YtDlpCatalogSearch


def default_extractors(
    store: Optional[TempAssetStore] = None,
    engine: Optional[YtDlpEngine] = None,
    fetcher: Optional[PageFetcher] = None,
) -> dict[str, Extractor]:
    """
    Build the strategy map used by the chain resolver.

    Args:
        store: Temp asset store for strategies that may buffer to disk
        engine: Shared yt-dlp engine
        fetcher: Shared page fetcher

    Returns:
        Mapping of strategy key to extractor
    """
    engine = engine or YtDlpEngine()
    fetcher = fetcher or PageFetcher()
    return {
        NATIVE: NativeApiExtractor(),
        GENERIC: GenericToolExtractor(engine, store),
        SCRAPE: ScrapeExtractor(fetcher),
        SEARCH: SearchSubstitutionExtractor(YtDlpCatalogSearch(engine), fetcher, store, engine),
    }


__all__ = [
    "Confidence",
    "ExtractError",
    "ExtractionRequest",
    "ExtractOptions",
    "ExtractTimeout",
    "Extractor",
    "MediaCandidate",
    "NotFound",
    "UnsupportedShape",
    "UpstreamError",
    "YtDlpEngine",
    "pick_format",
    "Page",
    "PageFetcher",
    "GenericToolExtractor",
    "NativeApiExtractor",
    "get_client",
    "register_client",
    "list_native_platforms",
    "ScrapeExtractor",
    "CatalogHit",
    "CatalogSearch",
    "SearchSubstitutionExtractor",
    "YtDlpCatalogSearch",
    "default_extractors",
]
