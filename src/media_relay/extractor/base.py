"""Base extractor interface and the shapes every strategy shares."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Optional

from ..platforms.models import MediaClass, Platform, PlatformProfile
from ..storage import TempAsset


class Confidence(IntEnum):
    """How much an extractor trusts its own result. Ordered."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass
class MediaCandidate:
    """A media URL (or local file) proposed by one strategy."""

    raw_url: Optional[str]
    media_class: MediaClass
    strategy: str
    confidence: Confidence = Confidence.MEDIUM

    title: Optional[str] = None
    thumbnail_url: Optional[str] = None
    quality_hint: Optional[str] = None

    # Format hints
    extension: Optional[str] = None
    content_type: Optional[str] = None

    # Set when the bytes were buffered to disk instead of relayed
    local_asset: Optional[TempAsset] = None

    # Set when a catalog search stood in for the original track
    substituted: bool = False
    substitution_query: Optional[str] = None
    substitution_source: Optional[str] = None

    @property
    def is_local(self) -> bool:
        return self.local_asset is not None


@dataclass
class ExtractionRequest:
    """Per-call context for one resolution. Not persisted."""

    source_url: str
    platform: Platform
    request_id: str
    attempt_index: int = 0

    def advance(self) -> "ExtractionRequest":
        return replace(self, attempt_index=self.attempt_index + 1)


@dataclass
class ExtractOptions:
    """Options handed to every strategy in a chain."""

    profile: PlatformProfile
    request_id: str
    timeout: float = 45.0
    headers: dict[str, str] = field(default_factory=dict)
    materialize: bool = True

    @property
    def media_class(self) -> MediaClass:
        return self.profile.media_class


class ExtractError(Exception):
    """Base for strategy failures. Never reaches the caller raw."""

    kind: str = "ExtractError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.message = message or self.kind


class NotFound(ExtractError):
    """The content is missing, private or the page had no media."""

    kind = "NotFound"


class UpstreamError(ExtractError):
    """The origin or the tool failed in a way worth reporting."""

    kind = "UpstreamError"


class ExtractTimeout(ExtractError):
    """The strategy gave up waiting on the origin."""

    kind = "Timeout"


class UnsupportedShape(ExtractError):
    """The strategy cannot handle this URL or response shape."""

    kind = "UnsupportedShape"


class Extractor(ABC):
    """Abstract base class for resolution strategies."""

    name: str = "unknown"

    @abstractmethod
    async def attempt(
        self,
        url: str,
        platform: Platform,
        options: ExtractOptions,
    ) -> MediaCandidate:
        """
        Try to resolve a URL into a media candidate.

        Args:
            url: Source page URL
            platform: Platform the URL was classified as
            options: Headers, timeout and materialization policy

        Returns:
            MediaCandidate for the best media found

        Raises:
            ExtractError: One of NotFound, UpstreamError, ExtractTimeout,
                UnsupportedShape
        """
        pass

    def _clean_text(self, text: Optional[str]) -> Optional[str]:
        """Clean and normalize text content."""
        if not text:
            return None
        text = ' '.join(text.split())
        return text.strip() if text else None

    def _strip_suffixes(self, title: Optional[str], suffixes: tuple[str, ...]) -> Optional[str]:
        """Remove platform boilerplate such as ' | Facebook' from a page title."""
        title = self._clean_text(title)
        if not title:
            return None
        for suffix in suffixes:
            if title.endswith(suffix):
                title = title[: -len(suffix)].rstrip()
        return title or None
