"""Canonical result and chain bookkeeping models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ..errors import ValidationUnknown
from ..extractor.base import MediaCandidate
from ..platforms.models import MediaClass, Platform
from ..validator import ValidationOutcome, Verdict


class MediaResult(BaseModel):
    """Canonical description of a resolved media resource."""

    # Core
    title: str = Field(..., description="Display title")
    media_url: Optional[str] = Field(None, description="Relayable URL; None when served from disk")
    thumbnail_url: str = Field(..., description="Thumbnail or placeholder")
    media_class: MediaClass
    quality_label: str = Field("Best available", description="Human readable quality")
    source_platform: Platform
    source_url: str = Field(..., description="URL the caller submitted")

    # Local delivery
    local_asset_path: Optional[str] = Field(None, description="Temp file path when buffered")

    # Provenance
    verdict: Verdict = Verdict.UNKNOWN
    strategy: str = Field(..., description="Strategy that produced the media")
    extension: str = Field("mp4", description="File extension for downloads")
    content_type: Optional[str] = None
    size_bytes: Optional[int] = Field(None, description="Total size when the probe learned it")

    # Search substitution
    substituted: bool = False
    substitution_query: Optional[str] = None
    substitution_source: Optional[str] = None

    notices: list[dict] = Field(default_factory=list, description="Non-fatal validation notices")

    @property
    def is_local(self) -> bool:
        return self.local_asset_path is not None


class ChainState(str, Enum):
    """States of the strategy chain."""

    PENDING = "pending"
    TRYING = "trying"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class StrategyAttempt:
    """Record of one strategy run."""

    index: int
    strategy: str
    failure_kind: Optional[str] = None
    message: str = ""
    verdict: Optional[Verdict] = None
    elapsed_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.failure_kind is None

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "strategy": self.strategy,
            "failure_kind": self.failure_kind,
            "message": self.message,
            "verdict": self.verdict.value if self.verdict else None,
            "elapsed_ms": round(self.elapsed_ms, 1),
        }


@dataclass
class ChainOutcome:
    """What a chain run ended with. Exhaustion is a normal outcome."""

    state: ChainState
    platform: Platform
    candidate: Optional[MediaCandidate] = None
    validation: Optional[ValidationOutcome] = None
    attempts: list[StrategyAttempt] = field(default_factory=list)
    notices: list[ValidationUnknown] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == ChainState.SUCCEEDED
