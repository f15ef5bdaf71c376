"""Validator module for probing media candidates."""

from .candidate_validator import (
    CandidateValidator,
    ValidationOutcome,
    Verdict,
    validate_candidate,
)
from .signatures import is_manifest, looks_like_html, sniff

__all__ = [
    "CandidateValidator",
    "ValidationOutcome",
    "Verdict",
    "validate_candidate",
    "is_manifest",
    "looks_like_html",
    "sniff",
]
