"""Strategy chain resolution and result normalization."""

from .chain import ChainResolver
from .models import ChainOutcome, ChainState, MediaResult, StrategyAttempt
from .normalizer import normalize

__all__ = [
    "ChainResolver",
    "ChainOutcome",
    "ChainState",
    "MediaResult",
    "StrategyAttempt",
    "normalize",
]
