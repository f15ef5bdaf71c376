"""Media Relay - resolve platform URLs into media and stream them."""

__version__ = "0.1.0"

from .config import RelayConfig, load_config
from .errors import (
    AssetGoneError,
    ExtractionExhausted,
    MediaRelayError,
    RangeNotSatisfiable,
    UnsupportedPlatform,
    UpstreamDeliveryError,
    ValidationUnknown,
)
from .pipeline import MediaPipeline
from .platforms import Platform, classify
from .resolver import MediaResult

__all__ = [
    "RelayConfig",
    "load_config",
    "AssetGoneError",
    "ExtractionExhausted",
    "MediaRelayError",
    "RangeNotSatisfiable",
    "UnsupportedPlatform",
    "UpstreamDeliveryError",
    "ValidationUnknown",
    "MediaPipeline",
    "Platform",
    "classify",
    "MediaResult",
]
