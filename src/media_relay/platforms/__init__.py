"""Platform identification and per-platform configuration."""

from .models import MediaClass, Platform, PlatformProfile
from .classifier import classify, list_supported_platforms
from .profiles import PROFILES, profile_for, request_headers

__all__ = [
    "MediaClass",
    "Platform",
    "PlatformProfile",
    "classify",
    "list_supported_platforms",
    "PROFILES",
    "profile_for",
    "request_headers",
]
