"""Shared helpers."""

from .formatting import content_disposition, human_readable_size, sanitize_filename
from .logging import setup_logging

__all__ = [
    "content_disposition",
    "human_readable_size",
    "sanitize_filename",
    "setup_logging",
]
