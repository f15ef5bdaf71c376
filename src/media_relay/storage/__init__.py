"""Storage module for transient media files."""

from .temp_store import TempAsset, TempAssetStore

__all__ = [
    "TempAsset",
    "TempAssetStore",
]
