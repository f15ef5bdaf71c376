"""Structured-API clients for platforms that expose one."""

from .base import NativeClient
from .dailymotion import DailymotionClient
from .extractor import NativeApiExtractor
from .factory import get_client, list_native_platforms, register_client
from .flickr import FlickrClient
from .pinterest import PinterestClient
from .reddit import RedditClient
from .vimeo import VimeoClient

__all__ = [
    "NativeClient",
    "NativeApiExtractor",
    "DailymotionClient",
    "FlickrClient",
    "PinterestClient",
    "RedditClient",
    "VimeoClient",
    "get_client",
    "register_client",
    "list_native_platforms",
]
