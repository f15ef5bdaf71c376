"""Native client registry."""

from typing import Optional

from ...platforms.models import Platform
from .base import NativeClient
from .dailymotion import DailymotionClient
from .flickr import FlickrClient
from .pinterest import PinterestClient
from .reddit import RedditClient
from .vimeo import VimeoClient


# Registry of available clients
_CLIENTS: dict[Platform, type[NativeClient]] = {
    client.platform: client
    for client in (DailymotionClient, VimeoClient, RedditClient, PinterestClient, FlickrClient)
}


def get_client(platform: Platform) -> Optional[NativeClient]:
    """
    Get the native client for a platform.

    Args:
        platform: Platform to look up

    Returns:
        Client instance or None if the platform has no structured API
    """
    client_class = _CLIENTS.get(Platform(platform))
    return client_class() if client_class else None


def register_client(client_class: type[NativeClient]) -> None:
    """
    Register a native client class, replacing any existing one.

    Args:
        client_class: Client class with its ``platform`` set
    """
    if client_class.platform is None:
        raise ValueError(f"{client_class.__name__} has no platform")
    _CLIENTS[Platform(client_class.platform)] = client_class


def list_native_platforms() -> list[str]:
    """List platforms that have a native client."""
    return sorted(platform.value for platform in _CLIENTS)
