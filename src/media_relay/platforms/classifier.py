"""Platform classifier: map an input URL to a Platform."""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from .models import Platform


@dataclass(frozen=True)
class PlatformRule:
    """One classification rule: host suffixes plus an optional path pattern."""

    platform: Platform
    hosts: tuple[str, ...]
    path_pattern: Optional[str] = None

    def matches(self, host: str, path: str) -> bool:
        if not any(host == h or host.endswith("." + h) for h in self.hosts):
            return False
        if self.path_pattern and not re.search(self.path_pattern, path, re.IGNORECASE):
            return False
        return True


# Checked top to bottom; first match wins. Narrow hosts sit above the broad
# ones they overlap with.
RULES: tuple[PlatformRule, ...] = (
    PlatformRule(Platform.APPLE_MUSIC, ("music.apple.com",)),
    PlatformRule(Platform.AMAZON_MUSIC, ("music.amazon.com", "music.amazon.co.uk", "music.amazon.de")),
    PlatformRule(Platform.YOUTUBE, ("music.youtube.com", "youtu.be", "youtube.com", "youtube-nocookie.com")),
    PlatformRule(Platform.FACEBOOK, ("fb.watch", "fb.com", "facebook.com")),
    PlatformRule(Platform.INSTAGRAM, ("instagram.com", "instagr.am")),
    PlatformRule(Platform.TIKTOK, ("vm.tiktok.com", "tiktok.com")),
    PlatformRule(Platform.TWITTER, ("twitter.com", "x.com")),
    PlatformRule(Platform.THREADS, ("threads.net", "threads.com")),
    PlatformRule(Platform.PINTEREST, ("i.pinimg.com", "pin.it", "pinterest.com", "pinterest.co.uk", "pinterest.de", "pinterest.fr")),
    PlatformRule(Platform.SPOTIFY, ("open.spotify.com", "spotify.com", "spotify.link")),
    PlatformRule(Platform.SOUNDCLOUD, ("on.soundcloud.com", "soundcloud.com", "snd.sc")),
    PlatformRule(Platform.BANDCAMP, ("bandcamp.com",)),
    PlatformRule(Platform.DEEZER, ("deezer.page.link", "deezer.com")),
    PlatformRule(Platform.MIXCLOUD, ("mixcloud.com",)),
    PlatformRule(Platform.AUDIOMACK, ("audiomack.com",)),
    PlatformRule(Platform.VIMEO, ("player.vimeo.com", "vimeo.com")),
    PlatformRule(Platform.DAILYMOTION, ("dai.ly", "dailymotion.com")),
    PlatformRule(Platform.TWITCH, ("clips.twitch.tv", "twitch.tv")),
    PlatformRule(Platform.REDDIT, ("v.redd.it", "redd.it", "reddit.com")),
    PlatformRule(Platform.LINKEDIN, ("linkedin.com",)),
    PlatformRule(Platform.TUMBLR, ("tumblr.com",)),
    PlatformRule(Platform.VK, ("vk.com", "vkvideo.ru", "vk.ru")),
    PlatformRule(Platform.BILIBILI, ("b23.tv", "bilibili.com", "bilibili.tv")),
    PlatformRule(Platform.SNAPCHAT, ("snapchat.com",)),
    PlatformRule(Platform.IMGUR, ("i.imgur.com", "imgur.com")),
    PlatformRule(Platform.FLICKR, ("flic.kr", "flickr.com")),
)

DIRECT_EXTENSIONS = (
    ".mp4", ".webm", ".mov", ".m4v", ".mkv", ".avi", ".ogv", ".ts",
    ".mp3", ".m4a", ".aac", ".ogg", ".oga", ".opus", ".flac", ".wav",
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp",
)


def classify(url: str) -> Optional[Platform]:
    """
    Identify the platform a URL belongs to.

    Args:
        url: URL supplied by the caller

    Returns:
        Matching Platform, or None when the URL is unsupported
    """
    if not url or not isinstance(url, str):
        return None

    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None

    if parts.scheme.lower() not in ("http", "https"):
        return None

    host = (parts.hostname or "").lower().rstrip(".")
    if not host:
        return None
    path = parts.path or "/"

    for rule in RULES:
        if rule.matches(host, path):
            return rule.platform

    if path.lower().endswith(DIRECT_EXTENSIONS):
        return Platform.DIRECT

    return None


def list_supported_platforms() -> list[str]:
    """List all platforms the classifier can recognize."""
    return sorted(platform.value for platform in Platform)
