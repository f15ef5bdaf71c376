"""Per-platform strategy chains and spoofed header presets."""

from types import MappingProxyType
from typing import Mapping
from urllib.parse import urlsplit

from .models import (
    GENERIC,
    NATIVE,
    SCRAPE,
    SEARCH,
    MediaClass,
    Platform,
    PlatformProfile,
)


DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

BROWSER_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"

# Twitch's public web client id, sent by the site's own player
TWITCH_CLIENT_ID = "kimne78kx3ncx6brgo4mv6wki5h1ko"


def _headers(referer: str = "", origin: str = "", **extra: str) -> dict[str, str]:
    headers = {"User-Agent": DESKTOP_USER_AGENT}
    if referer:
        headers["Referer"] = referer
    if origin:
        headers["Origin"] = origin
    headers.update(extra)
    return headers


_VIDEO_NATIVE = (NATIVE, GENERIC, SCRAPE)
_VIDEO = (GENERIC, SCRAPE)
_AUDIO_TOOL = (GENERIC, SEARCH, SCRAPE)
_AUDIO_CATALOG = (NATIVE, SEARCH, SCRAPE)


_PROFILES = [
    PlatformProfile(
        Platform.YOUTUBE, "YouTube", MediaClass.VIDEO, _VIDEO,
        _headers("https://www.youtube.com/", "https://www.youtube.com"),
        title_suffixes=(" - YouTube",),
    ),
    PlatformProfile(
        Platform.FACEBOOK, "Facebook", MediaClass.VIDEO, (SCRAPE, GENERIC),
        _headers("https://www.facebook.com/"),
        title_suffixes=(" | Facebook",),
        image_fallback=True,
    ),
    PlatformProfile(
        Platform.INSTAGRAM, "Instagram", MediaClass.VIDEO, _VIDEO,
        _headers("https://www.instagram.com/", "https://www.instagram.com"),
        title_suffixes=(" • Instagram", " | Instagram"),
        image_fallback=True,
    ),
    PlatformProfile(
        Platform.TIKTOK, "TikTok", MediaClass.VIDEO, _VIDEO,
        _headers("https://www.tiktok.com/", "https://www.tiktok.com"),
        title_suffixes=(" | TikTok",),
    ),
    PlatformProfile(
        Platform.TWITTER, "Twitter/X", MediaClass.VIDEO, _VIDEO,
        _headers("https://x.com/", "https://x.com"),
        title_suffixes=(" / X", " / Twitter"),
        image_fallback=True,
    ),
    PlatformProfile(
        Platform.THREADS, "Threads", MediaClass.VIDEO, (SCRAPE, GENERIC),
        _headers("https://www.threads.net/"),
        title_suffixes=(" • Threads",),
        image_fallback=True,
    ),
    PlatformProfile(
        Platform.PINTEREST, "Pinterest", MediaClass.IMAGE, _VIDEO_NATIVE,
        _headers("https://www.pinterest.com/"),
        title_suffixes=(" | Pinterest",),
        image_fallback=True,
    ),
    PlatformProfile(
        Platform.VIMEO, "Vimeo", MediaClass.VIDEO, _VIDEO_NATIVE,
        _headers("https://vimeo.com/", "https://vimeo.com"),
        title_suffixes=(" on Vimeo",),
    ),
    PlatformProfile(
        Platform.DAILYMOTION, "Dailymotion", MediaClass.VIDEO, _VIDEO_NATIVE,
        _headers("https://www.dailymotion.com/", "https://www.dailymotion.com"),
        title_suffixes=(" - Dailymotion",),
    ),
    PlatformProfile(
        Platform.TWITCH, "Twitch", MediaClass.VIDEO, _VIDEO,
        _headers("https://www.twitch.tv/", "https://www.twitch.tv", **{"Client-ID": TWITCH_CLIENT_ID}),
        title_suffixes=(" - Twitch",),
    ),
    PlatformProfile(
        Platform.REDDIT, "Reddit", MediaClass.VIDEO, _VIDEO_NATIVE,
        _headers("https://www.reddit.com/"),
        title_suffixes=(" : reddit",),
        image_fallback=True,
    ),
    PlatformProfile(
        Platform.LINKEDIN, "LinkedIn", MediaClass.VIDEO, _VIDEO,
        _headers("https://www.linkedin.com/"),
        title_suffixes=(" | LinkedIn",),
        image_fallback=True,
    ),
    PlatformProfile(
        Platform.TUMBLR, "Tumblr", MediaClass.VIDEO, _VIDEO,
        _headers("https://www.tumblr.com/"),
        image_fallback=True,
    ),
    PlatformProfile(
        Platform.VK, "VK", MediaClass.VIDEO, _VIDEO,
        _headers("https://vk.com/"),
    ),
    PlatformProfile(
        Platform.BILIBILI, "Bilibili", MediaClass.VIDEO, _VIDEO,
        _headers("https://www.bilibili.com/", "https://www.bilibili.com"),
        title_suffixes=("_哔哩哔哩_bilibili",),
    ),
    PlatformProfile(
        Platform.SNAPCHAT, "Snapchat", MediaClass.VIDEO, _VIDEO,
        _headers("https://www.snapchat.com/"),
    ),
    PlatformProfile(
        Platform.SPOTIFY, "Spotify", MediaClass.AUDIO, _AUDIO_CATALOG,
        _headers("https://open.spotify.com/"),
        title_suffixes=(" | Spotify",),
    ),
    PlatformProfile(
        Platform.SOUNDCLOUD, "SoundCloud", MediaClass.AUDIO, _AUDIO_TOOL,
        _headers("https://soundcloud.com/", "https://soundcloud.com"),
        title_suffixes=(" | SoundCloud", " | Listen online for free on SoundCloud"),
    ),
    PlatformProfile(
        Platform.BANDCAMP, "Bandcamp", MediaClass.AUDIO, _AUDIO_TOOL,
        _headers("https://bandcamp.com/"),
        title_suffixes=(" | Bandcamp",),
    ),
    PlatformProfile(
        Platform.DEEZER, "Deezer", MediaClass.AUDIO, _AUDIO_CATALOG,
        _headers("https://www.deezer.com/"),
        title_suffixes=(" - Deezer", " | Deezer"),
    ),
    PlatformProfile(
        Platform.APPLE_MUSIC, "Apple Music", MediaClass.AUDIO, _AUDIO_CATALOG,
        _headers("https://music.apple.com/"),
        title_suffixes=(" - Apple Music", " on Apple Music"),
    ),
    PlatformProfile(
        Platform.AMAZON_MUSIC, "Amazon Music", MediaClass.AUDIO, _AUDIO_CATALOG,
        _headers("https://music.amazon.com/"),
        title_suffixes=(" | Amazon Music",),
    ),
    PlatformProfile(
        Platform.MIXCLOUD, "Mixcloud", MediaClass.AUDIO, _AUDIO_TOOL,
        _headers("https://www.mixcloud.com/"),
        title_suffixes=(" | Mixcloud",),
    ),
    PlatformProfile(
        Platform.AUDIOMACK, "Audiomack", MediaClass.AUDIO, _AUDIO_TOOL,
        _headers("https://audiomack.com/"),
        title_suffixes=(" | Audiomack",),
    ),
    PlatformProfile(
        Platform.IMGUR, "Imgur", MediaClass.IMAGE, (SCRAPE,),
        _headers("https://imgur.com/"),
        title_suffixes=(" - Imgur",),
        image_fallback=True,
    ),
    PlatformProfile(
        Platform.FLICKR, "Flickr", MediaClass.IMAGE, (NATIVE, SCRAPE),
        _headers("https://www.flickr.com/"),
        title_suffixes=(" | Flickr",),
        image_fallback=True,
    ),
    PlatformProfile(
        Platform.DIRECT, "Direct", MediaClass.UNKNOWN, (GENERIC,),
        _headers(),
    ),
]

PROFILES: Mapping[Platform, PlatformProfile] = MappingProxyType(
    {profile.platform: profile for profile in _PROFILES}
)


def profile_for(platform: Platform) -> PlatformProfile:
    """Get the static profile for a platform."""
    return PROFILES[Platform(platform)]


def request_headers(platform: Platform, url: str = "", **extra: str) -> dict[str, str]:
    """Build outbound headers for a platform.

    The direct platform has no fixed Referer, so the target's own origin
    is used, as most CDNs accept self-referrals.
    """
    headers = dict(profile_for(platform).headers)
    if "Referer" not in headers and url:
        parts = urlsplit(url)
        if parts.scheme and parts.netloc:
            headers["Referer"] = f"{parts.scheme}://{parts.netloc}/"
    headers.update(extra)
    return headers
