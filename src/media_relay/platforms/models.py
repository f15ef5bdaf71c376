"""Platform identifiers and per-platform configuration."""

from dataclasses import dataclass, field
from enum import Enum


class MediaClass(str, Enum):
    """Kind of media a platform or candidate carries."""

    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"
    UNKNOWN = "unknown"


class Platform(str, Enum):
    """Supported content platforms."""

    # Video / social
    YOUTUBE = "youtube"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    TWITTER = "twitter"
    THREADS = "threads"
    PINTEREST = "pinterest"
    VIMEO = "vimeo"
    DAILYMOTION = "dailymotion"
    TWITCH = "twitch"
    REDDIT = "reddit"
    LINKEDIN = "linkedin"
    TUMBLR = "tumblr"
    VK = "vk"
    BILIBILI = "bilibili"
    SNAPCHAT = "snapchat"

    # Audio
    SPOTIFY = "spotify"
    SOUNDCLOUD = "soundcloud"
    BANDCAMP = "bandcamp"
    DEEZER = "deezer"
    APPLE_MUSIC = "apple_music"
    AMAZON_MUSIC = "amazon_music"
    MIXCLOUD = "mixcloud"
    AUDIOMACK = "audiomack"

    # Image hosts
    IMGUR = "imgur"
    FLICKR = "flickr"

    # Plain media file links
    DIRECT = "direct"


# Strategy keys used in chain configuration
NATIVE = "native"
GENERIC = "generic"
SCRAPE = "scrape"
SEARCH = "search"


@dataclass(frozen=True)
class PlatformProfile:
    """Static configuration for one platform.

    Per-platform behavior is data: which strategies run in which order, and
    which headers the origin expects on scrape, probe and relay requests.
    """

    platform: Platform
    display_name: str
    media_class: MediaClass
    chain: tuple[str, ...]
    headers: dict[str, str] = field(default_factory=dict)
    title_suffixes: tuple[str, ...] = ()
    image_fallback: bool = False
