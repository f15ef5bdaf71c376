"""Ordered media patterns for HTML scraping.

Tiers are tried strictly in order and the first hit wins:

1. structured data (JSON-LD, player config blobs, hydration JSON)
2. Open Graph / Twitter card meta
3. raw regex over inline scripts
4. og:image as a last resort, when the platform allows it
"""

import html
import json
import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Iterator, Optional

from bs4 import BeautifulSoup

from ..platforms.models import MediaClass, PlatformProfile


class Tier(IntEnum):
    STRUCTURED = 1
    META = 2
    REGEX = 3
    IMAGE_FALLBACK = 4


@dataclass
class MediaMatch:
    """One media URL found in a page."""

    url: str
    tier: Tier
    source: str
    media_class: MediaClass
    quality_hint: Optional[str] = None


# (meta property, media class)
META_PROPERTIES = [
    ("og:video:secure_url", MediaClass.VIDEO),
    ("og:video:url", MediaClass.VIDEO),
    ("og:video", MediaClass.VIDEO),
    ("og:audio:secure_url", MediaClass.AUDIO),
    ("og:audio:url", MediaClass.AUDIO),
    ("og:audio", MediaClass.AUDIO),
    ("twitter:player:stream", MediaClass.VIDEO),
]

# (name, pattern, media class, quality hint); group 1 is the URL
REGEX_PATTERNS = [
    ("hd_src", r'"hd_src(?:_no_ratelimit)?"\s*:\s*"([^"]+)"', MediaClass.VIDEO, "HD"),
    ("sd_src", r'"sd_src(?:_no_ratelimit)?"\s*:\s*"([^"]+)"', MediaClass.VIDEO, "SD"),
    ("video_url", r'"video_url"\s*:\s*"([^"]+)"', MediaClass.VIDEO, None),
    ("playbackUrl", r'"playbackUrl"\s*:\s*"([^"]+)"', MediaClass.VIDEO, None),
    ("mediaUrl", r'"mediaUrl"\s*:\s*"([^"]+)"', MediaClass.VIDEO, None),
    ("videoUrl", r'"videoUrl"\s*:\s*"([^"]+)"', MediaClass.VIDEO, None),
    ("v_720p", r'"(?:V_720P|v_720p)"\s*:\s*\{[^{}]*?"url"\s*:\s*"([^"]+)"', MediaClass.VIDEO, "720p"),
    ("v_480p", r'"(?:V_480P|v_480p)"\s*:\s*\{[^{}]*?"url"\s*:\s*"([^"]+)"', MediaClass.VIDEO, "480p"),
    ("data-video-url", r'data-video-url="([^"]+)"', MediaClass.VIDEO, None),
    ("twimg", r'(https?:\\?/\\?/video\.twimg\.com/[^"\'\s]+?\.mp4[^"\'\s]*)', MediaClass.VIDEO, None),
    ("pinimg_originals", r'(https?:\\?/\\?/i\.pinimg\.com/originals/[^"\'\s]+?\.(?:jpe?g|png|gif|webp))', MediaClass.IMAGE, "Original"),
    ("pinimg_sized", r'(https?:\\?/\\?/i\.pinimg\.com/\d+x/[^"\'\s]+?\.(?:jpe?g|png|gif|webp))', MediaClass.IMAGE, None),
    ("mp4", r'(https?:\\?/\\?/[^"\'\s<>]+?\.mp4(?:\?[^"\'\s<>]*)?)', MediaClass.VIDEO, None),
]

_JSONLD_TYPES = {
    "VideoObject": MediaClass.VIDEO,
    "AudioObject": MediaClass.AUDIO,
    "ImageObject": MediaClass.IMAGE,
}

_MEDIA_FILE = re.compile(r'\.(mp4|webm|mov|m4v|m3u8|mpd|mp3|m4a|ogg|opus|jpe?g|png|gif|webp)(\?|$)', re.IGNORECASE)

_HYDRATION_KEYS = ("contentUrl", "videoUrl", "video_url", "playbackUrl", "playback_url", "mediaUrl", "streamUrl")


def unescape_url(url: str) -> str:
    """Undo JSON and HTML escaping and fix protocol-relative links."""
    url = url.replace("\\/", "/").replace("\\u0026", "&").replace("\\u002F", "/")
    url = html.unescape(url).strip()
    if url.startswith("//"):
        url = "https:" + url
    return url


def _is_http(url: Optional[str]) -> bool:
    return bool(url) and url.startswith(("http://", "https://", "//"))


def extract_meta(soup: BeautifulSoup, property_name: str) -> Optional[str]:
    """Extract content from a meta tag by property or name."""
    tag = soup.find("meta", attrs={"property": property_name}) or soup.find("meta", attrs={"name": property_name})
    if tag and tag.get("content"):
        return tag["content"].strip() or None
    return None


def page_title(soup: BeautifulSoup) -> Optional[str]:
    """og:title, falling back to the document <title>."""
    title = extract_meta(soup, "og:title") or extract_meta(soup, "twitter:title")
    if not title and soup.title and soup.title.string:
        title = soup.title.string
    return title


def _walk(obj: Any) -> Iterator[dict]:
    """Yield every dict nested anywhere in a JSON value."""
    if isinstance(obj, dict):
        yield obj
        for value in obj.values():
            yield from _walk(value)
    elif isinstance(obj, list):
        for item in obj:
            yield from _walk(item)


def _load_json(text: Optional[str]) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def _json_ld(soup: BeautifulSoup) -> Optional[MediaMatch]:
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        data = _load_json(script.string)
        for node in _walk(data):
            node_type = node.get("@type")
            if isinstance(node_type, list):
                node_type = next((t for t in node_type if t in _JSONLD_TYPES), None)
            media_class = _JSONLD_TYPES.get(node_type)
            if media_class is None:
                continue
            content_url = node.get("contentUrl")
            if isinstance(content_url, str) and _is_http(content_url):
                return MediaMatch(unescape_url(content_url), Tier.STRUCTURED, "json-ld", media_class)
            embed_url = node.get("embedUrl")
            if isinstance(embed_url, str) and _is_http(embed_url) and _MEDIA_FILE.search(embed_url):
                return MediaMatch(unescape_url(embed_url), Tier.STRUCTURED, "json-ld", media_class)
    return None


def _vimeo_config(text: str) -> Optional[MediaMatch]:
    match = re.search(r'"progressive"\s*:\s*(\[[^\]]*\])', text)
    if not match:
        return None
    files = _load_json(match.group(1).replace("\\/", "/")) or []
    files = [f for f in files if isinstance(f, dict) and _is_http(f.get("url"))]
    if not files:
        return None
    best = max(files, key=lambda f: f.get("height") or 0)
    hint = f"{best['height']}p" if best.get("height") else None
    return MediaMatch(unescape_url(best["url"]), Tier.STRUCTURED, "vimeo-config", MediaClass.VIDEO, hint)


def _pinterest_resources(soup: BeautifulSoup) -> Optional[MediaMatch]:
    for script_id in ("__PWS_DATA__", "__PWS_INITIAL_PROPS__", "initial-state"):
        script = soup.find("script", attrs={"id": script_id})
        data = _load_json(script.string if script else None)
        if data is None:
            continue
        image: Optional[MediaMatch] = None
        for node in _walk(data):
            video_list = node.get("video_list")
            if isinstance(video_list, dict):
                mp4s = [
                    v for v in video_list.values()
                    if isinstance(v, dict) and _is_http(v.get("url")) and ".mp4" in v["url"]
                ]
                if mp4s:
                    best = max(mp4s, key=lambda v: v.get("width") or 0)
                    return MediaMatch(unescape_url(best["url"]), Tier.STRUCTURED, "pinterest-resource", MediaClass.VIDEO)
            orig = node.get("orig")
            if image is None and isinstance(orig, dict) and _is_http(orig.get("url")):
                image = MediaMatch(unescape_url(orig["url"]), Tier.STRUCTURED, "pinterest-resource", MediaClass.IMAGE, "Original")
        if image:
            return image
    return None


def _hydration(soup: BeautifulSoup) -> Optional[MediaMatch]:
    script = soup.find("script", attrs={"id": "__NEXT_DATA__"})
    data = _load_json(script.string if script else None)
    for node in _walk(data):
        for key in _HYDRATION_KEYS:
            value = node.get(key)
            if isinstance(value, str) and _is_http(value) and _MEDIA_FILE.search(value):
                media_class = MediaClass.AUDIO if re.search(r'\.(mp3|m4a|ogg|opus)', value) else MediaClass.VIDEO
                return MediaMatch(unescape_url(value), Tier.STRUCTURED, "hydration", media_class)
    return None


def _meta(soup: BeautifulSoup, image_class: bool) -> Optional[MediaMatch]:
    properties = list(META_PROPERTIES)
    if image_class:
        properties.append(("og:image", MediaClass.IMAGE))
    for name, media_class in properties:
        value = extract_meta(soup, name)
        if value and _is_http(value):
            return MediaMatch(unescape_url(value), Tier.META, name, media_class)
    return None


def _regex(text: str) -> Optional[MediaMatch]:
    for name, pattern, media_class, hint in REGEX_PATTERNS:
        match = re.search(pattern, text)
        if not match:
            continue
        url = unescape_url(match.group(1))
        if _is_http(url):
            return MediaMatch(url, Tier.REGEX, name, media_class, hint)
    return None


def find_media(text: str, profile: PlatformProfile, soup: Optional[BeautifulSoup] = None) -> Optional[MediaMatch]:
    """
    Walk the pattern tiers and return the first media URL found.

    Args:
        text: Raw page HTML
        profile: Profile of the platform the page belongs to
        soup: Parsed document, if the caller already has one

    Returns:
        MediaMatch, or None if no tier matched
    """
    soup = soup or BeautifulSoup(text, "html.parser")
    image_class = profile.media_class == MediaClass.IMAGE

    for finder in (_json_ld, _pinterest_resources, _hydration):
        match = finder(soup)
        if match:
            return match
    match = _vimeo_config(text)
    if match:
        return match

    match = _meta(soup, image_class)
    if match:
        return match

    match = _regex(text)
    if match:
        return match

    if profile.image_fallback:
        image = extract_meta(soup, "og:image:secure_url") or extract_meta(soup, "og:image")
        if image and _is_http(image):
            return MediaMatch(unescape_url(image), Tier.IMAGE_FALLBACK, "og:image", MediaClass.IMAGE)

    return None
