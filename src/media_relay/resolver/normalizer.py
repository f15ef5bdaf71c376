"""Media normalizer: candidate + validation -> MediaResult."""

import mimetypes
from pathlib import PurePosixPath
from typing import Iterable, Optional
from urllib.parse import quote, urlsplit

from ..errors import ValidationUnknown
from ..extractor.base import MediaCandidate
from ..platforms.models import MediaClass, Platform
from ..platforms.profiles import profile_for
from ..validator import ValidationOutcome
from .models import MediaResult


PLACEHOLDER_THUMBNAIL = "https://via.placeholder.com/480x360.png?text={platform}"

DEFAULT_EXTENSIONS = {
    MediaClass.VIDEO: "mp4",
    MediaClass.AUDIO: "mp3",
    MediaClass.IMAGE: "jpg",
    MediaClass.UNKNOWN: "bin",
}

# Subtypes whose names are not usable as file extensions
_SUBTYPE_EXTENSIONS = {
    "mpeg": "mp3",
    "jpeg": "jpg",
    "quicktime": "mov",
    "x-matroska": "mkv",
    "mp2t": "ts",
    "x-flv": "flv",
    "vnd.apple.mpegurl": "m3u8",
    "x-mpegurl": "m3u8",
    "dash+xml": "mpd",
    "x-msvideo": "avi",
}


def _url_extension(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    suffix = PurePosixPath(urlsplit(url).path).suffix.lstrip(".").lower()
    return suffix if suffix and len(suffix) <= 5 and suffix.isalnum() else None


def _content_type_extension(content_type: Optional[str]) -> Optional[str]:
    if not content_type or "/" not in content_type:
        return None
    base = content_type.split(";")[0].strip().lower()
    subtype = base.split("/", 1)[1]
    if subtype in _SUBTYPE_EXTENSIONS:
        return _SUBTYPE_EXTENSIONS[subtype]
    guessed = mimetypes.guess_extension(base)
    if guessed:
        return guessed.lstrip(".")
    return subtype if subtype.isalnum() else None


def pick_extension(candidate: MediaCandidate, content_type: Optional[str], media_class: MediaClass) -> str:
    """Extension hint, else URL suffix, else content type, else class default."""
    if candidate.local_asset is not None:
        suffix = candidate.local_asset.path.suffix.lstrip(".")
        if suffix:
            return suffix.lower()
    return (
        (candidate.extension or "").lower().lstrip(".")
        or _url_extension(candidate.raw_url)
        or _content_type_extension(content_type)
        or DEFAULT_EXTENSIONS[media_class]
    )


def normalize(
    candidate: MediaCandidate,
    outcome: ValidationOutcome,
    platform: Platform,
    source_url: str,
    notices: Iterable[ValidationUnknown] = (),
) -> MediaResult:
    """
    Build the canonical result for a validated candidate.

    Args:
        candidate: Winning candidate
        outcome: Its validation outcome (never invalid)
        platform: Source platform
        source_url: URL the caller submitted
        notices: Non-fatal notices collected by the chain

    Returns:
        MediaResult with placeholders filled in
    """
    profile = profile_for(platform)

    media_class = candidate.media_class
    if media_class == MediaClass.UNKNOWN:
        media_class = profile.media_class

    title = (candidate.title or "").strip()
    if not title:
        label = media_class.value if media_class != MediaClass.UNKNOWN else "media"
        title = f"{profile.display_name} {label.capitalize()}"

    media_url = None if candidate.local_asset is not None else candidate.raw_url

    if media_class == MediaClass.IMAGE and media_url:
        thumbnail = media_url
    else:
        thumbnail = candidate.thumbnail_url or PLACEHOLDER_THUMBNAIL.format(platform=quote(profile.display_name, safe=""))

    content_type = candidate.content_type or outcome.probed_content_type
    quality = candidate.quality_hint or ("Original" if media_class == MediaClass.IMAGE else "Best available")

    return MediaResult(
        title=title,
        media_url=media_url,
        thumbnail_url=thumbnail,
        media_class=media_class,
        quality_label=quality,
        source_platform=platform,
        source_url=source_url,
        local_asset_path=str(candidate.local_asset.path) if candidate.local_asset is not None else None,
        verdict=outcome.verdict,
        strategy=candidate.strategy,
        extension=pick_extension(candidate, content_type, media_class),
        content_type=content_type,
        size_bytes=outcome.probed_length,
        substituted=candidate.substituted,
        substitution_query=candidate.substitution_query,
        substitution_source=candidate.substitution_source,
        notices=[notice.to_dict() for notice in notices],
    )
