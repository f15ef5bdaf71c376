"""Container signature sniffing on leading bytes."""

from typing import Optional


# (name, content type) per container
CONTENT_TYPES = {
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mpegts": "video/mp2t",
    "h264": "video/h264",
    "flv": "video/x-flv",
    "ogg": "audio/ogg",
    "flac": "audio/flac",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "avi": "video/x-msvideo",
    "hls": "application/vnd.apple.mpegurl",
    "dash": "application/dash+xml",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}

MANIFEST_TYPES = (
    "application/vnd.apple.mpegurl",
    "application/x-mpegurl",
    "audio/mpegurl",
    "audio/x-mpegurl",
    "application/dash+xml",
)


def sniff(data: bytes) -> Optional[str]:
    """
    Identify a media container from its first bytes.

    Args:
        data: Leading bytes of the resource (8 KB is plenty)

    Returns:
        Container name (a key of CONTENT_TYPES), or None
    """
    if not data:
        return None

    head = data[:16]

    if len(data) >= 12 and data[4:8] == b"ftyp":
        return "mp4"
    if head.startswith(b"\x1a\x45\xdf\xa3"):
        return "webm"
    if head.startswith(b"FLV\x01"):
        return "flv"
    if head.startswith(b"OggS"):
        return "ogg"
    if head.startswith(b"fLaC"):
        return "flac"
    if head.startswith(b"RIFF") and len(data) >= 12:
        if data[8:12] == b"WAVE":
            return "wav"
        if data[8:12] == b"AVI ":
            return "avi"
        if data[8:12] == b"WEBP":
            return "webp"
    if head.startswith(b"\xff\xd8\xff"):
        return "jpeg"
    if head.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if head.startswith((b"GIF87a", b"GIF89a")):
        return "gif"
    if head.startswith(b"#EXTM3U"):
        return "hls"
    if data[0] == 0x47 and len(data) > 188 and data[188] == 0x47:
        return "mpegts"
    if head.startswith(b"ID3"):
        return "mp3"
    if len(data) >= 2 and data[0] == 0xFF and (data[1] & 0xE0) == 0xE0:
        return "mp3"
    if head.startswith((b"\x00\x00\x00\x01", b"\x00\x00\x01")):
        return "h264"

    text = data[:512].lstrip().lower()
    if text.startswith(b"<?xml") or text.startswith(b"<mpd"):
        if b"<mpd" in data[:2048].lower():
            return "dash"

    return None


def looks_like_html(data: bytes) -> bool:
    """True when the bytes are an HTML document (usually an error page)."""
    text = data[:1024].lstrip().lower()
    return text.startswith((b"<!doctype html", b"<html", b"<head", b"<body")) or b"<html" in text[:256]


def content_type_for(container: Optional[str]) -> Optional[str]:
    return CONTENT_TYPES.get(container) if container else None


def is_manifest(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.split(";")[0].strip().lower() in MANIFEST_TYPES
