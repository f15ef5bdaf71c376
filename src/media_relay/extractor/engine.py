"""yt-dlp engine wrapper and format selection."""

import asyncio
import logging
import re
from typing import Any, Optional
from urllib.parse import urlsplit

import yt_dlp
from yt_dlp.utils import DownloadError, ExtractorError, UnsupportedError

from ..platforms.models import MediaClass
from .base import ExtractError, NotFound, UnsupportedShape, UpstreamError


logger = logging.getLogger(__name__)

RELAYABLE_PROTOCOLS = ("http", "https")

_NOT_FOUND_PATTERNS = re.compile(
    r"private|unavailable|not available|404|not found|removed|deleted|does not exist",
    re.IGNORECASE,
)
_UNSUPPORTED_PATTERNS = re.compile(r"unsupported url|is not a valid url", re.IGNORECASE)


class YtDlpEngine:
    """Runs yt-dlp in the default executor.

    yt-dlp is blocking, so every call is pushed to a worker thread the same
    way the rest of the project offloads file and thumbnail work.
    """

    def __init__(
        self,
        cookies_from_browser: Optional[str] = None,
        socket_timeout: int = 20,
    ):
        self.cookies_from_browser = cookies_from_browser
        self.socket_timeout = socket_timeout

    def _base_options(self, headers: Optional[dict[str, str]] = None) -> dict[str, Any]:
        opts: dict[str, Any] = {
            'quiet': True,
            'no_warnings': True,
            'noplaylist': True,
            'nocheckcertificate': True,
            'socket_timeout': self.socket_timeout,
            'http_headers': {
                'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8',
                'Accept-Language': 'en-US,en;q=0.5',
            },
        }
        if headers:
            opts['http_headers'].update(headers)
        if self.cookies_from_browser:
            opts['cookiesfrombrowser'] = (self.cookies_from_browser, )  # Tuple required
        return opts

    async def extract_info(self, url: str, headers: Optional[dict[str, str]] = None) -> dict:
        """Fetch metadata and formats without downloading."""
        opts = self._base_options(headers)
        opts['skip_download'] = True
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._extract_sync, url, opts)

    async def download(
        self,
        url: str,
        output_template: str,
        format_selector: str = "best",
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        """Download a single media file to ``output_template``."""
        opts = self._base_options(headers)
        opts.update({
            'outtmpl': output_template,
            'format': format_selector,
            'overwrites': True,
        })
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._download_sync, url, opts)

    def _extract_sync(self, url: str, opts: dict) -> dict:
        with yt_dlp.YoutubeDL(opts) as ydl:
            info = ydl.extract_info(url, download=False)
            return ydl.sanitize_info(info) if info else {}

    def _download_sync(self, url: str, opts: dict) -> None:
        with yt_dlp.YoutubeDL(opts) as ydl:
            ydl.download([url])


def classify_error(exc: Exception) -> ExtractError:
    """Translate a yt-dlp exception into an extraction failure."""
    message = str(exc)
    if isinstance(exc, UnsupportedError) or _UNSUPPORTED_PATTERNS.search(message):
        return UnsupportedShape(f"yt-dlp: {message[:200]}")
    if _NOT_FOUND_PATTERNS.search(message):
        return NotFound(f"yt-dlp: {message[:200]}")
    return UpstreamError(f"yt-dlp: {message[:200]}")


YTDLP_ERRORS = (DownloadError, ExtractorError)


def first_entry(info: dict) -> dict:
    """Unwrap playlist-shaped results to their first real entry."""
    if 'entries' in info:
        for entry in info['entries'] or ():
            if entry:
                return entry
        return {}
    return info


def _protocol(fmt: dict) -> str:
    protocol = fmt.get('protocol')
    if protocol:
        return protocol
    return urlsplit(fmt.get('url') or '').scheme


def _has_video(fmt: dict) -> bool:
    return fmt.get('vcodec') not in (None, 'none')


def _has_audio(fmt: dict) -> bool:
    return fmt.get('acodec') not in (None, 'none')


def relayable_formats(info: dict) -> list[dict]:
    """Formats whose URL can be fetched with a plain HTTP GET."""
    formats = info.get('formats') or ([info] if info.get('url') else [])
    return [
        f for f in formats
        if f.get('url') and _protocol(f) in RELAYABLE_PROTOCOLS
    ]


def pick_format(info: dict, media_class: MediaClass) -> Optional[dict]:
    """
    Choose the best directly relayable format.

    Video prefers muxed audio+video, then mp4, then height. Audio prefers
    audio-only streams by bitrate.

    Returns:
        The chosen format dict, or None when nothing is relayable
    """
    formats = relayable_formats(info)
    if not formats:
        return None

    if media_class == MediaClass.AUDIO:
        audio_only = [f for f in formats if _has_audio(f) and not _has_video(f)]
        if audio_only:
            return max(audio_only, key=lambda f: (f.get('abr') or f.get('tbr') or 0))

    def video_rank(fmt: dict) -> tuple:
        # yt-dlp leaves codecs unset on single-file extractors; treat as muxed
        codecs_known = 'vcodec' in fmt or 'acodec' in fmt
        muxed = (_has_video(fmt) and _has_audio(fmt)) or not codecs_known
        return (
            muxed,
            fmt.get('ext') == 'mp4',
            fmt.get('height') or 0,
            fmt.get('tbr') or 0,
        )

    return max(formats, key=video_rank)


def quality_label(fmt: dict) -> Optional[str]:
    """Human label such as '720p' or '128kbps'."""
    if fmt.get('height'):
        return f"{fmt['height']}p"
    if fmt.get('abr'):
        return f"{int(fmt['abr'])}kbps"
    return fmt.get('format_note') or None


def best_thumbnail(info: dict) -> Optional[str]:
    if info.get('thumbnail'):
        return info['thumbnail']
    thumbs = info.get('thumbnails') or []
    return thumbs[-1].get('url') if thumbs else None
