"""Vimeo player config client."""

from ...platforms.models import MediaClass, Platform
from ..base import Confidence, ExtractOptions, MediaCandidate, NotFound
from .base import NativeClient


class VimeoClient(NativeClient):
    """Reads the player config JSON behind Vimeo's embed."""

    platform = Platform.VIMEO

    URL_PATTERNS = [
        r'player\.vimeo\.com/video/(\d+)',
        r'vimeo\.com/(?:.*/)?(\d+)',
    ]

    API_URL = "https://player.vimeo.com/video/{video_id}/config"

    async def resolve(self, url: str, options: ExtractOptions) -> MediaCandidate:
        video_id = self.content_id(url)
        data = await self._get_json(self.API_URL.format(video_id=video_id), options)

        video = data.get("video") or {}
        files = (data.get("request") or {}).get("files") or {}

        progressive = [f for f in files.get("progressive") or [] if f.get("url")]
        if progressive:
            best = max(progressive, key=lambda f: f.get("height") or 0)
            media_url = best["url"]
            quality = f"{best['height']}p" if best.get("height") else best.get("quality")
        else:
            # Newer videos only ship HLS
            hls = files.get("hls") or {}
            cdns = hls.get("cdns") or {}
            cdn = cdns.get(hls.get("default_cdn")) or next(iter(cdns.values()), {})
            media_url = cdn.get("url")
            quality = "Auto"

        if not media_url:
            raise NotFound("No playable files in player config")

        return MediaCandidate(
            raw_url=media_url,
            media_class=MediaClass.VIDEO,
            strategy="native",
            confidence=Confidence.HIGH,
            title=video.get("title"),
            thumbnail_url=self._thumbnail(video),
            quality_hint=quality,
        )

    def _thumbnail(self, video: dict):
        thumbs = video.get("thumbs") or {}
        if thumbs.get("base"):
            return thumbs["base"]
        sizes = [k for k in thumbs if str(k).isdigit()]
        return thumbs[max(sizes, key=int)] if sizes else None
