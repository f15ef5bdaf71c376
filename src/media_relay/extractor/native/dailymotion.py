"""Dailymotion player metadata client."""

from ...platforms.models import MediaClass, Platform
from ..base import Confidence, ExtractOptions, MediaCandidate, NotFound
from .base import NativeClient


class DailymotionClient(NativeClient):
    """Reads the player metadata API used by Dailymotion's embed."""

    platform = Platform.DAILYMOTION

    URL_PATTERNS = [
        r'dailymotion\.com/(?:embed/)?video/([a-z0-9]+)',
        r'dai\.ly/([a-z0-9]+)',
    ]

    API_URL = "https://www.dailymotion.com/player/metadata/video/{video_id}"

    # Best first
    QUALITIES = ["1080", "720", "480", "380", "240", "auto"]

    async def resolve(self, url: str, options: ExtractOptions) -> MediaCandidate:
        video_id = self.content_id(url)
        data = await self._get_json(self.API_URL.format(video_id=video_id), options)

        if data.get("error"):
            raise NotFound(str(data["error"].get("title") or "Video unavailable"))

        qualities = data.get("qualities") or {}
        for quality in self.QUALITIES:
            entries = qualities.get(quality) or []
            # Progressive mp4 beats an HLS manifest at the same quality
            entries = sorted(entries, key=lambda e: e.get("type") != "video/mp4")
            for entry in entries:
                if entry.get("url"):
                    return MediaCandidate(
                        raw_url=entry["url"],
                        media_class=MediaClass.VIDEO,
                        strategy="native",
                        confidence=Confidence.HIGH,
                        title=data.get("title"),
                        thumbnail_url=self._poster(data),
                        quality_hint=f"{quality}p" if quality.isdigit() else "Auto",
                        content_type=entry.get("type"),
                    )

        raise NotFound("No playable qualities")

    def _poster(self, data: dict):
        posters = data.get("posters") or {}
        sizes = [k for k in posters if str(k).isdigit()]
        if sizes:
            return posters[max(sizes, key=int)]
        return data.get("thumbnail_url")
