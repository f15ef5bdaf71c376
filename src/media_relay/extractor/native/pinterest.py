"""Pinterest pin info client."""

from ...platforms.models import MediaClass, Platform
from ..base import Confidence, ExtractOptions, MediaCandidate, NotFound
from .base import NativeClient


class PinterestClient(NativeClient):
    """Reads the pidgets pin info API behind Pinterest's widgets."""

    platform = Platform.PINTEREST

    URL_PATTERNS = [r'pinterest\.[a-z.]+/pin/(?:[\w-]*--)?(\d+)']

    API_URL = "https://widgets.pinterest.com/v3/pidgets/pins/info/"

    async def resolve(self, url: str, options: ExtractOptions) -> MediaCandidate:
        pin_id = self.content_id(url)
        data = await self._get_json(self.API_URL, options, params={"pin_ids": pin_id})

        pins = data.get("data") or []
        if not pins or not isinstance(pins[0], dict):
            raise NotFound("Pin not found")
        pin = pins[0]

        title = pin.get("title") or pin.get("grid_title") or pin.get("description")
        images = pin.get("images") or {}
        image = self._best_image(images)

        video = self._best_video(pin)
        if video:
            return MediaCandidate(
                raw_url=video["url"],
                media_class=MediaClass.VIDEO,
                strategy="native",
                confidence=Confidence.HIGH,
                title=title,
                thumbnail_url=image,
                quality_hint=f"{video['height']}p" if video.get("height") else None,
                extension="mp4",
            )

        if image:
            return MediaCandidate(
                raw_url=image,
                media_class=MediaClass.IMAGE,
                strategy="native",
                confidence=Confidence.HIGH,
                title=title,
                thumbnail_url=image,
                quality_hint="Original" if "orig" in images else None,
            )

        raise NotFound("Pin has no media")

    def _best_video(self, pin: dict):
        video_list = ((pin.get("videos") or {}).get("video_list")) or {}
        mp4s = [v for v in video_list.values() if isinstance(v, dict) and ".mp4" in (v.get("url") or "")]
        return max(mp4s, key=lambda v: v.get("width") or 0) if mp4s else None

    def _best_image(self, images: dict):
        if (images.get("orig") or {}).get("url"):
            return images["orig"]["url"]
        sized = [v for v in images.values() if isinstance(v, dict) and v.get("url")]
        return max(sized, key=lambda v: v.get("width") or 0)["url"] if sized else None
