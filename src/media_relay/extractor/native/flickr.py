"""Flickr oEmbed client."""

from ...platforms.models import MediaClass, Platform
from ..base import Confidence, ExtractOptions, MediaCandidate, NotFound, UnsupportedShape
from .base import NativeClient


class FlickrClient(NativeClient):
    """Resolves photo pages through Flickr's oEmbed endpoint."""

    platform = Platform.FLICKR

    API_URL = "https://www.flickr.com/services/oembed/"

    async def resolve(self, url: str, options: ExtractOptions) -> MediaCandidate:
        data = await self._get_json(self.API_URL, options, params={"format": "json", "url": url})

        if data.get("type") != "photo":
            raise UnsupportedShape(f"oEmbed type {data.get('type')!r} is not a photo")
        if not data.get("url"):
            raise NotFound("oEmbed response has no photo URL")

        return MediaCandidate(
            raw_url=data["url"],
            media_class=MediaClass.IMAGE,
            strategy="native",
            confidence=Confidence.HIGH,
            title=data.get("title"),
            thumbnail_url=data.get("thumbnail_url") or data["url"],
            quality_hint=f"{data['width']}x{data['height']}" if data.get("width") and data.get("height") else None,
        )
