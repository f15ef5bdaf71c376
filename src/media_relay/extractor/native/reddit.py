"""Reddit post listing client."""

import html
from urllib.parse import urlsplit, urlunsplit

from ...platforms.models import MediaClass, Platform
from ..base import Confidence, ExtractOptions, MediaCandidate, NotFound, UnsupportedShape
from .base import NativeClient


IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")


class RedditClient(NativeClient):
    """Reads a post's ``.json`` listing."""

    platform = Platform.REDDIT

    URL_PATTERNS = [r'reddit\.com/(?:r/[^/]+/)?comments/([a-z0-9]+)']

    def listing_url(self, url: str) -> str:
        parts = urlsplit(url)
        if parts.hostname in ("v.redd.it", "redd.it"):
            raise UnsupportedShape("Short link has no listing")
        self.content_id(url)
        path = parts.path.rstrip("/") + ".json"
        return urlunsplit((parts.scheme, parts.netloc, path, "", ""))

    async def resolve(self, url: str, options: ExtractOptions) -> MediaCandidate:
        data = await self._get_json(self.listing_url(url), options, params={"raw_json": "1"})

        try:
            post = data[0]["data"]["children"][0]["data"]
        except (KeyError, IndexError, TypeError) as e:
            raise UnsupportedShape("Unexpected listing shape") from e

        # Crossposts keep the media on the parent
        source = post
        if post.get("crosspost_parent_list"):
            source = post["crosspost_parent_list"][0]

        title = post.get("title")
        thumbnail = self._preview(source) or self._thumbnail(post)

        media = source.get("secure_media") or source.get("media") or {}
        video = media.get("reddit_video") if isinstance(media, dict) else None
        if video and video.get("fallback_url"):
            height = video.get("height")
            return MediaCandidate(
                raw_url=html.unescape(video["fallback_url"]),
                media_class=MediaClass.VIDEO,
                strategy="native",
                confidence=Confidence.HIGH,
                title=title,
                thumbnail_url=thumbnail,
                quality_hint=f"{height}p" if height else None,
                extension="mp4",
            )

        target = source.get("url_overridden_by_dest") or ""
        if target.lower().split("?")[0].endswith(IMAGE_EXTENSIONS) or "i.redd.it" in target:
            image_url = html.unescape(target)
            return MediaCandidate(
                raw_url=image_url,
                media_class=MediaClass.IMAGE,
                strategy="native",
                confidence=Confidence.HIGH,
                title=title,
                thumbnail_url=image_url,
                quality_hint="Original",
            )

        raise NotFound("Post has no hosted media")

    def _preview(self, post: dict):
        images = (post.get("preview") or {}).get("images") or []
        if images and images[0].get("source", {}).get("url"):
            return html.unescape(images[0]["source"]["url"])
        return None

    def _thumbnail(self, post: dict):
        thumb = post.get("thumbnail") or ""
        return thumb if thumb.startswith("http") else None
