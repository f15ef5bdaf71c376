"""Tests for native API clients."""

import pytest
from aiohttp import web

from conftest import make_options
from media_relay.extractor import (
    Confidence,
    NativeApiExtractor,
    NotFound,
    UnsupportedShape,
    UpstreamError,
    get_client,
    list_native_platforms,
    register_client,
)
from media_relay.extractor.native import (
    DailymotionClient,
    FlickrClient,
    NativeClient,
    PinterestClient,
    RedditClient,
    VimeoClient,
)
from media_relay.extractor.native import factory
from media_relay.platforms import MediaClass, Platform


def json_app(routes: dict) -> web.Application:
    """App answering each path with a fixed JSON body or status."""
    app = web.Application()
    app["requests"] = []

    def handler_for(payload):
        async def handler(request):
            app["requests"].append(request)
            if isinstance(payload, int):
                return web.Response(status=payload)
            return web.json_response(payload)
        return handler

    for path, payload in routes.items():
        app.router.add_get(path, handler_for(payload))
    return app


def base_url(server) -> str:
    return f"http://{server.host}:{server.port}"


class TestFactory:
    """Tests for the client registry."""

    def test_get_client(self):
        assert isinstance(get_client(Platform.VIMEO), VimeoClient)
        assert isinstance(get_client(Platform.FLICKR), FlickrClient)
        assert get_client(Platform.SPOTIFY) is None

    def test_list_native_platforms(self):
        assert list_native_platforms() == ["dailymotion", "flickr", "pinterest", "reddit", "vimeo"]

    def test_register_client(self, monkeypatch):
        monkeypatch.setattr(factory, "_CLIENTS", dict(factory._CLIENTS))

        class SpotifyClient(NativeClient):
            platform = Platform.SPOTIFY

            async def resolve(self, url, options):
                raise NotFound()

        register_client(SpotifyClient)
        assert isinstance(get_client(Platform.SPOTIFY), SpotifyClient)

    def test_register_requires_platform(self):
        class Nameless(NativeClient):
            async def resolve(self, url, options):
                raise NotFound()

        with pytest.raises(ValueError):
            register_client(Nameless)


class TestContentIds:
    """Tests for URL id parsing."""

    def test_ids(self):
        assert DailymotionClient().content_id("https://www.dailymotion.com/video/x8abc12") == "x8abc12"
        assert DailymotionClient().content_id("https://dai.ly/x8abc12") == "x8abc12"
        assert VimeoClient().content_id("https://vimeo.com/channels/staffpicks/123456") == "123456"
        assert PinterestClient().content_id("https://www.pinterest.com/pin/some-title--98765/") == "98765"

    def test_missing_id(self):
        with pytest.raises(UnsupportedShape):
            VimeoClient().content_id("https://vimeo.com/channels/staffpicks")

    def test_reddit_listing_url(self):
        client = RedditClient()
        url = "https://www.reddit.com/r/videos/comments/abc123/some_title/?utm=x"
        assert client.listing_url(url) == "https://www.reddit.com/r/videos/comments/abc123/some_title.json"
        with pytest.raises(UnsupportedShape):
            client.listing_url("https://v.redd.it/xyz")


class TestClients:
    """Tests for clients against a local API."""

    @pytest.mark.asyncio
    async def test_dailymotion_prefers_highest_mp4(self, serve):
        server = await serve(json_app({"/meta/x8abc": {
            "title": "Clip",
            "posters": {"120": "https://s/120.jpg", "720": "https://s/720.jpg"},
            "qualities": {
                "auto": [{"type": "application/x-mpegURL", "url": "https://cdn/auto.m3u8"}],
                "720": [
                    {"type": "application/x-mpegURL", "url": "https://cdn/720.m3u8"},
                    {"type": "video/mp4", "url": "https://cdn/720.mp4"},
                ],
            },
        }}))
        client = DailymotionClient()
        client.API_URL = base_url(server) + "/meta/{video_id}"

        candidate = await client.resolve("https://www.dailymotion.com/video/x8abc", make_options(Platform.DAILYMOTION))

        assert candidate.raw_url == "https://cdn/720.mp4"
        assert candidate.quality_hint == "720p"
        assert candidate.thumbnail_url == "https://s/720.jpg"
        assert candidate.confidence == Confidence.HIGH

    @pytest.mark.asyncio
    async def test_dailymotion_error_payload(self, serve):
        server = await serve(json_app({"/meta/x1": {"error": {"title": "Video not found"}}}))
        client = DailymotionClient()
        client.API_URL = base_url(server) + "/meta/{video_id}"
        with pytest.raises(NotFound):
            await client.resolve("https://dai.ly/x1", make_options(Platform.DAILYMOTION))

    @pytest.mark.asyncio
    async def test_vimeo_progressive(self, serve):
        server = await serve(json_app({"/video/42/config": {
            "video": {"title": "Short film", "thumbs": {"640": "https://i/640.jpg", "1280": "https://i/1280.jpg"}},
            "request": {"files": {"progressive": [
                {"url": "https://vod/360.mp4", "height": 360},
                {"url": "https://vod/1080.mp4", "height": 1080},
            ]}},
        }}))
        client = VimeoClient()
        client.API_URL = base_url(server) + "/video/{video_id}/config"

        candidate = await client.resolve("https://vimeo.com/42", make_options(Platform.VIMEO))
        assert candidate.raw_url == "https://vod/1080.mp4"
        assert candidate.quality_hint == "1080p"
        assert candidate.thumbnail_url == "https://i/1280.jpg"

    @pytest.mark.asyncio
    async def test_vimeo_hls_fallback(self, serve):
        server = await serve(json_app({"/video/42/config": {
            "video": {"title": "Short film"},
            "request": {"files": {"hls": {"default_cdn": "akfire", "cdns": {
                "akfire": {"url": "https://hls/master.m3u8"},
            }}}},
        }}))
        client = VimeoClient()
        client.API_URL = base_url(server) + "/video/{video_id}/config"

        candidate = await client.resolve("https://vimeo.com/42", make_options(Platform.VIMEO))
        assert candidate.raw_url == "https://hls/master.m3u8"
        assert candidate.quality_hint == "Auto"

    @pytest.mark.asyncio
    async def test_reddit_video_and_crosspost(self, serve):
        server = await serve(json_app({"/listing.json": [{"data": {"children": [{"data": {
            "title": "Look at this",
            "crosspost_parent_list": [{
                "secure_media": {"reddit_video": {
                    "fallback_url": "https://v.redd.it/abc/DASH_720.mp4?source=fallback&amp;x=1",
                    "height": 720,
                }},
            }],
        }}]}}]}))
        client = RedditClient()
        client.listing_url = lambda url: base_url(server) + "/listing.json"

        candidate = await client.resolve("https://www.reddit.com/r/a/comments/abc/t/", make_options(Platform.REDDIT))
        assert candidate.raw_url == "https://v.redd.it/abc/DASH_720.mp4?source=fallback&x=1"
        assert candidate.media_class == MediaClass.VIDEO
        assert candidate.quality_hint == "720p"

        request = server.app["requests"][0]
        assert request.query["raw_json"] == "1"

    @pytest.mark.asyncio
    async def test_reddit_image_post(self, serve):
        server = await serve(json_app({"/listing.json": [{"data": {"children": [{"data": {
            "title": "Photo",
            "url_overridden_by_dest": "https://i.redd.it/photo.jpg",
        }}]}}]}))
        client = RedditClient()
        client.listing_url = lambda url: base_url(server) + "/listing.json"

        candidate = await client.resolve("https://www.reddit.com/r/a/comments/abc/t/", make_options(Platform.REDDIT))
        assert candidate.media_class == MediaClass.IMAGE
        assert candidate.raw_url == "https://i.redd.it/photo.jpg"

    @pytest.mark.asyncio
    async def test_reddit_text_post(self, serve):
        server = await serve(json_app({"/listing.json": [{"data": {"children": [{"data": {
            "title": "Discussion", "url_overridden_by_dest": "https://example.com/article",
        }}]}}]}))
        client = RedditClient()
        client.listing_url = lambda url: base_url(server) + "/listing.json"
        with pytest.raises(NotFound):
            await client.resolve("https://www.reddit.com/r/a/comments/abc/t/", make_options(Platform.REDDIT))

    @pytest.mark.asyncio
    async def test_pinterest_image(self, serve):
        server = await serve(json_app({"/pins/": {"data": [{
            "grid_title": "Nice chair",
            "images": {
                "237x": {"url": "https://i.pinimg.com/237x/a.jpg", "width": 237},
                "orig": {"url": "https://i.pinimg.com/originals/a.jpg", "width": 1200},
            },
        }]}}))
        client = PinterestClient()
        client.API_URL = base_url(server) + "/pins/"

        candidate = await client.resolve("https://www.pinterest.com/pin/123456/", make_options(Platform.PINTEREST))
        assert candidate.raw_url == "https://i.pinimg.com/originals/a.jpg"
        assert candidate.media_class == MediaClass.IMAGE
        assert candidate.quality_hint == "Original"
        assert server.app["requests"][0].query["pin_ids"] == "123456"

    @pytest.mark.asyncio
    async def test_flickr_oembed(self, serve):
        server = await serve(json_app({"/oembed/": {
            "type": "photo", "url": "https://live.staticflickr.com/1/2_b.jpg",
            "title": "Sunset", "width": 1024, "height": 768,
        }}))
        client = FlickrClient()
        client.API_URL = base_url(server) + "/oembed/"

        candidate = await client.resolve("https://www.flickr.com/photos/u/2/", make_options(Platform.FLICKR))
        assert candidate.raw_url == "https://live.staticflickr.com/1/2_b.jpg"
        assert candidate.quality_hint == "1024x768"

    @pytest.mark.asyncio
    async def test_status_mapping(self, serve):
        server = await serve(json_app({"/gone": 404, "/broken": 500}))
        client = FlickrClient()
        options = make_options(Platform.FLICKR)

        client.API_URL = base_url(server) + "/gone"
        with pytest.raises(NotFound):
            await client.resolve("https://www.flickr.com/photos/u/2/", options)

        client.API_URL = base_url(server) + "/broken"
        with pytest.raises(UpstreamError):
            await client.resolve("https://www.flickr.com/photos/u/2/", options)


class TestNativeApiExtractor:
    """Tests for NativeApiExtractor."""

    @pytest.mark.asyncio
    async def test_missing_client_is_unsupported(self):
        extractor = NativeApiExtractor()
        with pytest.raises(UnsupportedShape):
            await extractor.attempt("https://open.spotify.com/track/1", Platform.SPOTIFY, make_options(Platform.SPOTIFY))

    @pytest.mark.asyncio
    async def test_shape_errors_become_unsupported(self):
        class Broken(NativeClient):
            platform = Platform.VIMEO

            async def resolve(self, url, options):
                return {}["missing"]

        extractor = NativeApiExtractor(clients={Platform.VIMEO: Broken()})
        with pytest.raises(UnsupportedShape):
            await extractor.attempt("https://vimeo.com/1", Platform.VIMEO, make_options(Platform.VIMEO))

    @pytest.mark.asyncio
    async def test_sets_strategy_and_strips_title(self):
        from media_relay.extractor import MediaCandidate

        class Fixed(NativeClient):
            platform = Platform.VIMEO

            async def resolve(self, url, options):
                return MediaCandidate(
                    raw_url="https://vod/1.mp4",
                    media_class=MediaClass.VIDEO,
                    strategy="api",
                    confidence=Confidence.HIGH,
                    title="Film on Vimeo",
                )

        extractor = NativeApiExtractor(clients={Platform.VIMEO: Fixed()})
        candidate = await extractor.attempt("https://vimeo.com/1", Platform.VIMEO, make_options(Platform.VIMEO))
        assert candidate.strategy == "native"
        assert candidate.title == "Film"
