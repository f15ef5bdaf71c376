"""Tests for the delivery proxy."""

import gzip

import pytest
from aiohttp import web

from media_relay.delivery import ByteRange, DeliveryProxy, DeliveryResponse, parse_range
from media_relay.errors import AssetGoneError, RangeNotSatisfiable, UpstreamDeliveryError
from media_relay.platforms import MediaClass, Platform
from media_relay.resolver import MediaResult
from media_relay.utils import content_disposition


PAYLOAD = bytes(range(256)) * 4  # 1024 bytes, every offset distinguishable


def make_result(media_url=None, local_path=None, **kwargs) -> MediaResult:
    values = dict(
        title="Test clip",
        media_url=media_url,
        thumbnail_url="https://example.com/t.jpg",
        media_class=MediaClass.VIDEO,
        source_platform=Platform.DIRECT,
        source_url="https://example.com/clip.mp4",
        local_asset_path=str(local_path) if local_path else None,
        strategy="generic",
        extension="mp4",
    )
    values.update(kwargs)
    return MediaResult(**values)


def origin_app() -> web.Application:
    """Origin honouring Range the way a CDN does."""
    app = web.Application()
    app["ranges"] = []

    async def media(request):
        header = request.headers.get("Range")
        app["ranges"].append(header)
        byte_range = parse_range(header, len(PAYLOAD))
        if byte_range is None:
            return web.Response(body=PAYLOAD, content_type="video/mp4")
        return web.Response(
            status=206,
            body=PAYLOAD[byte_range.start:byte_range.end + 1],
            headers={"Content-Type": "video/mp4", "Content-Range": byte_range.content_range(len(PAYLOAD))},
        )

    async def broken(request):
        return web.Response(status=403, text="denied")

    app.router.add_get("/clip.mp4", media)
    app.router.add_get("/denied.mp4", broken)
    return app


class TestParseRange:
    """Tests for parse_range()."""

    def test_no_header(self):
        assert parse_range(None, 1000) is None
        assert parse_range("", 1000) is None

    def test_closed_range(self):
        assert parse_range("bytes=100-199", 1000) == ByteRange(100, 199)

    def test_open_range(self):
        assert parse_range("bytes=500-", 1000) == ByteRange(500, 999)

    def test_suffix_range(self):
        assert parse_range("bytes=-100", 1000) == ByteRange(900, 999)
        assert parse_range("bytes=-5000", 1000) == ByteRange(0, 999)

    def test_end_clamped_to_size(self):
        assert parse_range("bytes=900-5000", 1000) == ByteRange(900, 999)

    def test_first_of_multiple_ranges(self):
        assert parse_range("bytes=0-9, 20-29", 1000) == ByteRange(0, 9)

    def test_ignored_forms(self):
        assert parse_range("items=0-9", 1000) is None
        assert parse_range("bytes=abc", 1000) is None
        assert parse_range("bytes=-", 1000) is None

    @pytest.mark.parametrize("header", ["bytes=1000-", "bytes=2000-3000", "bytes=50-10", "bytes=-0"])
    def test_unsatisfiable(self, header):
        with pytest.raises(RangeNotSatisfiable) as exc_info:
            parse_range(header, 1000)
        assert exc_info.value.status_code == 416
        assert exc_info.value.details["size"] == 1000

    def test_content_range(self):
        byte_range = ByteRange(100, 199)
        assert byte_range.length == 100
        assert byte_range.content_range(1000) == "bytes 100-199/1000"


class TestContentDisposition:
    """Tests for the download file name header."""

    def test_ascii_title(self):
        assert content_disposition("My clip", "mp4") == 'attachment; filename="My clip.mp4"'

    def test_unsafe_characters_removed(self):
        assert content_disposition('a/b:c*"d"', "mp3", "inline") == 'inline; filename="abcd.mp3"'

    def test_unicode_title_gets_fallback(self):
        header = content_disposition("Café ☕", "mp4")
        assert 'filename="Cafe.mp4"' in header
        assert "filename*=UTF-8''Caf%C3%A9%20%E2%98%95.mp4" in header


class TestLocalDelivery:
    """Tests for serving temp files."""

    @pytest.fixture
    def asset(self, store):
        asset = store.new_asset("direct", "mp4", "r")
        asset.path.write_bytes(PAYLOAD[:1000])
        return asset

    @pytest.mark.asyncio
    async def test_full_file(self, store, asset):
        proxy = DeliveryProxy(store)

        response = await proxy.stream(make_result(local_path=asset.path))
        body = await response.read()

        assert response.status_code == 200
        assert response.headers["Content-Length"] == "1000"
        assert response.headers["Accept-Ranges"] == "bytes"
        assert response.headers["Content-Type"] == "video/mp4"
        assert body == PAYLOAD[:1000]
        assert not asset.path.exists()

    @pytest.mark.asyncio
    async def test_partial_range(self, store, asset):
        proxy = DeliveryProxy(store, chunk_size=32)

        response = await proxy.stream(make_result(local_path=asset.path), "bytes=100-199")
        body = await response.read()

        assert response.status_code == 206
        assert response.headers["Content-Range"] == "bytes 100-199/1000"
        assert response.headers["Content-Length"] == "100"
        assert body == PAYLOAD[100:200]

    @pytest.mark.asyncio
    async def test_suffix_range(self, store, asset):
        proxy = DeliveryProxy(store)
        response = await proxy.stream(make_result(local_path=asset.path), "bytes=-10")
        assert await response.read() == PAYLOAD[990:1000]
        assert response.headers["Content-Range"] == "bytes 990-999/1000"

    @pytest.mark.asyncio
    async def test_unsatisfiable_range_releases_file(self, store, asset):
        proxy = DeliveryProxy(store)
        with pytest.raises(RangeNotSatisfiable):
            await proxy.stream(make_result(local_path=asset.path), "bytes=5000-")
        assert not asset.path.exists()

    @pytest.mark.asyncio
    async def test_missing_file(self, store):
        proxy = DeliveryProxy(store)
        with pytest.raises(AssetGoneError) as exc_info:
            await proxy.stream(make_result(local_path=store.root / "direct-missing.mp4"))

        body = exc_info.value.to_dict()
        assert body["code"] == "asset_gone"
        assert body["details"] == {}
        assert str(store.root) not in str(body)

    @pytest.mark.asyncio
    async def test_abandoned_stream_is_cleaned_up(self, store, asset):
        proxy = DeliveryProxy(store, chunk_size=100)
        response = await proxy.stream(make_result(local_path=asset.path))

        received = 0
        async for chunk in response:
            received += len(chunk)
            if received >= 500:
                break

        await response.aclose()
        assert response.closed
        assert not asset.path.exists()

    @pytest.mark.asyncio
    async def test_iterator_close_runs_cleanup(self, store, asset):
        proxy = DeliveryProxy(store, chunk_size=100)
        response = await proxy.stream(make_result(local_path=asset.path))

        iterator = response.__aiter__()
        await iterator.__anext__()
        await iterator.aclose()

        assert response.closed
        assert not asset.path.exists()

    @pytest.mark.asyncio
    async def test_close_without_reading(self, store, asset):
        proxy = DeliveryProxy(store)
        response = await proxy.stream(make_result(local_path=asset.path))
        await response.aclose()
        await response.aclose()
        assert not asset.path.exists()

    @pytest.mark.asyncio
    async def test_unicode_title_download_name(self, store, asset):
        proxy = DeliveryProxy(store)
        response = await proxy.stream(make_result(local_path=asset.path, title="Vidéo"), disposition="inline")
        await response.aclose()
        assert response.headers["Content-Disposition"].startswith("inline; ")


class TestRemoteDelivery:
    """Tests for relaying from an origin."""

    @pytest.mark.asyncio
    async def test_default_range_becomes_full_response(self, serve):
        app = origin_app()
        server = await serve(app)
        proxy = DeliveryProxy()

        response = await proxy.stream(make_result(media_url=str(server.make_url("/clip.mp4"))))
        body = await response.read()

        assert app["ranges"] == ["bytes=0-"]
        assert response.status_code == 200
        assert response.headers["Content-Length"] == str(len(PAYLOAD))
        assert "Content-Range" not in response.headers
        assert body == PAYLOAD
        assert response.closed

    @pytest.mark.asyncio
    async def test_caller_range_is_forwarded(self, serve):
        app = origin_app()
        server = await serve(app)
        proxy = DeliveryProxy()

        response = await proxy.stream(make_result(media_url=str(server.make_url("/clip.mp4"))), "bytes=10-19")
        body = await response.read()

        assert app["ranges"] == ["bytes=10-19"]
        assert response.status_code == 206
        assert response.headers["Content-Range"] == f"bytes 10-19/{len(PAYLOAD)}"
        assert body == PAYLOAD[10:20]

    @pytest.mark.asyncio
    async def test_encoded_body_is_relayed_untouched(self, serve):
        plain = b"\xff\xd8\xff" + b"\x00" * 100_000
        packed = gzip.compress(plain)
        seen = []

        async def photo(request):
            seen.append(request.headers.get("Accept-Encoding"))
            return web.Response(body=packed, headers={"Content-Type": "image/jpeg", "Content-Encoding": "gzip"})

        app = web.Application()
        app.router.add_get("/photo.jpg", photo)
        server = await serve(app)
        proxy = DeliveryProxy()

        response = await proxy.stream(make_result(media_url=str(server.make_url("/photo.jpg"))))
        body = await response.read()

        assert seen == ["identity"]
        assert response.status_code == 200
        assert response.headers["Content-Encoding"] == "gzip"
        assert response.headers["Content-Length"] == str(len(packed))
        assert len(body) == len(packed)
        assert gzip.decompress(body) == plain

    @pytest.mark.asyncio
    async def test_upstream_error(self, serve):
        server = await serve(origin_app())
        proxy = DeliveryProxy()

        with pytest.raises(UpstreamDeliveryError) as exc_info:
            await proxy.stream(make_result(media_url=str(server.make_url("/denied.mp4"))))

        assert exc_info.value.upstream_status == 403
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_unreachable_origin(self, unused_tcp_port):
        proxy = DeliveryProxy(connect_timeout=2)
        with pytest.raises(UpstreamDeliveryError) as exc_info:
            await proxy.stream(make_result(media_url=f"http://127.0.0.1:{unused_tcp_port}/clip.mp4"))
        assert exc_info.value.upstream_status is None


class TestDeliveryResponse:
    """Tests for DeliveryResponse."""

    @pytest.mark.asyncio
    async def test_sync_and_async_callbacks(self):
        calls = []

        async def body():
            yield b"a"
            yield b"b"

        async def async_close():
            calls.append("async")

        first = DeliveryResponse(200, {}, body(), lambda: calls.append("sync"))
        assert await first.read() == b"ab"

        second = DeliveryResponse(200, {}, body(), async_close)
        await second.aclose()

        assert calls == ["sync", "async"]
