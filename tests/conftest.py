"""Shared fixtures."""

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from media_relay.extractor import ExtractOptions
from media_relay.platforms import Platform, profile_for, request_headers
from media_relay.storage import TempAssetStore


# Minimal but real container headers
MP4_HEADER = b"\x00\x00\x00\x20ftypisom\x00\x00\x02\x00isomiso2avc1mp41"
JPEG_HEADER = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01"


def make_options(platform: Platform, url: str = "", materialize: bool = True) -> ExtractOptions:
    return ExtractOptions(
        profile=profile_for(platform),
        request_id="test-request",
        timeout=5.0,
        headers=request_headers(platform, url),
        materialize=materialize,
    )


@pytest.fixture
def store(tmp_path):
    temp_store = TempAssetStore(tmp_path / "relay-tmp")
    yield temp_store
    temp_store.close()


@pytest_asyncio.fixture
async def serve():
    """Start local aiohttp apps; all are closed at teardown."""
    servers = []

    async def start(app: web.Application) -> TestServer:
        server = TestServer(app)
        await server.start_server()
        servers.append(server)
        return server

    yield start

    for server in servers:
        await server.close()
