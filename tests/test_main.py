"""Tests for the CLI output helpers and formatting utilities."""

import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from media_relay import main as cli
from media_relay.config import RelayConfig
from media_relay.platforms import MediaClass, Platform
from media_relay.resolver import MediaResult
from media_relay.utils import human_readable_size, sanitize_filename, setup_logging
from media_relay.validator import Verdict


@pytest.fixture
def recorded(monkeypatch):
    console = Console(record=True, width=200)
    monkeypatch.setattr(cli, "console", console)
    return console


def make_result(**overrides) -> MediaResult:
    data = dict(
        title="Sunset over the bay",
        media_url="https://cdn.example.com/photo.jpg",
        thumbnail_url="https://cdn.example.com/photo.jpg",
        media_class=MediaClass.IMAGE,
        source_platform=Platform.FLICKR,
        source_url="https://www.flickr.com/photos/someone/1/",
        strategy="scrape",
        verdict=Verdict.UNKNOWN,
        size_bytes=2048,
    )
    data.update(overrides)
    return MediaResult(**data)


class TestShowResult:
    """Tests for the resolved media table."""

    def test_fields(self, recorded):
        cli.show_result(make_result(notices=[{"code": "validation_unknown", "url": None, "reason": "HEAD blocked"}]))

        text = recorded.export_text()
        assert "Sunset over the bay" in text
        assert "flickr" in text
        assert "2.00 KB" in text
        assert "HEAD blocked" in text
        assert "Substituted" not in text

    def test_buffered_and_substituted(self, recorded):
        cli.show_result(make_result(
            media_url=None,
            media_class=MediaClass.AUDIO,
            source_platform=Platform.SPOTIFY,
            substituted=True,
            substitution_query="Artist - Song audio",
            substitution_source="youtube",
        ))

        text = recorded.export_text()
        assert "(buffered locally)" in text
        assert "Artist - Song audio -> youtube" in text


class TestShowAttempts:
    """Tests for the failed attempts table."""

    def test_rows(self, recorded):
        cli.show_attempts([
            {"index": 0, "strategy": "native", "failure_kind": "NotFound", "message": "gone", "elapsed_ms": 12.3},
            {"index": 1, "strategy": "scrape", "failure_kind": "Invalid", "message": None, "elapsed_ms": 40.0},
        ])

        text = recorded.export_text()
        assert "native" in text and "NotFound" in text and "12 ms" in text
        assert "Invalid" in text and "40 ms" in text


class TestResolveUrl:
    """Tests for the one-shot resolve command."""

    @pytest.mark.asyncio
    async def test_unsupported_url(self, recorded, tmp_path):
        config = RelayConfig.model_validate({"storage": {"temp_dir": str(tmp_path / "relay")}})

        await cli.resolve_url("https://example.com/page", config)

        text = recorded.export_text()
        assert "Unsupported platform" in text
        assert "unsupported_platform" in text
        assert list((tmp_path / "relay").iterdir()) == []


class TestFormatting:
    """Tests for size and filename helpers."""

    @pytest.mark.parametrize("size, expected", [
        (None, "Unknown"),
        (512, "512.00 B"),
        (1536, "1.50 KB"),
        (5 * 1024 * 1024, "5.00 MB"),
    ])
    def test_human_readable_size(self, size, expected):
        assert human_readable_size(size) == expected

    def test_sanitize_filename(self):
        assert sanitize_filename('a/b:c*d?"e"') == "abcde"
        assert sanitize_filename("  spaced \t out.  ") == "spaced out"
        assert sanitize_filename("") == "media"
        assert sanitize_filename("...") == "media"
        assert len(sanitize_filename("x" * 300)) == 100


class TestSetupLogging:
    """Tests for the rich logging setup."""

    def test_installs_rich_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("debug")
            assert root.level == logging.DEBUG
            assert any(isinstance(h, RichHandler) for h in root.handlers)
            assert logging.getLogger("urllib3").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
