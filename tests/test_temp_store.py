"""Tests for the temp asset store."""

import pytest

from media_relay.storage import TempAssetStore


class TestTempAssetStore:
    """Tests for TempAssetStore."""

    def test_creates_directory(self, tmp_path):
        root = tmp_path / "nested" / "tmp"
        TempAssetStore(root)
        assert root.is_dir()

    def test_new_asset_naming(self, store):
        asset = store.new_asset("tiktok", "mp4", "req-1")
        assert asset.path.parent == store.root
        assert asset.path.name.startswith("tiktok-")
        assert asset.path.suffix == ".mp4"
        assert asset.owner_request_id == "req-1"
        assert not asset.exists()

    def test_names_are_unique(self, store):
        paths = {store.new_asset("youtube", "mp4", "r").path for _ in range(50)}
        assert len(paths) == 50

    def test_finalize_finds_other_extension(self, store):
        asset = store.new_asset("youtube", "mp4", "r")
        produced = asset.path.with_suffix(".webm")
        produced.write_bytes(b"x" * 100)

        final = store.finalize(asset)
        assert final is not None
        assert final.path == produced

    def test_finalize_ignores_partial_files(self, store):
        asset = store.new_asset("youtube", "mp4", "r")
        asset.path.with_suffix(".part").write_bytes(b"x")
        assert store.finalize(asset) is None

    def test_release_removes_siblings_and_is_idempotent(self, store):
        asset = store.new_asset("youtube", "mp4", "r")
        asset.path.write_bytes(b"data")
        asset.path.with_suffix(".part").write_bytes(b"partial")

        store.release(asset)
        store.release(asset)

        assert list(store.root.iterdir()) == []
        assert store.live_assets() == []

    def test_scoped_releases_on_error(self, store):
        with pytest.raises(RuntimeError):
            with store.scoped("vimeo", "mp4", "r") as asset:
                asset.path.write_bytes(b"data")
                raise RuntimeError("boom")
        assert not asset.path.exists()

    def test_scoped_keeps_file_on_success(self, store):
        with store.scoped("vimeo", "mp4", "r") as asset:
            asset.path.write_bytes(b"data")
        assert asset.path.exists()

    def test_release_path_untracked(self, store):
        path = store.root / "direct-abc.mp4"
        path.write_bytes(b"data")
        store.release_path(path)
        assert not path.exists()

    def test_release_path_outside_root(self, store, tmp_path):
        outside = tmp_path / "keep.mp4"
        outside.write_bytes(b"data")
        with pytest.raises(ValueError):
            store.release_path(outside)
        assert outside.exists()

    def test_close_releases_everything(self, store):
        for i in range(3):
            store.new_asset("reddit", "mp4", f"r{i}").path.write_bytes(b"x")
        store.close()
        assert list(store.root.iterdir()) == []
