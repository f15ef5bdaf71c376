"""Scoped directory for transient media files."""

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TempAsset:
    """A file materialized for a single request."""

    path: Path
    owner_request_id: str
    platform: str
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def stem(self) -> str:
        return self.path.stem

    def exists(self) -> bool:
        return self.path.is_file()

    def size(self) -> int:
        return self.path.stat().st_size


class TempAssetStore:
    """Owns the temp directory and the lifecycle of files inside it.

    Constructed once per process and injected into the extractors that may
    materialize files and into the delivery proxy that serves them. File
    names are ``{platform}-{token}.{ext}`` with a uuid4 token, so concurrent
    requests never collide. Orphans left by a crashed process are not swept
    here.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._live: dict[Path, TempAsset] = {}

    def new_asset(self, platform: str, extension: str, owner_request_id: str) -> TempAsset:
        """
        Reserve a unique path for a file that is about to be written.

        Args:
            platform: Platform tag used as the file name prefix
            extension: Expected file extension (without dot)
            owner_request_id: Token of the request that will serve the file

        Returns:
            TempAsset whose file does not exist yet
        """
        token = uuid.uuid4().hex
        ext = (extension or "bin").lstrip(".").lower()
        path = self.root / f"{self._safe_prefix(platform)}-{token}.{ext}"
        asset = TempAsset(path=path, owner_request_id=owner_request_id, platform=str(platform))
        self._live[path] = asset
        return asset

    def finalize(self, asset: TempAsset) -> Optional[TempAsset]:
        """
        Locate the file a tool actually produced for a reserved asset.

        Download tools may pick their own extension, so any complete file
        sharing the reserved stem is accepted.

        Returns:
            TempAsset pointing at the real file, or None if nothing was written
        """
        if asset.exists():
            return asset

        for candidate in sorted(self.root.glob(f"{asset.stem}.*")):
            if candidate.suffix in (".part", ".ytdl", ".temp") or not candidate.is_file():
                continue
            self._live.pop(asset.path, None)
            final = replace(asset, path=candidate)
            self._live[candidate] = final
            return final
        return None

    def release(self, asset: Optional[TempAsset]) -> None:
        """Delete an asset's file and any partial siblings. Idempotent."""
        if asset is None:
            return
        self._live.pop(asset.path, None)
        targets = {asset.path, *self.root.glob(f"{asset.stem}.*")}
        for target in targets:
            try:
                target.unlink()
                logger.debug("Removed temp file %s", target.name)
            except FileNotFoundError:
                pass

    def release_path(self, path: Path) -> None:
        """Release whatever asset lives at ``path``, tracked or not."""
        path = Path(path)
        asset = self._live.get(path)
        if asset is None:
            if path.parent.resolve() != self.root.resolve():
                raise ValueError(f"{path} is outside the temp directory")
            asset = TempAsset(path=path, owner_request_id="", platform="")
        self.release(asset)

    @contextmanager
    def scoped(self, platform: str, extension: str, owner_request_id: str) -> Iterator[TempAsset]:
        """Reserve an asset and release it if the block raises."""
        asset = self.new_asset(platform, extension, owner_request_id)
        try:
            yield asset
        except BaseException:
            self.release(asset)
            raise

    def live_assets(self) -> list[TempAsset]:
        """Assets reserved by this store and not yet released."""
        return list(self._live.values())

    def close(self) -> None:
        """Release every asset this store still tracks."""
        for asset in list(self._live.values()):
            self.release(asset)

    @staticmethod
    def _safe_prefix(platform: str) -> str:
        value = getattr(platform, "value", platform)
        return "".join(c for c in str(value) if c.isalnum() or c in "_-") or "media"
