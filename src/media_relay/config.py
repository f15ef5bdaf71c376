"""Typed configuration loaded through Hydra."""

from pathlib import Path
from typing import Optional, Sequence

from hydra import compose, initialize_config_dir
from omegaconf import DictConfig, OmegaConf
from pydantic import BaseModel, Field


# conf/ lives at the repository root, next to src/
DEFAULT_CONFIG_DIR = Path(__file__).resolve().parents[2] / "conf"


class ServerSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(8000, ge=1, le=65535)


class StorageSettings(BaseModel):
    temp_dir: Path = Path("/tmp/media-relay")


class TimeoutSettings(BaseModel):
    extract: float = Field(45.0, gt=0, description="Seconds per strategy attempt")
    probe: float = Field(8.0, gt=0, description="Seconds per validation probe")
    delivery_connect: float = Field(15.0, gt=0)


class ValidatorSettings(BaseModel):
    min_video_bytes: int = Field(50 * 1024, ge=0)
    min_audio_bytes: int = Field(10 * 1024, ge=0)
    probe_bytes: int = Field(8192, gt=0)


class DeliverySettings(BaseModel):
    chunk_size: int = Field(64 * 1024, gt=0)


class ScrapeSettings(BaseModel):
    use_cloudscraper: bool = True
    random_user_agent: bool = True
    fallback_user_agents: list[str] = Field(default_factory=list)


class YtDlpSettings(BaseModel):
    cookies_from_browser: Optional[str] = None
    socket_timeout: int = 20


class RelayConfig(BaseModel):
    """All runtime settings. Defaults match conf/config.yaml."""

    server: ServerSettings = Field(default_factory=ServerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    validator: ValidatorSettings = Field(default_factory=ValidatorSettings)
    delivery: DeliverySettings = Field(default_factory=DeliverySettings)
    scrape: ScrapeSettings = Field(default_factory=ScrapeSettings)
    ytdlp: YtDlpSettings = Field(default_factory=YtDlpSettings)

    log_level: str = "INFO"

    @classmethod
    def from_hydra(cls, cfg: DictConfig) -> "RelayConfig":
        """Validate a composed Hydra config. Unknown top-level keys are ignored."""
        data = OmegaConf.to_container(cfg, resolve=True)
        known = {k: v for k, v in data.items() if k in cls.model_fields and v is not None}
        return cls.model_validate(known)


def load_config(overrides: Sequence[str] = (), config_dir: Optional[Path] = None) -> RelayConfig:
    """
    Compose the Hydra config and validate it.

    Args:
        overrides: Hydra override strings, e.g. ``["timeouts.extract=10"]``
        config_dir: Directory holding config.yaml (defaults to conf/)

    Returns:
        Validated RelayConfig
    """
    config_dir = Path(config_dir or DEFAULT_CONFIG_DIR).resolve()
    with initialize_config_dir(version_base=None, config_dir=str(config_dir)):
        cfg = compose(config_name="config", overrides=list(overrides))
    return RelayConfig.from_hydra(cfg)
