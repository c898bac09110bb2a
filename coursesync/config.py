from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

import yaml

from coursesync.sources import DEFAULT_LEGACY_INDEX_URL, DEFAULT_LIVE_BASE_URL, DEFAULT_TIMEOUT

CONFIG_DIR = Path.home() / ".config" / "coursesync"
CONFIG_FILE = CONFIG_DIR / "config.yaml"


@dataclass
class Settings:
    use_live_api: bool = True
    live_base_url: str = DEFAULT_LIVE_BASE_URL
    legacy_index_url: str = DEFAULT_LEGACY_INDEX_URL
    storage_path: str = field(default_factory=lambda: str(CONFIG_DIR / "storage.json"))
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = "WARNING"


def load_config(path: str | Path | None = None) -> Settings:
    """Load saved settings. Return defaults if the file is missing or broken."""
    config_file = Path(path) if path is not None else CONFIG_FILE
    if not config_file.exists():
        return Settings()
    try:
        data = yaml.safe_load(config_file.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError):
        return Settings()
    if not isinstance(data, dict):
        return Settings()

    known = {f.name for f in fields(Settings)}
    values = {k: v for k, v in data.items() if k in known and v is not None}
    try:
        settings = Settings(**values)
        settings.use_live_api = bool(settings.use_live_api)
        settings.timeout = float(settings.timeout)
        settings.storage_path = str(Path(settings.storage_path).expanduser())
    except (TypeError, ValueError):
        return Settings()
    return settings


def save_config(settings: Settings, path: str | Path | None = None) -> None:
    """Save settings to the YAML config file."""
    config_file = Path(path) if path is not None else CONFIG_FILE
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(
        yaml.dump(asdict(settings), default_flow_style=False, allow_unicode=True),
        encoding="utf-8",
    )
