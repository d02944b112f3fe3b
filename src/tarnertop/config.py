"""Runtime configuration for tarnertop."""

import os
from dataclasses import dataclass, field
from pathlib import Path

SETTINGS_FILE = "tarnertop_config.json"
LOG_FILE = "tarnertop.log"
EXPORT_FILE = "tarnertop_export.csv"


def _default_config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "tarnertop"


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, falling back on bad values."""
    raw = os.getenv(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class AppConfig:
    """Paths and timings used by the application."""

    config_dir: Path = field(default_factory=_default_config_dir)
    export_dir: Path = field(default_factory=lambda: Path.home() / "Downloads")
    refresh_interval: float = 1.0
    toast_duration: float = 3.0

    def __post_init__(self):
        self.config_dir = Path(self.config_dir)
        self.export_dir = Path(self.export_dir)

    @property
    def settings_path(self) -> Path:
        return self.config_dir / SETTINGS_FILE

    @property
    def log_path(self) -> Path:
        return self.config_dir / LOG_FILE

    @property
    def export_path(self) -> Path:
        return self.export_dir / EXPORT_FILE

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build a config, letting TARNERTOP_* variables override defaults."""
        config = cls()
        config_dir = os.getenv("TARNERTOP_CONFIG_DIR")
        if config_dir:
            config.config_dir = Path(config_dir).expanduser()
        export_dir = os.getenv("TARNERTOP_EXPORT_DIR")
        if export_dir:
            config.export_dir = Path(export_dir).expanduser()
        config.refresh_interval = _env_float("TARNERTOP_REFRESH_INTERVAL", config.refresh_interval)
        config.toast_duration = _env_float("TARNERTOP_TOAST_DURATION", config.toast_duration)
        return config
