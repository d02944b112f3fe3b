"""Persisted user settings."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from tarnertop.models import Theme

logger = logging.getLogger(__name__)


@dataclass
class AppSettings:
    """Settings that survive restarts."""

    theme: Theme = Theme.DARK

    def to_dict(self) -> dict:
        return {"theme": self.theme.value}

    @classmethod
    def from_dict(cls, data: dict) -> "AppSettings":
        return cls(theme=Theme(data["theme"]))


class SettingsStore:
    """Loads and saves AppSettings as a small JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> AppSettings:
        """
        Load settings from disk.

        A missing file yields the defaults silently. An unreadable or
        malformed file yields the defaults and a logged warning.
        """
        try:
            contents = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return AppSettings()
        except OSError as e:
            logger.warning("Error reading config file: %s", e)
            return AppSettings()

        try:
            data = json.loads(contents)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            return AppSettings.from_dict(data)
        except (ValueError, KeyError) as e:
            logger.warning("Error parsing config file: %s", e)
            return AppSettings()

    def save(self, settings: AppSettings) -> bool:
        """Write settings to disk. Failures are logged, not raised."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(settings.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            logger.error("Error saving config file: %s", e)
            return False
        return True
