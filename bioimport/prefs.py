"""Persisted import defaults."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from bioimport.models import ImportOptions

logger = logging.getLogger(__name__)

PREFS_ENV = "BIOIMPORT_PREFS"


def get_prefs_path(custom_path=None) -> Path:
    """Get the path to the preferences file."""
    if custom_path:
        return Path(custom_path)
    env_path = os.environ.get(PREFS_ENV)
    if env_path:
        return Path(env_path)
    return Path(os.path.expanduser("~")) / ".bioimport" / "prefs.json"


class JsonPreferences:
    """Key/value preferences stored as a flat JSON object.

    Values are loaded on construction and only written by :meth:`save`.
    A missing or unreadable file yields the defaults of :class:`ImportOptions`.
    """

    def __init__(self, path=None):
        self.path = get_prefs_path(path)
        self.values: Dict[str, Any] = ImportOptions().to_preferences()
        self.load()

    def load(self) -> None:
        if not self.path.exists():
            logger.debug(f"Preferences file not found at {self.path}, using defaults")
            return
        try:
            with open(self.path, "r") as f:
                loaded = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading preferences: {e}")
            logger.info("Using default preferences")
            return
        if not isinstance(loaded, dict):
            logger.error(f"Ignoring preferences in {self.path}: not a JSON object")
            return
        self.values.update(loaded)
        logger.debug(f"Preferences loaded from {self.path}")

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self.values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self.values, f, indent=4, sort_keys=True)
        logger.debug(f"Preferences saved to {self.path}")


class MemoryPreferences:
    """Preferences that live only as long as the object."""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self.values: Dict[str, Any] = dict(values or {})
        self.saved = 0

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self.values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    def save(self) -> None:
        self.saved += 1
