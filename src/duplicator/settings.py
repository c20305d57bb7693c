"""Persisted duplication settings.

One JSON record holds the operator's settings map.  The resolved policy
is cached on the service object and dropped whenever the record changes.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from duplicator.policy import DuplicationPolicy, resolve_policy, sanitize_settings

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = ".duplicator-settings.json"
OPTION_NAME = "duplicator_settings"


class SettingsStore:
    """JSON-backed settings record.

    Pass ``output_dir=None`` to keep the settings in memory only.
    """

    def __init__(self, output_dir: Path | None = None) -> None:
        self._path = output_dir / SETTINGS_FILENAME if output_dir is not None else None
        self._raw: dict[str, Any] = self._load()
        self._policy: DuplicationPolicy | None = None

    def _load(self) -> dict[str, Any]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("Corrupt settings at %s, using defaults", self._path)
            return {}
        stored = data.get(OPTION_NAME, {}) if isinstance(data, dict) else {}
        if not isinstance(stored, dict):
            logger.warning("Unexpected settings shape at %s, using defaults", self._path)
            return {}
        return stored

    def _write(self) -> None:
        self._policy = None
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps({OPTION_NAME: self._raw}, indent=2),
            encoding="utf-8",
        )

    def load(self) -> dict[str, Any]:
        """Return a copy of the stored settings map."""
        return dict(self._raw)

    def get_policy(self) -> DuplicationPolicy:
        """Return the stored settings resolved over the defaults."""
        if self._policy is None:
            self._policy = resolve_policy(self._raw)
        return self._policy

    def save(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Sanitize and persist a full settings submission."""
        self._raw = sanitize_settings(raw)
        self._write()
        logger.info("Saved duplication settings")
        return dict(self._raw)

    def update(self, key: str, value: Any) -> dict[str, Any]:
        """Change one setting, keeping every other stored value."""
        current = self.get_policy().model_dump(mode="json")
        current[key] = value
        return self.save(current)

    def reset(self) -> None:
        """Delete the stored record; defaults apply afterwards."""
        self._raw = {}
        self._policy = None
        if self._path is not None and self._path.exists():
            self._path.unlink()
        logger.info("Removed duplication settings")
