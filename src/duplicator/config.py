"""Runtime configuration loaded from .duplicator.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

from duplicator.tokens import DEFAULT_LIFETIME_SECONDS

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".duplicator.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
    Path.home() / ".config" / "duplicator",
]


class StoreSectionConfig(BaseModel):
    """[store] section."""

    directory: str = "./.duplicator"


class TokensSectionConfig(BaseModel):
    """[tokens] section."""

    secret: str = ""
    lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS


class LoggingSectionConfig(BaseModel):
    """[logging] section."""

    level: str = "WARNING"


class DuplicatorConfig(BaseModel):
    """Top-level configuration model."""

    store: StoreSectionConfig = Field(default_factory=StoreSectionConfig)
    tokens: TokensSectionConfig = Field(default_factory=TokensSectionConfig)
    logging: LoggingSectionConfig = Field(default_factory=LoggingSectionConfig)

    @property
    def store_dir(self) -> Path:
        return Path(self.store.directory).expanduser()


def load_config(path: str | Path | None = None) -> DuplicatorConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .duplicator.toml in the search paths
    3. ~/.config/duplicator/config.toml

    Then overlay environment variables.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        global_config = Path.home() / ".config" / "duplicator" / "config.toml"
        if not data and global_config.exists():
            data = _load_toml(global_config)
            logger.info("Loaded config from %s", global_config)

    config = DuplicatorConfig.model_validate(data) if data else DuplicatorConfig()
    return _apply_env_vars(config)


def merge_cli_overrides(config: DuplicatorConfig, **cli_kwargs: object) -> DuplicatorConfig:
    """Overlay explicitly-set CLI flags (non-None values) onto the config."""
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "store_dir": ("store", "directory"),
        "token_secret": ("tokens", "secret"),
        "token_lifetime": ("tokens", "lifetime_seconds"),
        "log_level": ("logging", "level"),
    }

    for key, value in cli_kwargs.items():
        if value is None or key not in mapping:
            continue
        section, field = mapping[key]
        data[section][field] = value

    return DuplicatorConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: DuplicatorConfig) -> DuplicatorConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "DUPLICATOR_STORE_DIR": ("store", "directory"),
        "DUPLICATOR_TOKEN_SECRET": ("tokens", "secret"),
        "DUPLICATOR_LOG_LEVEL": ("logging", "level"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    lifetime_raw = os.environ.get("DUPLICATOR_TOKEN_LIFETIME")
    if lifetime_raw is not None:
        try:
            data["tokens"]["lifetime_seconds"] = int(lifetime_raw)
        except ValueError:
            logger.warning("Ignoring non-integer DUPLICATOR_TOKEN_LIFETIME=%r", lifetime_raw)

    return DuplicatorConfig.model_validate(data)
