"""Application configuration loaded from a TOML file.

Lookup order: an explicit ``--config`` path, then
``$XDG_CONFIG_HOME/parley/config.toml``, then ``~/.config/parley/config.toml``.
A missing default file means defaults; everything else that goes wrong
raises ``ConfigError``.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import Field, ValidationError

from parley.ai.types import BackendSettings
from parley.errors import ConfigError

logger = logging.getLogger(__name__)


class AppConfig(BackendSettings):
    backend: str = "chatgpt"
    archive_file_name: str = "parley.archive.md"
    tick_interval: float = Field(default=0.25, gt=0)


def default_config_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "parley" / "config.toml"


def load_config(path: str | Path | None = None) -> AppConfig:
    """Read and validate the configuration file.

    With *path* ``None`` the default location is used and may be absent.
    """
    explicit = path is not None
    config_path = Path(path) if explicit else default_config_path()

    if not config_path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {config_path}")
        logger.debug("No config file at %s, using defaults", config_path)
        return AppConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from e

    try:
        config = AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {config_path}: {e}") from e
    logger.info("Loaded config from %s", config_path)
    return config


def apply_overrides(config: AppConfig, *, backend: str | None = None, model: str | None = None) -> AppConfig:
    """Return a copy of *config* with command-line overrides applied.

    The model override goes to the section of the selected backend.
    """
    updated = config.model_copy(deep=True)
    if backend:
        updated.backend = backend
    if model:
        section = getattr(updated, updated.backend, None)
        if section is None or not hasattr(section, "model"):
            raise ConfigError(f"Backend {updated.backend!r} has no model setting")
        section.model = model
    return updated
