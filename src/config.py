"""Unified configuration loaded from .ghostdraft.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

from ghostdraft.ghost.config import GhostConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".ghostdraft.toml"
CONFIG_SEARCH_PATH = Path(".")
GLOBAL_CONFIG = Path.home() / ".config" / "ghostdraft" / "config.toml"


class GhostSectionConfig(BaseModel):
    """[ghost] section."""

    url: str = ""
    admin_api_key: str = ""
    api_version: str = "v5.0"
    timeout: int = 30


class PublishSectionConfig(BaseModel):
    """[publish] section."""

    repo_root: str = "."
    extension: str = ".md"
    feature_image_field: str = "feature_image"
    dedupe_uploads: bool = False


class LoggingSectionConfig(BaseModel):
    """[logging] section."""

    level: str = "INFO"


class GhostdraftConfig(BaseModel):
    """Top-level configuration model."""

    ghost: GhostSectionConfig = Field(default_factory=GhostSectionConfig)
    publish: PublishSectionConfig = Field(default_factory=PublishSectionConfig)
    logging: LoggingSectionConfig = Field(default_factory=LoggingSectionConfig)

    def to_ghost_config(self) -> GhostConfig:
        """Convert to GhostConfig for the Admin API client."""
        return GhostConfig(
            url=self.ghost.url,
            admin_api_key=self.ghost.admin_api_key,
            api_version=self.ghost.api_version,
            timeout=self.ghost.timeout,
        )


def load_config(path: str | Path | None = None) -> GhostdraftConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .ghostdraft.toml in CWD
    3. ~/.config/ghostdraft/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged GhostdraftConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        candidate = CONFIG_SEARCH_PATH / CONFIG_FILENAME
        if candidate.exists():
            data = _load_toml(candidate)
            logger.info("Loaded config from %s", candidate)
        if not data and GLOBAL_CONFIG.exists():
            data = _load_toml(GLOBAL_CONFIG)
            logger.info("Loaded config from %s", GLOBAL_CONFIG)

    config = GhostdraftConfig.model_validate(data) if data else GhostdraftConfig()

    return _apply_env_vars(config)


def merge_cli_overrides(config: GhostdraftConfig, **cli_kwargs: object) -> GhostdraftConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "ghost_url": ("ghost", "url"),
        "ghost_key": ("ghost", "admin_api_key"),
        "ghost_version": ("ghost", "api_version"),
        "repo_root": ("publish", "repo_root"),
        "extension": ("publish", "extension"),
        "feature_image_field": ("publish", "feature_image_field"),
        "dedupe": ("publish", "dedupe_uploads"),
        "log_level": ("logging", "level"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return GhostdraftConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: GhostdraftConfig) -> GhostdraftConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    # Later entries win, so GitHub Action inputs override plain GHOST_* vars.
    env_mapping: list[tuple[str, tuple[str, str]]] = [
        ("GHOST_URL", ("ghost", "url")),
        ("GHOST_ADMIN_API_KEY", ("ghost", "admin_api_key")),
        ("GHOST_API_VERSION", ("ghost", "api_version")),
        ("INPUT_GHOST_API_URL", ("ghost", "url")),
        ("INPUT_GHOST_ADMIN_API_KEY", ("ghost", "admin_api_key")),
        ("GHOSTDRAFT_REPO_ROOT", ("publish", "repo_root")),
        ("GHOSTDRAFT_LOG_LEVEL", ("logging", "level")),
    ]

    for env_var, (section, field) in env_mapping:
        value = os.environ.get(env_var)
        if value:
            data[section][field] = value

    dedupe_raw = os.environ.get("GHOSTDRAFT_DEDUPE_UPLOADS")
    if dedupe_raw is not None:
        data["publish"]["dedupe_uploads"] = dedupe_raw.lower() in ("true", "1", "yes")

    return GhostdraftConfig.model_validate(data)
