"""
Unified configuration loader with priority resolution.

Root directory (CHAPTERTUBE_ROOT):
- macOS/Linux: ~/.chaptertube
- Windows: %APPDATA%\\chaptertube
- Override: CHAPTERTUBE_ROOT environment variable

Capture settings priority (highest to lowest), merged field by field:
1. Environment variables (CHAPTERTUBE_CAPTURE_TIMEOUT, CHAPTERTUBE_WIDTH, ...)
2. Project config (.chaptertube/config.yaml)
3. User config ({root_dir}/config.yaml)
4. Defaults (config/defaults.py)

YAML structure:
    capture:
      width: 320
      height: 180
      capture_timeout: 10
      capture_pacing: 0.3
    fallback_thumbnail_template: https://img.example.com/{media_id}.jpg
"""

import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chaptertube.config import defaults

logger = logging.getLogger(__name__)

ENV_PREFIX = "CHAPTERTUBE_"


class ConfigSource(Enum):
    """Source of the configuration value."""

    ENV = "env"
    PROJECT = "project"
    USER = "user"
    DEFAULT = "default"


class CaptureSettings(BaseModel):
    """Timing and size settings for frame capture and navigation."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    width: int = Field(defaults.THUMBNAIL_WIDTH, gt=0)
    height: int = Field(defaults.THUMBNAIL_HEIGHT, gt=0)
    jpeg_quality: int = Field(defaults.JPEG_QUALITY, ge=1, le=95)
    chapter_count: int = Field(defaults.DEFAULT_CHAPTER_COUNT, ge=1)
    chapter_prefix: str = defaults.DEFAULT_CHAPTER_PREFIX

    capture_timeout: float = Field(defaults.CAPTURE_TIMEOUT, gt=0)
    url_capture_timeout: float = Field(defaults.URL_CAPTURE_TIMEOUT, gt=0)
    readiness_timeout: float = Field(defaults.READINESS_TIMEOUT, gt=0)
    metadata_timeout: float = Field(defaults.METADATA_TIMEOUT, gt=0)
    navigation_seek_timeout: float = Field(defaults.NAVIGATION_SEEK_TIMEOUT, gt=0)

    seek_grace_period: float = Field(defaults.SEEK_GRACE_PERIOD, ge=0)
    poll_interval: float = Field(defaults.READINESS_POLL_INTERVAL, gt=0)
    settle_delay: float = Field(defaults.FRAME_SETTLE_DELAY, ge=0)
    not_ready_retry_delay: float = Field(defaults.NOT_READY_RETRY_DELAY, ge=0)
    capture_pacing: float = Field(defaults.CAPTURE_PACING, ge=0)
    url_capture_pacing: float = Field(defaults.URL_CAPTURE_PACING, ge=0)


@dataclass(frozen=True)
class ChaptertubeConfig:
    """Resolved chaptertube configuration."""

    root_dir: Path
    capture: CaptureSettings
    source: ConfigSource
    fallback_thumbnail_template: str | None = None

    def __repr__(self) -> str:
        return (
            f"ChaptertubeConfig(root_dir={self.root_dir!r}, "
            f"source={self.source.value!r})"
        )


def _load_yaml_config(config_path: Path) -> dict[str, Any] | None:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML config file.

    Returns:
        Parsed config dict, or None if file doesn't exist or fails to parse.
    """
    if not config_path.exists():
        return None

    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        return None

    if config is None:
        return {}
    if not isinstance(config, dict):
        logger.warning(f"Config file {config_path} is not a valid YAML dict")
        return None
    return config


def _find_project_config() -> Path | None:
    """Find project-level config by walking up from cwd.

    Returns:
        Path to .chaptertube/config.yaml if found, None otherwise.
    """
    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        config_path = parent / ".chaptertube" / "config.yaml"
        if config_path.exists():
            return config_path
    return None


def _get_root_dir() -> Path:
    """Get the chaptertube root directory.

    Priority:
    1. CHAPTERTUBE_ROOT environment variable
    2. Platform-specific default
    """
    env_root = os.environ.get("CHAPTERTUBE_ROOT")
    if env_root:
        return Path(env_root).expanduser().resolve()

    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "chaptertube"
        return Path.home() / "AppData" / "Roaming" / "chaptertube"
    return Path.home() / ".chaptertube"


def _get_user_config_path() -> Path:
    """Get the user-level config path ({root_dir}/config.yaml)."""
    return _get_root_dir() / "config.yaml"


def _capture_env_overrides() -> dict[str, str]:
    """Collect CHAPTERTUBE_<FIELD> overrides for capture settings."""
    overrides = {}
    for name in CaptureSettings.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            overrides[name] = value
    return overrides


def _resolve_config() -> ChaptertubeConfig:
    """Resolve configuration from all sources in priority order.

    Layers are merged lowest-priority first so that later layers win.
    ``source`` records the highest-priority layer that contributed anything.

    Returns:
        Resolved ChaptertubeConfig.
    """
    root_dir = _get_root_dir()
    merged: dict[str, Any] = {}
    template: str | None = None
    source = ConfigSource.DEFAULT

    layers: list[tuple[ConfigSource, Path | None]] = [
        (ConfigSource.USER, _get_user_config_path()),
        (ConfigSource.PROJECT, _find_project_config()),
    ]
    for layer_source, path in layers:
        if path is None:
            continue
        data = _load_yaml_config(path)
        if not data:
            continue
        capture = data.get("capture") or {}
        if isinstance(capture, dict) and capture:
            merged.update(capture)
            source = layer_source
        if data.get("fallback_thumbnail_template"):
            template = str(data["fallback_thumbnail_template"])
            source = layer_source
        logger.info(f"Loaded {layer_source.value} config from {path}")

    env_overrides = _capture_env_overrides()
    if env_overrides:
        merged.update(env_overrides)
        source = ConfigSource.ENV
    env_template = os.environ.get(f"{ENV_PREFIX}FALLBACK_THUMBNAIL_TEMPLATE")
    if env_template:
        template = env_template
        source = ConfigSource.ENV

    try:
        capture_settings = CaptureSettings(**merged)
    except ValidationError as e:
        logger.warning(f"Invalid capture settings, using defaults: {e}")
        capture_settings = CaptureSettings()

    return ChaptertubeConfig(
        root_dir=root_dir,
        capture=capture_settings,
        source=source,
        fallback_thumbnail_template=template,
    )


@lru_cache(maxsize=1)
def get_config() -> ChaptertubeConfig:
    """Get resolved chaptertube configuration.

    Results are cached - configuration is resolved once per process.
    To force re-resolution (e.g., after env change), use clear_config_cache().
    """
    return _resolve_config()


def get_capture_settings() -> CaptureSettings:
    """Shortcut for ``get_config().capture``."""
    return get_config().capture


def get_root_dir(ensure_exists: bool = True) -> Path:
    """Get the resolved root directory.

    Args:
        ensure_exists: If True (default), create the directory if it doesn't exist.
    """
    root_dir = get_config().root_dir
    if ensure_exists:
        root_dir.mkdir(parents=True, exist_ok=True)
    return root_dir


def clear_config_cache() -> None:
    """Clear the cached configuration.

    Call this if environment variables or config files have changed
    and you need to re-resolve the configuration.
    """
    get_config.cache_clear()
