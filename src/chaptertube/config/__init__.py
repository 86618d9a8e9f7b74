"""
Configuration for chaptertube.

Contains timing defaults and the layered YAML/env config loader.
"""

from chaptertube.config.loader import (
    CaptureSettings,
    ChaptertubeConfig,
    ConfigSource,
    clear_config_cache,
    get_capture_settings,
    get_config,
    get_root_dir,
)

__all__ = [
    "CaptureSettings",
    "ChaptertubeConfig",
    "ConfigSource",
    "clear_config_cache",
    "get_capture_settings",
    "get_config",
    "get_root_dir",
]
