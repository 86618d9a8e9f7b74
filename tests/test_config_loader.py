"""Tests for the unified config loader."""

from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from chaptertube.config import defaults
from chaptertube.config.loader import (
    CaptureSettings,
    ChaptertubeConfig,
    ConfigSource,
    _find_project_config,
    _get_root_dir,
    _get_user_config_path,
    _load_yaml_config,
    _resolve_config,
    clear_config_cache,
    get_capture_settings,
    get_config,
    get_root_dir,
)


def _write_project_config(root: Path, text: str) -> Path:
    config_dir = root / ".chaptertube"
    config_dir.mkdir(exist_ok=True)
    config_file = config_dir / "config.yaml"
    config_file.write_text(text)
    return config_file


class TestConfigSource:
    """Tests for ConfigSource enum."""

    def test_config_source_values(self):
        assert ConfigSource.ENV.value == "env"
        assert ConfigSource.PROJECT.value == "project"
        assert ConfigSource.USER.value == "user"
        assert ConfigSource.DEFAULT.value == "default"


class TestCaptureSettings:
    """Tests for CaptureSettings validation."""

    def test_defaults(self):
        settings = CaptureSettings()
        assert settings.width == defaults.THUMBNAIL_WIDTH == 320
        assert settings.height == defaults.THUMBNAIL_HEIGHT == 180
        assert settings.capture_timeout == 10.0
        assert settings.url_capture_timeout == 15.0
        assert settings.navigation_seek_timeout == 0.5
        assert settings.seek_grace_period == 1.0
        assert settings.capture_pacing == 0.3
        assert settings.url_capture_pacing == 0.2

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValidationError):
            CaptureSettings(width=0)

    def test_rejects_zero_timeout(self):
        with pytest.raises(ValidationError):
            CaptureSettings(capture_timeout=0)

    def test_coerces_strings(self):
        settings = CaptureSettings(width="640", capture_timeout="2.5")
        assert settings.width == 640
        assert settings.capture_timeout == 2.5

    def test_ignores_unknown_keys(self):
        settings = CaptureSettings(width=100, bogus=True)
        assert settings.width == 100

    def test_is_frozen(self):
        settings = CaptureSettings()
        with pytest.raises(ValidationError):
            settings.width = 1  # type: ignore


class TestChaptertubeConfig:
    """Tests for ChaptertubeConfig dataclass."""

    def test_config_repr(self):
        config = ChaptertubeConfig(
            root_dir=Path("/tmp/root"),
            capture=CaptureSettings(),
            source=ConfigSource.USER,
        )
        repr_str = repr(config)
        assert "root_dir=" in repr_str
        assert "source='user'" in repr_str

    def test_config_is_frozen(self):
        config = ChaptertubeConfig(
            root_dir=Path("/tmp/root"),
            capture=CaptureSettings(),
            source=ConfigSource.DEFAULT,
        )
        with pytest.raises(AttributeError):
            config.root_dir = Path("/other")  # type: ignore


class TestLoadYamlConfig:
    """Tests for _load_yaml_config."""

    def test_load_nonexistent_file(self, tmp_path):
        assert _load_yaml_config(tmp_path / "nonexistent.yaml") is None

    def test_load_valid_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("capture:\n  width: 640\n")
        assert _load_yaml_config(config_file) == {"capture": {"width": 640}}

    def test_load_empty_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")
        assert _load_yaml_config(config_file) == {}

    def test_load_invalid_yaml_type(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- item1\n- item2\n")
        assert _load_yaml_config(config_file) is None

    def test_load_malformed_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("capture: [unclosed\n")
        assert _load_yaml_config(config_file) is None


class TestFindProjectConfig:
    """Tests for _find_project_config."""

    def test_finds_config_in_cwd(self, tmp_path, monkeypatch):
        config_file = _write_project_config(tmp_path, "capture:\n  width: 1\n")
        monkeypatch.chdir(tmp_path)
        assert _find_project_config() == config_file

    def test_finds_config_in_parent(self, tmp_path, monkeypatch):
        config_file = _write_project_config(tmp_path, "capture:\n  width: 1\n")
        subdir = tmp_path / "src" / "module"
        subdir.mkdir(parents=True)
        monkeypatch.chdir(subdir)
        assert _find_project_config() == config_file

    def test_no_config_found(self, tmp_path, monkeypatch):
        subdir = tmp_path / "project"
        subdir.mkdir()
        monkeypatch.chdir(subdir)
        assert _find_project_config() is None


class TestRootDir:
    """Tests for root directory resolution."""

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CHAPTERTUBE_ROOT", str(tmp_path / "custom"))
        assert _get_root_dir() == (tmp_path / "custom").resolve()

    def test_user_config_lives_under_root(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CHAPTERTUBE_ROOT", str(tmp_path / "custom"))
        assert _get_user_config_path() == (tmp_path / "custom").resolve() / "config.yaml"

    def test_get_root_dir_creates_directory(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CHAPTERTUBE_ROOT", str(tmp_path / "made"))
        clear_config_cache()
        root = get_root_dir()
        assert root.is_dir()


class TestResolveConfig:
    """Tests for _resolve_config priority."""

    def test_default_fallback(self):
        result = _resolve_config()
        assert result.source == ConfigSource.DEFAULT
        assert result.capture == CaptureSettings()
        assert result.fallback_thumbnail_template is None

    def test_user_config(self, tmp_path):
        user_config = tmp_path / "user.yaml"
        user_config.write_text("capture:\n  width: 480\n  capture_pacing: 0.1\n")

        with patch("chaptertube.config.loader._get_user_config_path") as mock_user:
            mock_user.return_value = user_config
            result = _resolve_config()

        assert result.capture.width == 480
        assert result.capture.capture_pacing == 0.1
        assert result.source == ConfigSource.USER

    def test_project_overrides_user_field_by_field(self, tmp_path):
        user_config = tmp_path / "user.yaml"
        user_config.write_text("capture:\n  width: 480\n  height: 270\n")
        _write_project_config(tmp_path, "capture:\n  width: 640\n")

        with patch("chaptertube.config.loader._get_user_config_path") as mock_user:
            mock_user.return_value = user_config
            result = _resolve_config()

        assert result.capture.width == 640
        assert result.capture.height == 270
        assert result.source == ConfigSource.PROJECT

    def test_env_takes_priority(self, tmp_path, monkeypatch):
        _write_project_config(tmp_path, "capture:\n  capture_timeout: 3\n")
        monkeypatch.setenv("CHAPTERTUBE_CAPTURE_TIMEOUT", "7.5")

        result = _resolve_config()

        assert result.capture.capture_timeout == 7.5
        assert result.source == ConfigSource.ENV

    def test_fallback_template_from_yaml(self, tmp_path):
        _write_project_config(
            tmp_path,
            "fallback_thumbnail_template: https://img.example.com/{media_id}.jpg\n",
        )
        result = _resolve_config()
        assert result.fallback_thumbnail_template == "https://img.example.com/{media_id}.jpg"

    def test_fallback_template_from_env(self, monkeypatch):
        monkeypatch.setenv(
            "CHAPTERTUBE_FALLBACK_THUMBNAIL_TEMPLATE", "https://cdn/{media_id}/0.jpg"
        )
        result = _resolve_config()
        assert result.fallback_thumbnail_template == "https://cdn/{media_id}/0.jpg"
        assert result.source == ConfigSource.ENV

    def test_invalid_values_fall_back_to_defaults(self, tmp_path):
        _write_project_config(tmp_path, "capture:\n  width: -5\n")
        result = _resolve_config()
        assert result.capture == CaptureSettings()


class TestGetConfig:
    """Tests for get_config caching."""

    def test_returns_config(self):
        config = get_config()
        assert isinstance(config, ChaptertubeConfig)
        assert isinstance(config.capture, CaptureSettings)

    def test_caches_result(self):
        with patch("chaptertube.config.loader._resolve_config") as mock_resolve:
            mock_resolve.return_value = ChaptertubeConfig(
                root_dir=Path("/cached"),
                capture=CaptureSettings(),
                source=ConfigSource.DEFAULT,
            )
            config1 = get_config()
            config2 = get_config()

        assert config1 is config2
        mock_resolve.assert_called_once()

    def test_clear_cache_re_resolves(self, monkeypatch):
        assert get_capture_settings().width == 320
        monkeypatch.setenv("CHAPTERTUBE_WIDTH", "100")
        assert get_capture_settings().width == 320

        clear_config_cache()
        assert get_capture_settings().width == 100
