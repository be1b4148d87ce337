"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.config.loader import load_config
from src.config.settings import Settings
from src.utils.errors import ConfigurationError


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettings:
    def test_defaults(self) -> None:
        s = _settings()
        assert s.cache_namespace == "ubiqitum"
        assert s.default_consistency_window_days == 180
        assert s.scoring_timeout_seconds == 25.0
        assert s.coalesce_refreshes is False

    def test_env_override(self, monkeypatch) -> None:
        monkeypatch.setenv("DEFAULT_CONSISTENCY_WINDOW_DAYS", "30")
        monkeypatch.setenv("COALESCE_REFRESHES", "true")
        s = _settings()
        assert s.default_consistency_window_days == 30
        assert s.coalesce_refreshes is True

    def test_cors_origins(self) -> None:
        assert _settings(cors_allowed_origins="https://a.test, https://b.test,").get_cors_origins() == [
            "https://a.test",
            "https://b.test",
        ]
        assert _settings(cors_allowed_origins=" ").get_cors_origins() == ["*"]

    def test_backends(self) -> None:
        assert _settings().get_scoring_backend() == "openai"
        assert _settings(scoring_endpoint_url="https://x.test").get_scoring_backend() == "http"
        assert _settings().get_cache_backend() == "memory"
        assert _settings(redis_url="redis://localhost").get_cache_backend() == "redis"


class TestLoadConfig:
    def test_merges_yaml_and_settings(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "app:\n  version: '2.0.0'\n"
            "cache:\n  namespace: from-yaml\n"
            "freshness:\n  min_benchmark_fields: 4\n"
        )

        config = load_config(str(path), settings=_settings(cache_namespace="from-env"))

        assert config["app"]["version"] == "2.0.0"
        assert config["cache"]["namespace"] == "from-env"
        assert config["cache"]["backend"] == "memory"
        assert config["freshness"]["min_benchmark_fields"] == 4

    def test_missing_file_uses_settings_only(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=_settings())
        assert config["scoring"]["timeout_seconds"] == 25.0
        assert "freshness" not in config

    def test_repo_config_file(self) -> None:
        path = Path(__file__).resolve().parents[2] / "config" / "config.yaml"
        config = load_config(str(path), settings=_settings())
        assert config["freshness"]["min_benchmark_fields"] == 3
        assert config["scoring"]["max_tokens"] == 600

    def test_malformed_yaml_is_configuration_error(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("cache: [unclosed\n")

        with pytest.raises(ConfigurationError):
            load_config(str(path), settings=_settings())

    def test_non_mapping_yaml_is_configuration_error(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError):
            load_config(str(path), settings=_settings())
