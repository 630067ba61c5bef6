"""Tests for repoatlas.config."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from repoatlas.config import (
    DEFAULT_CACHE_DIR,
    AtlasConfig,
    ConfigError,
    load_config,
    parse_duration,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path, environ={})

    assert isinstance(config, AtlasConfig)
    assert config.root == tmp_path.resolve()
    assert config.analysis.exclude_patterns == []
    assert config.analysis.extract_endpoints is True
    assert config.cache.enabled is True
    assert config.cache.dir == DEFAULT_CACHE_DIR
    assert config.cache.ttl == timedelta(hours=168)
    assert config.cache_path == tmp_path.resolve() / ".repoatlas" / "cache" / "cache.json"


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".repoatlas.yml"
    config_file.write_text(
        """
analysis:
  exclude_patterns:
    - "fixtures/**"
    - "*.generated.go"
  extract_endpoints: false
cache:
  enabled: true
  dir: "build-cache/atlas"
  ttl: "24h"
""",
        encoding="utf-8",
    )

    config = load_config(config_file, environ={})

    assert config.analysis.exclude_patterns == ["fixtures/**", "*.generated.go"]
    assert config.analysis.extract_endpoints is False
    assert config.cache.dir == "build-cache/atlas"
    assert config.cache.ttl == timedelta(hours=24)
    assert config.cache_path == tmp_path.resolve() / "build-cache" / "atlas" / "cache.json"


def test_environment_overrides_file_values(tmp_path: Path) -> None:
    (tmp_path / ".repoatlas.yml").write_text("cache:\n  enabled: true\n  ttl: 3600\n", encoding="utf-8")
    absolute_dir = tmp_path / "elsewhere"

    config = load_config(
        tmp_path,
        environ={
            "REPOATLAS_CACHE_ENABLED": "false",
            "REPOATLAS_CACHE_TTL": "30m",
            "REPOATLAS_CACHE_DIR": str(absolute_dir),
        },
    )

    assert config.cache.enabled is False
    assert config.cache.ttl == timedelta(minutes=30)
    assert config.cache_path == absolute_dir / "cache.json"


def test_environment_defaults_to_process_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REPOATLAS_CACHE_TTL", "2h")

    assert load_config(tmp_path).cache.ttl == timedelta(hours=2)


def test_invalid_env_boolean_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path, environ={"REPOATLAS_CACHE_ENABLED": "maybe"})


def test_invalid_yaml_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / ".repoatlas.yml").write_text("cache: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path, environ={})


def test_non_mapping_root_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / ".repoatlas.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path, environ={})


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / ".repoatlas.yml").write_text("\n", encoding="utf-8")

    config = load_config(tmp_path, environ={})

    assert config.cache.enabled is True


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("168h", timedelta(hours=168)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("2d", timedelta(days=2)),
        ("1w", timedelta(weeks=1)),
        ("500ms", timedelta(milliseconds=500)),
        ("90", timedelta(seconds=90)),
        (45, timedelta(seconds=45)),
        (timedelta(minutes=5), timedelta(minutes=5)),
    ],
)
def test_parse_duration(value: object, expected: timedelta) -> None:
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", ["", "soon", "10x", "h", "5h later", True, None])
def test_parse_duration_rejects_invalid_values(value: object) -> None:
    with pytest.raises(ConfigError):
        parse_duration(value)
