"""Configuration loading for repoatlas (.repoatlas.yml)."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".repoatlas.yml"
CACHE_FILENAME = "cache.json"

DEFAULT_CACHE_DIR = ".repoatlas/cache"
DEFAULT_CACHE_TTL = timedelta(hours=168)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)\s*(ms|s|m|h|d|w)", re.IGNORECASE)
_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class AnalysisConfig:
    """Scanner and extractor settings."""

    exclude_patterns: List[str] = field(default_factory=list)
    extract_endpoints: bool = True


@dataclass
class CacheConfig:
    """Component cache settings."""

    enabled: bool = True
    dir: str = DEFAULT_CACHE_DIR
    ttl: timedelta = DEFAULT_CACHE_TTL


@dataclass
class AtlasConfig:
    """Represents the settings defined in .repoatlas.yml."""

    root: Path
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)

    @property
    def cache_path(self) -> Path:
        cache_dir = Path(self.cache.dir).expanduser()
        if not cache_dir.is_absolute():
            cache_dir = self.root / cache_dir
        return cache_dir / CACHE_FILENAME


def load_config(
    config_path: Path, environ: Optional[Mapping[str, str]] = None
) -> AtlasConfig:
    """Load configuration from disk and apply environment overrides.

    ``config_path`` may point at the repository root or at the config file
    itself. Environment overrides are read from ``environ`` (``os.environ``
    when omitted).
    """
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()
    config = AtlasConfig(root=root)

    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

        analysis_data = _as_dict(data.get("analysis"))
        if analysis_data:
            config.analysis.exclude_patterns = _as_str_list(
                analysis_data.get("exclude_patterns")
            )
            extract = _as_bool(analysis_data.get("extract_endpoints"))
            if extract is not None:
                config.analysis.extract_endpoints = extract

        cache_data = _as_dict(data.get("cache"))
        if cache_data:
            _apply_cache_settings(config.cache, cache_data)

    _apply_env_overrides(config.cache, os.environ if environ is None else environ)
    return config


def parse_duration(value: Any) -> timedelta:
    """Parse integer seconds or strings such as ``"30m"``, ``"168h"``, ``"1h30m"``."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Invalid duration: {value!r}")

    text = value.strip()
    if re.fullmatch(r"\d+(?:\.\d+)?", text):
        return timedelta(seconds=float(text))

    total = timedelta()
    position = 0
    for match in _DURATION_PART.finditer(text):
        if text[position:match.start()].strip():
            raise ConfigError(f"Invalid duration: {value!r}")
        amount, unit = match.groups()
        total += _DURATION_UNITS[unit.lower()] * float(amount)
        position = match.end()
    if position == 0 or text[position:].strip():
        raise ConfigError(f"Invalid duration: {value!r}")
    return total


def _apply_cache_settings(cache: CacheConfig, data: Dict[str, Any]) -> None:
    enabled = _as_bool(data.get("enabled"))
    if enabled is not None:
        cache.enabled = enabled
    cache_dir = _as_str(data.get("dir"))
    if cache_dir:
        cache.dir = cache_dir
    if data.get("ttl") is not None:
        cache.ttl = parse_duration(data["ttl"])


def _apply_env_overrides(cache: CacheConfig, environ: Mapping[str, str]) -> None:
    enabled = environ.get("REPOATLAS_CACHE_ENABLED")
    if enabled:
        parsed = _as_bool(enabled)
        if parsed is None:
            raise ConfigError(f"REPOATLAS_CACHE_ENABLED must be a boolean, got {enabled!r}")
        cache.enabled = parsed
    ttl = environ.get("REPOATLAS_CACHE_TTL")
    if ttl:
        cache.ttl = parse_duration(ttl)
    cache_dir = environ.get("REPOATLAS_CACHE_DIR")
    if cache_dir:
        cache.dir = cache_dir


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "on", "1"}:
            return True
        if lowered in {"false", "no", "off", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "AnalysisConfig",
    "AtlasConfig",
    "CacheConfig",
    "ConfigError",
    "load_config",
    "parse_duration",
]
