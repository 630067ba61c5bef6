"""Tests for the component cache store."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from repoatlas.stores import CACHE_VERSION, ComponentCache, compute_digest


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _cache(tmp_path: Path, clock: _Clock | None = None, **kwargs) -> ComponentCache:
    return ComponentCache(
        tmp_path / ".repoatlas" / "cache" / "cache.json",
        root=tmp_path,
        clock=clock or _Clock(),
        **kwargs,
    )


def test_unknown_component_is_stale(tmp_path: Path) -> None:
    assert _cache(tmp_path).is_stale("api", []) is True


def test_component_fresh_until_content_changes(tmp_path: Path) -> None:
    _write(tmp_path / "api" / "main.go", "package main\n")
    files = ["api/main.go"]
    cache = _cache(tmp_path)

    cache.update("api", files)
    assert cache.is_stale("api", files) is False

    _write(tmp_path / "api" / "main.go", "package main\n\nfunc main() {}\n")
    assert cache.is_stale("api", files) is True


def test_adding_or_removing_files_makes_component_stale(tmp_path: Path) -> None:
    _write(tmp_path / "lib" / "a.py", "a = 1\n")
    _write(tmp_path / "lib" / "b.py", "b = 2\n")
    cache = _cache(tmp_path)
    cache.update("lib", ["lib/a.py"])

    assert cache.is_stale("lib", ["lib/a.py", "lib/b.py"]) is True
    assert cache.is_stale("lib", []) is True
    assert cache.is_stale("lib", ["lib/a.py"]) is False


def test_entries_expire_after_ttl(tmp_path: Path) -> None:
    _write(tmp_path / "web" / "index.js", "export {};\n")
    clock = _Clock()
    cache = _cache(tmp_path, clock, ttl=timedelta(hours=1))
    cache.update("web", ["web/index.js"])

    clock.advance(timedelta(minutes=59))
    assert cache.is_stale("web", ["web/index.js"]) is False

    clock.advance(timedelta(minutes=2))
    assert cache.is_stale("web", ["web/index.js"]) is True


def test_disabled_cache_always_stale_and_never_writes(tmp_path: Path) -> None:
    _write(tmp_path / "api" / "main.go", "package main\n")
    cache = _cache(tmp_path, enabled=False)

    cache.update("api", ["api/main.go"])
    cache.save()

    assert cache.is_stale("api", ["api/main.go"]) is True
    assert not cache.path.exists()
    assert cache.stats() == {"enabled": False}


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    _write(tmp_path / "svc" / "app.py", "print('hi')\n")
    clock = _Clock()
    cache = _cache(tmp_path, clock)
    cache.update("svc", ["svc/app.py"])
    cache.save()

    data = json.loads(cache.path.read_text(encoding="utf-8"))
    assert data["version"] == CACHE_VERSION
    assert data["last_run"] == "2024-05-01T12:00:00Z"
    assert data["components"]["svc"]["files"] == ["svc/app.py"]
    assert data["components"]["svc"]["content_digest"] == compute_digest(tmp_path, ["svc/app.py"])
    assert not cache.path.with_suffix(".json.tmp").exists()

    reloaded = _cache(tmp_path, clock)
    reloaded.load()

    assert reloaded.last_run == clock.now
    assert reloaded.is_stale("svc", ["svc/app.py"]) is False
    assert reloaded.entries["svc"].last_refreshed == clock.now


def test_malformed_cache_file_starts_empty(tmp_path: Path) -> None:
    cache = _cache(tmp_path)
    _write(cache.path, "{not json")

    cache.load()

    assert cache.entries == {}
    assert cache.is_stale("anything", []) is True


def test_unsupported_version_is_ignored(tmp_path: Path) -> None:
    cache = _cache(tmp_path)
    _write(cache.path, json.dumps({"version": 99, "components": {"x": {}}}))

    cache.load()

    assert cache.entries == {}


def test_clear_removes_entries_and_file(tmp_path: Path) -> None:
    _write(tmp_path / "svc" / "app.py", "x\n")
    cache = _cache(tmp_path)
    cache.update("svc", ["svc/app.py"])
    cache.save()

    cache.clear()
    cache.clear()

    assert cache.entries == {}
    assert not cache.path.exists()
    assert cache.is_stale("svc", ["svc/app.py"]) is True


def test_stats_and_stale_components(tmp_path: Path) -> None:
    _write(tmp_path / "a" / "x.go", "package a\n")
    _write(tmp_path / "b" / "y.go", "package b\n")
    cache = _cache(tmp_path)
    cache.update("a", ["a/x.go"])
    cache.update("b", ["b/y.go"])
    cache.save()

    _write(tmp_path / "b" / "y.go", "package b // changed\n")

    assert cache.stale_components({"a": ["a/x.go"], "b": ["b/y.go"], "c": []}) == ["b", "c"]
    assert cache.stats() == {
        "enabled": True,
        "last_run": "2024-05-01T12:00:00Z",
        "components": 2,
        "unchanged": 1,
        "stale": 1,
    }


def test_digest_depends_on_paths_and_order(tmp_path: Path) -> None:
    _write(tmp_path / "one.txt", "same")
    _write(tmp_path / "two.txt", "same")

    assert compute_digest(tmp_path, ["one.txt"]) != compute_digest(tmp_path, ["two.txt"])
    assert compute_digest(tmp_path, ["one.txt", "two.txt"]) != compute_digest(
        tmp_path, ["two.txt", "one.txt"]
    )
    assert compute_digest(tmp_path, ["missing.txt"]) == compute_digest(tmp_path, ["missing.txt"])


def test_failed_save_leaves_no_temporary_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write(tmp_path / "svc" / "app.py", "x\n")
    cache = _cache(tmp_path)
    cache.update("svc", ["svc/app.py"])

    def _fail_replace(self: Path, target: Path) -> Path:
        raise OSError("disk full")

    monkeypatch.setattr(Path, "replace", _fail_replace)

    with pytest.raises(OSError, match="disk full"):
        cache.save()

    assert not cache.path.with_suffix(".json.tmp").exists()
    assert not cache.path.exists()
