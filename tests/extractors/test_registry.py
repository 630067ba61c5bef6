"""Tests for manifest parser registration and plugin discovery."""

from __future__ import annotations

from types import SimpleNamespace
from typing import List

import pytest

from repoatlas.extractors import BUILTIN_PARSERS, ManifestParser, ParserRegistry, discover_parsers
from repoatlas.extractors import registry as registry_module
from repoatlas.models import Dependency


class _MixParser(ManifestParser):
    languages = ("elixir",)
    patterns = ("mix.exs",)

    def parse(self, content: bytes) -> List[Dependency]:
        return [Dependency(name="phoenix", version="~> 1.7")]


def _fake_entry_points(*entries: SimpleNamespace):
    class _EntryPoints:
        def select(self, *, group: str):
            assert group == "repoatlas.manifest_parsers"
            return list(entries)

    return lambda: _EntryPoints()


def test_builtin_parsers_registered_in_priority_order(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(registry_module.metadata, "entry_points", _fake_entry_points())

    registry = discover_parsers()

    assert len(registry) == len(BUILTIN_PARSERS)
    python_parsers = [type(parser).__name__ for parser in registry.parsers_for("python")]
    assert python_parsers == ["RequirementsParser", "PyprojectParser"]
    assert [type(p).__name__ for p in registry.parsers_for("typescript")] == ["PackageJsonParser"]
    assert registry.parsers_for(None) == []
    assert registry.parsers_for("cobol") == []


def test_entry_point_plugins_extend_languages(monkeypatch: pytest.MonkeyPatch) -> None:
    entry = SimpleNamespace(name="mix", load=lambda: _MixParser)
    monkeypatch.setattr(registry_module.metadata, "entry_points", _fake_entry_points(entry))

    registry = discover_parsers()

    assert "elixir" in registry.languages
    (parser,) = registry.parsers_for("elixir")
    assert parser.parse(b"") == [Dependency(name="phoenix", version="~> 1.7")]


def test_entry_point_load_failure_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    def _boom() -> None:
        raise ImportError("missing module")

    entry = SimpleNamespace(name="broken", load=_boom)
    monkeypatch.setattr(registry_module.metadata, "entry_points", _fake_entry_points(entry))

    with pytest.raises(RuntimeError, match="broken"):
        discover_parsers()


def test_entry_point_must_provide_parser(monkeypatch: pytest.MonkeyPatch) -> None:
    entry = SimpleNamespace(name="bogus", load=lambda: object())
    monkeypatch.setattr(registry_module.metadata, "entry_points", _fake_entry_points(entry))

    with pytest.raises(TypeError):
        discover_parsers()


def test_discover_parsers_can_restrict_to_named_parsers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(registry_module.metadata, "entry_points", _fake_entry_points())

    registry = discover_parsers(["go.mod", "Cargo"])

    assert registry.languages == ["go", "rust"]
    with pytest.raises(ValueError, match="unknown-format"):
        discover_parsers(["unknown-format"])


def test_registry_rejects_non_parsers() -> None:
    with pytest.raises(TypeError):
        ParserRegistry([object()])  # type: ignore[list-item]
