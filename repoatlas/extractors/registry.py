"""Manifest parser registry and plugin discovery."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .base import ManifestParser
from .dotnet import CsprojParser
from .go import GoModParser
from .jvm import GradleParser, MavenParser
from .node import PackageJsonParser
from .python import PyprojectParser, RequirementsParser
from .ruby import GemfileParser
from .rust import CargoParser

_ENTRY_POINT_GROUP = "repoatlas.manifest_parsers"

# Registration order is lookup priority within a language.
BUILTIN_PARSERS: Dict[str, Callable[[], ManifestParser]] = {
    "go.mod": GoModParser,
    "requirements": RequirementsParser,
    "pyproject": PyprojectParser,
    "package.json": PackageJsonParser,
    "cargo": CargoParser,
    "maven": MavenParser,
    "gradle": GradleParser,
    "gemfile": GemfileParser,
    "csproj": CsprojParser,
}


class ParserRegistry:
    """Maps component languages to the manifest parsers that serve them."""

    def __init__(self, parsers: Iterable[ManifestParser] = ()) -> None:
        self._parsers: List[ManifestParser] = []
        for parser in parsers:
            self.register(parser)

    def register(self, parser: ManifestParser) -> None:
        if not isinstance(parser, ManifestParser):
            raise TypeError(f"{parser!r} is not a ManifestParser instance")
        self._parsers.append(parser)

    def parsers_for(self, language: Optional[str]) -> List[ManifestParser]:
        if not language:
            return []
        return [parser for parser in self._parsers if language in parser.languages]

    @property
    def languages(self) -> List[str]:
        seen: List[str] = []
        for parser in self._parsers:
            for language in parser.languages:
                if language not in seen:
                    seen.append(language)
        return seen

    def __len__(self) -> int:
        return len(self._parsers)


def discover_parsers(enabled: Sequence[str] | None = None) -> ParserRegistry:
    """Return a registry of built-in parsers followed by entry-point plugins.

    ``enabled`` optionally restricts the registry to the named parsers.
    """
    enabled_set = {name.lower() for name in enabled} if enabled is not None else None
    registry = ParserRegistry()
    seen: set[str] = set()

    def _add(name: str, factory: Callable[[], ManifestParser]) -> None:
        key = name.lower()
        if key in seen:
            return
        if enabled_set is not None and key not in enabled_set:
            return
        registry.register(factory())
        seen.add(key)

    for name, factory in BUILTIN_PARSERS.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:
            raise RuntimeError(f"Failed to load manifest parser entry point '{entry.name}': {exc}") from exc

        def _factory(obj: object = loaded) -> ManifestParser:
            return _coerce_parser(obj)

        _add(entry.name, _factory)

    if enabled_set is not None:
        missing = enabled_set - seen
        if missing:
            raise ValueError(f"Unknown manifest parsers requested: {', '.join(sorted(missing))}")

    return registry


def _coerce_parser(obj: object) -> ManifestParser:
    if isinstance(obj, ManifestParser):
        return obj
    if isinstance(obj, type) and issubclass(obj, ManifestParser):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, ManifestParser):
            return instance
    raise TypeError("Manifest parser entry point must be a ManifestParser subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = ["BUILTIN_PARSERS", "ParserRegistry", "discover_parsers"]
