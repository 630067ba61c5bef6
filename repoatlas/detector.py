"""Component detection: partitions a repository into services, libraries and frontends."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .extractors import ParserRegistry, discover_parsers, find_files, read_declared_name
from .logging import get_logger
from .models import Component, ComponentKind, FileRecord, RepoInventory
from .scanner import ExcludeRule, build_exclude_rules, is_excluded

MONOREPO_PATTERNS: Tuple[str, ...] = ("services/*", "apps/*", "packages/*", "libs/*")
ENTRY_POINT_PATTERNS: Tuple[str, ...] = ("cmd/*/main.*", "src/main.*", "main.*")

# Tie-break order when inferring a directory's language from its files.
LANGUAGE_PRIORITY: Tuple[str, ...] = (
    "go",
    "python",
    "typescript",
    "javascript",
    "rust",
    "java",
    "kotlin",
    "ruby",
    "csharp",
    "php",
)

CONTAINER_FILES: Tuple[str, ...] = (
    "Dockerfile",
    "Containerfile",
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
)

UI_MARKERS: Tuple[str, ...] = ("react", "vue", "angular", "svelte", "next", "nuxt")
UI_PACKAGES = frozenset({"react", "vue", "@angular/core", "svelte", "next", "nuxt"})
_NAME_TOKEN_SEPARATORS = re.compile(r"[-_.]")

logger = get_logger("detector")


@dataclass(frozen=True)
class ManifestSignature:
    """A manifest file (or glob) that identifies a component's language."""

    language: str
    patterns: Tuple[str, ...]

    def match(self, directory: Path) -> Optional[Path]:
        found = find_files(directory, self.patterns)
        return found[0] if found else None


MANIFEST_SIGNATURES: Tuple[ManifestSignature, ...] = (
    ManifestSignature("go", ("go.mod",)),
    ManifestSignature("python", ("setup.py", "pyproject.toml", "requirements.txt")),
    ManifestSignature("javascript", ("package.json",)),
    ManifestSignature("rust", ("Cargo.toml",)),
    ManifestSignature("java", ("pom.xml", "build.gradle", "build.gradle.kts")),
    ManifestSignature("ruby", ("Gemfile",)),
    ManifestSignature("csharp", ("*.csproj", "*.sln")),
)


@dataclass
class Candidate:
    """Directory under consideration as a component root."""

    directory: Path
    root_path: str
    language: Optional[str] = None


class KindRule(ABC):
    """Contract for heuristics that classify a candidate directory."""

    @abstractmethod
    def classify(self, candidate: Candidate) -> Optional[ComponentKind]:
        """Return a kind when the rule applies, otherwise ``None``."""


class ContainerRule(KindRule):
    """A containerization descriptor marks a deployable service."""

    def classify(self, candidate: Candidate) -> Optional[ComponentKind]:
        if any((candidate.directory / name).is_file() for name in CONTAINER_FILES):
            return ComponentKind.SERVICE
        return None


class LanguageServiceRule(KindRule):
    """Language-specific markers of a runnable service without a container descriptor."""

    MARKERS: Dict[str, Tuple[str, ...]] = {
        "ruby": ("config/routes.rb",),
        "go": ("cmd", "main.go"),
    }

    def classify(self, candidate: Candidate) -> Optional[ComponentKind]:
        markers = self.MARKERS.get(candidate.language or "", ())
        if any((candidate.directory / marker).exists() for marker in markers):
            return ComponentKind.SERVICE
        return None


class FrontendRule(KindRule):
    """package.json dependencies or, for JS/TS components, file names hint at a UI framework."""

    NAMED_LANGUAGES: Tuple[str, ...] = ("javascript", "typescript")

    def classify(self, candidate: Candidate) -> Optional[ComponentKind]:
        if _declares_ui_package(candidate.directory / "package.json"):
            return ComponentKind.FRONTEND
        if candidate.language not in self.NAMED_LANGUAGES:
            return None
        if _mentions_ui_framework(candidate.directory.name):
            return ComponentKind.FRONTEND
        try:
            siblings = sorted(entry.name for entry in candidate.directory.iterdir())
        except OSError:
            siblings = []
        if any(_mentions_ui_framework(name) for name in siblings):
            return ComponentKind.FRONTEND
        return None


def _mentions_ui_framework(name: str) -> bool:
    """Match markers as whole tokens: ``vue-admin`` and ``next.config.js`` do, ``reactor`` does not."""
    tokens = set(_NAME_TOKEN_SEPARATORS.split(name.lower()))
    return any(marker in tokens for marker in UI_MARKERS)


def _declares_ui_package(package_json: Path) -> bool:
    if not package_json.is_file():
        return False
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return False
    if not isinstance(data, dict):
        return False
    for key in ("dependencies", "devDependencies", "peerDependencies"):
        section = data.get(key)
        if isinstance(section, dict) and UI_PACKAGES.intersection(section):
            return True
    return False


DEFAULT_KIND_RULES: Tuple[Callable[[], KindRule], ...] = (
    ContainerRule,
    LanguageServiceRule,
    FrontendRule,
)


class ComponentDetector:
    """Partitions a scanned repository into components using fallback strategies."""

    def __init__(
        self,
        exclude_patterns: Sequence[str] = (),
        kind_rules: Optional[Iterable[KindRule]] = None,
        signatures: Sequence[ManifestSignature] = MANIFEST_SIGNATURES,
        registry: ParserRegistry | None = None,
    ) -> None:
        self._rules: List[ExcludeRule] = build_exclude_rules(exclude_patterns)
        self.registry = registry if registry is not None else discover_parsers()
        self.kind_rules: List[KindRule] = (
            list(kind_rules) if kind_rules is not None else [factory() for factory in DEFAULT_KIND_RULES]
        )
        self.signatures = tuple(signatures)

    def detect(self, root: str | Path, inventory: RepoInventory) -> List[Component]:
        """Return the components found under ``root``; an empty list is valid."""
        root_path = Path(root).expanduser().resolve()

        strategies = (
            ("monorepo", self._monorepo_candidates),
            ("single", self._single_candidates),
            ("entrypoint", self._entry_point_candidates),
        )
        candidates: List[Candidate] = []
        for label, strategy in strategies:
            candidates = strategy(root_path)
            if candidates:
                logger.debug("Strategy %s produced %d candidates", label, len(candidates))
                break

        components = [self._build_component(root_path, item, inventory) for item in candidates]
        _disambiguate_names(components)
        return components

    # ------------------------------------------------------------------
    # Strategies

    def _monorepo_candidates(self, root: Path) -> List[Candidate]:
        candidates: List[Candidate] = []
        for pattern in MONOREPO_PATTERNS:
            for directory in sorted(root.glob(pattern)):
                if not directory.is_dir() or directory.name.startswith("."):
                    continue
                rel_path = directory.relative_to(root).as_posix()
                if self._is_pruned(rel_path):
                    continue
                candidates.append(Candidate(directory=directory, root_path=rel_path))
        return candidates

    def _single_candidates(self, root: Path) -> List[Candidate]:
        for signature in self.signatures:
            if signature.match(root) is not None:
                return [Candidate(directory=root, root_path=".", language=signature.language)]
        return []

    def _entry_point_candidates(self, root: Path) -> List[Candidate]:
        candidates: List[Candidate] = []
        seen: set[str] = set()
        for pattern in ENTRY_POINT_PATTERNS:
            for match in sorted(root.glob(pattern)):
                if not match.is_file():
                    continue
                directory = match.parent
                rel_path = directory.relative_to(root).as_posix() if directory != root else "."
                if rel_path in seen or (rel_path != "." and self._is_pruned(rel_path)):
                    continue
                seen.add(rel_path)
                candidates.append(Candidate(directory=directory, root_path=rel_path))
        return candidates

    # ------------------------------------------------------------------
    # Classification and enrichment

    def _build_component(
        self, root: Path, candidate: Candidate, inventory: RepoInventory
    ) -> Component:
        if candidate.language is None:
            self._resolve_language(candidate, inventory)

        name = read_declared_name(candidate.language, candidate.directory, self.registry)
        if not name:
            name = candidate.directory.name or root.name

        files = _files_under(candidate.root_path, inventory.files)
        component = Component(
            name=name,
            kind=self._classify(candidate),
            language=candidate.language,
            root_path=candidate.root_path,
            files=[record.path for record in files],
            has_tests=any(record.is_test for record in files),
        )
        logger.debug(
            "Detected %s component %s (%s) at %s with %d files",
            component.kind.value,
            component.name,
            component.language or "unknown",
            component.root_path,
            len(component.files),
        )
        return component

    def _resolve_language(self, candidate: Candidate, inventory: RepoInventory) -> None:
        for signature in self.signatures:
            if signature.match(candidate.directory) is not None:
                candidate.language = signature.language
                return
        candidate.language = _majority_language(candidate.root_path, inventory.files)

    def _classify(self, candidate: Candidate) -> ComponentKind:
        for rule in self.kind_rules:
            kind = rule.classify(candidate)
            if kind is not None:
                return kind
        return ComponentKind.LIBRARY

    def _is_pruned(self, rel_path: str) -> bool:
        parts = rel_path.split("/")
        return any(
            is_excluded("/".join(parts[: index + 1]), True, self._rules)
            for index in range(len(parts))
        )


def _files_under(root_path: str, records: Sequence[FileRecord]) -> List[FileRecord]:
    if root_path == ".":
        return list(records)
    prefix = f"{root_path}/"
    return [record for record in records if record.path.startswith(prefix)]


def _majority_language(root_path: str, records: Sequence[FileRecord]) -> Optional[str]:
    counts: Counter[str] = Counter()
    for record in records:
        parent = PurePosixPath(record.path).parent.as_posix()
        if parent == root_path and record.language in LANGUAGE_PRIORITY:
            counts[record.language] += 1
    if not counts:
        return None
    best = max(counts.values())
    for language in LANGUAGE_PRIORITY:
        if counts.get(language) == best:
            return language
    return None


def _disambiguate_names(components: List[Component]) -> None:
    taken: set[str] = set()
    for component in components:
        name = component.name
        if name in taken:
            name = component.root_path
            suffix = 2
            while name in taken:
                name = f"{component.root_path}-{suffix}"
                suffix += 1
            logger.debug("Renamed duplicate component %s to %s", component.name, name)
            component.name = name
        taken.add(name)


__all__ = [
    "Candidate",
    "ComponentDetector",
    "ContainerRule",
    "FrontendRule",
    "KindRule",
    "LanguageServiceRule",
    "MANIFEST_SIGNATURES",
    "ManifestSignature",
]
