"""Repository scanning and inventory building utilities."""

from __future__ import annotations

import os
from collections import Counter
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath
from typing import Dict, Iterator, List, Sequence, Tuple

from .logging import get_logger
from .models import FileRecord, RepoInventory

PRUNED_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        ".repoatlas",
        "node_modules",
        "vendor",
        ".venv",
        "venv",
        "__pycache__",
        "dist",
        "build",
        "target",
        ".next",
        ".cache",
        ".pytest_cache",
        ".mypy_cache",
        ".idea",
    }
)

LANGUAGE_BY_SUFFIX: Dict[str, str] = {
    ".go": "go",
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".java": "java",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".rs": "rust",
    ".rb": "ruby",
    ".php": "php",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".swift": "swift",
    ".scala": "scala",
    ".sh": "shell",
}

_TEST_SUFFIXES: Tuple[str, ...] = (
    "_test.go",
    "_test.py",
    ".test.js",
    ".test.jsx",
    ".test.ts",
    ".test.tsx",
    ".spec.js",
    ".spec.jsx",
    ".spec.ts",
    ".spec.tsx",
    "Test.java",
    "Tests.java",
    "Test.kt",
    "Tests.cs",
    "_spec.rb",
    "_test.rb",
    "Test.php",
)
_TEST_DIRS = frozenset({"test", "tests"})

_TREE_BRANCH = "├── "
_TREE_LAST = "└── "
_TREE_PIPE = "│   "
_TREE_SPACE = "    "

logger = get_logger("scanner")


@dataclass(frozen=True)
class ExcludeRule:
    """A caller-supplied glob applied to repository-relative paths."""

    pattern: str
    directory_only: bool
    anchored: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if self.has_slash or self.anchored:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.anchored:
                return False
            # Unanchored ("**/a/b") patterns may start at any directory.
            parts = rel_path.split("/")
            return any(
                fnmatchcase("/".join(parts[index:]), self.pattern)
                for index in range(1, len(parts))
            )
        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def build_exclude_rule(pattern: str) -> ExcludeRule | None:
    """Normalise a glob into an :class:`ExcludeRule` (``None`` for blanks)."""
    pattern = pattern.strip().replace("\\", "/")
    if not pattern:
        return None

    directory_only = False
    if pattern.endswith("/**"):
        pattern = pattern[:-3]
        directory_only = True
    elif pattern.endswith("/"):
        pattern = pattern[:-1]
        directory_only = True

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]
    elif pattern.startswith("./"):
        pattern = pattern[2:]
        anchored = True

    while pattern.startswith("**/"):
        pattern = pattern[3:]
        anchored = False

    if not pattern or pattern == "**":
        return None

    return ExcludeRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        has_slash="/" in pattern,
    )


def build_exclude_rules(patterns: Sequence[str]) -> List[ExcludeRule]:
    rules: List[ExcludeRule] = []
    for pattern in patterns:
        rule = build_exclude_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return rules


def is_excluded(rel_path: str, is_dir: bool, rules: Sequence[ExcludeRule]) -> bool:
    """Return True when the path is pruned by the built-in list or a caller rule."""
    if is_dir and rel_path.rsplit("/", 1)[-1] in PRUNED_DIRS:
        return True
    return any(rule.matches(rel_path, is_dir) for rule in rules)


def detect_language(path: str) -> str | None:
    return LANGUAGE_BY_SUFFIX.get(PurePosixPath(path).suffix.lower())


def is_test_file(path: str) -> bool:
    """Return True for files following a test naming convention or living under test dirs."""
    posix = PurePosixPath(path)
    name = posix.name
    if name.endswith(_TEST_SUFFIXES):
        return True
    if name.startswith("test_") and name.endswith(".py"):
        return True
    return any(part in _TEST_DIRS for part in posix.parts[:-1])


def iter_files(root: Path, rules: Sequence[ExcludeRule]) -> Iterator[Tuple[str, Path]]:
    """Yield ``(relative_posix_path, absolute_path)`` in sorted traversal order."""

    def _on_error(error: OSError) -> None:
        logger.debug("Skipping unreadable entry %s: %s", error.filename, error)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept_dirs = []
        for name in sorted(dirnames):
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if is_excluded(rel_path, True, rules):
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if is_excluded(rel_path, False, rules):
                continue
            yield rel_path, current_dir / filename


def render_tree(records: Sequence[FileRecord]) -> str:
    """Render an indented directory tree for the given records.

    Output depends only on the set of paths, never on input order.
    """
    children: Dict[str, Tuple[set, set]] = {"": (set(), set())}
    for record in records:
        parts = record.path.split("/")
        parent = ""
        for part in parts[:-1]:
            current = f"{parent}/{part}" if parent else part
            children[parent][0].add(part)
            children.setdefault(current, (set(), set()))
            parent = current
        children[parent][1].add(parts[-1])

    lines = ["."]

    def _walk(directory: str, indent: str) -> None:
        subdirs, files = children[directory]
        entries = [(name, True) for name in sorted(subdirs)]
        entries.extend((name, False) for name in sorted(files))
        for index, (name, is_dir) in enumerate(entries):
            last = index == len(entries) - 1
            connector = _TREE_LAST if last else _TREE_BRANCH
            if is_dir:
                lines.append(f"{indent}{connector}{name}/")
                child = f"{directory}/{name}" if directory else name
                _walk(child, indent + (_TREE_SPACE if last else _TREE_PIPE))
            else:
                lines.append(f"{indent}{connector}{name}")

    _walk("", "")
    return "\n".join(lines) + "\n"


class RepoScanner:
    """Walks the repository once to produce a file inventory."""

    def __init__(self, exclude_patterns: Sequence[str] = ()) -> None:
        self.exclude_patterns = list(exclude_patterns)
        self._rules = build_exclude_rules(self.exclude_patterns)

    @property
    def rules(self) -> List[ExcludeRule]:
        return list(self._rules)

    def scan(self, root: str | Path) -> RepoInventory:
        """Return the inventory of non-excluded files under ``root``."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")
        if not os.access(root_path, os.R_OK | os.X_OK):
            raise PermissionError(f"Repository path is not readable: {root}")

        files: List[FileRecord] = []
        for rel_path, path in iter_files(root_path, self._rules):
            try:
                if not path.is_file():
                    continue
                size = path.stat().st_size
            except OSError as exc:
                logger.debug("Skipping %s: %s", rel_path, exc)
                continue

            files.append(
                FileRecord(
                    path=rel_path,
                    size=size,
                    language=detect_language(rel_path),
                    is_test=is_test_file(rel_path),
                )
            )

        languages = Counter(record.language for record in files if record.language)
        logger.debug("Scanned %d files under %s", len(files), root_path)
        return RepoInventory(
            root=str(root_path),
            files=files,
            languages=dict(languages),
            tree=render_tree(files),
        )


__all__ = [
    "ExcludeRule",
    "LANGUAGE_BY_SUFFIX",
    "PRUNED_DIRS",
    "RepoScanner",
    "build_exclude_rules",
    "detect_language",
    "is_excluded",
    "is_test_file",
    "iter_files",
    "render_tree",
]
