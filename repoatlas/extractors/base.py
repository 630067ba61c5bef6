"""Base class for manifest parser plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..models import Dependency


class ManifestError(ValueError):
    """Raised by a parser when manifest content is malformed."""


class ManifestParser(ABC):
    """Contract for narrow grammars that turn one manifest format into dependencies.

    ``languages`` lists the component languages the parser serves and
    ``patterns`` the file names (or globs) it reads, relative to the component
    root. When ``aggregate`` is set every matching file contributes, otherwise
    only the first match is parsed.
    """

    languages: Tuple[str, ...] = ()
    patterns: Tuple[str, ...] = ()
    aggregate: bool = False

    def locate(self, directory: Path) -> List[Path]:
        found = find_files(directory, self.patterns)
        return found if self.aggregate else found[:1]

    @abstractmethod
    def parse(self, content: bytes) -> List[Dependency]:
        """Return dependencies declared in ``content``; raise ManifestError when malformed."""

    def read_name(self, content: bytes) -> Optional[str]:
        """Return the package/module name declared by the manifest, when the grammar has one."""
        return None


def find_files(directory: Path, patterns: Sequence[str]) -> List[Path]:
    """Return files in ``directory`` matching ``patterns``, in pattern order.

    Literal names are checked directly; globs contribute their sorted matches.
    """
    found: List[Path] = []
    for pattern in patterns:
        if any(char in pattern for char in "*?["):
            found.extend(sorted(path for path in directory.glob(pattern) if path.is_file()))
        else:
            candidate = directory / pattern
            if candidate.is_file():
                found.append(candidate)
    return found


def decode(content: bytes) -> str:
    return content.decode("utf-8-sig", errors="replace")


__all__ = ["ManifestError", "ManifestParser", "decode", "find_files"]
