"""Go module (go.mod) parser."""

from __future__ import annotations

import re
from typing import List, Optional

from .base import ManifestParser, decode
from ..models import Dependency

_MAJOR_VERSION_SUFFIX = re.compile(r"^v\d+$")


def _strip_comment(line: str) -> str:
    return line.split("//", 1)[0].strip()


class GoModParser(ManifestParser):
    """Reads single-line and parenthesized ``require`` directives."""

    languages = ("go",)
    patterns = ("go.mod",)

    def parse(self, content: bytes) -> List[Dependency]:
        deps: List[Dependency] = []
        in_block = False
        for raw_line in decode(content).splitlines():
            line = _strip_comment(raw_line)
            if not line:
                continue

            if in_block:
                if line == ")":
                    in_block = False
                    continue
                entry = line
            elif line.startswith("require"):
                rest = line[len("require"):].strip()
                if rest.startswith("("):
                    rest = rest[1:].strip()
                    if rest != ")":
                        in_block = True
                    continue
                if rest == line[len("require"):]:
                    # "requirex ..." is not a directive.
                    continue
                entry = rest
            else:
                continue

            parts = entry.split()
            if len(parts) >= 2:
                deps.append(Dependency(name=parts[0].strip('"'), version=parts[1]))
        return deps

    def read_name(self, content: bytes) -> Optional[str]:
        for raw_line in decode(content).splitlines():
            line = _strip_comment(raw_line)
            if not line.startswith("module"):
                continue
            module = line[len("module"):].strip().strip('"')
            if not module:
                return None
            segments = [segment for segment in module.split("/") if segment]
            if len(segments) > 1 and _MAJOR_VERSION_SUFFIX.match(segments[-1]):
                segments.pop()
            return segments[-1]
        return None


__all__ = ["GoModParser"]
