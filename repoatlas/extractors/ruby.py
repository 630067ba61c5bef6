"""Ruby Gemfile parser."""

from __future__ import annotations

import re
from typing import List

from .base import ManifestParser, decode
from ..models import Dependency, DependencyOrigin

_GEM = re.compile(
    r"""^gem\s*\(?\s*['"](?P<name>[^'"]+)['"]"""
    r"""(?:\s*,\s*['"](?P<version>[^'"]*)['"])?"""
)
_LOCAL_OPTION = re.compile(r"\bpath\s*:|:path\s*=>")


class GemfileParser(ManifestParser):
    languages = ("ruby",)
    patterns = ("Gemfile",)

    def parse(self, content: bytes) -> List[Dependency]:
        deps: List[Dependency] = []
        for raw_line in decode(content).splitlines():
            line = raw_line.strip()
            match = _GEM.match(line)
            if not match:
                continue
            origin = (
                DependencyOrigin.INTERNAL if _LOCAL_OPTION.search(line) else DependencyOrigin.EXTERNAL
            )
            deps.append(
                Dependency(
                    name=match.group("name"),
                    version=match.group("version") or "",
                    origin=origin,
                )
            )
        return deps


__all__ = ["GemfileParser"]
