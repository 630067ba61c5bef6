"""C# project file (*.csproj) parser."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Dict, List

from .base import ManifestError, ManifestParser, decode
from ..models import Dependency

_XML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_PACKAGE_REFERENCE = re.compile(r"<PackageReference\b([^>]*?)/?>")
_ATTRIBUTE = re.compile(r"""([\w.:-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")


def _attributes(raw: str) -> Dict[str, str]:
    return {
        match.group(1): match.group(2) if match.group(2) is not None else match.group(3)
        for match in _ATTRIBUTE.finditer(raw)
    }


class CsprojParser(ManifestParser):
    """Reads ``PackageReference`` attributes; every project file in the directory counts."""

    languages = ("csharp",)
    patterns = ("*.csproj",)
    aggregate = True

    def parse(self, content: bytes) -> List[Dependency]:
        text = decode(content)
        try:
            ET.fromstring(text.encode("utf-8"))
        except ET.ParseError as exc:
            raise ManifestError(f"Invalid project file: {exc}") from exc

        deps: List[Dependency] = []
        for match in _PACKAGE_REFERENCE.finditer(_XML_COMMENT.sub("", text)):
            attrs = _attributes(match.group(1))
            name = attrs.get("Include") or attrs.get("Update")
            if name:
                deps.append(Dependency(name=name, version=attrs.get("Version", "")))
        return deps


__all__ = ["CsprojParser"]
