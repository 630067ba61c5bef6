"""Python manifest parsers (requirements.txt and pyproject.toml)."""

from __future__ import annotations

import re
import tomllib
from typing import Any, Dict, List, Optional

from .base import ManifestError, ManifestParser, decode
from ..models import Dependency, DependencyOrigin

_REQUIREMENT = re.compile(
    r"^(?P<name>[A-Za-z0-9][A-Za-z0-9._-]*)\s*"
    r"(?:\[[^\]]*\])?\s*"
    r"(?P<op>===|==|>=|<=|~=|!=|<|>)?\s*"
    r"(?P<rest>.*)$"
)


def parse_requirement(spec: str) -> Optional[Dependency]:
    """Split a single requirement specifier into name and version constraint."""
    line = spec.split(";", 1)[0].strip()
    if not line:
        return None
    if "://" in line and " @ " not in line:
        return None
    match = _REQUIREMENT.match(line)
    if match is None:
        return None
    version = match.group("rest").strip() if match.group("op") else ""
    return Dependency(name=match.group("name"), version=version)


class RequirementsParser(ManifestParser):
    """pip-style requirements list: one dependency per line."""

    languages = ("python",)
    patterns = ("requirements.txt",)

    def parse(self, content: bytes) -> List[Dependency]:
        deps: List[Dependency] = []
        for raw_line in decode(content).splitlines():
            line = raw_line.strip()
            if not line or line.startswith(("#", "-")):
                continue
            line = re.split(r"\s+#", line, maxsplit=1)[0]
            dep = parse_requirement(line)
            if dep is not None:
                deps.append(dep)
        return deps


class PyprojectParser(ManifestParser):
    """PEP 621 and Poetry dependency tables from pyproject.toml."""

    languages = ("python",)
    patterns = ("pyproject.toml",)

    def parse(self, content: bytes) -> List[Dependency]:
        data = _load_toml(content)
        deps: List[Dependency] = []

        project = data.get("project")
        if isinstance(project, dict):
            declared = project.get("dependencies")
            if isinstance(declared, list):
                for item in declared:
                    if isinstance(item, str):
                        dep = parse_requirement(item)
                        if dep is not None:
                            deps.append(dep)
            elif isinstance(declared, dict):
                deps.extend(table_dependencies(declared))

        tool = data.get("tool")
        poetry = tool.get("poetry") if isinstance(tool, dict) else None
        if isinstance(poetry, dict) and isinstance(poetry.get("dependencies"), dict):
            deps.extend(table_dependencies(poetry["dependencies"]))

        return deps

    def read_name(self, content: bytes) -> Optional[str]:
        try:
            data = _load_toml(content)
        except ManifestError:
            return None
        project = data.get("project")
        if isinstance(project, dict) and isinstance(project.get("name"), str):
            return project["name"]
        tool = data.get("tool")
        poetry = tool.get("poetry") if isinstance(tool, dict) else None
        if isinstance(poetry, dict) and isinstance(poetry.get("name"), str):
            return poetry["name"]
        return None


def table_dependencies(table: Dict[str, Any]) -> List[Dependency]:
    """Convert a TOML ``name = version`` table into dependencies.

    Inline tables contribute their ``version`` key; a ``path`` key marks a
    dependency that lives inside the repository.
    """
    deps: List[Dependency] = []
    for name, value in table.items():
        origin = DependencyOrigin.EXTERNAL
        if isinstance(value, str):
            version = value
        elif isinstance(value, dict):
            version = str(value.get("version", ""))
            if "path" in value:
                origin = DependencyOrigin.INTERNAL
        else:
            version = ""
        deps.append(Dependency(name=name, version=version, origin=origin))
    return deps


def _load_toml(content: bytes) -> Dict[str, Any]:
    try:
        return tomllib.loads(decode(content))
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(f"Invalid TOML: {exc}") from exc


__all__ = [
    "PyprojectParser",
    "RequirementsParser",
    "parse_requirement",
    "table_dependencies",
]
