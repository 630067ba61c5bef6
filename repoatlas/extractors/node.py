"""Node.js package.json parser."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from .base import ManifestError, ManifestParser, decode
from ..models import Dependency, DependencyOrigin

_LOCAL_PROTOCOLS = ("file:", "link:", "workspace:", "portal:")


def _load_package_json(content: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(decode(content))
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Invalid package.json: {exc}") from exc
    return data if isinstance(data, dict) else {}


class PackageJsonParser(ManifestParser):
    """Runtime ``dependencies`` only; devDependencies are left out on purpose."""

    languages = ("javascript", "typescript")
    patterns = ("package.json",)

    def parse(self, content: bytes) -> List[Dependency]:
        runtime = _load_package_json(content).get("dependencies")
        if not isinstance(runtime, dict):
            return []
        deps: List[Dependency] = []
        for name, version in runtime.items():
            version = version if isinstance(version, str) else ""
            origin = (
                DependencyOrigin.INTERNAL
                if version.startswith(_LOCAL_PROTOCOLS)
                else DependencyOrigin.EXTERNAL
            )
            deps.append(Dependency(name=name, version=version, origin=origin))
        return deps

    def read_name(self, content: bytes) -> Optional[str]:
        try:
            name = _load_package_json(content).get("name")
        except ManifestError:
            return None
        return name if isinstance(name, str) and name else None


__all__ = ["PackageJsonParser"]
