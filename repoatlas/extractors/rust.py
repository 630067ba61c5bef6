"""Rust crate manifest (Cargo.toml) parser."""

from __future__ import annotations

import tomllib
from typing import Any, Dict, List, Optional

from .base import ManifestError, ManifestParser, decode
from .python import table_dependencies
from ..models import Dependency


def _load_cargo(content: bytes) -> Dict[str, Any]:
    try:
        return tomllib.loads(decode(content))
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(f"Invalid Cargo.toml: {exc}") from exc


class CargoParser(ManifestParser):
    languages = ("rust",)
    patterns = ("Cargo.toml",)

    def parse(self, content: bytes) -> List[Dependency]:
        table = _load_cargo(content).get("dependencies")
        if not isinstance(table, dict):
            return []
        return table_dependencies(table)

    def read_name(self, content: bytes) -> Optional[str]:
        try:
            package = _load_cargo(content).get("package")
        except ManifestError:
            return None
        if isinstance(package, dict) and isinstance(package.get("name"), str):
            return package["name"]
        return None


__all__ = ["CargoParser"]
