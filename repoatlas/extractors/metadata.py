"""Metadata extraction: dependencies and endpoints for detected components."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from ..logging import get_logger
from ..models import Component, Dependency, Endpoint
from .base import ManifestError
from .endpoints import extract_endpoints
from .registry import ParserRegistry, discover_parsers

logger = get_logger("extractors")


class MetadataExtractor:
    """Dispatches components to the manifest parsers registered for their language."""

    def __init__(
        self,
        root: str | Path,
        registry: ParserRegistry | None = None,
        *,
        extract_endpoints: bool = True,
    ) -> None:
        self.root = Path(root).expanduser().resolve()
        self.registry = registry if registry is not None else discover_parsers()
        self.endpoints_enabled = extract_endpoints

    def extract_dependencies(self, component: Component) -> List[Dependency]:
        """Return the component's dependencies; missing or malformed manifests yield []."""
        directory = self.root / component.root_path
        for parser in self.registry.parsers_for(component.language):
            manifests = parser.locate(directory)
            if not manifests:
                continue
            deps: List[Dependency] = []
            for manifest in manifests:
                try:
                    deps.extend(parser.parse(manifest.read_bytes()))
                except (OSError, ManifestError) as exc:
                    logger.warning(
                        "Ignoring manifest %s for %s: %s",
                        _relative(manifest, self.root),
                        component.name,
                        exc,
                    )
            return deps
        return []

    def extract_endpoints(self, component: Component) -> List[Endpoint]:
        return extract_endpoints(self.root, component.files)

    def enrich(self, component: Component) -> Component:
        """Populate dependency and endpoint fields in place."""
        component.dependencies = self.extract_dependencies(component)
        if self.endpoints_enabled:
            component.endpoints = self.extract_endpoints(component)
        logger.debug(
            "%s: %d dependencies, %d endpoints",
            component.name,
            len(component.dependencies),
            len(component.endpoints),
        )
        return component


def read_declared_name(
    language: Optional[str],
    directory: Path,
    registry: ParserRegistry | None = None,
) -> Optional[str]:
    """Return the package/module name declared by the first manifest exposing one."""
    registry = registry if registry is not None else discover_parsers()
    for parser in registry.parsers_for(language):
        for manifest in parser.locate(directory):
            try:
                name = parser.read_name(manifest.read_bytes())
            except OSError:
                continue
            if name:
                return name
    return None


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


__all__ = ["MetadataExtractor", "read_declared_name"]
