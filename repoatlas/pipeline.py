"""Pipeline orchestration: scan, detect, extract, then consult the cache."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List

from .config import AtlasConfig
from .detector import ComponentDetector
from .extractors import MetadataExtractor, ParserRegistry, discover_parsers
from .logging import get_logger
from .models import Component, RepoInventory
from .scanner import RepoScanner
from .stores import ComponentCache


@dataclass
class AnalysisResult:
    """Everything one analysis run hands to downstream collaborators."""

    root: Path
    inventory: RepoInventory
    components: List[Component]

    @property
    def tree(self) -> str:
        return self.inventory.tree

    @property
    def languages(self) -> Dict[str, int]:
        return dict(self.inventory.languages)

    def component_files(self) -> Dict[str, List[str]]:
        return {component.name: list(component.files) for component in self.components}


class AnalysisPipeline:
    """Runs Scanner, Detector and Extractor in order with an explicit configuration."""

    def __init__(
        self,
        config: AtlasConfig,
        *,
        scanner: RepoScanner | None = None,
        detector: ComponentDetector | None = None,
        registry: ParserRegistry | None = None,
    ) -> None:
        self.config = config
        self.registry = registry if registry is not None else discover_parsers()
        patterns = config.analysis.exclude_patterns
        self.scanner = scanner or RepoScanner(patterns)
        self.detector = detector or ComponentDetector(patterns, registry=self.registry)
        self.logger = get_logger("pipeline")

    def analyze(self, root: str | Path) -> AnalysisResult:
        """Analyze ``root``; only an unreadable root raises."""
        root_path = Path(root).expanduser().resolve()
        self.logger.info("Scanning repository %s", root_path)
        inventory = self.scanner.scan(root_path)
        self.logger.debug("Scanner found %d files", inventory.total_files)

        self.logger.info("Detecting components")
        components = self.detector.detect(root_path, inventory)

        self.logger.info("Extracting metadata")
        extractor = MetadataExtractor(
            root_path,
            self.registry,
            extract_endpoints=self.config.analysis.extract_endpoints,
        )
        for component in components:
            extractor.enrich(component)

        self.logger.info("Found %d components", len(components))
        for component in components:
            self.logger.info(
                "  - %s (%s, %s) - %d dependencies, %d endpoints",
                component.name,
                component.kind.value,
                component.language or "unknown",
                len(component.dependencies),
                len(component.endpoints),
            )
        return AnalysisResult(root=root_path, inventory=inventory, components=components)

    def open_cache(self, root: str | Path) -> ComponentCache:
        """Return the loaded cache for ``root`` as configured."""
        cache = ComponentCache(
            self.config.cache_path,
            root=Path(root).expanduser().resolve(),
            enabled=self.config.cache.enabled,
            ttl=self.config.cache.ttl,
        )
        cache.load()
        return cache

    def plan(self, result: AnalysisResult, cache: ComponentCache) -> List[Component]:
        """Return the components whose cached state is stale, in detection order."""
        stale = [
            component
            for component in result.components
            if cache.is_stale(component.name, component.files)
        ]
        self.logger.info(
            "%d components need regeneration (skipping %d cached)",
            len(stale),
            len(result.components) - len(stale),
        )
        return stale

    def record(self, cache: ComponentCache, components: Iterable[Component]) -> None:
        """Mark components as refreshed and persist the cache."""
        for component in components:
            cache.update(component.name, component.files)
        cache.save()


__all__ = ["AnalysisPipeline", "AnalysisResult"]
