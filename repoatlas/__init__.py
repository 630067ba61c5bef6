"""Repository analysis pipeline: scan, detect components, extract metadata, cache."""

from .config import AtlasConfig, load_config
from .models import (
    CacheEntry,
    Component,
    ComponentKind,
    Dependency,
    DependencyOrigin,
    Endpoint,
    FileRecord,
    RepoInventory,
)
from .pipeline import AnalysisPipeline, AnalysisResult

__version__ = "0.1.0"

__all__ = [
    "AnalysisPipeline",
    "AnalysisResult",
    "AtlasConfig",
    "CacheEntry",
    "Component",
    "ComponentKind",
    "Dependency",
    "DependencyOrigin",
    "Endpoint",
    "FileRecord",
    "RepoInventory",
    "load_config",
]
