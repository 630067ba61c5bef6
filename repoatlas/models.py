"""Core data models shared across repoatlas components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class ComponentKind(str, Enum):
    """Coarse classification assigned to a detected component."""

    SERVICE = "service"
    LIBRARY = "library"
    FRONTEND = "frontend"


class DependencyOrigin(str, Enum):
    """Whether a dependency lives outside the repository or inside it."""

    EXTERNAL = "external"
    INTERNAL = "internal"


@dataclass(frozen=True)
class FileRecord:
    """Metadata for an individual repository file."""

    path: str
    size: int
    language: Optional[str]
    is_test: bool


@dataclass
class RepoInventory:
    """Result of a single scan over the repository."""

    root: str
    files: List[FileRecord]
    languages: Dict[str, int]
    tree: str

    @property
    def total_files(self) -> int:
        return len(self.files)


@dataclass
class Dependency:
    """Normalized dependency declared in a manifest."""

    name: str
    version: str = ""
    origin: DependencyOrigin = DependencyOrigin.EXTERNAL


@dataclass
class Endpoint:
    """HTTP route declaration discovered in source files."""

    method: str
    path: str
    description: str = ""


@dataclass
class Component:
    """Logical unit of the repository (service, library or frontend)."""

    name: str
    kind: ComponentKind
    language: Optional[str]
    root_path: str
    files: List[str] = field(default_factory=list)
    has_tests: bool = False
    dependencies: List[Dependency] = field(default_factory=list)
    endpoints: List[Endpoint] = field(default_factory=list)


@dataclass
class CacheEntry:
    """Persisted digest for a component as of its last refresh."""

    component_name: str
    content_digest: str
    last_refreshed: datetime
    files: List[str] = field(default_factory=list)
