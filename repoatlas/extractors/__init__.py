"""Manifest parsers, endpoint sweep and the metadata extractor facade."""

from __future__ import annotations

from .base import ManifestError, ManifestParser, find_files
from .endpoints import extract_endpoints
from .metadata import MetadataExtractor, read_declared_name
from .registry import BUILTIN_PARSERS, ParserRegistry, discover_parsers

__all__ = [
    "BUILTIN_PARSERS",
    "ManifestError",
    "ManifestParser",
    "MetadataExtractor",
    "ParserRegistry",
    "discover_parsers",
    "extract_endpoints",
    "find_files",
    "read_declared_name",
]
