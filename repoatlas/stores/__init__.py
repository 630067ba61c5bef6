"""Persistent stores used across pipeline runs."""

from .component_cache import CACHE_VERSION, ComponentCache, compute_digest

__all__ = ["CACHE_VERSION", "ComponentCache", "compute_digest"]
