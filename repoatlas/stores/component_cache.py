"""Persistent, content-addressed cache of component refresh state.

The cache file is rewritten whole on every save. It is not safe for two
pipeline runs to share one cache file at the same time: the last writer wins.
"""

from __future__ import annotations

import hashlib
import json
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from ..logging import get_logger
from ..models import CacheEntry

CACHE_VERSION = 1
_READ_CHUNK = 1024 * 1024

logger = get_logger("cache")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _format_timestamp(value: datetime) -> str:
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _parse_timestamp(value: object) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def compute_digest(root: Path, files: Sequence[str]) -> str:
    """SHA-256 over each path followed by its bytes, in list order.

    Unreadable files contribute only their path.
    """
    digest = hashlib.sha256()
    for relative in files:
        digest.update(relative.encode("utf-8"))
        try:
            with (root / relative).open("rb") as handle:
                for chunk in iter(lambda: handle.read(_READ_CHUNK), b""):
                    digest.update(chunk)
        except OSError:
            continue
    return digest.hexdigest()


class ComponentCache:
    """Decides which components need regeneration since their last refresh."""

    def __init__(
        self,
        path: Path,
        *,
        root: Path,
        enabled: bool = True,
        ttl: timedelta = timedelta(hours=168),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.path = Path(path)
        self.root = Path(root)
        self.enabled = enabled
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self.last_run: Optional[datetime] = None

    @property
    def entries(self) -> Dict[str, CacheEntry]:
        return dict(self._entries)

    def load(self) -> None:
        """Read the cache file; a missing file is fine, a broken one starts empty."""
        if not self.enabled:
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable cache %s: %s", self.path, exc)
            return

        if not isinstance(data, dict) or data.get("version") != CACHE_VERSION:
            logger.warning("Ignoring cache %s with unsupported format", self.path)
            return

        components = data.get("components")
        if not isinstance(components, dict):
            return

        entries: Dict[str, CacheEntry] = {}
        for name, raw in components.items():
            entry = _entry_from_dict(name, raw)
            if entry is not None:
                entries[name] = entry
        self._entries = entries
        self.last_run = _parse_timestamp(data.get("last_run"))

    def save(self) -> None:
        """Write the whole cache to a temporary sibling, then rename it into place."""
        if not self.enabled:
            return
        self.last_run = self._clock()
        payload = {
            "version": CACHE_VERSION,
            "last_run": _format_timestamp(self.last_run),
            "components": {
                name: _entry_to_dict(entry) for name, entry in sorted(self._entries.items())
            },
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

    def is_stale(self, component_name: str, files: Sequence[str]) -> bool:
        if not self.enabled:
            return True
        entry = self._entries.get(component_name)
        if entry is None:
            return True
        if self._clock() - entry.last_refreshed > self.ttl:
            return True
        return compute_digest(self.root, files) != entry.content_digest

    def update(self, component_name: str, files: Sequence[str]) -> None:
        """Replace the entry for ``component_name`` with a fresh digest and timestamp."""
        if not self.enabled:
            return
        self._entries[component_name] = CacheEntry(
            component_name=component_name,
            content_digest=compute_digest(self.root, files),
            last_refreshed=self._clock(),
            files=list(files),
        )

    def stale_components(self, components: Mapping[str, Sequence[str]]) -> List[str]:
        """Return names (in mapping order) whose cached state is stale."""
        return [name for name, files in components.items() if self.is_stale(name, files)]

    def clear(self) -> None:
        """Forget every entry and delete the cache file."""
        self._entries.clear()
        self.last_run = None
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def stats(self) -> Dict[str, object]:
        if not self.enabled:
            return {"enabled": False}
        stale = sum(1 for name, entry in self._entries.items() if self.is_stale(name, entry.files))
        return {
            "enabled": True,
            "last_run": _format_timestamp(self.last_run) if self.last_run else None,
            "components": len(self._entries),
            "unchanged": len(self._entries) - stale,
            "stale": stale,
        }


def _entry_to_dict(entry: CacheEntry) -> Dict[str, object]:
    return {
        "content_digest": entry.content_digest,
        "last_refreshed": _format_timestamp(entry.last_refreshed),
        "files": list(entry.files),
    }


def _entry_from_dict(name: object, payload: object) -> Optional[CacheEntry]:
    if not isinstance(name, str) or not isinstance(payload, dict):
        return None
    digest = payload.get("content_digest")
    refreshed = _parse_timestamp(payload.get("last_refreshed"))
    files = payload.get("files", [])
    if not isinstance(digest, str) or refreshed is None or not isinstance(files, list):
        return None
    return CacheEntry(
        component_name=name,
        content_digest=digest,
        last_refreshed=refreshed,
        files=[item for item in files if isinstance(item, str)],
    )


__all__ = ["CACHE_VERSION", "ComponentCache", "compute_digest"]
