"""Content-addressed cache of lint results, persisted per working directory."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from mdlint.models import Violation

logger = logging.getLogger(__name__)

CACHE_FILE_NAME = ".markdownlint-cli2-cache"


class CacheEntry(BaseModel):
    hash: str
    config: str = ""
    violations: list[Violation]


_ENTRIES = TypeAdapter(dict[str, CacheEntry])


def hash_content(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def config_digest(config: Mapping[str, Any]) -> str:
    """Stable digest of an effective configuration mapping."""
    encoded = json.dumps(config, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class LintCache:
    """Maps absolute file paths to the violations last computed for them.

    An entry is reused only when both the content hash and the configuration
    digest match. All access goes through a lock so lint workers running in
    threads may share one cache.
    """

    def __init__(self, path: Path, entries: dict[str, CacheEntry] | None = None) -> None:
        self.path = path
        self._entries = dict(entries or {})
        self._lock = threading.Lock()
        self._dirty = False

    @classmethod
    def load(cls, directory: str | Path) -> LintCache:
        """Read the cache file in *directory*; a missing or corrupt file yields an empty cache."""
        path = Path(directory) / CACHE_FILE_NAME
        try:
            entries = _ENTRIES.validate_json(path.read_bytes())
        except FileNotFoundError:
            entries = {}
        except (OSError, ValidationError) as exc:
            logger.debug("Ignoring unreadable cache %s: %s", path, exc)
            entries = {}
        return cls(path, entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, file: str, content_hash: str, digest: str) -> list[Violation] | None:
        with self._lock:
            entry = self._entries.get(file)
        if entry is None or entry.hash != content_hash or entry.config != digest:
            logger.debug("Cache miss for %s", file)
            return None
        logger.debug("Cache hit for %s", file)
        return list(entry.violations)

    def put(self, file: str, content_hash: str, digest: str, violations: list[Violation]) -> None:
        entry = CacheEntry(hash=content_hash, config=digest, violations=violations)
        with self._lock:
            self._entries[file] = entry
            self._dirty = True

    def save(self) -> None:
        """Write the cache back to disk if anything changed; failures are logged."""
        with self._lock:
            if not self._dirty:
                return
            data = _ENTRIES.dump_json(self._entries)
            self._dirty = False
        try:
            self.path.write_bytes(data)
        except OSError as exc:
            logger.warning("Could not write cache %s: %s", self.path, exc)
