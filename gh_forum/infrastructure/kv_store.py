from __future__ import annotations

import json
import logging
from typing import Any

from gh_forum.domain.errors import StorageError
from gh_forum.domain.interfaces import IStorageBackend

log = logging.getLogger(__name__)

DEFAULT_PREFIX= "gh_forum:"


class KeyValueStore:
    """
    JSON key-value adapter over an injected IStorageBackend.

    Never raises. Storage failures (including quota) and serialization
    failures are logged and turned into the fallback value or False, so a
    broken store degrades features instead of crashing callers.

    Every key is stored under a fixed prefix so other consumers of the same
    backend cannot collide with ours.
    """

    def __init__(self, backend: IStorageBackend, prefix: str = DEFAULT_PREFIX) -> None:
        self._backend = backend
        self._prefix  = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str, fallback: Any = None) -> Any:
        raw = self.get_raw(key)
        if raw is None:
            return fallback
        try:
            return json.loads(raw)
        except ValueError as exc:
            log.warning("Stored value for %r is not valid JSON: %s", key, exc)
            return fallback

    def set(self, key: str, value: Any) -> bool:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as exc:
            log.warning("Cannot serialize value for %r: %s", key, exc)
            return False
        return self.set_raw(key, raw)

    def get_raw(self, key: str) -> str | None:
        """Read a plain string value (no JSON decoding)."""
        try:
            return self._backend.read(self._key(key))
        except StorageError as exc:
            log.warning("Storage read failed for %r: %s", key, exc)
            return None

    def set_raw(self, key: str, value: str) -> bool:
        """Store a plain string value (no JSON encoding)."""
        try:
            self._backend.write(self._key(key), value)
            return True
        except StorageError as exc:
            log.warning("Storage write failed for %r: %s", key, exc)
            return False

    def remove(self, key: str) -> bool:
        try:
            self._backend.delete(self._key(key))
            return True
        except StorageError as exc:
            log.warning("Storage delete failed for %r: %s", key, exc)
            return False

    def clear(self) -> bool:
        """Remove every key under our prefix; keys of other consumers stay."""
        try:
            for full_key in self._backend.keys(self._prefix):
                self._backend.delete(full_key)
            return True
        except StorageError as exc:
            log.warning("Storage clear failed: %s", exc)
            return False
