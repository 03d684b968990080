from __future__ import annotations
from gh_forum.domain.errors import StorageQuotaError
from gh_forum.domain.interfaces import IStorageBackend


class InMemoryStorageBackend(IStorageBackend):
    """
    Dict-backed storage for tests and throwaway sessions.

    `quota` caps the total number of characters held (keys + values), the
    way browser storage caps its size; None means unlimited.
    """

    def __init__(self, quota: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self._quota = quota

    def _size_with(self, key: str, value: str) -> int:
        current = sum(len(k) + len(v) for k, v in self._data.items() if k != key)
        return current + len(key) + len(value)

    def read(self, key: str) -> str | None:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        if self._quota is not None and self._size_with(key, value) > self._quota:
            raise StorageQuotaError(f"Writing {key!r} would exceed quota of {self._quota} characters")
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))
