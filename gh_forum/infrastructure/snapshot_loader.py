from __future__ import annotations

import asyncio
import logging
import time

import httpx

from gh_forum.domain.entities import Snapshot, SnapshotMetadata
from gh_forum.domain.interfaces import ISnapshotSource
from .parsers import parse_categories, parse_datetime, parse_discussions, parse_labels

log = logging.getLogger(__name__)


def parse_snapshot(document: dict) -> Snapshot:
    """
    Translate the snapshot document into a Snapshot.

    The batch job writes plain arrays:
        {"metadata": {...}, "categories": [...], "labels": [...], "discussions": [...]}
    Older documents stored GraphQL connections ({"nodes": [...]}) and used
    `discussionCategories`; both forms are accepted.
    Records that cannot be parsed are skipped one by one; a document that
    is not an object, or whose metadata is unreadable, fails the whole load.
    """
    meta        = document.get("metadata") or {}
    discussions = parse_discussions(document.get("discussions"))
    categories  = document.get("categories")
    if categories is None:
        categories = document.get("discussionCategories")

    return Snapshot(
        metadata = SnapshotMetadata(
            last_updated      = parse_datetime(meta.get("lastUpdated")),
            total_discussions = int(meta.get("totalDiscussions", len(discussions))),
        ),
        discussions = discussions,
        categories  = parse_categories(categories),
        labels      = parse_labels(document.get("labels")),
    )


class StaticSnapshotLoader(ISnapshotSource):
    """
    Fetches the static snapshot once and keeps it for the process lifetime.

    The first successful load() is cached in `_snapshot`; later calls return
    it without touching the network. A failed load returns Snapshot.empty()
    and is not cached, so the next call tries again.

    The asyncio.Lock makes concurrent first calls share one fetch: the
    second coroutine waits, then finds the cache already filled.
    """

    def __init__(self, client: httpx.AsyncClient, url: str) -> None:
        self._client = client
        self._url    = url
        self._snapshot: Snapshot | None = None
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> Snapshot | None:
        return self._snapshot

    def invalidate(self) -> None:
        """Forget the cached snapshot; the next load() fetches again."""
        self._snapshot = None

    async def load(self) -> Snapshot:
        if self._snapshot is not None:
            return self._snapshot

        async with self._lock:
            if self._snapshot is not None:
                return self._snapshot

            snapshot = await self._fetch()
            if snapshot is None:
                return Snapshot.empty()

            self._snapshot = snapshot
            log.info(
                "Snapshot loaded | %d discussions | %d categories | %d labels",
                len(snapshot.discussions), len(snapshot.categories), len(snapshot.labels),
            )
            return snapshot

    async def _fetch(self) -> Snapshot | None:
        # cache-buster so CDNs and proxies never hand back a stale copy
        params = {"t": str(int(time.time() * 1000))}
        try:
            response = await self._client.get(self._url, params=params)
            response.raise_for_status()
            return parse_snapshot(response.json())
        except httpx.HTTPStatusError as exc:
            log.warning("Snapshot fetch failed: HTTP %d %s", exc.response.status_code, exc.response.reason_phrase)
        except httpx.RequestError as exc:
            log.warning("Snapshot fetch failed: %s", exc)
        except (ValueError, TypeError, AttributeError, KeyError) as exc:
            log.warning("Snapshot document is malformed: %s", exc)
        return None
