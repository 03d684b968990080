from __future__ import annotations

import logging

from gh_forum.domain.entities import (
    Category,
    CommentRef,
    CreatedDiscussion,
    Discussion,
    DiscussionPage,
    Label,
    PinState,
    ReactionContent,
    ReactionRef,
    SearchResult,
    Viewer,
)
from gh_forum.domain.errors import AuthRequiredError, NotFoundError
from gh_forum.domain.interfaces import IDiscussionBackend, ISnapshotSource

log = logging.getLogger(__name__)


class GuestBackend(IDiscussionBackend):
    """
    Read-only backend over the static snapshot.

    Differences from live mode callers must handle:
      - list_discussions ignores page_size/cursor and returns the whole
        snapshot as one page (has_next_page is always False)
      - search matches locally; empty text matches everything
      - every write raises AuthRequiredError without touching the network

    Snapshot records only captured comment counts; the parser gives them
    `comments=()`, the same shape as a comment-less live discussion.
    """

    def __init__(self, snapshots: ISnapshotSource) -> None:
        self._snapshots = snapshots

    async def _discussions(self) -> tuple[Discussion, ...]:
        snapshot = await self._snapshots.load()
        return snapshot.discussions

    # Reads
    async def list_discussions(self, page_size: int, cursor: str | None = None) -> DiscussionPage:
        return DiscussionPage(items=await self._discussions(), has_next_page=False, next_cursor=None)

    async def get_discussion(self, number: int) -> Discussion:
        number = int(number)
        for discussion in await self._discussions():
            if discussion.number == number:
                return discussion
        log.debug("Discussion #%d not in snapshot", number)
        raise NotFoundError(number)

    async def list_categories(self) -> list[Category]:
        snapshot = await self._snapshots.load()
        return list(snapshot.categories)

    async def list_labels(self) -> list[Label]:
        snapshot = await self._snapshots.load()
        return list(snapshot.labels)

    async def search(self, text: str, limit: int) -> SearchResult:
        """
        Case-insensitive substring match on title and body.
        total_count counts every match; items holds at most `limit` of them.
        """
        needle  = (text or "").lower()
        matches = [
            d for d in await self._discussions()
            if needle in d.title.lower() or needle in d.body.lower()
        ]
        return SearchResult(total_count=len(matches), items=tuple(matches[:max(limit, 0)]))

    async def current_user(self) -> Viewer | None:
        return None

    # Writes: never allowed without a credential
    async def create_discussion(self, category_id: str, title: str, body: str) -> CreatedDiscussion:
        raise AuthRequiredError("creating a discussion")

    async def add_comment(self, discussion_id: str, body: str, reply_to_id: str | None = None) -> CommentRef:
        raise AuthRequiredError("commenting")

    async def react(self, subject_id: str, content: ReactionContent) -> ReactionRef:
        raise AuthRequiredError("reacting")

    async def unreact(self, subject_id: str, content: ReactionContent) -> ReactionRef:
        raise AuthRequiredError("removing a reaction")

    async def pin(self, discussion_id: str) -> PinState:
        raise AuthRequiredError("pinning")

    async def unpin(self, discussion_id: str) -> PinState:
        raise AuthRequiredError("unpinning")

    async def add_labels(self, discussion_id: str, label_ids: list[str]) -> tuple[Label, ...]:
        raise AuthRequiredError("labelling")
