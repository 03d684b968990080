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
from gh_forum.domain.interfaces import IDiscussionBackend
from gh_forum.infrastructure.credentials import CredentialStore

log = logging.getLogger(__name__)

LIVE_MODE= "live"
GUEST_MODE= "guest"
DEFAULT_PAGE_SIZE= 20


class DiscussionRepository:
    """
    Source-agnostic API over the forum's discussions.

    Every call picks its backend fresh: a stored credential means the live
    GraphQL backend, no credential means the read-only snapshot backend.
    The choice is never cached, so signing in or out (or a token being
    cleared as expired) takes effect on the very next call.

    All dependencies are injected. This class creates NOTHING itself:
      - CredentialStore       → is there a token? (read-only here)
      - IDiscussionBackend x2 → live and guest strategies

    Callers should expect one asymmetry: in guest mode list_discussions
    always returns the whole snapshot as the last page.
    """

    def __init__(self, credentials: CredentialStore, live: IDiscussionBackend, guest: IDiscussionBackend) -> None:
        self._credentials = credentials
        self._live        = live
        self._guest       = guest

    @property
    def mode(self) -> str:
        return LIVE_MODE if self._credentials.has_token() else GUEST_MODE

    def _backend(self) -> IDiscussionBackend:
        if self._credentials.has_token():
            return self._live
        log.debug("No credential stored, serving from snapshot")
        return self._guest

    # Reads
    async def list_discussions(self, page_size: int = DEFAULT_PAGE_SIZE, cursor: str | None = None) -> DiscussionPage:
        return await self._backend().list_discussions(page_size, cursor)

    async def get_discussion(self, number: int) -> Discussion:
        return await self._backend().get_discussion(number)

    async def list_categories(self) -> list[Category]:
        return await self._backend().list_categories()

    async def list_labels(self) -> list[Label]:
        return await self._backend().list_labels()

    async def search(self, text: str, limit: int = DEFAULT_PAGE_SIZE) -> SearchResult:
        return await self._backend().search(text, limit)

    async def current_user(self) -> Viewer | None:
        return await self._backend().current_user()

    # Writes (live mode only; guest mode raises AuthRequiredError)
    async def create_discussion(self, category_id: str, title: str, body: str) -> CreatedDiscussion:
        return await self._backend().create_discussion(category_id, title, body)

    async def add_comment(self, discussion_id: str, body: str, reply_to_id: str | None = None) -> CommentRef:
        return await self._backend().add_comment(discussion_id, body, reply_to_id)

    async def react(self, subject_id: str, content: ReactionContent = ReactionContent.THUMBS_UP) -> ReactionRef:
        return await self._backend().react(subject_id, content)

    async def unreact(self, subject_id: str, content: ReactionContent = ReactionContent.THUMBS_UP) -> ReactionRef:
        return await self._backend().unreact(subject_id, content)

    async def pin(self, discussion_id: str) -> PinState:
        return await self._backend().pin(discussion_id)

    async def unpin(self, discussion_id: str) -> PinState:
        return await self._backend().unpin(discussion_id)

    async def add_labels(self, discussion_id: str, label_ids: list[str]) -> tuple[Label, ...]:
        return await self._backend().add_labels(discussion_id, label_ids)
