"""
Domain Layer — Interfaces (Abstract Contracts)
-----------------------------------------------
Abstract definitions of what the infrastructure must provide.
The application layer depends on these, never on concrete classes, so a
test can hand the repository an in-memory store or a fake executor
without changing a line of application code.
"""

from __future__ import annotations
from abc import ABC, abstractmethod

from .entities import (
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
    Snapshot,
    Viewer,
)


class IStorageBackend(ABC):
    """
    Raw string-keyed persistent storage.
    Implementations may raise StorageError; the key-value adapter absorbs it.
    """

    @abstractmethod
    def read(self, key: str) -> str | None:
        """Return the stored string, or None when the key is absent."""
        ...

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """Insert or overwrite the value stored under key."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is not an error."""
        ...

    @abstractmethod
    def keys(self, prefix: str = "") -> list[str]:
        """Return every stored key starting with prefix."""
        ...


class IQueryExecutor(ABC):
    """
    Contract for anything that runs GraphQL documents against the remote API.
    """

    @abstractmethod
    async def execute(self, query: str, variables: dict | None = None, token: str | None = None) -> dict:
        """
        Run one query and return the envelope's `data` object.

        Raises:
            TransportError — network failure or non-2xx status
            GraphError     — the envelope carried an `errors` array
        """
        ...

    @abstractmethod
    async def mutate(self, mutation: str, variables: dict | None, token: str | None) -> dict:
        """
        Like execute(), but refuses to run without a token.

        Raises:
            AuthRequiredError — token is empty; no request is sent
        """
        ...


class ISnapshotSource(ABC):
    """Contract for the static snapshot loader."""

    @abstractmethod
    async def load(self) -> Snapshot:
        """
        Return the snapshot. Never raises: an unreachable or malformed
        document yields Snapshot.empty().
        """
        ...


class IDiscussionBackend(ABC):
    """
    Strategy interface behind the repository. LiveBackend talks to the
    GraphQL API; GuestBackend serves the static snapshot read-only.
    """

    @abstractmethod
    async def list_discussions(self, page_size: int, cursor: str | None = None) -> DiscussionPage: ...

    @abstractmethod
    async def get_discussion(self, number: int) -> Discussion:
        """Raises NotFoundError when no discussion has that number."""
        ...

    @abstractmethod
    async def list_categories(self) -> list[Category]: ...

    @abstractmethod
    async def list_labels(self) -> list[Label]: ...

    @abstractmethod
    async def search(self, text: str, limit: int) -> SearchResult: ...

    @abstractmethod
    async def create_discussion(self, category_id: str, title: str, body: str) -> CreatedDiscussion: ...

    @abstractmethod
    async def add_comment(self, discussion_id: str, body: str, reply_to_id: str | None = None) -> CommentRef: ...

    @abstractmethod
    async def react(self, subject_id: str, content: ReactionContent) -> ReactionRef: ...

    @abstractmethod
    async def unreact(self, subject_id: str, content: ReactionContent) -> ReactionRef: ...

    @abstractmethod
    async def pin(self, discussion_id: str) -> PinState: ...

    @abstractmethod
    async def unpin(self, discussion_id: str) -> PinState: ...

    @abstractmethod
    async def add_labels(self, discussion_id: str, label_ids: list[str]) -> tuple[Label, ...]: ...

    @abstractmethod
    async def current_user(self) -> Viewer | None:
        """Return the signed-in user, or None when there is none."""
        ...
