"""
Domain Layer — Errors
---------------------
Every failure a repository operation can surface to its caller.

  ForumError
   ├── TransportError     network failure or non-2xx HTTP status
   ├── GraphError         HTTP 2xx but the GraphQL envelope carried `errors`
   ├── AuthRequiredError  mutation attempted without a credential
   ├── EmptyQueryError    live search with no search text
   └── NotFoundError      no discussion with that number

StorageError is deliberately outside ForumError: the key-value adapter
converts it into a fallback value and it never reaches callers.
"""

from __future__ import annotations


class ForumError(Exception):
    """Base class for errors raised by repository operations."""


class TransportError(ForumError):
    """
    The request never produced a usable response: the network failed
    (status is None) or the server answered with a non-success status.
    """

    def __init__(self, message: str, status: int | None = None, text: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.text   = text


class GraphError(ForumError):
    """The endpoint answered 2xx but reported errors in the response envelope."""

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class AuthRequiredError(ForumError):
    """A write was attempted without a credential to attribute it to."""

    def __init__(self, action: str = "this action") -> None:
        super().__init__(f"Sign in required for {action}")
        self.action = action


class EmptyQueryError(ForumError):
    """Live search was called with empty or whitespace-only text."""

    def __init__(self) -> None:
        super().__init__("Search text must not be empty")


class NotFoundError(ForumError):
    """No discussion with the requested number (possibly not synced yet)."""

    def __init__(self, number: int) -> None:
        super().__init__(f"Discussion #{number} not found (it may not be synced yet)")
        self.number = number


class StorageError(Exception):
    """A storage backend could not read or write a value."""


class StorageQuotaError(StorageError):
    """A write would exceed the backend's capacity."""
