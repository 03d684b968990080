from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ReactionContent(str, Enum):
    """The reaction kinds GitHub accepts on discussions and comments."""
    THUMBS_UP   = "THUMBS_UP"
    THUMBS_DOWN = "THUMBS_DOWN"
    LAUGH       = "LAUGH"
    HOORAY      = "HOORAY"
    CONFUSED    = "CONFUSED"
    HEART       = "HEART"
    ROCKET      = "ROCKET"
    EYES        = "EYES"


@dataclass(frozen=True)
class Author:
    login:      str
    avatar_url: str | None
    url:        str | None = None


@dataclass(frozen=True)
class Category:
    id:          str
    name:        str
    emoji:       str | None
    description: str | None = None


@dataclass(frozen=True)
class Label:
    """
    Repository label. Colour is the bare hex string GitHub sends ("d73a4a"),
    without a leading '#'. Labels embedded in snapshot discussions carry no id.
    """
    id:          str | None
    name:        str
    color:       str
    description: str | None = None


@dataclass(frozen=True)
class Comment:
    """
    A discussion comment. Replies are Comments too, but only one level deep:
    a reply's own `replies` is always empty.
    """
    id:             str
    body:           str
    created_at:     datetime | None
    author:         Author | None
    replies:        tuple[Comment, ...] = ()
    reaction_count: int = 0
    body_html:      str | None = None


@dataclass(frozen=True)
class Discussion:
    """
    Immutable domain entity representing one GitHub discussion.

    `number` is the stable, per-repository key used for detail lookups;
    `id` is GitHub's opaque node id, needed by mutations.

    `comments` is always a tuple. Records that only carried a comment count
    (list views, the static snapshot) get an empty tuple, so rendering code
    handles one shape in both modes.
    """
    id:             str
    number:         int
    title:          str
    body:           str
    author:         Author | None
    category:       Category | None
    labels:         tuple[Label, ...]
    comment_count:  int
    reaction_count: int
    created_at:     datetime | None
    updated_at:     datetime | None
    comments:       tuple[Comment, ...] = ()
    url:            str | None = None
    body_html:      str | None = None
    is_pinned:      bool = False


@dataclass(frozen=True)
class DiscussionPage:
    """
    One page of a discussion listing.

    In guest mode the whole snapshot is returned as a single page, so
    `has_next_page` is always False there.
    """
    items:         tuple[Discussion, ...]
    has_next_page: bool
    next_cursor:   str | None = None


@dataclass(frozen=True)
class SearchResult:
    total_count: int
    items:       tuple[Discussion, ...]


@dataclass(frozen=True)
class Viewer:
    """The authenticated GitHub user behind the stored credential."""
    login:      str
    name:       str | None
    avatar_url: str | None
    email:      str | None


@dataclass(frozen=True)
class CreatedDiscussion:
    id:     str
    number: int


@dataclass(frozen=True)
class CommentRef:
    id: str


@dataclass(frozen=True)
class ReactionRef:
    id:      str
    content: ReactionContent | None


@dataclass(frozen=True)
class PinState:
    id:        str
    is_pinned: bool


@dataclass(frozen=True)
class SnapshotMetadata:
    last_updated:      datetime | None
    total_discussions: int


@dataclass(frozen=True)
class Snapshot:
    """
    Point-in-time mirror of a bounded subset of the live discussions,
    written by an external batch job and read-only for this process.
    """
    metadata:    SnapshotMetadata
    discussions: tuple[Discussion, ...] = field(default_factory=tuple)
    categories:  tuple[Category, ...] = field(default_factory=tuple)
    labels:      tuple[Label, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> Snapshot:
        """Structurally valid snapshot with nothing in it."""
        return cls(metadata=SnapshotMetadata(last_updated=None, total_discussions=0))
