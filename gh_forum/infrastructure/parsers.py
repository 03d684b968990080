"""
ANTI-CORRUPTION LAYER: translates GitHub's raw GraphQL nodes (and the
snapshot document, which stores the same node shape) into our domain
entities.

GitHub sends:                       We store as:
  "avatarUrl"                    →  avatar_url
  "labels": {"nodes": [...]}     →  labels (tuple)
  "comments": {"totalCount": 3}  →  comment_count=3, comments=()

Both backends go through these functions, which is what makes a live
discussion and a snapshot discussion indistinguishable to callers.
If GitHub renames a field, fix it HERE only.
"""

from __future__ import annotations

import logging
from datetime import datetime

from gh_forum.domain.entities import (
    Author,
    Category,
    Comment,
    Discussion,
    Label,
    ReactionContent,
    Viewer,
)

log = logging.getLogger(__name__)

# what a record with missing or mistyped fields raises while being parsed
MALFORMED_NODE_ERRORS = (AttributeError, KeyError, TypeError, ValueError)


def parse_datetime(value: str | None) -> datetime | None:
    """Convert GitHub's ISO datetime string to Python datetime."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def connection_nodes(value) -> list:
    """
    Unwrap a GraphQL connection. Accepts {"nodes": [...]} or a bare list;
    anything else (None, a stray string) is an empty connection.
    """
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return value.get("nodes") or []
    return []


def total_count(value) -> int:
    if not isinstance(value, dict):
        return 0
    return value.get("totalCount", 0) or 0


def _parse_each(parse, nodes, kind: str) -> tuple:
    """
    Apply `parse` to every node of a connection. A node that is not an
    object, or lacks a required field, is logged and skipped.
    """
    parsed = []
    for node in connection_nodes(nodes):
        if not isinstance(node, dict):
            log.debug("Skipping %s node of type %s", kind, type(node).__name__)
            continue
        try:
            item = parse(node)
        except MALFORMED_NODE_ERRORS as exc:
            log.debug("Skipping malformed %s node %s: %s", kind, node.get("id"), exc)
            continue
        if item is not None:
            parsed.append(item)
    return tuple(parsed)


def parse_author(node: dict | None) -> Author | None:
    # deleted accounts come back as null
    if not node:
        return None
    return Author(
        login      = node["login"],
        avatar_url = node.get("avatarUrl"),
        url        = node.get("url"),
    )


def parse_category(node: dict | None) -> Category | None:
    if not node:
        return None
    return Category(
        id          = node.get("id", ""),
        name        = node["name"],
        emoji       = node.get("emoji"),
        description = node.get("description"),
    )


def parse_categories(nodes) -> tuple[Category, ...]:
    return _parse_each(parse_category, nodes, "category")


def parse_label(node: dict) -> Label:
    return Label(
        id          = node.get("id"),
        name        = node["name"],
        color       = (node.get("color") or "").lstrip("#"),
        description = node.get("description"),
    )


def parse_labels(nodes) -> tuple[Label, ...]:
    return _parse_each(parse_label, nodes, "label")


def parse_comment(node: dict, with_replies: bool = True) -> Comment:
    """
    Replies are parsed with with_replies=False, so anything nested deeper
    than one level is dropped.
    """
    replies: tuple[Comment, ...] = ()
    if with_replies:
        replies = _parse_each(lambda r: parse_comment(r, with_replies=False), node.get("replies"), "reply")
    return Comment(
        id             = node["id"],
        body           = node.get("body") or "",
        created_at     = parse_datetime(node.get("createdAt")),
        author         = parse_author(node.get("author")),
        replies        = replies,
        reaction_count = total_count(node.get("reactions")),
        body_html      = node.get("bodyHTML"),
    )


def parse_discussion(node: dict) -> Discussion:
    """
    Build a Discussion from a GraphQL node or a snapshot record.

    When the node only carries a comment count (list queries, snapshot
    records), `comments` is an empty tuple and `comment_count` keeps the
    count. When comment nodes are present and the count is not, the count
    falls back to the number of nodes.
    """
    comments_conn = node.get("comments") or {}
    comments = _parse_each(parse_comment, comments_conn, "comment")
    comment_count = total_count(comments_conn)

    return Discussion(
        id             = node["id"],
        number         = int(node["number"]),
        title          = node.get("title") or "",
        body           = node.get("body") or "",
        author         = parse_author(node.get("author")),
        category       = parse_category(node.get("category")),
        labels         = parse_labels(node.get("labels")),
        comment_count  = comment_count or len(comments),
        reaction_count = total_count(node.get("reactions")),
        created_at     = parse_datetime(node.get("createdAt")),
        updated_at     = parse_datetime(node.get("updatedAt")),
        comments       = comments,
        url            = node.get("url"),
        body_html      = node.get("bodyHTML"),
        is_pinned      = bool(node.get("isPinned", False)),
    )


def parse_discussions(nodes) -> tuple[Discussion, ...]:
    """
    Parse a list of discussion nodes, skipping null and malformed ones.
    Search results also contain `{}` for non-Discussion hits; those are skipped too.
    """
    return _parse_each(parse_discussion, nodes, "discussion")


def parse_viewer(node: dict) -> Viewer:
    return Viewer(
        login      = node["login"],
        name       = node.get("name"),
        avatar_url = node.get("avatarUrl"),
        email      = node.get("email") or None,
    )


def parse_reaction_content(value: str | None) -> ReactionContent | None:
    if not value:
        return None
    try:
        return ReactionContent(value)
    except ValueError:
        log.debug("Unknown reaction content %r", value)
        return None
