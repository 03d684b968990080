"""
Turns repository output into display structures: what a list row or a
detail page shows, already formatted. No HTML here; templating is the
front end's job.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone

from gh_forum.domain.entities import Comment, Discussion
from gh_forum.domain.errors import (
    AuthRequiredError,
    EmptyQueryError,
    GraphError,
    NotFoundError,
    TransportError,
)

EXCERPT_LENGTH= 160

# Display names for common GitHub labels, looked up case-insensitively.
LABEL_DISPLAY_NAMES = {
    "bug":              "🐛 Bug",
    "documentation":    "📚 Documentation",
    "enhancement":      "✨ Enhancement",
    "help wanted":      "🆘 Help wanted",
    "invalid":          "❌ Invalid",
    "question":         "❓ Question",
    "feature":          "✨ Feature",
    "discussion":       "💬 Discussion",
    "announcement":     "📢 Announcement",
    "testing":          "🧪 Testing",
    "urgent":           "🔥 Urgent",
    "dependencies":     "📦 Dependencies",
    "chore":            "🧹 Chore",
    "refactor":         "🔨 Refactor",
    "style":            "🎨 Style",
    "fix":              "🐛 Fix",
    "ci/cd":            "🚀 CI/CD",
    "build":            "👷 Build",
    "test":             "🧪 Test",
    "ui/ux":            "🎨 UI/UX",
    "performance":      "⚡ Performance",
    "security":         "🔒 Security",
    "design":           "🎨 Design",
    "backend":          "⚙️ Backend",
    "frontend":         "🖥️ Frontend",
    "database":         "💾 Database",
}

# Images, links, emphasis and heading markers removed before excerpting
_MARKDOWN_NOISE = [
    (re.compile(r"!\[[^\]]*\]\([^)]*\)"), ""),
    (re.compile(r"\[([^\]]*)\]\([^)]*\)"), r"\1"),
    (re.compile(r"```.*?```", re.S), " "),
    (re.compile(r"[`*_>#~]+"), ""),
    (re.compile(r"\s+"), " "),
]


@dataclass(frozen=True)
class DiscussionCard:
    """One row of a discussion list."""
    number:         int
    title:          str
    excerpt:        str
    author_login:   str
    avatar_url:     str | None
    category:       str
    labels:         tuple[str, ...]
    label_colors:   tuple[str, ...]
    comment_count:  str
    reaction_count: str
    when:           str
    is_pinned:      bool


@dataclass(frozen=True)
class CommentView:
    author_login:   str
    avatar_url:     str | None
    body:           str
    when:           str
    reaction_count: str
    replies:        tuple[CommentView, ...] = ()


@dataclass(frozen=True)
class DiscussionDetail:
    card:     DiscussionCard
    body:     str
    comments: tuple[CommentView, ...]
    # guest mode: the count is known but the bodies were never synced
    comments_hidden: bool


def translate_label(name: str) -> str:
    if not name:
        return name
    return LABEL_DISPLAY_NAMES.get(name.lower(), name)


def truncate(text: str, max_length: int, suffix: str = "...") -> str:
    if len(text) <= max_length:
        return text
    return text[: max(max_length - len(suffix), 0)] + suffix


def format_number(value: int) -> str:
    return f"{value:,}"


def excerpt(body: str, max_length: int = EXCERPT_LENGTH) -> str:
    text = body or ""
    for pattern, replacement in _MARKDOWN_NOISE:
        text = pattern.sub(replacement, text)
    return truncate(text.strip(), max_length)


def format_relative_time(moment: datetime | None, now: datetime | None = None) -> str:
    """
    "just now" / "N minutes ago" / "N hours ago" / "N days ago" for the last
    week, then a plain date ("March 4, 2025").
    """
    if moment is None:
        return ""
    now = now or datetime.now(tz=timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    seconds = (now - moment).total_seconds()
    minutes = int(seconds // 60)
    hours   = int(seconds // 3600)
    days    = int(seconds // 86400)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    if days < 7:
        return f"{days} day{'s' if days != 1 else ''} ago"
    return f"{moment.strftime('%B')} {moment.day}, {moment.year}"


def discussion_card(discussion: Discussion, now: datetime | None = None) -> DiscussionCard:
    category = discussion.category
    return DiscussionCard(
        number         = discussion.number,
        title          = discussion.title,
        excerpt        = excerpt(discussion.body),
        author_login   = discussion.author.login if discussion.author else "ghost",
        avatar_url     = discussion.author.avatar_url if discussion.author else None,
        category       = f"{category.emoji or ''} {category.name}".strip() if category else "",
        labels         = tuple(translate_label(l.name) for l in discussion.labels),
        label_colors   = tuple(f"#{l.color}" for l in discussion.labels),
        comment_count  = format_number(discussion.comment_count),
        reaction_count = format_number(discussion.reaction_count),
        when           = format_relative_time(discussion.updated_at or discussion.created_at, now),
        is_pinned      = discussion.is_pinned,
    )


def comment_view(comment: Comment, now: datetime | None = None) -> CommentView:
    return CommentView(
        author_login   = comment.author.login if comment.author else "ghost",
        avatar_url     = comment.author.avatar_url if comment.author else None,
        body           = comment.body,
        when           = format_relative_time(comment.created_at, now),
        reaction_count = format_number(comment.reaction_count),
        replies        = tuple(comment_view(r, now) for r in comment.replies),
    )


def discussion_detail(discussion: Discussion, now: datetime | None = None) -> DiscussionDetail:
    return DiscussionDetail(
        card            = discussion_card(discussion, now),
        body            = discussion.body,
        comments        = tuple(comment_view(c, now) for c in discussion.comments),
        comments_hidden = discussion.comment_count > 0 and not discussion.comments,
    )


def error_message(exc: BaseException) -> str:
    """One human-readable message per error kind."""
    if isinstance(exc, AuthRequiredError):
        return f"Please sign in with GitHub first ({exc.action} needs an account)."
    if isinstance(exc, EmptyQueryError):
        return "Type something to search for."
    if isinstance(exc, NotFoundError):
        return f"Discussion #{exc.number} isn't available yet. It may not have been synced."
    if isinstance(exc, GraphError):
        return f"GitHub rejected the request: {exc}"
    if isinstance(exc, TransportError):
        if exc.status is None:
            return "Could not reach GitHub. Check your connection and try again."
        return f"GitHub returned an error (HTTP {exc.status}). Try again later."
    return f"Something went wrong: {exc}"
