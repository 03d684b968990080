"""
main.py — Dependency Wiring (Composition Root)
------------------------------------------------
This file has ONE job: wire all the pieces together and run one command.

It does NOT contain any business logic. It just:
  1. Reads configuration from environment variables
  2. Creates concrete implementations of each interface
  3. Injects them into the classes that need them
  4. Calls one DiscussionRepository operation
  5. Prints the presenter's view of the result and exits

Dependency graph (what depends on what):
                        main.py  (wires everything)
                           │
                  DiscussionRepository
                           │
          ┌────────────────┼──────────────────┐
          ▼                ▼                  ▼
   CredentialStore    LiveBackend         GuestBackend
          │                │                  │
    KeyValueStore    GraphQLExecutor   StaticSnapshotLoader
          │                └───── httpx.AsyncClient
   IStorageBackend
 (Postgres | InMemory)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import dataclass

import httpx
import psycopg2

from gh_forum.application import presenter
from gh_forum.application.repository import DEFAULT_PAGE_SIZE, DiscussionRepository
from gh_forum.domain.entities import ReactionContent
from gh_forum.domain.errors import ForumError
from gh_forum.domain.interfaces import IStorageBackend
from gh_forum.infrastructure.credentials import CredentialStore
from gh_forum.infrastructure.graphql_executor import GITHUB_API_URL, GraphQLExecutor
from gh_forum.infrastructure.guest_backend import GuestBackend
from gh_forum.infrastructure.kv_store import KeyValueStore
from gh_forum.infrastructure.live_backend import LiveBackend
from gh_forum.infrastructure.memory_storage import InMemoryStorageBackend
from gh_forum.infrastructure.postgres_storage import PostgresStorageBackend
from gh_forum.infrastructure.snapshot_loader import StaticSnapshotLoader

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

HTTP_TIMEOUT= 30.0


@dataclass(frozen=True)
class AppConfig:
    owner:         str
    repo:          str
    snapshot_url:  str
    graphql_url:   str
    database_url:  str | None
    repository_id: str | None


def _read_env(environ=os.environ) -> AppConfig:
    """
    Read configuration from environment variables.
    Fails fast with a clear error if a required one is missing.
    """
    owner = environ.get("FORUM_OWNER")
    repo  = environ.get("FORUM_REPO")

    if not owner:
        log.error("FORUM_OWNER environment variable is required")
        sys.exit(1)

    if not repo:
        log.error("FORUM_REPO environment variable is required")
        sys.exit(1)

    return AppConfig(
        owner         = owner,
        repo          = repo,
        snapshot_url  = environ.get("FORUM_SNAPSHOT_URL") or f"https://{owner}.github.io/{repo}/data.json",
        graphql_url   = environ.get("GITHUB_GRAPHQL_URL") or GITHUB_API_URL,
        database_url  = environ.get("DATABASE_URL") or None,
        repository_id = environ.get("FORUM_REPOSITORY_ID") or None,
    )


# ---------------------------------------------------------------------------
# Dependency wiring
# ---------------------------------------------------------------------------

def build_repository(config: AppConfig, client: httpx.AsyncClient, storage: IStorageBackend) -> tuple[DiscussionRepository, CredentialStore]:
    """
    The only place that knows which concrete class implements each interface.
    """
    credentials = CredentialStore(KeyValueStore(storage))
    live = LiveBackend(
        executor      = GraphQLExecutor(client, config.graphql_url),
        credentials   = credentials,
        owner         = config.owner,
        repo          = config.repo,
        repository_id = config.repository_id,
    )
    guest = GuestBackend(StaticSnapshotLoader(client, config.snapshot_url))
    return DiscussionRepository(credentials, live, guest), credentials


def _print_card(card: presenter.DiscussionCard) -> None:
    pin    = "📌 " if card.is_pinned else ""
    labels = f"  [{', '.join(card.labels)}]" if card.labels else ""
    print(f"#{card.number:<5} {pin}{card.title}{labels}")
    print(f"       {card.category} · {card.author_login} · {card.when} · "
          f"💬 {card.comment_count} · 👍 {card.reaction_count}")


def _print_detail(detail: presenter.DiscussionDetail) -> None:
    _print_card(detail.card)
    print()
    print(detail.body)
    print()
    if detail.comments_hidden:
        print(f"({detail.card.comment_count} comments, sign in to read them)")
    for comment in detail.comments:
        print(f"— {comment.author_login}, {comment.when}: {comment.body}")
        for reply in comment.replies:
            print(f"    ↳ {reply.author_login}, {reply.when}: {reply.body}")


async def run_command(args: argparse.Namespace, repository: DiscussionRepository, credentials: CredentialStore) -> int:
    """Execute one subcommand. Returns the process exit code."""
    log.debug("Running %r in %s mode", args.command, repository.mode)

    if args.command == "login":
        if not credentials.save(args.token):
            log.error("Could not store the token")
            return 1
        viewer = await repository.current_user()
        if viewer is None:
            log.error("GitHub rejected the token")
            return 1
        print(f"Signed in as {viewer.login}")

    elif args.command == "logout":
        credentials.clear()
        print("Signed out")

    elif args.command == "whoami":
        viewer = await repository.current_user()
        print(f"{viewer.login} ({viewer.name or 'no name'})" if viewer else "guest")

    elif args.command == "list":
        page = await repository.list_discussions(args.page_size, args.cursor)
        for discussion in page.items:
            _print_card(presenter.discussion_card(discussion))
        if page.has_next_page:
            print(f"\nmore: --cursor {page.next_cursor}")

    elif args.command == "show":
        discussion = await repository.get_discussion(args.number)
        _print_detail(presenter.discussion_detail(discussion))

    elif args.command == "search":
        result = await repository.search(" ".join(args.text), args.limit)
        print(f"{result.total_count} result(s)")
        for discussion in result.items:
            _print_card(presenter.discussion_card(discussion))

    elif args.command == "categories":
        for category in await repository.list_categories():
            print(f"{category.emoji or ' '} {category.name}  ({category.id})")

    elif args.command == "labels":
        for label in await repository.list_labels():
            print(f"#{label.color} {presenter.translate_label(label.name)}  ({label.id})")

    elif args.command == "create":
        created = await repository.create_discussion(args.category_id, args.title, args.body)
        print(f"Created discussion #{created.number}")

    elif args.command == "comment":
        ref = await repository.add_comment(args.discussion_id, args.body, args.reply_to)
        print(f"Comment {ref.id} added")

    elif args.command in ("react", "unreact"):
        operation = repository.react if args.command == "react" else repository.unreact
        ref = await operation(args.subject_id, ReactionContent(args.content))
        print(f"{args.command}: {ref.content.value if ref.content else args.content} on {args.subject_id}")

    elif args.command in ("pin", "unpin"):
        operation = repository.pin if args.command == "pin" else repository.unpin
        state = await operation(args.discussion_id)
        print(f"{state.id} pinned={state.is_pinned}")

    elif args.command == "label":
        labels = await repository.add_labels(args.discussion_id, args.label_ids)
        print(", ".join(presenter.translate_label(l.name) for l in labels))

    return 0


async def build_and_run(config: AppConfig, args: argparse.Namespace) -> int:
    # Infrastructure: create the HTTP client and (optionally) the DB connection
    client = httpx.AsyncClient(timeout=HTTP_TIMEOUT)
    conn   = psycopg2.connect(config.database_url) if config.database_url else None

    try:
        if conn is not None:
            storage = PostgresStorageBackend(conn)
            storage.ensure_schema()
        else:
            log.info("DATABASE_URL not set; credentials last for this run only")
            storage = InMemoryStorageBackend()

        repository, credentials = build_repository(config, client, storage)
        try:
            return await run_command(args, repository, credentials)
        except ForumError as exc:
            log.error("%s", presenter.error_message(exc))
            return 1

    finally:
        # Always clean up connections, even if an exception occurred
        await client.aclose()
        if conn is not None:
            conn.close()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Read and post to a GitHub Discussions forum")
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="store a GitHub token")
    login.add_argument("token")
    sub.add_parser("logout", help="forget the stored token")
    sub.add_parser("whoami", help="show the signed-in user")

    listing = sub.add_parser("list", help="list discussions")
    listing.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE)
    listing.add_argument("--cursor", default=None)

    show = sub.add_parser("show", help="show one discussion")
    show.add_argument("number", type=int)

    search = sub.add_parser("search", help="search discussions")
    search.add_argument("text", nargs="*")
    search.add_argument("--limit", type=int, default=DEFAULT_PAGE_SIZE)

    sub.add_parser("categories", help="list categories")
    sub.add_parser("labels", help="list labels")

    create = sub.add_parser("create", help="start a discussion")
    create.add_argument("category_id")
    create.add_argument("title")
    create.add_argument("body")

    comment = sub.add_parser("comment", help="comment on a discussion")
    comment.add_argument("discussion_id")
    comment.add_argument("body")
    comment.add_argument("--reply-to", default=None)

    for name in ("react", "unreact"):
        reaction = sub.add_parser(name, help=f"{name} to a discussion or comment")
        reaction.add_argument("subject_id")
        reaction.add_argument("--content", default=ReactionContent.THUMBS_UP.value,
                              choices=[c.value for c in ReactionContent])

    for name in ("pin", "unpin"):
        sub.add_parser(name, help=f"{name} a discussion").add_argument("discussion_id")

    label = sub.add_parser("label", help="add labels to a discussion")
    label.add_argument("discussion_id")
    label.add_argument("label_ids", nargs="+")

    return parser


def cli(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )

    config = _read_env()
    sys.exit(asyncio.run(build_and_run(config, args)))


if __name__ == "__main__":
    cli()
