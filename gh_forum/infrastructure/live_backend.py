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
from gh_forum.domain.errors import AuthRequiredError, EmptyQueryError, GraphError, NotFoundError, TransportError
from gh_forum.domain.interfaces import IDiscussionBackend, IQueryExecutor
from .credentials import CredentialStore
from .parsers import (
    parse_categories,
    parse_discussion,
    parse_discussions,
    parse_labels,
    parse_reaction_content,
    parse_viewer,
)

log = logging.getLogger(__name__)

# HTTP statuses that mean "this token is no good", as opposed to an outage
INVALID_TOKEN_STATUSES= (401, 403)
# GraphQL error types with the same meaning
INVALID_TOKEN_ERROR_TYPES= ("UNAUTHORIZED", "FORBIDDEN")

DISCUSSION_SUMMARY_FIELDS = """
        id
        number
        title
        body
        url
        createdAt
        updatedAt
        isPinned
        author { login avatarUrl url }
        category { id name emoji }
        labels(first: 5) { nodes { id name color } }
        comments { totalCount }
        reactions { totalCount }
"""

LIST_DISCUSSIONS_QUERY = """
query ListDiscussions($owner: String!, $repo: String!, $first: Int!, $after: String) {
  repository(owner: $owner, name: $repo) {
    discussions(first: $first, after: $after, orderBy: {field: UPDATED_AT, direction: DESC}) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {%s}
    }
  }
}
""" % DISCUSSION_SUMMARY_FIELDS

GET_DISCUSSION_QUERY = """
query GetDiscussion($owner: String!, $repo: String!, $number: Int!) {
  repository(owner: $owner, name: $repo) {
    discussion(number: $number) {
      id
      number
      title
      body
      bodyHTML
      url
      createdAt
      updatedAt
      isPinned
      author { login avatarUrl url }
      category { id name emoji }
      labels(first: 10) { nodes { id name color } }
      comments(first: 100) {
        totalCount
        nodes {
          id
          body
          bodyHTML
          createdAt
          author { login avatarUrl url }
          reactions { totalCount }
          replies(first: 50) {
            nodes {
              id
              body
              bodyHTML
              createdAt
              author { login avatarUrl url }
              reactions { totalCount }
            }
          }
        }
      }
      reactions { totalCount }
    }
  }
}
"""

LIST_CATEGORIES_QUERY = """
query ListCategories($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    discussionCategories(first: 20) {
      nodes { id name emoji description }
    }
  }
}
"""

LIST_LABELS_QUERY = """
query ListLabels($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    labels(first: 20) {
      nodes { id name color description }
    }
  }
}
"""

SEARCH_QUERY = """
query SearchDiscussions($query: String!, $first: Int!) {
  search(query: $query, type: DISCUSSION, first: $first) {
    discussionCount
    nodes {
      ... on Discussion {%s}
    }
  }
}
""" % DISCUSSION_SUMMARY_FIELDS

REPOSITORY_ID_QUERY = """
query RepositoryId($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) { id }
}
"""

VIEWER_QUERY = """
query Viewer {
  viewer { login name avatarUrl email }
}
"""

CREATE_DISCUSSION_MUTATION = """
mutation CreateDiscussion($repositoryId: ID!, $categoryId: ID!, $title: String!, $body: String!) {
  createDiscussion(input: {repositoryId: $repositoryId, categoryId: $categoryId, title: $title, body: $body}) {
    discussion { id number }
  }
}
"""

ADD_COMMENT_MUTATION = """
mutation AddComment($discussionId: ID!, $body: String!, $replyToId: ID) {
  addDiscussionComment(input: {discussionId: $discussionId, body: $body, replyToId: $replyToId}) {
    comment { id }
  }
}
"""

ADD_REACTION_MUTATION = """
mutation AddReaction($subjectId: ID!, $content: ReactionContent!) {
  addReaction(input: {subjectId: $subjectId, content: $content}) {
    reaction { id content }
  }
}
"""

REMOVE_REACTION_MUTATION = """
mutation RemoveReaction($subjectId: ID!, $content: ReactionContent!) {
  removeReaction(input: {subjectId: $subjectId, content: $content}) {
    reaction { id content }
  }
}
"""

PIN_MUTATION = """
mutation Pin($discussionId: ID!) {
  pinDiscussion(input: {discussionId: $discussionId}) {
    discussion { id isPinned }
  }
}
"""

UNPIN_MUTATION = """
mutation Unpin($discussionId: ID!) {
  unpinDiscussion(input: {discussionId: $discussionId}) {
    discussion { id isPinned }
  }
}
"""

ADD_LABELS_MUTATION = """
mutation AddLabels($labelableId: ID!, $labelIds: [ID!]!) {
  addLabelsToLabelable(input: {labelableId: $labelableId, labelIds: $labelIds}) {
    labelable {
      ... on Discussion {
        id
        labels(first: 10) { nodes { id name color } }
      }
    }
  }
}
"""


def token_rejected(exc: GraphError) -> bool:
    """True when the GraphQL errors blame the credential itself."""
    for error in exc.errors:
        if error.get("type") in INVALID_TOKEN_ERROR_TYPES:
            return True
        if "bad credentials" in (error.get("message") or "").lower():
            return True
    return False


class LiveBackend(IDiscussionBackend):
    """
    Serves every operation from the GitHub GraphQL API.

    Each operation is one query or mutation through the injected executor.
    The token is read from the credential store at call time, never held.
    Mutations refuse to run without it (AuthRequiredError, no request sent).

    create_discussion needs the repository's node id. It is taken from the
    constructor when known, otherwise looked up once and remembered.
    """

    def __init__(self, executor: IQueryExecutor, credentials: CredentialStore, owner: str, repo: str, repository_id: str | None = None) -> None:
        self._executor      = executor
        self._credentials   = credentials
        self._owner         = owner
        self._repo          = repo
        self._repository_id = repository_id

    @property
    def _repo_vars(self) -> dict:
        return {"owner": self._owner, "repo": self._repo}

    async def _query(self, query: str, variables: dict | None = None) -> dict:
        return await self._executor.execute(query, variables, self._credentials.token())

    async def _mutate(self, action: str, mutation: str, variables: dict) -> dict:
        token = self._credentials.token()
        if not token:
            raise AuthRequiredError(action)
        log.debug("Mutation %s", action)
        return await self._executor.mutate(mutation, variables, token)

    # Reads
    async def list_discussions(self, page_size: int, cursor: str | None = None) -> DiscussionPage:
        data = await self._query(LIST_DISCUSSIONS_QUERY, {**self._repo_vars, "first": page_size, "after": cursor})
        connection = data["repository"]["discussions"]
        page_info  = connection["pageInfo"]
        return DiscussionPage(
            items         = parse_discussions(connection["nodes"]),
            has_next_page = page_info["hasNextPage"],
            next_cursor   = page_info["endCursor"],
        )

    async def get_discussion(self, number: int) -> Discussion:
        data = await self._query(GET_DISCUSSION_QUERY, {**self._repo_vars, "number": int(number)})
        node = (data.get("repository") or {}).get("discussion")
        if not node:
            raise NotFoundError(int(number))
        return parse_discussion(node)

    async def list_categories(self) -> list[Category]:
        data = await self._query(LIST_CATEGORIES_QUERY, self._repo_vars)
        return list(parse_categories(data["repository"]["discussionCategories"]))

    async def list_labels(self) -> list[Label]:
        data = await self._query(LIST_LABELS_QUERY, self._repo_vars)
        return list(parse_labels(data["repository"]["labels"]))

    async def search(self, text: str, limit: int) -> SearchResult:
        if not text or not text.strip():
            raise EmptyQueryError()
        # scope the search to this repository server-side
        search_text = f"repo:{self._owner}/{self._repo} {text.strip()} in:title,body"
        data   = await self._query(SEARCH_QUERY, {"query": search_text, "first": limit})
        search = data["search"]
        return SearchResult(
            total_count = search["discussionCount"],
            items       = parse_discussions(search["nodes"]),
        )

    async def current_user(self) -> Viewer | None:
        """
        Return the signed-in user. An invalid or expired token is cleared
        from storage and reported as None, so later calls fall back to
        guest mode instead of failing again. Outages and other GraphQL
        errors (RATE_LIMITED, say) still raise and keep the token.
        """
        token = self._credentials.token()
        if not token:
            return None
        try:
            data = await self._executor.execute(VIEWER_QUERY, None, token)
        except GraphError as exc:
            if not token_rejected(exc):
                raise
            log.warning("Stored token rejected (%s); signing out", exc)
            self._credentials.clear()
            return None
        except TransportError as exc:
            if exc.status not in INVALID_TOKEN_STATUSES:
                raise
            log.warning("Stored token rejected (HTTP %d); signing out", exc.status)
            self._credentials.clear()
            return None
        viewer = data.get("viewer")
        return parse_viewer(viewer) if viewer else None

    # Writes
    async def repository_id(self) -> str:
        if self._repository_id is None:
            data = await self._query(REPOSITORY_ID_QUERY, self._repo_vars)
            self._repository_id = data["repository"]["id"]
        return self._repository_id

    async def create_discussion(self, category_id: str, title: str, body: str) -> CreatedDiscussion:
        if not self._credentials.has_token():
            raise AuthRequiredError("creating a discussion")
        repository_id = await self.repository_id()
        data = await self._mutate("creating a discussion", CREATE_DISCUSSION_MUTATION, {
            "repositoryId": repository_id,
            "categoryId":   category_id,
            "title":        title,
            "body":         body,
        })
        node = data["createDiscussion"]["discussion"]
        log.info("Created discussion #%s", node["number"])
        return CreatedDiscussion(id=node["id"], number=int(node["number"]))

    async def add_comment(self, discussion_id: str, body: str, reply_to_id: str | None = None) -> CommentRef:
        data = await self._mutate("commenting", ADD_COMMENT_MUTATION, {
            "discussionId": discussion_id,
            "body":         body,
            "replyToId":    reply_to_id,
        })
        return CommentRef(id=data["addDiscussionComment"]["comment"]["id"])

    async def react(self, subject_id: str, content: ReactionContent) -> ReactionRef:
        data = await self._mutate("reacting", ADD_REACTION_MUTATION, {
            "subjectId": subject_id,
            "content":   ReactionContent(content).value,
        })
        node = data["addReaction"]["reaction"]
        return ReactionRef(id=node["id"], content=parse_reaction_content(node.get("content")))

    async def unreact(self, subject_id: str, content: ReactionContent) -> ReactionRef:
        data = await self._mutate("removing a reaction", REMOVE_REACTION_MUTATION, {
            "subjectId": subject_id,
            "content":   ReactionContent(content).value,
        })
        node = data["removeReaction"]["reaction"]
        return ReactionRef(id=node["id"], content=parse_reaction_content(node.get("content")))

    async def pin(self, discussion_id: str) -> PinState:
        data = await self._mutate("pinning", PIN_MUTATION, {"discussionId": discussion_id})
        node = data["pinDiscussion"]["discussion"]
        return PinState(id=node["id"], is_pinned=bool(node["isPinned"]))

    async def unpin(self, discussion_id: str) -> PinState:
        data = await self._mutate("unpinning", UNPIN_MUTATION, {"discussionId": discussion_id})
        node = data["unpinDiscussion"]["discussion"]
        return PinState(id=node["id"], is_pinned=bool(node["isPinned"]))

    async def add_labels(self, discussion_id: str, label_ids: list[str]) -> tuple[Label, ...]:
        data = await self._mutate("labelling", ADD_LABELS_MUTATION, {
            "labelableId": discussion_id,
            "labelIds":    list(label_ids),
        })
        labelable = data["addLabelsToLabelable"]["labelable"] or {}
        return parse_labels(labelable.get("labels"))
