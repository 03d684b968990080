"""Shared fixtures: a fake GitHub (GraphQL + snapshot host) behind httpx.MockTransport."""
import json
import re

import httpx
import pytest

from main import AppConfig, build_repository
from gh_forum.infrastructure.credentials import CredentialStore
from gh_forum.infrastructure.kv_store import KeyValueStore
from gh_forum.infrastructure.memory_storage import InMemoryStorageBackend

SNAPSHOT_URL = "https://forum.example.test/data.json"
GRAPHQL_URL  = "https://api.example.test/graphql"
TOKEN        = "ghp_testtoken123"

_OPERATION = re.compile(r"^\s*(?:query|mutation)\s+(\w+)", re.M)


def operation_name(query: str) -> str:
    match = _OPERATION.search(query)
    return match.group(1) if match else ""


def discussion_node(number, title, body, **extra):
    """A discussion node the way GitHub (and the snapshot) spell it."""
    node = {
        "id": f"D_kwDO{number:04d}",
        "number": number,
        "title": title,
        "body": body,
        "url": f"https://github.com/acme/forum/discussions/{number}",
        "createdAt": "2026-10-01T12:00:00Z",
        "updatedAt": "2026-10-02T08:30:00Z",
        "author": {"login": "octocat", "avatarUrl": "https://avatars.example.test/octocat"},
        "category": {"id": "DIC_general", "name": "General", "emoji": "💬"},
        "labels": {"nodes": [{"name": "question", "color": "d876e3"}]},
        "comments": {"totalCount": 2},
        "reactions": {"totalCount": 4},
    }
    node.update(extra)
    return node


def snapshot_document():
    return {
        "metadata": {"lastUpdated": "2026-10-03T00:00:00.000Z", "totalDiscussions": 3},
        "categories": [
            {"id": "DIC_general", "name": "General", "emoji": "💬", "description": "Anything goes"},
            {"id": "DIC_ideas", "name": "Ideas", "emoji": "💡", "description": "Feature ideas"},
        ],
        "labels": [
            {"id": "LA_bug", "name": "bug", "color": "d73a4a", "description": "Something isn't working"},
            {"id": "LA_question", "name": "question", "color": "d876e3", "description": None},
        ],
        "discussions": [
            discussion_node(1, "Welcome to the forum", "Say hello and introduce yourself."),
            discussion_node(3, "Python packaging tips", "Prefer PYPROJECT.toml over setup.py."),
            discussion_node(5, "Release notes for v2", "Version 2 ships a dark theme."),
        ],
    }


class FakeGitHub:
    """
    Request handler for httpx.MockTransport.

    GraphQL responses are registered per operation name; every request is
    recorded so tests can assert on call counts and payloads.
    """

    def __init__(self, snapshot=None, snapshot_status=200):
        self.snapshot        = snapshot_document() if snapshot is None else snapshot
        self.snapshot_status = snapshot_status
        self.responses       = {}
        self.requests        = []

    def respond(self, operation, data=None, errors=None, status=200):
        body = {"data": data}
        if errors is not None:
            body["errors"] = errors
        self.responses[operation] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("data.json"):
            if self.snapshot_status != 200:
                return httpx.Response(self.snapshot_status, text="Not Found")
            return httpx.Response(200, json=self.snapshot)

        payload = json.loads(request.content)
        operation = operation_name(payload["query"])
        if operation not in self.responses:
            return httpx.Response(500, text=f"no fake response for {operation}")
        status, body = self.responses[operation]
        return httpx.Response(status, json=body)

    @property
    def graphql_requests(self):
        return [r for r in self.requests if r.url.path.endswith("/graphql")]

    @property
    def snapshot_requests(self):
        return [r for r in self.requests if r.url.path.endswith("data.json")]

    def operations(self):
        return [operation_name(json.loads(r.content)["query"]) for r in self.graphql_requests]

    def variables(self, index=-1):
        return json.loads(self.graphql_requests[index].content)["variables"]


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def client(fake_github):
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_github.handler))


@pytest.fixture
def storage():
    return InMemoryStorageBackend()


@pytest.fixture
def credentials(storage):
    return CredentialStore(KeyValueStore(storage))


@pytest.fixture
def config():
    return AppConfig(
        owner         = "acme",
        repo          = "forum",
        snapshot_url  = SNAPSHOT_URL,
        graphql_url   = GRAPHQL_URL,
        database_url  = None,
        repository_id = None,
    )


@pytest.fixture
def repository(config, client, storage):
    repo, _ = build_repository(config, client, storage)
    return repo


@pytest.fixture
def signed_in(credentials):
    credentials.save(TOKEN)
    return credentials
