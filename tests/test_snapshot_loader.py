"""Tests for StaticSnapshotLoader: single fetch, cache-busting, failure fallback."""
import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from gh_forum.domain.entities import Snapshot
from gh_forum.infrastructure.snapshot_loader import StaticSnapshotLoader, parse_snapshot

from conftest import SNAPSHOT_URL, FakeGitHub, discussion_node, snapshot_document


def loader_for(fake):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake.handler))
    return StaticSnapshotLoader(client, SNAPSHOT_URL)


@pytest.mark.asyncio
async def test_load_parses_document():
    snapshot = await loader_for(FakeGitHub()).load()

    assert [d.number for d in snapshot.discussions] == [1, 3, 5]
    assert [c.name for c in snapshot.categories] == ["General", "Ideas"]
    assert [l.name for l in snapshot.labels] == ["bug", "question"]
    assert snapshot.metadata.total_discussions == 3
    assert snapshot.metadata.last_updated == datetime(2026, 10, 3, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_second_load_uses_cache():
    fake = FakeGitHub()
    loader = loader_for(fake)

    first  = await loader.load()
    second = await loader.load()

    assert first is second
    assert len(fake.snapshot_requests) == 1


@pytest.mark.asyncio
async def test_request_carries_cache_buster():
    fake = FakeGitHub()
    await loader_for(fake).load()

    url = fake.snapshot_requests[0].url
    assert url.path == "/data.json"
    assert url.params["t"].isdigit()


@pytest.mark.asyncio
async def test_concurrent_first_loads_share_one_fetch():
    fake = FakeGitHub()
    loader = loader_for(fake)

    results = await asyncio.gather(*[loader.load() for _ in range(5)])

    assert len(fake.snapshot_requests) == 1
    assert all(r is results[0] for r in results)


@pytest.mark.asyncio
async def test_http_404_returns_empty_snapshot():
    snapshot = await loader_for(FakeGitHub(snapshot_status=404)).load()

    assert snapshot == Snapshot.empty()
    assert snapshot.discussions == ()
    assert snapshot.categories == ()
    assert snapshot.labels == ()


@pytest.mark.asyncio
async def test_failure_is_not_cached():
    fake = FakeGitHub(snapshot_status=503)
    loader = loader_for(fake)

    assert (await loader.load()).discussions == ()
    fake.snapshot_status = 200
    assert len((await loader.load()).discussions) == 3
    assert len(fake.snapshot_requests) == 2


@pytest.mark.asyncio
async def test_network_error_returns_empty_snapshot():
    def boom(request):
        raise httpx.ConnectError("no route to host", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(boom))
    snapshot = await StaticSnapshotLoader(client, SNAPSHOT_URL).load()
    assert snapshot == Snapshot.empty()


@pytest.mark.asyncio
@pytest.mark.parametrize("document", [[1, 2, 3], {"discussions": [{"title": "no id"}]}, "oops"])
async def test_malformed_document_never_raises(document):
    snapshot = await loader_for(FakeGitHub(snapshot=document)).load()
    assert snapshot.categories == ()


@pytest.mark.asyncio
async def test_invalidate_forces_refetch():
    fake = FakeGitHub()
    loader = loader_for(fake)
    await loader.load()
    loader.invalidate()
    assert loader.cached is None
    await loader.load()
    assert len(fake.snapshot_requests) == 2


def test_connection_shaped_document_is_accepted():
    document = {
        "discussions": {"nodes": [discussion_node(7, "Old format", "body")]},
        "discussionCategories": {"nodes": [{"id": "DIC_1", "name": "Q&A", "emoji": "🙏"}]},
        "labels": {"nodes": []},
    }
    snapshot = parse_snapshot(document)

    assert [d.number for d in snapshot.discussions] == [7]
    assert snapshot.categories[0].name == "Q&A"
    assert snapshot.metadata.total_discussions == 1
    assert snapshot.metadata.last_updated is None


@pytest.mark.asyncio
async def test_one_bad_record_does_not_empty_the_snapshot():
    document = snapshot_document()
    document["discussions"].append(None)
    document["categories"].append({"id": "DIC_nameless"})
    document["labels"].insert(0, {"id": "LA_nameless", "color": "ffffff"})

    snapshot = await loader_for(FakeGitHub(snapshot=document)).load()

    assert [d.number for d in snapshot.discussions] == [1, 3, 5]
    assert [c.name for c in snapshot.categories] == ["General", "Ideas"]
    assert [l.name for l in snapshot.labels] == ["bug", "question"]


def test_snapshot_discussions_have_empty_comment_sequence():
    snapshot = parse_snapshot(snapshot_document())
    for discussion in snapshot.discussions:
        assert discussion.comments == ()
        assert discussion.comment_count == 2
