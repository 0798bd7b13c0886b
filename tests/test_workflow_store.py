"""Tests for the remote-backed open/save workflow store."""

import json

import httpx
import pytest

from nodeflow.workflow.comfy_client import ComfyClient
from nodeflow.workflow.errors import IssueKind
from nodeflow.workflow.workflow_store import WorkflowStore


class FakeEngine:
    """Minimal userdata endpoint: serves one document and records saves."""

    def __init__(self, document, fail_saves=False):
        self.document = document
        self.fail_saves = fail_saves
        self.requests = []
        self.saved = []

    def __call__(self, request):
        self.requests.append(request)
        if request.method == "POST":
            if self.fail_saves:
                return httpx.Response(503, text="busy")
            self.saved.append(json.loads(request.content))
            return httpx.Response(200, json={"path": "flow.json"})
        if request.url.raw_path.startswith(b"/api/userdata/"):
            if self.document is None:
                return httpx.Response(404)
            return httpx.Response(200, json=self.document)
        return httpx.Response(200, json=[])


@pytest.fixture
def engine(workflow_data):
    return FakeEngine(workflow_data)


@pytest.fixture
async def store(comfy_config, engine):
    client = ComfyClient(config=comfy_config, transport=httpx.MockTransport(engine))
    yield WorkflowStore(client)
    await client.aclose()


async def test_open_converts_document(store):
    entry = await store.open("flow.json")

    assert entry.is_loaded is True
    assert entry.name == "flow.json"
    assert entry.error is None
    assert entry.parse_error is None
    assert entry.has_unsaved_changes is False
    assert len(entry.graph.nodes) == 5
    assert len(entry.graph.edges) == 7


async def test_open_twice_returns_same_entry(store, engine):
    first = await store.open("flow.json")
    second = await store.open("flow.json")

    assert first is second
    assert len(engine.requests) == 1
    assert [w.path for w in store.list_open()] == ["flow.json"]


async def test_open_nested_path_uses_file_name(store):
    entry = await store.open("portraits/flow.json")

    assert entry.name == "flow.json"
    assert entry.path == "portraits/flow.json"


async def test_open_fetch_failure(store, engine):
    engine.document = None

    entry = await store.open("flow.json")

    assert entry.is_loaded is False
    assert "404" in entry.error
    assert entry.parse_error is None
    assert store.get("flow.json") is None


async def test_open_parse_failure(store, engine):
    engine.document = {"nodes": "not a list"}

    entry = await store.open("flow.json")

    assert entry.graph is None
    assert entry.error is None
    assert "Invalid workflow definition structure" in entry.parse_error


async def test_save_round_trip(store, engine):
    """Test that saving posts the serialized graph and resets the entry."""
    entry = await store.open("flow.json")
    store.mark_changed("flow.json")
    assert entry.has_unsaved_changes is True

    result = await store.save("flow.json")

    assert result.ok is True
    assert result.data.revision == 4
    assert entry.has_unsaved_changes is False
    assert entry.original.revision == 4
    assert engine.saved[0]["revision"] == 4
    assert engine.saved[0]["links"] == [link.to_tuple() for link in result.data.links]


async def test_save_edited_graph(store, engine):
    entry = await store.open("flow.json")
    nodes = entry.graph.nodes
    edges = [e for e in entry.graph.edges if e.id != "e7"]

    result = await store.save("flow.json", nodes, edges)

    assert result.ok is True
    assert len(engine.saved[0]["links"]) == 6
    assert len(entry.graph.edges) == 6
    assert entry.original.get_node(5).inputs[0].link is None


async def test_save_failure_keeps_unsaved_state(comfy_config, workflow_data):
    engine = FakeEngine(workflow_data, fail_saves=True)
    async with ComfyClient(config=comfy_config, transport=httpx.MockTransport(engine)) as client:
        store = WorkflowStore(client)
        entry = await store.open("flow.json")
        store.mark_changed("flow.json")

        result = await store.save("flow.json")

    assert result.ok is False
    assert result.kind == IssueKind.NETWORK
    assert entry.has_unsaved_changes is True
    assert entry.original.revision == 3


async def test_save_unknown_path(store):
    result = await store.save("never-opened.json")

    assert result.ok is False
    assert result.kind == IssueKind.REFERENTIAL


async def test_close(store):
    await store.open("flow.json")

    assert store.close("flow.json") is True
    assert store.close("flow.json") is False
    assert store.list_open() == []


async def test_list_files(store):
    result = await store.list_files()

    assert result.ok is True
    assert result.data == []
