"""Tests for WorkflowDocument → FlowGraph conversion."""

import json

from nodeflow.workflow.errors import IssueKind
from nodeflow.workflow.graph_converter import (
    convert_workflow_to_graph,
    get_initial_viewport,
    parse_workflow_json,
)
from nodeflow.workflow.workflow_model import WorkflowDocument


def test_convert_maps_nodes_and_links_one_to_one(workflow_document):
    """Test that each node and link becomes one graph node and edge."""
    result = convert_workflow_to_graph(workflow_document)

    assert result.ok is True
    assert result.warnings == []
    assert [n.id for n in result.graph.nodes] == ["1", "2", "3", "4", "5"]
    assert sorted(e.id for e in result.graph.edges) == [f"e{i}" for i in range(1, 8)]


def test_convert_builds_handle_ids(workflow_document):
    graph = convert_workflow_to_graph(workflow_document).graph
    edge = next(e for e in graph.edges if e.id == "e4")

    assert edge.source == "2"
    assert edge.target == "4"
    assert edge.source_handle == "2-output-0"
    assert edge.target_handle == "4-input-1"
    assert edge.label == "CONDITIONING"
    assert edge.type == "smoothstep"


def test_convert_keys_widget_values_by_input_name(workflow_document):
    """Test that positional widgets_values are re-keyed by widget input name."""
    graph = convert_workflow_to_graph(workflow_document).graph

    assert graph.get_node("4").data.widget_values == {"seed": 42, "steps": 20}
    assert graph.get_node("2").data.widget_values == {"text": "a photo of a cat"}
    assert graph.get_node("5").data.widget_values == {}


def test_convert_short_widget_values_leave_keys_out(workflow_data):
    workflow_data["nodes"][3]["widgets_values"] = [7]

    graph = convert_workflow_to_graph(workflow_data).graph

    assert graph.get_node("4").data.widget_values == {"seed": 7}


def test_convert_copies_layout_and_label(workflow_document):
    graph = convert_workflow_to_graph(workflow_document).graph
    negative = graph.get_node("3")

    assert negative.position.x == 400
    assert negative.position.y == 250
    assert negative.width == 400
    assert negative.height == 200
    assert negative.data.label == "Negative"
    assert graph.get_node("1").data.label == "CheckpointLoaderSimple"


def test_convert_drops_dangling_link(dangling_workflow_data):
    """Test that a link to a missing node is dropped with a warning, not an error."""
    result = convert_workflow_to_graph(dangling_workflow_data)

    assert result.ok is True
    assert "e8" not in {e.id for e in result.graph.edges}
    assert len(result.graph.edges) == 7
    assert len(result.warnings) == 1
    assert result.warnings[0].kind == IssueKind.REFERENTIAL
    assert result.warnings[0].ref == "8"


def test_convert_does_not_mutate_document(workflow_document):
    before = workflow_document.to_dict()

    convert_workflow_to_graph(workflow_document)

    assert workflow_document.to_dict() == before


def test_convert_rejects_malformed_document(workflow_data):
    """Test that a shape error is reported on the result instead of raised."""
    del workflow_data["last_link_id"]

    result = convert_workflow_to_graph(workflow_data)

    assert result.ok is False
    assert result.graph is None
    assert result.error.kind == IssueKind.PARSE


def test_convert_rejects_truncated_document():
    result = convert_workflow_to_graph({"last_node_id": 0, "last_link_id": 0, "nodes": [], "links": []})

    assert result.ok is False
    assert result.error.kind == IssueKind.PARSE
    assert "Invalid workflow definition structure" in result.error.message


def test_initial_viewport_from_display_settings(workflow_document):
    viewport = get_initial_viewport(workflow_document)

    assert (viewport.x, viewport.y, viewport.zoom) == (10, -20, 1.5)


def test_initial_viewport_defaults(workflow_data):
    workflow_data["extra"] = {}

    viewport = get_initial_viewport(WorkflowDocument.parse(workflow_data))

    assert (viewport.x, viewport.y, viewport.zoom) == (0, 0, 1)


def test_parse_workflow_json_accepts_document(workflow_data):
    result = parse_workflow_json(json.dumps(workflow_data))

    assert result.ok is True
    assert len(result.graph.nodes) == 5


def test_parse_workflow_json_accepts_graph(workflow_document):
    """Test that an already-converted graph is loaded as is."""
    graph = convert_workflow_to_graph(workflow_document).graph

    result = parse_workflow_json(json.dumps(graph.to_dict()))

    assert result.ok is True
    assert result.graph.to_dict() == graph.to_dict()


def test_parse_workflow_json_reports_invalid_json():
    result = parse_workflow_json("{not json")

    assert result.ok is False
    assert result.error.kind == IssueKind.PARSE
    assert "Failed to parse JSON" in result.error.message


def test_parse_workflow_json_reports_unknown_shape():
    for text in ('[1, 2]', '{"hello": "world"}', '"just a string"'):
        result = parse_workflow_json(text)
        assert result.ok is False
        assert result.error.kind == IssueKind.PARSE
