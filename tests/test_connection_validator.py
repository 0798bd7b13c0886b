"""Tests for the connection legality predicate."""

from nodeflow.workflow.connection_validator import (
    is_valid_connection,
    is_valid_graph_connection,
    types_compatible,
)
from nodeflow.workflow.graph_converter import convert_workflow_to_graph
from nodeflow.workflow.graph_model import GraphEdge, HandleKind
from nodeflow.workflow.workflow_model import WorkflowDocument

OUT, IN = HandleKind.OUTPUT, HandleKind.INPUT


def test_types_compatible():
    assert types_compatible("MODEL", "MODEL") is True
    assert types_compatible("model", "MODEL") is True
    assert types_compatible("*", "LATENT") is True
    assert types_compatible("IMAGE", "*") is True
    assert types_compatible("IMAGE", "LATENT") is False
    assert types_compatible(None, "LATENT") is False


def test_output_to_matching_input_is_valid(workflow_document):
    loader, sampler = workflow_document.get_node(1), workflow_document.get_node(4)

    assert is_valid_connection(loader, OUT, 0, sampler, IN, 0) is True


def test_type_mismatch_is_rejected(workflow_document):
    loader, sampler = workflow_document.get_node(1), workflow_document.get_node(4)

    assert is_valid_connection(loader, OUT, 1, sampler, IN, 0) is False


def test_type_match_ignores_case(workflow_data):
    workflow_data["nodes"][3]["inputs"][0]["type"] = "model"
    doc = WorkflowDocument.parse(workflow_data)

    assert is_valid_connection(doc.get_node(1), OUT, 0, doc.get_node(4), IN, 0) is True


def test_wildcard_matches_any_type(workflow_data):
    workflow_data["nodes"][4]["inputs"][1]["type"] = "*"
    doc = WorkflowDocument.parse(workflow_data)

    assert is_valid_connection(doc.get_node(1), OUT, 0, doc.get_node(5), IN, 1) is True


def test_same_direction_is_rejected(workflow_document):
    loader, sampler = workflow_document.get_node(1), workflow_document.get_node(4)

    assert is_valid_connection(loader, OUT, 0, sampler, OUT, 0) is False
    assert is_valid_connection(loader, IN, 0, sampler, IN, 0) is False


def test_input_as_source_is_rejected(workflow_document):
    sampler, decoder = workflow_document.get_node(4), workflow_document.get_node(5)

    assert is_valid_connection(decoder, IN, 0, sampler, OUT, 0) is False


def test_out_of_range_port_is_rejected(workflow_document):
    loader, sampler = workflow_document.get_node(1), workflow_document.get_node(4)

    assert is_valid_connection(loader, OUT, 3, sampler, IN, 0) is False
    assert is_valid_connection(loader, OUT, 0, sampler, IN, 5) is False
    assert is_valid_connection(loader, OUT, -1, sampler, IN, 0) is False


def test_unknown_kind_is_rejected_without_raising(workflow_document):
    loader, sampler = workflow_document.get_node(1), workflow_document.get_node(4)

    assert is_valid_connection(loader, "sideways", 0, sampler, IN, 0) is False


def test_graph_connection(workflow_document):
    """Test validation of a connection proposed on the graph."""
    graph = convert_workflow_to_graph(workflow_document).graph

    ok = {"source": "4", "target": "5", "sourceHandle": "4-output-0", "targetHandle": "5-input-0"}
    wrong_type = {"source": "4", "target": "5", "source_handle": "4-output-0", "target_handle": "5-input-1"}

    assert is_valid_graph_connection(graph.nodes, ok) is True
    assert is_valid_graph_connection(graph.nodes, wrong_type) is False


def test_graph_connection_accepts_edges_and_node_maps(workflow_document):
    graph = convert_workflow_to_graph(workflow_document).graph
    node_map = {n.id: n for n in graph.nodes}
    edge = GraphEdge(id="x", source="2", target="4", source_handle="2-output-0", target_handle="4-input-2")

    assert is_valid_graph_connection(node_map, edge) is True


def test_graph_connection_unknown_node_or_handle(workflow_document):
    graph = convert_workflow_to_graph(workflow_document).graph

    assert is_valid_graph_connection(graph.nodes, {
        "source": "99", "target": "5", "sourceHandle": "99-output-0", "targetHandle": "5-input-0",
    }) is False
    assert is_valid_graph_connection(graph.nodes, {
        "source": "4", "target": "5", "sourceHandle": "nope", "targetHandle": "5-input-0",
    }) is False
    assert is_valid_graph_connection(graph.nodes, {"source": "4"}) is False


def test_graph_connection_rejects_unicode_digit_handles(workflow_document):
    graph = convert_workflow_to_graph(workflow_document).graph

    assert is_valid_graph_connection(graph.nodes, {
        "source": "4", "target": "5",
        "sourceHandle": "4-output-\N{SUPERSCRIPT TWO}", "targetHandle": "5-input-0",
    }) is False
    assert is_valid_graph_connection(graph.nodes, {
        "source": "\N{SUPERSCRIPT ONE}", "target": "5",
        "sourceHandle": "1-output-0", "targetHandle": "5-input-0",
    }) is False


def test_graph_connection_handle_must_belong_to_endpoint(workflow_document):
    """Test that a handle naming another node is rejected even if its port would fit."""
    graph = convert_workflow_to_graph(workflow_document).graph

    assert is_valid_graph_connection(graph.nodes, {
        "source": "1", "target": "5", "sourceHandle": "4-output-0", "targetHandle": "5-input-0",
    }) is False
    assert is_valid_graph_connection(graph.nodes, {
        "source": "4", "target": "5", "sourceHandle": "4-output-0", "targetHandle": "2-input-0",
    }) is False
