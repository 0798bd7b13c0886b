"""Tests for handle / edge id helpers and graph serialization names."""

from nodeflow.workflow.graph_model import (
    GraphEdge,
    HandleKind,
    make_edge_id,
    make_handle_id,
    parse_edge_id,
    parse_handle_id,
    parse_node_id,
)


def test_make_handle_id():
    assert make_handle_id(4, HandleKind.INPUT, 2) == "4-input-2"
    assert make_handle_id("7", "output", 0) == "7-output-0"


def test_parse_handle_id():
    handle = parse_handle_id("12-output-3")

    assert handle.node_id == "12"
    assert handle.kind == HandleKind.OUTPUT
    assert handle.index == 3


def test_parse_handle_id_allows_dashes_in_node_id():
    """Test that parsing splits from the right."""
    handle = parse_handle_id("group-a-7-input-1")

    assert handle == ("group-a-7", HandleKind.INPUT, 1)


def test_parse_handle_id_rejects_malformed():
    for bad in (None, "", "12", "12-input", "12-side-0", "12-input--1", "12-input-x", "-input-0"):
        assert parse_handle_id(bad) is None, bad


def test_parse_handle_id_rejects_non_ascii_digits():
    """Test that superscript and other Unicode digits are not port indices."""
    for bad in ("1-output-\N{SUPERSCRIPT TWO}", "1-input-\N{SUPERSCRIPT ONE}", "1-input-\N{ARABIC-INDIC DIGIT THREE}"):
        assert parse_handle_id(bad) is None, bad


def test_parse_node_id():
    assert parse_node_id("12") == 12
    assert parse_node_id(7) == 7
    assert parse_node_id(True) is None
    assert parse_node_id("\N{SUPERSCRIPT ONE}") is None
    assert parse_node_id("12\n") is None
    assert parse_node_id("") is None
    assert parse_node_id(None) is None


def test_edge_id_helpers():
    assert make_edge_id(15) == "e15"
    assert parse_edge_id("e15") == 15
    assert parse_edge_id("reactflow__edge-1") is None
    assert parse_edge_id("e") is None
    assert parse_edge_id("E15") is None
    assert parse_edge_id("e15\n") is None
    assert parse_edge_id("e\N{SUPERSCRIPT TWO}") is None
    assert parse_edge_id(None) is None


def test_graph_edge_uses_camel_case_keys():
    edge = GraphEdge(id="e1", source="1", target="2", source_handle="1-output-0", target_handle="2-input-0")

    dumped = edge.to_dict()

    assert dumped["sourceHandle"] == "1-output-0"
    assert dumped["targetHandle"] == "2-input-0"
    assert GraphEdge.model_validate(dumped).target_handle == "2-input-0"
