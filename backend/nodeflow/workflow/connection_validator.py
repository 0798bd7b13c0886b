"""
Connection Validator — decide whether a proposed edge is legal.

A connection is legal when it runs from an output port to an input
port, both port indices exist on their nodes, and the port type tags
match case-insensitively. The wildcard tag ``*`` matches anything.

Used by the editor while dragging a connection and by the serializer
before it accepts an edge into the link table.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Union

from nodeflow.workflow.graph_model import (
    GraphEdge,
    GraphNode,
    HandleKind,
    parse_handle_id,
)
from nodeflow.workflow.workflow_model import WILDCARD_TYPE, WorkflowNode

AnyNode = Union[GraphNode, WorkflowNode]


def types_compatible(source_type: Optional[str], target_type: Optional[str]) -> bool:
    """Case-insensitive type-tag match with ``*`` as wildcard."""
    if source_type is None or target_type is None:
        return False
    if source_type == WILDCARD_TYPE or target_type == WILDCARD_TYPE:
        return True
    return source_type.lower() == target_type.lower()


def port_type(node: AnyNode, kind: HandleKind, index: int) -> Optional[str]:
    """Type tag of a port, or ``None`` if the index is out of range."""
    ports = _ports(node, kind)
    if index < 0 or index >= len(ports):
        return None
    return ports[index].type


def is_valid_connection(
    source_node: AnyNode,
    source_kind: HandleKind,
    source_index: int,
    target_node: AnyNode,
    target_kind: HandleKind,
    target_index: int,
    check_types: bool = True,
) -> bool:
    """Pure predicate over a candidate ``(source port, target port)`` pair."""
    source_kind, target_kind = _kind(source_kind), _kind(target_kind)
    if source_kind is None or target_kind is None or source_kind == target_kind:
        return False
    if source_kind != HandleKind.OUTPUT:
        return False

    source_type = port_type(source_node, HandleKind.OUTPUT, source_index)
    target_type = port_type(target_node, HandleKind.INPUT, target_index)
    if source_type is None or target_type is None:
        return False

    if not check_types:
        return True
    return types_compatible(source_type, target_type)


def is_valid_graph_connection(
    nodes: Union[Iterable[GraphNode], Mapping[str, GraphNode]],
    connection: Union[GraphEdge, Mapping[str, Any]],
) -> bool:
    """Validate a connection proposed on the graph.

    ``connection`` carries ``source``, ``target`` and the two handle IDs,
    either as a ``GraphEdge`` or as a plain mapping using the graph's
    camelCase or snake_case keys.
    """
    source_id = _field(connection, "source")
    target_id = _field(connection, "target")
    if not source_id or not target_id:
        return False

    node_map = nodes if isinstance(nodes, Mapping) else {n.id: n for n in nodes}
    source_node = node_map.get(str(source_id))
    target_node = node_map.get(str(target_id))
    if source_node is None or target_node is None:
        return False

    source_handle = parse_handle_id(_field(connection, "source_handle", "sourceHandle"))
    target_handle = parse_handle_id(_field(connection, "target_handle", "targetHandle"))
    if source_handle is None or target_handle is None:
        return False
    if source_handle.node_id != str(source_id) or target_handle.node_id != str(target_id):
        return False

    return is_valid_connection(
        source_node, source_handle.kind, source_handle.index,
        target_node, target_handle.kind, target_handle.index,
    )


# ============================================================================
# Internal helpers
# ============================================================================


def _kind(value: Any) -> Optional[HandleKind]:
    try:
        return HandleKind(value)
    except ValueError:
        return None


def _ports(node: AnyNode, kind: HandleKind) -> List[Any]:
    holder = node.data if isinstance(node, GraphNode) else node
    return holder.inputs if kind == HandleKind.INPUT else holder.outputs


def _field(obj: Any, *names: str) -> Any:
    for name in names:
        if isinstance(obj, Mapping):
            if name in obj:
                return obj[name]
        elif hasattr(obj, name):
            return getattr(obj, name)
    return None
