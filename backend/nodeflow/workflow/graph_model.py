"""
Graph Models — the interactive node/edge graph shown in the editor.

This is the editable projection of a ``WorkflowDocument``. Field names
serialize in camelCase (``sourceHandle``, ``widgetValues``) because the
graph is exchanged verbatim with the rendering layer.

Handle IDs address one port of one node: ``{nodeId}-{input|output}-{index}``.
Edge IDs of links that already exist in the document are ``e{linkId}``.
Both schemes are parsed back by the serializer, so they must stay stable.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_EDGE_ID_RE = re.compile(r"e([0-9]+)")
_DIGITS_RE = re.compile(r"[0-9]+")


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ============================================================================
# Handles
# ============================================================================


class HandleKind(str, Enum):
    """Direction of a port."""
    INPUT = "input"
    OUTPUT = "output"


class Handle(NamedTuple):
    node_id: str
    kind: HandleKind
    index: int


def make_handle_id(node_id: Any, kind: HandleKind, index: int) -> str:
    """Build the handle ID for one port of a node."""
    return f"{node_id}-{HandleKind(kind).value}-{index}"


def parse_handle_id(handle_id: Optional[str]) -> Optional[Handle]:
    """Recover ``(node_id, kind, index)`` from a handle ID.

    Splits from the right so node IDs containing ``-`` still parse.
    Returns ``None`` for anything malformed, including negative indices.
    """
    if not handle_id or not isinstance(handle_id, str):
        return None
    parts = handle_id.rsplit("-", 2)
    if len(parts) != 3:
        return None
    node_id, kind, raw_index = parts
    if not node_id or kind not in (HandleKind.INPUT.value, HandleKind.OUTPUT.value):
        return None
    if not _DIGITS_RE.fullmatch(raw_index):
        return None
    return Handle(node_id, HandleKind(kind), int(raw_index))


def make_edge_id(link_id: int) -> str:
    return f"e{link_id}"


def parse_edge_id(edge_id: Optional[str]) -> Optional[int]:
    """Return the link ID encoded in an ``e{id}`` edge ID, else ``None``."""
    if not isinstance(edge_id, str):
        return None
    match = _EDGE_ID_RE.fullmatch(edge_id)
    return int(match.group(1)) if match else None


def parse_node_id(value: Any) -> Optional[int]:
    """Numeric workflow node ID behind a graph node ID, else ``None``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _DIGITS_RE.fullmatch(value):
        return int(value)
    return None


# ============================================================================
# Nodes & Edges
# ============================================================================


class Position(_CamelModel):
    x: float = 0
    y: float = 0


class GraphPort(_CamelModel):
    """Port description carried on a graph node for handle rendering."""

    name: str
    type: str = "*"
    widget: Optional[Dict[str, Any]] = None
    link: Optional[int] = None


class GraphNodeData(_CamelModel):
    """Payload of a graph node.

    ``widget_values`` is keyed by input name, not by position.
    """

    label: str
    type: str
    inputs: List[GraphPort] = Field(default_factory=list)
    outputs: List[GraphPort] = Field(default_factory=list)
    widget_values: Dict[str, Any] = Field(default_factory=dict)
    properties: Dict[str, Any] = Field(default_factory=dict)


class GraphNode(_CamelModel):
    id: str
    type: str = "workflow"
    position: Position = Field(default_factory=Position)
    data: GraphNodeData
    width: Optional[float] = None
    height: Optional[float] = None


class GraphEdge(_CamelModel):
    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    type: str = "smoothstep"
    animated: bool = False
    label: Optional[str] = None


class FlowGraph(_CamelModel):
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None


class Viewport(_CamelModel):
    x: float = 0
    y: float = 0
    zoom: float = 1
