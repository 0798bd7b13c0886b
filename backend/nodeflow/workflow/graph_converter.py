"""
Graph Converter — WorkflowDocument → interactive FlowGraph.

Each document node maps 1:1 to a graph node and each link record maps
1:1 to a graph edge. Positional ``widgets_values`` are re-keyed by
input name so consumers address widget state by port name.

The converter is a pure function: it never mutates the document and
never raises. Shape problems come back as a failed ``ConversionResult``;
links pointing at unknown nodes are dropped and listed as warnings.
"""

from __future__ import annotations

import json
from logging import getLogger
from typing import Any, Dict, List, Optional, Union

from nodeflow.workflow.errors import (
    IssueKind,
    ResultBase,
    WorkflowIssue,
    WorkflowParseError,
)
from nodeflow.workflow.graph_model import (
    FlowGraph,
    GraphEdge,
    GraphNode,
    GraphNodeData,
    GraphPort,
    HandleKind,
    Position,
    Viewport,
    make_edge_id,
    make_handle_id,
)
from nodeflow.workflow.workflow_model import WorkflowDocument, WorkflowNode

logger = getLogger(__name__)


class ConversionResult(ResultBase):
    graph: Optional[FlowGraph] = None


# ============================================================================
# Public API
# ============================================================================


def convert_workflow_to_graph(
    document: Union[WorkflowDocument, Dict[str, Any]],
) -> ConversionResult:
    """Convert a workflow document to graph nodes and edges.

    Accepts either a validated ``WorkflowDocument`` or its decoded JSON
    form; the latter is validated first.
    """
    result = ConversionResult()

    if not isinstance(document, WorkflowDocument):
        try:
            document = WorkflowDocument.parse(document)
        except WorkflowParseError as e:
            logger.warning(f"Workflow conversion rejected: {e}")
            result.fail(e.issue)
            return result

    nodes = [_convert_node(node) for node in document.nodes]
    edges = _convert_links(document, result)

    result.graph = FlowGraph(nodes=nodes, edges=edges)
    return result


def parse_workflow_json(text: Union[str, bytes]) -> ConversionResult:
    """Parse JSON text into a graph.

    Two shapes are recognized:

    * an already-converted graph ``{"nodes": [...], "edges": [...]}``
    * a workflow document (has a ``nodes`` array), which is converted.
    """
    result = ConversionResult()
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError) as e:
        result.fail(WorkflowIssue(kind=IssueKind.PARSE, message=f"Failed to parse JSON: {e}"))
        return result

    if not isinstance(parsed, dict):
        result.fail(WorkflowIssue(
            kind=IssueKind.PARSE,
            message="Unrecognized JSON format. Expected an object.",
        ))
        return result

    if "nodes" in parsed and "edges" in parsed:
        try:
            result.graph = FlowGraph.model_validate(
                {"nodes": parsed["nodes"], "edges": parsed["edges"]}
            )
        except ValueError as e:
            result.fail(WorkflowIssue(kind=IssueKind.PARSE, message=f"Invalid graph: {e}"))
        return result

    if isinstance(parsed.get("nodes"), list):
        return convert_workflow_to_graph(parsed)

    result.fail(WorkflowIssue(
        kind=IssueKind.PARSE,
        message=(
            "Unrecognized JSON format. Expected either a graph "
            "({nodes, edges}) or a workflow document."
        ),
    ))
    return result


def get_initial_viewport(document: WorkflowDocument) -> Viewport:
    """Viewport saved in ``extra.ds``, or the default ``(0, 0, 1)``."""
    ds = document.display_settings()
    if ds and ds.offset and ds.scale:
        return Viewport(x=ds.offset[0], y=ds.offset[1], zoom=ds.scale)
    return Viewport()


def project_widget_values(node: WorkflowNode) -> Dict[str, Any]:
    """Re-key positional ``widgets_values`` by widget input name.

    Walks the inputs in order and consumes one value per widget input.
    Values beyond the widget inputs are left out; missing trailing
    values simply produce no key.
    """
    values = node.widgets_values
    projected: Dict[str, Any] = {}
    position = 0
    for inp in node.inputs:
        if not inp.has_widget:
            continue
        if position >= len(values):
            break
        projected[inp.name] = values[position]
        position += 1
    return projected


# ============================================================================
# Internal helpers
# ============================================================================


def _at(values: List[Any], index: int, default: Any) -> Any:
    return values[index] if len(values) > index else default


def _convert_node(node: WorkflowNode) -> GraphNode:
    return GraphNode(
        id=str(node.id),
        position=Position(x=_at(node.pos, 0, 0), y=_at(node.pos, 1, 0)),
        data=GraphNodeData(
            label=node.display_label,
            type=node.type,
            inputs=[
                GraphPort(
                    name=inp.name,
                    type=inp.type,
                    widget=inp.widget.model_dump() if inp.widget else None,
                    link=inp.link,
                )
                for inp in node.inputs
            ],
            outputs=[GraphPort(name=out.name, type=out.type) for out in node.outputs],
            widget_values=project_widget_values(node),
            properties=dict(node.properties),
        ),
        width=_at(node.size, 0, None),
        height=_at(node.size, 1, None),
    )


def _convert_links(
    document: WorkflowDocument,
    result: ConversionResult,
) -> List[GraphEdge]:
    """Map the top-level link array to edges.

    The link array is the source of truth; the denormalized
    ``input.link`` / ``output.links`` copies are not consulted.
    """
    node_ids = {node.id for node in document.nodes}
    edges: List[GraphEdge] = []

    for link in document.links:
        if link.from_node_id not in node_ids or link.to_node_id not in node_ids:
            message = (
                f"Link {link.link_id} references missing nodes: "
                f"{link.from_node_id} -> {link.to_node_id}"
            )
            logger.warning(message)
            result.warn(IssueKind.REFERENTIAL, message, ref=str(link.link_id))
            continue

        edges.append(GraphEdge(
            id=make_edge_id(link.link_id),
            source=str(link.from_node_id),
            target=str(link.to_node_id),
            source_handle=make_handle_id(
                link.from_node_id, HandleKind.OUTPUT, link.from_port_index
            ),
            target_handle=make_handle_id(
                link.to_node_id, HandleKind.INPUT, link.to_port_index
            ),
            label=link.type_tag,
        ))

    return edges
