"""
Graph Serializer — edited FlowGraph + original document → new WorkflowDocument.

The original document is the template: node types, sizes, titles and
every opaque field flow through from it. The graph contributes only
what the editor can change: node order, node positions, widget values
and the set of connections.

Steps (in order):

    1. Node reconciliation — walk the graph nodes in their current order
       and pick the matching document node. Graph nodes without one are
       reported and skipped; nodes are never fabricated from the graph.
    2. Link id allocation — an edge whose id is ``e{n}`` keeps link id
       ``n``; every other edge gets a fresh id above the watermark.
    3. Link record construction — handle IDs are parsed back into port
       indices; the type tag is taken from the source output port.
    4. Counter update — ``last_link_id`` / ``last_node_id`` advance.
    5. Per-node rebuild — ``pos`` and ``widgets_values`` are rewritten,
       every ``input.link`` / ``output.links`` is cleared.
    6. Denormalization rebuild — one pass over the final link table
       restores the back-references.

The function is pure: the original is deep-copied and never mutated,
and failures are reported on the result instead of raised.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Set, Tuple, Union

from pydantic import ValidationError

from nodeflow.workflow.connection_validator import is_valid_connection, port_type
from nodeflow.workflow.errors import (
    IssueKind,
    ResultBase,
    WorkflowParseError,
)
from nodeflow.workflow.graph_model import (
    GraphEdge,
    GraphNode,
    HandleKind,
    parse_edge_id,
    parse_handle_id,
    parse_node_id,
)
from nodeflow.workflow.workflow_model import (
    WILDCARD_TYPE,
    LinkRecord,
    WorkflowDocument,
    WorkflowNode,
)

logger = getLogger(__name__)


class SerializationResult(ResultBase):
    document: Optional[WorkflowDocument] = None


class _EdgeCandidate(NamedTuple):
    edge: GraphEdge
    from_node_id: int
    from_port_index: int
    to_node_id: int
    to_port_index: int


# ============================================================================
# Public API
# ============================================================================


def serialize_graph(
    original: Union[WorkflowDocument, Dict[str, Any]],
    nodes: Iterable[Union[GraphNode, Dict[str, Any]]],
    edges: Iterable[Union[GraphEdge, Dict[str, Any]]],
) -> SerializationResult:
    """Rebuild a workflow document from the edited graph.

    Returns a result whose ``document`` satisfies link consistency,
    id uniqueness and widget arity. Edges and nodes that cannot be
    mapped back are dropped and listed in ``warnings``.
    """
    result = SerializationResult()

    try:
        if isinstance(original, WorkflowDocument):
            document = original.model_copy(deep=True)
        else:
            document = WorkflowDocument.parse(original)
    except WorkflowParseError as e:
        logger.warning(f"Serialization rejected: {e}")
        result.fail(e.issue)
        return result

    graph_nodes = _coerce_items(nodes, GraphNode, "node", result)
    graph_edges = _coerce_items(edges, GraphEdge, "edge", result)

    # ── 1. Node reconciliation ──
    live_nodes, positions = _reconcile_nodes(document, graph_nodes, result)
    node_map = {n.id: n for n in live_nodes}

    # ── 2 / 3. Link id allocation + record construction ──
    candidates = _collect_candidates(graph_edges, node_map, document, result)
    links = _allocate_links(candidates, node_map, document.last_link_id)

    # ── 4. Counter update ──
    max_link = max((link.link_id for link in links), default=0)
    document.last_link_id = max(document.last_link_id, max_link)
    max_node = max((n.id for n in live_nodes), default=0)
    document.last_node_id = max(document.last_node_id, max_node)
    document.revision += 1

    # ── 5. Per-node field rebuild ──
    for node in live_nodes:
        graph_node = positions[node.id]
        node.pos = [_number(graph_node.position.x), _number(graph_node.position.y)]
        node.widgets_values = _rebuild_widget_values(node, graph_node)
        for inp in node.inputs:
            inp.link = None
        for out in node.outputs:
            out.links = []

    # ── 6. Denormalization rebuild ──
    for link in links:
        node_map[link.to_node_id].inputs[link.to_port_index].link = link.link_id
        node_map[link.from_node_id].outputs[link.from_port_index].links.append(link.link_id)

    document.nodes = live_nodes
    document.links = links
    result.document = document

    logger.debug(
        f"Serialized workflow {document.id}: {len(live_nodes)} nodes, "
        f"{len(links)} links, {len(result.warnings)} warnings"
    )
    return result


# ============================================================================
# Internal helpers
# ============================================================================


def _coerce_items(items, model, what: str, result: SerializationResult) -> List[Any]:
    """Accept models or their plain-dict form; invalid entries are skipped."""
    coerced = []
    for item in items:
        if isinstance(item, model):
            coerced.append(item)
            continue
        try:
            coerced.append(model.model_validate(item))
        except ValidationError as e:
            message = f"Skipping malformed graph {what}: {e.errors()[0].get('msg')}"
            logger.warning(message)
            result.warn(IssueKind.PARSE, message)
    return coerced


def _reconcile_nodes(
    document: WorkflowDocument,
    graph_nodes: List[GraphNode],
    result: SerializationResult,
) -> Tuple[List[WorkflowNode], Dict[int, GraphNode]]:
    original_nodes = document.node_map()
    live: List[WorkflowNode] = []
    positions: Dict[int, GraphNode] = {}

    for graph_node in graph_nodes:
        node_id = parse_node_id(graph_node.id)
        node = original_nodes.get(node_id) if node_id is not None else None
        if node is None:
            message = f"Graph node {graph_node.id} has no matching workflow node; skipped"
            logger.warning(message)
            result.warn(IssueKind.REFERENTIAL, message, ref=str(graph_node.id))
            continue
        if node_id in positions:
            message = f"Duplicate graph node {graph_node.id}; later copy skipped"
            logger.warning(message)
            result.warn(IssueKind.REFERENTIAL, message, ref=str(graph_node.id))
            continue
        live.append(node)
        positions[node_id] = graph_node

    return live, positions


def _collect_candidates(
    graph_edges: List[GraphEdge],
    node_map: Dict[int, WorkflowNode],
    document: WorkflowDocument,
    result: SerializationResult,
) -> List[_EdgeCandidate]:
    """Parse handles and drop edges that cannot become link records.

    An input port holds at most one link: when two edges target the
    same input, the later one in edge order wins.
    """
    original_links = {link.link_id: link for link in document.links}
    by_target: Dict[Tuple[int, int], int] = {}
    candidates: List[Optional[_EdgeCandidate]] = []

    def _drop(edge: GraphEdge, reason: str) -> None:
        message = f"Edge {edge.id} dropped: {reason}"
        logger.warning(message)
        result.warn(IssueKind.REFERENTIAL, message, ref=edge.id)

    for edge in graph_edges:
        source_id = parse_node_id(edge.source)
        target_id = parse_node_id(edge.target)
        if source_id not in node_map or target_id not in node_map:
            _drop(edge, f"references missing node {edge.source} -> {edge.target}")
            continue

        source_handle = parse_handle_id(edge.source_handle)
        target_handle = parse_handle_id(edge.target_handle)
        if source_handle is None or target_handle is None:
            _drop(edge, "unparseable handle ids")
            continue
        if (parse_node_id(source_handle.node_id) != source_id
                or parse_node_id(target_handle.node_id) != target_id):
            _drop(edge, "handle ids name a different node than the edge endpoints")
            continue

        candidate = _EdgeCandidate(
            edge=edge,
            from_node_id=source_id,
            from_port_index=source_handle.index,
            to_node_id=target_id,
            to_port_index=target_handle.index,
        )

        # Links already in the document are trusted on type; new ones are not.
        existing = original_links.get(parse_edge_id(edge.id))
        preexisting = existing is not None and (
            existing.from_node_id, existing.from_port_index,
            existing.to_node_id, existing.to_port_index,
        ) == candidate[1:]
        if not is_valid_connection(
            node_map[source_id], source_handle.kind, source_handle.index,
            node_map[target_id], target_handle.kind, target_handle.index,
            check_types=not preexisting,
        ):
            _drop(edge, "illegal connection (direction, port range or type)")
            continue

        key = (target_id, target_handle.index)
        if key in by_target:
            previous = candidates[by_target[key]]
            _drop(previous.edge, f"input {target_handle.index} of node {target_id} reconnected")
            candidates[by_target[key]] = None
        by_target[key] = len(candidates)
        candidates.append(candidate)

    return [c for c in candidates if c is not None]


def _allocate_links(
    candidates: List[_EdgeCandidate],
    node_map: Dict[int, WorkflowNode],
    last_link_id: int,
) -> List[LinkRecord]:
    """Assign link ids and build the authoritative link table.

    Reused ``e{n}`` ids are claimed first so that freshly minted ids,
    which start above the highest claimed id and the stored counter,
    can never collide with them.
    """
    assigned: List[Optional[int]] = []
    claimed: Set[int] = set()
    for candidate in candidates:
        reused = parse_edge_id(candidate.edge.id)
        if reused is not None and reused > 0 and reused not in claimed:
            claimed.add(reused)
            assigned.append(reused)
        else:
            assigned.append(None)

    watermark = max([last_link_id, *claimed])
    links: List[LinkRecord] = []
    for candidate, link_id in zip(candidates, assigned):
        if link_id is None:
            watermark += 1
            link_id = watermark
        source = node_map[candidate.from_node_id]
        type_tag = port_type(source, HandleKind.OUTPUT, candidate.from_port_index)
        links.append(LinkRecord(
            link_id=link_id,
            from_node_id=candidate.from_node_id,
            from_port_index=candidate.from_port_index,
            to_node_id=candidate.to_node_id,
            to_port_index=candidate.to_port_index,
            type_tag=type_tag or WILDCARD_TYPE,
        ))
    return links


def _rebuild_widget_values(node: WorkflowNode, graph_node: GraphNode) -> List[Any]:
    """Positional widget values in widget-input order.

    A missing entry serializes as ``None`` so the list length always
    equals the number of widget inputs.
    """
    values = graph_node.data.widget_values
    return [values.get(inp.name) for inp in node.widget_inputs()]


def _number(value: float) -> Union[int, float]:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
