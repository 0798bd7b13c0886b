"""
Workflow Inspector — check a WorkflowDocument's bookkeeping invariants.

Produces a structured report for a document:

* link consistency — every link record agrees with the target input's
  ``link`` and the source output's ``links`` (and vice versa)
* id uniqueness — no duplicate node or link ids, counters not behind
* widget arity — ``widgets_values`` length matches the widget inputs
* dangling links — link records pointing at missing nodes

Each check returns a list of human-readable error strings
(empty = valid).
"""

from __future__ import annotations

from collections import Counter
from logging import getLogger
from typing import Any, Dict, List

from nodeflow.workflow.workflow_model import WorkflowDocument

logger = getLogger(__name__)


# ====================================================================
# Public API
# ====================================================================


def inspect_workflow(document: WorkflowDocument) -> Dict[str, Any]:
    """Inspect a document and produce the invariant report.

    Returns a dict containing:
        - ``summary``    : High-level stats
        - ``dangling``   : Link ids whose endpoints are missing
        - ``validation`` : Validation result
    """
    errors: List[str] = []
    errors.extend(find_link_inconsistencies(document))
    errors.extend(find_id_conflicts(document))
    errors.extend(find_widget_arity_mismatches(document))

    dangling = find_dangling_links(document)
    if errors:
        logger.debug(f"Workflow {document.id}: {len(errors)} invariant violations")

    return {
        "summary": {
            "workflow_id": document.id,
            "version": document.version,
            "revision": document.revision,
            "node_count": len(document.nodes),
            "link_count": len(document.links),
            "group_count": len(document.groups),
        },
        "dangling": dangling,
        "validation": {
            "valid": len(errors) == 0,
            "errors": errors,
        },
    }


def find_dangling_links(document: WorkflowDocument) -> List[int]:
    node_ids = {n.id for n in document.nodes}
    return [
        link.link_id
        for link in document.links
        if link.from_node_id not in node_ids or link.to_node_id not in node_ids
    ]


def find_link_inconsistencies(document: WorkflowDocument) -> List[str]:
    """Cross-check the link array against both denormalized copies."""
    errors: List[str] = []
    node_map = document.node_map()

    # Forward: link array → back-references
    for link in document.links:
        source = node_map.get(link.from_node_id)
        target = node_map.get(link.to_node_id)
        if source is None or target is None:
            errors.append(
                f"Link {link.link_id} references unknown node: "
                f"{link.from_node_id} -> {link.to_node_id}"
            )
            continue

        if link.to_port_index >= len(target.inputs) or link.to_port_index < 0:
            errors.append(
                f"Link {link.link_id} targets missing input "
                f"{link.to_port_index} on node {target.id}"
            )
        elif target.inputs[link.to_port_index].link != link.link_id:
            errors.append(
                f"Node {target.id} input {link.to_port_index} has link "
                f"{target.inputs[link.to_port_index].link}, expected {link.link_id}"
            )

        if link.from_port_index >= len(source.outputs) or link.from_port_index < 0:
            errors.append(
                f"Link {link.link_id} starts at missing output "
                f"{link.from_port_index} on node {source.id}"
            )
        elif link.link_id not in source.outputs[link.from_port_index].links:
            errors.append(
                f"Node {source.id} output {link.from_port_index} is missing "
                f"link {link.link_id}"
            )

    # Backward: back-references → link array
    for node in document.nodes:
        for idx, inp in enumerate(node.inputs):
            if inp.link is None:
                continue
            link = document.get_link(inp.link)
            if link is None or link.to_node_id != node.id or link.to_port_index != idx:
                errors.append(
                    f"Node {node.id} input {idx} references stale link {inp.link}"
                )
        for idx, out in enumerate(node.outputs):
            for link_id in out.links:
                link = document.get_link(link_id)
                if link is None or link.from_node_id != node.id or link.from_port_index != idx:
                    errors.append(
                        f"Node {node.id} output {idx} references stale link {link_id}"
                    )

    return errors


def find_id_conflicts(document: WorkflowDocument) -> List[str]:
    errors: List[str] = []

    for node_id, count in Counter(n.id for n in document.nodes).items():
        if count > 1:
            errors.append(f"Node id {node_id} is used by {count} nodes")
    for link_id, count in Counter(link.link_id for link in document.links).items():
        if count > 1:
            errors.append(f"Link id {link_id} is used by {count} links")

    if document.max_link_id() > document.last_link_id:
        errors.append(
            f"last_link_id {document.last_link_id} is behind "
            f"link id {document.max_link_id()}"
        )
    if document.max_node_id() > document.last_node_id:
        errors.append(
            f"last_node_id {document.last_node_id} is behind "
            f"node id {document.max_node_id()}"
        )
    return errors


def find_widget_arity_mismatches(document: WorkflowDocument) -> List[str]:
    errors: List[str] = []
    for node in document.nodes:
        expected = len(node.widget_inputs())
        actual = len(node.widgets_values)
        if expected != actual:
            errors.append(
                f"Node {node.id} ({node.type}) has {actual} widget values "
                f"for {expected} widget inputs"
            )
    return errors
