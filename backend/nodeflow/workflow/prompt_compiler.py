"""
Prompt Compiler — compile a WorkflowDocument into the engine's submission format.

The engine executes a flat ``{node_id: {class_type, inputs}}`` mapping
rather than the editor document. Linked inputs become
``[source_node_id, source_slot]`` references; unlinked widget inputs
carry their literal widget value.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, Optional, Set

from nodeflow.workflow.connection_validator import types_compatible
from nodeflow.workflow.workflow_model import LinkRecord, WorkflowDocument, WorkflowNode

logger = getLogger(__name__)

# Node modes that the engine must not execute
_MODE_MUTED = 2
_MODE_BYPASSED = 4
_SKIPPED_MODES = (_MODE_MUTED, _MODE_BYPASSED)


class PromptCompiler:
    """Compile a WorkflowDocument → engine prompt.

    Steps:
        1. Drop muted / bypassed nodes.
        2. For each remaining node, walk its inputs in order: a linked
           input becomes a node reference, an unlinked widget input
           consumes the next positional widget value.
        3. A link leaving a bypassed node is followed upstream through
           that node's first linked input of the same type.
        4. References to muted, unresolvable or unknown nodes are left out.

    Usage::

        compiler = PromptCompiler(document)
        prompt = compiler.compile()
        payload = compiler.build_submission(client_id)
    """

    def __init__(self, document: WorkflowDocument) -> None:
        self._document = document
        self._prompt: Optional[Dict[str, Dict[str, Any]]] = None

    # ========================================================================
    # Compilation
    # ========================================================================

    def compile(self) -> Dict[str, Dict[str, Any]]:
        doc = self._document
        nodes = doc.node_map()
        active: Dict[int, WorkflowNode] = {
            n.id: n for n in doc.nodes if n.mode not in _SKIPPED_MODES
        }
        skipped: Set[int] = set(nodes) - set(active)
        links = {link.link_id: link for link in doc.links}

        prompt: Dict[str, Dict[str, Any]] = {}
        for node in doc.nodes:
            if node.id not in active:
                continue
            prompt[str(node.id)] = {
                "class_type": node.type,
                "inputs": self._compile_inputs(node, links, nodes, active, skipped),
                "_meta": {"title": node.display_label},
            }

        self._prompt = prompt
        logger.debug(
            f"Compiled prompt for workflow {doc.id}: {len(prompt)} nodes "
            f"({len(skipped)} skipped)"
        )
        return prompt

    def build_submission(self, client_id: str) -> Dict[str, Any]:
        """Wrap the prompt in the ``/prompt`` request body."""
        prompt = self._prompt if self._prompt is not None else self.compile()
        return {
            "prompt": prompt,
            "client_id": client_id,
            "extra_data": {
                "extra_pnginfo": {"workflow": self._document.to_dict()},
            },
        }

    @property
    def prompt(self) -> Optional[Dict[str, Dict[str, Any]]]:
        return self._prompt

    # ========================================================================
    # Internal helpers
    # ========================================================================

    def _compile_inputs(
        self,
        node: WorkflowNode,
        links: Dict[int, LinkRecord],
        nodes: Dict[int, WorkflowNode],
        active: Dict[int, WorkflowNode],
        skipped: Set[int],
    ) -> Dict[str, Any]:
        inputs: Dict[str, Any] = {}
        widget_values = list(node.widgets_values)
        widget_pos = 0

        for inp in node.inputs:
            value_slot = None
            if inp.has_widget:
                value_slot = widget_pos
                widget_pos += 1

            if inp.link is not None:
                link = links.get(inp.link)
                if link is None:
                    logger.warning(
                        f"Node {node.id} input '{inp.name}' references unknown link {inp.link}"
                    )
                else:
                    source = _resolve_source(link, links, nodes)
                    if source is not None and source.from_node_id in active:
                        inputs[inp.name] = [str(source.from_node_id), source.from_port_index]
                        continue
                    if source is None or source.from_node_id in skipped:
                        logger.warning(
                            f"Node {node.id} input '{inp.name}' is fed by skipped "
                            f"node {link.from_node_id}; input left out"
                        )
                        continue
                    logger.warning(
                        f"Node {node.id} input '{inp.name}' is fed by missing "
                        f"node {source.from_node_id}"
                    )

            if value_slot is not None and value_slot < len(widget_values):
                inputs[inp.name] = widget_values[value_slot]

        return inputs


def _resolve_source(
    link: LinkRecord,
    links: Dict[int, LinkRecord],
    nodes: Dict[int, WorkflowNode],
) -> Optional[LinkRecord]:
    """Follow ``link`` upstream past bypassed nodes.

    Returns the link leaving the first node that is not bypassed, or
    ``None`` when a bypassed node has no linked input of the link's type.
    """
    visited: Set[int] = set()
    while True:
        source = nodes.get(link.from_node_id)
        if source is None or source.mode != _MODE_BYPASSED or source.id in visited:
            return link
        visited.add(source.id)

        upstream = None
        for inp in source.inputs:
            if inp.link in links and types_compatible(inp.type, link.type_tag):
                upstream = links[inp.link]
                break
        if upstream is None:
            return None
        link = upstream
