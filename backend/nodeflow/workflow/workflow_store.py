"""
Workflow Store — open, track and save workflow documents held by the engine.

Nothing is persisted locally: documents live in the engine's userdata
storage and are reached through ``ComfyClient``. The store keeps the
set of currently open workflows, each with the original document it
was loaded from, its editable graph and an unsaved-changes flag.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from nodeflow.workflow.comfy_client import ComfyClient
from nodeflow.workflow.errors import ApiResult, IssueKind, WorkflowIssue
from nodeflow.workflow.graph_converter import convert_workflow_to_graph
from nodeflow.workflow.graph_model import FlowGraph, GraphEdge, GraphNode
from nodeflow.workflow.graph_serializer import serialize_graph
from nodeflow.workflow.workflow_model import WorkflowDocument

logger = getLogger(__name__)


class OpenWorkflow(BaseModel):
    """One open workflow (an editor tab)."""

    path: str
    name: str
    original: Optional[WorkflowDocument] = None
    graph: Optional[FlowGraph] = None
    error: Optional[str] = None
    parse_error: Optional[str] = None
    warnings: List[WorkflowIssue] = Field(default_factory=list)
    has_unsaved_changes: bool = False

    @property
    def is_loaded(self) -> bool:
        return self.original is not None and self.graph is not None


class WorkflowStore:
    """Track open workflows and round-trip them through the engine."""

    def __init__(self, client: ComfyClient) -> None:
        self._client = client
        self._open: Dict[str, OpenWorkflow] = {}

    # ── Listing ──

    async def list_files(self) -> ApiResult:
        return await self._client.list_workflows()

    # ── Open / close ──

    async def open(self, path: str) -> OpenWorkflow:
        """Fetch a workflow and convert it to a graph.

        Opening an already open path returns the existing entry. A fetch
        failure is reported on ``error``; a document that cannot be
        converted on ``parse_error`` with no graph.
        """
        if path in self._open:
            return self._open[path]

        name = path.split("/")[-1] or path
        entry = OpenWorkflow(path=path, name=name)

        fetched = await self._client.get_workflow(path)
        if not fetched.ok:
            if fetched.kind == IssueKind.PARSE:
                entry.parse_error = fetched.error
            else:
                entry.error = fetched.error
            logger.error(f"Failed to load workflow {path}: {fetched.error}")
            return entry

        converted = convert_workflow_to_graph(fetched.data)
        if not converted.ok:
            entry.parse_error = converted.error.message if converted.error else "Conversion failed"
            return entry

        entry.original = fetched.data
        entry.graph = converted.graph
        entry.warnings = list(converted.warnings)
        self._open[path] = entry
        logger.info(
            f"Workflow opened: {path} ({len(entry.graph.nodes)} nodes, "
            f"{len(entry.graph.edges)} edges)"
        )
        return entry

    def get(self, path: str) -> Optional[OpenWorkflow]:
        return self._open.get(path)

    def list_open(self) -> List[OpenWorkflow]:
        return list(self._open.values())

    def close(self, path: str) -> bool:
        return self._open.pop(path, None) is not None

    def mark_changed(self, path: str) -> None:
        entry = self._open.get(path)
        if entry is not None:
            entry.has_unsaved_changes = True

    # ── Save ──

    async def save(
        self,
        path: str,
        nodes: Optional[Iterable[Union[GraphNode, Dict[str, Any]]]] = None,
        edges: Optional[Iterable[Union[GraphEdge, Dict[str, Any]]]] = None,
    ) -> ApiResult:
        """Serialize the edited graph and overwrite the remote file.

        ``nodes`` / ``edges`` default to the entry's current graph. On
        success the serialized document becomes the new original and the
        unsaved flag is cleared; ``data`` is the serialized document.
        """
        entry = self._open.get(path)
        if entry is None or not entry.is_loaded:
            return ApiResult.failure(f"Workflow {path} is not open", IssueKind.REFERENTIAL)

        serialized = serialize_graph(
            entry.original,
            entry.graph.nodes if nodes is None else nodes,
            entry.graph.edges if edges is None else edges,
        )
        if not serialized.ok:
            message = serialized.error.message if serialized.error else "Serialization failed"
            return ApiResult.failure(message, IssueKind.PARSE)
        for warning in serialized.warnings:
            logger.warning(f"[{path}] {warning.message}")

        saved = await self._client.save_workflow(path, serialized.document)
        if not saved.ok:
            return saved

        converted = convert_workflow_to_graph(serialized.document)
        entry.original = serialized.document
        entry.graph = converted.graph
        entry.warnings = list(serialized.warnings)
        entry.has_unsaved_changes = False
        return ApiResult.success(serialized.document)
