"""
Workflow Editing — persisted documents and their editable graph form.

Provides the infrastructure for loading workflow documents from the
remote engine, projecting them into an interactive node/edge graph,
and writing the edited graph back without corrupting link identity.

Architecture:
    workflow_model       — Persisted workflow document (pydantic)
    graph_model          — Interactive graph nodes / edges / handles
    graph_converter      — WorkflowDocument → FlowGraph
    graph_serializer     — FlowGraph + original → WorkflowDocument
    connection_validator — Legal-edge predicate
    workflow_inspector   — Invariant checks and summary report
    prompt_compiler      — WorkflowDocument → engine submission
    comfy_client         — Async HTTP client for the engine
    workflow_store       — Open / save workflows held by the engine
"""

from nodeflow.workflow.errors import (
    ApiResult,
    IssueKind,
    WorkflowIssue,
    WorkflowParseError,
)
from nodeflow.workflow.workflow_model import (
    WILDCARD_TYPE,
    LinkRecord,
    NodeInput,
    NodeOutput,
    NodeWidget,
    WorkflowDocument,
    WorkflowFileInfo,
    WorkflowNode,
)
from nodeflow.workflow.graph_model import (
    FlowGraph,
    GraphEdge,
    GraphNode,
    GraphNodeData,
    GraphPort,
    Handle,
    HandleKind,
    Viewport,
    make_edge_id,
    make_handle_id,
    parse_edge_id,
    parse_handle_id,
    parse_node_id,
)
from nodeflow.workflow.graph_converter import (
    ConversionResult,
    convert_workflow_to_graph,
    get_initial_viewport,
    parse_workflow_json,
)
from nodeflow.workflow.graph_serializer import SerializationResult, serialize_graph
from nodeflow.workflow.connection_validator import (
    is_valid_connection,
    is_valid_graph_connection,
    types_compatible,
)
from nodeflow.workflow.workflow_inspector import inspect_workflow
from nodeflow.workflow.prompt_compiler import PromptCompiler
from nodeflow.workflow.comfy_client import ComfyClient
from nodeflow.workflow.workflow_store import OpenWorkflow, WorkflowStore

__all__ = [
    "ApiResult",
    "IssueKind",
    "WorkflowIssue",
    "WorkflowParseError",
    "WILDCARD_TYPE",
    "LinkRecord",
    "NodeInput",
    "NodeOutput",
    "NodeWidget",
    "WorkflowDocument",
    "WorkflowFileInfo",
    "WorkflowNode",
    "FlowGraph",
    "GraphEdge",
    "GraphNode",
    "GraphNodeData",
    "GraphPort",
    "Handle",
    "HandleKind",
    "Viewport",
    "make_edge_id",
    "make_handle_id",
    "parse_edge_id",
    "parse_handle_id",
    "parse_node_id",
    "ConversionResult",
    "convert_workflow_to_graph",
    "get_initial_viewport",
    "parse_workflow_json",
    "SerializationResult",
    "serialize_graph",
    "is_valid_connection",
    "is_valid_graph_connection",
    "types_compatible",
    "inspect_workflow",
    "PromptCompiler",
    "ComfyClient",
    "OpenWorkflow",
    "WorkflowStore",
]
