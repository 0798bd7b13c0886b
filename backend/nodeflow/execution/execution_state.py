"""
Execution State — snapshot of one engine connection's run progress.

The snapshot is a plain value: the reducer in ``execution_monitor``
never mutates it and always returns a new instance.

Run phases::

    idle → queued → running → error | interrupted

There is no top-level "completed" phase. A finished run is observed
through ``node_statuses`` only.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field


class ExecutionPhase(str, Enum):
    """Top-level run status."""
    IDLE = "idle"
    QUEUED = "queued"
    RUNNING = "running"
    ERROR = "error"
    INTERRUPTED = "interrupted"


class NodeStatus(str, Enum):
    """Per-node execution status."""
    RUNNING = "running"
    COMPLETED = "completed"
    CACHED = "cached"
    ERROR = "error"
    INTERRUPTED = "interrupted"


class NodeProgress(BaseModel):
    value: Union[int, float] = 0
    max: Union[int, float] = 0


class ExecutionState(BaseModel):
    """Execution snapshot keyed by display node id.

    ``display_node_ids`` maps logical node ids (as used by ``executed`` /
    ``progress`` payloads) to the display ids learned from ``executing``.
    """

    phase: ExecutionPhase = ExecutionPhase.IDLE
    prompt_id: Optional[str] = None
    started_at: Optional[Union[int, float]] = None
    queue_remaining: Optional[int] = None
    current_node_id: Optional[str] = None

    node_statuses: Dict[str, NodeStatus] = Field(default_factory=dict)
    node_progress: Dict[str, NodeProgress] = Field(default_factory=dict)
    node_outputs: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    node_errors: Dict[str, str] = Field(default_factory=dict)
    display_node_ids: Dict[str, str] = Field(default_factory=dict)

    def display_id(self, node_id: str) -> str:
        """Resolve a logical node id to its display id (identity if unknown)."""
        return self.display_node_ids.get(node_id, node_id)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
