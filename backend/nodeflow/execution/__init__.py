"""
Execution Monitoring — track a submitted prompt through the engine's events.

Architecture:
    execution_state   — ExecutionState snapshot, phases, node statuses
    execution_events  — Event frame decoding
    execution_monitor — Pure reducer + live ExecutionMonitor
    event_stream      — WebSocket event channel
"""

from nodeflow.execution.execution_state import (
    ExecutionPhase,
    ExecutionState,
    NodeProgress,
    NodeStatus,
)
from nodeflow.execution.execution_events import EventType, ExecutionEvent, parse_event
from nodeflow.execution.execution_monitor import (
    ExecutionMonitor,
    mark_prompt_queued,
    reduce_event,
)
from nodeflow.execution.event_stream import ComfyEventStream

__all__ = [
    "ExecutionPhase",
    "ExecutionState",
    "NodeProgress",
    "NodeStatus",
    "EventType",
    "ExecutionEvent",
    "parse_event",
    "ExecutionMonitor",
    "mark_prompt_queued",
    "reduce_event",
    "ComfyEventStream",
]
