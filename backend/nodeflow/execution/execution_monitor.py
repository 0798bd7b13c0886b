"""
Execution Monitor — fold engine events into an ExecutionState.

Two layers:

    reduce_event / mark_prompt_queued — pure reductions, previous
        snapshot + event in, new snapshot out. They never raise; events
        with an unknown type or a missing node id leave the snapshot as is.

    ExecutionMonitor — owns the live snapshot for one connection,
        applies events in arrival order and notifies listeners.

Interrupting is a request to the engine only. The snapshot changes when
the matching ``execution_interrupted`` event arrives.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, AsyncIterable, Callable, Dict, List, Mapping, Optional

from nodeflow.execution.execution_events import (
    EventType,
    ExecutionEvent,
    RawEvent,
    parse_event,
)
from nodeflow.execution.execution_state import (
    ExecutionPhase,
    ExecutionState,
    NodeProgress,
    NodeStatus,
)
from nodeflow.workflow.errors import ApiResult, IssueKind

logger = getLogger(__name__)

StateListener = Callable[[ExecutionState], None]
_Handler = Callable[[ExecutionState, Dict[str, Any]], Optional[ExecutionState]]


# ============================================================================
# Payload helpers
# ============================================================================


def _node_id(value: Any) -> Optional[str]:
    """Normalize a node id: ints become strings, anything else is malformed."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value:
        return value
    return None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _resolve_display(state: ExecutionState, data: Mapping[str, Any], *keys: str) -> Optional[str]:
    """Pick the display id for an event.

    An explicit ``display_node`` / ``display_node_id`` in the payload wins;
    otherwise the first logical id found under ``keys`` is resolved
    through the learned mapping.
    """
    for display_key in ("display_node", "display_node_id"):
        display = _node_id(data.get(display_key))
        if display is not None:
            return display
    for key in keys:
        logical = _node_id(data.get(key))
        if logical is not None:
            return state.display_id(logical)
    return None


def _progress_from(data: Mapping[str, Any]) -> Optional[NodeProgress]:
    value, maximum = _number(data.get("value")), _number(data.get("max"))
    if value is None or maximum is None:
        return None
    return NodeProgress(value=value, max=maximum)


def _has_content(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (list, tuple, dict, str)):
        return len(value) > 0
    return True


# ============================================================================
# Event handlers
# ============================================================================


def _on_status(state: ExecutionState, data: Dict[str, Any]) -> Optional[ExecutionState]:
    status = data.get("status")
    exec_info = status.get("exec_info") if isinstance(status, Mapping) else None
    if not isinstance(exec_info, Mapping):
        return None
    remaining = exec_info.get("queue_remaining")
    if isinstance(remaining, bool) or not isinstance(remaining, int):
        return None
    return state.model_copy(update={"queue_remaining": remaining})


def _on_execution_start(state: ExecutionState, data: Dict[str, Any]) -> Optional[ExecutionState]:
    prompt_id = data.get("prompt_id")
    return state.model_copy(update={
        "phase": ExecutionPhase.RUNNING,
        "prompt_id": prompt_id if isinstance(prompt_id, str) else state.prompt_id,
        "started_at": _number(data.get("timestamp")),
    })


def _on_executing(state: ExecutionState, data: Dict[str, Any]) -> Optional[ExecutionState]:
    logical = _node_id(data.get("node"))
    if logical is None:
        return None
    display = _node_id(data.get("display_node")) or logical

    display_ids = dict(state.display_node_ids)
    display_ids[logical] = display
    statuses = dict(state.node_statuses)
    statuses[display] = NodeStatus.RUNNING
    return state.model_copy(update={
        "current_node_id": display,
        "node_statuses": statuses,
        "display_node_ids": display_ids,
    })


def _on_executed(state: ExecutionState, data: Dict[str, Any]) -> Optional[ExecutionState]:
    node = _resolve_display(state, data, "node", "node_id")
    if node is None:
        return None

    statuses = dict(state.node_statuses)
    statuses[node] = NodeStatus.COMPLETED
    outputs = dict(state.node_outputs)

    output = data.get("output")
    artifacts = (
        {key: value for key, value in output.items() if _has_content(value)}
        if isinstance(output, Mapping) else {}
    )
    if artifacts:
        outputs[node] = artifacts
    else:
        outputs.pop(node, None)

    return state.model_copy(update={"node_statuses": statuses, "node_outputs": outputs})


def _on_execution_cached(state: ExecutionState, data: Dict[str, Any]) -> Optional[ExecutionState]:
    nodes = data.get("nodes")
    if not isinstance(nodes, (list, tuple)):
        return None
    statuses = dict(state.node_statuses)
    for raw in nodes:
        logical = _node_id(raw)
        if logical is not None:
            statuses[state.display_id(logical)] = NodeStatus.CACHED
    return state.model_copy(update={"node_statuses": statuses})


def _status_for_progress_state(current: Optional[NodeStatus], reported: Any) -> Optional[NodeStatus]:
    if reported == "running":
        return current if current == NodeStatus.CACHED else NodeStatus.RUNNING
    if reported == "finished":
        return NodeStatus.CACHED if current is None else current
    if reported == "error":
        return NodeStatus.ERROR
    return current


def _on_progress_state(state: ExecutionState, data: Dict[str, Any]) -> Optional[ExecutionState]:
    nodes = data.get("nodes")
    if isinstance(nodes, Mapping):
        entries = list(nodes.items())
    elif isinstance(nodes, (list, tuple)):
        entries = [(None, entry) for entry in nodes]
    else:
        return None

    statuses = dict(state.node_statuses)
    progress = dict(state.node_progress)
    for key, entry in entries:
        if not isinstance(entry, Mapping):
            continue
        node = _resolve_display(state, entry, "node_id")
        if node is None and key is not None:
            logical = _node_id(key)
            node = state.display_id(logical) if logical is not None else None
        if node is None:
            continue

        status = _status_for_progress_state(statuses.get(node), entry.get("state"))
        if status is not None:
            statuses[node] = status
        node_progress = _progress_from(entry)
        if node_progress is not None:
            progress[node] = node_progress

    return state.model_copy(update={"node_statuses": statuses, "node_progress": progress})


def _on_progress(state: ExecutionState, data: Dict[str, Any]) -> Optional[ExecutionState]:
    node = _resolve_display(state, data, "node", "node_id")
    node_progress = _progress_from(data)
    if node is None or node_progress is None:
        return None
    progress = dict(state.node_progress)
    progress[node] = node_progress
    return state.model_copy(update={"node_progress": progress})


def _on_execution_error(state: ExecutionState, data: Dict[str, Any]) -> Optional[ExecutionState]:
    update: Dict[str, Any] = {"phase": ExecutionPhase.ERROR, "current_node_id": None}
    node = _resolve_display(state, data, "node_id", "node")
    if node is not None:
        message = data.get("exception_message")
        statuses = dict(state.node_statuses)
        statuses[node] = NodeStatus.ERROR
        errors = dict(state.node_errors)
        errors[node] = message if isinstance(message, str) else "Execution failed"
        update.update(node_statuses=statuses, node_errors=errors)
    else:
        logger.debug("execution_error without a node id; per-node maps unchanged")
    return state.model_copy(update=update)


def _on_execution_interrupted(state: ExecutionState, data: Dict[str, Any]) -> Optional[ExecutionState]:
    update: Dict[str, Any] = {"phase": ExecutionPhase.INTERRUPTED}
    node = _resolve_display(state, data, "node_id", "node")
    if node is not None:
        statuses = dict(state.node_statuses)
        statuses[node] = NodeStatus.INTERRUPTED
        update["node_statuses"] = statuses
    return state.model_copy(update=update)


_HANDLERS: Dict[EventType, _Handler] = {
    EventType.STATUS: _on_status,
    EventType.EXECUTION_START: _on_execution_start,
    EventType.EXECUTING: _on_executing,
    EventType.EXECUTED: _on_executed,
    EventType.EXECUTION_CACHED: _on_execution_cached,
    EventType.PROGRESS_STATE: _on_progress_state,
    EventType.PROGRESS: _on_progress,
    EventType.EXECUTION_ERROR: _on_execution_error,
    EventType.EXECUTION_INTERRUPTED: _on_execution_interrupted,
}


# ============================================================================
# Pure reductions
# ============================================================================


def reduce_event(state: ExecutionState, event: RawEvent) -> ExecutionState:
    """Apply one event to ``state`` and return the resulting snapshot.

    ``event`` may be an ``ExecutionEvent`` or a raw frame. Unknown types,
    malformed frames and events missing their node id return ``state``
    itself, unchanged.
    """
    parsed = parse_event(event)
    if parsed is None:
        return state
    event_type = parsed.event_type
    if event_type is None:
        logger.debug(f"Ignoring unknown event type: {parsed.type}")
        return state

    try:
        next_state = _HANDLERS[event_type](state, parsed.data)
    except Exception as e:
        logger.warning(f"Failed to apply {parsed.type} event: {e}")
        return state

    if next_state is None:
        logger.debug(f"Ignoring malformed {parsed.type} event: {parsed.data}")
        return state
    return next_state


def mark_prompt_queued(state: ExecutionState, prompt_id: str) -> ExecutionState:
    """Local transition after a successful submission.

    ``queue_remaining`` and the per-node maps carry over so earlier
    results stay visible while the prompt waits.
    """
    return state.model_copy(update={
        "phase": ExecutionPhase.QUEUED,
        "prompt_id": prompt_id,
        "started_at": None,
        "current_node_id": None,
    })


# ============================================================================
# Live monitor
# ============================================================================


class ExecutionMonitor:
    """Hold the execution snapshot for one event connection.

    Usage::

        monitor = ExecutionMonitor(client)
        monitor.add_listener(lambda state: print(state.phase))
        async with ComfyEventStream(config).connect() as stream:
            await monitor.consume(stream)
    """

    def __init__(self, client: Optional[Any] = None) -> None:
        self._client = client
        self._state = ExecutionState()
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> ExecutionState:
        return self._state

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register a snapshot listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def apply(self, raw: RawEvent) -> ExecutionState:
        next_state = reduce_event(self._state, raw)
        self._set_state(next_state)
        return self._state

    def mark_prompt_queued(self, prompt_id: str) -> ExecutionState:
        self._set_state(mark_prompt_queued(self._state, prompt_id))
        logger.info(f"Prompt queued: {prompt_id}")
        return self._state

    def reset(self) -> None:
        self._set_state(ExecutionState())

    async def consume(self, stream: AsyncIterable[RawEvent]) -> None:
        """Apply every frame from ``stream`` in arrival order until it ends."""
        async for raw in stream:
            self.apply(raw)

    async def interrupt(self) -> ApiResult:
        """Ask the engine to interrupt the current prompt. Does not touch the snapshot."""
        if self._client is None:
            return ApiResult.failure("No engine client configured", IssueKind.NETWORK)
        result = await self._client.interrupt(self._state.prompt_id)
        if not result.ok:
            logger.error(f"Interrupt request failed: {result.error}")
        return result

    def _set_state(self, next_state: ExecutionState) -> None:
        if next_state is self._state:
            return
        self._state = next_state
        for listener in list(self._listeners):
            try:
                listener(next_state)
            except Exception as e:
                logger.error(f"Execution state listener failed: {e}")
