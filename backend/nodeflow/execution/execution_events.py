"""
Execution Events — messages pushed by the engine over its event channel.

Each text frame is a JSON object ``{"type": str, "data": object}``.
Binary frames carry preview images and are not events.
"""

from __future__ import annotations

import json
from enum import Enum
from logging import getLogger
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

logger = getLogger(__name__)


class EventType(str, Enum):
    """Event types the monitor understands."""
    STATUS = "status"
    EXECUTION_START = "execution_start"
    EXECUTING = "executing"
    EXECUTED = "executed"
    EXECUTION_CACHED = "execution_cached"
    PROGRESS_STATE = "progress_state"
    PROGRESS = "progress"
    EXECUTION_ERROR = "execution_error"
    EXECUTION_INTERRUPTED = "execution_interrupted"


KNOWN_EVENT_TYPES = frozenset(t.value for t in EventType)


class ExecutionEvent(BaseModel):
    """One decoded event. ``type`` is kept as a string so unknown types survive."""

    type: str
    data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def event_type(self) -> Optional[EventType]:
        if self.type in KNOWN_EVENT_TYPES:
            return EventType(self.type)
        return None


RawEvent = Union[str, bytes, bytearray, Mapping[str, Any], ExecutionEvent]


def parse_event(raw: RawEvent) -> Optional[ExecutionEvent]:
    """Decode a raw frame into an ``ExecutionEvent``.

    Returns None for binary frames, malformed JSON, non-object payloads
    and objects without a string ``type``. A missing or non-object
    ``data`` becomes an empty dict.
    """
    if isinstance(raw, ExecutionEvent):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        return None

    if isinstance(raw, str):
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.debug(f"Ignoring malformed event frame: {raw[:80]!r}")
            return None
    else:
        payload = raw

    if not isinstance(payload, Mapping):
        return None
    event_type = payload.get("type")
    if not isinstance(event_type, str):
        return None

    data = payload.get("data")
    if not isinstance(data, Mapping):
        data = {}

    try:
        return ExecutionEvent(type=event_type, data=dict(data))
    except ValidationError:
        return None
