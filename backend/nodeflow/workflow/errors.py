"""
Workflow Errors — issue taxonomy and result containers.

The converter, serializer and remote client never let an exception
escape to the caller. Failures are reported through the result objects
defined here, each carrying the ``IssueKind`` that produced it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class IssueKind(str, Enum):
    """Category of a reported problem."""
    PARSE = "parse"                   # Malformed / unsupported JSON shape
    REFERENTIAL = "referential"       # Link or edge points at a missing node/port
    NETWORK = "network"               # Fetch / save / submit failure
    PROTOCOL = "protocol"             # Malformed event payload


class WorkflowIssue(BaseModel):
    """A single non-fatal problem found while processing a workflow."""

    kind: IssueKind
    message: str
    ref: Optional[str] = None  # id of the offending link / edge / node

    def __str__(self) -> str:
        return self.message


class WorkflowParseError(ValueError):
    """Raised by the document model when a payload fails shape validation."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.issue = WorkflowIssue(kind=IssueKind.PARSE, message=message)


class ApiResult(BaseModel):
    """Outcome of a call against the remote engine."""

    ok: bool
    data: Any = None
    error: Optional[str] = None
    kind: Optional[IssueKind] = None

    @classmethod
    def success(cls, data: Any = None) -> "ApiResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: str, kind: IssueKind = IssueKind.NETWORK) -> "ApiResult":
        return cls(ok=False, error=error, kind=kind)


class ResultBase(BaseModel):
    """Common shape of converter / serializer results.

    ``ok`` is False only when ``error`` is set; ``warnings`` lists the
    items that were dropped along the way.
    """

    ok: bool = True
    error: Optional[WorkflowIssue] = None
    warnings: List[WorkflowIssue] = Field(default_factory=list)

    def fail(self, issue: WorkflowIssue) -> None:
        self.ok = False
        self.error = issue

    def warn(self, kind: IssueKind, message: str, ref: Optional[str] = None) -> None:
        self.warnings.append(WorkflowIssue(kind=kind, message=message, ref=ref))
