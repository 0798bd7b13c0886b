"""
Workflow Data Models — the persisted workflow document.

These are the serializable data structures that describe a saved
node graph exactly as the remote engine stores it. They are fetched
and saved by ``ComfyClient``, projected into an editable graph by
``graph_converter`` and rebuilt from it by ``graph_serializer``.

Connectivity is stored three times:

    1. The top-level ``links`` array of 6-tuples
       ``[link_id, from_node, from_slot, to_node, to_slot, type]``.
    2. ``node.inputs[slot].link`` on the target node.
    3. ``node.outputs[slot].links`` on the source node.

The top-level array is the source of truth; the other two are
denormalized copies rebuilt from it.

Every model keeps unknown keys (``extra="allow"``) so a load/save
round trip never drops data this package does not interpret.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
    model_serializer,
)

from nodeflow.workflow.errors import WorkflowParseError

WILDCARD_TYPE = "*"

Number = Union[int, float]


def _coerce_pair(value: Any) -> Any:
    """Accept ``[x, y]`` as well as the legacy ``{"0": x, "1": y}`` form."""
    if isinstance(value, dict):
        return [value.get("0", 0), value.get("1", 0)]
    return value


# ============================================================================
# Ports
# ============================================================================


class NodeWidget(BaseModel):
    """Marker: the input may take an inline literal when unconnected."""

    model_config = ConfigDict(extra="allow")

    name: str = ""


class NodeInput(BaseModel):
    """An input slot. ``link`` is the denormalized incoming link id."""

    model_config = ConfigDict(extra="allow")

    name: str
    type: str = WILDCARD_TYPE
    link: Optional[int] = None
    widget: Optional[NodeWidget] = None

    @property
    def has_widget(self) -> bool:
        return self.widget is not None

    @model_serializer(mode="wrap")
    def _omit_missing_widget(self, handler):
        data = handler(self)
        if data.get("widget") is None:
            data.pop("widget", None)
        return data


class NodeOutput(BaseModel):
    """An output slot. ``links`` holds the denormalized outgoing link ids."""

    model_config = ConfigDict(extra="allow")

    name: str
    type: str = WILDCARD_TYPE
    links: List[int] = Field(default_factory=list)

    @field_validator("links", mode="before")
    @classmethod
    def _null_links(cls, value: Any) -> Any:
        return [] if value is None else value


# ============================================================================
# Nodes & Links
# ============================================================================


class WorkflowNode(BaseModel):
    """A single node of the persisted graph.

    ``widgets_values`` is positional: one entry per input carrying a
    ``widget`` marker, in input order.
    """

    model_config = ConfigDict(extra="allow")

    id: int
    type: str
    pos: List[Number] = Field(default_factory=lambda: [0, 0])
    size: List[Number] = Field(default_factory=lambda: [0, 0])
    flags: Dict[str, Any] = Field(default_factory=dict)
    order: int = 0
    mode: int = 0
    inputs: List[NodeInput] = Field(default_factory=list)
    outputs: List[NodeOutput] = Field(default_factory=list)
    title: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    widgets_values: List[Any] = Field(default_factory=list)

    @field_validator("pos", "size", mode="before")
    @classmethod
    def _legacy_pair(cls, value: Any) -> Any:
        return _coerce_pair(value)

    @field_validator("widgets_values", mode="before")
    @classmethod
    def _null_widgets(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_serializer(mode="wrap")
    def _omit_missing_title(self, handler):
        data = handler(self)
        if data.get("title") is None:
            data.pop("title", None)
        return data

    def widget_inputs(self) -> List[NodeInput]:
        """Inputs carrying a widget marker, in input order."""
        return [inp for inp in self.inputs if inp.has_widget]

    @property
    def display_label(self) -> str:
        return self.title or self.type


class LinkRecord(BaseModel):
    """One directed connection between an output and an input slot."""

    link_id: int
    from_node_id: int
    from_port_index: int
    to_node_id: int
    to_port_index: int
    type_tag: str = WILDCARD_TYPE

    @field_validator("type_tag", mode="before")
    @classmethod
    def _stringify_type(cls, value: Any) -> Any:
        if value is None:
            return WILDCARD_TYPE
        return value if isinstance(value, str) else str(value)

    @classmethod
    def from_raw(cls, raw: Any) -> "LinkRecord":
        """Build from the 6-tuple form or the keyed object form."""
        if isinstance(raw, (list, tuple)):
            if len(raw) < 6:
                raise ValueError(f"link tuple needs 6 entries, got {len(raw)}")
            return cls(
                link_id=raw[0],
                from_node_id=raw[1],
                from_port_index=raw[2],
                to_node_id=raw[3],
                to_port_index=raw[4],
                type_tag=raw[5],
            )
        if isinstance(raw, dict):
            if "origin_id" in raw:
                return cls(
                    link_id=raw.get("id"),
                    from_node_id=raw.get("origin_id"),
                    from_port_index=raw.get("origin_slot"),
                    to_node_id=raw.get("target_id"),
                    to_port_index=raw.get("target_slot"),
                    type_tag=raw.get("type"),
                )
            return cls(**raw)
        if isinstance(raw, LinkRecord):
            return raw
        raise ValueError(f"unsupported link entry: {type(raw).__name__}")

    def to_tuple(self) -> List[Any]:
        return [
            self.link_id,
            self.from_node_id,
            self.from_port_index,
            self.to_node_id,
            self.to_port_index,
            self.type_tag,
        ]

    def connectivity(self) -> tuple:
        """Identity-free description used to compare graphs."""
        return (
            self.from_node_id,
            self.from_port_index,
            self.to_node_id,
            self.to_port_index,
            self.type_tag,
        )


# ============================================================================
# Document
# ============================================================================


class DisplaySettings(BaseModel):
    """Saved canvas viewport (``extra.ds``)."""

    model_config = ConfigDict(extra="allow")

    scale: Optional[Number] = None
    offset: Optional[List[Number]] = None

    @field_validator("offset", mode="before")
    @classmethod
    def _legacy_offset(cls, value: Any) -> Any:
        return _coerce_pair(value)


class WorkflowDocument(BaseModel):
    """A complete persisted workflow graph.

    ``groups``, ``config`` and ``extra`` are opaque pass-through data.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    revision: int
    last_node_id: int
    last_link_id: int
    nodes: List[WorkflowNode]
    links: List[LinkRecord]
    groups: List[Any]
    config: Dict[str, Any]
    extra: Dict[str, Any]
    version: Number

    @field_validator("links", mode="before")
    @classmethod
    def _parse_links(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [LinkRecord.from_raw(raw) for raw in value]

    @field_serializer("links")
    def _links_as_tuples(self, links: List[LinkRecord]) -> List[List[Any]]:
        return [link.to_tuple() for link in links]

    # ── Loading / dumping ──

    @classmethod
    def parse(cls, data: Any) -> "WorkflowDocument":
        """Validate a decoded JSON payload.

        Raises:
            WorkflowParseError: If the payload does not have the
                workflow document shape.
        """
        if not isinstance(data, dict):
            raise WorkflowParseError(
                "Invalid workflow definition structure: expected an object"
            )
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            where = ".".join(str(p) for p in first.get("loc", ())) or "<root>"
            raise WorkflowParseError(
                f"Invalid workflow definition structure: {where}: {first.get('msg')}"
            ) from e

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "WorkflowDocument":
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise WorkflowParseError(f"Failed to parse JSON: {e}") from e
        return cls.parse(data)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    def to_json(self, indent: Optional[int] = None) -> str:
        return self.model_dump_json(indent=indent)

    # ── Lookups ──

    def get_node(self, node_id: int) -> Optional[WorkflowNode]:
        """Find a node by ID."""
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def node_map(self) -> Dict[int, WorkflowNode]:
        return {n.id: n for n in self.nodes}

    def get_link(self, link_id: int) -> Optional[LinkRecord]:
        for link in self.links:
            if link.link_id == link_id:
                return link
        return None

    def max_link_id(self) -> int:
        return max((link.link_id for link in self.links), default=0)

    def max_node_id(self) -> int:
        return max((n.id for n in self.nodes), default=0)

    def display_settings(self) -> Optional[DisplaySettings]:
        ds = self.extra.get("ds") if isinstance(self.extra, dict) else None
        if not isinstance(ds, dict):
            return None
        try:
            return DisplaySettings.model_validate(ds)
        except ValidationError:
            return None


class WorkflowFileInfo(BaseModel):
    """Metadata of a saved workflow file as listed by the remote storage."""

    model_config = ConfigDict(extra="allow")

    path: str
    size: int
    modified: Number
    created: Number

    @property
    def name(self) -> str:
        """File name without the ``workflows/`` directory prefix."""
        return self.path.split("/")[-1] or self.path
