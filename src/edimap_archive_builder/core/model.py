"""EDI mapping model.

A message is a tree: segment groups contain segments and nested groups, segments
contain fields, fields contain components and components contain sub-components.
Every node carries an ``xmltag`` which becomes its element name once serialized.

Each node exposes its ordered children of exactly one kind through ``children``,
so tree walks can treat all levels alike. A ``Segment`` additionally holds its
``fields``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# Inserted between a duplicated tag and its 1-based index ("QTY" -> "QTY-1").
INDEXED_NODE_SEPARATOR = "-"


@dataclass
class MappingNode:
    xmltag: str | None = None
    documentation: str | None = None

    @property
    def children(self) -> list[MappingNode]:
        return []


@dataclass
class ValueNode(MappingNode):
    data_type: str | None = None
    min_length: int | None = None
    max_length: int | None = None


@dataclass
class SubComponent(ValueNode):
    required: bool = False


@dataclass
class Component(ValueNode):
    sub_components: list[SubComponent] = field(default_factory=list)
    required: bool = False
    truncatable: bool = False

    @property
    def children(self) -> list[SubComponent]:
        return self.sub_components


@dataclass
class Field(ValueNode):
    components: list[Component] = field(default_factory=list)
    required: bool = False
    truncatable: bool = False

    @property
    def children(self) -> list[Component]:
        return self.components


@dataclass
class SegmentGroup(MappingNode):
    """Group node: an ordered run of child segments and groups."""

    segments: list[SegmentGroup] = field(default_factory=list)
    min_occurs: int = 1
    max_occurs: int = 1

    @property
    def children(self) -> list[SegmentGroup]:
        return self.segments


@dataclass
class Segment(SegmentGroup):
    """Segment node: fields plus (optionally) nested child segments."""

    segcode: str = ""
    fields: list[Field] = field(default_factory=list)
    truncatable: bool = False
    ignore_unmapped_fields: bool = False


@dataclass(frozen=True)
class Description:
    name: str
    version: str


@dataclass(frozen=True)
class Delimiters:
    """Interchange delimiters (UN/EDIFACT service string advice defaults)."""

    segment: str = "'"
    field: str = "+"
    component: str = ":"
    sub_component: str = "~"
    escape: str | None = "?"


@dataclass
class Edimap:
    """Mapping model of one message."""

    description: Description
    segments: SegmentGroup
    delimiters: Delimiters = field(default_factory=Delimiters)
