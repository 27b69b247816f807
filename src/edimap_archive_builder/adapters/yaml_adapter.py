"""YamlDefinitionAdapter for message definition documents.

Reads a YAML (or JSON) document describing messages and builds their mapping
models. A node with a ``segcode`` is a segment; any other node is a group.

Example:
    interchange:
      properties:
        segment-delimiter: "'"
    messages:
      - id: ORDERS
        version: D:96A:UN
        segments:
          xmltag: Segments
          segments:
            - segcode: BGM
              xmltag: BeginningOfMessage
              fields:
                - xmltag: documentName
                  components:
                    - xmltag: code
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path
from typing import IO, Any

import yaml

from edimap_archive_builder.core.exceptions import UpstreamReadError
from edimap_archive_builder.core.model import (
    Component,
    Delimiters,
    Description,
    Edimap,
    Field,
    Segment,
    SegmentGroup,
    SubComponent,
)

from .base_adapter import BaseSpecificationReader


class _DefinitionLoader(yaml.SafeLoader):
    """SafeLoader that only resolves true/false as booleans.

    YAML 1.1 would read EDI codes such as NO, ON or Y as booleans.
    """


_DefinitionLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:bool"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_DefinitionLoader.add_implicit_resolver(
    "tag:yaml.org,2002:bool",
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def _text(value: Any) -> str | None:
    return None if value is None else str(value)


def _value_attrs(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "xmltag": _text(raw.get("xmltag")),
        "documentation": _text(raw.get("documentation")),
        "data_type": _text(raw.get("type")),
        "min_length": raw.get("minLength"),
        "max_length": raw.get("maxLength"),
        "required": bool(raw.get("required", False)),
    }


def _sub_component(raw: Mapping[str, Any]) -> SubComponent:
    return SubComponent(**_value_attrs(raw))


def _component(raw: Mapping[str, Any]) -> Component:
    return Component(
        **_value_attrs(raw),
        truncatable=bool(raw.get("truncatable", False)),
        sub_components=[_sub_component(s) for s in raw.get("sub_components") or []],
    )


def _field(raw: Mapping[str, Any]) -> Field:
    return Field(
        **_value_attrs(raw),
        truncatable=bool(raw.get("truncatable", False)),
        components=[_component(c) for c in raw.get("components") or []],
    )


def _group(raw: Mapping[str, Any]) -> SegmentGroup:
    common = {
        "xmltag": _text(raw.get("xmltag")),
        "documentation": _text(raw.get("documentation")),
        "min_occurs": int(raw.get("minOccurs", 1)),
        "max_occurs": int(raw.get("maxOccurs", 1)),
        "segments": [_group(child) for child in raw.get("segments") or []],
    }
    if "segcode" in raw:
        return Segment(
            **common,
            segcode=str(raw["segcode"]),
            fields=[_field(f) for f in raw.get("fields") or []],
            truncatable=bool(raw.get("truncatable", False)),
            ignore_unmapped_fields=bool(raw.get("ignoreUnmappedFields", False)),
        )
    return SegmentGroup(**common)


class YamlDefinitionAdapter(BaseSpecificationReader):
    """Reader over a YAML/JSON message definition document.

    Args:
        source: Path to the document, or an open text/binary stream. Streams are
            read but not closed.
    """

    def __init__(self, source: Path | str | IO[Any]) -> None:
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not path.exists():
                raise FileNotFoundError(f"Definition file not found: {path}")
            try:
                with open(path, encoding="utf-8") as f:
                    document = yaml.load(f, Loader=_DefinitionLoader)
            except yaml.YAMLError as e:
                raise UpstreamReadError(f"Failed to parse definition file: {path}") from e
        else:
            try:
                document = yaml.load(source, Loader=_DefinitionLoader)
            except yaml.YAMLError as e:
                raise UpstreamReadError("Failed to parse definition stream") from e

        self._load(document)

    @classmethod
    def from_dict(cls, document: Mapping[str, Any]) -> YamlDefinitionAdapter:
        """Build the adapter from an already loaded document."""
        adapter = cls.__new__(cls)
        adapter._load(document)
        return adapter

    def _load(self, document: Any) -> None:
        if not isinstance(document, Mapping):
            raise UpstreamReadError("Definition document must be a mapping")

        messages = document.get("messages") or []
        if not isinstance(messages, list):
            raise UpstreamReadError("'messages' must be a list")

        # 初出順を保ち、重複 id は最初の定義を採用する
        self._messages: dict[str, Mapping[str, Any]] = {}
        for raw in messages:
            if not isinstance(raw, Mapping) or not raw.get("id"):
                raise UpstreamReadError(f"Message definition without id: {raw!r}")
            self._messages.setdefault(str(raw["id"]), raw)

        interchange = document.get("interchange") or {}
        if not isinstance(interchange, Mapping):
            raise UpstreamReadError("'interchange' must be a mapping")
        properties = interchange.get("properties") or {}
        if not isinstance(properties, Mapping):
            raise UpstreamReadError("'interchange.properties' must be a mapping")
        self._properties = {str(k): "" if v is None else str(v) for k, v in properties.items()}

    def message_ids(self) -> list[str]:
        return list(self._messages)

    def mapping_model(self, message_id: str) -> Edimap:
        raw = self._messages.get(message_id)
        if raw is None:
            raise UpstreamReadError("Unknown message", message_id=message_id)

        try:
            delimiters = Delimiters(**(raw.get("delimiters") or {}))
            raw_root = raw.get("segments") or {"xmltag": "Segments"}
            if "segcode" in raw_root:
                raise UpstreamReadError("Root of 'segments' must be a group, not a segment", message_id=message_id)
            root = _group(raw_root)
            return Edimap(
                description=Description(
                    name=str(raw.get("name", message_id)),
                    version=str(raw.get("version", "")),
                ),
                delimiters=delimiters,
                segments=root,
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise UpstreamReadError(f"Malformed message definition: {e}", message_id=message_id) from e

    def interchange_properties(self) -> dict[str, str]:
        return dict(self._properties)
