"""Mapping model serialization (Edimap -> XML document).

The output is deterministic for a given tree: attribute order is fixed and
attributes whose value is unset (None / False) are omitted.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from .exceptions import SerializationError
from .model import Component, Edimap, Field, MappingNode, Segment, SegmentGroup, SubComponent, ValueNode

EDIMAP_NAMESPACE = "http://www.milyn.org/schema/edi-message-mapping-1.5.xsd"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

ET.register_namespace("medi", EDIMAP_NAMESPACE)


def _qname(local: str) -> str:
    return f"{{{EDIMAP_NAMESPACE}}}{local}"


def _set(element: ET.Element, name: str, value: object) -> None:
    if value is None or value is False:
        return
    if value is True:
        element.set(name, "true")
    else:
        element.set(name, str(value))


def _mapping_node_attrs(element: ET.Element, node: MappingNode) -> None:
    _set(element, "xmltag", node.xmltag)
    _set(element, "documentation", node.documentation)


def _value_node_attrs(element: ET.Element, node: ValueNode) -> None:
    _mapping_node_attrs(element, node)
    _set(element, "type", node.data_type)
    _set(element, "minLength", node.min_length)
    _set(element, "maxLength", node.max_length)


def _append_sub_component(parent: ET.Element, sub_component: SubComponent) -> None:
    element = ET.SubElement(parent, _qname("sub-component"))
    _value_node_attrs(element, sub_component)
    _set(element, "required", sub_component.required)


def _append_component(parent: ET.Element, component: Component) -> None:
    element = ET.SubElement(parent, _qname("component"))
    _value_node_attrs(element, component)
    _set(element, "required", component.required)
    _set(element, "truncatable", component.truncatable)
    for sub_component in component.sub_components:
        _append_sub_component(element, sub_component)


def _append_field(parent: ET.Element, field: Field) -> None:
    element = ET.SubElement(parent, _qname("field"))
    _value_node_attrs(element, field)
    _set(element, "required", field.required)
    _set(element, "truncatable", field.truncatable)
    for component in field.components:
        _append_component(element, component)


def _append_group(parent: ET.Element, group: SegmentGroup) -> None:
    if isinstance(group, Segment):
        element = ET.SubElement(parent, _qname("segment"))
        _set(element, "segcode", group.segcode)
        _mapping_node_attrs(element, group)
        _set(element, "minOccurs", group.min_occurs)
        _set(element, "maxOccurs", group.max_occurs)
        _set(element, "truncatable", group.truncatable)
        _set(element, "ignoreUnmappedFields", group.ignore_unmapped_fields)
        for field in group.fields:
            _append_field(element, field)
    else:
        element = ET.SubElement(parent, _qname("segmentGroup"))
        _mapping_node_attrs(element, group)
        _set(element, "minOccurs", group.min_occurs)
        _set(element, "maxOccurs", group.max_occurs)

    for child in group.segments:
        _append_group(element, child)


def to_element(edimap: Edimap) -> ET.Element:
    """Build the element tree of a mapping model.

    Raises:
        SerializationError: The root node is a segment (the segments element cannot carry fields)
    """
    if isinstance(edimap.segments, Segment):
        raise SerializationError("Root segment group must not be a segment", message_id=edimap.description.name)

    root = ET.Element(_qname("edimap"))

    description = ET.SubElement(root, _qname("description"))
    _set(description, "name", edimap.description.name)
    _set(description, "version", edimap.description.version)

    delimiters = ET.SubElement(root, _qname("delimiters"))
    _set(delimiters, "segment", edimap.delimiters.segment)
    _set(delimiters, "field", edimap.delimiters.field)
    _set(delimiters, "component", edimap.delimiters.component)
    _set(delimiters, "sub-component", edimap.delimiters.sub_component)
    _set(delimiters, "escape", edimap.delimiters.escape)

    segments = ET.SubElement(root, _qname("segments"))
    _mapping_node_attrs(segments, edimap.segments)
    for child in edimap.segments.segments:
        _append_group(segments, child)

    return root


def serialize(edimap: Edimap) -> str:
    """Serialize a mapping model to an XML document.

    Raises:
        SerializationError: The tree holds values that cannot be written
    """
    try:
        root = to_element(edimap)
        ET.indent(root, space="    ")
        return XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"
    except SerializationError:
        raise
    except Exception as e:
        name = getattr(getattr(edimap, "description", None), "name", None)
        raise SerializationError(f"Failed to serialize mapping model: {e}", message_id=name) from e
