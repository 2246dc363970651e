"""
Native serialization of the document model to plain JSON-compatible data.

The native form is lossless: every node, property, span, resource and the
source info survive a round trip.
"""

import base64
import binascii
from typing import Any, Dict, Mapping

from docshift.core.document import Document, SourceInfo
from docshift.core.node import Node, Span
from docshift.core.properties import Properties
from docshift.core.resource import IdGenerator, Resource, ResourceId

NATIVE_VERSION = 1
MAX_DEPTH = 256


class NativeFormatError(ValueError):
    """The data does not have the native document shape."""


def node_to_dict(node: Node) -> Dict[str, Any]:
    return {
        "kind": str(node.kind),
        "props": node.props.to_dict(),
        "children": [node_to_dict(child) for child in node.children],
        "span": [node.span.start, node.span.end] if node.span else None,
    }


def document_to_dict(doc: Document) -> Dict[str, Any]:
    resources = {}
    for resource_id, resource in doc.resources.items():
        resources[str(resource_id)] = {
            "name": resource.name,
            "mime_type": resource.mime_type,
            "data": base64.b64encode(resource.data).decode("ascii"),
            "metadata": resource.metadata.to_dict(),
        }
    source = None
    if doc.source is not None:
        source = {"format": doc.source.format, "metadata": doc.source.metadata.to_dict()}
    return {
        "docshift": NATIVE_VERSION,
        "content": node_to_dict(doc.content),
        "metadata": doc.metadata.to_dict(),
        "source": source,
        "resources": resources,
    }


def _require(data: Mapping, key: str, kind: type):
    value = data.get(key)
    if not isinstance(value, kind):
        raise NativeFormatError(f"'{key}' must be {kind.__name__}")
    return value


def _properties(value: Any) -> Properties:
    if value is None:
        return Properties()
    if not isinstance(value, dict):
        raise NativeFormatError("properties must be an object")
    try:
        return Properties(value)
    except (TypeError, ValueError) as e:
        raise NativeFormatError(str(e)) from e


def node_from_dict(data: Any, depth: int = 0) -> Node:
    if depth > MAX_DEPTH:
        raise NativeFormatError(f"tree deeper than {MAX_DEPTH} levels")
    if not isinstance(data, dict):
        raise NativeFormatError("node must be an object")
    kind = _require(data, "kind", str)
    if not kind:
        raise NativeFormatError("node kind must not be empty")

    span = None
    raw_span = data.get("span")
    if raw_span is not None:
        if (not isinstance(raw_span, list) or len(raw_span) != 2
                or not all(isinstance(v, int) and not isinstance(v, bool) for v in raw_span)):
            raise NativeFormatError("span must be [start, end]")
        try:
            span = Span(raw_span[0], raw_span[1])
        except ValueError as e:
            raise NativeFormatError(str(e)) from e

    children = data.get("children") or []
    if not isinstance(children, list):
        raise NativeFormatError("'children' must be a list")
    return Node(
        kind,
        props=_properties(data.get("props")),
        children=[node_from_dict(child, depth + 1) for child in children],
        span=span,
    )


def document_from_dict(data: Any, id_generator: IdGenerator = None) -> Document:
    if not isinstance(data, dict):
        raise NativeFormatError("document must be an object")
    content = node_from_dict(data.get("content"))
    doc = Document(content, metadata=_properties(data.get("metadata")), id_generator=id_generator)

    source = data.get("source")
    if source is not None:
        if not isinstance(source, dict):
            raise NativeFormatError("'source' must be an object")
        doc.source = SourceInfo(_require(source, "format", str), _properties(source.get("metadata")))

    resources = data.get("resources") or {}
    if not isinstance(resources, dict):
        raise NativeFormatError("'resources' must be an object")
    for key, entry in resources.items():
        if not isinstance(entry, dict):
            raise NativeFormatError(f"resource {key} must be an object")
        try:
            payload = base64.b64decode(_require(entry, "data", str), validate=True)
        except binascii.Error as e:
            raise NativeFormatError(f"resource {key} data is not base64") from e
        name = entry.get("name")
        resource = Resource(
            _require(entry, "mime_type", str),
            payload,
            name=name if isinstance(name, str) else None,
            metadata=_properties(entry.get("metadata")),
        )
        doc.insert_resource(ResourceId.from_string(key), resource)
    return doc
