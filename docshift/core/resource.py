"""
Resource management for embedded content (images, fonts, data files).

Resources live in a side table on the Document and are referenced from node
properties by ResourceId. Identifiers come from an IdGenerator; the
process-wide default generator is safe to advance from several threads.
"""

from __future__ import annotations

import itertools
import threading
from typing import Optional

from docshift.core.properties import Properties


class ResourceId:
    """Opaque identifier for an embedded resource."""

    __slots__ = ("_value",)

    def __init__(self, value: str):
        self._value = value

    @classmethod
    def from_string(cls, value: str) -> "ResourceId":
        """Rebuild an identifier from its string form (e.g. when deserializing)."""
        return cls(str(value))

    def as_str(self) -> str:
        return self._value

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"ResourceId({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceId):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)


class IdGenerator:
    """
    Monotonic, thread-safe source of resource identifiers.

    Identifiers are never reused, even if the resource they named is later
    dropped. Pass a dedicated generator to a Document (or reader) to get
    deterministic ids in tests.
    """

    def __init__(self, prefix: str = "res_", start: int = 0):
        self._prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> ResourceId:
        with self._lock:
            value = next(self._counter)
        return ResourceId(f"{self._prefix}{value}")


_DEFAULT_GENERATOR = IdGenerator()


def default_generator() -> IdGenerator:
    """Return the process-wide identifier generator."""
    return _DEFAULT_GENERATOR


class Resource:
    """An embedded resource. Construction never assigns an identifier."""

    def __init__(
        self,
        mime_type: str,
        data: bytes,
        name: Optional[str] = None,
        metadata: Optional[Properties] = None,
    ):
        self.mime_type = mime_type
        self.data = bytes(data)
        self.name = name
        self.metadata = metadata.copy() if metadata is not None else Properties()

    def with_name(self, name: str) -> "Resource":
        return Resource(self.mime_type, self.data, name=name, metadata=self.metadata)

    @classmethod
    def image(cls, mime_type: str, data: bytes) -> "Resource":
        return cls(mime_type, data)

    @classmethod
    def png(cls, data: bytes) -> "Resource":
        return cls("image/png", data)

    @classmethod
    def jpeg(cls, data: bytes) -> "Resource":
        return cls("image/jpeg", data)

    def copy(self) -> "Resource":
        return Resource(self.mime_type, self.data, name=self.name, metadata=self.metadata)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Resource):
            return NotImplemented
        return (
            self.mime_type == other.mime_type
            and self.data == other.data
            and self.name == other.name
            and self.metadata == other.metadata
        )

    def __repr__(self) -> str:
        return f"Resource(name={self.name!r}, mime_type={self.mime_type!r}, size={len(self.data)})"
