"""
Node types for the document tree.

A node has an open-ended kind tag, a property bag, an ordered list of
children it exclusively owns, and an optional source span. Builder methods
(prop, child, with_children, with_span) never mutate the receiver; each returns
a new node, so partially built trees can be shared freely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from docshift.core.properties import Properties

TEXT_KIND = "text"
CONTENT_PROP = "content"


class NodeKind(str):
    """
    Node kind tag.

    Kinds are plain strings so that new domains can add kinds without
    touching this module. Extension domains namespace their kinds with a
    prefix, e.g. "math:fraction".
    """

    def __new__(cls, value: str) -> "NodeKind":
        if isinstance(value, NodeKind):
            return value
        if not isinstance(value, str):
            raise TypeError(f"Node kind must be str, got {type(value).__name__}")
        if not value:
            raise ValueError("Node kind must not be empty")
        return super().__new__(cls, value)

    @property
    def namespace(self) -> Optional[str]:
        """Prefix before the first ':' (None for core kinds)."""
        if ":" in self:
            return self.split(":", 1)[0]
        return None

    @property
    def local_name(self) -> str:
        if ":" in self:
            return self.split(":", 1)[1]
        return str(self)


@dataclass(frozen=True)
class Span:
    """Source offsets (start inclusive, end exclusive) for diagnostics."""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span: ({self.start}, {self.end})")


class Node:
    """A content node in the document tree."""

    __slots__ = ("kind", "props", "_children", "span")

    def __init__(
        self,
        kind: str,
        props: Optional[Properties] = None,
        children: Iterable["Node"] = (),
        span: Optional[Span] = None,
    ):
        self.kind = NodeKind(kind)
        self.props = props.copy() if props is not None else Properties()
        self._children: List[Node] = [_own(child) for child in children]
        self.span = span

    @classmethod
    def text(cls, content: str) -> "Node":
        """Create a text leaf carrying its text in the 'content' property."""
        return cls(TEXT_KIND).prop(CONTENT_PROP, content)

    @property
    def children(self) -> Tuple["Node", ...]:
        """Read-only view; use child(), with_children() or assignment to change."""
        return tuple(self._children)

    @children.setter
    def children(self, nodes: Iterable["Node"]) -> None:
        self._children = [_own(child) for child in nodes]

    @property
    def is_leaf(self) -> bool:
        return not self._children

    def copy(self) -> "Node":
        """Return a deep copy of this node and its subtree."""
        clone = Node.__new__(Node)
        clone.kind = self.kind
        clone.props = self.props.copy()
        clone._children = [child.copy() for child in self._children]
        clone.span = self.span
        return clone

    # Builder methods: each returns a new node

    def prop(self, key: str, value: Any) -> "Node":
        """Return a copy of this node with a property set."""
        node = self.copy()
        node.props.set(key, value)
        return node

    def child(self, child: "Node") -> "Node":
        """Return a copy of this node with a child appended."""
        node = self.copy()
        node._children.append(_own(child))
        return node

    def with_children(self, children: Iterable["Node"]) -> "Node":
        """Return a copy of this node with several children appended."""
        node = self.copy()
        node._children.extend(_own(child) for child in children)
        return node

    def with_span(self, span: Span) -> "Node":
        node = self.copy()
        node.span = span
        return node

    # Queries

    def walk(self) -> Iterator["Node"]:
        """Iterate over this node and all descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node._children))

    def text_content(self) -> str:
        """Concatenate the 'content' of every text-bearing descendant."""
        parts = []
        for node in self.walk():
            if node.kind in TEXT_BEARING_KINDS:
                content = node.props.get_str(CONTENT_PROP)
                if content:
                    parts.append(content)
        return "".join(parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return (
            self.kind == other.kind
            and self.props == other.props
            and self.span == other.span
            and self._children == other._children
        )

    def __repr__(self) -> str:
        return f"Node({str(self.kind)!r}, props={self.props.to_dict()!r}, children={len(self._children)})"


TEXT_BEARING_KINDS = frozenset({TEXT_KIND, "code", "code_block"})


def _own(child: "Node") -> "Node":
    # The parent takes its own copy so no node ends up under two parents
    if not isinstance(child, Node):
        raise TypeError(f"Children must be Node instances, got {type(child).__name__}")
    return child.copy()
