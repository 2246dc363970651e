"""
Standard document transforms and tree traversal helpers.
"""

import logging
from typing import Callable, Iterable, Iterator, List, Optional

from docshift.core.document import Document
from docshift.core.errors import TransformFailed
from docshift.core.node import Node, Span
from docshift.nodes.std import Kinds, Props
from docshift.transforms.base import Transform, TransformRegistry, replace_content

LOGGER = logging.getLogger(__name__)


# -------------------------------
# Traversal
# -------------------------------
def walk(node: Node) -> Iterator[Node]:
    """Iterate over a node and all its descendants in document order."""
    return node.walk()


def map_nodes(node: Node, fn: Callable[[Node], Node]) -> Node:
    """
    Build a new tree by applying `fn` to every node, top-down.

    `fn` is applied to a node first, then to each child of the node it
    returned. `fn` must return a node and should not modify its argument.
    """
    mapped = fn(node)
    if not isinstance(mapped, Node):
        raise TransformFailed(f"map function returned {type(mapped).__name__}, not a Node")
    return _rebuild(mapped, [map_nodes(child, fn) for child in mapped.children])


def _rebuild(node: Node, children: Iterable[Node]) -> Node:
    return Node(node.kind, props=node.props, children=children, span=node.span)


def _rewrite(doc: Document, name: str, rewrite: Callable[[Node], Node]) -> Document:
    """Rewrite the content tree; the new document is only built on success."""
    try:
        content = rewrite(doc.content)
    except RecursionError as e:
        raise TransformFailed(f"{name}: document tree is too deep") from e
    LOGGER.debug("applied transform %s", name)
    return replace_content(doc, content)


# -------------------------------
# Transforms
# -------------------------------
@TransformRegistry.register
class ShiftHeadings(Transform):
    """
    Shift all heading levels by a fixed amount.

    Positive deltas make headings deeper, negative ones shallower. Results
    are clamped to [min_level, max_level].
    """

    def __init__(self, delta: int = 1, min_level: int = 1, max_level: int = 6):
        if min_level > max_level:
            raise TransformFailed(f"min_level {min_level} is above max_level {max_level}")
        self.delta = delta
        self.min_level = min_level
        self.max_level = max_level

    @classmethod
    def get_name(cls) -> str:
        return "shift-headings"

    @classmethod
    def from_argument(cls, argument: Optional[str]) -> "ShiftHeadings":
        if argument is None:
            return cls()
        try:
            return cls(int(argument))
        except ValueError as e:
            raise TransformFailed(f"shift-headings expects an integer, got '{argument}'") from e

    def transform(self, doc: Document) -> Document:
        return _rewrite(doc, self.get_name(), self._shift)

    def _shift(self, node: Node) -> Node:
        shifted = _rebuild(node, [self._shift(child) for child in node.children])
        if node.kind == Kinds.HEADING:
            level = node.props.get_int(Props.LEVEL)
            if level is not None:
                new_level = min(max(level + self.delta, self.min_level), self.max_level)
                shifted.props.set(Props.LEVEL, new_level)
        return shifted


@TransformRegistry.register
class StripEmpty(Transform):
    """
    Remove whitespace-only text nodes and childless paragraphs, spans and divs.

    Runs bottom-up, so a paragraph that only held empty text goes as well.
    """

    EMPTY_CONTAINERS = frozenset({Kinds.PARAGRAPH, Kinds.SPAN, Kinds.DIV})

    @classmethod
    def get_name(cls) -> str:
        return "strip-empty"

    def transform(self, doc: Document) -> Document:
        return _rewrite(doc, self.get_name(), self._strip)

    @classmethod
    def is_empty_node(cls, node: Node) -> bool:
        if node.kind == Kinds.TEXT:
            return not (node.props.get_str(Props.CONTENT) or "").strip()
        return node.kind in cls.EMPTY_CONTAINERS and not node.children

    def _strip(self, node: Node) -> Node:
        children = [self._strip(child) for child in node.children]
        return _rebuild(node, [child for child in children if not self.is_empty_node(child)])


@TransformRegistry.register
class MergeText(Transform):
    """
    Merge adjacent text siblings into one text node.

    Only text nodes whose other properties are equal are merged.
    """

    @classmethod
    def get_name(cls) -> str:
        return "merge-text"

    def transform(self, doc: Document) -> Document:
        return _rewrite(doc, self.get_name(), self._merge)

    def _merge(self, node: Node) -> Node:
        merged: List[Node] = []
        for child in (self._merge(c) for c in node.children):
            if child.kind == Kinds.TEXT and merged and self._can_merge(merged[-1], child):
                merged[-1] = self._join(merged[-1], child)
                continue
            merged.append(child)
        return _rebuild(node, merged)

    @staticmethod
    def _can_merge(left: Node, right: Node) -> bool:
        if left.kind != Kinds.TEXT:
            return False
        left_props = left.props.copy()
        right_props = right.props.copy()
        left_props.remove(Props.CONTENT)
        right_props.remove(Props.CONTENT)
        return left_props == right_props

    @staticmethod
    def _join(left: Node, right: Node) -> Node:
        content = (left.props.get_str(Props.CONTENT) or "") + (right.props.get_str(Props.CONTENT) or "")
        span = None
        if left.span is not None and right.span is not None and left.span.end <= right.span.start:
            span = Span(left.span.start, right.span.end)
        node = left.prop(Props.CONTENT, content)
        node.span = span
        return node


@TransformRegistry.register
class UnwrapSingleChild(Transform):
    """
    Replace a div or span that has exactly one child by that child.

    Wrappers carrying properties or a source span are kept.
    """

    WRAPPERS = frozenset({Kinds.DIV, Kinds.SPAN})

    @classmethod
    def get_name(cls) -> str:
        return "unwrap-single-child"

    def transform(self, doc: Document) -> Document:
        return _rewrite(doc, self.get_name(), self._unwrap)

    @classmethod
    def is_unwrappable(cls, node: Node) -> bool:
        return (
            node.kind in cls.WRAPPERS
            and len(node.children) == 1
            and node.props.is_empty()
            and node.span is None
        )

    def _unwrap(self, node: Node) -> Node:
        rebuilt = _rebuild(node, [self._unwrap(child) for child in node.children])
        if self.is_unwrappable(rebuilt):
            return rebuilt.children[0]
        return rebuilt


@TransformRegistry.register
class DropSourceInfo(Transform):
    """Clear the source format info so writers cannot consult it."""

    @classmethod
    def get_name(cls) -> str:
        return "drop-source-info"

    def transform(self, doc: Document) -> Document:
        new_doc = replace_content(doc, doc.content.copy())
        new_doc.source = None
        return new_doc


class Pipeline(Transform):
    """
    Apply several transforms in sequence.

    The first failure aborts the pipeline; the input document is unchanged
    either way.
    """

    def __init__(self, transforms: Iterable[Transform] = ()):
        self.transforms: List[Transform] = list(transforms)

    @classmethod
    def get_name(cls) -> str:
        return "pipeline"

    def then(self, transform: Transform) -> "Pipeline":
        """Return a pipeline with one more step."""
        return Pipeline(self.transforms + [transform])

    def transform(self, doc: Document) -> Document:
        for step in self.transforms:
            doc = step.transform(doc)
        return doc

    def __len__(self) -> int:
        return len(self.transforms)
