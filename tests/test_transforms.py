"""
Tests for document transforms and the transform registry.
"""

import pytest

from docshift.core.document import Document, SourceInfo
from docshift.core.errors import TransformFailed
from docshift.core.node import Node, Span
from docshift.core.properties import Properties
from docshift.core.resource import Resource
from docshift.nodes.std import Kinds, Props, heading, paragraph, text
from docshift.transforms import (
    DropSourceInfo,
    MergeText,
    Pipeline,
    ShiftHeadings,
    StripEmpty,
    Transform,
    TransformRegistry,
    UnwrapSingleChild,
    map_nodes,
    walk,
)


def make_doc(*blocks) -> Document:
    return Document(Node(Kinds.DOCUMENT, children=blocks))


def levels(doc):
    return [n.props.get_int(Props.LEVEL) for n in walk(doc.content) if n.kind == Kinds.HEADING]


def test_shift_headings_clamps():
    doc = make_doc(heading(1, [text("a")]), heading(5, [text("b")]), heading(6, [text("c")]))
    assert levels(ShiftHeadings(1).transform(doc)) == [2, 6, 6]
    assert levels(ShiftHeadings(-3).transform(doc)) == [1, 2, 3]
    assert levels(doc) == [1, 5, 6]


def test_shift_headings_bad_arguments():
    with pytest.raises(TransformFailed):
        ShiftHeadings.from_argument("up")
    with pytest.raises(TransformFailed):
        ShiftHeadings(1, min_level=4, max_level=2)
    assert ShiftHeadings.from_argument("-2").delta == -2


def test_strip_empty_is_bottom_up():
    doc = make_doc(
        paragraph([text("   ")]),
        paragraph([text("keep")]),
        Node(Kinds.DIV, children=[Node(Kinds.SPAN, children=[text("")])]),
    )
    result = StripEmpty().transform(doc)
    assert [str(c.kind) for c in result.content.children] == ["paragraph"]
    assert result.content.text_content() == "keep"


def test_merge_text_joins_equal_siblings():
    doc = make_doc(Node(Kinds.PARAGRAPH, children=[
        text("a").with_span(Span(0, 1)),
        text("b").with_span(Span(1, 2)),
        Node(Kinds.STRONG, children=[text("c")]),
        text("d").prop("lang", "en"),
        text("e"),
    ]))
    para = MergeText().transform(doc).content.children[0]
    assert [c.props.get_str(Props.CONTENT) for c in para.children] == ["ab", None, "d", "e"]
    assert para.children[0].span == Span(0, 2)


def test_unwrap_single_child():
    doc = make_doc(
        Node(Kinds.DIV, children=[paragraph([text("x")])]),
        Node(Kinds.DIV, children=[paragraph([text("y")])]).prop(Props.ID, "keep"),
    )
    children = UnwrapSingleChild().transform(doc).content.children
    assert children[0].kind == Kinds.PARAGRAPH
    assert children[1].kind == Kinds.DIV


def test_source_info_and_resources_carried_through():
    doc = make_doc(heading(1, [text("a")]))
    doc.source = SourceInfo("docx", Properties({"page_width": 1}))
    resource_id = doc.embed(Resource.png(b"img"))

    shifted = ShiftHeadings(1).transform(doc)
    assert shifted.source is doc.source
    assert shifted.resource(resource_id).data == b"img"

    dropped = DropSourceInfo().transform(doc)
    assert dropped.source is None
    assert doc.source is not None


def test_pipeline_applies_in_order():
    doc = make_doc(heading(1, [text("a")]), paragraph([text(" ")]))
    pipeline = Pipeline([ShiftHeadings(1)]).then(StripEmpty()).then(ShiftHeadings(1))
    assert len(pipeline) == 3
    result = pipeline.transform(doc)
    assert levels(result) == [3]
    assert len(result.content.children) == 1


def test_failed_pipeline_leaves_input_untouched():
    class Explode(Transform):
        @classmethod
        def get_name(cls):
            return "explode"

        def transform(self, doc):
            raise TransformFailed("boom")

    doc = make_doc(heading(1, [text("a")]))
    before = doc.content.copy()
    with pytest.raises(TransformFailed):
        Pipeline([ShiftHeadings(2), Explode()]).transform(doc)
    assert doc.content == before


def test_deep_tree_fails_cleanly():
    # Linked through the internal list; the public builders would copy the chain
    node = text("leaf")
    for _ in range(5000):
        wrapper = Node(Kinds.SPAN)
        wrapper._children.append(node)
        node = wrapper
    doc = Document()
    doc.content._children.append(node)
    with pytest.raises(TransformFailed):
        StripEmpty().transform(doc)


def test_map_nodes():
    doc = make_doc(paragraph([text("a")]))

    def upper(node):
        if node.kind == Kinds.TEXT:
            return node.prop(Props.CONTENT, node.props.get_str(Props.CONTENT).upper())
        return node

    assert map_nodes(doc.content, upper).text_content() == "A"
    with pytest.raises(TransformFailed):
        map_nodes(doc.content, lambda node: None)


def test_registry_create():
    assert isinstance(TransformRegistry.create("strip-empty"), StripEmpty)
    shift = TransformRegistry.create("shift-headings:2")
    assert isinstance(shift, ShiftHeadings) and shift.delta == 2
    with pytest.raises(TransformFailed):
        TransformRegistry.create("no-such-transform")
    with pytest.raises(TransformFailed):
        TransformRegistry.create("merge-text:1")
    names = {info["name"] for info in TransformRegistry.list_transforms()}
    assert {"shift-headings", "strip-empty", "merge-text", "unwrap-single-child", "drop-source-info"} <= names
