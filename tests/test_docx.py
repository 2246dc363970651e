"""
DOCX reader and writer tests, using python-docx to build and inspect files.
"""

import io
import random
import struct
import zipfile

import pytest
from docx import Document as DocxDocument
from docx.oxml import parse_xml
from docx.oxml.ns import nsdecls
from docx.shared import Inches

from docshift.core.document import Document, SourceInfo
from docshift.core.errors import DocshiftError, InvalidInput
from docshift.core.fidelity import ConversionResult, FeatureLost, ResourceFailed, Simplified
from docshift.core.node import Node
from docshift.core.properties import Properties
from docshift.core.resource import Resource
from docshift.nodes.std import (
    Kinds,
    Props,
    bullet_list,
    heading,
    image,
    link,
    list_item,
    ordered_list,
    page_break,
    paragraph,
    strong,
    table,
    table_cell,
    table_row,
    text,
)
from docshift.readers import DocxReader, TextReader
from docshift.writers import DocxWriter


def docx_bytes(build) -> bytes:
    source = DocxDocument()
    build(source)
    buffer = io.BytesIO()
    source.save(buffer)
    return buffer.getvalue()


def blocks_of(doc, kind):
    return [child for child in doc.content.children if child.kind == kind]


def round_trip(doc, emit_options=None, parse_options=None):
    written = DocxWriter().emit(doc, emit_options)
    return DocxReader().parse(written.value, parse_options), written


# -------------------------------
# Reading
# -------------------------------
def test_reads_headings_paragraphs_and_styles():
    def build(d):
        d.add_heading("Main Title", level=1)
        para = d.add_paragraph("Plain ")
        para.add_run("bold").bold = True
        para.add_run(" and ")
        para.add_run("italic").italic = True
        d.add_heading("Section", level=2)

    doc = DocxReader().parse(docx_bytes(build)).value
    kinds = [str(child.kind) for child in doc.content.children]
    assert kinds == ["heading", "paragraph", "heading"]
    first, para, second = doc.content.children
    assert first.props.get_int(Props.LEVEL) == 1
    assert second.props.get_int(Props.LEVEL) == 2
    assert [str(c.kind) for c in para.children] == ["text", "strong", "text", "emphasis"]
    assert para.text_content() == "Plain bold and italic"


def test_reads_lists_and_tables():
    def build(d):
        d.add_paragraph("one", style="List Bullet")
        d.add_paragraph("two", style="List Bullet")
        d.add_paragraph("first", style="List Number")
        grid = d.add_table(rows=2, cols=2)
        for r, values in enumerate([("h1", "h2"), ("a", "b")]):
            for c, value in enumerate(values):
                grid.cell(r, c).text = value

    doc = DocxReader().parse(docx_bytes(build)).value
    lists = blocks_of(doc, Kinds.LIST)
    assert [l.props.get_bool(Props.ORDERED) for l in lists] == [False, True]
    assert [item.text_content() for item in lists[0].children] == ["one", "two"]

    grid = blocks_of(doc, Kinds.TABLE)[0]
    assert [[cell.text_content() for cell in row.children] for row in grid.children] == [["h1", "h2"], ["a", "b"]]
    headers = [[cell.props.get_bool(Props.HEADER) for cell in row.children] for row in grid.children]
    assert headers == [[True, True], [False, False]]


def test_reads_core_properties_and_geometry():
    def build(d):
        d.core_properties.title = "Report"
        d.core_properties.author = "Someone"
        d.sections[0].left_margin = Inches(2)
        d.add_paragraph("body")

    data = docx_bytes(build)
    doc = DocxReader().parse(data).value
    assert doc.metadata.get_str("title") == "Report"
    assert doc.metadata.get_str("author") == "Someone"
    assert doc.source is None

    kept = DocxReader().parse(data, {"preserve_source_info": True}).value
    assert kept.source.format == "docx"
    assert kept.source.metadata.get_int("left_margin") == Inches(2)


def test_reads_images(png_bytes):
    def build(d):
        d.add_paragraph().add_run().add_picture(io.BytesIO(png_bytes))

    data = docx_bytes(build)
    doc = DocxReader().parse(data).value
    images = [n for n in doc.content.walk() if n.kind == Kinds.IMAGE]
    assert len(images) == 1
    resource = doc.resource_by_name(images[0].props.get_str(Props.RESOURCE_ID))
    assert resource.mime_type == "image/png"
    assert resource.data == png_bytes

    result = DocxReader().parse(data, {"embed_resources": False})
    assert not result.value.resources
    assert FeatureLost("embedded images") in [w.kind for w in result.warnings]


def test_invalid_bytes_raise_invalid_input():
    with pytest.raises(InvalidInput):
        DocxReader().parse(b"definitely not a zip file")
    with pytest.raises(InvalidInput):
        DocxReader().parse(b"")


def test_corrupt_compressed_part_raises_invalid_input():
    data = bytearray(docx_bytes(lambda d: d.add_paragraph("body " * 50)))
    info = zipfile.ZipFile(io.BytesIO(bytes(data))).getinfo("word/document.xml")
    name_len, extra_len = struct.unpack("<HH", data[info.header_offset + 26:info.header_offset + 30])
    start = info.header_offset + 30 + name_len + extra_len
    for offset in range(start, start + 16):
        data[offset] ^= 0xFF
    with pytest.raises(InvalidInput):
        DocxReader().parse(bytes(data))


def test_mutated_packages_parse_or_raise_invalid_input():
    original = docx_bytes(lambda d: d.add_paragraph("some body text"))
    rng = random.Random(7)
    for _ in range(200):
        data = bytearray(original)
        for _ in range(rng.randint(1, 8)):
            data[rng.randrange(len(data))] = rng.getrandbits(8)
        try:
            result = DocxReader().parse(bytes(data))
        except DocshiftError:
            continue
        assert isinstance(result, ConversionResult)


def test_dangling_hyperlink_keeps_text():
    def build(d):
        para = d.add_paragraph("see ")
        para._p.append(parse_xml(
            f'<w:hyperlink {nsdecls("w", "r")} r:id="rIdNope"><w:r><w:t>there</w:t></w:r></w:hyperlink>'
        ))

    result = DocxReader().parse(docx_bytes(build))
    para = result.value.content.children[0]
    assert para.text_content() == "see there"
    assert not [n for n in para.walk() if n.kind == Kinds.LINK]
    assert FeatureLost("hyperlink") in [w.kind for w in result.warnings]


# -------------------------------
# Writing
# -------------------------------
def test_writes_structure_python_docx_can_read():
    doc = Document(Node(Kinds.DOCUMENT, children=[
        heading(2, [text("Heading")]),
        paragraph([text("Hello "), strong([text("world")])]),
        bullet_list([list_item([paragraph([text("item")])])]),
        table([table_row([table_cell([paragraph([text("c1")])]), table_cell([paragraph([text("c2")])])])]),
    ]))
    result = DocxWriter().emit(doc)
    written = DocxDocument(io.BytesIO(result.value))

    styles = [p.style.name for p in written.paragraphs]
    assert styles[:3] == ["Heading 2", "Normal", "List Bullet"]
    assert written.paragraphs[1].runs[1].bold is True
    assert [cell.text for cell in written.tables[0].rows[0].cells] == ["c1", "c2"]


def test_round_trip_keeps_structure():
    original = Document(Node(Kinds.DOCUMENT, children=[
        heading(1, [text("Title")]),
        paragraph([text("See "), link("https://example.com", [text("here")])]),
        ordered_list([list_item([paragraph([text("a")])]), list_item([paragraph([text("b")])])]),
        page_break(),
        paragraph([text("after")]),
    ]))
    original.metadata = Properties({"title": "Doc", "author": "Writer"})

    parsed, _ = round_trip(original)
    doc = parsed.value
    kinds = [str(child.kind) for child in doc.content.children]
    assert kinds == ["heading", "paragraph", "list", "horizontal_rule", "paragraph"]
    linked = doc.content.children[1].children[1]
    assert linked.kind == Kinds.LINK
    assert linked.props.get_str(Props.URL) == "https://example.com"
    assert linked.text_content() == "here"
    assert doc.content.children[2].props.get_bool(Props.ORDERED) is True
    assert doc.content.children[3].props.get_bool(Props.LAYOUT_PAGE_BREAK) is True
    assert doc.metadata.get_str("title") == "Doc"
    assert doc.metadata.get_str("author") == "Writer"


def test_round_trip_embeds_images(empty_doc, png_bytes):
    resource_id = empty_doc.embed(Resource("image/png", png_bytes))
    empty_doc.content = Node(Kinds.DOCUMENT, children=[
        paragraph([image(alt="red dot", resource=str(resource_id))]),
    ])
    parsed, written = round_trip(empty_doc)
    assert written.is_lossless
    images = [n for n in parsed.value.content.walk() if n.kind == Kinds.IMAGE]
    assert images[0].props.get_str(Props.ALT) == "red dot"
    restored = parsed.value.resource_by_name(images[0].props.get_str(Props.RESOURCE_ID))
    assert restored.data == png_bytes


def test_missing_resource_is_reported(empty_doc):
    empty_doc.content = Node(Kinds.DOCUMENT, children=[paragraph([image(alt="gone", resource="nope")])])
    result = DocxWriter().emit(empty_doc)
    assert [w.kind for w in result.warnings] == [ResourceFailed("nope")]


def test_round_trip_footnotes():
    original = Document(Node(Kinds.DOCUMENT, children=[
        paragraph([text("Claim"), Node(Kinds.FOOTNOTE_REF).prop(Props.LABEL, "1")]),
        Node(Kinds.FOOTNOTE_DEF, children=[paragraph([text("Source text")])]).prop(Props.LABEL, "1"),
    ]))
    parsed, _ = round_trip(original)
    doc = parsed.value

    refs = [n for n in doc.content.walk() if n.kind == Kinds.FOOTNOTE_REF]
    assert [r.props.get_str(Props.LABEL) for r in refs] == ["1"]
    defs = blocks_of(doc, Kinds.FOOTNOTE_DEF)
    assert len(defs) == 1
    assert defs[0].text_content() == "Source text"


def test_source_geometry_restored_only_on_request():
    doc = Document(Node(Kinds.DOCUMENT, children=[paragraph([text("x")])]))
    doc.source = SourceInfo("docx", Properties({"left_margin": int(Inches(2))}))

    plain = DocxDocument(io.BytesIO(DocxWriter().emit(doc).value))
    assert plain.sections[0].left_margin != Inches(2)

    restored = DocxDocument(io.BytesIO(DocxWriter().emit(doc, {"use_source_info": True}).value))
    assert restored.sections[0].left_margin == Inches(2)


def test_unknown_kinds_fall_back_to_text():
    doc = Document(Node(Kinds.DOCUMENT, children=[
        Node("math:fraction", children=[text("1"), text("2")]),
        Node("ext:empty"),
    ]))
    result = DocxWriter().emit(doc)
    written = DocxDocument(io.BytesIO(result.value))
    assert [p.text for p in written.paragraphs] == ["12"]
    assert len(result.warnings) == 2


def test_control_characters_are_removed():
    doc = Document(Node(Kinds.DOCUMENT, children=[paragraph([text("a\x01b\x0bc")])]))
    result = DocxWriter().emit(doc)
    written = DocxDocument(io.BytesIO(result.value))
    assert written.paragraphs[0].text == "abc"
    assert [w.kind for w in result.warnings] == [Simplified("control characters")]


def test_text_reader_output_with_control_characters_writes():
    parsed = TextReader().parse(b"a\x01b")
    result = DocxWriter().emit(parsed.value)
    assert DocxDocument(io.BytesIO(result.value)).paragraphs[0].text == "ab"


def test_long_core_properties_are_cut():
    doc = Document(Node(Kinds.DOCUMENT, children=[paragraph([text("x")])]))
    doc.metadata = Properties({"title": "t" * 300, "author": "Someone"})
    result = DocxWriter().emit(doc)
    written = DocxDocument(io.BytesIO(result.value))
    assert written.core_properties.title == "t" * 255
    assert written.core_properties.author == "Someone"
    assert [w.kind for w in result.warnings] == [Simplified("title")]
