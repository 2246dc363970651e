"""
End-to-end tests for the text-based readers and the native JSON reader.
"""

import json
import random

import pytest

from docshift.core.errors import DocshiftError, InvalidInput, UnsupportedFormat
from docshift.core.fidelity import ConversionResult, FeatureLost, Simplified
from docshift.core.node import Node
from docshift.core.properties import Properties
from docshift.core.resource import Resource
from docshift.nodes.std import Kinds, Props
from docshift.readers import AnsiReader, CsvReader, JsonReader, ReaderRegistry, TextReader, TsvReader
from docshift.writers import JsonWriter


def cell_texts(row):
    return [cell.text_content() for cell in row.children]


# -------------------------------
# CSV / TSV
# -------------------------------
def test_csv_gives_one_table_with_header_row():
    result = CsvReader().parse(b"a,b,c\n1,2,3")
    content = result.value.content
    assert content.kind == Kinds.DOCUMENT
    assert len(content.children) == 1

    table = content.children[0]
    assert table.kind == Kinds.TABLE
    assert len(table.children) == 2
    for row_index, row in enumerate(table.children):
        assert row.kind == Kinds.TABLE_ROW
        assert len(row.children) == 3
        for cell in row.children:
            assert cell.kind == Kinds.TABLE_CELL
            assert cell.props.get_bool(Props.HEADER) is (row_index == 0)
    assert cell_texts(table.children[1]) == ["1", "2", "3"]
    assert result.is_lossless


def test_csv_without_header_option():
    result = CsvReader().parse(b"a,b\n1,2", {"header": False})
    rows = result.value.content.children[0].children
    assert all(cell.props.get_bool(Props.HEADER) is False for row in rows for cell in row.children)


def test_csv_ragged_rows_warn():
    result = CsvReader().parse(b"a,b,c\n1,2\n")
    assert [w.kind for w in result.warnings] == [Simplified("ragged table rows")]


def test_tsv_reader():
    table = TsvReader().parse(b"name\tnote\nx\t\"a, b\"\n").value.content.children[0]
    assert cell_texts(table.children[1]) == ["x", "a, b"]


def test_empty_input_never_fails():
    for reader in (CsvReader(), TsvReader(), TextReader(), AnsiReader()):
        result = reader.parse(b"")
        assert result.value.content.kind == Kinds.DOCUMENT


def test_non_utf8_input_falls_back_with_warning():
    result = TextReader().parse("café".encode("cp1252"))
    assert result.value.content.text_content() == "café"
    assert result.warnings[0].kind == Simplified("text encoding")


# -------------------------------
# ANSI
# -------------------------------
def test_ansi_bold_becomes_strong():
    content = AnsiReader().parse(b"\x1b[1mBold\x1b[0m").value.content
    assert len(content.children) == 1
    para = content.children[0]
    assert para.kind == Kinds.PARAGRAPH
    assert len(para.children) == 1
    strong = para.children[0]
    assert strong.kind == Kinds.STRONG
    assert len(strong.children) == 1
    leaf = strong.children[0]
    assert leaf.kind == Kinds.TEXT
    assert leaf.props.get_str(Props.CONTENT) == "Bold"


def test_ansi_style_spans_paragraphs():
    content = AnsiReader().parse(b"\x1b[3mone\n\ntwo\x1b[0m three").value.content
    first, second = content.children
    assert first.children[0].kind == Kinds.EMPHASIS
    assert second.children[0].kind == Kinds.EMPHASIS
    assert second.children[1].kind == Kinds.TEXT


def test_ansi_colors_dropped_with_warning():
    result = AnsiReader().parse(b"\x1b[31mred\x1b[0m")
    assert result.value.content.text_content() == "red"
    assert [w.kind for w in result.warnings] == [FeatureLost("ANSI colors")]


# -------------------------------
# Plain text
# -------------------------------
def test_text_paragraphs_and_page_breaks():
    content = TextReader().parse(b"one\nline\n\ntwo\fthree").value.content
    kinds = [str(child.kind) for child in content.children]
    assert kinds == ["paragraph", "paragraph", "horizontal_rule", "paragraph"]
    assert content.children[0].text_content() == "one line"
    assert content.children[2].props.get_bool(Props.LAYOUT_PAGE_BREAK) is True


def test_source_info_only_when_requested():
    assert TextReader().parse(b"x").value.source is None
    doc = TextReader().parse(b"x\fy", {"preserve_source_info": True}).value
    assert doc.source.format == "text"
    assert doc.source.metadata.get_int("pages") == 2


def test_registry_lookup():
    assert isinstance(ReaderRegistry.get_reader("CSV"), CsvReader)
    assert ReaderRegistry.get_reader("nope") is None
    assert ReaderRegistry.get_reader_by_extension("tab") is TsvReader
    assert ".docx" in ReaderRegistry.get_supported_extensions()


# -------------------------------
# Native JSON
# -------------------------------
def test_json_round_trip_is_lossless(empty_doc, png_bytes):
    resource_id = empty_doc.embed(Resource("image/png", png_bytes, name="dot.png"))
    empty_doc.content = Node(Kinds.DOCUMENT, children=[
        Node(Kinds.HEADING).prop(Props.LEVEL, 2).child(Node.text("Title")),
        Node(Kinds.IMAGE).prop(Props.RESOURCE_ID, str(resource_id)).prop(Props.ALT, "dot"),
        Node("math:fraction").prop("nested", {"a": [1, 2.5, True]}),
    ])
    empty_doc.metadata = Properties({"title": "T"})

    data = JsonWriter().emit(empty_doc).value
    restored = JsonReader().parse(data).value

    assert restored.content == empty_doc.content
    assert restored.metadata == empty_doc.metadata
    assert restored.resource(resource_id) == empty_doc.resource(resource_id)


def test_json_invalid_input():
    with pytest.raises(InvalidInput):
        JsonReader().parse(b"{not json")
    with pytest.raises(InvalidInput):
        JsonReader().parse(b'{"content": {}}')
    with pytest.raises(InvalidInput):
        JsonReader().parse(json.dumps({"docshift": 1, "content": {"kind": 5}}).encode())


def test_json_unsupported_version():
    with pytest.raises(UnsupportedFormat):
        JsonReader().parse(b'{"docshift": 99, "content": {"kind": "document"}}')
    with pytest.raises(InvalidInput):
        JsonReader().parse(b'{"docshift": true, "content": {"kind": "document"}}')
    with pytest.raises(InvalidInput):
        JsonReader().parse(b'{"docshift": "1", "content": {"kind": "document"}}')


def test_json_depth_limit():
    node = {"kind": "text"}
    for _ in range(300):
        node = {"kind": "span", "children": [node]}
    payload = {"docshift": 1, "content": {"kind": "document", "children": [node]}}
    with pytest.raises(InvalidInput):
        JsonReader().parse(json.dumps(payload).encode())


# -------------------------------
# Arbitrary input
# -------------------------------
# Bytes that mean something to at least one reader
INTERESTING = b'\x1b[;0123456789m]\x07\\",\t\n\r\f{}[]:"docshift kind\xff\xef\xbb\xbf\x00PK'


def random_inputs(seed, count=150):
    rng = random.Random(seed)
    for _ in range(count):
        size = rng.randint(0, 200)
        if rng.random() < 0.5:
            yield bytes(rng.getrandbits(8) for _ in range(size))
        else:
            yield bytes(rng.choice(INTERESTING) for _ in range(size))


@pytest.mark.parametrize("format_name", ReaderRegistry.get_supported_formats())
def test_any_bytes_parse_or_raise_parse_error(format_name):
    reader = ReaderRegistry.get_reader(format_name)
    for data in random_inputs(seed=format_name):
        try:
            result = reader.parse(data)
        except DocshiftError:
            continue
        assert isinstance(result, ConversionResult)
        assert result.value.content.kind == Kinds.DOCUMENT


def test_parse_text_matches_parse():
    from_text = CsvReader().parse_text("a,b\n1,2\n").value
    from_bytes = CsvReader().parse(b"a,b\n1,2\n").value
    assert from_text.content == from_bytes.content
    assert TextReader().parse_text("café").value.content.text_content() == "café"
