"""
Tests for the text, ANSI, delimited and JSON writers.
"""

import json

from docshift.core.document import Document, SourceInfo
from docshift.core.fidelity import FeatureLost, Severity, Simplified
from docshift.core.node import Node
from docshift.core.properties import Properties
from docshift.core.resource import Resource
from docshift.nodes.math import MathKinds, fraction, inline_math
from docshift.nodes.std import (
    Kinds,
    bullet_list,
    heading,
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
from docshift.readers import AnsiReader, CsvReader
from docshift.writers import AnsiWriter, CsvWriter, JsonWriter, TextWriter, TsvWriter, WriterRegistry, quote_field


def make_doc(*blocks, id_generator=None) -> Document:
    return Document(Node(Kinds.DOCUMENT, children=blocks), id_generator=id_generator)


def simple_table(*rows):
    return table([
        table_row([table_cell([paragraph([text(value)])], header=index == 0) for value in row])
        for index, row in enumerate(rows)
    ])


# -------------------------------
# Fallback for unknown kinds
# -------------------------------
def test_math_fraction_root_degrades_to_text_with_one_warning():
    doc = Document(fraction(text("1"), text("2")))
    result = TextWriter().emit(doc)
    assert result.value == b"12\n"
    assert len(result.warnings) == 1
    assert result.warnings[0].kind in (FeatureLost(MathKinds.FRACTION), Simplified(MathKinds.FRACTION))


def test_unknown_only_tree_never_fails():
    tree = Node("x:root", children=[
        Node("x:widget"),
        Node("y:gadget", children=[Node("y:part")]),
        Node("z:label").prop("z:hint", 1),
    ])
    for writer in (TextWriter(), AnsiWriter(), CsvWriter(), JsonWriter()):
        result = writer.emit(Document(tree))
        assert isinstance(result.value, bytes)
        if not isinstance(writer, JsonWriter):
            assert result.warnings


def test_fallback_warns_once_per_kind():
    doc = make_doc(paragraph([Node("ext:token").child(text("a")), Node("ext:token").child(text("b"))]))
    result = TextWriter().emit(doc)
    assert result.value == b"ab\n"
    assert [w.kind for w in result.warnings] == [Simplified("ext:token")]


# -------------------------------
# Plain text
# -------------------------------
def test_text_layout():
    doc = make_doc(
        heading(1, [text("Title")]),
        paragraph([text("Hello "), strong([text("world")]), text(" "), link("http://x.org", [text("site")])]),
        bullet_list([list_item([paragraph([text("one")])]), list_item([paragraph([text("two")])])]),
        ordered_list([list_item([paragraph([text("first")])])], start=3),
        page_break(),
        paragraph([inline_math("x^2")]),
    )
    result = TextWriter().emit(doc)
    assert result.value.decode() == (
        "Title\n\n"
        "Hello world site <http://x.org>\n\n"
        "- one\n- two\n\n"
        "3. first\n\n"
        "\f\n\n"
        "x^2\n"
    )
    assert all(w.severity == Severity.INFO for w in result.warnings)


def test_text_table():
    result = TextWriter().emit(make_doc(simple_table(["a", "bb"], ["ccc", "d"])))
    assert result.value.decode() == "a   | bb\nccc | d\n"
    assert [w.kind for w in result.warnings] == [Simplified("table")]


def test_text_round_trip_through_reader():
    doc = CsvReader().parse(b"a,b\n1,2").value
    assert TextWriter().emit(doc).value.decode() == "a | b\n1 | 2\n"


# -------------------------------
# ANSI
# -------------------------------
def test_ansi_writer_styles():
    doc = make_doc(paragraph([strong([text("Bold")]), text(" plain")]))
    assert AnsiWriter().emit(doc).value == b"\x1b[1mBold\x1b[22m plain\n"


def test_ansi_nested_same_style_not_cut_short():
    doc = make_doc(paragraph([strong([text("a"), strong([text("b")]), text("c")])]))
    assert AnsiWriter().emit(doc).value == b"\x1b[1mabc\x1b[22m\n"


def test_ansi_round_trip():
    doc = AnsiReader().parse(b"\x1b[1mBold\x1b[0m").value
    again = AnsiReader().parse(AnsiWriter().emit(doc).value).value
    assert again.content == doc.content


# -------------------------------
# CSV / TSV
# -------------------------------
def test_quote_field():
    assert quote_field("plain", ",") == "plain"
    assert quote_field("a,b", ",") == '"a,b"'
    assert quote_field('say "hi"', ",") == '"say ""hi"""'
    assert quote_field(" pad", ",") == '" pad"'
    assert quote_field("a,b", "\t") == "a,b"


def test_csv_round_trip():
    original = b'name,note\nx,"a, b"\ny,"say ""hi"""\n'
    doc = CsvReader().parse(original).value
    result = CsvWriter().emit(doc)
    assert result.value == original
    assert result.is_lossless


def test_csv_without_table_is_major_loss():
    result = CsvWriter().emit(make_doc(paragraph([text("no table")])))
    assert result.value == b""
    assert result.warnings[0].severity == Severity.MAJOR
    assert result.warnings[0].kind == FeatureLost("content")


def test_csv_reports_extra_content():
    doc = make_doc(paragraph([text("intro")]), simple_table(["a"], ["1"]), simple_table(["b"]))
    result = CsvWriter().emit(doc)
    assert result.value == b"a\n1\n"
    kinds = [w.kind for w in result.warnings]
    assert FeatureLost("additional tables") in kinds
    assert FeatureLost("non-table content") in kinds


def test_csv_single_empty_field_survives():
    doc = make_doc(table([table_row([table_cell([])])]))
    assert CsvWriter().emit(doc).value == b'""\n'


def test_tsv_writer():
    doc = make_doc(simple_table(["a", "b,c"]))
    assert TsvWriter().emit(doc).value == b"a\tb,c\n"


# -------------------------------
# JSON
# -------------------------------
def test_json_writer_pretty_and_resources(id_generator, png_bytes):
    doc = make_doc(paragraph([text("é")]), id_generator=id_generator)
    doc.embed(Resource.png(png_bytes))
    doc.source = SourceInfo("text", Properties({"pages": 1}))

    compact = JsonWriter().emit(doc).value.decode("utf-8")
    pretty = JsonWriter().emit(doc, {"pretty": True}).value.decode("utf-8")
    assert "\n" not in compact
    assert "\n  " in pretty
    assert "é" in compact
    data = json.loads(compact)
    assert data["docshift"] == 1
    assert data["source"] == {"format": "text", "metadata": {"pages": 1}}
    assert list(data["resources"]) == ["t_0"]
    assert JsonWriter().exportable_resources(doc) == []


def test_default_exportable_resources(id_generator):
    doc = make_doc(id_generator=id_generator)
    doc.embed(Resource.png(b"img"))
    exported = TextWriter().exportable_resources(doc)
    assert [(str(rid), mime, data) for rid, mime, data in exported] == [("t_0", "image/png", b"img")]


def test_writer_registry():
    assert isinstance(WriterRegistry.get_writer("ANSI"), AnsiWriter)
    assert isinstance(WriterRegistry.get_writer_for_extension("tab"), TsvWriter)
    assert WriterRegistry.get_writer("nope") is None
    assert {"text", "ansi", "csv", "tsv", "json", "docx"} <= set(WriterRegistry.get_supported_formats())
    assert ".tab" in WriterRegistry.get_supported_extensions()


def test_write_to_file(tmp_path):
    path = tmp_path / "out" / "doc.txt"
    result = TextWriter().write(make_doc(paragraph([text("hi")])), path)
    assert path.read_bytes() == b"hi\n" == result.value
