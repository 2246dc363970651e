"""
Writers for delimiter-separated tabular text (CSV, TSV).
"""

from typing import List

from docshift.core.document import Document
from docshift.core.fidelity import ConversionResult, FidelityWarning, Severity
from docshift.core.node import Node
from docshift.nodes.std import Kinds
from docshift.writers.base import OutputWriter, RenderContext, WriterRegistry

PLAIN_CELL_KINDS = frozenset({Kinds.TABLE_CELL, Kinds.PARAGRAPH, Kinds.TEXT})


def quote_field(value: str, delimiter: str, quote: str = '"') -> str:
    """
    Quote a field when reading it back would otherwise change it.

    That is when it contains the delimiter, the quote character or a line
    break, or has leading/trailing whitespace (unquoted whitespace is
    trimmed on read).
    """
    needs_quotes = (
        delimiter in value
        or quote in value
        or "\n" in value
        or "\r" in value
        or value != value.strip()
    )
    if not needs_quotes:
        return value
    return quote + value.replace(quote, quote * 2) + quote


def find_tables(root: Node) -> List[Node]:
    """All table nodes in document order, not descending into tables."""
    tables = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.kind == Kinds.TABLE:
            tables.append(node)
            continue
        stack.extend(reversed(node.children))
    return tables


def _has_text_outside(root: Node, tables: List[Node]) -> bool:
    stack = [root]
    while stack:
        node = stack.pop()
        if any(node is table for table in tables):
            continue
        if node.kind in (Kinds.TEXT, Kinds.CODE, Kinds.CODE_BLOCK) and node.text_content().strip():
            return True
        stack.extend(node.children)
    return False


class DelimitedWriter(OutputWriter):
    """
    Base writer for delimiter-separated values.

    Only the first table in the document is written. Everything else is
    reported as lost; a document without any table produces empty output
    and a MAJOR warning.
    """

    delimiter = ","

    @classmethod
    def get_format_name(cls) -> str:
        raise NotImplementedError

    @classmethod
    def get_extension(cls) -> str:
        raise NotImplementedError

    @classmethod
    def get_default_options(cls):
        return {"line_terminator": "\n"}

    def emit(self, doc: Document, options=None) -> ConversionResult[bytes]:
        ctx = self._context(doc, options)
        tables = find_tables(doc.content)

        if not tables:
            ctx.warn(FidelityWarning.feature_lost(
                "content",
                "Document has no table; nothing to write",
                Severity.MAJOR,
            ))
            return ctx.result(b"")

        if len(tables) > 1:
            ctx.warn(FidelityWarning.feature_lost(
                "additional tables",
                f"Only the first of {len(tables)} tables was written",
                Severity.MINOR,
            ))
        if _has_text_outside(doc.content, tables[:1]):
            ctx.warn(FidelityWarning.feature_lost(
                "non-table content",
                "Content outside the table was dropped",
                Severity.MINOR,
            ))

        terminator = ctx.extra.get("line_terminator", "\n")
        lines = []
        for row in tables[0].children:
            fields = [self._cell_text(cell, ctx) for cell in row.children]
            if fields == [""]:
                # A bare empty line would read back as no record at all
                lines.append('""')
                continue
            lines.append(self.delimiter.join(quote_field(f, self.delimiter) for f in fields))
        text = "".join(line + terminator for line in lines)
        return ctx.result(text.encode("utf-8"))

    def _cell_text(self, cell: Node, ctx: RenderContext) -> str:
        if any(node.kind not in PLAIN_CELL_KINDS for node in cell.walk()):
            ctx.warn_once("cell formatting", FidelityWarning.simplified(
                "cell formatting",
                "Cell content reduced to plain text",
                Severity.MINOR,
            ))
        paragraphs = [child.text_content() for child in cell.children]
        return "\n".join(p for p in paragraphs if p)


@WriterRegistry.register
class CsvWriter(DelimitedWriter):
    """Writer for comma-separated values (first table only)."""

    delimiter = ","

    @classmethod
    def get_format_name(cls) -> str:
        return "csv"

    @classmethod
    def get_extension(cls) -> str:
        return ".csv"


@WriterRegistry.register
class TsvWriter(DelimitedWriter):
    """Writer for tab-separated values (first table only)."""

    delimiter = "\t"

    @classmethod
    def get_format_name(cls) -> str:
        return "tsv"

    @classmethod
    def get_extension(cls) -> str:
        return ".tsv"

    @classmethod
    def get_extensions(cls) -> List[str]:
        return [".tsv", ".tab"]
