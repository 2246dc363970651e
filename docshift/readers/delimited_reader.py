"""
Readers for delimiter-separated tabular text (CSV, TSV).
"""

from typing import List

from docshift.core.document import Document
from docshift.core.fidelity import ConversionResult, FidelityWarning, Severity
from docshift.core.node import Node
from docshift.core.properties import Properties
from docshift.nodes.std import Kinds, Props
from docshift.readers.base import InputReader, ReaderRegistry, decode_text
from docshift.readers.scanning import scan_records


class DelimitedReader(InputReader):
    """
    Base reader for delimiter-separated values.

    The whole input becomes one table. The first record is the header row;
    its cells carry `header = True`, all other cells `header = False`.
    Subclasses only choose the delimiter.
    """

    delimiter = ","

    @classmethod
    def get_format_name(cls) -> str:
        raise NotImplementedError

    @classmethod
    def get_extensions(cls) -> List[str]:
        raise NotImplementedError

    @classmethod
    def get_default_options(cls):
        return {"header": True}

    def parse(self, data: bytes, options=None) -> ConversionResult[Document]:
        opts, extra = self._options(options)
        text, warnings = decode_text(data)
        has_header = bool(extra.get("header", True))

        scanned = scan_records(text, self.delimiter)
        rows = []
        for index, fields in enumerate(scanned.records):
            is_header = has_header and index == 0
            cells = [
                Node(Kinds.TABLE_CELL, children=[Node.text(value)]).prop(Props.HEADER, is_header)
                for value in fields
            ]
            rows.append(Node(Kinds.TABLE_ROW, children=cells))

        widths = {len(fields) for fields in scanned.records}
        if len(widths) > 1:
            warnings.append(FidelityWarning.simplified(
                "ragged table rows",
                f"Rows have differing cell counts ({min(widths)} to {max(widths)}); kept as-is",
                Severity.MINOR,
            ))
        if scanned.unterminated_quote:
            warnings.append(FidelityWarning.simplified(
                "unterminated quote",
                "Input ends inside a quoted field; the field runs to end of input",
                Severity.MINOR,
            ))

        table = Node(Kinds.TABLE, children=rows)
        doc = Document(Node(Kinds.DOCUMENT, children=[table]))
        doc.source = self._source_info(opts, Properties({
            "delimiter": self.delimiter,
            "header": has_header,
        }))
        return ConversionResult.with_warnings(doc, warnings)


@ReaderRegistry.register
class CsvReader(DelimitedReader):
    """Reader for comma-separated values."""

    delimiter = ","

    @classmethod
    def get_format_name(cls) -> str:
        return "csv"

    @classmethod
    def get_extensions(cls) -> List[str]:
        return [".csv"]


@ReaderRegistry.register
class TsvReader(DelimitedReader):
    """Reader for tab-separated values."""

    delimiter = "\t"

    @classmethod
    def get_format_name(cls) -> str:
        return "tsv"

    @classmethod
    def get_extensions(cls) -> List[str]:
        return [".tsv", ".tab"]
