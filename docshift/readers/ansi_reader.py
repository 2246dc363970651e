"""
Reader for text annotated with ANSI terminal escape sequences.
"""

from typing import List

from docshift.core.document import Document
from docshift.core.fidelity import ConversionResult, FidelityWarning, Severity
from docshift.core.node import Node
from docshift.core.properties import Properties
from docshift.nodes.std import Kinds
from docshift.readers.base import InputReader, ReaderRegistry, decode_text
from docshift.readers.scanning import EscapeScanner, styled_node, strip_escapes


@ReaderRegistry.register
class AnsiReader(InputReader):
    """
    Reader for terminal output with ANSI escape codes.

    Bold, italic, underline and strikethrough become inline nodes; blank
    lines separate paragraphs. Colors and cursor control have no
    counterpart in the document model and are dropped with a warning.
    """

    @classmethod
    def get_format_name(cls) -> str:
        return "ansi"

    @classmethod
    def get_extensions(cls) -> List[str]:
        return [".ans", ".ansi"]

    def parse(self, data: bytes, options=None) -> ConversionResult[Document]:
        opts, _ = self._options(options)
        text, warnings = decode_text(data)

        scanner = EscapeScanner()
        paragraphs = []
        para_lines: List[str] = []

        def flush_paragraph():
            if not para_lines:
                return
            runs = scanner.feed(" ".join(para_lines))
            paragraphs.append(Node(Kinds.PARAGRAPH, children=[styled_node(t, s) for t, s in runs]))
            para_lines.clear()

        for line in text.splitlines():
            if not strip_escapes(line).strip():
                flush_paragraph()
                # Codes on blank lines still change the current style
                scanner.feed(line)
                continue
            para_lines.append(line)
        flush_paragraph()

        if scanner.ignored_codes:
            codes = ", ".join(sorted(scanner.ignored_codes, key=lambda c: (len(c), c)))
            warnings.append(FidelityWarning.feature_lost(
                "ANSI colors",
                f"Unsupported SGR codes dropped: {codes}",
                Severity.MINOR,
            ))
        if scanner.dropped_sequences:
            warnings.append(FidelityWarning.feature_lost(
                "terminal control sequences",
                f"{scanner.dropped_sequences} non-styling escape sequence(s) dropped",
                Severity.MINOR,
            ))

        doc = Document(Node(Kinds.DOCUMENT, children=paragraphs))
        doc.source = self._source_info(opts, Properties({
            "ignored_codes": sorted(scanner.ignored_codes),
        }))
        return ConversionResult.with_warnings(doc, warnings)
