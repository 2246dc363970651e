"""
Reader for plain text files.
"""

from typing import List

from docshift.core.document import Document
from docshift.core.fidelity import ConversionResult
from docshift.core.node import Node
from docshift.core.properties import Properties
from docshift.nodes.std import Kinds, page_break
from docshift.readers.base import InputReader, ReaderRegistry, decode_text
from docshift.readers.scanning import segment_pages


@ReaderRegistry.register
class TextReader(InputReader):
    """
    Reader for plain text.

    Plain text carries layout only: paragraphs are split at blank lines,
    wrapped lines are joined with a space, and form feeds become explicit
    page-break nodes between paragraph groups.
    """

    @classmethod
    def get_format_name(cls) -> str:
        return "text"

    @classmethod
    def get_extensions(cls) -> List[str]:
        return [".txt", ".text"]

    def parse(self, data: bytes, options=None) -> ConversionResult[Document]:
        opts, _ = self._options(options)
        text, warnings = decode_text(data)

        pages = segment_pages(text)
        children = []
        for page_num, paragraphs in enumerate(pages):
            # Page boundary between paragraph groups, never merged into text
            if page_num > 0:
                children.append(page_break())
            for para_text in paragraphs:
                children.append(Node(Kinds.PARAGRAPH, children=[Node.text(para_text)]))

        doc = Document(Node(Kinds.DOCUMENT, children=children))
        doc.source = self._source_info(opts, Properties({"pages": len(pages)}))
        return ConversionResult.with_warnings(doc, warnings)
