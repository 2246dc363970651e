"""
Input readers package for document parsing.

This package provides a plugin-based architecture for reading different document formats.
To add a new input format:

1. Create a new reader class inheriting from InputReader
2. Implement the required methods (get_format_name, get_extensions, parse)
3. Register it with the @ReaderRegistry.register decorator

Example:
    from docshift.readers.base import InputReader, ReaderRegistry

    @ReaderRegistry.register
    class MyFormatReader(InputReader):
        @classmethod
        def get_format_name(cls) -> str:
            return 'myformat'

        @classmethod
        def get_extensions(cls) -> list:
            return ['.myformat']

        def parse(self, data: bytes, options=None) -> ConversionResult[Document]:
            # Parse and return the Document with any fidelity warnings
            ...
"""

from docshift.readers.base import InputReader, ReaderRegistry, decode_text
from docshift.readers.text_reader import TextReader
from docshift.readers.ansi_reader import AnsiReader
from docshift.readers.delimited_reader import CsvReader, DelimitedReader, TsvReader
from docshift.readers.json_reader import JsonReader
from docshift.readers.docx_reader import DocxReader

__all__ = [
    "InputReader",
    "ReaderRegistry",
    "decode_text",
    "TextReader",
    "AnsiReader",
    "DelimitedReader",
    "CsvReader",
    "TsvReader",
    "JsonReader",
    "DocxReader",
]
