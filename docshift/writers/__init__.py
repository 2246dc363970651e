"""
Output writers package for document generation.

This package provides a plugin-based architecture for writing documents to different formats.
To add a new output format:

1. Create a new writer class inheriting from OutputWriter
2. Implement the required methods (emit, get_format_name, get_extension)
3. Register it with the @WriterRegistry.register decorator

Example:
    from docshift.writers.base import OutputWriter, WriterRegistry

    @WriterRegistry.register
    class MyFormatWriter(OutputWriter):
        @classmethod
        def get_format_name(cls) -> str:
            return 'myformat'

        @classmethod
        def get_extension(cls) -> str:
            return '.myformat'

        def emit(self, doc: Document, options=None) -> ConversionResult[bytes]:
            ctx = self._context(doc, options)
            # Serialize, calling ctx.fallback_text(node) for unknown kinds
            return ctx.result(data)
"""

from docshift.writers.base import OutputWriter, RenderContext, WriterRegistry
from docshift.writers.text_writer import TextWriter
from docshift.writers.ansi_writer import AnsiWriter
from docshift.writers.delimited_writer import CsvWriter, DelimitedWriter, TsvWriter, quote_field
from docshift.writers.json_writer import JsonWriter
from docshift.writers.docx_writer import DocxWriter

__all__ = [
    "OutputWriter",
    "RenderContext",
    "WriterRegistry",
    "TextWriter",
    "AnsiWriter",
    "DelimitedWriter",
    "CsvWriter",
    "TsvWriter",
    "quote_field",
    "JsonWriter",
    "DocxWriter",
]
