"""
Writer for the native JSON serialization of the document model.
"""

import json
from typing import Any, Dict

from docshift.core.document import Document
from docshift.core.fidelity import ConversionResult
from docshift.core.native import document_to_dict
from docshift.writers.base import OutputWriter, WriterRegistry


@WriterRegistry.register
class JsonWriter(OutputWriter):
    """
    Writer for JSON output format.

    Produces docshift's native JSON: every node, property, span, resource
    (base64) and the source info, so the output reads back unchanged.
    """

    @classmethod
    def get_format_name(cls) -> str:
        return "json"

    @classmethod
    def get_extension(cls) -> str:
        return ".json"

    @classmethod
    def get_default_options(cls) -> Dict[str, Any]:
        return {
            "indent": 2,
            "ensure_ascii": False,
        }

    def emit(self, doc: Document, options=None) -> ConversionResult[bytes]:
        """
        Serialize the document to JSON.

        Options:
            pretty: Indent the output (EmitOptions.pretty)
            indent: Indentation used when pretty is set
            ensure_ascii: Whether to escape non-ASCII characters
        """
        ctx = self._context(doc, options)
        json_data = document_to_dict(doc)
        text = json.dumps(
            json_data,
            ensure_ascii=bool(ctx.extra.get("ensure_ascii", False)),
            indent=ctx.extra.get("indent", 2) if ctx.options.pretty else None,
        )
        return ctx.result(text.encode("utf-8"))

    def exportable_resources(self, doc: Document):
        # Resources are carried inline as base64
        return []
