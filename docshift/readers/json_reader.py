"""
Reader for the native JSON serialization of the document model.
"""

import json
from typing import List

from docshift.core.document import Document
from docshift.core.errors import InvalidInput, UnsupportedFormat
from docshift.core.fidelity import ConversionResult
from docshift.core.native import NATIVE_VERSION, NativeFormatError, document_from_dict
from docshift.readers.base import InputReader, ReaderRegistry, decode_text


@ReaderRegistry.register
class JsonReader(InputReader):
    """Reader for docshift's native JSON documents (lossless)."""

    @classmethod
    def get_format_name(cls) -> str:
        return "json"

    @classmethod
    def get_extensions(cls) -> List[str]:
        return [".json"]

    def parse(self, data: bytes, options=None) -> ConversionResult[Document]:
        self._options(options)
        text, warnings = decode_text(data)
        try:
            payload = json.loads(text)
        except (ValueError, RecursionError) as e:
            raise InvalidInput(f"not valid JSON: {e}") from e

        if not isinstance(payload, dict) or "docshift" not in payload:
            raise InvalidInput("missing 'docshift' version marker")
        version = payload["docshift"]
        # bool is an int subclass; `true` is not version 1
        if not isinstance(version, int) or isinstance(version, bool):
            raise InvalidInput(f"version marker must be an integer, got {version!r}")
        if version != NATIVE_VERSION:
            raise UnsupportedFormat(f"json version {version!r}")

        try:
            doc = document_from_dict(payload)
        except (NativeFormatError, RecursionError) as e:
            raise InvalidInput(str(e)) from e
        if doc.content.kind != "document":
            raise InvalidInput(f"root node must be 'document', got '{doc.content.kind}'")
        return ConversionResult.with_warnings(doc, warnings)
