"""
docshift - a universal document interchange library.

Documents in any supported format are read into one intermediate
representation (a tree of open-kinded nodes with property bags and a
resource table), optionally transformed, and written to any other format.
Every step reports what it could not carry over as fidelity warnings
instead of failing silently.

## Adding new capabilities:

1. To add a new input format:
   - Create a new reader class inheriting from InputReader
   - Implement get_format_name(), get_extensions() and parse()
   - Register it with @ReaderRegistry.register

2. To add a new output format:
   - Create a new writer class inheriting from OutputWriter
   - Implement get_format_name(), get_extension() and emit()
   - Register it with @WriterRegistry.register

3. To add a new transform:
   - Create a new class inheriting from Transform
   - Implement get_name() and transform()
   - Register it with @TransformRegistry.register

Example:
    from docshift import ReaderRegistry, WriterRegistry, pipeline

    print(ReaderRegistry.get_supported_extensions())
    print(WriterRegistry.get_supported_formats())

    result = pipeline.convert(data, "docx", "text", transforms=["strip-empty"])
    for warning in result.warnings:
        print(warning)
"""

from docshift.core import (
    ConversionResult,
    DocshiftError,
    Document,
    EmitOptions,
    FidelityWarning,
    Node,
    ParseOptions,
    Properties,
    Resource,
    ResourceId,
    Severity,
)
from docshift.readers import ReaderRegistry
from docshift.writers import WriterRegistry
from docshift.transforms import Pipeline, TransformRegistry
from docshift.formats import FormatCatalog
from docshift import pipeline
from docshift.pipeline import convert, read, write

__version__ = "0.1.0"

__all__ = [
    "ConversionResult",
    "DocshiftError",
    "Document",
    "EmitOptions",
    "FidelityWarning",
    "Node",
    "ParseOptions",
    "Properties",
    "Resource",
    "ResourceId",
    "Severity",
    "ReaderRegistry",
    "WriterRegistry",
    "TransformRegistry",
    "Pipeline",
    "FormatCatalog",
    "pipeline",
    "convert",
    "read",
    "write",
]
