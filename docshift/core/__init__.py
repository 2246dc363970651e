"""
Core intermediate representation: properties, nodes, resources, documents,
fidelity tracking, options and errors.
"""

from docshift.core.properties import Properties, PropValue, normalize_value
from docshift.core.node import Node, NodeKind, Span
from docshift.core.resource import IdGenerator, Resource, ResourceId, default_generator
from docshift.core.document import Document, SourceInfo, DOCUMENT_KIND
from docshift.core.fidelity import (
    ConversionResult,
    FeatureLost,
    FidelityWarning,
    ResourceFailed,
    Severity,
    Simplified,
    UnsupportedNode,
    UnsupportedProperty,
    WarningKind,
)
from docshift.core.options import EmitOptions, ParseOptions
from docshift.core.errors import (
    DocshiftError,
    EmitError,
    EmitUnsupportedFormat,
    FormatResolutionError,
    InvalidInput,
    ParseError,
    ReadIoError,
    TransformError,
    TransformFailed,
    UnsupportedFormat,
    UnsupportedNodeError,
    WriteIoError,
)

__all__ = [
    # Model
    "Properties",
    "PropValue",
    "normalize_value",
    "Node",
    "NodeKind",
    "Span",
    "IdGenerator",
    "Resource",
    "ResourceId",
    "default_generator",
    "Document",
    "SourceInfo",
    "DOCUMENT_KIND",
    # Fidelity
    "ConversionResult",
    "FidelityWarning",
    "Severity",
    "WarningKind",
    "FeatureLost",
    "Simplified",
    "UnsupportedNode",
    "UnsupportedProperty",
    "ResourceFailed",
    # Options
    "ParseOptions",
    "EmitOptions",
    # Errors
    "DocshiftError",
    "ParseError",
    "InvalidInput",
    "UnsupportedFormat",
    "ReadIoError",
    "EmitError",
    "UnsupportedNodeError",
    "EmitUnsupportedFormat",
    "WriteIoError",
    "TransformError",
    "TransformFailed",
    "FormatResolutionError",
]
