"""
Fatal error taxonomy.

Errors abort a conversion. Anything with a reasonable degraded
representation is reported as a FidelityWarning instead.
"""

from typing import Optional


class DocshiftError(Exception):
    """Base class for all docshift errors."""


# -------------------------------
# Parsing
# -------------------------------
class ParseError(DocshiftError):
    """Error during parsing."""


class InvalidInput(ParseError):
    """The input is structurally malformed."""

    def __init__(self, reason: str):
        super().__init__(f"invalid input: {reason}")
        self.reason = reason


class UnsupportedFormat(ParseError):
    """The input is a known but unhandled format or dialect."""

    def __init__(self, name: str):
        super().__init__(f"unsupported format: {name}")
        self.name = name


class ReadIoError(ParseError):
    """The underlying source could not be read."""

    def __init__(self, cause: Optional[BaseException]):
        super().__init__(f"io error: {cause}")
        self.cause = cause


# -------------------------------
# Emitting
# -------------------------------
class EmitError(DocshiftError):
    """Error during emitting."""


class UnsupportedNodeError(EmitError):
    """A node kind is structurally invalid for this writer to traverse."""

    def __init__(self, kind: str):
        super().__init__(f"unsupported node kind: {kind}")
        self.kind = kind


class EmitUnsupportedFormat(EmitError):
    """The requested output format or dialect is not handled."""

    def __init__(self, name: str):
        super().__init__(f"unsupported format: {name}")
        self.name = name


class WriteIoError(EmitError):
    """The output could not be written."""

    def __init__(self, cause: Optional[BaseException]):
        super().__init__(f"io error: {cause}")
        self.cause = cause


# -------------------------------
# Transforming
# -------------------------------
class TransformError(DocshiftError):
    """Error during a document transform."""


class TransformFailed(TransformError):
    """A transform could not be applied. The pipeline stops before writing."""

    def __init__(self, reason: str):
        super().__init__(f"transform failed: {reason}")
        self.reason = reason


# -------------------------------
# Format dispatch
# -------------------------------
class FormatResolutionError(DocshiftError):
    """No format could be determined for an input or output."""

    def __init__(self, message: str = "cannot determine format - specify explicitly"):
        super().__init__(message)
