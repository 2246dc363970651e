"""
Conversion entry points: read bytes into a Document, write a Document to
bytes, or convert between formats in one call.

Example:
    from docshift import pipeline

    result = pipeline.convert(b"a,b\\n1,2", "csv", "text")
    print(result.value.decode())
    for warning in result.warnings:
        print(warning)
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import docshift.readers  # noqa: F401  (registers the readers)
import docshift.writers  # noqa: F401  (registers the writers)
from docshift.core.document import Document
from docshift.core.errors import EmitUnsupportedFormat, ReadIoError, UnsupportedFormat
from docshift.core.fidelity import ConversionResult
from docshift.readers.base import InputReader, OptionsArg as ParseOptionsArg, ReaderRegistry
from docshift.transforms.base import Transform, TransformRegistry
from docshift.transforms.standard import Pipeline
from docshift.writers.base import OptionsArg as EmitOptionsArg, OutputWriter, WriterRegistry

LOGGER = logging.getLogger(__name__)

TransformArg = Union[Transform, str]


def get_reader(format_name: str) -> InputReader:
    """Get the reader for a format, raising UnsupportedFormat if there is none."""
    reader = ReaderRegistry.get_reader(format_name)
    if reader is None:
        raise UnsupportedFormat(format_name)
    LOGGER.debug("using reader %s for %s", reader.get_name(), format_name)
    return reader


def get_writer(format_name: str) -> OutputWriter:
    """Get the writer for a format, raising EmitUnsupportedFormat if there is none."""
    writer = WriterRegistry.get_writer(format_name)
    if writer is None:
        raise EmitUnsupportedFormat(format_name)
    LOGGER.debug("using writer %s for %s", writer.get_name(), format_name)
    return writer


def read(data: bytes, format_name: str, options: ParseOptionsArg = None) -> ConversionResult[Document]:
    """Parse bytes in the named format."""
    return get_reader(format_name).parse(data, options)


def read_file(path: Union[str, Path], format_name: Optional[str] = None,
              options: ParseOptionsArg = None) -> ConversionResult[Document]:
    """Read a file, choosing the reader by extension unless a format is given."""
    path = Path(path)
    if format_name is not None:
        return get_reader(format_name).read(path, options)
    reader = ReaderRegistry.get_reader_for_file(path)
    if reader is None:
        raise UnsupportedFormat(path.suffix or str(path))
    return reader.read(path, options)


def write(doc: Document, format_name: str, options: EmitOptionsArg = None) -> ConversionResult[bytes]:
    """Serialize a document in the named format."""
    return get_writer(format_name).emit(doc, options)


def build_pipeline(transforms: Iterable[TransformArg] = ()) -> Pipeline:
    """Turn transform instances and/or 'name[:arg]' strings into a Pipeline."""
    steps = []
    for item in transforms:
        steps.append(TransformRegistry.create(item) if isinstance(item, str) else item)
    return Pipeline(steps)


def convert(
    data: bytes,
    from_format: str,
    to_format: str,
    transforms: Iterable[TransformArg] = (),
    parse_options: ParseOptionsArg = None,
    emit_options: EmitOptionsArg = None,
) -> ConversionResult[bytes]:
    """
    Read, transform and write in one step.

    Warnings from reading come first, followed by those from writing.

    Raises:
        UnsupportedFormat: If no reader handles `from_format`
        EmitUnsupportedFormat: If no writer handles `to_format`
        ParseError, TransformError, EmitError: From the individual steps
    """
    reader = get_reader(from_format)
    writer = get_writer(to_format)

    parsed = reader.parse(data, parse_options)
    doc = build_pipeline(transforms).transform(parsed.value)
    emitted = writer.emit(doc, emit_options)
    return ConversionResult.with_warnings(emitted.value, parsed.warnings + emitted.warnings)


def read_stream(stream) -> bytes:
    """Read all bytes from a binary stream, mapping OS errors to ReadIoError."""
    try:
        return stream.read()
    except OSError as e:
        raise ReadIoError(e) from e
