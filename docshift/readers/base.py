"""
Base classes for input readers.

This module provides the abstract base class for all input readers and the
registry system for managing them.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, Union

from docshift.core.document import Document, SourceInfo
from docshift.core.errors import ReadIoError
from docshift.core.fidelity import ConversionResult, FidelityWarning, Severity
from docshift.core.options import ParseOptions, merged_extra
from docshift.core.properties import Properties

LOGGER = logging.getLogger(__name__)

OptionsArg = Union[ParseOptions, Mapping[str, Any], None]


class InputReader(ABC):
    """
    Abstract base class for document input readers.

    Subclasses must implement:
    - get_format_name(): Return the format name (e.g., 'csv', 'docx')
    - get_extensions(): Return list of file extensions this reader handles
    - parse(data, options): Parse raw bytes into a ConversionResult[Document]

    Optionally override:
    - get_priority(): Return priority for reader selection (higher = preferred)
    - get_default_options(): Return default format-specific options
    - supports_file(file_path): Check if this reader can handle a specific file

    A reader must terminate on every byte sequence, including empty and
    truncated input. Per-call state belongs in local variables, never on the
    reader instance, so one reader can serve several threads.
    """

    @classmethod
    @abstractmethod
    def get_format_name(cls) -> str:
        """
        Return the format name for this reader.

        This is used to identify the reader (e.g., 'csv', 'ansi', 'docx').
        """
        pass

    @classmethod
    @abstractmethod
    def get_extensions(cls) -> List[str]:
        """
        Return list of file extensions this reader supports.

        Extensions should include the dot (e.g., ['.csv'])
        """
        pass

    @abstractmethod
    def parse(self, data: bytes, options: OptionsArg = None) -> ConversionResult[Document]:
        """
        Parse raw bytes and return a Document with its fidelity warnings.

        Args:
            data: Raw input bytes
            options: ParseOptions, a mapping of option names, or None.
                     Unrecognized options are ignored.

        Returns:
            ConversionResult whose value is a Document rooted at a
            "document" node

        Raises:
            InvalidInput: If the input is structurally malformed
            UnsupportedFormat: If the input is a known but unhandled dialect
            ReadIoError: If reading an underlying stream fails
        """
        pass

    def parse_text(self, text: str, options: OptionsArg = None) -> ConversionResult[Document]:
        """Parse already-decoded text."""
        return self.parse(text.encode("utf-8"), options)

    def read(self, file_path: Path, options: OptionsArg = None) -> ConversionResult[Document]:
        """Read a file from disk and parse it."""
        try:
            data = Path(file_path).read_bytes()
        except OSError as e:
            raise ReadIoError(e) from e
        LOGGER.debug("%s reading %s (%d bytes)", self.get_name(), file_path, len(data))
        return self.parse(data, options)

    @classmethod
    def supports_file(cls, file_path: Path) -> bool:
        """Check if this reader can handle the given file (by extension)."""
        return Path(file_path).suffix.lower() in [ext.lower() for ext in cls.get_extensions()]

    @classmethod
    def get_priority(cls) -> int:
        """
        Return priority for reader selection.

        Higher values = higher priority. When multiple readers support a file,
        the one with highest priority is used.

        Default is 0. Override to change priority.
        """
        return 0

    @classmethod
    def get_default_options(cls) -> Dict[str, Any]:
        """Return default format-specific options (merged under ParseOptions.extra)."""
        return {}

    @classmethod
    def get_name(cls) -> str:
        """Return human-readable name for this reader."""
        return cls.__name__

    @classmethod
    def get_description(cls) -> str:
        """Return description of what this reader handles."""
        return cls.__doc__ or f"Reader for {cls.get_extensions()}"

    # Helpers for subclasses

    def _options(self, options: OptionsArg) -> Tuple[ParseOptions, Dict[str, Any]]:
        """Coerce options and merge format-specific extras over the defaults."""
        opts = ParseOptions.coerce(options)
        return opts, merged_extra(self.get_default_options(), opts.extra)

    def _source_info(self, opts: ParseOptions, metadata: Optional[Properties] = None) -> Optional[SourceInfo]:
        if not opts.preserve_source_info:
            return None
        return SourceInfo(self.get_format_name(), metadata or Properties())


def decode_text(data: bytes) -> Tuple[str, List[FidelityWarning]]:
    """
    Decode input bytes as UTF-8, falling back to cp1252 and then latin-1.

    A leading byte-order mark is dropped. Falling back is reported as a
    warning since characters may have been misread.
    """
    if data.startswith(b"\xef\xbb\xbf"):
        data = data[3:]
    try:
        return data.decode("utf-8"), []
    except UnicodeDecodeError:
        pass

    for encoding in ("cp1252", "latin-1"):
        try:
            text = data.decode(encoding)
        except UnicodeDecodeError:
            continue
        warning = FidelityWarning.simplified(
            "text encoding",
            f"Input is not valid UTF-8; decoded as {encoding}",
            Severity.MINOR,
        )
        return text, [warning]
    # latin-1 maps every byte, so this is unreachable
    raise AssertionError("latin-1 decoding failed")


class ReaderRegistry:
    """
    Registry for managing input readers.

    Provides methods for:
    - Registering readers
    - Finding the appropriate reader for a format name or file
    - Listing all supported formats
    """

    _readers: Dict[str, Type[InputReader]] = {}

    @classmethod
    def register(cls, reader_class: Type[InputReader]) -> Type[InputReader]:
        """
        Register a reader class with the registry.

        Can be used as a decorator:
            @ReaderRegistry.register
            class MyReader(InputReader):
                ...

        Or called directly:
            ReaderRegistry.register(MyReader)
        """
        format_name = reader_class.get_format_name()
        cls._readers[format_name] = reader_class
        return reader_class

    @classmethod
    def get_reader(cls, format_name: str) -> Optional[InputReader]:
        """
        Get a reader instance for the specified format.

        Returns:
            Reader instance or None if format not supported
        """
        reader_cls = cls._readers.get(format_name.lower())
        if reader_cls:
            return reader_cls()
        return None

    @classmethod
    def get_reader_for_file(cls, file_path: Path) -> Optional[InputReader]:
        """
        Get an appropriate reader instance for the given file.

        Returns the reader with highest priority that supports the file,
        or None if no reader supports it.
        """
        file_path = Path(file_path)

        supporting_readers = [
            reader_cls for reader_cls in cls._readers.values()
            if reader_cls.supports_file(file_path)
        ]

        if not supporting_readers:
            return None

        supporting_readers.sort(key=lambda r: r.get_priority(), reverse=True)
        return supporting_readers[0]()

    @classmethod
    def get_reader_by_extension(cls, extension: str) -> Optional[Type[InputReader]]:
        """
        Get reader class for a specific extension.

        Args:
            extension: File extension with or without dot (e.g., '.csv' or 'csv')
        """
        if not extension.startswith('.'):
            extension = '.' + extension
        extension = extension.lower()

        matches = [
            reader_cls for reader_cls in cls._readers.values()
            if extension in [ext.lower() for ext in reader_cls.get_extensions()]
        ]
        if not matches:
            return None
        return max(matches, key=lambda r: r.get_priority())

    @classmethod
    def get_supported_formats(cls) -> List[str]:
        """Get list of all supported format names."""
        return sorted(cls._readers.keys())

    @classmethod
    def get_supported_extensions(cls) -> List[str]:
        """Get list of all supported file extensions."""
        extensions = set()
        for reader_cls in cls._readers.values():
            extensions.update(reader_cls.get_extensions())
        return sorted(extensions)

    @classmethod
    def get_all_readers(cls) -> Dict[str, Type[InputReader]]:
        """Get dictionary of all registered readers."""
        return cls._readers.copy()
