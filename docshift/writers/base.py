"""
Base classes for output writers.

This module provides the abstract base class for all output writers, the
registry system for managing them, and the per-call render context writers
use to dispatch on node kinds and collect fidelity warnings.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Hashable, List, Mapping, Optional, Set, Tuple, Type, Union

from docshift.core.document import Document
from docshift.core.errors import WriteIoError
from docshift.core.fidelity import ConversionResult, FidelityWarning, Severity
from docshift.core.node import Node
from docshift.core.options import EmitOptions, merged_extra
from docshift.core.properties import Properties
from docshift.core.resource import ResourceId
from docshift.nodes.math import MathProps

LOGGER = logging.getLogger(__name__)

OptionsArg = Union[EmitOptions, Mapping[str, Any], None]


class RenderContext:
    """
    State for a single emit() call.

    Holds the document being written, the resolved options and the warnings
    gathered so far. Writers create one per call so a writer instance can be
    shared between threads.
    """

    def __init__(self, doc: Document, options: EmitOptions, extra: Dict[str, Any]):
        self.doc = doc
        self.options = options
        self.extra = extra
        self.warnings: List[FidelityWarning] = []
        # Writer-specific scratch space for this call
        self.state: Dict[str, Any] = {}
        self._seen: Set[Hashable] = set()

    def warn(self, warning: FidelityWarning) -> None:
        self.warnings.append(warning)

    def warn_once(self, key: Hashable, warning: FidelityWarning) -> None:
        """Record a warning only the first time `key` is seen in this call."""
        if key in self._seen:
            return
        self._seen.add(key)
        self.warnings.append(warning)

    def fallback_text(self, node: Node) -> Optional[str]:
        """
        Default arm for node kinds a writer has no handler for.

        Returns the node's text (its `math:source` when present, otherwise
        its concatenated descendant text) and records Simplified(kind). When
        there is no text the node is dropped: records FeatureLost(kind) and
        returns None.
        """
        kind = str(node.kind)
        content = node.props.get_str(MathProps.SOURCE) or node.text_content()
        if content:
            self.warn_once(("fallback", kind), FidelityWarning.simplified(
                kind,
                f"No handler for '{kind}'; written as plain text",
                Severity.MINOR,
            ))
            return content
        self.warn_once(("fallback", kind), FidelityWarning.feature_lost(
            kind,
            f"No handler for '{kind}' and no text content; dropped",
            Severity.MINOR,
        ))
        return None

    def result(self, value: bytes) -> ConversionResult[bytes]:
        return ConversionResult.with_warnings(value, self.warnings)


class OutputWriter(ABC):
    """
    Abstract base class for document output writers.

    Subclasses must implement:
    - get_format_name(): Return the format name (e.g., 'json', 'docx')
    - get_extension(): Return the file extension for this format
    - emit(doc, options): Serialize the document to bytes

    Optionally override:
    - get_default_options(): Return default format-specific options
    - is_binary(): Whether the output is binary rather than text
    - exportable_resources(doc): Resources the output cannot carry inline

    Writers never fail on a node kind they do not know: unknown kinds go
    through RenderContext.fallback_text() and are reported as warnings.
    """

    @classmethod
    @abstractmethod
    def get_format_name(cls) -> str:
        """
        Return the format name for this writer.

        This is used to identify the writer (e.g., 'json', 'docx', 'text').
        """
        pass

    @classmethod
    @abstractmethod
    def get_extension(cls) -> str:
        """
        Return the file extension for this format.

        Should include the dot (e.g., '.json', '.docx').
        """
        pass

    @abstractmethod
    def emit(self, doc: Document, options: OptionsArg = None) -> ConversionResult[bytes]:
        """
        Serialize the document.

        Args:
            doc: Document object to write
            options: EmitOptions, a mapping of option names, or None.
                     Unrecognized options are ignored.

        Returns:
            ConversionResult holding the output bytes and fidelity warnings

        Raises:
            UnsupportedNodeError: If the writer cannot degrade a node at all
            WriteIoError: If writing to an underlying stream fails
        """
        pass

    def write(self, doc: Document, output_path: Path, options: OptionsArg = None) -> ConversionResult[bytes]:
        """Emit the document and write it to the specified path."""
        result = self.emit(doc, options)
        output_path = Path(output_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(result.value)
        except OSError as e:
            raise WriteIoError(e) from e
        LOGGER.debug("%s wrote %s (%d bytes)", self.get_name(), output_path, len(result.value))
        return result

    def exportable_resources(self, doc: Document) -> List[Tuple[ResourceId, str, bytes]]:
        """
        Return (id, mime type, data) for resources this format cannot inline.

        The default is every resource in the document; formats that embed
        resources in their own output override this.
        """
        return list(doc.iter_resources())

    @classmethod
    def get_extensions(cls) -> List[str]:
        return [cls.get_extension()]

    @classmethod
    def is_binary(cls) -> bool:
        return False

    @classmethod
    def get_default_options(cls) -> Dict[str, Any]:
        """
        Return default options for this writer.

        Override to provide format-specific defaults.
        """
        return {}

    @classmethod
    def get_name(cls) -> str:
        """Return human-readable name for this writer."""
        return cls.__name__

    @classmethod
    def get_description(cls) -> str:
        """Return description of what this writer produces."""
        return cls.__doc__ or f"Writer for {cls.get_format_name()} format"

    # Helpers for subclasses

    def _context(self, doc: Document, options: OptionsArg) -> RenderContext:
        opts = EmitOptions.coerce(options)
        return RenderContext(doc, opts, merged_extra(self.get_default_options(), opts.extra))

    def _source_metadata(self, ctx: RenderContext) -> Optional[Properties]:
        """
        Source metadata this writer may use to reproduce the original.

        Only available when use_source_info is set and the document was
        read from this writer's own format.
        """
        source = ctx.doc.source
        if ctx.options.use_source_info and source is not None and source.format == self.get_format_name():
            return source.metadata
        return None


class WriterRegistry:
    """
    Registry for managing output writers.

    Provides methods for:
    - Registering writers
    - Finding the appropriate writer for a format
    - Listing all supported formats
    """

    _writers: Dict[str, Type[OutputWriter]] = {}

    @classmethod
    def register(cls, writer_class: Type[OutputWriter]) -> Type[OutputWriter]:
        """
        Register a writer class with the registry.

        Can be used as a decorator:
            @WriterRegistry.register
            class MyWriter(OutputWriter):
                ...

        Or called directly:
            WriterRegistry.register(MyWriter)
        """
        format_name = writer_class.get_format_name()
        cls._writers[format_name] = writer_class
        return writer_class

    @classmethod
    def get_writer(cls, format_name: str) -> Optional[OutputWriter]:
        """
        Get a writer instance for the specified format.

        Args:
            format_name: Format name (e.g., 'json', 'docx')

        Returns:
            Writer instance or None if format not supported
        """
        writer_cls = cls._writers.get(format_name.lower())
        if writer_cls:
            return writer_cls()
        return None

    @classmethod
    def get_writer_for_extension(cls, extension: str) -> Optional[OutputWriter]:
        """
        Get a writer instance for the specified file extension.

        Args:
            extension: File extension with or without dot (e.g., '.json' or 'json')
        """
        if not extension.startswith('.'):
            extension = '.' + extension
        extension = extension.lower()

        for writer_cls in cls._writers.values():
            if extension in [ext.lower() for ext in writer_cls.get_extensions()]:
                return writer_cls()

        return None

    @classmethod
    def get_supported_formats(cls) -> List[str]:
        """Get list of all supported format names."""
        return sorted(cls._writers.keys())

    @classmethod
    def get_supported_extensions(cls) -> List[str]:
        """Get list of all supported file extensions."""
        extensions = set()
        for writer_cls in cls._writers.values():
            extensions.update(writer_cls.get_extensions())
        return sorted(extensions)

    @classmethod
    def get_all_writers(cls) -> Dict[str, Type[OutputWriter]]:
        """Get dictionary of all registered writers."""
        return cls._writers.copy()
