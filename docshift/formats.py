"""
Format catalog: which formats exist, their extensions, and what can read or
write them. Built from the reader and writer registries.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

import docshift.readers  # noqa: F401  (registers the readers)
import docshift.writers  # noqa: F401  (registers the writers)
from docshift.core.errors import FormatResolutionError
from docshift.readers.base import ReaderRegistry
from docshift.writers.base import WriterRegistry

STDIO = "-"


@dataclass(frozen=True)
class FormatInfo:
    """One entry of the format catalog."""
    name: str
    extensions: Tuple[str, ...]
    can_read: bool
    can_write: bool
    binary: bool


class FormatCatalog:
    """
    Registry-backed lookup of formats by name or file extension.

    Entries are computed on each call, so formats registered later (by
    plugins) show up without further wiring.
    """

    @classmethod
    def all(cls) -> List[FormatInfo]:
        """All known formats, sorted by name."""
        readers = ReaderRegistry.get_all_readers()
        writers = WriterRegistry.get_all_writers()
        formats = []
        for name in sorted(set(readers) | set(writers)):
            extensions = set()
            if name in readers:
                extensions.update(ext.lower() for ext in readers[name].get_extensions())
            if name in writers:
                extensions.update(ext.lower() for ext in writers[name].get_extensions())
            formats.append(FormatInfo(
                name=name,
                extensions=tuple(sorted(extensions)),
                can_read=name in readers,
                can_write=name in writers,
                binary=name in writers and writers[name].is_binary(),
            ))
        return formats

    @classmethod
    def get(cls, name: str) -> Optional[FormatInfo]:
        name = name.lower()
        for info in cls.all():
            if info.name == name:
                return info
        return None

    @classmethod
    def by_extension(cls, extension: str, for_writing: bool = False) -> Optional[FormatInfo]:
        """
        Find the format for a file extension.

        Args:
            extension: File extension with or without dot (e.g., '.csv' or 'csv')
            for_writing: Only consider formats that can be written
        """
        if not extension.startswith('.'):
            extension = '.' + extension
        extension = extension.lower()

        if not for_writing:
            reader_cls = ReaderRegistry.get_reader_by_extension(extension)
            if reader_cls is not None:
                return cls.get(reader_cls.get_format_name())
            return None
        writer = WriterRegistry.get_writer_for_extension(extension)
        if writer is not None:
            return cls.get(writer.get_format_name())
        return None

    @classmethod
    def resolve(cls, explicit: Optional[str], path: Union[str, Path, None] = None,
                for_writing: bool = False) -> str:
        """
        Decide the format name for an input or output.

        An explicitly given name wins; otherwise the path's extension is
        matched. A missing path or "-" (stdin/stdout) has no extension.

        Raises:
            FormatResolutionError: If neither gives a known format
        """
        direction = "output" if for_writing else "input"
        if explicit:
            info = cls.get(explicit)
            if info is None:
                raise FormatResolutionError(f"unknown format: {explicit}")
            if for_writing and not info.can_write:
                raise FormatResolutionError(f"no writer available for {info.name} format")
            if not for_writing and not info.can_read:
                raise FormatResolutionError(f"no reader available for {info.name} format")
            return info.name

        if path is not None and str(path) != STDIO:
            suffix = Path(path).suffix
            if suffix:
                info = cls.by_extension(suffix, for_writing=for_writing)
                if info is not None:
                    return info.name

        raise FormatResolutionError(f"cannot determine {direction} format - specify explicitly")


def resolve(explicit: Optional[str], path: Union[str, Path, None] = None, for_writing: bool = False) -> str:
    return FormatCatalog.resolve(explicit, path, for_writing=for_writing)
