"""
Options records for readers and writers.

Options can be given as an options object, a plain mapping, or None.
Recognized keys become attributes; anything else is kept in `extra` for
format-specific use and otherwise ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Union


@dataclass
class ParseOptions:
    """Options for parsing."""
    preserve_source_info: bool = False  # keep format-specific details in Document.source
    embed_resources: bool = True        # embed images and other binary content
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ParseOptions":
        return _from_mapping(cls, values)

    @classmethod
    def coerce(cls, options: Union["ParseOptions", Mapping[str, Any], None]) -> "ParseOptions":
        return _coerce(cls, options)


@dataclass
class EmitOptions:
    """Options for emitting."""
    pretty: bool = False
    use_source_info: bool = False  # consult Document.source when it matches the writer's format
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "EmitOptions":
        return _from_mapping(cls, values)

    @classmethod
    def coerce(cls, options: Union["EmitOptions", Mapping[str, Any], None]) -> "EmitOptions":
        return _coerce(cls, options)


def _from_mapping(cls, values: Mapping[str, Any]):
    known = {f.name for f in fields(cls)} - {"extra"}
    kwargs = {}
    extra = dict(values.get("extra", {}) or {})
    for key, value in values.items():
        if key in known:
            kwargs[key] = value
        elif key != "extra":
            extra[key] = value
    return cls(extra=extra, **kwargs)


def _coerce(cls, options: Optional[Any]):
    if options is None:
        return cls()
    if isinstance(options, cls):
        return options
    if isinstance(options, Mapping):
        return cls.from_mapping(options)
    raise TypeError(f"Expected {cls.__name__}, mapping or None, got {type(options).__name__}")


def merged_extra(defaults: Mapping[str, Any], extra: Mapping[str, Any]) -> Dict[str, Any]:
    """Overlay caller-provided extras on a plugin's default options."""
    return {**defaults, **extra}
