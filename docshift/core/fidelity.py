"""
Fidelity tracking: know what was lost in a conversion.

Readers, writers and the pipeline return a ConversionResult: the produced
value plus an ordered list of FidelityWarning records. Warnings are never
raised; a conversion that cannot produce a value raises an error instead
(see docshift.core.errors).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Generic, Iterable, List, Optional, TypeVar

from docshift.core.node import Span

T = TypeVar("T")


class Severity(IntEnum):
    """How much a warning matters. Ordered from least to most severe."""
    INFO = 0    # nothing lost
    MINOR = 1   # formatting may differ
    MAJOR = 2   # significant information lost
    ERROR = 3   # output may be incorrect

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class WarningKind:
    """
    Base class for warning kinds.

    Subclass it to add kinds for a new domain; `label` is what gets shown to
    the operator.
    """

    @property
    def label(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class FeatureLost(WarningKind):
    """A format feature was dropped entirely."""
    feature: str

    @property
    def label(self) -> str:
        return f"FeatureLost({self.feature})"


@dataclass(frozen=True)
class Simplified(WarningKind):
    """Structure was kept, in a simpler form."""
    feature: str

    @property
    def label(self) -> str:
        return f"Simplified({self.feature})"


@dataclass(frozen=True)
class UnsupportedNode(WarningKind):
    """A node kind had no dedicated handling and went through the fallback."""
    kind: str

    @property
    def label(self) -> str:
        return f"UnsupportedNode({self.kind})"


@dataclass(frozen=True)
class UnsupportedProperty(WarningKind):
    """A property is not representable in the target format."""
    name: str

    @property
    def label(self) -> str:
        return f"UnsupportedProperty({self.name})"


@dataclass(frozen=True)
class ResourceFailed(WarningKind):
    """A referenced resource could not be embedded or resolved."""
    resource_id: str

    @property
    def label(self) -> str:
        return f"ResourceFailed({self.resource_id})"


@dataclass(frozen=True)
class FidelityWarning:
    """A non-fatal note that some input feature was lost or simplified."""
    severity: Severity
    kind: WarningKind
    message: str
    span: Optional[Span] = None

    @classmethod
    def feature_lost(cls, feature: str, message: str, severity: Severity = Severity.MINOR) -> "FidelityWarning":
        return cls(severity, FeatureLost(feature), message)

    @classmethod
    def simplified(cls, feature: str, message: str, severity: Severity = Severity.MINOR) -> "FidelityWarning":
        return cls(severity, Simplified(feature), message)

    def __str__(self) -> str:
        return f"[{self.severity}] {self.kind.label}: {self.message}"


@dataclass
class ConversionResult(Generic[T]):
    """The output of a conversion step together with its fidelity warnings."""
    value: T
    warnings: List[FidelityWarning] = field(default_factory=list)

    @classmethod
    def ok(cls, value: T) -> "ConversionResult[T]":
        """Create a result with no warnings."""
        return cls(value, [])

    @classmethod
    def with_warnings(cls, value: T, warnings: Iterable[FidelityWarning]) -> "ConversionResult[T]":
        return cls(value, list(warnings))

    def warn(self, warning: FidelityWarning) -> "ConversionResult[T]":
        """Append a warning and return self, for chaining."""
        self.warnings.append(warning)
        return self

    def extend(self, warnings: Iterable[FidelityWarning]) -> "ConversionResult[T]":
        self.warnings.extend(warnings)
        return self

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def has_errors(self) -> bool:
        """True if any warning is MAJOR or worse."""
        return any(w.severity >= Severity.MAJOR for w in self.warnings)

    @property
    def is_lossless(self) -> bool:
        return not self.warnings
