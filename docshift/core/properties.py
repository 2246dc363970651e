"""
Property values and property bags.

Every node and resource carries a property bag: an unordered, string-keyed
collection of values. A value is one of a small closed set of kinds:
text, 64-bit integer, float, boolean, a list of values, or a string-keyed
map of values.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

PropValue = Union[str, int, float, bool, List["PropValue"], Dict[str, "PropValue"]]

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def normalize_value(value: Any) -> PropValue:
    """
    Validate a value and return a freshly built copy of it.

    Lists and maps are rebuilt recursively, so a stored value never shares
    a container with the caller (or with itself).

    Raises:
        TypeError: If the value (or a nested value) is not a supported kind
        ValueError: If an integer does not fit in 64 bits
    """
    # bool must be checked before int: bool is a subclass of int
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if not INT64_MIN <= value <= INT64_MAX:
            raise ValueError(f"Integer property out of 64-bit range: {value}")
        return int(value)
    if isinstance(value, float):
        return float(value)
    if isinstance(value, str):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [normalize_value(item) for item in value]
    if isinstance(value, Mapping):
        normalized = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"Property map keys must be str, got {type(key).__name__}")
            normalized[key] = normalize_value(item)
        return normalized
    raise TypeError(f"Unsupported property value type: {type(value).__name__}")


class Properties:
    """
    A collection of named property values.

    Keys are unique and the last write wins. Typed accessors (get_str,
    get_int, ...) return None both when the key is missing and when the
    stored value has a different kind; a wrong kind is not an error.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, PropValue] = {}
        if values:
            for key, value in values.items():
                self.set(key, value)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "Properties":
        """Build a property bag from a plain mapping."""
        return cls(values)

    def set(self, key: str, value: Any) -> None:
        """Set a property, replacing any previous value."""
        if not isinstance(key, str):
            raise TypeError(f"Property keys must be str, got {type(key).__name__}")
        self._values[key] = normalize_value(value)

    def get(self, key: str) -> Optional[PropValue]:
        """Get a property value of any kind."""
        return self._values.get(key)

    def get_str(self, key: str) -> Optional[str]:
        value = self._values.get(key)
        return value if isinstance(value, str) else None

    def get_int(self, key: str) -> Optional[int]:
        value = self._values.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return None

    def get_float(self, key: str) -> Optional[float]:
        value = self._values.get(key)
        return value if isinstance(value, float) else None

    def get_bool(self, key: str) -> Optional[bool]:
        value = self._values.get(key)
        return value if isinstance(value, bool) else None

    def get_list(self, key: str) -> Optional[List[PropValue]]:
        value = self._values.get(key)
        return value if isinstance(value, list) else None

    def get_map(self, key: str) -> Optional[Dict[str, PropValue]]:
        value = self._values.get(key)
        return value if isinstance(value, dict) else None

    def contains(self, key: str) -> bool:
        return key in self._values

    def remove(self, key: str) -> Optional[PropValue]:
        """Remove a property, returning its value (None if absent)."""
        return self._values.pop(key, None)

    def items(self) -> Iterator[Tuple[str, PropValue]]:
        return iter(self._values.items())

    def keys(self) -> Iterator[str]:
        return iter(self._values.keys())

    def is_empty(self) -> bool:
        return not self._values

    def copy(self) -> "Properties":
        """Return an independent copy of this property bag."""
        return Properties(self._values)

    def to_dict(self) -> Dict[str, PropValue]:
        """Return a plain dict copy of all properties."""
        return {key: normalize_value(value) for key, value in self._values.items()}

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Properties):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"Properties({self._values!r})"
