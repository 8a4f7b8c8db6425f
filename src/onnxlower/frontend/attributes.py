"""
Typed, read-only view over a source node's named parameters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from ..core.errors import AttributeLookupError, ErrorKind

logger = logging.getLogger(__name__)

_MISSING = object()


class AttributeKind(str, Enum):
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    INTS = "ints"
    FLOATS = "floats"
    STRINGS = "strings"


@dataclass(frozen=True)
class AttributeValue:
    kind: AttributeKind
    value: Any

    @classmethod
    def of(cls, value: Any) -> "AttributeValue":
        """Tag a plain Python value (int, float, str or a sequence of one of them)."""
        if isinstance(value, bool):
            return cls(AttributeKind.INT, int(value))
        if isinstance(value, int):
            return cls(AttributeKind.INT, value)
        if isinstance(value, float):
            return cls(AttributeKind.FLOAT, value)
        if isinstance(value, str):
            return cls(AttributeKind.STRING, value)
        if isinstance(value, (list, tuple)):
            items = tuple(value)
            if all(isinstance(v, str) for v in items) and items:
                return cls(AttributeKind.STRINGS, items)
            if all(isinstance(v, int) and not isinstance(v, bool) for v in items):
                return cls(AttributeKind.INTS, items)
            if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in items):
                return cls(AttributeKind.FLOATS, tuple(float(v) for v in items))
        raise TypeError(f"Cannot store {value!r} as an attribute value")

    @classmethod
    def from_onnx(cls, attr) -> Optional["AttributeValue"]:
        """Parse ONNX AttributeProto. Returns None for kinds the store does not hold."""
        from onnx import AttributeProto

        attr_type = attr.type

        if attr_type == AttributeProto.FLOAT:
            return cls(AttributeKind.FLOAT, attr.f)
        elif attr_type == AttributeProto.INT:
            return cls(AttributeKind.INT, attr.i)
        elif attr_type == AttributeProto.STRING:
            return cls(AttributeKind.STRING, attr.s.decode("utf-8"))
        elif attr_type == AttributeProto.FLOATS:
            return cls(AttributeKind.FLOATS, tuple(attr.floats))
        elif attr_type == AttributeProto.INTS:
            return cls(AttributeKind.INTS, tuple(attr.ints))
        elif attr_type == AttributeProto.STRINGS:
            return cls(AttributeKind.STRINGS, tuple(s.decode("utf-8") for s in attr.strings))
        else:
            return None


class AttributeStore:
    """
    Immutable mapping of attribute name to AttributeValue.

    ``get_*`` accessors return the caller's default when the attribute is
    absent and raise AttributeLookupError when it holds another kind.
    """

    def __init__(self, values: Optional[Mapping[str, AttributeValue]] = None):
        self._values = MappingProxyType(dict(values or {}))

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "AttributeStore":
        return cls({name: AttributeValue.of(value) for name, value in raw.items()})

    @classmethod
    def from_onnx(cls, attributes) -> "AttributeStore":
        values: Dict[str, AttributeValue] = {}
        for attr in attributes:
            parsed = AttributeValue.from_onnx(attr)
            if parsed is None:
                logger.debug("skipping attribute %r of unsupported kind %d", attr.name, attr.type)
                continue
            values[attr.name] = parsed
        return cls(values)

    # -------------------------
    # Container protocol
    # -------------------------

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def value(self, name: str) -> Optional[AttributeValue]:
        """Tagged value of ``name``, or None when absent."""
        return self._values.get(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v.value!r}" for k, v in self._values.items())
        return f"AttributeStore({inner})"

    # -------------------------
    # Untyped access
    # -------------------------

    def get(self, name: str, default: Any = None) -> Any:
        """Raw value of ``name``, or ``default`` when absent."""
        found = self._values.get(name)
        return default if found is None else found.value

    def get_required(self, name: str) -> Any:
        found = self._values.get(name)
        if found is None:
            raise AttributeLookupError(
                f"Required attribute '{name}' is missing",
                kind=ErrorKind.MISSING_ATTRIBUTE,
                attribute=name,
            )
        return found.value

    # -------------------------
    # Typed access
    # -------------------------

    def _typed(self, name: str, default: Any, *kinds: AttributeKind) -> Any:
        found = self._values.get(name)
        if found is None:
            if default is _MISSING:
                return self.get_required(name)
            return default
        if found.kind not in kinds:
            raise AttributeLookupError(
                f"Attribute '{name}' holds {found.kind.value}, expected "
                f"{' or '.join(k.value for k in kinds)}",
                kind=ErrorKind.ATTRIBUTE_TYPE_MISMATCH,
                attribute=name,
            )
        return found.value

    def get_int(self, name: str, default: Any = _MISSING) -> int:
        return self._typed(name, default, AttributeKind.INT)

    def get_float(self, name: str, default: Any = _MISSING) -> float:
        # An integer literal is a valid float
        value = self._typed(name, default, AttributeKind.FLOAT, AttributeKind.INT)
        return float(value) if isinstance(value, int) else value

    def get_string(self, name: str, default: Any = _MISSING) -> str:
        return self._typed(name, default, AttributeKind.STRING)

    def get_ints(self, name: str, default: Any = _MISSING) -> Tuple[int, ...]:
        value = self._typed(name, default, AttributeKind.INTS)
        return tuple(value) if value is not None else value

    def get_floats(self, name: str, default: Any = _MISSING) -> Tuple[float, ...]:
        value = self._typed(name, default, AttributeKind.FLOATS, AttributeKind.INTS)
        return tuple(float(v) for v in value) if value is not None else value

    def get_strings(self, name: str, default: Any = _MISSING) -> Tuple[str, ...]:
        value = self._typed(name, default, AttributeKind.STRINGS)
        return tuple(value) if value is not None else value


__all__ = ["AttributeKind", "AttributeValue", "AttributeStore"]
