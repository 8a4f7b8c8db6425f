"""
Immutable descriptor of one ONNX operator instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Tuple

from .attributes import AttributeStore


@dataclass(frozen=True)
class SourceNode:
    op_type: str
    opset: int
    inputs: Tuple[str, ...] = ()
    attributes: AttributeStore = field(default_factory=AttributeStore)
    location: str = "<unknown>"
    name: str = ""
    domain: str = ""

    @classmethod
    def from_onnx(cls, node, opset: int, index: Optional[int] = None) -> "SourceNode":
        """Describe an ONNX NodeProto authored against ``opset``."""
        name = node.name or (f"{node.op_type}_{index}" if index is not None else node.op_type)
        location = f"node '{name}' ({node.op_type}, opset {opset})"
        if index is not None:
            location = f"{location} at position {index}"
        return cls(
            op_type=node.op_type,
            opset=opset,
            inputs=tuple(node.input),
            attributes=AttributeStore.from_onnx(node.attribute),
            location=location,
            name=name,
            domain=node.domain,
        )

    @classmethod
    def make(
        cls,
        op_type: str,
        opset: int,
        inputs: Sequence[str] = (),
        attributes: Optional[Mapping[str, Any]] = None,
        name: str = "",
    ) -> "SourceNode":
        """Build a node from plain Python values."""
        name = name or op_type
        return cls(
            op_type=op_type,
            opset=opset,
            inputs=tuple(inputs),
            attributes=AttributeStore.from_dict(attributes or {}),
            location=f"node '{name}' ({op_type}, opset {opset})",
            name=name,
        )


__all__ = ["SourceNode"]
