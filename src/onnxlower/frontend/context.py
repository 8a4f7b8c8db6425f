"""
Per-call lowering context: the source node, its lowered operands and the
staging builder new IR is created through.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NoReturn, Optional, Tuple

from ..core.builder import GraphBuilder
from ..core.errors import ConversionError, ErrorKind
from ..core.ir import Tensor
from .attributes import AttributeStore
from .node import SourceNode


@dataclass
class NodeContext:
    node: SourceNode
    inputs: Tuple[Optional[Tensor], ...]
    builder: GraphBuilder

    @property
    def attributes(self) -> AttributeStore:
        return self.node.attributes

    def input(self, index: int) -> Tensor:
        """Required operand ``index``."""
        tensor = self.optional_input(index)
        if tensor is None:
            self.fail(ErrorKind.MISSING_INPUT, f"Input {index} is required")
        return tensor

    def optional_input(self, index: int) -> Optional[Tensor]:
        # ONNX marks omitted optional inputs with an empty name
        if index >= len(self.inputs):
            return None
        return self.inputs[index]

    def fail(self, kind: ErrorKind, message: str) -> NoReturn:
        raise ConversionError(
            f"{message}. Node: {self.node.location}",
            kind=kind,
            operator=self.node.op_type,
            location=self.node.location,
        )


__all__ = ["NodeContext"]
