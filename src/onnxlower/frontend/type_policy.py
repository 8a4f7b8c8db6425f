"""
Element types each operator version accepts.
"""

from __future__ import annotations

from typing import FrozenSet

from ..core.errors import ErrorKind
from ..core.ir import DType, Tensor
from .context import NodeContext

BASE_TYPES: FrozenSet[DType] = frozenset({
    DType.UINT32,
    DType.UINT64,
    DType.INT32,
    DType.INT64,
    DType.FLOAT16,
    DType.FLOAT32,
    DType.FLOAT64,
})

# Later opsets add bfloat16
EXTENDED_TYPES: FrozenSet[DType] = BASE_TYPES | {DType.BFLOAT16}


def check_element_type(ctx: NodeContext, tensor: Tensor, supported: FrozenSet[DType]) -> None:
    """
    Reject ``tensor`` unless its element type is in ``supported``.

    Must run before the caller stages any IR. An unknown element type is
    not a member of any set.
    """
    if tensor.dtype not in supported:
        ctx.fail(
            ErrorKind.UNSUPPORTED_ELEMENT_TYPE,
            f"Unsupported input type {tensor.dtype.type_name}",
        )


__all__ = ["BASE_TYPES", "EXTENDED_TYPES", "check_element_type"]
