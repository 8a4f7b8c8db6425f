"""
Best-effort output type/shape inference for IR ops.

Lowering routines never compute output shapes themselves: every op they
create goes through ``infer_op``. Inference is local (one op at a time);
unknown information stays unknown rather than being guessed.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .ir import DType, Dim, Shape, Tensor
from .errors import InternalError

logger = logging.getLogger(__name__)

TypeAndShape = Tuple[DType, Shape]

REDUCTION_OPS = (
    "ReduceSum",
    "ReduceMean",
    "ReduceMax",
    "ReduceMin",
    "ReduceProd",
    "ReduceL1",
    "ReduceL2",
)

UNARY_OPS = ("Exp", "Log")


def normalize_axis(axis: int, rank: int) -> int:
    """Map an axis in [-rank, rank-1] onto [0, rank-1]."""
    if not -rank <= axis < rank:
        raise ValueError(f"axis {axis} out of range for rank {rank}")
    return axis + rank if axis < 0 else axis


def _constant_values(tensor: Tensor) -> Optional[List[int]]:
    if tensor.data is None:
        return None
    return [int(v) for v in np.asarray(tensor.data).reshape(-1)]


# -----------------------------
# Per-op rules
# -----------------------------

def _infer_unary(inputs: Sequence[Tensor], attrs: Dict[str, Any]) -> TypeAndShape:
    return inputs[0].dtype, inputs[0].shape


def _infer_multiply(inputs: Sequence[Tensor], attrs: Dict[str, Any]) -> TypeAndShape:
    a, b = inputs
    dtype = a.dtype if a.dtype is not DType.UNKNOWN else b.dtype
    return dtype, broadcast_shapes(a.shape, b.shape)


def _infer_shape_of(inputs: Sequence[Tensor], attrs: Dict[str, Any]) -> TypeAndShape:
    rank = inputs[0].rank()
    return DType.INT64, Shape.of(rank)


def _infer_squeeze(inputs: Sequence[Tensor], attrs: Dict[str, Any]) -> TypeAndShape:
    data = inputs[0]
    rank = data.rank()
    if rank is None:
        return data.dtype, Shape.unknown_rank()
    drop = {normalize_axis(a, rank) for a in attrs.get("axes", ())}
    dims = tuple(d for i, d in enumerate(data.shape.dims) if i not in drop)
    return data.dtype, Shape(dims=dims)


def _infer_range(inputs: Sequence[Tensor], attrs: Dict[str, Any]) -> TypeAndShape:
    dtype = attrs.get("output_type", DType.INT64)
    values = [_constant_values(t) for t in inputs]
    if all(v is not None and len(v) == 1 for v in values):
        (start,), (stop,), (step,) = values
        return dtype, Shape.of(len(range(start, stop, step)))
    return dtype, Shape.of(None)


def _infer_reduction(inputs: Sequence[Tensor], attrs: Dict[str, Any]) -> TypeAndShape:
    data, axes = inputs
    keep_dims = attrs.get("keep_dims", True)
    rank = data.rank()

    if rank is None:
        return data.dtype, Shape.unknown_rank()

    values = _constant_values(axes)
    if values is None:
        if keep_dims:
            return data.dtype, Shape.dynamic(rank)
        if axes.shape.is_fully_static() and axes.shape.rank() == 1:
            count = axes.shape.dims[0].value
            if count > rank:
                raise InternalError(f"{count} reduction axes for a rank-{rank} input")
            # Distinct axes assumed; duplicates are rejected at run time
            return data.dtype, Shape.dynamic(rank - count)
        return data.dtype, Shape.unknown_rank()

    reduced = {normalize_axis(a, rank) for a in values}
    dims: List[Dim] = []
    for i, dim in enumerate(data.shape.dims):
        if i in reduced:
            if keep_dims:
                dims.append(Dim(value=1))
        else:
            dims.append(dim)
    return data.dtype, Shape(dims=tuple(dims))


_RULES: Dict[str, Callable[[Sequence[Tensor], Dict[str, Any]], TypeAndShape]] = {
    "Multiply": _infer_multiply,
    "ShapeOf": _infer_shape_of,
    "Squeeze": _infer_squeeze,
    "Range": _infer_range,
}
_RULES.update({name: _infer_unary for name in UNARY_OPS})
_RULES.update({name: _infer_reduction for name in REDUCTION_OPS})


def broadcast_shapes(a: Shape, b: Shape) -> Shape:
    """Numpy-style broadcast of two partial shapes."""
    if a.dims is None or b.dims is None:
        return Shape.unknown_rank()

    rank = max(len(a.dims), len(b.dims))
    left = (Dim(value=1),) * (rank - len(a.dims)) + a.dims
    right = (Dim(value=1),) * (rank - len(b.dims)) + b.dims

    dims = []
    for x, y in zip(left, right):
        if x.value == 1:
            dims.append(y)
        elif y.value == 1 or x == y:
            dims.append(x)
        elif x.is_static() and y.is_static():
            raise ValueError(f"shapes {a!r} and {b!r} are not broadcastable")
        else:
            dims.append(x if x.is_static() else y)
    return Shape(dims=tuple(dims))


def infer_op(op_type: str, inputs: Sequence[Tensor], attributes: Dict[str, Any]) -> TypeAndShape:
    """
    Infer (dtype, shape) of the single output of an IR op.

    Raises InternalError for op types the IR does not define.
    """
    rule = _RULES.get(op_type)
    if rule is None:
        raise InternalError(f"No shape inference rule for IR op '{op_type}'")

    dtype, shape = rule(inputs, attributes)
    logger.debug("infer %s -> %s %r", op_type, dtype.type_name, shape)
    return dtype, shape


def supported_ir_ops() -> Tuple[str, ...]:
    return tuple(sorted(_RULES))


__all__ = ["infer_op", "broadcast_shapes", "normalize_axis", "supported_ir_ops", "REDUCTION_OPS"]
