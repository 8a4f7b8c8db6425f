"""
Lowering for the ONNX Reduce* family.

Every routine follows the same order: validate the element type, resolve
the axes, apply any elementwise pre-transform, reduce, apply any closing
transform. Nothing is staged before validation succeeds.

Opset notes:
- opset 1: axes come from the ``axes`` attribute.
- opset 11: treated as identical to opset 1 and not registered. It dropped
  the zero-rank wording from most Reduce* descriptions; we assume the
  behavior did not get worse than opset 1. Its [-r, r-1] axis range
  requirement is already enforced for every opset.
- opset 13: ReduceSum takes axes as an input and accepts bfloat16.
- opset 18: the remaining Reduce* ops follow ReduceSum.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ...core.builder import GraphBuilder
from ...core.ir import OutputVector, Tensor
from ..axes import AxesPolicy, NoAxes, axes_operand, resolve_axes
from ..context import NodeContext
from ..registry import RegistryBuilder, VersionedLoweringEntry
from ..type_policy import BASE_TYPES, EXTENDED_TYPES, check_element_type
from .identity import identity

logger = logging.getLogger(__name__)

Transform = Callable[[GraphBuilder, Tensor], Tensor]


def _exp(builder: GraphBuilder, x: Tensor) -> Tensor:
    return builder.make("Exp", [x])


def _log(builder: GraphBuilder, x: Tensor) -> Tensor:
    return builder.make("Log", [x])


def _square(builder: GraphBuilder, x: Tensor) -> Tensor:
    return builder.make("Multiply", [x, x])


def make_reduction(
    ctx: NodeContext,
    entry: VersionedLoweringEntry,
    ir_op: str,
    pre: Optional[Transform] = None,
    post: Optional[Transform] = None,
) -> OutputVector:
    """
    Lower one Reduce* node to ``post(ir_op(pre(x), axes))``.

    When the axes resolve to NoAxes the reduction step is replaced by an
    identity, so a plain reduction returns its input operand itself.
    """
    data = ctx.input(0)
    check_element_type(ctx, data, entry.supported_types)
    keep_dims = bool(ctx.attributes.get_int("keepdims", 1))

    axes = resolve_axes(ctx, data, entry.axes_policy)

    value = pre(ctx.builder, data) if pre else data
    if isinstance(axes, NoAxes):
        (reduced,) = identity(value)
    else:
        reduced = ctx.builder.make(
            ir_op,
            [value, axes_operand(ctx.builder, axes)],
            keep_dims=keep_dims,
        )
    if post:
        reduced = post(ctx.builder, reduced)
    return (reduced,)


# -----------------------------
# Routines
# -----------------------------

def reduce_sum(ctx: NodeContext, entry: VersionedLoweringEntry) -> OutputVector:
    return make_reduction(ctx, entry, "ReduceSum")


def reduce_mean(ctx: NodeContext, entry: VersionedLoweringEntry) -> OutputVector:
    return make_reduction(ctx, entry, "ReduceMean")


def reduce_max(ctx: NodeContext, entry: VersionedLoweringEntry) -> OutputVector:
    return make_reduction(ctx, entry, "ReduceMax")


def reduce_min(ctx: NodeContext, entry: VersionedLoweringEntry) -> OutputVector:
    return make_reduction(ctx, entry, "ReduceMin")


def reduce_prod(ctx: NodeContext, entry: VersionedLoweringEntry) -> OutputVector:
    return make_reduction(ctx, entry, "ReduceProd")


def reduce_l1(ctx: NodeContext, entry: VersionedLoweringEntry) -> OutputVector:
    return make_reduction(ctx, entry, "ReduceL1")


def reduce_l2(ctx: NodeContext, entry: VersionedLoweringEntry) -> OutputVector:
    return make_reduction(ctx, entry, "ReduceL2")


def reduce_log_sum(ctx: NodeContext, entry: VersionedLoweringEntry) -> OutputVector:
    return make_reduction(ctx, entry, "ReduceSum", post=_log)


def reduce_log_sum_exp(ctx: NodeContext, entry: VersionedLoweringEntry) -> OutputVector:
    return make_reduction(ctx, entry, "ReduceSum", pre=_exp, post=_log)


def reduce_sum_square(ctx: NodeContext, entry: VersionedLoweringEntry) -> OutputVector:
    return make_reduction(ctx, entry, "ReduceSum", pre=_square)


# -----------------------------
# Registration
# -----------------------------

ROUTINES = {
    "ReduceSum": reduce_sum,
    "ReduceMean": reduce_mean,
    "ReduceMax": reduce_max,
    "ReduceMin": reduce_min,
    "ReduceProd": reduce_prod,
    "ReduceL1": reduce_l1,
    "ReduceL2": reduce_l2,
    "ReduceLogSum": reduce_log_sum,
    "ReduceLogSumExp": reduce_log_sum_exp,
    "ReduceSumSquare": reduce_sum_square,
}

# Opset in which each operator started taking axes as an input
AXES_AS_INPUT_SINCE = {name: 18 for name in ROUTINES}
AXES_AS_INPUT_SINCE["ReduceSum"] = 13


def register_reductions(builder: RegistryBuilder) -> RegistryBuilder:
    for op_type, routine in ROUTINES.items():
        builder.register(op_type, 1, routine, BASE_TYPES, AxesPolicy.FROM_ATTRIBUTE)
        builder.register(
            op_type,
            AXES_AS_INPUT_SINCE[op_type],
            routine,
            EXTENDED_TYPES,
            AxesPolicy.FROM_INPUT,
        )
    return builder


__all__ = ["make_reduction", "register_reductions", "ROUTINES", "AXES_AS_INPUT_SINCE"]
