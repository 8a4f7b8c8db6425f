"""
Reduction axis resolution.

Resolution yields exactly one of four forms:

- StaticAxes       axes known now, as plain integers
- InputAxes        an existing operand carries the axes at run time
- SynthesizedAxes  the engine built a run-time "all axes" expression
- NoAxes           the reduction is a no-op

Older opsets read the ``axes`` attribute (AxesPolicy.FROM_ATTRIBUTE);
newer ones take axes as the second operand (AxesPolicy.FROM_INPUT).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple, Union

import numpy as np

from ..core.builder import GraphBuilder
from ..core.errors import ErrorKind, InternalError
from ..core.ir import DType, Tensor
from .context import NodeContext

logger = logging.getLogger(__name__)


class AxesPolicy(str, Enum):
    FROM_ATTRIBUTE = "attribute"
    FROM_INPUT = "input"


@dataclass(frozen=True)
class StaticAxes:
    values: Tuple[int, ...]


@dataclass(frozen=True, eq=False)
class InputAxes:
    tensor: Tensor


@dataclass(frozen=True, eq=False)
class SynthesizedAxes:
    tensor: Tensor


@dataclass(frozen=True)
class NoAxes:
    pass


ReductionAxes = Union[StaticAxes, InputAxes, SynthesizedAxes, NoAxes]


# -----------------------------
# Run-time "all axes"
# -----------------------------

def all_axes_range(builder: GraphBuilder, data: Tensor) -> Tensor:
    """
    Stage ``range(0, rank(data), 1)`` as int64.

    Depends only on the shape of ``data``, never on its values. A rank-0
    input gives an empty range.
    """
    shape = builder.make("ShapeOf", [data])
    rank = builder.make("ShapeOf", [shape])
    rank_scalar = builder.make("Squeeze", [rank], axes=(0,))
    start = builder.constant(0, dtype=np.int64, hint="range_start")
    step = builder.constant(1, dtype=np.int64, hint="range_step")
    return builder.make("Range", [start, rank_scalar, step], output_type=DType.INT64)


# -----------------------------
# Policies
# -----------------------------

def check_static_axes(ctx: NodeContext, values: Sequence[int], rank: int) -> None:
    """Axes known now must fit a known rank. No clamping."""
    if len(values) > rank:
        ctx.fail(
            ErrorKind.TOO_MANY_REDUCTION_AXES,
            f"Number of reduction axes ({len(values)}) is larger than "
            f"the input tensor's rank ({rank})",
        )
    for axis in values:
        if not -rank <= axis <= rank - 1:
            ctx.fail(
                ErrorKind.AXIS_OUT_OF_RANGE,
                f"Reduction axis {axis} is outside [{-rank}, {rank - 1}]",
            )


def axes_from_attribute(ctx: NodeContext, data: Tensor) -> ReductionAxes:
    values = ctx.attributes.get_ints("axes", ())
    rank = data.rank()

    if not values:
        if rank is None:
            logger.debug("%s: rank unknown, synthesizing all-axes range", ctx.node.location)
            return SynthesizedAxes(all_axes_range(ctx.builder, data))
        return StaticAxes(tuple(range(rank)))

    if rank is not None:
        check_static_axes(ctx, values, rank)
    return StaticAxes(tuple(values))


def axes_from_input(ctx: NodeContext, data: Tensor) -> ReductionAxes:
    noop_with_empty_axes = ctx.attributes.get_int("noop_with_empty_axes", 0)
    axes = ctx.optional_input(1)

    if axes is not None:
        if not axes.shape.is_fully_static():
            ctx.fail(
                ErrorKind.DYNAMIC_AXES_SHAPE_UNSUPPORTED,
                "The axes tensor's shape needs to be known (static)",
            )

        # Only a 1-D operand of length 0 counts as empty; shape [1, 0] does not
        if axes.rank() != 0 and axes.shape.to_list() != [0]:
            rank = data.rank()
            if rank is not None and axes.rank() == 1:
                count = axes.shape.dims[0].value
                if count > rank:
                    ctx.fail(
                        ErrorKind.TOO_MANY_REDUCTION_AXES,
                        f"Number of reduction axes ({count}) is larger than "
                        f"the input tensor's rank ({rank})",
                    )
            if axes.data is not None and rank is not None:
                values = [int(v) for v in np.asarray(axes.data).reshape(-1)]
                check_static_axes(ctx, values, rank)
            return InputAxes(axes)

    if noop_with_empty_axes:
        return NoAxes()
    return SynthesizedAxes(all_axes_range(ctx.builder, data))


def resolve_axes(ctx: NodeContext, data: Tensor, policy: AxesPolicy) -> ReductionAxes:
    if policy is AxesPolicy.FROM_ATTRIBUTE:
        resolved = axes_from_attribute(ctx, data)
    elif policy is AxesPolicy.FROM_INPUT:
        resolved = axes_from_input(ctx, data)
    else:
        raise InternalError(f"Unknown axes policy: {policy!r}")
    logger.debug("%s: axes resolved to %s", ctx.node.location, type(resolved).__name__)
    return resolved


def axes_operand(builder: GraphBuilder, axes: ReductionAxes) -> Tensor:
    """The tensor a reduction op consumes as its axes input."""
    if isinstance(axes, StaticAxes):
        return builder.constant(list(axes.values), dtype=np.int64, hint="axes")
    elif isinstance(axes, (InputAxes, SynthesizedAxes)):
        return axes.tensor
    elif isinstance(axes, NoAxes):
        raise InternalError("A no-op reduction has no axes operand")
    raise InternalError(f"Unknown axes form: {axes!r}")


__all__ = [
    "AxesPolicy",
    "StaticAxes",
    "InputAxes",
    "SynthesizedAxes",
    "NoAxes",
    "ReductionAxes",
    "all_axes_range",
    "check_static_axes",
    "axes_from_attribute",
    "axes_from_input",
    "resolve_axes",
    "axes_operand",
]
