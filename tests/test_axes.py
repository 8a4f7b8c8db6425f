"""
Tests for reduction axis resolution.
"""

import numpy as np
import pytest

from onnxlower.core.builder import GraphBuilder
from onnxlower.core.errors import ConversionError, ErrorKind, InternalError
from onnxlower.core.ir import DType, Graph, Shape, Tensor
from onnxlower.frontend.axes import (
    AxesPolicy,
    InputAxes,
    NoAxes,
    StaticAxes,
    SynthesizedAxes,
    axes_operand,
    resolve_axes,
)
from onnxlower.frontend.context import NodeContext
from onnxlower.frontend.node import SourceNode


def _context(graph: Graph, inputs, opset: int = 1, **attributes) -> NodeContext:
    node = SourceNode.make("ReduceSum", opset, [t.id if t else "" for t in inputs], attributes)
    return NodeContext(node=node, inputs=tuple(inputs), builder=GraphBuilder(graph, node.location))


class TestAxesFromAttribute:
    """Older opsets read the ``axes`` attribute."""

    @pytest.mark.parametrize("rank", [1, 2, 3, 5])
    def test_missing_axes_default_to_full_range(self, graph, make_input, rank: int) -> None:
        x = make_input("x", [2] * rank)
        axes = resolve_axes(_context(graph, [x]), x, AxesPolicy.FROM_ATTRIBUTE)
        assert axes == StaticAxes(tuple(range(rank)))

    def test_empty_axes_default_to_full_range(self, graph, make_input) -> None:
        x = make_input("x", [2, 3, 4])
        axes = resolve_axes(_context(graph, [x], axes=[]), x, AxesPolicy.FROM_ATTRIBUTE)
        assert axes == StaticAxes((0, 1, 2))

    def test_rank_zero_defaults_to_empty_range(self, graph, make_input) -> None:
        x = make_input("x", [])
        axes = resolve_axes(_context(graph, [x]), x, AxesPolicy.FROM_ATTRIBUTE)
        assert axes == StaticAxes(())

    def test_explicit_axes_kept_as_given(self, graph, make_input) -> None:
        x = make_input("x", [2, 3, 4])
        axes = resolve_axes(_context(graph, [x], axes=[-1, 0]), x, AxesPolicy.FROM_ATTRIBUTE)
        assert axes == StaticAxes((-1, 0))

    @pytest.mark.parametrize("bad_axis", [3, 7, -4])
    def test_axis_out_of_range_rejected(self, graph, make_input, bad_axis: int) -> None:
        x = make_input("x", [2, 3, 4])
        with pytest.raises(ConversionError) as exc_info:
            resolve_axes(_context(graph, [x], axes=[bad_axis]), x, AxesPolicy.FROM_ATTRIBUTE)
        assert exc_info.value.kind is ErrorKind.AXIS_OUT_OF_RANGE

    def test_too_many_axes_rejected(self, graph, make_input) -> None:
        x = make_input("x", [2, 3])
        with pytest.raises(ConversionError) as exc_info:
            resolve_axes(_context(graph, [x], axes=[0, 1, 0]), x, AxesPolicy.FROM_ATTRIBUTE)
        assert exc_info.value.kind is ErrorKind.TOO_MANY_REDUCTION_AXES
        assert "larger than the input tensor's rank (2)" in exc_info.value.message

    def test_unknown_rank_keeps_explicit_axes_unchecked(self, graph, make_input) -> None:
        x = make_input("x", None)
        axes = resolve_axes(_context(graph, [x], axes=[9]), x, AxesPolicy.FROM_ATTRIBUTE)
        assert axes == StaticAxes((9,))

    def test_unknown_rank_synthesizes_all_axes(self, graph, make_input) -> None:
        x = make_input("x", None)
        ctx = _context(graph, [x])
        axes = resolve_axes(ctx, x, AxesPolicy.FROM_ATTRIBUTE)

        assert isinstance(axes, SynthesizedAxes)
        assert [op.op_type for op in ctx.builder.pending_ops] == [
            "ShapeOf", "ShapeOf", "Squeeze", "Range",
        ]
        assert axes.tensor.dtype is DType.INT64
        assert axes.tensor.rank() == 1


class TestAxesFromInput:
    """Newer opsets take axes as the second operand."""

    def test_axes_operand_used_directly(self, graph, make_input) -> None:
        x = make_input("x", [2, 3])
        a = make_input("axes", [1], DType.INT64)
        axes = resolve_axes(_context(graph, [x, a], 13), x, AxesPolicy.FROM_INPUT)
        assert isinstance(axes, InputAxes)
        assert axes.tensor is a

    def test_dynamic_axes_shape_rejected(self, graph, make_input) -> None:
        x = make_input("x", [2, 3])
        a = make_input("axes", [None], DType.INT64)
        with pytest.raises(ConversionError) as exc_info:
            resolve_axes(_context(graph, [x, a], 13), x, AxesPolicy.FROM_INPUT)
        assert exc_info.value.kind is ErrorKind.DYNAMIC_AXES_SHAPE_UNSUPPORTED

    def test_run_time_axes_longer_than_rank_rejected(self, graph, make_input) -> None:
        """Axis count comes from the operand's static shape, not its values."""
        x = make_input("x", [2, 3])
        a = make_input("axes", [3], DType.INT64)
        ctx = _context(graph, [x, a], 13, keepdims=0)
        with pytest.raises(ConversionError) as exc_info:
            resolve_axes(ctx, x, AxesPolicy.FROM_INPUT)
        assert exc_info.value.kind is ErrorKind.TOO_MANY_REDUCTION_AXES
        assert "(3)" in exc_info.value.message
        assert ctx.builder.pending_ops == []

    def test_run_time_axes_on_unknown_rank_accepted(self, graph, make_input) -> None:
        x = make_input("x", None)
        a = make_input("axes", [3], DType.INT64)
        axes = resolve_axes(_context(graph, [x, a], 13), x, AxesPolicy.FROM_INPUT)
        assert isinstance(axes, InputAxes)

    def test_zero_element_matrix_axes_not_empty(self, graph, make_input) -> None:
        """Only a 1-D operand of length 0 means "no axes"."""
        x = make_input("x", [2, 3])
        a = make_input("axes", [1, 0], DType.INT64)
        ctx = _context(graph, [x, a], 13, noop_with_empty_axes=1)
        axes = resolve_axes(ctx, x, AxesPolicy.FROM_INPUT)
        assert isinstance(axes, InputAxes)
        assert axes.tensor is a

    def test_unknown_rank_axes_rejected(self, graph, make_input) -> None:
        x = make_input("x", [2, 3])
        a = make_input("axes", None, DType.INT64)
        with pytest.raises(ConversionError) as exc_info:
            resolve_axes(_context(graph, [x, a], 13), x, AxesPolicy.FROM_INPUT)
        assert exc_info.value.kind is ErrorKind.DYNAMIC_AXES_SHAPE_UNSUPPORTED

    @pytest.mark.parametrize("axes_shape", [[0], []])
    def test_empty_axes_with_noop_flag(self, graph, make_input, axes_shape) -> None:
        x = make_input("x", [2, 3])
        a = make_input("axes", axes_shape, DType.INT64)
        ctx = _context(graph, [x, a], 13, noop_with_empty_axes=1)
        assert resolve_axes(ctx, x, AxesPolicy.FROM_INPUT) == NoAxes()
        assert ctx.builder.pending_ops == []

    def test_absent_axes_with_noop_flag(self, graph, make_input) -> None:
        x = make_input("x", [2, 3])
        ctx = _context(graph, [x], 13, noop_with_empty_axes=1)
        assert resolve_axes(ctx, x, AxesPolicy.FROM_INPUT) == NoAxes()

    def test_omitted_optional_axes_with_noop_flag(self, graph, make_input) -> None:
        """An empty input name is passed as None."""
        x = make_input("x", [2, 3])
        ctx = _context(graph, [x, None], 13, noop_with_empty_axes=1)
        assert resolve_axes(ctx, x, AxesPolicy.FROM_INPUT) == NoAxes()

    def test_empty_axes_without_noop_flag_reduces_everything(self, graph, make_input) -> None:
        """Even with a static rank the fallback is the run-time range."""
        x = make_input("x", [2, 3])
        a = make_input("axes", [0], DType.INT64)
        axes = resolve_axes(_context(graph, [x, a], 13), x, AxesPolicy.FROM_INPUT)
        assert isinstance(axes, SynthesizedAxes)

    def test_constant_axes_are_range_checked(self, graph, make_input) -> None:
        x = make_input("x", [2, 3])
        a = Tensor.constant("axes", np.array([2], dtype=np.int64))
        graph.add_constant(a)
        with pytest.raises(ConversionError) as exc_info:
            resolve_axes(_context(graph, [x, a], 13), x, AxesPolicy.FROM_INPUT)
        assert exc_info.value.kind is ErrorKind.AXIS_OUT_OF_RANGE

    def test_constant_axes_in_range_accepted(self, graph, make_input) -> None:
        x = make_input("x", [2, 3])
        a = Tensor.constant("axes", np.array([-1], dtype=np.int64))
        graph.add_constant(a)
        axes = resolve_axes(_context(graph, [x, a], 13), x, AxesPolicy.FROM_INPUT)
        assert isinstance(axes, InputAxes)


class TestAxesOperand:
    """Turning resolved axes into the reduction's axes input."""

    def test_static_axes_become_int64_constant(self, graph) -> None:
        builder = GraphBuilder(graph)
        tensor = axes_operand(builder, StaticAxes((0, 2)))
        assert tensor.is_constant
        assert tensor.dtype is DType.INT64
        assert tensor.data.tolist() == [0, 2]

    def test_empty_static_axes_become_empty_constant(self, graph) -> None:
        tensor = axes_operand(GraphBuilder(graph), StaticAxes(()))
        assert tensor.shape == Shape.of(0)
        assert tensor.dtype is DType.INT64

    def test_runtime_axes_pass_through(self, graph, make_input) -> None:
        a = make_input("axes", [1], DType.INT64)
        assert axes_operand(GraphBuilder(graph), InputAxes(a)) is a
        assert axes_operand(GraphBuilder(graph), SynthesizedAxes(a)) is a

    def test_no_axes_has_no_operand(self, graph) -> None:
        with pytest.raises(InternalError):
            axes_operand(GraphBuilder(graph), NoAxes())
