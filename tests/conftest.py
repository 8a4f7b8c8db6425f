"""
Shared pytest fixtures for onnxlower tests.
"""

from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import numpy as np
import onnx
import pytest
from onnx import TensorProto, helper

from onnxlower.core.ir import DType, Graph, Shape, Tensor

ShapeSpec = Union[Shape, Sequence[Optional[int]], None]


@pytest.fixture
def graph() -> Graph:
    """Empty IR graph a test lowers nodes into."""
    return Graph(name="test")


@pytest.fixture
def make_input(graph: Graph) -> Callable[..., Tensor]:
    """
    Register a graph input.

    ``shape`` may be a Shape, a list of dims (None = dynamic) or None for
    unknown rank.
    """
    def _make(name: str, shape: ShapeSpec, dtype: DType = DType.FLOAT32) -> Tensor:
        if shape is None:
            shape = Shape.unknown_rank()
        elif not isinstance(shape, Shape):
            shape = Shape.of(*shape)
        tensor = Tensor(id=name, name=name, shape=shape, dtype=dtype)
        graph.add_input(tensor)
        return tensor

    return _make


@pytest.fixture
def reduce_model_path(tmp_path: Path) -> Path:
    """
    Save a small opset-13 model to disk:

        X[2,3] -> ReduceSum(axes=[1] as input, keepdims=0) -> S
        X      -> ReduceMean(axes=[0] as attribute)          -> M
    """
    x = helper.make_tensor_value_info("X", TensorProto.FLOAT, [2, 3])
    s = helper.make_tensor_value_info("S", TensorProto.FLOAT, [2])
    m = helper.make_tensor_value_info("M", TensorProto.FLOAT, [1, 3])
    axes = helper.make_tensor("sum_axes", TensorProto.INT64, [1], [1])

    nodes = [
        helper.make_node("ReduceSum", ["X", "sum_axes"], ["S"], name="sum", keepdims=0),
        helper.make_node("ReduceMean", ["X"], ["M"], name="mean", axes=[0]),
    ]
    graph = helper.make_graph(nodes, "reduce_model", [x], [s, m], initializer=[axes])
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])

    path = tmp_path / "reduce.onnx"
    onnx.save(model, str(path))
    return path


@pytest.fixture
def unsupported_model() -> onnx.ModelProto:
    """Relu (not lowered by onnxlower) feeding a ReduceSum."""
    x = helper.make_tensor_value_info("X", TensorProto.FLOAT, [2, 3])
    y = helper.make_tensor_value_info("Y", TensorProto.FLOAT, [1, 1])
    nodes = [
        helper.make_node("Relu", ["X"], ["R"], name="relu"),
        helper.make_node("ReduceSum", ["R"], ["Y"], name="sum"),
    ]
    graph = helper.make_graph(nodes, "unsupported_model", [x], [y])
    return helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])


@pytest.fixture
def sample_input() -> np.ndarray:
    return np.arange(6, dtype=np.float32).reshape(2, 3) + 1.0
