"""
IR -> ONNX export.

Lets lowered IR be checked with ``onnx.checker`` and executed with
ONNX Runtime. IR reductions
treat an empty axes set as "reduce nothing", so every exported Reduce*
carries ``noop_with_empty_axes=1``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import numpy as np
import onnx
from onnx import TensorProto, helper, numpy_helper

from ..core.config import MIN_EXPORT_OPSET
from ..core.errors import InternalError, ModelValidationError
from ..core.ir import DType, ModelIR, Op, Tensor
from ..core.shape_inference import REDUCTION_OPS

logger = logging.getLogger(__name__)

# IR op types that map one-to-one onto ONNX
_DIRECT = {
    "ShapeOf": "Shape",
    "Exp": "Exp",
    "Log": "Log",
    "Multiply": "Mul",
}


def _value_info(tensor: Tensor, allow_unknown_rank: bool) -> onnx.ValueInfoProto:
    shape: Optional[List[Any]] = None
    if tensor.shape.dims is not None:
        shape = [d.value if d.is_static() else d.symbol for d in tensor.shape.dims]
    elif not allow_unknown_rank:
        # onnx.checker requires a shape field on graph inputs and outputs
        raise ModelValidationError(
            f"Graph input/output {tensor.id} has unknown rank and cannot be exported"
        )
    return helper.make_tensor_value_info(tensor.id, tensor.dtype.to_onnx(), shape)


def _lower_op(op: Op) -> List[Any]:
    """
    Lower one IR op to ONNX nodes (and any initializers it needs).

    Returns a list mixing NodeProto and TensorProto.
    """
    if op.op_type in _DIRECT:
        return [helper.make_node(_DIRECT[op.op_type], op.inputs, op.outputs, name=op.id)]

    if op.op_type in REDUCTION_OPS:
        return [helper.make_node(
            op.op_type,
            op.inputs,
            op.outputs,
            name=op.id,
            keepdims=int(op.attributes.get("keep_dims", True)),
            noop_with_empty_axes=1,
        )]

    if op.op_type == "Squeeze":
        axes_name = f"{op.id}_axes"
        axes = numpy_helper.from_array(
            np.asarray(op.attributes.get("axes", ()), dtype=np.int64), name=axes_name
        )
        node = helper.make_node("Squeeze", [op.inputs[0], axes_name], op.outputs, name=op.id)
        return [axes, node]

    if op.op_type == "Range":
        output_type = op.attributes.get("output_type", DType.INT64)
        if output_type is not DType.INT64:
            raise InternalError(f"Range {op.id}: only int64 output is exported")
        return [helper.make_node("Range", op.inputs, op.outputs, name=op.id)]

    raise InternalError(
        f"IR op '{op.op_type}' has no ONNX lowering rule. "
        f"Add explicit lowering in _lower_op()."
    )


def _topological_sort_ops(model_ir: ModelIR) -> List[Op]:
    """Topologically sort operations in the graph"""
    graph = model_ir.graph
    in_degree = {op_id: 0 for op_id in graph.ops}
    adjacency: Dict[str, List[str]] = {op_id: [] for op_id in graph.ops}

    for op_id, op in graph.ops.items():
        for input_id in op.inputs:
            tensor = graph.tensors.get(input_id)
            if tensor is not None and tensor.producer in graph.ops:
                adjacency[tensor.producer].append(op_id)
                in_degree[op_id] += 1

    queue = [op_id for op_id, degree in in_degree.items() if degree == 0]
    sorted_ops = []

    while queue:
        op_id = queue.pop(0)
        sorted_ops.append(graph.ops[op_id])

        for neighbor in adjacency[op_id]:
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                queue.append(neighbor)

    if len(sorted_ops) != len(graph.ops):
        raise InternalError("IR graph has a cycle; cannot export")

    return sorted_ops


def to_onnx_model(
    model_ir: ModelIR,
    opset: int = MIN_EXPORT_OPSET,
    allow_unknown_rank: bool = False,
) -> onnx.ModelProto:
    """
    Convert IR to an ONNX ModelProto.

    Graph inputs and outputs of unknown rank raise ModelValidationError
    unless ``allow_unknown_rank`` is set. Such models still run in ONNX
    Runtime but fail ``onnx.checker``.
    """
    if opset < MIN_EXPORT_OPSET:
        raise ValueError(f"Export needs opset >= {MIN_EXPORT_OPSET}, got {opset}")

    graph = model_ir.graph
    graph.validate()

    inputs = [_value_info(graph.tensors[tid], allow_unknown_rank) for tid in graph.inputs]

    initializers = [
        numpy_helper.from_array(np.asarray(t.data), name=t.id)
        for t in graph.tensors.values()
        if t.is_initializer and t.data is not None and t.id not in graph.inputs
    ]

    for tensor in graph.tensors.values():
        if (
            tensor.producer is None
            and tensor.data is None
            and tensor.id not in graph.inputs
            and tensor.consumers
        ):
            raise ValueError(
                f"Tensor {tensor.id} is consumed but is neither a graph input, "
                f"a constant nor produced by an op"
            )

    nodes = []
    for op in _topological_sort_ops(model_ir):
        for item in _lower_op(op):
            if isinstance(item, TensorProto):
                initializers.append(item)
            else:
                nodes.append(item)
    logger.debug("exported %d IR ops as %d ONNX nodes", len(graph.ops), len(nodes))

    outputs = [_value_info(graph.tensors[tid], allow_unknown_rank) for tid in graph.outputs]

    onnx_graph = helper.make_graph(
        nodes=nodes,
        name=graph.name,
        inputs=inputs,
        outputs=outputs,
        initializer=initializers,
    )
    opset_imports = [helper.make_opsetid("", opset)]
    return helper.make_model(
        onnx_graph,
        producer_name="onnxlower",
        opset_imports=opset_imports,
        ir_version=helper.find_min_ir_version_for(opset_imports),
    )


def run_model(
    model_ir: ModelIR,
    feeds: Mapping[str, Any],
    opset: int = MIN_EXPORT_OPSET,
    execution_provider: str = "CPUExecutionProvider",
) -> Dict[str, np.ndarray]:
    """
    Execute the IR with ONNX Runtime.

    ``feeds`` maps graph input ids to arrays; the result maps graph output
    ids to arrays.
    """
    import onnxruntime as ort

    model = to_onnx_model(model_ir, opset=opset, allow_unknown_rank=True)

    sess_options = ort.SessionOptions()
    sess_options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL

    session = ort.InferenceSession(
        model.SerializeToString(),
        sess_options,
        providers=[execution_provider],
    )
    results = session.run(None, {name: np.asarray(value) for name, value in feeds.items()})
    return dict(zip(model_ir.graph.outputs, results))


__all__ = ["to_onnx_model", "run_model"]
