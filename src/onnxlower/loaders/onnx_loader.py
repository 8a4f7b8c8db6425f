"""
ONNX model loader and graph-walking driver.

Loads an .onnx file, validates it, and lowers every node through the
opset registry in graph order. ONNX guarantees nodes are topologically
sorted, so each node's operands are lowered before it is visited.
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Optional
import logging

import onnx
from onnx import shape_inference
from onnx.checker import ValidationError
from onnx.shape_inference import InferenceError

from ..core.config import ConversionConfig
from ..core.errors import ConversionError, ErrorKind, ModelLoadError, ModelValidationError
from ..core.ir import Graph, ModelIR, Tensor
from ..frontend.lowering import DEFAULT_REGISTRY, try_lower_node
from ..frontend.node import SourceNode
from ..frontend.registry import OpsetRegistry

logger = logging.getLogger(__name__)

_DEFAULT_DOMAINS = ("", "ai.onnx")


def default_opset(model: onnx.ModelProto) -> int:
    """Opset of the default ONNX domain declared by ``model``."""
    for opset in model.opset_import:
        if opset.domain in _DEFAULT_DOMAINS:
            return opset.version
    raise ModelValidationError("Model does not import the default ONNX opset")


def convert_model(
    model: onnx.ModelProto,
    config: Optional[ConversionConfig] = None,
    registry: OpsetRegistry = DEFAULT_REGISTRY,
    source_name: str = "model",
) -> ModelIR:
    """
    Lower an in-memory ONNX model to ModelIR.

    With ``config.strict`` the first failing node aborts conversion.
    Otherwise failures are collected in ``metadata["conversion_errors"]``
    and nodes depending on a failed node are skipped.
    """
    config = config or ConversionConfig()
    opset = default_opset(model)
    graph = model.graph
    ir_graph = Graph(name=graph.name or source_name)
    values: Dict[str, Tensor] = {}
    errors: List[ConversionError] = []

    # Parse initializers
    for init in graph.initializer:
        tensor = Tensor.from_onnx_initializer(init)
        values[init.name] = tensor
        ir_graph.add_constant(tensor)

    # Parse inputs (initializers may also be listed as inputs)
    for value in graph.input:
        if value.name in values:
            continue
        tensor = Tensor.from_onnx_value_info(value)
        values[value.name] = tensor
        ir_graph.add_input(tensor)

    # Lower nodes
    for idx, node in enumerate(graph.node):
        source = SourceNode.from_onnx(node, opset, idx)

        missing = [name for name in node.input if name and name not in values]
        if missing:
            error = ConversionError(
                f"Inputs {missing} were not lowered. Node: {source.location}",
                kind=ErrorKind.MISSING_INPUT,
                operator=node.op_type,
                location=source.location,
            )
            if config.strict:
                raise error
            errors.append(error)
            continue

        if node.domain not in _DEFAULT_DOMAINS:
            error = ConversionError(
                f"Operator domain '{node.domain}' is not supported. Node: {source.location}",
                kind=ErrorKind.UNSUPPORTED_OPERATOR,
                operator=node.op_type,
                location=source.location,
            )
            if config.strict:
                raise error
            errors.append(error)
            continue

        operands = [values[name] if name else None for name in node.input]
        result = try_lower_node(source, operands, ir_graph, registry)
        if not result.ok:
            if config.strict:
                raise result.error
            logger.warning("Skipping %s: %s", source.location, result.error.message)
            errors.append(result.error)
            continue

        for name, tensor in zip(node.output, result.outputs):
            if name:
                values[name] = tensor

    # Parse outputs
    for value in graph.output:
        tensor = values.get(value.name)
        if tensor is None:
            logger.warning("Graph output %s was not produced", value.name)
            continue
        ir_graph.add_output(tensor)

    return ModelIR(
        graph=ir_graph,
        framework="onnx",
        original_model=model,
        metadata={
            "framework_version": onnx.__version__,
            "strict_mode": config.strict,
            "source_model": source_name,
            "producer": model.producer_name or "",
            "opsets": {op.domain or "ai.onnx": op.version for op in model.opset_import},
            "value_names": {name: tensor.id for name, tensor in values.items()},
            "conversion_errors": [e.to_json() for e in errors],
        },
    )


class ONNXLoader:
    """ONNX loader with structural validation and shape inference"""

    format_name = "onnx"

    @staticmethod
    def load(path: Path, config: Optional[ConversionConfig] = None) -> ModelIR:
        """Load and lower an ONNX model with full validation"""
        config = config or ConversionConfig()
        path = Path(path).expanduser().resolve()

        if not path.exists():
            raise ModelLoadError(f"Model not found: {path}", model_path=str(path))

        if path.suffix.lower() != ".onnx":
            raise ModelLoadError(f"Invalid file extension: {path.suffix}", model_path=str(path))

        try:
            model = onnx.load(str(path))
        except Exception as e:
            raise ModelLoadError(f"Failed to parse ONNX file: {path}", model_path=str(path)) from e

        # Validate structure
        try:
            onnx.checker.check_model(model)
        except ValidationError as exc:
            raise ModelValidationError(f"ONNX validation failed: {path}", model_path=str(path)) from exc

        ONNXLoader._validate_opsets(model, config)

        # Shape inference doubles as a type-consistency check
        try:
            model = shape_inference.infer_shapes(model)
        except InferenceError as exc:
            if config.strict:
                raise ModelLoadError(f"Shape inference failed: {path}", model_path=str(path)) from exc
            logger.warning("Shape inference failed for %s; continuing without full shapes", path)

        logger.info("Lowering %s (%d nodes)", path.name, len(model.graph.node))
        return convert_model(model, config, source_name=path.name)

    @staticmethod
    def _validate_opsets(model: onnx.ModelProto, config: ConversionConfig):
        """Warn on ONNX opset versions outside the tested range"""
        for opset in model.opset_import:
            if opset.domain not in _DEFAULT_DOMAINS:
                continue
            version = opset.version
            if not (config.min_tested_opset <= version <= config.max_tested_opset):
                logger.warning(
                    "ONNX opset %s outside tested range (%s-%s)",
                    version,
                    config.min_tested_opset,
                    config.max_tested_opset,
                )


__all__ = ["ONNXLoader", "convert_model", "default_opset"]
