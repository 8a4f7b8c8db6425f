"""Core primitives for onnxlower."""

from .ir import ModelIR, Graph, Tensor, Op, Shape, Dim, DType
from .config import ConversionConfig, load_config
from .errors import (
    ErrorKind,
    OnnxLowerError,
    ConversionError,
    ModelLoadError,
    ConfigError,
    InternalError,
)

__all__ = [
    "ModelIR",
    "Graph",
    "Tensor",
    "Op",
    "Shape",
    "Dim",
    "DType",
    "ConversionConfig",
    "load_config",
    "ErrorKind",
    "OnnxLowerError",
    "ConversionError",
    "ModelLoadError",
    "ConfigError",
    "InternalError",
]
