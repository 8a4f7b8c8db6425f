"""IR exporters."""

from .onnx_export import run_model, to_onnx_model

__all__ = ["to_onnx_model", "run_model"]
