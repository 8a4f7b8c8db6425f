"""
Model loaders for onnxlower.

Supports:
- ONNX models (.onnx)
"""

from .loader import load_model, supported_formats
from .onnx_loader import convert_model

__all__ = ["load_model", "supported_formats", "convert_model"]
