"""
onnxlower - opset-versioned lowering of ONNX nodes into a hardware-independent IR.
"""

__version__ = "0.1.0"

# Lazy imports - don't load onnx at package import time
def __getattr__(name):
    if name == "load_model":
        from .loaders.loader import load_model
        return load_model
    elif name == "lower_node":
        from .frontend.lowering import lower_node
        return lower_node
    elif name == "ModelIR":
        from .core.ir import ModelIR
        return ModelIR
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = ["__version__"]
