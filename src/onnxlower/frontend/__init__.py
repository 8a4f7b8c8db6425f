"""
ONNX frontend: opset-versioned lowering of source nodes into IR.
"""

from .attributes import AttributeKind, AttributeStore, AttributeValue
from .axes import AxesPolicy, InputAxes, NoAxes, StaticAxes, SynthesizedAxes
from .lowering import DEFAULT_REGISTRY, LoweringResult, lower_node, try_lower_node
from .node import SourceNode
from .registry import OpsetRegistry, RegistryBuilder, VersionedLoweringEntry

__all__ = [
    "AttributeKind",
    "AttributeStore",
    "AttributeValue",
    "AxesPolicy",
    "InputAxes",
    "NoAxes",
    "StaticAxes",
    "SynthesizedAxes",
    "DEFAULT_REGISTRY",
    "LoweringResult",
    "lower_node",
    "try_lower_node",
    "SourceNode",
    "OpsetRegistry",
    "RegistryBuilder",
    "VersionedLoweringEntry",
]
