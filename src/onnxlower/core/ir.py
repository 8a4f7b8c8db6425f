"""
onnxlower: Canonical Intermediate Representation (IR)

This IR is:
- Format-agnostic (ONNX is just one frontend)
- Explicitly graph-based
- Typed, with partial shapes (static dims, dynamic dims, unknown rank)
- The target of per-node lowering

ONNX is an IMPORTER / EXPORTER, not the IR.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Any, Tuple, TypeAlias
from enum import Enum, auto
import logging

import numpy as np

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Canonical Types (NO STRINGS)
# ---------------------------------------------------------------------

class DType(Enum):
    FLOAT32 = auto()
    FLOAT16 = auto()
    BFLOAT16 = auto()
    FLOAT64 = auto()
    INT8 = auto()
    UINT8 = auto()
    INT16 = auto()
    UINT16 = auto()
    INT32 = auto()
    UINT32 = auto()
    INT64 = auto()
    UINT64 = auto()
    BOOL = auto()
    STRING = auto()
    UNKNOWN = auto()

    # -------------------------
    # ONNX / NumPy mapping
    # -------------------------

    @classmethod
    def from_onnx(cls, elem_type: int) -> "DType":
        """Convert an ONNX TensorProto enum to DType (UNKNOWN if unmapped)."""
        return _FROM_ONNX.get(elem_type, cls.UNKNOWN)

    def to_onnx(self) -> int:
        from onnx import TensorProto

        if self is DType.UNKNOWN:
            return TensorProto.UNDEFINED
        return getattr(TensorProto, _ONNX_NAMES[self])

    @classmethod
    def from_numpy(cls, dtype) -> "DType":
        return _FROM_NUMPY.get(np.dtype(dtype).name, cls.UNKNOWN)

    @property
    def type_name(self) -> str:
        return self.name.lower()


_ONNX_NAMES = {
    DType.FLOAT32: "FLOAT",
    DType.FLOAT16: "FLOAT16",
    DType.BFLOAT16: "BFLOAT16",
    DType.FLOAT64: "DOUBLE",
    DType.INT8: "INT8",
    DType.UINT8: "UINT8",
    DType.INT16: "INT16",
    DType.UINT16: "UINT16",
    DType.INT32: "INT32",
    DType.UINT32: "UINT32",
    DType.INT64: "INT64",
    DType.UINT64: "UINT64",
    DType.BOOL: "BOOL",
    DType.STRING: "STRING",
}


def _build_onnx_map() -> Dict[int, DType]:
    from onnx import TensorProto

    return {getattr(TensorProto, name): dtype for dtype, name in _ONNX_NAMES.items()}


_FROM_ONNX: Dict[int, DType] = _build_onnx_map()

_FROM_NUMPY: Dict[str, DType] = {
    "float32": DType.FLOAT32,
    "float16": DType.FLOAT16,
    "float64": DType.FLOAT64,
    "int8": DType.INT8,
    "uint8": DType.UINT8,
    "int16": DType.INT16,
    "uint16": DType.UINT16,
    "int32": DType.INT32,
    "uint32": DType.UINT32,
    "int64": DType.INT64,
    "uint64": DType.UINT64,
    "bool": DType.BOOL,
}

# ---------------------------------------------------------------------
# Shape System (Preserves Symbolic + Dynamic Info)
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class Dim:
    value: Optional[int] = None      # Static dimension
    symbol: Optional[str] = None     # Symbolic name (e.g. "batch")

    def is_static(self) -> bool:
        return self.value is not None

    def is_dynamic(self) -> bool:
        return self.value is None

    def __repr__(self) -> str:
        if self.value is not None:
            return str(self.value)
        return self.symbol or "?"


@dataclass(frozen=True)
class Shape:
    """
    Partial shape.

    ``dims is None`` means the rank itself is unknown at conversion time.
    """
    dims: Optional[Tuple[Dim, ...]]

    # -------------------------
    # Constructors
    # -------------------------

    @classmethod
    def of(cls, *values: Optional[int]) -> "Shape":
        """Shape.of(2, None, 3) -> (2, ?, 3)"""
        return cls(dims=tuple(Dim(value=v) for v in values))

    @classmethod
    def scalar(cls) -> "Shape":
        return cls(dims=())

    @classmethod
    def unknown_rank(cls) -> "Shape":
        return cls(dims=None)

    @classmethod
    def dynamic(cls, rank: int) -> "Shape":
        return cls(dims=tuple(Dim() for _ in range(rank)))

    # -------------------------
    # Queries
    # -------------------------

    def rank(self) -> Optional[int]:
        if self.dims is None:
            return None
        return len(self.dims)

    def is_rank_static(self) -> bool:
        return self.dims is not None

    def is_fully_static(self) -> bool:
        return self.dims is not None and all(d.is_static() for d in self.dims)

    def to_list(self) -> Optional[List[Optional[int]]]:
        if self.dims is None:
            return None
        return [d.value for d in self.dims]

    def numel(self) -> Optional[int]:
        if not self.is_fully_static():
            return None
        n = 1
        for d in self.dims:
            n *= d.value
        return n

    def __repr__(self) -> str:
        if self.dims is None:
            return "(...)"
        return "(" + ", ".join(map(str, self.dims)) + ")"

# ---------------------------------------------------------------------
# Tensor Representation
# ---------------------------------------------------------------------

@dataclass(eq=False)
class Tensor:
    """
    Canonical tensor (value) in the IR graph.

    Compared by identity: several ops may consume the same tensor.
    """
    id: str
    name: str
    shape: Shape
    dtype: DType

    is_input: bool = False
    is_output: bool = False
    is_initializer: bool = False

    producer: Optional[str] = None
    consumers: Set[str] = field(default_factory=set)

    # Actual tensor data (numpy array for initializers/constants)
    data: Optional[Any] = None

    def rank(self) -> Optional[int]:
        return self.shape.rank()

    @property
    def is_constant(self) -> bool:
        return self.data is not None

    # -------------------------
    # Factory methods
    # -------------------------

    @classmethod
    def from_onnx_value_info(cls, value_info) -> "Tensor":
        """Create Tensor from ONNX ValueInfoProto"""
        name = value_info.name

        dtype = DType.UNKNOWN
        shape = Shape.unknown_rank()
        if value_info.type.HasField("tensor_type"):
            tensor_type = value_info.type.tensor_type
            dtype = DType.from_onnx(tensor_type.elem_type)
            if tensor_type.HasField("shape"):
                dims = []
                for dim in tensor_type.shape.dim:
                    if dim.HasField("dim_value"):
                        dims.append(Dim(value=dim.dim_value))
                    elif dim.HasField("dim_param"):
                        dims.append(Dim(symbol=dim.dim_param))
                    else:
                        dims.append(Dim())  # Dynamic/unknown
                shape = Shape(dims=tuple(dims))

        return cls(id=name, name=name, shape=shape, dtype=dtype)

    @classmethod
    def from_onnx_initializer(cls, initializer) -> "Tensor":
        """Create Tensor from ONNX TensorProto (initializer/constant)"""
        from onnx import numpy_helper

        data = numpy_helper.to_array(initializer)
        return cls.constant(initializer.name, data)

    @classmethod
    def constant(cls, name: str, data) -> "Tensor":
        array = np.asarray(data)
        return cls(
            id=name,
            name=name,
            shape=Shape.of(*array.shape),
            dtype=DType.from_numpy(array.dtype),
            is_initializer=True,
            data=array,
        )

    @classmethod
    def placeholder(cls, name: str) -> "Tensor":
        """Create a placeholder tensor (nothing known about it yet)"""
        return cls(
            id=name,
            name=name,
            shape=Shape.unknown_rank(),
            dtype=DType.UNKNOWN,
        )

    def __repr__(self) -> str:
        return f"Tensor({self.id!r}, {self.dtype.type_name}, {self.shape!r})"

# ---------------------------------------------------------------------
# Operator Representation
# ---------------------------------------------------------------------

@dataclass
class Op:
    """
    Canonical operator node.
    """
    id: str
    op_type: str

    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)

    attributes: Dict[str, Any] = field(default_factory=dict)

    # Diagnostic location of the source node this op was lowered from
    source: Optional[str] = None

# ---------------------------------------------------------------------
# Graph Representation
# ---------------------------------------------------------------------

@dataclass
class Graph:
    """
    Explicit directed acyclic graph.
    """
    name: str

    tensors: Dict[str, Tensor] = field(default_factory=dict)
    ops: Dict[str, Op] = field(default_factory=dict)

    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)

    _next_id: int = field(default=0, repr=False)

    # -------------------------
    # Graph building
    # -------------------------

    def fresh_id(self, prefix: str) -> str:
        """Unique id for a new op or tensor"""
        while True:
            self._next_id += 1
            candidate = f"{prefix}_{self._next_id}"
            if candidate not in self.tensors and candidate not in self.ops:
                return candidate

    def add_input(self, tensor: Tensor):
        """Add input tensor to graph"""
        tensor.is_input = True
        self.tensors[tensor.id] = tensor
        if tensor.id not in self.inputs:
            self.inputs.append(tensor.id)

    def add_output(self, tensor: Tensor):
        """Mark a tensor as graph output"""
        tensor.is_output = True
        self.tensors[tensor.id] = tensor
        if tensor.id not in self.outputs:
            self.outputs.append(tensor.id)

    def add_constant(self, tensor: Tensor):
        """Add constant/initializer tensor to graph"""
        tensor.is_initializer = True
        self.tensors[tensor.id] = tensor

    def add_tensor(self, tensor: Tensor):
        self.tensors[tensor.id] = tensor

    def add_node(self, node: Op):
        """Add operator node to graph"""
        self.ops[node.id] = node

        # Update tensor producer/consumer relationships
        for output_id in node.outputs:
            if output_id in self.tensors:
                self.tensors[output_id].producer = node.id

        for input_id in node.inputs:
            if input_id in self.tensors:
                self.tensors[input_id].consumers.add(node.id)

    def producer_of(self, tensor: Tensor) -> Optional[Op]:
        if tensor.producer is None:
            return None
        return self.ops.get(tensor.producer)

    # -------------------------
    # Validation
    # -------------------------

    def validate(self) -> None:
        # Every op input/output must reference a tensor
        for op in self.ops.values():
            for tid in op.inputs + op.outputs:
                if tid not in self.tensors:
                    raise ValueError(f"Op {op.id} references missing tensor {tid}")

        # Tensor producer/consumer consistency
        for tid, tensor in self.tensors.items():
            if tensor.producer and tensor.producer not in self.ops:
                raise ValueError(f"Tensor {tid} has invalid producer {tensor.producer}")
            for c in tensor.consumers:
                if c not in self.ops:
                    raise ValueError(f"Tensor {tid} has invalid consumer {c}")

    # -------------------------
    # Analysis helpers
    # -------------------------

    def operator_histogram(self) -> Dict[str, int]:
        hist: Dict[str, int] = {}
        for op in self.ops.values():
            hist[op.op_type] = hist.get(op.op_type, 0) + 1
        return hist

# ---------------------------------------------------------------------
# Model IR (Top-Level Object)
# ---------------------------------------------------------------------

@dataclass
class ModelIR:
    """
    Canonical, backend-agnostic model representation.
    """
    graph: Graph
    framework: str = "onnx"
    original_model: Any = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        self.graph.validate()

    # -------------------------
    # Introspection
    # -------------------------

    @property
    def num_nodes(self) -> int:
        return len(self.graph.ops)

    @property
    def num_tensors(self) -> int:
        return len(self.graph.tensors)

    @property
    def input_tensors(self) -> List[Tensor]:
        """Get list of input tensors"""
        return [self.graph.tensors[tid] for tid in self.graph.inputs]

    @property
    def output_tensors(self) -> List[Tensor]:
        """Get list of output tensors"""
        return [self.graph.tensors[tid] for tid in self.graph.outputs]

    def get_operators(self) -> Dict[str, int]:
        """Get operator histogram {op_type: count}"""
        return self.graph.operator_histogram()

    def __repr__(self) -> str:
        return (
            f"ModelIR("
            f"nodes={self.num_nodes}, "
            f"tensors={self.num_tensors}"
            f")"
        )

# ---------------------------------------------------------------------
# Type Aliases
# ---------------------------------------------------------------------

IRGraph: TypeAlias = Graph
IRNode: TypeAlias = Op
OperandHandle: TypeAlias = Tensor
OutputVector: TypeAlias = Tuple[Tensor, ...]

# Export all
__all__ = [
    'ModelIR', 'Graph', 'Tensor', 'Op', 'Shape', 'Dim', 'DType',
    'IRGraph', 'IRNode', 'OperandHandle', 'OutputVector',
]
