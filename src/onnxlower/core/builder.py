"""
Staged IR construction.

A GraphBuilder collects the ops and tensors created while lowering one
source node and attaches them to the graph only on ``commit()``. A node
that fails half-way therefore leaves the graph exactly as it found it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .ir import Graph, Op, Tensor
from .shape_inference import infer_op

logger = logging.getLogger(__name__)


class GraphBuilder:
    def __init__(self, graph: Graph, source: Optional[str] = None):
        self.graph = graph
        self.source = source
        self._ops: List[Op] = []
        self._tensors: List[Tensor] = []
        self._inputs: Dict[str, Tensor] = {}
        self._committed = False

    @property
    def pending_ops(self) -> List[Op]:
        return list(self._ops)

    def make(self, op_type: str, inputs: Sequence[Tensor], **attributes: Any) -> Tensor:
        """Stage one single-output IR op and return its output tensor."""
        dtype, shape = infer_op(op_type, inputs, attributes)

        op_id = self.graph.fresh_id(op_type)
        out = Tensor(id=f"{op_id}:0", name=f"{op_id}:0", shape=shape, dtype=dtype)
        op = Op(
            id=op_id,
            op_type=op_type,
            inputs=[t.id for t in inputs],
            outputs=[out.id],
            attributes=dict(attributes),
            source=self.source,
        )
        self._ops.append(op)
        self._tensors.append(out)
        for t in inputs:
            self._inputs.setdefault(t.id, t)
        return out

    def constant(self, data, dtype=None, hint: str = "const") -> Tensor:
        """Stage a constant (initializer) tensor."""
        array = np.asarray(data, dtype=dtype)
        tensor = Tensor.constant(self.graph.fresh_id(hint), array)
        self._tensors.append(tensor)
        return tensor

    def commit(self) -> None:
        """Attach every staged tensor and op to the graph."""
        if self._committed:
            return
        # Operands handed in by the caller but not yet known to the graph
        for tensor in self._inputs.values():
            if tensor.id not in self.graph.tensors:
                self.graph.add_tensor(tensor)
        for tensor in self._tensors:
            if tensor.is_initializer:
                self.graph.add_constant(tensor)
            else:
                self.graph.add_tensor(tensor)
        for op in self._ops:
            self.graph.add_node(op)
        self._committed = True
        logger.debug(
            "committed %d ops, %d tensors for %s",
            len(self._ops), len(self._tensors), self.source or "<unknown>",
        )

    def discard(self) -> None:
        self._ops.clear()
        self._tensors.clear()
        self._inputs.clear()


__all__ = ["GraphBuilder"]
