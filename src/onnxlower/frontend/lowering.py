"""
Single-node lowering entry point.

    outputs = lower_node(node, inputs, graph)

resolves the node's lowering entry for its opset, runs it against a staging
builder and commits the staged IR to ``graph`` only when the routine
succeeds. On failure the graph is left untouched and a ConversionError
naming the operator, location and kind is raised (``lower_node``) or
returned (``try_lower_node``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.builder import GraphBuilder
from ..core.errors import AttributeLookupError, ConversionError, InternalError
from ..core.ir import Graph, OutputVector, Tensor
from .context import NodeContext
from .node import SourceNode
from .ops import register_reductions
from .registry import OpsetRegistry, RegistryBuilder

logger = logging.getLogger(__name__)


def build_default_registry() -> OpsetRegistry:
    builder = RegistryBuilder()
    register_reductions(builder)
    return builder.build()


# Built once at import; read-only afterwards
DEFAULT_REGISTRY: OpsetRegistry = build_default_registry()


@dataclass(frozen=True)
class LoweringResult:
    """Outcome of one node: either outputs or an error, never both."""
    outputs: Optional[OutputVector] = None
    error: Optional[ConversionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def lower_node(
    node: SourceNode,
    inputs: Sequence[Optional[Tensor]],
    graph: Graph,
    registry: OpsetRegistry = DEFAULT_REGISTRY,
) -> OutputVector:
    """
    Lower ``node`` given its already-lowered operands.

    ``inputs`` is ordered like ``node.inputs``; ``None`` marks an omitted
    optional input.
    """
    entry = registry.resolve(node.op_type, node.opset, node.location)
    logger.debug(
        "lowering %s with %s since opset %d",
        node.location, entry.routine.__name__, entry.since_version,
    )

    builder = GraphBuilder(graph, source=node.location)
    ctx = NodeContext(node=node, inputs=tuple(inputs), builder=builder)
    try:
        outputs = entry.lower(ctx)
    except AttributeLookupError as exc:
        builder.discard()
        raise ConversionError(
            f"{exc.message}. Node: {node.location}",
            kind=exc.kind,
            operator=node.op_type,
            location=node.location,
        ) from exc
    except ConversionError:
        builder.discard()
        raise

    if not outputs:
        builder.discard()
        raise InternalError(f"{entry.routine.__name__} produced no outputs for {node.location}")

    builder.commit()
    return tuple(outputs)


def try_lower_node(
    node: SourceNode,
    inputs: Sequence[Optional[Tensor]],
    graph: Graph,
    registry: OpsetRegistry = DEFAULT_REGISTRY,
) -> LoweringResult:
    """Like ``lower_node`` but returns conversion failures as values."""
    try:
        return LoweringResult(outputs=lower_node(node, inputs, graph, registry))
    except ConversionError as exc:
        return LoweringResult(error=exc)


__all__ = [
    "DEFAULT_REGISTRY",
    "LoweringResult",
    "build_default_registry",
    "lower_node",
    "try_lower_node",
]
