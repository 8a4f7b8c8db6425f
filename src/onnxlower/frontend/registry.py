"""
Opset dispatch registry.

Maps an operator name to the lowering entries registered for it, ordered
by the opset that introduced each behavior. A node authored against opset
N uses the newest entry whose ``since_version`` is <= N, so opsets that did
not change an operator fall back to the last one that did.

Registries are assembled with a RegistryBuilder and frozen by ``build()``.
A built registry is never mutated and can be shared between threads.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from ..core.errors import ConversionError, ErrorKind
from ..core.ir import DType, OutputVector
from .axes import AxesPolicy
from .context import NodeContext

logger = logging.getLogger(__name__)

Routine = Callable[[NodeContext, "VersionedLoweringEntry"], OutputVector]


@dataclass(frozen=True)
class VersionedLoweringEntry:
    op_type: str
    since_version: int
    routine: Routine
    supported_types: FrozenSet[DType]
    axes_policy: Optional[AxesPolicy] = None

    def lower(self, ctx: NodeContext) -> OutputVector:
        return self.routine(ctx, self)


class OpsetRegistry:
    """Immutable (op_type, opset) -> VersionedLoweringEntry lookup."""

    def __init__(self, entries: Mapping[str, Tuple[VersionedLoweringEntry, ...]]):
        self._entries = MappingProxyType(dict(entries))
        self._versions = MappingProxyType({
            op_type: tuple(e.since_version for e in chain)
            for op_type, chain in self._entries.items()
        })

    def resolve(self, op_type: str, opset: int, location: Optional[str] = None) -> VersionedLoweringEntry:
        chain = self._entries.get(op_type)
        if chain is None:
            raise ConversionError(
                f"Operator '{op_type}' is not supported",
                kind=ErrorKind.UNSUPPORTED_OPERATOR,
                operator=op_type,
                location=location,
            )

        index = bisect.bisect_right(self._versions[op_type], opset) - 1
        if index < 0:
            raise ConversionError(
                f"Operator '{op_type}' has no lowering for opset {opset}; "
                f"earliest registered is {chain[0].since_version}",
                kind=ErrorKind.UNSUPPORTED_OPERATOR_VERSION,
                operator=op_type,
                location=location,
            )
        return chain[index]

    def supports(self, op_type: str) -> bool:
        return op_type in self._entries

    def supported_operators(self) -> Tuple[str, ...]:
        return tuple(sorted(self._entries))

    def entries(self, op_type: str) -> Tuple[VersionedLoweringEntry, ...]:
        return self._entries.get(op_type, ())

    def __len__(self) -> int:
        return len(self._entries)


class RegistryBuilder:
    """Collects entries before a registry is frozen."""

    def __init__(self):
        self._entries: Dict[str, List[VersionedLoweringEntry]] = {}

    def register(
        self,
        op_type: str,
        since_version: int,
        routine: Routine,
        supported_types: FrozenSet[DType],
        axes_policy: Optional[AxesPolicy] = None,
    ) -> "RegistryBuilder":
        chain = self._entries.setdefault(op_type, [])
        if any(e.since_version == since_version for e in chain):
            raise ValueError(f"{op_type} is already registered for opset {since_version}")
        chain.append(VersionedLoweringEntry(
            op_type=op_type,
            since_version=since_version,
            routine=routine,
            supported_types=frozenset(supported_types),
            axes_policy=axes_policy,
        ))
        return self

    def build(self) -> OpsetRegistry:
        frozen = {
            op_type: tuple(sorted(chain, key=lambda e: e.since_version))
            for op_type, chain in self._entries.items()
        }
        logger.debug("built opset registry with %d operators", len(frozen))
        return OpsetRegistry(frozen)


__all__ = ["VersionedLoweringEntry", "OpsetRegistry", "RegistryBuilder", "Routine"]
