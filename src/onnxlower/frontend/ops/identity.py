"""The pass-through used when a reduction degenerates to a no-op."""

from __future__ import annotations

from ...core.ir import OutputVector, Tensor


def identity(tensor: Tensor) -> OutputVector:
    """Pass ``tensor`` through as the sole output. Creates no IR."""
    return (tensor,)


__all__ = ["identity"]
