"""Lowering routines, one module per operator family."""

from .identity import identity
from .reduce import register_reductions

__all__ = ["identity", "register_reductions"]
