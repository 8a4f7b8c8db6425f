"""
onnxlower Error System

Design goals:
- Single canonical error code namespace (E#### format only)
- Explicit category per error (not prefix-derived)
- Machine-distinguishable conversion failure kinds
- Stable exit codes for CLI use
- Deterministic fingerprinting (not message-based)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------
# Exit Codes (Process-Level Contract)
# ---------------------------------------------------------------------

class ExitCode(int, Enum):
    """
    Stable process exit codes.
    These values are part of the public CLI contract.
    """
    OK = 0

    CONFIG_ERROR = 10
    MODEL_LOAD_ERROR = 11
    CONVERSION_ERROR = 12
    VALIDATION_ERROR = 13

    INTERNAL_ERROR = 99


# ---------------------------------------------------------------------
# Error Categories (Explicit, Not Derived)
# ---------------------------------------------------------------------

class ErrorCategory(str, Enum):
    USER = "user_error"
    MODEL = "model_error"
    INTERNAL = "internal_error"


# ---------------------------------------------------------------------
# Canonical Error Codes (Single Namespace)
# ---------------------------------------------------------------------

class ErrorCode(str, Enum):
    # 1xxx – User / Input
    INVALID_MODEL = "E1001"
    INVALID_CONFIG = "E1002"

    # 3xxx – Model / Conversion
    MODEL_LOAD_FAILED = "E3001"
    CONVERSION_FAILED = "E3002"
    UNSUPPORTED_OPERATOR = "E3003"
    INVALID_ATTRIBUTE = "E3004"

    # 9xxx – Internal
    INTERNAL_ERROR = "E9001"


# ---------------------------------------------------------------------
# Conversion Failure Kinds
# ---------------------------------------------------------------------

class ErrorKind(str, Enum):
    """Why a single node failed to lower."""
    MISSING_ATTRIBUTE = "MissingAttribute"
    ATTRIBUTE_TYPE_MISMATCH = "AttributeTypeMismatch"
    DYNAMIC_AXES_SHAPE_UNSUPPORTED = "DynamicAxesShapeUnsupported"
    UNSUPPORTED_ELEMENT_TYPE = "UnsupportedElementType"
    TOO_MANY_REDUCTION_AXES = "TooManyReductionAxes"
    AXIS_OUT_OF_RANGE = "AxisOutOfRange"
    UNSUPPORTED_OPERATOR = "UnsupportedOperator"
    UNSUPPORTED_OPERATOR_VERSION = "UnsupportedOperatorVersion"
    MISSING_INPUT = "MissingInput"


_DISPATCH_KINDS = {ErrorKind.UNSUPPORTED_OPERATOR, ErrorKind.UNSUPPORTED_OPERATOR_VERSION}


# ---------------------------------------------------------------------
# Deterministic Fingerprint
# ---------------------------------------------------------------------

def compute_fingerprint(
    *,
    error_code: ErrorCode,
    stage: Optional[str],
    signature: Optional[str],
) -> str:
    """
    Deterministic fingerprint derived from:
    - error_code
    - stage
    - optional structural signature (e.g., operator name + kind)

    Message text is NOT included.
    """
    import hashlib

    payload = f"{error_code.value}|{stage or ''}|{signature or ''}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


# ---------------------------------------------------------------------
# Base Error
# ---------------------------------------------------------------------

@dataclass
class OnnxLowerError(Exception):
    """
    Base class for all onnxlower domain errors.

    Invariants:
    - error_code is immutable
    - category is explicit
    - exit_code is explicit
    """

    message: str
    error_code: ErrorCode
    category: ErrorCategory
    exit_code: ExitCode
    stage: Optional[str] = None
    context: Optional[Dict[str, Any]] = None
    details: Optional[Dict[str, Any]] = None
    signature: Optional[str] = None  # used for fingerprint stability

    def __post_init__(self):
        if not isinstance(self.error_code, ErrorCode):
            raise TypeError("error_code must be an ErrorCode enum")

        if not isinstance(self.category, ErrorCategory):
            raise TypeError("category must be an ErrorCategory enum")

        if not isinstance(self.exit_code, ExitCode):
            raise TypeError("exit_code must be an ExitCode enum")

        self.context = self.context or {}
        self.details = self.details or {}

        self.fingerprint = compute_fingerprint(
            error_code=self.error_code,
            stage=self.stage,
            signature=self.signature,
        )

        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    # -----------------------------------------------------------------
    # Structured Output
    # -----------------------------------------------------------------

    def to_json(self) -> Dict[str, Any]:
        """
        JSON-safe representation for CLI output.
        """
        return {
            "code": self.error_code.value,
            "category": self.category.value,
            "message": self.message,
            "stage": self.stage,
            "context": self.context,
            "details": self.details,
            "fingerprint": self.fingerprint,
        }

    def format(self) -> str:
        """
        Plain multi-line representation.
        """
        lines = [
            f"{self.__class__.__name__}: {self.message}",
            f"  code: {self.error_code.value}",
            f"  category: {self.category.value}",
            f"  fingerprint: {self.fingerprint}",
        ]

        if self.stage:
            lines.append(f"  stage: {self.stage}")

        if self.context:
            lines.append("  context:")
            for k, v in self.context.items():
                lines.append(f"    {k}: {v}")

        if self.details:
            lines.append("  details:")
            for k, v in self.details.items():
                lines.append(f"    {k}: {v}")

        return "\n".join(lines)


# ---------------------------------------------------------------------
# Domain-Specific Errors
# ---------------------------------------------------------------------

class ConversionError(OnnxLowerError):
    """
    A single source node could not be lowered.

    Carries the operator name, the node's diagnostic location and a
    machine-distinguishable ``kind``.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        operator: Optional[str] = None,
        location: Optional[str] = None,
        **kwargs,
    ):
        self.kind = kind
        self.operator = operator
        self.location = location
        error_code = (
            ErrorCode.UNSUPPORTED_OPERATOR if kind in _DISPATCH_KINDS
            else ErrorCode.CONVERSION_FAILED
        )
        context = {"operator": operator, "location": location, "kind": kind.value}
        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.MODEL,
            exit_code=ExitCode.CONVERSION_ERROR,
            stage="lowering",
            signature=f"{operator or ''}:{kind.value}",
            context={k: v for k, v in context.items() if v is not None},
            **kwargs,
        )


class AttributeLookupError(OnnxLowerError):
    """
    Raised by the attribute store, which does not know which operator it
    belongs to. The lowering entry point re-raises it as ConversionError.
    """

    def __init__(self, message: str, *, kind: ErrorKind, attribute: str, **kwargs):
        self.kind = kind
        self.attribute = attribute
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_ATTRIBUTE,
            category=ErrorCategory.MODEL,
            exit_code=ExitCode.CONVERSION_ERROR,
            stage="attributes",
            signature=f"{attribute}:{kind.value}",
            context={"attribute": attribute, "kind": kind.value},
            **kwargs,
        )


class ModelLoadError(OnnxLowerError):
    def __init__(self, message: str, model_path: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.MODEL_LOAD_FAILED,
            category=ErrorCategory.MODEL,
            exit_code=ExitCode.MODEL_LOAD_ERROR,
            context={"model_path": model_path} if model_path else None,
            **kwargs,
        )


class ModelValidationError(OnnxLowerError):
    def __init__(self, message: str, model_path: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_MODEL,
            category=ErrorCategory.MODEL,
            exit_code=ExitCode.VALIDATION_ERROR,
            context={"model_path": model_path} if model_path else None,
            **kwargs,
        )


class ConfigError(OnnxLowerError):
    def __init__(self, message: str, config_path: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_CONFIG,
            category=ErrorCategory.USER,
            exit_code=ExitCode.CONFIG_ERROR,
            context={"config_path": config_path} if config_path else None,
            **kwargs,
        )


class InternalError(OnnxLowerError):
    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.INTERNAL_ERROR,
            category=ErrorCategory.INTERNAL,
            exit_code=ExitCode.INTERNAL_ERROR,
            **kwargs,
        )


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

__all__ = [
    "ExitCode",
    "ErrorCategory",
    "ErrorCode",
    "ErrorKind",
    "OnnxLowerError",
    "ConversionError",
    "AttributeLookupError",
    "ModelLoadError",
    "ModelValidationError",
    "ConfigError",
    "InternalError",
]
