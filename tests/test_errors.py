"""
Tests for the error system.
"""

import json

import pytest

from onnxlower.core.errors import (
    AttributeLookupError,
    ConversionError,
    ErrorCategory,
    ErrorCode,
    ErrorKind,
    ExitCode,
    InternalError,
    ModelLoadError,
    OnnxLowerError,
    compute_fingerprint,
)


class TestFingerprint:
    """Fingerprints depend on structure, never on message text."""

    def test_deterministic(self) -> None:
        a = compute_fingerprint(error_code=ErrorCode.CONVERSION_FAILED, stage="lowering", signature="x")
        b = compute_fingerprint(error_code=ErrorCode.CONVERSION_FAILED, stage="lowering", signature="x")
        assert a == b
        assert len(a) == 16

    def test_message_does_not_change_fingerprint(self) -> None:
        first = ConversionError("one", kind=ErrorKind.AXIS_OUT_OF_RANGE, operator="ReduceSum")
        second = ConversionError("two", kind=ErrorKind.AXIS_OUT_OF_RANGE, operator="ReduceSum")
        assert first.fingerprint == second.fingerprint

    def test_kind_changes_fingerprint(self) -> None:
        first = ConversionError("m", kind=ErrorKind.AXIS_OUT_OF_RANGE, operator="ReduceSum")
        second = ConversionError("m", kind=ErrorKind.TOO_MANY_REDUCTION_AXES, operator="ReduceSum")
        assert first.fingerprint != second.fingerprint


class TestConversionError:
    """Node-level failures."""

    def test_carries_node_context(self) -> None:
        error = ConversionError(
            "bad axes",
            kind=ErrorKind.AXIS_OUT_OF_RANGE,
            operator="ReduceMax",
            location="node 'max'",
        )
        assert error.context == {"operator": "ReduceMax", "location": "node 'max'", "kind": "AxisOutOfRange"}
        assert error.exit_code is ExitCode.CONVERSION_ERROR
        assert error.category is ErrorCategory.MODEL
        assert error.stage == "lowering"

    @pytest.mark.parametrize("kind, code", [
        (ErrorKind.UNSUPPORTED_OPERATOR, ErrorCode.UNSUPPORTED_OPERATOR),
        (ErrorKind.UNSUPPORTED_OPERATOR_VERSION, ErrorCode.UNSUPPORTED_OPERATOR),
        (ErrorKind.UNSUPPORTED_ELEMENT_TYPE, ErrorCode.CONVERSION_FAILED),
        (ErrorKind.MISSING_ATTRIBUTE, ErrorCode.CONVERSION_FAILED),
    ])
    def test_error_code_follows_kind(self, kind: ErrorKind, code: ErrorCode) -> None:
        assert ConversionError("m", kind=kind).error_code is code

    def test_omits_unknown_context(self) -> None:
        error = ConversionError("m", kind=ErrorKind.MISSING_INPUT)
        assert error.context == {"kind": "MissingInput"}

    def test_to_json_is_serializable(self) -> None:
        error = ConversionError("m", kind=ErrorKind.MISSING_INPUT, operator="ReduceSum")
        payload = json.loads(json.dumps(error.to_json()))
        assert payload["code"] == "E3002"
        assert payload["category"] == "model_error"
        assert payload["message"] == "m"

    def test_format_lists_context(self) -> None:
        text = ConversionError("m", kind=ErrorKind.MISSING_INPUT, operator="ReduceSum").format()
        assert text.startswith("ConversionError: m")
        assert "operator: ReduceSum" in text


class TestOtherErrors:
    """Remaining domain errors."""

    def test_attribute_lookup_error(self) -> None:
        error = AttributeLookupError("m", kind=ErrorKind.MISSING_ATTRIBUTE, attribute="axes")
        assert error.error_code is ErrorCode.INVALID_ATTRIBUTE
        assert error.context["attribute"] == "axes"

    def test_model_load_error(self) -> None:
        error = ModelLoadError("m", model_path="/tmp/x.onnx")
        assert error.exit_code is ExitCode.MODEL_LOAD_ERROR
        assert error.context == {"model_path": "/tmp/x.onnx"}

    def test_internal_error(self) -> None:
        error = InternalError("m")
        assert error.category is ErrorCategory.INTERNAL
        assert int(error.exit_code) == 99

    def test_all_are_exceptions(self) -> None:
        with pytest.raises(OnnxLowerError):
            raise InternalError("boom")
