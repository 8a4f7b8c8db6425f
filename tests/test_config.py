"""
Tests for conversion configuration.
"""

from pathlib import Path

import pytest

from onnxlower.core.config import ConversionConfig, ConversionConfigSchema, load_config
from onnxlower.core.errors import ConfigError, ExitCode


class TestConversionConfig:
    """Domain model validation."""

    def test_defaults(self) -> None:
        config = ConversionConfig()
        assert config.strict is True
        assert config.export_opset == 18
        assert (config.min_tested_opset, config.max_tested_opset) == (1, 18)

    def test_is_immutable(self) -> None:
        with pytest.raises(AttributeError):
            ConversionConfig().strict = False

    def test_export_opset_below_18_rejected(self) -> None:
        with pytest.raises(ConfigError):
            ConversionConfig(export_opset=13)

    def test_inverted_tested_range_rejected(self) -> None:
        with pytest.raises(ConfigError):
            ConversionConfig(min_tested_opset=13, max_tested_opset=1)

    @pytest.mark.parametrize("field, value", [
        ("strict", "yes"),
        ("export_opset", "18"),
        ("max_tested_opset", True),
    ])
    def test_wrong_types_rejected(self, field: str, value) -> None:
        with pytest.raises(ConfigError):
            ConversionConfig(**{field: value})


class TestSchema:
    """Versioned (de)serialization."""

    def test_empty_is_default(self) -> None:
        assert ConversionConfigSchema.load(None) == ConversionConfig()
        assert ConversionConfigSchema.load({}) == ConversionConfig()

    def test_dump_then_load(self) -> None:
        config = ConversionConfig(strict=False, max_tested_opset=21)
        assert ConversionConfigSchema.load(ConversionConfigSchema.dump(config)) == config

    def test_wrong_version_rejected(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            ConversionConfigSchema.load({"version": 2})
        assert "version" in exc_info.value.message

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            ConversionConfigSchema.load({"version": 1, "conversion": {"strictness": True}})
        assert "strictness" in exc_info.value.message


class TestLoadConfig:
    """YAML files on disk."""

    def test_none_is_default(self) -> None:
        assert load_config(None) == ConversionConfig()

    def test_loads_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "onnxlower.yaml"
        path.write_text("version: 1\nconversion:\n  strict: false\n  max_tested_opset: 21\n")

        config = load_config(path)

        assert config.strict is False
        assert config.max_tested_opset == 21

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path / "absent.yaml")
        assert exc_info.value.exit_code is ExitCode.CONFIG_ERROR

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("version: [1\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_non_mapping_root(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigError):
            load_config(path)
