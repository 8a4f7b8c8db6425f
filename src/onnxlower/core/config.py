"""
Conversion configuration.

Design goals:
- Strong typing
- Strict validation
- Schema versioning
- Clear separation of (de)serialization from the domain model
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

# Lowest opset whose reductions take axes as an input everywhere.
MIN_EXPORT_OPSET = 18


# ================================
# Domain Model
# ================================


@dataclass(frozen=True)
class ConversionConfig:
    """
    Immutable, validated conversion configuration.
    """

    # Abort on the first node that fails to lower
    strict: bool = True

    # Opset used when exporting IR back to ONNX
    export_opset: int = MIN_EXPORT_OPSET

    # Opsets outside this range load with a warning
    min_tested_opset: int = 1
    max_tested_opset: int = 18

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        if not isinstance(self.strict, bool):
            raise ConfigError(f"'strict' must be a boolean, got {self.strict!r}")

        for key in ("export_opset", "min_tested_opset", "max_tested_opset"):
            value = getattr(self, key)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"'{key}' must be an integer, got {value!r}")

        if self.export_opset < MIN_EXPORT_OPSET:
            raise ConfigError(
                f"'export_opset' must be >= {MIN_EXPORT_OPSET}, got {self.export_opset}"
            )

        if self.min_tested_opset > self.max_tested_opset:
            raise ConfigError(
                "'min_tested_opset' cannot exceed 'max_tested_opset' "
                f"({self.min_tested_opset} > {self.max_tested_opset})"
            )


# ================================
# Serialization Layer
# ================================


class ConversionConfigSchema:
    """
    Responsible ONLY for (de)serialization.
    """

    VERSION = 1

    @classmethod
    def load(cls, raw: Optional[Dict[str, Any]]) -> ConversionConfig:
        if not raw:
            return ConversionConfig()

        version = raw.get("version")
        if version != cls.VERSION:
            raise ConfigError(
                f"Unsupported config version: {version}. "
                f"Expected version {cls.VERSION}."
            )

        conversion = raw.get("conversion", {}) or {}
        if not isinstance(conversion, dict):
            raise ConfigError("'conversion' section must be a mapping.")

        known = set(ConversionConfig.__dataclass_fields__)
        unknown = sorted(set(conversion) - known)
        if unknown:
            raise ConfigError(f"Unknown conversion settings: {', '.join(unknown)}")

        return ConversionConfig(**conversion)

    @classmethod
    def dump(cls, config: ConversionConfig) -> Dict[str, Any]:
        return {"version": cls.VERSION, "conversion": asdict(config)}


def load_config(path: Optional[str | Path]) -> ConversionConfig:
    """
    Load configuration from a YAML file.

    ``None`` yields the defaults.
    """
    if path is None:
        return ConversionConfig()

    path = Path(path).expanduser()
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}", config_path=str(path))

    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}", config_path=str(path)) from exc

    if raw is not None and not isinstance(raw, dict):
        raise ConfigError(f"Config root must be a mapping: {path}", config_path=str(path))

    return ConversionConfigSchema.load(raw)


__all__ = ["ConversionConfig", "ConversionConfigSchema", "load_config", "MIN_EXPORT_OPSET"]
