"""
Model loading entrypoint.

Resolves the loader implementation from the file extension and delegates
parsing and lowering to it.

Design principles:
- Extension-based resolution (explicit, not magic-byte detection)
- Registry-driven (no branching sprawl)
- Clear error semantics
"""

from pathlib import Path
from typing import Dict, Optional, Protocol, Type

from ..core.config import ConversionConfig
from ..core.errors import ModelLoadError, OnnxLowerError
from ..core.ir import ModelIR
from .onnx_loader import ONNXLoader


class BaseLoader(Protocol):
    """
    Loader interface contract.

    All loaders must implement:
        load(path: Path, config: ConversionConfig | None) -> ModelIR
    """
    @staticmethod
    def load(path: Path, config: Optional[ConversionConfig] = None) -> ModelIR: ...


# Central loader registry.
# Adding support for new formats requires updating this map only.
_LOADERS: Dict[str, Type[BaseLoader]] = {
    ".onnx": ONNXLoader,
}


def supported_formats() -> tuple[str, ...]:
    """
    Returns a tuple of supported file extensions.
    """
    return tuple(sorted(_LOADERS.keys()))


def load_model(model_path: str | Path, config: Optional[ConversionConfig] = None) -> ModelIR:
    """
    Load a model from disk and lower it to IR.

    Args:
        model_path: Path to model file.
        config: Conversion settings (defaults when omitted).

    Returns:
        ModelIR instance.

    Raises:
        ModelLoadError: missing path, unsupported extension, or an
            unexpected loader failure.
        ModelValidationError: the file is not a valid model.
        ConversionError: a node failed to lower in strict mode.
    """
    path = Path(model_path).expanduser().resolve()

    if not path.exists():
        raise ModelLoadError(f"Model path does not exist: {path}", model_path=str(path))

    suffix = path.suffix.lower()

    loader_cls = _LOADERS.get(suffix)

    if loader_cls is None:
        raise ModelLoadError(
            f"Unsupported model format: '{suffix}'. "
            f"Supported formats: {', '.join(supported_formats())}",
            model_path=str(path),
        )

    try:
        return loader_cls.load(path, config)
    except OnnxLowerError:
        # Preserve domain errors exactly
        raise
    except Exception as exc:
        # Prevent leaking arbitrary backend exceptions upward
        raise ModelLoadError(
            f"Failed to load model '{path}' using "
            f"{loader_cls.__name__}: {exc}",
            model_path=str(path),
        ) from exc
