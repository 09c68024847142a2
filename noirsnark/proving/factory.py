"""
Proving backend factory.

Backends are registered by import path and loaded lazily, so selecting the
subprocess backend never imports in-process proving code and vice versa.
"""

from __future__ import annotations

import importlib
from typing import Final

from .config import OrchestratorConfig
from .interfaces import ProverBackend

BACKEND_REGISTRY: Final[dict[str, str]] = {
    "nargo": "noirsnark.proving.prover.NargoProverBackend",
    "inprocess": "noirsnark.proving.prover.InProcessProverBackend",
}
DEFAULT_BACKEND: Final[str] = "nargo"


def _format_valid_options() -> str:
    return ", ".join(sorted(BACKEND_REGISTRY.keys()))


def _normalize_backend_name(value: str | None, *, source: str) -> str | None:
    if value is None or value == "":
        return None

    if not isinstance(value, str) or value not in BACKEND_REGISTRY:
        raise ValueError(
            f"Invalid backend name from {source}: {value!r}. "
            f"Valid options: {_format_valid_options()}"
        )

    return value


def _load_backend_class(backend_name: str) -> type[ProverBackend]:
    import_path = BACKEND_REGISTRY[backend_name]
    module_path, _, class_name = import_path.rpartition(".")
    if not module_path or not class_name:
        raise ValueError(
            f"Invalid backend import path for {backend_name!r}: {import_path!r}"
        )

    try:
        module = importlib.import_module(module_path)
    except ModuleNotFoundError as exc:
        raise ImportError(
            f"Unable to import backend module {module_path!r} for {backend_name!r}"
        ) from exc

    try:
        backend_cls = getattr(module, class_name)
    except AttributeError as exc:
        raise ImportError(
            f"Backend class {class_name!r} not found in module {module_path!r}"
        ) from exc

    if not isinstance(backend_cls, type) or not issubclass(backend_cls, ProverBackend):
        raise TypeError(
            f"Backend reference {import_path!r} does not implement ProverBackend"
        )

    return backend_cls


def _resolve_backend_name(
    config: OrchestratorConfig,
    *,
    prefer: str | None = None,
    override: str | None = None,
) -> str:
    resolved_override = _normalize_backend_name(override, source="override")
    if resolved_override is not None:
        return resolved_override

    resolved_prefer = _normalize_backend_name(prefer, source="prefer")
    if resolved_prefer is not None:
        return resolved_prefer

    resolved_config = _normalize_backend_name(config.prover_backend, source="config")
    if resolved_config is not None:
        return resolved_config

    return DEFAULT_BACKEND


def get_prover_backend(
    config: OrchestratorConfig,
    *,
    prefer: str | None = None,
    override: str | None = None,
) -> ProverBackend:
    """
    Return a proving backend built from ``config``.

    Precedence: ``override``, ``prefer``, ``config.prover_backend`` (which
    ``OrchestratorConfig.from_env`` fills from ``NOIRSNARK_PROVER_BACKEND``),
    then ``DEFAULT_BACKEND``.

    Raises:
        ValueError: If a backend name is invalid.
        ImportError: If the backend class cannot be imported.
        TypeError: If the backend class does not implement ProverBackend.
    """
    backend_name = _resolve_backend_name(config, prefer=prefer, override=override)
    backend_cls = _load_backend_class(backend_name)
    return backend_cls.from_config(config)
