"""
Configuration values for witness building and proving.

Game parameters come from the ``[initializers]`` table of the deployment's
``darkforest.toml``. They are loaded once into an immutable ``GameConfig``
and passed explicitly to every builder and assembler; nothing here is a
module-level mutable global.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import toml

from .constants import (
    BN254_SCALAR_MODULUS,
    DEFAULT_PROVER_COMMAND,
    DEFAULT_PROVER_TIMEOUT,
    ENV_CACHE_DIR,
    ENV_CIRCUITS_DIR,
    ENV_PROVER_BACKEND,
    FIELD_HEX_DIGITS,
)
from .errors import ConfigurationError

INITIALIZERS_TABLE = "initializers"

_GAME_KEYS = {
    "planethash_key": "PLANETHASH_KEY",
    "spacetype_key": "SPACETYPE_KEY",
    "biomebase_key": "BIOMEBASE_KEY",
    "perlin_length_scale": "PERLIN_LENGTH_SCALE",
    "world_radius_min": "WORLD_RADIUS_MIN",
}


@dataclass(frozen=True)
class GameConfig:
    """World parameters shared by every circuit."""

    planethash_key: int
    spacetype_key: int
    biomebase_key: int
    perlin_length_scale: int
    world_radius_min: int

    @classmethod
    def from_initializers(cls, initializers: Mapping[str, Any]) -> "GameConfig":
        values = {}
        for attr, key in _GAME_KEYS.items():
            if key not in initializers:
                raise ConfigurationError(f"missing initializer {key}")
            value = initializers[key]
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"initializer {key} must be an integer")
            if value < 0:
                raise ConfigurationError(f"initializer {key} must be non-negative")
            values[attr] = value
        return cls(**values)


def load_game_config(path: str | Path) -> GameConfig:
    """
    Load ``GameConfig`` from a ``darkforest.toml`` file.

    Raises:
        ConfigurationError: If the file is missing, is not valid TOML, or
            lacks one of the required initializers.
    """
    config_path = Path(path)
    try:
        document = toml.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"game config not found: {config_path}") from exc
    except toml.TomlDecodeError as exc:
        raise ConfigurationError(f"invalid game config {config_path}: {exc}") from exc

    initializers = document.get(INITIALIZERS_TABLE)
    if not isinstance(initializers, dict):
        raise ConfigurationError(
            f"game config {config_path} has no [{INITIALIZERS_TABLE}] table"
        )
    return GameConfig.from_initializers(initializers)


MOVE_RADIUS_WORLD_MIN = "world_radius_min"
MOVE_RADIUS_DIST_FROM_ORIGIN = "dist_from_origin"
_MOVE_RADIUS_SOURCES = (MOVE_RADIUS_WORLD_MIN, MOVE_RADIUS_DIST_FROM_ORIGIN)


@dataclass(frozen=True)
class CircuitRevision:
    """
    Encoding and calldata choices pinned to one revision of the circuits.

    Attributes:
        name: Revision label.
        hex_width: Minimum hex digits for every witness field.
        move_radius_source: What fills the radius slot of the move call,
            either the world minimum radius or the destination's distance
            from origin plus one.
    """

    name: str
    hex_width: int
    move_radius_source: str

    def __post_init__(self) -> None:
        if not 1 <= self.hex_width <= FIELD_HEX_DIGITS:
            raise ConfigurationError(
                f"hex_width must be in 1..{FIELD_HEX_DIGITS}: {self.hex_width}"
            )
        if self.move_radius_source not in _MOVE_RADIUS_SOURCES:
            raise ConfigurationError(
                f"invalid move_radius_source: {self.move_radius_source!r}"
            )


REVISIONS: Mapping[str, CircuitRevision] = {
    "v1": CircuitRevision(
        name="v1",
        hex_width=2,
        move_radius_source=MOVE_RADIUS_DIST_FROM_ORIGIN,
    ),
    "v2": CircuitRevision(
        name="v2",
        hex_width=FIELD_HEX_DIGITS,
        move_radius_source=MOVE_RADIUS_WORLD_MIN,
    ),
}
DEFAULT_REVISION = "v2"


def get_revision(name: str) -> CircuitRevision:
    try:
        return REVISIONS[name]
    except KeyError:
        valid = ", ".join(sorted(REVISIONS))
        raise ConfigurationError(
            f"Unknown circuit revision {name!r}. Valid options: {valid}"
        ) from None


@dataclass(frozen=True)
class OrchestratorConfig:
    circuits_dir: Path
    cache_dir: Path
    revision: CircuitRevision = field(
        default_factory=lambda: REVISIONS[DEFAULT_REVISION]
    )
    prover_backend: Optional[str] = None
    prover_command: tuple[str, ...] = DEFAULT_PROVER_COMMAND
    prover_timeout: float = DEFAULT_PROVER_TIMEOUT
    field_modulus: int = BN254_SCALAR_MODULUS
    # "module:attribute" of the in-process proving function.
    inprocess_prove_fn: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "circuits_dir", Path(self.circuits_dir))
        object.__setattr__(self, "cache_dir", Path(self.cache_dir))
        object.__setattr__(self, "prover_command", tuple(self.prover_command))
        if not self.prover_command:
            raise ConfigurationError("prover_command must not be empty")
        if self.prover_timeout <= 0:
            raise ConfigurationError("prover_timeout must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> "OrchestratorConfig":
        values: dict[str, Any] = {
            "circuits_dir": Path(os.getenv(ENV_CIRCUITS_DIR, "circuits")),
            "cache_dir": Path(os.getenv(ENV_CACHE_DIR, ".proof-cache")),
            "prover_backend": os.getenv(ENV_PROVER_BACKEND) or None,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
