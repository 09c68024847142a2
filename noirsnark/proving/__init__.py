"""Proof orchestration: witnesses, proof cache, provers and call arguments."""

from .cache import CacheEntry, ProofArtifact, ProofCache, compute_content_hash
from .calldata import CallArgs, CallArgumentAssembler
from .circuits import CIRCUITS, CircuitPaths, CircuitResolver, CircuitSpec
from .config import (
    REVISIONS,
    CircuitRevision,
    GameConfig,
    OrchestratorConfig,
    get_revision,
    load_game_config,
)
from .constants import CircuitKind
from .encoding import Point, SignedField, decode_field, encode_field
from .errors import (
    CacheError,
    CacheReadError,
    CacheWriteError,
    CalldataShapeError,
    ConfigurationError,
    EncodingError,
    NoirSnarkError,
    ProofGenerationError,
    ProverError,
    ProverProcessError,
)
from .factory import BACKEND_REGISTRY, DEFAULT_BACKEND, get_prover_backend
from .interfaces import ProverBackend
from .orchestrator import ChainClient, ProofOrchestrator, submit
from .prover import InProcessProverBackend, NargoProverBackend
from .witness import CircuitInputBuilder, Location, WitnessInput

__all__ = [
    "BACKEND_REGISTRY",
    "CIRCUITS",
    "DEFAULT_BACKEND",
    "REVISIONS",
    "CacheEntry",
    "CacheError",
    "CacheReadError",
    "CacheWriteError",
    "CallArgs",
    "CallArgumentAssembler",
    "CalldataShapeError",
    "ChainClient",
    "CircuitInputBuilder",
    "CircuitKind",
    "CircuitPaths",
    "CircuitResolver",
    "CircuitRevision",
    "CircuitSpec",
    "ConfigurationError",
    "EncodingError",
    "GameConfig",
    "InProcessProverBackend",
    "Location",
    "NargoProverBackend",
    "NoirSnarkError",
    "OrchestratorConfig",
    "Point",
    "ProofArtifact",
    "ProofCache",
    "ProofGenerationError",
    "ProofOrchestrator",
    "ProverBackend",
    "ProverError",
    "ProverProcessError",
    "SignedField",
    "WitnessInput",
    "compute_content_hash",
    "decode_field",
    "encode_field",
    "get_prover_backend",
    "get_revision",
    "load_game_config",
    "submit",
]
