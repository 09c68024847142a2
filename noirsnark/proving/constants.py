"""Constants shared by the proof orchestration layer."""

from __future__ import annotations

from enum import Enum


class CircuitKind(Enum):
    """Noir circuits gating game actions. Values name the circuit package."""

    INIT = "init"
    REVEAL = "reveal"
    MOVE = "move"
    WHITELIST = "whitelist"
    BIOMEBASE = "biomebase"


FIELD_BITS = 256
FIELD_HEX_DIGITS = FIELD_BITS // 4

# BN254 scalar field, the native field of the Noir backends in use.
BN254_SCALAR_MODULUS = int(
    "21888242871839275222246405745257275088548364400416034343698204186575808495617"
)

PROVER_TOML = "Prover.toml"
PROOFS_DIR = "proofs"
PROOF_SUFFIX = ".proof"
TARGET_DIR = "target"
SOURCE_DIR = "src"
SOURCE_SUFFIX = ".nr"
MANIFEST = "Nargo.toml"

DEFAULT_PROVER_COMMAND = ("nargo", "prove")
DEFAULT_PROVER_TIMEOUT = 600

CACHE_INDEX_NAME = "index.json"
CACHE_ARTIFACT_SUFFIX = ".cbor"
CACHE_RECORD_V = 1

ENV_CIRCUITS_DIR = "NOIRSNARK_CIRCUITS_DIR"
ENV_CACHE_DIR = "NOIRSNARK_CACHE_DIR"
ENV_PROVER_BACKEND = "NOIRSNARK_PROVER_BACKEND"


def parse_circuit_kind(value: str | CircuitKind) -> CircuitKind:
    if isinstance(value, CircuitKind):
        return value
    try:
        return CircuitKind(str(value).lower())
    except ValueError:
        valid = ", ".join(kind.value for kind in CircuitKind)
        raise ValueError(
            f"Invalid circuit kind: {value!r}. Valid options: {valid}"
        ) from None
