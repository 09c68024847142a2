"""Circuit registry and working-directory resolution."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .constants import (
    MANIFEST,
    PROOF_SUFFIX,
    PROOFS_DIR,
    PROVER_TOML,
    SOURCE_DIR,
    SOURCE_SUFFIX,
    TARGET_DIR,
    CircuitKind,
)
from .errors import ConfigurationError


@dataclass(frozen=True)
class CircuitSpec:
    """
    Everything that varies by circuit kind.

    Attributes:
        kind: Circuit kind.
        directory: Circuit package directory under the circuits root.
        witness_fields: Top-level ``Prover.toml`` parameters, in order.
        public_inputs: Names of the on-chain public inputs, in call order.
        entrypoint: Contract method accepting the call tuple.
    """

    kind: CircuitKind
    directory: str
    witness_fields: tuple[str, ...]
    public_inputs: tuple[str, ...]
    entrypoint: str

    @property
    def arity(self) -> int:
        return len(self.public_inputs)


CIRCUITS: Mapping[CircuitKind, CircuitSpec] = {
    CircuitKind.INIT: CircuitSpec(
        kind=CircuitKind.INIT,
        directory="init",
        witness_fields=(
            "commit",
            "perlin",
            "planethash_key",
            "r",
            "scale",
            "spacetype_key",
            "point",
        ),
        public_inputs=(
            "commitment",
            "perlin",
            "minRadius",
            "planetHashKey",
            "spaceTypeKey",
            "perlinScale",
        ),
        entrypoint="initializePlayer",
    ),
    CircuitKind.REVEAL: CircuitSpec(
        kind=CircuitKind.REVEAL,
        directory="reveal",
        witness_fields=(
            "commit",
            "perlin",
            "planethash_key",
            "scale",
            "spacetype_key",
            "point",
        ),
        public_inputs=(
            "commitment",
            "perlin",
            "x",
            "xPad",
            "y",
            "yPad",
            "planetHashKey",
            "spaceTypeKey",
            "perlinScale",
        ),
        entrypoint="revealLocation",
    ),
    CircuitKind.MOVE: CircuitSpec(
        kind=CircuitKind.MOVE,
        directory="move",
        witness_fields=(
            "from",
            "to",
            "commit1",
            "commit2",
            "newPerlin",
            "r",
            "planethash_key",
            "spacetype_key",
            "scale",
            "max_move",
        ),
        public_inputs=(
            "fromCommitment",
            "toCommitment",
            "newPerlin",
            "radius",
            "maxDistance",
            "planetHashKey",
            "spaceTypeKey",
            "perlinScale",
            "populationMoved",
            "silverMoved",
            "artifactId",
            "abandoning",
        ),
        entrypoint="move",
    ),
    CircuitKind.WHITELIST: CircuitSpec(
        kind=CircuitKind.WHITELIST,
        directory="whitelist",
        witness_fields=("key", "key_hash", "recipient"),
        public_inputs=("keyHash", "recipientAddress"),
        entrypoint="useKey",
    ),
    CircuitKind.BIOMEBASE: CircuitSpec(
        kind=CircuitKind.BIOMEBASE,
        directory="biomebase",
        witness_fields=(
            "commit",
            "biomebase",
            "planethash_key",
            "biomebase_key",
            "scale",
            "point",
        ),
        public_inputs=(
            "commitment",
            "biomebase",
            "planetHashKey",
            "biomebaseKey",
            "perlinScale",
            "mirrorXPad",
            "mirrorYPad",
        ),
        entrypoint="findArtifact",
    ),
}


def _check_registry() -> None:
    missing = [kind.value for kind in CircuitKind if kind not in CIRCUITS]
    if missing:
        raise ConfigurationError(f"circuit registry incomplete: {missing}")
    for kind, spec in CIRCUITS.items():
        if spec.kind is not kind:
            raise ConfigurationError(f"circuit registry mismatch for {kind.value}")


_check_registry()


def circuit_spec(kind: CircuitKind) -> CircuitSpec:
    return CIRCUITS[kind]


@dataclass(frozen=True)
class CircuitPaths:
    kind: CircuitKind
    root: Path

    @property
    def name(self) -> str:
        return CIRCUITS[self.kind].directory

    @property
    def prover_toml(self) -> Path:
        return self.root / PROVER_TOML

    @property
    def proof_path(self) -> Path:
        return self.root / PROOFS_DIR / f"{self.name}{PROOF_SUFFIX}"

    @property
    def artifact_path(self) -> Path:
        return self.root / TARGET_DIR / f"{self.name}.json"

    @property
    def source_dir(self) -> Path:
        return self.root / SOURCE_DIR


class CircuitResolver:
    def __init__(self, base_dir: Path | str = "circuits") -> None:
        self._base_dir = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def resolve(self, kind: CircuitKind) -> CircuitPaths:
        root = self._base_dir / CIRCUITS[kind].directory
        if not root.exists() or not root.is_dir():
            raise ConfigurationError(f"circuit directory missing: {root}")
        return CircuitPaths(kind=kind, root=root)

    def read_source(self, kind: CircuitKind) -> bytes:
        return read_circuit_source(self.resolve(kind))


def read_circuit_source(paths: CircuitPaths) -> bytes:
    """
    Concatenate the circuit manifest and ``src/**/*.nr`` files.

    Files are visited in sorted relative-path order and each is prefixed
    with its path, so renaming or moving a file also changes the result.
    """
    files = []
    manifest = paths.root / MANIFEST
    if manifest.is_file():
        files.append(manifest)
    if paths.source_dir.is_dir():
        files.extend(
            sorted(
                p for p in paths.source_dir.rglob(f"*{SOURCE_SUFFIX}") if p.is_file()
            )
        )
    if not files:
        raise ConfigurationError(f"no circuit sources under {paths.root}")

    chunks = []
    for path in files:
        rel = path.relative_to(paths.root).as_posix()
        chunks.append(rel.encode("utf-8") + b"\0")
        chunks.append(path.read_bytes())
        chunks.append(b"\0")
    return b"".join(chunks)
