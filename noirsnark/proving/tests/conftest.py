"""Shared fixtures for proof orchestration tests."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from noirsnark.proving.circuits import CIRCUITS, CircuitPaths
from noirsnark.proving.config import REVISIONS, GameConfig, OrchestratorConfig
from noirsnark.proving.constants import CircuitKind
from noirsnark.proving.interfaces import ProverBackend
from noirsnark.proving.witness import Location

PLANET_1_COORDS = (876, 949)
PLANET_2_COORDS = (151, 997)
PLANET_1_HEX = "0000802bc4d6d6db6e2c80c476949ab73fdf9a1100d9bed50d4c24ab1e31d003"
PLANET_2_HEX = "0000ca8819a7378077cca9b7c4e2b3d2effebcefe88990a03379db75e0de5780"
RECIPIENT = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


class RecordingBackend(ProverBackend):
    """Deterministic fake prover that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[CircuitKind, str, Path]] = []

    @property
    def backend_name(self) -> str:
        return "recording"

    def prove(
        self, kind: CircuitKind, witness_toml: str, circuit: CircuitPaths
    ) -> bytes:
        self.calls.append((kind, witness_toml, circuit.root))
        seed = f"{kind.value}:{len(self.calls)}:{witness_toml}".encode("utf-8")
        return hashlib.sha256(seed).digest() * 4


@pytest.fixture
def game() -> GameConfig:
    return GameConfig(
        planethash_key=7,
        spacetype_key=5,
        biomebase_key=3,
        perlin_length_scale=4096,
        world_radius_min=1,
    )


@pytest.fixture
def planet_1() -> Location:
    return Location.from_hex(PLANET_1_HEX, perlin=16, dist_from_origin=0)


@pytest.fixture
def planet_2() -> Location:
    return Location.from_hex(PLANET_2_HEX, perlin=16, dist_from_origin=0)


def write_circuit(root: Path, kind: CircuitKind, body: str = "fn main() {}\n") -> Path:
    circuit_dir = root / CIRCUITS[kind].directory
    (circuit_dir / "src").mkdir(parents=True, exist_ok=True)
    (circuit_dir / "Nargo.toml").write_text(
        f'[package]\nname = "{CIRCUITS[kind].directory}"\ntype = "bin"\n',
        encoding="utf-8",
    )
    (circuit_dir / "src" / "main.nr").write_text(body, encoding="utf-8")
    return circuit_dir


@pytest.fixture
def circuits_dir(tmp_path: Path) -> Path:
    root = tmp_path / "circuits"
    for kind in CircuitKind:
        write_circuit(root, kind)
    return root


@pytest.fixture
def orchestrator_config(tmp_path: Path, circuits_dir: Path) -> OrchestratorConfig:
    return OrchestratorConfig(
        circuits_dir=circuits_dir,
        cache_dir=tmp_path / "cache",
        revision=REVISIONS["v2"],
    )


@pytest.fixture
def recording_backend() -> RecordingBackend:
    return RecordingBackend()
