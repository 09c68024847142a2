"""Fixtures for end-to-end harness tests."""

from pathlib import Path

import pytest

from noirsnark.proving.config import REVISIONS, GameConfig, OrchestratorConfig
from noirsnark.proving.constants import CircuitKind
from noirsnark.proving.tests.conftest import RecordingBackend, write_circuit

DARKFOREST_TOML = """\
[initializers]
PLANETHASH_KEY = 7
SPACETYPE_KEY = 5
BIOMEBASE_KEY = 3
PERLIN_LENGTH_SCALE = 4096
WORLD_RADIUS_MIN = 1
"""


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
def game_config_path(tmp_path: Path) -> Path:
    path = tmp_path / "darkforest.toml"
    path.write_text(DARKFOREST_TOML, encoding="utf-8")
    return path


@pytest.fixture
def circuits_dir(tmp_path: Path) -> Path:
    root = tmp_path / "circuits"
    for kind in CircuitKind:
        write_circuit(root, kind)
    return root


@pytest.fixture
def harness_config(tmp_path: Path, circuits_dir: Path) -> OrchestratorConfig:
    return OrchestratorConfig(
        circuits_dir=circuits_dir,
        cache_dir=tmp_path / "cache",
        revision=REVISIONS["v2"],
    )


@pytest.fixture
def recording_backend() -> RecordingBackend:
    return RecordingBackend()
