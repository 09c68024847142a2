"""Tests for the per-action proof pipeline."""

from __future__ import annotations

import shutil
from dataclasses import replace

import pytest

from noirsnark.proving.config import REVISIONS
from noirsnark.proving.constants import CircuitKind
from noirsnark.proving.errors import (
    CacheWriteError,
    ConfigurationError,
    EncodingError,
    ProverProcessError,
)
from noirsnark.proving.orchestrator import ProofOrchestrator, submit

from .conftest import (
    PLANET_1_COORDS,
    PLANET_2_COORDS,
    RECIPIENT,
    RecordingBackend,
    write_circuit,
)


class FailingBackend(RecordingBackend):
    def prove(self, kind, witness_toml, circuit):
        super().prove(kind, witness_toml, circuit)
        raise ProverProcessError("prover failed with exit code 1: boom")


class FakeChainClient:
    def __init__(self) -> None:
        self.calls = []

    def _record(self, name, inputs, proof, **overrides):
        self.calls.append((name, inputs, proof, overrides))
        return f"tx-{len(self.calls)}"

    def initializePlayer(self, inputs, proof, **overrides):
        return self._record("initializePlayer", inputs, proof, **overrides)

    def useKey(self, inputs, proof, **overrides):
        return self._record("useKey", inputs, proof, **overrides)


@pytest.fixture
def orchestrator(orchestrator_config, game, recording_backend) -> ProofOrchestrator:
    return ProofOrchestrator(orchestrator_config, game, backend=recording_backend)


def test_first_call_proves_and_second_reuses(
    orchestrator, recording_backend, planet_1
) -> None:
    first = orchestrator.prepare_init("planet-1", *PLANET_1_COORDS, planet_1)
    second = orchestrator.prepare_init("planet-1", *PLANET_1_COORDS, planet_1)

    assert len(recording_backend.calls) == 1
    assert first == second
    assert first.proof != b"\0"


def test_cache_survives_new_orchestrator(
    orchestrator_config, game, recording_backend, planet_1
) -> None:
    ProofOrchestrator(orchestrator_config, game, backend=recording_backend).prepare_init(
        "planet-1", *PLANET_1_COORDS, planet_1
    )
    fresh = RecordingBackend()
    ProofOrchestrator(orchestrator_config, game, backend=fresh).prepare_init(
        "planet-1", *PLANET_1_COORDS, planet_1
    )

    assert fresh.calls == []


def test_changed_witness_forces_new_proof(orchestrator, recording_backend, planet_1) -> None:
    first = orchestrator.prepare_init("planet-1", *PLANET_1_COORDS, planet_1)
    second = orchestrator.prepare_init("planet-1", *PLANET_2_COORDS, planet_1)

    assert len(recording_backend.calls) == 2
    assert first.proof != second.proof


def test_changed_circuit_source_forces_new_proof(
    orchestrator, recording_backend, circuits_dir, planet_1
) -> None:
    orchestrator.prepare_init("planet-1", *PLANET_1_COORDS, planet_1)
    write_circuit(circuits_dir, CircuitKind.INIT, body="fn main(x: Field) {}\n")
    orchestrator.prepare_init("planet-1", *PLANET_1_COORDS, planet_1)

    assert len(recording_backend.calls) == 2


def test_new_source_file_forces_new_proof(
    orchestrator, recording_backend, circuits_dir, planet_1
) -> None:
    orchestrator.prepare_init("planet-1", *PLANET_1_COORDS, planet_1)
    (circuits_dir / "init" / "src" / "perlin.nr").write_text(
        "fn noise() {}\n", encoding="utf-8"
    )
    orchestrator.prepare_init("planet-1", *PLANET_1_COORDS, planet_1)

    assert len(recording_backend.calls) == 2


def test_revision_change_forces_new_proof(
    orchestrator_config, game, recording_backend, planet_1
) -> None:
    ProofOrchestrator(orchestrator_config, game, backend=recording_backend).prepare_init(
        "planet-1", *PLANET_1_COORDS, planet_1
    )
    v1_config = replace(orchestrator_config, revision=REVISIONS["v1"])
    ProofOrchestrator(v1_config, game, backend=recording_backend).prepare_init(
        "planet-1", *PLANET_1_COORDS, planet_1
    )

    assert len(recording_backend.calls) == 2


def test_test_cases_are_cached_separately(orchestrator, recording_backend, planet_1) -> None:
    orchestrator.prepare_reveal("planet-1", *PLANET_1_COORDS, planet_1)
    orchestrator.prepare_reveal("planet-1-again", *PLANET_1_COORDS, planet_1)

    assert len(recording_backend.calls) == 2
    assert set(orchestrator.cache.entries()) == {
        "reveal/planet-1",
        "reveal/planet-1-again",
    }


def test_prover_receives_witness_and_circuit(
    orchestrator, recording_backend, circuits_dir, planet_1, planet_2
) -> None:
    call = orchestrator.prepare_move(
        "move-1", *PLANET_1_COORDS, *PLANET_2_COORDS, planet_1, planet_2, 1000, 50_000, 0
    )

    kind, witness_toml, root = recording_backend.calls[0]
    assert kind is CircuitKind.MOVE
    assert root == circuits_dir / "move"
    assert "commit1" in witness_toml
    assert call.arity == 12


def test_prover_error_propagates_and_caches_nothing(
    orchestrator_config, game, planet_1
) -> None:
    backend = FailingBackend()
    orchestrator = ProofOrchestrator(orchestrator_config, game, backend=backend)

    with pytest.raises(ProverProcessError, match="boom"):
        orchestrator.prepare_init("planet-1", *PLANET_1_COORDS, planet_1)
    with pytest.raises(ProverProcessError):
        orchestrator.prepare_init("planet-1", *PLANET_1_COORDS, planet_1)

    assert len(backend.calls) == 2
    assert orchestrator.cache.lookup(CircuitKind.INIT, "planet-1") is None


def test_cache_write_failure_aborts(
    orchestrator_config, game, recording_backend, tmp_path, planet_1
) -> None:
    blocker = tmp_path / "blocked"
    blocker.write_text("", encoding="utf-8")
    config = replace(orchestrator_config, cache_dir=blocker)
    orchestrator = ProofOrchestrator(config, game, backend=recording_backend)

    with pytest.raises(CacheWriteError):
        orchestrator.prepare_init("planet-1", *PLANET_1_COORDS, planet_1)


def test_invalid_call_fails_before_proving(orchestrator, recording_backend, planet_1) -> None:
    with pytest.raises(EncodingError):
        orchestrator.prepare_reveal("planet-1", -5, 7, planet_1)
    with pytest.raises(EncodingError):
        orchestrator.prepare_whitelist("key-1", 11, 12, "not-an-address")

    assert recording_backend.calls == []


def test_invalid_test_case_fails_before_proving(
    orchestrator, recording_backend, circuits_dir, planet_1
) -> None:
    with pytest.raises(ValueError, match="invalid test case"):
        orchestrator.prepare_init("../escape", *PLANET_1_COORDS, planet_1)

    assert recording_backend.calls == []
    assert not (circuits_dir / "init" / "Prover.toml").exists()


def test_missing_circuit_directory(
    orchestrator, recording_backend, circuits_dir, planet_1
) -> None:
    shutil.rmtree(circuits_dir / "biomebase")

    with pytest.raises(ConfigurationError, match="circuit directory missing"):
        orchestrator.prepare_biomebase("bio-1", *PLANET_1_COORDS, planet_1)
    assert recording_backend.calls == []


def test_submit_dispatches_to_entrypoint(orchestrator, planet_1) -> None:
    client = FakeChainClient()
    call = orchestrator.prepare_init("planet-1", *PLANET_1_COORDS, planet_1)

    assert submit(client, call, gas_limit=1_000_000) == "tx-1"
    name, inputs, proof, overrides = client.calls[0]
    assert name == "initializePlayer"
    assert inputs == list(call.inputs)
    assert proof == call.proof_hex
    assert overrides == {"gas_limit": 1_000_000}


def test_submit_unknown_entrypoint(orchestrator, planet_1) -> None:
    call = orchestrator.prepare_reveal("planet-1", *PLANET_1_COORDS, planet_1)

    with pytest.raises(AttributeError, match="revealLocation"):
        submit(FakeChainClient(), call)


def test_whitelist_flow(orchestrator, recording_backend) -> None:
    call = orchestrator.prepare_whitelist("key-1", 11, "0x0c", RECIPIENT)

    assert call.inputs == (12, RECIPIENT)
    assert recording_backend.calls[0][0] is CircuitKind.WHITELIST
