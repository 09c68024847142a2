"""Tests for the circuit registry and source resolution."""

from __future__ import annotations

import pytest

from noirsnark.proving.circuits import CIRCUITS, CircuitResolver, circuit_spec
from noirsnark.proving.constants import CircuitKind, parse_circuit_kind
from noirsnark.proving.errors import ConfigurationError


def test_registry_covers_every_kind() -> None:
    assert set(CIRCUITS) == set(CircuitKind)
    assert circuit_spec(CircuitKind.WHITELIST).entrypoint == "useKey"


def test_resolve_paths(circuits_dir) -> None:
    paths = CircuitResolver(circuits_dir).resolve(CircuitKind.REVEAL)

    assert paths.root == circuits_dir / "reveal"
    assert paths.prover_toml == circuits_dir / "reveal" / "Prover.toml"
    assert paths.proof_path == circuits_dir / "reveal" / "proofs" / "reveal.proof"
    assert paths.artifact_path == circuits_dir / "reveal" / "target" / "reveal.json"


def test_resolve_missing_directory(tmp_path) -> None:
    with pytest.raises(ConfigurationError, match="circuit directory missing"):
        CircuitResolver(tmp_path).resolve(CircuitKind.MOVE)


def test_source_is_stable(circuits_dir) -> None:
    resolver = CircuitResolver(circuits_dir)
    assert resolver.read_source(CircuitKind.INIT) == resolver.read_source(CircuitKind.INIT)


def test_source_ignores_build_outputs(circuits_dir) -> None:
    resolver = CircuitResolver(circuits_dir)
    before = resolver.read_source(CircuitKind.INIT)
    root = circuits_dir / "init"
    (root / "Prover.toml").write_text("commit = '0x01'\n", encoding="utf-8")
    (root / "proofs").mkdir()
    (root / "proofs" / "init.proof").write_text("00", encoding="utf-8")

    assert resolver.read_source(CircuitKind.INIT) == before


def test_source_tracks_renames(circuits_dir) -> None:
    resolver = CircuitResolver(circuits_dir)
    src = circuits_dir / "init" / "src"
    (src / "a.nr").write_text("fn a() {}\n", encoding="utf-8")
    before = resolver.read_source(CircuitKind.INIT)
    (src / "a.nr").rename(src / "b.nr")

    assert resolver.read_source(CircuitKind.INIT) != before


def test_empty_circuit_directory(tmp_path) -> None:
    (tmp_path / "init").mkdir()
    with pytest.raises(ConfigurationError, match="no circuit sources"):
        CircuitResolver(tmp_path).read_source(CircuitKind.INIT)


def test_parse_circuit_kind() -> None:
    assert parse_circuit_kind("MOVE") is CircuitKind.MOVE
    assert parse_circuit_kind(CircuitKind.INIT) is CircuitKind.INIT
    with pytest.raises(ValueError, match="Invalid circuit kind"):
        parse_circuit_kind("transfer")
