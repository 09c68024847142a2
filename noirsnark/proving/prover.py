"""Proving backends: ``nargo`` subprocess and in-process library."""

from __future__ import annotations

import importlib
import json
import logging
import re
import subprocess
from typing import Any, Callable, Mapping, Optional, Sequence

from .circuits import CircuitPaths
from .config import OrchestratorConfig
from .constants import DEFAULT_PROVER_COMMAND, DEFAULT_PROVER_TIMEOUT, CircuitKind
from .errors import EncodingError, ProofGenerationError, ProverProcessError
from .interfaces import ProverBackend
from .witness import WitnessInput

logger = logging.getLogger(__name__)

ProveFn = Callable[[Any, Mapping[str, Any], Mapping[str, Any]], Any]

_HEX_TEXT_RE = re.compile(rb"^(0x)?([0-9a-fA-F]{2})+$")


def decode_proof_file(raw: bytes) -> bytes:
    """
    Decode a proof file.

    ``nargo`` writes proofs as hex text; anything that is not hex text is
    taken as the raw proof.
    """
    text = raw.strip()
    if _HEX_TEXT_RE.match(text):
        if text.startswith(b"0x"):
            text = text[2:]
        return bytes.fromhex(text.decode("ascii"))
    return raw


class NargoProverBackend(ProverBackend):
    """Run ``nargo prove`` inside the circuit directory."""

    _BACKEND_NAME = "nargo"

    def __init__(
        self,
        command: Sequence[str] = DEFAULT_PROVER_COMMAND,
        timeout: float = DEFAULT_PROVER_TIMEOUT,
    ) -> None:
        self._command = tuple(command)
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: OrchestratorConfig) -> "NargoProverBackend":
        return cls(command=config.prover_command, timeout=config.prover_timeout)

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    def prove(
        self, kind: CircuitKind, witness_toml: str, circuit: CircuitPaths
    ) -> bytes:
        logger.info('Proving "%s"...', circuit.root)
        try:
            circuit.prover_toml.write_text(witness_toml, encoding="utf-8")
            # A proof left by an earlier run must not pass for this one.
            circuit.proof_path.unlink(missing_ok=True)
        except OSError as exc:
            raise ProverProcessError(
                f"cannot prepare circuit directory {circuit.root}: {exc}"
            ) from exc

        _run_prover(self._command, circuit, self._timeout)

        if not circuit.proof_path.is_file():
            raise ProverProcessError(f"prover produced no proof at {circuit.proof_path}")
        try:
            proof = decode_proof_file(circuit.proof_path.read_bytes())
        except OSError as exc:
            raise ProverProcessError(f"cannot read proof {circuit.proof_path}: {exc}") from exc
        if not proof:
            raise ProverProcessError(f"empty proof at {circuit.proof_path}")
        logger.info('New proof for "%s" written', circuit.root)
        return proof


def _run_prover(
    command: Sequence[str], circuit: CircuitPaths, timeout: float
) -> None:
    try:
        result = subprocess.run(
            list(command),
            cwd=circuit.root,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise ProverProcessError(
            f"prover timed out after {timeout}s in {circuit.root}"
        ) from exc
    except OSError as exc:
        raise ProverProcessError(f"cannot start prover {command[0]!r}: {exc}") from exc
    if result.returncode != 0:
        stderr = result.stderr.strip() or "unknown prover error"
        raise ProverProcessError(
            f"prover failed with exit code {result.returncode}: {stderr}"
        )


class InProcessProverBackend(ProverBackend):
    """
    Prove against the compiled circuit artifact without a subprocess.

    The compiled artifact is ``target/<name>.json`` with ``bytecode`` and
    ``abi`` keys. Proving itself is delegated to ``prove_fn(bytecode, abi,
    inputs)``, either passed in directly or imported from a
    ``"module:attribute"`` path.
    """

    _BACKEND_NAME = "inprocess"

    def __init__(
        self,
        prove_fn: Optional[ProveFn] = None,
        prove_fn_path: Optional[str] = None,
    ) -> None:
        self._prove_fn = prove_fn
        self._prove_fn_path = prove_fn_path

    @classmethod
    def from_config(cls, config: OrchestratorConfig) -> "InProcessProverBackend":
        return cls(prove_fn_path=config.inprocess_prove_fn)

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    def prove(
        self, kind: CircuitKind, witness_toml: str, circuit: CircuitPaths
    ) -> bytes:
        artifact = _load_circuit_artifact(circuit)
        try:
            inputs = WitnessInput.from_toml(kind, witness_toml).data
        except EncodingError as exc:
            raise ProofGenerationError(f"malformed witness: {exc}") from exc
        _check_abi_parameters(artifact["abi"], inputs)

        prove_fn = self._resolve_prove_fn()
        logger.info('Proving "%s" in process...', circuit.root)
        try:
            result = prove_fn(artifact["bytecode"], artifact["abi"], inputs)
        except Exception as exc:
            raise ProofGenerationError(
                f"{kind.value} proof generation failed: {exc}"
            ) from exc

        proof = _coerce_proof(result)
        if not proof:
            raise ProofGenerationError(f"{kind.value} backend returned an empty proof")
        logger.info('New proof for "%s" generated', circuit.root)
        return proof

    def _resolve_prove_fn(self) -> ProveFn:
        if self._prove_fn is not None:
            return self._prove_fn
        if not self._prove_fn_path:
            raise ProofGenerationError("no in-process proving function configured")
        module_path, _, attr = self._prove_fn_path.partition(":")
        if not module_path or not attr:
            raise ProofGenerationError(
                f"invalid proving function path {self._prove_fn_path!r}"
            )
        try:
            module = importlib.import_module(module_path)
        except ImportError as exc:
            raise ProofGenerationError(
                f"unable to import proving backend {module_path!r}"
            ) from exc
        prove_fn = getattr(module, attr, None)
        if not callable(prove_fn):
            raise ProofGenerationError(
                f"proving function {attr!r} not found in {module_path!r}"
            )
        self._prove_fn = prove_fn
        return prove_fn


def _load_circuit_artifact(circuit: CircuitPaths) -> dict:
    try:
        artifact = json.loads(circuit.artifact_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ProofGenerationError(
            f"cannot read circuit artifact {circuit.artifact_path}: {exc}"
        ) from exc
    except ValueError as exc:
        raise ProofGenerationError(
            f"malformed circuit artifact {circuit.artifact_path}"
        ) from exc
    if not isinstance(artifact, dict) or "bytecode" not in artifact or "abi" not in artifact:
        raise ProofGenerationError(
            f"circuit artifact {circuit.artifact_path} lacks bytecode or abi"
        )
    return artifact


def _check_abi_parameters(abi: Any, inputs: Mapping[str, Any]) -> None:
    if not isinstance(abi, dict):
        return
    parameters = abi.get("parameters")
    if not isinstance(parameters, list):
        return
    names = [p.get("name") for p in parameters if isinstance(p, dict)]
    missing = [name for name in names if name not in inputs]
    if missing:
        raise ProofGenerationError(f"witness missing circuit parameters: {missing}")


def _coerce_proof(result: Any) -> bytes:
    if isinstance(result, (bytes, bytearray)):
        return bytes(result)
    if isinstance(result, str):
        return decode_proof_file(result.encode("ascii", errors="replace"))
    raise ProofGenerationError(
        f"proving backend returned {type(result).__name__}, expected bytes"
    )
