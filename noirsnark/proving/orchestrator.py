"""
Per-action proof pipeline.

build witness -> content hash -> cache check -> prove on miss -> store ->
assemble call arguments. The orchestrator holds no state between actions
other than the durable cache, and it does not retry failed proofs.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional, Protocol

from .cache import ProofArtifact, ProofCache, compute_content_hash, validate_test_case
from .calldata import CallArgs, CallArgumentAssembler
from .circuits import CircuitResolver
from .config import GameConfig, OrchestratorConfig
from .encoding import FieldLike
from .factory import get_prover_backend
from .interfaces import ProverBackend
from .witness import CircuitInputBuilder, Location, WitnessInput

logger = logging.getLogger(__name__)

# Stand-in proof so call arguments are validated before proving starts.
_PENDING_PROOF = b"\0"


class ChainClient(Protocol):
    """Contract methods that accept assembled call arguments."""

    def initializePlayer(self, inputs: list, proof: str, **overrides: Any) -> Any:
        ...

    def revealLocation(self, inputs: list, proof: str, **overrides: Any) -> Any:
        ...

    def move(self, inputs: list, proof: str, **overrides: Any) -> Any:
        ...

    def useKey(self, inputs: list, proof: str, **overrides: Any) -> Any:
        ...

    def findArtifact(self, inputs: list, proof: str, **overrides: Any) -> Any:
        ...


class ProofOrchestrator:
    def __init__(
        self,
        config: OrchestratorConfig,
        game: GameConfig,
        backend: Optional[ProverBackend] = None,
        cache: Optional[ProofCache] = None,
        resolver: Optional[CircuitResolver] = None,
    ) -> None:
        self._config = config
        self._game = game
        self._backend = backend if backend is not None else get_prover_backend(config)
        self._cache = cache if cache is not None else ProofCache(config.cache_dir)
        self._resolver = (
            resolver if resolver is not None else CircuitResolver(config.circuits_dir)
        )
        self._builder = CircuitInputBuilder(game, config.revision, config.field_modulus)
        self._assembler = CallArgumentAssembler(game, config.revision)

    @property
    def builder(self) -> CircuitInputBuilder:
        return self._builder

    @property
    def assembler(self) -> CallArgumentAssembler:
        return self._assembler

    @property
    def cache(self) -> ProofCache:
        return self._cache

    @property
    def backend(self) -> ProverBackend:
        return self._backend

    def content_hash(self, witness: WitnessInput) -> str:
        source = self._resolver.read_source(witness.kind)
        return compute_content_hash(witness.serialize(), source)

    def prove(self, test_case: str, witness: WitnessInput) -> ProofArtifact:
        """
        Return a valid proof for ``witness``, reusing the cached one if possible.

        Raises:
            ValueError: If ``test_case`` is not a usable cache key. Checked
                before anything is proven.
            ProverError: If the backend fails. Never retried here.
            CacheWriteError: If a fresh proof cannot be recorded.
        """
        validate_test_case(test_case)
        kind = witness.kind
        content_hash = self.content_hash(witness)
        cached = self._cache.fetch(kind, test_case, content_hash)
        if cached is not None:
            logger.debug("Reusing cached %s proof for %s", kind.value, test_case)
            return cached

        logger.info(
            "No valid %s proof for %s, proving with %s",
            kind.value,
            test_case,
            self._backend.backend_name,
        )
        circuit = self._resolver.resolve(kind)
        proof = self._backend.prove(kind, witness.to_toml(), circuit)
        return self._cache.store(kind, test_case, content_hash, proof)

    def prepare_init(
        self, test_case: str, x: FieldLike, y: FieldLike, location: Location
    ) -> CallArgs:
        witness = self._builder.init(x, y, location)
        call = self._assembler.init(location, proof=_PENDING_PROOF)
        return self._complete(test_case, witness, call)

    def prepare_reveal(
        self, test_case: str, x: FieldLike, y: FieldLike, location: Location
    ) -> CallArgs:
        witness = self._builder.reveal(x, y, location)
        call = self._assembler.reveal(x, y, location, proof=_PENDING_PROOF)
        return self._complete(test_case, witness, call)

    def prepare_move(
        self,
        test_case: str,
        x1: FieldLike,
        y1: FieldLike,
        x2: FieldLike,
        y2: FieldLike,
        from_location: Location,
        to_location: Location,
        max_distance: FieldLike,
        population_moved: FieldLike,
        silver_moved: FieldLike,
        artifact_id: FieldLike = 0,
        abandoning: FieldLike = 0,
    ) -> CallArgs:
        witness = self._builder.move(
            x1, y1, x2, y2, from_location, to_location, max_distance
        )
        call = self._assembler.move(
            from_location,
            to_location,
            max_distance,
            population_moved,
            silver_moved,
            proof=_PENDING_PROOF,
            artifact_id=artifact_id,
            abandoning=abandoning,
        )
        return self._complete(test_case, witness, call)

    def prepare_whitelist(
        self,
        test_case: str,
        key: FieldLike,
        key_hash: FieldLike,
        recipient: str,
    ) -> CallArgs:
        witness = self._builder.whitelist(key, key_hash, recipient)
        call = self._assembler.whitelist(key_hash, recipient, proof=_PENDING_PROOF)
        return self._complete(test_case, witness, call)

    def prepare_biomebase(
        self, test_case: str, x: FieldLike, y: FieldLike, location: Location
    ) -> CallArgs:
        witness = self._builder.biomebase(x, y, location)
        call = self._assembler.biomebase(location, proof=_PENDING_PROOF)
        return self._complete(test_case, witness, call)

    def _complete(
        self, test_case: str, witness: WitnessInput, call: CallArgs
    ) -> CallArgs:
        artifact = self.prove(test_case, witness)
        return replace(call, proof=artifact.proof)


def submit(client: ChainClient, call: CallArgs, **overrides: Any) -> Any:
    """Hand ``call`` to the contract method for its action."""
    method = getattr(client, call.entrypoint, None)
    if method is None:
        raise AttributeError(
            f"chain client has no {call.entrypoint!r} entrypoint for {call.kind.value}"
        )
    inputs, proof = call.to_contract_args()
    return method(inputs, proof, **overrides)

