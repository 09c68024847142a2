"""Abstract proving backend interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .circuits import CircuitPaths
from .config import OrchestratorConfig
from .constants import CircuitKind


class ProverBackend(ABC):
    """
    Produces proof bytes for a serialized witness.

    Implementations may be slow (seconds to minutes) and may write into the
    circuit directory, so callers run at most one proof per directory at a
    time.
    """

    @classmethod
    def from_config(cls, config: OrchestratorConfig) -> "ProverBackend":
        return cls()

    @property
    @abstractmethod
    def backend_name(self) -> str:
        ...

    @abstractmethod
    def prove(
        self, kind: CircuitKind, witness_toml: str, circuit: CircuitPaths
    ) -> bytes:
        """
        Generate a proof.

        Args:
            kind: Circuit being proven.
            witness_toml: ``Prover.toml`` document for the witness.
            circuit: Paths of the circuit package.

        Returns:
            Raw proof bytes.

        Raises:
            ProverError: If no proof could be produced.
        """
