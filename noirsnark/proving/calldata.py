"""
Contract call arguments per action.

Each action's verifier reads its public inputs by position, so the tuple
order below is a compatibility fence with the deployed contract. A wrong
order or arity is never caught locally; it only shows up as a revert.
``CallArgumentAssembler`` therefore checks every tuple against the arity
in the circuit registry and raises ``CalldataShapeError`` on disagreement.

The assembler checks shape, not meaning: a corrupted key hash still yields
a correctly shaped whitelist call, and rejecting it is the verifier's job.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from .circuits import circuit_spec
from .config import MOVE_RADIUS_DIST_FROM_ORIGIN, CircuitRevision, GameConfig
from .constants import FIELD_BITS, CircuitKind
from .encoding import FieldLike, SignedField, to_int
from .errors import CalldataShapeError, EncodingError
from .witness import Location

_ADDRESS_RE = re.compile(r"^0[xX][0-9a-fA-F]{40}$")


@dataclass(frozen=True)
class CallArgs:
    """Public inputs in contract order plus trailing proof bytes."""

    kind: CircuitKind
    inputs: tuple
    proof: bytes

    @property
    def arity(self) -> int:
        return len(self.inputs)

    @property
    def entrypoint(self) -> str:
        return circuit_spec(self.kind).entrypoint

    @property
    def proof_hex(self) -> str:
        return "0x" + self.proof.hex()

    def named_inputs(self) -> dict[str, Any]:
        return dict(zip(circuit_spec(self.kind).public_inputs, self.inputs))

    def to_contract_args(self) -> tuple[list, str]:
        """``([public inputs...], "0x" + proof)`` as the contract call takes them."""
        return list(self.inputs), self.proof_hex

    def with_input(self, index: int, value: Any) -> "CallArgs":
        """Copy with one public input replaced. Shape is preserved."""
        if not 0 <= index < self.arity:
            raise CalldataShapeError(
                f"{self.kind.value} input index {index} out of range 0..{self.arity - 1}"
            )
        inputs = list(self.inputs)
        inputs[index] = value
        return CallArgs(kind=self.kind, inputs=tuple(inputs), proof=self.proof)


def _uint(value: FieldLike) -> int:
    number = to_int(value)
    if number < 0:
        raise EncodingError(f"public input must be non-negative: {number}")
    if number.bit_length() > FIELD_BITS:
        raise EncodingError(f"public input exceeds {FIELD_BITS} bits")
    return number


def _coordinate(value: FieldLike) -> int:
    coord = SignedField.of(value)
    if coord.is_negative:
        raise EncodingError(
            f"reveal calldata carries coordinate magnitudes only: {coord.value}"
        )
    return coord.magnitude


def _address(value: str) -> str:
    if not isinstance(value, str) or not _ADDRESS_RE.match(value):
        raise EncodingError(f"invalid recipient address: {value!r}")
    return value


def check_shape(call: CallArgs) -> CallArgs:
    expected = circuit_spec(call.kind).arity
    if call.arity != expected:
        raise CalldataShapeError(
            f"{call.kind.value} call has {call.arity} public inputs, expected {expected}"
        )
    if not isinstance(call.proof, (bytes, bytearray)):
        raise CalldataShapeError(f"{call.kind.value} proof must be bytes")
    return call


class CallArgumentAssembler:
    """Assemble ``CallArgs`` for one game config and circuit revision."""

    def __init__(self, game: GameConfig, revision: CircuitRevision) -> None:
        self._game = game
        self._revision = revision
        self._assemblers: Mapping[CircuitKind, Callable[..., CallArgs]] = {
            CircuitKind.INIT: self.init,
            CircuitKind.REVEAL: self.reveal,
            CircuitKind.MOVE: self.move,
            CircuitKind.WHITELIST: self.whitelist,
            CircuitKind.BIOMEBASE: self.biomebase,
        }

    def assemble(self, kind: CircuitKind, proof: bytes, **values: Any) -> CallArgs:
        return self._assemblers[kind](proof=proof, **values)

    def init(self, location: Location, proof: bytes) -> CallArgs:
        return self._finish(
            CircuitKind.INIT,
            (
                _uint(location.id),
                _uint(location.perlin),
                self._game.world_radius_min,
                self._game.planethash_key,
                self._game.spacetype_key,
                self._game.perlin_length_scale,
            ),
            proof,
        )

    def reveal(
        self, x: FieldLike, y: FieldLike, location: Location, proof: bytes
    ) -> CallArgs:
        return self._finish(
            CircuitKind.REVEAL,
            (
                _uint(location.id),
                _uint(location.perlin),
                _coordinate(x),
                0,
                _coordinate(y),
                0,
                self._game.planethash_key,
                self._game.spacetype_key,
                self._game.perlin_length_scale,
            ),
            proof,
        )

    def move(
        self,
        from_location: Location,
        to_location: Location,
        max_distance: FieldLike,
        population_moved: FieldLike,
        silver_moved: FieldLike,
        proof: bytes,
        artifact_id: FieldLike = 0,
        abandoning: FieldLike = 0,
    ) -> CallArgs:
        return self._finish(
            CircuitKind.MOVE,
            (
                _uint(from_location.id),
                _uint(to_location.id),
                _uint(to_location.perlin),
                self._move_radius(to_location),
                _uint(max_distance),
                self._game.planethash_key,
                self._game.spacetype_key,
                self._game.perlin_length_scale,
                _uint(population_moved),
                _uint(silver_moved),
                _uint(artifact_id),
                _uint(abandoning),
            ),
            proof,
        )

    def whitelist(self, key_hash: FieldLike, recipient: str, proof: bytes) -> CallArgs:
        return self._finish(
            CircuitKind.WHITELIST,
            (_uint(key_hash), _address(recipient)),
            proof,
        )

    def biomebase(self, location: Location, proof: bytes) -> CallArgs:
        return self._finish(
            CircuitKind.BIOMEBASE,
            (
                _uint(location.id),
                _uint(location.biomebase),
                self._game.planethash_key,
                self._game.biomebase_key,
                self._game.perlin_length_scale,
                0,
                0,
            ),
            proof,
        )

    def _move_radius(self, to_location: Location) -> int:
        if self._revision.move_radius_source == MOVE_RADIUS_DIST_FROM_ORIGIN:
            return _uint(to_location.dist_from_origin) + 1
        return self._game.world_radius_min

    @staticmethod
    def _finish(kind: CircuitKind, inputs: tuple, proof: bytes) -> CallArgs:
        if not isinstance(proof, (bytes, bytearray)) or not proof:
            raise CalldataShapeError(f"{kind.value} call requires non-empty proof bytes")
        return check_shape(CallArgs(kind=kind, inputs=inputs, proof=bytes(proof)))
