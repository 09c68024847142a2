"""
Witness construction for the game circuits.

``CircuitInputBuilder`` turns domain values into the exact parameter
structure each Noir circuit reads from ``Prover.toml``. Building is pure and
deterministic: identical inputs give byte-identical serialized witnesses,
which is what makes the content-addressed proof cache work.

Two widths are in play. Commitments, whitelist keys and hashes are full
field elements and always use 64 hex digits. Scalar parameters (perlin,
coordinates, world keys, radius, scale, move distance) use the revision's
``hex_width``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping

import toml

from .circuits import circuit_spec
from .config import CircuitRevision, GameConfig
from .constants import BN254_SCALAR_MODULUS, FIELD_HEX_DIGITS, CircuitKind
from .encoding import FieldLike, Point, encode_field, to_int
from .errors import EncodingError


@dataclass(frozen=True)
class Location:
    """
    A committed planet location.

    Attributes:
        commitment: Location hash (the on-chain location id).
        perlin: Perlin noise sample at the location.
        dist_from_origin: Distance from the world origin.
        biomebase: Biomebase perlin sample.
    """

    commitment: int
    perlin: int
    dist_from_origin: int = 0
    biomebase: int = 0

    @classmethod
    def from_hex(
        cls,
        commitment_hex: str,
        perlin: int,
        dist_from_origin: int = 0,
        biomebase: int = 0,
    ) -> "Location":
        text = commitment_hex
        if not text.startswith(("0x", "0X")):
            text = "0x" + text
        return cls(
            commitment=to_int(text),
            perlin=perlin,
            dist_from_origin=dist_from_origin,
            biomebase=biomebase,
        )

    @property
    def id(self) -> int:
        return self.commitment


@dataclass(frozen=True)
class WitnessInput:
    """Ordered circuit parameters for one proof."""

    kind: CircuitKind
    data: Dict[str, Any] = field(default_factory=dict)

    def to_toml(self) -> str:
        return toml.dumps(self.data)

    def serialize(self) -> bytes:
        return self.to_toml().encode("utf-8")

    @classmethod
    def from_toml(cls, kind: CircuitKind, text: str) -> "WitnessInput":
        try:
            data = toml.loads(text)
        except toml.TomlDecodeError as exc:
            raise EncodingError(f"malformed witness document: {exc}") from exc
        return cls(kind=kind, data=data)


class CircuitInputBuilder:
    """Build ``WitnessInput`` values for a fixed game config and revision."""

    def __init__(
        self,
        game: GameConfig,
        revision: CircuitRevision,
        modulus: int = BN254_SCALAR_MODULUS,
    ) -> None:
        self._game = game
        self._revision = revision
        self._modulus = modulus
        self._builders: Mapping[CircuitKind, Callable[..., WitnessInput]] = {
            CircuitKind.INIT: self.init,
            CircuitKind.REVEAL: self.reveal,
            CircuitKind.MOVE: self.move,
            CircuitKind.WHITELIST: self.whitelist,
            CircuitKind.BIOMEBASE: self.biomebase,
        }

    @property
    def game(self) -> GameConfig:
        return self._game

    @property
    def revision(self) -> CircuitRevision:
        return self._revision

    def build(self, kind: CircuitKind, **values: Any) -> WitnessInput:
        return self._builders[kind](**values)

    def init(self, x: FieldLike, y: FieldLike, location: Location) -> WitnessInput:
        return self._finish(
            CircuitKind.INIT,
            {
                "commit": self._full(location.commitment),
                "perlin": self._scalar(location.perlin),
                "planethash_key": self._scalar(self._game.planethash_key),
                "r": self._scalar(self._game.world_radius_min),
                "scale": self._scalar(self._game.perlin_length_scale),
                "spacetype_key": self._scalar(self._game.spacetype_key),
                "point": self._point(x, y),
            },
        )

    def reveal(self, x: FieldLike, y: FieldLike, location: Location) -> WitnessInput:
        return self._finish(
            CircuitKind.REVEAL,
            {
                "commit": self._full(location.commitment),
                "perlin": self._scalar(location.perlin),
                "planethash_key": self._scalar(self._game.planethash_key),
                "scale": self._scalar(self._game.perlin_length_scale),
                "spacetype_key": self._scalar(self._game.spacetype_key),
                "point": self._point(x, y),
            },
        )

    def move(
        self,
        x1: FieldLike,
        y1: FieldLike,
        x2: FieldLike,
        y2: FieldLike,
        from_location: Location,
        to_location: Location,
        max_distance: FieldLike,
    ) -> WitnessInput:
        return self._finish(
            CircuitKind.MOVE,
            {
                "from": self._point(x1, y1),
                "to": self._point(x2, y2),
                "commit1": self._full(from_location.commitment),
                "commit2": self._full(to_location.commitment),
                "newPerlin": self._scalar(to_location.perlin),
                "r": self._scalar(self._game.world_radius_min),
                "planethash_key": self._scalar(self._game.planethash_key),
                "spacetype_key": self._scalar(self._game.spacetype_key),
                "scale": self._scalar(self._game.perlin_length_scale),
                "max_move": self._scalar(max_distance),
            },
        )

    def whitelist(
        self, key: FieldLike, key_hash: FieldLike, recipient: FieldLike
    ) -> WitnessInput:
        # key_hash comes from the external MiMC hash; it is not recomputed.
        return self._finish(
            CircuitKind.WHITELIST,
            {
                "key": self._full(key),
                "key_hash": self._full(key_hash),
                "recipient": self._full(recipient),
            },
        )

    def biomebase(
        self, x: FieldLike, y: FieldLike, location: Location
    ) -> WitnessInput:
        return self._finish(
            CircuitKind.BIOMEBASE,
            {
                "commit": self._full(location.commitment),
                "biomebase": self._scalar(location.biomebase),
                "planethash_key": self._scalar(self._game.planethash_key),
                "biomebase_key": self._scalar(self._game.biomebase_key),
                "scale": self._scalar(self._game.perlin_length_scale),
                "point": self._point(x, y),
            },
        )

    def _full(self, value: FieldLike) -> str:
        return encode_field(value, FIELD_HEX_DIGITS, self._modulus)

    def _scalar(self, value: FieldLike) -> str:
        return encode_field(value, self._revision.hex_width, self._modulus)

    def _point(self, x: FieldLike, y: FieldLike) -> dict[str, Any]:
        return Point.of(x, y).to_witness(self._revision.hex_width, self._modulus)

    @staticmethod
    def _finish(kind: CircuitKind, data: Dict[str, Any]) -> WitnessInput:
        expected = circuit_spec(kind).witness_fields
        if tuple(data) != expected:
            raise EncodingError(
                f"{kind.value} witness fields {tuple(data)} != {expected}"
            )
        return WitnessInput(kind=kind, data=data)
