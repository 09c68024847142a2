"""
Field element encoding for Noir witnesses.

Circuit inputs are elements of the BN254 scalar field. They are written to
``Prover.toml`` as ``0x``-prefixed big-endian hex strings, left-padded with
zeros to a width fixed by the circuit revision. Geometry needs signed
values, so coordinates use a sign-magnitude pair serialized with the
circuit's own parameter names (``x`` for the magnitude, ``is_neg`` for the
sign).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Union

from .constants import BN254_SCALAR_MODULUS, FIELD_BITS, FIELD_HEX_DIGITS
from .errors import EncodingError

FieldLike = Union[int, str]

_HEX_RE = re.compile(r"^0[xX][0-9a-fA-F]+$")
_DEC_RE = re.compile(r"^[0-9]+$")


def to_int(value: FieldLike) -> int:
    """
    Coerce a domain value to a Python integer.

    Accepts ints, ``0x`` hex strings and decimal strings. Booleans are
    rejected even though they are ints.

    Raises:
        EncodingError: If the value is not an integer or integer string.
    """
    if isinstance(value, bool):
        raise EncodingError(f"boolean is not a field value: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if _HEX_RE.match(text):
            return int(text, 16)
        if _DEC_RE.match(text):
            return int(text, 10)
        raise EncodingError(f"not an integer string: {value!r}")
    raise EncodingError(f"unsupported field value type: {type(value).__name__}")


def check_field(value: int, modulus: int = BN254_SCALAR_MODULUS) -> int:
    if value < 0:
        raise EncodingError(f"field value must be non-negative: {value}")
    if value.bit_length() > FIELD_BITS:
        raise EncodingError(f"field value exceeds {FIELD_BITS} bits")
    if value >= modulus:
        raise EncodingError("field value is not reduced modulo the field prime")
    return value


def encode_field(
    value: FieldLike,
    width: int,
    modulus: int = BN254_SCALAR_MODULUS,
) -> str:
    """
    Encode a value as ``0x`` + zero-padded big-endian hex.

    ``width`` is the minimum number of hex digits. It never truncates, so a
    value wider than ``width`` keeps all of its digits; the hard bound is the
    field itself.

    Raises:
        EncodingError: If the value is negative, not an integer, or does not
            fit in the field.
    """
    if not 1 <= width <= FIELD_HEX_DIGITS:
        raise EncodingError(f"hex width must be in 1..{FIELD_HEX_DIGITS}: {width}")
    number = check_field(to_int(value), modulus)
    return "0x" + format(number, "x").zfill(width)


def decode_field(text: str) -> int:
    """Decode a ``0x`` hex field string back to an integer."""
    if not isinstance(text, str) or not _HEX_RE.match(text):
        raise EncodingError(f"not a hex field string: {text!r}")
    value = int(text, 16)
    if value.bit_length() > FIELD_BITS:
        raise EncodingError(f"field value exceeds {FIELD_BITS} bits")
    return value


@dataclass(frozen=True)
class SignedField:
    """Sign-magnitude integer for coordinates."""

    magnitude: int
    is_negative: bool = False

    @classmethod
    def of(cls, value: FieldLike) -> "SignedField":
        number = to_int(value)
        return cls(magnitude=abs(number), is_negative=number < 0)

    @property
    def value(self) -> int:
        return -self.magnitude if self.is_negative else self.magnitude

    def to_witness(
        self, width: int, modulus: int = BN254_SCALAR_MODULUS
    ) -> dict[str, Any]:
        return {
            "x": encode_field(self.magnitude, width, modulus),
            "is_neg": bool(self.is_negative),
        }

    @classmethod
    def from_witness(cls, data: Mapping[str, Any]) -> "SignedField":
        try:
            magnitude = decode_field(data["x"])
            is_negative = data["is_neg"]
        except (KeyError, TypeError) as exc:
            raise EncodingError(f"malformed signed field: {data!r}") from exc
        if not isinstance(is_negative, bool):
            raise EncodingError("is_neg must be a boolean")
        return cls(magnitude=magnitude, is_negative=is_negative)


@dataclass(frozen=True)
class Point:
    x: SignedField
    y: SignedField

    @classmethod
    def of(cls, x: FieldLike, y: FieldLike) -> "Point":
        return cls(x=SignedField.of(x), y=SignedField.of(y))

    def to_witness(
        self, width: int, modulus: int = BN254_SCALAR_MODULUS
    ) -> dict[str, Any]:
        return {
            "x": self.x.to_witness(width, modulus),
            "y": self.y.to_witness(width, modulus),
        }

    @classmethod
    def from_witness(cls, data: Mapping[str, Any]) -> "Point":
        try:
            return cls(
                x=SignedField.from_witness(data["x"]),
                y=SignedField.from_witness(data["y"]),
            )
        except (KeyError, TypeError) as exc:
            raise EncodingError(f"malformed point: {data!r}") from exc
