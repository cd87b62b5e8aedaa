"""
Key material value types and their canonical string encodings.

  PrivateKey   APrivateKey1<base58check(seed)>
  ViewKey      AViewKey1<base58check(scalar)>
  Address      aleo1<bech32(compressed point)>
  Signature    sign1<base58check(challenge|response|pk_sig|pr_sig)>
  Ciphertext   ciphertext1<base58check(nonce|tag|body)>

These are plain values; all derivations live in the crypto provider.
"""

from __future__ import annotations

from dataclasses import dataclass

from aleo_agent.crypto_utils import (
    FIELD_BYTES,
    Field,
    b58check_decode,
    b58check_encode,
    bech32_decode_bytes,
    bech32_encode_bytes,
    point_from_bytes,
    point_x,
)
from aleo_agent.errors import ParseError

POINT_BYTES = 33


@dataclass(frozen=True)
class PrivateKey:
    seed: Field

    PREFIX = "APrivateKey1"

    def __post_init__(self):
        if self.seed.is_zero():
            raise ParseError("Private key seed must be non-zero")

    @classmethod
    def from_string(cls, text: str) -> PrivateKey:
        payload = b58check_decode(cls.PREFIX, text, FIELD_BYTES)
        return cls(Field.from_bytes(payload))

    def __str__(self) -> str:
        return b58check_encode(self.PREFIX, self.seed.to_bytes())

    def __repr__(self) -> str:
        return "PrivateKey(<redacted>)"


@dataclass(frozen=True)
class ViewKey:
    scalar: Field

    PREFIX = "AViewKey1"

    def __post_init__(self):
        if self.scalar.is_zero():
            raise ParseError("View key must be non-zero")

    @classmethod
    def from_string(cls, text: str) -> ViewKey:
        payload = b58check_decode(cls.PREFIX, text, FIELD_BYTES)
        return cls(Field.from_bytes(payload))

    def __str__(self) -> str:
        return b58check_encode(self.PREFIX, self.scalar.to_bytes())

    def __repr__(self) -> str:
        return "ViewKey(<redacted>)"


@dataclass(frozen=True)
class Address:
    """An account address: the compressed encoding of ``view_key * G``."""
    raw: bytes

    HRP = "aleo"

    def __post_init__(self):
        if len(self.raw) != POINT_BYTES:
            raise ParseError(f"Address must encode a {POINT_BYTES}-byte point")
        point_from_bytes(self.raw)

    @classmethod
    def from_string(cls, text: str) -> Address:
        return cls(bech32_decode_bytes(cls.HRP, text))

    def to_point(self):
        return point_from_bytes(self.raw)

    @property
    def x_coordinate(self) -> Field:
        return point_x(self.to_point())

    def __str__(self) -> str:
        return bech32_encode_bytes(self.HRP, self.raw)

    def __repr__(self) -> str:
        return f"Address({self})"


@dataclass(frozen=True)
class Signature:
    """Schnorr signature plus the signer's compute key (pk_sig, pr_sig)."""
    challenge: Field
    response: Field
    pk_sig: bytes
    pr_sig: bytes

    PREFIX = "sign1"

    @classmethod
    def from_string(cls, text: str) -> Signature:
        payload = b58check_decode(cls.PREFIX, text, 2 * FIELD_BYTES + 2 * POINT_BYTES)
        return cls(
            challenge=Field.from_bytes(payload[:32]),
            response=Field.from_bytes(payload[32:64]),
            pk_sig=payload[64:97],
            pr_sig=payload[97:],
        )

    def __str__(self) -> str:
        payload = self.challenge.to_bytes() + self.response.to_bytes() + self.pk_sig + self.pr_sig
        return b58check_encode(self.PREFIX, payload)


@dataclass(frozen=True)
class Ciphertext:
    """Opaque output of symmetric encryption (e.g. an encrypted key backup)."""
    value: str

    PREFIX = "ciphertext1"

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.startswith(self.PREFIX):
            raise ParseError(f"Ciphertext must start with {self.PREFIX!r}")

    @classmethod
    def from_string(cls, text: str) -> Ciphertext:
        return cls(text.strip())

    def __str__(self) -> str:
        return self.value
