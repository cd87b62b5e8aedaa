"""
Low-level cryptographic helpers for the Aleo agent.

Covers:
  - ``Field`` – prime-field element (secp256k1 group order) with + - * /
  - Domain-separated hashing into the field (``hash_to_field``, ``hash_psd2``)
  - secp256k1 point encoding helpers (via ``ecdsa``)
  - Secure and seed-expanding randomness (via ``pycryptodome``)
  - AES-256-GCM authenticated encryption
  - base58check / bech32 canonical string helpers
"""

from __future__ import annotations

import hashlib
from typing import Sequence

import base58
import bech32
from Crypto.Cipher import AES, ChaCha20
from Crypto.Random import get_random_bytes
from ecdsa import SECP256k1, VerifyingKey
from ecdsa.errors import MalformedPointError

from aleo_agent.errors import ParseError

CURVE = SECP256k1
GENERATOR = SECP256k1.generator
FIELD_MODULUS: int = SECP256k1.order
FIELD_BYTES = 32

_H2F_PERSON = b"AleoAgentH2F0"
_PSD2_PERSON = b"AleoAgentPsd2"
_SEED_RNG_TAG = b"AleoAgentSeedRng0"


# ===================================================================
#  Field elements
# ===================================================================

class Field:
    """An element of the scalar field, canonical string ``<decimal>field``."""

    __slots__ = ("_value",)

    def __init__(self, value: int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Field value must be an int, got {type(value).__name__}")
        self._value = value % FIELD_MODULUS

    @property
    def value(self) -> int:
        return self._value

    # ---- constructors ----

    @classmethod
    def zero(cls) -> Field:
        return cls(0)

    @classmethod
    def one(cls) -> Field:
        return cls(1)

    @classmethod
    def from_bytes(cls, data: bytes) -> Field:
        """Interpret 32 big-endian bytes; values >= the modulus are rejected."""
        if len(data) != FIELD_BYTES:
            raise ParseError(f"Field encoding must be {FIELD_BYTES} bytes, got {len(data)}")
        value = int.from_bytes(data, "big")
        if value >= FIELD_MODULUS:
            raise ParseError("Field encoding is not canonical")
        return cls(value)

    @classmethod
    def from_bytes_wide(cls, data: bytes) -> Field:
        """Reduce an arbitrary-length (ideally 64-byte) digest into the field."""
        return cls(int.from_bytes(data, "big"))

    @classmethod
    def random(cls) -> Field:
        return cls.from_bytes_wide(random_bytes(64))

    @classmethod
    def from_string(cls, text: str) -> Field:
        text = text.strip()
        if not text.endswith("field"):
            raise ParseError(f"Invalid field literal: {text!r}")
        digits = text[: -len("field")]
        if not digits.isdigit():
            raise ParseError(f"Invalid field literal: {text!r}")
        value = int(digits)
        if value >= FIELD_MODULUS:
            raise ParseError(f"Field literal out of range: {text!r}")
        return cls(value)

    # ---- arithmetic ----

    def _coerce(self, other: object) -> Field:
        if isinstance(other, Field):
            return other
        if isinstance(other, int) and not isinstance(other, bool):
            return Field(other)
        return NotImplemented  # type: ignore[return-value]

    def __add__(self, other: object) -> Field:
        o = self._coerce(other)
        if o is NotImplemented:
            return NotImplemented
        return Field(self._value + o._value)

    __radd__ = __add__

    def __sub__(self, other: object) -> Field:
        o = self._coerce(other)
        if o is NotImplemented:
            return NotImplemented
        return Field(self._value - o._value)

    def __mul__(self, other: object) -> Field:
        o = self._coerce(other)
        if o is NotImplemented:
            return NotImplemented
        return Field(self._value * o._value)

    __rmul__ = __mul__

    def __truediv__(self, other: object) -> Field:
        o = self._coerce(other)
        if o is NotImplemented:
            return NotImplemented
        return self * o.inverse()

    def __neg__(self) -> Field:
        return Field(-self._value)

    def inverse(self) -> Field:
        if self._value == 0:
            raise ZeroDivisionError("field element zero has no inverse")
        return Field(pow(self._value, -1, FIELD_MODULUS))

    def is_zero(self) -> bool:
        return self._value == 0

    # ---- encoding ----

    def to_bytes(self) -> bytes:
        return self._value.to_bytes(FIELD_BYTES, "big")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Field):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Field", self._value))

    def __str__(self) -> str:
        return f"{self._value}field"

    def __repr__(self) -> str:
        return f"Field({self._value})"


# ===================================================================
#  Hashing
# ===================================================================

def hash_to_field(data: str | bytes) -> Field:
    """Map a domain string (or bytes) to a field element."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    digest = hashlib.blake2b(data, digest_size=64, person=_H2F_PERSON).digest()
    return Field.from_bytes_wide(digest)


def hash_psd2(inputs: Sequence[Field]) -> Field:
    """Collision-resistant hash of a sequence of field elements."""
    h = hashlib.blake2b(digest_size=64, person=_PSD2_PERSON)
    h.update(len(inputs).to_bytes(4, "big"))
    for element in inputs:
        h.update(element.to_bytes())
    return Field.from_bytes_wide(h.digest())


# ===================================================================
#  secp256k1 points
# ===================================================================

def base_mul(scalar: Field):
    """Return ``scalar * G``."""
    return GENERATOR * scalar.value


def point_to_bytes(point) -> bytes:
    """Compressed (33-byte) SEC1 encoding."""
    return VerifyingKey.from_public_point(point, curve=CURVE).to_string("compressed")


def point_from_bytes(data: bytes):
    try:
        return VerifyingKey.from_string(data, curve=CURVE).pubkey.point
    except (MalformedPointError, ValueError) as exc:
        raise ParseError(f"Invalid curve point encoding: {exc}") from exc


def point_x(point) -> Field:
    """The point's affine x-coordinate, reduced into the field."""
    return Field(int(point.x()))


# ===================================================================
#  Randomness
# ===================================================================

def random_bytes(length: int = 64) -> bytes:
    return get_random_bytes(length)


def seeded_bytes(seed: int, length: int = 64) -> bytes:
    """
    Deterministic keystream expanded from a u64 seed (ChaCha20).

    The same seed always yields the same bytes across runs and platforms.
    """
    if isinstance(seed, bool) or not isinstance(seed, int) or not 0 <= seed < 2**64:
        raise ValueError("seed must be an integer in the u64 range")
    key = hashlib.sha256(_SEED_RNG_TAG + seed.to_bytes(8, "little")).digest()
    cipher = ChaCha20.new(key=key, nonce=bytes(8))
    return cipher.encrypt(bytes(length))


# ===================================================================
#  AES-256-GCM authenticated encryption
# ===================================================================

def aes_gcm_encrypt(
    key: bytes, data: bytes, associated_data: bytes = b"",
) -> tuple[bytes, bytes, bytes]:
    """Encrypt *data* with AES-256-GCM. Returns (ciphertext, nonce, tag)."""
    nonce = get_random_bytes(12)  # 96-bit nonce, unique per encryption
    cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
    cipher.update(associated_data)
    ciphertext, tag = cipher.encrypt_and_digest(data)
    return ciphertext, nonce, tag


def aes_gcm_decrypt(
    key: bytes, nonce: bytes, ciphertext: bytes, tag: bytes,
    associated_data: bytes = b"",
) -> bytes:
    """Decrypt and verify AES-256-GCM ciphertext. Raises ValueError on tamper."""
    cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
    cipher.update(associated_data)
    return cipher.decrypt_and_verify(ciphertext, tag)


# ===================================================================
#  Canonical string encodings
# ===================================================================

def b58check_encode(prefix: str, payload: bytes) -> str:
    return prefix + base58.b58encode_check(payload).decode("ascii")


def b58check_decode(prefix: str, text: str, length: int | None = None) -> bytes:
    if isinstance(text, str):
        text = text.strip()
    if not isinstance(text, str) or not text.startswith(prefix):
        raise ParseError(f"Expected a string starting with {prefix!r}")
    try:
        payload = base58.b58decode_check(text[len(prefix):])
    except ValueError as exc:
        raise ParseError(f"Invalid {prefix} encoding: {exc}") from exc
    if length is not None and len(payload) != length:
        raise ParseError(f"Invalid {prefix} payload length {len(payload)}")
    return payload


def bech32_encode_bytes(hrp: str, payload: bytes) -> str:
    return bech32.bech32_encode(hrp, bech32.convertbits(payload, 8, 5))


def bech32_decode_bytes(hrp: str, text: str) -> bytes:
    if not isinstance(text, str):
        raise ParseError("Expected a bech32 string")
    got_hrp, data = bech32.bech32_decode(text.strip())
    if got_hrp != hrp or data is None:
        raise ParseError(f"Invalid {hrp} bech32 string")
    raw = bech32.convertbits(data, 5, 8, False)
    if raw is None:
        raise ParseError(f"Invalid {hrp} bech32 payload")
    return bytes(raw)
