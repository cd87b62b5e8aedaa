"""
Crypto provider capability for the Aleo agent.

Everything above this module (key management, record scanning, transfers)
talks to a ``CryptoProvider`` rather than to a concrete curve or cipher, so
that a different backend (or a deterministic test double) can be injected.

``ReferenceCryptoProvider`` is the built-in backend:

  - Account keys on secp256k1 (``ecdsa``): seed → (sk_sig, r_sig) →
    compute key (pk_sig, pr_sig, sk_prf) → view key → address
  - Schnorr signatures verified against the address via the compute key
  - Records encrypted to ``address`` with an ephemeral nonce point; the
    owner's x-coordinate is masked with the record view key so ownership
    can be checked before decrypting the body (AES-256-GCM)
  - Symmetric ``{name: field}`` struct encryption, AES-256-GCM keyed by the
    secret field with the domain separator bound as associated data

It is self-consistent but is not wire-compatible with the network's native
proving library.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from typing import Sequence

from ecdsa.ellipticcurve import INFINITY

from aleo_agent import crypto_utils
from aleo_agent.crypto_utils import (
    Field,
    aes_gcm_decrypt,
    aes_gcm_encrypt,
    b58check_decode,
    b58check_encode,
    base_mul,
    point_from_bytes,
    point_to_bytes,
    point_x,
)
from aleo_agent.errors import CryptoError, ParseError
from aleo_agent.keys import Address, Ciphertext, PrivateKey, Signature, ViewKey
from aleo_agent.records import (
    CiphertextRecord,
    Entry,
    PlaintextRecord,
    format_struct,
    parse_struct,
)


class CryptoProvider(ABC):
    """Cryptographic capability consumed by the key manager and scanner."""

    # ---- field / hashing ----

    @abstractmethod
    def hash_to_field(self, data: str | bytes) -> Field:
        """Derive a domain separator (or secret) field from a string."""

    @abstractmethod
    def hash_psd2(self, inputs: Sequence[Field]) -> Field:
        """Collision-resistant hash of field elements."""

    @abstractmethod
    def random_field(self) -> Field:
        """A uniformly random, non-zero field element."""

    # ---- keys ----

    @abstractmethod
    def private_key_from_entropy(self, entropy: bytes) -> PrivateKey: ...

    @abstractmethod
    def view_key_from_private_key(self, private_key: PrivateKey) -> ViewKey: ...

    @abstractmethod
    def address_from_view_key(self, view_key: ViewKey) -> Address: ...

    def address_from_private_key(self, private_key: PrivateKey) -> Address:
        return self.address_from_view_key(self.view_key_from_private_key(private_key))

    # ---- symmetric encryption ----

    @abstractmethod
    def encrypt_symmetric(
        self, plaintext: dict[str, Field], secret: Field, domain: Field,
    ) -> Ciphertext: ...

    @abstractmethod
    def decrypt_symmetric(
        self, ciphertext: Ciphertext, secret: Field, domain: Field,
    ) -> dict[str, Field]:
        """Raises CryptoError when the secret or domain does not match."""

    # ---- signatures ----

    @abstractmethod
    def sign(self, private_key: PrivateKey, message: bytes) -> Signature: ...

    @abstractmethod
    def verify(self, address: Address, message: bytes, signature: Signature) -> bool: ...

    # ---- records ----

    @abstractmethod
    def is_owner(self, view_key: ViewKey, address: Address, record: CiphertextRecord) -> bool:
        """Cheap ownership test; must not decrypt the record body."""

    @abstractmethod
    def decrypt_record(self, view_key: ViewKey, record: CiphertextRecord) -> PlaintextRecord:
        """Raises CryptoError for a record the view key does not own."""

    @abstractmethod
    def serial_number(self, private_key: PrivateKey, commitment: Field) -> Field: ...

    @abstractmethod
    def encrypt_record(
        self, owner: Address, entries: dict[str, Entry],
    ) -> tuple[Field, CiphertextRecord]:
        """Encrypt a new record to *owner*; returns (commitment, record)."""


# ===================================================================
#  Reference implementation
# ===================================================================

_SK_SIG_DOMAIN = "AleoAccountSignatureSecretKey0"
_R_SIG_DOMAIN = "AleoAccountSignatureRandomizer0"
_MESSAGE_DOMAIN = "AleoAgentMessage0"
_OWNER_DOMAIN = "AleoAgentRecordOwner0"
_SERIAL_DOMAIN = "AleoAgentSerialNumber0"
_COMMITMENT_DOMAIN = "AleoAgentCommitment0"
_RECORD_KEY_TAG = b"AleoAgentRecordKey0"
_SYMMETRIC_KEY_TAG = b"AleoAgentSymmetricKey0"

_POINT_LEN = 33
_FIELD_LEN = 32
_GCM_NONCE_LEN = 12
_GCM_TAG_LEN = 16


class ReferenceCryptoProvider(CryptoProvider):
    """secp256k1 + AES-256-GCM backend."""

    # ---- field / hashing ----

    def hash_to_field(self, data: str | bytes) -> Field:
        return crypto_utils.hash_to_field(data)

    def hash_psd2(self, inputs: Sequence[Field]) -> Field:
        return crypto_utils.hash_psd2(inputs)

    def random_field(self) -> Field:
        while True:
            value = Field.random()
            if not value.is_zero():
                return value

    # ---- keys ----

    def private_key_from_entropy(self, entropy: bytes) -> PrivateKey:
        seed = Field.from_bytes_wide(entropy)
        if seed.is_zero():
            raise CryptoError("Entropy reduced to the zero seed")
        return PrivateKey(seed)

    def _signature_keys(self, private_key: PrivateKey):
        """Return (sk_sig, r_sig, pk_sig, pr_sig, sk_prf)."""
        seed = private_key.seed
        sk_sig = self.hash_psd2([self.hash_to_field(_SK_SIG_DOMAIN), seed])
        r_sig = self.hash_psd2([self.hash_to_field(_R_SIG_DOMAIN), seed])
        pk_sig = base_mul(sk_sig)
        pr_sig = base_mul(r_sig)
        sk_prf = self.hash_psd2([point_x(pk_sig), point_x(pr_sig)])
        return sk_sig, r_sig, pk_sig, pr_sig, sk_prf

    def view_key_from_private_key(self, private_key: PrivateKey) -> ViewKey:
        sk_sig, r_sig, _, _, sk_prf = self._signature_keys(private_key)
        scalar = sk_sig + r_sig + sk_prf
        if scalar.is_zero():
            raise CryptoError("Private key derives a degenerate view key")
        return ViewKey(scalar)

    def address_from_view_key(self, view_key: ViewKey) -> Address:
        return Address(point_to_bytes(base_mul(view_key.scalar)))

    # ---- symmetric encryption ----

    @staticmethod
    def _symmetric_key(secret: Field) -> bytes:
        return hashlib.sha256(_SYMMETRIC_KEY_TAG + secret.to_bytes()).digest()

    def encrypt_symmetric(
        self, plaintext: dict[str, Field], secret: Field, domain: Field,
    ) -> Ciphertext:
        body = format_struct({name: str(value) for name, value in plaintext.items()})
        ct, nonce, tag = aes_gcm_encrypt(
            self._symmetric_key(secret), body.encode("utf-8"), domain.to_bytes(),
        )
        return Ciphertext(b58check_encode(Ciphertext.PREFIX, nonce + tag + ct))

    def decrypt_symmetric(
        self, ciphertext: Ciphertext, secret: Field, domain: Field,
    ) -> dict[str, Field]:
        raw = b58check_decode(Ciphertext.PREFIX, ciphertext.value)
        if len(raw) < _GCM_NONCE_LEN + _GCM_TAG_LEN:
            raise ParseError("Ciphertext is truncated")
        nonce = raw[:_GCM_NONCE_LEN]
        tag = raw[_GCM_NONCE_LEN:_GCM_NONCE_LEN + _GCM_TAG_LEN]
        body = raw[_GCM_NONCE_LEN + _GCM_TAG_LEN:]
        try:
            plain = aes_gcm_decrypt(self._symmetric_key(secret), nonce, body, tag, domain.to_bytes())
        except ValueError as exc:
            raise CryptoError("Failed to decrypt ciphertext: wrong secret or domain") from exc
        try:
            members = parse_struct(plain.decode("utf-8"))
            return {name: Field.from_string(value) for name, value in members.items()}
        except (ParseError, UnicodeDecodeError) as exc:
            raise CryptoError(f"Decrypted plaintext is not a field struct: {exc}") from exc

    # ---- signatures ----

    def _challenge(self, g_r, pk_sig, pr_sig, address: Address, message: bytes) -> Field:
        return self.hash_psd2([
            point_x(g_r),
            point_x(pk_sig),
            point_x(pr_sig),
            address.x_coordinate,
            self.hash_to_field(_MESSAGE_DOMAIN.encode("utf-8") + message),
        ])

    def sign(self, private_key: PrivateKey, message: bytes) -> Signature:
        sk_sig, _, pk_sig, pr_sig, _ = self._signature_keys(private_key)
        address = self.address_from_private_key(private_key)
        k = self.random_field()
        g_r = base_mul(k)
        challenge = self._challenge(g_r, pk_sig, pr_sig, address, message)
        response = k - challenge * sk_sig
        return Signature(challenge, response, point_to_bytes(pk_sig), point_to_bytes(pr_sig))

    def verify(self, address: Address, message: bytes, signature: Signature) -> bool:
        try:
            pk_sig = point_from_bytes(signature.pk_sig)
            pr_sig = point_from_bytes(signature.pr_sig)
        except ParseError:
            return False
        sk_prf = self.hash_psd2([point_x(pk_sig), point_x(pr_sig)])
        derived = pk_sig + pr_sig + base_mul(sk_prf)
        if derived == INFINITY or point_to_bytes(derived) != address.raw:
            return False
        g_r = base_mul(signature.response) + pk_sig * signature.challenge.value
        if g_r == INFINITY:
            return False
        return self._challenge(g_r, pk_sig, pr_sig, address, message) == signature.challenge

    # ---- records ----

    def _owner_mask(self, record_view_key) -> Field:
        return self.hash_psd2([self.hash_to_field(_OWNER_DOMAIN), point_x(record_view_key)])

    @staticmethod
    def _record_key(record_view_key) -> bytes:
        return hashlib.sha256(_RECORD_KEY_TAG + point_to_bytes(record_view_key)).digest()

    @staticmethod
    def _split_record(record: CiphertextRecord):
        raw = b58check_decode(CiphertextRecord.PREFIX, record.value)
        header = _POINT_LEN + _FIELD_LEN
        if len(raw) < header + _GCM_NONCE_LEN + _GCM_TAG_LEN:
            raise ParseError("Ciphertext record is truncated")
        nonce_bytes = raw[:_POINT_LEN]
        owner_bytes = raw[_POINT_LEN:header]
        gcm_nonce = raw[header:header + _GCM_NONCE_LEN]
        tag = raw[header + _GCM_NONCE_LEN:header + _GCM_NONCE_LEN + _GCM_TAG_LEN]
        body = raw[header + _GCM_NONCE_LEN + _GCM_TAG_LEN:]
        return nonce_bytes, owner_bytes, gcm_nonce, tag, body

    def is_owner(self, view_key: ViewKey, address: Address, record: CiphertextRecord) -> bool:
        nonce_bytes, owner_bytes, *_ = self._split_record(record)
        record_view_key = point_from_bytes(nonce_bytes) * view_key.scalar.value
        owner_x = Field.from_bytes(owner_bytes) - self._owner_mask(record_view_key)
        return owner_x == address.x_coordinate

    def decrypt_record(self, view_key: ViewKey, record: CiphertextRecord) -> PlaintextRecord:
        nonce_bytes, owner_bytes, gcm_nonce, tag, body = self._split_record(record)
        address = self.address_from_view_key(view_key)
        if not self.is_owner(view_key, address, record):
            raise CryptoError("Record is not owned by this view key")
        nonce_point = point_from_bytes(nonce_bytes)
        record_view_key = nonce_point * view_key.scalar.value
        try:
            plain = aes_gcm_decrypt(
                self._record_key(record_view_key), gcm_nonce, body, tag,
                nonce_bytes + owner_bytes,
            )
            members = parse_struct(plain.decode("utf-8"))
            entries = {name: Entry.from_string(value) for name, value in members.items()}
        except (ValueError, UnicodeDecodeError) as exc:
            raise CryptoError(f"Failed to decrypt record: {exc}") from exc
        return PlaintextRecord(
            owner=str(address),
            entries=entries,
            nonce=f"{point_x(nonce_point).value}group",
        )

    def serial_number(self, private_key: PrivateKey, commitment: Field) -> Field:
        *_, sk_prf = self._signature_keys(private_key)
        return self.hash_psd2([self.hash_to_field(_SERIAL_DOMAIN), sk_prf, commitment])

    def encrypt_record(
        self, owner: Address, entries: dict[str, Entry],
    ) -> tuple[Field, CiphertextRecord]:
        if "owner" in entries or "_nonce" in entries:
            raise ParseError("owner and _nonce are reserved record members")
        randomizer = self.random_field()
        nonce_bytes = point_to_bytes(base_mul(randomizer))
        record_view_key = owner.to_point() * randomizer.value
        owner_bytes = (owner.x_coordinate + self._owner_mask(record_view_key)).to_bytes()
        body = format_struct({name: str(entry) for name, entry in entries.items()})
        ct, gcm_nonce, tag = aes_gcm_encrypt(
            self._record_key(record_view_key), body.encode("utf-8"),
            nonce_bytes + owner_bytes,
        )
        raw = nonce_bytes + owner_bytes + gcm_nonce + tag + ct
        commitment = self.hash_psd2([
            self.hash_to_field(_COMMITMENT_DOMAIN),
            Field.from_bytes_wide(hashlib.sha512(raw).digest()),
        ])
        return commitment, CiphertextRecord(b58check_encode(CiphertextRecord.PREFIX, raw))
