"""
Accounts and private-key backup for the Aleo agent.

An ``Account`` wraps a private key and the view key / address derived from
it.  ``KeyManager`` provides:
  - Random and u64-seeded account generation
  - Import from a private-key string
  - Domain-separated field encryption (``encrypt_field`` / ``decrypt_field``)
  - Secret-based private-key backup and recovery

Backup scheme (domain ``"private_key"``):

    secret_f = hash_to_field(secret)
    blinding = hash_psd2([domain, nonce, secret_f])
    key      = blinding * seed
    ciphertext = symmetric_encrypt({key, nonce}, secret_f, domain)

Recovery recomputes the blinding factor and divides it back out.
"""

from __future__ import annotations

import logging

from aleo_agent.crypto import CryptoProvider, ReferenceCryptoProvider
from aleo_agent.crypto_utils import Field, random_bytes, seeded_bytes
from aleo_agent.errors import CryptoError, ValidationError
from aleo_agent.keys import Address, Ciphertext, PrivateKey, Signature, ViewKey

logger = logging.getLogger("aleo_agent.account")

PRIVATE_KEY_DOMAIN = "private_key"


class Account:
    """
    An account: private key, view key and address.

    The view key and address are always derived from the private key, so an
    account can never hold mismatched parts.
    """

    __slots__ = ("_private_key", "_view_key", "_address", "_crypto")

    def __init__(self, private_key: PrivateKey, crypto: CryptoProvider | None = None):
        crypto = crypto or ReferenceCryptoProvider()
        view_key = crypto.view_key_from_private_key(private_key)
        object.__setattr__(self, "_private_key", private_key)
        object.__setattr__(self, "_view_key", view_key)
        object.__setattr__(self, "_address", crypto.address_from_view_key(view_key))
        object.__setattr__(self, "_crypto", crypto)

    def __setattr__(self, name, value):
        raise AttributeError("Account is immutable")

    @property
    def private_key(self) -> PrivateKey:
        return self._private_key

    @property
    def view_key(self) -> ViewKey:
        return self._view_key

    @property
    def address(self) -> Address:
        return self._address

    @property
    def crypto(self) -> CryptoProvider:
        return self._crypto

    def sign(self, message: bytes) -> Signature:
        return self._crypto.sign(self._private_key, message)

    def verify(self, message: bytes, signature: Signature) -> bool:
        return self._crypto.verify(self._address, message, signature)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Account):
            return self._private_key == other._private_key
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._address)

    def __repr__(self) -> str:
        return f"Account({self._address})"


class KeyManager:
    """Creates accounts and encrypts / recovers private keys."""

    def __init__(self, crypto: CryptoProvider | None = None):
        self.crypto = crypto or ReferenceCryptoProvider()

    # ---- account creation ----

    def generate(self) -> Account:
        """A new account from the OS random source."""
        private_key = self.crypto.private_key_from_entropy(random_bytes(64))
        return Account(private_key, self.crypto)

    def generate_from_seed(self, seed: int) -> Account:
        """Deterministic account from a u64 seed; reproducible across runs."""
        try:
            entropy = seeded_bytes(seed, 64)
        except ValueError as exc:
            raise ValidationError(f"Invalid account seed {seed!r}: {exc}") from exc
        return Account(self.crypto.private_key_from_entropy(entropy), self.crypto)

    def from_private_key_string(self, text: str) -> Account:
        return Account(PrivateKey.from_string(text), self.crypto)

    def from_private_key(self, private_key: PrivateKey) -> Account:
        return Account(private_key, self.crypto)

    # ---- domain-separated field encryption ----

    def _blinding(self, domain: Field, nonce: Field, secret: Field) -> Field:
        return self.crypto.hash_psd2([domain, nonce, secret])

    def encrypt_field(self, value: Field, secret: str, domain: str) -> Ciphertext:
        """
        Encrypt *value* under *secret* with a fresh random nonce.

        Two encryptions of the same value never produce the same ciphertext.
        """
        domain_f = self.crypto.hash_to_field(domain)
        secret_f = self.crypto.hash_to_field(secret)
        nonce = self.crypto.random_field()
        key = self._blinding(domain_f, nonce, secret_f) * value
        return self.crypto.encrypt_symmetric({"key": key, "nonce": nonce}, secret_f, domain_f)

    def decrypt_field(self, ciphertext: Ciphertext, secret: str, domain: str) -> Field:
        """Inverse of ``encrypt_field``; raises CryptoError on a wrong secret or domain."""
        domain_f = self.crypto.hash_to_field(domain)
        secret_f = self.crypto.hash_to_field(secret)
        members = self.crypto.decrypt_symmetric(ciphertext, secret_f, domain_f)
        if "key" not in members or "nonce" not in members:
            raise CryptoError("Decrypted plaintext is missing its key or nonce member")
        try:
            return members["key"] / self._blinding(domain_f, members["nonce"], secret_f)
        except ZeroDivisionError as exc:
            raise CryptoError("Degenerate blinding factor") from exc

    # ---- private-key backup ----

    def encrypt_private_key(self, account: Account, secret: str) -> Ciphertext:
        logger.debug(f"Encrypting private key backup for {account.address}")
        return self.encrypt_field(account.private_key.seed, secret, PRIVATE_KEY_DOMAIN)

    def decrypt_private_key(self, ciphertext: Ciphertext | str, secret: str) -> Account:
        if isinstance(ciphertext, str):
            ciphertext = Ciphertext.from_string(ciphertext)
        seed = self.decrypt_field(ciphertext, secret, PRIVATE_KEY_DOMAIN)
        if seed.is_zero():
            raise CryptoError("Recovered private key seed is zero")
        account = Account(PrivateKey(seed), self.crypto)
        logger.debug(f"Recovered private key backup for {account.address}")
        return account
