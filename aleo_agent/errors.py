"""
Exception hierarchy for the Aleo agent.

Every error raised on purpose by this package derives from ``AgentError``:

  - ``ValidationError`` – bad caller input (height ranges, identifiers,
    insufficient record balances).  Raised before any network or crypto work.
  - ``ParseError``      – a canonical string (key, address, record, field)
    could not be parsed.
  - ``CryptoError``     – decryption produced an invalid structure, key
    recovery failed, or a record does not belong to the view key.
  - ``NetworkError``    – non-success HTTP status or transport failure.
  - ``DecodeError``     – a response body does not match the expected schema.
"""

from __future__ import annotations


class AgentError(Exception):
    """Base class for all aleo_agent errors."""


class ValidationError(AgentError, ValueError):
    """Caller supplied input that can never succeed."""


class ParseError(ValidationError):
    """A canonical string encoding is malformed."""


class CryptoError(AgentError):
    """A cryptographic operation failed."""


class DecodeError(AgentError):
    """A node response did not match the expected schema."""


class NetworkError(AgentError):
    """
    A request to the node failed.

    ``status`` and ``body`` are set for HTTP status errors and left as None
    for transport failures.
    """

    def __init__(
        self,
        message: str,
        url: str,
        status: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status = status
        self.body = body

    @property
    def is_not_found(self) -> bool:
        return self.status == 404
