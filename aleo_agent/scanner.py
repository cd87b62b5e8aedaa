"""
Record discovery over a block-height range.

Covers:
  - ``get_unspent_records`` – newest blocks first, 49-block windows, owned
    and unspent records only, optional early stop on a microcredit target
  - ``scan_records``        – oldest first, 50-block windows aligned to
    multiples of 50, every owned record (spent ones included), optional
    early stop on a record count
  - ``program_records``     – aligned windows, owned records of one program,
    left encrypted, optionally unspent only
  - lazy ``iter_*`` variants that fetch one window at a time

Heights are half-open ``range`` objects (``range(start, end)``).  Windows
are scanned strictly in order and an early-stop condition is checked only
after a whole window has been emitted, so a window is never cut short.

Per record the order of work is fixed: ownership (no decryption), then the
serial-number lookup, then decryption.  A record the provider cannot even
parse is treated as not owned.  A record that passes the ownership
check but fails to decrypt aborts the scan with ``CryptoError``.
"""

from __future__ import annotations

import logging
from math import ceil
from typing import Iterator

from aleo_agent.account import Account
from aleo_agent.crypto import CryptoProvider
from aleo_agent.crypto_utils import Field
from aleo_agent.errors import CryptoError, ParseError, ValidationError
from aleo_agent.records import CiphertextRecord, PlaintextRecord

logger = logging.getLogger("aleo_agent.scanner")

UNSPENT_WINDOW = 49
ALIGNED_WINDOW = 50


def _bounds(heights: range) -> tuple[int, int]:
    if not isinstance(heights, range) or heights.step != 1:
        raise ValidationError("Block heights must be a contiguous range")
    if heights.start < 0:
        raise ValidationError("Block heights must not be negative")
    if heights.start >= heights.stop:
        raise ValidationError("The start block height must be less than the end block height")
    return heights.start, heights.stop


def descending_windows(start: int, end: int, step: int = UNSPENT_WINDOW) -> Iterator[tuple[int, int]]:
    """``(lo, hi)`` windows from *end* down to *start*, each at most *step* blocks."""
    hi = end
    for _ in range(ceil((end - start) / step)):
        lo = max(start, hi - step)
        yield lo, hi
        hi = lo


def aligned_windows(start: int, end: int, step: int = ALIGNED_WINDOW) -> Iterator[tuple[int, int]]:
    """Ascending windows starting at *start* rounded down to a multiple of *step*."""
    lo = start - start % step
    while lo < end:
        yield lo, min(lo + step, end)
        lo += step


class RecordScanner:
    """Finds an account's records on chain through a ``ChainClient``."""

    def __init__(self, account: Account, chain, crypto: CryptoProvider | None = None):
        self.account = account
        self.chain = chain
        self.crypto = crypto or account.crypto

    # ---- per-record steps ----

    def _window(self, lo: int, hi: int):
        return self.chain.get_blocks_in_range(lo, hi)

    def _is_owner(self, record: CiphertextRecord) -> bool:
        # other programs' outputs need not parse for this provider; not ours
        try:
            return self.crypto.is_owner(self.account.view_key, self.account.address, record)
        except ParseError as exc:
            logger.debug(f"Skipping unreadable record {record.value[:24]}...: {exc}")
            return False

    def _is_spent(self, commitment: Field) -> bool:
        serial_number = self.crypto.serial_number(self.account.private_key, commitment)
        transition_id = self.chain.find_transition_id_by_input_or_output_id(serial_number)
        if transition_id is not None:
            logger.debug(f"Skipping record {commitment}: spent in {transition_id}")
            return True
        return False

    def _decrypt(self, commitment: Field, record: CiphertextRecord) -> PlaintextRecord:
        try:
            return self.crypto.decrypt_record(self.account.view_key, record)
        except CryptoError as exc:
            raise CryptoError(f"Owned record {commitment} could not be decrypted: {exc}") from exc

    # ---- unspent records ----

    def iter_unspent_records(
        self, heights: range, max_microcredits: int | None = None,
    ) -> Iterator[tuple[Field, PlaintextRecord]]:
        start, end = _bounds(heights)
        return self._unspent(start, end, max_microcredits)

    def _unspent(self, start, end, max_microcredits):
        total = 0
        for lo, hi in descending_windows(start, end):
            logger.info(f"Searching blocks {lo} to {hi} for unspent records")
            for block in self._window(lo, hi):
                for commitment, record in block.records():
                    if not self._is_owner(record) or self._is_spent(commitment):
                        continue
                    plaintext = self._decrypt(commitment, record)
                    if plaintext.has_microcredits:
                        total += plaintext.microcredits
                    yield commitment, plaintext
            if max_microcredits is not None and total >= max_microcredits:
                logger.info(f"Collected {total} microcredits, stopping at block {lo}")
                return

    def get_unspent_records(
        self, heights: range, max_microcredits: int | None = None,
    ) -> list[tuple[Field, PlaintextRecord]]:
        return list(self.iter_unspent_records(heights, max_microcredits))

    # ---- all owned records ----

    def iter_records(
        self, heights: range, max_records: int | None = None,
    ) -> Iterator[tuple[Field, PlaintextRecord]]:
        start, end = _bounds(heights)
        return self._owned(start, end, max_records)

    def _owned(self, start, end, max_records):
        count = 0
        for lo, hi in aligned_windows(start, end):
            logger.info(f"Searching blocks {lo} to {hi} for records")
            for block in self._window(lo, hi):
                for commitment, record in block.records():
                    if self._is_owner(record):
                        count += 1
                        yield commitment, self._decrypt(commitment, record)
            if max_records is not None and count >= max_records:
                return

    def scan_records(
        self, heights: range, max_records: int | None = None,
    ) -> list[tuple[Field, PlaintextRecord]]:
        return list(self.iter_records(heights, max_records))

    # ---- program records ----

    def program_records(
        self, heights: range, program_id: str, unspent_only: bool = False,
    ) -> list[tuple[Field, CiphertextRecord]]:
        """Owned records output by *program_id*, still encrypted."""
        start, end = _bounds(heights)
        found = []
        for lo, hi in aligned_windows(start, end):
            logger.info(f"Searching blocks {lo} to {hi} for {program_id} records")
            for block in self._window(lo, hi):
                for transition in block.transitions():
                    if transition.program != program_id:
                        continue
                    for commitment, record in transition.records():
                        if not self._is_owner(record):
                            continue
                        if unspent_only and self._is_spent(commitment):
                            continue
                        found.append((commitment, record))
        return found
