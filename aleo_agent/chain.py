"""
REST client for an Aleo node.

Every URL is ``<base_url>/<network>/<path>``.  Responses are JSON and are
decoded into the models in ``aleo_agent.block`` / ``aleo_agent.program``.

Error mapping:
  - transport failure or non-2xx status  -> ``NetworkError`` (url, status, body)
  - body does not match the schema       -> ``DecodeError``
  - bad arguments (height ranges)        -> ``ValidationError``, no request made

HTTP 404 is a meaningful answer for two lookups and maps to ``None``:
``find_transition_id_by_input_or_output_id`` (the id was never consumed, so
the record is unspent) and ``get_program`` (not deployed).
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from aleo_agent.block import Block, ConfirmedTransaction, Transaction
from aleo_agent.config import NetworkConfig
from aleo_agent.crypto_utils import Field
from aleo_agent.errors import DecodeError, NetworkError, ValidationError
from aleo_agent.program import Program

logger = logging.getLogger("aleo_agent.chain")

MAX_BLOCK_RANGE = 50

_BROADCAST_FAILURE = {
    "deploy": "Failed to deploy program to",
    "execute": "Failed to broadcast execution to",
    "fee": "Failed to broadcast fee execution to",
}


class ChainClient:
    """
    Synchronous node client backed by an ``httpx.Client`` connection pool.

    Pass *transport* (e.g. ``httpx.MockTransport``) to run without a node.
    """

    def __init__(
        self,
        config: NetworkConfig | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ):
        self.config = config or NetworkConfig()
        self._client = httpx.Client(timeout=self.config.timeout_seconds, transport=transport)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def network(self) -> str:
        return self.config.network

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ChainClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ChainClient({self.config.endpoint})"

    # ---- transport ----

    def _url(self, path: str) -> str:
        return f"{self.config.endpoint}/{path}"

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = self._url(path)
        logger.debug(f"{method} {url}")
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request to {url} failed: {exc}", url) from exc
        if response.is_error:
            raise NetworkError(
                f"{method} {url} returned status {response.status_code}",
                url,
                status=response.status_code,
                body=response.text,
            )
        return response

    def _get_json(self, path: str, what: str) -> Any:
        response = self._request("GET", path)
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"Failed to parse {what}: {exc}") from exc

    @staticmethod
    def _decode(parse, data: Any, what: str):
        try:
            return parse(data)
        except DecodeError as exc:
            raise DecodeError(f"Failed to parse {what}: {exc}") from exc

    @staticmethod
    def _expect(data: Any, kind: type, what: str):
        if not isinstance(data, kind) or isinstance(data, bool):
            raise DecodeError(f"Failed to parse {what}: unexpected {type(data).__name__}")
        return data

    # ---- blocks ----

    def get_latest_block_height(self) -> int:
        data = self._get_json("block/height/latest", "the latest block height")
        return self._expect(data, int, "the latest block height")

    def get_latest_block_hash(self) -> str:
        data = self._get_json("block/hash/latest", "the latest block hash")
        return self._expect(data, str, "the latest block hash")

    def get_latest_block(self) -> Block:
        data = self._get_json("block/latest", "the latest block")
        return self._decode(Block.from_json, data, "the latest block")

    def get_block(self, height: int) -> Block:
        data = self._get_json(f"block/{height}", f"block {height}")
        return self._decode(Block.from_json, data, f"block {height}")

    def get_transactions_of_height(self, height: int) -> list[ConfirmedTransaction]:
        what = f"transactions of block {height}"
        data = self._expect(self._get_json(f"block/{height}/transactions", what), list, what)
        return [self._decode(ConfirmedTransaction.from_json, item, what) for item in data]

    def get_blocks_in_range(self, start: int, end: int) -> list[Block]:
        """Blocks ``start`` (inclusive) to ``end`` (exclusive), at most 50."""
        if start >= end:
            raise ValidationError("Start height must be less than end height")
        if end - start > MAX_BLOCK_RANGE:
            raise ValidationError(f"The range of blocks must be at most {MAX_BLOCK_RANGE}")
        what = f"blocks {start} (inclusive) to {end} (exclusive)"
        response = self._request("GET", "blocks", params={"start": start, "end": end})
        try:
            blocks = response.json()
        except ValueError as exc:
            raise DecodeError(f"Failed to parse {what}: {exc}") from exc
        self._expect(blocks, list, what)
        return [self._decode(Block.from_json, item, what) for item in blocks]

    # ---- transactions ----

    def get_transaction(self, transaction_id: str) -> Transaction:
        transaction_id = transaction_id.replace('"', "")
        what = f"transaction {transaction_id!r}"
        data = self._get_json(f"transaction/{transaction_id}", what)
        return self._decode(Transaction.from_json, data, what)

    def get_confirmed_transaction(self, transaction_id: str) -> ConfirmedTransaction:
        transaction_id = transaction_id.replace('"', "")
        what = f"confirmed transaction {transaction_id!r}"
        data = self._get_json(f"transaction/confirmed/{transaction_id}", what)
        return self._decode(ConfirmedTransaction.from_json, data, what)

    def find_block_hash_by_transaction_id(self, transaction_id: str) -> str:
        transaction_id = transaction_id.replace('"', "")
        data = self._get_json(f"find/blockHash/{transaction_id}", "block hash")
        return self._expect(data, str, "block hash")

    def find_transition_id_by_input_or_output_id(self, input_or_output_id: Field | str) -> str | None:
        """The transition that consumed or produced the id, or None when there is none."""
        try:
            data = self._get_json(f"find/transitionID/{input_or_output_id}", "transition ID")
        except NetworkError as exc:
            if exc.is_not_found:
                return None
            raise
        return self._expect(data, str, "transition ID")

    def get_address_transactions(self, address) -> list[Transaction]:
        what = f"transactions of {address}"
        data = self._expect(self._get_json(f"address/{address}", what), list, what)
        return [self._decode(Transaction.from_json, item, what) for item in data]

    def broadcast_transaction(self, transaction: Transaction) -> str:
        """Submit *transaction*; returns the id the node reports."""
        url = self._url("transaction/broadcast")
        prefix = _BROADCAST_FAILURE.get(transaction.type, "Failed to broadcast transaction to")
        try:
            response = self._request("POST", "transaction/broadcast", json=transaction.to_json())
        except NetworkError as exc:
            detail = f"status code {exc.status}: {exc.body!r}" if exc.status is not None else str(exc)
            raise NetworkError(f"{prefix} {url}: ({detail})", url, exc.status, exc.body) from exc
        try:
            tx_id = response.json()
        except ValueError:
            tx_id = response.text.strip()
        if not isinstance(tx_id, str) or not tx_id:
            raise DecodeError(f"Transaction response was malformed: {response.text!r}")
        logger.info(f"Broadcast {transaction.type} transaction {tx_id}")
        return tx_id

    # ---- programs ----

    def get_program(self, program_id: str) -> Program | None:
        """The deployed program source, or None when it is not on chain."""
        what = f"program {program_id}"
        try:
            data = self._get_json(f"program/{program_id}", what)
        except NetworkError as exc:
            if exc.is_not_found:
                return None
            raise
        self._expect(data, str, what)
        try:
            return Program.from_source(data)
        except ValidationError as exc:
            raise DecodeError(f"Failed to parse {what}: {exc}") from exc

    def get_mapping_value(self, program_id: str, mapping: str, key: str) -> str | None:
        """The mapping value as a literal string, or None when the key is absent."""
        what = f"mapping {program_id}/{mapping}"
        data = self._get_json(f"program/{program_id}/mapping/{mapping}/{key}", what)
        if data is None:
            return None
        return self._expect(data, str, what)

    def get_program_mappings(self, program_id: str) -> list[str]:
        what = f"mappings of {program_id}"
        data = self._expect(self._get_json(f"program/{program_id}/mappings", what), list, what)
        return [self._expect(name, str, what) for name in data]
