"""
Chain data models parsed from node JSON.

Covers:
  - ``Transition``           – one program function call; its record outputs
  - ``Transaction``          – deploy / execute / fee transaction
  - ``ConfirmedTransaction`` – a transaction as included in a block
  - ``Block``                – header metadata plus confirmed transactions

A block is reduced to ``(commitment, CiphertextRecord)`` pairs for record
discovery.  The raw JSON is kept on every model so that transactions can be
re-broadcast byte-for-byte.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

from aleo_agent.crypto_utils import Field
from aleo_agent.errors import DecodeError, ParseError
from aleo_agent.records import CiphertextRecord

TRANSACTION_TYPES = ("deploy", "execute", "fee")


def _require(obj: Any, key: str, kind: type, where: str):
    if not isinstance(obj, dict):
        raise DecodeError(f"{where}: expected a JSON object, got {type(obj).__name__}")
    if key not in obj:
        raise DecodeError(f"{where}: missing {key!r}")
    value = obj[key]
    if not isinstance(value, kind):
        raise DecodeError(f"{where}: {key!r} has type {type(value).__name__}")
    return value


# ===================================================================
#  Transitions
# ===================================================================

@dataclass(frozen=True)
class RecordOutput:
    commitment: Field
    record: CiphertextRecord


@dataclass
class Transition:
    id: str
    program: str
    function: str
    outputs: list[RecordOutput] = field(default_factory=list)
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_json(cls, data: dict) -> Transition:
        where = "transition"
        transition_id = _require(data, "id", str, where)
        program = _require(data, "program", str, where)
        function = _require(data, "function", str, where)
        outputs = []
        for output in data.get("outputs") or []:
            if not isinstance(output, dict) or output.get("type") != "record":
                continue
            try:
                commitment = Field.from_string(_require(output, "id", str, "record output"))
                record = CiphertextRecord(_require(output, "value", str, "record output"))
            except ParseError as exc:
                raise DecodeError(f"Malformed record output in {transition_id}: {exc}") from exc
            outputs.append(RecordOutput(commitment, record))
        return cls(transition_id, program, function, outputs, data)

    def records(self) -> Iterator[tuple[Field, CiphertextRecord]]:
        for output in self.outputs:
            yield output.commitment, output.record


# ===================================================================
#  Transactions
# ===================================================================

@dataclass
class Transaction:
    """A deploy, execute or fee transaction."""
    id: str
    type: str
    transitions: list[Transition] = field(default_factory=list)
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_json(cls, data: dict) -> Transaction:
        where = "transaction"
        tx_id = _require(data, "id", str, where)
        tx_type = _require(data, "type", str, where)
        if tx_type not in TRANSACTION_TYPES:
            raise DecodeError(f"Unknown transaction type {tx_type!r}")
        transitions: list[Transition] = []
        execution = data.get("execution")
        if isinstance(execution, dict):
            for item in execution.get("transitions") or []:
                transitions.append(Transition.from_json(item))
        fee = data.get("fee")
        if isinstance(fee, dict) and isinstance(fee.get("transition"), dict):
            transitions.append(Transition.from_json(fee["transition"]))
        return cls(tx_id, tx_type, transitions, data)

    def to_json(self) -> dict:
        return self.raw or {"id": self.id, "type": self.type}

    def records(self) -> Iterator[tuple[Field, CiphertextRecord]]:
        for transition in self.transitions:
            yield from transition.records()


@dataclass
class ConfirmedTransaction:
    status: str
    type: str
    index: int
    transaction: Transaction

    @classmethod
    def from_json(cls, data: dict) -> ConfirmedTransaction:
        where = "confirmed transaction"
        return cls(
            status=_require(data, "status", str, where),
            type=_require(data, "type", str, where),
            index=_require(data, "index", int, where),
            transaction=Transaction.from_json(_require(data, "transaction", dict, where)),
        )

    @property
    def is_accepted(self) -> bool:
        return self.status == "accepted"


# ===================================================================
#  Blocks
# ===================================================================

@dataclass
class Block:
    block_hash: str
    previous_hash: str
    height: int
    transactions: list[ConfirmedTransaction] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict) -> Block:
        where = "block"
        header = _require(data, "header", dict, where)
        metadata = _require(header, "metadata", dict, "block header")
        transactions = [
            ConfirmedTransaction.from_json(item)
            for item in data.get("transactions") or []
        ]
        return cls(
            block_hash=_require(data, "block_hash", str, where),
            previous_hash=_require(data, "previous_hash", str, where),
            height=_require(metadata, "height", int, "block metadata"),
            transactions=transactions,
        )

    def transitions(self) -> Iterator[Transition]:
        for confirmed in self.transactions:
            yield from confirmed.transaction.transitions

    def records(self) -> Iterator[tuple[Field, CiphertextRecord]]:
        """Every record output of every transition, in block order."""
        for transition in self.transitions():
            yield from transition.records()
