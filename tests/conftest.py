"""
Shared pytest fixtures for the aleo-agent test suite.

``FakeChain`` is an in-memory node: blocks are built from JSON exactly as a
real node would return them, and every ``get_blocks_in_range`` call is
recorded so tests can assert on window order.  ``FakeEngine`` stands in for
the proving engine.
"""

from __future__ import annotations

import itertools

import pytest

from aleo_agent.account import KeyManager
from aleo_agent.block import Block, Transaction
from aleo_agent.crypto import ReferenceCryptoProvider
from aleo_agent.errors import ValidationError
from aleo_agent.records import Entry, format_u64

CREDITS = "credits.aleo"


class FakeChain:
    """ChainClient stand-in holding blocks, spent serial numbers and programs."""

    base_url = "http://fake-node:3030"

    def __init__(self, crypto):
        self.crypto = crypto
        self.transitions: dict[int, list[dict]] = {}
        self.spent: dict[str, str] = {}
        self.programs: dict = {}
        self.mappings: dict[tuple[str, str, str], str] = {}
        self.range_calls: list[tuple[int, int]] = []
        self.serial_lookups: list[str] = []
        self.broadcasts: list[Transaction] = []
        self._ids = itertools.count(1)

    # ---- test helpers ----

    def mint(self, height, owner, microcredits=None, program=CREDITS,
             function="transfer_public_to_private", **extra):
        """Add a record for *owner* at *height*; returns its commitment."""
        entries = {}
        if microcredits is not None:
            entries["microcredits"] = Entry(format_u64(microcredits))
        for name, literal in extra.items():
            entries[name] = Entry(literal)
        commitment, record = self.crypto.encrypt_record(owner, entries)
        self.add_output(height, commitment, record.value, program, function)
        return commitment

    def add_output(self, height, commitment, value, program=CREDITS,
                   function="transfer_private"):
        n = next(self._ids)
        self.transitions.setdefault(height, []).append({
            "id": f"au1transition{n}",
            "program": program,
            "function": function,
            "inputs": [],
            "outputs": [
                {"type": "record", "id": str(commitment), "checksum": "0field", "value": value},
            ],
        })

    def spend(self, account, commitment):
        serial_number = self.crypto.serial_number(account.private_key, commitment)
        self.spent[str(serial_number)] = f"au1spender{len(self.spent)}"

    def block_json(self, height):
        transactions = [
            {
                "status": "accepted",
                "type": "execute",
                "index": i,
                "transaction": {
                    "type": "execute",
                    "id": f"at1tx{height}x{i}",
                    "execution": {"transitions": [transition]},
                },
            }
            for i, transition in enumerate(self.transitions.get(height, []))
        ]
        return {
            "block_hash": f"ab1block{height}",
            "previous_hash": f"ab1block{height - 1}",
            "header": {"metadata": {"height": height}},
            "transactions": transactions,
        }

    # ---- ChainClient surface ----

    def get_blocks_in_range(self, start, end):
        if start >= end or end - start > 50:
            raise ValidationError(f"bad block range {start}..{end}")
        self.range_calls.append((start, end))
        return [Block.from_json(self.block_json(h)) for h in range(start, end)]

    def find_transition_id_by_input_or_output_id(self, serial_number):
        self.serial_lookups.append(str(serial_number))
        return self.spent.get(str(serial_number))

    def broadcast_transaction(self, transaction):
        self.broadcasts.append(transaction)
        return transaction.id

    def get_program(self, program_id):
        return self.programs.get(program_id)

    def get_mapping_value(self, program_id, mapping, key):
        return self.mappings.get((program_id, mapping, key))

    def get_program_mappings(self, program_id):
        program = self.programs.get(program_id)
        return list(program.mappings) if program else []

    def get_address_transactions(self, address):
        return list(self.broadcasts)


class FakeEngine:
    """Records every call and returns a synthetic transaction."""

    instances: list[FakeEngine] = []

    def __init__(self):
        self.calls: list[tuple] = []
        FakeEngine.instances.append(self)

    def execute(self, private_key, program_id, function, inputs, fee_record,
                priority_fee, query):
        self.calls.append(("execute", program_id, function, list(inputs), fee_record,
                           priority_fee, query))
        return Transaction(id=f"at1exec{len(FakeEngine.instances)}", type="execute")

    def deploy(self, private_key, program, imports, fee_record, priority_fee, query):
        self.calls.append(("deploy", program.id, dict(imports), fee_record, priority_fee, query))
        return Transaction(id=f"at1deploy{len(FakeEngine.instances)}", type="deploy")


@pytest.fixture
def crypto():
    return ReferenceCryptoProvider()


@pytest.fixture
def key_manager(crypto):
    return KeyManager(crypto)


@pytest.fixture
def alice(key_manager):
    """Deterministic account for Alice."""
    return key_manager.generate_from_seed(1)


@pytest.fixture
def bob(key_manager):
    """Deterministic account for Bob."""
    return key_manager.generate_from_seed(2)


@pytest.fixture
def chain(crypto):
    return FakeChain(crypto)


@pytest.fixture
def engine_factory():
    FakeEngine.instances = []
    return FakeEngine
