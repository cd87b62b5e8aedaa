"""
The ``Agent`` facade: one account acting against one node.

Ties together an ``Account``, a ``ChainClient``, the account's
``CryptoProvider`` and a factory for ``ExecutionEngine`` instances.

Usage:
    from aleo_agent.account import KeyManager
    from aleo_agent.agent import Agent
    from aleo_agent.records import MICROCREDITS
    from aleo_agent.transfer import TransferRequest, TransferType

    account = KeyManager().from_private_key_string("APrivateKey1...")
    with Agent(account, engine_factory=MyEngine) as agent:
        records = agent.get_unspent_records(range(0, 100), 10 * MICROCREDITS)
        tx_id = agent.transfer(TransferRequest(
            amount=1_000_000,
            recipient=bob,
            transfer_type=TransferType.PRIVATE,
            source_record=records[0][1],
        ))
"""

from __future__ import annotations

import logging

from aleo_agent.account import Account
from aleo_agent.block import Transaction
from aleo_agent.chain import ChainClient
from aleo_agent.config import AgentConfig
from aleo_agent.crypto_utils import Field
from aleo_agent.errors import AgentError, DecodeError, ParseError, ValidationError
from aleo_agent.execution import EngineFactory, ExecutionEngine
from aleo_agent.program import CREDITS_PROGRAM, Program, ProgramManager, deployment_imports
from aleo_agent.records import CiphertextRecord, PlaintextRecord, parse_u64
from aleo_agent.scanner import RecordScanner
from aleo_agent.transfer import TransferBuilder, TransferRequest

logger = logging.getLogger("aleo_agent.agent")

ACCOUNT_MAPPING = "account"


class Agent:

    def __init__(
        self,
        account: Account,
        chain: ChainClient | None = None,
        engine_factory: EngineFactory | None = None,
        config: AgentConfig | None = None,
    ):
        self.config = (config or AgentConfig()).validate()
        self.account = account
        self._owns_chain = chain is None
        self.chain = chain if chain is not None else ChainClient(self.config.network)
        self.engine_factory = engine_factory
        self.scanner = RecordScanner(account, self.chain, account.crypto)
        self.transfers = TransferBuilder(self.config.transfer.credits_program)

    def close(self) -> None:
        if self._owns_chain:
            self.chain.close()

    def __enter__(self) -> Agent:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Agent({self.account.address} @ {self.chain.base_url})"

    def new_engine(self) -> ExecutionEngine:
        """A fresh engine for a single execution or deployment."""
        if self.engine_factory is None:
            raise AgentError("No execution engine factory configured")
        return self.engine_factory()

    def program(self, program_id: str) -> ProgramManager:
        return ProgramManager(self, program_id)

    # ---- records ----

    def decrypt_ciphertext_record(self, record: CiphertextRecord | str) -> PlaintextRecord:
        if isinstance(record, str):
            record = CiphertextRecord(record.strip())
        return self.account.crypto.decrypt_record(self.account.view_key, record)

    def get_unspent_records(
        self, heights: range, max_microcredits: int | None = None,
    ) -> list[tuple[Field, PlaintextRecord]]:
        return self.scanner.get_unspent_records(heights, max_microcredits)

    def scan_records(
        self, heights: range, max_records: int | None = None,
    ) -> list[tuple[Field, PlaintextRecord]]:
        return self.scanner.scan_records(heights, max_records)

    # ---- account state ----

    def get_public_balance(self) -> int:
        """Public balance in microcredits; 0 when the account has none."""
        value = self.chain.get_mapping_value(
            CREDITS_PROGRAM, ACCOUNT_MAPPING, str(self.account.address),
        )
        if value is None:
            return 0
        try:
            return parse_u64(value)
        except ParseError as exc:
            raise DecodeError(f"Unexpected public balance value {value!r}") from exc

    def get_transactions(self) -> list[Transaction]:
        return self.chain.get_address_transactions(self.account.address)

    # ---- transfers / deployments ----

    def transfer(self, request: TransferRequest) -> str:
        """Validate, prove and broadcast a transfer; returns the transaction id."""
        self.transfers.validate(request)
        engine = self.new_engine()
        return self.transfers.submit(request, self.account.private_key, engine, self.chain)

    def deploy_program(
        self,
        program: Program,
        priority_fee: int = 0,
        fee_record: PlaintextRecord | None = None,
    ) -> str:
        """Deploy *program*; refuses when it is already on chain or an import is missing."""
        if self.chain.get_program(program.id) is not None:
            raise ValidationError(
                f"Program {program.id} already deployed on chain, cancelling deployment"
            )
        for import_id in program.imports:
            if self.chain.get_program(import_id) is None:
                raise ValidationError(
                    f"Imported program {import_id} could not be found on the network, "
                    f"deploy it before deploying {program.id}"
                )
        if fee_record is not None and fee_record.microcredits < priority_fee:
            raise ValidationError("Credits in fee record must be at least the priority fee")

        imports = deployment_imports(self.program(program.id), program)
        engine = self.new_engine()
        transaction = engine.deploy(
            self.account.private_key,
            program,
            imports,
            fee_record,
            priority_fee,
            self.chain.base_url,
        )
        logger.info(f"Deploying {program.id} as {transaction.id}")
        return self.chain.broadcast_transaction(transaction)
