"""
Credit transfers.

Four variants, each a ``credits.aleo`` function:

  PRIVATE            transfer_private             record -> record
  PRIVATE_TO_PUBLIC  transfer_private_to_public   record -> public balance
  PUBLIC             transfer_public              balance -> balance
  PUBLIC_TO_PRIVATE  transfer_public_to_private   balance -> record

Private-sourced variants spend a plaintext ``source_record``; the request
carries it, and only those variants may carry it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from aleo_agent.errors import ValidationError
from aleo_agent.keys import Address, PrivateKey
from aleo_agent.records import U64_MAX, PlaintextRecord, Value

logger = logging.getLogger("aleo_agent.transfer")


class TransferType(str, Enum):
    PRIVATE = "transfer_private"
    PRIVATE_TO_PUBLIC = "transfer_private_to_public"
    PUBLIC = "transfer_public"
    PUBLIC_TO_PRIVATE = "transfer_public_to_private"

    @property
    def function_name(self) -> str:
        return self.value

    @property
    def requires_record(self) -> bool:
        return self in (TransferType.PRIVATE, TransferType.PRIVATE_TO_PUBLIC)

    def __str__(self) -> str:
        return self.value


def _check_u64(value: int, what: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U64_MAX:
        raise ValidationError(f"{what} must be a u64 amount of microcredits, got {value!r}")


@dataclass(frozen=True)
class TransferRequest:
    amount: int
    recipient: Address
    transfer_type: TransferType
    priority_fee: int = 0
    source_record: PlaintextRecord | None = None
    fee_record: PlaintextRecord | None = None

    def __post_init__(self):
        _check_u64(self.amount, "amount")
        _check_u64(self.priority_fee, "priority_fee")
        if not isinstance(self.transfer_type, TransferType):
            raise ValidationError(f"Unknown transfer type {self.transfer_type!r}")
        if self.transfer_type.requires_record and self.source_record is None:
            raise ValidationError(f"{self.transfer_type} requires a source record")
        if not self.transfer_type.requires_record and self.source_record is not None:
            raise ValidationError(f"{self.transfer_type} does not take a source record")
        for name in ("source_record", "fee_record"):
            record = getattr(self, name)
            if record is not None and not isinstance(record, PlaintextRecord):
                raise ValidationError(
                    f"{name} must be a plaintext record, got {type(record).__name__}"
                )


class TransferBuilder:
    """Validates transfer requests and turns them into engine inputs."""

    def __init__(self, credits_program: str = "credits.aleo"):
        self.credits_program = credits_program

    @staticmethod
    def function_name(transfer_type: TransferType) -> str:
        return transfer_type.function_name

    def validate(self, request: TransferRequest) -> None:
        if request.transfer_type.requires_record:
            if request.source_record.microcredits < request.amount:
                raise ValidationError(
                    "Credits in amount record must be at least the transfer amount"
                )
        if request.fee_record is not None:
            if request.fee_record.microcredits < request.priority_fee:
                raise ValidationError("Credits in fee record must be at least the priority fee")

    def to_inputs(self, request: TransferRequest) -> list[Value]:
        tail = [Value.from_address(request.recipient), Value.u64(request.amount)]
        if request.transfer_type.requires_record:
            return [Value.from_record(request.source_record)] + tail
        return tail

    def execute(
        self,
        request: TransferRequest,
        private_key: PrivateKey,
        engine,
        chain,
    ) -> str:
        """Validate, prove with *engine*, broadcast through *chain*."""
        self.validate(request)
        return self.submit(request, private_key, engine, chain)

    def submit(
        self,
        request: TransferRequest,
        private_key: PrivateKey,
        engine,
        chain,
    ) -> str:
        """``execute`` for a request that has already passed ``validate``."""
        inputs = self.to_inputs(request)
        transaction = engine.execute(
            private_key,
            self.credits_program,
            request.transfer_type.function_name,
            inputs,
            request.fee_record,
            request.priority_fee,
            chain.base_url,
        )
        logger.info(
            f"Transferring {request.amount} microcredits to {request.recipient} "
            f"via {request.transfer_type}"
        )
        return chain.broadcast_transaction(transaction)
