"""
Execution engine interface.

Proving and transaction construction happen outside this package.  An
engine is created per transfer, execution or deployment (through the
factory given to ``Agent``) and dropped afterwards, so implementations may
keep per-call state such as a loaded program cache.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Sequence

from aleo_agent.block import Transaction
from aleo_agent.keys import PrivateKey
from aleo_agent.program import Program
from aleo_agent.records import PlaintextRecord, Value


class ExecutionEngine(ABC):

    @abstractmethod
    def execute(
        self,
        private_key: PrivateKey,
        program_id: str,
        function: str,
        inputs: Sequence[Value],
        fee_record: PlaintextRecord | None,
        priority_fee: int,
        query: str,
    ) -> Transaction:
        """
        Prove *function* of *program_id* over *inputs* and return an
        ``execute`` transaction.

        The fee is paid from *fee_record* when given, otherwise from the
        public balance.  *query* is the node URL used for state lookups.
        """

    @abstractmethod
    def deploy(
        self,
        private_key: PrivateKey,
        program: Program,
        imports: dict[str, Program],
        fee_record: PlaintextRecord | None,
        priority_fee: int,
        query: str,
    ) -> Transaction:
        """Build a ``deploy`` transaction for *program*."""


EngineFactory = Callable[[], ExecutionEngine]
