"""
Programs and the per-program helper.

``Program`` is parsed only as far as the agent needs: the program id, its
imports, and the declared function and mapping names.  Bytecode semantics
belong to the execution engine.

``ProgramManager`` is bound to one program id on an ``Agent`` and covers:
  - executing a function (fresh engine per call, then broadcast)
  - listing the program's records owned by the agent
  - reading mapping values and mapping names
  - resolving imports recursively from chain
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from aleo_agent.crypto_utils import Field
from aleo_agent.errors import ParseError, ValidationError
from aleo_agent.keys import Address
from aleo_agent.records import CiphertextRecord, PlaintextRecord, Value

if TYPE_CHECKING:
    from aleo_agent.agent import Agent

logger = logging.getLogger("aleo_agent.program")

IDENTIFIER_MAX_LEN = 31
_IDENTIFIER_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
CREDITS_PROGRAM = "credits.aleo"


def validate_identifier(name: str, what: str = "identifier") -> str:
    if (
        not isinstance(name, str)
        or len(name) > IDENTIFIER_MAX_LEN
        or not _IDENTIFIER_RE.match(name)
    ):
        raise ValidationError(f"Invalid {what}: {name!r}")
    return name


def validate_program_id(program_id: str) -> str:
    if not isinstance(program_id, str) or not program_id.endswith(".aleo"):
        raise ValidationError(f"Invalid program id: {program_id!r}")
    validate_identifier(program_id[: -len(".aleo")], "program name")
    return program_id


# ===================================================================
#  Program source
# ===================================================================

@dataclass(frozen=True)
class Program:
    id: str
    source: str
    imports: tuple[str, ...] = ()
    functions: tuple[str, ...] = ()
    mappings: tuple[str, ...] = ()

    @classmethod
    def from_source(cls, source: str) -> Program:
        """
        Parse the program header and declarations.

            import token.aleo;
            program swap.aleo;
            mapping pools:
            function swap_exact:
        """
        program_id = None
        imports: list[str] = []
        functions: list[str] = []
        mappings: list[str] = []
        for line in source.splitlines():
            line = line.split("//", 1)[0].strip()
            if not line:
                continue
            keyword, _, rest = line.partition(" ")
            rest = rest.strip()
            if keyword == "import" and program_id is None:
                imports.append(cls._statement_target(rest, "import"))
            elif keyword == "program":
                if program_id is not None:
                    raise ParseError("Source declares more than one program")
                program_id = cls._statement_target(rest, "program")
            elif keyword in ("function", "mapping") and rest.endswith(":"):
                name = rest[:-1].strip()
                (functions if keyword == "function" else mappings).append(name)
        if program_id is None:
            raise ParseError("Source does not declare a program")
        return cls(program_id, source, tuple(imports), tuple(functions), tuple(mappings))

    @staticmethod
    def _statement_target(rest: str, keyword: str) -> str:
        if not rest.endswith(";"):
            raise ParseError(f"{keyword} statement must end with ';'")
        target = rest[:-1].strip()
        try:
            return validate_program_id(target)
        except ValidationError as exc:
            raise ParseError(str(exc)) from exc

    def __str__(self) -> str:
        return self.source


# ===================================================================
#  Program manager
# ===================================================================

def _as_value(item) -> Value:
    if isinstance(item, Value):
        return item
    if isinstance(item, PlaintextRecord):
        return Value.from_record(item)
    if isinstance(item, Address):
        return Value.from_address(item)
    if isinstance(item, str):
        text = item.strip()
        if text.startswith(Address.HRP + "1"):
            return Value.from_address(Address.from_string(text))
        return Value.literal(text)
    raise ValidationError(f"Unsupported program input {item!r}")


class ProgramManager:
    """Operations on one deployed program, on behalf of an agent."""

    def __init__(self, agent: Agent, program_id: str):
        self.agent = agent
        self.program_id = validate_program_id(program_id)

    def __repr__(self) -> str:
        return f"ProgramManager({self.program_id})"

    # ---- execution ----

    def execute_program(
        self,
        function: str,
        inputs: Iterable,
        priority_fee: int = 0,
        fee_record: PlaintextRecord | None = None,
    ) -> str:
        """Execute *function* and broadcast it; returns the transaction id."""
        validate_identifier(function, "function name")
        program = self.agent.chain.get_program(self.program_id)
        if program is None:
            raise ValidationError(f"Program {self.program_id} is not deployed")
        if program.functions and function not in program.functions:
            raise ValidationError(f"Program {self.program_id} has no function {function!r}")
        if fee_record is not None and fee_record.microcredits < priority_fee:
            raise ValidationError("Credits in fee record must be at least the priority fee")
        values = [_as_value(item) for item in inputs]
        # raises on a missing or circular import before any proving work
        self.get_import_programs(program)

        engine = self.agent.new_engine()
        transaction = engine.execute(
            self.agent.account.private_key,
            self.program_id,
            function,
            values,
            fee_record,
            priority_fee,
            self.agent.chain.base_url,
        )
        logger.info(f"Executing {self.program_id}/{function} as {transaction.id}")
        return self.agent.chain.broadcast_transaction(transaction)

    # ---- records and state ----

    def get_program_records(
        self, heights: range, unspent_only: bool = False,
    ) -> list[tuple[Field, CiphertextRecord]]:
        return self.agent.scanner.program_records(heights, self.program_id, unspent_only)

    def get_mapping_value(self, mapping: str, key) -> object:
        validate_identifier(mapping, "mapping name")
        return self.agent.chain.get_mapping_value(self.program_id, mapping, str(key))

    def get_program_mappings(self) -> list[str]:
        return self.agent.chain.get_program_mappings(self.program_id)

    # ---- imports ----

    def get_import_programs(self, program: Program) -> dict[str, Program]:
        """
        Every program *program* depends on, dependencies first.

        Raises ValidationError when an import is not on chain or the import
        graph has a cycle.
        """
        found: dict[str, Program] = {}
        self._resolve_imports(program, found, [program.id])
        return found

    def _resolve_imports(self, program: Program, found: dict[str, Program], path: list[str]):
        for import_id in program.imports:
            if import_id in path:
                cycle = " -> ".join(path + [import_id])
                raise ValidationError(f"Circular dependency discovered in program imports: {cycle}")
            if import_id in found:
                continue
            imported = self.agent.chain.get_program(import_id)
            if imported is None:
                raise ValidationError(
                    f"Imported program {import_id} could not be found on the network"
                )
            self._resolve_imports(imported, found, path + [import_id])
            found[import_id] = imported


def deployment_imports(manager: ProgramManager, program: Program) -> dict[str, Program]:
    """Imports to hand to a deployment; the built-in credits program is never included."""
    return {
        pid: imported
        for pid, imported in manager.get_import_programs(program).items()
        if pid != CREDITS_PROGRAM
    }

