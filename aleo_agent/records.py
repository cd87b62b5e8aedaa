"""
Record and execution-input types.

A record travels on chain as a ``CiphertextRecord`` (``record1…``) that only
the crypto provider can open.  Decrypting it with the owner's view key
yields a ``PlaintextRecord``:

    {
      owner: aleo1….private,
      microcredits: 1500000u64.private,
      _nonce: 1234…group.public
    }

``Value`` is the tagged input handed to the execution engine: a record, an
address, or a typed literal such as ``1000000u64``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from aleo_agent.errors import ParseError, ValidationError

MICROCREDITS = 1_000_000  # 1 credit = 1_000_000 microcredits
U64_MAX = 2**64 - 1

VISIBILITIES = ("private", "public", "constant")


# ===================================================================
#  Literal / struct helpers
# ===================================================================

def parse_u64(literal: str) -> int:
    """Parse ``123u64`` into an int, enforcing the u64 range."""
    text = literal.strip()
    if not text.endswith("u64") or not text[:-3].isdigit():
        raise ParseError(f"Invalid u64 literal: {literal!r}")
    value = int(text[:-3])
    if value > U64_MAX:
        raise ParseError(f"u64 literal out of range: {literal!r}")
    return value


def format_u64(value: int) -> str:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U64_MAX:
        raise ValidationError(f"{value!r} is not a valid u64 amount")
    return f"{value}u64"


def parse_struct(text: str) -> dict[str, str]:
    """
    Parse a flat ``{name: value, ...}`` struct into an ordered dict.

    Nested structs are not supported.
    """
    body = text.strip()
    if not (body.startswith("{") and body.endswith("}")):
        raise ParseError("Struct must be enclosed in braces")
    body = body[1:-1]
    if "{" in body or "}" in body:
        raise ParseError("Nested structs are not supported")
    members: dict[str, str] = {}
    for part in body.split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, value = part.partition(":")
        name, value = name.strip(), value.strip()
        if not sep or not name or not value:
            raise ParseError(f"Malformed struct member: {part!r}")
        if name in members:
            raise ParseError(f"Duplicate struct member: {name!r}")
        members[name] = value
    return members


def format_struct(members: dict[str, str]) -> str:
    if not members:
        return "{}"
    inner = ",\n".join(f"  {name}: {value}" for name, value in members.items())
    return "{\n" + inner + "\n}"


# ===================================================================
#  Records
# ===================================================================

@dataclass(frozen=True)
class Entry:
    """A record member: a literal plus its visibility."""
    literal: str
    visibility: str = "private"

    def __post_init__(self):
        if self.visibility not in VISIBILITIES:
            raise ParseError(f"Unknown visibility {self.visibility!r}")

    @classmethod
    def from_string(cls, text: str) -> Entry:
        literal, dot, visibility = text.strip().rpartition(".")
        if not dot or not literal:
            raise ParseError(f"Record entry lacks a visibility: {text!r}")
        return cls(literal, visibility)

    def __str__(self) -> str:
        return f"{self.literal}.{self.visibility}"


@dataclass(frozen=True)
class PlaintextRecord:
    """A decrypted record."""
    owner: str
    entries: dict[str, Entry] = field(default_factory=dict)
    nonce: str = ""
    owner_visibility: str = "private"

    @classmethod
    def from_string(cls, text: str) -> PlaintextRecord:
        members = parse_struct(text)
        if "owner" not in members:
            raise ParseError("Record is missing its owner")
        if "_nonce" not in members:
            raise ParseError("Record is missing its _nonce")
        owner = Entry.from_string(members.pop("owner"))
        nonce = Entry.from_string(members.pop("_nonce"))
        entries = {name: Entry.from_string(value) for name, value in members.items()}
        return cls(
            owner=owner.literal,
            entries=entries,
            nonce=nonce.literal,
            owner_visibility=owner.visibility,
        )

    def find(self, name: str) -> Entry | None:
        return self.entries.get(name)

    @property
    def has_microcredits(self) -> bool:
        return "microcredits" in self.entries

    @property
    def microcredits(self) -> int:
        entry = self.find("microcredits")
        if entry is None:
            raise ValidationError("The record provided does not contain a microcredits field")
        return parse_u64(entry.literal)

    @property
    def credits(self) -> float:
        return self.microcredits / MICROCREDITS

    def __str__(self) -> str:
        members = {"owner": f"{self.owner}.{self.owner_visibility}"}
        members.update({name: str(entry) for name, entry in self.entries.items()})
        members["_nonce"] = f"{self.nonce}.public"
        return format_struct(members)


@dataclass(frozen=True)
class CiphertextRecord:
    """An encrypted on-chain record, opaque outside the crypto provider."""
    value: str

    PREFIX = "record1"

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.startswith(self.PREFIX):
            raise ParseError(f"Ciphertext record must start with {self.PREFIX!r}")

    def __str__(self) -> str:
        return self.value


# ===================================================================
#  Execution inputs
# ===================================================================

class ValueKind(str, Enum):
    RECORD = "record"
    ADDRESS = "address"
    LITERAL = "literal"


@dataclass(frozen=True)
class Value:
    """A single function input for the execution engine."""
    kind: ValueKind
    text: str
    record: PlaintextRecord | None = field(default=None, compare=False)

    @classmethod
    def from_record(cls, record: PlaintextRecord) -> Value:
        return cls(ValueKind.RECORD, str(record), record)

    @classmethod
    def from_address(cls, address) -> Value:
        return cls(ValueKind.ADDRESS, str(address))

    @classmethod
    def u64(cls, amount: int) -> Value:
        return cls(ValueKind.LITERAL, format_u64(amount))

    @classmethod
    def literal(cls, text: str) -> Value:
        return cls(ValueKind.LITERAL, text.strip())

    def __str__(self) -> str:
        return self.text
