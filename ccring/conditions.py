"""
Spend conditions.

Conditions are the sole output of a spend. The opcode values are a wire
contract with the execution environment and must not change.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ccring.coin import MAX_AMOUNT
from ccring.errors import ForbiddenAnnouncement, MalformedCondition
from ccring.treehash import atom_to_int, is_bytes32, to_tree


class ConditionOpcode(IntEnum):
    """Condition opcodes understood by the execution environment."""
    AGG_SIG = 49
    AGG_SIG_ME = 50
    CREATE_COIN = 51
    CREATE_ANNOUNCEMENT = 52
    ASSERT_ANNOUNCEMENT = 53
    ASSERT_MY_COIN_ID = 54
    ASSERT_SECONDS_AGE_EXCEEDS = 55
    ASSERT_SECONDS_NOW_EXCEEDS = 56
    ASSERT_HEIGHT_AGE_EXCEEDS = 57
    ASSERT_HEIGHT_NOW_EXCEEDS = 58
    RESERVE_FEE = 59


# Argument kinds per opcode: "bytes", "hash" (32 bytes) or "int".
_SIGNATURES: Dict[ConditionOpcode, Tuple[str, ...]] = {
    ConditionOpcode.AGG_SIG: ("bytes", "bytes"),
    ConditionOpcode.AGG_SIG_ME: ("bytes", "bytes"),
    ConditionOpcode.CREATE_COIN: ("hash", "int"),
    ConditionOpcode.CREATE_ANNOUNCEMENT: ("bytes",),
    ConditionOpcode.ASSERT_ANNOUNCEMENT: ("hash",),
    ConditionOpcode.ASSERT_MY_COIN_ID: ("hash",),
    ConditionOpcode.ASSERT_SECONDS_AGE_EXCEEDS: ("int",),
    ConditionOpcode.ASSERT_SECONDS_NOW_EXCEEDS: ("int",),
    ConditionOpcode.ASSERT_HEIGHT_AGE_EXCEEDS: ("int",),
    ConditionOpcode.ASSERT_HEIGHT_NOW_EXCEEDS: ("int",),
    ConditionOpcode.RESERVE_FEE: ("int",),
}


@dataclass(frozen=True)
class Condition:
    """A single condition: opcode plus its arguments."""
    opcode: ConditionOpcode
    vars: Tuple[Any, ...]

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "opcode", ConditionOpcode(self.opcode))
        except ValueError:
            raise MalformedCondition(f"unknown condition opcode {self.opcode}") from None
        object.__setattr__(self, "vars", tuple(self.vars))
        kinds = _SIGNATURES[self.opcode]
        if len(self.vars) != len(kinds):
            raise MalformedCondition(
                f"{self.opcode.name} takes {len(kinds)} arguments, got {len(self.vars)}", self
            )
        for kind, value in zip(kinds, self.vars):
            if kind == "int":
                if isinstance(value, bool) or not isinstance(value, int):
                    raise MalformedCondition(f"{self.opcode.name} expects an int argument", self)
            elif not isinstance(value, bytes):
                raise MalformedCondition(f"{self.opcode.name} expects a bytes argument", self)
            elif kind == "hash" and not is_bytes32(value):
                raise MalformedCondition(f"{self.opcode.name} expects a 32-byte hash", self)
        if self.opcode == ConditionOpcode.CREATE_COIN and not 0 <= self.vars[1] <= MAX_AMOUNT:
            raise MalformedCondition("CREATE_COIN amount out of uint64 range", self)

    # Constructors

    @classmethod
    def agg_sig(cls, pubkey: bytes, message: bytes) -> "Condition":
        return cls(ConditionOpcode.AGG_SIG, (pubkey, message))

    @classmethod
    def agg_sig_me(cls, pubkey: bytes, message: bytes) -> "Condition":
        return cls(ConditionOpcode.AGG_SIG_ME, (pubkey, message))

    @classmethod
    def create_coin(cls, puzzle_hash: bytes, amount: int) -> "Condition":
        return cls(ConditionOpcode.CREATE_COIN, (puzzle_hash, amount))

    @classmethod
    def create_announcement(cls, message: bytes) -> "Condition":
        return cls(ConditionOpcode.CREATE_ANNOUNCEMENT, (message,))

    @classmethod
    def assert_announcement(cls, announcement_id: bytes) -> "Condition":
        return cls(ConditionOpcode.ASSERT_ANNOUNCEMENT, (announcement_id,))

    @classmethod
    def assert_my_coin_id(cls, coin_id: bytes) -> "Condition":
        return cls(ConditionOpcode.ASSERT_MY_COIN_ID, (coin_id,))

    @classmethod
    def reserve_fee(cls, amount: int) -> "Condition":
        return cls(ConditionOpcode.RESERVE_FEE, (amount,))

    # Views

    @property
    def puzzle_hash(self) -> bytes:
        if self.opcode != ConditionOpcode.CREATE_COIN:
            raise AttributeError("only CREATE_COIN carries a puzzle hash")
        return self.vars[0]

    @property
    def amount(self) -> int:
        if self.opcode != ConditionOpcode.CREATE_COIN:
            raise AttributeError("only CREATE_COIN carries an amount")
        return self.vars[1]

    def as_list(self) -> List[Any]:
        return [int(self.opcode), *self.vars]

    def to_tree(self):
        return to_tree(self.as_list())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "opcode": self.opcode.name,
            "vars": [v.hex() if isinstance(v, bytes) else v for v in self.vars],
        }


def opcode_of(raw: Any) -> Optional[int]:
    """Best-effort opcode of a raw or parsed condition, without validating it."""
    if isinstance(raw, Condition):
        return int(raw.opcode)
    if isinstance(raw, (list, tuple)) and raw:
        head = raw[0]
        if isinstance(head, bool):
            return None
        if isinstance(head, int):
            return int(head)
        if isinstance(head, (bytes, bytearray)):
            return atom_to_int(bytes(head))
    return None


def parse_condition(raw: Any) -> Condition:
    """Accept a Condition or a raw ``[opcode, arg, ...]`` sequence."""
    if isinstance(raw, Condition):
        return raw
    op = opcode_of(raw)
    if op is None:
        raise MalformedCondition(f"not a condition: {raw!r}", raw)
    try:
        opcode = ConditionOpcode(op)
    except ValueError:
        raise MalformedCondition(f"unknown condition opcode {op}", raw) from None

    kinds = _SIGNATURES[opcode]
    args = list(raw[1:])
    if len(args) != len(kinds):
        raise MalformedCondition(
            f"{opcode.name} takes {len(kinds)} arguments, got {len(args)}", raw
        )
    values: List[Any] = []
    for kind, arg in zip(kinds, args):
        if isinstance(arg, bytearray):
            arg = bytes(arg)
        if kind == "int" and isinstance(arg, bytes):
            arg = atom_to_int(arg)
        values.append(arg)
    return Condition(opcode, tuple(values))


def reject_announcements(raws: Iterable[Any]) -> None:
    """Raise ForbiddenAnnouncement if any entry is a CREATE_ANNOUNCEMENT.

    Only the opcode is inspected, so this runs before parsing and wins over
    any malformed entry in the same list.
    """
    for raw in raws:
        if opcode_of(raw) == ConditionOpcode.CREATE_ANNOUNCEMENT:
            raise ForbiddenAnnouncement("inner puzzles may not create announcements")


def parse_conditions(raws: Iterable[Any]) -> List[Condition]:
    return [parse_condition(r) for r in raws]


def output_total(conditions: Sequence[Condition]) -> int:
    """Total value of all coins created by CREATE_COIN."""
    return sum(c.amount for c in conditions if c.opcode == ConditionOpcode.CREATE_COIN)
