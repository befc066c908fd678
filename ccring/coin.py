"""Coin and announcement identifiers.

Coin ids must match the execution environment byte-for-byte:

    coin_id = SHA256(parent_id || puzzle_hash || uint64_be(amount))

Announcement ids are what the environment derives from a CREATE_ANNOUNCEMENT
message: the announcing coin's id followed by the message.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, List

from ccring.treehash import is_bytes32, sha256_tree, to_tree

AMOUNT_BYTES = 8
MAX_AMOUNT = (1 << (8 * AMOUNT_BYTES)) - 1


def amount_to_bytes(amount: int) -> bytes:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError("amount must be an int")
    if amount < 0 or amount > MAX_AMOUNT:
        raise ValueError(f"amount out of uint64 range: {amount}")
    return amount.to_bytes(AMOUNT_BYTES, "big")


@dataclass(frozen=True)
class Coin:
    """An unspent value unit: (parent_id, puzzle_hash, amount)."""
    parent_id: bytes
    puzzle_hash: bytes
    amount: int

    def __post_init__(self) -> None:
        if not is_bytes32(self.parent_id):
            raise ValueError("parent_id must be 32 bytes")
        if not is_bytes32(self.puzzle_hash):
            raise ValueError("puzzle_hash must be 32 bytes")
        amount_to_bytes(self.amount)

    def name(self) -> bytes:
        """The coin id."""
        return coin_id(self)

    def as_list(self) -> List[Any]:
        return [self.parent_id, self.puzzle_hash, self.amount]

    def to_tree(self):
        return to_tree(self.as_list())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parent_id": self.parent_id.hex(),
            "puzzle_hash": self.puzzle_hash.hex(),
            "amount": self.amount,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Coin":
        return cls(
            parent_id=bytes.fromhex(data["parent_id"]),
            puzzle_hash=bytes.fromhex(data["puzzle_hash"]),
            amount=int(data["amount"]),
        )


def coin_id(coin: Coin) -> bytes:
    return hashlib.sha256(
        bytes(coin.parent_id) + bytes(coin.puzzle_hash) + amount_to_bytes(coin.amount)
    ).digest()


def create_announcement_message(prev_coin: Coin, prev_subtotal: int) -> bytes:
    """Message this coin announces: commits to the previous coin and subtotal."""
    return sha256_tree([prev_coin.as_list(), prev_subtotal])


def announcement_id(this_coin: Coin, this_subtotal: int, next_coin: Coin) -> bytes:
    """Id of the announcement the next coin is expected to make.

    The next coin announces ``create_announcement_message(this_coin, S)`` with its
    own prev_subtotal S, so the assertion only matches when S == this_subtotal.
    """
    message = create_announcement_message(this_coin, this_subtotal)
    return hashlib.sha256(coin_id(next_coin) + message).digest()
