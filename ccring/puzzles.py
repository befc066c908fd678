"""
Inner puzzles.

An inner puzzle is the spending authorization that runs underneath the
colored-coin wrapper. It is identified by the tree hash of its ``tree()`` and
turns a solution into an ordered list of conditions. The wrapper never trusts
those conditions blindly: CREATE_COIN outputs are re-wrapped and
CREATE_ANNOUNCEMENT is refused (see ``ccring.ring``).
"""

from __future__ import annotations

import hashlib
import hmac
from abc import ABC, abstractmethod
from typing import Any, List, Sequence

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from ccring.conditions import Condition, parse_conditions, reject_announcements
from ccring.errors import InnerPuzzleError
from ccring.treehash import is_bytes32, sha256_tree


class InnerPuzzle(ABC):
    """Spending-authorization capability."""

    @abstractmethod
    def tree(self) -> Any:
        """Tree representation that identifies this puzzle."""

    @abstractmethod
    def solve(self, solution: Any) -> List[Condition]:
        """Run the puzzle; raise InnerPuzzleError if the solution is rejected."""

    def puzzle_hash(self) -> bytes:
        return sha256_tree(self.tree())

    def __call__(self, solution: Any) -> List[Condition]:
        return self.solve(solution)


class PasswordPuzzle(InnerPuzzle):
    """
    Creates one coin for whoever knows the password.

    Solution: ``(password, new_puzzle_hash, amount)``. Not secure on a real
    chain (the password is revealed by the first spend); it exists for
    demonstrations and tests.
    """

    def __init__(self, password_hash: bytes):
        if not is_bytes32(password_hash):
            raise ValueError("password_hash must be 32 bytes")
        self.password_hash = bytes(password_hash)

    @classmethod
    def from_password(cls, password: str) -> "PasswordPuzzle":
        return cls(hashlib.sha256(password.encode("utf-8")).digest())

    def tree(self) -> Any:
        return ["password", self.password_hash]

    def solve(self, solution: Any) -> List[Condition]:
        try:
            password, new_puzzle_hash, amount = solution
        except (TypeError, ValueError):
            raise InnerPuzzleError("solution must be (password, new_puzzle_hash, amount)") from None
        if isinstance(password, str):
            password = password.encode("utf-8")
        digest = hashlib.sha256(password).digest()
        if not hmac.compare_digest(digest, self.password_hash):
            raise InnerPuzzleError("wrong password")
        return [Condition.create_coin(new_puzzle_hash, amount)]


class PayToPublicKey(InnerPuzzle):
    """
    Delegated conditions signed by an Ed25519 key.

    Solution: a list of conditions. The puzzle emits
    ``AGG_SIG_ME(pubkey, sha256_tree(conditions))`` first, so the environment
    only accepts the spend with the key holder's signature over exactly those
    conditions.
    """

    def __init__(self, public_key: Ed25519PublicKey):
        self.public_key = public_key
        self.public_key_bytes = public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    def tree(self) -> Any:
        return ["p2-public-key", self.public_key_bytes]

    def solve(self, solution: Any) -> List[Condition]:
        if not isinstance(solution, (list, tuple)):
            raise InnerPuzzleError("solution must be a list of conditions")
        reject_announcements(solution)
        delegated = parse_conditions(solution)
        message = delegated_conditions_hash(delegated)
        return [Condition.agg_sig_me(self.public_key_bytes, message)] + delegated


class PassThroughPuzzle(InnerPuzzle):
    """Anyone-can-spend: the solution is the condition list."""

    def tree(self) -> Any:
        return ["pass-through"]

    def solve(self, solution: Any) -> List[Condition]:
        if not isinstance(solution, (list, tuple)):
            raise InnerPuzzleError("solution must be a list of conditions")
        reject_announcements(solution)
        return parse_conditions(solution)


def delegated_conditions_hash(conditions: Sequence[Condition]) -> bytes:
    """Message signed for a PayToPublicKey spend."""
    return sha256_tree([c.as_list() for c in conditions])
