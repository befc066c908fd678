"""
Genesis coin checkers.

A genesis coin checker decides whether a coin may start a new colored-coin
lineage (i.e. mint). It is curried into every colored-coin puzzle hash through
its tree hash, so two checkers with different trees define different coin
types. The ring engine never looks inside a checker: it calls it and uses the
truthiness of the result. Exceptions raised by a checker propagate unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

from ccring.treehash import is_bytes32, sha256_tree

if TYPE_CHECKING:
    from ccring.coin import Coin
    from ccring.lineage import LineageParameters


class GenesisCoinChecker(ABC):
    """Minting-authority capability."""

    @abstractmethod
    def tree(self) -> Any:
        """Tree representation that identifies this checker."""

    @abstractmethod
    def check(self, lineage_parameters: "LineageParameters", coin: "Coin", proof: bytes) -> bool:
        """Return truthy if `coin` is authorized to begin a lineage."""

    def tree_hash(self) -> bytes:
        return sha256_tree(self.tree())

    def __call__(self, lineage_parameters: "LineageParameters", coin: "Coin", proof: bytes) -> bool:
        return self.check(lineage_parameters, coin, proof)


class AlwaysAuthorize(GenesisCoinChecker):
    """Authorizes every coin. Only useful for tests and demonstrations."""

    def tree(self) -> Any:
        return ["always-authorize"]

    def check(self, lineage_parameters, coin, proof) -> bool:
        return True


class GenesisByCoinId(GenesisCoinChecker):
    """
    Authorizes coins whose parent is one specific genesis coin.

    With ``allow_zero`` set, any coin of amount 0 is authorized as well, which
    lets anyone create zero-value coins of the type (used for offers and
    change without value). The opaque proof is not consulted.
    """

    def __init__(self, genesis_coin_id: bytes, allow_zero: bool = False):
        if not is_bytes32(genesis_coin_id):
            raise ValueError("genesis_coin_id must be 32 bytes")
        self.genesis_coin_id = bytes(genesis_coin_id)
        self.allow_zero = allow_zero

    def tree(self) -> Any:
        name = "genesis-by-coin-id-with-0" if self.allow_zero else "genesis-by-coin-id"
        return [name, self.genesis_coin_id]

    def check(self, lineage_parameters, coin, proof) -> bool:
        if coin.parent_id == self.genesis_coin_id:
            return True
        return self.allow_zero and coin.amount == 0

    def __repr__(self) -> str:
        return f"GenesisByCoinId({self.genesis_coin_id.hex()}, allow_zero={self.allow_zero})"


class CallableGenesisChecker(GenesisCoinChecker):
    """Adapts a plain ``(lineage_parameters, coin, proof) -> bool`` callable.

    `name` stands in for the checker's code in its identity tree, so distinct
    callables must be given distinct names.
    """

    def __init__(self, func: Callable[..., Any], name: str):
        self._func = func
        self.name = name

    def tree(self) -> Any:
        return ["callable", self.name]

    def check(self, lineage_parameters, coin, proof) -> bool:
        return self._func(lineage_parameters, coin, proof)
