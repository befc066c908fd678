"""
Lineage proofs.

A colored coin is only honoured if its ancestry checks out, which is proven one
generation at a time:

- ParentLineageProof: the coin's parent was itself a colored coin of the same
  type. The proof carries the parent's parent id, inner puzzle hash and amount;
  re-deriving the parent's coin id from those (with the colored-coin puzzle hash
  wrapped around the inner puzzle hash) must reproduce ``coin.parent_id``.
- GenesisLineageProof: the coin starts a lineage; the genesis coin checker that
  is curried into the type decides.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union

from ccring.coin import Coin, coin_id
from ccring.errors import InvalidLineageProof
from ccring.genesis import GenesisCoinChecker
from ccring.observability import RingLayer, get_logger
from ccring.treehash import curry_and_treehash, is_bytes32, sha256_tree

logger = get_logger("lineage", RingLayer.LINEAGE)


@dataclass(frozen=True)
class ParentLineageProof:
    """Proof that the coin's parent was a colored coin."""
    parent_parent_id: bytes
    parent_inner_puzzle_hash: bytes
    parent_amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "parent",
            "parent_parent_id": self.parent_parent_id.hex(),
            "parent_inner_puzzle_hash": self.parent_inner_puzzle_hash.hex(),
            "parent_amount": self.parent_amount,
        }


@dataclass(frozen=True)
class GenesisLineageProof:
    """Opaque proof handed to the genesis coin checker."""
    opaque_proof: bytes = b""

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "genesis", "proof": self.opaque_proof.hex()}


LineageProof = Union[ParentLineageProof, GenesisLineageProof]


@dataclass(frozen=True)
class CoinBundle:
    """A coin together with the proof that it is a colored coin."""
    coin: Coin
    lineage_proof: LineageProof

    def to_dict(self) -> Dict[str, Any]:
        return {"coin": self.coin.to_dict(), "lineage_proof": self.lineage_proof.to_dict()}


@dataclass(frozen=True)
class LineageParameters:
    """
    Parameters fixed per colored-coin type.

    ``mod_hash_hash`` and ``genesis_coin_checker_hash`` are cached tree hashes;
    use ``create`` rather than building this by hand.
    """
    mod_hash: bytes
    mod_hash_hash: bytes
    genesis_coin_checker: GenesisCoinChecker
    genesis_coin_checker_hash: bytes

    @classmethod
    def create(cls, mod_hash: bytes, genesis_coin_checker: GenesisCoinChecker) -> "LineageParameters":
        if not is_bytes32(mod_hash):
            raise ValueError("mod_hash must be 32 bytes")
        return cls(
            mod_hash=bytes(mod_hash),
            mod_hash_hash=sha256_tree(bytes(mod_hash)),
            genesis_coin_checker=genesis_coin_checker,
            genesis_coin_checker_hash=genesis_coin_checker.tree_hash(),
        )


def cc_puzzle_hash(lineage_parameters: LineageParameters, inner_puzzle_hash: bytes) -> bytes:
    """Puzzle hash of a colored coin of this type wrapping `inner_puzzle_hash`."""
    return curry_and_treehash(
        lineage_parameters.mod_hash,
        lineage_parameters.mod_hash_hash,
        lineage_parameters.genesis_coin_checker_hash,
        inner_puzzle_hash,
    )


def is_parent_cc(
    lineage_parameters: LineageParameters,
    coin: Coin,
    proof: ParentLineageProof,
) -> bool:
    try:
        parent = Coin(
            proof.parent_parent_id,
            cc_puzzle_hash(lineage_parameters, proof.parent_inner_puzzle_hash),
            proof.parent_amount,
        )
    except (TypeError, ValueError):
        return False
    return coin.parent_id == coin_id(parent)


def is_bundle_valid(bundle: CoinBundle, lineage_parameters: LineageParameters) -> bool:
    """Check one bundle's lineage proof.

    Exceptions raised by the genesis coin checker are not caught.
    """
    proof = bundle.lineage_proof
    if isinstance(proof, ParentLineageProof):
        return is_parent_cc(lineage_parameters, bundle.coin, proof)
    if isinstance(proof, GenesisLineageProof):
        checker = lineage_parameters.genesis_coin_checker
        return bool(checker(lineage_parameters, bundle.coin, proof.opaque_proof))
    raise TypeError(f"unknown lineage proof type: {type(proof).__name__}")


def assert_bundle_valid(bundle: CoinBundle, lineage_parameters: LineageParameters, role: str) -> None:
    if is_bundle_valid(bundle, lineage_parameters):
        return
    if isinstance(bundle.lineage_proof, ParentLineageProof):
        reason = "parent is not a colored coin of this type"
    else:
        reason = "genesis coin checker refused the coin"
    logger.warning(
        "Lineage proof rejected",
        error_code="invalid_lineage_proof",
        role=role,
        coin_id=coin_id(bundle.coin),
        reason=reason,
    )
    raise InvalidLineageProof(role, reason)


def lineage_proof_for_parent(parent_coin: Coin, parent_inner_puzzle_hash: bytes) -> ParentLineageProof:
    """Proof for a child of `parent_coin`, a colored coin wrapping `parent_inner_puzzle_hash`."""
    return ParentLineageProof(
        parent_parent_id=parent_coin.parent_id,
        parent_inner_puzzle_hash=parent_inner_puzzle_hash,
        parent_amount=parent_coin.amount,
    )


def lineage_proof_for_genesis(opaque_proof: bytes = b"") -> GenesisLineageProof:
    return GenesisLineageProof(opaque_proof=opaque_proof)
