"""
ccring: colored-coin ring conservation.

Generates the spend conditions for "colored" (value-preserving, fungible
token) coins. Coins spent together form a ring; each coin only sees its two
neighbours, yet announcements chained around the ring force the total value
created to equal the total value consumed.

Module Index
────────────

    treehash.py       Canonical tree hashing and curried puzzle hashes
    coin.py           Coin ids and announcement ids
    conditions.py     Condition opcodes and the Condition value type
    lineage.py        Lineage proofs and bundle validation
    genesis.py        Genesis coin checkers (minting authority)
    puzzles.py        Inner puzzles (spending authority)
    ring.py           Ring conservation engine
    schema.py         YAML/JSON spend-request documents
    config.py         Configuration (YAML, CCRING_* environment)
    observability.py  Structured logging
"""

__version__ = "0.1.0"


def __getattr__(name):
    """Lazy import ccring modules on first access."""

    if name in ("sha256_tree", "sha256_tree_esc", "curry", "curry_and_treehash", "to_tree"):
        from ccring import treehash
        return getattr(treehash, name)

    if name in ("Coin", "coin_id", "announcement_id", "create_announcement_message"):
        from ccring import coin
        return getattr(coin, name)

    if name in ("Condition", "ConditionOpcode", "parse_condition", "output_total"):
        from ccring import conditions
        return getattr(conditions, name)

    if name in ("LineageParameters", "CoinBundle", "ParentLineageProof", "GenesisLineageProof",
                "cc_puzzle_hash", "is_bundle_valid", "lineage_proof_for_parent",
                "lineage_proof_for_genesis"):
        from ccring import lineage
        return getattr(lineage, name)

    if name in ("GenesisCoinChecker", "AlwaysAuthorize", "GenesisByCoinId", "CallableGenesisChecker"):
        from ccring import genesis
        return getattr(genesis, name)

    if name in ("InnerPuzzle", "PasswordPuzzle", "PayToPublicKey", "PassThroughPuzzle"):
        from ccring import puzzles
        return getattr(puzzles, name)

    if name in ("ColoredCoinPuzzle", "RingSpend", "evaluate", "validate", "CC_MOD_HASH"):
        from ccring import ring
        return getattr(ring, name)

    if name in ("ColoredCoinError", "InvalidLineageProof", "ForbiddenAnnouncement",
                "GenesisCheckerFailure", "MalformedCondition", "InnerPuzzleError",
                "SpendRequestError"):
        from ccring import errors
        return getattr(errors, name)

    raise AttributeError(f"module 'ccring' has no attribute '{name}'")


__all__ = [
    "__version__",
    "Coin",
    "Condition",
    "ConditionOpcode",
    "LineageParameters",
    "CoinBundle",
    "ParentLineageProof",
    "GenesisLineageProof",
    "AlwaysAuthorize",
    "GenesisByCoinId",
    "PasswordPuzzle",
    "PayToPublicKey",
    "ColoredCoinPuzzle",
    "RingSpend",
    "evaluate",
    "validate",
    "cc_puzzle_hash",
    "ColoredCoinError",
    "InvalidLineageProof",
    "ForbiddenAnnouncement",
    "GenesisCheckerFailure",
]
