"""Ring conservation engine.

Coins locked with the colored-coin puzzle are spent together as a ring
I_1 ... I_n (n >= 1), indices taken mod n so "previous" and "next" wrap. Each
coin k has input amount A_k and creates outputs totalling O_k.

Every spend carries the previous subtotal S_{k-1} and derives

    S_k = S_{k-1} + (A_k - O_k)

Coin k then emits three conditions ahead of its (morphed) inner conditions:

1. ASSERT_MY_COIN_ID I_k, so the coin info it was given is really its own;
2. CREATE_ANNOUNCEMENT committing to (I_{k-1}, S_{k-1});
3. ASSERT_ANNOUNCEMENT for the announcement the next coin must make, which
   commits to (I_k, S_k) and is bound to I_{k+1} by the environment.

The assertion in (3) only matches if coin k+1 was spent with prev_subtotal
equal to S_k. Chained around the ring this gives S_n = S_0, i.e. the sum of
(A_k - O_k) over the ring is zero: the ring's total output equals its total
input. No spend ever sees more than its two neighbours.

Inner puzzles may not create announcements (that would let them forge a
neighbour's commitment), and every CREATE_COIN is re-wrapped so the outputs
are colored coins of the same type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ccring.coin import Coin, announcement_id, coin_id, create_announcement_message
from ccring.conditions import Condition, ConditionOpcode, output_total, parse_conditions, reject_announcements
from ccring.config import get_config
from ccring.errors import ForbiddenAnnouncement, MalformedCondition
from ccring.genesis import GenesisCoinChecker
from ccring.lineage import CoinBundle, LineageParameters, assert_bundle_valid, cc_puzzle_hash
from ccring.observability import RingLayer, get_logger, timed_operation
from ccring.puzzles import InnerPuzzle
from ccring.treehash import sha256_tree

logger = get_logger("engine", RingLayer.RING)

# Identity of this puzzle's logic. Changing the announcement or subtotal
# arithmetic requires a new mod tree, since it is a new coin type.
CC_MOD_TREE = ["colored-coin", "ring-conservation", 1]
CC_MOD_HASH: bytes = sha256_tree(CC_MOD_TREE)


def default_mod_hash() -> bytes:
    """The configured mod hash, or the built-in one."""
    override = get_config().puzzle.mod_hash.get()
    return bytes.fromhex(override) if override else CC_MOD_HASH


@dataclass(frozen=True)
class RingSpend:
    """Result of evaluating one coin's spend."""
    conditions: List[Condition]
    prev_subtotal: int
    this_subtotal: int
    input_amount: int
    output_total: int

    @property
    def debt(self) -> int:
        """Output minus input for this coin."""
        return self.output_total - self.input_amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prev_subtotal": self.prev_subtotal,
            "this_subtotal": self.this_subtotal,
            "input_amount": self.input_amount,
            "output_total": self.output_total,
            "debt": self.debt,
            "conditions": [c.to_dict() for c in self.conditions],
        }


def morph_condition(condition: Condition, lineage_parameters: LineageParameters) -> Condition:
    """Wrap CREATE_COIN puzzle hashes; refuse CREATE_ANNOUNCEMENT."""
    if condition.opcode == ConditionOpcode.CREATE_COIN:
        return Condition.create_coin(
            cc_puzzle_hash(lineage_parameters, condition.puzzle_hash),
            condition.amount,
        )
    if condition.opcode == ConditionOpcode.CREATE_ANNOUNCEMENT:
        raise ForbiddenAnnouncement("inner puzzles may not create announcements")
    return condition


def morph_conditions(
    conditions: Sequence[Condition],
    lineage_parameters: LineageParameters,
) -> List[Condition]:
    return [morph_condition(c, lineage_parameters) for c in conditions]


def _check_inner_conditions(raw_conditions: Sequence[Any]) -> List[Condition]:
    limit = get_config().validation.max_inner_conditions.get()
    if len(raw_conditions) > limit:
        raise MalformedCondition(
            f"inner puzzle emitted {len(raw_conditions)} conditions (limit {limit})"
        )
    reject_announcements(raw_conditions)
    return parse_conditions(raw_conditions)


@timed_operation(logger, "evaluate")
def evaluate(
    lineage_parameters: LineageParameters,
    inner_conditions: Sequence[Any],
    prev_bundle: CoinBundle,
    this_bundle: CoinBundle,
    next_bundle: CoinBundle,
    prev_subtotal: int,
) -> RingSpend:
    """Evaluate one coin's spend; see module docstring for the protocol."""
    if isinstance(prev_subtotal, bool) or not isinstance(prev_subtotal, int):
        raise TypeError("prev_subtotal must be an int")

    assert_bundle_valid(prev_bundle, lineage_parameters, "prev")
    assert_bundle_valid(this_bundle, lineage_parameters, "this")
    assert_bundle_valid(next_bundle, lineage_parameters, "next")

    try:
        conditions = _check_inner_conditions(list(inner_conditions))
    except (ForbiddenAnnouncement, MalformedCondition) as e:
        logger.warning(
            "Inner conditions rejected",
            error_code=type(e).__name__,
            coin_id=coin_id(this_bundle.coin),
            reason=str(e),
        )
        raise

    prev_coin: Coin = prev_bundle.coin
    this_coin: Coin = this_bundle.coin
    next_coin: Coin = next_bundle.coin

    total_out = output_total(conditions)
    this_subtotal = prev_subtotal + (this_coin.amount - total_out)

    final = [
        Condition.assert_my_coin_id(coin_id(this_coin)),
        Condition.create_announcement(create_announcement_message(prev_coin, prev_subtotal)),
        Condition.assert_announcement(announcement_id(this_coin, this_subtotal, next_coin)),
    ]
    final.extend(morph_conditions(conditions, lineage_parameters))

    logger.debug(
        "Ring spend evaluated",
        coin_id=coin_id(this_coin),
        prev_subtotal=prev_subtotal,
        this_subtotal=this_subtotal,
        output_total=total_out,
    )

    return RingSpend(
        conditions=final,
        prev_subtotal=prev_subtotal,
        this_subtotal=this_subtotal,
        input_amount=this_coin.amount,
        output_total=total_out,
    )


def validate(
    lineage_parameters: LineageParameters,
    inner_conditions: Sequence[Any],
    prev_bundle: CoinBundle,
    this_bundle: CoinBundle,
    next_bundle: CoinBundle,
    prev_subtotal: int,
) -> List[Condition]:
    """Output conditions for one coin of the ring, or raise."""
    return evaluate(
        lineage_parameters,
        inner_conditions,
        prev_bundle,
        this_bundle,
        next_bundle,
        prev_subtotal,
    ).conditions


@dataclass
class ColoredCoinPuzzle:
    """
    A colored-coin puzzle: mod hash, genesis coin checker and inner puzzle
    curried together.

    ``puzzle_hash()`` is the hash coins of this type are locked with, and
    ``solve`` runs the inner puzzle and then the ring engine.
    """
    genesis_coin_checker: GenesisCoinChecker
    inner_puzzle: InnerPuzzle
    mod_hash: Optional[bytes] = None
    lineage_parameters: LineageParameters = field(init=False)

    def __post_init__(self) -> None:
        if self.mod_hash is None:
            self.mod_hash = default_mod_hash()
        self.lineage_parameters = LineageParameters.create(self.mod_hash, self.genesis_coin_checker)

    def puzzle_hash(self) -> bytes:
        return cc_puzzle_hash(self.lineage_parameters, self.inner_puzzle.puzzle_hash())

    def spend(
        self,
        inner_puzzle_solution: Any,
        prev_bundle: CoinBundle,
        this_bundle: CoinBundle,
        next_bundle: CoinBundle,
        prev_subtotal: int,
    ) -> RingSpend:
        inner_conditions = self.inner_puzzle(inner_puzzle_solution)
        return evaluate(
            self.lineage_parameters,
            inner_conditions,
            prev_bundle,
            this_bundle,
            next_bundle,
            prev_subtotal,
        )

    def solve(
        self,
        inner_puzzle_solution: Any,
        prev_bundle: CoinBundle,
        this_bundle: CoinBundle,
        next_bundle: CoinBundle,
        prev_subtotal: int,
    ) -> List[Condition]:
        return self.spend(
            inner_puzzle_solution, prev_bundle, this_bundle, next_bundle, prev_subtotal
        ).conditions
