import hashlib
import os
import pathlib
import sys
from typing import Any, Callable, List, Sequence, Tuple

import pytest


# Ensure repo root is on PYTHONPATH for direct package imports (e.g. `import ccring`).
_REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from ccring.coin import Coin  # noqa: E402
from ccring.conditions import ConditionOpcode  # noqa: E402
from ccring.config import get_config_manager  # noqa: E402
from ccring.genesis import AlwaysAuthorize  # noqa: E402
from ccring.lineage import (  # noqa: E402
    CoinBundle,
    LineageParameters,
    cc_puzzle_hash,
    lineage_proof_for_parent,
)
from ccring.ring import RingSpend, evaluate  # noqa: E402


def h(label: str) -> bytes:
    """Deterministic 32-byte value for a label."""
    return hashlib.sha256(label.encode("utf-8")).digest()


@pytest.fixture(autouse=True)
def _fresh_config():
    get_config_manager().reset()
    yield
    get_config_manager().reset()


@pytest.fixture
def lineage_parameters() -> LineageParameters:
    return LineageParameters.create(h("mod"), AlwaysAuthorize())


@pytest.fixture
def make_cc_bundle(lineage_parameters) -> Callable[..., CoinBundle]:
    """Build a colored coin whose parent was a colored coin of the same type."""

    def _make(amount: int, label: str, parent_amount: int = 1000) -> CoinBundle:
        parent_inner = h(f"{label}/parent-inner")
        parent = Coin(h(f"{label}/grandparent"), cc_puzzle_hash(lineage_parameters, parent_inner), parent_amount)
        coin = Coin(parent.name(), cc_puzzle_hash(lineage_parameters, h(f"{label}/inner")), amount)
        return CoinBundle(coin, lineage_proof_for_parent(parent, parent_inner))

    return _make


@pytest.fixture
def run_ring(lineage_parameters) -> Callable[..., List[Tuple[Coin, RingSpend]]]:
    """Spend every member of a ring in order, chaining subtotals.

    Each member is ``(bundle, inner_conditions)``. The first coin starts from
    ``first_subtotal``; every later coin gets its predecessor's subtotal.
    """

    def _run(members: Sequence[Tuple[CoinBundle, List[Any]]], first_subtotal: int = 0):
        n = len(members)
        spends = []
        subtotal = first_subtotal
        for k, (bundle, inner) in enumerate(members):
            prev_bundle = members[k - 1][0]
            next_bundle = members[(k + 1) % n][0]
            spend = evaluate(lineage_parameters, inner, prev_bundle, bundle, next_bundle, subtotal)
            spends.append((bundle.coin, spend))
            subtotal = spend.this_subtotal
        return spends

    return _run


def environment_accepts(spends: Sequence[Tuple[Coin, RingSpend]]) -> bool:
    """Model of the execution environment's announcement and coin-id checks."""
    created = set()
    asserted = []
    for coin, spend in spends:
        for c in spend.conditions:
            if c.opcode == ConditionOpcode.ASSERT_MY_COIN_ID and c.vars[0] != coin.name():
                return False
            if c.opcode == ConditionOpcode.CREATE_ANNOUNCEMENT:
                created.add(hashlib.sha256(coin.name() + c.vars[0]).digest())
            if c.opcode == ConditionOpcode.ASSERT_ANNOUNCEMENT:
                asserted.append(c.vars[0])
    return all(a in created for a in asserted)


@pytest.fixture
def environment() -> Callable[[Sequence[Tuple[Coin, RingSpend]]], bool]:
    return environment_accepts
