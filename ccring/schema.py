"""Spend-request documents.

A spend request is a YAML or JSON document describing one ring-spend
evaluation (the three coin bundles, the previous subtotal and the raw inner
conditions). Documents are validated against ``SPEND_REQUEST_SCHEMA`` before
anything is parsed, and every schema violation is reported at once. Inner
conditions are only hex-decoded here; evaluation checks them after the
lineage proofs, exactly as for conditions handed to the engine directly.

The genesis coin checker is a capability, not data, so callers supply it when
evaluating a request.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from jsonschema import Draft202012Validator

from ccring.coin import Coin
from ccring.conditions import ConditionOpcode
from ccring.errors import SpendRequestError
from ccring.genesis import GenesisCoinChecker
from ccring.lineage import CoinBundle, GenesisLineageProof, LineageParameters, ParentLineageProof
from ccring.observability import RingLayer, get_logger
from ccring.ring import RingSpend, default_mod_hash, evaluate

logger = get_logger("schema", RingLayer.SCHEMA)

_HEX32 = {"type": "string", "pattern": "^[0-9a-fA-F]{64}$"}
_HEX = {"type": "string", "pattern": "^([0-9a-fA-F]{2})*$"}
_UINT64 = {"type": "integer", "minimum": 0, "maximum": 2**64 - 1}

SPEND_REQUEST_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$id": "https://ccring.invalid/schemas/spend-request.schema.json",
    "title": "Colored-coin ring spend request",
    "type": "object",
    "required": ["bundles", "prev_subtotal", "inner_conditions"],
    "additionalProperties": False,
    "properties": {
        "mod_hash": _HEX32,
        "prev_subtotal": {"type": "integer"},
        "bundles": {
            "type": "object",
            "required": ["prev", "this", "next"],
            "additionalProperties": False,
            "properties": {
                "prev": {"$ref": "#/$defs/bundle"},
                "this": {"$ref": "#/$defs/bundle"},
                "next": {"$ref": "#/$defs/bundle"},
            },
        },
        "inner_conditions": {
            "type": "array",
            "items": {
                "type": "array",
                "minItems": 1,
                "prefixItems": [{"type": "integer", "enum": [int(op) for op in ConditionOpcode]}],
                "items": {"anyOf": [{"type": "integer"}, _HEX]},
            },
        },
    },
    "$defs": {
        "coin": {
            "type": "object",
            "required": ["parent_id", "puzzle_hash", "amount"],
            "additionalProperties": False,
            "properties": {
                "parent_id": _HEX32,
                "puzzle_hash": _HEX32,
                "amount": _UINT64,
            },
        },
        "lineage_proof": {
            "oneOf": [
                {
                    "type": "object",
                    "required": ["type", "parent_parent_id", "parent_inner_puzzle_hash", "parent_amount"],
                    "additionalProperties": False,
                    "properties": {
                        "type": {"const": "parent"},
                        "parent_parent_id": _HEX32,
                        "parent_inner_puzzle_hash": _HEX32,
                        "parent_amount": _UINT64,
                    },
                },
                {
                    "type": "object",
                    "required": ["type"],
                    "additionalProperties": False,
                    "properties": {
                        "type": {"const": "genesis"},
                        "proof": _HEX,
                    },
                },
            ],
        },
        "bundle": {
            "type": "object",
            "required": ["coin", "lineage_proof"],
            "additionalProperties": False,
            "properties": {
                "coin": {"$ref": "#/$defs/coin"},
                "lineage_proof": {"$ref": "#/$defs/lineage_proof"},
            },
        },
    },
}


@lru_cache(maxsize=1)
def spend_request_validator() -> Draft202012Validator:
    return Draft202012Validator(SPEND_REQUEST_SCHEMA)


def validate_spend_request(obj: Any) -> List[str]:
    """Return schema error messages (empty if valid)."""
    validator = spend_request_validator()
    errors = sorted(validator.iter_errors(obj), key=lambda e: [str(p) for p in e.absolute_path])
    return [f"{error.json_path}: {error.message}" for error in errors]


@dataclass(frozen=True)
class SpendRequest:
    """A parsed spend request."""
    prev_bundle: CoinBundle
    this_bundle: CoinBundle
    next_bundle: CoinBundle
    prev_subtotal: int
    inner_conditions: List[List[Any]]
    mod_hash: Optional[bytes] = None


def _bundle_from_dict(data: Dict[str, Any]) -> CoinBundle:
    proof_data = data["lineage_proof"]
    if proof_data["type"] == "parent":
        proof: Union[ParentLineageProof, GenesisLineageProof] = ParentLineageProof(
            parent_parent_id=bytes.fromhex(proof_data["parent_parent_id"]),
            parent_inner_puzzle_hash=bytes.fromhex(proof_data["parent_inner_puzzle_hash"]),
            parent_amount=int(proof_data["parent_amount"]),
        )
    else:
        proof = GenesisLineageProof(opaque_proof=bytes.fromhex(proof_data.get("proof", "")))
    return CoinBundle(coin=Coin.from_dict(data["coin"]), lineage_proof=proof)


def _condition_from_list(raw: List[Any]) -> List[Any]:
    return [raw[0]] + [bytes.fromhex(a) if isinstance(a, str) else a for a in raw[1:]]


def parse_spend_request(obj: Any) -> SpendRequest:
    """Validate and parse a spend-request document."""
    errors = validate_spend_request(obj)
    if errors:
        logger.warning("Spend request rejected", error_code="schema", errors=errors)
        raise SpendRequestError(errors)

    # Conditions stay raw; the engine checks them after the lineage proofs.
    conditions = [_condition_from_list(raw) for raw in obj["inner_conditions"]]

    bundles = obj["bundles"]
    mod_hash = obj.get("mod_hash")
    return SpendRequest(
        prev_bundle=_bundle_from_dict(bundles["prev"]),
        this_bundle=_bundle_from_dict(bundles["this"]),
        next_bundle=_bundle_from_dict(bundles["next"]),
        prev_subtotal=int(obj["prev_subtotal"]),
        inner_conditions=conditions,
        mod_hash=bytes.fromhex(mod_hash) if mod_hash else None,
    )


def load_spend_request(path: Union[str, Path]) -> SpendRequest:
    """Load a spend request from a YAML or JSON file."""
    path = Path(path)
    with open(path) as f:
        data = yaml.safe_load(f)
    return parse_spend_request(data)


def evaluate_spend_request(request: SpendRequest, genesis_coin_checker: GenesisCoinChecker) -> RingSpend:
    mod_hash = request.mod_hash if request.mod_hash is not None else default_mod_hash()
    lineage_parameters = LineageParameters.create(mod_hash, genesis_coin_checker)
    return evaluate(
        lineage_parameters,
        request.inner_conditions,
        request.prev_bundle,
        request.this_bundle,
        request.next_bundle,
        request.prev_subtotal,
    )
