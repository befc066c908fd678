"""Canonical tree hashing for puzzle and announcement identity.

A tree is either an atom (``bytes``) or a pair (a 2-tuple of trees). Python
lists are shorthand for proper lists: right-nested pairs terminated by the null
atom ``b""``.

Hashing:
- SHA-256
- Domain separation:
  - atom = SHA256(0x01 || atom_bytes)
  - pair = SHA256(0x02 || hash(left) || hash(right))

Escape hashing takes a set of literal atoms that are *already* tree hashes and
substitutes them directly. This is what lets a curried puzzle hash be computed
from the hashes of its parts without the parts themselves.
"""

from __future__ import annotations

import hashlib
from enum import IntEnum
from typing import Any, FrozenSet, Iterable, List, Sequence, Tuple, Union

Atom = bytes
Tree = Union[bytes, Tuple[Any, Any]]

NIL: bytes = b""

# Operator atoms used by the curry convention.
OP_Q = 1
OP_A = 2
OP_C = 4
ENV = 1


def _sha256(b: bytes) -> bytes:
    return hashlib.sha256(b).digest()


def is_bytes32(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray)) and len(value) == 32


def int_to_atom(v: int) -> bytes:
    """Minimal big-endian two's-complement encoding; zero is the null atom."""
    if v == 0:
        return NIL
    # One spare bit for the sign gives the minimal width.
    byte_count = (v.bit_length() + 8) >> 3
    return v.to_bytes(byte_count, "big", signed=True)


def atom_to_int(atom: bytes) -> int:
    if len(atom) == 0:
        return 0
    return int.from_bytes(atom, "big", signed=True)


def to_atom(value: Any) -> bytes:
    """Convert a scalar to its atom bytes."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, bool):
        raise TypeError("bool is not a tree atom; use 0 or 1")
    if isinstance(value, IntEnum):
        return int_to_atom(int(value))
    if isinstance(value, int):
        return int_to_atom(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    if value is None:
        return NIL
    raise TypeError(f"cannot convert {type(value).__name__} to an atom")


def to_tree(value: Any) -> Tree:
    """Normalize a Python value into atoms and pairs.

    Lists are folded right-to-left so their length never costs stack depth;
    only nesting does.
    """
    if isinstance(value, list):
        tree: Tree = NIL
        for item in reversed(value):
            tree = (to_tree(item), tree)
        return tree
    if isinstance(value, tuple):
        if len(value) != 2:
            raise TypeError("pairs must be 2-tuples; use a list for a proper list")
        return (to_tree(value[0]), to_tree(value[1]))
    if hasattr(value, "to_tree"):
        return value.to_tree()
    return to_atom(value)


def sha256_tree_esc(value: Any, literals: Iterable[bytes] = ()) -> bytes:
    """Tree hash where any atom found in `literals` hashes to itself."""
    escaped: FrozenSet[bytes] = frozenset(bytes(x) for x in literals)
    tree = to_tree(value)

    # Post-order walk with an explicit stack: (node, children_done).
    stack: List[Tuple[Tree, bool]] = [(tree, False)]
    out: List[bytes] = []
    while stack:
        node, expanded = stack.pop()
        if isinstance(node, tuple):
            if expanded:
                right = out.pop()
                left = out.pop()
                out.append(_sha256(b"\x02" + left + right))
            else:
                stack.append((node, True))
                stack.append((node[1], False))
                stack.append((node[0], False))
        elif node in escaped:
            out.append(node)
        else:
            out.append(_sha256(b"\x01" + node))
    return out[0]


def sha256_tree(value: Any) -> bytes:
    """Compute the canonical tree hash of a value."""
    return sha256_tree_esc(value, ())


def curry(mod: Any, args: Sequence[Any]) -> list:
    """Bind `args` to `mod`.

    Produces ``(a (q . mod) (c (q . arg1) (c (q . arg2) ... 1)))``.
    """
    env: Any = ENV
    for arg in reversed(list(args)):
        env = [OP_C, (OP_Q, arg), env]
    return [OP_A, (OP_Q, mod), env]


def curry_and_treehash(mod_hash: bytes, *arg_hashes: bytes) -> bytes:
    """Hash of a curried program, given only the tree hashes of its parts.

    Equal to ``sha256_tree(curry(mod, args))`` whenever ``mod_hash`` is the tree
    hash of ``mod`` and each ``arg_hashes[i]`` is the tree hash of ``args[i]``.
    """
    for h in (mod_hash,) + arg_hashes:
        if not is_bytes32(h):
            raise ValueError("curry_and_treehash expects 32-byte hashes")
    return sha256_tree_esc(curry(mod_hash, arg_hashes), (mod_hash,) + arg_hashes)
