import hashlib
import sys

import pytest

from ccring.genesis import GenesisByCoinId
from ccring.lineage import LineageParameters, cc_puzzle_hash
from ccring.puzzles import PasswordPuzzle
from ccring.ring import CC_MOD_HASH, CC_MOD_TREE
from ccring.treehash import (
    NIL,
    atom_to_int,
    curry,
    curry_and_treehash,
    int_to_atom,
    sha256_tree,
    sha256_tree_esc,
    to_tree,
)


def _sha(b: bytes) -> bytes:
    return hashlib.sha256(b).digest()


@pytest.mark.parametrize(
    "value,encoded",
    [
        (0, b""),
        (1, b"\x01"),
        (127, b"\x7f"),
        (128, b"\x00\x80"),
        (255, b"\x00\xff"),
        (256, b"\x01\x00"),
        (-1, b"\xff"),
        (-128, b"\x80"),
        (-129, b"\xff\x7f"),
        (-199, b"\xff\x39"),
    ],
)
def test_int_atom_encoding(value, encoded):
    assert int_to_atom(value) == encoded
    assert atom_to_int(encoded) == value


def test_atom_and_pair_domain_separation():
    assert sha256_tree(b"abc") == _sha(b"\x01abc")
    assert sha256_tree(NIL) == _sha(b"\x01")
    left, right = _sha(b"\x01a"), _sha(b"\x01b")
    assert sha256_tree((b"a", b"b")) == _sha(b"\x02" + left + right)


def test_list_is_right_nested_pairs():
    assert to_tree([1, 2]) == (b"\x01", (b"\x02", b""))
    assert sha256_tree([b"x", b"y"]) == sha256_tree((b"x", (b"y", b"")))
    assert sha256_tree([]) == sha256_tree(NIL)


def test_scalar_conversion():
    assert sha256_tree("hello") == sha256_tree(b"hello")
    assert sha256_tree(0) == sha256_tree(b"")
    with pytest.raises(TypeError):
        to_tree(True)
    with pytest.raises(TypeError):
        to_tree((1, 2, 3))
    with pytest.raises(TypeError):
        to_tree(1.5)


def test_long_list_does_not_recurse():
    items = list(range(sys.getrecursionlimit() * 3))
    assert len(sha256_tree(items)) == 32


def test_escape_substitutes_literal_atoms():
    literal = _sha(b"precomputed")
    assert sha256_tree_esc(literal, [literal]) == literal
    assert sha256_tree_esc(literal, []) == _sha(b"\x01" + literal)
    tree = [b"op", literal]
    expected = _sha(b"\x02" + _sha(b"\x01op") + _sha(b"\x02" + literal + _sha(b"\x01")))
    assert sha256_tree_esc(tree, {literal}) == expected


def test_curry_shape():
    assert to_tree(curry(b"M", [b"x"])) == to_tree([2, (1, b"M"), [4, (1, b"x"), 1]])
    assert to_tree(curry(b"M", [])) == to_tree([2, (1, b"M"), 1])


def test_curry_and_treehash_matches_full_program():
    mod = ["some", "program", 7]
    args = [["a", 1], b"hello", ["nested", ["list", -3]]]
    full = sha256_tree(curry(mod, args))
    assert curry_and_treehash(sha256_tree(mod), *[sha256_tree(a) for a in args]) == full


def test_curry_and_treehash_rejects_non_hashes():
    with pytest.raises(ValueError):
        curry_and_treehash(b"short", _sha(b"x"))


def test_cc_puzzle_hash_matches_fully_curried_puzzle():
    checker = GenesisByCoinId(_sha(b"genesis"))
    inner = PasswordPuzzle.from_password("hello")
    lp = LineageParameters.create(CC_MOD_HASH, checker)

    # The mod hash is curried in as an atom; the checker and inner puzzle as programs.
    program = curry(CC_MOD_TREE, [CC_MOD_HASH, checker.tree(), inner.tree()])
    assert sha256_tree(program) == cc_puzzle_hash(lp, inner.puzzle_hash())


def test_cc_puzzle_hash_depends_on_every_parameter():
    inner = _sha(b"inner")
    checker = GenesisByCoinId(_sha(b"genesis"))
    base = cc_puzzle_hash(LineageParameters.create(_sha(b"mod"), checker), inner)

    assert cc_puzzle_hash(LineageParameters.create(_sha(b"mod2"), checker), inner) != base
    other_checker = GenesisByCoinId(_sha(b"genesis"), allow_zero=True)
    assert cc_puzzle_hash(LineageParameters.create(_sha(b"mod"), other_checker), inner) != base
    assert cc_puzzle_hash(LineageParameters.create(_sha(b"mod"), checker), _sha(b"inner2")) != base
    assert cc_puzzle_hash(LineageParameters.create(_sha(b"mod"), checker), inner) == base
