import hashlib

import pytest
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from ccring.conditions import Condition, ConditionOpcode
from ccring.errors import ForbiddenAnnouncement, InnerPuzzleError, MalformedCondition
from ccring.puzzles import (
    PassThroughPuzzle,
    PasswordPuzzle,
    PayToPublicKey,
    delegated_conditions_hash,
)
from ccring.treehash import sha256_tree

PH = hashlib.sha256(b"destination").digest()


class TestPasswordPuzzle:
    def test_correct_password_creates_coin(self):
        puzzle = PasswordPuzzle.from_password("hello")
        assert puzzle(("hello", PH, 200)) == [Condition.create_coin(PH, 200)]
        assert puzzle((b"hello", PH, 200)) == [Condition.create_coin(PH, 200)]

    def test_wrong_password(self):
        with pytest.raises(InnerPuzzleError, match="wrong password"):
            PasswordPuzzle.from_password("hello")(("hell0", PH, 200))

    @pytest.mark.parametrize("solution", [None, ("hello", PH), ("hello", PH, 1, 2), 5])
    def test_solution_shape(self, solution):
        with pytest.raises(InnerPuzzleError):
            PasswordPuzzle.from_password("hello")(solution)

    def test_bad_output_is_malformed(self):
        with pytest.raises(MalformedCondition):
            PasswordPuzzle.from_password("hello")(("hello", b"short", 1))

    def test_puzzle_hash_depends_on_password(self):
        a = PasswordPuzzle.from_password("a").puzzle_hash()
        b = PasswordPuzzle.from_password("b").puzzle_hash()
        assert a != b
        assert a == sha256_tree(["password", hashlib.sha256(b"a").digest()])

    def test_requires_32_byte_hash(self):
        with pytest.raises(ValueError):
            PasswordPuzzle(b"hello")


class TestPayToPublicKey:
    @pytest.fixture
    def key(self):
        return Ed25519PrivateKey.generate()

    def test_emits_signature_requirement_first(self, key):
        puzzle = PayToPublicKey(key.public_key())
        delegated = [Condition.create_coin(PH, 10), Condition.reserve_fee(1)]

        out = puzzle(delegated)

        assert out[1:] == delegated
        assert out[0].opcode == ConditionOpcode.AGG_SIG_ME
        pk, message = out[0].vars
        assert pk == puzzle.public_key_bytes
        assert len(pk) == 32
        assert message == delegated_conditions_hash(delegated)

    def test_signature_over_message_verifies(self, key):
        puzzle = PayToPublicKey(key.public_key())
        out = puzzle([[51, PH, 10]])
        message = out[0].vars[1]

        key.public_key().verify(key.sign(message), message)

        other = Ed25519PrivateKey.generate()
        with pytest.raises(InvalidSignature):
            key.public_key().verify(other.sign(message), message)

    def test_message_binds_conditions(self, key):
        puzzle = PayToPublicKey(key.public_key())
        a = puzzle([Condition.create_coin(PH, 10)])[0].vars[1]
        b = puzzle([Condition.create_coin(PH, 11)])[0].vars[1]
        assert a != b

    def test_distinct_keys_distinct_puzzles(self, key):
        other = Ed25519PrivateKey.generate()
        assert PayToPublicKey(key.public_key()).puzzle_hash() != PayToPublicKey(other.public_key()).puzzle_hash()

    def test_announcement_refused_before_parsing(self, key):
        with pytest.raises(ForbiddenAnnouncement):
            PayToPublicKey(key.public_key())([[52, b"forged"], [51, b"bad", 1]])

    def test_rejects_non_list(self, key):
        with pytest.raises(InnerPuzzleError):
            PayToPublicKey(key.public_key())("not conditions")


class TestPassThroughPuzzle:
    def test_returns_parsed_conditions(self):
        out = PassThroughPuzzle()([[51, PH, 3], Condition.reserve_fee(2)])
        assert out == [Condition.create_coin(PH, 3), Condition.reserve_fee(2)]

    def test_announcement_refused_before_parsing(self):
        with pytest.raises(ForbiddenAnnouncement):
            PassThroughPuzzle()([[52, b"forged"], [51, b"bad", 1]])

    def test_rejects_non_list(self):
        with pytest.raises(InnerPuzzleError):
            PassThroughPuzzle()(None)
