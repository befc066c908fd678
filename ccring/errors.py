"""
Colored-coin error types.

Every failure aborts the whole spend evaluation; nothing here is recoverable
within a call. A rejected spend has to be re-authored and evaluated again.
"""

from __future__ import annotations

from typing import List


class ColoredCoinError(Exception):
    """Base exception for colored-coin spend rejection."""
    pass


class InvalidLineageProof(ColoredCoinError):
    """A coin bundle failed lineage verification."""

    def __init__(self, role: str, reason: str):
        self.role = role
        self.reason = reason
        super().__init__(f"{role} bundle: {reason}")


class ForbiddenAnnouncement(ColoredCoinError):
    """The inner puzzle tried to emit CREATE_ANNOUNCEMENT itself."""
    pass


class GenesisCheckerFailure(ColoredCoinError):
    """Raised by a genesis coin checker that refuses a coin outright.

    The ring engine propagates this unwrapped.
    """
    pass


class MalformedCondition(ColoredCoinError, ValueError):
    """A condition has an unknown opcode or a bad argument list."""

    def __init__(self, message: str, condition: object = None):
        self.condition = condition
        super().__init__(message)


class InnerPuzzleError(ColoredCoinError):
    """An inner puzzle rejected its solution."""
    pass


class SpendRequestError(ColoredCoinError):
    """A spend-request document failed schema validation."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("Invalid spend request: " + "; ".join(errors))
