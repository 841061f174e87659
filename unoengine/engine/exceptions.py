"""Exception hierarchy for the UNO engine."""

from __future__ import annotations

__all__ = [
    "UnoError",
    "DeckExhausted",
    "InvalidMove",
    "GameOver",
    "GameNotFound",
    "PlayerNotFound",
    "TransactionFailure",
    "StoreError",
]


class UnoError(Exception):
    """Base exception for the project."""

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"{self.__class__.__name__}({self.args})"


class DeckExhausted(UnoError):
    """Raised when neither the deck nor the recyclable discard pile has a card left."""


class InvalidMove(UnoError):
    """Raised when a move is rejected before anything is written."""


class GameOver(InvalidMove):
    """Raised when a move targets a game that has already finished."""


class GameNotFound(UnoError):
    """Raised when a game id is unknown to the store."""


class PlayerNotFound(UnoError):
    """Raised when a player id is unknown or not seated in the game."""


class TransactionFailure(UnoError):
    """Raised when the store fails mid-transaction; all writes were rolled back."""


class StoreError(Exception):
    """Raised by store implementations for persistence failures."""
