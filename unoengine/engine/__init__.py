"""Game engine for UNO."""

from unoengine.engine.card import PLAYABLE_COLORS, Card, CardKind, Color
from unoengine.engine.deck import DECK_SIZE, Deck, create_deck
from unoengine.engine.exceptions import (
    DeckExhausted,
    GameNotFound,
    GameOver,
    InvalidMove,
    PlayerNotFound,
    StoreError,
    TransactionFailure,
    UnoError,
)
from unoengine.engine.game_state import (
    GameState,
    GameStatistics,
    GameStatus,
    Location,
    MoveAction,
    MoveRecord,
    Phase,
    Player,
    PlayerKind,
)
from unoengine.engine.processor import HAND_SIZE, MoveProcessor
from unoengine.engine.rules import Effect, legal_moves, resolve_effect, validate_move
from unoengine.engine.turns import Direction, next_player

__all__ = [
    "Card",
    "CardKind",
    "Color",
    "PLAYABLE_COLORS",
    "create_deck",
    "Deck",
    "DECK_SIZE",
    "HAND_SIZE",
    "GameState",
    "GameStatus",
    "GameStatistics",
    "Location",
    "MoveAction",
    "MoveRecord",
    "Phase",
    "Player",
    "PlayerKind",
    "MoveProcessor",
    "Effect",
    "legal_moves",
    "resolve_effect",
    "validate_move",
    "Direction",
    "next_player",
    "UnoError",
    "DeckExhausted",
    "InvalidMove",
    "GameOver",
    "GameNotFound",
    "PlayerNotFound",
    "TransactionFailure",
    "StoreError",
]
