"""Game state records for UNO."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from unoengine.engine.card import Card, Color
from unoengine.engine.turns import Direction

PlayerID = int
GameID = int


class Phase(str, Enum):
    """Lifecycle of a game."""

    SETUP = "setup"
    ONGOING = "ongoing"
    FINISHED = "finished"


class Location(str, Enum):
    """Where a card of a game's deck currently is."""

    IN_DECK = "in_deck"
    IN_HAND = "in_hand"
    IN_DISCARD = "in_discard"


class PlayerKind(str, Enum):
    HUMAN = "human"
    COMPUTER = "computer"


class MoveAction(str, Enum):
    PLAYED = "played"
    DRAWN_AND_PASSED = "drawn_and_passed"


@dataclass(frozen=True)
class Player:
    """A registered player. Survives across games; score is cumulative."""

    player_id: PlayerID
    name: str
    kind: PlayerKind
    score: int = 0

    @property
    def is_computer(self) -> bool:
        return self.kind is PlayerKind.COMPUTER

    def __str__(self) -> str:
        return f"{self.name} (ID: {self.player_id}, {self.kind.value})"


@dataclass(frozen=True)
class GameState:
    """Persisted state of one game. Replaced wholesale on every committed move."""

    game_id: GameID
    current_player: PlayerID
    direction: Direction = Direction.CLOCKWISE
    top_card_id: Optional[int] = None
    active_color: Optional[Color] = None  # chosen color when the top card is wild
    pending_draws: int = 0  # accumulated draw2/wild4 penalty
    status: Phase = Phase.SETUP
    winner: Optional[PlayerID] = None
    player_order: tuple[PlayerID, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.pending_draws < 0:
            raise ValueError("pending_draws must be >= 0")
        if self.winner is not None and self.status is not Phase.FINISHED:
            raise ValueError("Only a finished game has a winner")

    def evolve(self, **changes) -> "GameState":
        return replace(self, **changes)


@dataclass(frozen=True)
class GameStatus:
    """Read-only view of a game for callers.

    top_card carries the active color, so a wild on top reports the color
    that was chosen for it.
    """

    game_id: GameID
    current_player: PlayerID
    direction: Direction
    top_card: Optional[Card]
    active_color: Optional[Color]
    pending_draws: int
    status: Phase
    winner: Optional[PlayerID]
    player_order: tuple[PlayerID, ...]

    @classmethod
    def from_state(cls, state: GameState, top_card: Optional[Card]) -> "GameStatus":
        if top_card is not None and top_card.is_wild and state.active_color not in (None, Color.WILD):
            top_card = top_card.bind_color(state.active_color)
        return cls(
            game_id=state.game_id,
            current_player=state.current_player,
            direction=state.direction,
            top_card=top_card,
            active_color=state.active_color,
            pending_draws=state.pending_draws,
            status=state.status,
            winner=state.winner,
            player_order=state.player_order,
        )

    @property
    def is_over(self) -> bool:
        return self.status is Phase.FINISHED


@dataclass(frozen=True)
class MoveRecord:
    """One entry of the append-only move log."""

    game_id: GameID
    player_id: PlayerID
    card_id: Optional[int]
    action: MoveAction
    turn_number: int


@dataclass
class GameStatistics:
    """Aggregates over every game in a store."""

    games_finished: int = 0
    turns_played: int = 0
    ai_wins: int = 0
    human_wins: int = 0
    draw2_count: int = 0
    wild4_count: int = 0
