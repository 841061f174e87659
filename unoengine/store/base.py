"""State store protocol - the persistence boundary of the engine."""

from typing import ContextManager, Dict, Iterable, List, Optional, Protocol, Sequence

from unoengine.engine.card import Card
from unoengine.engine.game_state import (
    GameID,
    GameState,
    GameStatistics,
    Location,
    MoveRecord,
    Player,
    PlayerID,
    PlayerKind,
)


class StateStore(Protocol):
    """Authoritative storage for players, cards, games, decks, hands and moves.

    Implementations serialise access internally. Everything done inside
    transaction() commits together or not at all, and no reader sees a
    partially applied transaction. transaction() is re-entrant: only the
    outermost block commits or rolls back. Persistence failures are raised
    as StoreError.
    """

    def transaction(self) -> ContextManager[None]:
        ...

    def close(self) -> None:
        ...

    @property
    def generation(self) -> int:
        """Bumped by every reset(); ids handed out before and after a reset can collide."""
        ...

    # players
    def add_player(self, name: str, kind: PlayerKind) -> PlayerID:
        ...

    def get_player(self, player_id: PlayerID) -> Optional[Player]:
        ...

    def list_players(self) -> List[Player]:
        """All players ordered by id."""
        ...

    def set_player_score(self, player_id: PlayerID, score: int) -> None:
        ...

    def reset(self) -> None:
        """Forget players, games, decks, hands and moves. The card catalog stays."""
        ...

    # cards
    def load_cards(self, cards: Iterable[Card]) -> None:
        """Register the card catalog. Cards already known are left alone."""
        ...

    def get_card(self, card_id: int) -> Optional[Card]:
        ...

    def card_ids(self) -> List[int]:
        ...

    # games
    def create_game(self, player_order: Sequence[PlayerID]) -> GameID:
        """Insert a game in setup with the first seat to act."""
        ...

    def get_game(self, game_id: GameID) -> Optional[GameState]:
        ...

    def save_game(self, state: GameState) -> None:
        ...

    # deck
    def populate_deck(self, game_id: GameID, card_ids: Iterable[int]) -> None:
        ...

    def card_ids_at(self, game_id: GameID, location: Location) -> List[int]:
        """Card ids at `location`, ascending."""
        ...

    def location_of(self, game_id: GameID, card_id: int) -> Optional[Location]:
        ...

    def set_location(self, game_id: GameID, card_id: int, location: Location) -> None:
        ...

    # hands
    def add_to_hand(self, game_id: GameID, player_id: PlayerID, card_id: int) -> None:
        ...

    def remove_from_hand(self, game_id: GameID, player_id: PlayerID, card_id: int) -> bool:
        """Remove a card from a hand; False if the player did not hold it."""
        ...

    def hand(self, game_id: GameID, player_id: PlayerID) -> List[int]:
        """Card ids held by a player, in the order they were received."""
        ...

    def hand_counts(self, game_id: GameID) -> Dict[PlayerID, int]:
        """Hand size of every seated player, zero included."""
        ...

    # moves
    def append_move(self, record: MoveRecord) -> None:
        ...

    def count_moves(self, game_id: GameID) -> int:
        ...

    def moves(self, game_id: GameID) -> List[MoveRecord]:
        ...

    def statistics(self) -> GameStatistics:
        ...
