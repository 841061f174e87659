"""Public entry point to the engine: one object per open store."""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence

from unoengine.agent.protocol import Decision
from unoengine.agents.strategist import decide
from unoengine.engine import (
    Card,
    Color,
    GameNotFound,
    GameOver,
    GameStatistics,
    GameStatus,
    InvalidMove,
    MoveAction,
    MoveProcessor,
    MoveRecord,
    Phase,
    Player,
    PlayerKind,
    PlayerNotFound,
    create_deck,
    legal_moves,
    validate_move,
)
from unoengine.engine.game_state import GameID, PlayerID
from unoengine.store.base import StateStore

logger = logging.getLogger(__name__)


class UnoEngine:
    """Game operations over an explicit store handle.

    Reads that combine several store lookups and the checks that precede a
    write both run under the game's lock, so callers never observe a move
    half applied and never validate against a state that is about to change.
    """

    def __init__(self, store: StateStore, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        self._store = store
        self._store.load_cards(create_deck())
        self._processor = MoveProcessor(store, rng or random.Random(seed))

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def generation(self) -> int:
        """Changes whenever the store is reset, e.g. by setup_session()."""
        return self._store.generation

    # players

    def create_players(self, names: Sequence[str], kinds: Sequence[PlayerKind]) -> List[PlayerID]:
        if len(names) != len(kinds):
            raise ValueError("names and kinds must have the same length")
        with self._store.transaction():
            ids = [self._store.add_player(name, PlayerKind(kind)) for name, kind in zip(names, kinds)]
        logger.info("Registered players %s", ids)
        return ids

    def setup_session(self, ai_count: int, human_name: str = "You") -> List[PlayerID]:
        """Wipe the store and seat one human with `ai_count` computer players."""
        if ai_count < 1:
            raise ValueError("At least one computer opponent is needed")
        self._store.reset()
        names = [human_name] + [f"AI Bot {i}" for i in range(1, ai_count + 1)]
        kinds = [PlayerKind.HUMAN] + [PlayerKind.COMPUTER] * ai_count
        ids = self.create_players(names, kinds)
        logger.info("Session set up with 1 human and %d computer players", ai_count)
        return ids

    def get_player(self, player_id: PlayerID) -> Player:
        player = self._store.get_player(player_id)
        if player is None:
            raise PlayerNotFound(f"Player {player_id} not found")
        return player

    def list_players(self) -> List[Player]:
        return self._store.list_players()

    # games

    def start_game(self, player_ids: Sequence[PlayerID]) -> GameID:
        return self._processor.start_game(player_ids)

    def get_status(self, game_id: GameID) -> GameStatus:
        with self._processor.game_lock(game_id):
            state = self._store.get_game(game_id)
            if state is None:
                raise GameNotFound(f"Game {game_id} not found")
            top = self._store.get_card(state.top_card_id) if state.top_card_id is not None else None
            return GameStatus.from_state(state, top)

    def get_hand(self, game_id: GameID, player_id: PlayerID) -> List[Card]:
        with self._processor.game_lock(game_id):
            state = self._store.get_game(game_id)
            if state is None:
                raise GameNotFound(f"Game {game_id} not found")
            if player_id not in state.player_order:
                raise PlayerNotFound(f"Player {player_id} is not in game {game_id}")
            return [self._store.get_card(cid) for cid in self._store.hand(game_id, player_id)]

    def get_hand_counts(self, game_id: GameID) -> Dict[PlayerID, int]:
        with self._processor.game_lock(game_id):
            if self._store.get_game(game_id) is None:
                raise GameNotFound(f"Game {game_id} not found")
            return self._store.hand_counts(game_id)

    def get_moves(self, game_id: GameID) -> List[MoveRecord]:
        return self._store.moves(game_id)

    def turn_count(self, game_id: GameID) -> int:
        return self._store.count_moves(game_id)

    def legal_moves(self, game_id: GameID, player_id: PlayerID) -> List[Card]:
        """Cards `player_id` could play right now; empty when it is not their turn."""
        with self._processor.game_lock(game_id):
            status = self.get_status(game_id)
            if status.is_over or status.current_player != player_id:
                return []
            return legal_moves(self.get_hand(game_id, player_id), status.top_card, status.pending_draws)

    @staticmethod
    def validate_move(card: Optional[Card], top_card: Optional[Card], pending_draws: int) -> bool:
        return validate_move(card, top_card, pending_draws)

    def process_move(
        self,
        game_id: GameID,
        player_id: PlayerID,
        card: Optional[Card],
        action: MoveAction,
        chosen_color: Optional[Color] = None,
    ) -> GameStatus:
        """Validate and apply a move; nothing is written if it is rejected."""
        action = MoveAction(action)
        with self._processor.game_lock(game_id):
            status = self._check_turn(game_id, player_id)
            if action is MoveAction.PLAYED:
                if card is None:
                    raise InvalidMove("A played move needs a card")
                held = {c.card_id: c for c in self.get_hand(game_id, player_id)}
                if card.card_id not in held:
                    raise InvalidMove(f"Card {card} is not in player {player_id}'s hand")
                card = held[card.card_id]
                if not validate_move(card, status.top_card, status.pending_draws):
                    raise InvalidMove(f"Cannot play {card} on {status.top_card}")
            self._processor.process_move(game_id, player_id, card, action, chosen_color)
            return self.get_status(game_id)

    def draw_card(self, game_id: GameID, player_id: PlayerID) -> Card:
        """Single voluntary draw on the player's own turn, with no penalty pending."""
        with self._processor.game_lock(game_id):
            status = self._check_turn(game_id, player_id)
            if status.pending_draws:
                raise InvalidMove(
                    f"{status.pending_draws} cards are pending; pass to draw the stack instead"
                )
            return self._processor.draw_card(game_id, player_id)

    def _check_turn(self, game_id: GameID, player_id: PlayerID) -> GameStatus:
        status = self.get_status(game_id)
        if status.status is not Phase.ONGOING:
            raise GameOver(f"Game {game_id} is {status.status.value}")
        if player_id not in status.player_order:
            raise PlayerNotFound(f"Player {player_id} is not in game {game_id}")
        if status.current_player != player_id:
            raise InvalidMove(f"It is player {status.current_player}'s turn, not {player_id}'s")
        return status

    def decide_ai_move(self, legal: Sequence[Card], hand: Sequence[Card]) -> Decision:
        return decide(legal, hand)

    def end_game(self, game_id: GameID, winner_id: PlayerID) -> GameStatus:
        self._processor.end_game(game_id, winner_id)
        return self.get_status(game_id)

    def get_statistics(self) -> GameStatistics:
        return self._store.statistics()
