"""Move processor: applies game starts and moves to the store atomically."""

from __future__ import annotations

import logging
import random
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Sequence

from unoengine.engine.card import PLAYABLE_COLORS, Card, Color
from unoengine.engine.deck import DECK_SIZE, Deck
from unoengine.engine.exceptions import (
    GameNotFound,
    GameOver,
    InvalidMove,
    PlayerNotFound,
    StoreError,
    TransactionFailure,
)
from unoengine.engine.game_state import (
    GameID,
    GameState,
    Location,
    MoveAction,
    MoveRecord,
    Phase,
    PlayerID,
)
from unoengine.engine.rules import resolve_effect
from unoengine.engine.turns import next_player
from unoengine.store.base import StateStore

logger = logging.getLogger(__name__)

HAND_SIZE = 7
DEFAULT_WILD_COLOR = Color.RED


class MoveProcessor:
    """The only writer of decks, hands and game states.

    Every public method runs as one store transaction under the game's lock:
    either all of its writes land or none do. Legality is the caller's
    business; the processor only applies.
    """

    def __init__(self, store: StateStore, rng: Optional[random.Random] = None):
        self._store = store
        self._deck = Deck(store, rng)
        self._locks: Dict[GameID, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        self._create_lock = threading.Lock()

    @property
    def deck(self) -> Deck:
        return self._deck

    def game_lock(self, game_id: GameID) -> threading.RLock:
        """Re-entrant lock serialising everything done to one game."""
        with self._locks_guard:
            lock = self._locks.get(game_id)
            if lock is None:
                lock = self._locks[game_id] = threading.RLock()
            return lock

    @contextmanager
    def _transaction(self, what: str) -> Iterator[None]:
        try:
            with self._store.transaction():
                yield
        except StoreError as e:
            logger.error("%s failed, rolled back: %s", what, e)
            raise TransactionFailure(f"{what} failed: {e}") from e

    def _load(self, game_id: GameID) -> GameState:
        state = self._store.get_game(game_id)
        if state is None:
            raise GameNotFound(f"Game {game_id} not found")
        return state

    def start_game(self, player_ids: Sequence[PlayerID], hand_size: int = HAND_SIZE) -> GameID:
        """Create a game, deal the hands and flip the first non-wild card."""
        order = tuple(player_ids)
        if len(order) < 2:
            raise ValueError("A game needs at least 2 players")
        if len(set(order)) != len(order):
            raise ValueError(f"Players listed more than once: {order}")
        if len(order) * hand_size >= DECK_SIZE:
            raise ValueError(f"{len(order)} players x {hand_size} cards leaves nothing to flip")
        for pid in order:
            if self._store.get_player(pid) is None:
                raise PlayerNotFound(f"Player {pid} not found")

        with self._create_lock, self._transaction("Game start"):
            game_id = self._store.create_game(order)
            self._store.populate_deck(game_id, self._store.card_ids())
            logger.info("Deck populated with %d cards for game %s", DECK_SIZE, game_id)

            for pid in order:
                for _ in range(hand_size):
                    self._deal_one(game_id, pid)
                logger.debug("Dealt %d cards to player %s", hand_size, pid)

            first = self._deck.draw(game_id)
            while first.is_wild:
                logger.debug("Flipped %s, drawing again for a starting card", first)
                first = self._deck.draw(game_id)
            self._deck.relocate(game_id, first.card_id, Location.IN_DISCARD)

            state = self._load(game_id).evolve(
                top_card_id=first.card_id,
                active_color=first.color,
                status=Phase.ONGOING,
            )
            self._store.save_game(state)

        logger.info("Game %s started with %s on top, player %s to act", game_id, first, order[0])
        return game_id

    def _deal_one(self, game_id: GameID, player_id: PlayerID) -> Card:
        card = self._deck.draw(game_id)
        self._deck.relocate(game_id, card.card_id, Location.IN_HAND)
        self._store.add_to_hand(game_id, player_id, card.card_id)
        return card

    def draw_card(self, game_id: GameID, player_id: PlayerID) -> Card:
        """Draw a single card into a player's hand. The turn does not move."""
        with self.game_lock(game_id), self._transaction("Draw"):
            state = self._load(game_id)
            if state.status is not Phase.ONGOING:
                raise GameOver(f"Game {game_id} is {state.status.value}")
            if player_id not in state.player_order:
                raise PlayerNotFound(f"Player {player_id} is not in game {game_id}")
            card = self._deal_one(game_id, player_id)
        logger.debug("Player %s drew %s", player_id, card)
        return card

    def process_move(
        self,
        game_id: GameID,
        player_id: PlayerID,
        card: Optional[Card],
        action: MoveAction,
        chosen_color: Optional[Color] = None,
    ) -> GameState:
        """Apply a played card or a draw/pass and return the committed state."""
        action = MoveAction(action)
        with self.game_lock(game_id), self._transaction("Move"):
            state = self._load(game_id)
            if state.status is not Phase.ONGOING:
                raise GameOver(f"Game {game_id} is {state.status.value}")
            if player_id not in state.player_order:
                raise PlayerNotFound(f"Player {player_id} is not in game {game_id}")
            if action is MoveAction.PLAYED and card is None:
                raise InvalidMove("A played move needs a card")

            turn_number = self._store.count_moves(game_id) + 1
            self._store.append_move(MoveRecord(
                game_id=game_id,
                player_id=player_id,
                card_id=card.card_id if card is not None else None,
                action=action,
                turn_number=turn_number,
            ))
            logger.info("Turn %d: player %s %s %s", turn_number, player_id, action.value, card or "")

            if action is MoveAction.PLAYED:
                state = self._apply_play(state, player_id, card, chosen_color)
            else:
                state = self._apply_draw_and_pass(state, player_id)
            self._store.save_game(state)

        if state.status is Phase.FINISHED:
            logger.info("Game %s won by player %s", game_id, player_id)
        else:
            logger.info("Turn passed to player %s", state.current_player)
        return state

    def _apply_play(
        self,
        state: GameState,
        player_id: PlayerID,
        card: Card,
        chosen_color: Optional[Color],
    ) -> GameState:
        game_id = state.game_id
        if not self._store.remove_from_hand(game_id, player_id, card.card_id):
            raise InvalidMove(f"Card {card} is not in player {player_id}'s hand")
        self._deck.relocate(game_id, card.card_id, Location.IN_DISCARD)

        effect = resolve_effect(card, state.pending_draws)
        direction = state.direction
        if effect.flip_direction:
            direction = direction.flipped()
            logger.info("Direction reversed to %s", direction.value)
        if effect.pending_draws:
            logger.info("Draw stack is now %d", effect.pending_draws)

        if card.is_wild:
            color = _wild_color(chosen_color)
        else:
            color = card.color

        state = state.evolve(
            top_card_id=card.card_id,
            current_player=next_player(state.player_order, player_id, direction, effect.skip_count),
            direction=direction,
            active_color=color,
            pending_draws=effect.pending_draws,
        )
        if not self._store.hand(game_id, player_id):
            state = self._finish(state, player_id)
        return state

    def _apply_draw_and_pass(self, state: GameState, player_id: PlayerID) -> GameState:
        penalty = state.pending_draws
        if penalty:
            logger.info("Player %s draws the stack of %d cards", player_id, penalty)
            for _ in range(penalty):
                self._deal_one(state.game_id, player_id)
        return state.evolve(
            current_player=next_player(state.player_order, player_id, state.direction),
            pending_draws=0,
        )

    def end_game(self, game_id: GameID, winner_id: PlayerID) -> GameState:
        """Mark a game finished with `winner_id`. No-op if it already is."""
        with self.game_lock(game_id), self._transaction("End game"):
            state = self._load(game_id)
            if winner_id not in state.player_order:
                raise PlayerNotFound(f"Player {winner_id} is not in game {game_id}")
            if state.status is Phase.FINISHED:
                if state.winner != winner_id:
                    raise GameOver(f"Game {game_id} was already won by player {state.winner}")
                return state
            state = self._finish(state, winner_id)
            self._store.save_game(state)
        logger.info("Game %s marked finished, winner %s", game_id, winner_id)
        return state

    def _finish(self, state: GameState, winner_id: PlayerID) -> GameState:
        """Close the game and credit the winner with the points left in the other hands."""
        points = 0
        for pid in state.player_order:
            if pid == winner_id:
                continue
            for card_id in self._store.hand(state.game_id, pid):
                card = self._store.get_card(card_id)
                points += card.points if card else 0
        winner = self._store.get_player(winner_id)
        if winner is None:
            raise PlayerNotFound(f"Player {winner_id} not found")
        self._store.set_player_score(winner_id, winner.score + points)
        return state.evolve(status=Phase.FINISHED, winner=winner_id)


def _wild_color(chosen: Optional[Color]) -> Color:
    try:
        color = Color(chosen) if chosen is not None else None
    except ValueError:
        color = None
    if color not in PLAYABLE_COLORS:
        logger.warning("No valid color chosen for wild (%r), defaulting to %s", chosen, DEFAULT_WILD_COLOR.value)
        return DEFAULT_WILD_COLOR
    return color
