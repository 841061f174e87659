"""Deck creation, random draws and discard recycling."""

import logging
import random
from typing import List, Optional

from unoengine.engine.card import ACTION_VALUES, NUMBER_VALUES, PLAYABLE_COLORS, Card, Color
from unoengine.engine.exceptions import DeckExhausted, GameNotFound, StoreError
from unoengine.engine.game_state import GameID, Location
from unoengine.store.base import StateStore

logger = logging.getLogger(__name__)

DECK_SIZE = 108
ACTION_POINTS = 20
WILD_POINTS = 50


def create_deck() -> List[Card]:
    """Create the standard 108-card UNO set with ids 1..108.

    - 4 colors x (one 0, two each of 1-9, Skip, Reverse, Draw Two): 100 cards
    - 4 Wild, 4 Wild Draw Four: 8 cards
    """
    cards: List[Card] = []

    def add(color: Color, value: str, points: int) -> None:
        cards.append(Card(card_id=len(cards) + 1, color=color, value=value, points=points))

    for color in PLAYABLE_COLORS:
        add(color, "0", 0)
        for value in NUMBER_VALUES[1:]:
            add(color, value, int(value))
            add(color, value, int(value))
        for value in ACTION_VALUES:
            add(color, value, ACTION_POINTS)
            add(color, value, ACTION_POINTS)

    for _ in range(4):
        add(Color.WILD, "wild", WILD_POINTS)
    for _ in range(4):
        add(Color.WILD, "wild4", WILD_POINTS)

    return cards


class Deck:
    """Per-game view of the card locations held in the store.

    Must be used inside a store transaction by the move processor; it never
    opens one itself.
    """

    def __init__(self, store: StateStore, rng: Optional[random.Random] = None):
        self._store = store
        self._rng = rng or random.Random()

    def draw(self, game_id: GameID) -> Card:
        """Pick a random card still in the deck, recycling the discard pile if needed.

        The card is not moved; callers relocate it.
        """
        available = self._store.card_ids_at(game_id, Location.IN_DECK)
        if not available:
            self.recycle(game_id)
            available = self._store.card_ids_at(game_id, Location.IN_DECK)
            if not available:
                raise DeckExhausted(f"Game {game_id} has no cards left to draw")

        card_id = self._rng.choice(available)
        card = self._store.get_card(card_id)
        if card is None:
            raise StoreError(f"Card {card_id} missing from the catalog")
        return card

    def recycle(self, game_id: GameID) -> int:
        """Move every discarded card except the top one back into the deck."""
        state = self._store.get_game(game_id)
        if state is None:
            raise GameNotFound(f"Game {game_id} not found")
        moved = 0
        for card_id in self._store.card_ids_at(game_id, Location.IN_DISCARD):
            if card_id == state.top_card_id:
                continue
            self._store.set_location(game_id, card_id, Location.IN_DECK)
            moved += 1
        logger.info("Deck refilled with %d cards from the discard pile (game %s)", moved, game_id)
        return moved

    def relocate(self, game_id: GameID, card_id: int, location: Location) -> None:
        if self._store.location_of(game_id, card_id) is location:
            return
        self._store.set_location(game_id, card_id, location)
