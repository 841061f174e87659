"""Card lookup and counting helpers shared by the tests."""

from typing import Optional

from unoengine.engine import Card, Color, Location, create_deck
from unoengine.service import UnoEngine

DECK = create_deck()


def pick(color: Optional[Color], value: str, nth: int = 0) -> Card:
    """The nth card of the standard deck with this color and value (color ignored for wilds)."""
    matches = [c for c in DECK if c.value == value and (c.is_wild or c.color is color)]
    return matches[nth]


def card_total(engine: UnoEngine, game_id: int) -> int:
    store = engine.store
    return (
        len(store.card_ids_at(game_id, Location.IN_DECK))
        + len(store.card_ids_at(game_id, Location.IN_DISCARD))
        + sum(engine.get_hand_counts(game_id).values())
    )
