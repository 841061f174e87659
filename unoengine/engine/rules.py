"""UNO rules: move legality and card effects.

Pure functions; nothing here touches the store.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from unoengine.engine.card import PENALTY_VALUES, Card


@dataclass(frozen=True)
class Effect:
    """Consequence of playing a card."""

    pending_draws: int
    skip_count: int = 0
    flip_direction: bool = False


def validate_move(card: Optional[Card], top_card: Optional[Card], pending_draws: int) -> bool:
    """Check whether `card` may be played onto `top_card`.

    `top_card` is the card as reported by the game status, so a wild on top
    carries the color chosen for it. While a penalty is pending only the
    same penalty card can be stacked; nothing else is legal, wilds included.
    """
    if card is None or top_card is None:
        return False

    if pending_draws > 0:
        return card.value == top_card.value and card.value in PENALTY_VALUES

    if card.is_wild:
        return True

    return card.color == top_card.color or card.value == top_card.value


def legal_moves(hand: Iterable[Card], top_card: Optional[Card], pending_draws: int) -> List[Card]:
    """Cards of `hand` that can be played, in hand order."""
    return [c for c in hand if validate_move(c, top_card, pending_draws)]


def resolve_effect(card: Card, pending_draws: int) -> Effect:
    """Work out what playing `card` does to the turn and the draw stack.

    Penalties add onto whatever is already pending.
    """
    if card.value == "reverse":
        return Effect(pending_draws=0, flip_direction=True)
    if card.value == "skip":
        return Effect(pending_draws=0, skip_count=1)
    if card.value == "draw2":
        return Effect(pending_draws=pending_draws + 2, skip_count=1)
    if card.value == "wild4":
        return Effect(pending_draws=pending_draws + 4, skip_count=1)
    return Effect(pending_draws=0)
