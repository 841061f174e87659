"""Heuristic move selection for computer players."""

from typing import Dict, List, Optional, Sequence

from unoengine.agent.protocol import Decision
from unoengine.engine import Card, Color, GameStatus

VALUE_SCORES = {
    "wild4": 100,
    "draw2": 80,
    "skip": 70,
    "reverse": 70,
    "wild": 60,
}
FALLBACK_COLOR = Color.RED


def score_card(card: Card) -> int:
    """Attack value of a card; numbers score their face value."""
    if card.value in VALUE_SCORES:
        return VALUE_SCORES[card.value]
    return int(card.value)


def pick_color(hand: Sequence[Card]) -> Color:
    """Most common color among the non-wild cards of `hand`.

    Ties go to the color seen first; an all-wild or empty hand gives red.
    """
    counts: Dict[Color, int] = {}
    for card in hand:
        if card.is_wild:
            continue
        counts[card.color] = counts.get(card.color, 0) + 1
    if not counts:
        return FALLBACK_COLOR
    return max(counts, key=counts.__getitem__)


def decide(legal_moves: Sequence[Card], full_hand: Sequence[Card]) -> Decision:
    """Pick the highest-scoring legal card, first one on ties.

    The caller must draw/pass instead when nothing is legal.
    """
    if not legal_moves:
        raise ValueError("No legal moves to choose from; draw instead")

    best = legal_moves[0]
    best_score = score_card(best)
    for card in legal_moves[1:]:
        score = score_card(card)
        if score > best_score:
            best, best_score = card, score

    if best.is_wild:
        return Decision(card=best, color=pick_color(full_hand))
    return Decision(card=best)


class HeuristicStrategist:
    """Computer player that always plays its most aggressive legal card."""

    def __init__(self, name: str = "heuristic"):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def choose_move(
        self,
        status: GameStatus,
        hand: List[Card],
        legal_moves: List[Card],
    ) -> Optional[Decision]:
        if not legal_moves:
            return None
        return decide(legal_moves, hand)
