"""Card and Color types for UNO."""

from dataclasses import dataclass, field, replace
from enum import Enum


class Color(str, Enum):
    """Card colors. WILD is the suit of a wild card whose color is not bound yet."""

    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    YELLOW = "yellow"
    WILD = "wild"


PLAYABLE_COLORS = (Color.RED, Color.GREEN, Color.BLUE, Color.YELLOW)


class CardKind(str, Enum):
    """Variant of a card, derived from its face value."""

    NUMBERED = "numbered"
    ACTION = "action"
    WILD = "wild"


NUMBER_VALUES = ("0", "1", "2", "3", "4", "5", "6", "7", "8", "9")
ACTION_VALUES = ("skip", "reverse", "draw2")
WILD_VALUES = ("wild", "wild4")
PENALTY_VALUES = ("draw2", "wild4")

CARD_VALUES = NUMBER_VALUES + ACTION_VALUES + WILD_VALUES


@dataclass(frozen=True)
class Card:
    """A UNO card.

    Number/action cards carry one of the four playable colors for life.
    Wild cards start as Color.WILD; the color picked when one is played is
    bound through bind_color(), which returns a new Card with the same id.
    Equality and hashing ignore the color so a bound wild still equals the
    card in the deck.
    """

    card_id: int
    color: Color = field(compare=False)
    value: str
    points: int = 0

    def __post_init__(self) -> None:
        if self.value not in CARD_VALUES:
            raise ValueError(f"Invalid card value: {self.value}")
        if self.value not in WILD_VALUES and self.color not in PLAYABLE_COLORS:
            raise ValueError("Non-wild cards must have a playable color")

    @property
    def kind(self) -> CardKind:
        if self.value in WILD_VALUES:
            return CardKind.WILD
        if self.value in ACTION_VALUES:
            return CardKind.ACTION
        return CardKind.NUMBERED

    @property
    def is_wild(self) -> bool:
        return self.kind is CardKind.WILD

    @property
    def is_bound(self) -> bool:
        """True once a wild card has had its color chosen."""
        return self.is_wild and self.color is not Color.WILD

    def bind_color(self, color: Color) -> "Card":
        """Return this wild card with `color` as its suit."""
        if not self.is_wild:
            raise ValueError(f"Cannot change the color of {self}")
        color = Color(color)
        if color not in PLAYABLE_COLORS:
            raise ValueError(f"Wild cards can only be bound to a playable color, not {color.value}")
        return replace(self, color=color)

    def unbound(self) -> "Card":
        if not self.is_wild:
            return self
        return replace(self, color=Color.WILD)

    def __str__(self) -> str:
        if self.is_wild:
            if self.color is Color.WILD:
                return self.value
            return f"{self.value}({self.color.value})"
        return f"{self.color.value}_{self.value}"
