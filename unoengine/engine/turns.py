"""Turn order: who plays next."""

from enum import Enum
from typing import Hashable, Sequence, TypeVar

from unoengine.engine.exceptions import PlayerNotFound

P = TypeVar("P", bound=Hashable)


class Direction(str, Enum):
    """Direction of play around the table."""

    CLOCKWISE = "clockwise"
    COUNTERCLOCKWISE = "counterclockwise"

    @property
    def step(self) -> int:
        return 1 if self is Direction.CLOCKWISE else -1

    def flipped(self) -> "Direction":
        if self is Direction.CLOCKWISE:
            return Direction.COUNTERCLOCKWISE
        return Direction.CLOCKWISE


def next_player(
    order: Sequence[P],
    current: P,
    direction: Direction,
    skip_count: int = 0,
) -> P:
    """Return the player who acts after `current`.

    Moves 1 + skip_count seats through `order`, forwards when clockwise and
    backwards otherwise, wrapping around the table.
    """
    if not order:
        raise PlayerNotFound("Cannot determine next player: no players seated")
    if skip_count < 0:
        raise ValueError(f"skip_count must be >= 0, got {skip_count}")
    try:
        idx = list(order).index(current)
    except ValueError:
        raise PlayerNotFound(f"Player {current} is not seated in this game") from None
    steps = (1 + skip_count) * direction.step
    # Python's % is already non-negative for a positive modulus
    return order[(idx + steps) % len(order)]
