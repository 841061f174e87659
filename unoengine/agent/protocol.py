"""Agent protocol - interface that computer strategists and human agents implement."""

from dataclasses import dataclass
from typing import List, Optional, Protocol

from unoengine.engine import Card, Color, GameStatus


@dataclass(frozen=True)
class Decision:
    """A chosen card and, for wilds, the color to continue with."""

    card: Card
    color: Optional[Color] = None


class AgentProtocol(Protocol):
    """Interface for UNO-playing agents."""

    @property
    def name(self) -> str:
        """Display name for the agent."""
        ...

    def choose_move(
        self,
        status: GameStatus,
        hand: List[Card],
        legal_moves: List[Card],
    ) -> Optional[Decision]:
        """Choose a card to play.

        Args:
            status: Public state of the game, top card included.
            hand: The agent's full hand.
            legal_moves: Cards of the hand that can be played right now.

        Returns:
            The card to play (with a color for wilds), or None to draw/pass.
        """
        ...
