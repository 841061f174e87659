"""Human agent - reads moves from the terminal."""

from typing import Callable, List, Optional

from unoengine.agent.protocol import Decision
from unoengine.engine import PLAYABLE_COLORS, Card, Color, GameStatus


class HumanAgent:
    """Agent that prompts the human for input via terminal."""

    def __init__(
        self,
        name: str = "human",
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ):
        self._name = name
        self._input = input_fn
        self._output = output_fn

    @property
    def name(self) -> str:
        return self._name

    def choose_move(
        self,
        status: GameStatus,
        hand: List[Card],
        legal_moves: List[Card],
    ) -> Optional[Decision]:
        out = self._output
        out("\n--- Your turn ---")
        out("Your hand: " + " ".join(f"[{c.card_id}] {c}" for c in hand))
        out(f"Top discard: {status.top_card}")
        if status.pending_draws:
            out(f"You must stack or draw {status.pending_draws} cards!")
        if not legal_moves:
            out("No playable card. Press ENTER to draw.")
            self._read("")
            return None

        out("\nPlayable: " + " ".join(f"[{c.card_id}] {c}" for c in legal_moves))
        by_id = {c.card_id: c for c in legal_moves}
        while True:
            raw = self._read("Enter card ID to play (or ENTER to draw): ")
            if not raw:
                return None
            try:
                card = by_id[int(raw)]
            except (ValueError, KeyError):
                out("Invalid. Try again.")
                continue
            if card.is_wild:
                return Decision(card=card, color=self._ask_color())
            return Decision(card=card)

    def _ask_color(self) -> Color:
        names = ", ".join(c.value for c in PLAYABLE_COLORS)
        while True:
            raw = self._read(f"Choose next color ({names}, ENTER for red): ").lower()
            if not raw:
                return Color.RED
            for color in PLAYABLE_COLORS:
                if raw == color.value:
                    return color
            self._output("Invalid. Try again.")

    def _read(self, prompt: str) -> str:
        try:
            return self._input(prompt).strip()
        except EOFError:
            return ""
