"""Simulate a game between random computer players on an in-memory store."""

import logging
import random

from unoengine.agent.protocol import Decision
from unoengine.agents.strategist import pick_color
from unoengine.engine import PlayerKind
from unoengine.orchestration.game_runner import GameRunner
from unoengine.service import UnoEngine
from unoengine.store import MemoryStore


class RandomAgent:
    def __init__(self, name):
        self.name = name

    def choose_move(self, status, hand, legal_moves):
        if not legal_moves:
            return None
        card = random.choice(legal_moves)
        return Decision(card=card, color=pick_color(hand) if card.is_wild else None)


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    with MemoryStore() as store:
        engine = UnoEngine(store, seed=42)
        names = ["Bot1", "Bot2", "Bot3", "Bot4"]
        ids = engine.create_players(names, [PlayerKind.COMPUTER] * len(names))
        agents = {pid: RandomAgent(name) for pid, name in zip(ids, names)}

        result = GameRunner(engine, agents).run()

        winner = engine.get_player(result.winner).name if result.winner is not None else None
        print(f"Game finished! Winner: {winner}")
        print(f"Turns: {result.num_turns}")
        print(engine.get_statistics())


if __name__ == "__main__":
    main()
