"""Tournament - play a series of games between the same players and aggregate results."""

from collections import defaultdict
from typing import Any, Dict

from unoengine.orchestration.game_runner import GameRunner


def run_series(
    engine,
    agents: Dict[int, Any],
    num_games: int = 10,
    ai_delay: float = 0.0,
) -> Dict[int, int]:
    """Play `num_games` games with the same seats.

    Seat order alternates between the given order and its reverse so that
    nobody always leads.

    Returns:
        Dict mapping player_id to number of wins.
    """
    player_ids = list(agents)
    wins: Dict[int, int] = defaultdict(int)

    for g in range(num_games):
        order = player_ids if g % 2 == 0 else list(reversed(player_ids))
        ordered_agents = {pid: agents[pid] for pid in order}
        result = GameRunner(engine, ordered_agents, ai_delay=ai_delay).run()
        if result.winner is not None:
            wins[result.winner] += 1

    return dict(wins)
