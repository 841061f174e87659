"""Game orchestration."""

from unoengine.orchestration.game_runner import GameResult, GameRunner
from unoengine.orchestration.tournament import run_series

__all__ = ["GameRunner", "GameResult", "run_series"]
