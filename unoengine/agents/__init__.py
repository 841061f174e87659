"""Built-in agents."""

from unoengine.agents.human_agent import HumanAgent
from unoengine.agents.llm_agent import LLMStrategist
from unoengine.agents.strategist import HeuristicStrategist, decide, pick_color, score_card

__all__ = ["HeuristicStrategist", "LLMStrategist", "HumanAgent", "decide", "pick_color", "score_card"]
