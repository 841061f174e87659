"""Tests for the computer strategists and the console agent."""

from types import SimpleNamespace

import pytest

from helpers import pick
from unoengine.agent.protocol import Decision
from unoengine.agents import HeuristicStrategist, HumanAgent, LLMStrategist, decide, pick_color, score_card
from unoengine.agents.llm_agent import _parse_move_response
from unoengine.engine import Color, Direction, GameStatus, Phase


def _status(top, pending_draws: int = 0) -> GameStatus:
    return GameStatus(
        game_id=1,
        current_player=1,
        direction=Direction.CLOCKWISE,
        top_card=top,
        active_color=top.color,
        pending_draws=pending_draws,
        status=Phase.ONGOING,
        winner=None,
        player_order=(1, 2),
    )


def test_score_card() -> None:
    assert score_card(pick(None, "wild4")) == 100
    assert score_card(pick(Color.RED, "draw2")) == 80
    assert score_card(pick(Color.RED, "skip")) == 70
    assert score_card(pick(Color.RED, "reverse")) == 70
    assert score_card(pick(None, "wild")) == 60
    assert score_card(pick(Color.RED, "9")) == 9
    assert score_card(pick(Color.RED, "0")) == 0


def test_decide_prefers_most_aggressive_card() -> None:
    draw2, skip, five = pick(Color.RED, "draw2"), pick(Color.RED, "skip"), pick(Color.RED, "5")
    decision = decide([five, skip, draw2], [five, skip, draw2])
    assert decision == Decision(card=draw2)
    assert decision.color is None


def test_decide_ties_go_to_first_card() -> None:
    skip, reverse = pick(Color.BLUE, "skip"), pick(Color.BLUE, "reverse")
    assert decide([reverse, skip], [reverse, skip]).card == reverse
    assert decide([skip, reverse], [skip, reverse]).card == skip


def test_decide_wild_takes_majority_color() -> None:
    wild4 = pick(None, "wild4")
    hand = [wild4, pick(Color.GREEN, "1"), pick(Color.GREEN, "2"), pick(Color.BLUE, "3")]
    decision = decide([wild4, pick(Color.GREEN, "1")], hand)
    assert decision.card == wild4
    assert decision.color is Color.GREEN


def test_decide_without_legal_moves() -> None:
    with pytest.raises(ValueError):
        decide([], [pick(Color.RED, "1")])


def test_pick_color() -> None:
    assert pick_color([pick(Color.YELLOW, "1"), pick(Color.BLUE, "1"), pick(Color.BLUE, "2")]) is Color.BLUE
    assert pick_color([pick(Color.YELLOW, "1"), pick(Color.BLUE, "1")]) is Color.YELLOW
    assert pick_color([pick(None, "wild")]) is Color.RED
    assert pick_color([]) is Color.RED


def test_heuristic_strategist_passes_without_moves() -> None:
    agent = HeuristicStrategist(name="bot")
    status = _status(pick(Color.RED, "7"))
    hand = [pick(Color.BLUE, "1")]
    assert agent.name == "bot"
    assert agent.choose_move(status, hand, []) is None
    red5 = pick(Color.RED, "5")
    assert agent.choose_move(status, [red5], [red5]) == Decision(card=red5)


def test_parse_move_response() -> None:
    cards = [pick(Color.RED, "5"), pick(None, "wild")]
    assert _parse_move_response('{"card_index": 0}', cards) == (cards[0], None)
    assert _parse_move_response('Sure! {"card_index": 1, "color": "Blue"}', cards) == (cards[1], Color.BLUE)
    assert _parse_move_response("{'card_index': 1, 'color': 'green'}", cards) == (cards[1], Color.GREEN)
    assert _parse_move_response('{"card_index": 1, "color": "purple"}', cards) == (cards[1], None)
    assert _parse_move_response('{"card_index": 5}', cards) is None
    assert _parse_move_response("I would play card_index: 1 and pick yellow", cards) == (cards[1], Color.YELLOW)
    assert _parse_move_response("no idea", cards) is None


class _FakeCompletions:
    def __init__(self, replies):
        self._replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _fake_client(replies):
    completions = _FakeCompletions(replies)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def test_llm_strategist_plays_chosen_card() -> None:
    client, completions = _fake_client(['{"card_index": 1, "color": "yellow"}'])
    agent = LLMStrategist(provider="ollama", model="llama3", client=client)
    legal = [pick(Color.RED, "5"), pick(None, "wild")]
    decision = agent.choose_move(_status(pick(Color.RED, "7")), legal, legal)
    assert decision == Decision(card=legal[1], color=Color.YELLOW)
    assert decision.color is Color.YELLOW
    assert len(completions.calls) == 1
    assert "=== Legal moves ===" in completions.calls[0]["messages"][0]["content"]


def test_llm_strategist_falls_back_to_heuristic() -> None:
    client, completions = _fake_client([RuntimeError("offline"), "pass", "I don't know"])
    agent = LLMStrategist(provider="ollama", model="llama3", client=client)
    legal = [pick(Color.RED, "5"), pick(Color.RED, "draw2")]
    decision = agent.choose_move(_status(pick(Color.RED, "7")), legal, legal)
    assert decision == Decision(card=legal[1])
    assert len(completions.calls) == 3


def test_llm_strategist_rejects_unknown_provider() -> None:
    with pytest.raises(ValueError):
        LLMStrategist(provider="nowhere")


def test_human_agent_plays_by_card_id() -> None:
    red5, wild = pick(Color.RED, "5"), pick(None, "wild")
    answers = iter(["abc", "999", str(wild.card_id), "purple", "Green"])
    lines = []
    agent = HumanAgent(name="You", input_fn=lambda prompt: next(answers), output_fn=lines.append)

    decision = agent.choose_move(_status(pick(Color.RED, "7")), [red5, wild], [red5, wild])

    assert decision == Decision(card=wild, color=Color.GREEN)
    assert decision.color is Color.GREEN
    assert lines.count("Invalid. Try again.") == 3


def test_human_agent_draws_on_enter_or_eof() -> None:
    red5 = pick(Color.RED, "5")
    agent = HumanAgent(input_fn=lambda prompt: "", output_fn=lambda line: None)
    assert agent.choose_move(_status(pick(Color.RED, "7")), [red5], [red5]) is None

    def closed(prompt):
        raise EOFError

    agent = HumanAgent(input_fn=closed, output_fn=lambda line: None)
    assert agent.choose_move(_status(pick(Color.RED, "7")), [red5], []) is None
