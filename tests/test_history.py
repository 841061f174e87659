"""Tests for the game runner: full games, turn history and stale computer decisions."""

from helpers import card_total, pick
from unoengine.agent.protocol import Decision
from unoengine.agents import HeuristicStrategist
from unoengine.engine import Color, Location, MoveAction, Phase
from unoengine.orchestration import GameRunner, run_series


class AlwaysDraw:
    name = "always-draw"

    def choose_move(self, status, hand, legal_moves):
        return None


class Cheater:
    """Plays a card it does not hold."""

    name = "cheater"

    def __init__(self, card):
        self.card = card

    def choose_move(self, status, hand, legal_moves):
        return Decision(card=self.card)


class Interrupting:
    """Runs `interrupt` while thinking, then plays its best card anyway."""

    name = "interrupting"

    def __init__(self, interrupt):
        self.interrupt = interrupt
        self.calls = 0

    def choose_move(self, status, hand, legal_moves):
        self.calls += 1
        self.interrupt()
        return Decision(card=legal_moves[0]) if legal_moves else None


def test_computer_game_runs_to_completion(engine, players) -> None:
    agents = {pid: HeuristicStrategist(name=f"bot-{pid}") for pid in players}
    result = GameRunner(engine, agents).run()

    status = engine.get_status(result.game_id)
    assert status.status is Phase.FINISHED
    assert result.winner == status.winner
    assert result.winner in players
    assert result.player_ids == tuple(players)
    assert not result.cancelled
    assert engine.get_hand(result.game_id, result.winner) == []
    assert engine.turn_count(result.game_id) == result.num_turns
    assert card_total(engine, result.game_id) == 108
    assert result.history[-1] == f"{engine.get_player(result.winner).name} wins the game!"
    assert len(result.history) >= result.num_turns


def test_history_lines_follow_moves(engine, players) -> None:
    human = players[0]
    agents = {pid: HeuristicStrategist() for pid in players}
    agents[human] = AlwaysDraw()
    runner = GameRunner(engine, agents)
    result = runner.run()

    assert runner.history == list(result.history)
    human_moves = [m for m in engine.get_moves(result.game_id) if m.player_id == human]
    assert human_moves
    assert all(m.action is MoveAction.DRAWN_AND_PASSED for m in human_moves)
    human_lines = [line for line in result.history if line.startswith("You ")]
    assert len(human_lines) == len(human_moves)
    assert all("drew a card and passed" in line or "must draw the stack" in line for line in human_lines)


def test_unplayable_choice_becomes_a_draw(engine, players, game) -> None:
    human = players[0]
    not_held = engine.store.get_card(engine.store.card_ids_at(game, Location.IN_DECK)[0])
    agents = {pid: HeuristicStrategist() for pid in players}
    agents[human] = Cheater(not_held)

    result = GameRunner(engine, agents, max_turns=1).play(game)

    assert result.num_turns == 1
    assert result.winner is None
    assert result.history == ("You drew a card and passed",)
    (move,) = engine.get_moves(game)
    assert move.action is MoveAction.DRAWN_AND_PASSED
    assert engine.get_hand_counts(game)[human] == 8


def test_wild_choice_is_logged(engine, players, game, rig) -> None:
    human, bot1, bot2 = players
    wild = pick(None, "wild")
    rig(game, {human: [pick(Color.BLUE, "1")], bot1: [wild, pick(Color.BLUE, "2")], bot2: [pick(Color.BLUE, "3")]},
        top=pick(Color.RED, "7"), current=bot1)
    agents = {pid: HeuristicStrategist() for pid in players}

    result = GameRunner(engine, agents, max_turns=1).play(game)

    assert result.history == ("AI Bot 1 played wild (chose blue)",)
    assert engine.get_status(game).active_color is Color.BLUE


def test_cancel_discards_pending_decision(engine, players) -> None:
    bot1, bot2 = players[1], players[2]
    game_id = engine.start_game([bot1, bot2])
    box = {}
    thinker = Interrupting(lambda: box["runner"].cancel())
    runner = GameRunner(engine, {bot1: thinker, bot2: HeuristicStrategist()})
    box["runner"] = runner

    result = runner.play(game_id)

    assert thinker.calls == 1
    assert result.cancelled
    assert result.num_turns == 0
    assert result.winner is None
    assert engine.turn_count(game_id) == 0
    assert engine.get_status(game_id).status is Phase.ONGOING


def test_decision_for_finished_game_is_dropped(engine, players) -> None:
    bot1, bot2 = players[1], players[2]
    game_id = engine.start_game([bot1, bot2])
    thinker = Interrupting(lambda: engine.end_game(game_id, bot2))

    result = GameRunner(engine, {bot1: thinker, bot2: HeuristicStrategist()}).play(game_id)

    assert result.winner == bot2
    assert result.num_turns == 0
    assert engine.turn_count(game_id) == 0
    assert result.history == ("AI Bot 2 wins the game!",)


def test_reset_while_thinking_abandons_the_game(engine, players) -> None:
    bot1, bot2 = players[1], players[2]
    game_id = engine.start_game([bot1, bot2])
    # a fresh session hands out the same player and game ids again
    thinker = Interrupting(lambda: (engine.setup_session(2), engine.start_game([bot1, bot2])))

    result = GameRunner(engine, {bot1: thinker, bot2: HeuristicStrategist()}).play(game_id)

    assert thinker.calls == 1
    assert result.cancelled
    assert result.num_turns == 0
    assert result.winner is None
    assert engine.turn_count(game_id) == 0
    assert engine.get_status(game_id).current_player == bot1


def test_run_series(engine, players) -> None:
    agents = {pid: HeuristicStrategist() for pid in players}
    wins = run_series(engine, agents, num_games=2)

    assert sum(wins.values()) == 2
    assert set(wins) <= set(players)
    stats = engine.get_statistics()
    assert stats.games_finished == 2
    assert stats.ai_wins + stats.human_wins == 2
