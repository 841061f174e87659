"""Single game runner."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from unoengine.engine import Card, GameStatus, MoveAction, PlayerKind

if TYPE_CHECKING:
    from unoengine.agent.protocol import AgentProtocol, Decision
    from unoengine.service import UnoEngine

logger = logging.getLogger(__name__)


@dataclass
class GameResult:
    """Result of a game run."""

    game_id: int
    winner: Optional[int]
    num_turns: int
    player_ids: tuple[int, ...]
    history: tuple[str, ...] = field(default_factory=tuple)
    cancelled: bool = False


class GameRunner:
    """Drives one game until someone wins, the turn limit is hit or it is cancelled.

    Human agents decide on the calling thread. Computer agents decide on a
    worker thread; the runner waits for that future before applying the
    move, and drops the decision if the game moved on meanwhile.
    """

    def __init__(
        self,
        engine: "UnoEngine",
        agents: Dict[int, "AgentProtocol"],
        ai_delay: float = 0.0,
        timeout_per_turn: float = 60.0,
        max_turns: int = 1000,
    ):
        self._engine = engine
        self._agents = agents
        self._ai_delay = ai_delay
        self._timeout = timeout_per_turn
        self._max_turns = max_turns
        self._cancelled = threading.Event()
        self._pending: Optional[Future] = None
        self._history: List[str] = []
        self._generation = engine.generation

    def cancel(self) -> None:
        """Abandon the game. An in-flight computer decision is discarded."""
        self._cancelled.set()
        pending = self._pending
        if pending is not None:
            pending.cancel()

    @property
    def history(self) -> List[str]:
        return list(self._history)

    def _log(self, message: str) -> None:
        self._history.append(message)
        logger.info(message)

    def play(self, game_id: int) -> GameResult:
        """Play an already started game.

        Stops early, as cancelled, if the store is reset while the game runs.
        """
        self._generation = self._engine.generation
        player_ids = self._engine.get_status(game_id).player_order
        num_turns = 0
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"uno-ai-{game_id}") as executor:
            while not self._cancelled.is_set() and num_turns < self._max_turns:
                if self._was_reset():
                    break
                status = self._engine.get_status(game_id)
                if status.is_over:
                    break
                if self._take_turn(executor, status):
                    num_turns += 1

        if self._was_reset():
            logger.warning("Store was reset during game %s; abandoning it", game_id)
            return GameResult(
                game_id=game_id,
                winner=None,
                num_turns=num_turns,
                player_ids=tuple(player_ids),
                history=tuple(self._history),
                cancelled=True,
            )

        status = self._engine.get_status(game_id)
        if status.is_over:
            self._log(f"{self._name(status.winner)} wins the game!")
        return GameResult(
            game_id=game_id,
            winner=status.winner,
            num_turns=num_turns,
            player_ids=tuple(player_ids),
            history=tuple(self._history),
            cancelled=self._cancelled.is_set(),
        )

    def _was_reset(self) -> bool:
        return self._engine.generation != self._generation

    def run(self) -> GameResult:
        """Start a game with the runner's agents, seated in the given order, and play it."""
        game_id = self._engine.start_game(list(self._agents))
        return self.play(game_id)

    def _take_turn(self, executor: ThreadPoolExecutor, status: GameStatus) -> bool:
        game_id = status.game_id
        pid = status.current_player
        agent = self._agents[pid]
        hand = self._engine.get_hand(game_id, pid)
        legal = self._engine.legal_moves(game_id, pid)

        if self._engine.get_player(pid).kind is PlayerKind.COMPUTER:
            ok, decision = self._decide_in_background(executor, agent, status, hand, legal)
            if not ok:
                return False
        else:
            decision = agent.choose_move(status, hand, legal)
            if self._was_reset():
                return False

        if decision is not None and decision.card not in legal:
            logger.warning("%s chose %s, which is not playable; drawing instead", agent.name, decision.card)
            decision = None

        self._apply(status, decision)
        return True

    def _decide_in_background(
        self,
        executor: ThreadPoolExecutor,
        agent: "AgentProtocol",
        status: GameStatus,
        hand: List[Card],
        legal: List[Card],
    ) -> Tuple[bool, Optional["Decision"]]:
        turn_before = self._engine.turn_count(status.game_id)

        def think() -> Optional["Decision"]:
            if self._ai_delay and self._cancelled.wait(self._ai_delay):
                return None
            return agent.choose_move(status, hand, legal)

        self._pending = executor.submit(think)
        try:
            decision = self._pending.result(timeout=self._timeout)
        except CancelledError:
            return False, None
        except FutureTimeout:
            self._pending.cancel()
            logger.warning("%s timed out after %ss, drawing instead", agent.name, self._timeout)
            decision = None
        finally:
            self._pending = None

        if self._cancelled.is_set() or self._was_reset():
            logger.warning("Discarding %s's decision: game %s was abandoned", agent.name, status.game_id)
            return False, None
        current = self._engine.get_status(status.game_id)
        stale = (
            current.is_over
            or current.current_player != status.current_player
            or self._engine.turn_count(status.game_id) != turn_before
        )
        if stale:
            logger.warning("Discarding %s's decision: game %s moved on", agent.name, status.game_id)
            return False, None
        return True, decision

    def _apply(self, status: GameStatus, decision: Optional["Decision"]) -> None:
        game_id = status.game_id
        pid = status.current_player
        name = self._name(pid)

        if decision is None:
            if status.pending_draws:
                self._log(f"{name} must draw the stack of {status.pending_draws} cards")
                self._engine.process_move(game_id, pid, None, MoveAction.DRAWN_AND_PASSED)
            else:
                drawn = self._engine.draw_card(game_id, pid)
                self._log(f"{name} drew a card and passed")
                self._engine.process_move(game_id, pid, drawn, MoveAction.DRAWN_AND_PASSED)
            return

        message = f"{name} played {decision.card}"
        if decision.card.is_wild:
            message += f" (chose {decision.color.value if decision.color else 'red'})"
        self._log(message)
        self._engine.process_move(game_id, pid, decision.card, MoveAction.PLAYED, decision.color)

    def _name(self, player_id: Optional[int]) -> str:
        if player_id is None:
            return "nobody"
        return self._engine.get_player(player_id).name
