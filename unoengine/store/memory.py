"""In-process state store."""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from unoengine.engine.card import Card
from unoengine.engine.exceptions import StoreError
from unoengine.engine.game_state import (
    GameState,
    GameStatistics,
    Location,
    MoveAction,
    MoveRecord,
    Phase,
    Player,
    PlayerKind,
)

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class _Tables:
    players: Dict[int, Player] = field(default_factory=dict)
    games: Dict[int, GameState] = field(default_factory=dict)
    # the rest is keyed by game id first
    deck: Dict[int, Dict[int, Location]] = field(default_factory=dict)
    hands: Dict[int, Dict[int, List[int]]] = field(default_factory=dict)
    holders: Dict[int, Dict[int, int]] = field(default_factory=dict)
    moves: Dict[int, List[MoveRecord]] = field(default_factory=dict)
    next_player_id: int = 1
    next_game_id: int = 1


class MemoryStore:
    """StateStore kept in dictionaries.

    A transaction holds the store lock from start to end. Each write made
    inside it pushes its inverse onto an undo journal, and an exception
    replays the journal backwards. A write touches only the rows of its own
    game, whatever the store held before.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._journal: Optional[List[Callable[[], None]]] = None
        self._cards: Dict[int, Card] = {}
        self._tables = _Tables()
        self._generation = 0
        self._closed = False

    def __enter__(self) -> "MemoryStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def generation(self) -> int:
        return self._generation

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            self._check_open()
            if self._journal is not None:
                yield
                return

            self._journal = []
            try:
                yield
            except BaseException:
                journal, self._journal = self._journal, None
                for undo in reversed(journal):
                    undo()
                logger.debug("Memory store transaction rolled back (%d writes)", len(journal))
                raise
            finally:
                self._journal = None

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise StoreError("Store is closed")

    # journal

    def _record(self, undo: Callable[[], None]) -> None:
        if self._journal is not None:
            self._journal.append(undo)

    def _put(self, table: Dict[Any, Any], key: Any, value: Any) -> None:
        old = table.get(key, _MISSING)
        table[key] = value

        def undo() -> None:
            if old is _MISSING:
                del table[key]
            else:
                table[key] = old

        self._record(undo)

    def _drop(self, table: Dict[Any, Any], key: Any) -> None:
        old = table.pop(key)
        self._record(lambda: table.__setitem__(key, old))

    def _rows(self, table: Dict[int, Dict[int, Any]], game_id: int) -> Dict[int, Any]:
        rows = table.get(game_id)
        if rows is None:
            rows = {}
            self._put(table, game_id, rows)
        return rows

    def _next_id(self, counter: str) -> int:
        tables = self._tables
        value = getattr(tables, counter)
        setattr(tables, counter, value + 1)
        self._record(lambda: setattr(tables, counter, value))
        return value

    # players

    def add_player(self, name: str, kind: PlayerKind) -> int:
        with self._lock:
            self._check_open()
            pid = self._next_id("next_player_id")
            self._put(self._tables.players, pid, Player(player_id=pid, name=name, kind=PlayerKind(kind)))
            return pid

    def get_player(self, player_id: int) -> Optional[Player]:
        with self._lock:
            return self._tables.players.get(player_id)

    def list_players(self) -> List[Player]:
        with self._lock:
            return [self._tables.players[pid] for pid in sorted(self._tables.players)]

    def set_player_score(self, player_id: int, score: int) -> None:
        with self._lock:
            self._check_open()
            player = self._tables.players.get(player_id)
            if player is None:
                raise StoreError(f"No player {player_id}")
            self._put(self._tables.players, player_id, Player(player.player_id, player.name, player.kind, score))

    def reset(self) -> None:
        with self._lock:
            self._check_open()
            old = self._tables
            self._tables = _Tables()
            self._generation += 1
            self._record(lambda: setattr(self, "_tables", old))

    # cards

    def load_cards(self, cards) -> None:
        with self._lock:
            for card in cards:
                self._cards.setdefault(card.card_id, card.unbound())

    def get_card(self, card_id: int) -> Optional[Card]:
        with self._lock:
            return self._cards.get(card_id)

    def card_ids(self) -> List[int]:
        with self._lock:
            return sorted(self._cards)

    # games

    def create_game(self, player_order) -> int:
        with self._lock:
            self._check_open()
            order = tuple(player_order)
            if not order:
                raise StoreError("A game needs at least one player")
            gid = self._next_id("next_game_id")
            self._put(self._tables.games, gid, GameState(
                game_id=gid,
                current_player=order[0],
                status=Phase.SETUP,
                player_order=order,
            ))
            return gid

    def get_game(self, game_id: int) -> Optional[GameState]:
        with self._lock:
            return self._tables.games.get(game_id)

    def save_game(self, state: GameState) -> None:
        with self._lock:
            self._check_open()
            if state.game_id not in self._tables.games:
                raise StoreError(f"No game {state.game_id}")
            self._put(self._tables.games, state.game_id, state)

    # deck

    def populate_deck(self, game_id: int, card_ids) -> None:
        with self._lock:
            self._check_open()
            rows = self._rows(self._tables.deck, game_id)
            for cid in card_ids:
                self._put(rows, cid, Location.IN_DECK)

    def card_ids_at(self, game_id: int, location: Location) -> List[int]:
        with self._lock:
            rows = self._tables.deck.get(game_id, {})
            return sorted(cid for cid, loc in rows.items() if loc is location)

    def location_of(self, game_id: int, card_id: int) -> Optional[Location]:
        with self._lock:
            return self._tables.deck.get(game_id, {}).get(card_id)

    def set_location(self, game_id: int, card_id: int, location: Location) -> None:
        with self._lock:
            self._check_open()
            rows = self._tables.deck.get(game_id)
            if rows is None or card_id not in rows:
                raise StoreError(f"Card {card_id} is not part of game {game_id}")
            self._put(rows, card_id, Location(location))

    # hands

    def add_to_hand(self, game_id: int, player_id: int, card_id: int) -> None:
        with self._lock:
            self._check_open()
            holders = self._rows(self._tables.holders, game_id)
            if card_id in holders:
                raise StoreError(f"Card {card_id} is already held in game {game_id}")
            hands = self._rows(self._tables.hands, game_id)
            held = hands.get(player_id)
            if held is None:
                held = []
                self._put(hands, player_id, held)
            self._put(holders, card_id, player_id)
            held.append(card_id)
            self._record(held.pop)

    def remove_from_hand(self, game_id: int, player_id: int, card_id: int) -> bool:
        with self._lock:
            self._check_open()
            held = self._tables.hands.get(game_id, {}).get(player_id)
            if not held or card_id not in held:
                return False
            idx = held.index(card_id)
            del held[idx]
            self._record(lambda: held.insert(idx, card_id))
            self._drop(self._tables.holders[game_id], card_id)
            return True

    def hand(self, game_id: int, player_id: int) -> List[int]:
        with self._lock:
            return list(self._tables.hands.get(game_id, {}).get(player_id, []))

    def hand_counts(self, game_id: int) -> Dict[int, int]:
        with self._lock:
            state = self._tables.games.get(game_id)
            if state is None:
                return {}
            hands = self._tables.hands.get(game_id, {})
            return {pid: len(hands.get(pid, [])) for pid in state.player_order}

    # moves

    def append_move(self, record: MoveRecord) -> None:
        with self._lock:
            self._check_open()
            log = self._tables.moves.get(record.game_id)
            if log is None:
                log = []
                self._put(self._tables.moves, record.game_id, log)
            log.append(record)
            self._record(log.pop)

    def count_moves(self, game_id: int) -> int:
        with self._lock:
            return len(self._tables.moves.get(game_id, []))

    def moves(self, game_id: int) -> List[MoveRecord]:
        with self._lock:
            return list(self._tables.moves.get(game_id, []))

    def statistics(self) -> GameStatistics:
        with self._lock:
            stats = GameStatistics()
            for state in self._tables.games.values():
                if state.status is not Phase.FINISHED:
                    continue
                stats.games_finished += 1
                winner = self._tables.players.get(state.winner)
                if winner is None:
                    continue
                if winner.is_computer:
                    stats.ai_wins += 1
                else:
                    stats.human_wins += 1
            for log in self._tables.moves.values():
                stats.turns_played += len(log)
                for move in log:
                    if move.action is not MoveAction.PLAYED or move.card_id is None:
                        continue
                    card = self._cards.get(move.card_id)
                    if card is None:
                        continue
                    if card.value == "draw2":
                        stats.draw2_count += 1
                    elif card.value == "wild4":
                        stats.wild4_count += 1
            return stats
