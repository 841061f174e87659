"""SQLite-backed state store."""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from unoengine.engine.card import Card, Color
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
from unoengine.engine.turns import Direction

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS players (
    player_id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    kind TEXT NOT NULL CHECK (kind IN ('human', 'computer')),
    score INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS cards (
    card_id INTEGER PRIMARY KEY,
    color TEXT NOT NULL,
    value TEXT NOT NULL,
    points INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS games (
    game_id INTEGER PRIMARY KEY AUTOINCREMENT,
    status TEXT NOT NULL,
    current_turn INTEGER NOT NULL REFERENCES players(player_id),
    direction TEXT NOT NULL DEFAULT 'clockwise',
    top_card_id INTEGER REFERENCES cards(card_id),
    active_color TEXT,
    pending_draw_stack INTEGER NOT NULL DEFAULT 0 CHECK (pending_draw_stack >= 0),
    winner_id INTEGER REFERENCES players(player_id)
);
CREATE TABLE IF NOT EXISTS game_players (
    game_id INTEGER NOT NULL REFERENCES games(game_id),
    seat INTEGER NOT NULL,
    player_id INTEGER NOT NULL REFERENCES players(player_id),
    PRIMARY KEY (game_id, seat)
);
CREATE TABLE IF NOT EXISTS deck (
    game_id INTEGER NOT NULL REFERENCES games(game_id),
    card_id INTEGER NOT NULL REFERENCES cards(card_id),
    location TEXT NOT NULL CHECK (location IN ('in_deck', 'in_hand', 'in_discard')),
    PRIMARY KEY (game_id, card_id)
);
CREATE TABLE IF NOT EXISTS hands (
    hand_id INTEGER PRIMARY KEY AUTOINCREMENT,
    game_id INTEGER NOT NULL REFERENCES games(game_id),
    player_id INTEGER NOT NULL REFERENCES players(player_id),
    card_id INTEGER NOT NULL REFERENCES cards(card_id),
    UNIQUE (game_id, card_id)
);
CREATE TABLE IF NOT EXISTS moves (
    move_id INTEGER PRIMARY KEY AUTOINCREMENT,
    game_id INTEGER NOT NULL REFERENCES games(game_id),
    player_id INTEGER NOT NULL REFERENCES players(player_id),
    card_id INTEGER REFERENCES cards(card_id),
    action TEXT NOT NULL CHECK (action IN ('played', 'drawn_and_passed')),
    turn_number INTEGER NOT NULL
);
"""

STATISTICS_QUERIES = {
    "games_finished": "SELECT COUNT(*) FROM games WHERE status = 'finished'",
    "turns_played": "SELECT COUNT(*) FROM moves",
    "draw2_count": (
        "SELECT COUNT(m.move_id) FROM moves m JOIN cards c ON m.card_id = c.card_id "
        "WHERE c.value = 'draw2' AND m.action = 'played'"
    ),
    "wild4_count": (
        "SELECT COUNT(m.move_id) FROM moves m JOIN cards c ON m.card_id = c.card_id "
        "WHERE c.value = 'wild4' AND m.action = 'played'"
    ),
}


class SqliteStore:
    """StateStore on a single SQLite connection.

    The connection runs in autocommit mode and transactions are issued
    explicitly, so a transaction block maps onto BEGIN ... COMMIT/ROLLBACK.
    All access goes through one lock, held for the length of a transaction.
    """

    def __init__(self, path: str = ":memory:") -> None:
        self._path = path
        self._lock = threading.RLock()
        self._depth = 0
        try:
            self._conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open SQLite store at {path}: {e}") from e
        self._closed = False
        self._generation = 0
        logger.debug("Opened SQLite store at %s", path)

    def __enter__(self) -> "SqliteStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._conn.close()
            except sqlite3.Error as e:
                raise StoreError(f"Error closing SQLite store: {e}") from e

    @property
    def generation(self) -> int:
        return self._generation

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        if self._closed:
            raise StoreError("Store is closed")
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreError(f"{type(e).__name__}: {e}") from e

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            self._execute("BEGIN IMMEDIATE")
            self._depth = 1
            try:
                yield
            except BaseException:
                self._depth = 0
                try:
                    self._execute("ROLLBACK")
                except StoreError as e:
                    # sqlite may already have aborted the transaction itself
                    logger.error("SQLite rollback failed: %s", e)
                else:
                    logger.debug("SQLite transaction rolled back")
                raise
            self._depth = 0
            self._execute("COMMIT")

    # players

    def add_player(self, name: str, kind: PlayerKind) -> int:
        with self._lock:
            cur = self._execute(
                "INSERT INTO players (name, kind) VALUES (?, ?)", (name, PlayerKind(kind).value)
            )
            return cur.lastrowid

    def get_player(self, player_id: int) -> Optional[Player]:
        with self._lock:
            row = self._execute(
                "SELECT player_id, name, kind, score FROM players WHERE player_id = ?", (player_id,)
            ).fetchone()
        return _player(row) if row else None

    def list_players(self) -> List[Player]:
        with self._lock:
            rows = self._execute(
                "SELECT player_id, name, kind, score FROM players ORDER BY player_id"
            ).fetchall()
        return [_player(r) for r in rows]

    def set_player_score(self, player_id: int, score: int) -> None:
        with self._lock:
            cur = self._execute("UPDATE players SET score = ? WHERE player_id = ?", (score, player_id))
            if cur.rowcount == 0:
                raise StoreError(f"No player {player_id}")

    def reset(self) -> None:
        with self.transaction():
            for table in ("moves", "hands", "deck", "game_players", "games", "players"):
                self._execute(f"DELETE FROM {table}")
            self._execute(
                "DELETE FROM sqlite_sequence WHERE name IN ('moves', 'hands', 'games', 'players')"
            )
            self._generation += 1

    # cards

    def load_cards(self, cards) -> None:
        with self.transaction():
            for card in cards:
                self._execute(
                    "INSERT OR IGNORE INTO cards (card_id, color, value, points) VALUES (?, ?, ?, ?)",
                    (card.card_id, card.unbound().color.value, card.value, card.points),
                )

    def get_card(self, card_id: int) -> Optional[Card]:
        with self._lock:
            row = self._execute(
                "SELECT card_id, color, value, points FROM cards WHERE card_id = ?", (card_id,)
            ).fetchone()
        if row is None:
            return None
        return Card(card_id=row[0], color=Color(row[1]), value=row[2], points=row[3])

    def card_ids(self) -> List[int]:
        with self._lock:
            rows = self._execute("SELECT card_id FROM cards ORDER BY card_id").fetchall()
        return [r[0] for r in rows]

    # games

    def create_game(self, player_order) -> int:
        order = tuple(player_order)
        if not order:
            raise StoreError("A game needs at least one player")
        with self.transaction():
            cur = self._execute(
                "INSERT INTO games (status, current_turn) VALUES (?, ?)", (Phase.SETUP.value, order[0])
            )
            game_id = cur.lastrowid
            for seat, pid in enumerate(order):
                self._execute(
                    "INSERT INTO game_players (game_id, seat, player_id) VALUES (?, ?, ?)",
                    (game_id, seat, pid),
                )
            return game_id

    def get_game(self, game_id: int) -> Optional[GameState]:
        with self._lock:
            row = self._execute(
                "SELECT game_id, current_turn, direction, top_card_id, active_color, "
                "pending_draw_stack, status, winner_id FROM games WHERE game_id = ?",
                (game_id,),
            ).fetchone()
            if row is None:
                return None
            seats = self._execute(
                "SELECT player_id FROM game_players WHERE game_id = ? ORDER BY seat", (game_id,)
            ).fetchall()
        return GameState(
            game_id=row[0],
            current_player=row[1],
            direction=Direction(row[2]),
            top_card_id=row[3],
            active_color=Color(row[4]) if row[4] else None,
            pending_draws=row[5],
            status=Phase(row[6]),
            winner=row[7],
            player_order=tuple(s[0] for s in seats),
        )

    def save_game(self, state: GameState) -> None:
        with self._lock:
            cur = self._execute(
                "UPDATE games SET current_turn = ?, direction = ?, top_card_id = ?, active_color = ?, "
                "pending_draw_stack = ?, status = ?, winner_id = ? WHERE game_id = ?",
                (
                    state.current_player,
                    state.direction.value,
                    state.top_card_id,
                    state.active_color.value if state.active_color else None,
                    state.pending_draws,
                    state.status.value,
                    state.winner,
                    state.game_id,
                ),
            )
            if cur.rowcount == 0:
                raise StoreError(f"No game {state.game_id}")

    # deck

    def populate_deck(self, game_id: int, card_ids) -> None:
        with self.transaction():
            for cid in card_ids:
                self._execute(
                    "INSERT INTO deck (game_id, card_id, location) VALUES (?, ?, ?)",
                    (game_id, cid, Location.IN_DECK.value),
                )

    def card_ids_at(self, game_id: int, location: Location) -> List[int]:
        with self._lock:
            rows = self._execute(
                "SELECT card_id FROM deck WHERE game_id = ? AND location = ? ORDER BY card_id",
                (game_id, Location(location).value),
            ).fetchall()
        return [r[0] for r in rows]

    def location_of(self, game_id: int, card_id: int) -> Optional[Location]:
        with self._lock:
            row = self._execute(
                "SELECT location FROM deck WHERE game_id = ? AND card_id = ?", (game_id, card_id)
            ).fetchone()
        return Location(row[0]) if row else None

    def set_location(self, game_id: int, card_id: int, location: Location) -> None:
        with self._lock:
            cur = self._execute(
                "UPDATE deck SET location = ? WHERE game_id = ? AND card_id = ?",
                (Location(location).value, game_id, card_id),
            )
            if cur.rowcount == 0:
                raise StoreError(f"Card {card_id} is not part of game {game_id}")

    # hands

    def add_to_hand(self, game_id: int, player_id: int, card_id: int) -> None:
        with self._lock:
            self._execute(
                "INSERT INTO hands (game_id, player_id, card_id) VALUES (?, ?, ?)",
                (game_id, player_id, card_id),
            )

    def remove_from_hand(self, game_id: int, player_id: int, card_id: int) -> bool:
        with self._lock:
            cur = self._execute(
                "DELETE FROM hands WHERE game_id = ? AND player_id = ? AND card_id = ?",
                (game_id, player_id, card_id),
            )
            return cur.rowcount > 0

    def hand(self, game_id: int, player_id: int) -> List[int]:
        with self._lock:
            rows = self._execute(
                "SELECT card_id FROM hands WHERE game_id = ? AND player_id = ? ORDER BY hand_id",
                (game_id, player_id),
            ).fetchall()
        return [r[0] for r in rows]

    def hand_counts(self, game_id: int) -> Dict[int, int]:
        with self._lock:
            rows = self._execute(
                "SELECT gp.player_id, COUNT(h.card_id) FROM game_players gp "
                "LEFT JOIN hands h ON h.game_id = gp.game_id AND h.player_id = gp.player_id "
                "WHERE gp.game_id = ? GROUP BY gp.player_id, gp.seat ORDER BY gp.seat",
                (game_id,),
            ).fetchall()
        return {r[0]: r[1] for r in rows}

    # moves

    def append_move(self, record: MoveRecord) -> None:
        with self._lock:
            self._execute(
                "INSERT INTO moves (game_id, player_id, card_id, action, turn_number) VALUES (?, ?, ?, ?, ?)",
                (record.game_id, record.player_id, record.card_id, record.action.value, record.turn_number),
            )

    def count_moves(self, game_id: int) -> int:
        with self._lock:
            return self._execute("SELECT COUNT(*) FROM moves WHERE game_id = ?", (game_id,)).fetchone()[0]

    def moves(self, game_id: int) -> List[MoveRecord]:
        with self._lock:
            rows = self._execute(
                "SELECT game_id, player_id, card_id, action, turn_number FROM moves "
                "WHERE game_id = ? ORDER BY move_id",
                (game_id,),
            ).fetchall()
        return [MoveRecord(r[0], r[1], r[2], MoveAction(r[3]), r[4]) for r in rows]

    def statistics(self) -> GameStatistics:
        stats = GameStatistics()
        with self._lock:
            for attr, sql in STATISTICS_QUERIES.items():
                setattr(stats, attr, self._execute(sql).fetchone()[0])
            rows = self._execute(
                "SELECT p.kind, COUNT(g.game_id) FROM games g JOIN players p ON g.winner_id = p.player_id "
                "WHERE g.status = 'finished' GROUP BY p.kind"
            ).fetchall()
        for kind, wins in rows:
            if kind == PlayerKind.COMPUTER.value:
                stats.ai_wins = wins
            else:
                stats.human_wins = wins
        return stats


def _player(row) -> Player:
    return Player(player_id=row[0], name=row[1], kind=PlayerKind(row[2]), score=row[3])
