"""Shared fixtures: engines over both stores, a seated session and a deck-rigging helper."""

from typing import Dict, List, Optional

import pytest

from unoengine.engine import Card, Color, Direction, Location, PlayerKind
from unoengine.service import UnoEngine
from unoengine.store import MemoryStore, SqliteStore


@pytest.fixture(params=["memory", "sqlite"])
def store(request):
    handle = MemoryStore() if request.param == "memory" else SqliteStore(":memory:")
    yield handle
    handle.close()


@pytest.fixture
def engine(store) -> UnoEngine:
    return UnoEngine(store, seed=7)


@pytest.fixture
def players(engine) -> List[int]:
    """One human followed by two computer players."""
    return engine.create_players(
        ["You", "AI Bot 1", "AI Bot 2"],
        [PlayerKind.HUMAN, PlayerKind.COMPUTER, PlayerKind.COMPUTER],
    )


@pytest.fixture
def game(engine, players) -> int:
    return engine.start_game(players)


@pytest.fixture
def rig(engine):
    """Rearrange a started game: given hands, a top card, everything else in the deck."""

    def _rig(
        game_id: int,
        hands: Dict[int, List[Card]],
        top: Card,
        active_color: Optional[Color] = None,
        pending_draws: int = 0,
        current: Optional[int] = None,
        direction: Optional[Direction] = None,
    ) -> None:
        store = engine.store
        with store.transaction():
            state = store.get_game(game_id)
            for pid in state.player_order:
                for cid in store.hand(game_id, pid):
                    store.remove_from_hand(game_id, pid, cid)
            for location in (Location.IN_HAND, Location.IN_DISCARD):
                for cid in store.card_ids_at(game_id, location):
                    store.set_location(game_id, cid, Location.IN_DECK)
            for pid, cards in hands.items():
                for card in cards:
                    store.set_location(game_id, card.card_id, Location.IN_HAND)
                    store.add_to_hand(game_id, pid, card.card_id)
            store.set_location(game_id, top.card_id, Location.IN_DISCARD)
            store.save_game(state.evolve(
                top_card_id=top.card_id,
                active_color=active_color or top.color,
                pending_draws=pending_draws,
                current_player=state.current_player if current is None else current,
                direction=direction or state.direction,
            ))

    return _rig


