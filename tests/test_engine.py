"""Unit tests for cards, deck construction, rules and turn order."""

from collections import Counter

import pytest

from helpers import pick
from unoengine.engine import (
    Card,
    CardKind,
    Color,
    Direction,
    PlayerNotFound,
    create_deck,
    legal_moves,
    next_player,
    resolve_effect,
    validate_move,
)


def test_create_deck_size() -> None:
    deck = create_deck()
    assert len(deck) == 108
    assert [c.card_id for c in deck] == list(range(1, 109))


def test_create_deck_composition() -> None:
    values = Counter(c.value for c in create_deck())
    assert values["0"] == 4
    assert values["7"] == 8
    assert values["draw2"] == 8
    assert values["skip"] == 8
    assert values["reverse"] == 8
    assert values["wild"] == 4
    assert values["wild4"] == 4


def test_card_points() -> None:
    assert pick(Color.RED, "7").points == 7
    assert pick(Color.BLUE, "skip").points == 20
    assert pick(None, "wild4").points == 50


def test_card_kind() -> None:
    assert pick(Color.RED, "5").kind is CardKind.NUMBERED
    assert pick(Color.RED, "reverse").kind is CardKind.ACTION
    assert pick(None, "wild").kind is CardKind.WILD


def test_card_rejects_bad_values() -> None:
    with pytest.raises(ValueError):
        Card(card_id=1, color=Color.RED, value="draw_four")
    with pytest.raises(ValueError):
        Card(card_id=1, color=Color.WILD, value="5")


def test_bind_color_only_for_wilds() -> None:
    wild4 = pick(None, "wild4")
    bound = wild4.bind_color(Color.BLUE)
    assert bound.color is Color.BLUE
    assert bound.value == "wild4"
    assert bound.is_wild
    assert bound == wild4
    assert wild4.color is Color.WILD
    assert str(bound) == "wild4(blue)"

    with pytest.raises(ValueError):
        pick(Color.RED, "5").bind_color(Color.BLUE)
    with pytest.raises(ValueError):
        wild4.bind_color(Color.WILD)


def test_wildness_follows_value_not_color() -> None:
    bound = pick(None, "wild").bind_color(Color.GREEN)
    assert validate_move(bound, pick(Color.RED, "3"), 0)


def test_stacking_is_exclusive() -> None:
    red_draw2 = pick(Color.RED, "draw2")
    legal = [c for c in create_deck() if validate_move(c, red_draw2, 2)]
    assert legal
    assert all(c.value == "draw2" for c in legal)
    assert len(legal) == 8

    wild4_top = pick(None, "wild4").bind_color(Color.YELLOW)
    legal = [c for c in create_deck() if validate_move(c, wild4_top, 4)]
    assert {c.value for c in legal} == {"wild4"}
    assert not validate_move(pick(None, "wild"), wild4_top, 4)
    assert not validate_move(pick(Color.YELLOW, "draw2"), wild4_top, 4)


def test_color_and_value_matching() -> None:
    top = pick(Color.RED, "7")
    assert validate_move(pick(Color.RED, "5"), top, 0)
    assert validate_move(pick(Color.BLUE, "7"), top, 0)
    assert not validate_move(pick(Color.BLUE, "5"), top, 0)
    assert validate_move(pick(None, "wild"), top, 0)
    assert validate_move(pick(None, "wild4"), top, 0)


def test_bound_wild_top_matches_chosen_color() -> None:
    top = pick(None, "wild").bind_color(Color.GREEN)
    assert validate_move(pick(Color.GREEN, "2"), top, 0)
    assert not validate_move(pick(Color.RED, "2"), top, 0)


def test_validate_move_handles_missing_cards() -> None:
    assert not validate_move(None, pick(Color.RED, "7"), 0)
    assert not validate_move(pick(Color.RED, "7"), None, 0)


def test_legal_moves_keeps_hand_order() -> None:
    hand = [pick(Color.BLUE, "1"), pick(None, "wild"), pick(Color.RED, "1"), pick(Color.GREEN, "7")]
    assert legal_moves(hand, pick(Color.RED, "7"), 0) == [hand[1], hand[2], hand[3]]


def test_resolve_effect() -> None:
    assert resolve_effect(pick(Color.RED, "reverse"), 0).flip_direction
    assert resolve_effect(pick(Color.RED, "reverse"), 0).skip_count == 0
    assert resolve_effect(pick(Color.RED, "skip"), 0).skip_count == 1
    effect = resolve_effect(pick(Color.RED, "draw2"), 0)
    assert (effect.pending_draws, effect.skip_count) == (2, 1)
    effect = resolve_effect(pick(None, "wild4"), 0)
    assert (effect.pending_draws, effect.skip_count) == (4, 1)
    effect = resolve_effect(pick(Color.RED, "5"), 0)
    assert (effect.pending_draws, effect.skip_count, effect.flip_direction) == (0, 0, False)
    assert resolve_effect(pick(None, "wild"), 0).skip_count == 0


def test_penalties_accumulate() -> None:
    pending = 0
    for nth in range(3):
        pending = resolve_effect(pick(Color.RED, "draw2", nth % 2), pending).pending_draws
    assert pending == 6
    assert resolve_effect(pick(None, "wild4"), 4).pending_draws == 8


def test_next_player_skip() -> None:
    assert next_player([1, 2, 3], 1, Direction.CLOCKWISE, 1) == 3
    assert next_player([1, 2, 3], 1, Direction.CLOCKWISE) == 2


def test_next_player_counterclockwise_wraps() -> None:
    assert next_player([1, 2, 3], 1, Direction.COUNTERCLOCKWISE) == 3
    assert next_player([1, 2, 3], 1, Direction.COUNTERCLOCKWISE, 1) == 2
    assert next_player([1, 2, 3, 4], 2, Direction.COUNTERCLOCKWISE, 6) == 3


def test_next_player_two_players_skip_returns_to_self() -> None:
    assert next_player([10, 20], 10, Direction.CLOCKWISE, 1) == 10


def test_next_player_unknown_current() -> None:
    with pytest.raises(PlayerNotFound):
        next_player([1, 2, 3], 9, Direction.CLOCKWISE)


def test_double_reverse_restores_direction() -> None:
    direction = Direction.CLOCKWISE
    for _ in range(2):
        if resolve_effect(pick(Color.RED, "reverse"), 0).flip_direction:
            direction = direction.flipped()
    assert direction is Direction.CLOCKWISE
