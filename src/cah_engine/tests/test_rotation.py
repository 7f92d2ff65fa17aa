import pytest
from cah_engine.errors import NoPlayers
from cah_engine.session import next_czar


def test_first_czar_is_lowest_id():
    assert next_czar([5, 3, 1], None) == 1


def test_next_id_in_order():
    assert next_czar([1, 3, 5], 3) == 5


def test_wraps_to_lowest_id():
    assert next_czar([1, 3, 5], 5) == 1


def test_skips_gap_left_by_departed_player():
    # Player 3 left; rotating on from czar 1 lands on 5
    assert next_czar([1, 5], 1) == 5


def test_exact_successor_is_chosen():
    assert next_czar([1, 2, 3], 1) == 2


def test_previous_czar_may_have_left():
    assert next_czar([2, 4], 3) == 4
    assert next_czar([2, 4], 4) == 2


def test_single_player_is_always_czar():
    assert next_czar([7], 7) == 7


def test_no_players():
    with pytest.raises(NoPlayers):
        next_czar([], None)
