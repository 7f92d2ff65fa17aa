import pytest
from pydantic import ValidationError
from cah_engine.rules import RuleConfig, create_rules, default_rules, rules_from_env


def test_defaults():
    assert default_rules.hand_size == 4
    assert default_rules.min_players == 3
    assert default_rules.max_players == 3
    assert default_rules.underscore_length == 5


def test_create_rules_overrides():
    rules = create_rules(max_players=6, hand_size=7)
    assert rules.max_players == 6
    assert rules.hand_size == 7
    assert rules.min_players == default_rules.min_players


def test_max_players_below_min_rejected():
    with pytest.raises(ValidationError):
        RuleConfig(min_players=4, max_players=3)


def test_need_czar_and_one_answerer():
    with pytest.raises(ValidationError):
        create_rules(min_players=1)


def test_quorum_and_capacity():
    rules = create_rules(min_players=3, max_players=4)
    assert not rules.has_quorum(2)
    assert rules.has_quorum(3)
    assert not rules.is_full(3)
    assert rules.is_full(4)


def test_rules_from_env(monkeypatch):
    monkeypatch.setenv("CAH_HAND_SIZE", "10")
    monkeypatch.setenv("CAH_MAX_PLAYERS", "8")
    monkeypatch.delenv("CAH_MIN_PLAYERS", raising=False)
    monkeypatch.delenv("CAH_UNDERSCORE_LENGTH", raising=False)
    rules = rules_from_env()
    assert rules.hand_size == 10
    assert rules.max_players == 8
    assert rules.min_players == 3
