"""
Shared fixtures for session tests.
"""

import pytest

from cah_engine.channel import ClientChannel
from cah_engine.errors import SendFailed
from cah_engine.models import Answer, Prompt
from cah_engine.rules import create_rules
from cah_engine.session import SessionCoordinator


class RecordingChannel(ClientChannel):
    """Channel that keeps every event it is sent."""

    def __init__(self):
        self.events = []
        self.closed = False

    def send(self, event):
        if self.closed:
            raise SendFailed("recording channel closed")
        self.events.append(event)

    def close(self):
        self.closed = True

    def of_type(self, event_type):
        return [event for event in self.events if isinstance(event, event_type)]

    def last(self, event_type):
        matching = self.of_type(event_type)
        assert matching, f"no {event_type.__name__} received"
        return matching[-1]

    def clear(self):
        self.events = []


@pytest.fixture
def make_session():
    def _make(n_prompts=10, n_answers=60, **rule_overrides):
        prompts = [Prompt(f"Prompt {i}: _") for i in range(n_prompts)]
        answers = [Answer(f"Answer {i}") for i in range(n_answers)]
        return SessionCoordinator(prompts, answers, rules=create_rules(**rule_overrides), seed=7)
    return _make


@pytest.fixture
def session(make_session):
    return make_session()


@pytest.fixture
def connect():
    """Connect a recording client without logging in. Returns (client_id, channel)."""
    def _connect(session):
        channel = RecordingChannel()
        return session.connect(channel), channel
    return _connect


@pytest.fixture
def join(connect):
    """Connect a recording client and log it in."""
    def _join(session, name):
        client_id, channel = connect(session)
        session.on_login(client_id, name)
        return client_id, channel
    return _join


@pytest.fixture
def assert_conserved():
    """Check that every card out of a supply is accounted for by a hand or the round."""
    def _check(session):
        hands = sum(len(player.hand) for player in session.players.values())
        submitted = 0
        prompts_out = 0
        if session.round is not None:
            submitted = sum(len(cards) for cards in session.round.answers.values())
            prompts_out = 1
        assert session.answer_supply.checked_out_count == hands + submitted
        assert session.prompt_supply.checked_out_count == prompts_out
    return _check
