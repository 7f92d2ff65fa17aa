"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field, ValidationError

from ..models import Answer, LoginRejectedReason, Prompt, Role

__all__ = [
    "EventType", "OutboundEventType",
    "BaseEvent", "LoginEvent", "SubmitAnswerEvent", "SubmitJudgementEvent",
    "InboundEvent",
    "OutboundEvent", "LoginAcceptedEvent", "LoginRejectedEvent",
    "PlayerJoinedEvent", "PlayerLeftEvent", "NewRoundEvent",
    "AnswerAcceptedEvent", "AnswerRejectedEvent", "ReadyToJudgeEvent",
    "JudgementRejectedEvent", "RoundEndedEvent", "GameEndedEvent", "ErrorEvent",
    "parse_inbound_event",
]


class EventType(str, Enum):
    """Inbound event types."""
    LOGIN = "login"
    SUBMIT_ANSWER = "submit_answer"
    SUBMIT_JUDGEMENT = "submit_judgement"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    LOGIN_ACCEPTED = "login_accepted"
    LOGIN_REJECTED = "login_rejected"
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    NEW_ROUND = "new_round"
    ANSWER_ACCEPTED = "answer_accepted"
    ANSWER_REJECTED = "answer_rejected"
    READY_TO_JUDGE = "ready_to_judge"
    JUDGEMENT_REJECTED = "judgement_rejected"
    ROUND_ENDED = "round_ended"
    GAME_ENDED = "game_ended"
    ERROR = "error"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class LoginEvent(BaseEvent):
    """Login with a display name."""
    type: EventType = EventType.LOGIN
    name: str = Field(..., min_length=1, max_length=30)


class SubmitAnswerEvent(BaseEvent):
    """Submit answer cards for the current prompt."""
    type: EventType = EventType.SUBMIT_ANSWER
    cards: List[Answer] = Field(..., min_length=1)


class SubmitJudgementEvent(BaseEvent):
    """Czar picks the winning player."""
    type: EventType = EventType.SUBMIT_JUDGEMENT
    winning_player_id: int


# Union type for all inbound events
InboundEvent = Union[
    LoginEvent,
    SubmitAnswerEvent,
    SubmitJudgementEvent
]


# Outbound event models
class OutboundEvent(BaseModel):
    """Base outbound event. Every outbound event is timestamped."""
    type: OutboundEventType
    timestamp: float = Field(default_factory=time.time)


class LoginAcceptedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.LOGIN_ACCEPTED
    player_id: int


class LoginRejectedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.LOGIN_REJECTED
    reason: LoginRejectedReason


class PlayerJoinedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.PLAYER_JOINED
    name: str


class PlayerLeftEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.PLAYER_LEFT
    name: str


class NewRoundEvent(OutboundEvent):
    """A round has started. `hand` is the receiving player's own hand."""
    type: OutboundEventType = OutboundEventType.NEW_ROUND
    role: Role
    prompt: Prompt
    hand: List[Answer]


class AnswerAcceptedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.ANSWER_ACCEPTED


class AnswerRejectedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.ANSWER_REJECTED
    reason: str
    message: str = ""


class ReadyToJudgeEvent(OutboundEvent):
    """Every answer of the round, keyed by the submitting player's id."""
    type: OutboundEventType = OutboundEventType.READY_TO_JUDGE
    answers: Dict[int, List[Answer]]


class JudgementRejectedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.JUDGEMENT_REJECTED
    reason: str
    message: str = ""


class RoundEndedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.ROUND_ENDED
    winner: str
    winning_answers: List[Answer]
    scores: Dict[str, int]


class GameEndedEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.GAME_ENDED


class ErrorEvent(OutboundEvent):
    type: OutboundEventType = OutboundEventType.ERROR
    code: str
    message: str


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")

    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    event_map = {
        EventType.LOGIN: LoginEvent,
        EventType.SUBMIT_ANSWER: SubmitAnswerEvent,
        EventType.SUBMIT_JUDGEMENT: SubmitJudgementEvent,
    }

    event_class = event_map[event_type]

    try:
        return event_class(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {e}")
