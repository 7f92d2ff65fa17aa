"""
Validation of answer submissions and judgements.
"""

from collections import Counter
from typing import List, Optional

from .errors import (
    ALREADY_SUBMITTED, IS_CZAR, NO_ROUND, NOT_CZAR, OWNERSHIP_MISMATCH,
    UNKNOWN_PLAYER, WRONG_PHASE,
)
from .models import Answer, Player, Round, RoundPhase


class ValidationResult:
    """Result of validating a client request against the current round."""

    def __init__(
        self,
        valid: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None
    ):
        self.valid = valid
        self.error_code = error_code
        self.error_message = error_message

    @classmethod
    def success(cls) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(valid=True)

    @classmethod
    def error(cls, error_code: str, error_message: str) -> 'ValidationResult':
        """Create an error validation result."""
        return cls(valid=False, error_code=error_code, error_message=error_message)

    def __bool__(self) -> bool:
        return self.valid

    def __repr__(self) -> str:
        if self.valid:
            return "ValidationResult(valid=True)"
        return f"ValidationResult(valid=False, error_code={self.error_code!r})"


def validate_ownership(player: Player, cards: List[Answer]) -> bool:
    """
    Check if the player holds all the specified cards.

    A card listed twice must be held twice.
    """
    held = Counter(player.hand)
    wanted = Counter(cards)
    return all(held[card] >= count for card, count in wanted.items())


def validate_answer_submission(
    round: Optional[Round],
    player: Player,
    cards: List[Answer]
) -> ValidationResult:
    """
    Validate a player's answer submission.

    Args:
        round: The active round, if any
        player: The submitting player
        cards: The cards being submitted

    Returns:
        ValidationResult describing the first rule that was broken
    """
    if round is None:
        return ValidationResult.error(NO_ROUND, "There is no ongoing round")

    if round.phase != RoundPhase.ANSWERING:
        return ValidationResult.error(WRONG_PHASE, "Round is in judgement phase")

    if round.czar == player.id:
        return ValidationResult.error(IS_CZAR, "The czar does not submit answers")

    if round.has_submitted(player.id):
        return ValidationResult.error(ALREADY_SUBMITTED, "Player already submitted an answer")

    if not validate_ownership(player, cards):
        return ValidationResult.error(OWNERSHIP_MISMATCH, "Cards are not in player's hand")

    return ValidationResult.success()


def validate_judgement(
    round: Optional[Round],
    player_id: int,
    winning_player_id: int
) -> ValidationResult:
    """Validate the czar's choice of winner."""
    if round is None:
        return ValidationResult.error(NO_ROUND, "There is no ongoing round")

    if round.phase != RoundPhase.JUDGING:
        return ValidationResult.error(WRONG_PHASE, "Round is not in judgement phase")

    if round.czar != player_id:
        return ValidationResult.error(NOT_CZAR, "Only the czar can judge")

    if winning_player_id not in round.answers:
        return ValidationResult.error(UNKNOWN_PLAYER, "No answer was submitted by that player")

    return ValidationResult.success()


def remove_from_hand(hand: List[Answer], cards: List[Answer]) -> List[Answer]:
    """Return the hand with exactly one copy of each submitted card removed."""
    to_remove = Counter(cards)
    kept = []
    for card in hand:
        if to_remove[card] > 0:
            to_remove[card] -= 1
        else:
            kept.append(card)
    return kept
