"""Game models and data structures"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


@dataclass(frozen=True)
class Prompt:
    content: str
    n_answers: int = 1

    def __str__(self) -> str:
        if self.n_answers == 1:
            return f'"{self.content}"'
        return f'"{self.content}" ({self.n_answers} answers)'


@dataclass(frozen=True)
class Answer:
    content: str

    def __str__(self) -> str:
        return f'"{self.content}"'


class Role(str, Enum):
    PLAYER = "player"
    CZAR = "czar"


class RoundPhase(str, Enum):
    ANSWERING = "answering"
    JUDGING = "judging"


class LoginRejectedReason(str, Enum):
    USERNAME_TAKEN = "username_taken"
    GAME_FULL = "game_full"


@dataclass
class Player:
    id: int
    name: str
    hand: List[Answer] = field(default_factory=list)
    score: int = 0


@dataclass
class Round:
    prompt: Prompt
    czar: int
    answers: Dict[int, List[Answer]] = field(default_factory=dict)
    phase: RoundPhase = RoundPhase.ANSWERING

    def role_of(self, player_id: int) -> Role:
        return Role.CZAR if player_id == self.czar else Role.PLAYER

    def has_submitted(self, player_id: int) -> bool:
        return player_id in self.answers

    def everyone_answered(self, roster_size: int) -> bool:
        """True once every non-czar player in a roster of this size has submitted."""
        return len(self.answers) >= roster_size - 1
