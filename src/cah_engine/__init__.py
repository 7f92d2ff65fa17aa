"""
Card czar party game engine: card supplies, rounds and the shared session.
"""

from .deck import CardSupply
from .models import Answer, Player, Prompt, Role, Round, RoundPhase
from .rules import RuleConfig, create_rules, default_rules
from .session import SessionCoordinator, next_czar

__version__ = "1.0.0"
