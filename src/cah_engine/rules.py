"""
Game rule configuration and validation.
"""

import os

from pydantic import BaseModel, Field, field_validator


class RuleConfig(BaseModel):
    """Tunables for a single game session."""

    hand_size: int = Field(
        default=4,
        ge=1,
        description="Number of answer cards each player holds"
    )
    min_players: int = Field(
        default=3,
        ge=2,
        description="Minimum number of players required to run a round"
    )
    max_players: int = Field(
        default=3,
        ge=2,
        description="Maximum number of players allowed in the session"
    )
    underscore_length: int = Field(
        default=5,
        ge=1,
        description="Width each blank in a prompt is expanded to"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't undercut minimum."""
        min_players = info.data.get('min_players', 3)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    def is_full(self, player_count: int) -> bool:
        return player_count >= self.max_players

    def has_quorum(self, player_count: int) -> bool:
        return player_count >= self.min_players


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)


_ENV_FIELDS = {
    "CAH_HAND_SIZE": "hand_size",
    "CAH_MIN_PLAYERS": "min_players",
    "CAH_MAX_PLAYERS": "max_players",
    "CAH_UNDERSCORE_LENGTH": "underscore_length",
}


def rules_from_env() -> RuleConfig:
    """Build a RuleConfig from CAH_* environment variables, falling back to defaults."""
    overrides = {}
    for env_name, field_name in _ENV_FIELDS.items():
        value = os.getenv(env_name)
        if value:
            overrides[field_name] = int(value)
    return create_rules(**overrides)
