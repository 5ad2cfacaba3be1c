"""Input validation package."""

from poker_dues.validation.validator import PlayerInput, PlayerInputValidator

__all__ = ["PlayerInput", "PlayerInputValidator"]
