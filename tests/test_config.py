"""Tests for the configuration constants."""

from __future__ import annotations

from shambler import config


def test_every_setting_is_a_positive_number() -> None:
    """Settings are tunable numbers, not flags derived from the environment."""
    settings = {
        name: value for name, value in vars(config).items() if name.isupper()
    }
    assert settings
    for name, value in settings.items():
        assert type(value) in (int, float), name
        assert value > 0, name


def test_zombies_act_on_a_smaller_budget_than_the_player() -> None:
    assert config.ZOMBIE_MAX_ACTION_POINTS < config.PLAYER_MAX_ACTION_POINTS
    assert config.STEP_ACTION_COST <= config.ZOMBIE_MAX_ACTION_POINTS
