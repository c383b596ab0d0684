"""
Unit tests for the timestamp-seeded stats generator.
"""

from datetime import UTC, datetime

import pytest

from skirmish.game.stats_generator import generate_stats, get_zodiac_sign, seeded_random, validate_stats
from skirmish.models.stats import ABILITY_ORDER

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def test_seeded_random_first_value_from_zero_seed():
    rng = seeded_random(0)
    assert rng() == pytest.approx(49297 / 233280)
    assert rng() == pytest.approx(165494 / 233280)


def test_generate_stats_from_epoch_is_exact():
    """1970-01-01 is Capricorn: CON and INT take the better roll, DEX and CHA the worse."""
    stats = generate_stats(0)
    assert stats.abilities() == {
        "strength": 8,
        "dexterity": 11,
        "constitution": 16,
        "intelligence": 16,
        "wisdom": 16,
        "charisma": 8,
    }
    assert stats.hp == 13


def test_generate_stats_accepts_every_timestamp_form():
    from_ms = generate_stats(0)
    assert generate_stats(EPOCH) == from_ms
    assert generate_stats("1970-01-01T00:00:00Z") == from_ms
    assert generate_stats(0.0) == from_ms


def test_generate_stats_is_deterministic():
    created = datetime(2023, 3, 14, 15, 9, 26, 535000, tzinfo=UTC)
    assert generate_stats(created) == generate_stats(created)


def test_generate_stats_clears_combat_flags():
    stats = generate_stats(EPOCH)
    assert not stats.is_defending
    assert not stats.is_hidden
    assert not stats.advantage_next_attack


@pytest.mark.parametrize("bad_input", [None, "not a date", float("nan"), object(), True])
def test_generate_stats_falls_back_on_invalid_input(bad_input):
    stats = generate_stats(bad_input)
    assert validate_stats(stats)


@pytest.mark.parametrize(
    "created",
    [
        datetime(2001, 1, 1, tzinfo=UTC),
        datetime(2010, 6, 15, 8, 30, tzinfo=UTC),
        datetime(2024, 12, 31, 23, 59, 59, tzinfo=UTC),
        1_700_000_000_123,
    ],
)
def test_generated_stats_stay_in_range(created):
    stats = generate_stats(created)
    for ability in ABILITY_ORDER:
        assert 8 <= getattr(stats, ability) <= 16
    assert stats.hp == 10 + (stats.constitution - 10) // 2


@pytest.mark.parametrize(
    ("month", "day", "sign"),
    [
        (1, 1, "Capricorn"),
        (1, 19, "Capricorn"),
        (1, 20, "Aquarius"),
        (3, 21, "Aries"),
        (7, 22, "Cancer"),
        (7, 23, "Leo"),
        (12, 21, "Sagittarius"),
        (12, 22, "Capricorn"),
    ],
)
def test_zodiac_sign_boundaries(month, day, sign):
    assert get_zodiac_sign(month, day) == sign


def test_validate_stats_accepts_mapping_and_model():
    values = {name: 12 for name in ABILITY_ORDER} | {"hp": 11}
    assert validate_stats(values)
    assert validate_stats(generate_stats(0))


@pytest.mark.parametrize(
    "patch",
    [
        {"strength": 7},
        {"wisdom": 17},
        {"charisma": None},
        {"dexterity": "12"},
        {"constitution": True},
        {"hp": None},
    ],
)
def test_validate_stats_rejects_bad_values(patch):
    values = {name: 12 for name in ABILITY_ORDER} | {"hp": 11}
    values.update(patch)
    assert not validate_stats(values)


def test_validate_stats_ignores_hp_range():
    values = {name: 12 for name in ABILITY_ORDER} | {"hp": -4}
    assert validate_stats(values)


def test_validate_stats_rejects_none():
    assert not validate_stats(None)
