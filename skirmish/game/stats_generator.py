"""
Stats Generator for Skirmish.

Derives a combatant's base ability scores from its creation timestamp. The
derivation is deterministic: the same timestamp always yields the same stats,
so a knocked out combatant can be re-rolled from its original creation date.
"""

import math
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from ..models.stats import ABILITY_ORDER, MAX_ABILITY, MIN_ABILITY, CombatantStats
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_LCG_MULTIPLIER = 9301
_LCG_INCREMENT = 49297
_LCG_MODULUS = 233280

# (month, first day) at which each sign starts, in calendar order
_ZODIAC_STARTS: tuple[tuple[int, int, str], ...] = (
    (1, 20, "Aquarius"),
    (2, 19, "Pisces"),
    (3, 21, "Aries"),
    (4, 20, "Taurus"),
    (5, 21, "Gemini"),
    (6, 21, "Cancer"),
    (7, 23, "Leo"),
    (8, 23, "Virgo"),
    (9, 23, "Libra"),
    (10, 23, "Scorpio"),
    (11, 22, "Sagittarius"),
    (12, 22, "Capricorn"),
)

ZODIAC_ADVANTAGES: dict[str, dict[str, tuple[str, ...]]] = {
    "Aries": {"advantage": ("strength", "constitution"), "disadvantage": ("wisdom", "intelligence")},
    "Taurus": {"advantage": ("constitution", "wisdom"), "disadvantage": ("dexterity", "charisma")},
    "Gemini": {"advantage": ("dexterity", "intelligence"), "disadvantage": ("strength", "constitution")},
    "Cancer": {"advantage": ("wisdom", "charisma"), "disadvantage": ("strength", "dexterity")},
    "Leo": {"advantage": ("strength", "charisma"), "disadvantage": ("intelligence", "wisdom")},
    "Virgo": {"advantage": ("intelligence", "wisdom"), "disadvantage": ("strength", "charisma")},
    "Libra": {"advantage": ("charisma", "dexterity"), "disadvantage": ("constitution", "intelligence")},
    "Scorpio": {"advantage": ("constitution", "intelligence"), "disadvantage": ("wisdom", "charisma")},
    "Sagittarius": {"advantage": ("dexterity", "charisma"), "disadvantage": ("constitution", "wisdom")},
    "Capricorn": {"advantage": ("constitution", "intelligence"), "disadvantage": ("dexterity", "charisma")},
    "Aquarius": {"advantage": ("intelligence", "wisdom"), "disadvantage": ("strength", "constitution")},
    "Pisces": {"advantage": ("wisdom", "charisma"), "disadvantage": ("strength", "dexterity")},
}

REQUIRED_STAT_FIELDS: tuple[str, ...] = (*ABILITY_ORDER, "hp")


def seeded_random(seed: float) -> Callable[[], float]:
    """
    Create a linear congruential generator returning floats in [0, 1).

    Arithmetic is done in double precision so sequences match the stats that
    existing combatants were generated with.

    Args:
        seed: Initial seed, normally the creation time in epoch milliseconds

    Returns:
        A zero-argument callable producing the next value in the sequence
    """
    state = float(seed)

    def next_value() -> float:
        nonlocal state
        state = math.fmod(state * _LCG_MULTIPLIER + _LCG_INCREMENT, _LCG_MODULUS)
        return state / _LCG_MODULUS

    return next_value


def get_zodiac_sign(month: int, day: int) -> str:
    """Return the zodiac sign for a calendar month (1-12) and day."""
    sign = "Capricorn"
    for start_month, start_day, name in _ZODIAC_STARTS:
        if (month, day) >= (start_month, start_day):
            sign = name
    return sign


def _coerce_timestamp(creation_timestamp: Any) -> datetime:
    """Turn a datetime, ISO string or epoch-ms number into an aware UTC datetime."""
    try:
        if isinstance(creation_timestamp, datetime):
            value = creation_timestamp
        elif isinstance(creation_timestamp, str):
            value = datetime.fromisoformat(creation_timestamp.replace("Z", "+00:00"))
        elif isinstance(creation_timestamp, (int, float)) and not isinstance(creation_timestamp, bool):
            if math.isnan(creation_timestamp) or math.isinf(creation_timestamp):
                raise ValueError("timestamp is not finite")
            value = _EPOCH + timedelta(milliseconds=creation_timestamp)
        else:
            raise TypeError(f"unsupported timestamp type {type(creation_timestamp).__name__}")
    except (TypeError, ValueError, OverflowError) as e:
        logger.warning(
            "Invalid creation timestamp, using current time as fallback",
            creation_timestamp=repr(creation_timestamp),
            error=str(e),
        )
        return datetime.now(UTC)

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _epoch_ms(value: datetime) -> int:
    return (value - _EPOCH) // timedelta(milliseconds=1)


def generate_stats(creation_timestamp: Any = None) -> CombatantStats:
    """
    Generate base stats from a creation timestamp.

    For each ability, in a fixed order, two d20 rolls are drawn from an LCG
    seeded with the epoch milliseconds. Abilities favoured by the zodiac sign
    of the creation date keep the higher roll, disfavoured ones the lower, and
    the rest the first roll. Scores are clamped to [8, 16] and
    ``hp = 10 + floor((constitution - 10) / 2)``.

    Invalid or missing input falls back to the current time; this function
    never raises.

    Args:
        creation_timestamp: datetime, ISO-8601 string or epoch milliseconds

    Returns:
        CombatantStats: Freshly generated stats with all combat flags cleared
    """
    created = _coerce_timestamp(creation_timestamp)
    sign = get_zodiac_sign(created.month, created.day)
    advantaged = ZODIAC_ADVANTAGES[sign]["advantage"]
    disadvantaged = ZODIAC_ADVANTAGES[sign]["disadvantage"]

    rng = seeded_random(_epoch_ms(created))
    scores: dict[str, int] = {}
    for ability in ABILITY_ORDER:
        # Both rolls are always drawn to keep the sequence aligned.
        roll1 = math.floor(rng() * 20) + 1
        roll2 = math.floor(rng() * 20) + 1
        if ability in advantaged:
            value = max(roll1, roll2)
        elif ability in disadvantaged:
            value = min(roll1, roll2)
        else:
            value = roll1
        scores[ability] = max(MIN_ABILITY, min(MAX_ABILITY, value))

    hp = 10 + (scores["constitution"] - 10) // 2
    logger.debug("Stats generated", zodiac_sign=sign, hp=hp, **scores)
    return CombatantStats(hp=hp, **scores)


def _field_value(stats: Any, name: str) -> Any:
    if isinstance(stats, Mapping):
        return stats.get(name)
    return getattr(stats, name, None)


def validate_stats(stats: Any) -> bool:
    """
    Check that a stats object or mapping is complete and in range.

    All seven fields must be present and numeric (booleans are rejected); the
    six abilities must be within [8, 16]. HP is only checked for presence.
    """
    if stats is None:
        return False
    for name in REQUIRED_STAT_FIELDS:
        value = _field_value(stats, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if isinstance(value, float) and math.isnan(value):
            return False
        if name != "hp" and not MIN_ABILITY <= value <= MAX_ABILITY:
            return False
    return True
