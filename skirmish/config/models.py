"""
Pydantic-based configuration models for Skirmish.

Every section is a BaseSettings model with its own environment prefix so that
deployments can tune combat pacing and storage without code changes.
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_ACTION_COOLDOWNS_MS: dict[str, int] = {
    "attack": 30_000,
    "defend": 30_000,
    "hide": 15_000,
    "flee": 30_000,
    "challenge": 10_000,
}


class DatabaseConfig(BaseSettings):
    """Database configuration. Leaving the URL unset selects the in-memory backing."""

    url: str | None = Field(default=None, description="SQLAlchemy async database URL")
    echo: bool = Field(default=False, description="Echo SQL statements")

    @field_validator("url")
    @classmethod
    def validate_database_url(cls, v: str | None) -> str | None:
        """Validate that the URL names an async driver."""
        if v is None or v == "":
            return None
        if "+" not in v.split("://", 1)[0]:
            logger.error("Database URL validation failed - no async driver", url_preview=v[:50])
            raise ValueError("Database URL must name an async driver, e.g. 'sqlite+aiosqlite://'")
        return v

    model_config = {"env_prefix": "DATABASE_", "case_sensitive": False, "extra": "ignore"}


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    environment: str = Field(default="local", description="Logging environment")
    level: str = Field(default="INFO", description="Log level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate logging environment."""
        valid_environments = ["local", "unit_test", "e2e_test", "production"]
        if v not in valid_environments:
            logger.error("Invalid logging environment", environment=v, valid_environments=valid_environments)
            raise ValueError(f"Environment must be one of {valid_environments}, got '{v}'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}, got '{v}'")
        return v_upper

    model_config = {"env_prefix": "LOGGING_", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict:
        """Return the dict shape consumed by setup_enhanced_logging."""
        return {"environment": self.environment, "level": self.level}


class CombatConfig(BaseSettings):
    """Combat pacing and lifecycle configuration."""

    knockout_duration_ms: int = Field(default=24 * 60 * 60 * 1000, description="Knockout recovery window")
    flee_cooldown_ms: int = Field(default=24 * 60 * 60 * 1000, description="Combat cooldown after a flee")
    starting_lives: int = Field(default=3, description="Lives a new combatant starts with")
    recovery_room_id: str = Field(default="tavern", description="Room knocked out or fleeing combatants move to")
    turn_timeout_seconds: float = Field(default=30.0, description="Seconds before an idle turn auto-defends")
    idle_end_rounds: int = Field(default=3, description="Rounds without hostility before an encounter ends")
    stale_encounter_seconds: float = Field(default=3600.0, description="Age at which open encounters are ended as stale")
    max_encounters_per_guild: int = Field(default=5, description="Concurrent encounters allowed per guild")
    enable_turn_enforcement: bool = Field(default=True, description="Reject actions taken out of turn")
    maintenance_interval_seconds: float = Field(default=5.0, description="Background timeout sweep interval")

    @field_validator(
        "knockout_duration_ms",
        "flee_cooldown_ms",
        "starting_lives",
        "turn_timeout_seconds",
        "idle_end_rounds",
        "stale_encounter_seconds",
        "max_encounters_per_guild",
        "maintenance_interval_seconds",
    )
    @classmethod
    def validate_positive(cls, v: Any) -> Any:
        """Durations and limits must be positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    model_config = {"env_prefix": "COMBAT_", "case_sensitive": False, "extra": "ignore"}


class CommandConfig(BaseSettings):
    """Command dispatch configuration."""

    default_cooldown_ms: int = Field(default=60 * 60 * 1000, description="Cooldown for actions without an override")
    action_cooldowns_ms: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_ACTION_COOLDOWNS_MS),
        description="Per-action cooldown overrides (JSON object)",
    )
    symbol_overrides: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        description="Per-guild action to symbol overrides (JSON object keyed by guild id)",
    )
    combat_allowed_actions: list[str] = Field(
        default_factory=lambda: ["attack", "defend", "hide", "flee"],
        description="Actions permitted while in an active encounter",
    )
    per_room_locking: bool = Field(default=True, description="Serialize turn-gated actions per room")

    @field_validator("default_cooldown_ms")
    @classmethod
    def validate_default_cooldown(cls, v: int) -> int:
        """Validate default cooldown is not negative."""
        if v < 0:
            raise ValueError("Default cooldown cannot be negative")
        return v

    @field_validator("action_cooldowns_ms")
    @classmethod
    def validate_action_cooldowns(cls, v: dict[str, int]) -> dict[str, int]:
        """Validate per-action cooldowns are not negative."""
        for action, cooldown in v.items():
            if cooldown < 0:
                raise ValueError(f"Cooldown for '{action}' cannot be negative")
        return {action.lower(): cooldown for action, cooldown in v.items()}

    model_config = {"env_prefix": "COMMANDS_", "case_sensitive": False, "extra": "ignore"}

    def cooldown_for(self, action: str) -> int:
        """Return the cooldown in milliseconds for an action."""
        return self.action_cooldowns_ms.get(action.lower(), self.default_cooldown_ms)


class AppConfig(BaseSettings):
    """
    Composite application configuration.

    This is the main configuration class that aggregates all other configs.
    Access via get_config() singleton function.
    """

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    combat: CombatConfig = Field(default_factory=CombatConfig)
    commands: CommandConfig = Field(default_factory=CommandConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict:
        """Convert to the plain dict consumed by logging setup."""
        return {
            "database_url": self.database.url,
            "logging": self.logging.to_legacy_dict(),
        }
