"""
Modifier ledger service.

Records time-bounded or permanent additive adjustments to a combatant's stats
(damage counters, buffs, debuffs) and aggregates the ones still active.
Expiry is always judged against the clock at query time.
"""

import math

from ..exceptions import ConfigurationError
from ..models.modifier import Modifier
from ..persistence.protocols import ModifierRepositoryProtocol, StatsRepositoryProtocol
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.error_logging import create_error_context, log_and_raise
from ..utils.time_utils import NowProvider, add_ms, utc_now

logger = get_logger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going toward positive infinity."""
    return math.floor(value + 0.5)


class ModifierService:
    """
    Persists and aggregates stat modifiers.

    Both repositories are optional at construction so the container can build
    the service early; every operation raises ConfigurationError when the
    storage it needs is missing.
    """

    def __init__(
        self,
        modifier_repository: ModifierRepositoryProtocol | None,
        stats_repository: StatsRepositoryProtocol | None = None,
        now_provider: NowProvider | None = None,
    ) -> None:
        self._modifiers = modifier_repository
        self._stats = stats_repository
        self._now = now_provider or utc_now

    def _require_modifiers(self, operation: str) -> ModifierRepositoryProtocol:
        if self._modifiers is None:
            context = create_error_context()
            context.metadata["operation"] = operation
            log_and_raise(
                ConfigurationError,
                "ModifierService has no modifier repository configured",
                context=context,
                user_friendly="Combat storage is not configured",
            )
        return self._modifiers

    async def create_modifier(
        self,
        stat: str,
        value: float,
        *,
        combatant_id: str,
        duration_ms: float | None = None,
        source: str | None = None,
    ) -> Modifier:
        """
        Record a modifier.

        Args:
            stat: Stat the modifier applies to, e.g. "damage" or "strength"
            value: Signed amount; rounded to the nearest integer before storage
            combatant_id: Combatant the modifier belongs to
            duration_ms: Lifetime in milliseconds; permanent when omitted
            source: Optional free-text origin

        Returns:
            Modifier: The stored modifier

        Raises:
            ConfigurationError: If no modifier repository is configured
        """
        repository = self._require_modifiers("create_modifier")
        now = self._now()
        modifier = Modifier(
            combatant_id=combatant_id,
            stat=stat,
            value=round_half_up(value),
            created_at=now,
            expires_at=add_ms(now, duration_ms) if duration_ms else None,
            source=source,
        )
        await repository.insert(modifier)
        logger.debug(
            "Modifier created",
            combatant_id=combatant_id,
            stat=stat,
            value=modifier.value,
            expires_at=modifier.expires_at.isoformat() if modifier.expires_at else None,
        )
        return modifier

    async def get_effective_stat(self, combatant_id: str, stat: str) -> int:
        """
        Return base stat plus every active modifier for it.

        A stat with no stored base value counts as 0.

        Raises:
            ConfigurationError: If either repository is missing
        """
        repository = self._require_modifiers("get_effective_stat")
        if self._stats is None:
            context = create_error_context()
            context.metadata["operation"] = "get_effective_stat"
            log_and_raise(
                ConfigurationError,
                "ModifierService has no stats repository configured",
                context=context,
                user_friendly="Combat storage is not configured",
            )
        base_stats = await self._stats.get(combatant_id)
        base = base_stats.base_value(stat) if base_stats is not None else 0
        modifiers = await repository.find_active(combatant_id, stat, self._now())
        return base + sum(m.value for m in modifiers)

    async def get_total_modifier(self, combatant_id: str, stat: str) -> int:
        """
        Return the sum of active modifiers for a stat, each rounded to an integer.

        Raises:
            ConfigurationError: If no modifier repository is configured
        """
        repository = self._require_modifiers("get_total_modifier")
        modifiers = await repository.find_active(combatant_id, stat, self._now())
        return sum(round_half_up(m.value) for m in modifiers)

    async def clear_modifiers(self, combatant_id: str, stat: str) -> int:
        """
        Delete every modifier of one stat for a combatant.

        Returns:
            int: Number of modifiers removed
        """
        repository = self._require_modifiers("clear_modifiers")
        removed = await repository.delete_by_stat(combatant_id, stat)
        logger.info("Modifiers cleared", combatant_id=combatant_id, stat=stat, removed=removed)
        return removed
