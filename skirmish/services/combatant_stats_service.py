"""
Stat store facade.

Fetches a combatant's stats, deriving and storing them from the creation date
the first time they are needed.
"""

from ..exceptions import ConfigurationError
from ..game.stats_generator import generate_stats, validate_stats
from ..models.combatant import Combatant
from ..models.stats import CombatantStats
from ..persistence.protocols import StatsRepositoryProtocol
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.error_logging import create_error_context, log_and_raise

logger = get_logger(__name__)


class CombatantStatsService:
    """Read-compute-persist access to combatant stats."""

    def __init__(self, stats_repository: StatsRepositoryProtocol | None) -> None:
        if stats_repository is None:
            log_and_raise(
                ConfigurationError,
                "CombatantStatsService requires a stats repository",
                context=create_error_context(),
                user_friendly="Combat storage is not configured",
            )
        self._stats = stats_repository

    async def get_or_create_stats(self, combatant: Combatant) -> CombatantStats:
        """
        Return stored stats, generating them from ``created_at`` when absent or invalid.
        """
        stats = await self._stats.get(combatant.combatant_id)
        if stats is not None and validate_stats(stats):
            return stats
        if stats is not None:
            logger.warning("Stored stats invalid, regenerating", combatant_id=combatant.combatant_id)
        generated = generate_stats(combatant.created_at)
        saved = await self._stats.save(combatant.combatant_id, generated)
        logger.info("Stats generated for combatant", combatant_id=combatant.combatant_id, hp=saved.hp)
        return saved

    async def update_stats(self, combatant: Combatant, stats: CombatantStats) -> CombatantStats:
        """Persist a new stats snapshot for a combatant."""
        return await self._stats.save(combatant.combatant_id, stats)

    async def regenerate_stats(self, combatant: Combatant) -> CombatantStats:
        """Re-roll stats from the original creation date, clearing every combat flag."""
        regenerated = generate_stats(combatant.created_at)
        saved = await self._stats.save(combatant.combatant_id, regenerated)
        logger.info("Stats regenerated", combatant_id=combatant.combatant_id, hp=saved.hp)
        return saved
