"""
Dependency injection container for Skirmish.

Builds every collaborator of the combat engine in dependency order and hands
them out as plain attributes. Storage is chosen from configuration: the
SQLAlchemy repositories when a database URL is set, the in-memory stores
otherwise.

USAGE:
    container = ApplicationContainer()
    await container.initialize()
    result = await container.command_dispatcher.process_message(room_id, actor_id, text)
    await container.shutdown()
"""

import asyncio
import threading
from typing import TYPE_CHECKING

from .structured_logging.enhanced_logging_config import get_logger, setup_enhanced_logging
from .utils.time_utils import NowProvider, utc_now

if TYPE_CHECKING:
    from .commands.actions.challenge import PresentationHook
    from .commands.command_dispatcher import CommandDispatcher
    from .config.models import AppConfig
    from .database import DatabaseManager
    from .events.event_bus import EventBus
    from .persistence.protocols import (
        ActionLogRepositoryProtocol,
        CombatantRepositoryProtocol,
        CooldownStoreProtocol,
        DiceProtocol,
        EncounterSummaryRepositoryProtocol,
        MemoryStoreProtocol,
        ModifierRepositoryProtocol,
        StatsRepositoryProtocol,
    )
    from .services.action_log import ActionLog
    from .services.battle_service import BattleService
    from .services.combat_encounter_service import CombatEncounterService
    from .services.combat_event_publisher import CombatEventPublisher
    from .services.combatant_stats_service import CombatantStatsService
    from .services.cooldown_service import CooldownService
    from .services.location_service import LocationService
    from .services.modifier_service import ModifierService

logger = get_logger(__name__)


class ApplicationContainer:
    """
    Owns the lifecycle of every Skirmish service.

    Services are instances managed by the container, never module globals.
    Tests build their own container with in-memory storage, scripted dice and
    a fixed clock.
    """

    _instance: "ApplicationContainer | None" = None
    _lock: threading.Lock = threading.Lock()

    def __init__(
        self,
        config: "AppConfig | None" = None,
        dice: "DiceProtocol | None" = None,
        now_provider: NowProvider | None = None,
        presentation_hook: "PresentationHook | None" = None,
        room_names: dict[str, str] | None = None,
    ) -> None:
        self.config = config
        self.now_provider: NowProvider = now_provider or utc_now
        self.presentation_hook = presentation_hook
        self.room_names = dict(room_names or {})

        self.database_manager: DatabaseManager | None = None
        self.event_bus: EventBus | None = None
        self.dice: DiceProtocol | None = dice

        self.combatant_repository: CombatantRepositoryProtocol | None = None
        self.stats_repository: StatsRepositoryProtocol | None = None
        self.modifier_repository: ModifierRepositoryProtocol | None = None
        self.cooldown_store: CooldownStoreProtocol | None = None
        self.action_log_repository: ActionLogRepositoryProtocol | None = None
        self.encounter_summary_repository: EncounterSummaryRepositoryProtocol | None = None
        self.memory_store: MemoryStoreProtocol | None = None

        self.event_publisher: CombatEventPublisher | None = None
        self.stats_service: CombatantStatsService | None = None
        self.modifier_service: ModifierService | None = None
        self.location_service: LocationService | None = None
        self.encounter_service: CombatEncounterService | None = None
        self.battle_service: BattleService | None = None
        self.cooldown_service: CooldownService | None = None
        self.action_log: ActionLog | None = None
        self.command_dispatcher: CommandDispatcher | None = None

        self._initialized: bool = False
        self._initialization_lock = asyncio.Lock()

        logger.info("ApplicationContainer created (not yet initialized)")

    @classmethod
    def get_instance(cls) -> "ApplicationContainer":
        """Get the process-wide container, creating it on first use."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def set_instance(cls, instance: "ApplicationContainer | None") -> None:
        with cls._lock:
            cls._instance = instance

    @classmethod
    def reset_instance(cls) -> None:
        """Forget the process-wide container. Tests only."""
        cls.set_instance(None)
        logger.info("ApplicationContainer instance reset")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """
        Initialize all services in dependency order.

        INITIALIZATION ORDER:
        1. Configuration and logging
        2. Storage (database or in-memory)
        3. Event system
        4. Combat services
        5. Command dispatcher and built-in actions
        """
        async with self._initialization_lock:
            if self._initialized:
                logger.warning("Container already initialized - skipping re-initialization")
                return

            logger.info("Initializing ApplicationContainer...")

            # Phase 1: Configuration
            if self.config is None:
                from .config import get_config

                self.config = get_config()
            setup_enhanced_logging(self.config.to_legacy_dict())
            logger.info("Configuration loaded", environment=self.config.logging.environment)

            # Phase 2: Storage
            if self.config.database.url:
                await self._initialize_database_storage()
            else:
                self._initialize_memory_storage()

            # Phase 3: Event system
            from .events.event_bus import EventBus
            from .services.combat_event_publisher import CombatEventPublisher

            self.event_bus = EventBus()
            self.event_publisher = CombatEventPublisher(self.event_bus)
            logger.info("Event system initialized")

            # Phase 4: Combat services
            self._initialize_combat_services()

            # Phase 5: Commands
            self._initialize_command_dispatcher()

            self._initialized = True
            logger.info("ApplicationContainer initialized", storage="database" if self.database_manager else "memory")

    async def _initialize_database_storage(self) -> None:
        from .database import DatabaseManager
        from .persistence.repositories import (
            ActionLogRepository,
            CombatantRepository,
            CooldownRepository,
            EncounterSummaryRepository,
            MemoryRepository,
            ModifierRepository,
            StatsRepository,
        )

        assert self.config is not None
        self.database_manager = DatabaseManager(database_url=self.config.database.url, echo=self.config.database.echo)
        await self.database_manager.init_db()
        session_maker = self.database_manager.get_session_maker()

        self.combatant_repository = CombatantRepository(session_maker)
        self.stats_repository = StatsRepository(session_maker)
        self.modifier_repository = ModifierRepository(session_maker)
        self.cooldown_store = CooldownRepository(session_maker)
        self.action_log_repository = ActionLogRepository(session_maker)
        self.encounter_summary_repository = EncounterSummaryRepository(session_maker)
        self.memory_store = MemoryRepository(session_maker, now_provider=self.now_provider)
        logger.info("Database storage initialized")

    def _initialize_memory_storage(self) -> None:
        from .persistence.memory import (
            InMemoryActionLogRepository,
            InMemoryCombatantRepository,
            InMemoryCooldownStore,
            InMemoryEncounterSummaryRepository,
            InMemoryMemoryStore,
            InMemoryModifierRepository,
            InMemoryStatsRepository,
        )

        self.combatant_repository = InMemoryCombatantRepository()
        self.stats_repository = InMemoryStatsRepository()
        self.modifier_repository = InMemoryModifierRepository()
        self.cooldown_store = InMemoryCooldownStore()
        self.action_log_repository = InMemoryActionLogRepository()
        self.encounter_summary_repository = InMemoryEncounterSummaryRepository()
        self.memory_store = InMemoryMemoryStore()
        logger.info("In-memory storage initialized")

    def _initialize_combat_services(self) -> None:
        from .game.dice import DiceService
        from .services.action_log import ActionLog
        from .services.battle_service import BattleService
        from .services.combat_encounter_service import CombatEncounterService
        from .services.combatant_stats_service import CombatantStatsService
        from .services.cooldown_service import CooldownService
        from .services.location_service import LocationService
        from .services.modifier_service import ModifierService

        assert self.config is not None
        assert self.combatant_repository is not None
        combat = self.config.combat

        if self.dice is None:
            self.dice = DiceService()
        self.stats_service = CombatantStatsService(self.stats_repository)
        self.modifier_service = ModifierService(
            self.modifier_repository, self.stats_repository, now_provider=self.now_provider
        )
        self.location_service = LocationService(
            self.combatant_repository,
            room_names=self.room_names,
            starting_lives=combat.starting_lives,
            now_provider=self.now_provider,
        )
        self.encounter_service = CombatEncounterService(
            stats_service=self.stats_service,
            dice=self.dice,
            combatant_repository=self.combatant_repository,
            modifier_service=self.modifier_service,
            summary_repository=self.encounter_summary_repository,
            event_publisher=self.event_publisher,
            config=combat,
            now_provider=self.now_provider,
        )
        self.battle_service = BattleService(
            combatant_repository=self.combatant_repository,
            stats_service=self.stats_service,
            modifier_service=self.modifier_service,
            dice=self.dice,
            location_service=self.location_service,
            event_publisher=self.event_publisher,
            encounter_service=self.encounter_service,
            now_provider=self.now_provider,
            knockout_duration_ms=combat.knockout_duration_ms,
            flee_cooldown_ms=combat.flee_cooldown_ms,
            recovery_room_id=combat.recovery_room_id,
        )
        assert self.cooldown_store is not None
        assert self.action_log_repository is not None
        self.cooldown_service = CooldownService(self.cooldown_store, now_provider=self.now_provider)
        self.action_log = ActionLog(self.action_log_repository, now_provider=self.now_provider)
        logger.info("Combat services initialized")

    def _initialize_command_dispatcher(self) -> None:
        from .commands.actions import AttackAction, ChallengeAction, DefendAction, FleeAction, HideAction
        from .commands.command_dispatcher import CommandDispatcher

        assert self.config is not None
        assert self.combatant_repository is not None
        assert self.cooldown_service is not None
        assert self.battle_service is not None
        assert self.location_service is not None

        self.command_dispatcher = CommandDispatcher(
            combatant_repository=self.combatant_repository,
            cooldown_service=self.cooldown_service,
            encounter_service=self.encounter_service,
            battle_service=self.battle_service,
            action_log=self.action_log,
            memory_store=self.memory_store,
            config=self.config.commands,
            now_provider=self.now_provider,
        )
        for action in (
            AttackAction(self.battle_service, self.location_service, self.encounter_service, self.now_provider),
            ChallengeAction(
                self.location_service, self.encounter_service, self.presentation_hook, self.now_provider
            ),
            DefendAction(self.battle_service, self.encounter_service),
            HideAction(self.battle_service, self.encounter_service),
            FleeAction(self.battle_service, self.encounter_service),
        ):
            self.command_dispatcher.register_action(action, is_custom=False)
        logger.info("Command dispatcher initialized", actions=list(self.command_dispatcher.actions))

    async def shutdown(self) -> None:
        """Shutdown services in reverse dependency order. Best effort."""
        logger.info("Shutting down ApplicationContainer...")
        if self.encounter_service is not None:
            self.encounter_service.shutdown()
        if self.event_bus is not None:
            try:
                await self.event_bus.shutdown()
            except RuntimeError as e:
                logger.error("Error shutting down event bus", error=str(e))
        if self.database_manager is not None:
            try:
                await self.database_manager.close()
            except RuntimeError as e:
                logger.error("Error closing database", error=str(e))
        self._initialized = False
        logger.info("ApplicationContainer shutdown complete")
