"""
Room lookup and relocation.

Rooms themselves belong to the surrounding world; this service only answers
who is present in a room, records combatant moves and registers newcomers.
"""

from dataclasses import dataclass, field

from ..models.combatant import Combatant
from ..persistence.protocols import CombatantRepositoryProtocol
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.time_utils import NowProvider, utc_now

logger = get_logger(__name__)


@dataclass
class RoomSnapshot:
    """Combatants present in a room at lookup time."""

    room_id: str
    location_name: str | None = None
    combatants: list[Combatant] = field(default_factory=list)

    def find_by_name(self, name: str) -> Combatant | None:
        """Case-insensitive exact name lookup."""
        wanted = name.strip().lower()
        for combatant in self.combatants:
            if combatant.name.lower() == wanted:
                return combatant
        return None


class LocationService:
    """Answers room occupancy and moves combatants between rooms."""

    def __init__(
        self,
        combatant_repository: CombatantRepositoryProtocol,
        room_names: dict[str, str] | None = None,
        starting_lives: int = 3,
        now_provider: NowProvider | None = None,
    ) -> None:
        self._combatants = combatant_repository
        self._room_names = dict(room_names or {})
        self.starting_lives = starting_lives
        self._now = now_provider or utc_now

    async def get_location_and_combatants(self, room_id: str) -> RoomSnapshot:
        """Return the room's display name, if known, and the combatants in it."""
        combatants = await self._combatants.list_in_room(room_id)
        return RoomSnapshot(room_id=room_id, location_name=self._room_names.get(room_id), combatants=combatants)

    async def enter_room(self, combatant_id: str, name: str, room_id: str) -> Combatant:
        """
        Place a combatant in a room, registering it on first sight.

        New combatants start alive with the configured number of lives; their
        creation time seeds stat generation. Known combatants are only moved.
        """
        existing = await self._combatants.get(combatant_id)
        if existing is None:
            created = Combatant(
                combatant_id=combatant_id,
                name=name,
                room_id=room_id,
                created_at=self._now(),
                lives=self.starting_lives,
            )
            await self._combatants.save(created)
            logger.info("Combatant registered", combatant_id=combatant_id, room_id=room_id)
            return created
        if existing.room_id == room_id:
            return existing
        return await self.relocate(existing, room_id)

    async def relocate(self, combatant: Combatant, destination_room_id: str) -> Combatant:
        """
        Move a combatant to another room.

        Raises:
            LookupError: If the combatant is no longer stored
        """
        moved = await self._combatants.update_room(combatant.combatant_id, destination_room_id)
        if moved is None:
            raise LookupError(f"Combatant {combatant.combatant_id} not found")
        logger.info(
            "Combatant relocated",
            combatant_id=combatant.combatant_id,
            from_room=combatant.room_id,
            to_room=destination_room_id,
        )
        return moved
