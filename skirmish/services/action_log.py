"""
Room action log.

Append-only record of successfully dispatched actions, read back for room
context and the HTTP surface.
"""

from ..models.action_log import ActionLogEntry
from ..persistence.protocols import ActionLogRepositoryProtocol
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.time_utils import NowProvider, utc_now

logger = get_logger(__name__)


class ActionLog:
    """Writes and reads immutable action log entries."""

    def __init__(self, repository: ActionLogRepositoryProtocol, now_provider: NowProvider | None = None) -> None:
        self._repository = repository
        self._now = now_provider or utc_now

    async def log_action(
        self,
        *,
        room_id: str,
        actor_id: str,
        actor_name: str,
        action: str,
        emoji: str | None = None,
        target: str = "",
        result: str | None = None,
        is_custom: bool = False,
    ) -> ActionLogEntry:
        entry = ActionLogEntry(
            room_id=room_id,
            actor_id=actor_id,
            actor_name=actor_name,
            action=action,
            emoji=emoji,
            target=target,
            result=result,
            timestamp=self._now(),
            is_custom=is_custom,
        )
        await self._repository.append(entry)
        logger.debug("Action logged", room_id=room_id, actor_id=actor_id, action=action)
        return entry

    async def get_recent_actions(self, room_id: str, limit: int = 50) -> list[ActionLogEntry]:
        """Return the newest entries for a room, oldest first."""
        return await self._repository.list_for_room(room_id, limit=limit)

    async def get_summary(self, room_id: str, limit: int = 5) -> str:
        """Render recent actions as short lines for room context."""
        entries = await self.get_recent_actions(room_id, limit=limit)
        lines = []
        for entry in entries:
            prefix = f"{entry.emoji} " if entry.emoji else ""
            target = f" {entry.target}" if entry.target else ""
            lines.append(f"{prefix}{entry.actor_name} used {entry.action}{target}")
        return "\n".join(lines)
