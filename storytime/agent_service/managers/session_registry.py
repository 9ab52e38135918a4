"""
Registry of active agent sessions, keyed by room name.
"""
from typing import Dict, List, Optional, TYPE_CHECKING

from storytime.shared.logging import ServiceLogger

if TYPE_CHECKING:
    from .session_manager import AgentSessionManager

logger = ServiceLogger("session-registry")


class SessionRegistry:
    """Maps room names to the session managers running them"""

    def __init__(self):
        self._sessions: Dict[str, "AgentSessionManager"] = {}

    def register(self, room_name: str, session_manager: "AgentSessionManager"):
        if room_name in self._sessions:
            logger.warning(f"Session for room '{room_name}' is being overwritten")
        self._sessions[room_name] = session_manager
        logger.room(room_name, "Session registered")

    def unregister(self, room_name: str):
        if self._sessions.pop(room_name, None) is not None:
            logger.room(room_name, "Session unregistered")

    def get(self, room_name: str) -> Optional["AgentSessionManager"]:
        return self._sessions.get(room_name)

    def has(self, room_name: str) -> bool:
        return room_name in self._sessions

    def get_room_names(self) -> List[str]:
        return list(self._sessions.keys())

    def size(self) -> int:
        return len(self._sessions)

    def clear(self):
        self._sessions.clear()


# One registry per worker process
session_registry = SessionRegistry()
