"""
Base types for agent action handlers.
Actions arrive from the client as room data messages and are answered in kind.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..managers.session_manager import AgentSessionManager


@dataclass
class ActionRequest:
    """Action request sent from the client"""
    action: str
    payload: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ActionRequest":
        payload = data.get("payload")
        return cls(
            action=data["action"],
            payload=payload if isinstance(payload, dict) else None
        )

    def get(self, key: str) -> Any:
        return (self.payload or {}).get(key)


@dataclass
class ActionResponse:
    """Action response returned to the client"""
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    data: Any = None

    def to_dict(self) -> Dict[str, Any]:
        response: Dict[str, Any] = {"success": self.success}
        if self.message is not None:
            response["message"] = self.message
        if self.error is not None:
            response["error"] = self.error
        if self.data is not None:
            response["data"] = self.data
        return response


@dataclass
class HandlerContext:
    """Everything a handler may need to execute an action"""
    ctx: Any
    session: Any
    request: ActionRequest
    room_name: str
    session_context: Optional["AgentSessionManager"] = None
    extras: Dict[str, Any] = field(default_factory=dict)


def non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


class BaseActionHandler(ABC):
    """Abstract base class for action handlers"""

    def __init__(self, action_name: str):
        self.action_name = action_name

    @abstractmethod
    async def handle(self, context: HandlerContext) -> ActionResponse:
        """Execute the action"""

    def validate(self, payload: Optional[Dict[str, Any]]) -> bool:
        """Check the request payload. Accepts anything unless overridden."""
        return True

    def success(self, message: str = None, data: Any = None) -> ActionResponse:
        return ActionResponse(success=True, message=message, data=data)

    def error(self, error: str, data: Any = None) -> ActionResponse:
        return ActionResponse(success=False, error=error, data=data)
