"""
Registration and routing of agent action handlers.
"""
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING

from storytime.shared.logging import ServiceLogger

from .base import ActionRequest, ActionResponse, BaseActionHandler, HandlerContext

if TYPE_CHECKING:
    from ..managers.session_manager import AgentSessionManager

logger = ServiceLogger("handler-manager")


class HandlerManager:
    """Maps action names to handlers and executes requests"""

    def __init__(
        self,
        ctx: Any,
        session: Any,
        room_name: str,
        session_manager: Optional["AgentSessionManager"] = None
    ):
        self.ctx = ctx
        self.session = session
        self.room_name = room_name
        self.session_manager = session_manager
        self._handlers: Dict[str, BaseActionHandler] = {}

    def register(self, handler: BaseActionHandler):
        """Register an action handler, replacing any handler for the same action"""
        if handler.action_name in self._handlers:
            logger.warning(f"Handler for action '{handler.action_name}' is being overwritten")
        self._handlers[handler.action_name] = handler
        logger.debug(f"Registered handler for action: {handler.action_name}")

    def register_all(self, handlers: Iterable[BaseActionHandler]):
        for handler in handlers:
            self.register(handler)

    def get_handler(self, action_name: str) -> Optional[BaseActionHandler]:
        return self._handlers.get(action_name)

    def has_handler(self, action_name: str) -> bool:
        return action_name in self._handlers

    def get_action_names(self) -> List[str]:
        return list(self._handlers.keys())

    async def process_action(self, request: ActionRequest) -> ActionResponse:
        """
        Route a request to its handler.

        Unknown actions, invalid payloads and handler exceptions are all
        reported as unsuccessful responses.
        """
        handler = self._handlers.get(request.action)

        if handler is None:
            return ActionResponse(
                success=False,
                error=f"Unknown action: {request.action}. "
                      f"Available actions: {', '.join(self.get_action_names())}"
            )

        if not handler.validate(request.payload):
            return ActionResponse(
                success=False,
                error=f"Invalid payload for action: {request.action}"
            )

        try:
            response = await handler.handle(HandlerContext(
                ctx=self.ctx,
                session=self.session,
                request=request,
                room_name=self.room_name,
                session_context=self.session_manager
            ))
        except Exception as e:
            logger.error(f"Error handling action '{request.action}'", e)
            return ActionResponse(
                success=False,
                error=f"Failed to execute action: {e}"
            )

        logger.action(request.action, self.room_name, response.success, response.error)
        return response
