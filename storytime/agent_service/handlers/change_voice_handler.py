"""
Handler that switches the agent's TTS voice.

Payload: {"voice_id": str}
"""
from typing import TYPE_CHECKING

from storytime.shared.logging import ServiceLogger

from .base import BaseActionHandler, HandlerContext, ActionResponse, non_empty_string

if TYPE_CHECKING:
    from ..managers.session_registry import SessionRegistry

logger = ServiceLogger("change-voice-handler")


class ChangeVoiceHandler(BaseActionHandler):

    def __init__(self, session_registry: "SessionRegistry"):
        super().__init__("change_voice")
        self.session_registry = session_registry

    def validate(self, payload) -> bool:
        return bool(payload) and non_empty_string(payload.get("voice_id"))

    async def handle(self, context: HandlerContext) -> ActionResponse:
        voice_id = context.request.get("voice_id")

        session_manager = self.session_registry.get(context.room_name)
        if session_manager is None:
            return self.error("Session not found for this room")

        try:
            session_manager.update_voice_id(voice_id)
        except Exception as e:
            logger.error("Failed to change voice", e)
            return self.error(str(e) or "Failed to change voice")

        logger.voice(f"Voice changed to {voice_id} for room {context.room_name}")

        return self.success("Voice changed successfully", {"voice_id": voice_id})
