"""
Handler that makes the agent say text aloud.

Payload: {"text": str}
"""
from storytime.shared.logging import ServiceLogger

from .base import BaseActionHandler, HandlerContext, ActionResponse, non_empty_string

logger = ServiceLogger("say-handler")


class SayHandler(BaseActionHandler):

    def __init__(self):
        super().__init__("say")

    def validate(self, payload) -> bool:
        return bool(payload) and non_empty_string(payload.get("text"))

    async def handle(self, context: HandlerContext) -> ActionResponse:
        text = context.request.get("text")

        try:
            await context.session.say(text)
        except Exception as e:
            logger.error("Failed to speak text", e)
            return self.error(str(e) or "Failed to speak text")

        return self.success("Text spoken successfully", {"text": text})
