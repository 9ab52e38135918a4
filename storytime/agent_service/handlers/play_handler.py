"""
Handler that speaks previously stored text.

Payload: {"id": str}
"""
from storytime.shared.logging import ServiceLogger

from .base import BaseActionHandler, HandlerContext, ActionResponse, non_empty_string
from .store_handler import TextStorage

logger = ServiceLogger("play-handler")


class PlayHandler(BaseActionHandler):

    def __init__(self, storage: TextStorage):
        super().__init__("play")
        self.storage = storage

    def validate(self, payload) -> bool:
        return bool(payload) and non_empty_string(payload.get("id"))

    async def handle(self, context: HandlerContext) -> ActionResponse:
        item_id = context.request.get("id")
        text = self.storage.get(item_id)

        if text is None:
            return self.error(f"No text found with id: {item_id}", {
                "id": item_id,
                "availableIds": [item["id"] for item in self.storage.list()],
            })

        try:
            await context.session.say(text)
        except Exception as e:
            logger.error("Failed to play text", e)
            return self.error(str(e) or "Failed to play text")

        logger.info(f"Played text with id '{item_id}': {text[:50]}...")

        return self.success("Text played successfully", {"id": item_id, "text": text})
