"""
Handler that stores text for later playback.

Payload: {"id": str, "text": str}
"""
from typing import Dict, List, Optional

from storytime.shared.logging import ServiceLogger

from .base import BaseActionHandler, HandlerContext, ActionResponse, non_empty_string

logger = ServiceLogger("store-handler")


class TextStorage:
    """In-memory text items keyed by ID. Later writes replace earlier ones."""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def store(self, item_id: str, text: str):
        self._items[item_id] = text

    def get(self, item_id: str) -> Optional[str]:
        return self._items.get(item_id)

    def delete(self, item_id: str) -> bool:
        return self._items.pop(item_id, None) is not None

    def has(self, item_id: str) -> bool:
        return item_id in self._items

    def list(self) -> List[Dict[str, str]]:
        return [{"id": item_id, "text": text} for item_id, text in self._items.items()]

    def clear(self):
        self._items.clear()

    def size(self) -> int:
        return len(self._items)


class StoreHandler(BaseActionHandler):

    def __init__(self, storage: TextStorage):
        super().__init__("store")
        self.storage = storage

    def validate(self, payload) -> bool:
        return (
            bool(payload)
            and non_empty_string(payload.get("id"))
            and non_empty_string(payload.get("text"))
        )

    async def handle(self, context: HandlerContext) -> ActionResponse:
        item_id = context.request.get("id")
        text = context.request.get("text")

        self.storage.store(item_id, text)
        logger.info(f"Stored text with id '{item_id}': {text[:50]}...")

        return self.success("Text stored successfully", {
            "id": item_id,
            "textLength": len(text),
            "totalStored": self.storage.size(),
        })
