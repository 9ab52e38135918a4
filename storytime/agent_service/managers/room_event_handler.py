"""
Room data message routing.
Decodes action requests published by participants and answers each sender
on the action-response topic.
"""
import asyncio
import json
from typing import Any, Dict, Optional, Set

from livekit import rtc

from storytime.shared.logging import ServiceLogger

from ..handlers import (
    ActionRequest,
    ActionResponse,
    ChangeVoiceHandler,
    HandlerManager,
    PlayHandler,
    SayHandler,
    StoreHandler,
    TextStorage,
)
from .session_registry import SessionRegistry

logger = ServiceLogger("room-events")

RESPONSE_TOPIC = "action-response"


class RoomEventHandler:
    """Subscribes to a room's data messages and dispatches them to action handlers"""

    def __init__(
        self,
        ctx: Any,
        session: Any,
        room: rtc.Room,
        room_name: str,
        session_registry: SessionRegistry,
        session_manager=None
    ):
        self.ctx = ctx
        self.session = session
        self.room = room
        self.room_name = room_name
        self.session_registry = session_registry
        self.storage = TextStorage()
        self._subscribed = False
        self._tasks: Set[asyncio.Task] = set()

        self.handler_manager = HandlerManager(ctx, session, room_name, session_manager)
        self._register_handlers()

    def _register_handlers(self):
        self.handler_manager.register_all([
            SayHandler(),
            StoreHandler(self.storage),
            PlayHandler(self.storage),
            ChangeVoiceHandler(self.session_registry),
        ])
        logger.info(
            f"Handlers registered for room {self.room_name}: "
            f"{', '.join(self.handler_manager.get_action_names())}"
        )

    @property
    def is_subscribed(self) -> bool:
        return self._subscribed

    def subscribe(self):
        """Start listening for data messages"""
        if self._subscribed:
            logger.warning(f"Already subscribed to events for room: {self.room_name}")
            return

        self.room.on("data_received", self._on_data_received)
        self._subscribed = True
        logger.room(self.room_name, "Subscribed to data events")

    def unsubscribe(self):
        """Stop listening for data messages"""
        if not self._subscribed:
            return

        self.room.off("data_received", self._on_data_received)
        self._subscribed = False
        logger.room(self.room_name, "Unsubscribed from data events")

    def _on_data_received(self, packet: rtc.DataPacket):
        # Room callbacks are synchronous; the work runs as a task
        identity = packet.participant.identity if packet.participant else None
        task = asyncio.create_task(self.handle_data(packet.data, identity))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def handle_data(self, data: bytes, participant_identity: Optional[str]):
        """
        Process one data message.

        Args:
            data: Raw UTF-8 JSON payload
            participant_identity: Identity of the sending participant
        """
        try:
            text = data.decode("utf-8")
            logger.debug(f"Received data from {participant_identity or 'unknown'}: {text}")

            try:
                message = json.loads(text)
            except json.JSONDecodeError as e:
                logger.error("Failed to parse data packet as JSON", e)
                await self.send_response(participant_identity, ActionResponse(
                    success=False, error="Invalid JSON payload"
                ).to_dict())
                return

            if not isinstance(message, dict) or not message.get("action"):
                await self.send_response(participant_identity, ActionResponse(
                    success=False, error="Missing action field in request"
                ).to_dict())
                return

            response = await self.handler_manager.process_action(ActionRequest.from_dict(message))
            await self.send_response(participant_identity, response.to_dict())

        except Exception as e:
            logger.error("Error handling data message", e)
            await self.send_response(participant_identity, ActionResponse(
                success=False, error=str(e) or "Unknown error"
            ).to_dict())

    async def send_response(self, participant_identity: Optional[str], response: Dict[str, Any]):
        """Publish a response to one participant"""
        if not participant_identity:
            logger.error("Cannot send response: participant identity is missing")
            return

        try:
            await self.room.local_participant.publish_data(
                json.dumps(response, ensure_ascii=False).encode("utf-8"),
                reliable=True,
                destination_identities=[participant_identity],
                topic=RESPONSE_TOPIC,
            )
            logger.debug(f"Sent response to {participant_identity}")
        except Exception as e:
            logger.error("Error sending response", e)
