"""
Lifecycle of one agent session, from room connection to shutdown.
"""
import json
from typing import Any, Optional

from livekit.agents import AgentSession, JobContext, MetricsCollectedEvent, RoomInputOptions, inference, metrics
from livekit.plugins import noise_cancellation
from livekit.plugins.turn_detector.multilingual import MultilingualModel

from storytime.shared.config import voice_config
from storytime.shared.logging import ServiceLogger

from ..storytime_agent import StorytimeAgent
from .room_event_handler import RoomEventHandler
from .session_registry import SessionRegistry

logger = ServiceLogger("session-manager")


def extract_voice_id(metadata: Optional[str], default_voice_id: str) -> str:
    """
    Read the voice id from job metadata.

    Args:
        metadata: JSON string such as {"voice_id": "..."}
        default_voice_id: Voice used when metadata carries none

    Returns:
        Voice id to start the session with
    """
    if metadata:
        try:
            voice_id = json.loads(metadata).get("voice_id")
            if isinstance(voice_id, str) and voice_id:
                logger.info(f"Using voice ID from metadata: {voice_id}")
                return voice_id
        except (json.JSONDecodeError, AttributeError) as e:
            logger.warning(f"Failed to parse job metadata for voice ID: {e}")

    logger.info(f"Using default voice ID: {default_voice_id}")
    return default_voice_id


class AgentSessionManager:
    """Runs the Story Time agent in one room"""

    def __init__(self, ctx: JobContext, session_registry: SessionRegistry):
        self.ctx = ctx
        self.session_registry = session_registry
        self.room_name = ctx.job.room.name if ctx.job.room else "unknown"
        self.voice_id = extract_voice_id(ctx.job.metadata, voice_config.default_voice_id)

        self.agent = StorytimeAgent()
        self.session: Optional[AgentSession] = None
        self.event_handler: Optional[RoomEventHandler] = None
        self.usage_collector = metrics.UsageCollector()

    async def initialize(self):
        """Connect, start the voice pipeline and begin handling room actions"""
        await self.ctx.connect()
        await self.ctx.wait_for_participant()

        self.session = self._create_session()
        self._setup_metrics()
        self.ctx.add_shutdown_callback(self.shutdown)

        await self.session.start(
            agent=self.agent,
            room=self.ctx.room,
            room_input_options=RoomInputOptions(
                noise_cancellation=noise_cancellation.BVC(),
            ),
        )

        self.session_registry.register(self.room_name, self)

        self.event_handler = RoomEventHandler(
            ctx=self.ctx,
            session=self.session,
            room=self.ctx.room,
            room_name=self.room_name,
            session_registry=self.session_registry,
            session_manager=self,
        )
        self.event_handler.subscribe()

        logger.room(self.room_name, "Agent session ready")

    def _create_session(self) -> AgentSession:
        return AgentSession(
            stt=inference.STT(model=voice_config.stt_model, language=voice_config.language),
            llm=inference.LLM(model=voice_config.agent_llm_model),
            tts=self._create_tts(),
            turn_detection=MultilingualModel(),
            vad=self.ctx.proc.userdata["vad"],
            preemptive_generation=True,
        )

    def _create_tts(self) -> Any:
        return inference.TTS(
            model=voice_config.tts_model,
            voice=self.voice_id,
            language=voice_config.language,
        )

    def _setup_metrics(self):
        @self.session.on("metrics_collected")
        def on_metrics_collected(ev: MetricsCollectedEvent):
            metrics.log_metrics(ev.metrics)
            self.usage_collector.collect(ev.metrics)

    def update_voice_id(self, voice_id: str):
        """
        Switch the TTS voice. Takes effect on the next speech generation.

        Args:
            voice_id: ElevenLabs voice id
        """
        logger.info(f"Updating voice ID from {self.voice_id} to {voice_id}")
        self.voice_id = voice_id

        if self.session is not None and self.session.tts is not None:
            self.session.tts.update_options(voice=voice_id)

        logger.voice(f"Voice updated to {voice_id} for room {self.room_name}")

    async def shutdown(self, *args):
        """Shutdown callback: stop handling actions and release room state"""
        logger.room(self.room_name, "Shutting down agent")

        if self.event_handler is not None:
            self.event_handler.unsubscribe()
            self.event_handler.storage.clear()

        logger.info(f"Usage for room {self.room_name}: {self.usage_collector.get_summary()}")

        self.session_registry.unregister(self.room_name)
        self.agent.reset_story()
