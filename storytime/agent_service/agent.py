"""
Story Time LiveKit agent worker.
Each dispatched job runs one AgentSessionManager for its room.
"""
from typing import List

from dotenv import load_dotenv

from livekit.agents import JobContext, JobProcess, WorkerOptions, cli
from livekit.plugins import silero

from storytime.shared.config import ENV_FILE_PATH, LiveKitConfig, livekit_config
from storytime.shared.logging import ServiceLogger

from .managers.session_manager import AgentSessionManager
from .managers.session_registry import session_registry

load_dotenv(ENV_FILE_PATH)

logger = ServiceLogger("agent-service")


def prewarm(proc: JobProcess):
    """Load the VAD model once per worker process"""
    proc.userdata["vad"] = silero.VAD.load()


async def entrypoint(ctx: JobContext):
    """Agent entrypoint - start the Story Time session for the dispatched room"""
    logger.info(f"Story Time agent started - room: {ctx.room.name}")

    session_manager = AgentSessionManager(ctx, session_registry)
    await session_manager.initialize()

    logger.info(f"Agent initialized for room: {session_manager.room_name}")


def missing_livekit_settings(config: LiveKitConfig = None) -> List[str]:
    """Names of the LiveKit environment variables the worker needs but lacks"""
    config = config or livekit_config
    required = {
        "LIVEKIT_URL": config.livekit_url,
        "LIVEKIT_API_KEY": config.livekit_api_key,
        "LIVEKIT_API_SECRET": config.livekit_api_secret,
    }
    return [name for name, value in required.items() if not value]


def main():
    missing = missing_livekit_settings()
    if missing:
        logger.warning(f"LiveKit settings not set: {', '.join(missing)}")
    else:
        logger.info(f"Worker '{livekit_config.agent_name}' connecting to {livekit_config.livekit_url}")

    cli.run_app(WorkerOptions(
        entrypoint_fnc=entrypoint,
        prewarm_fnc=prewarm,
        agent_name=livekit_config.agent_name,
    ))


if __name__ == "__main__":
    main()
