"""
LiveKit connection API routes.
Issues participant tokens and dispatches the storytelling agent with the user's voice.
"""
import json
from datetime import timedelta
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Response, status

from livekit.api import AccessToken, VideoGrants
from livekit.protocol.agent_dispatch import RoomAgentDispatch
from livekit.protocol.room import RoomConfiguration

from storytime.shared.logging import ServiceLogger
from storytime.shared.config import livekit_config
from storytime.shared.utils import random_suffix, timing_decorator

from ..core.auth import get_current_user_id
from ..schemas import ConnectionDetailsRequest, ConnectionDetails
from ..repositories.user_repository import user_repository

logger = ServiceLogger("livekit-api")

router = APIRouter(prefix="/livekit", tags=["LiveKit"])

PARTICIPANT_NAME = "user"


def create_participant_token(
    identity: str,
    name: str,
    room_name: str,
    agent_name: Optional[str] = None,
    voice_id: Optional[str] = None
) -> str:
    """
    Create participant access token for LiveKit.

    Args:
        identity: Participant identity
        name: Participant display name
        room_name: Room name
        agent_name: Optional agent to dispatch into the room
        voice_id: Optional TTS voice passed to the agent as job metadata

    Returns:
        JWT access token
    """
    token = AccessToken(
        api_key=livekit_config.livekit_api_key,
        api_secret=livekit_config.livekit_api_secret
    ).with_identity(identity).with_name(name).with_ttl(
        timedelta(minutes=livekit_config.token_ttl_minutes)
    )

    token = token.with_grants(VideoGrants(
        room=room_name,
        room_join=True,
        can_publish=True,
        can_publish_data=True,
        can_subscribe=True
    ))

    if agent_name:
        metadata = {"voice_id": voice_id} if voice_id else {}
        token = token.with_room_config(RoomConfiguration(
            agents=[RoomAgentDispatch(agent_name=agent_name, metadata=json.dumps(metadata))]
        ))

    return token.to_jwt()


@router.post("/connection-details", response_model=ConnectionDetails)
@timing_decorator
async def get_connection_details(
    request: ConnectionDetailsRequest,
    response: Response,
    clerk_user_id: str = Depends(get_current_user_id)
):
    """
    Get LiveKit connection details for a new storytelling room.

    Args:
        request: Optional room configuration naming the agent to dispatch
        response: Outgoing response, used to disable caching
        clerk_user_id: Current authenticated user

    Returns:
        Server URL, room name and participant token
    """
    if not livekit_config.is_configured:
        logger.error("LiveKit configuration incomplete")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "LiveKit configuration incomplete"}
        )

    agent_name = None
    if request.room_config and request.room_config.agents:
        agent_name = request.room_config.agents[0].agent_name

    try:
        voice_id = None
        if agent_name:
            user = user_repository.get_user(clerk_user_id)
            voice_id = user.preferred_voice_id if user else None

        participant_identity = f"voice_assistant_user_{random_suffix()}"
        room_name = f"voice_assistant_room_{random_suffix()}"

        participant_token = create_participant_token(
            identity=participant_identity,
            name=PARTICIPANT_NAME,
            room_name=room_name,
            agent_name=agent_name,
            voice_id=voice_id
        )

    except Exception as e:
        logger.error("Failed to create connection details", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to generate connection details"}
        )

    logger.success(f"Generated LiveKit connection for {clerk_user_id}: room {room_name}")
    if voice_id:
        logger.voice(f"Agent {agent_name} will use voice {voice_id}")

    response.headers["Cache-Control"] = "no-store"

    return ConnectionDetails(
        serverUrl=livekit_config.livekit_url,
        roomName=room_name,
        participantName=PARTICIPANT_NAME,
        participantToken=participant_token
    )
