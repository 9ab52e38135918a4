"""
Voice cloning API routes.
Uploads the parent's recorded sample to ElevenLabs and stores the cloned voice.
"""
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from storytime.shared.logging import ServiceLogger
from storytime.shared.config import voice_config
from storytime.shared.utils import timing_decorator

from ..core.auth import get_current_user_id
from ..schemas import VoiceCloneResponse, VoiceStatusResponse
from ..repositories.user_repository import user_repository
from ..clients.voice_clients import elevenlabs_client

logger = ServiceLogger("voice-api")

router = APIRouter(prefix="/onboarding/voice", tags=["Voice"])


@router.post("/create", response_model=VoiceCloneResponse, response_model_exclude_none=True)
@timing_decorator
async def create_voice_clone(
    audio: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    clerk_user_id: str = Depends(get_current_user_id)
):
    """
    Create a voice clone from the uploaded recording.

    Args:
        audio: Recorded voice sample
        name: Optional voice name
        clerk_user_id: Current authenticated user

    Returns:
        Created voice ID, or a skipped marker when cloning is not configured
    """
    if audio is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "No audio file provided"}
        )

    audio_bytes = await audio.read()
    if not audio_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "No audio file provided"}
        )

    if len(audio_bytes) > voice_config.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={"error": "Audio file too large"}
        )

    if not elevenlabs_client.is_configured:
        logger.warning("ELEVENLABS_API_KEY not set - skipping voice clone creation")
        return VoiceCloneResponse(
            success=False,
            message="Voice cloning not configured. Add ELEVENLABS_API_KEY to .env",
            skipped=True
        )

    try:
        user = user_repository.get_user(clerk_user_id)
        parent_name = user.parent_name if user and user.parent_name else None
        child_name = user.child_name if user and user.child_name else None

        voice_name = (name or "").strip() or f"{parent_name or 'User'}'s Story Voice"
        description = f"Voice clone for {parent_name or 'parent'} to read stories to {child_name or 'child'}"

        logger.info(f"Creating voice clone for user {clerk_user_id}: {voice_name}")

        voice_id = await elevenlabs_client.add_voice(
            name=voice_name,
            description=description,
            audio_bytes=audio_bytes,
            filename="voice-sample.webm",
            content_type=audio.content_type or "audio/webm"
        )

        user_repository.update_user_voice_clone(clerk_user_id, voice_id)

    except Exception as e:
        logger.error("Voice clone creation failed", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to create voice clone", "message": str(e)}
        )

    return VoiceCloneResponse(
        success=True,
        message="Voice clone created successfully",
        voiceId=voice_id,
        voiceName=voice_name
    )


@router.get("/status", response_model=VoiceStatusResponse)
@timing_decorator
async def get_voice_status(clerk_user_id: str = Depends(get_current_user_id)):
    """Check whether the current user has a cloned voice"""
    try:
        user = user_repository.get_user(clerk_user_id)
    except Exception as e:
        logger.error("Failed to check voice status", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to check voice status"}
        )

    voice_id = user.voice_clone_id if user else None

    return VoiceStatusResponse(hasVoiceClone=bool(voice_id), voiceId=voice_id)
