"""
Story API routes.
Starts stories, prepares narration chunks and serves story history.
"""
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from storytime.shared.logging import ServiceLogger
from storytime.shared.models import StoryMode
from storytime.shared.utils import generate_story_id, timing_decorator

from ..core.auth import get_current_user_id
from ..schemas import (
    StoryStartRequest, StoryStartResponse, StoryResponse, StoryHistoryResponse,
    AudioChunksRequest, AudioChunksResponse, AudioChunkModel
)
from ..repositories.user_repository import user_repository
from ..repositories.story_repository import story_repository
from ..services.story_service import (
    PREDEFINED_STORIES, pick_predefined_story, split_paragraphs,
    split_into_chunks, story_generator
)

logger = ServiceLogger("story-api")

router = APIRouter(prefix="/story", tags=["Stories"])

DEFAULT_VOICE = "default"


@router.post("/start", response_model=StoryStartResponse)
@timing_decorator
async def start_story(
    body: Any = Body(None),
    clerk_user_id: str = Depends(get_current_user_id)
):
    """
    Start a new story in the requested mode.

    Args:
        body: JSON body with an optional mode (predefined, generated or previous)
        clerk_user_id: Current authenticated user

    Returns:
        The persisted story with its paragraphs
    """
    request = StoryStartRequest.from_body(body)

    if request.mode not in StoryMode.values():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid story mode", "validModes": StoryMode.values()}
        )

    mode = StoryMode(request.mode)

    try:
        if mode == StoryMode.PREDEFINED:
            story_text = pick_predefined_story()

        elif mode == StoryMode.PREVIOUS:
            previous_story = story_repository.get_latest_story_for_user(clerk_user_id)
            # Fall back to predefined if no previous story
            story_text = previous_story.text if previous_story else PREDEFINED_STORIES[0]

        else:
            user = user_repository.get_user(clerk_user_id)
            story_text = await story_generator.generate(
                child_name=user.child_name if user else None,
                parent_name=user.parent_name if user else None
            )

        paragraphs = split_paragraphs(story_text)

        story = story_repository.save_story(
            clerk_user_id=clerk_user_id,
            story_id=generate_story_id(),
            mode=mode,
            text=story_text,
            paragraphs=paragraphs
        )

    except Exception as e:
        logger.error("Story start failed", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to start story"}
        )

    logger.story(f"Story started [{mode.value}] - {story.story_id} for user {clerk_user_id}")

    return StoryStartResponse(
        storyId=story.story_id,
        mode=mode.value,
        text=story.text,
        paragraphs=story.paragraphs,
        paragraphCount=len(story.paragraphs)
    )


@router.post("/audio-chunks", response_model=AudioChunksResponse)
@timing_decorator
async def create_audio_chunks(
    body: Any = Body(None),
    clerk_user_id: str = Depends(get_current_user_id)
):
    """
    Split story text into narration-sized chunks.

    Args:
        body: JSON body with storyText and an optional voiceId
        clerk_user_id: Current authenticated user

    Returns:
        Chunks with estimated durations and the voice to narrate them
    """
    request = AudioChunksRequest.from_body(body)

    if not request.storyText:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Missing required field: storyText"}
        )

    try:
        voice_id = request.voiceId
        if not voice_id:
            user = user_repository.get_user(clerk_user_id)
            voice_id = (user.preferred_voice_id if user else None) or DEFAULT_VOICE

        chunks = split_into_chunks(request.storyText)

    except Exception as e:
        logger.error("Audio chunk creation failed", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to create audio chunks"}
        )

    logger.voice(f"Audio chunks created: {len(chunks)} chunks for voice {voice_id}")

    return AudioChunksResponse(
        chunks=[AudioChunkModel(index=c.index, text=c.text, duration=c.duration) for c in chunks],
        voiceId=voice_id,
        totalChunks=len(chunks)
    )


@router.get("/history", response_model=StoryHistoryResponse)
@timing_decorator
async def get_story_history(clerk_user_id: str = Depends(get_current_user_id)):
    """Get the current user's stories, newest first"""
    try:
        stories = story_repository.get_stories_for_user(clerk_user_id)
    except Exception as e:
        logger.error("Story history failed", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to retrieve story history"}
        )

    return StoryHistoryResponse(
        stories=[StoryResponse.from_story(s) for s in stories],
        count=len(stories)
    )


@router.get("/{story_id}", response_model=StoryResponse)
@timing_decorator
async def get_story(story_id: str, clerk_user_id: str = Depends(get_current_user_id)):
    """Get one of the current user's stories"""
    try:
        story = story_repository.get_story(story_id, clerk_user_id=clerk_user_id)
    except Exception as e:
        logger.error(f"Failed to get story {story_id}", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to retrieve story"}
        )

    if not story:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Story not found"}
        )

    return StoryResponse.from_story(story)
