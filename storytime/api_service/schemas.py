"""
API Schema definitions for Story Time.
Defines request and response models for all API endpoints.
Field names follow the camelCase wire format of the web client.
"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field

from storytime.shared.models import StoryData, UserData


# Request bodies are read leniently: a missing body or a field of the wrong
# type is treated as absent so routes can answer with their own 400 errors.

def _body_string(body: Any, key: str) -> Optional[str]:
    value = body.get(key) if isinstance(body, dict) else None
    return value if isinstance(value, str) else None


# =============== Common Response Formats ===============

class HealthResponse(BaseModel):
    """Health check response"""
    status: str = "ok"
    timestamp: str
    service: str
    version: str
    uptime_seconds: int
    database: Dict[str, Any] = {}


class MessageResponse(BaseModel):
    """Simple message response"""
    message: str


# =============== Onboarding ===============

class OnboardingRequest(BaseModel):
    """Parent and child names captured during onboarding"""
    parentName: Optional[str] = None
    childName: Optional[str] = None
    chosenVoice: Optional[str] = None

    @classmethod
    def from_body(cls, body: Any) -> "OnboardingRequest":
        return cls(
            parentName=_body_string(body, "parentName"),
            childName=_body_string(body, "childName"),
            chosenVoice=_body_string(body, "chosenVoice")
        )


class OnboardingProfile(BaseModel):
    """Names echoed back after onboarding"""
    parentName: str
    childName: str
    chosenVoice: Optional[str] = None


class OnboardingResponse(BaseModel):
    """Onboarding response"""
    success: bool = True
    userId: str
    message: str
    data: OnboardingProfile


class OnboardingStatusResponse(BaseModel):
    """Onboarding progress for the current user"""
    onboardingComplete: bool
    hasProfile: bool
    hasVoiceClone: bool


class CurrentUserResponse(BaseModel):
    """Current user's profile"""
    userId: str
    parentName: Optional[str] = None
    childName: Optional[str] = None
    chosenVoice: Optional[str] = None
    chosenVoiceId: Optional[str] = None
    voiceCloneId: Optional[str] = None
    onboardingComplete: bool = False

    @classmethod
    def from_user(cls, user: UserData) -> "CurrentUserResponse":
        return cls(
            userId=user.clerk_id,
            parentName=user.parent_name,
            childName=user.child_name,
            chosenVoice=user.chosen_voice,
            chosenVoiceId=user.chosen_voice_id,
            voiceCloneId=user.voice_clone_id,
            onboardingComplete=user.onboarding_complete
        )


class CompleteOnboardingResponse(BaseModel):
    """Onboarding completion response"""
    success: bool = True
    onboardingComplete: bool = True


# =============== Voice Cloning ===============

class VoiceCloneResponse(BaseModel):
    """Voice clone creation response"""
    success: bool
    message: str
    voiceId: Optional[str] = None
    voiceName: Optional[str] = None
    skipped: Optional[bool] = None


class VoiceStatusResponse(BaseModel):
    """Voice clone status"""
    hasVoiceClone: bool
    voiceId: Optional[str] = None


# =============== Stories ===============

class StoryStartRequest(BaseModel):
    """Start story request"""
    mode: str = "predefined"

    @classmethod
    def from_body(cls, body: Any) -> "StoryStartRequest":
        """Default the mode when absent; keep any other value for validation"""
        mode = body.get("mode") if isinstance(body, dict) else None
        if mode is None:
            return cls()
        return cls(mode=mode if isinstance(mode, str) else str(mode))


class StoryStartResponse(BaseModel):
    """Start story response"""
    success: bool = True
    storyId: str
    mode: str
    text: str
    paragraphs: List[str]
    paragraphCount: int


class StoryResponse(BaseModel):
    """Stored story"""
    storyId: str
    mode: str
    text: str
    paragraphs: List[str]
    createdAt: Optional[str] = None

    @classmethod
    def from_story(cls, story: StoryData) -> "StoryResponse":
        created_at = story.created_at
        if created_at is not None and not isinstance(created_at, str):
            created_at = created_at.isoformat()
        return cls(
            storyId=story.story_id,
            mode=story.mode.value,
            text=story.text,
            paragraphs=story.paragraphs,
            createdAt=created_at
        )


class StoryHistoryResponse(BaseModel):
    """Story history response"""
    stories: List[StoryResponse]
    count: int


class AudioChunksRequest(BaseModel):
    """Audio chunks request"""
    storyText: Optional[str] = None
    voiceId: Optional[str] = None

    @classmethod
    def from_body(cls, body: Any) -> "AudioChunksRequest":
        return cls(
            storyText=_body_string(body, "storyText"),
            voiceId=_body_string(body, "voiceId")
        )


class AudioChunkModel(BaseModel):
    """Single audio chunk"""
    index: int
    text: str
    duration: Optional[int] = None


class AudioChunksResponse(BaseModel):
    """Audio chunks response"""
    chunks: List[AudioChunkModel]
    voiceId: str
    totalChunks: int


# =============== LiveKit Integration ===============

class AgentDispatch(BaseModel):
    """Agent requested by the client"""
    agent_name: Optional[str] = None


class RoomConfig(BaseModel):
    """Room configuration sent by the client"""
    agents: List[AgentDispatch] = Field(default_factory=list)


class ConnectionDetailsRequest(BaseModel):
    """Connection details request"""
    room_config: Optional[RoomConfig] = None


class ConnectionDetails(BaseModel):
    """LiveKit connection details"""
    serverUrl: str
    roomName: str
    participantName: str
    participantToken: str
