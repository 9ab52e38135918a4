"""
Shared data models used across services.
Defines the persisted entities and common data transfer structures.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from datetime import datetime
from enum import Enum


class StoryMode(str, Enum):
    """Story generation modes"""
    PREDEFINED = "predefined"
    GENERATED = "generated"
    PREVIOUS = "previous"

    @classmethod
    def values(cls) -> List[str]:
        return [mode.value for mode in cls]


@dataclass
class UserData:
    """User profile, one per Clerk identity"""
    clerk_id: str
    parent_name: Optional[str] = None
    child_name: Optional[str] = None
    chosen_voice: Optional[str] = None
    chosen_voice_id: Optional[str] = None
    voice_clone_id: Optional[str] = None
    persona_id: Optional[str] = None
    onboarding_complete: bool = False
    voice_recording_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def preferred_voice_id(self) -> Optional[str]:
        """Cloned voice first, then the voice picked during onboarding"""
        return self.voice_clone_id or self.chosen_voice_id

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserData":
        return cls(
            clerk_id=row['clerk_id'],
            parent_name=row.get('parent_name'),
            child_name=row.get('child_name'),
            chosen_voice=row.get('chosen_voice'),
            chosen_voice_id=row.get('chosen_voice_id'),
            voice_clone_id=row.get('voice_clone_id'),
            persona_id=row.get('persona_id'),
            onboarding_complete=bool(row.get('onboarding_complete', False)),
            voice_recording_url=row.get('voice_recording_url'),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at')
        )


@dataclass
class StoryData:
    """A story told to a user's child"""
    story_id: str
    clerk_user_id: str
    mode: StoryMode
    text: str
    paragraphs: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "StoryData":
        return cls(
            story_id=row['story_id'],
            clerk_user_id=row['clerk_user_id'],
            mode=StoryMode(row['mode']),
            text=row['text'],
            paragraphs=list(row.get('paragraphs') or []),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at')
        )


@dataclass
class AudioChunk:
    """A piece of story text sized for one TTS request"""
    index: int
    text: str
    duration: Optional[int] = None
