"""
Storytelling pipeline: onboarding analysis, synopsis planning and page generation.
"""
from .models import (
    ChildProfile,
    ParentPersona,
    StoryCharacter,
    StoryContext,
    StoryPage,
    StoryState,
    StorySynopsis,
)
from .onboarding import StorytellingError, process_onboarding
from .synopsis import create_story_synopsis
from .pages import generate_full_story, generate_next_page, stream_story
from .inference_llm import InferenceLLMService, resolve_story_llm
from .orchestrator import StoryOrchestrator

__all__ = [
    "ChildProfile",
    "ParentPersona",
    "StoryCharacter",
    "StoryContext",
    "StoryPage",
    "StoryState",
    "StorySynopsis",
    "StorytellingError",
    "process_onboarding",
    "create_story_synopsis",
    "generate_full_story",
    "generate_next_page",
    "stream_story",
    "InferenceLLMService",
    "resolve_story_llm",
    "StoryOrchestrator",
]
