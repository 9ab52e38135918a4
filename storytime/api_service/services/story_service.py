"""
Story content services.
Built-in stories, personalized generation and text chunking for narration.
"""
import math
import random
import re
from typing import List, Optional

from storytime.shared.logging import ServiceLogger
from storytime.shared.llm import LLMService, LLMUnavailableError, get_llm_service
from storytime.shared.models import AudioChunk

logger = ServiceLogger("story-service")

PREDEFINED_STORIES = [
    """Once upon a time, in a cozy little house on Maple Street, there lived a curious child who loved to explore.

Every morning, they would wake up early and look out the window at the garden below. The flowers swayed gently in the breeze, and butterflies danced from petal to petal.

One special day, something magical happened. A tiny door appeared at the base of the old oak tree, and our brave little adventurer knew that a wonderful journey was about to begin.""",

    """In a land where dreams come true, there was a special place called Starlight Meadow.

The meadow was home to friendly creatures who loved to play and sing. Every night, when the stars came out, they would gather to share stories and make wishes.

And on this particular evening, a new friend was about to arrive, bringing with them the most wonderful adventure anyone had ever seen.""",
]

DEFAULT_CHILD_NAME = "little one"
DEFAULT_PARENT_NAME = "dear friend"

# Paragraphs longer than this are split into sentences
MAX_CHUNK_CHARS = 200

# Narration pace estimate
WORDS_PER_MINUTE = 150
CHARS_PER_WORD = 5

_PARAGRAPH_BREAK = re.compile(r'\n\s*\n')
_SENTENCE = re.compile(r'[^.!?]+[.!?]+')

STORY_SYSTEM_PROMPT = """You are a warm, gentle bedtime storyteller.
You write short, calming stories for young children that a parent will read aloud."""


def pick_predefined_story() -> str:
    """Pick a random built-in story"""
    return random.choice(PREDEFINED_STORIES)


def template_story(child_name: str, parent_name: str) -> str:
    """Personalized story used when no LLM is available"""
    return f"""Once upon a time, {child_name} went on an amazing adventure with {parent_name}.

They discovered a magical forest where the trees whispered secrets and the flowers glowed with rainbow colors. Together, they followed a sparkling path that led deeper into the enchanted woods.

At the end of their journey, they found a hidden treasure - not gold or jewels, but something far more precious: a beautiful memory they would share forever. And {child_name} knew that with {parent_name} by their side, every day could be an adventure."""


def split_paragraphs(text: str) -> List[str]:
    """Split story text on blank lines, dropping empty paragraphs"""
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def estimate_duration_ms(text: str) -> int:
    """Estimated narration time in milliseconds"""
    return math.ceil((len(text) / CHARS_PER_WORD) * (60 / WORDS_PER_MINUTE) * 1000)


def split_into_chunks(text: str) -> List[AudioChunk]:
    """
    Split story text into narration chunks.

    Each paragraph becomes one chunk; paragraphs longer than
    MAX_CHUNK_CHARS are split into sentences.
    """
    chunks: List[AudioChunk] = []

    for paragraph in split_paragraphs(text):
        if len(paragraph) > MAX_CHUNK_CHARS:
            pieces = _SENTENCE.findall(paragraph) or [paragraph]
        else:
            pieces = [paragraph]

        for piece in pieces:
            piece = piece.strip()
            if not piece:
                continue
            chunks.append(AudioChunk(
                index=len(chunks),
                text=piece,
                duration=estimate_duration_ms(piece)
            ))

    return chunks


class StoryGenerator:
    """Generates personalized stories with the LLM, falling back to a template"""

    def __init__(self, llm_service: Optional[LLMService] = None):
        self._llm_service = llm_service

    @property
    def llm(self) -> LLMService:
        if self._llm_service is None:
            self._llm_service = get_llm_service()
        return self._llm_service

    def _build_prompt(self, child_name: str, parent_name: str) -> str:
        return f"""Write a bedtime story starring {child_name}, who goes on a gentle adventure with {parent_name}.

Requirements:
- 3 to 5 short paragraphs separated by blank lines
- Simple vocabulary for a young child
- A warm, sleepy ending
- Plain text only, no title, no markdown"""

    async def generate(
        self,
        child_name: Optional[str] = None,
        parent_name: Optional[str] = None
    ) -> str:
        """
        Generate a personalized story.

        Args:
            child_name: Child's name, defaults to "little one"
            parent_name: Parent's name, defaults to "dear friend"

        Returns:
            Story text with paragraphs separated by blank lines

        Raises:
            LLMUnavailableError: If the model gives no story and fallback is disabled in ai_config
        """
        child_name = child_name or DEFAULT_CHILD_NAME
        parent_name = parent_name or DEFAULT_PARENT_NAME

        try:
            if self.llm.is_available():
                text = await self.llm.complete(
                    STORY_SYSTEM_PROMPT,
                    self._build_prompt(child_name, parent_name),
                    temperature=0.8
                )
                if split_paragraphs(text):
                    return text.strip()
                logger.warning("LLM returned an empty story, using template")
        except LLMUnavailableError as e:
            logger.warning(f"Story generation unavailable, using template: {e}")

        if not getattr(self.llm, "fallback_enabled", True):
            raise LLMUnavailableError("Story generation failed and template fallback is disabled")

        return template_story(child_name, parent_name)


# Global story generator instance
story_generator = StoryGenerator()
