"""
Per-room storytelling state: the family context and the story being told.
"""
from typing import AsyncIterator, Optional

from storytime.shared.llm import LLMService
from storytime.shared.logging import ServiceLogger

from .models import StoryContext, StoryPage, StoryState, StorySynopsis
from .onboarding import StorytellingError, process_onboarding
from .pages import generate_full_story, generate_next_page, stream_story
from .inference_llm import resolve_story_llm
from .synopsis import create_story_synopsis

logger = ServiceLogger("story-orchestrator")


class StoryOrchestrator:
    """Runs onboarding, synopsis and page generation for one room"""

    def __init__(self, llm_service: Optional[LLMService] = None):
        self.llm_service = resolve_story_llm(llm_service)
        self.context: Optional[StoryContext] = None
        self.story: Optional[StoryState] = None

    async def onboard_parent(self, transcript: str) -> StoryContext:
        self.context = await process_onboarding(transcript, self.llm_service)
        return self.context

    def set_context(self, context: StoryContext):
        self.context = context

    def _require_context(self) -> StoryContext:
        if self.context is None:
            raise StorytellingError("Context not set. Call onboard_parent() first.")
        return self.context

    async def create_synopsis(self, child_request: str) -> StorySynopsis:
        """Plan a new story, replacing any story in progress"""
        context = self._require_context()
        synopsis = await create_story_synopsis(context, child_request, self.llm_service)
        self.story = StoryState(synopsis=synopsis, context=context)
        return synopsis

    async def next_page(self) -> Optional[StoryPage]:
        """
        Generate the next page of the current story.

        Returns:
            The new page, or None when the story is already complete

        Raises:
            StorytellingError: If no story has been planned
        """
        if self.story is None:
            raise StorytellingError("No story found. Please create a story synopsis first.")
        if self.story.is_complete:
            return None

        page, is_last_page = await generate_next_page(
            self.story.synopsis, self.story.context, self.story.pages, self.llm_service
        )
        self.story.pages.append(page)
        self.story.current_page = page.page_number
        self.story.is_complete = is_last_page
        return page

    def tell_story(self, synopsis: StorySynopsis) -> AsyncIterator[StoryPage]:
        return stream_story(synopsis, self._require_context(), self.llm_service)

    async def get_full_story(self, synopsis: StorySynopsis) -> StoryState:
        return await generate_full_story(synopsis, self._require_context(), self.llm_service)

    def reset(self):
        self.context = None
        self.story = None
