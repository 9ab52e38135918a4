"""
Storytelling operations exposed to the voice agent as function tools.
Every operation returns a JSON string with a success flag, never raising.
"""
import json
from typing import Any, Dict

from storytime.shared.logging import ServiceLogger

from .orchestrator import StoryOrchestrator

logger = ServiceLogger("storytelling-tools")

NO_CONTEXT_ERROR = (
    "No story context found. Please set up the parent and child information "
    "first using create_story_context."
)
NO_STORY_ERROR = "No story found. Please create a story synopsis first."


def _result(**fields: Any) -> str:
    return json.dumps({k: v for k, v in fields.items() if v is not None}, ensure_ascii=False)


def _page_result(page, total_pages: int) -> Dict[str, Any]:
    return {
        "success": True,
        "page": page.page_number,
        "content": page.content,
        "totalPages": total_pages,
        "interactionPrompt": page.interaction_prompt,
        "suggestedPause": page.suggested_pause,
    }


class StorytellingTools:
    """Tool implementations backed by a room's story orchestrator"""

    def __init__(self, orchestrator: StoryOrchestrator):
        self.orchestrator = orchestrator

    async def create_story_context(self, parent_info: str, child_info: str) -> str:
        try:
            transcript = f"Parent Information:\n{parent_info}\n\nChild Information:\n{child_info}"
            context = await self.orchestrator.onboard_parent(transcript)

            parent = context.parent_persona.name
            child = context.child_profile.name
            return _result(
                success=True,
                message=f"Got it! I've learned about {parent} and {child}. Ready to create magical stories!",
                context={"parent": parent, "child": child, "age": context.child_profile.age},
            )
        except Exception as e:
            logger.error("Failed to create story context", e)
            return _result(success=False, error=str(e) or "Failed to process context")

    async def create_story(self, child_request: str) -> str:
        if self.orchestrator.context is None:
            return _result(success=False, error=NO_CONTEXT_ERROR)

        try:
            synopsis = await self.orchestrator.create_synopsis(child_request)
            return _result(
                success=True,
                message=f'I\'ve created a story called "{synopsis.title}". It\'s about {synopsis.premise}',
                synopsis={
                    "title": synopsis.title,
                    "premise": synopsis.premise,
                    "theme": synopsis.theme,
                    "pages": synopsis.estimated_pages,
                },
            )
        except Exception as e:
            logger.error("Failed to create story synopsis", e)
            return _result(success=False, error=str(e) or "Failed to create story synopsis")

    async def tell_story(self) -> str:
        """Start the current story from its first page"""
        story = self.orchestrator.story
        if self.orchestrator.context is None or story is None:
            return _result(success=False, error=NO_STORY_ERROR)

        # Restart from the beginning when telling again
        story.pages.clear()
        story.current_page = 0
        story.is_complete = False

        return await self._next_page("Failed to tell story")

    async def continue_story(self) -> str:
        """Tell the next page of the current story"""
        story = self.orchestrator.story
        if self.orchestrator.context is None or story is None:
            return _result(success=False, error=NO_STORY_ERROR)

        if story.is_complete:
            return _result(
                success=True,
                finished=True,
                message=f'That was the end of "{story.synopsis.title}".',
                totalPages=story.synopsis.estimated_pages,
            )

        return await self._next_page("Failed to continue story")

    async def _next_page(self, failure_message: str) -> str:
        try:
            page = await self.orchestrator.next_page()
        except Exception as e:
            logger.error(failure_message, e)
            return _result(success=False, error=str(e) or failure_message)

        if page is None:
            return _result(success=False, error="Failed to generate story page")

        story = self.orchestrator.story
        result = _page_result(page, story.synopsis.estimated_pages)
        result["finished"] = story.is_complete
        return _result(**result)
