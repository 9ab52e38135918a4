"""
The Story Time voice agent and its storytelling function tools.
"""
from typing import Optional

from livekit.agents import Agent, RunContext, function_tool

from storytime.shared.llm import LLMService

from .storytelling import StoryOrchestrator
from .storytelling.tools import StorytellingTools

AGENT_INSTRUCTIONS = """You are the Story Time assistant, a helpful voice AI that helps users manage and play stories.
The user is interacting with you via voice, even if you perceive the conversation as text.
You can help users by listening to their requests and responding naturally.
Your responses are concise, to the point, and without any complex formatting or punctuation including emojis, asterisks, or other symbols.
You are curious, friendly, and have a sense of humor.

When you learn about the parent and the child, call create_story_context.
When the child asks for a story, call create_story, then tell_story to read the first page
and continue_story for each following page until the story is finished.

Note: The frontend can also send direct action commands to store, retrieve, and play stories through data messages."""


class StorytimeAgent(Agent):
    """Voice assistant that plans and tells personalized stories"""

    def __init__(self, llm_service: Optional[LLMService] = None):
        super().__init__(instructions=AGENT_INSTRUCTIONS)
        self.orchestrator = StoryOrchestrator(llm_service)
        self.story_tools = StorytellingTools(self.orchestrator)

    @function_tool
    async def create_story_context(self, context: RunContext, parent_info: str, child_info: str) -> str:
        """Process information about the parent and child to create a storytelling context.
        Call this when you learn about the parent and child (their names, ages, interests,
        storytelling style, etc.).

        Args:
            parent_info: Information about the parent: name, storytelling style, favorite themes, values, etc.
            child_info: Information about the child: name, age, interests, fears, attention span, etc.
        """
        return await self.story_tools.create_story_context(parent_info, child_info)

    @function_tool
    async def create_story(self, context: RunContext, child_request: str) -> str:
        """Create a story synopsis based on what the child wants. Call this when the child
        requests a story or says what kind of story they'd like to hear.

        Args:
            child_request: What the child said about the story they want (e.g. "a story about dinosaurs", "something about space")
        """
        return await self.story_tools.create_story(child_request)

    @function_tool
    async def tell_story(self, context: RunContext) -> str:
        """Start telling the story that was just created. Returns the first page of the story.
        Call this after creating a synopsis when ready to begin storytelling.
        """
        return await self.story_tools.tell_story()

    @function_tool
    async def continue_story(self, context: RunContext) -> str:
        """Tell the next page of the current story. Returns finished=true after the last page."""
        return await self.story_tools.continue_story()

    def reset_story(self):
        self.orchestrator.reset()
