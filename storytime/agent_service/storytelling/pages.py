"""
Page-by-page story generation.
"""
import math
import re
from typing import AsyncIterator, List, Optional, Tuple

from storytime.shared.llm import LLMService, LLMUnavailableError, extract_json, get_llm_service
from storytime.shared.logging import ServiceLogger

from .models import StoryContext, StoryPage, StoryState, StorySynopsis
from .onboarding import StorytellingError

logger = ServiceLogger("storytelling-pages")

PREVIOUS_PAGE_EXCERPT = 150


def get_page_guidance(page_number: int, total_pages: int) -> str:
    if page_number == 1:
        return "This is the OPENING page. Set the scene, introduce the main character, and hook the listener with wonder."
    if page_number == total_pages:
        return ("This is the FINAL page. Bring the story to a warm, satisfying close. "
                "End with comfort and peace - perfect for drifting off to sleep.")
    if page_number == math.ceil(total_pages / 2):
        return "This is the MIDDLE of the story. The challenge or adventure should be at its peak!"
    return "Continue the story with good pacing. Build toward the resolution."


def build_page_prompt(
    synopsis: StorySynopsis,
    context: StoryContext,
    previous_pages: List[StoryPage],
    page_number: int
) -> str:
    parent = context.parent_persona
    child = context.child_profile

    if previous_pages:
        previous = "Previous pages:\n" + "\n".join(
            f"Page {i + 1}: {page.content[:PREVIOUS_PAGE_EXCERPT]}..."
            for i, page in enumerate(previous_pages)
        )
    else:
        previous = "This is the first page."

    outline = "\n".join(f"{i + 1}. {beat}" for i, beat in enumerate(synopsis.outline))

    return f"""You are telling a bedtime story as the digital twin of a loving parent.
Your voice, style, and warmth should match the parent's persona exactly.

PARENT VOICE:
- Style: {parent.storytelling_style}
- Tone: {parent.voice_tone}
- Special phrases to use: {", ".join(parent.special_phrases) or "none specified"}
- Values to weave in: {", ".join(parent.values)}

CHILD:
- Name: {child.name}
- Age: {child.age}
- Interests: {", ".join(child.interests)}

STORY SYNOPSIS:
Title: {synopsis.title}
Premise: {synopsis.premise}
Setting: {synopsis.setting}
Theme: {synopsis.theme}
Moral: {synopsis.moral_lesson}

Story outline:
{outline}

CURRENT PROGRESS:
Page {page_number} of {synopsis.estimated_pages}
{previous}

YOUR TASK:
Write page {page_number} of the story. This should be:
- 2-4 paragraphs, perfect for reading aloud
- Age-appropriate vocabulary for a {child.age}-year-old
- Engaging with sensory details and emotion
- Following the outline beat for this page
- Maintaining continuity with previous pages

{get_page_guidance(page_number, synopsis.estimated_pages)}

You MUST respond with ONLY a valid JSON object in this exact format (no markdown, no code blocks):
{{
  "content": "The story text for this page (2-4 paragraphs)",
  "suggestedPause": true/false (optional),
  "interactionPrompt": "Optional prompt for child engagement" (optional)
}}

Make it magical. This is storytime."""


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = re.sub(r'^```json\s*', '', cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r'^```\s*', '', cleaned)
    return re.sub(r'```\s*$', '', cleaned).strip()


async def generate_next_page(
    synopsis: StorySynopsis,
    context: StoryContext,
    previous_pages: List[StoryPage],
    llm_service: Optional[LLMService] = None
) -> Tuple[StoryPage, bool]:
    """
    Generate the page following previous_pages.

    Returns:
        The new page and whether it is the last one

    Raises:
        StorytellingError: If the model is unavailable
    """
    llm = llm_service or get_llm_service()
    page_number = len(previous_pages) + 1
    is_last_page = page_number >= synopsis.estimated_pages

    try:
        content = await llm.complete(
            "",
            build_page_prompt(synopsis, context, previous_pages, page_number),
            temperature=0.8
        )
    except LLMUnavailableError as e:
        raise StorytellingError(f"Failed to generate story page: {e}") from e

    parsed = extract_json(content)
    if parsed and isinstance(parsed.get("content"), str):
        pause = parsed.get("suggestedPause")
        prompt = parsed.get("interactionPrompt")
        page = StoryPage(
            page_number=page_number,
            content=parsed["content"],
            suggested_pause=pause if isinstance(pause, bool) else None,
            interaction_prompt=prompt if isinstance(prompt, str) else None,
        )
    else:
        page = StoryPage(page_number=page_number, content=_strip_fences(content))

    logger.debug(f"Generated page {page_number}/{synopsis.estimated_pages} of '{synopsis.title}'")

    return page, is_last_page


async def stream_story(
    synopsis: StorySynopsis,
    context: StoryContext,
    llm_service: Optional[LLMService] = None
) -> AsyncIterator[StoryPage]:
    """Yield story pages one at a time until the planned page count"""
    pages: List[StoryPage] = []

    while len(pages) < synopsis.estimated_pages:
        page, is_last_page = await generate_next_page(synopsis, context, pages, llm_service)
        pages.append(page)
        yield page
        if is_last_page:
            break


async def generate_full_story(
    synopsis: StorySynopsis,
    context: StoryContext,
    llm_service: Optional[LLMService] = None
) -> StoryState:
    """Generate every page of a story"""
    pages = [page async for page in stream_story(synopsis, context, llm_service)]

    return StoryState(
        synopsis=synopsis,
        context=context,
        pages=pages,
        current_page=len(pages),
        is_complete=True,
    )
