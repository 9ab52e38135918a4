"""
Story synopsis creation.
Always produces a synopsis: vague requests are filled from the family's
profile, and model failures fall back to a simple adventure outline.
"""
import json
from typing import Optional

from storytime.shared.llm import LLMService, extract_json, get_llm_service
from storytime.shared.logging import ServiceLogger

from .models import STORY_LENGTH_PAGES, StoryCharacter, StoryContext, StorySynopsis
from .onboarding import StorytellingError

logger = ServiceLogger("storytelling-synopsis")

LENGTH_DESCRIPTIONS = {
    "quick": "3 short pages",
    "medium": "5 medium pages",
    "bedtime": "8 cozy pages",
}

FALLBACK_OUTLINE = [
    "The ordinary day turns extraordinary",
    "A challenge appears that needs solving",
    "Help comes from an unexpected place",
    "The lesson is learned through experience",
    "Home sweet home, wiser than before",
]


def page_count(length: str) -> int:
    return STORY_LENGTH_PAGES.get(length, STORY_LENGTH_PAGES["medium"])


def build_synopsis_prompt(context: StoryContext, child_request: str) -> str:
    parent = context.parent_persona
    child = context.child_profile
    pages = page_count(child.preferred_story_length)
    description = LENGTH_DESCRIPTIONS.get(child.preferred_story_length, LENGTH_DESCRIPTIONS["medium"])

    return f"""You are a master storyteller creating story synopses for children.
You are the digital twin of the parent, telling stories in their style and voice.

CRITICAL CONTEXT:
- Storytime is a precious bonding moment between parent and child
- Even if the child's request is vague ("tell me a story", "I dunno", "something fun"), CREATE something wonderful
- Use the parent's favorite themes and the child's interests to fill in gaps
- NEVER refuse or ask for clarification - just create magic

PARENT PERSONA:
{json.dumps(parent.to_dict(), indent=2)}

CHILD PROFILE:
{json.dumps(child.to_dict(), indent=2)}

ADDITIONAL CONTEXT:
{context.raw_markdown}

When creating a synopsis:
1. Match the parent's storytelling style and voice tone
2. Include themes the parent loves: {", ".join(parent.favorite_themes)}
3. Feature characters/settings the child enjoys: {", ".join(child.interests)}
4. Keep age-appropriate (child is {child.age} years old)
5. Plan for {description} ({pages} pages)
6. Include a gentle moral aligned with parent's values: {", ".join(parent.values)}

CHILD'S REQUEST: "{child_request}"

You MUST respond with ONLY a valid JSON object in this exact format (no markdown, no code blocks, just the JSON):
{{
  "title": "string",
  "premise": "string",
  "mainCharacters": [
    {{
      "name": "string",
      "description": "string",
      "role": "protagonist" | "sidekick" | "mentor" | "antagonist" | "supporting"
    }}
  ],
  "setting": "string",
  "theme": "string",
  "moralLesson": "string",
  "estimatedPages": {pages},
  "outline": ["beat 1", "beat 2", "..."]
}}"""


def create_fallback_synopsis(context: StoryContext, child_request: str) -> StorySynopsis:
    """Simple adventure built from the profile alone"""
    child = context.child_profile
    parent = context.parent_persona
    pages = page_count(child.preferred_story_length)

    themes = parent.favorite_themes
    first_theme = themes[0] if themes else "friendship"
    second_theme = themes[1] if len(themes) > 1 else "courage"

    return StorySynopsis(
        title=f"{child.name}'s Magical Adventure",
        premise=(
            f"{child.name} discovers something wonderful that leads to an adventure "
            f"filled with {first_theme} and {second_theme}."
        ),
        main_characters=[
            StoryCharacter(
                name=child.name,
                description=f"A curious {child.age}-year-old who loves "
                            f"{child.interests[0] if child.interests else 'adventures'}",
                role="protagonist",
            ),
            StoryCharacter(
                name="Friendly Guide",
                description="A helpful companion who appears when needed",
                role="sidekick",
            ),
        ],
        setting="A magical world just beyond the everyday",
        theme=first_theme,
        moral_lesson=parent.values[0] if parent.values else "Being kind always matters",
        estimated_pages=pages,
        outline=FALLBACK_OUTLINE[:pages],
    )


async def create_story_synopsis(
    context: StoryContext,
    child_request: str,
    llm_service: Optional[LLMService] = None
) -> StorySynopsis:
    """
    Create a synopsis for the child's request.

    Args:
        context: Family story context
        child_request: What the child asked for, however vague
        llm_service: LLM service, the shared one by default

    Returns:
        Synopsis from the model, or the fallback synopsis

    Raises:
        StorytellingError: If the model fails and fallback is disabled in ai_config
    """
    llm = llm_service or get_llm_service()

    try:
        content = await llm.complete("", build_synopsis_prompt(context, child_request), temperature=0.7)
        parsed = extract_json(content)
        if parsed:
            synopsis = StorySynopsis.from_dict(parsed)
            logger.success(f"Synopsis created: {synopsis.title}")
            return synopsis
        logger.warning("No synopsis JSON in model response")
    except Exception as e:
        logger.warning(f"Failed to create synopsis from model: {e}")

    if not getattr(llm, "fallback_enabled", True):
        raise StorytellingError("Failed to create story synopsis and fallback is disabled")

    return create_fallback_synopsis(context, child_request)
