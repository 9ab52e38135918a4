"""
Parent onboarding analysis.
A single LLM call turning a conversation transcript into a parent persona
and child profile, plus a markdown summary used as storytelling context.
"""
import json
import re
from typing import Optional

from storytime.shared.llm import LLMService, LLMUnavailableError, get_llm_service
from storytime.shared.logging import ServiceLogger

from .models import ChildProfile, ParentPersona, StoryContext

logger = ServiceLogger("storytelling-onboarding")

MIN_MARKDOWN_LENGTH = 50


class StorytellingError(Exception):
    """Raised when a storytelling step cannot produce a usable result"""


ONBOARDING_SYSTEM_PROMPT = """You are an expert at understanding parents and creating detailed profiles for a storytelling AI.

Your job is to analyze a transcript from a parent onboarding conversation and extract:
1. Parent Persona - How they tell stories, their style, values, favorite themes
2. Child Profile - The child's name, age, interests, attention span, preferences

Be thorough but also infer reasonable defaults when information is missing. Parents don't always say everything explicitly.

Output your analysis as a structured JSON object followed by a markdown summary.

The JSON should have this exact structure:
{
  "parentPersona": {
    "name": "string",
    "storytellingStyle": "string describing how they like to tell stories",
    "voiceTone": "string describing their voice/tone",
    "favoriteThemes": ["array", "of", "themes"],
    "culturalBackground": "optional string",
    "specialPhrases": ["optional", "phrases", "they", "use"],
    "values": ["array", "of", "values"],
    "avoidTopics": ["optional", "topics", "to", "avoid"]
  },
  "childProfile": {
    "name": "string",
    "age": number,
    "interests": ["array", "of", "interests"],
    "fears": ["optional", "fears"],
    "favoriteCharacters": ["optional", "characters"],
    "attentionSpan": "short" | "medium" | "long",
    "preferredStoryLength": "quick" | "medium" | "bedtime"
  }
}

After the JSON, provide a warm, narrative markdown summary that captures the essence of this family's storytime moments. This markdown will be used to give context to the storytelling AI."""


def _split_json_and_markdown(content: str):
    """Return the first balanced JSON object in content and the text after it"""
    start = content.find("{")
    while start != -1:
        try:
            parsed, end = json.JSONDecoder().raw_decode(content, start)
        except json.JSONDecodeError:
            start = content.find("{", start + 1)
            continue
        if isinstance(parsed, dict):
            return parsed, content[end:]
        start = content.find("{", end)
    return None, ""


def _bullets(items, quote: bool = False) -> str:
    return "\n".join(f'- "{item}"' if quote else f"- {item}" for item in items)


def generate_markdown_summary(parent: ParentPersona, child: ChildProfile) -> str:
    """Build a storytime profile when the model did not write one"""
    sections = [
        f"# Storytime Profile: {child.name}'s Family",
        f"## About {parent.name} (Parent)\n"
        f"{parent.name} has a **{parent.storytelling_style}** storytelling style "
        f"with a **{parent.voice_tone}** tone.",
        f"### Values They Want to Share\n{_bullets(parent.values)}",
        f"### Favorite Story Themes\n{_bullets(parent.favorite_themes)}",
    ]
    if parent.special_phrases:
        sections.append(f"### Special Phrases They Love\n{_bullets(parent.special_phrases, quote=True)}")
    if parent.avoid_topics:
        sections.append(f"### Topics to Avoid\n{_bullets(parent.avoid_topics)}")

    sections.append(
        f"## About {child.name} (Child)\n"
        f"**Age:** {child.age} years old\n"
        f"**Attention Span:** {child.attention_span}\n"
        f"**Preferred Story Length:** {child.preferred_story_length}"
    )
    sections.append(f"### Interests\n{_bullets(child.interests)}")
    if child.favorite_characters:
        sections.append(f"### Favorite Characters\n{_bullets(child.favorite_characters)}")
    if child.fears:
        sections.append(f"### Sensitive Topics (handle with care)\n{_bullets(child.fears)}")

    sections.append(f"---\n*This profile helps the storytelling AI tell stories just the way {parent.name} would.*")
    return "\n\n".join(sections)


async def process_onboarding(transcript: str, llm_service: Optional[LLMService] = None) -> StoryContext:
    """
    Analyze an onboarding transcript.

    Args:
        transcript: Parent and child information gathered in conversation
        llm_service: LLM service, the shared one by default

    Returns:
        Story context with persona, profile and markdown summary

    Raises:
        StorytellingError: If the model is unavailable or returned no persona JSON
    """
    llm = llm_service or get_llm_service()

    try:
        content = await llm.complete(
            ONBOARDING_SYSTEM_PROMPT,
            f"Please analyze this parent onboarding transcript and create a persona profile:\n\n{transcript}",
            temperature=0.3
        )
    except LLMUnavailableError as e:
        raise StorytellingError(f"Failed to process onboarding: {e}") from e

    parsed, remainder = _split_json_and_markdown(content)
    if not parsed or "parentPersona" not in parsed or "childProfile" not in parsed:
        raise StorytellingError("Failed to extract persona JSON from response")

    parent = ParentPersona.from_dict(parsed["parentPersona"] or {})
    child = ChildProfile.from_dict(parsed["childProfile"] or {})

    raw_markdown = re.sub(r'^\s*```\s*', '', remainder).strip()
    if len(raw_markdown) < MIN_MARKDOWN_LENGTH:
        raw_markdown = generate_markdown_summary(parent, child)

    logger.success(f"Onboarding processed for {parent.name} and {child.name}")

    return StoryContext(parent_persona=parent, child_profile=child, raw_markdown=raw_markdown)
