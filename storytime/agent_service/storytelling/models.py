"""
Storytelling data models.
Serialized with camelCase keys, matching the JSON the LLM is asked to produce.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

STORY_LENGTH_PAGES = {
    "quick": 3,
    "medium": 5,
    "bedtime": 8,
}


def _as_list(value) -> List[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    return []


@dataclass
class ParentPersona:
    """How a parent tells stories"""
    name: str
    storytelling_style: str = "warm and gentle"
    voice_tone: str = "soft and soothing"
    favorite_themes: List[str] = field(default_factory=list)
    values: List[str] = field(default_factory=list)
    cultural_background: Optional[str] = None
    special_phrases: List[str] = field(default_factory=list)
    avoid_topics: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParentPersona":
        return cls(
            name=data.get("name") or "Parent",
            storytelling_style=data.get("storytellingStyle") or "warm and gentle",
            voice_tone=data.get("voiceTone") or "soft and soothing",
            favorite_themes=_as_list(data.get("favoriteThemes")),
            values=_as_list(data.get("values")),
            cultural_background=data.get("culturalBackground"),
            special_phrases=_as_list(data.get("specialPhrases")),
            avoid_topics=_as_list(data.get("avoidTopics")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "storytellingStyle": self.storytelling_style,
            "voiceTone": self.voice_tone,
            "favoriteThemes": self.favorite_themes,
            "values": self.values,
            "specialPhrases": self.special_phrases,
            "avoidTopics": self.avoid_topics,
        }
        if self.cultural_background:
            data["culturalBackground"] = self.cultural_background
        return data


@dataclass
class ChildProfile:
    """Who the story is for"""
    name: str
    age: int = 5
    interests: List[str] = field(default_factory=list)
    fears: List[str] = field(default_factory=list)
    favorite_characters: List[str] = field(default_factory=list)
    attention_span: str = "medium"
    preferred_story_length: str = "medium"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChildProfile":
        try:
            age = int(data.get("age", 5))
        except (TypeError, ValueError):
            age = 5

        length = data.get("preferredStoryLength")
        if length not in STORY_LENGTH_PAGES:
            length = "medium"

        return cls(
            name=data.get("name") or "Little one",
            age=age,
            interests=_as_list(data.get("interests")),
            fears=_as_list(data.get("fears")),
            favorite_characters=_as_list(data.get("favoriteCharacters")),
            attention_span=data.get("attentionSpan") or "medium",
            preferred_story_length=length,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "age": self.age,
            "interests": self.interests,
            "fears": self.fears,
            "favoriteCharacters": self.favorite_characters,
            "attentionSpan": self.attention_span,
            "preferredStoryLength": self.preferred_story_length,
        }


@dataclass
class StoryContext:
    """Parent persona, child profile and a narrative summary of both"""
    parent_persona: ParentPersona
    child_profile: ChildProfile
    raw_markdown: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoryContext":
        return cls(
            parent_persona=ParentPersona.from_dict(data.get("parentPersona") or {}),
            child_profile=ChildProfile.from_dict(data.get("childProfile") or {}),
            raw_markdown=data.get("rawMarkdown") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parentPersona": self.parent_persona.to_dict(),
            "childProfile": self.child_profile.to_dict(),
            "rawMarkdown": self.raw_markdown,
        }


@dataclass
class StoryCharacter:
    name: str
    description: str = ""
    role: str = "supporting"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoryCharacter":
        return cls(
            name=data.get("name") or "Friend",
            description=data.get("description") or "",
            role=data.get("role") or "supporting",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "role": self.role}


@dataclass
class StorySynopsis:
    """Plan for a story, created before any page is told"""
    title: str
    premise: str
    main_characters: List[StoryCharacter] = field(default_factory=list)
    setting: str = ""
    theme: str = ""
    moral_lesson: str = ""
    estimated_pages: int = 5
    outline: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StorySynopsis":
        try:
            estimated_pages = max(1, int(data.get("estimatedPages", 5)))
        except (TypeError, ValueError):
            estimated_pages = 5

        return cls(
            title=data["title"],
            premise=data["premise"],
            main_characters=[
                StoryCharacter.from_dict(c)
                for c in data.get("mainCharacters") or []
                if isinstance(c, dict)
            ],
            setting=data.get("setting") or "",
            theme=data.get("theme") or "",
            moral_lesson=data.get("moralLesson") or "",
            estimated_pages=estimated_pages,
            outline=_as_list(data.get("outline")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "premise": self.premise,
            "mainCharacters": [c.to_dict() for c in self.main_characters],
            "setting": self.setting,
            "theme": self.theme,
            "moralLesson": self.moral_lesson,
            "estimatedPages": self.estimated_pages,
            "outline": self.outline,
        }


@dataclass
class StoryPage:
    page_number: int
    content: str
    suggested_pause: Optional[bool] = None
    interaction_prompt: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoryPage":
        return cls(
            page_number=int(data["pageNumber"]),
            content=data.get("content") or "",
            suggested_pause=data.get("suggestedPause"),
            interaction_prompt=data.get("interactionPrompt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"pageNumber": self.page_number, "content": self.content}
        if self.suggested_pause is not None:
            data["suggestedPause"] = self.suggested_pause
        if self.interaction_prompt is not None:
            data["interactionPrompt"] = self.interaction_prompt
        return data


@dataclass
class StoryState:
    """A synopsis together with the pages told so far"""
    synopsis: StorySynopsis
    context: StoryContext
    pages: List[StoryPage] = field(default_factory=list)
    current_page: int = 0
    is_complete: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoryState":
        pages = [StoryPage.from_dict(p) for p in data.get("pages") or []]
        return cls(
            synopsis=StorySynopsis.from_dict(data["synopsis"]),
            context=StoryContext.from_dict(data["context"]),
            pages=pages,
            current_page=data.get("currentPage", len(pages)),
            is_complete=bool(data.get("isComplete", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "synopsis": self.synopsis.to_dict(),
            "context": self.context.to_dict(),
            "pages": [p.to_dict() for p in self.pages],
            "currentPage": self.current_page,
            "isComplete": self.is_complete,
        }
