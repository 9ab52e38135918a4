"""
Tests for the storytelling pipeline with a scripted LLM.
"""
import json
from types import SimpleNamespace

import pytest
from unittest.mock import AsyncMock, Mock, patch

from storytime.agent_service.storytelling import (
    ChildProfile,
    ParentPersona,
    StoryContext,
    StoryOrchestrator,
    StoryPage,
    StorySynopsis,
    StorytellingError,
    create_story_synopsis,
    generate_full_story,
    generate_next_page,
    process_onboarding,
    stream_story,
)
from storytime.agent_service.storytelling.inference_llm import InferenceLLMService, resolve_story_llm
from storytime.agent_service.storytelling.pages import get_page_guidance
from storytime.agent_service.storytelling.tools import StorytellingTools
from storytime.shared.config import get_ai_config, voice_config
from storytime.shared.llm import LLMService, LLMUnavailableError

PERSONA_JSON = {
    "parentPersona": {
        "name": "Sam",
        "storytellingStyle": "playful",
        "voiceTone": "warm",
        "favoriteThemes": ["kindness", "nature"],
        "values": ["honesty"],
    },
    "childProfile": {
        "name": "Mia",
        "age": 6,
        "interests": ["dinosaurs"],
        "attentionSpan": "short",
        "preferredStoryLength": "quick",
    },
}


def scripted_llm(*responses):
    llm = Mock()
    llm.complete = AsyncMock(side_effect=list(responses))
    return llm


@pytest.fixture
def context():
    return StoryContext(
        parent_persona=ParentPersona(name="Sam", favorite_themes=["kindness"], values=["honesty"]),
        child_profile=ChildProfile(name="Mia", age=6, interests=["dinosaurs"], preferred_story_length="quick"),
        raw_markdown="Sam loves silly voices.",
    )


@pytest.fixture
def synopsis():
    return StorySynopsis(
        title="Mia and the Moon Dino",
        premise="A dinosaur visits the moon.",
        estimated_pages=3,
        outline=["Start", "Middle", "End"],
    )


def page_json(text):
    return json.dumps({"content": text})


class TestOnboarding:

    @pytest.mark.asyncio
    async def test_parses_persona_and_markdown(self):
        markdown = "# Sam and Mia\n\nSam tells playful stories full of dinosaurs and kindness every night."
        llm = scripted_llm(json.dumps(PERSONA_JSON) + "\n\n" + markdown)

        context = await process_onboarding("transcript", llm)

        assert context.parent_persona.name == "Sam"
        assert context.child_profile.age == 6
        assert context.child_profile.preferred_story_length == "quick"
        assert context.raw_markdown == markdown

    @pytest.mark.asyncio
    async def test_generates_markdown_when_short(self):
        llm = scripted_llm(json.dumps(PERSONA_JSON) + "\nOk.")

        context = await process_onboarding("transcript", llm)

        assert context.raw_markdown.startswith("# Storytime Profile: Mia's Family")
        assert "- dinosaurs" in context.raw_markdown

    @pytest.mark.asyncio
    async def test_no_json_raises(self):
        llm = scripted_llm("I could not understand the transcript.")

        with pytest.raises(StorytellingError):
            await process_onboarding("transcript", llm)

    @pytest.mark.asyncio
    async def test_llm_unavailable_raises(self):
        llm = Mock()
        llm.complete = AsyncMock(side_effect=LLMUnavailableError("no models"))

        with pytest.raises(StorytellingError):
            await process_onboarding("transcript", llm)


class TestSynopsis:

    @pytest.mark.asyncio
    async def test_parses_model_synopsis(self, context):
        llm = scripted_llm("```json\n" + json.dumps({
            "title": "Dino Dreams",
            "premise": "Mia meets a dinosaur.",
            "mainCharacters": [{"name": "Rex", "description": "A gentle T-rex", "role": "sidekick"}],
            "estimatedPages": 3,
            "outline": ["a", "b", "c"],
        }) + "\n```")

        synopsis = await create_story_synopsis(context, "dinosaurs please", llm)

        assert synopsis.title == "Dino Dreams"
        assert synopsis.main_characters[0].name == "Rex"
        assert "dinosaurs please" in llm.complete.call_args.args[1]

    @pytest.mark.asyncio
    async def test_fallback_on_bad_output(self, context):
        llm = scripted_llm("once upon a time")

        synopsis = await create_story_synopsis(context, "I dunno", llm)

        assert synopsis.title == "Mia's Magical Adventure"
        assert synopsis.estimated_pages == 3
        assert len(synopsis.outline) == 3
        assert synopsis.theme == "kindness"
        assert synopsis.moral_lesson == "honesty"

    @pytest.mark.asyncio
    async def test_fallback_on_llm_failure(self, context):
        context.child_profile.preferred_story_length = "bedtime"
        llm = Mock()
        llm.complete = AsyncMock(side_effect=LLMUnavailableError("down"))

        synopsis = await create_story_synopsis(context, "space", llm)

        assert synopsis.estimated_pages == 8
        assert len(synopsis.outline) == 5


class TestPages:

    @pytest.mark.parametrize("page, total, marker", [
        (1, 5, "OPENING"),
        (5, 5, "FINAL"),
        (3, 5, "MIDDLE"),
        (2, 5, "Continue the story"),
        (2, 4, "MIDDLE"),
    ])
    def test_page_guidance(self, page, total, marker):
        assert marker in get_page_guidance(page, total)

    @pytest.mark.asyncio
    async def test_next_page_number_and_last_flag(self, context, synopsis):
        previous = [StoryPage(page_number=1, content="One"), StoryPage(page_number=2, content="Two")]
        llm = scripted_llm(json.dumps({"content": "Three", "suggestedPause": True}))

        page, is_last = await generate_next_page(synopsis, context, previous, llm)

        assert page.page_number == 3
        assert page.content == "Three"
        assert page.suggested_pause is True
        assert is_last is True

    @pytest.mark.asyncio
    async def test_non_json_used_as_content(self, context, synopsis):
        llm = scripted_llm("The dinosaur yawned and fell asleep.")

        page, is_last = await generate_next_page(synopsis, context, [], llm)

        assert page.content == "The dinosaur yawned and fell asleep."
        assert is_last is False

    @pytest.mark.asyncio
    async def test_stream_stops_at_estimated_pages(self, context, synopsis):
        llm = scripted_llm(page_json("p1"), page_json("p2"), page_json("p3"), page_json("extra"))

        pages = [page async for page in stream_story(synopsis, context, llm)]

        assert [p.content for p in pages] == ["p1", "p2", "p3"]
        assert llm.complete.await_count == 3

    @pytest.mark.asyncio
    async def test_full_story(self, context, synopsis):
        llm = scripted_llm(page_json("p1"), page_json("p2"), page_json("p3"))

        story = await generate_full_story(synopsis, context, llm)

        assert story.is_complete is True
        assert story.current_page == 3
        assert story.to_dict()["pages"][2] == {"pageNumber": 3, "content": "p3"}


class TestModels:

    def test_context_round_trip(self, context):
        assert StoryContext.from_dict(context.to_dict()) == context

    def test_unknown_story_length_defaults_to_medium(self):
        profile = ChildProfile.from_dict({"name": "Mia", "preferredStoryLength": "epic", "age": "six"})

        assert profile.preferred_story_length == "medium"
        assert profile.age == 5


class TestStorytellingTools:

    @pytest.mark.asyncio
    async def test_create_story_without_context(self):
        tools = StorytellingTools(StoryOrchestrator(scripted_llm()))

        result = json.loads(await tools.create_story("dinosaurs"))

        assert result["success"] is False
        assert "create_story_context" in result["error"]

    @pytest.mark.asyncio
    async def test_tell_story_without_synopsis(self, context):
        orchestrator = StoryOrchestrator(scripted_llm())
        orchestrator.set_context(context)

        result = json.loads(await StorytellingTools(orchestrator).tell_story())

        assert result == {"success": False, "error": "No story found. Please create a story synopsis first."}

    @pytest.mark.asyncio
    async def test_full_flow(self):
        llm = scripted_llm(
            json.dumps(PERSONA_JSON),
            json.dumps({"title": "Dino Dreams", "premise": "Mia meets a dinosaur.",
                        "estimatedPages": 2, "outline": ["a", "b"]}),
            page_json("Page one."),
            page_json("Page two."),
        )
        tools = StorytellingTools(StoryOrchestrator(llm))

        created = json.loads(await tools.create_story_context("Sam, playful", "Mia, 6"))
        assert created["success"] is True
        assert created["context"] == {"parent": "Sam", "child": "Mia", "age": 6}

        story = json.loads(await tools.create_story("dinosaurs"))
        assert story["synopsis"] == {
            "title": "Dino Dreams",
            "premise": "Mia meets a dinosaur.",
            "theme": "",
            "pages": 2,
        }

        first = json.loads(await tools.tell_story())
        assert first["page"] == 1
        assert first["content"] == "Page one."
        assert first["totalPages"] == 2
        assert first["finished"] is False

        second = json.loads(await tools.continue_story())
        assert second["page"] == 2
        assert second["finished"] is True

        done = json.loads(await tools.continue_story())
        assert done["success"] is True
        assert done["finished"] is True
        assert llm.complete.await_count == 4

    @pytest.mark.asyncio
    async def test_context_failure_reported(self):
        tools = StorytellingTools(StoryOrchestrator(scripted_llm("no json here")))

        result = json.loads(await tools.create_story_context("parent", "child"))

        assert result == {"success": False, "error": "Failed to extract persona JSON from response"}


class FakeInferenceStream:
    """Async context manager yielding chat chunks like a LiveKit LLM stream"""

    def __init__(self, text):
        self._pieces = [text[:10], text[10:]]

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def _chunks(self):
        for piece in self._pieces:
            yield SimpleNamespace(delta=SimpleNamespace(content=piece))

    def __aiter__(self):
        return self._chunks()


def inference_llm(*replies):
    fake = Mock()
    fake.chat = Mock(side_effect=[FakeInferenceStream(reply) for reply in replies])
    return fake


class TestInferenceFallback:

    def test_resolves_to_inference_without_ai_config(self, tmp_path):
        service = LLMService(get_ai_config(tmp_path / "ai_config.yaml"))

        resolved = resolve_story_llm(service)

        assert isinstance(resolved, InferenceLLMService)
        assert resolved.model == voice_config.story_llm_model
        assert resolved.is_available()

    def test_keeps_configured_service(self):
        llm = scripted_llm()

        assert resolve_story_llm(llm) is llm

    @pytest.mark.asyncio
    async def test_story_context_without_ai_config(self, tmp_path):
        fake = inference_llm(json.dumps(PERSONA_JSON))
        orchestrator = StoryOrchestrator(LLMService(get_ai_config(tmp_path / "ai_config.yaml")))

        with patch("storytime.agent_service.storytelling.inference_llm.inference.LLM",
                   return_value=fake) as llm_factory:
            result = json.loads(await StorytellingTools(orchestrator).create_story_context("Sam", "Mia, 6"))

        assert result["success"] is True
        assert result["context"] == {"parent": "Sam", "child": "Mia", "age": 6}
        llm_factory.assert_called_once_with(model=voice_config.story_llm_model)
        assert fake.chat.call_count == 1

    @pytest.mark.asyncio
    async def test_inference_failure_is_unavailable(self):
        fake = Mock()
        fake.chat = Mock(side_effect=RuntimeError("no credentials"))
        service = InferenceLLMService(model="openai/gpt-4o-mini")

        with patch("storytime.agent_service.storytelling.inference_llm.inference.LLM", return_value=fake):
            with pytest.raises(LLMUnavailableError):
                await service.complete("system", "user")

    @pytest.mark.asyncio
    async def test_synopsis_falls_back_on_inference_failure(self, context):
        fake = Mock()
        fake.chat = Mock(side_effect=RuntimeError("no credentials"))

        with patch("storytime.agent_service.storytelling.inference_llm.inference.LLM", return_value=fake):
            synopsis = await create_story_synopsis(context, "space", InferenceLLMService())

        assert synopsis.title == "Mia's Magical Adventure"


class TestFallbackSwitch:

    def test_switch_read_from_config(self):
        assert LLMService({"fallback": {"enabled": False}}).fallback_enabled is False
        assert LLMService({}).fallback_enabled is True

    @pytest.mark.asyncio
    async def test_synopsis_fallback_disabled(self, context):
        llm = scripted_llm("once upon a time")
        llm.fallback_enabled = False

        with pytest.raises(StorytellingError):
            await create_story_synopsis(context, "space", llm)

    @pytest.mark.asyncio
    async def test_create_story_reports_disabled_fallback(self, context):
        llm = scripted_llm("not a synopsis")
        llm.fallback_enabled = False
        orchestrator = StoryOrchestrator(llm)
        orchestrator.set_context(context)

        result = json.loads(await StorytellingTools(orchestrator).create_story("space"))

        assert result["success"] is False
        assert "fallback is disabled" in result["error"]
