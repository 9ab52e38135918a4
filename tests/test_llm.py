"""
Tests for the LLM service: JSON extraction, model ordering and fallback.
"""
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

from storytime.shared.config import get_ai_config
from storytime.shared.llm import LLMService, LLMUnavailableError, extract_json
from storytime.shared.utils import generate_story_id


def _config(*models):
    return {
        "storytelling": {"models": list(models)},
        "retry": {"max_attempts": 2, "backoff_factor": 0, "timeout": 5},
    }


def _response(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


class TestExtractJson:

    def test_plain_object(self):
        assert extract_json('{"title": "Moon"}') == {"title": "Moon"}

    def test_code_fence(self):
        assert extract_json('```json\n{"title": "Moon"}\n```') == {"title": "Moon"}

    def test_surrounding_prose(self):
        text = 'Here you go: {"content": "Once upon a time"} Enjoy!'

        assert extract_json(text) == {"content": "Once upon a time"}

    def test_no_object(self):
        assert extract_json("Once upon a time") is None
        assert extract_json("") is None

    def test_invalid_json(self):
        assert extract_json("{not json}") is None


class TestLLMService:

    def test_models_sorted_by_priority_and_disabled_skipped(self, monkeypatch):
        monkeypatch.setenv("TEST_LLM_KEY", "sk-test")
        service = LLMService(_config(
            {"name": "second", "model": "openai/b", "priority": 2},
            {"name": "first", "model": "openai/a", "priority": 1, "api_key": "${TEST_LLM_KEY}"},
            {"name": "off", "model": "openai/c", "priority": 0, "enabled": False},
        ))

        assert [m.name for m in service.models] == ["first", "second"]
        assert service.models[0].api_key == "sk-test"
        assert service.is_available()

    def test_not_available_without_models(self):
        assert not LLMService(_config()).is_available()

    @pytest.mark.asyncio
    async def test_complete_without_models_raises(self):
        with pytest.raises(LLMUnavailableError):
            await LLMService(_config()).complete("system", "user")

    @pytest.mark.asyncio
    async def test_falls_through_to_next_model(self):
        config = _config(
            {"name": "primary", "model": "openai/a", "priority": 1},
            {"name": "backup", "model": "openai/b", "priority": 2},
        )
        config["retry"] = {"max_attempts": 3, "backoff_factor": 2, "timeout": 5}
        service = LLMService(config)

        async def fake_completion(**kwargs):
            if kwargs["model"] == "openai/a":
                raise RuntimeError("rate limited")
            return _response("  story text ")

        sleep = AsyncMock()
        with patch("litellm.acompletion", side_effect=fake_completion) as acompletion, \
                patch("storytime.shared.llm.asyncio.sleep", sleep):
            result = await service.complete("system", "user", temperature=0.1)

        assert result == "story text"
        models = [call.kwargs["model"] for call in acompletion.call_args_list]
        assert models == ["openai/a", "openai/a", "openai/a", "openai/b"]
        assert acompletion.call_args.kwargs["temperature"] == 0.1
        # Exponential backoff between the primary model's attempts only
        assert [call.args[0] for call in sleep.await_args_list] == [1, 2]

    @pytest.mark.asyncio
    async def test_all_models_fail(self):
        service = LLMService(_config(
            {"name": "primary", "model": "openai/a", "priority": 1},
            {"name": "backup", "model": "openai/b", "priority": 2},
        ))
        max_attempts = service.retry_config["max_attempts"]

        sleep = AsyncMock()
        with patch("litellm.acompletion", AsyncMock(side_effect=RuntimeError("down"))) as acompletion, \
                patch("storytime.shared.llm.asyncio.sleep", sleep):
            with pytest.raises(LLMUnavailableError):
                await service.complete("system", "user")

        assert acompletion.call_count == max_attempts * 2
        assert sleep.await_count == (max_attempts - 1) * 2

    @pytest.mark.asyncio
    async def test_backoff_capped_by_timeout(self):
        config = _config({"name": "primary", "model": "openai/a"})
        config["retry"] = {"max_attempts": 4, "backoff_factor": 3, "timeout": 5}
        service = LLMService(config)

        sleep = AsyncMock()
        with patch("litellm.acompletion", AsyncMock(side_effect=RuntimeError("down"))), \
                patch("storytime.shared.llm.asyncio.sleep", sleep):
            with pytest.raises(LLMUnavailableError):
                await service.complete("system", "user")

        assert [call.args[0] for call in sleep.await_args_list] == [1, 3, 5]


class TestConfigAndUtils:

    def test_missing_ai_config_uses_defaults(self, tmp_path):
        config = get_ai_config(tmp_path / "missing.yaml")

        assert config["storytelling"]["models"] == []

    def test_ai_config_from_yaml(self, tmp_path):
        path = tmp_path / "ai_config.yaml"
        path.write_text("storytelling:\n  models:\n    - name: a\n      model: openai/a\n")

        config = get_ai_config(path)

        assert config["storytelling"]["models"][0]["model"] == "openai/a"

    def test_story_id_format(self):
        story_id = generate_story_id()
        prefix, millis, suffix = story_id.split("_")

        assert prefix == "story"
        assert millis.isdigit()
        assert len(suffix) == 7
