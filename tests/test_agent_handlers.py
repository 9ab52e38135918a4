"""
Tests for agent action handlers and their dispatch.
"""
import pytest
from unittest.mock import AsyncMock, Mock

from storytime.agent_service.handlers import (
    ActionRequest,
    ActionResponse,
    BaseActionHandler,
    ChangeVoiceHandler,
    HandlerManager,
    PlayHandler,
    SayHandler,
    StoreHandler,
    TextStorage,
)
from storytime.agent_service.managers.session_registry import SessionRegistry

ROOM = "voice_assistant_room_1"


@pytest.fixture
def session():
    mock_session = Mock()
    mock_session.say = AsyncMock()
    return mock_session


@pytest.fixture
def storage():
    return TextStorage()


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def manager(session, storage, registry):
    handler_manager = HandlerManager(ctx=Mock(), session=session, room_name=ROOM)
    handler_manager.register_all([
        SayHandler(),
        StoreHandler(storage),
        PlayHandler(storage),
        ChangeVoiceHandler(registry),
    ])
    return handler_manager


def _request(action, **payload):
    return ActionRequest(action=action, payload=payload or None)


class TestActionResponse:

    def test_to_dict_omits_none(self):
        assert ActionResponse(success=True).to_dict() == {"success": True}
        assert ActionResponse(success=False, error="bad").to_dict() == {"success": False, "error": "bad"}

    def test_from_dict_ignores_non_object_payload(self):
        request = ActionRequest.from_dict({"action": "say", "payload": "hello"})

        assert request.payload is None


class TestHandlerManager:

    def test_action_names(self, manager):
        assert manager.get_action_names() == ["say", "store", "play", "change_voice"]
        assert manager.has_handler("say")
        assert manager.get_handler("missing") is None

    def test_register_overwrites(self, manager):
        replacement = SayHandler()

        manager.register(replacement)

        assert manager.get_handler("say") is replacement
        assert len(manager.get_action_names()) == 4

    @pytest.mark.asyncio
    async def test_unknown_action(self, manager):
        response = await manager.process_action(_request("dance"))

        assert response.success is False
        assert response.error == "Unknown action: dance. Available actions: say, store, play, change_voice"

    @pytest.mark.asyncio
    async def test_invalid_payload(self, manager):
        response = await manager.process_action(_request("say", text=""))

        assert response.error == "Invalid payload for action: say"

    @pytest.mark.asyncio
    async def test_handler_exception(self, manager):
        class BrokenHandler(BaseActionHandler):
            async def handle(self, context):
                raise RuntimeError("kaboom")

        manager.register(BrokenHandler("broken"))

        response = await manager.process_action(_request("broken"))

        assert response.success is False
        assert response.error == "Failed to execute action: kaboom"


class TestSayHandler:

    @pytest.mark.asyncio
    async def test_says_text(self, manager, session):
        response = await manager.process_action(_request("say", text="Hello there"))

        session.say.assert_awaited_once_with("Hello there")
        assert response.to_dict() == {
            "success": True,
            "message": "Text spoken successfully",
            "data": {"text": "Hello there"},
        }

    @pytest.mark.asyncio
    async def test_non_string_text(self, manager, session):
        response = await manager.process_action(_request("say", text=42))

        assert response.success is False
        session.say.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_speech_failure(self, manager, session):
        session.say.side_effect = RuntimeError("tts down")

        response = await manager.process_action(_request("say", text="Hi"))

        assert response.to_dict() == {"success": False, "error": "tts down"}


class TestStoreAndPlay:

    @pytest.mark.asyncio
    async def test_store_reports_totals(self, manager):
        await manager.process_action(_request("store", id="a", text="First"))
        response = await manager.process_action(_request("store", id="b", text="Second story"))

        assert response.data == {"id": "b", "textLength": 12, "totalStored": 2}

    @pytest.mark.asyncio
    async def test_store_overwrites_same_id(self, manager, storage):
        await manager.process_action(_request("store", id="a", text="First"))
        await manager.process_action(_request("store", id="a", text="Replaced"))

        assert storage.size() == 1
        assert storage.get("a") == "Replaced"

    @pytest.mark.asyncio
    async def test_store_requires_id_and_text(self, manager):
        response = await manager.process_action(_request("store", id="a"))

        assert response.error == "Invalid payload for action: store"

    @pytest.mark.asyncio
    async def test_play_stored_text(self, manager, session):
        await manager.process_action(_request("store", id="bedtime", text="Goodnight moon"))

        response = await manager.process_action(_request("play", id="bedtime"))

        session.say.assert_awaited_once_with("Goodnight moon")
        assert response.data == {"id": "bedtime", "text": "Goodnight moon"}

    @pytest.mark.asyncio
    async def test_play_unknown_id(self, manager, session):
        await manager.process_action(_request("store", id="a", text="First"))

        response = await manager.process_action(_request("play", id="zzz"))

        assert response.success is False
        assert response.error == "No text found with id: zzz"
        assert response.data == {"id": "zzz", "availableIds": ["a"]}
        session.say.assert_not_awaited()


class TestTextStorage:

    def test_operations(self, storage):
        storage.store("a", "one")
        storage.store("b", "two")

        assert storage.has("a")
        assert storage.list() == [{"id": "a", "text": "one"}, {"id": "b", "text": "two"}]
        assert storage.delete("a") is True
        assert storage.delete("a") is False
        assert storage.size() == 1

        storage.clear()
        assert storage.size() == 0


class TestChangeVoiceHandler:

    @pytest.mark.asyncio
    async def test_session_not_found(self, manager):
        response = await manager.process_action(_request("change_voice", voice_id="v2"))

        assert response.to_dict() == {"success": False, "error": "Session not found for this room"}

    @pytest.mark.asyncio
    async def test_updates_voice(self, manager, registry):
        session_manager = Mock()
        registry.register(ROOM, session_manager)

        response = await manager.process_action(_request("change_voice", voice_id="v2"))

        session_manager.update_voice_id.assert_called_once_with("v2")
        assert response.data == {"voice_id": "v2"}

    @pytest.mark.asyncio
    async def test_update_failure(self, manager, registry):
        session_manager = Mock()
        session_manager.update_voice_id.side_effect = ValueError("unknown voice")
        registry.register(ROOM, session_manager)

        response = await manager.process_action(_request("change_voice", voice_id="v2"))

        assert response.to_dict() == {"success": False, "error": "unknown voice"}


class TestSessionRegistry:

    def test_register_and_lookup(self, registry):
        first, second = Mock(), Mock()

        registry.register("room-a", first)
        registry.register("room-a", second)
        registry.register("room-b", first)

        assert registry.get("room-a") is second
        assert registry.size() == 2
        assert registry.get_room_names() == ["room-a", "room-b"]

        registry.unregister("room-a")
        registry.unregister("room-a")
        assert not registry.has("room-a")

        registry.clear()
        assert registry.size() == 0
