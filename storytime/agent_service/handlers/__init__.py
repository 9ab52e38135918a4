"""
Action handlers for the Story Time agent.

Clients send {"action": ..., "payload": {...}} as room data messages;
each action name maps to one handler.
"""
from .base import ActionRequest, ActionResponse, BaseActionHandler, HandlerContext
from .manager import HandlerManager
from .say_handler import SayHandler
from .store_handler import StoreHandler, TextStorage
from .play_handler import PlayHandler
from .change_voice_handler import ChangeVoiceHandler

__all__ = [
    "ActionRequest",
    "ActionResponse",
    "BaseActionHandler",
    "HandlerContext",
    "HandlerManager",
    "SayHandler",
    "StoreHandler",
    "TextStorage",
    "PlayHandler",
    "ChangeVoiceHandler",
]
