"""
Storytelling completions on LiveKit inference.
Used when ai_config.yaml configures no litellm models, so the agent only
needs its LiveKit credentials to tell stories.
"""
from typing import Optional

from livekit.agents import inference, llm

from storytime.shared.config import voice_config
from storytime.shared.llm import LLMService, LLMUnavailableError, get_llm_service
from storytime.shared.logging import ServiceLogger

logger = ServiceLogger("inference-llm")


class InferenceLLMService:
    """
    Completion service with the same interface as LLMService, backed by a
    LiveKit inference LLM.
    """

    def __init__(self, model: str = None, fallback_enabled: bool = True):
        self.model = model or voice_config.story_llm_model
        self.fallback_enabled = fallback_enabled
        self._llm = None

    def is_available(self) -> bool:
        return True

    def _get_llm(self):
        if self._llm is None:
            self._llm = inference.LLM(model=self.model)
        return self._llm

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None
    ) -> str:
        """
        Run a chat completion on LiveKit inference.

        The model's own temperature is used; the argument is accepted for
        interface compatibility with LLMService.

        Raises:
            LLMUnavailableError: If the inference call fails or returns nothing
        """
        chat_ctx = llm.ChatContext()
        if system_prompt:
            chat_ctx.add_message(role="system", content=system_prompt)
        chat_ctx.add_message(role="user", content=user_prompt)

        parts = []
        try:
            async with self._get_llm().chat(chat_ctx=chat_ctx) as stream:
                async for chunk in stream:
                    if chunk.delta and chunk.delta.content:
                        parts.append(chunk.delta.content)
        except Exception as e:
            logger.warning(f"LiveKit inference call to {self.model} failed: {e}")
            raise LLMUnavailableError(f"LiveKit inference failed: {e}") from e

        content = "".join(parts).strip()
        if not content:
            raise LLMUnavailableError(f"Empty response from {self.model}")

        return content


def resolve_story_llm(llm_service: Optional[LLMService] = None):
    """
    Pick the completion service for storytelling.

    Args:
        llm_service: Preferred service, the shared litellm one by default

    Returns:
        The preferred service when it has models, otherwise LiveKit inference
    """
    service = llm_service or get_llm_service()
    if service.is_available():
        return service

    logger.info(f"No litellm models configured, storytelling uses LiveKit inference ({voice_config.story_llm_model})")
    return InferenceLLMService(fallback_enabled=getattr(service, "fallback_enabled", True))
