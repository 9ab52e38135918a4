"""
LLM access shared by the API story generator and the agent storytelling pipeline.
Integrates multiple providers using LiteLLM with configuration from ai_config.yaml.
"""
import os
import re
import json
import time
import asyncio
from typing import Dict, Any, List, Optional
from dataclasses import dataclass

from .logging import ServiceLogger
from .config import get_ai_config

logger = ServiceLogger("llm-service")


class LLMUnavailableError(Exception):
    """Raised when no configured model produced a response"""


@dataclass
class ModelConfig:
    """LLM model configuration"""
    name: str
    model: str
    api_key: Optional[str] = None
    api_base: Optional[str] = None
    max_tokens: int = 2000
    temperature: float = 0.7
    priority: int = 1
    enabled: bool = True


def extract_json(text: str) -> Optional[Dict[str, Any]]:
    """
    Parse the first JSON object in an LLM response.

    Markdown code fences are removed before searching. Returns None when
    no parseable object is found.
    """
    if not text:
        return None

    cleaned = text.strip()
    cleaned = re.sub(r'^```json\s*', '', cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r'^```\s*', '', cleaned)
    cleaned = re.sub(r'```\s*$', '', cleaned)

    match = re.search(r'\{[\s\S]*\}', cleaned)
    if not match:
        return None

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None

    return parsed if isinstance(parsed, dict) else None


class LLMService:
    """
    Chat completion service.
    Tries each configured model in priority order, retrying transient failures.
    """

    def __init__(self, config: Dict[str, Any] = None):
        self.config = config if config is not None else get_ai_config()
        self.models: List[ModelConfig] = []
        self.retry_config = self.config.get("retry", {})
        self.fallback_enabled = bool((self.config.get("fallback") or {}).get("enabled", True))

        self._init_models()
        self._configure_litellm()

    def _init_models(self):
        """Initialize models from configuration"""
        story_config = self.config.get("storytelling", {})

        for model_config in story_config.get("models", []) or []:
            if not model_config.get("enabled", True):
                continue

            # Replace environment variable placeholders
            api_key = model_config.get("api_key", "") or ""
            if api_key.startswith("${") and api_key.endswith("}"):
                api_key = os.environ.get(api_key[2:-1], "")

            self.models.append(ModelConfig(
                name=model_config["name"],
                model=model_config["model"],
                api_key=api_key or None,
                api_base=model_config.get("api_base"),
                max_tokens=model_config.get("max_tokens", 2000),
                temperature=model_config.get("temperature", 0.7),
                priority=model_config.get("priority", 1),
                enabled=True
            ))

        self.models.sort(key=lambda x: x.priority)

        if self.models:
            logger.info(f"Loaded {len(self.models)} LLM model configurations")
        else:
            logger.warning("No LLM model configurations found")

    def _configure_litellm(self):
        """Configure LiteLLM"""
        import litellm

        litellm.set_verbose = False
        litellm.request_timeout = self.retry_config.get("timeout", 30)

    def is_available(self) -> bool:
        """Check if any model is configured"""
        return len(self.models) > 0

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None
    ) -> str:
        """
        Run a chat completion.

        Args:
            system_prompt: System prompt
            user_prompt: User prompt
            temperature: Optional override of the model temperature

        Returns:
            Response text

        Raises:
            LLMUnavailableError: If every configured model failed
        """
        if not self.is_available():
            raise LLMUnavailableError("No LLM models configured")

        last_error = None
        for model_config in self.models:
            try:
                start_time = time.time()
                content = await self._call_model(model_config, system_prompt, user_prompt, temperature)
                duration_ms = int((time.time() - start_time) * 1000)

                if content:
                    logger.debug(f"Completion from {model_config.name} in {duration_ms}ms")
                    return content

                logger.warning(f"Empty response from {model_config.name}")

            except Exception as e:
                last_error = e
                logger.warning(f"Model {model_config.name} failed: {e}")

        raise LLMUnavailableError(f"All LLM models failed: {last_error}")

    async def _call_model(
        self,
        model_config: ModelConfig,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float]
    ) -> str:
        """Call a specific LLM model"""
        from litellm import acompletion

        messages = [{"role": "user", "content": user_prompt}]
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})

        kwargs = {
            "model": model_config.model,
            "messages": messages,
            "max_tokens": model_config.max_tokens,
            "temperature": model_config.temperature if temperature is None else temperature,
        }

        if model_config.api_key:
            kwargs["api_key"] = model_config.api_key
        if model_config.api_base:
            kwargs["api_base"] = model_config.api_base

        response = await self._call_with_retry(acompletion, **kwargs)

        return (response.choices[0].message.content or "").strip()

    async def _call_with_retry(self, func, **kwargs):
        """Call function with exponential backoff retry"""
        max_attempts = self.retry_config.get("max_attempts", 3)
        backoff_factor = self.retry_config.get("backoff_factor", 2)
        timeout = self.retry_config.get("timeout", 30)

        for attempt in range(max_attempts):
            try:
                return await func(**kwargs)
            except Exception as e:
                if attempt == max_attempts - 1:
                    raise

                delay = min(backoff_factor ** attempt, timeout)

                logger.warning(f"LLM call failed (attempt {attempt + 1}/{max_attempts}), retrying in {delay}s: {e}")
                await asyncio.sleep(delay)


_llm_service: Optional[LLMService] = None


def get_llm_service() -> LLMService:
    """Get the process-wide LLM service, created on first use"""
    global _llm_service
    if _llm_service is None:
        _llm_service = LLMService()
    return _llm_service
