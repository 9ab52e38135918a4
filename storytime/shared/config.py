"""
Shared configuration management for Story Time services.
Centralizes environment variables and external service settings.
"""
import yaml
from typing import Optional, Dict, Any, List
from pydantic_settings import BaseSettings
from pathlib import Path

# Repository root, where .env and ai_config.yaml live
PROJECT_ROOT = Path(__file__).parent.parent.parent
ENV_FILE_PATH = PROJECT_ROOT / ".env"
AI_CONFIG_PATH = PROJECT_ROOT / "ai_config.yaml"


class BaseServiceConfig(BaseSettings):
    """Base configuration for all services"""

    # Service identification
    service_name: str = "storytime-service"
    service_version: str = "1.0.0"
    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 3001

    class Config:
        env_file = str(ENV_FILE_PATH)
        extra = "ignore"
        case_sensitive = False


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    # Supabase configuration
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""

    class Config:
        env_file = str(ENV_FILE_PATH)
        extra = "ignore"


class AuthConfig(BaseSettings):
    """Clerk session token verification"""

    clerk_jwks_url: str = ""
    clerk_jwt_key: str = ""
    clerk_issuer: str = ""
    clerk_authorized_parties: List[str] = []

    # Decode tokens without signature verification when no key is configured.
    # Only meant for local development.
    auth_allow_unverified: bool = False

    @property
    def verification_configured(self) -> bool:
        return bool(self.clerk_jwt_key or self.clerk_jwks_url)

    class Config:
        env_file = str(ENV_FILE_PATH)
        extra = "ignore"


class LiveKitConfig(BaseSettings):
    """LiveKit server and agent configuration"""

    livekit_url: str = ""
    livekit_api_key: str = ""
    livekit_api_secret: str = ""

    agent_name: str = "story-time-agent"
    token_ttl_minutes: int = 15

    @property
    def is_configured(self) -> bool:
        return all([self.livekit_url, self.livekit_api_key, self.livekit_api_secret])

    class Config:
        env_file = str(ENV_FILE_PATH)
        extra = "ignore"


class VoiceConfig(BaseSettings):
    """Voice cloning and speech pipeline configuration"""

    elevenlabs_api_key: str = ""
    elevenlabs_api_url: str = "https://api.elevenlabs.io/v1"

    default_voice_id: str = "Xb7hH8MSUJpSbSDYk0k2"
    tts_model: str = "elevenlabs/eleven_turbo_v2_5"
    stt_model: str = "assemblyai/universal-streaming"
    agent_llm_model: str = "openai/gpt-4.1-mini"
    # Storytelling model on LiveKit inference when ai_config.yaml lists no models
    story_llm_model: str = "openai/gpt-4o-mini"
    language: str = "en"

    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB max

    class Config:
        env_file = str(ENV_FILE_PATH)
        extra = "ignore"


DEFAULT_AI_CONFIG: Dict[str, Any] = {
    "storytelling": {
        "provider": "litellm",
        "models": [],
    },
    "retry": {
        "max_attempts": 3,
        "backoff_factor": 2,
        "timeout": 30
    },
    "fallback": {
        "enabled": True
    }
}


def get_ai_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load AI configuration from ai_config.yaml file.

    Args:
        config_path: Optional override of the config file location

    Returns:
        Dictionary containing AI configuration
    """
    config_path = config_path or AI_CONFIG_PATH

    if not config_path.exists():
        return dict(DEFAULT_AI_CONFIG)

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)

        return config or dict(DEFAULT_AI_CONFIG)

    except Exception as e:
        from .logging import ServiceLogger
        logger = ServiceLogger("config")
        logger.error(f"Failed to load AI config from {config_path}", e)
        return dict(DEFAULT_AI_CONFIG)


# Global configuration instances
base_config = BaseServiceConfig()
db_config = DatabaseConfig()
auth_config = AuthConfig()
livekit_config = LiveKitConfig()
voice_config = VoiceConfig()
