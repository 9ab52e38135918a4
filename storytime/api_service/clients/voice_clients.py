"""
Voice vendor client implementations.
Handles voice cloning through the ElevenLabs API.
"""
from storytime.shared.logging import ServiceLogger
from storytime.shared.config import voice_config
from storytime.shared.utils import ServiceClient, ServiceClientError

logger = ServiceLogger("voice-clients")


class VoiceCloneError(Exception):
    """Raised when the vendor refuses or fails a voice clone"""


class ElevenLabsClient(ServiceClient):
    """Client for the ElevenLabs voice API"""

    def __init__(self, api_key: str = None, base_url: str = None):
        self.api_key = api_key if api_key is not None else voice_config.elevenlabs_api_key
        super().__init__(
            base_url=base_url or voice_config.elevenlabs_api_url,
            api_key=self.api_key,
            api_key_header="xi-api-key",
            timeout=60
        )
        self.service_name = "elevenlabs"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def add_voice(
        self,
        name: str,
        description: str,
        audio_bytes: bytes,
        filename: str = "voice-sample.webm",
        content_type: str = "audio/webm"
    ) -> str:
        """
        Create an instant voice clone from a recorded sample.

        Args:
            name: Voice name shown in the vendor dashboard
            description: Voice description
            audio_bytes: Recorded sample
            filename: Upload filename
            content_type: Sample MIME type

        Returns:
            The new voice ID

        Raises:
            VoiceCloneError: If the vendor call fails
        """
        logger.info(f"Requesting voice clone: {name}")

        try:
            response = await self.post_multipart(
                "/voices/add",
                data={"name": name, "description": description},
                files={"files": (filename, audio_bytes, content_type)}
            )
        except ServiceClientError as e:
            detail = f" - {e.detail}" if e.detail else ""
            raise VoiceCloneError(f"ElevenLabs API error: {e.status_code or 'unreachable'}{detail}") from e

        voice_id = response.get("voice_id")
        if not voice_id:
            raise VoiceCloneError("ElevenLabs response did not include a voice_id")

        logger.success(f"Voice clone created: {voice_id}")
        return voice_id


# Global client instance
elevenlabs_client = ElevenLabsClient()
