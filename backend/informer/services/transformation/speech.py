"""
Text-to-speech via the ElevenLabs streaming endpoint.
API docs: https://elevenlabs.io/docs/api-reference/text-to-speech
"""
from typing import AsyncIterator, Optional

import httpx
import structlog

from informer.config import Settings
from informer.errors import ConfigurationError, UpstreamError

logger = structlog.get_logger(__name__)

VOICE_SETTINGS = {"stability": 0.5, "similarity_boost": 0.75}


class SpeechSynthesizer:
    """Streams mp3 audio for a text."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._http_client = http_client

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.elevenlabs_api_key)

    def _request(self, text: str, voice_id: str) -> tuple[str, dict, dict]:
        url = f"{self.settings.elevenlabs_base_url.rstrip('/')}/text-to-speech/{voice_id}/stream"
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.settings.elevenlabs_api_key,
        }
        body = {
            "text": text,
            "model_id": self.settings.elevenlabs_model_id,
            "voice_settings": VOICE_SETTINGS,
        }
        return url, headers, body

    async def stream(self, text: str, voice_id: Optional[str] = None) -> AsyncIterator[bytes]:
        """
        Yield audio chunks as they arrive.

        Raises:
            ConfigurationError: No ElevenLabs key configured
            UpstreamError: The provider rejected the request or the connection failed
        """
        if not self.is_configured:
            raise ConfigurationError("ELEVENLABS_API_KEY is required for speech synthesis")

        url, headers, body = self._request(text, voice_id or self.settings.elevenlabs_voice_id)

        client = self._http_client or httpx.AsyncClient(timeout=60.0)
        try:
            async with client.stream("POST", url, headers=headers, json=body) as response:
                if response.status_code >= 400:
                    detail = (await response.aread()).decode(errors="replace")[:200]
                    logger.error("ElevenLabs error", status=response.status_code, detail=detail)
                    raise UpstreamError(
                        f"ElevenLabs error (HTTP {response.status_code}): {detail}",
                        upstream_status=response.status_code,
                    )
                async for chunk in response.aiter_bytes():
                    yield chunk
        except httpx.HTTPError as e:
            raise UpstreamError(f"ElevenLabs request failed: {e}") from e
        finally:
            if self._http_client is None:
                await client.aclose()

    async def synthesize(self, text: str, voice_id: Optional[str] = None) -> bytes:
        """Full mp3 payload for a text."""
        chunks = [chunk async for chunk in self.stream(text, voice_id)]
        audio = b"".join(chunks)
        if not audio:
            raise UpstreamError("ElevenLabs returned no audio")
        return audio
