"""Editorial image generation with the OpenAI Images API."""
from typing import Optional

import openai
import structlog
from openai import AsyncOpenAI

from informer.config import Settings
from informer.errors import ConfigurationError, UpstreamError

logger = structlog.get_logger(__name__)


class ImageGenerator:
    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        self._client = client
        if self._client is None and settings.openai_api_key:
            self._client = AsyncOpenAI(api_key=settings.openai_api_key)

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def generate(self, prompt: str, size: str = "1024x1024") -> str:
        """
        Generate one image for a prompt.

        Returns:
            URL of the generated image
        """
        if self._client is None:
            raise ConfigurationError("OPENAI_API_KEY is required for image generation")

        try:
            response = await self._client.images.generate(
                model=self.settings.openai_image_model,
                prompt=prompt,
                n=1,
                size=size,
                quality="standard",
            )
        except openai.OpenAIError as e:
            logger.error("Image generation failed", error=str(e))
            raise UpstreamError(f"Image generation failed: {e}") from e

        url = response.data[0].url if response.data else None
        if not url:
            raise UpstreamError("Image generation returned no URL")

        logger.info("Generated image", model=self.settings.openai_image_model)
        return url
