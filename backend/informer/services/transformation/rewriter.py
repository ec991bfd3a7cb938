"""
Text rewriting using LLMs (Claude or GPT).

Claude is used when an Anthropic key is configured, GPT otherwise.
"""
from typing import Optional

import anthropic
import openai
import structlog
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from informer.config import Settings
from informer.errors import ConfigurationError, UpstreamError, ValidationError
from informer.models.domain import PoliticalBias
from informer.services.transformation import prompts

logger = structlog.get_logger(__name__)


class TextRewriter:
    """
    Bias rewrites, headlines, image prompts and explanations.

    Clients may be injected; otherwise they are built from the configured keys.
    """

    def __init__(
        self,
        settings: Settings,
        anthropic_client: Optional[AsyncAnthropic] = None,
        openai_client: Optional[AsyncOpenAI] = None,
    ):
        self.settings = settings
        self._anthropic_client = anthropic_client
        self._openai_client = openai_client

        if self._anthropic_client is None and self._openai_client is None:
            if settings.anthropic_api_key:
                self._anthropic_client = AsyncAnthropic(api_key=settings.anthropic_api_key)
            elif settings.openai_api_key:
                self._openai_client = AsyncOpenAI(api_key=settings.openai_api_key)

    @property
    def is_configured(self) -> bool:
        return self._anthropic_client is not None or self._openai_client is not None

    @property
    def provider(self) -> Optional[str]:
        if self._anthropic_client is not None:
            return "anthropic"
        if self._openai_client is not None:
            return "openai"
        return None

    async def _complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        if self._anthropic_client is not None:
            return await self._complete_anthropic(prompt, max_tokens, temperature)
        if self._openai_client is not None:
            return await self._complete_openai(prompt, max_tokens, temperature)
        raise ConfigurationError("No LLM API key configured (ANTHROPIC_API_KEY or OPENAI_API_KEY)")

    async def _complete_anthropic(self, prompt: str, max_tokens: int, temperature: float) -> str:
        """Generate text using Claude."""
        try:
            response = await self._anthropic_client.messages.create(
                model=self.settings.anthropic_model,
                max_tokens=max_tokens,
                temperature=min(temperature, 1.0),
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error("Anthropic request failed", error=str(e))
            raise UpstreamError(f"Anthropic request failed: {e}") from e

        text = "".join(block.text for block in response.content if getattr(block, "text", None))
        return self._non_empty(text, "Anthropic")

    async def _complete_openai(self, prompt: str, max_tokens: int, temperature: float) -> str:
        """Generate text using GPT."""
        try:
            response = await self._openai_client.chat.completions.create(
                model=self.settings.openai_text_model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except openai.OpenAIError as e:
            logger.error("OpenAI request failed", error=str(e))
            raise UpstreamError(f"OpenAI request failed: {e}") from e

        return self._non_empty(response.choices[0].message.content, "OpenAI")

    @staticmethod
    def _non_empty(text: Optional[str], provider: str) -> str:
        text = (text or "").strip()
        if not text:
            raise UpstreamError(f"{provider} returned an empty completion")
        return text

    async def rewrite(self, content: str, title: str, bias: PoliticalBias) -> str:
        """Rewrite an article body with the given slant."""
        if not content or not content.strip():
            raise ValidationError("No content to rewrite")
        return await self._complete(prompts.rewrite_prompt(title, content, bias), 2000, 1.0)

    async def rewrite_title(self, title: str, bias: PoliticalBias) -> str:
        text = await self._complete(prompts.title_prompt(title, bias), 100, 1.0)
        return text.strip('"').strip()

    async def image_prompt(self, title: str, content: str) -> str:
        return await self._complete(prompts.image_prompt_prompt(title, content), 200, 0.8)

    async def explain(self, title: str, content: str, category: str) -> str:
        return await self._complete(prompts.explain_prompt(title, content, category), 800, 0.5)

    async def rewrite_extreme(self, content: str, title: str, bias: PoliticalBias) -> str:
        """Exaggerated left or right rewrite, for side-by-side comparison."""
        if bias not in (PoliticalBias.LEFT, PoliticalBias.RIGHT):
            raise ValidationError("Extreme rewrites are only available for left or right")
        return await self._complete(prompts.extreme_prompt(title, content, bias), 2000, 1.0)
