"""
Tests for the AI collaborators: text rewriting, image generation and speech.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from informer.errors import ConfigurationError, UpstreamError, ValidationError
from informer.models.domain import PoliticalBias
from informer.services.transformation import ImageGenerator, SpeechSynthesizer, TextRewriter


def anthropic_client(text="Claude says hi"):
    client = MagicMock()
    client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[SimpleNamespace(text=text)])
    )
    return client


def openai_client(text="GPT says hi"):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=text))]
        )
    )
    return client


class TestTextRewriter:
    def test_prefers_anthropic(self, settings):
        claude = anthropic_client("  Rewritten by Claude  ")
        gpt = openai_client()
        rewriter = TextRewriter(settings, anthropic_client=claude, openai_client=gpt)

        result = asyncio.run(rewriter.rewrite("Body text", "Title", PoliticalBias.LEFT))

        assert result == "Rewritten by Claude"
        assert rewriter.provider == "anthropic"
        gpt.chat.completions.create.assert_not_awaited()
        kwargs = claude.messages.create.await_args.kwargs
        assert kwargs["model"] == settings.anthropic_model
        assert "Body text" in kwargs["messages"][0]["content"]

    def test_openai_when_only_openai(self, settings):
        gpt = openai_client('"A headline"')
        rewriter = TextRewriter(settings, openai_client=gpt)

        title = asyncio.run(rewriter.rewrite_title("Original headline", PoliticalBias.RIGHT))

        assert title == "A headline"
        assert gpt.chat.completions.create.await_args.kwargs["model"] == "gpt-4o"

    def test_not_configured(self, settings):
        rewriter = TextRewriter(settings)

        assert not rewriter.is_configured
        with pytest.raises(ConfigurationError):
            asyncio.run(rewriter.explain("Title", "Body", "world"))

    def test_provider_error_mapped(self, settings):
        gpt = openai_client()
        gpt.chat.completions.create.side_effect = openai.APIConnectionError(
            request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        )
        rewriter = TextRewriter(settings, openai_client=gpt)

        with pytest.raises(UpstreamError):
            asyncio.run(rewriter.image_prompt("Title", "Body"))

    def test_empty_completion_is_an_error(self, settings):
        rewriter = TextRewriter(settings, openai_client=openai_client("   "))

        with pytest.raises(UpstreamError):
            asyncio.run(rewriter.rewrite("Body", "Title", PoliticalBias.NEUTRAL))

    def test_empty_content_rejected(self, settings):
        gpt = openai_client()
        rewriter = TextRewriter(settings, openai_client=gpt)

        with pytest.raises(ValidationError):
            asyncio.run(rewriter.rewrite("  ", "Title", PoliticalBias.LEFT))
        gpt.chat.completions.create.assert_not_awaited()

    def test_extreme_only_left_or_right(self, settings):
        rewriter = TextRewriter(settings, openai_client=openai_client())

        with pytest.raises(ValidationError):
            asyncio.run(rewriter.rewrite_extreme("Body", "Title", PoliticalBias.NEUTRAL))
        assert asyncio.run(rewriter.rewrite_extreme("Body", "Title", PoliticalBias.LEFT)) == "GPT says hi"


class TestImageGenerator:
    def test_generate(self, settings):
        client = MagicMock()
        client.images.generate = AsyncMock(
            return_value=SimpleNamespace(data=[SimpleNamespace(url="https://img.example/x.png")])
        )
        generator = ImageGenerator(settings, client=client)

        url = asyncio.run(generator.generate("A calm harbour at dawn"))

        assert url == "https://img.example/x.png"
        assert client.images.generate.await_args.kwargs["model"] == "dall-e-3"

    def test_not_configured(self, settings):
        generator = ImageGenerator(settings)

        assert not generator.is_configured
        with pytest.raises(ConfigurationError):
            asyncio.run(generator.generate("prompt"))

    def test_missing_url(self, settings):
        client = MagicMock()
        client.images.generate = AsyncMock(return_value=SimpleNamespace(data=[]))

        with pytest.raises(UpstreamError):
            asyncio.run(ImageGenerator(settings, client=client).generate("prompt"))


class TestSpeechSynthesizer:
    def run_speech(self, settings, handler, text="Hello there"):
        async def scenario():
            transport = httpx.MockTransport(handler)
            async with httpx.AsyncClient(transport=transport) as http_client:
                synthesizer = SpeechSynthesizer(settings, http_client=http_client)
                return await synthesizer.synthesize(text)

        return asyncio.run(scenario())

    def test_synthesize(self, settings):
        settings = settings.model_copy(update={"elevenlabs_api_key": "xi-key"})
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, content=b"ID3-mp3-bytes")

        audio = self.run_speech(settings, handler)

        request = seen["request"]
        assert audio == b"ID3-mp3-bytes"
        assert request.method == "POST"
        assert request.url.path.endswith(f"/text-to-speech/{settings.elevenlabs_voice_id}/stream")
        assert request.headers["xi-api-key"] == "xi-key"
        assert request.headers["accept"] == "audio/mpeg"

    def test_provider_error(self, settings):
        settings = settings.model_copy(update={"elevenlabs_api_key": "xi-key"})

        def handler(request):
            return httpx.Response(401, text="invalid api key")

        with pytest.raises(UpstreamError) as exc_info:
            self.run_speech(settings, handler)
        assert exc_info.value.upstream_status == 401

    def test_not_configured(self, settings):
        synthesizer = SpeechSynthesizer(settings.model_copy(update={"elevenlabs_api_key": None}))

        assert not synthesizer.is_configured
        with pytest.raises(ConfigurationError):
            asyncio.run(synthesizer.synthesize("text"))
