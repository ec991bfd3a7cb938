"""
Article transformation pipeline.

An article moves forward through text, image and audio stages:

    pending -> text_completed -> image_completed -> audio_completed -> completed

Any failure parks it in ``error``; the next attempt with the same bias
resumes after the last stage whose output is stored.
"""
import asyncio
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional

import structlog

from informer.config import Settings
from informer.errors import ArticleBusy, InformerError, InvalidTransition, ValidationError
from informer.models.domain import Article, PoliticalBias, ProcessingStatus
from informer.services.transformation import ImageGenerator, SpeechSynthesizer, TextRewriter
from informer.storage.articles import ArticleStore, parse_article_id

logger = structlog.get_logger(__name__)

STAGE_RANK = {
    ProcessingStatus.PENDING: 0,
    ProcessingStatus.TEXT_COMPLETED: 1,
    ProcessingStatus.IMAGE_COMPLETED: 2,
    ProcessingStatus.AUDIO_COMPLETED: 3,
    ProcessingStatus.COMPLETED: 4,
}


def transition(current: ProcessingStatus, target: ProcessingStatus) -> ProcessingStatus:
    """
    Validate a status change and return the new status.

    Pipeline stages only move forward. ``error`` can be entered from any
    non-terminal stage and left toward any stage.

    Raises:
        InvalidTransition: The change would move the article backwards
    """
    if target == ProcessingStatus.ERROR:
        if current == ProcessingStatus.COMPLETED:
            raise InvalidTransition("A completed article cannot enter error")
        return target

    if current == ProcessingStatus.ERROR:
        return target

    if STAGE_RANK[target] < STAGE_RANK[current]:
        raise InvalidTransition(
            f"Cannot move article from {current.value} back to {target.value}"
        )
    return target


def parse_bias(raw) -> PoliticalBias:
    if isinstance(raw, PoliticalBias):
        return raw
    try:
        return PoliticalBias(str(raw).strip().lower())
    except ValueError:
        raise ValidationError(
            f"Invalid bias: {raw}. Must be one of: {', '.join(b.value for b in PoliticalBias)}"
        )


class ArticleProcessor:
    """Runs the rewrite pipeline for stored articles."""

    def __init__(
        self,
        store: ArticleStore,
        rewriter: TextRewriter,
        image_generator: ImageGenerator,
        speech: SpeechSynthesizer,
        settings: Settings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.rewriter = rewriter
        self.image_generator = image_generator
        self.speech = speech
        self.settings = settings
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Stage helpers
    # ------------------------------------------------------------------

    def _want_images(self, requested: Optional[bool]) -> bool:
        if requested is not None:
            return requested
        return self.settings.generate_images and self.image_generator.is_configured

    def _want_audio(self, requested: Optional[bool]) -> bool:
        if requested is not None:
            return requested
        return self.settings.generate_audio and self.speech.is_configured

    async def _reset(self, article: Article, bias: PoliticalBias) -> Article:
        logger.info(
            "Resetting article transformation",
            article_id=article.id,
            previous_bias=article.political_bias.value,
            bias=bias.value,
        )
        return await self.store.update(
            article.id,
            transformed_title=None,
            transformed_content=None,
            generated_image_url=None,
            audio_url=None,
            political_bias=bias,
            is_processed=False,
            processing_status=ProcessingStatus.PENDING,
            processing_error=None,
        )

    async def _write_audio(self, article_id: str, audio: bytes) -> str:
        media_dir = Path(self.settings.media_dir)
        path = media_dir / f"{article_id}.mp3"

        def write():
            media_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(audio)

        await asyncio.to_thread(write)
        return f"{self.settings.media_url_path}/{article_id}.mp3"

    async def _run_stages(
        self,
        article: Article,
        bias: PoliticalBias,
        with_image: bool,
        with_audio: bool,
    ) -> Article:
        status = article.processing_status

        if not article.transformed_content:
            title = await self.rewriter.rewrite_title(article.title, bias)
            content = await self.rewriter.rewrite(article.source_text, article.title, bias)
            status = transition(status, ProcessingStatus.TEXT_COMPLETED)
            article = await self.store.update(
                article.id,
                transformed_title=title,
                transformed_content=content,
                political_bias=bias,
                processing_status=status,
                processing_error=None,
            )
            logger.info("Text stage completed", article_id=article.id, bias=bias.value)

        if with_image and not article.generated_image_url:
            prompt = await self.rewriter.image_prompt(
                article.transformed_title or article.title,
                article.transformed_content,
            )
            image_url = await self.image_generator.generate(prompt)
            status = transition(status, ProcessingStatus.IMAGE_COMPLETED)
            article = await self.store.update(
                article.id,
                generated_image_url=image_url,
                processing_status=status,
            )
            logger.info("Image stage completed", article_id=article.id)

        if with_audio and not article.audio_url:
            audio = await self.speech.synthesize(article.transformed_content)
            audio_url = await self._write_audio(article.id, audio)
            status = transition(status, ProcessingStatus.AUDIO_COMPLETED)
            article = await self.store.update(
                article.id,
                audio_url=audio_url,
                processing_status=status,
            )
            logger.info("Audio stage completed", article_id=article.id, bytes=len(audio))

        status = transition(status, ProcessingStatus.COMPLETED)
        return await self.store.update(
            article.id,
            is_processed=True,
            processing_status=status,
            processing_error=None,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def rewrite(
        self,
        article_id: str,
        bias,
        *,
        force: bool = False,
        generate_image: Optional[bool] = None,
        generate_audio: Optional[bool] = None,
    ) -> Article:
        """
        Transform an article to the given political bias.

        Calling again with the same bias returns the stored result without
        touching any collaborator. A different bias, or ``force``, starts
        over from ``pending``.

        Raises:
            ValidationError: Bad id or bias, or nothing to rewrite
            NotFound: No such article
            ArticleBusy: Another transformation of this article is running
            InformerError: A collaborator failed; the article is left in ``error``
        """
        article_id = parse_article_id(article_id)
        bias = parse_bias(bias)
        article = await self.store.find_by_id(article_id)

        if article.is_processed and article.political_bias == bias and not force:
            logger.debug("Article already processed", article_id=article_id, bias=bias.value)
            return article

        if not article.source_text:
            raise ValidationError("Article has no content or description to rewrite")

        ttl = self.settings.processing_lock_ttl_seconds
        if not await self.store.try_acquire_processing(article_id, ttl):
            raise ArticleBusy(f"Article {article_id} is already being processed")

        try:
            if force or article.political_bias != bias:
                article = await self._reset(article, bias)

            try:
                return await self._run_stages(
                    article,
                    bias,
                    with_image=self._want_images(generate_image),
                    with_audio=self._want_audio(generate_audio),
                )
            except Exception as e:
                message = e.message if isinstance(e, InformerError) else str(e) or type(e).__name__
                await self._mark_failed(article_id, message)
                raise
        finally:
            await self.store.release_processing(article_id)

    async def _mark_failed(self, article_id: str, message: str) -> None:
        logger.error("Article transformation failed", article_id=article_id, error=message)
        await self.store.update(
            article_id,
            is_processed=False,
            processing_status=ProcessingStatus.ERROR,
            processing_error=message,
        )

    async def process_pending(self, bias, limit: Optional[int] = 10) -> int:
        """
        Rewrite unprocessed articles one after another.

        Failures are logged and skipped.

        Returns:
            Number of articles processed successfully
        """
        bias = parse_bias(bias)
        articles = await self.store.find_unprocessed(limit)
        processed = 0

        for index, article in enumerate(articles):
            if index > 0:
                await self._sleep(self.settings.batch_item_delay_seconds)
            try:
                await self.rewrite(article.id, bias)
                processed += 1
            except InformerError as e:
                logger.warning("Skipping article", article_id=article.id, error=e.message)

        logger.info("Processed pending articles", processed=processed, attempted=len(articles))
        return processed

    async def explain(self, article_id: str) -> Article:
        """Generate and store a reader-facing explanation of an article."""
        article = await self.store.find_by_id(article_id)
        text = article.source_text or article.title
        explanation = await self.rewriter.explain(article.title, text, article.category.value)
        return await self.store.update(article.id, explanation=explanation)

    async def preview_rewrite(self, article_id: str, bias) -> str:
        """Extreme left or right rewrite, returned without being stored."""
        bias = parse_bias(bias)
        if bias not in (PoliticalBias.LEFT, PoliticalBias.RIGHT):
            raise ValidationError("Extreme rewrites are only available for left or right")

        article = await self.store.find_by_id(article_id)
        if not article.source_text:
            raise ValidationError("Article has no content or description to rewrite")

        return await self.rewriter.rewrite_extreme(article.source_text, article.title, bias)

    async def speech_stream(self, article_id: str) -> AsyncIterator[bytes]:
        """
        Audio stream for an article's text, preferring the rewritten version.

        The first chunk is fetched eagerly so provider errors surface before
        a response starts.
        """
        article = await self.store.find_by_id(article_id)
        text = article.transformed_content or article.source_text
        if not text:
            raise ValidationError("Article has no text to synthesize")

        stream = self.speech.stream(text)
        first = await anext(stream, b"")

        async def chunks():
            if first:
                yield first
            async for chunk in stream:
                yield chunk

        return chunks()
