#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Document pipeline for the Code Preserve Translator.
Ties extraction, translation, question answering and context storage together
into the flows a caller runs for a document: ingest, translate, ask, stop and reset.
"""

import logging
from typing import Dict, List, Optional

from .cache_manager import CacheManager
from .context_store import ContextStore
from .exceptions import ContextNotFound, SegmentTranslationFailed, TranslationStopped, TranslatorError
from .extractor import StructuredExtractor
from .html_tree import parse_html
from .models import ChatMessage, ChatRole, ContentSegment, DocumentContext, SegmentKind
from .qa import QAResponder
from .translator import TranslationOrchestrator

logger = logging.getLogger("code_preserve_translator.pipeline")


class DocumentPipeline:
    """Caller-facing flows over one set of engine components."""

    def __init__(self, extractor: StructuredExtractor, orchestrator: TranslationOrchestrator,
                 qa_responder: QAResponder, context_store: ContextStore,
                 cache_manager: CacheManager):
        self.extractor = extractor
        self.orchestrator = orchestrator
        self.qa_responder = qa_responder
        self.context_store = context_store
        self.cache_manager = cache_manager
        # Bumped by stop/reset; a translation started under an older value is abandoned
        self._generations: Dict[str, int] = {}

    async def ingest(self, url: str, html: str, title: Optional[str] = None) -> DocumentContext:
        """Extract a document and store its context.

        Chat history survives re-extraction; a previous translation is kept only
        when the extracted segments did not change.

        Args:
            url: Document id
            html: Full HTML of the page
            title: Page title (default: the HTML title element)

        Returns:
            The saved DocumentContext
        """
        document = parse_html(html)
        if title is None:
            title = document.title.get_text(strip=True) if document.title else ""

        root = self.extractor.select_content_root(document)
        segments = self.extractor.extract(root)
        code_units = self.extractor.collect_code_units(document)
        marked = self.extractor.mark_code_units(document, code_units)
        logger.debug(f"Marked {marked} of {len(code_units)} code blocks in {url}")

        context = await self.context_store.get_or_create(url, title)
        if context.segments != segments:
            context.translated_segments = None
        context.title = title
        context.raw_text = self.extractor.join_text(segments)
        context.html_content = self.extractor.sanitized_html(root)
        context.segments = segments
        context.code_units = code_units
        await self.context_store.save(context)

        logger.info(f"Ingested {url}: {len(segments)} segments, {len(code_units)} code blocks")
        return context

    async def _require_context(self, url: str) -> DocumentContext:
        context = await self.context_store.load(url)
        if context is None:
            raise ContextNotFound(url)
        return context

    async def translate(self, url: str, tone: Optional[str] = None) -> List[ContentSegment]:
        """Translate a stored document and record the result in its context.

        Args:
            url: Document id
            tone: casual, formal or technical (default: the configured tone)

        Returns:
            Translated segments, index-aligned with the document's segments

        Raises:
            ContextNotFound: No context stored for the document
            TranslationStopped: The document was stopped or reset meanwhile
            SegmentTranslationFailed: A backend call failed; the partial result is saved
        """
        context = await self._require_context(url)
        generation = self._generations.get(url, 0)

        def is_cancelled():
            return self._generations.get(url, 0) != generation

        segments = context.segments
        if not segments:
            segments = [ContentSegment(SegmentKind.PARAGRAPH, context.raw_text)] if context.raw_text else []

        try:
            translated = await self.orchestrator.translate_segments(segments, tone, is_cancelled)
        except SegmentTranslationFailed as e:
            if is_cancelled():
                raise TranslationStopped(url) from e
            # Untranslated remainder keeps its original text so indexes stay aligned
            context.translated_segments = e.partial_segments + segments[len(e.partial_segments):]
            context.translations.update(self.orchestrator.last_translations)
            await self.context_store.save(context)
            raise
        except TranslationStopped:
            raise TranslationStopped(url)

        if is_cancelled():
            logger.info(f"Dropping translation of {url}, document was stopped")
            raise TranslationStopped(url)

        context.translated_segments = translated
        context.translations.update(self.orchestrator.last_translations)
        await self.context_store.save(context)
        return translated

    async def ask(self, url: str, question: str, tone: Optional[str] = None) -> str:
        """Answer a question about a stored document and record the exchange.

        Raises:
            ContextNotFound: No context stored for the document
            BackendCallFailed: The backend failed; history is left unchanged
        """
        context = await self._require_context(url)
        answer = await self.qa_responder.answer(question, context.raw_text, tone)

        if question and question.strip() and context.raw_text.strip():
            now = self.context_store.clock()
            context.chat_history.append(ChatMessage(ChatRole.USER, question.strip(), now))
            context.chat_history.append(ChatMessage(ChatRole.ASSISTANT, answer, now))
            await self.context_store.save(context)
        return answer

    async def history(self, url: str) -> List[ChatMessage]:
        context = await self._require_context(url)
        return list(context.chat_history)

    def stop(self, url: str) -> None:
        """Prevent further backend calls for an in-flight translation of a document."""
        self._generations[url] = self._generations.get(url, 0) + 1
        logger.info(f"Stop requested for {url}")

    async def reset(self, url: str) -> None:
        """Stop any translation of a document and discard its stored context."""
        self.stop(url)
        await self.context_store.reset(url)

    async def render_translation(self, url: str) -> str:
        """HTML of the document rebuilt from its translated segments."""
        context = await self._require_context(url)
        if context.translated_segments is None:
            raise TranslatorError(f"Document has not been translated yet: {url}")
        return str(self.extractor.rebuild(context.translated_segments))

    async def recent_documents(self) -> List[str]:
        return await self.context_store.recent_documents()

    async def evict_cache(self) -> int:
        return await self.cache_manager.evict()

    async def close(self):
        await self.orchestrator.backend.close()
