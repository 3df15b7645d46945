#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Translation orchestrator for the Code Preserve Translator.
Translates the natural-language segments of a document through the completion
backend, one at a time and in order, leaving code segments untouched. Oversized
texts are chunked and every result is cached by content fingerprint.
"""

import logging
from typing import Callable, Dict, List, Optional

from tqdm import tqdm

from .backend import CompletionBackend
from .cache_manager import CacheManager
from .chunker import DEFAULT_MAX_CHUNK_SIZE, TextChunker
from .config import DEFAULT_TONE, resolve_tone
from .exceptions import BackendCallFailed, SegmentTranslationFailed, TranslationStopped
from .models import ContentSegment, TranslationCacheEntry
from .rate_limiter import TokenBucketRateLimiter

logger = logging.getLogger("code_preserve_translator.translator")

TONE_INSTRUCTIONS = {
    "casual": "Use a casual, friendly tone, as if explaining the text to a colleague.",
    "formal": "Use a formal, polite tone suitable for official documentation.",
    "technical": "Use a precise technical tone and keep standard technical terminology exact.",
}


class TranslationOrchestrator:
    """Drive translation of segment sequences and single texts."""

    def __init__(self, backend: CompletionBackend, cache_manager: CacheManager,
                 chunker: TextChunker = None, rate_limiter: TokenBucketRateLimiter = None,
                 target_language="Japanese", default_tone=DEFAULT_TONE, temperature=0.3,
                 max_chunk_size=DEFAULT_MAX_CHUNK_SIZE, show_progress=False):
        """Initialize the orchestrator.

        Args:
            backend: Completion backend used for translation
            cache_manager: Translation cache
            chunker: Text chunker for oversized texts (default chunker if None)
            rate_limiter: Limiter acquired before every backend call (no pacing if None)
            target_language: Language to translate into
            default_tone: Tone used when a call passes none
            temperature: Sampling temperature for translation calls
            max_chunk_size: Longest text sent in a single backend call
            show_progress: Whether to show a tqdm progress bar over segments
        """
        self.backend = backend
        self.cache_manager = cache_manager
        self.chunker = chunker or TextChunker(max_chunk_size)
        self.rate_limiter = rate_limiter
        self.target_language = target_language
        self.default_tone = resolve_tone(default_tone)
        self.temperature = temperature
        self.max_chunk_size = max_chunk_size
        self.show_progress = show_progress
        self.last_translations: Dict[str, TranslationCacheEntry] = {}

        logger.info(f"Initialized translation orchestrator: English → {target_language}")

    def build_instructions(self, tone: str) -> str:
        """Get the instructions sent with every translation request."""
        return (
            f"You are a professional translator. Translate the following English text into {self.target_language}. "
            f"Preserve the original meaning, structure and line breaks. "
            f"Keep code identifiers, command names, URLs and product names in their original form. "
            f"Reply only with the translation, no explanations or additional text."
            f"\n\n{TONE_INSTRUCTIONS[tone]}"
        )

    async def translate_text(self, text: str, tone: Optional[str] = None,
                             is_cancelled: Optional[Callable[[], bool]] = None) -> str:
        """Translate a single text, using the cache when possible.

        Args:
            text: English text
            tone: casual, formal or technical (default: the orchestrator's tone)
            is_cancelled: Checked before each backend call; when it returns True translation stops

        Returns:
            Translated text; empty or whitespace-only input is returned unchanged

        Raises:
            ValueError: Unknown tone
            TranslationStopped: is_cancelled returned True before a backend call
            BackendCallFailed: The backend failed; nothing is cached for this text
        """
        tone = resolve_tone(tone, self.default_tone)
        if not text or not text.strip():
            return text

        cached = await self.cache_manager.get(text)
        if cached is not None:
            logger.debug(f"Cache hit for {cached.fingerprint}")
            self.last_translations[text] = cached
            return cached.translated_text

        instructions = self.build_instructions(tone)
        if len(text) > self.max_chunk_size:
            chunks = self.chunker.split(text, self.max_chunk_size)
            logger.info(f"Translating long text of {len(text)} characters in {len(chunks)} chunks")
            translated_chunks = []
            for number, chunk in enumerate(chunks):
                if is_cancelled is not None and is_cancelled():
                    logger.info(f"Translation stopped before chunk {number + 1} of {len(chunks)}")
                    raise TranslationStopped()
                translated_chunks.append(await self._call_backend(instructions, chunk))
            translated = " ".join(translated_chunks)
        else:
            translated = await self._call_backend(instructions, text)

        entry = await self.cache_manager.put(text, translated)
        if entry is not None:
            self.last_translations[text] = entry
        return translated

    async def translate_segments(self, segments: List[ContentSegment], tone: Optional[str] = None,
                                 is_cancelled: Optional[Callable[[], bool]] = None) -> List[ContentSegment]:
        """Translate a segment sequence in order, copying code segments unchanged.

        Args:
            segments: Original segments
            tone: casual, formal or technical (default: the orchestrator's tone)
            is_cancelled: Checked before each segment; when it returns True translation stops

        Returns:
            Translated segments, index-aligned with the input

        Raises:
            ValueError: Unknown tone
            TranslationStopped: is_cancelled returned True
            SegmentTranslationFailed: A backend call failed; carries the translated prefix
        """
        tone = resolve_tone(tone, self.default_tone)
        self.last_translations = {}
        translated: List[ContentSegment] = []

        progress = tqdm(total=len(segments), desc="Translating segments", unit="segment",
                        disable=not self.show_progress)
        try:
            for index, segment in enumerate(segments):
                if is_cancelled is not None and is_cancelled():
                    logger.info(f"Translation stopped before segment {index}")
                    raise TranslationStopped()

                if segment.is_code:
                    translated.append(segment)
                else:
                    try:
                        text = await self.translate_text(segment.text, tone, is_cancelled)
                    except SegmentTranslationFailed:
                        raise
                    except BackendCallFailed as e:
                        logger.error(f"Translation failed at segment {index}: {e.message}")
                        raise SegmentTranslationFailed(e.message, index, translated,
                                                       status=e.status) from e
                    translated.append(segment.with_text(text))
                progress.update(1)
        finally:
            progress.close()

        logger.info(f"Translated {len(segments)} segments "
                    f"({sum(1 for s in segments if s.is_code)} code segments preserved)")
        return translated

    async def _call_backend(self, instructions: str, text: str) -> str:
        if self.rate_limiter is not None:
            await self.rate_limiter.acquire()
        return await self.backend.complete(instructions, text, self.temperature)
