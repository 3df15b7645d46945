#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Text chunker for the Code Preserve Translator.
Splits oversized text into chunks that respect paragraph and sentence boundaries
so each chunk fits a single backend request.
"""

import re
import logging
from typing import List

from nltk.tokenize import RegexpTokenizer

logger = logging.getLogger("code_preserve_translator.chunker")

DEFAULT_MAX_CHUNK_SIZE = 4000

PARAGRAPH_BREAK = re.compile(r'\n\s*\n')
PARAGRAPH_JOINER = "\n\n"
SENTENCE_JOINER = " "


class TextChunker:
    """Split text into chunks that respect paragraph and sentence boundaries."""

    def __init__(self, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE):
        """Initialize the chunker.

        Args:
            max_chunk_size: Default maximum length of a chunk in characters
        """
        if max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        self.max_chunk_size = max_chunk_size
        # Terminal punctuation followed by whitespace; needs no punkt download
        self.sentence_tokenizer = RegexpTokenizer(r'(?<=[.!?])\s+', gaps=True)

    def split_into_sentences(self, text: str) -> List[str]:
        """Split text into sentences at terminal punctuation.

        Args:
            text: Input text to split into sentences

        Returns:
            List of sentences, punctuation kept
        """
        if not text or not text.strip():
            return []
        return [s for s in self.sentence_tokenizer.tokenize(text) if s.strip()]

    def detect_paragraphs(self, text: str) -> List[str]:
        """Split text on blank-line paragraph boundaries, dropping empty paragraphs."""
        if not text or not text.strip():
            return []
        return [p for p in PARAGRAPH_BREAK.split(text) if p.strip()]

    def split(self, text: str, max_chunk_size: int = None) -> List[str]:
        """Split text into chunks no longer than max_chunk_size.

        Text that already fits is returned unchanged as a single chunk.

        Args:
            text: Text to split
            max_chunk_size: Maximum chunk length (default: the chunker's setting)

        Returns:
            List of chunks in document order
        """
        max_size = max_chunk_size or self.max_chunk_size
        if len(text) <= max_size:
            return [text]

        chunks: List[str] = []
        current = ""

        for paragraph in self.detect_paragraphs(text):
            candidate = current + PARAGRAPH_JOINER + paragraph if current else paragraph
            if len(candidate) <= max_size:
                current = candidate
                continue

            if current:
                chunks.append(current)
                current = ""

            if len(paragraph) > max_size:
                chunks.extend(self._split_paragraph(paragraph, max_size))
            else:
                current = paragraph

        if current:
            chunks.append(current)

        logger.debug(f"Split {len(text)} characters into {len(chunks)} chunks (max {max_size})")
        return chunks

    def _split_paragraph(self, paragraph: str, max_size: int) -> List[str]:
        """Split one oversized paragraph on sentence boundaries."""
        chunks: List[str] = []
        current = ""

        for sentence in self.split_into_sentences(paragraph):
            candidate = current + SENTENCE_JOINER + sentence if current else sentence
            if len(candidate) <= max_size:
                current = candidate
                continue

            if current:
                chunks.append(current)
                current = ""

            if len(sentence) > max_size:
                logger.debug(f"Sentence of {len(sentence)} characters exceeds {max_size}, hard-cutting")
                chunks.extend(self._hard_cut(sentence, max_size))
            else:
                current = sentence

        if current:
            chunks.append(current)
        return chunks

    @staticmethod
    def _hard_cut(text: str, max_size: int) -> List[str]:
        return [text[i:i + max_size] for i in range(0, len(text), max_size)]
