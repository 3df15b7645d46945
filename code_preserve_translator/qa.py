#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Question answering for the Code Preserve Translator.
Answers questions about a document's content through the completion backend.
"""

import logging
from typing import Optional

from .backend import CompletionBackend
from .config import DEFAULT_TONE, resolve_tone

logger = logging.getLogger("code_preserve_translator.qa")

EMPTY_QUESTION_FALLBACK = "Please enter a question about this page."
EMPTY_CONTENT_FALLBACK = ("There is no page content to answer from yet. "
                          "Load the page and try again.")

TONE_PHRASING = {
    "formal": "Answer politely, in a formal register.",
    "casual": "Answer in a friendly, conversational way.",
    "technical": "Answer precisely, using exact technical terminology.",
}

QUESTION_TEMPLATE = """Answer the user's question based on the content of the web page below.

Web page content:
{content}

User question:
{question}
"""


class QAResponder:
    """Stateless responder answering questions about document content."""

    def __init__(self, backend: CompletionBackend, answer_language="Japanese",
                 default_tone=DEFAULT_TONE, temperature=0.7):
        self.backend = backend
        self.answer_language = answer_language
        self.default_tone = resolve_tone(default_tone)
        self.temperature = temperature

    def build_instructions(self, tone: str) -> str:
        return (
            "You are an assistant that answers questions about the content of a web page.\n"
            "Rules:\n"
            "1. Base the answer on the page content.\n"
            "2. If the content does not contain the information, say so.\n"
            "3. For questions about code, give concrete examples.\n"
            f"4. Answer in {self.answer_language}. {TONE_PHRASING[tone]}"
        )

    async def answer(self, question: str, document_content: str, tone: Optional[str] = None) -> str:
        """Answer a question about a document.

        Args:
            question: The user's question
            document_content: Plain text content of the document
            tone: casual, formal or technical (default: the responder's tone)

        Returns:
            The backend's answer verbatim, or a fixed fallback for empty input

        Raises:
            ValueError: Unknown tone
            BackendCallFailed: The backend failed
        """
        tone = resolve_tone(tone, self.default_tone)
        if not question or not question.strip():
            return EMPTY_QUESTION_FALLBACK
        if not document_content or not document_content.strip():
            logger.warning("Question asked without document content")
            return EMPTY_CONTENT_FALLBACK

        input_text = QUESTION_TEMPLATE.format(content=document_content, question=question.strip())
        logger.debug(f"Answering question of {len(question)} characters "
                     f"over {len(document_content)} characters of content")
        return await self.backend.complete(self.build_instructions(tone), input_text,
                                           self.temperature)
