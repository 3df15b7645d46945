#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Completion backend for the Code Preserve Translator.
Sends instructions and input text to an OpenAI-compatible HTTP API with aiohttp
and returns the generated text. Supports the Responses API and chat-completions
endpoints (OpenAI, DeepSeek and compatible services).
"""

import re
import asyncio
import logging
from typing import Optional

import aiohttp

from .exceptions import BackendCallFailed

logger = logging.getLogger("code_preserve_translator.backend")

DEFAULT_ENDPOINT = "https://api.openai.com/v1/responses"
DEFAULT_MODEL = "gpt-4o"

# Operator boilerplate that end users cannot act on
BOILERPLATE_PATTERNS = [
    re.compile(r'You can find your API key at\s+\S+', re.IGNORECASE),
    re.compile(r'\b(?:please\s+)?(?:see|visit|check|read)\s+(?:the\s+\w+\s+at\s+)?'
               r'https?://\S*(?:openai|deepseek)\.com\S*'
               r'(?:\s+(?:to\s+learn\s+more|for\s+(?:more\s+)?(?:details|information)))?',
               re.IGNORECASE),
    re.compile(r'https?://\S*(?:openai|deepseek)\.com\S*', re.IGNORECASE),
]
RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


def sanitize_error_message(message: str, status: Optional[int] = None) -> str:
    """Strip vendor URLs and operator boilerplate from an API error message.

    Args:
        message: Raw error message from the API
        status: HTTP status, used when nothing useful remains

    Returns:
        Message safe to show to the end user
    """
    cleaned = message or ""
    for pattern in BOILERPLATE_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    cleaned = re.sub(r'\s+', ' ', cleaned).strip()
    cleaned = re.sub(r'\s+([.,;:])', r'\1', cleaned)
    cleaned = re.sub(r'([.,;:])[.,;:]+', r'\1', cleaned).strip(" ,;:")

    if not cleaned:
        return f"Request failed with status {status}" if status else "Request failed"
    return cleaned


def mask_api_key(api_key: str) -> str:
    return f"{api_key[:5]}..." if api_key else "(none)"


class CompletionBackend:
    """Contract of a text-completion service."""

    async def complete(self, instructions: str, input_text: str, temperature: float) -> str:
        raise NotImplementedError

    async def close(self):
        pass


class OpenAICompletionBackend(CompletionBackend):
    """Completion backend for OpenAI-compatible HTTP APIs."""

    def __init__(self, api_key, model=DEFAULT_MODEL, api_endpoint=DEFAULT_ENDPOINT,
                 timeout=60, max_retries=0, session=None, sleep=asyncio.sleep):
        """Initialize the backend.

        Args:
            api_key: API key sent as a bearer token
            model: Model name
            api_endpoint: Full endpoint URL; '/responses' endpoints get a Responses
                payload, anything else a chat-completions payload
            timeout: Total request timeout in seconds
            max_retries: Retries for transport errors, 429 and 5xx responses (0 = none)
            session: Existing aiohttp.ClientSession to use (not closed by this backend)
            sleep: Coroutine function used for backoff waits
        """
        self.api_key = api_key
        self.model = model
        self.api_endpoint = api_endpoint
        self.timeout = timeout
        self.max_retries = max_retries
        self.sleep = sleep
        self._session = session
        self._owns_session = session is None

        if not api_key:
            logger.warning("No API key provided for completion backend")

        logger.info(f"Initialized completion backend: {model} at {api_endpoint} "
                    f"(key {mask_api_key(api_key)})")

    @property
    def uses_responses_api(self) -> bool:
        return self.api_endpoint.rstrip("/").endswith("/responses")

    def build_payload(self, instructions: str, input_text: str, temperature: float) -> dict:
        """Build the JSON request body for the configured endpoint."""
        if self.uses_responses_api:
            return {
                "model": self.model,
                "instructions": instructions,
                "input": input_text,
                "temperature": temperature,
            }
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": instructions},
                {"role": "user", "content": input_text},
            ],
            "temperature": temperature,
        }

    @staticmethod
    def extract_output(data) -> Optional[str]:
        """Extract the generated text from a Responses or chat-completions body."""
        if not isinstance(data, dict):
            return None

        if isinstance(data.get("output_text"), str) and data["output_text"]:
            return data["output_text"]

        parts = []
        for item in data.get("output") or []:
            if not isinstance(item, dict):
                continue
            for content in item.get("content") or []:
                if isinstance(content, dict) and isinstance(content.get("text"), str):
                    parts.append(content["text"])
        if parts:
            return "".join(parts)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return None
        return content if isinstance(content, str) and content else None

    async def _ensure_session(self):
        """Ensure aiohttp session exists."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Content-Type": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def close(self):
        """Close the aiohttp session if this backend created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def complete(self, instructions: str, input_text: str, temperature: float) -> str:
        """Run one completion request.

        Args:
            instructions: System instructions
            input_text: User input
            temperature: Sampling temperature

        Returns:
            Generated text

        Raises:
            BackendCallFailed: Missing API key, transport error, non-2xx status or empty output
        """
        if not self.api_key:
            raise BackendCallFailed("API key is not configured")

        session = await self._ensure_session()
        payload = self.build_payload(instructions, input_text, temperature)
        headers = {"Authorization": f"Bearer {self.api_key}"}

        for attempt in range(self.max_retries + 1):
            try:
                async with session.post(self.api_endpoint, json=payload, headers=headers) as response:
                    if 200 <= response.status < 300:
                        data = await response.json(content_type=None)
                        output = self.extract_output(data)
                        if output is None:
                            raise BackendCallFailed("Response did not contain any text",
                                                    status=response.status)
                        return output

                    message = await self._error_message(response)
                    error = BackendCallFailed(message, status=response.status)
                    if response.status not in RETRYABLE_STATUSES:
                        raise error

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                error = BackendCallFailed(f"Request failed: {type(e).__name__}")
                logger.debug(f"Error details: {str(e)}")

            if attempt < self.max_retries:
                wait_time = 2 ** attempt
                logger.warning(f"API request failed. Retrying in {wait_time} seconds... "
                               f"({attempt + 1}/{self.max_retries})")
                await self.sleep(wait_time)
            else:
                logger.error(f"API request failed: {error.message}")
                raise error

    async def _error_message(self, response) -> str:
        """Read the vendor error message of a failed response, sanitized."""
        raw = None
        try:
            data = await response.json(content_type=None)
        except (aiohttp.ClientError, ValueError):
            data = None

        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict):
                raw = error.get("message")
            elif isinstance(error, str):
                raw = error
            raw = raw or data.get("message")

        if not raw:
            raw = f"HTTP {response.status}: {response.reason or 'request failed'}"
        return sanitize_error_message(str(raw), response.status)
