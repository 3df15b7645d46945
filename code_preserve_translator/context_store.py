#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Document context store for the Code Preserve Translator.
Persists one DocumentContext per URL and keeps a bounded most-recently-used
list of documents; contexts that fall off the list are removed.
"""

import time
import logging
from typing import Callable, List, Optional

from .models import DocumentContext
from .storage import KeyValueStore

logger = logging.getLogger("code_preserve_translator.context_store")

CONTEXT_KEY_PREFIX = "page_"
RECENT_DOCUMENTS_KEY = "recent_documents"


def context_key(document_id: str) -> str:
    return CONTEXT_KEY_PREFIX + document_id


class ContextStore:
    """Owner of all DocumentContext records."""

    def __init__(self, store: KeyValueStore, max_recent_documents: int = 10,
                 clock: Callable[[], float] = time.time):
        """Initialize the context store.

        Args:
            store: Key/value store holding contexts
            max_recent_documents: Number of documents kept in the MRU list
            clock: Returns the current time in seconds
        """
        self.store = store
        self.max_recent_documents = max_recent_documents
        self.clock = clock

    async def load(self, document_id: str) -> Optional[DocumentContext]:
        """Load the context of a document, or None if none is stored."""
        data = await self.store.get(context_key(document_id))
        if data is None:
            return None
        try:
            return DocumentContext.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed context for {document_id}: {e}")
            return None

    async def get_or_create(self, url: str, title: str = "") -> DocumentContext:
        """Load the context of a document or create a new empty one (not saved yet)."""
        context = await self.load(url)
        if context is None:
            logger.debug(f"Creating new context for {url}")
            context = DocumentContext(url=url, title=title)
        return context

    async def save(self, context: DocumentContext) -> None:
        """Persist a context and mark its document as most recently used.

        Refreshes last_updated, never moving it backwards.
        """
        context.last_updated = max(self.clock(), context.last_updated)
        await self.store.set(context_key(context.url), context.to_dict())

        recent = await self.recent_documents()
        recent = [context.url] + [document_id for document_id in recent if document_id != context.url]
        dropped = recent[self.max_recent_documents:]
        recent = recent[:self.max_recent_documents]

        await self.store.set(RECENT_DOCUMENTS_KEY, recent)
        if dropped:
            await self.store.remove([context_key(document_id) for document_id in dropped])
            logger.info(f"Evicted {len(dropped)} least recently used contexts: {', '.join(dropped)}")

    async def recent_documents(self) -> List[str]:
        """Document ids, most recently used first."""
        recent = await self.store.get(RECENT_DOCUMENTS_KEY)
        if not isinstance(recent, list):
            return []
        return [document_id for document_id in recent if isinstance(document_id, str)]

    async def reset(self, document_id: str) -> None:
        """Remove a document's context and its MRU entry."""
        await self.store.remove([context_key(document_id)])
        recent = await self.recent_documents()
        if document_id in recent:
            recent.remove(document_id)
            await self.store.set(RECENT_DOCUMENTS_KEY, recent)
        logger.info(f"Reset context for {document_id}")
