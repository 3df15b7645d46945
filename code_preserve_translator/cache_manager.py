#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Translation cache for the Code Preserve Translator.
Caches translations by content fingerprint with a short freshness window and a
long retention window enforced by periodic sweeps.
"""

import time
import logging
from typing import Callable, Optional

from .fingerprint import cache_key, fingerprint
from .models import TranslationCacheEntry
from .storage import KeyValueStore

logger = logging.getLogger("code_preserve_translator.cache_manager")

CACHE_KEY_PREFIX = "cache_"


class CacheManager:
    """Fingerprint-addressed translation cache on top of a key/value store."""

    def __init__(self, store: KeyValueStore, short_ttl_minutes: float = 5,
                 long_ttl_days: float = 7, sweep_interval_minutes: float = 60,
                 clock: Callable[[], float] = time.time):
        """Initialize the cache manager.

        Args:
            store: Key/value store holding the entries
            short_ttl_minutes: Age after which an entry is no longer served
            long_ttl_days: Age after which a sweep deletes an entry
            sweep_interval_minutes: Minimum time between sweeps triggered by put
            clock: Returns the current time in seconds
        """
        self.store = store
        self.short_ttl = short_ttl_minutes * 60
        self.long_ttl = long_ttl_days * 24 * 60 * 60
        self.sweep_interval = sweep_interval_minutes * 60
        self.clock = clock
        self._last_sweep: Optional[float] = None

    async def get(self, source_text: str) -> Optional[TranslationCacheEntry]:
        """Get a fresh cache entry for a text.

        Args:
            source_text: Original text

        Returns:
            TranslationCacheEntry, or None if missing, malformed or older than the short TTL
        """
        if not source_text:
            return None

        data = await self.store.get(cache_key(source_text))
        if data is None:
            return None

        try:
            entry = TranslationCacheEntry.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed cache entry {cache_key(source_text)}: {e}")
            return None

        if self.clock() - entry.created_at > self.short_ttl:
            logger.debug(f"Cache entry {entry.fingerprint} expired")
            return None
        return entry

    async def put(self, source_text: str, translated_text: str) -> Optional[TranslationCacheEntry]:
        """Store a translation, overwriting any entry with the same fingerprint.

        Args:
            source_text: Original text
            translated_text: Its translation

        Returns:
            The stored TranslationCacheEntry, or None for empty source text
        """
        if not source_text:
            return None

        entry = TranslationCacheEntry(
            fingerprint=fingerprint(source_text),
            source_text=source_text,
            translated_text=translated_text,
            created_at=self.clock(),
        )
        await self.store.set(CACHE_KEY_PREFIX + entry.fingerprint, entry.to_dict())

        now = self.clock()
        if self._last_sweep is None or now - self._last_sweep >= self.sweep_interval:
            await self.evict()
        return entry

    async def evict(self) -> int:
        """Delete cache entries older than the long retention TTL.

        Returns:
            Number of entries removed
        """
        now = self.clock()
        self._last_sweep = now

        expired = []
        for key, value in (await self.store.get_all()).items():
            if not key.startswith(CACHE_KEY_PREFIX):
                continue
            try:
                created_at = float(value["created_at"])
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Removing malformed cache entry {key}")
                expired.append(key)
                continue
            if now - created_at > self.long_ttl:
                expired.append(key)

        if expired:
            await self.store.remove(expired)
            logger.info(f"Evicted {len(expired)} expired cache entries")
        return len(expired)
