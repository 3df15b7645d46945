#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Key/value storage for the Code Preserve Translator.
Holds translation cache entries and document contexts as JSON-compatible values.
"""

import os
import copy
import json
import logging
import tempfile
from typing import Dict, Iterable, Optional

logger = logging.getLogger("code_preserve_translator.storage")


class KeyValueStore:
    """Asynchronous key/value store contract.

    Values are JSON-compatible; get_all returns a snapshot of every entry.
    """

    async def get(self, key: str):
        raise NotImplementedError

    async def set(self, key: str, value) -> None:
        raise NotImplementedError

    async def remove(self, keys: Iterable[str]) -> None:
        raise NotImplementedError

    async def get_all(self) -> Dict[str, object]:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """In-process store; values are deep-copied in and out so callers never share state."""

    def __init__(self, initial: Optional[Dict[str, object]] = None):
        self._data = copy.deepcopy(initial) if initial else {}

    async def get(self, key):
        value = self._data.get(key)
        return copy.deepcopy(value)

    async def set(self, key, value):
        self._data[key] = copy.deepcopy(value)

    async def remove(self, keys):
        if isinstance(keys, str):
            keys = [keys]
        for key in keys:
            self._data.pop(key, None)

    async def get_all(self):
        return copy.deepcopy(self._data)

    def __len__(self):
        return len(self._data)


class JsonFileStore(MemoryStore):
    """Store persisted as a single JSON file, rewritten atomically on every change."""

    def __init__(self, path):
        """Initialize the store and load any existing file.

        Args:
            path: Path of the JSON file (parent directories are created on write)
        """
        super().__init__()
        self.path = path
        self._load()

    def _load(self):
        if not os.path.exists(self.path):
            logger.debug(f"No store file at {self.path}, starting empty")
            return

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading store file {self.path}: {e}")
            return

        if not isinstance(data, dict):
            logger.error(f"Store file {self.path} does not contain a JSON object, ignoring it")
            return

        self._data = data
        logger.debug(f"Loaded {len(data)} entries from {self.path}")

    def _write(self, data):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".store-", suffix=".json")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, self.path)
        except (OSError, TypeError, ValueError):
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

    async def set(self, key, value):
        data = dict(self._data)
        data[key] = copy.deepcopy(value)
        self._write(data)
        self._data = data

    async def remove(self, keys):
        removed = {keys} if isinstance(keys, str) else set(keys)
        data = {key: value for key, value in self._data.items() if key not in removed}
        self._write(data)
        self._data = data
