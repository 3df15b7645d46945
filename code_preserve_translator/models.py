#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Data model for the Code Preserve Translator.
Segments, code units, cache entries, chat messages and the per-document context,
each serializable to a JSON-compatible dict for storage.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional


class SegmentKind(str, Enum):
    """Structural type of a content segment."""
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    CODE = "code"
    IMAGE = "image"


@dataclass(frozen=True)
class ContentSegment:
    """One structurally typed unit of document content.

    The position of a segment in its sequence is the join key between an
    original sequence and its translated counterpart.
    """
    kind: SegmentKind
    text: str
    tag: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    language: Optional[str] = None

    @property
    def is_code(self) -> bool:
        return self.kind == SegmentKind.CODE

    def with_text(self, text: str) -> "ContentSegment":
        """Return a copy of this segment carrying different text."""
        return replace(self, text=text, attributes=dict(self.attributes))

    def to_dict(self) -> dict:
        data = {"kind": self.kind.value, "text": self.text}
        if self.tag is not None:
            data["tag"] = self.tag
        if self.attributes:
            data["attributes"] = dict(self.attributes)
        if self.language is not None:
            data["language"] = self.language
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ContentSegment":
        return cls(
            kind=SegmentKind(data["kind"]),
            text=data.get("text", ""),
            tag=data.get("tag"),
            attributes=dict(data.get("attributes") or {}),
            language=data.get("language"),
        )


@dataclass(frozen=True)
class Anchor:
    """Positional back-reference into a source tree.

    Holds a container path and an offset rather than a node, so it goes stale
    (instead of dangling) once the tree is rebuilt.
    """
    container_path: str
    index_in_container: int

    def to_dict(self) -> dict:
        return {"container_path": self.container_path,
                "index_in_container": self.index_in_container}

    @classmethod
    def from_dict(cls, data: dict) -> "Anchor":
        return cls(data["container_path"], int(data["index_in_container"]))


@dataclass(frozen=True)
class CodeUnit:
    """A detected block of code and where it sits in the source tree."""
    id: str
    text: str
    anchor: Anchor
    language: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "language": self.language,
            "anchor": self.anchor.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CodeUnit":
        return cls(
            id=data["id"],
            text=data.get("text", ""),
            anchor=Anchor.from_dict(data["anchor"]),
            language=data.get("language"),
        )


@dataclass(frozen=True)
class TranslationCacheEntry:
    """Cached translation addressed by the fingerprint of its source text."""
    fingerprint: str
    source_text: str
    translated_text: str
    created_at: float

    def to_dict(self) -> dict:
        return {
            "fingerprint": self.fingerprint,
            "source_text": self.source_text,
            "translated_text": self.translated_text,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TranslationCacheEntry":
        return cls(
            fingerprint=data["fingerprint"],
            source_text=data["source_text"],
            translated_text=data["translated_text"],
            created_at=float(data["created_at"]),
        )


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    role: ChatRole
    content: str
    timestamp: float

    def to_dict(self) -> dict:
        return {"role": self.role.value, "content": self.content,
                "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict) -> "ChatMessage":
        return cls(ChatRole(data["role"]), data.get("content", ""),
                   float(data.get("timestamp", 0.0)))


@dataclass
class DocumentContext:
    """Everything known about one document, keyed by its URL.

    Created on first visit, updated in place on re-extraction and after each
    translation or question round.
    """
    url: str
    title: str = ""
    raw_text: str = ""
    html_content: Optional[str] = None
    segments: Optional[List[ContentSegment]] = None
    translated_segments: Optional[List[ContentSegment]] = None
    code_units: List[CodeUnit] = field(default_factory=list)
    translations: Dict[str, TranslationCacheEntry] = field(default_factory=dict)
    chat_history: List[ChatMessage] = field(default_factory=list)
    last_updated: float = 0.0

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "title": self.title,
            "raw_text": self.raw_text,
            "html_content": self.html_content,
            "segments": _dump_segments(self.segments),
            "translated_segments": _dump_segments(self.translated_segments),
            "code_units": [unit.to_dict() for unit in self.code_units],
            "translations": {source: entry.to_dict()
                             for source, entry in self.translations.items()},
            "chat_history": [message.to_dict() for message in self.chat_history],
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DocumentContext":
        return cls(
            url=data["url"],
            title=data.get("title", ""),
            raw_text=data.get("raw_text", ""),
            html_content=data.get("html_content"),
            segments=_load_segments(data.get("segments")),
            translated_segments=_load_segments(data.get("translated_segments")),
            code_units=[CodeUnit.from_dict(unit) for unit in data.get("code_units", [])],
            translations={source: TranslationCacheEntry.from_dict(entry)
                          for source, entry in (data.get("translations") or {}).items()},
            chat_history=[ChatMessage.from_dict(message)
                          for message in data.get("chat_history", [])],
            last_updated=float(data.get("last_updated", 0.0)),
        )


def _dump_segments(segments):
    if segments is None:
        return None
    return [segment.to_dict() for segment in segments]


def _load_segments(data):
    if data is None:
        return None
    return [ContentSegment.from_dict(item) for item in data]
