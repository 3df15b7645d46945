#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Exception types for the Code Preserve Translator.
Classification and chunking problems are recovered locally and never raised;
only backend and missing-context failures reach the caller.
"""


class TranslatorError(Exception):
    """Base class for all translator errors."""


class BackendCallFailed(TranslatorError):
    """The completion backend rejected or failed a request.

    The message is already stripped of operator-specific boilerplate and is
    safe to show to the end user.
    """

    def __init__(self, message, status=None):
        super().__init__(message)
        self.message = message
        self.status = status


class SegmentTranslationFailed(BackendCallFailed):
    """A backend failure while translating one segment of a batch.

    Attributes:
        index: Index of the segment that failed
        partial_segments: Segments translated before the failure, in order
    """

    def __init__(self, message, index, partial_segments, status=None):
        super().__init__(message, status=status)
        self.index = index
        self.partial_segments = list(partial_segments)


class ContextNotFound(TranslatorError):
    """No stored context exists for the requested document."""

    def __init__(self, document_id):
        super().__init__(f"No context stored for document: {document_id}")
        self.document_id = document_id


class TranslationStopped(TranslatorError):
    """Translation was stopped or reset before it finished."""

    def __init__(self, document_id=None):
        message = "Translation stopped"
        if document_id:
            message = f"Translation stopped for document: {document_id}"
        super().__init__(message)
        self.document_id = document_id
