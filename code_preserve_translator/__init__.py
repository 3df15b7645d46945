#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Code Preserve Translator
Translates the natural-language parts of HTML documents through an LLM completion
API while leaving code blocks untouched, caches translations by content
fingerprint, and answers questions about the document.
"""

import logging
import os

__version__ = "0.3.0"
__author__ = "Code Preserve Translator Team"

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)

# Components are plain instances wired here; defer imports to keep
# `import code_preserve_translator` cheap for the CLI's --help


def create_store(config):
    """Create the key/value store configured in [context] store_path.

    Args:
        config: Config instance

    Returns:
        JsonFileStore, or MemoryStore when store_path is empty
    """
    from .storage import JsonFileStore, MemoryStore
    path = config.get("context", "store_path")
    if not path:
        return MemoryStore()
    return JsonFileStore(os.path.expanduser(path))


def create_backend(config, session=None):
    from .backend import OpenAICompletionBackend
    return OpenAICompletionBackend(
        api_key=config.get("backend", "api_key"),
        model=config.get("backend", "model"),
        api_endpoint=config.get("backend", "api_endpoint"),
        timeout=config.getint("backend", "timeout"),
        max_retries=config.getint("backend", "max_retries"),
        session=session
    )


def create_cache_manager(config, store, clock=None):
    from .cache_manager import CacheManager
    kwargs = {"clock": clock} if clock is not None else {}
    return CacheManager(
        store,
        short_ttl_minutes=config.getfloat("cache", "short_ttl_minutes"),
        long_ttl_days=config.getfloat("cache", "long_ttl_days"),
        sweep_interval_minutes=config.getfloat("cache", "sweep_interval_minutes"),
        **kwargs
    )


def create_rate_limiter(config, clock=None, sleep=None):
    """Create the limiter pacing backend calls to one per request_interval seconds.

    Returns:
        TokenBucketRateLimiter, or None when the interval is zero
    """
    from .rate_limiter import TokenBucketRateLimiter
    interval = config.getfloat("translation", "request_interval")
    if not interval or interval <= 0:
        return None
    kwargs = {}
    if clock is not None:
        kwargs["clock"] = clock
    if sleep is not None:
        kwargs["sleep"] = sleep
    return TokenBucketRateLimiter.from_interval(interval, **kwargs)


def create_chunker(config):
    from .chunker import TextChunker
    return TextChunker(config.getint("translation", "max_chunk_size"))


def create_classifier(config=None):
    from .classifier import CodeClassifier
    return CodeClassifier()


def create_extractor(config, classifier=None):
    from .extractor import StructuredExtractor
    return StructuredExtractor(
        classifier=classifier or create_classifier(config),
        min_code_length=config.getint("classifier", "min_code_length"),
        treat_uncertain_as_code=config.getboolean("classifier", "treat_uncertain_as_code")
    )


def create_orchestrator(config, backend, cache_manager, rate_limiter=None):
    from .translator import TranslationOrchestrator
    return TranslationOrchestrator(
        backend=backend,
        cache_manager=cache_manager,
        chunker=create_chunker(config),
        rate_limiter=rate_limiter,
        target_language=config.get("translation", "target_language"),
        default_tone=config.tone(),
        temperature=config.getfloat("translation", "temperature"),
        max_chunk_size=config.getint("translation", "max_chunk_size"),
        show_progress=config.getboolean("translation", "show_progress")
    )


def create_context_store(config, store, clock=None):
    from .context_store import ContextStore
    kwargs = {"clock": clock} if clock is not None else {}
    return ContextStore(
        store,
        max_recent_documents=config.getint("context", "max_recent_documents"),
        **kwargs
    )


def create_qa_responder(config, backend):
    from .qa import QAResponder
    return QAResponder(
        backend,
        answer_language=config.get("translation", "target_language"),
        default_tone=config.tone(),
        temperature=config.getfloat("qa", "temperature")
    )


def create_pipeline(config, store=None, backend=None, clock=None, sleep=None):
    """Build every engine component once and wire them into a DocumentPipeline.

    Args:
        config: Config instance
        store: Key/value store (default: create_store(config))
        backend: Completion backend (default: create_backend(config))
        clock: Wall clock for cache and context timestamps (optional)
        sleep: Coroutine function used by the rate limiter (optional)

    Returns:
        DocumentPipeline instance
    """
    from .pipeline import DocumentPipeline
    store = store if store is not None else create_store(config)
    backend = backend if backend is not None else create_backend(config)
    cache_manager = create_cache_manager(config, store, clock)
    rate_limiter = create_rate_limiter(config, clock, sleep)
    return DocumentPipeline(
        extractor=create_extractor(config),
        orchestrator=create_orchestrator(config, backend, cache_manager, rate_limiter),
        qa_responder=create_qa_responder(config, backend),
        context_store=create_context_store(config, store, clock),
        cache_manager=cache_manager
    )
