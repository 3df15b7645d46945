#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Code Preserve Translator command line interface.
Ingests HTML pages, translates their prose while keeping code intact,
and answers questions about them.
"""

import argparse
import asyncio
import os
import sys
import logging
from datetime import datetime

from . import create_pipeline
from .config import Config, TONES
from .exceptions import TranslatorError


def setup_logging(log_level):
    """Set up logging configuration"""
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler("code_preserve_translator.log"),
            logging.StreamHandler()
        ],
        force=True
    )
    return logging.getLogger("code_preserve_translator")


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Translate HTML pages with an LLM while preserving code blocks")

    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
        default="config.ini"
    )

    parser.add_argument(
        "-k", "--api-key",
        help="API key (overrides config file)",
        default=None
    )

    parser.add_argument(
        "--log-level",
        help="Logging level (default: info)",
        choices=["debug", "info", "warning", "error", "critical"],
        default="info"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Extract an HTML file and store it as a document")
    ingest.add_argument("input_file", help="Path to the HTML file")
    ingest.add_argument("--url", required=True, help="Document URL used as its id")
    ingest.add_argument("--title", default=None, help="Document title (default: HTML title)")

    translate = subparsers.add_parser("translate", help="Translate a stored document")
    translate.add_argument("url", help="Document URL")
    translate.add_argument("--tone", choices=TONES, default=None,
                           help="Translation tone (default: from config)")
    translate.add_argument("-o", "--output", default=None,
                           help="Write the translated HTML to this file instead of stdout")

    ask = subparsers.add_parser("ask", help="Ask a question about a stored document")
    ask.add_argument("url", help="Document URL")
    ask.add_argument("question", help="Question to answer")
    ask.add_argument("--tone", choices=TONES, default=None,
                     help="Answer tone (default: from config)")

    history = subparsers.add_parser("history", help="Show the question history of a document")
    history.add_argument("url", help="Document URL")

    subparsers.add_parser("recent", help="List recently used documents")

    reset = subparsers.add_parser("reset", help="Discard the stored context of a document")
    reset.add_argument("url", help="Document URL")

    subparsers.add_parser("evict", help="Delete translation cache entries past retention")

    return parser.parse_args(argv)


async def run_command(args, config, logger):
    """Run one CLI command against a freshly built pipeline."""
    pipeline = create_pipeline(config)
    try:
        if args.command == "ingest":
            with open(args.input_file, 'r', encoding='utf-8') as f:
                html = f.read()
            context = await pipeline.ingest(args.url, html, args.title)
            print(f"Ingested {context.url}: {len(context.segments or [])} segments, "
                  f"{len(context.code_units)} code blocks")

        elif args.command == "translate":
            await pipeline.translate(args.url, args.tone)
            html = await pipeline.render_translation(args.url)
            if args.output:
                with open(args.output, 'w', encoding='utf-8') as f:
                    f.write(html)
                logger.info(f"Translated document written to {args.output}")
            else:
                print(html)

        elif args.command == "ask":
            print(await pipeline.ask(args.url, args.question, args.tone))

        elif args.command == "history":
            for message in await pipeline.history(args.url):
                stamp = datetime.fromtimestamp(message.timestamp).strftime("%Y-%m-%d %H:%M:%S")
                print(f"[{stamp}] {message.role.value}: {message.content}")

        elif args.command == "recent":
            for url in await pipeline.recent_documents():
                print(url)

        elif args.command == "reset":
            await pipeline.reset(args.url)
            print(f"Reset {args.url}")

        elif args.command == "evict":
            removed = await pipeline.evict_cache()
            print(f"Removed {removed} expired cache entries")
    finally:
        await pipeline.close()


def main(argv=None):
    """Main function"""
    args = parse_arguments(argv)
    logger = setup_logging(args.log_level)

    if args.command == "ingest" and not os.path.exists(args.input_file):
        logger.error(f"Input file does not exist: {args.input_file}")
        sys.exit(1)

    try:
        config = Config(args.config)
        if args.api_key:
            config.set('backend', 'api_key', args.api_key)

        asyncio.run(run_command(args, config, logger))

    except TranslatorError as e:
        logger.error(str(e))
        sys.exit(1)
    except (OSError, ValueError) as e:
        logger.error(f"Error: {str(e)}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
