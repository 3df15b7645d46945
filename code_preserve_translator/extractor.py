#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Structured content extraction for the Code Preserve Translator.
Walks a snapshot of an HTML document and produces an ordered sequence of typed
segments (headings, paragraphs, lists, code, images), locates code blocks in
the live tree, and rebuilds HTML from a segment sequence.
"""

import re
import logging
from typing import List, Optional

from bs4 import BeautifulSoup, NavigableString, Comment, Tag

from .classifier import CodeClassifier, language_from_class_names
from .html_tree import (HtmlNode, NON_CONTENT_TAGS, element_children, is_chrome,
                        parse_html, sanitize_attributes, sanitize_tree, snapshot,
                        strip_chrome)
from .models import Anchor, CodeUnit, ContentSegment, SegmentKind

logger = logging.getLogger("code_preserve_translator.extractor")

HEADING_TAGS = ['h1', 'h2', 'h3', 'h4', 'h5', 'h6']
LIST_TAGS = ['ul', 'ol']
PARAGRAPH_LEAF_TAGS = ['blockquote', 'figcaption', 'dt', 'dd', 'td', 'th', 'caption']
GENERIC_CONTAINER_TAGS = ['div', 'section', 'article', 'main']
BLOCK_TAGS = set(HEADING_TAGS + LIST_TAGS + PARAGRAPH_LEAF_TAGS + GENERIC_CONTAINER_TAGS +
                 ['p', 'pre', 'table', 'figure', 'dl', 'li', 'tr', 'tbody', 'thead',
                  'header', 'footer', 'nav', 'aside', 'form', 'hr'])
# Candidates for classifier-detected code outside code containers
CODE_CANDIDATE_TAGS = ['p', 'div', 'section', 'article']

CODE_CLASSES = {'highlight', 'code', 'codeBlock', 'code-block', 'hljs', 'CodeMirror',
                'prism-code', 'sourceCode'}

CONTENT_ROOT_SELECTORS = ['article', 'main', '[role="main"]', '.content', '#content',
                          '.post-content', '.entry-content', '.article-content',
                          '.docs-content', '.markdown-content', '.markdown-body',
                          '.documentation', '.doc-content', '.page-content',
                          '.main-content']

REBUILD_TAGS = set(HEADING_TAGS + LIST_TAGS + PARAGRAPH_LEAF_TAGS + GENERIC_CONTAINER_TAGS +
                   ['p', 'pre', 'code', 'img', 'span'])

WHITESPACE = re.compile(r'\s+')


def collapse_whitespace(text: str) -> str:
    return WHITESPACE.sub(' ', text or '').strip()


def is_code_container(element) -> bool:
    """Check whether an element is an explicit code container.

    pre, standalone code (not inside pre), elements with a highlighter class,
    and elements already marked with data-code-block="true".
    """
    if not isinstance(element, Tag):
        return False
    if element.name == 'pre':
        return True
    if element.name == 'code' and element.find_parent('pre') is None:
        return True
    if element.get('data-code-block') == 'true':
        return True
    for class_name in element.get('class') or []:
        if class_name in CODE_CLASSES or class_name.startswith(('language-', 'lang-')):
            return True
    return False


class StructuredExtractor:
    """Extract typed content segments and code units from HTML documents."""

    def __init__(self, classifier: CodeClassifier = None, min_code_length: int = 50,
                 treat_uncertain_as_code: bool = False):
        """Initialize the extractor.

        Args:
            classifier: Code classifier (a default one is created if None)
            min_code_length: Minimum text length for classifier-detected code
            treat_uncertain_as_code: Policy for UNCERTAIN classifier verdicts
        """
        self.classifier = classifier or CodeClassifier()
        self.min_code_length = min_code_length
        self.treat_uncertain_as_code = treat_uncertain_as_code

    def select_content_root(self, document):
        """Pick the main content container of a document, falling back to body."""
        for selector in CONTENT_ROOT_SELECTORS:
            element = document.select_one(selector)
            if element is not None and element.get_text(strip=True):
                logger.debug(f"Content root selected by '{selector}'")
                return element
        return document.body or document

    def prepare_snapshot(self, root):
        """Snapshot a tree and strip page chrome and non-content elements from the copy."""
        copied = snapshot(root)
        strip_chrome(copied)
        return copied

    def extract(self, root) -> List[ContentSegment]:
        """Extract the ordered segment sequence of a tree.

        The caller's tree is never modified; extraction runs on a stripped snapshot.

        Args:
            root: BeautifulSoup document or element

        Returns:
            List of ContentSegment in reading order
        """
        prepared = self.prepare_snapshot(root)
        segments: List[ContentSegment] = []
        if isinstance(prepared, Tag) and not isinstance(prepared, BeautifulSoup):
            self._visit(prepared, segments)
        else:
            self._walk(prepared, segments)
        logger.debug(f"Extracted {len(segments)} segments")
        return segments

    def extract_text(self, root) -> str:
        """Plain text of a tree, one content block per line."""
        return self.join_text(self.extract(root))

    @staticmethod
    def join_text(segments: List[ContentSegment]) -> str:
        return "\n".join(segment.text for segment in segments if segment.text.strip())

    def sanitized_html(self, root) -> str:
        """HTML of the stripped snapshot with every attribute sanitized."""
        prepared = self.prepare_snapshot(root)
        sanitize_tree(prepared)
        return str(prepared)

    def _walk(self, element, segments):
        for child in element_children(element):
            self._visit(child, segments)

    def _visit(self, element, segments):
        name = element.name

        if name in NON_CONTENT_TAGS:
            return

        if is_code_container(element):
            segments.append(self._code_segment(element, element.get_text()))
            return

        if name in HEADING_TAGS:
            text = collapse_whitespace(element.get_text())
            if text:
                segments.append(ContentSegment(SegmentKind.HEADING, text, name,
                                               sanitize_attributes(element.attrs)))
            self._append_images(element, segments)
            return

        if name == 'p':
            self._append_paragraph(element, segments)
            return

        if name in LIST_TAGS:
            items = [collapse_whitespace(item.get_text())
                     for item in element.find_all('li', recursive=False)]
            text = "\n".join(item for item in items if item)
            if text:
                segments.append(ContentSegment(SegmentKind.LIST, text, name,
                                               sanitize_attributes(element.attrs)))
            self._append_images(element, segments)
            return

        if name == 'img':
            segments.append(self._image_segment(element))
            return

        if name in PARAGRAPH_LEAF_TAGS and not self._has_block_children(element):
            self._append_paragraph(element, segments)
            return

        if name in GENERIC_CONTAINER_TAGS:
            direct_text = collapse_whitespace(" ".join(
                str(node) for node in element.children
                if isinstance(node, NavigableString) and not isinstance(node, Comment)))
            if direct_text:
                segments.append(ContentSegment(SegmentKind.PARAGRAPH, direct_text, name,
                                               sanitize_attributes(element.attrs)))

        self._walk(element, segments)

    def _append_paragraph(self, element, segments):
        raw_text = element.get_text()
        if self._looks_like_code(raw_text):
            segments.append(self._code_segment(element, raw_text))
            return
        text = collapse_whitespace(raw_text)
        if text:
            segments.append(ContentSegment(SegmentKind.PARAGRAPH, text, element.name,
                                           sanitize_attributes(element.attrs)))
        self._append_images(element, segments)

    def _append_images(self, element, segments):
        for image in element.find_all('img'):
            segments.append(self._image_segment(image))

    @staticmethod
    def _image_segment(element):
        return ContentSegment(SegmentKind.IMAGE, element.get('alt') or '', 'img',
                              sanitize_attributes(element.attrs))

    def _looks_like_code(self, text: str) -> bool:
        if len(text.strip()) < self.min_code_length:
            return False
        return self.classifier.classify_as_code(text, self.treat_uncertain_as_code)

    def _code_segment(self, element, text):
        return ContentSegment(SegmentKind.CODE, text, element.name,
                              sanitize_attributes(element.attrs),
                              self._code_language(element, text))

    def _code_language(self, element, text) -> Optional[str]:
        """Language from highlighter class names on the element, its parent or inner code."""
        candidates = [element]
        if isinstance(element.parent, Tag):
            candidates.append(element.parent)
        candidates.extend(element.find_all('code', limit=1))
        for candidate in candidates:
            language = language_from_class_names(candidate.get('class') or [])
            if language:
                return language
        return self.classifier.detect_language(text)

    @staticmethod
    def _has_block_children(element) -> bool:
        return any(child.name in BLOCK_TAGS for child in element.find_all(True))

    def collect_code_units(self, root) -> List[CodeUnit]:
        """Locate code blocks in a tree and anchor them by container path.

        Paths are computed on the tree as given so they can be resolved against
        the same live tree later. Elements inside page chrome are ignored.

        Args:
            root: BeautifulSoup document or element

        Returns:
            List of CodeUnit in document order
        """
        units: List[CodeUnit] = []
        self._collect(HtmlNode(root), units)
        logger.info(f"Found {len(units)} code blocks")
        return units

    def _collect(self, container: HtmlNode, units):
        for index, node in enumerate(container.children):
            element = node.element
            if element.name in NON_CONTENT_TAGS or is_chrome(element):
                continue

            if is_code_container(element):
                self._add_unit(units, container, index, element, element.get_text())
                continue

            if (element.name in CODE_CANDIDATE_TAGS
                    and element.find(is_code_container) is None
                    and not self._has_block_children(element)
                    and self._looks_like_code(element.get_text())):
                self._add_unit(units, container, index, element, element.get_text())
                continue

            self._collect(node, units)

    def _add_unit(self, units, container, index, element, text):
        unit_id = f"code-block-{len(units)}"
        units.append(CodeUnit(id=unit_id, text=text,
                              anchor=Anchor(container.path, index),
                              language=self._code_language(element, text)))

    def mark_code_units(self, root, units: List[CodeUnit]) -> int:
        """Tag each code unit's element in the tree with data-code-block attributes.

        Units whose anchor no longer resolves to the same code are skipped.

        Args:
            root: The tree the units were collected from
            units: Code units to mark

        Returns:
            Number of elements marked
        """
        marked = 0
        for unit in units:
            container = HtmlNode.resolve(root, unit.anchor.container_path)
            children = container.children if container is not None else []
            if unit.anchor.index_in_container >= len(children):
                logger.warning(f"Anchor of {unit.id} no longer resolves, skipping")
                continue
            element = children[unit.anchor.index_in_container].element
            if element.get_text() != unit.text:
                logger.warning(f"Anchor of {unit.id} points at different content, skipping")
                continue
            element['data-code-block'] = 'true'
            element['data-code-block-id'] = unit.id
            element['data-code-language'] = unit.language or 'unknown'
            marked += 1
        return marked

    def rebuild(self, segments: List[ContentSegment]) -> BeautifulSoup:
        """Rebuild an HTML tree from a segment sequence, preserving order and tags."""
        document = parse_html("")
        for segment in segments:
            element = self._segment_element(document, segment)
            if element is not None:
                document.append(element)
        return document

    def _segment_element(self, document, segment: ContentSegment):
        attributes = sanitize_attributes(segment.attributes)
        tag = segment.tag if segment.tag in REBUILD_TAGS else None

        if segment.kind == SegmentKind.HEADING:
            element = document.new_tag(tag if tag in HEADING_TAGS else 'h3', attrs=attributes)
            element.string = segment.text
        elif segment.kind == SegmentKind.LIST:
            element = document.new_tag(tag if tag in LIST_TAGS else 'ul', attrs=attributes)
            for line in segment.text.split("\n"):
                if line.strip():
                    item = document.new_tag('li')
                    item.string = line
                    element.append(item)
        elif segment.kind == SegmentKind.CODE:
            if tag in (None, 'pre'):
                element = document.new_tag('pre', attrs=attributes)
                code = document.new_tag('code')
                if segment.language:
                    code['class'] = f"language-{segment.language}"
                code.string = segment.text
                element.append(code)
            else:
                element = document.new_tag(tag, attrs=attributes)
                element.string = segment.text
        elif segment.kind == SegmentKind.IMAGE:
            attributes['alt'] = segment.text
            element = document.new_tag('img', attrs=attributes)
        else:
            element = document.new_tag(tag or 'p', attrs=attributes)
            element.string = segment.text
        return element
