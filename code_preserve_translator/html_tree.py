#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Document tree helpers for the Code Preserve Translator.
Wraps BeautifulSoup elements behind a small node interface with stable paths,
and provides snapshotting, chrome stripping and attribute sanitization.
"""

import copy
import re
import logging
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Comment, Tag

logger = logging.getLogger("code_preserve_translator.html_tree")

# Elements that never carry document content
NON_CONTENT_TAGS = ['script', 'style', 'noscript', 'iframe', 'template', 'svg',
                    'canvas', 'video', 'audio', 'object', 'embed']

# Page chrome around the actual document
CHROME_TAGS = ['header', 'footer', 'nav', 'aside']
CHROME_CLASSES = ['sidebar', 'navigation', 'menu', 'comments', 'ads', 'advertisement']
CHROME_SELECTORS = ['.' + name for name in CHROME_CLASSES]

# Attributes that link to or load external resources
RESOURCE_ATTRIBUTES = {'href', 'src', 'srcset', 'action', 'formaction', 'xlink:href',
                       'ping', 'poster', 'background', 'data', 'codebase', 'style'}

VALID_ATTRIBUTE_NAME = re.compile(r'^[A-Za-z_][-A-Za-z0-9_:.]*$')
JAVASCRIPT_URL = re.compile(r'j\s*a\s*v\s*a\s*s\s*c\s*r\s*i\s*p\s*t\s*:', re.IGNORECASE)
PATH_STEP = re.compile(r'^([A-Za-z][-A-Za-z0-9_:]*)\[(\d+)\]$')


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string with the built-in parser."""
    return BeautifulSoup(html or "", 'html.parser')


def element_children(element) -> List[Tag]:
    """Element (non-text) children of an element, in document order."""
    return [child for child in element.children if isinstance(child, Tag)]


def snapshot(element):
    """Deep copy of an element or whole document, detached from the original tree."""
    return copy.copy(element)


def strip_chrome(root) -> int:
    """Remove non-content elements, page chrome and comments from a tree in place.

    Args:
        root: BeautifulSoup document or element, normally a snapshot

    Returns:
        Number of elements removed
    """
    removed = 0
    for element in root.find_all(NON_CONTENT_TAGS + CHROME_TAGS):
        if element.decomposed:
            continue
        element.decompose()
        removed += 1

    for selector in CHROME_SELECTORS:
        for element in root.select(selector):
            if element.decomposed:
                continue
            element.decompose()
            removed += 1

    for comment in root.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    logger.debug(f"Stripped {removed} chrome and non-content elements")
    return removed


def is_chrome(element) -> bool:
    """Check whether an element is page chrome, by tag or by chrome class."""
    if element.name in CHROME_TAGS:
        return True
    return any(name in CHROME_CLASSES for name in element.get('class') or [])


def attribute_value(value) -> str:
    """Flatten a BeautifulSoup attribute value; list values (class, rel) join with spaces."""
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value)
    return "" if value is None else str(value)


def sanitize_attributes(attributes) -> Dict[str, str]:
    """Keep only attributes that are safe to carry into a rebuilt tree.

    Drops event handlers, javascript: values, resource-loading attributes and
    attributes with invalid names.

    Args:
        attributes: Mapping of attribute name to value (string or list)

    Returns:
        New dict of attribute name to string value
    """
    safe = {}
    for name, value in (attributes or {}).items():
        if not isinstance(name, str) or not VALID_ATTRIBUTE_NAME.match(name):
            continue
        lowered = name.lower()
        if lowered.startswith('on') or lowered in RESOURCE_ATTRIBUTES:
            continue
        text = attribute_value(value)
        if JAVASCRIPT_URL.search(text):
            continue
        safe[name] = text
    return safe


def sanitize_tree(root) -> None:
    """Replace the attributes of every element in a tree with their sanitized form."""
    elements = root.find_all(True)
    if isinstance(root, Tag) and not isinstance(root, BeautifulSoup):
        elements.insert(0, root)
    for element in elements:
        element.attrs = sanitize_attributes(element.attrs)


class HtmlNode:
    """Read-only view of an element with a path relative to the traversal root.

    Paths look like 'body[1]/div[0]/pre[2]' where each index counts element
    children of the parent; the root itself has the empty path.
    """

    def __init__(self, element, path: str = ""):
        self.element = element
        self.path = path

    @property
    def tag(self) -> Optional[str]:
        return self.element.name

    @property
    def text(self) -> str:
        return self.element.get_text()

    @property
    def attributes(self) -> Dict[str, str]:
        return {name: attribute_value(value) for name, value in self.element.attrs.items()}

    @property
    def children(self) -> List["HtmlNode"]:
        nodes = []
        for index, child in enumerate(element_children(self.element)):
            step = f"{child.name}[{index}]"
            nodes.append(HtmlNode(child, f"{self.path}/{step}" if self.path else step))
        return nodes

    @staticmethod
    def resolve(root, path: str) -> Optional["HtmlNode"]:
        """Re-locate a node by path, or None when the tree no longer matches it."""
        node = root if isinstance(root, HtmlNode) else HtmlNode(root)
        if not path:
            return node

        for step in path.split("/"):
            match = PATH_STEP.match(step)
            if not match:
                logger.debug(f"Malformed path step '{step}' in '{path}'")
                return None
            name, index = match.group(1), int(match.group(2))
            children = node.children
            if index >= len(children) or children[index].tag != name:
                return None
            node = children[index]
        return node

    def __repr__(self):
        return f"HtmlNode({self.tag!r}, path={self.path!r})"
