#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Code classifier for the Code Preserve Translator.
Decides whether a block of text is source code, and which language it is written in,
using per-language regular-expression signatures and a structural heuristic.

The classifier is best effort. It never raises; anything it cannot decide is
reported as UNCERTAIN and callers choose how to treat that.
"""

import logging
import re
from collections import namedtuple
from enum import Enum
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger("code_preserve_translator.classifier")


class Verdict(str, Enum):
    CODE = "code"
    NOT_CODE = "not_code"
    UNCERTAIN = "uncertain"


class ClassificationResult(namedtuple("ClassificationResult", ["verdict", "language"])):
    """Tagged result of a classification: CODE(language), NOT_CODE or UNCERTAIN."""
    __slots__ = ()

    @property
    def is_code(self):
        return self.verdict == Verdict.CODE


NOT_CODE = ClassificationResult(Verdict.NOT_CODE, None)


def _compile(patterns):
    return [re.compile(pattern, re.MULTILINE) for pattern in patterns]


# Declaration signatures are line-anchored; a single match marks the text as code.
# Hints only count toward the language score and toward UNCERTAIN.
LANGUAGE_SIGNATURES = {
    "javascript": {
        "declarations": [
            r"^\s*(?:const|let|var)\s+[\w$]+\s*=",
            r"^\s*(?:async\s+)?function\s*\*?\s*[\w$]*\s*\(",
            r"^\s*(?:import\s+.+\s+from\s+['\"]|export\s+(?:default|const|function|class)\b)",
        ],
        "hints": [
            r"\b(?:document|window|console)\.\w+\(",
            r"\b(?:setTimeout|setInterval|Promise\.\w+|await\s+\w+\()",
            r"\)\s*=>\s*[{(]?",
        ],
    },
    "typescript": {
        "declarations": [
            r"^\s*(?:export\s+)?(?:interface|type|enum)\s+\w+\s*(?:=|\{|<)",
        ],
        "hints": [
            r"\w\s*:\s*(?:string|number|boolean|any|void|never|unknown)\b",
            r"<[A-Z]\w*>",
        ],
    },
    "python": {
        "declarations": [
            r"^\s*(?:async\s+)?def\s+\w+\s*\(.*\)\s*(?:->\s*[\w\[\], .]+)?:\s*$",
            r"^\s*class\s+\w+(?:\(.*\))?:\s*$",
            r"^\s*(?:from\s+[\w.]+\s+import\s+[\w*]+|import\s+[\w.]+(?:\s+as\s+\w+)?\s*$)",
            r"^if __name__ == ['\"]__main__['\"]:",
        ],
        "hints": [
            r"\bself\.\w+",
            r"(?:==|=|\bis|\breturn)\s+(?:None|True|False)\b",
            r"^\s+(?:return|yield|raise|pass)\b",
            r"^\s*(?:elif|except|with)\b.*:\s*$",
            r"\bprint\(",
        ],
    },
    "java": {
        "declarations": [
            r"^\s*(?:public|private|protected)\s+(?:static\s+)?(?:final\s+)?(?:abstract\s+)?(?:class|interface|enum)\s+\w+",
            r"^\s*package\s+[\w.]+;\s*$",
            r"^\s*import\s+(?:static\s+)?[\w.]+(?:\.\*)?;\s*$",
        ],
        "hints": [
            r"\b(?:extends|implements)\s+[A-Z]\w*",
            r"@Override\b",
            r"System\.out\.println\(",
        ],
    },
    "csharp": {
        "declarations": [
            r"^\s*using\s+[\w.]+;\s*$",
            r"^\s*namespace\s+[\w.]+\s*(?:\{|;)?\s*$",
            r"^\s*(?:public|private|protected|internal)\s+(?:static\s+)?(?:partial\s+)?(?:class|interface|enum|struct)\s+\w+",
        ],
        "hints": [
            r"Console\.WriteLine\(",
            r"\bvar\s+\w+\s*=\s*new\b",
            r"\{\s*get;\s*(?:private\s+)?set;\s*\}",
        ],
    },
    "cpp": {
        "declarations": [
            r"^\s*#include\s*[<\"]",
            r"^\s*(?:int|void)\s+main\s*\(",
            r"^\s*template\s*<",
        ],
        "hints": [
            r"\bstd::\w+",
            r"\b(?:printf|scanf|malloc|free)\(",
            r"\bcout\s*<<",
        ],
    },
    "php": {
        "declarations": [
            r"^\s*<\?php",
            r"^\s*namespace\s+[\w\\]+;",
            r"^\s*use\s+[\w\\]+;",
        ],
        "hints": [
            r"\$(?:this|_GET|_POST|_SESSION|_COOKIE|_SERVER)\b",
            r"^\s*(?:echo|require_once|include_once)\b",
            r"\$\w+\s*=",
        ],
    },
    "html": {
        "declarations": [
            r"^\s*<!DOCTYPE\s+html",
            r"^\s*<(?:html|head|body|script|style)\b[^>]*>",
        ],
        "hints": [
            r"<(?:div|span|p|a|img|link|meta|ul|li)\b[^>]*>",
            r"</\w+>",
        ],
    },
    "css": {
        "declarations": [
            r"^\s*@media\b",
            r"^\s*(?:body|html|\*|[.#][\w-]+)[^{;\n]*\{",
        ],
        "hints": [
            r"\b(?:margin|padding|border|color|background|font-size|display)\s*:\s*[^;\n]+;",
            r"\b\d+(?:px|em|rem|vh|vw)\b",
        ],
    },
    "ruby": {
        "declarations": [
            r"^\s*def\s+[\w?!.]+(?:\s*\(.*\))?\s*$",
            r"^\s*module\s+[A-Z]\w*",
            r"^\s*require\s+['\"]",
        ],
        "hints": [
            r"\battr_(?:accessor|reader|writer)\b",
            r"\bdo\s*\|\w+(?:,\s*\w+)*\|",
            r"^\s*end\s*$",
            r"^\s*puts\s",
        ],
    },
    "go": {
        "declarations": [
            r"^\s*package\s+\w+\s*$",
            r"^\s*func\s+(?:\(\w+\s+\*?\w+\)\s*)?\w+\s*\(",
            r"^\s*import\s+(?:\(|\")",
        ],
        "hints": [
            r"\bfmt\.\w+\(",
            r"\w\s*:=\s*",
            r"\b(?:defer\s+\w+|chan\s+\w+|make\(\[\])",
        ],
    },
    "rust": {
        "declarations": [
            r"^\s*(?:pub\s+)?fn\s+\w+\s*(?:<[^>]*>)?\s*\(",
            r"^\s*(?:pub\s+)?(?:struct|enum|trait)\s+\w+",
            r"^\s*impl\b",
            r"^\s*let\s+mut\s+\w+",
        ],
        "hints": [
            r"\b(?:Option|Result|Some|Ok|Err)\s*[<(]",
            r"\bmatch\s+\w+\s*\{",
            r"\b\w+!\(",
            r"&mut\s",
        ],
    },
    "swift": {
        "declarations": [
            r"^\s*import\s+(?:UIKit|SwiftUI|Foundation|Combine)\s*$",
            r"^\s*(?:protocol|extension)\s+\w+",
            r"^\s*func\s+\w+\s*\(.*\)\s*(?:->\s*\w+\??)?\s*\{",
        ],
        "hints": [
            r"\bguard\s+let\b",
            r"\bif\s+let\b",
            r"\b(?:UIViewController|UIView|SwiftUI)\b",
        ],
    },
    "kotlin": {
        "declarations": [
            r"^\s*(?:suspend\s+)?fun\s+\w+\s*\(",
            r"^\s*(?:data|sealed|open)\s+class\s+\w+",
            r"^\s*(?:val|var)\s+\w+\s*(?::\s*\w+\??)?\s*=",
        ],
        "hints": [
            r"\b(?:override\s+fun|lateinit|companion\s+object|suspend\s+fun)\b",
            r"\bprintln\(",
            r":\s*Unit\b",
        ],
    },
    "shell": {
        "declarations": [
            r"^#!/(?:usr/)?bin/(?:env\s+)?(?:ba|z)?sh\b",
            r"^\s*\$\s+(?:sudo|npm|npx|pip|git|cd|ls|mkdir|docker|curl|python3?|yarn|brew|apt(?:-get)?)\b",
            r"^\s*(?:sudo|apt-get|npm|pip3?|yarn|brew)\s+(?:install|run|add|update|upgrade)\b",
        ],
        "hints": [
            r"\becho\s+\"?\$",
            r"\|\s*(?:grep|awk|sed|xargs)\b",
            r"^\s*export\s+[A-Z_]+=",
        ],
    },
    "sql": {
        "declarations": [
            r"^\s*(?:SELECT\s+[\w*,.\s]+\s+FROM|INSERT\s+INTO|UPDATE\s+\w+\s+SET|DELETE\s+FROM|CREATE\s+(?:TABLE|INDEX|VIEW)|ALTER\s+TABLE|DROP\s+TABLE)\b",
        ],
        "hints": [
            r"\bWHERE\s+[\w.]+\s*(?:=|\b(?:LIKE|IN)\b)",
            r"\b(?:INNER JOIN|LEFT JOIN|GROUP BY|ORDER BY)\b",
        ],
    },
}

STRUCTURAL_PUNCTUATION = re.compile(r"[{}\[\]()<>:;=+\-*/%&|^!~]")
LEADING_INDENT = re.compile(r"^(\s+)\S")
LANGUAGE_CLASS_PREFIXES = ("language-", "lang-")


class CodeClassifier:
    """Heuristic classifier separating source code from natural language."""

    def __init__(self, signatures=None, punctuation_ratio=0.3, min_language_score=2):
        """Initialize the classifier.

        Args:
            signatures: Mapping of language name to {"declarations": [...], "hints": [...]}
                regular expressions (default: LANGUAGE_SIGNATURES)
            punctuation_ratio: Share of lines carrying structural punctuation above which
                text looks structural
            min_language_score: Minimum number of matching patterns needed to name a language
        """
        signatures = signatures or LANGUAGE_SIGNATURES
        self.punctuation_ratio = punctuation_ratio
        self.min_language_score = min_language_score
        self._declarations = {}
        self._hints = {}
        for language, family in signatures.items():
            self._declarations[language] = _compile(family.get("declarations", []))
            self._hints[language] = _compile(family.get("hints", []))

    def classify(self, text: str) -> ClassificationResult:
        """Classify a block of text.

        Args:
            text: Text to classify

        Returns:
            ClassificationResult with verdict CODE, NOT_CODE or UNCERTAIN
        """
        if not text or not text.strip():
            return NOT_CODE

        declaration_hits = self._count_matches(text, self._declarations)
        hint_hits = self._count_matches(text, self._hints)
        structured, indented = self._structural_evidence(text)

        if any(declaration_hits.values()) or (structured and indented):
            scores = {language: declaration_hits[language] + hint_hits[language]
                      for language in declaration_hits}
            return ClassificationResult(Verdict.CODE, self._pick_language(scores))

        if any(hint_hits.values()) or indented:
            return ClassificationResult(Verdict.UNCERTAIN, None)

        return NOT_CODE

    def classify_as_code(self, text: str, treat_uncertain_as_code: bool = False) -> bool:
        """Apply a policy to the classification and answer yes or no."""
        result = self.classify(text)
        if result.verdict == Verdict.UNCERTAIN:
            return treat_uncertain_as_code
        return result.is_code

    def detect_language(self, text: str) -> Optional[str]:
        """Detect the language of a block already known to be code."""
        if not text or not text.strip():
            return None
        declaration_hits = self._count_matches(text, self._declarations)
        hint_hits = self._count_matches(text, self._hints)
        return self._pick_language({language: declaration_hits[language] + hint_hits[language]
                                    for language in declaration_hits})

    def _count_matches(self, text, families) -> Dict[str, int]:
        return {language: sum(1 for pattern in patterns if pattern.search(text))
                for language, patterns in families.items()}

    def _pick_language(self, scores: Dict[str, int]) -> Optional[str]:
        """Return the language with the strict maximum score, if it is high enough."""
        if not scores:
            return None
        best = max(scores.values())
        if best < self.min_language_score:
            return None
        leaders = [language for language, score in scores.items() if score == best]
        if len(leaders) != 1:
            logger.debug(f"Language tie between {leaders}, leaving language undetermined")
            return None
        return leaders[0]

    def _structural_evidence(self, text):
        """Evaluate the punctuation ratio and indentation consistency of the text.

        Returns:
            Tuple (punctuation_heavy, consistently_indented)
        """
        lines = text.split("\n")
        punctuated = [line for line in lines if STRUCTURAL_PUNCTUATION.search(line)]
        punctuation_heavy = len(punctuated) / len(lines) > self.punctuation_ratio

        indents: List[int] = []
        for line in lines:
            match = LEADING_INDENT.match(line)
            if match:
                indents.append(len(match.group(1)))
        consistently_indented = bool(indents) and len(set(indents)) < len(indents) / 2

        return punctuation_heavy, consistently_indented


def language_from_class_names(class_names: Iterable[str]) -> Optional[str]:
    """Read a language from highlighter class names such as 'language-python' or 'lang-js'."""
    for class_name in class_names or []:
        for prefix in LANGUAGE_CLASS_PREFIXES:
            if class_name.startswith(prefix) and len(class_name) > len(prefix):
                return class_name[len(prefix):].lower()
    return None
