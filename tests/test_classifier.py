"""
Tests for the code classifier.

Run with: pytest tests/test_classifier.py -v
"""

import pytest

from code_preserve_translator.classifier import (
    CodeClassifier, Verdict, language_from_class_names
)


@pytest.fixture
def classifier():
    return CodeClassifier()


class TestVerdicts:
    """Tests for CODE / NOT_CODE / UNCERTAIN decisions."""

    def test_python_function_is_code(self, classifier):
        result = classifier.classify("def foo():\n    return 1")

        assert result.verdict == Verdict.CODE
        assert result.is_code
        assert result.language == "python"

    def test_prose_is_not_code(self, classifier):
        result = classifier.classify("The quick brown fox jumps over the lazy dog.")

        assert result.verdict == Verdict.NOT_CODE
        assert result.language is None
        assert not result.is_code

    @pytest.mark.parametrize("text", ["", "   ", "\n\t\n"])
    def test_empty_text_is_not_code(self, classifier, text):
        assert classifier.classify(text).verdict == Verdict.NOT_CODE

    def test_javascript_snippet(self, classifier):
        result = classifier.classify("const x = 1;\nconsole.log(x);")

        assert result.verdict == Verdict.CODE
        assert result.language == "javascript"

    def test_java_beats_csharp_with_hints(self, classifier):
        text = (
            "public class Hello {\n"
            "    public static void main(String[] args) {\n"
            "        System.out.println(\"hi\");\n"
            "    }\n"
            "}"
        )
        result = classifier.classify(text)

        assert result.verdict == Verdict.CODE
        assert result.language == "java"

    def test_tied_languages_leave_language_unknown(self, classifier):
        # Matches one java and one csharp declaration, nothing else
        result = classifier.classify("public class Foo {}")

        assert result.verdict == Verdict.CODE
        assert result.language is None

    def test_sql_query(self, classifier):
        result = classifier.classify("SELECT id, name FROM users WHERE id = 1")

        assert result.verdict == Verdict.CODE
        assert result.language == "sql"

    def test_lowercase_select_sentence_is_not_sql(self, classifier):
        result = classifier.classify("Select the file from the list and press open.")

        assert result.verdict == Verdict.NOT_CODE

    def test_structure_alone_is_code(self, classifier):
        text = "x = [1, 2]\n  y = {a: b}\n  z = (c)\n  w = d;"
        result = classifier.classify(text)

        assert result.verdict == Verdict.CODE

    def test_hint_in_prose_is_uncertain(self, classifier):
        result = classifier.classify("Call console.log() to print the value.")

        assert result.verdict == Verdict.UNCERTAIN
        assert result.language is None

    def test_indented_prose_is_uncertain(self, classifier):
        text = "First line\n  indented words here\n  more indented words\n  and more"

        assert classifier.classify(text).verdict == Verdict.UNCERTAIN


class TestPolicy:
    """Tests for applying a caller policy to UNCERTAIN."""

    def test_uncertain_defaults_to_not_code(self, classifier):
        assert classifier.classify_as_code("Call console.log() to print the value.") is False

    def test_uncertain_as_code_when_requested(self, classifier):
        assert classifier.classify_as_code("Call console.log() to print the value.",
                                           treat_uncertain_as_code=True) is True

    def test_policy_does_not_change_clear_verdicts(self, classifier):
        assert classifier.classify_as_code("def foo():\n    return 1") is True
        assert classifier.classify_as_code("Plain words only.", treat_uncertain_as_code=True) is False


class TestLanguageDetection:

    def test_detect_language(self, classifier):
        assert classifier.detect_language("#include <stdio.h>\nint main(void) {\n    printf(\"hi\");\n}") == "cpp"

    def test_detect_language_on_empty(self, classifier):
        assert classifier.detect_language("") is None

    def test_language_from_class_names(self):
        assert language_from_class_names(["hljs", "language-Python"]) == "python"
        assert language_from_class_names(["lang-js"]) == "js"
        assert language_from_class_names(["highlight"]) is None
        assert language_from_class_names(["language-"]) is None
        assert language_from_class_names(None) is None

    @pytest.mark.parametrize("text", ["(((", "\x00\x01", "[" * 5000, "${{}}", "\\"])
    def test_never_raises(self, classifier, text):
        result = classifier.classify(text)
        assert result.verdict in (Verdict.CODE, Verdict.NOT_CODE, Verdict.UNCERTAIN)
