"""
Tests for structured extraction, code unit anchoring and rebuilding.

Run with: pytest tests/test_extractor.py -v
"""

import pytest

from code_preserve_translator.extractor import StructuredExtractor, is_code_container
from code_preserve_translator.html_tree import (
    HtmlNode, parse_html, sanitize_attributes, strip_chrome
)
from code_preserve_translator.models import Anchor, ContentSegment, SegmentKind


@pytest.fixture
def extractor():
    return StructuredExtractor()


@pytest.fixture
def document(sample_html):
    return parse_html(sample_html)


def shape(segments):
    return [(segment.kind, segment.tag, segment.text) for segment in segments]


class TestExtract:
    """Tests for the segment sequence."""

    def test_segments_in_reading_order(self, extractor, document):
        root = extractor.select_content_root(document)
        segments = extractor.extract(root)

        assert shape(segments) == [
            (SegmentKind.HEADING, "h1", "Getting started"),
            (SegmentKind.PARAGRAPH, "p", "Install the package and run the server."),
            (SegmentKind.CODE, "pre", "def main():\n    return 0\n"),
            (SegmentKind.LIST, "ul", "First step\nSecond step"),
            (SegmentKind.IMAGE, "img", "Architecture diagram"),
            (SegmentKind.PARAGRAPH, "div", "Loose text"),
            (SegmentKind.PARAGRAPH, "p", "Nested paragraph."),
        ]

    def test_code_language_from_class(self, extractor, document):
        segments = extractor.extract(extractor.select_content_root(document))
        code = [segment for segment in segments if segment.is_code]

        assert len(code) == 1
        assert code[0].language == "python"

    def test_image_attributes_are_sanitized(self, extractor, document):
        segments = extractor.extract(extractor.select_content_root(document))
        image = [segment for segment in segments if segment.kind == SegmentKind.IMAGE][0]

        assert image.attributes == {"alt": "Architecture diagram"}

    def test_live_tree_is_not_modified(self, extractor, document):
        before = str(document)
        extractor.extract(document)
        extractor.extract_text(document)
        assert str(document) == before

    def test_chrome_is_skipped(self, extractor, document):
        texts = [segment.text for segment in extractor.extract(document)]

        assert "Home" not in texts
        assert "Copyright" not in texts
        assert "Getting started" in texts

    def test_code_paragraph_is_detected(self, extractor):
        code = "import os\nimport sys\n\ndef main():\n    print(os.getcwd())"
        document = parse_html(f"<div><p>{code}</p><p>const x = 1;</p></div>")

        segments = extractor.extract(document)

        assert segments[0].kind == SegmentKind.CODE
        assert segments[0].text == code
        assert segments[0].language == "python"
        # Below min_code_length, so it stays prose
        assert segments[1].kind == SegmentKind.PARAGRAPH

    def test_forced_code_containers(self, extractor):
        document = parse_html(
            '<div class="highlight">x = 1</div>'
            '<span data-code-block="true">plain words</span>'
            '<code>inline_call()</code>'
        )

        segments = extractor.extract(document)

        assert [segment.kind for segment in segments] == [SegmentKind.CODE] * 3
        assert segments[1].text == "plain words"

    def test_nested_images_follow_their_block(self, extractor):
        document = parse_html(
            '<p>See the chart <img src="c.png" alt="Sales chart"> below.</p>'
            '<ul><li><img alt="Icon"> item</li></ul>'
            '<h2>Logo <img alt="Brand"></h2>'
            '<p><img alt="Only an image"></p>'
        )

        assert shape(extractor.extract(document)) == [
            (SegmentKind.PARAGRAPH, "p", "See the chart below."),
            (SegmentKind.IMAGE, "img", "Sales chart"),
            (SegmentKind.LIST, "ul", "item"),
            (SegmentKind.IMAGE, "img", "Icon"),
            (SegmentKind.HEADING, "h2", "Logo"),
            (SegmentKind.IMAGE, "img", "Brand"),
            (SegmentKind.IMAGE, "img", "Only an image"),
        ]

    def test_nested_image_attributes_are_sanitized(self, extractor):
        document = parse_html('<p>Text <img src="c.png" alt="Chart" onload="x()"></p>')
        assert extractor.extract(document)[1].attributes == {"alt": "Chart"}

    def test_paragraph_like_leaves(self, extractor):
        document = parse_html(
            "<blockquote>Quoted   words</blockquote>"
            "<table><tr><td>Cell text</td></tr></table>"
        )

        assert shape(extractor.extract(document)) == [
            (SegmentKind.PARAGRAPH, "blockquote", "Quoted words"),
            (SegmentKind.PARAGRAPH, "td", "Cell text"),
        ]

    def test_empty_elements_are_skipped(self, extractor):
        document = parse_html("<h2>  </h2><p></p><ul><li> </li></ul><img>")

        segments = extractor.extract(document)

        assert shape(segments) == [(SegmentKind.IMAGE, "img", "")]

    def test_reextraction_is_stable(self, extractor, document):
        root = extractor.select_content_root(document)
        assert extractor.extract(root) == extractor.extract(root)

    def test_extract_text(self, extractor, document):
        text = extractor.extract_text(extractor.select_content_root(document))

        assert text.startswith("Getting started\nInstall the package")
        assert "def main():\n    return 0" in text


class TestContentRoot:

    def test_article_is_selected(self, extractor, document):
        assert extractor.select_content_root(document).name == "article"

    def test_falls_back_to_body(self, extractor):
        document = parse_html("<html><body><p>Only body</p></body></html>")
        assert extractor.select_content_root(document).name == "body"

    def test_strip_chrome(self):
        document = parse_html(
            '<body><header>Top</header><div class="sidebar">Side</div>'
            '<script>var a;</script><!-- note --><p>Kept</p></body>'
        )

        strip_chrome(document)

        assert document.get_text() == "Kept"


class TestSanitization:

    def test_sanitize_attributes(self):
        attributes = {
            "onclick": "steal()",
            "href": "https://example.com",
            "title": "java\nscript:alert(1)",
            "class": ["note", "wide"],
            "data-x": "1",
            "1bad": "v",
            "style": "color: red",
            "id": "intro",
        }

        assert sanitize_attributes(attributes) == {"class": "note wide", "data-x": "1", "id": "intro"}

    def test_javascript_value_case_insensitive(self):
        assert sanitize_attributes({"alt": "JavaScript:void(0)"}) == {}

    def test_sanitized_html(self, extractor, document):
        html = extractor.sanitized_html(extractor.select_content_root(document))

        assert "onerror" not in html
        assert "diagram.png" not in html
        assert 'alt="Architecture diagram"' in html


class TestCodeUnits:
    """Tests for code unit anchors and marking."""

    def test_collect_code_units(self, extractor, document):
        units = extractor.collect_code_units(document)

        assert len(units) == 1
        assert units[0].anchor == Anchor("html[0]/body[1]/article[1]", 2)
        assert units[0].language == "python"
        assert units[0].text == "def main():\n    return 0\n"

    def test_resolve_path(self, document):
        node = HtmlNode.resolve(document, "html[0]/body[1]/article[1]/pre[2]")

        assert node.tag == "pre"
        assert node.path == "html[0]/body[1]/article[1]/pre[2]"
        assert HtmlNode.resolve(document, "html[0]/body[1]/article[1]/div[2]") is None
        assert HtmlNode.resolve(document, "html[0]/body[9]") is None

    def test_mark_code_units(self, extractor, document):
        units = extractor.collect_code_units(document)

        assert extractor.mark_code_units(document, units) == 1

        pre = document.find("pre")
        assert pre["data-code-block"] == "true"
        assert pre["data-code-block-id"] == units[0].id
        assert pre["data-code-language"] == "python"
        assert is_code_container(pre)

    def test_stale_anchor_is_skipped(self, extractor, document):
        units = extractor.collect_code_units(document)
        document.find("h1").decompose()

        assert extractor.mark_code_units(document, units) == 0
        assert not document.find("pre").has_attr("data-code-block")

    def test_classifier_detected_unit(self, extractor):
        code = "import os\nimport sys\n\ndef main():\n    print(os.getcwd())"
        document = parse_html(f"<body><p>Intro text.</p><p>{code}</p></body>")

        units = extractor.collect_code_units(document)

        assert len(units) == 1
        assert units[0].anchor == Anchor("body[0]", 1)
        assert units[0].language == "python"

    def test_code_in_chrome_classes_is_ignored(self, extractor):
        document = parse_html(
            '<body>'
            '<div class="sidebar"><pre>npm install widget</pre></div>'
            '<ul class="menu"><li><code>ls -la</code></li></ul>'
            '<pre>make build</pre>'
            '</body>'
        )

        units = extractor.collect_code_units(document)

        assert [unit.text for unit in units] == ["make build"]
        assert units[0].anchor == Anchor("body[0]", 2)


class TestRebuild:

    def test_round_trip(self, extractor, document):
        segments = extractor.extract(extractor.select_content_root(document))

        rebuilt = extractor.rebuild(segments)

        assert shape(extractor.extract(rebuilt)) == shape(segments)

    def test_rebuild_defaults_and_sanitizes(self, extractor):
        segments = [
            ContentSegment(SegmentKind.HEADING, "Title"),
            ContentSegment(SegmentKind.PARAGRAPH, "Body", "p",
                           {"onclick": "x()", "class": "note"}),
            ContentSegment(SegmentKind.LIST, "one\n\ntwo", "ol"),
            ContentSegment(SegmentKind.CODE, "x = 1", "pre", language="python"),
            ContentSegment(SegmentKind.IMAGE, "A cat", "img", {"src": "cat.png"}),
        ]

        html = str(extractor.rebuild(segments))

        assert html == (
            '<h3>Title</h3>'
            '<p class="note">Body</p>'
            '<ol><li>one</li><li>two</li></ol>'
            '<pre><code class="language-python">x = 1</code></pre>'
            '<img alt="A cat"/>'
        )
