"""Tests for markup extraction and cleanup."""

import pytest

from markupgen.generation import ContentKind, NoValidFragmentError, clean_markup
from markupgen.generation.sanitizer import (
    DocumentShape,
    GraphicsShape,
    classify_document,
    classify_graphics,
    strip_fences,
)

GRAPHICS = ContentKind.GRAPHICS
DOCUMENT = ContentKind.DOCUMENT


class TestStripFences:
    def test_language_tagged_fence(self):
        assert strip_fences("```svg\n<svg></svg>\n```") == "<svg></svg>"

    def test_bare_fence(self):
        assert strip_fences("```\n<p>x</p>```") == "<p>x</p>"

    def test_backticks_inside_markup_are_kept(self):
        raw = "<svg><text>```python code</text></svg>"

        assert strip_fences(raw) == raw
        assert clean_markup(raw, GRAPHICS) == raw

    def test_indented_fence_lines(self):
        assert strip_fences("  ```html\n<p>x</p>\n  ```  ") == "<p>x</p>"


class TestCleanGraphics:
    """Tests for SVG extraction."""

    def test_surrounding_prose_removed(self):
        assert clean_markup("blah <svg><circle/></svg> trailing", GRAPHICS) == (
            "<svg><circle/></svg>"
        )

    def test_fenced_output(self):
        raw = "Here you go:\n```xml\n<svg viewBox=\"0 0 1 1\"><rect/></svg>\n```\nEnjoy!"

        assert clean_markup(raw, GRAPHICS) == '<svg viewBox="0 0 1 1"><rect/></svg>'

    def test_nested_svg_kept_whole(self):
        raw = "<svg><svg><rect/></svg><circle/></svg> done"

        assert clean_markup(raw, GRAPHICS) == "<svg><svg><rect/></svg><circle/></svg>"

    def test_unterminated_svg_is_closed(self):
        raw = "<svg><circle r=\"4\"/>  \n"

        assert classify_graphics(raw) is GraphicsShape.UNTERMINATED
        assert clean_markup(raw, GRAPHICS) == '<svg><circle r="4"/></svg>'

    def test_uppercase_tags(self):
        assert clean_markup("x <SVG><g/></SVG> y", GRAPHICS) == "<SVG><g/></SVG>"

    def test_similar_tag_names_are_not_svg(self):
        assert classify_graphics("<svgfoo></svgfoo>") is GraphicsShape.MISSING

    def test_no_markup_raises(self):
        with pytest.raises(NoValidFragmentError):
            clean_markup("no markup here", GRAPHICS)

    def test_empty_raises(self):
        with pytest.raises(NoValidFragmentError):
            clean_markup("   ", GRAPHICS)

    @pytest.mark.parametrize(
        "raw",
        [
            "blah <svg><circle/></svg> trailing",
            "```svg\n<svg><rect/></svg>\n```",
            "<svg><g>",
            "<svg><svg></svg></svg>",
        ],
    )
    def test_idempotent(self, raw):
        once = clean_markup(raw, GRAPHICS)

        assert clean_markup(once, GRAPHICS) == once


class TestCleanDocument:
    """Tests for HTML document extraction and wrapping."""

    def test_full_document_kept_verbatim(self):
        doc = "<!DOCTYPE html>\n<html><head></head><body><p>Hi</p></body></html>"
        raw = f"Sure! Here is the page:\n{doc}\nLet me know."

        assert classify_document(raw) is DocumentShape.FULL_DOCUMENT
        assert clean_markup(raw, DOCUMENT) == doc

    def test_html_without_doctype(self):
        raw = "<html><body>x</body></html> trailing"

        assert clean_markup(raw, DOCUMENT) == "<html><body>x</body></html>"

    def test_truncated_document_kept_to_end(self):
        raw = "<!DOCTYPE html><html><body><p>cut"

        assert clean_markup(raw, DOCUMENT) == raw

    def test_body_element_wrapped(self):
        raw = "<body class=\"x\"><h1>Title</h1></body>"

        cleaned = clean_markup(raw, DOCUMENT)

        assert cleaned.startswith("<!DOCTYPE html>")
        assert "<body>\n<h1>Title</h1>\n</body>" in cleaned

    def test_head_and_body_keep_head(self):
        raw = (
            "<head><style>@keyframes spin{to{transform:rotate(1turn)}}</style></head>"
            "<body><div class=\"s\">x</div></body>"
        )

        cleaned = clean_markup(raw, DOCUMENT)

        assert classify_document(raw) is DocumentShape.HEAD_AND_BODY
        assert cleaned.startswith("<!DOCTYPE html>\n<html lang=\"en\">\n<head>")
        assert "@keyframes spin" in cleaned
        assert "<div class=\"s\">x</div></body>" in cleaned
        assert cleaned.endswith("</html>")
        assert clean_markup(cleaned, DOCUMENT) == cleaned

    def test_head_and_body_trims_prose(self):
        raw = "Here:\n<head><title>t</title></head>\n<body>x</body>\nDone."

        cleaned = clean_markup(raw, DOCUMENT)

        assert "Here:" not in cleaned
        assert "Done." not in cleaned
        assert "<title>t</title>" in cleaned

    def test_fragment_wrapped(self):
        cleaned = clean_markup("<div>hi</div>", DOCUMENT)

        assert cleaned.startswith("<!DOCTYPE html>")
        assert '<meta charset="UTF-8">' in cleaned
        assert "<body>\n<div>hi</div>\n</body>" in cleaned
        assert cleaned.endswith("</html>")

    def test_fragment_trims_prose(self):
        cleaned = clean_markup("Here: <div>hi</div> bye", DOCUMENT)

        assert "<body>\n<div>hi</div>\n</body>" in cleaned
        assert "Here:" not in cleaned

    def test_plain_text_wrapped(self):
        cleaned = clean_markup("Hello world", DOCUMENT)

        assert "<body>\nHello world\n</body>" in cleaned

    def test_empty_raises(self):
        with pytest.raises(NoValidFragmentError):
            clean_markup("```html\n```", DOCUMENT)

    @pytest.mark.parametrize(
        "raw",
        [
            "<div>hi</div>",
            "Hello world",
            "<body><p>x</p></body>",
            "<head><style>p{color:red}</style></head><body><p>x</p></body>",
            "intro <!DOCTYPE html><html><body></body></html> outro",
        ],
    )
    def test_idempotent(self, raw):
        once = clean_markup(raw, DOCUMENT)

        assert clean_markup(once, DOCUMENT) == once
