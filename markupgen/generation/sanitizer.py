"""
Markup Sanitizer

Structural extraction of a single markup fragment from raw model text.
Nothing here renders or executes the markup.

Graphics (SVG):
    COMPLETE      <svg ...> ... </svg>   -> first opening tag to last closing tag
    UNTERMINATED  <svg ...> ...          -> opening tag to end, closing tag appended
    MISSING       no <svg opening tag    -> NoValidFragmentError

Document (HTML):
    FULL_DOCUMENT <!DOCTYPE html> / <html> present -> slice kept verbatim
    HEAD_AND_BODY <head> present, no <html> root   -> <head> to last </body>, given a root
    BODY_ELEMENT  <body> present                   -> body content wrapped in shell
    FRAGMENT      any other markup tag             -> first tag to last tag, wrapped
    PLAIN_TEXT    no markup at all                 -> raw text wrapped in shell
"""

from __future__ import annotations

import re
from enum import Enum

from .types import ContentKind

FENCE_RE = re.compile(
    r"^[ \t]*```[\w+-]*[ \t]*\r?$\n?|```[ \t]*\r?$", re.MULTILINE
)

SVG_OPEN_RE = re.compile(r"<svg(?=[\s>/])", re.IGNORECASE)
SVG_CLOSE_RE = re.compile(r"</svg\s*>", re.IGNORECASE)

DOCTYPE_RE = re.compile(r"<!DOCTYPE\s+html\b[^>]*>", re.IGNORECASE)
HTML_OPEN_RE = re.compile(r"<html(?=[\s>])", re.IGNORECASE)
HTML_CLOSE_RE = re.compile(r"</html\s*>", re.IGNORECASE)
HEAD_OPEN_RE = re.compile(r"<head(?=[\s>])", re.IGNORECASE)
BODY_OPEN_RE = re.compile(r"<body(?:\s[^>]*)?>", re.IGNORECASE)
BODY_CLOSE_RE = re.compile(r"</body\s*>", re.IGNORECASE)
TAG_RE = re.compile(r"</?[A-Za-z][A-Za-z0-9-]*(?:\s[^<>]*)?/?>")

DOCUMENT_SHELL = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Generated</title>
</head>
<body>
{body}
</body>
</html>"""

DOCUMENT_ROOT = """<!DOCTYPE html>
<html lang="en">
{content}
</html>"""


class NoValidFragmentError(ValueError):
    """Raised when no markup of the expected kind can be recovered."""


class GraphicsShape(str, Enum):
    COMPLETE = "complete"
    UNTERMINATED = "unterminated"
    MISSING = "missing"


class DocumentShape(str, Enum):
    FULL_DOCUMENT = "full_document"
    HEAD_AND_BODY = "head_and_body"
    BODY_ELEMENT = "body_element"
    FRAGMENT = "fragment"
    PLAIN_TEXT = "plain_text"


def strip_fences(text: str) -> str:
    """Remove markdown code-fence delimiters (```svg, ```html, ```, ...)."""
    return FENCE_RE.sub("", text).strip()


def _last_match(pattern: re.Pattern, text: str, start: int = 0) -> re.Match | None:
    last = None
    for match in pattern.finditer(text, start):
        last = match
    return last


def classify_graphics(text: str) -> GraphicsShape:
    opening = SVG_OPEN_RE.search(text)
    if opening is None:
        return GraphicsShape.MISSING
    if _last_match(SVG_CLOSE_RE, text, opening.end()) is None:
        return GraphicsShape.UNTERMINATED
    return GraphicsShape.COMPLETE


def clean_graphics(raw_text: str) -> str:
    """
    Extract one <svg> element from noisy model text.

    The closing tag is matched greedily against the last </svg>, so nested
    <svg> elements stay inside the extracted fragment.

    Raises:
        NoValidFragmentError: If no <svg opening tag exists
    """
    text = strip_fences(raw_text)
    shape = classify_graphics(text)

    if shape is GraphicsShape.MISSING:
        raise NoValidFragmentError("Generated text does not contain an <svg> element")

    start = SVG_OPEN_RE.search(text).start()  # type: ignore[union-attr]
    if shape is GraphicsShape.COMPLETE:
        closing = _last_match(SVG_CLOSE_RE, text, start)
        return text[start : closing.end()].strip()  # type: ignore[union-attr]

    # Truncated output: keep what we have and close the root
    return text[start:].rstrip() + "</svg>"


def classify_document(text: str) -> DocumentShape:
    if DOCTYPE_RE.search(text) or HTML_OPEN_RE.search(text):
        return DocumentShape.FULL_DOCUMENT
    if HEAD_OPEN_RE.search(text):
        return DocumentShape.HEAD_AND_BODY
    if BODY_OPEN_RE.search(text):
        return DocumentShape.BODY_ELEMENT
    if TAG_RE.search(text):
        return DocumentShape.FRAGMENT
    return DocumentShape.PLAIN_TEXT


def wrap_document(body: str) -> str:
    """Wrap body content in a minimal HTML5 shell."""
    return DOCUMENT_SHELL.format(body=body)


def clean_document(raw_text: str) -> str:
    """
    Extract or build a complete HTML document from model text.

    Documents never fail on shape: anything that is not a full document is
    wrapped in the minimal shell.

    Raises:
        NoValidFragmentError: If the text is empty after fence stripping
    """
    text = strip_fences(raw_text)
    if not text:
        raise NoValidFragmentError("Generated text is empty")

    shape = classify_document(text)

    if shape is DocumentShape.FULL_DOCUMENT:
        doctype = DOCTYPE_RE.search(text)
        html_open = HTML_OPEN_RE.search(text)
        starts = [m.start() for m in (doctype, html_open) if m is not None]
        start = min(starts)
        closing = _last_match(HTML_CLOSE_RE, text, start)
        end = closing.end() if closing is not None else len(text)
        return text[start:end].strip()

    if shape is DocumentShape.HEAD_AND_BODY:
        # <head> is kept with its styles and scripts
        start = HEAD_OPEN_RE.search(text).start()  # type: ignore[union-attr]
        closing = _last_match(BODY_CLOSE_RE, text, start)
        end = closing.end() if closing is not None else len(text)
        return DOCUMENT_ROOT.format(content=text[start:end].strip())

    if shape is DocumentShape.BODY_ELEMENT:
        opening = BODY_OPEN_RE.search(text)
        closing = _last_match(BODY_CLOSE_RE, text, opening.end())  # type: ignore[union-attr]
        end = closing.start() if closing is not None else len(text)
        return wrap_document(text[opening.end() : end].strip())  # type: ignore[union-attr]

    if shape is DocumentShape.FRAGMENT:
        tags = list(TAG_RE.finditer(text))
        return wrap_document(text[tags[0].start() : tags[-1].end()].strip())

    return wrap_document(text)


def clean_markup(raw_text: str, kind: ContentKind) -> str:
    """
    Clean raw model output into markup of the requested kind.

    Args:
        raw_text: Untrusted text returned by the backend
        kind: ContentKind requested

    Returns:
        Markup string; clean_markup(clean_markup(x, k), k) == clean_markup(x, k)

    Raises:
        NoValidFragmentError: If nothing usable can be recovered
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        raise NoValidFragmentError("Generated text is empty")
    if kind is ContentKind.GRAPHICS:
        return clean_graphics(raw_text)
    return clean_document(raw_text)
