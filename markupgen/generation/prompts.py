"""
Prompt Builder

Instruction templates for creating and modifying generated markup.
build_prompt is a pure function of the request.
"""

from __future__ import annotations

from .types import ContentKind, CreateMode, GenerationRequest, ModifyMode

GRAPHICS_ROLE = "You are a professional SVG animation designer."
DOCUMENT_ROLE = (
    "You are a professional front-end designer who builds animated, "
    "single-file HTML5 pages."
)

GRAPHICS_REQUIREMENTS = [
    "The SVG must be complete, valid XML with a single <svg> root element "
    'that declares xmlns="http://www.w3.org/2000/svg" and a viewBox.',
    "Include animation using <animate>, <animateTransform>, <animateMotion> "
    "or CSS animations inside a <style> element.",
    "Animations should be smooth and visually pleasing.",
    "The SVG must be self-contained: no external images, fonts, stylesheets "
    "or scripts, and no references to other files or URLs.",
    "The drawing should be centered and suitable for embedding in a web page.",
]

DOCUMENT_REQUIREMENTS = [
    "Return one complete HTML5 document starting with <!DOCTYPE html>, "
    "with <head> (including <meta charset=\"UTF-8\"> and a viewport meta tag) "
    "and <body>.",
    "Include animation using CSS keyframes, transitions or inline JavaScript.",
    "The page must be self-contained: all CSS and JavaScript inline, no CDN "
    "links, web fonts, external images or network requests.",
    "The layout should be responsive and look good on a mobile screen.",
]

OUTPUT_RULE = (
    "Return only the raw {label} code. Do not wrap it in markdown code fences "
    "and do not add any explanation before or after it."
)

MODIFY_RULES = [
    "Keep the overall structure and visual style of the original {label} "
    "except where the new request requires a change.",
    "Apply the changes the new request asks for (colors, sizes, animation, "
    "added or removed elements, ...).",
]

PRIOR_DESCRIPTION_NOTE = (
    "The original {label} was generated from this description. It is context "
    "only; do not re-apply it as a new request:"
)

_LABELS = {
    ContentKind.GRAPHICS: "SVG",
    ContentKind.DOCUMENT: "HTML",
}

_FENCE_LANGS = {
    ContentKind.GRAPHICS: "xml",
    ContentKind.DOCUMENT: "html",
}


def _numbered(items: list[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def _role(kind: ContentKind) -> str:
    return GRAPHICS_ROLE if kind is ContentKind.GRAPHICS else DOCUMENT_ROLE


def _requirements(kind: ContentKind) -> list[str]:
    base = GRAPHICS_REQUIREMENTS if kind is ContentKind.GRAPHICS else DOCUMENT_REQUIREMENTS
    return list(base) + [OUTPUT_RULE.format(label=_LABELS[kind])]


def build_create_prompt(description: str, kind: ContentKind) -> str:
    """Instruction for generating a new artifact."""
    label = _LABELS[kind]
    return (
        f"{_role(kind)} Based on the user's description, generate a complete, "
        f"working animated {label}.\n\n"
        f"Requirements:\n{_numbered(_requirements(kind))}\n\n"
        f"User description: {description}\n\n"
        f"Return the {label} code:"
    )


def build_modify_prompt(description: str, kind: ContentKind, mode: ModifyMode) -> str:
    """Instruction for modifying a previously generated artifact."""
    label = _LABELS[kind]
    fence = _FENCE_LANGS[kind]
    sections = [
        f"{_role(kind)} The user wants to modify an existing animated {label}.",
        f"Original {label} code:\n```{fence}\n{mode.prior_output}\n```",
    ]
    if mode.prior_description:
        sections.append(
            f"{PRIOR_DESCRIPTION_NOTE.format(label=label)}\n{mode.prior_description}"
        )
    sections.append(f"The user's new request: {description}")

    rules = [rule.format(label=label) for rule in MODIFY_RULES] + _requirements(kind)
    sections.append(
        f"Modify the {label} above according to the new request. "
        f"Requirements:\n{_numbered(rules)}"
    )
    sections.append(f"Return the modified {label} code:")
    return "\n\n".join(sections)


def build_prompt(request: GenerationRequest) -> str:
    """
    Build the instruction string for a request.

    Args:
        request: Validated GenerationRequest (mode already fixed)

    Returns:
        Instruction text; identical requests give identical text
    """
    mode = request.mode
    if isinstance(mode, ModifyMode):
        return build_modify_prompt(request.description, request.content_kind, mode)
    if isinstance(mode, CreateMode):
        return build_create_prompt(request.description, request.content_kind)
    raise TypeError(f"Unknown generation mode: {mode!r}")
