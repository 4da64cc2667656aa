# -*- coding: utf-8 -*-
"""
Editor toolbar insertions.

Each action replaces the current selection with a small piece of markup built
around the selected text, or around a placeholder when nothing is selected.
"""
from typing import Literal

from .config import settings

FormatKind = Literal["bold", "italic", "h1", "h2", "h3", "list", "link", "image", "button"]

CTA_STYLE = (
    "display: inline-block; background: linear-gradient(to right, #3b82f6, #1d4ed8); "
    "color: white; padding: 12px 24px; border-radius: 8px; font-weight: bold; "
    "text-decoration: none; margin: 8px 0"
)
PLACEHOLDER_LINK = "https://example.com"

_TEMPLATES: dict[str, tuple[str, str]] = {
    "bold": ("**{text}**", "bold text"),
    "italic": ("*{text}*", "italic text"),
    "h1": ("# {text}", "Heading 1"),
    "h2": ("## {text}", "Heading 2"),
    "h3": ("### {text}", "Heading 3"),
    "list": ("- {text}", "List item"),
    "link": ("[{text}](" + PLACEHOLDER_LINK + ")", "link text"),
    "image": ("![{text}]({image})", "Image description"),
    "button": (
        '<a href="{link}" target="_blank" rel="noopener" style="' + CTA_STYLE + '">{text}</a>',
        "Apply Now",
    ),
}


def format_snippet(kind: FormatKind, selected: str = "", link: str | None = None) -> str:
    """Markup for one toolbar action."""
    if kind not in _TEMPLATES:
        raise ValueError(f"Unknown formatting action: {kind}")
    template, placeholder = _TEMPLATES[kind]
    return template.format(
        text=selected or placeholder,
        image=settings.DEFAULT_FEATURED_IMAGE,
        link=link or PLACEHOLDER_LINK,
    )


def insert_formatting(
        content: str,
        kind: FormatKind,
        start: int,
        end: int | None = None,
        link: str | None = None,
) -> tuple[str, int]:
    """
    Replace ``content[start:end]`` with the markup of a toolbar action.

    Text outside the selection is left byte-for-byte as it was. Positions are
    clamped to the content bounds.

    Returns:
        Tuple (new content, cursor position right after the inserted markup)
    """
    end = start if end is None else end
    start = max(0, min(start, len(content)))
    end = max(start, min(end, len(content)))

    snippet = format_snippet(kind, content[start:end], link=link)
    return content[:start] + snippet + content[end:], start + len(snippet)
