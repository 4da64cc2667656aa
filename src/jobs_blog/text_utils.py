# -*- coding: utf-8 -*-
"""
Plain string transforms shared by posts and headings.

The same normalization backs post slugs and heading anchor ids, so a TOC link
and the id injected into rendered content can never disagree.
"""
import re

_TAG_PATTERN = re.compile(r"<[^>]*>")
_MARKDOWN_GLYPHS = re.compile(r"[#*]")
_DISALLOWED_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHEN_RUNS = re.compile(r"-+")

DEFAULT_EXCERPT_LENGTH = 150
ELLIPSIS = "..."


def normalize_slug(text: str) -> str:
    """
    Normalize text into a URL/anchor-safe slug.

    Lowercases, drops everything outside ``[a-z0-9]``, whitespace and ``-``,
    turns whitespace runs into a single hyphen, collapses repeated hyphens and
    trims hyphens from both ends. Empty input gives an empty slug.
    """
    slug = _DISALLOWED_CHARS.sub("", text.lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHEN_RUNS.sub("-", slug)
    return slug.strip("-")


def generate_slug(title: str) -> str:
    """Derive the URL slug of a post from its title."""
    return normalize_slug(title)


def heading_anchor_id(text: str) -> str:
    """Derive the anchor id of a heading from its (tag-stripped) text."""
    return normalize_slug(text)


def strip_tags(text: str, replacement: str = "") -> str:
    """Remove ``<...>`` sequences. Naive: not an HTML parser."""
    return _TAG_PATTERN.sub(replacement, text)


def generate_excerpt(content: str, length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    """
    Build a plain-text excerpt of post content.

    Tags and ``#``/``*`` glyphs are removed with regexes, then the text is cut
    to ``length`` characters with an ellipsis appended when something was cut.
    """
    plain = _MARKDOWN_GLYPHS.sub("", strip_tags(content))
    if len(plain) <= length:
        return plain
    return plain[:length] + ELLIPSIS


_HTML_BLOCK_TAG = re.compile(
    r"<(p|h[1-6]|div|ul|ol|table|section|article|blockquote|figure)\b", re.IGNORECASE
)
_MARKDOWN_HEADING_LINE = re.compile(r"^#{1,6}\s+\S", re.MULTILINE)


def detect_content_format(content: str) -> str:
    """
    Guess whether post content was authored as HTML or Markdown.

    Content containing block-level HTML tags and no Markdown heading lines is
    treated as HTML (the clean HTML editor path); everything else as Markdown.
    """
    if _HTML_BLOCK_TAG.search(content) and not _MARKDOWN_HEADING_LINE.search(content):
        return "html"
    return "markdown"
