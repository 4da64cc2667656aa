# -*- coding: utf-8 -*-
"""
Table of contents extraction for Markdown and HTML post content.

Only levels 2-4 are part of the outline. Heading scanning is shared with the
renderer: both ask this module for the anchor id of each heading, so TOC links
always point at an id that exists in the rendered page.
"""
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from .text_utils import detect_content_format, heading_anchor_id, strip_tags

TOC_HEADING_TAGS = ["h2", "h3", "h4"]
FALLBACK_ANCHOR = "section"

_HEADING_LINE = re.compile(r"^(#{2,4})\s+(.+?)\s*$")
_FENCE = re.compile(r"^\s*(```|~~~)")
_CLOSING_HASHES = re.compile(r"\s+#+$")
_MARKDOWN_LINK = re.compile(r"!?\[([^\]]*)\]\([^)]*\)")
_INLINE_GLYPHS = re.compile(r"[*`]")


@dataclass(frozen=True)
class TOCItem:
    """One outline entry."""

    id: str
    text: str
    level: int


@dataclass(frozen=True)
class MarkdownHeading:
    """A level 2-4 heading line found in Markdown source."""

    line_index: int
    hashes: str
    raw_text: str
    item: TOCItem


class AnchorRegistry:
    """
    Hands out heading anchor ids for a single document.

    Repeated ids get ``-2``, ``-3``... suffixes in document order; headings
    with no usable characters get ``section``.
    """

    def __init__(self):
        self._seen: dict[str, int] = {}

    def assign(self, text: str) -> str:
        base = heading_anchor_id(text) or FALLBACK_ANCHOR
        count = self._seen.get(base, 0) + 1
        self._seen[base] = count
        if count == 1:
            return base

        candidate = f"{base}-{count}"
        # A literal "intro-2" heading may already have claimed the suffixed id
        while candidate in self._seen:
            count += 1
            candidate = f"{base}-{count}"
        self._seen[base] = count
        self._seen[candidate] = 1
        return candidate


def heading_label(raw_text: str) -> str:
    """Reduce the raw text of a Markdown heading to its plain label."""
    text = _CLOSING_HASHES.sub("", raw_text.strip())
    text = strip_tags(text)
    text = _MARKDOWN_LINK.sub(r"\1", text)
    text = _INLINE_GLYPHS.sub("", text)
    return " ".join(text.split())


def scan_markdown_headings(content: str) -> list[MarkdownHeading]:
    """
    Find ``##``-``####`` heading lines outside fenced code blocks.

    Returns headings in document order with their anchor ids assigned.
    """
    registry = AnchorRegistry()
    headings: list[MarkdownHeading] = []
    in_fence = False

    for index, line in enumerate(content.splitlines()):
        if _FENCE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue

        match = _HEADING_LINE.match(line)
        if not match:
            continue

        hashes = match.group(1)
        raw_text = _CLOSING_HASHES.sub("", match.group(2))
        label = heading_label(raw_text)
        item = TOCItem(id=registry.assign(label), text=label, level=len(hashes))
        headings.append(MarkdownHeading(index, hashes, raw_text, item))

    return headings


def scan_html_headings(soup: BeautifulSoup) -> list[tuple[Tag, TOCItem]]:
    """Pair every h2-h4 element of a parsed document with its outline entry."""
    registry = AnchorRegistry()
    found = []
    for tag in soup.find_all(TOC_HEADING_TAGS):
        label = " ".join(tag.get_text().split())
        item = TOCItem(id=registry.assign(label), text=label, level=int(tag.name[1]))
        found.append((tag, item))
    return found


def extract_toc_from_markdown(content: str) -> list[TOCItem]:
    """Outline of Markdown content."""
    return [heading.item for heading in scan_markdown_headings(content)]


def extract_toc_from_html(html: str) -> list[TOCItem]:
    """Outline of HTML content."""
    soup = BeautifulSoup(html, "html.parser")
    return [item for _tag, item in scan_html_headings(soup)]


def extract_toc(content: str, content_format: str = "auto") -> list[TOCItem]:
    """Outline of post content in either format."""
    if content_format == "auto":
        content_format = detect_content_format(content)
    if content_format == "html":
        return extract_toc_from_html(content)
    return extract_toc_from_markdown(content)
