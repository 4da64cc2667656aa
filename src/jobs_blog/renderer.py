# -*- coding: utf-8 -*-
"""
Post content rendering.

Markdown sources get their heading lines rewritten to carry anchor spans, then
go through Python-Markdown with GFM-like extensions. HTML sources get ids set
directly on their heading elements. Either way the ids come from the same
heading scan as the table of contents.
"""
import logging
from dataclasses import dataclass, field

import markdown
from bs4 import BeautifulSoup

from .sanitizer import sanitize_html
from .styler import apply_styles
from .text_utils import detect_content_format
from .toc import (
    TOCItem,
    extract_toc_from_markdown,
    scan_html_headings,
    scan_markdown_headings,
)

logger = logging.getLogger(__name__)

# tables + fenced code + hard line breaks, like GitHub-flavoured Markdown
MARKDOWN_EXTENSIONS = ["tables", "fenced_code", "nl2br", "sane_lists"]


class RenderError(Exception):
    """Raised when Markdown conversion fails."""


@dataclass
class RenderedContent:
    """HTML ready for display plus its outline."""

    html: str
    toc: list[TOCItem] = field(default_factory=list)
    content_format: str = "markdown"


def add_markdown_heading_anchors(content: str) -> str:
    """Wrap the text of every level 2-4 heading line in an anchor span."""
    headings = scan_markdown_headings(content)
    if not headings:
        return content

    lines = content.splitlines(keepends=True)
    for heading in headings:
        line = lines[heading.line_index]
        ending = line[len(line.rstrip("\r\n")):]
        lines[heading.line_index] = (
            f'{heading.hashes} <span id="{heading.item.id}">{heading.raw_text}</span>{ending}'
        )
    return "".join(lines)


def markdown_to_html(content: str) -> str:
    """Plain Markdown to HTML conversion."""
    try:
        return markdown.markdown(content, extensions=MARKDOWN_EXTENSIONS)
    except Exception as e:
        logger.error(f"Markdown conversion failed: {e}")
        raise RenderError(f"Markdown conversion failed: {e}") from e


def render_markdown_with_anchors(content: str) -> str:
    """Markdown to HTML with anchor ids matching the TOC."""
    return markdown_to_html(add_markdown_heading_anchors(content))


def add_html_heading_ids(html: str) -> str:
    """Set an ``id`` on every h2-h4 element of an HTML fragment."""
    soup = BeautifulSoup(html, "html.parser")
    for tag, item in scan_html_headings(soup):
        tag["id"] = item.id
    return str(soup)


def render_content(
        content: str,
        content_format: str = "auto",
        *,
        sanitize: bool = True,
        style: bool = True,
) -> RenderedContent:
    """
    Turn stored post content into display HTML and its table of contents.

    Args:
        content: Post body (Markdown or HTML)
        content_format: "markdown", "html" or "auto" to detect
        sanitize: Strip scripts, iframes and event handlers
        style: Apply inline presentational styles

    Returns:
        RenderedContent with html, toc and the format actually used

    Raises:
        RenderError: if the Markdown conversion fails
    """
    if content_format == "auto":
        content_format = detect_content_format(content)

    if content_format == "html":
        html = sanitize_html(content) if sanitize else content
        soup = BeautifulSoup(html, "html.parser")
        toc = []
        for tag, item in scan_html_headings(soup):
            tag["id"] = item.id
            toc.append(item)
        html = str(soup)
    else:
        toc = extract_toc_from_markdown(content)
        html = render_markdown_with_anchors(content)
        if sanitize:
            html = sanitize_html(html)

    if style:
        html = apply_styles(html)

    return RenderedContent(html=html, toc=toc, content_format=content_format)
