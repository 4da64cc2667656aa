# -*- coding: utf-8 -*-
"""
Download a source page and reduce it to readable text for the AI rewrite.
"""
import logging
import re

import httpx
from bs4 import BeautifulSoup

from .config import settings

logger = logging.getLogger(__name__)

# Tags that never hold the posting itself
PRUNING_TAGS = [
    "nav",
    "footer",
    "header",
    "aside",
    "script",
    "style",
    "noscript",
    "form",
    "iframe",
    "svg",
    "canvas",
    "video",
    "audio",
]

# Class/ID patterns indicating non-content elements
PRUNING_PATTERNS = [
    r"cookie",
    r"popup",
    r"modal",
    r"banner",
    r"advert",
    r"sidebar",
    r"comment",
    r"share",
    r"social",
    r"newsletter",
    r"breadcrumb",
    r"navbar",
    r"menu",
]

_PRUNING_RE = re.compile("|".join(PRUNING_PATTERNS), re.IGNORECASE)
_BLANK_LINES = re.compile(r"\n{3,}")

USER_AGENT = "Mozilla/5.0 (compatible; JobsBlogBot/1.0)"


class SourceFetchError(Exception):
    """Raised when a source URL cannot be downloaded."""


def extract_readable_text(html: str, max_chars: int | None = None) -> str:
    """
    Prune boilerplate from a page and return its visible text.

    Keeps the page title as the first line when there is one.
    """
    soup = BeautifulSoup(html, "lxml")
    title = soup.title.get_text(strip=True) if soup.title else ""

    for tag_name in PRUNING_TAGS:
        for tag in soup.find_all(tag_name):
            tag.decompose()

    to_remove = []
    for element in soup.find_all(True):
        classes = element.get("class") or []
        class_str = " ".join(classes) if isinstance(classes, list) else str(classes)
        element_id = element.get("id") or ""
        if (class_str and _PRUNING_RE.search(class_str)) or (
                element_id and _PRUNING_RE.search(element_id)
        ):
            to_remove.append(element)

    for element in to_remove:
        element.decompose()

    root = soup.find("main") or soup.find("article") or soup.body or soup
    lines = [line.strip() for line in root.get_text(separator="\n").splitlines()]
    text = _BLANK_LINES.sub("\n\n", "\n".join(lines)).strip()

    if title and not text.startswith(title):
        text = f"{title}\n\n{text}"

    limit = max_chars or settings.FETCH_MAX_CHARS
    return text[:limit]


async def fetch_source_text(url: str) -> str:
    """
    Fetch a URL and return its readable text.

    Raises:
        SourceFetchError: on network errors, HTTP errors or empty pages
    """
    try:
        async with httpx.AsyncClient(
                timeout=settings.FETCH_TIMEOUT,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.warning(f"Source fetch failed with HTTP {e.response.status_code}: {url}")
        raise SourceFetchError(
            f"Could not fetch {url}: HTTP {e.response.status_code}"
        ) from e
    except httpx.HTTPError as e:
        logger.warning(f"Source fetch failed: {url}: {e}")
        raise SourceFetchError(f"Could not fetch {url}: {e}") from e

    text = extract_readable_text(response.text)
    if not text:
        raise SourceFetchError(f"No readable text found at {url}")

    logger.info("Source fetched", extra={"url": url[:80], "chars": len(text)})
    return text
