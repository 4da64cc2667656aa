# -*- coding: utf-8 -*-
"""
AI rewrite collaborator: turns a raw job posting (text or URL) into a blog post.

Without a Gemini API key the rewrite degrades to a fixed "enhanced" template
instead of failing, so authors can keep working.
"""
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Literal

import httpx

from .config import settings
from .gemini_client import GeminiClient
from .jinja_env import render_prompt
from .source_fetcher import SourceFetchError, fetch_source_text
from .word_count import count_words

logger = logging.getLogger(__name__)

SourceKind = Literal["url", "text"]

DEFAULT_TITLE = "Enhanced Job Posting"
MAX_TITLE_LENGTH = 100

FALLBACK_TEMPLATE = """# Enhanced Job Posting

{source}

## Key Highlights
- Competitive compensation package
- Flexible working arrangements
- Professional development opportunities
- Great team culture and work environment

## Requirements
- Strong communication skills
- Team player with collaborative mindset
- Passion for innovation and excellence

---
*This posting has been enhanced for better engagement and clarity.*"""

_LEADING_HASHES = re.compile(r"^#+\s*")
_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\n(.*)\n```$", re.DOTALL)


class RewriteError(Exception):
    """Raised when the rewrite cannot produce content."""


@dataclass
class RewriteResult:
    """Rewritten post title and body."""

    title: str
    content: str
    used_fallback: bool = False

    @property
    def word_count(self) -> int:
        return count_words(self.content)


def fallback_title(source_text: str) -> str:
    """First line of the source without heading marks, capped at 100 chars."""
    first_line = source_text.strip().split("\n")[0]
    title = _LEADING_HASHES.sub("", first_line).strip()[:MAX_TITLE_LENGTH]
    return title or DEFAULT_TITLE


def build_fallback(source_text: str) -> RewriteResult:
    """Deterministic canned rewrite used when no API key is configured."""
    return RewriteResult(
        title=fallback_title(source_text),
        content=FALLBACK_TEMPLATE.format(source=source_text),
        used_fallback=True,
    )


def split_generated_post(generated: str) -> tuple[str | None, str]:
    """
    Split model output into (title, body).

    The title is the leading "# " heading when present; otherwise None and the
    whole text is the body.
    """
    text = generated.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1).strip()

    first_line, _, rest = text.partition("\n")
    if first_line.startswith("# "):
        return first_line[2:].strip() or None, rest.strip()
    return None, text


class ContentRewriter:
    """Rewrites source material with Gemini."""

    def __init__(
            self,
            client_factory: Callable[..., GeminiClient] = GeminiClient,
            fetcher: Callable[[str], Awaitable[str]] = fetch_source_text,
    ):
        self._client_factory = client_factory
        self._fetcher = fetcher

    async def rewrite(
            self,
            source_text: str,
            source_kind: SourceKind = "text",
            api_key: str | None = None,
            min_words: int | None = None,
    ) -> RewriteResult:
        """
        Rewrite a job posting into a blog post.

        Args:
            source_text: Raw text, or a URL when source_kind is "url"
            source_kind: "text" or "url"
            api_key: Gemini key overriding settings.GEMINI_API_KEY
            min_words: Target length passed to the prompt

        Raises:
            RewriteError: on empty input, fetch failure or Gemini failure
        """
        if not source_text or not source_text.strip():
            raise RewriteError("Content is required")

        source_url = None
        if source_kind == "url":
            source_url = source_text.strip()
            try:
                source_text = await self._fetcher(source_url)
            except SourceFetchError as e:
                raise RewriteError(str(e)) from e

        logger.info(
            "Rewrite requested",
            extra={"source_kind": source_kind, "content_length": len(source_text)},
        )

        key = api_key or settings.GEMINI_API_KEY
        if not key:
            logger.warning("Gemini API key not configured, using fallback template")
            return build_fallback(source_text)

        system_prompt = render_prompt(
            "rewrite_system.j2", min_words=min_words or settings.MIN_WORD_COUNT
        )
        prompt = render_prompt(
            "rewrite.j2",
            source_text=source_text,
            source_kind=source_kind,
            source_url=source_url,
        )

        client = self._client_factory(api_key=key)
        try:
            generated = await client.generate(prompt, system_prompt=system_prompt)
        except httpx.HTTPStatusError as e:
            logger.error(f"Gemini rewrite failed with HTTP {e.response.status_code}")
            raise RewriteError(
                f"AI service returned HTTP {e.response.status_code}. Please try again."
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Gemini rewrite failed: {e}")
            raise RewriteError(f"AI service is unreachable: {e}") from e
        except ValueError as e:
            logger.error(f"Gemini returned an unreadable response: {e}")
            raise RewriteError("AI service returned an invalid response. Please try again.") from e

        title, body = split_generated_post(generated)
        if not body:
            raise RewriteError("AI service returned no content. Please try again.")

        result = RewriteResult(title=title or fallback_title(source_text), content=body)
        logger.info("Rewrite completed", extra={"word_count": result.word_count})
        return result


# Default rewriter instance (lazy initialization)
_default_rewriter: ContentRewriter | None = None


def get_rewriter() -> ContentRewriter:
    """Get or create the default rewriter."""
    global _default_rewriter
    if _default_rewriter is None:
        _default_rewriter = ContentRewriter()
    return _default_rewriter
