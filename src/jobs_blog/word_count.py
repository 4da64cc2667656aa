# -*- coding: utf-8 -*-
"""
Word counting and the minimum-length publish gate.
"""
from dataclasses import dataclass

from .text_utils import strip_tags

DEFAULT_MIN_WORDS = 1000


@dataclass(frozen=True)
class WordCountResult:
    """Word count of a piece of content against a minimum."""

    count: int
    minimum: int

    @property
    def meets_minimum(self) -> bool:
        return self.count >= self.minimum

    @property
    def words_needed(self) -> int:
        return max(self.minimum - self.count, 0)


def count_words(content: str) -> int:
    """Count whitespace-separated tokens once markup tags are removed."""
    # tags become spaces so "<p>one</p><p>two</p>" stays two words
    return len(strip_tags(content, " ").split())


def check_word_count(content: str, minimum: int = DEFAULT_MIN_WORDS) -> WordCountResult:
    """Count words and compare against ``minimum``."""
    return WordCountResult(count=count_words(content), minimum=minimum)
