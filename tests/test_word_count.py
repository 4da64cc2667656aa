# -*- coding: utf-8 -*-
"""
Tests for word counting and the publish gate.
"""
from jobs_blog.word_count import DEFAULT_MIN_WORDS, check_word_count, count_words


def words(count: int) -> str:
    return " ".join(["word"] * count)


class TestCountWords:
    """Tests for count_words."""

    def test_plain_text(self):
        """Should count whitespace-separated words."""
        assert count_words("one two  three\nfour\tfive") == 5

    def test_tags_are_not_words(self):
        """Tags should not count as words."""
        assert count_words("<p>one</p><p>two</p>") == 2

    def test_empty(self):
        """Empty content should have no words."""
        assert count_words("") == 0
        assert count_words("   \n ") == 0

    def test_markdown_glyphs_count_as_tokens(self):
        """Markdown glyphs should count as tokens."""
        assert count_words("## Title here") == 3


class TestCheckWordCount:
    """Tests for the minimum-length gate."""

    def test_default_minimum(self):
        """Should default to the configured minimum."""
        assert DEFAULT_MIN_WORDS == 1000

    def test_999_words_fail(self):
        """999 words should fail the gate."""
        result = check_word_count(words(999))
        assert result.count == 999
        assert result.meets_minimum is False
        assert result.words_needed == 1

    def test_1000_words_pass(self):
        """1000 words should pass the gate."""
        result = check_word_count(words(1000))
        assert result.meets_minimum is True
        assert result.words_needed == 0

    def test_custom_minimum(self):
        """Should honor a custom minimum."""
        result = check_word_count(words(10), minimum=20)
        assert result.minimum == 20
        assert result.words_needed == 10
