# -*- coding: utf-8 -*-
"""
Tests for the presentational styler.
"""
from bs4 import BeautifulSoup

from jobs_blog.styler import apply_styles, format_style, has_background, parse_style


def first_style(html: str) -> dict[str, str]:
    return parse_style(BeautifulSoup(html, "html.parser").find(True)["style"])


class TestApplyStyles:
    """Tests for apply_styles."""

    def test_styles_known_tags(self):
        """Known tags should get inline styles."""
        html = apply_styles("<p>Text</p>")
        assert html == '<p style="margin: 16px 0; line-height: 1.7; color: #374151">Text</p>'

    def test_unknown_tags_untouched(self):
        """Unknown tags should be left alone."""
        assert apply_styles("<span>Text</span>") == "<span>Text</span>"

    def test_idempotent(self):
        """Styling twice should equal styling once."""
        html = (
            "<h2>Title</h2><p>Intro with <a href='https://x.test'>link</a> and "
            "<strong>bold</strong></p><ul><li>One</li></ul><img src='a.png'>"
        )
        once = apply_styles(html)
        assert apply_styles(once) == once

    def test_background_elements_are_never_touched(self):
        """Elements with a background should be skipped."""
        cta = (
            '<a href="https://x.test" style="background: linear-gradient(red, blue); '
            'color: white">Apply</a>'
        )
        assert apply_styles(cta) == cta
        assert apply_styles(apply_styles(cta)) == cta

    def test_author_declarations_win(self):
        """Author declarations should win over defaults."""
        declarations = first_style(apply_styles('<p style="color: red">Text</p>'))
        assert declarations["color"] == "red"
        assert declarations["line-height"] == "1.7"


class TestStyleParsing:
    """Tests for style attribute helpers."""

    def test_parse_style(self):
        assert parse_style("color: red;  margin:0 ; ;bad") == {"color": "red", "margin": "0"}

    def test_format_style(self):
        assert format_style({"color": "red", "margin": "0"}) == "color: red; margin: 0"

    def test_has_background(self):
        assert has_background({"background-color": "#fff"})
        assert not has_background({"color": "#fff"})
