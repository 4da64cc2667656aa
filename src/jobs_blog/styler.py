# -*- coding: utf-8 -*-
"""
Presentational inline styles for preview and published post HTML.
"""
from bs4 import BeautifulSoup

# Declarations applied per tag, in output order
STYLE_RULES: dict[str, list[tuple[str, str]]] = {
    "h1": [
        ("font-size", "2rem"),
        ("font-weight", "bold"),
        ("margin", "32px 0 16px"),
        ("color", "#1f2937"),
    ],
    "h2": [
        ("font-size", "1.75rem"),
        ("font-weight", "bold"),
        ("margin", "24px 0 12px"),
        ("color", "#1f2937"),
        ("border-bottom", "2px solid #e5e7eb"),
        ("padding-bottom", "8px"),
    ],
    "h3": [
        ("font-size", "1.5rem"),
        ("font-weight", "600"),
        ("margin", "20px 0 10px"),
        ("color", "#374151"),
    ],
    "h4": [
        ("font-size", "1.25rem"),
        ("font-weight", "600"),
        ("margin", "16px 0 8px"),
        ("color", "#4b5563"),
    ],
    "p": [
        ("margin", "16px 0"),
        ("line-height", "1.7"),
        ("color", "#374151"),
    ],
    "ul": [
        ("margin", "16px 0"),
        ("padding-left", "24px"),
        ("color", "#374151"),
    ],
    "ol": [
        ("margin", "16px 0"),
        ("padding-left", "24px"),
        ("color", "#374151"),
    ],
    "li": [
        ("margin", "8px 0"),
    ],
    "a": [
        ("color", "#2563eb"),
        ("text-decoration", "underline"),
    ],
    "strong": [
        ("font-weight", "700"),
        ("color", "#1f2937"),
    ],
    "img": [
        ("max-width", "100%"),
        ("height", "auto"),
        ("border-radius", "8px"),
        ("margin", "16px 0"),
    ],
}


def parse_style(style: str) -> dict[str, str]:
    """Parse an inline style attribute into an ordered property map."""
    declarations: dict[str, str] = {}
    for chunk in style.split(";"):
        prop, sep, value = chunk.partition(":")
        if sep and prop.strip():
            declarations[prop.strip().lower()] = value.strip()
    return declarations


def format_style(declarations: dict[str, str]) -> str:
    return "; ".join(f"{prop}: {value}" for prop, value in declarations.items())


def has_background(declarations: dict[str, str]) -> bool:
    """CTA buttons are marked by an inline background."""
    return any(prop.startswith("background") for prop in declarations)


def apply_styles(html: str) -> str:
    """
    Add inline presentational styles to known structural tags.

    Declarations the author already wrote win over the defaults, and elements
    carrying an inline background are left untouched, so running this twice
    gives the same result as running it once.
    """
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup.find_all(list(STYLE_RULES)):
        declarations = parse_style(tag.get("style", ""))
        if has_background(declarations):
            continue

        missing = [(p, v) for p, v in STYLE_RULES[tag.name] if p not in declarations]
        if not missing:
            continue

        declarations.update(missing)
        tag["style"] = format_style(declarations)

    return str(soup)
