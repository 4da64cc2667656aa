# -*- coding: utf-8 -*-
"""
Minimal HTML sanitizer for author-supplied post content.

Removes script-like elements, inline event handlers and javascript: URLs.
This is NOT a full allowlist sanitizer: it does not validate URLs in general
and keeps style attributes. Content from untrusted authors needs a hardened
sanitizer on top of this pass.
"""
import re

from bs4 import BeautifulSoup

# Elements removed together with their content
REMOVED_TAGS = ["script", "iframe", "object", "embed"]

# Attributes that may carry a navigable URL
URL_ATTRIBUTES = ["href", "src", "action", "formaction", "xlink:href"]

# Browsers ignore whitespace and control characters inside the scheme
_URL_NOISE = re.compile(r"[\x00-\x20]+")


def _is_javascript_url(value: str) -> bool:
    return _URL_NOISE.sub("", value).lower().startswith("javascript:")


def sanitize_html(html: str) -> str:
    """
    Strip unsafe markup from an HTML fragment.

    - removes <script>, <iframe>, <object> and <embed> elements outright
    - removes every attribute whose name starts with "on"
    - removes URL attributes using the javascript: scheme

    Everything else is serialized back unchanged.
    """
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup.find_all(REMOVED_TAGS):
        tag.decompose()

    for tag in soup.find_all(True):
        for attr in list(tag.attrs):
            if attr.lower().startswith("on"):
                del tag[attr]
            elif attr.lower() in URL_ATTRIBUTES and _is_javascript_url(str(tag[attr])):
                del tag[attr]

    return str(soup)
