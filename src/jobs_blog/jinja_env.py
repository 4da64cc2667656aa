# -*- coding: utf-8 -*-
"""
Jinja2 environment for AI prompt templates.
"""
import re
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, Template

from .config import settings

# Variables holding author/source text that must never be interpreted by Jinja2
RAW_CONTENT_VARS = ("source_text",)


class CleanTemplate(Template):
    """Template that collapses runs of blank lines in its output."""

    _EXCESS_NEWLINES = re.compile(r"\n{3,}")

    def render(self, *args, **kwargs) -> str:
        output = super().render(*args, **kwargs)
        return self._EXCESS_NEWLINES.sub("\n\n", output).strip()


def create_prompt_env(template_dir: Path | str | None = None) -> Environment:
    """
    Create the Jinja2 environment used for prompts.

    Args:
        template_dir: Templates directory. Defaults to settings.PROMPTS_DIR.
    """
    template_dir = Path(template_dir or settings.PROMPTS_DIR)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=False,
        autoescape=False,  # prompts are plain text
        undefined=StrictUndefined,
    )
    env.template_class = CleanTemplate
    return env


_default_env: Environment | None = None


def get_prompt_env() -> Environment:
    """Get or create the default prompt environment."""
    global _default_env
    if _default_env is None:
        _default_env = create_prompt_env()
    return _default_env


def render_prompt(template_name: str, **context) -> str:
    """
    Render a prompt template.

    Raw content variables are swapped for placeholders before rendering and
    substituted afterwards, so text such as ``{{ salary }}`` in a pasted job
    posting reaches the model verbatim.
    """
    placeholders = {}
    safe_context = {}

    for key, value in context.items():
        if key in RAW_CONTENT_VARS and isinstance(value, str):
            placeholder = f"__RAW_{key.upper()}__"
            placeholders[placeholder] = value
            safe_context[key] = placeholder
        else:
            safe_context[key] = value

    result = get_prompt_env().get_template(template_name).render(**safe_context)

    for placeholder, value in placeholders.items():
        result = result.replace(placeholder, value)

    return result
