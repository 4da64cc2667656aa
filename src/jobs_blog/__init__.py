# -*- coding: utf-8 -*-
"""
Jobs Blog Service - job-posting blog with AI-assisted authoring on FastAPI.
"""
__version__ = "1.0.0"

from .api import app  # noqa: E402
from .authoring import AuthoringFlow, FlowState  # noqa: E402

__all__ = ["app", "AuthoringFlow", "FlowState", "__version__"]
