# -*- coding: utf-8 -*-
"""
Pydantic data models for the API.
"""
from typing import Any, Literal

from pydantic import BaseModel, EmailStr, Field

from .db_models import PostStatus
from .formatting import FormatKind

ContentFormat = Literal["auto", "markdown", "html"]


# =============================================================================
# Posts
# =============================================================================
class PostCreate(BaseModel):
    """New post. Missing author and featured image get their defaults."""

    title: str = Field(..., min_length=1, max_length=300)
    content: str = ""
    featured_image_url: str | None = None
    author: str | None = None
    status: PostStatus = "draft"
    category: str | None = None
    application_link: str | None = None


class PostUpdate(BaseModel):
    """Partial post update. Only the fields that are set are changed."""

    title: str | None = Field(default=None, max_length=300)
    content: str | None = None
    featured_image_url: str | None = None
    author: str | None = None
    status: PostStatus | None = None
    category: str | None = None
    application_link: str | None = None


class TOCItemResponse(BaseModel):
    """Table of contents entry."""

    id: str
    text: str
    level: int


class RenderedPostResponse(BaseModel):
    """Published post with its display HTML."""

    post: dict[str, Any]
    html: str
    toc: list[TOCItemResponse]
    word_count: int
    content_format: str


class ViewCountResponse(BaseModel):
    slug: str
    view_count: int


# =============================================================================
# Content tools
# =============================================================================
class RewriteRequest(BaseModel):
    """AI rewrite of a job posting."""

    source_text: str = Field(..., description="Raw posting text, or a URL")
    source_kind: Literal["url", "text"] = "text"


class RewriteResponse(BaseModel):
    title: str
    content: str
    word_count: int
    used_fallback: bool = False


class PreviewRequest(BaseModel):
    content: str
    content_format: ContentFormat = "auto"


class PreviewResponse(BaseModel):
    html: str
    toc: list[TOCItemResponse]
    content_format: str
    word_count: int


class WordCountRequest(BaseModel):
    content: str
    minimum: int | None = Field(default=None, ge=1)


class WordCountResponse(BaseModel):
    count: int
    minimum: int
    meets_minimum: bool
    words_needed: int


# =============================================================================
# Authoring sessions
# =============================================================================
class AuthoringStartRequest(BaseModel):
    """Start a new post, or edit an existing one when post_id is given."""

    post_id: str | None = None


class AuthoringGenerateRequest(BaseModel):
    source_text: str
    source_kind: Literal["url", "text"] = "text"


class AuthoringUpdateRequest(BaseModel):
    """Fields to change. Only category and application_link may be cleared with null."""

    title: str = ""
    content: str = ""
    category: str | None = None
    featured_image_url: str = ""
    application_link: str | None = None
    author: str = ""
    content_format: ContentFormat = "auto"


class AuthoringFormatRequest(BaseModel):
    kind: FormatKind
    start: int = Field(..., ge=0)
    end: int | None = Field(default=None, ge=0)
    link: str | None = None


class AuthoringFormatResponse(BaseModel):
    cursor: int
    content: str


class AuthoringPublishRequest(BaseModel):
    status: PostStatus = "published"


class AuthoringSessionResponse(BaseModel):
    """Current state of an authoring session."""

    session_id: str
    state: Literal["input", "setup", "preview", "done"]
    post_id: str | None = None
    draft: dict[str, Any]
    word_count: int
    min_word_count: int
    meets_minimum: bool
    used_fallback: bool = False
    record: dict[str, Any] | None = None


# =============================================================================
# Auth
# =============================================================================
class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)


class TokenResponse(BaseModel):
    success: bool = True
    token: str
    email: str
    expires_at: str


# =============================================================================
# Newsletter & site
# =============================================================================
class SubscribeRequest(BaseModel):
    email: EmailStr


class SubscribeResponse(BaseModel):
    success: bool = True
    already_subscribed: bool = False
    message: str


class PaginatedSubscribers(BaseModel):
    subscribers: list[dict[str, Any]]
    total: int


class SiteSettingsUpdate(BaseModel):
    """Admin-editable settings. Unset fields are left unchanged."""

    min_word_count: int | None = Field(default=None, ge=1)
    theme: Literal["light", "dark"] | None = None
    gemini_api_key: str | None = None


class SiteSettingsResponse(BaseModel):
    """Settings as shown to admins (API key masked)."""

    min_word_count: int
    theme: str
    gemini_api_key_set: bool
    gemini_api_key_masked: str


class PublicSiteResponse(BaseModel):
    theme: str
    categories: list[str]


class ActionResult(BaseModel):
    """Result of an admin action."""

    success: bool
    message: str
    details: dict | None = None


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    version: str
    database_ready: bool = False
    gemini_configured: bool = False
