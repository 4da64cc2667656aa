# -*- coding: utf-8 -*-
"""
Pydantic models for stored records.
"""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PostStatus = Literal["draft", "published"]


class PostBase(BaseModel):
    """Author-controlled post fields."""

    title: str
    content: str
    featured_image_url: str
    author: str
    status: PostStatus = "draft"
    category: str | None = None
    application_link: str | None = None


class Post(PostBase):
    """Complete post record with derived fields."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    excerpt: str
    view_count: int = Field(default=0, ge=0)
    created_at: datetime
    updated_at: datetime | None = None


class PostSummary(BaseModel):
    """Post without its body, for listings."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    slug: str
    excerpt: str
    featured_image_url: str
    author: str
    status: PostStatus
    category: str | None = None
    application_link: str | None = None
    view_count: int = 0
    created_at: datetime


class PaginatedPosts(BaseModel):
    """Paginated post listing."""

    posts: list[PostSummary]
    total: int
    page: int
    per_page: int
    total_pages: int


class DailyViews(BaseModel):
    """Views aggregated for one day."""

    date: str
    views: int


class BlogStats(BaseModel):
    """Admin dashboard counters."""

    total_posts: int = 0
    published_count: int = 0
    draft_count: int = 0
    total_views: int = 0


class ViewAnalytics(BaseModel):
    """Per-day views for one post or the whole blog."""

    post_id: str | None = None
    title: str | None = None
    total_views: int = 0
    days: int
    daily: list[DailyViews] = Field(default_factory=list)


class AdminUser(BaseModel):
    """Admin account (password hash never leaves the server)."""

    id: str
    email: str
    created_at: datetime


class Subscriber(BaseModel):
    """Newsletter subscription."""

    id: str
    email: str
    created_at: datetime


class SiteSettings(BaseModel):
    """
    Runtime-editable settings stored in the database.

    Unset keys fall back to the environment configuration.
    """

    min_word_count: int = Field(default=1000, ge=1)
    theme: Literal["light", "dark"] = "light"
    gemini_api_key: str = ""

    @property
    def has_gemini_key(self) -> bool:
        return bool(self.gemini_api_key)
