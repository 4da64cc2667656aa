# -*- coding: utf-8 -*-
"""
Public JSON API: published posts, views, newsletter.
"""
import logging
import math
from typing import Literal

from fastapi import APIRouter, HTTPException, Query

from .config import settings
from .database import db
from .db_models import PaginatedPosts, Post, PostSummary
from .models import (
    PublicSiteResponse,
    RenderedPostResponse,
    SubscribeRequest,
    SubscribeResponse,
    TOCItemResponse,
    ViewCountResponse,
)
from .renderer import RenderError, render_content
from .word_count import count_words

logger = logging.getLogger(__name__)

# FastAPI Router
router = APIRouter(prefix="/api", tags=["public"])

TRENDING_LIMIT = 10
RECENT_PAGE_SIZE = 6


def _paginate(posts: list[dict], total: int, page: int, per_page: int) -> PaginatedPosts:
    total_pages = math.ceil(total / per_page) if total > 0 else 1
    return PaginatedPosts(
        posts=[PostSummary(**post) for post in posts],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=total_pages,
    )


async def _get_published_or_404(slug: str) -> dict:
    post = await db.get_post_by_slug(slug)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


@router.get("/posts")
async def list_posts(
        page: int = Query(1, ge=1),
        per_page: int = Query(12, ge=1, le=100),
        search: str | None = None,
        category: str | None = None,
        sort: Literal["latest", "top"] = "latest",
) -> PaginatedPosts:
    """Published posts, newest (or most viewed) first."""
    posts, total = await db.list_posts(
        status="published",
        category=category,
        search=search,
        sort=sort,
        limit=per_page,
        offset=(page - 1) * per_page,
    )
    return _paginate(posts, total, page, per_page)


@router.get("/posts/trending")
async def trending_posts() -> list[PostSummary]:
    """Most viewed published posts."""
    posts, _ = await db.list_posts(status="published", sort="top", limit=TRENDING_LIMIT)
    return [PostSummary(**post) for post in posts]


@router.get("/posts/{slug}")
async def get_post(slug: str) -> RenderedPostResponse:
    """Published post with rendered HTML and table of contents."""
    post = await _get_published_or_404(slug)
    try:
        rendered = render_content(post["content"])
    except RenderError as e:
        logger.error(f"Rendering failed for post {slug}: {e}")
        raise HTTPException(status_code=500, detail="Post could not be rendered")

    return RenderedPostResponse(
        post=Post(**post).model_dump(mode="json"),
        html=rendered.html,
        toc=[TOCItemResponse(id=item.id, text=item.text, level=item.level) for item in rendered.toc],
        word_count=count_words(post["content"]),
        content_format=rendered.content_format,
    )


@router.post("/posts/{slug}/view")
async def record_view(slug: str) -> ViewCountResponse:
    """Count one view of a published post."""
    post = await _get_published_or_404(slug)
    view_count = await db.increment_views(post["id"])
    if view_count is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return ViewCountResponse(slug=slug, view_count=view_count)


@router.get("/posts/{slug}/recent")
async def recent_posts(
        slug: str,
        page: int = Query(1, ge=1),
        per_page: int = Query(RECENT_PAGE_SIZE, ge=1, le=50),
) -> PaginatedPosts:
    """Latest published posts other than the one being read."""
    post = await _get_published_or_404(slug)
    posts, total = await db.list_posts(
        status="published",
        exclude_id=post["id"],
        limit=per_page,
        offset=(page - 1) * per_page,
    )
    return _paginate(posts, total, page, per_page)


@router.post("/newsletter")
async def subscribe(request: SubscribeRequest) -> SubscribeResponse:
    """Subscribe to the newsletter. Subscribing twice is not an error."""
    if not await db.add_subscriber(request.email):
        return SubscribeResponse(
            already_subscribed=True,
            message="You're already subscribed to our newsletter.",
        )

    logger.info("Newsletter subscription added")
    return SubscribeResponse(message="Thanks for subscribing!")


@router.get("/site")
async def site_info() -> PublicSiteResponse:
    """Public site preferences."""
    site = await db.get_site_settings()
    return PublicSiteResponse(theme=site.theme, categories=settings.POST_CATEGORIES)
