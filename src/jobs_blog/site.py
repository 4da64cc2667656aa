# -*- coding: utf-8 -*-
"""
Server-rendered pages: home, post page, login and the not-found view.
"""
import logging
import math

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from .config import settings
from .database import db
from .renderer import RenderError, render_content

logger = logging.getLogger(__name__)

router = APIRouter(tags=["site"], include_in_schema=False)

templates = Jinja2Templates(directory=str(settings.SITE_TEMPLATES_DIR))

HOME_PAGE_SIZE = 12


def render_not_found(request: Request) -> HTMLResponse:
    """The not-found view, with a link back home."""
    return templates.TemplateResponse(request, "not_found.html", {}, status_code=404)


@router.get("/", response_class=HTMLResponse)
async def home(
        request: Request,
        page: int = Query(1, ge=1),
        search: str | None = None,
        category: str | None = None,
):
    """Latest published posts."""
    posts, total = await db.list_posts(
        status="published",
        category=category or None,
        search=search or None,
        limit=HOME_PAGE_SIZE,
        offset=(page - 1) * HOME_PAGE_SIZE,
    )
    site = await db.get_site_settings()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "posts": posts,
            "page": page,
            "total_pages": math.ceil(total / HOME_PAGE_SIZE) if total > 0 else 1,
            "search": search or "",
            "category": category or "",
            "categories": settings.POST_CATEGORIES,
            "theme": site.theme,
        },
    )


@router.get("/blog/{slug}", response_class=HTMLResponse)
async def post_page(request: Request, slug: str):
    """A published post with its table of contents. Each page load counts as a view."""
    post = await db.get_post_by_slug(slug)
    if not post:
        return render_not_found(request)

    try:
        rendered = render_content(post["content"])
    except RenderError as e:
        logger.error(f"Rendering failed for post {slug}: {e}")
        return render_not_found(request)

    post["view_count"] = await db.increment_views(post["id"]) or post["view_count"]
    recent, _ = await db.list_posts(status="published", exclude_id=post["id"], limit=6)
    site = await db.get_site_settings()

    return templates.TemplateResponse(
        request,
        "post.html",
        {
            "post": post,
            "content_html": rendered.html,
            "toc": rendered.toc,
            "recent": recent,
            "theme": site.theme,
        },
    )


@router.get("/auth/login", response_class=HTMLResponse)
async def login_page(request: Request, next_url: str = Query("/", alias="next")):
    """Admin login form."""
    return templates.TemplateResponse(request, "login.html", {"next": next_url})
