# -*- coding: utf-8 -*-
"""
Admin API: post management, authoring sessions, analytics, site settings.
"""
import csv
import io
import logging
import math
from datetime import datetime
from typing import Literal

import httpx
from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from .auth import RequireSession
from .authoring import (
    AuthoringFlow,
    CollaboratorError,
    InvalidTransition,
    PostDraft,
    PublishValidationError,
    authoring_sessions,
    validate_for_publish,
)
from .config import settings
from .database import DuplicateSlugError, db
from .db_models import BlogStats, DailyViews, PaginatedPosts, Post, PostSummary, ViewAnalytics
from .gemini_client import GeminiClient
from .models import (
    ActionResult,
    AuthoringFormatRequest,
    AuthoringFormatResponse,
    AuthoringGenerateRequest,
    AuthoringPublishRequest,
    AuthoringSessionResponse,
    AuthoringStartRequest,
    AuthoringUpdateRequest,
    PaginatedSubscribers,
    PostCreate,
    PostUpdate,
    PreviewRequest,
    PreviewResponse,
    RewriteRequest,
    RewriteResponse,
    SiteSettingsResponse,
    SiteSettingsUpdate,
    TOCItemResponse,
    WordCountRequest,
    WordCountResponse,
)
from .renderer import RenderError, render_content
from .rewriter import RewriteError, get_rewriter
from .word_count import check_word_count

logger = logging.getLogger(__name__)

# FastAPI Router
router = APIRouter(prefix="/admin/api", tags=["admin"])


def _mask_key(key: str) -> str:
    return "***" + key[-4:] if key else "(not set)"


async def _get_post_or_404(post_id: str) -> dict:
    post = await db.get_post(post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


# =============================================================================
# Posts
# =============================================================================
@router.get("/posts")
async def list_posts(
        session: RequireSession,
        page: int = Query(1, ge=1),
        per_page: int = Query(20, ge=1, le=100),
        status: Literal["draft", "published"] | None = None,
        category: str | None = None,
        search: str | None = None,
        sort: Literal["latest", "top"] = "latest",
) -> PaginatedPosts:
    """All posts, drafts included."""
    posts, total = await db.list_posts(
        status=status,
        category=category,
        search=search,
        sort=sort,
        limit=per_page,
        offset=(page - 1) * per_page,
    )
    total_pages = math.ceil(total / per_page) if total > 0 else 1

    return PaginatedPosts(
        posts=[PostSummary(**post) for post in posts],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=total_pages,
    )


@router.get("/posts/{post_id}")
async def get_post(post_id: str, session: RequireSession) -> Post:
    return Post(**await _get_post_or_404(post_id))


@router.post("/posts", status_code=201)
async def create_post(request: PostCreate, session: RequireSession) -> Post:
    """
    Create a post directly.

    The word-count gate applies when the post is created as published.
    """
    site = await db.get_site_settings()
    draft = PostDraft(
        title=request.title,
        content=request.content,
        featured_image_url=request.featured_image_url or settings.DEFAULT_FEATURED_IMAGE,
    )
    try:
        validate_for_publish(draft, request.status, site.min_word_count)
        post = await db.create_post(request.model_dump())
    except PublishValidationError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except DuplicateSlugError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return Post(**post)


@router.put("/posts/{post_id}")
async def update_post(post_id: str, request: PostUpdate, session: RequireSession) -> Post:
    """
    Update a post.

    Setting status to "published" (or editing a published post) runs the
    word-count gate on the resulting content.
    """
    current = await _get_post_or_404(post_id)
    changes = request.model_dump(exclude_unset=True)

    status = changes.get("status") or current["status"]
    site = await db.get_site_settings()
    draft = PostDraft(
        title=changes.get("title") or current["title"],
        content=changes.get("content") or current["content"],
        featured_image_url=changes.get("featured_image_url") or current["featured_image_url"],
    )
    try:
        validate_for_publish(draft, status, site.min_word_count)
        post = await db.update_post(post_id, changes)
    except PublishValidationError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except DuplicateSlugError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return Post(**post)


@router.delete("/posts/{post_id}")
async def delete_post(post_id: str, session: RequireSession) -> ActionResult:
    if not await db.delete_post(post_id):
        raise HTTPException(status_code=404, detail="Post not found")
    return ActionResult(success=True, message="Post deleted")


@router.post("/posts/{post_id}/publish")
async def publish_post(post_id: str, session: RequireSession) -> Post:
    """Publish a draft, subject to the publish gate."""
    current = await _get_post_or_404(post_id)
    site = await db.get_site_settings()
    draft = PostDraft(
        title=current["title"],
        content=current["content"],
        featured_image_url=current["featured_image_url"],
    )
    try:
        validate_for_publish(draft, "published", site.min_word_count)
    except PublishValidationError as e:
        raise HTTPException(status_code=422, detail=e.message)

    post = await db.update_post(post_id, {"status": "published"})
    logger.info("Post published", extra={"post_id": post_id})
    return Post(**post)


@router.post("/posts/{post_id}/unpublish")
async def unpublish_post(post_id: str, session: RequireSession) -> Post:
    await _get_post_or_404(post_id)
    post = await db.update_post(post_id, {"status": "draft"})
    logger.info("Post unpublished", extra={"post_id": post_id})
    return Post(**post)


# =============================================================================
# Content tools
# =============================================================================
@router.post("/rewrite")
async def rewrite(request: RewriteRequest, session: RequireSession) -> RewriteResponse:
    """Rewrite a job posting (text or URL) into a blog post with Gemini."""
    site = await db.get_site_settings()
    try:
        result = await get_rewriter().rewrite(
            request.source_text,
            source_kind=request.source_kind,
            api_key=site.gemini_api_key or None,
            min_words=site.min_word_count,
        )
    except RewriteError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return RewriteResponse(
        title=result.title,
        content=result.content,
        word_count=result.word_count,
        used_fallback=result.used_fallback,
    )


@router.post("/preview")
async def preview(request: PreviewRequest, session: RequireSession) -> PreviewResponse:
    """Render content the way the post page will show it. Nothing is stored."""
    try:
        rendered = render_content(request.content, request.content_format)
    except RenderError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return PreviewResponse(
        html=rendered.html,
        toc=[TOCItemResponse(id=item.id, text=item.text, level=item.level) for item in rendered.toc],
        content_format=rendered.content_format,
        word_count=check_word_count(request.content).count,
    )


@router.post("/word-count")
async def word_count(request: WordCountRequest, session: RequireSession) -> WordCountResponse:
    minimum = request.minimum or (await db.get_site_settings()).min_word_count
    result = check_word_count(request.content, minimum)
    return WordCountResponse(
        count=result.count,
        minimum=result.minimum,
        meets_minimum=result.meets_minimum,
        words_needed=result.words_needed,
    )


# =============================================================================
# Authoring sessions
# =============================================================================
def _session_response(session_id: str, flow: AuthoringFlow) -> AuthoringSessionResponse:
    return AuthoringSessionResponse(session_id=session_id, **flow.snapshot())


def _get_flow_or_404(session_id: str) -> AuthoringFlow:
    flow = authoring_sessions.get(session_id)
    if flow is None:
        raise HTTPException(status_code=404, detail="Authoring session not found")
    return flow


@router.post("/authoring", status_code=201)
async def start_authoring(
        request: AuthoringStartRequest, session: RequireSession
) -> AuthoringSessionResponse:
    """Open an authoring session for a new post or an existing one."""
    site = await db.get_site_settings()
    options = {
        "min_word_count": site.min_word_count,
        "api_key": site.gemini_api_key or None,
    }
    if request.post_id:
        post = await _get_post_or_404(request.post_id)
        flow = AuthoringFlow.for_existing_post(post, get_rewriter(), db, **options)
    else:
        flow = AuthoringFlow(get_rewriter(), db, **options)

    session_id = authoring_sessions.add(flow)
    logger.info("Authoring session started", extra={"session_id": session_id})
    return _session_response(session_id, flow)


@router.get("/authoring/{session_id}")
async def get_authoring(session_id: str, session: RequireSession) -> AuthoringSessionResponse:
    return _session_response(session_id, _get_flow_or_404(session_id))


@router.post("/authoring/{session_id}/skip")
async def authoring_skip(session_id: str, session: RequireSession) -> AuthoringSessionResponse:
    flow = _get_flow_or_404(session_id)
    try:
        flow.skip()
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _session_response(session_id, flow)


@router.post("/authoring/{session_id}/generate")
async def authoring_generate(
        session_id: str, request: AuthoringGenerateRequest, session: RequireSession
) -> AuthoringSessionResponse:
    flow = _get_flow_or_404(session_id)
    try:
        await flow.generate(request.source_text, request.source_kind)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CollaboratorError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return _session_response(session_id, flow)


@router.patch("/authoring/{session_id}")
async def authoring_update(
        session_id: str, request: AuthoringUpdateRequest, session: RequireSession
) -> AuthoringSessionResponse:
    flow = _get_flow_or_404(session_id)
    try:
        flow.update(**request.model_dump(exclude_unset=True))
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _session_response(session_id, flow)


@router.post("/authoring/{session_id}/format")
async def authoring_format(
        session_id: str, request: AuthoringFormatRequest, session: RequireSession
) -> AuthoringFormatResponse:
    flow = _get_flow_or_404(session_id)
    try:
        cursor = flow.insert_formatting(request.kind, request.start, request.end, link=request.link)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    return AuthoringFormatResponse(cursor=cursor, content=flow.draft.content)


@router.post("/authoring/{session_id}/preview")
async def authoring_preview(session_id: str, session: RequireSession) -> PreviewResponse:
    flow = _get_flow_or_404(session_id)
    try:
        rendered = flow.preview()
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except RenderError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return PreviewResponse(
        html=rendered.html,
        toc=[TOCItemResponse(id=item.id, text=item.text, level=item.level) for item in rendered.toc],
        content_format=rendered.content_format,
        word_count=flow.word_count.count,
    )


@router.post("/authoring/{session_id}/back")
async def authoring_back(session_id: str, session: RequireSession) -> AuthoringSessionResponse:
    flow = _get_flow_or_404(session_id)
    try:
        flow.back()
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _session_response(session_id, flow)


@router.post("/authoring/{session_id}/publish")
async def authoring_publish(
        session_id: str, request: AuthoringPublishRequest, session: RequireSession
) -> AuthoringSessionResponse:
    """Publish or save as draft. The session is kept so the result can be read back."""
    flow = _get_flow_or_404(session_id)
    try:
        await flow.publish(request.status)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PublishValidationError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except DuplicateSlugError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CollaboratorError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return _session_response(session_id, flow)


@router.delete("/authoring/{session_id}")
async def close_authoring(session_id: str, session: RequireSession) -> ActionResult:
    if not authoring_sessions.discard(session_id):
        raise HTTPException(status_code=404, detail="Authoring session not found")
    return ActionResult(success=True, message="Authoring session closed")


# =============================================================================
# Statistics & analytics
# =============================================================================
@router.get("/stats")
async def get_stats(session: RequireSession) -> BlogStats:
    stats = await db.get_stats()
    return BlogStats(**stats)


@router.get("/analytics")
async def get_analytics(
        session: RequireSession,
        post_id: str | None = None,
        days: int = Query(30, ge=1, le=365),
) -> ViewAnalytics:
    """Views per day, for one post or the whole blog."""
    title = None
    if post_id:
        title = (await _get_post_or_404(post_id))["title"]

    daily = await db.get_daily_views(post_id=post_id, days=days)
    return ViewAnalytics(
        post_id=post_id,
        title=title,
        total_views=sum(day["views"] for day in daily),
        days=days,
        daily=[DailyViews(**day) for day in daily],
    )


# =============================================================================
# Site settings
# =============================================================================
def _settings_response(site) -> SiteSettingsResponse:
    return SiteSettingsResponse(
        min_word_count=site.min_word_count,
        theme=site.theme,
        gemini_api_key_set=site.has_gemini_key,
        gemini_api_key_masked=_mask_key(site.gemini_api_key),
    )


@router.get("/settings")
async def get_settings(session: RequireSession) -> SiteSettingsResponse:
    return _settings_response(await db.get_site_settings())


@router.put("/settings")
async def update_settings(request: SiteSettingsUpdate, session: RequireSession) -> SiteSettingsResponse:
    values = request.model_dump(exclude_none=True)
    if not values:
        return _settings_response(await db.get_site_settings())
    try:
        site = await db.update_site_settings(**values)
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _settings_response(site)


@router.post("/settings/test-gemini")
async def test_gemini(session: RequireSession) -> ActionResult:
    """Send a tiny prompt to Gemini with the effective API key."""
    site = await db.get_site_settings()
    if not site.has_gemini_key:
        return ActionResult(success=False, message="Gemini API key not configured")

    client = GeminiClient(api_key=site.gemini_api_key)
    try:
        reply = await client.generate("Reply with the single word: OK")
    except httpx.HTTPStatusError as e:
        return ActionResult(
            success=False,
            message=f"Gemini returned HTTP {e.response.status_code}",
        )
    except httpx.HTTPError as e:
        return ActionResult(success=False, message=f"Gemini is unreachable: {e}")
    except ValueError:
        return ActionResult(success=False, message="Gemini returned an invalid response")

    return ActionResult(
        success=True,
        message="Gemini API key works",
        details={"model": client.model_name, "reply": reply.strip()[:50]},
    )


# =============================================================================
# Newsletter
# =============================================================================
@router.get("/subscribers")
async def list_subscribers(
        session: RequireSession,
        limit: int = Query(100, ge=1, le=1000),
        offset: int = Query(0, ge=0),
) -> PaginatedSubscribers:
    subscribers, total = await db.list_subscribers(limit=limit, offset=offset)
    return PaginatedSubscribers(subscribers=subscribers, total=total)


@router.get("/subscribers/export")
async def export_subscribers(session: RequireSession):
    """Export subscriber emails to CSV."""
    subscribers, _ = await db.list_subscribers(limit=100000)

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Email", "Subscribed At"])
    for subscriber in subscribers:
        writer.writerow([subscriber["email"], subscriber["created_at"]])

    output.seek(0)

    filename = f"subscribers_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"

    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
