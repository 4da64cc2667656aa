# -*- coding: utf-8 -*-
"""
Tests for the database module.
"""
import asyncio
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from jobs_blog.config import settings
from jobs_blog.database import Database, DuplicateEmailError, DuplicateSlugError


@pytest.mark.asyncio
class TestDatabaseInitialization:
    """Tests for database initialization."""

    async def test_database_initializes(self, test_db):
        """Database should initialize successfully."""
        assert test_db.is_initialized is True

    async def test_database_creates_tables(self, test_db):
        """Database should create required tables."""
        async with test_db._db.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        ) as cursor:
            tables = {row[0] for row in await cursor.fetchall()}

        assert {
            "posts",
            "post_daily_views",
            "admin_users",
            "newsletter_subscriptions",
            "site_settings",
        } <= tables

    async def test_uninitialized_database_raises(self):
        """Queries before initialize should raise."""
        with pytest.raises(RuntimeError, match="not initialized"):
            await Database().get_post("any")


@pytest.mark.asyncio
class TestPostOperations:
    """Tests for post CRUD operations."""

    async def test_create_post_derives_fields(self, test_db, sample_post_data):
        """Should derive id, slug and excerpt."""
        post = await test_db.create_post(sample_post_data)

        assert len(post["id"]) == 36  # UUID format
        assert post["slug"] == "senior-python-developer-at-acme"
        assert post["excerpt"]
        assert post["view_count"] == 0
        assert post["status"] == "published"
        assert post["created_at"]

    async def test_create_post_defaults(self, test_db):
        """Should fill default author, image and status."""
        post = await test_db.create_post({"title": "Quick Draft", "content": "Body"})

        assert post["status"] == "draft"
        assert post["author"] == settings.DEFAULT_AUTHOR
        assert post["featured_image_url"] == settings.DEFAULT_FEATURED_IMAGE
        assert post["category"] is None

    async def test_duplicate_slug(self, test_db, sample_post_data):
        """Should raise DuplicateSlugError for a taken slug."""
        await test_db.create_post(sample_post_data)
        with pytest.raises(DuplicateSlugError):
            await test_db.create_post({**sample_post_data, "title": "Senior Python Developer at ACME!"})

    async def test_title_without_letters_rejected(self, test_db):
        """Titles without letters should be rejected."""
        with pytest.raises(ValueError):
            await test_db.create_post({"title": "!!!", "content": "Body"})

    async def test_get_post_by_slug_published_only(self, test_db):
        """Slug lookup should hide drafts by default."""
        await test_db.create_post({"title": "Hidden", "content": "Body", "status": "draft"})

        assert await test_db.get_post_by_slug("hidden") is None
        assert await test_db.get_post_by_slug("hidden", published_only=False) is not None

    async def test_update_post_rederives_slug_and_excerpt(self, test_db, sample_post_data):
        """Should re-derive slug and excerpt on update."""
        post = await test_db.create_post(sample_post_data)

        updated = await test_db.update_post(
            post["id"], {"title": "Lead Python Developer", "content": "New body"}
        )

        assert updated["slug"] == "lead-python-developer"
        assert updated["excerpt"] == "New body"
        assert updated["updated_at"] is not None

    async def test_update_ignores_empty_required_fields(self, test_db, sample_post_data):
        """Empty required fields should be ignored."""
        post = await test_db.create_post(sample_post_data)

        updated = await test_db.update_post(post["id"], {"title": "", "author": None})

        assert updated["title"] == sample_post_data["title"]
        assert updated["author"] == sample_post_data["author"]

    async def test_update_clears_optional_fields(self, test_db, sample_post_data):
        """Empty optional fields should be cleared."""
        post = await test_db.create_post(sample_post_data)
        updated = await test_db.update_post(post["id"], {"category": None, "application_link": ""})
        assert updated["category"] is None
        assert updated["application_link"] is None

    async def test_update_nonexistent_post(self, test_db):
        """Should return None for a missing post."""
        assert await test_db.update_post("missing", {"title": "New"}) is None

    async def test_delete_post(self, test_db, sample_post_data):
        """Should delete a post by its ID."""
        post = await test_db.create_post(sample_post_data)

        assert await test_db.delete_post(post["id"]) is True
        assert await test_db.get_post(post["id"]) is None
        assert await test_db.delete_post(post["id"]) is False


@pytest.mark.asyncio
class TestListPosts:
    """Tests for filtering, search and pagination."""

    async def _seed(self, db):
        await db.create_post({"title": "Python Developer", "content": "Django work", "status": "published", "category": "full-time"})
        await db.create_post({"title": "Weekend Barista", "content": "Coffee", "status": "published", "category": "part-time"})
        await db.create_post({"title": "Draft Role", "content": "Secret", "status": "draft"})

    async def test_filter_by_status(self, test_db):
        """Should filter by status."""
        await self._seed(test_db)
        posts, total = await test_db.list_posts(status="published")
        assert total == 2
        assert {p["status"] for p in posts} == {"published"}

    async def test_filter_by_category(self, test_db):
        """Should filter by category."""
        await self._seed(test_db)
        posts, total = await test_db.list_posts(category="part-time")
        assert total == 1
        assert posts[0]["title"] == "Weekend Barista"

    async def test_search_title_and_content(self, test_db):
        """Search should match title or content."""
        await self._seed(test_db)
        _, by_title = await test_db.list_posts(search="barista")
        _, by_content = await test_db.list_posts(search="django")
        assert by_title == 1
        assert by_content == 1

    async def test_search_wildcards_are_literal(self, test_db):
        """Percent and underscore in search text match themselves only."""
        await test_db.create_post({"title": "Sales Rep 100% Commission", "content": "Body"})
        await test_db.create_post({"title": "Data Engineer", "content": "uses snake_case names"})
        await test_db.create_post({"title": "Plain Role", "content": "nothing special"})

        _, percent = await test_db.list_posts(search="%")
        _, underscore = await test_db.list_posts(search="_")

        assert percent == 1
        assert underscore == 1

    async def test_latest_first(self, test_db):
        """Newest posts should come first."""
        await self._seed(test_db)
        posts, _ = await test_db.list_posts()
        assert posts[0]["title"] == "Draft Role"

    async def test_sort_by_views(self, test_db):
        """Top sort should order by views."""
        await self._seed(test_db)
        posts, _ = await test_db.list_posts(status="published")
        barista = next(p for p in posts if p["title"] == "Weekend Barista")
        await test_db.increment_views(barista["id"])

        top, _ = await test_db.list_posts(status="published", sort="top")
        assert top[0]["id"] == barista["id"]

    async def test_pagination_and_exclusion(self, test_db):
        """Should paginate and exclude a post."""
        await self._seed(test_db)
        first, total = await test_db.list_posts(limit=2, offset=0)
        second, _ = await test_db.list_posts(limit=2, offset=2)
        assert total == 3
        assert len(first) == 2
        assert len(second) == 1

        others, other_total = await test_db.list_posts(exclude_id=first[0]["id"])
        assert other_total == 2
        assert first[0]["id"] not in {p["id"] for p in others}


@pytest.mark.asyncio
class TestViews:
    """Tests for view counting and analytics."""

    async def test_increment_views(self, test_db, sample_post_data):
        """Should return the new count."""
        post = await test_db.create_post(sample_post_data)

        assert await test_db.increment_views(post["id"]) == 1
        assert await test_db.increment_views(post["id"]) == 2

    async def test_increment_nonexistent(self, test_db):
        """Should return None for a missing post."""
        assert await test_db.increment_views("missing") is None

    async def test_concurrent_increments_are_not_lost(self, test_db, sample_post_data):
        """Concurrent increments should all be counted."""
        post = await test_db.create_post(sample_post_data)

        await asyncio.gather(*(test_db.increment_views(post["id"]) for _ in range(20)))

        stored = await test_db.get_post(post["id"])
        assert stored["view_count"] == 20

    async def test_daily_views(self, test_db, sample_post_data):
        """Views should be bucketed per UTC day."""
        post = await test_db.create_post(sample_post_data)
        for _ in range(3):
            await test_db.increment_views(post["id"])

        daily = await test_db.get_daily_views(post_id=post["id"], days=7)
        assert len(daily) == 1
        assert daily[0]["views"] == 3
        assert daily[0]["date"] == datetime.now(timezone.utc).date().isoformat()

    async def test_stats(self, test_db, sample_post_data):
        """Should count posts by status and total views."""
        post = await test_db.create_post(sample_post_data)
        await test_db.create_post({"title": "A draft", "content": "Body"})
        await test_db.increment_views(post["id"])

        stats = await test_db.get_stats()
        assert stats == {
            "total_posts": 2,
            "published_count": 1,
            "draft_count": 1,
            "total_views": 1,
        }

    async def test_stats_empty(self, test_db):
        """An empty blog should report zeros."""
        stats = await test_db.get_stats()
        assert stats["total_posts"] == 0
        assert stats["total_views"] == 0


@pytest.mark.asyncio
class TestAdminUsers:
    """Tests for admin accounts."""

    async def test_create_and_get(self, test_db):
        """Emails should be stored lowercase."""
        await test_db.create_admin_user("Admin@Example.com", "hash")

        user = await test_db.get_admin_user_by_email("admin@example.com")
        assert user["email"] == "admin@example.com"
        assert user["password_hash"] == "hash"
        assert await test_db.count_admin_users() == 1

    async def test_duplicate_email(self, test_db):
        """Should raise DuplicateEmailError regardless of case."""
        await test_db.create_admin_user("admin@example.com", "hash")
        with pytest.raises(DuplicateEmailError):
            await test_db.create_admin_user("ADMIN@example.com", "other")


@pytest.mark.asyncio
class TestNewsletter:
    """Tests for newsletter subscriptions."""

    async def test_add_subscriber(self, test_db):
        """Should report whether the email was new."""
        assert await test_db.add_subscriber("reader@example.com") is True
        assert await test_db.add_subscriber("Reader@example.com") is False

        subscribers, total = await test_db.list_subscribers()
        assert total == 1
        assert subscribers[0]["email"] == "reader@example.com"


@pytest.mark.asyncio
class TestSiteSettings:
    """Tests for runtime site settings."""

    async def test_defaults_from_environment(self, test_db):
        """Defaults should come from the environment."""
        site = await test_db.get_site_settings()
        assert site.min_word_count == settings.MIN_WORD_COUNT
        assert site.theme == "light"
        assert site.has_gemini_key is False

    async def test_update_and_read_back(self, test_db):
        """Stored settings should override defaults."""
        await test_db.update_site_settings(min_word_count=500, theme="dark")

        site = await test_db.get_site_settings()
        assert site.min_word_count == 500
        assert site.theme == "dark"

    async def test_stored_key_wins(self, test_db, monkeypatch):
        """A stored API key should win over the environment."""
        monkeypatch.setattr(settings, "GEMINI_API_KEY", "env-key")
        await test_db.update_site_settings(gemini_api_key="stored-key")
        assert (await test_db.get_site_settings()).gemini_api_key == "stored-key"

    async def test_unknown_key_rejected(self, test_db):
        """Unknown setting names should raise ValueError."""
        with pytest.raises(ValueError):
            await test_db.update_site_settings(colour="red")

    async def test_invalid_value_rejected(self, test_db):
        """Invalid values should fail validation."""
        with pytest.raises(ValidationError):
            await test_db.update_site_settings(min_word_count=0)
