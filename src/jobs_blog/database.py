# -*- coding: utf-8 -*-
"""
SQLite persistence for posts, view analytics, admin accounts, newsletter
subscriptions and site settings.
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import aiosqlite

from .config import settings
from .db_models import SiteSettings
from .text_utils import generate_excerpt, generate_slug

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS posts (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    excerpt TEXT NOT NULL DEFAULT '',
    featured_image_url TEXT NOT NULL,
    author TEXT NOT NULL,
    slug TEXT NOT NULL UNIQUE,
    status TEXT NOT NULL DEFAULT 'draft' CHECK(status IN ('draft', 'published')),
    category TEXT,
    application_link TEXT,
    view_count INTEGER NOT NULL DEFAULT 0 CHECK(view_count >= 0),
    created_at TEXT NOT NULL,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_posts_status ON posts(status);
CREATE INDEX IF NOT EXISTS idx_posts_category ON posts(category);
CREATE INDEX IF NOT EXISTS idx_posts_created_at ON posts(created_at DESC);
CREATE INDEX IF NOT EXISTS idx_posts_view_count ON posts(view_count DESC);

-- One row per post and day, incremented together with posts.view_count
CREATE TABLE IF NOT EXISTS post_daily_views (
    post_id TEXT NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
    day TEXT NOT NULL,
    views INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (post_id, day)
);

CREATE TABLE IF NOT EXISTS admin_users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS newsletter_subscriptions (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS site_settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

POST_FIELDS = [
    "title",
    "content",
    "featured_image_url",
    "author",
    "status",
    "category",
    "application_link",
]

# Fields that are only changed when a non-empty value is given
REQUIRED_POST_FIELDS = {"title", "content", "featured_image_url", "author", "status"}

SORT_ORDERS = {
    "latest": "created_at DESC, rowid DESC",
    "top": "view_count DESC, created_at DESC",
}


class DuplicateSlugError(Exception):
    """Raised when a post title produces a slug that is already taken."""

    def __init__(self, slug: str):
        super().__init__(f"A post with the slug '{slug}' already exists")
        self.slug = slug


class DuplicateEmailError(Exception):
    """Raised when an admin email is already registered."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _like_pattern(text: str) -> str:
    """Substring pattern with LIKE wildcards in the text matched literally."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class Database:
    """Async SQLite database manager."""

    _instance: "Database | None" = None

    def __init__(self):
        self._db: aiosqlite.Connection | None = None
        self._initialized = False

    @classmethod
    def get_instance(cls) -> "Database":
        """Return the singleton database instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def is_initialized(self) -> bool:
        """Check if database is initialized."""
        return self._initialized

    async def initialize(self) -> None:
        """Open the connection and create the schema if needed."""
        if self._initialized:
            return

        settings.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Connecting to database: {settings.DATABASE_PATH}")
        self._db = await aiosqlite.connect(settings.DATABASE_PATH)

        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute("PRAGMA foreign_keys=ON")

        await self._db.executescript(SCHEMA)
        await self._db.commit()
        self._initialized = True
        logger.info("Database initialized")

    async def close(self) -> None:
        """Close database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            self._initialized = False
            logger.info("Database connection closed")

    def _require_db(self) -> aiosqlite.Connection:
        if not self._db:
            raise RuntimeError("Database not initialized")
        return self._db

    async def _fetch_one(self, query: str, params: tuple | list = ()) -> dict[str, Any] | None:
        async with self._require_db().execute(query, params) as cursor:
            row = await cursor.fetchone()
            if row is None:
                return None
            columns = [desc[0] for desc in cursor.description]
            return dict(zip(columns, row, strict=True))

    async def _fetch_all(self, query: str, params: tuple | list = ()) -> list[dict[str, Any]]:
        async with self._require_db().execute(query, params) as cursor:
            rows = await cursor.fetchall()
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row, strict=True)) for row in rows]

    # =========================================================================
    # Posts
    # =========================================================================
    async def create_post(self, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a new post.

        Slug and excerpt are derived from title and content; author, featured
        image and status fall back to their defaults.

        Raises:
            ValueError: if the title has no letters or digits
            DuplicateSlugError: if another post already uses the slug
        """
        db = self._require_db()

        title = fields["title"].strip()
        content = fields["content"].strip()
        slug = generate_slug(title)
        if not slug:
            raise ValueError("Title must contain at least one letter or digit")

        post = {
            "id": str(uuid4()),
            "title": title,
            "content": content,
            "excerpt": generate_excerpt(content, settings.EXCERPT_LENGTH),
            "featured_image_url": fields.get("featured_image_url") or settings.DEFAULT_FEATURED_IMAGE,
            "author": (fields.get("author") or "").strip() or settings.DEFAULT_AUTHOR,
            "slug": slug,
            "status": fields.get("status") or "draft",
            "category": fields.get("category") or None,
            "application_link": fields.get("application_link") or None,
            "view_count": 0,
            "created_at": _now(),
        }

        columns = list(post.keys())
        placeholders = ", ".join(["?"] * len(columns))
        try:
            await db.execute(
                f"INSERT INTO posts ({', '.join(columns)}) VALUES ({placeholders})",
                list(post.values()),
            )
            await db.commit()
        except aiosqlite.IntegrityError as e:
            await db.rollback()
            if "posts.slug" in str(e):
                raise DuplicateSlugError(slug) from e
            raise

        logger.info("Post created", extra={"post_id": post["id"], "slug": slug, "status": post["status"]})
        return await self.get_post(post["id"])

    async def update_post(self, post_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        """
        Update a post.

        A new title re-derives the slug and new content re-derives the excerpt.
        Empty values for required fields are ignored; optional fields
        (category, application link) are cleared by passing None.

        Returns:
            Updated post, or None if it does not exist
        """
        db = self._require_db()

        updates: dict[str, Any] = {}
        for name in POST_FIELDS:
            if name not in fields:
                continue
            value = fields[name]
            if name in REQUIRED_POST_FIELDS:
                if isinstance(value, str):
                    value = value.strip()
                if not value:
                    continue
            elif not value:
                value = None
            updates[name] = value

        if "title" in updates:
            updates["slug"] = generate_slug(updates["title"])
            if not updates["slug"]:
                raise ValueError("Title must contain at least one letter or digit")
        if "content" in updates:
            updates["excerpt"] = generate_excerpt(updates["content"], settings.EXCERPT_LENGTH)

        if not updates:
            return await self.get_post(post_id)

        updates["updated_at"] = _now()
        assignments = ", ".join(f"{column} = ?" for column in updates)
        try:
            cursor = await db.execute(
                f"UPDATE posts SET {assignments} WHERE id = ?",
                [*updates.values(), post_id],
            )
            await db.commit()
        except aiosqlite.IntegrityError as e:
            await db.rollback()
            if "posts.slug" in str(e):
                raise DuplicateSlugError(updates.get("slug", "")) from e
            raise

        if cursor.rowcount == 0:
            return None

        logger.info("Post updated", extra={"post_id": post_id, "fields": sorted(updates)})
        return await self.get_post(post_id)

    async def delete_post(self, post_id: str) -> bool:
        """Delete a post. Returns True if something was deleted."""
        db = self._require_db()
        cursor = await db.execute("DELETE FROM posts WHERE id = ?", (post_id,))
        await db.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Post deleted", extra={"post_id": post_id})
        return deleted

    async def get_post(self, post_id: str) -> dict[str, Any] | None:
        """Get a post by id."""
        return await self._fetch_one("SELECT * FROM posts WHERE id = ?", (post_id,))

    async def get_post_by_slug(
            self, slug: str, published_only: bool = True
    ) -> dict[str, Any] | None:
        """Get a post by slug (published posts only unless told otherwise)."""
        query = "SELECT * FROM posts WHERE slug = ?"
        if published_only:
            query += " AND status = 'published'"
        return await self._fetch_one(query, (slug,))

    async def list_posts(
            self,
            status: str | None = None,
            category: str | None = None,
            search: str | None = None,
            sort: str = "latest",
            limit: int = 20,
            offset: int = 0,
            exclude_id: str | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        List posts with filters and pagination.

        Args:
            status: "draft" or "published"
            category: Exact category match
            search: Case-insensitive substring of title or content
            sort: "latest" (newest first) or "top" (most viewed first)
            limit: Page size
            offset: Rows to skip
            exclude_id: Post id to leave out (e.g. the one being read)

        Returns:
            Tuple (posts list, total count)
        """
        conditions = []
        params: list[Any] = []

        if status:
            conditions.append("status = ?")
            params.append(status)

        if category:
            conditions.append("category = ?")
            params.append(category)

        if search:
            conditions.append("(title LIKE ? ESCAPE '\\' OR content LIKE ? ESCAPE '\\')")
            pattern = _like_pattern(search)
            params.extend([pattern, pattern])

        if exclude_id:
            conditions.append("id != ?")
            params.append(exclude_id)

        where_clause = ""
        if conditions:
            where_clause = "WHERE " + " AND ".join(conditions)

        order_by = SORT_ORDERS.get(sort, SORT_ORDERS["latest"])

        posts = await self._fetch_all(
            f"SELECT * FROM posts {where_clause} ORDER BY {order_by} LIMIT ? OFFSET ?",
            [*params, limit, offset],
        )
        count = await self._fetch_one(f"SELECT COUNT(*) AS total FROM posts {where_clause}", params)
        return posts, count["total"]

    async def increment_views(self, post_id: str) -> int | None:
        """
        Count one view of a post.

        The counter is incremented in SQL (no read-modify-write), and the
        per-day aggregate is updated in the same transaction.

        Returns:
            New view count, or None if the post does not exist
        """
        db = self._require_db()

        cursor = await db.execute(
            "UPDATE posts SET view_count = view_count + 1 WHERE id = ?", (post_id,)
        )
        if cursor.rowcount == 0:
            await db.rollback()
            return None

        await db.execute(
            """
            INSERT INTO post_daily_views (post_id, day, views) VALUES (?, ?, 1)
            ON CONFLICT(post_id, day) DO UPDATE SET views = views + 1
            """,
            (post_id, _today().isoformat()),
        )
        await db.commit()

        row = await self._fetch_one("SELECT view_count FROM posts WHERE id = ?", (post_id,))
        logger.debug("View counted", extra={"post_id": post_id, "view_count": row["view_count"]})
        return row["view_count"]

    async def get_daily_views(
            self, post_id: str | None = None, days: int = 30
    ) -> list[dict[str, Any]]:
        """Views per day over the last ``days`` days, oldest first."""
        since = (_today() - timedelta(days=days - 1)).isoformat()
        query = "SELECT day AS date, SUM(views) AS views FROM post_daily_views WHERE day >= ?"
        params: list[Any] = [since]
        if post_id:
            query += " AND post_id = ?"
            params.append(post_id)
        query += " GROUP BY day ORDER BY day"
        return await self._fetch_all(query, params)

    async def get_stats(self) -> dict[str, Any]:
        """Post counters for the admin dashboard."""
        stats = await self._fetch_one(
            """
            SELECT
                COUNT(*) AS total_posts,
                SUM(CASE WHEN status = 'published' THEN 1 ELSE 0 END) AS published_count,
                SUM(CASE WHEN status = 'draft' THEN 1 ELSE 0 END) AS draft_count,
                SUM(view_count) AS total_views
            FROM posts
            """
        )
        # SUM over an empty table is NULL
        return {key: value or 0 for key, value in stats.items()}

    # =========================================================================
    # Admin users
    # =========================================================================
    async def create_admin_user(self, email: str, password_hash: str) -> dict[str, Any]:
        """
        Create an admin account.

        Raises:
            DuplicateEmailError: if the email is already registered
        """
        db = self._require_db()
        user = {
            "id": str(uuid4()),
            "email": email.strip().lower(),
            "password_hash": password_hash,
            "created_at": _now(),
        }
        try:
            await db.execute(
                "INSERT INTO admin_users (id, email, password_hash, created_at) VALUES (?, ?, ?, ?)",
                (user["id"], user["email"], user["password_hash"], user["created_at"]),
            )
            await db.commit()
        except aiosqlite.IntegrityError as e:
            await db.rollback()
            raise DuplicateEmailError("Admin user already exists") from e
        return user

    async def get_admin_user_by_email(self, email: str) -> dict[str, Any] | None:
        """Get an admin account (including its password hash) by email."""
        return await self._fetch_one(
            "SELECT * FROM admin_users WHERE email = ?", (email.strip().lower(),)
        )

    async def count_admin_users(self) -> int:
        row = await self._fetch_one("SELECT COUNT(*) AS total FROM admin_users")
        return row["total"]

    # =========================================================================
    # Newsletter
    # =========================================================================
    async def add_subscriber(self, email: str) -> bool:
        """Subscribe an email. Returns False if it was already subscribed."""
        db = self._require_db()
        try:
            await db.execute(
                "INSERT INTO newsletter_subscriptions (id, email, created_at) VALUES (?, ?, ?)",
                (str(uuid4()), email.strip().lower(), _now()),
            )
            await db.commit()
        except aiosqlite.IntegrityError:
            await db.rollback()
            return False
        return True

    async def list_subscribers(
            self, limit: int = 100, offset: int = 0
    ) -> tuple[list[dict[str, Any]], int]:
        subscribers = await self._fetch_all(
            "SELECT * FROM newsletter_subscriptions ORDER BY created_at DESC LIMIT ? OFFSET ?",
            (limit, offset),
        )
        count = await self._fetch_one("SELECT COUNT(*) AS total FROM newsletter_subscriptions")
        return subscribers, count["total"]

    # =========================================================================
    # Site settings
    # =========================================================================
    async def get_site_settings(self) -> SiteSettings:
        """Typed view of the stored settings, with environment defaults."""
        rows = await self._fetch_all("SELECT key, value FROM site_settings")
        values: dict[str, Any] = {
            "min_word_count": settings.MIN_WORD_COUNT,
            "gemini_api_key": settings.GEMINI_API_KEY,
        }
        values.update({row["key"]: row["value"] for row in rows})
        return SiteSettings(**values)

    async def update_site_settings(self, **values: Any) -> SiteSettings:
        """
        Store settings. Unknown keys are rejected, values are validated first.

        Raises:
            ValueError: for unknown keys
            pydantic.ValidationError: for invalid values
        """
        unknown = set(values) - set(SiteSettings.model_fields)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

        current = await self.get_site_settings()
        merged = SiteSettings(**{**current.model_dump(), **values})

        db = self._require_db()
        for key in values:
            await db.execute(
                """
                INSERT INTO site_settings (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, str(getattr(merged, key))),
            )
        await db.commit()
        logger.info("Site settings updated", extra={"keys": sorted(values)})
        return merged


# Global instance
db = Database.get_instance()
