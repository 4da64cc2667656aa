# -*- coding: utf-8 -*-
"""
Pytest configuration and fixtures.
"""
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from jobs_blog.api import app
from jobs_blog.auth import SESSION_COOKIE_NAME, create_session_token
from jobs_blog.config import settings
from jobs_blog.database import Database
from jobs_blog.rewriter import RewriteResult


def make_words(count: int, word: str = "word") -> str:
    """Plain text with exactly ``count`` words."""
    return " ".join([word] * count)


class SessionTestClient(TestClient):
    """Test client with session cookie authentication."""

    def __init__(self, *args, email: str = "admin@example.com", **kwargs):
        super().__init__(*args, **kwargs)
        # Create a session token
        self.session_token, _ = create_session_token("admin-id", email)

    def request(self, method, url, **kwargs):
        cookies = kwargs.get("cookies") or {}
        cookies[SESSION_COOKIE_NAME] = self.session_token
        kwargs["cookies"] = cookies
        return super().request(method, url, **kwargs)


@pytest.fixture(autouse=True)
def no_gemini_key(monkeypatch):
    """Never reach the real Gemini API from tests."""
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")


@pytest.fixture
def temp_db_path(monkeypatch):
    """Point the service at a temporary database file."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        temp_path = Path(tmp_dir) / "test.db"
        monkeypatch.setattr(settings, "DATABASE_PATH", temp_path)
        yield temp_path


@pytest_asyncio.fixture
async def test_db(temp_db_path):
    """Create a temporary test database."""
    db = Database()
    await db.initialize()

    yield db

    await db.close()


@pytest.fixture
def client(temp_db_path):
    """FastAPI test client without authentication (lifespan runs)."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def session_client(temp_db_path):
    """FastAPI test client with session cookie (for admin routes)."""
    with SessionTestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def sample_post_data():
    """Sample post fields for database tests."""
    return {
        "title": "Senior Python Developer at Acme",
        "content": "## About the role\n\nWe are hiring a **Python** developer.\n\n"
                   + make_words(50),
        "featured_image_url": "https://example.com/image.jpg",
        "author": "Jane Recruiter",
        "status": "published",
        "category": "full-time",
        "application_link": "https://example.com/apply",
    }


@pytest.fixture
def long_content():
    """Content long enough to pass the default publish gate."""
    return "## Overview\n\n" + make_words(1000) + "\n\n## Apply\n\nSend your resume."


@pytest.fixture
def mock_rewriter():
    """Rewriter returning a fixed result."""
    rewriter = AsyncMock()
    rewriter.rewrite = AsyncMock(
        return_value=RewriteResult(
            title="Rewritten Title",
            content="## Role\n\nRewritten body text.",
        )
    )
    return rewriter


@pytest.fixture
def mock_store():
    """Persistence collaborator storing nothing."""
    store = AsyncMock()

    async def create_post(fields):
        return {"id": "post-1", "slug": "generated-slug", **fields}

    async def update_post(post_id, fields):
        return {"id": post_id, "slug": "generated-slug", **fields}

    store.create_post = AsyncMock(side_effect=create_post)
    store.update_post = AsyncMock(side_effect=update_post)
    return store


@pytest.fixture
def create_published_post():
    """Create a published post through the admin API."""

    def create(client, title="Remote Support Engineer", **overrides):
        payload = {
            "title": title,
            "content": "## The role\n\n" + make_words(1000) + "\n\n## Perks\n\nGood coffee.",
            "featured_image_url": "https://example.com/cover.jpg",
            "status": "published",
            "category": "full-time",
            **overrides,
        }
        response = client.post("/admin/api/posts", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return create
