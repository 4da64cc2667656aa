# -*- coding: utf-8 -*-
"""
Tests for the FastAPI application: health, error mapping and site pages.
"""


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_status(self, client):
        """Health endpoint should return status."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database_ready"] is True
        assert data["gemini_configured"] is False
        assert "version" in data

    def test_request_id_is_echoed(self, client):
        """A client request ID should be echoed back."""
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_is_generated(self, client):
        """A request ID should be generated when missing."""
        response = client.get("/health")
        assert response.headers.get("X-Request-ID")


class TestSitePages:
    """Tests for server-rendered pages."""

    def test_home_lists_published_posts(self, session_client, create_published_post):
        """The home page should list published posts."""
        create_published_post(session_client)
        session_client.post("/admin/api/posts", json={"title": "Secret Draft", "content": "x"})

        response = session_client.get("/")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Remote Support Engineer" in response.text
        assert "Secret Draft" not in response.text

    def test_post_page_renders_toc_and_counts_view(self, session_client, create_published_post):
        """The post page should render the TOC and count a view."""
        post = create_published_post(session_client)

        response = session_client.get(f"/blog/{post['slug']}")

        assert response.status_code == 200
        assert 'href="#the-role"' in response.text
        assert 'id="the-role"' in response.text
        assert session_client.get(f"/admin/api/posts/{post['id']}").json()["view_count"] == 1

    def test_unknown_slug_renders_not_found_page(self, client):
        """Unknown slugs should render the not-found page."""
        response = client.get("/blog/does-not-exist")
        assert response.status_code == 404
        assert "text/html" in response.headers["content-type"]
        assert 'href="/"' in response.text

    def test_draft_is_not_visible(self, session_client):
        """Drafts should not be reachable from the site."""
        response = session_client.post(
            "/admin/api/posts", json={"title": "Draft Only", "content": "x"}
        )
        assert session_client.get(f"/blog/{response.json()['slug']}").status_code == 404

    def test_unknown_site_url_renders_not_found_page(self, client):
        """Unknown site URLs should render the not-found page."""
        response = client.get("/no/such/page")
        assert response.status_code == 404
        assert "text/html" in response.headers["content-type"]

    def test_unknown_api_url_is_json(self, client):
        """Unknown API URLs should answer JSON."""
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json() == {"detail": "Not Found"}

    def test_login_page(self, client):
        response = client.get("/auth/login?next=/admin")
        assert response.status_code == 200
        assert "/admin" in response.text
