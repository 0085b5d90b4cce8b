"""Tests for out-of-range input and unexpected failures."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from forum_api.database import get_db, session_scope
from forum_api.main import app

TOO_BIG = 2**63


class TestOutOfRangeInput:
    """Ids and pages beyond the 64-bit integer range are rejected as bad input."""

    @pytest.mark.parametrize(
        ("path", "name"),
        [
            (f"/api/posts/{TOO_BIG}", "post_id"),
            (f"/api/posts/{TOO_BIG}/comments", "post_id"),
            ("/api/posts/99999999999999999999/comments", "post_id"),
            (f"/api/users/{TOO_BIG}", "user_id"),
            (f"/api/users/{TOO_BIG}/posts", "user_id"),
            ("/api/posts/0", "post_id"),
        ],
    )
    async def test_path_id_out_of_range(self, client: AsyncClient, path: str, name: str) -> None:
        """Test oversized and non-positive path ids get the failure envelope."""
        response = await client.get(path)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["name"] == name

    async def test_save_id_out_of_range(
        self, client: AsyncClient, make_user, auth_headers
    ) -> None:
        """Test write endpoints reject oversized ids too."""
        user = await make_user()

        response = await client.post(f"/api/posts/{TOO_BIG}/save", headers=auth_headers(user))

        assert response.status_code == 400
        assert response.json()["error"]["name"] == "post_id"

    async def test_parent_comment_id_out_of_range(
        self, client: AsyncClient, make_user, make_post, auth_headers
    ) -> None:
        """Test an oversized parent comment id is rejected before any lookup."""
        user = await make_user()
        post = await make_post(user)

        response = await client.post(
            f"/api/posts/{post.id}/comments",
            json={"body": "Reply", "comment_id": TOO_BIG},
            headers=auth_headers(user),
        )

        assert response.status_code == 400
        assert response.json()["error"]["name"] == "comment_id"

    async def test_page_out_of_range(self, client: AsyncClient) -> None:
        """Test a page whose offset cannot be stored is rejected."""
        response = await client.get("/api/posts", params={"page": 10**18})

        assert response.status_code == 400
        assert response.json()["error"] == {"name": "page", "message": "Page is out of range"}

    async def test_largest_id_is_accepted(self, client: AsyncClient) -> None:
        """Test the largest storable id reaches the lookup."""
        response = await client.get(f"/api/posts/{TOO_BIG - 1}")

        assert response.status_code == 404


@pytest.fixture
async def lenient_client(session_factory) -> AsyncGenerator[AsyncClient]:
    """Client that receives the error response instead of the re-raised exception."""

    async def override_get_db():
        async with session_scope(session_factory) as session:
            yield session

    # Debug mode renders a traceback page instead of calling the error handler
    debug = app.debug
    app.debug = False
    app.middleware_stack = None
    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
        app.debug = debug
        app.middleware_stack = None


async def test_unexpected_error_uses_envelope(lenient_client: AsyncClient) -> None:
    """Test failures outside the known categories still answer with the envelope."""
    with patch(
        "forum_api.services.posts.fetch_post",
        AsyncMock(side_effect=RuntimeError("unexpected")),
    ):
        response = await lenient_client.get("/api/posts/1")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "Internal server error",
        "error": {"message": "Internal server error"},
    }
