"""Tests for saving and unsaving posts."""

from httpx import AsyncClient
from sqlalchemy import func, select

from forum_api.models.saved_post import SavedPost


async def count_saves(session_factory) -> int:
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(SavedPost))


class TestSavePost:
    """Tests for the save endpoint."""

    async def test_save_post(
        self, client: AsyncClient, make_user, make_post, auth_headers, session_factory
    ) -> None:
        """Test saving a post stores a bookmark for the caller."""
        user = await make_user()
        post = await make_post(user)

        response = await client.post(f"/api/posts/{post.id}/save", headers=auth_headers(user))

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Post saved"
        assert await count_saves(session_factory) == 1

    async def test_save_post_twice_keeps_one_row(
        self, client: AsyncClient, make_user, make_post, auth_headers, session_factory
    ) -> None:
        """Test saving an already saved post succeeds without a duplicate."""
        user = await make_user()
        post = await make_post(user)

        first = await client.post(f"/api/posts/{post.id}/save", headers=auth_headers(user))
        second = await client.post(f"/api/posts/{post.id}/save", headers=auth_headers(user))

        assert first.status_code == 200
        assert second.status_code == 200
        assert await count_saves(session_factory) == 1

    async def test_save_post_not_found(self, client: AsyncClient, make_user, auth_headers) -> None:
        """Test saving a missing post gives 404."""
        user = await make_user()

        response = await client.post("/api/posts/999/save", headers=auth_headers(user))

        assert response.status_code == 404

    async def test_save_post_requires_auth(
        self, client: AsyncClient, make_user, make_post
    ) -> None:
        """Test anonymous callers cannot save posts."""
        user = await make_user()
        post = await make_post(user)

        response = await client.post(f"/api/posts/{post.id}/save")

        assert response.status_code == 403
        assert response.json()["error"] == {"name": "re-auth", "message": "User not signed in"}


class TestUnsavePost:
    """Tests for the unsave endpoint."""

    async def test_unsave_post(
        self, client: AsyncClient, make_user, make_post, make_save, auth_headers, session_factory
    ) -> None:
        """Test unsaving removes only the caller's bookmark."""
        user = await make_user()
        other = await make_user(username="bob")
        post = await make_post(user)
        await make_save(user, post)
        await make_save(other, post)

        response = await client.delete(f"/api/posts/{post.id}/save", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json()["message"] == "Post unsaved"
        async with session_factory() as session:
            savers = (await session.scalars(select(SavedPost.user_id))).all()
        assert savers == [other.id]

    async def test_unsave_post_never_saved(
        self, client: AsyncClient, make_user, make_post, auth_headers
    ) -> None:
        """Test unsaving a post that was never saved succeeds."""
        user = await make_user()
        post = await make_post(user)

        response = await client.delete(f"/api/posts/{post.id}/save", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json()["success"] is True

    async def test_unsave_post_requires_auth(
        self, client: AsyncClient, make_user, make_post
    ) -> None:
        """Test anonymous callers cannot unsave posts."""
        user = await make_user()
        post = await make_post(user)

        response = await client.delete(f"/api/posts/{post.id}/save")

        assert response.status_code == 403
