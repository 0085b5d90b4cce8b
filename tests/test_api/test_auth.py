"""Tests for authentication API endpoints."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from httpx import AsyncClient
from sqlalchemy import func, select

from forum_api.models.user import User
from forum_api.utils.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def sign_up_payload(
    username: str | None = "newuser",
    password: str | None = "securepassword123",
    confirm_password: str | None = "securepassword123",
) -> dict:
    return {
        "username": username,
        "password": password,
        "confirm_password": confirm_password,
    }


class TestSignUp:
    """Tests for the account creation endpoint."""

    async def test_sign_up_success(self, client: AsyncClient, session_factory) -> None:
        """Test successful sign-up returns the account and a usable token."""
        response = await client.post("/api/auth/sign-up", json=sign_up_payload())

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["username"] == "newuser"
        assert isinstance(body["data"]["id"], int)

        identity = decode_access_token(body["data"]["access_token"])
        assert identity is not None
        assert identity.id == body["data"]["id"]
        assert identity.username == "newuser"

        async with session_factory() as session:
            user = await session.scalar(select(User).where(User.username == "newuser"))
        assert user is not None
        assert user.password_hash != "securepassword123"
        assert verify_password("securepassword123", user.password_hash)

    async def test_sign_up_trims_username(self, client: AsyncClient) -> None:
        """Test surrounding whitespace is removed from the username."""
        response = await client.post("/api/auth/sign-up", json=sign_up_payload(username="  bob  "))

        assert response.status_code == 201
        assert response.json()["data"]["username"] == "bob"

    async def test_sign_up_username_taken(
        self, client: AsyncClient, make_user, session_factory
    ) -> None:
        """Test sign-up with an existing username fails and creates nothing."""
        await make_user(username="newuser")

        response = await client.post("/api/auth/sign-up", json=sign_up_payload())

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == {"name": "username", "message": "Username is already taken"}

        async with session_factory() as session:
            count = await session.scalar(select(func.count(User.id)))
        assert count == 1

    async def test_sign_up_reports_username_before_password(self, client: AsyncClient) -> None:
        """Test the first failing check wins when several fields are missing."""
        response = await client.post("/api/auth/sign-up", json={})

        assert response.status_code == 400
        assert response.json()["error"] == {"name": "username", "message": "Username is required"}

    async def test_sign_up_missing_password(self, client: AsyncClient) -> None:
        """Test a blank password is rejected."""
        response = await client.post(
            "/api/auth/sign-up",
            json=sign_up_payload(password="", confirm_password=""),
        )

        assert response.status_code == 400
        assert response.json()["error"] == {"name": "password", "message": "Password is required"}

    async def test_sign_up_passwords_do_not_match(self, client: AsyncClient) -> None:
        """Test a confirmation mismatch is reported on confirm_password."""
        response = await client.post(
            "/api/auth/sign-up",
            json=sign_up_payload(confirm_password="somethingelse"),
        )

        assert response.status_code == 400
        assert response.json()["error"] == {
            "name": "confirm_password",
            "message": "Passwords does not match",
        }

    async def test_sign_up_username_too_long(self, client: AsyncClient) -> None:
        """Test usernames over 50 characters are rejected."""
        response = await client.post("/api/auth/sign-up", json=sign_up_payload(username="a" * 51))

        assert response.status_code == 400
        assert response.json()["error"]["name"] == "username"

    async def test_sign_up_password_too_long(self, client: AsyncClient) -> None:
        """Test passwords over 50 characters are rejected."""
        password = "p" * 51
        response = await client.post(
            "/api/auth/sign-up",
            json=sign_up_payload(password=password, confirm_password=password),
        )

        assert response.status_code == 400
        assert response.json()["error"]["name"] == "password"

    async def test_sign_up_wrong_field_type(self, client: AsyncClient) -> None:
        """Test malformed request bodies use the failure envelope."""
        response = await client.post(
            "/api/auth/sign-up",
            json={"username": ["not", "a", "string"], "password": "x", "confirm_password": "x"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["name"] == "username"


class TestLogin:
    """Tests for the login endpoint."""

    async def test_login_success(self, client: AsyncClient, make_user) -> None:
        """Test login with valid credentials returns a token."""
        user = await make_user(username="alice", password="secret123")

        response = await client.post(
            "/api/auth", json={"username": "alice", "password": "secret123"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == user.id
        assert data["username"] == "alice"
        identity = decode_access_token(data["access_token"])
        assert identity is not None
        assert identity.id == user.id

    async def test_login_wrong_password(self, client: AsyncClient, make_user) -> None:
        """Test a wrong password gets the generic error."""
        await make_user(username="alice", password="secret123")

        response = await client.post("/api/auth", json={"username": "alice", "password": "nope"})

        assert response.status_code == 400
        assert response.json()["error"] == {
            "name": "password",
            "message": "Invalid username or password",
        }

    async def test_login_unknown_user(self, client: AsyncClient) -> None:
        """Test an unknown username gets the same error as a wrong password."""
        response = await client.post(
            "/api/auth", json={"username": "ghost", "password": "secret123"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == {
            "name": "password",
            "message": "Invalid username or password",
        }

    async def test_login_unknown_user_still_checks_password(self, client: AsyncClient) -> None:
        """Test an unknown username pays for a bcrypt check like a wrong password does."""
        with patch(
            "forum_api.services.accounts.verify_password", wraps=verify_password
        ) as spy:
            response = await client.post(
                "/api/auth", json={"username": "ghost", "password": "secret123"}
            )

        assert response.status_code == 400
        spy.assert_called_once()
        assert spy.call_args.args[0] == "secret123"
        assert spy.call_args.args[1].startswith("$2")

    async def test_login_missing_username(self, client: AsyncClient) -> None:
        """Test login without a username is rejected."""
        response = await client.post("/api/auth", json={"password": "secret123"})

        assert response.status_code == 400
        assert response.json()["error"] == {"name": "username", "message": "Username is required"}


class TestVerify:
    """Tests for the session verification endpoint."""

    async def test_verify_with_token(self, client: AsyncClient, make_user, auth_headers) -> None:
        """Test a valid token reports its account."""
        user = await make_user(username="alice")

        response = await client.get("/api/auth", headers=auth_headers(user))

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == {"id": user.id, "username": "alice"}

    async def test_verify_without_token(self, client: AsyncClient) -> None:
        """Test anonymous callers get success false rather than an error."""
        response = await client.get("/api/auth")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["data"] is None

    async def test_verify_expired_token(self, client: AsyncClient) -> None:
        """Test an expired token is treated as anonymous."""
        token = create_access_token(1, "alice", expires_delta=timedelta(seconds=-10))

        response = await client.get("/api/auth", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["success"] is False

    async def test_verify_garbage_token(self, client: AsyncClient) -> None:
        """Test a malformed token is treated as anonymous."""
        response = await client.get("/api/auth", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 200
        assert response.json()["success"] is False


class TestSecurityUtils:
    """Tests for password hashing and token helpers."""

    def test_hash_and_verify_password(self) -> None:
        """Test a hashed password verifies and a wrong one does not."""
        hashed = hash_password("secret123", rounds=4)

        assert hashed.startswith("$2")
        assert verify_password("secret123", hashed)
        assert not verify_password("secret124", hashed)

    def test_verify_password_with_invalid_hash(self) -> None:
        """Test a corrupt stored hash fails verification instead of raising."""
        assert verify_password("secret123", "not-a-bcrypt-hash") is False

    def test_token_expires_after_two_weeks(self) -> None:
        """Test default tokens carry the issue time and a two-week expiry."""
        before = datetime.now(UTC).replace(microsecond=0)
        identity = decode_access_token(create_access_token(7, "alice"))

        assert identity is not None
        assert identity.id == 7
        assert identity.username == "alice"
        assert identity.issued_at >= before
        assert identity.expires_at - identity.issued_at == timedelta(days=14)

    def test_decode_token_signed_with_other_key(self) -> None:
        """Test tokens signed with another secret are rejected."""
        from jose import jwt

        token = jwt.encode(
            {"sub": "1", "username": "alice", "iat": 0, "exp": 9999999999},
            "another-secret-key-that-is-long-enough-to-pass",
            algorithm="HS256",
        )

        assert decode_access_token(token) is None
