"""Tests for authentication API endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from reddit_clone.database import get_db
from reddit_clone.main import app
from reddit_clone.models.password_reset import PasswordResetToken
from reddit_clone.models.user import User
from reddit_clone.services.errors import MailError
from reddit_clone.services.mailer import Mailer, get_mailer
from reddit_clone.utils.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

TEST_PASSWORD = "securepassword123"


@pytest.fixture
def mock_db_session():
    """Create a mock database session."""
    mock_session = AsyncMock()
    mock_session.add = MagicMock()
    mock_session.delete = AsyncMock()
    mock_session.flush = AsyncMock()
    mock_session.refresh = AsyncMock()
    return mock_session


def error_fields(data: dict) -> set[str]:
    return {error["field"] for error in data["errors"] or []}


class TestRegister:
    """Tests for user registration endpoint."""

    async def test_register_success(self, db_client: AsyncClient, session_factory) -> None:
        """Test successful user registration logs the user in."""
        response = await db_client.post(
            "/api/auth/register",
            json={
                "username": "NewUser",
                "email": "NewUser@Example.com",
                "password": "securepassword123",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["errors"] is None
        assert data["user"]["username"] == "newuser"
        assert data["user"]["email"] == "newuser@example.com"
        assert data["user"]["is_active"] is True
        assert data["access_token"]
        assert data["token_type"] == "bearer"
        # Password should NOT be in response
        assert "password" not in data["user"]
        assert "hashed_password" not in data["user"]

        async with session_factory() as session:
            user = await session.scalar(select(User).where(User.username == "newuser"))
        assert user is not None
        assert verify_password("securepassword123", user.hashed_password)

    async def test_register_duplicate_username(self, db_client: AsyncClient, make_user) -> None:
        """Test registration with existing username reports field errors."""
        await make_user("testuser")

        response = await db_client.post(
            "/api/auth/register",
            json={
                "username": "TestUser",
                "email": "other@example.com",
                "password": "securepassword123",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"] is None
        assert error_fields(data) == {"username", "email"}

    async def test_register_duplicate_email(self, db_client: AsyncClient, make_user) -> None:
        """Test registration with existing email reports field errors."""
        await make_user("testuser", email="taken@example.com")

        response = await db_client.post(
            "/api/auth/register",
            json={
                "username": "someoneelse",
                "email": "taken@example.com",
                "password": "securepassword123",
            },
        )

        data = response.json()
        assert data["user"] is None
        assert error_fields(data) == {"username", "email"}

    async def test_register_race_on_unique_index(
        self, client: AsyncClient, mock_db_session: AsyncMock
    ) -> None:
        """A unique violation at insert time becomes field errors, not a 500."""
        existing_result = MagicMock()
        existing_result.first.return_value = None
        mock_db_session.execute = AsyncMock(return_value=existing_result)
        mock_db_session.flush = AsyncMock(
            side_effect=IntegrityError("INSERT INTO users", {}, Exception("UNIQUE constraint"))
        )
        savepoint = MagicMock()
        savepoint.__aenter__ = AsyncMock(return_value=None)
        savepoint.__aexit__ = AsyncMock(return_value=False)
        mock_db_session.begin_nested = MagicMock(return_value=savepoint)

        async def override_get_db():
            yield mock_db_session

        app.dependency_overrides[get_db] = override_get_db

        try:
            response = await client.post(
                "/api/auth/register",
                json={
                    "username": "newuser",
                    "email": "newuser@example.com",
                    "password": "securepassword123",
                },
            )

            assert response.status_code == 200
            data = response.json()
            assert data["user"] is None
            assert error_fields(data) == {"username", "email"}
        finally:
            app.dependency_overrides.clear()

    @pytest.mark.parametrize(
        ("payload", "field"),
        [
            ({"username": "newuser", "email": "not-an-email", "password": "goodpassword"}, "email"),
            ({"username": "newuser", "email": "a@example.com", "password": "short"}, "password"),
            ({"username": "newuser", "email": "a@example.com", "password": "a" * 80}, "password"),
            ({"username": "newuser", "email": "a@example.com", "password": "\u00e9" * 40}, "password"),
            ({"username": "ab", "email": "a@example.com", "password": "goodpassword"}, "username"),
            ({"username": "user@name", "email": "a@example.com", "password": "goodpassword"}, "username"),
            ({"username": "user.name", "email": "a@example.com", "password": "goodpassword"}, "username"),
        ],
    )
    async def test_register_invalid_input(
        self, client: AsyncClient, mock_db_session: AsyncMock, payload: dict, field: str
    ) -> None:
        """Invalid input is reported per field and never reaches the database."""

        async def override_get_db():
            yield mock_db_session

        app.dependency_overrides[get_db] = override_get_db

        try:
            response = await client.post("/api/auth/register", json=payload)

            assert response.status_code == 200
            data = response.json()
            assert data["user"] is None
            assert error_fields(data) == {field}
            mock_db_session.execute.assert_not_called()
        finally:
            app.dependency_overrides.clear()

    async def test_register_collects_every_error(
        self, client: AsyncClient, mock_db_session: AsyncMock
    ) -> None:
        """All invalid fields are reported together."""

        async def override_get_db():
            yield mock_db_session

        app.dependency_overrides[get_db] = override_get_db

        try:
            response = await client.post(
                "/api/auth/register",
                json={"username": "x", "email": "nope", "password": "123"},
            )

            assert error_fields(response.json()) == {"username", "email", "password"}
        finally:
            app.dependency_overrides.clear()

    async def test_register_missing_field(self, client: AsyncClient) -> None:
        """Structurally invalid bodies are still rejected by the schema."""
        response = await client.post("/api/auth/register", json={"username": "newuser"})

        assert response.status_code == 422


class TestLogin:
    """Tests for user login endpoint."""

    async def test_login_with_username(self, db_client: AsyncClient, make_user) -> None:
        """Test successful login with username."""
        user = await make_user("testuser")

        response = await db_client.post(
            "/api/auth/login",
            json={"username_or_email": "TestUser", "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["errors"] is None
        assert data["user"]["id"] == user.id
        payload = decode_access_token(data["access_token"])
        assert payload["sub"] == str(user.id)

    async def test_login_with_email(self, db_client: AsyncClient, make_user) -> None:
        """Test successful login with email instead of username."""
        await make_user("testuser", email="test@example.com")

        response = await db_client.post(
            "/api/auth/login",
            json={"username_or_email": "test@example.com", "password": TEST_PASSWORD},
        )

        data = response.json()
        assert data["errors"] is None
        assert data["access_token"]

    async def test_login_invalid_password(self, db_client: AsyncClient, make_user) -> None:
        """Test login with incorrect password."""
        await make_user("testuser")

        response = await db_client.post(
            "/api/auth/login",
            json={"username_or_email": "testuser", "password": "wrongpassword"},
        )

        data = response.json()
        assert data["user"] is None
        assert data["access_token"] is None
        assert error_fields(data) == {"username_or_email", "password"}

    async def test_login_password_longer_than_bcrypt_accepts(
        self, db_client: AsyncClient, make_user
    ) -> None:
        """An over-long password is just a wrong password, not a server error."""
        await make_user("testuser")

        response = await db_client.post(
            "/api/auth/login",
            json={"username_or_email": "testuser", "password": "a" * 80},
        )

        assert response.status_code == 200
        assert error_fields(response.json()) == {"username_or_email", "password"}

    async def test_login_user_not_found(self, db_client: AsyncClient) -> None:
        """Test login with non-existent user gives the same errors as a bad password."""
        response = await db_client.post(
            "/api/auth/login",
            json={"username_or_email": "nonexistent", "password": TEST_PASSWORD},
        )

        assert error_fields(response.json()) == {"username_or_email", "password"}

    async def test_login_inactive_user(self, db_client: AsyncClient, make_user) -> None:
        """Test login with inactive user account."""
        await make_user("testuser", is_active=False)

        response = await db_client.post(
            "/api/auth/login",
            json={"username_or_email": "testuser", "password": TEST_PASSWORD},
        )

        data = response.json()
        assert data["user"] is None
        assert "inactive" in data["errors"][0]["message"]


class TestMe:
    """Tests for the current user endpoint."""

    async def test_me_logged_in(self, db_client: AsyncClient, make_user, auth_headers) -> None:
        user = await make_user("testuser")

        response = await db_client.get("/api/auth/me", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json()["email"] == "testuser@example.com"

    async def test_me_anonymous(self, db_client: AsyncClient) -> None:
        response = await db_client.get("/api/auth/me")

        assert response.status_code == 200
        assert response.json() is None

    async def test_me_with_bad_token(self, db_client: AsyncClient) -> None:
        response = await db_client.get(
            "/api/auth/me", headers={"Authorization": "Bearer invalid.token.here"}
        )

        assert response.json() is None


class FakeMailer(Mailer):
    """Mailer that records messages."""

    def __init__(self) -> None:
        super().__init__(host="")
        self.sent: list[tuple[str, str, str]] = []

    async def send(self, to: str, subject: str, html: str) -> None:
        self.sent.append((to, subject, html))


@pytest.fixture
def fake_mailer():
    mailer = FakeMailer()
    app.dependency_overrides[get_mailer] = lambda: mailer
    yield mailer
    app.dependency_overrides.pop(get_mailer, None)


class FailingMailer(Mailer):
    """Mailer whose SMTP server is always down."""

    def __init__(self) -> None:
        super().__init__(host="")

    async def send(self, to: str, subject: str, html: str) -> None:
        raise MailError("Failed to send email: (421, 'down')")


@pytest.fixture
def failing_mailer():
    mailer = FailingMailer()
    app.dependency_overrides[get_mailer] = lambda: mailer
    yield mailer
    app.dependency_overrides.pop(get_mailer, None)


class TestPasswordReset:
    """Tests for the forgot-password / change-password flow."""

    async def test_forgot_password_known_email(
        self, db_client: AsyncClient, make_user, fake_mailer: FakeMailer
    ) -> None:
        await make_user("testuser")

        response = await db_client.post(
            "/api/auth/forgot-password", json={"email": "testuser@example.com"}
        )

        assert response.status_code == 200
        assert response.json() is True
        assert len(fake_mailer.sent) == 1
        assert "/change-password/" in fake_mailer.sent[0][2]

    async def test_forgot_password_unknown_email(
        self, db_client: AsyncClient, fake_mailer: FakeMailer
    ) -> None:
        """Unknown emails look exactly like known ones to the caller."""
        response = await db_client.post(
            "/api/auth/forgot-password", json={"email": "nobody@example.com"}
        )

        assert response.json() is True
        assert fake_mailer.sent == []

    async def test_forgot_password_mail_failure_looks_like_success(
        self, db_client: AsyncClient, make_user, failing_mailer: FailingMailer
    ) -> None:
        """A delivery failure for a known email answers like an unknown email."""
        await make_user("testuser")

        known = await db_client.post(
            "/api/auth/forgot-password", json={"email": "testuser@example.com"}
        )
        unknown = await db_client.post(
            "/api/auth/forgot-password", json={"email": "nobody@example.com"}
        )

        assert known.status_code == unknown.status_code == 200
        assert known.json() is True
        assert unknown.json() is True

    async def test_change_password_flow(
        self, db_client: AsyncClient, make_user, fake_mailer: FakeMailer, session_factory
    ) -> None:
        """A mailed token sets a new password once."""
        user = await make_user("testuser")
        await db_client.post("/api/auth/forgot-password", json={"email": "testuser@example.com"})
        async with session_factory() as session:
            token = await session.scalar(select(PasswordResetToken.token))

        response = await db_client.post(
            "/api/auth/change-password",
            json={"token": token, "new_password": "brandnewpassword"},
        )

        data = response.json()
        assert data["errors"] is None
        assert data["user"]["id"] == user.id
        assert data["access_token"]

        login = await db_client.post(
            "/api/auth/login",
            json={"username_or_email": "testuser", "password": "brandnewpassword"},
        )
        assert login.json()["errors"] is None

        reused = await db_client.post(
            "/api/auth/change-password",
            json={"token": token, "new_password": "anotherpassword"},
        )
        assert reused.json()["errors"] == [{"field": "token", "message": "Token expired."}]

    async def test_change_password_unknown_token(self, db_client: AsyncClient) -> None:
        response = await db_client.post(
            "/api/auth/change-password",
            json={"token": "does-not-exist", "new_password": "brandnewpassword"},
        )

        assert error_fields(response.json()) == {"token"}

    async def test_change_password_too_short(self, db_client: AsyncClient) -> None:
        response = await db_client.post(
            "/api/auth/change-password",
            json={"token": "whatever", "new_password": "abc"},
        )

        assert error_fields(response.json()) == {"new_password"}

    async def test_change_password_over_bcrypt_limit(self, db_client: AsyncClient) -> None:
        response = await db_client.post(
            "/api/auth/change-password",
            json={"token": "whatever", "new_password": "a" * 90},
        )

        assert response.status_code == 200
        assert error_fields(response.json()) == {"new_password"}


class TestPasswordHashing:
    """Tests for bcrypt helpers."""

    def test_verify_password_round_trip(self) -> None:
        hashed = hash_password(TEST_PASSWORD)

        assert verify_password(TEST_PASSWORD, hashed)
        assert not verify_password("wrongpassword", hashed)

    def test_verify_password_rejects_more_than_72_bytes(self) -> None:
        """Inputs bcrypt cannot hash never match instead of raising."""
        hashed = hash_password("a" * 72)

        assert verify_password("a" * 72, hashed)
        assert not verify_password("a" * 73, hashed)


class TestJWT:
    """Tests for JWT token generation and validation."""

    def test_create_access_token(self) -> None:
        """Test JWT token creation."""
        token = create_access_token(data={"sub": "123"})

        assert token is not None
        assert isinstance(token, str)
        assert len(token) > 0

    def test_decode_access_token_valid(self) -> None:
        """Test decoding a valid JWT token."""
        user_id = "42"
        token = create_access_token(data={"sub": user_id})
        payload = decode_access_token(token)

        assert payload is not None
        assert payload["sub"] == user_id
        assert "exp" in payload

    def test_decode_access_token_invalid(self) -> None:
        """Test decoding an invalid JWT token."""
        payload = decode_access_token("invalid.token.here")

        assert payload is None

    def test_decode_access_token_tampered(self) -> None:
        """Test decoding a tampered JWT token."""
        token = create_access_token(data={"sub": "1"})
        # Tamper with the token by modifying it
        tampered_token = token[:-5] + "xxxxx"
        payload = decode_access_token(tampered_token)

        assert payload is None
