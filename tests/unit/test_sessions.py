"""
Unit Tests - Admin Authentication and Sessions
"""
import time

import pytest
from jose import jwt
from pydantic import SecretStr

from backoffice.auth.sessions import (
    AdminView,
    AuthResult,
    Authenticator,
    InvalidCredentialsError,
    InvalidSessionError,
    MemorySessionStore,
    RedisSessionStore,
    SessionManager,
)

SECRET = SecretStr("test-signing-key")


@pytest.fixture
def manager() -> SessionManager:
    return SessionManager(
        authenticator=Authenticator("admin@example.com", SecretStr("s3cret-pass")),
        store=MemorySessionStore(ttl_seconds=3600),
        secret_key=SECRET,
        ttl_seconds=3600,
    )


class TestAuthenticator:
    """Tests for Authenticator"""

    def test_accepts_configured_account(self):
        authenticator = Authenticator("admin@example.com", SecretStr("pw"))

        assert authenticator.authenticate("admin@example.com", "pw") is AuthResult.AUTHENTICATED
        assert authenticator.authenticate(" Admin@Example.com ", "pw") is AuthResult.AUTHENTICATED

    @pytest.mark.parametrize("email,password", [
        ("admin@example.com", "wrong"),
        ("other@example.com", "pw"),
        ("", ""),
    ])
    def test_rejects_everything_else(self, email, password):
        authenticator = Authenticator("admin@example.com", SecretStr("pw"))
        assert authenticator.authenticate(email, password) is AuthResult.REJECTED


class TestSessionManager:
    """Tests for SessionManager"""

    async def test_login_issues_token_for_session(self, manager):
        session, token = await manager.login("admin@example.com", "s3cret-pass")

        claims = jwt.decode(token, SECRET.get_secret_value(), algorithms=["HS256"])
        assert claims["sub"] == "admin@example.com"
        assert claims["sid"] == session.session_id
        assert session.authenticated
        assert session.redirect_to is AdminView.DASHBOARD

    async def test_login_rejected(self, manager):
        with pytest.raises(InvalidCredentialsError):
            await manager.login("admin@example.com", "nope")

    async def test_resolve_and_record_view(self, manager):
        session, token = await manager.login("admin@example.com", "s3cret-pass")

        await manager.record_view(session, AdminView.ORDERS)
        resolved = await manager.resolve(token)

        assert resolved.session_id == session.session_id
        assert resolved.last_view is AdminView.ORDERS
        assert resolved.redirect_to is AdminView.ORDERS

    async def test_logout_invalidates_token(self, manager):
        session, token = await manager.login("admin@example.com", "s3cret-pass")

        await manager.logout(session)

        with pytest.raises(InvalidSessionError):
            await manager.resolve(token)

    @pytest.mark.parametrize("token", ["", "not-a-jwt"])
    async def test_malformed_token(self, manager, token):
        with pytest.raises(InvalidSessionError):
            await manager.resolve(token)

    async def test_token_signed_with_other_key(self, manager):
        session, _ = await manager.login("admin@example.com", "s3cret-pass")
        forged = jwt.encode({"sub": session.email, "sid": session.session_id}, "other-key", algorithm="HS256")

        with pytest.raises(InvalidSessionError):
            await manager.resolve(forged)

    async def test_expired_token(self, manager):
        session, _ = await manager.login("admin@example.com", "s3cret-pass")
        expired = jwt.encode(
            {"sub": session.email, "sid": session.session_id, "exp": int(time.time()) - 10},
            SECRET.get_secret_value(),
            algorithm="HS256",
        )

        with pytest.raises(InvalidSessionError):
            await manager.resolve(expired)

    def test_from_settings_picks_store(self, test_settings):
        assert isinstance(SessionManager.from_settings(test_settings).store, MemorySessionStore)

        redis_settings = test_settings.model_copy(
            update={"admin": test_settings.admin.model_copy(update={"session_backend": "redis"})}
        )
        assert isinstance(SessionManager.from_settings(redis_settings).store, RedisSessionStore)


class TestMemorySessionStore:
    """Tests for MemorySessionStore"""

    async def test_expired_sessions_are_dropped(self, manager):
        store = MemorySessionStore(ttl_seconds=-1)
        session, _ = await manager.login("admin@example.com", "s3cret-pass")

        await store.save(session)

        assert await store.get(session.session_id) is None
