"""
Admin Authentication and Sessions

The login gate of the back-office. Credentials come from configuration and
are checked by an ``Authenticator``. A successful login creates an explicit
``AdminSession`` held in a session store and hands out a signed bearer
token that names it. Logging out deletes the session, which invalidates
the token even before it expires.
"""

import secrets
import time
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Optional, Tuple

import structlog
from jose import JWTError, jwt
from pydantic import BaseModel, SecretStr

from backoffice.config import Settings
from backoffice.serving.cache import CacheManager

logger = structlog.get_logger(__name__)


class AuthResult(str, Enum):
    """Outcome of a credential check"""
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


class AdminView(str, Enum):
    """Back-office screens an admin can land on"""
    DASHBOARD = "dashboard"
    PRODUCTS = "products"
    ORDERS = "orders"
    BANNERS = "banners"
    SALES = "sales"


DEFAULT_VIEW = AdminView.DASHBOARD


class InvalidCredentialsError(Exception):
    """Login rejected"""


class InvalidSessionError(Exception):
    """Token is malformed, expired, or names a session that no longer exists"""


class AdminSession(BaseModel):
    """Server-side state of one signed-in admin"""
    session_id: str
    email: str
    authenticated: bool = True
    last_view: Optional[AdminView] = None
    created_at: int

    @property
    def redirect_to(self) -> AdminView:
        """Where a reloaded client should land."""
        return self.last_view or DEFAULT_VIEW


class Authenticator:
    """Checks a login against the configured administrator account"""

    def __init__(self, email: Optional[str], password: Optional[SecretStr]):
        self._email = (email or "").strip().lower()
        self._password = password if password is not None else SecretStr("")

    @property
    def configured(self) -> bool:
        return bool(self._email and self._password.get_secret_value())

    def authenticate(self, email: str, password: str) -> AuthResult:
        if not self.configured:
            return AuthResult.REJECTED
        email_ok = secrets.compare_digest(
            email.strip().lower().encode(), self._email.encode()
        )
        password_ok = secrets.compare_digest(
            password.encode(), self._password.get_secret_value().encode()
        )
        return AuthResult.AUTHENTICATED if email_ok and password_ok else AuthResult.REJECTED


class SessionStore:
    """Interface shared by session store backends"""

    async def save(self, session: AdminSession) -> None:
        raise NotImplementedError

    async def get(self, session_id: str) -> Optional[AdminSession]:
        raise NotImplementedError

    async def delete(self, session_id: str) -> None:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    """
    Process-local session store.

    Suitable for a single server worker; use the Redis store when running
    several.
    """

    def __init__(self, ttl_seconds: int):
        self.ttl_seconds = ttl_seconds
        self._sessions: Dict[str, Tuple[float, AdminSession]] = {}

    async def save(self, session: AdminSession) -> None:
        self._sessions[session.session_id] = (time.time() + self.ttl_seconds, session)

    async def get(self, session_id: str) -> Optional[AdminSession]:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        expires_at, session = entry
        if expires_at < time.time():
            del self._sessions[session_id]
            return None
        return session

    async def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)


class RedisSessionStore(SessionStore):
    """Session store on Redis, shared by every server worker"""

    def __init__(self, ttl_seconds: int):
        self._cache = CacheManager("sessions", default_ttl=ttl_seconds)

    async def save(self, session: AdminSession) -> None:
        await self._cache.set(session.session_id, session.model_dump(mode="json"))

    async def get(self, session_id: str) -> Optional[AdminSession]:
        data = await self._cache.get(session_id)
        return AdminSession.model_validate(data) if data else None

    async def delete(self, session_id: str) -> None:
        await self._cache.delete(session_id)


class SessionManager:
    """
    Login, session lookup and logout.

    Example:
        manager = SessionManager.from_settings(settings)
        session, token = await manager.login("admin@example.com", "secret")
        session = await manager.resolve(token)
    """

    def __init__(
        self,
        authenticator: Authenticator,
        store: SessionStore,
        secret_key: SecretStr,
        algorithm: str = "HS256",
        ttl_seconds: int = 12 * 3600,
    ):
        self.authenticator = authenticator
        self.store = store
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionManager":
        ttl_seconds = settings.security.jwt_expiration_hours * 3600
        if settings.admin.session_backend == "redis":
            store: SessionStore = RedisSessionStore(ttl_seconds)
        else:
            store = MemorySessionStore(ttl_seconds)

        authenticator = Authenticator(settings.admin.email, settings.admin.password)
        if not authenticator.configured:
            logger.warning("No administrator account configured; every login will be rejected")

        return cls(
            authenticator=authenticator,
            store=store,
            secret_key=settings.security.jwt_secret_key,
            algorithm=settings.security.jwt_algorithm,
            ttl_seconds=ttl_seconds,
        )

    def issue_token(self, session: AdminSession) -> str:
        expires = datetime.now(timezone.utc) + timedelta(seconds=self.ttl_seconds)
        claims = {"sub": session.email, "sid": session.session_id, "exp": expires}
        return jwt.encode(claims, self._secret_key.get_secret_value(), algorithm=self._algorithm)

    async def login(self, email: str, password: str) -> Tuple[AdminSession, str]:
        """
        Raises:
            InvalidCredentialsError: If the credentials do not match
        """
        if self.authenticator.authenticate(email, password) is not AuthResult.AUTHENTICATED:
            logger.warning("Admin login rejected", email=email)
            raise InvalidCredentialsError("Invalid admin credentials.")

        session = AdminSession(
            session_id=secrets.token_urlsafe(24),
            email=email.strip().lower(),
            created_at=int(time.time() * 1000),
        )
        await self.store.save(session)
        logger.info("Admin logged in", email=session.email)
        return session, self.issue_token(session)

    async def resolve(self, token: str) -> AdminSession:
        """
        Raises:
            InvalidSessionError: If the token is bad or its session is gone
        """
        try:
            claims = jwt.decode(token, self._secret_key.get_secret_value(), algorithms=[self._algorithm])
        except JWTError as e:
            raise InvalidSessionError("Could not validate credentials") from e

        session_id = claims.get("sid")
        session = await self.store.get(session_id) if session_id else None
        if session is None or not session.authenticated:
            raise InvalidSessionError("Session expired or logged out")
        return session

    async def record_view(self, session: AdminSession, view: AdminView) -> AdminSession:
        updated = session.model_copy(update={"last_view": view})
        await self.store.save(updated)
        return updated

    async def logout(self, session: AdminSession) -> None:
        await self.store.delete(session.session_id)
        logger.info("Admin logged out", email=session.email)
