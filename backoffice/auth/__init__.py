"""
Auth Module
"""
from .sessions import (
    AdminSession,
    AdminView,
    AuthResult,
    Authenticator,
    InvalidCredentialsError,
    InvalidSessionError,
    MemorySessionStore,
    RedisSessionStore,
    SessionManager,
)

__all__ = [
    "AdminSession",
    "AdminView",
    "AuthResult",
    "Authenticator",
    "InvalidCredentialsError",
    "InvalidSessionError",
    "MemorySessionStore",
    "RedisSessionStore",
    "SessionManager",
]
