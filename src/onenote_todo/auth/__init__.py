"""Token caching and acquisition for signed-in users."""

from __future__ import annotations

from .provider import AuthSessionProvider, confidential_app_factory
from .token_cache import SessionTokenCache

__all__ = [
    "AuthSessionProvider",
    "SessionTokenCache",
    "confidential_app_factory",
]
