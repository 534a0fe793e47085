"""
Security Module

관리자 세션 JWT 인증.
"""

from core.security.auth import (
    ADMIN_ROLE,
    AuthService,
    TokenPayload,
    User,
    create_token,
    extract_bearer_token,
    get_auth_service,
    get_user_from_token,
)

__all__ = [
    "ADMIN_ROLE",
    "AuthService",
    "TokenPayload",
    "User",
    "create_token",
    "extract_bearer_token",
    "get_auth_service",
    "get_user_from_token",
]
