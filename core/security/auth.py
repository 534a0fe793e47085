"""
Authentication Module

관리자 세션 JWT 검증.
관리자 콘솔이 발행한 Bearer 토큰에서 사용자와 역할(role)을 추출합니다.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, Field, ValidationError

from core.config import settings

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


class TokenPayload(BaseModel):
    """
    JWT 페이로드 모델

    JWT 표준에 따라 exp와 iat는 Unix timestamp (초 단위 정수)입니다.
    """
    sub: str = Field(..., description="사용자 ID (subject)")
    email: str | None = Field(None, description="이메일")
    role: str = Field(default="user", description="사용자 역할")
    exp: int | None = Field(None, description="만료 시간 (Unix timestamp, 초 단위)")
    iat: int | None = Field(None, description="발행 시간 (Unix timestamp, 초 단위)")


class User(BaseModel):
    """사용자 정보 모델"""
    user_id: str
    email: str | None = None
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class AuthService:
    """
    인증 서비스 클래스

    JWT 생성, 검증 및 사용자 정보 추출을 담당합니다.
    """

    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
    ) -> None:
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm

    def create_access_token(
        self,
        data: dict[str, Any],
        expires_delta: timedelta | None = None,
    ) -> str:
        """
        JWT Access Token 생성 (스크립트/테스트용)

        Args:
            data: 토큰에 포함할 데이터
            expires_delta: 만료 시간 (None이면 기본값 사용)

        Returns:
            JWT 토큰 문자열
        """
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
        to_encode.update({
            "exp": int(expire.timestamp()),
            "iat": int(now.timestamp()),
        })
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> TokenPayload | None:
        """
        JWT 토큰 검증 및 페이로드 추출

        jwt.decode()가 exp 클레임을 자동으로 검증합니다.

        Returns:
            TokenPayload 또는 None (검증 실패 시)
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            return TokenPayload(**payload)
        except JWTError as e:
            logger.warning(f"JWT verification failed: {e}")
            return None
        except ValidationError as e:
            logger.warning(f"JWT payload invalid: {e}")
            return None

    def extract_user_from_token(self, token: str) -> User | None:
        token_payload = self.verify_token(token)
        if token_payload is None:
            return None
        return User(
            user_id=token_payload.sub,
            email=token_payload.email,
            role=token_payload.role,
        )

    def extract_bearer_token(self, authorization: str) -> str | None:
        """
        Authorization 헤더에서 Bearer 토큰 추출

        Args:
            authorization: Authorization 헤더 값 (예: "Bearer eyJ...")
        """
        if not authorization:
            return None

        parts = authorization.split()
        if len(parts) != 2:
            logger.warning("Invalid authorization header format")
            return None

        scheme, token = parts
        if scheme.lower() != "bearer":
            logger.warning(f"Unsupported authorization scheme: {scheme}")
            return None

        return token


# 전역 AuthService 인스턴스
_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service


def create_token(user_id: str, role: str = "user", **extra: Any) -> str:
    """사용자 토큰 생성"""
    auth = get_auth_service()
    return auth.create_access_token({"sub": user_id, "role": role, **extra})


def get_user_from_token(token: str) -> User | None:
    """토큰에서 사용자 정보 추출"""
    return get_auth_service().extract_user_from_token(token)


def extract_bearer_token(authorization: str) -> str | None:
    """Authorization 헤더에서 토큰 추출"""
    return get_auth_service().extract_bearer_token(authorization)
