"""
API Dependencies Module

FastAPI 의존성 주입을 위한 함수들을 정의합니다.
협력자(collaborator)는 여기서만 조립되며, 테스트는 dependency_overrides로 교체합니다.
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from core.config import Settings, get_settings
from core.demo.collaborators import DemoCollaborators
from core.demo.downstream import HttpDownstreamJobTrigger
from core.demo.memory_backend import InMemoryDemoBackend
from core.e2e.collaborators import E2ECollaborators
from core.e2e.memory_store import InMemoryE2EBackend
from core.operations.process_adapter import ProcessSpawner, make_process_spawner
from core.security.auth import User, extract_bearer_token, get_user_from_token

logger = logging.getLogger(__name__)

DEV_ADMIN = User(user_id="dev-admin", role="admin")


async def get_current_user(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    """
    현재 인증된 사용자 반환

    Authorization: Bearer <JWT> 를 검증합니다.
    require_auth=False(개발 모드)면 개발용 관리자를 반환합니다.

    Raises:
        HTTPException: 인증되지 않은 경우 (401)
    """
    if not settings.require_auth:
        return DEV_ADMIN

    authorization = request.headers.get("Authorization")
    if authorization:
        token = extract_bearer_token(authorization)
        if token:
            user = get_user_from_token(token)
            if user:
                request.state.user = user
                return user

    logger.warning(f"Authentication failed for path: {request.url.path}")
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_admin(
    user: Annotated[User, Depends(get_current_user)],
) -> User:
    """관리자 권한 확인 (403)"""
    if not user.is_admin:
        logger.warning(f"User {user.user_id} is not an admin (role={user.role})")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


@lru_cache()
def get_demo_backend() -> InMemoryDemoBackend:
    """프로세스 공유 in-memory 데모 저장소"""
    return InMemoryDemoBackend(days=get_settings().demo_data_days)


def get_demo_collaborators(
    settings: Annotated[Settings, Depends(get_settings)],
) -> DemoCollaborators:
    """
    데모 협력자 조립.
    downstream_base_url이 있으면 다운스트림 작업만 HTTP로 트리거합니다.
    """
    backend = get_demo_backend()
    collaborators = backend.collaborators()
    if settings.downstream_base_url:
        return DemoCollaborators(
            status=collaborators.status,
            identities=collaborators.identities,
            social=collaborators.social,
            artifacts=collaborators.artifacts,
            jobs=HttpDownstreamJobTrigger(settings.downstream_base_url, timeout=settings.downstream_timeout),
        )
    return collaborators


@lru_cache()
def get_e2e_backend() -> InMemoryE2EBackend:
    """프로세스 공유 in-memory E2E 테스트 데이터 저장소"""
    return InMemoryE2EBackend()


def get_e2e_collaborators() -> E2ECollaborators:
    return get_e2e_backend().collaborators()


def get_process_spawner(
    settings: Annotated[Settings, Depends(get_settings)],
) -> ProcessSpawner:
    return make_process_spawner(settings.test_runner_cwd)


# 타입 별칭 (편의성)
AdminUser = Annotated[User, Depends(require_admin)]
AppSettings = Annotated[Settings, Depends(get_settings)]
Collaborators = Annotated[DemoCollaborators, Depends(get_demo_collaborators)]
Spawner = Annotated[ProcessSpawner, Depends(get_process_spawner)]
TestData = Annotated[E2ECollaborators, Depends(get_e2e_collaborators)]
