"""
Demo Admin Routes

관리자 전용 데모 환경 작업. 모든 POST는 text/event-stream 으로 진행 이벤트를 스트리밍합니다.

GET  /admin/demo/status      - 데모/친구 계정 상태 (JSON)
GET  /admin/demo/phases      - 데모 작업별 페이즈 목록 (JSON)
POST /admin/demo/seed        - 전체 데모 시드 (0..16 → 99)
POST /admin/demo/seed-friend - 친구 계정 시드 (1..7 → 99)
POST /admin/demo/cleanup     - 데모/친구 계정 정리 (1..2 → 99)
POST /admin/demo/{job}       - 다운스트림 생성 작업 (life-feed / keywords / insights / memories)
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, HTTPException, status
from fastapi.responses import StreamingResponse

from api.dependencies import AdminUser, AppSettings, Collaborators
from api.schemas.operations import DemoSeedRequest
from api.sse_utils import stream_operation
from core.demo.collaborators import DemoStatus, JobKind
from core.demo.pipelines import (
    JOB_LABELS,
    build_cleanup_operation,
    build_demo_seed_operation,
    build_friend_seed_operation,
    build_job_operation,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/demo", tags=["admin-demo"])


@router.get("/status", response_model=DemoStatus)
async def demo_status(user: AdminUser, collab: Collaborators) -> DemoStatus:
    """데모 계정 상태 조회"""
    try:
        return await collab.status.resolve_demo_status()
    except Exception as e:
        logger.error(f"Demo status lookup failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to check demo status: {e}",
        )


@router.get("/phases")
async def demo_phases(user: AdminUser, collab: Collaborators) -> list[dict[str, Any]]:
    """데모 작업별 선언 페이즈 (reset 시드 기준, phase 0 Cleanup 포함)"""
    return [
        build_demo_seed_operation(collab, reset=True).describe(),
        build_friend_seed_operation(collab).describe(),
        build_cleanup_operation(collab).describe(),
        *(build_job_operation(collab, kind).describe() for kind in JOB_LABELS),
    ]


@router.post("/seed")
async def seed_demo(
    user: AdminUser,
    collab: Collaborators,
    settings: AppSettings,
    body: Annotated[DemoSeedRequest | None, Body()] = None,
) -> StreamingResponse:
    """
    전체 데모 시드

    계정이 이미 있고 reset이 아니면 99 warning(Skip) 1건으로 끝납니다.
    """
    options = body or DemoSeedRequest()
    logger.info(f"Demo seed requested by {user.user_id}: {options.model_dump()}")
    operation = build_demo_seed_operation(
        collab,
        reset=options.reset,
        skip_photos=options.skipPhotos,
        skip_life_feed=options.skipLifeFeed,
        skip_friend=options.skipFriend,
    )
    return stream_operation(operation, name="demo.seed", timeout=settings.demo_operation_timeout_seconds)


@router.post("/seed-friend")
async def seed_friend(user: AdminUser, collab: Collaborators, settings: AppSettings) -> StreamingResponse:
    """친구 계정 시드 (기본 데모 계정 필요)"""
    logger.info(f"Friend seed requested by {user.user_id}")
    return stream_operation(
        build_friend_seed_operation(collab),
        name="demo.seed-friend",
        timeout=settings.demo_operation_timeout_seconds,
    )


@router.post("/cleanup")
async def cleanup_demo(user: AdminUser, collab: Collaborators, settings: AppSettings) -> StreamingResponse:
    """데모/친구 계정과 데이터 삭제"""
    logger.info(f"Demo cleanup requested by {user.user_id}")
    return stream_operation(
        build_cleanup_operation(collab),
        name="demo.cleanup",
        timeout=settings.demo_operation_timeout_seconds,
    )


def _job_route(path: str, kind: JobKind) -> None:
    async def run_job(user: AdminUser, collab: Collaborators, settings: AppSettings) -> StreamingResponse:
        logger.info(f"Demo job {kind.value} requested by {user.user_id}")
        return stream_operation(
            build_job_operation(collab, kind),
            name=f"demo.{kind.value}",
            timeout=settings.demo_operation_timeout_seconds,
        )

    run_job.__name__ = f"run_{kind.value}_job"
    router.add_api_route(path, run_job, methods=["POST"], summary=f"Generate {kind.value}")


_job_route("/life-feed", JobKind.LIFE_FEED)
_job_route("/keywords", JobKind.KEYWORDS)
_job_route("/insights", JobKind.INSIGHTS)
_job_route("/memories", JobKind.MEMORIES)
