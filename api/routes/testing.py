"""
Testing Admin Routes

GET  /admin/e2e/status               - E2E 테스트 계정/문서 상태 (JSON)
GET  /admin/e2e/phases               - 테스트 데이터 작업별 페이즈 목록 (JSON)
POST /admin/e2e/tests                - 통합/E2E 테스트 러너 실행, 출력 줄을 진행 이벤트로 스트리밍
POST /admin/e2e/seed                 - E2E 테스트 계정 + 문서 시드 (1..3 → 99)
POST /admin/e2e/cleanup              - E2E 테스트 데이터 삭제 (0 → 99)
POST /admin/e2e/performance/seed     - 합성 성능 지표 + 일별 집계 (1..2 → 99)
POST /admin/e2e/performance/cleanup  - 성능 지표/집계 삭제 (0..2 → 99)
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, HTTPException, status
from fastapi.responses import StreamingResponse

from api.dependencies import AdminUser, AppSettings, Spawner, TestData
from api.schemas.operations import SuiteRunOptions
from api.sse_utils import stream_operation
from core.e2e.collaborators import E2EStatus
from core.e2e.pipelines import (
    E2E_STATUS_FAILURE_PREFIX,
    build_e2e_cleanup_operation,
    build_e2e_seed_operation,
    build_perf_cleanup_operation,
    build_perf_seed_operation,
    resolve_e2e_status,
)
from core.e2e.suite_runner import build_suite_run_operation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/e2e", tags=["admin-e2e"])


@router.get("/status", response_model=E2EStatus)
async def e2e_status(user: AdminUser, data: TestData) -> E2EStatus:
    """E2E 테스트 데이터 상태 조회"""
    try:
        return await resolve_e2e_status(data)
    except Exception as e:
        logger.error(f"E2E status lookup failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"{E2E_STATUS_FAILURE_PREFIX}: {e}",
        )


@router.get("/phases")
async def e2e_phases(user: AdminUser, data: TestData, settings: AppSettings) -> list[dict[str, Any]]:
    """테스트 데이터 작업별 선언 페이즈 (진행 체크리스트 렌더링용)"""
    days = settings.perf_seed_days
    return [
        build_e2e_seed_operation(data).describe(),
        build_e2e_cleanup_operation(data).describe(),
        build_perf_seed_operation(data, days=days).describe(),
        build_perf_cleanup_operation(data, days=days).describe(),
    ]


@router.post("/tests")
async def run_tests(
    user: AdminUser,
    settings: AppSettings,
    spawner: Spawner,
    body: Annotated[SuiteRunOptions | None, Body()] = None,
) -> StreamingResponse:
    """
    테스트 러너 실행

    0 Setup(명령 줄) → 1 Tests(출력 줄, 구분선마다 +1) → 99 종료 코드 요약
    """
    options = body or SuiteRunOptions()
    operation = build_suite_run_operation(options, settings, spawner=spawner)
    logger.info(f"Test run requested by {user.user_id}: {operation.command}")
    return stream_operation(operation, name="e2e.tests", timeout=settings.test_run_timeout_seconds)


@router.post("/seed")
async def seed_e2e(user: AdminUser, data: TestData, settings: AppSettings) -> StreamingResponse:
    """E2E 테스트 데이터 시드 (반복 실행 시 계정 재사용, 문서 덮어쓰기)"""
    logger.info(f"E2E seed requested by {user.user_id}")
    return stream_operation(
        build_e2e_seed_operation(data),
        name="e2e.seed",
        timeout=settings.demo_operation_timeout_seconds,
    )


@router.post("/cleanup")
async def cleanup_e2e(user: AdminUser, data: TestData, settings: AppSettings) -> StreamingResponse:
    """E2E 테스트 문서와 계정 삭제"""
    logger.info(f"E2E cleanup requested by {user.user_id}")
    return stream_operation(
        build_e2e_cleanup_operation(data),
        name="e2e.cleanup",
        timeout=settings.demo_operation_timeout_seconds,
    )


@router.post("/performance/seed")
async def seed_performance(user: AdminUser, data: TestData, settings: AppSettings) -> StreamingResponse:
    logger.info(f"Performance seed requested by {user.user_id} ({settings.perf_seed_days} days)")
    return stream_operation(
        build_perf_seed_operation(data, days=settings.perf_seed_days),
        name="e2e.performance.seed",
        timeout=settings.demo_operation_timeout_seconds,
    )


@router.post("/performance/cleanup")
async def cleanup_performance(user: AdminUser, data: TestData, settings: AppSettings) -> StreamingResponse:
    logger.info(f"Performance cleanup requested by {user.user_id}")
    return stream_operation(
        build_perf_cleanup_operation(data, days=settings.perf_seed_days),
        name="e2e.performance.cleanup",
        timeout=settings.demo_operation_timeout_seconds,
    )
