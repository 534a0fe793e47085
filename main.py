"""
Opstream-Admin Main Entry Point

FastAPI 애플리케이션의 진입점입니다.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from api.middleware import setup_middlewares
from core.operations.publisher import active_run_count, shutdown_active_runs

# 로깅 설정
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    애플리케이션 라이프사이클 관리

    종료 시: 진행 중인 백그라운드 런 정리 (각 런은 -1 종료 이벤트 후 닫힘)
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.app_env}")

    yield

    # Shutdown
    logger.info(f"Shutting down application ({active_run_count()} active runs)")
    await shutdown_active_runs()


# FastAPI 애플리케이션 초기화
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Admin operations streaming service - demo seeding and test runs over SSE",
    debug=settings.debug,
    lifespan=lifespan,
)

# CORS 미들웨어 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 커스텀 미들웨어 설정
setup_middlewares(app)

# API 라우터 등록
from api.routes.demo import router as demo_router
from api.routes.testing import router as testing_router

app.include_router(demo_router)
app.include_router(testing_router)


@app.get("/")
async def root() -> dict[str, str]:
    """
    루트 엔드포인트

    Returns:
        환영 메시지
    """
    return {
        "message": f"Welcome to {settings.app_name}!",
        "version": settings.app_version,
        "status": "operational",
    }


@app.get("/health")
async def health_check() -> dict[str, str]:
    """
    헬스체크 엔드포인트

    Returns:
        서버 상태
    """
    return {
        "status": "healthy",
        "environment": settings.app_env,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
