"""
API Middleware Module

FastAPI 미들웨어와 예외 핸들러를 구현합니다.
- 로깅 (raw ASGI: SSE 스트림 본문을 건드리지 않음)
- 예외 처리 (스트림 시작 전 발생한 OperationError → JSON 응답)

인증은 미들웨어가 아니라 의존성(api.dependencies.require_admin)으로 처리합니다.
"""

import logging
import time
import uuid

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from core.operations.errors import OperationError

logger = logging.getLogger(__name__)


class RawRequestLoggingMiddleware:
    """
    로깅만 수행하는 raw ASGI 미들웨어.
    응답 본문을 읽거나 버퍼링하지 않아 SSE 스트림이 그대로 클라이언트로 전달됩니다.
    (BaseHTTPMiddleware는 StreamingResponse와 궁합 문제로 0바이트 전달될 수 있음)
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return
        request_id = str(uuid.uuid4())
        scope["request_id"] = request_id
        start_time = time.time()
        method = scope.get("method", "")
        path = scope.get("path", "")
        client = scope.get("client")
        client_host = client[0] if client else "unknown"
        logger.info(f"[{request_id}] {method} {path} - Client: {client_host}")
        status_code: int | None = None

        async def send_wrapper(message: dict) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
                headers = list(message.get("headers", []))
                headers.append((b"x-request-id", request_id.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)
            if message["type"] == "http.response.body" and not message.get("more_body", False):
                duration = time.time() - start_time
                logger.info(
                    f"[{request_id}] {method} {path} - Status: {status_code} - Duration: {duration:.3f}s"
                )

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"[{request_id}] Request failed after {duration:.3f}s: {e}",
                exc_info=True,
            )
            raise


async def operation_error_handler(request: Request, exc: OperationError) -> JSONResponse:
    """작업 조립 단계에서 발생한 오류 (스트림 시작 전)"""
    logger.warning(f"Operation error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": str(exc),
            "error_type": "operation_error",
        },
    )


def setup_middlewares(app: FastAPI) -> None:
    """
    FastAPI 앱에 미들웨어 및 예외 핸들러 추가.
    로깅은 raw ASGI로 해서 SSE 스트림 본문이 그대로 전달되도록 함.
    """
    app.add_exception_handler(OperationError, operation_error_handler)
    app.add_middleware(RawRequestLoggingMiddleware)
    logger.info("Middlewares configured")
