"""
SSE(Server-Sent Events) 공통 유틸

작업 스트림 응답 생성과 프레임 파싱 헬퍼.
프레임 형식: data: <ProgressEvent JSON>\\n\\n (종료 sentinel 없음, 연결 종료가 곧 스트림 끝)
"""

import asyncio
import logging
from typing import AsyncIterator

from fastapi.responses import StreamingResponse

from core.operations.events import ProgressEvent
from core.operations.publisher import Operation, QueueTransport, StreamPublisher, launch

logger = logging.getLogger(__name__)

# 스트리밍 응답 공통 헤더 (프록시 버퍼링 비활성화)
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def parse_sse_events(body: str) -> list[ProgressEvent]:
    """
    SSE 본문을 ProgressEvent 목록으로 파싱 (소비 측 검증).
    data: 이외의 줄(주석 등)은 무시합니다.
    """
    events: list[ProgressEvent] = []
    for block in body.split("\n\n"):
        data_lines = [line[len("data:"):].lstrip() for line in block.splitlines() if line.startswith("data:")]
        if data_lines:
            events.append(ProgressEvent.model_validate_json("\n".join(data_lines)))
    return events


async def _relay(transport: QueueTransport, name: str, timeout: float) -> AsyncIterator[str]:
    finished = False
    try:
        async for frame in transport.frames(timeout=timeout):
            yield frame
        finished = True
    except asyncio.TimeoutError:
        logger.warning("%s: stream budget of %.0fs exceeded, detaching client", name, timeout)
    finally:
        if not finished:
            # 클라이언트 연결 종료 / 예산 초과: 런은 백그라운드에서 계속
            transport.detach()
            logger.info("%s: client detached before stream end", name)


def stream_operation(operation: Operation, *, name: str, timeout: float) -> StreamingResponse:
    """
    작업 1건을 백그라운드 런으로 시작하고 SSE 응답으로 중계.

    Args:
        operation: emit을 받아 실행되는 작업 (GatedOperation, ProcessPhaseAdapter 등)
        name: 로그용 작업 이름
        timeout: 스트림 최대 시간 (호스팅 계층 예산, 엔진 내부에는 데드라인 없음)
    """
    transport = QueueTransport()
    publisher = StreamPublisher(transport, name=name)
    launch(publisher, operation)
    return StreamingResponse(
        _relay(transport, name, timeout),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
