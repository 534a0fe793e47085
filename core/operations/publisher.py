"""
Stream Publisher

런 1건의 단일 출력 채널을 소유하고 프로토콜 규율을 보장합니다.

- emit(event): 호출 순서대로 즉시 직렬화하여 전송 (배치/재정렬 없음)
- run(operation): 작업 전체를 보호 구역으로 감싸고, 종료 이벤트가 없으면 phase -1 error 1건 보강
- 모든 종료 경로에서 전송 채널을 정확히 1회 close
- 클라이언트 연결 종료로 인한 쓰기 실패는 삼키고 작업은 끝까지 진행 (부수효과 유지)
"""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from core.operations.errors import TransportClosedError
from core.operations.events import ProgressEvent

logger = logging.getLogger(__name__)

Emit = Callable[[ProgressEvent], None]
Operation = Callable[[Emit], Awaitable[None]]

# 실행 중인 런 태스크 (GC 방지 및 종료 시 정리)
_active_runs: set[asyncio.Task] = set()


def format_sse_data(payload: dict[str, Any]) -> str:
    """SSE 프레임: data: <json> + 빈 줄 (event 필드 없음)"""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class QueueTransport:
    """
    서버→클라이언트 단방향 전송 채널 (asyncio.Queue 기반)

    생산자(publisher)는 write/close, 소비자(HTTP 응답 제너레이터)는 frames()로 읽습니다.
    소비자가 사라지면 detach() → 이후 write는 TransportClosedError.
    """

    _CLOSE = None

    def __init__(self) -> None:
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._closed = False
        self._detached = False
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def detached(self) -> bool:
        return self._detached

    def write(self, frame: str) -> None:
        if self._detached:
            raise TransportClosedError("Client disconnected")
        if self._closed:
            raise TransportClosedError("Transport already closed")
        self._queue.put_nowait(frame)

    def close(self) -> None:
        self.close_count += 1
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(self._CLOSE)

    def detach(self) -> None:
        """소비자 측 연결 종료. 남은 프레임은 버림"""
        self._detached = True
        while not self._queue.empty():
            self._queue.get_nowait()

    async def frames(self, timeout: float | None = None) -> AsyncIterator[str]:
        """
        close될 때까지 프레임을 순서대로 반환.

        Args:
            timeout: 전체 스트림 예산 (초). 초과 시 TimeoutError
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None
        while True:
            if deadline is None:
                frame = await self._queue.get()
            else:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise asyncio.TimeoutError()
                frame = await asyncio.wait_for(self._queue.get(), timeout=remaining)
            if frame is self._CLOSE:
                return
            yield frame


class StreamPublisher:
    """런 1건의 이벤트 발행자"""

    def __init__(self, transport: QueueTransport, *, name: str = "operation") -> None:
        self.transport = transport
        self.name = name
        self.events: list[ProgressEvent] = []
        self.terminal_event: ProgressEvent | None = None
        self.client_connected = True
        self._closed = False

    @property
    def terminated(self) -> bool:
        return self.terminal_event is not None

    def emit(self, event: ProgressEvent | dict[str, Any]) -> None:
        """이벤트 1건을 검증·직렬화하여 즉시 전송"""
        if not isinstance(event, ProgressEvent):
            event = ProgressEvent.model_validate(event)
        if self.terminal_event is not None:
            logger.warning(
                "%s: dropping event after terminal (phase=%s): %s",
                self.name, event.phase, event.message,
            )
            return
        self.events.append(event)
        if event.is_terminal:
            self.terminal_event = event
        if not self.client_connected:
            return
        try:
            self.transport.write(format_sse_data(event.to_payload()))
        except TransportClosedError:
            # 클라이언트가 떠나도 런은 계속 진행
            self.client_connected = False
            logger.debug("%s: client disconnected, continuing without listener", self.name)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.transport.close()
        logger.info(
            "%s: stream closed (%d events, terminal=%s)",
            self.name,
            len(self.events),
            self.terminal_event.phase if self.terminal_event else None,
        )

    async def run(self, operation: Operation) -> None:
        """
        작업 실행 보호 구역.

        어떤 예외가 나도 종료 이벤트가 없으면 phase -1 error를 1건 보강하고,
        모든 경로에서 close를 정확히 1회 호출합니다.
        """
        logger.info("%s: run started", self.name)
        try:
            await operation(self.emit)
            if not self.terminated:
                logger.error("%s: operation returned without a terminal event", self.name)
                self.emit(ProgressEvent.fatal("Operation ended without reporting a result"))
        except asyncio.CancelledError:
            if not self.terminated:
                self.emit(ProgressEvent.fatal("Operation was cancelled"))
            raise
        except Exception as e:
            logger.exception("%s: operation failed", self.name)
            if not self.terminated:
                self.emit(ProgressEvent.fatal(f"Operation failed: {e or type(e).__name__}"))
        finally:
            self.close()


def launch(publisher: StreamPublisher, operation: Operation) -> asyncio.Task:
    """
    런을 HTTP 응답과 분리된 백그라운드 태스크로 시작.
    클라이언트 연결 종료는 태스크를 취소하지 않습니다.
    """
    task = asyncio.create_task(publisher.run(operation), name=f"opstream:{publisher.name}")
    _active_runs.add(task)
    task.add_done_callback(_active_runs.discard)
    return task


def active_run_count() -> int:
    return len(_active_runs)


async def shutdown_active_runs(timeout: float = 5.0) -> None:
    """애플리케이션 종료 시 남은 런 취소 및 대기 (프로세스 reaping 포함)"""
    if not _active_runs:
        return
    tasks = list(_active_runs)
    logger.info("Cancelling %d active operation run(s)", len(tasks))
    for task in tasks:
        task.cancel()
    await asyncio.wait(tasks, timeout=timeout)
