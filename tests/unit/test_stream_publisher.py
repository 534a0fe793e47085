"""
Stream Publisher / QueueTransport 단위 테스트
"""

import asyncio
import json

import pytest

from core.operations.errors import TransportClosedError
from core.operations.events import FATAL_PHASE, ProgressEvent, ProgressLevel
from core.operations.publisher import (
    QueueTransport,
    StreamPublisher,
    active_run_count,
    format_sse_data,
    launch,
    shutdown_active_runs,
)


async def _drain(transport: QueueTransport) -> list[dict]:
    return [json.loads(frame[len("data: "):]) async for frame in transport.frames(timeout=2.0)]


def _info(phase: int, message: str) -> ProgressEvent:
    return ProgressEvent(phase=phase, phaseName=f"Phase {phase}", level=ProgressLevel.INFO, message=message)


def test_sse_frame_format():
    frame = format_sse_data({"phase": 1, "message": "Sarah Johnson ✓"})
    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    assert "✓" in frame
    assert frame.count("\n") == 2


@pytest.mark.asyncio
async def test_run_closes_exactly_once_on_success():
    transport = QueueTransport()
    publisher = StreamPublisher(transport, name="ok")

    async def operation(emit):
        emit(_info(1, "working"))
        emit(ProgressEvent.complete("done"))

    await publisher.run(operation)
    assert transport.close_count == 1
    payloads = await _drain(transport)
    assert [p["phase"] for p in payloads] == [1, 99]


@pytest.mark.asyncio
async def test_crash_after_events_emits_single_fatal():
    transport = QueueTransport()
    publisher = StreamPublisher(transport, name="crash")

    async def operation(emit):
        emit(_info(1, "one"))
        emit(_info(2, "two"))
        raise RuntimeError("store exploded")

    await publisher.run(operation)
    payloads = await _drain(transport)
    assert [p["phase"] for p in payloads] == [1, 2, FATAL_PHASE]
    assert payloads[-1]["level"] == "error"
    assert "store exploded" in payloads[-1]["message"]
    assert transport.close_count == 1


@pytest.mark.asyncio
async def test_missing_terminal_is_reported():
    transport = QueueTransport()
    publisher = StreamPublisher(transport, name="silent")

    async def operation(emit):
        emit(_info(1, "only progress"))

    await publisher.run(operation)
    assert publisher.terminal_event is not None
    assert publisher.terminal_event.phase == FATAL_PHASE
    assert publisher.terminal_event.message == "Operation ended without reporting a result"


@pytest.mark.asyncio
async def test_events_after_terminal_are_dropped():
    transport = QueueTransport()
    publisher = StreamPublisher(transport, name="late")

    async def operation(emit):
        emit(ProgressEvent.complete("done"))
        emit(_info(1, "too late"))
        emit(ProgressEvent.fatal("also too late"))

    await publisher.run(operation)
    payloads = await _drain(transport)
    assert [p["message"] for p in payloads] == ["done"]


@pytest.mark.asyncio
async def test_client_disconnect_does_not_abort_operation():
    """전송 실패는 삼키고 작업은 끝까지 진행 (부수효과 유지)"""
    transport = QueueTransport()
    publisher = StreamPublisher(transport, name="detached")
    side_effects = []

    async def operation(emit):
        emit(_info(1, "before disconnect"))
        transport.detach()
        for i in range(3):
            side_effects.append(i)
            emit(_info(2, f"write {i}"))
        emit(ProgressEvent.complete("done"))

    await publisher.run(operation)
    assert side_effects == [0, 1, 2]
    assert publisher.client_connected is False
    assert publisher.terminal_event.message == "done"
    assert transport.close_count == 1


@pytest.mark.asyncio
async def test_transport_write_after_close_raises():
    transport = QueueTransport()
    transport.close()
    transport.close()
    with pytest.raises(TransportClosedError):
        transport.write("data: {}\n\n")
    assert transport.close_count == 2
    assert transport.closed


@pytest.mark.asyncio
async def test_frames_timeout_budget():
    transport = QueueTransport()
    with pytest.raises(asyncio.TimeoutError):
        async for _ in transport.frames(timeout=0.05):
            pass


@pytest.mark.asyncio
async def test_emit_accepts_dict_and_validates():
    transport = QueueTransport()
    publisher = StreamPublisher(transport)
    publisher.emit({"phase": 1, "phaseName": "A", "level": "info", "message": "m"})
    assert publisher.events[0].phaseName == "A"
    with pytest.raises(ValueError):
        publisher.emit({"phase": 1, "phaseName": "A", "level": "loud", "message": "m"})


@pytest.mark.asyncio
async def test_launch_and_shutdown_cancels_runs():
    transport = QueueTransport()
    publisher = StreamPublisher(transport, name="long")
    started = asyncio.Event()

    async def operation(emit):
        emit(_info(1, "waiting"))
        started.set()
        await asyncio.sleep(60)

    launch(publisher, operation)
    await started.wait()
    assert active_run_count() >= 1

    await shutdown_active_runs(timeout=1.0)
    assert publisher.terminal_event is not None
    assert publisher.terminal_event.phase == FATAL_PHASE
    assert publisher.terminal_event.message == "Operation was cancelled"
    assert transport.close_count == 1
