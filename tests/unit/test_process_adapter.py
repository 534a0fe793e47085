"""
Process Phase Adapter 단위 테스트

실제 프로세스 대신 asyncio.StreamReader 기반 가짜 프로세스를 주입합니다.
"""

import asyncio

import pytest

from core.operations.events import FATAL_PHASE, SETUP_PHASE, TERMINAL_PHASE, ProgressLevel
from core.operations.process_adapter import LineBuffer, ProcessPhaseAdapter, classify, strip_ansi


class FakeProcess:
    """asyncio.subprocess.Process 대역"""

    def __init__(self, stdout: list[bytes], stderr: list[bytes] | None = None, exit_code: int = 0,
                 hang: bool = False) -> None:
        self.stdout = self._reader(stdout, eof=not hang)
        self.stderr = self._reader(stderr or [], eof=not hang)
        self.returncode: int | None = None
        self.killed = False
        self._exit_code = exit_code
        self._exited = asyncio.Event()
        if not hang:
            self._exited.set()

    @staticmethod
    def _reader(chunks: list[bytes], eof: bool) -> asyncio.StreamReader:
        reader = asyncio.StreamReader()
        for chunk in chunks:
            reader.feed_data(chunk)
        if eof:
            reader.feed_eof()
        return reader

    async def wait(self) -> int:
        await self._exited.wait()
        if self.returncode is None:
            self.returncode = self._exit_code
        return self.returncode

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9
        self.stdout.feed_eof()
        self.stderr.feed_eof()
        self._exited.set()


def _spawner(process: FakeProcess, calls: list | None = None):
    async def spawn(executable, args):
        if calls is not None:
            calls.append((executable, list(args)))
        return process

    return spawn


# ==================== classify / LineBuffer ====================

@pytest.mark.parametrize("line, expected", [
    ("✓ renders dashboard", ProgressLevel.SUCCESS),
    ("PASS src/api.test.ts", ProgressLevel.SUCCESS),
    ("3 passed", ProgressLevel.SUCCESS),
    ("✗ login works", ProgressLevel.ERROR),
    ("FAIL src/auth.test.ts", ProgressLevel.ERROR),
    ("1 failed, 3 passed", ProgressLevel.ERROR),
    ("⚠ slow test", ProgressLevel.WARNING),
    ("WARNING: deprecated flag", ProgressLevel.WARNING),
    ("Collecting tests...", ProgressLevel.INFO),
])
def test_classify_stdout(line, expected):
    assert classify(line) is expected


def test_classify_stderr_floor_is_warning():
    assert classify("Collecting tests...", is_stderr=True) is ProgressLevel.WARNING
    assert classify("✓ ok", is_stderr=True) is ProgressLevel.WARNING
    assert classify("FAIL boom", is_stderr=True) is ProgressLevel.ERROR


def test_strip_ansi():
    assert strip_ansi("\x1b[32m✓ ok\x1b[0m") == "✓ ok"


def test_line_buffer_joins_split_chunks():
    buffer = LineBuffer()
    assert buffer.feed(b"first li") == []
    assert buffer.feed(b"ne\r\nsecond\nthi") == ["first line", "second"]
    assert buffer.flush() == ["thi"]
    assert buffer.flush() == []


def test_line_buffer_decodes_split_utf8():
    check = "✓".encode("utf-8")
    buffer = LineBuffer()
    assert buffer.feed(check[:1]) == []
    assert buffer.feed(check[1:] + b" done\n") == ["✓ done"]


# ==================== Adapter ====================

@pytest.mark.asyncio
async def test_divider_increments_phase_once(recorder):
    adapter = ProcessPhaseAdapter("npm", ["test"], spawner=_spawner(FakeProcess([b"===\n", b"\xe2\x9c\x93 test one passed\n"])))
    await adapter(recorder)

    assert recorder.events[0].phase == SETUP_PHASE
    assert recorder.events[0].message == "Running: npm test"
    body = recorder.events[1:-1]
    assert len(body) == 1
    assert body[0].phase == 2
    assert body[0].phaseName == "Tests"
    assert body[0].level is ProgressLevel.SUCCESS
    assert recorder.last.phase == TERMINAL_PHASE


@pytest.mark.asyncio
async def test_exit_zero_is_success_summary(recorder):
    process = FakeProcess(
        [b"Running suite\n", b"\x1b[32m\xe2\x9c\x93 a\x1b[0m\n\xe2\x9c\x93 b\n", b"\n"],
        [b"npm WARN config\n"],
        exit_code=0,
    )
    adapter = ProcessPhaseAdapter("npm", ["test"], spawner=_spawner(process))
    await adapter(recorder)

    assert recorder.last.level is ProgressLevel.SUCCESS
    assert recorder.last.message == "Tests passed (exit code 0): 2 passing, 0 failing line(s)"
    stderr_events = [e for e in recorder.events if e.message == "npm WARN config"]
    assert stderr_events[0].level is ProgressLevel.WARNING
    assert all(e.message for e in recorder.events)
    assert adapter.exit_code == 0


@pytest.mark.asyncio
async def test_exit_nonzero_is_error_summary(recorder):
    process = FakeProcess([b"\xe2\x9c\x97 login works\n", b"partial line without newline"], exit_code=1)
    await ProcessPhaseAdapter("npm", ["test"], spawner=_spawner(process))(recorder)

    messages = [e.message for e in recorder.events]
    assert "partial line without newline" in messages
    assert recorder.last.phase == TERMINAL_PHASE
    assert recorder.last.level is ProgressLevel.ERROR
    assert recorder.last.message.startswith("Tests failed (exit code 1)")


@pytest.mark.asyncio
async def test_spawn_failure_emits_fatal(recorder):
    async def missing(executable, args):
        raise FileNotFoundError(2, "No such file or directory", executable)

    await ProcessPhaseAdapter("npx-missing", [], spawner=missing)(recorder)
    assert recorder.phases == [SETUP_PHASE, FATAL_PHASE]
    assert recorder.last.level is ProgressLevel.ERROR
    assert recorder.last.message.startswith("Failed to start test process:")


@pytest.mark.asyncio
async def test_cancelled_run_kills_and_reaps_process(recorder):
    process = FakeProcess([b"starting\n"], hang=True)
    adapter = ProcessPhaseAdapter("npm", ["test"], spawner=_spawner(process))
    task = asyncio.create_task(adapter(recorder))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert process.killed is True
    assert process.returncode is not None
    assert TERMINAL_PHASE not in recorder.phases


@pytest.mark.asyncio
async def test_spawner_receives_args(recorder):
    calls: list = []
    adapter = ProcessPhaseAdapter("npm", ["test", "--", "--filter", "auth"],
                                  spawner=_spawner(FakeProcess([]), calls))
    await adapter(recorder)
    assert calls == [("npm", ["test", "--", "--filter", "auth"])]
    assert recorder.events[0].message == "Running: npm test -- --filter auth"
