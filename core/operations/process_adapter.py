"""
Process Phase Adapter

외부 프로세스의 stdout/stderr 텍스트 출력을 Progress Event 스트림으로 변환합니다.
프로세스는 프로토콜을 알 필요가 없으며, 분류는 휴리스틱(best-effort)입니다.

    phase 0  : Setup (실행 명령 안내)
    phase 1..: Tests (구분선(=== / ───)마다 증가)
    phase 99 : 종료 코드 0 → success, 그 외 → error
    phase -1 : 프로세스 실행 자체 실패
"""

import asyncio
import codecs
import logging
import re
import shlex
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Protocol

from core.operations.events import (
    COMPLETE_PHASE_NAME,
    SETUP_PHASE,
    TERMINAL_PHASE,
    ProgressEvent,
    ProgressLevel,
)

logger = logging.getLogger(__name__)

Emit = Callable[[ProgressEvent], None]

TESTS_PHASE_NAME = "Tests"
SETUP_PHASE_NAME = "Setup"
FIRST_TEST_PHASE = 1
READ_CHUNK_SIZE = 4096

_ANSI_ESCAPE = re.compile(r"\x1b(?:\[[0-?]*[ -/]*[@-~]|\][^\x07\x1b]*(?:\x07|\x1b\\)|[@-Z\\-_])")
_DIVIDER_RUN = re.compile(r"={3,}|─{3,}")
_DIVIDER_ONLY = re.compile(r"^[\s=─]*$")

# 우선순위 순서: failure → success → warning
_FAILURE_MARKERS = ("✗", "FAIL", "failed")
_SUCCESS_MARKERS = ("✓", "PASS", "passed")
_WARNING_MARKERS = ("⚠", "WARNING")


def strip_ansi(line: str) -> str:
    """터미널 색상/제어 이스케이프 제거"""
    return _ANSI_ESCAPE.sub("", line)


def classify(line: str, is_stderr: bool = False) -> ProgressLevel:
    """
    한 줄의 레벨 분류 (순수 함수).

    stderr에서 온 줄은 내용과 무관하게 최소 warning.
    """
    if any(marker in line for marker in _FAILURE_MARKERS):
        level = ProgressLevel.ERROR
    elif any(marker in line for marker in _SUCCESS_MARKERS):
        level = ProgressLevel.SUCCESS
    elif any(marker in line for marker in _WARNING_MARKERS):
        level = ProgressLevel.WARNING
    else:
        level = ProgressLevel.INFO
    if is_stderr and level.severity < ProgressLevel.WARNING.severity:
        level = ProgressLevel.WARNING
    return level


def is_section_divider(line: str) -> bool:
    """=== 또는 ─── 연속 구간 포함 여부"""
    return _DIVIDER_RUN.search(line) is not None


class LineBuffer:
    """
    스트림별 줄 버퍼.

    청크를 점진적으로 UTF-8 디코딩하고 개행 기준으로 분리하며,
    마지막 미완성 줄은 다음 청크 또는 flush()까지 보관합니다.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, chunk: bytes) -> list[str]:
        self._pending += self._decoder.decode(chunk)
        *lines, self._pending = self._pending.split("\n")
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> list[str]:
        """EOF 시 1회 호출: 남은 미완성 줄 반환"""
        self._pending += self._decoder.decode(b"", final=True)
        rest, self._pending = self._pending, ""
        return [rest.rstrip("\r")] if rest else []


class ByteStream(Protocol):
    async def read(self, n: int = -1) -> bytes: ...


class SpawnedProcess(Protocol):
    """spawn_process 결과 (asyncio.subprocess.Process 호환)"""
    stdout: ByteStream | None
    stderr: ByteStream | None
    returncode: int | None

    async def wait(self) -> int: ...

    def kill(self) -> None: ...


ProcessSpawner = Callable[[str, list[str]], Awaitable[SpawnedProcess]]


def make_process_spawner(cwd: str | None = None) -> ProcessSpawner:
    """stdout/stderr 분리 캡처, stdin은 /dev/null (호출자 디스크립터 상속 안 함)"""

    async def spawn_process(executable: str, args: list[str]) -> SpawnedProcess:
        return await asyncio.create_subprocess_exec(
            executable,
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
        )

    return spawn_process


@dataclass
class LineTally:
    """종료 요약용 카운터"""
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    lines: int = 0

    def count(self, level: ProgressLevel) -> None:
        self.lines += 1
        if level is ProgressLevel.SUCCESS:
            self.passed += 1
        elif level is ProgressLevel.ERROR:
            self.failed += 1
        elif level is ProgressLevel.WARNING:
            self.warnings += 1


@dataclass
class ProcessPhaseAdapter:
    """외부 프로세스 출력 → Progress Event 어댑터"""
    executable: str
    args: list[str] = field(default_factory=list)
    spawner: ProcessSpawner = field(default_factory=make_process_spawner)
    phase: int = FIRST_TEST_PHASE
    tally: LineTally = field(default_factory=LineTally)
    exit_code: int | None = None

    @property
    def command(self) -> str:
        return shlex.join([self.executable, *self.args])

    def handle_line(self, raw: str, is_stderr: bool, emit: Emit) -> None:
        """완성된 줄 1개 처리: 구분선이면 phase 증가, 아니면 분류 후 emit"""
        line = strip_ansi(raw).strip()
        if not line:
            return
        if is_section_divider(line):
            self.phase += 1
            if _DIVIDER_ONLY.match(line):
                return
        if self.phase >= TERMINAL_PHASE:
            # 99는 종료 이벤트 전용
            self.phase = TERMINAL_PHASE - 1
        level = classify(line, is_stderr)
        self.tally.count(level)
        emit(ProgressEvent(phase=self.phase, phaseName=TESTS_PHASE_NAME, level=level, message=line))

    async def _pump(self, stream: ByteStream | None, is_stderr: bool, emit: Emit) -> None:
        if stream is None:
            return
        buffer = LineBuffer()
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            for line in buffer.feed(chunk):
                self.handle_line(line, is_stderr, emit)
        for line in buffer.flush():
            self.handle_line(line, is_stderr, emit)

    def _summary(self) -> str:
        counts = f"{self.tally.passed} passing, {self.tally.failed} failing line(s)"
        if self.exit_code == 0:
            return f"Tests passed (exit code 0): {counts}"
        return f"Tests failed (exit code {self.exit_code}): {counts}"

    async def __call__(self, emit: Emit) -> None:
        emit(ProgressEvent(
            phase=SETUP_PHASE,
            phaseName=SETUP_PHASE_NAME,
            level=ProgressLevel.INFO,
            message=f"Running: {self.command}",
        ))
        try:
            process = await self.spawner(self.executable, self.args)
        except OSError as e:
            logger.error("Failed to spawn %s: %s", self.command, e)
            emit(ProgressEvent.fatal(f"Failed to start test process: {e}"))
            return

        logger.info("Spawned %s", self.command)
        try:
            _, _, self.exit_code = await asyncio.gather(
                self._pump(process.stdout, False, emit),
                self._pump(process.stderr, True, emit),
                process.wait(),
            )
        finally:
            if process.returncode is None:
                logger.warning("Killing unfinished process %s", self.command)
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()

        logger.info("%s exited with code %s", self.command, self.exit_code)
        emit(ProgressEvent(
            phase=TERMINAL_PHASE,
            phaseName=COMPLETE_PHASE_NAME,
            level=ProgressLevel.SUCCESS if self.exit_code == 0 else ProgressLevel.ERROR,
            message=self._summary(),
        ))
