"""
Native Phase Executor

협력자(collaborator) 비동기 호출을 고정된 순서로 실행하고
각 단계 결과를 Progress Event로 변환합니다.

- 단계는 엄격히 순차 실행 (이전 단계가 만든 식별자에 의존)
- 단계 실패 시 해당 페이즈 error 이벤트 → phase 99 error 종료 (fail-fast, 재시도 없음)
- 모든 단계 성공 시 phase 99 success 요약 1건
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from core.operations.errors import MissingDependencyError, PhaseRegistryError
from core.operations.events import ProgressCounter, ProgressEvent, ProgressLevel
from core.operations.gate import GateDecision, GateOutcome, emit_gate_outcome, evaluate_gate
from core.operations.phases import PhaseRegistry

logger = logging.getLogger(__name__)

Emit = Callable[[ProgressEvent], None]


class ExecutorState(str, Enum):
    """NOT_STARTED → RUNNING → FAILED | COMPLETED"""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    FAILED = "failed"
    COMPLETED = "completed"


class StepContext:
    """
    단계 실행 컨텍스트

    이벤트는 항상 현재 단계의 phase / phaseName으로 태깅됩니다.
    values는 런 전체에서 공유되는 식별자 체인 (primary_uid → friend_uid ...).
    """

    def __init__(
        self,
        registry: PhaseRegistry,
        phase: int,
        emit: Emit,
        values: dict[str, Any],
        created: list[str],
    ) -> None:
        self.registry = registry
        self.phase = phase
        self.values = values
        self._emit = emit
        self._created = created
        self.emitted = 0

    @property
    def phase_name(self) -> str:
        return self.registry.get(self.phase).name

    def report(
        self,
        level: ProgressLevel,
        message: str,
        progress: ProgressCounter | None = None,
    ) -> None:
        self._emit(self.registry.event(self.phase, level, message, progress))
        self.emitted += 1

    def info(self, message: str, progress: ProgressCounter | None = None) -> None:
        self.report(ProgressLevel.INFO, message, progress)

    def success(self, message: str) -> None:
        self.report(ProgressLevel.SUCCESS, message)

    def warning(self, message: str) -> None:
        self.report(ProgressLevel.WARNING, message)

    def require(self, key: str) -> Any:
        """이전 단계 산출물 조회 (없으면 MissingDependencyError)"""
        value = self.values.get(key)
        if value is None:
            raise MissingDependencyError(key)
        return value

    def provide(self, key: str, value: Any) -> None:
        self.values[key] = value

    def record(self, item: str) -> None:
        """완료 요약에 포함할 생성물 (예: "5 friend posts")"""
        self._created.append(item)


StepFn = Callable[[StepContext], Awaitable[None]]


@dataclass(frozen=True)
class PhaseStep:
    """레지스트리 페이즈 1개에 대응하는 실행 단계"""
    phase: int
    run: StepFn


class NativePhaseExecutor:
    """순차 단계 실행기"""

    def __init__(
        self,
        registry: PhaseRegistry,
        steps: list[PhaseStep],
        *,
        summary_label: str = "Created",
    ) -> None:
        previous: int | None = None
        for step in steps:
            if step.phase not in registry:
                raise PhaseRegistryError(
                    f"Step for phase {step.phase} is not declared in registry '{registry.name}'"
                )
            if previous is not None and step.phase <= previous:
                raise PhaseRegistryError(
                    f"Steps must follow registry order: phase {step.phase} after {previous}"
                )
            previous = step.phase
        self.registry = registry
        self.steps = list(steps)
        self.summary_label = summary_label
        self.state = ExecutorState.NOT_STARTED
        self.current_phase: int | None = None

    async def run(self, emit: Emit, context: dict[str, Any] | None = None) -> ExecutorState:
        """
        단계를 순서대로 실행합니다.

        Args:
            emit: 이벤트 출력 함수 (StreamPublisher.emit)
            context: 게이트가 확인한 초기 식별자 (예: primary_uid)

        Returns:
            최종 상태 (COMPLETED | FAILED)
        """
        if self.state is not ExecutorState.NOT_STARTED:
            raise RuntimeError(f"Executor for '{self.registry.name}' has already run")
        self.state = ExecutorState.RUNNING
        values: dict[str, Any] = dict(context or {})
        created: list[str] = []

        for step in self.steps:
            definition = self.registry.get(step.phase)
            self.current_phase = step.phase

            if definition.precondition is not None:
                decision = definition.precondition(values)
                if decision.outcome is GateOutcome.SKIP:
                    emit(self.registry.event(step.phase, ProgressLevel.WARNING, f"Skipped: {decision.reason}"))
                    continue
                if decision.outcome is GateOutcome.REJECT:
                    emit(self.registry.event(step.phase, ProgressLevel.ERROR, decision.reason))
                    self._abort(emit, step.phase, decision.reason)
                    return self.state

            ctx = StepContext(self.registry, step.phase, emit, values, created)
            try:
                await step.run(ctx)
            except Exception as e:
                message = str(e) or type(e).__name__
                logger.warning(
                    "%s: phase %s (%s) failed: %s",
                    self.registry.name, step.phase, definition.name, message,
                )
                emit(self.registry.event(step.phase, ProgressLevel.ERROR, message))
                self._abort(emit, step.phase, message)
                return self.state

            if ctx.emitted == 0:
                emit(self.registry.event(step.phase, ProgressLevel.SUCCESS, f"{definition.name} done"))

        self.state = ExecutorState.COMPLETED
        self.current_phase = None
        emit(ProgressEvent.complete(self._summary(created)))
        logger.info("%s completed (%d phases)", self.registry.name, len(self.steps))
        return self.state

    def _abort(self, emit: Emit, phase: int, message: str) -> None:
        self.state = ExecutorState.FAILED
        name = self.registry.get(phase).name
        emit(ProgressEvent.complete(
            f"Aborted at phase {phase} ({name}): {message}",
            level=ProgressLevel.ERROR,
        ))

    def _summary(self, created: list[str]) -> str:
        if not created:
            return f"{self.registry.name} complete"
        return f"{self.registry.name} complete. {self.summary_label}: {', '.join(created)}"


class GatedOperation:
    """
    Precondition Gate + Native Phase Executor 결합.

    게이트가 Reject/Skip이면 종료 이벤트 1건만 내보내고 executor는 호출되지 않습니다.
    """

    def __init__(
        self,
        name: str,
        gate: Callable[[], Awaitable[GateDecision]],
        executor: NativePhaseExecutor,
        *,
        gate_failure_prefix: str = "Failed to check preconditions",
    ) -> None:
        self.name = name
        self.gate = gate
        self.executor = executor
        self.gate_failure_prefix = gate_failure_prefix
        self.decision: GateDecision | None = None

    async def __call__(self, emit: Emit) -> None:
        self.decision = await evaluate_gate(self.gate, failure_prefix=self.gate_failure_prefix)
        if not emit_gate_outcome(self.decision, emit):
            return
        await self.executor.run(emit, self.decision.context)

    def describe(self) -> dict[str, Any]:
        """관리 콘솔 체크리스트용 작업 개요 (선언된 페이즈 목록)"""
        return {
            "operation": self.name,
            "title": self.executor.registry.name,
            "phases": self.executor.registry.describe(),
        }
