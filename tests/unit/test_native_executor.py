"""
Native Phase Executor / GatedOperation 단위 테스트
"""

import pytest

from core.operations.errors import MissingDependencyError, PhaseRegistryError
from core.operations.events import FATAL_PHASE, TERMINAL_PHASE, ProgressCounter, ProgressLevel
from core.operations.executor import ExecutorState, GatedOperation, NativePhaseExecutor, PhaseStep
from core.operations.gate import GateDecision
from core.operations.phases import PhaseDefinition, PhaseRegistry

FIVE_PHASES = [PhaseDefinition(i, f"Step {i}") for i in range(1, 6)]


def _ok(message: str):
    async def run(ctx):
        ctx.success(message)
        ctx.record(message)

    return run


def _fail(message: str):
    async def run(ctx):
        ctx.info("starting")
        raise RuntimeError(message)

    return run


@pytest.mark.asyncio
async def test_step_failure_aborts_remaining_phases(recorder):
    """3/5 단계 실패: 1, 2 성공 → 3 error → 99 error, 4와 5는 실행되지 않음"""
    ran = []

    def track(phase):
        async def run(ctx):
            ran.append(phase)

        return run

    registry = PhaseRegistry("Five", FIVE_PHASES)
    steps = [
        PhaseStep(1, _ok("one")),
        PhaseStep(2, _ok("two")),
        PhaseStep(3, _fail("quota exceeded")),
        PhaseStep(4, track(4)),
        PhaseStep(5, track(5)),
    ]
    executor = NativePhaseExecutor(registry, steps)
    state = await executor.run(recorder)

    assert state is ExecutorState.FAILED
    assert ran == []
    assert recorder.phases == [1, 2, 3, 3, TERMINAL_PHASE]
    failure = recorder.events[3]
    assert (failure.phaseName, failure.level, failure.message) == ("Step 3", ProgressLevel.ERROR, "quota exceeded")
    assert recorder.last.level is ProgressLevel.ERROR
    assert recorder.last.message == "Aborted at phase 3 (Step 3): quota exceeded"
    assert all(e.phase <= 3 for e in recorder.events[:-1])


@pytest.mark.asyncio
async def test_success_summary_lists_created_items(recorder):
    registry = PhaseRegistry("Demo seeding", FIVE_PHASES[:2])
    executor = NativePhaseExecutor(registry, [PhaseStep(1, _ok("1 account")), PhaseStep(2, _ok("5 posts"))])
    assert await executor.run(recorder) is ExecutorState.COMPLETED
    assert recorder.last.phase == TERMINAL_PHASE
    assert recorder.last.level is ProgressLevel.SUCCESS
    assert recorder.last.message == "Demo seeding complete. Created: 1 account, 5 posts"


@pytest.mark.asyncio
async def test_silent_step_gets_default_success(recorder):
    async def quiet(ctx):
        return None

    registry = PhaseRegistry("Quiet", [PhaseDefinition(1, "Verify")])
    await NativePhaseExecutor(registry, [PhaseStep(1, quiet)]).run(recorder)
    assert recorder.events[0].message == "Verify done"
    assert recorder.last.message == "Quiet complete"


@pytest.mark.asyncio
async def test_events_are_phase_monotonic_with_progress(recorder):
    async def batched(ctx):
        for done in (4, 8, 10):
            ctx.info(f"{done}/10 written", ProgressCounter(current=done, total=10))

    registry = PhaseRegistry("Batches", [PhaseDefinition(0, "Cleanup"), PhaseDefinition(1, "Health Data")])
    await NativePhaseExecutor(registry, [PhaseStep(0, _ok("cleaned")), PhaseStep(1, batched)]).run(recorder)

    phases = recorder.phases
    assert phases == sorted(phases)
    counters = [e.progress.current for e in recorder.events if e.progress]
    assert counters == [4, 8, 10]


@pytest.mark.asyncio
async def test_phase_precondition_skip_and_reject(recorder):
    def skip(values):
        return GateDecision.skip("photo upload disabled")

    def reject(values):
        return GateDecision.reject("Missing friend_uid from earlier phases")

    registry = PhaseRegistry("Preconditions", [
        PhaseDefinition(1, "Photos", skip),
        PhaseDefinition(2, "Friendship", reject),
        PhaseDefinition(3, "Circles"),
    ])
    steps = [PhaseStep(1, _ok("photos")), PhaseStep(2, _ok("friends")), PhaseStep(3, _ok("circles"))]
    state = await NativePhaseExecutor(registry, steps).run(recorder)

    assert state is ExecutorState.FAILED
    assert recorder.events[0].level is ProgressLevel.WARNING
    assert recorder.events[0].message == "Skipped: photo upload disabled"
    assert recorder.events[1].phase == 2 and recorder.events[1].level is ProgressLevel.ERROR
    assert recorder.last.message.startswith("Aborted at phase 2 (Friendship)")
    assert 3 not in recorder.phases


@pytest.mark.asyncio
async def test_missing_dependency_is_step_failure(recorder):
    async def needs_friend(ctx):
        ctx.require("friend_uid")

    registry = PhaseRegistry("Deps", [PhaseDefinition(1, "Friendship")])
    await NativePhaseExecutor(registry, [PhaseStep(1, needs_friend)]).run(recorder)
    assert "friend_uid" in recorder.events[0].message
    assert recorder.last.level is ProgressLevel.ERROR


def test_missing_dependency_error_keeps_key():
    err = MissingDependencyError("primary_uid")
    assert err.key == "primary_uid"


def test_executor_rejects_undeclared_or_unordered_steps():
    registry = PhaseRegistry("R", FIVE_PHASES[:2])
    with pytest.raises(PhaseRegistryError):
        NativePhaseExecutor(registry, [PhaseStep(7, _ok("x"))])
    with pytest.raises(PhaseRegistryError):
        NativePhaseExecutor(registry, [PhaseStep(2, _ok("x")), PhaseStep(1, _ok("y"))])


@pytest.mark.asyncio
async def test_executor_runs_once(recorder):
    executor = NativePhaseExecutor(PhaseRegistry("R", FIVE_PHASES[:1]), [PhaseStep(1, _ok("x"))])
    await executor.run(recorder)
    with pytest.raises(RuntimeError):
        await executor.run(recorder)


# ==================== GatedOperation ====================

def _operation(decision_or_exc, ran: list):
    async def gate():
        if isinstance(decision_or_exc, Exception):
            raise decision_or_exc
        return decision_or_exc

    async def step(ctx):
        ran.append(ctx.values.copy())
        ctx.success("created")

    executor = NativePhaseExecutor(PhaseRegistry("Friend seeding", [PhaseDefinition(1, "Friend Account")]),
                                   [PhaseStep(1, step)])
    return GatedOperation("friend", gate, executor, gate_failure_prefix="Failed to check demo status")


@pytest.mark.asyncio
async def test_gated_reject_never_runs_executor(recorder):
    ran: list = []
    await _operation(GateDecision.reject("Demo account not found"), ran)(recorder)
    assert ran == []
    assert [(e.phase, e.level.value, e.message) for e in recorder.events] == [
        (FATAL_PHASE, "error", "Demo account not found"),
    ]


@pytest.mark.asyncio
async def test_gated_skip_is_single_warning_terminal(recorder):
    ran: list = []
    await _operation(GateDecision.skip("friend exists: Sarah"), ran)(recorder)
    assert ran == []
    assert [e.to_payload() for e in recorder.events] == [
        {"phase": 99, "phaseName": "Complete", "level": "warning", "message": "friend exists: Sarah"},
    ]


@pytest.mark.asyncio
async def test_gated_resolver_error_rejects(recorder):
    ran: list = []
    await _operation(TimeoutError("deadline exceeded"), ran)(recorder)
    assert ran == []
    assert len(recorder.events) == 1
    assert recorder.last.phase == FATAL_PHASE
    assert recorder.last.message == "Failed to check demo status: deadline exceeded"


@pytest.mark.asyncio
async def test_gated_proceed_passes_context(recorder):
    ran: list = []
    await _operation(GateDecision.proceed(primary_uid="alex"), ran)(recorder)
    assert ran == [{"primary_uid": "alex"}]
    assert recorder.last.level is ProgressLevel.SUCCESS


def test_gated_operation_describes_declared_phases():
    async def gate():
        return GateDecision.proceed()

    registry = PhaseRegistry("demo", [PhaseDefinition(0, "Cleanup"), PhaseDefinition(1, "Account Status")])
    operation = GatedOperation("demo.op", gate, NativePhaseExecutor(registry, [PhaseStep(1, _ok("x"))]))
    assert operation.describe() == {
        "operation": "demo.op",
        "title": "demo",
        "phases": [{"index": 0, "name": "Cleanup"}, {"index": 1, "name": "Account Status"}],
    }
