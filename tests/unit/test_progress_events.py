"""
Progress Event / Phase Registry / Gate 단위 테스트
"""

import pytest
from pydantic import ValidationError

from core.operations.errors import PhaseRegistryError
from core.operations.events import (
    FATAL_PHASE,
    TERMINAL_PHASE,
    ProgressCounter,
    ProgressEvent,
    ProgressLevel,
)
from core.operations.gate import GateDecision, GateOutcome, emit_gate_outcome, evaluate_gate
from core.operations.phases import PhaseDefinition, PhaseRegistry


def test_event_payload_omits_missing_progress():
    """progress 미지정 시 와이어 페이로드에서 생략"""
    event = ProgressEvent(phase=3, phaseName="Health Data", level="info", message="Writing...")
    assert event.to_payload() == {
        "phase": 3,
        "phaseName": "Health Data",
        "level": "info",
        "message": "Writing...",
    }


def test_event_payload_includes_progress():
    event = ProgressEvent(
        phase=3,
        phaseName="Health Data",
        level=ProgressLevel.INFO,
        message="16/40 written",
        progress=ProgressCounter(current=16, total=40),
    )
    assert event.to_payload()["progress"] == {"current": 16, "total": 40}


def test_event_rejects_unknown_fields_and_levels():
    with pytest.raises(ValidationError):
        ProgressEvent(phase=1, phaseName="X", level="info", message="m", extra="nope")
    with pytest.raises(ValidationError):
        ProgressEvent(phase=1, phaseName="X", level="debug", message="m")
    with pytest.raises(ValidationError):
        ProgressEvent(phase=1, phaseName="", level="info", message="m")


@pytest.mark.parametrize("phase", [-2, 100])
def test_event_phase_out_of_range(phase):
    with pytest.raises(ValidationError):
        ProgressEvent(phase=phase, phaseName="X", level="info", message="m")


def test_event_message_newlines_collapsed():
    event = ProgressEvent(phase=1, phaseName="X", level="error", message="line one\n  line two\r\n")
    assert event.message == "line one line two"


def test_progress_counter_bounds():
    with pytest.raises(ValidationError):
        ProgressCounter(current=5, total=4)
    with pytest.raises(ValidationError):
        ProgressCounter(current=-1, total=4)


def test_terminal_constructors():
    fatal = ProgressEvent.fatal("boom")
    assert (fatal.phase, fatal.level, fatal.is_terminal) == (FATAL_PHASE, ProgressLevel.ERROR, True)

    done = ProgressEvent.complete("ok")
    assert (done.phase, done.phaseName, done.level) == (TERMINAL_PHASE, "Complete", ProgressLevel.SUCCESS)

    middle = ProgressEvent(phase=98, phaseName="Tests", level="info", message="m")
    assert middle.is_terminal is False


def test_level_severity_order():
    levels = sorted(ProgressLevel, key=lambda lv: lv.severity)
    assert levels == [ProgressLevel.INFO, ProgressLevel.SUCCESS, ProgressLevel.WARNING, ProgressLevel.ERROR]


# ==================== Phase Registry ====================

def test_registry_rejects_bad_declarations():
    with pytest.raises(PhaseRegistryError):
        PhaseRegistry("empty", [])
    with pytest.raises(PhaseRegistryError):
        PhaseRegistry("dup", [PhaseDefinition(1, "A"), PhaseDefinition(1, "B")])
    with pytest.raises(PhaseRegistryError):
        PhaseRegistry("desc", [PhaseDefinition(2, "A"), PhaseDefinition(1, "B")])
    with pytest.raises(PhaseRegistryError):
        PhaseRegistry("reserved", [PhaseDefinition(1, "A"), PhaseDefinition(99, "Done")])


def test_registry_event_uses_declared_name():
    registry = PhaseRegistry("demo", [PhaseDefinition(0, "Cleanup"), PhaseDefinition(1, "Account Status")])
    assert [p.index for p in registry] == [0, 1]
    assert 1 in registry and 2 not in registry
    event = registry.event(1, ProgressLevel.SUCCESS, "ok")
    assert event.phaseName == "Account Status"
    assert registry.describe()[0] == {"index": 0, "name": "Cleanup"}
    with pytest.raises(PhaseRegistryError):
        registry.get(5)


# ==================== Precondition Gate ====================

@pytest.mark.asyncio
async def test_gate_check_failure_becomes_reject():
    calls = 0

    async def failing_check():
        nonlocal calls
        calls += 1
        raise ConnectionError("store unreachable")

    decision = await evaluate_gate(failing_check, failure_prefix="Failed to check demo status")
    assert decision.outcome is GateOutcome.REJECT
    assert decision.reason == "Failed to check demo status: store unreachable"
    assert calls == 1


def test_gate_reject_emits_single_fatal(recorder):
    assert emit_gate_outcome(GateDecision.reject("Demo account not found"), recorder) is False
    assert len(recorder.events) == 1
    assert recorder.last.phase == FATAL_PHASE
    assert recorder.last.level is ProgressLevel.ERROR
    assert recorder.last.message == "Demo account not found"


def test_gate_skip_emits_single_warning_terminal(recorder):
    assert emit_gate_outcome(GateDecision.skip("friend exists: Sarah"), recorder) is False
    assert [e.to_payload() for e in recorder.events] == [
        {"phase": 99, "phaseName": "Complete", "level": "warning", "message": "friend exists: Sarah"},
    ]


def test_gate_proceed_emits_nothing(recorder):
    decision = GateDecision.proceed(primary_uid="u1")
    assert emit_gate_outcome(decision, recorder) is True
    assert recorder.events == []
    assert decision.context == {"primary_uid": "u1"}
