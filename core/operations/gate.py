"""
Precondition Gate

작업 시작 전(또는 페이즈 실행 전) 외부 상태 스냅샷을 보고
Proceed / Skip(reason) / Reject(reason) 중 하나를 결정합니다.

- Reject: phase -1 error 이벤트 1건 후 종료 (executor 미호출)
- Skip  : phase 99 warning 이벤트 1건 후 종료 (멱등성 가드, 중복 시드 방지)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

from core.operations.events import ProgressEvent, ProgressLevel

logger = logging.getLogger(__name__)


class GateOutcome(str, Enum):
    """게이트 판정 결과"""
    PROCEED = "proceed"
    SKIP = "skip"
    REJECT = "reject"


@dataclass(frozen=True)
class GateDecision:
    """게이트 판정. Proceed는 이후 단계에 넘길 식별자(context)를 가질 수 있음"""
    outcome: GateOutcome
    reason: str = ""
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def proceed(cls, **context: Any) -> "GateDecision":
        return cls(GateOutcome.PROCEED, context=context)

    @classmethod
    def skip(cls, reason: str) -> "GateDecision":
        return cls(GateOutcome.SKIP, reason=reason)

    @classmethod
    def reject(cls, reason: str) -> "GateDecision":
        return cls(GateOutcome.REJECT, reason=reason)

    @property
    def should_proceed(self) -> bool:
        return self.outcome is GateOutcome.PROCEED


async def evaluate_gate(
    check: Callable[[], Awaitable[GateDecision]],
    *,
    failure_prefix: str = "Failed to check preconditions",
) -> GateDecision:
    """
    게이트 평가. 상태 조회 실패는 재시도하지 않고 Reject로 변환합니다.

    Args:
        check: 상태 스냅샷을 조회해 판정하는 코루틴 함수
        failure_prefix: 조회 실패 시 reason 앞머리
    """
    try:
        decision = await check()
    except Exception as e:
        logger.warning("Precondition check raised: %s", e)
        return GateDecision.reject(f"{failure_prefix}: {e}")
    logger.info("Precondition gate: %s %s", decision.outcome.value, decision.reason)
    return decision


def emit_gate_outcome(decision: GateDecision, emit: Callable[[ProgressEvent], None]) -> bool:
    """
    판정 결과를 이벤트로 내보냄.

    Returns:
        True면 executor를 계속 실행, False면 종료 이벤트를 이미 보냈음
    """
    if decision.outcome is GateOutcome.REJECT:
        emit(ProgressEvent.fatal(decision.reason))
        return False
    if decision.outcome is GateOutcome.SKIP:
        emit(ProgressEvent.complete(decision.reason, level=ProgressLevel.WARNING))
        return False
    return True
