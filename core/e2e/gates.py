"""
E2E Precondition Gates

E2E / 성능 데이터 상태에 대한 순수 판정 함수.
시드는 결정적 ID + merge 쓰기라 항상 진행하고, 정리는 지울 것이 없으면 Skip.
"""

from core.e2e.collaborators import E2EStatus
from core.operations.gate import GateDecision


def e2e_seed_gate(status: E2EStatus) -> GateDecision:
    """기존 계정은 재사용 (비밀번호/이름 갱신)"""
    return GateDecision.proceed(
        existing_primary_uid=status.primaryUser.uid,
        existing_friend_uid=status.friendUser.uid,
    )


def e2e_cleanup_gate(status: E2EStatus) -> GateDecision:
    if status.is_empty:
        return GateDecision.skip("No E2E test data found - nothing to clean up.")
    return GateDecision.proceed(primary_uid=status.primaryUser.uid, friend_uid=status.friendUser.uid)


def perf_seed_gate(existing_metrics: int, existing_aggregates: int) -> GateDecision:
    return GateDecision.proceed(existing_metrics=existing_metrics, existing_aggregates=existing_aggregates)


def perf_cleanup_gate(existing_metrics: int, existing_aggregates: int) -> GateDecision:
    if not existing_metrics and not existing_aggregates:
        return GateDecision.skip("No performance data found - nothing to clean up.")
    return GateDecision.proceed(existing_metrics=existing_metrics, existing_aggregates=existing_aggregates)
