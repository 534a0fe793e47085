"""
Demo Precondition Gates

DemoStatus 스냅샷에 대한 순수 판정 함수.
"""

from core.demo.collaborators import DemoStatus
from core.operations.gate import GateDecision


def demo_seed_gate(status: DemoStatus, *, reset: bool = False) -> GateDecision:
    """기본 계정이 이미 있으면 Skip (reset=True면 정리 후 재시드)"""
    if status.exists and not reset:
        return GateDecision.skip(
            f"Demo account already exists: {status.displayName} ({status.uid}). "
            "Run with reset to re-seed."
        )
    if status.friendExists and not status.exists and not reset:
        return GateDecision.reject(
            f"Friend account exists without a demo account: {status.friendDisplayName or status.friendUid}. "
            "Run with reset or cleanup first."
        )
    return GateDecision.proceed(
        existing_uid=status.uid,
        existing_friend_uid=status.friendUid,
    )


def friend_seed_gate(status: DemoStatus) -> GateDecision:
    """기본 계정 필요, 친구 계정이 이미 있으면 Skip"""
    if not status.exists or not status.uid:
        return GateDecision.reject("Demo account not found. Seed the demo account first.")
    if status.friendExists:
        return GateDecision.skip(
            f"Friend account already exists: {status.friendDisplayName or status.friendUid}"
        )
    return GateDecision.proceed(primary_uid=status.uid, primary_name=status.displayName)


def demo_account_gate(status: DemoStatus) -> GateDecision:
    """다운스트림 서브 작업: 기본 계정만 필요"""
    if not status.exists or not status.uid:
        return GateDecision.reject("Demo account not found. Seed the demo account first.")
    return GateDecision.proceed(primary_uid=status.uid, primary_name=status.displayName)


def cleanup_gate(status: DemoStatus) -> GateDecision:
    """정리할 계정이 없으면 Skip (친구 계정만 남은 경우도 정리)"""
    if not status.uid and not status.friendUid:
        return GateDecision.skip("No demo account found - nothing to clean up.")
    return GateDecision.proceed(primary_uid=status.uid, friend_uid=status.friendUid)
