"""
Demo Pipelines

데모 환경 관련 장시간 작업 정의 (Gate + Phase Registry + Native Executor).

    demo seed    : 0 Cleanup(reset 시) → 1..16 → 99 Complete
    friend seed  : 1..7 → 99 Complete
    cleanup      : 1..2 → 99 Complete
    job (서브)   : 1 Account Status → 2 <Job> → 99 Complete

번호 규약: 선언 인덱스를 그대로 phase로 사용하고, 요약은 항상 99.
"""

import logging
from typing import Any

from core.demo import demo_data
from core.demo.collaborators import (
    ArtifactKind,
    DemoCollaborators,
    IdentityConflictError,
    JobKind,
)
from core.demo.gates import cleanup_gate, demo_account_gate, demo_seed_gate, friend_seed_gate
from core.operations.events import ProgressCounter
from core.operations.executor import GatedOperation, NativePhaseExecutor, PhaseStep, StepContext, StepFn
from core.operations.gate import GateDecision
from core.operations.phases import PhaseDefinition, PhasePrecondition, PhaseRegistry

logger = logging.getLogger(__name__)

STATUS_FAILURE_PREFIX = "Failed to check demo status"

JOB_LABELS: dict[JobKind, str] = {
    JobKind.LIFE_FEED: "Life Feed",
    JobKind.KEYWORDS: "Keywords",
    JobKind.INSIGHTS: "Insights",
    JobKind.MEMORIES: "Memories",
}


# ---------------------------------------------------------------------------
# Phase preconditions
# ---------------------------------------------------------------------------

def when(enabled: bool, skip_reason: str, *requires: str) -> PhasePrecondition:
    """옵션으로 끌 수 있고, 이전 페이즈 산출물이 필요한 페이즈용 게이트"""

    def check(values: dict[str, Any]) -> GateDecision:
        if not enabled:
            return GateDecision.skip(skip_reason)
        missing = [key for key in requires if not values.get(key)]
        if missing:
            return GateDecision.reject(f"Missing {', '.join(missing)} from earlier phases")
        return GateDecision.proceed()

    return check


# ---------------------------------------------------------------------------
# Step factories
# ---------------------------------------------------------------------------

def confirm_account_step() -> StepFn:
    async def run(ctx: StepContext) -> None:
        uid = ctx.require("primary_uid")
        ctx.success(f"Found demo account: {ctx.values.get('primary_name') or 'demo user'} ({uid})")

    return run


def seed_step(
    collab: DemoCollaborators,
    kind: ArtifactKind,
    label: str,
    *,
    secondary_key: str | None = None,
    batched: bool = False,
) -> StepFn:
    async def run(ctx: StepContext) -> None:
        primary_uid = ctx.require("primary_uid")
        secondary_uid = ctx.require(secondary_key) if secondary_key else None
        ctx.info(f"Writing {label}...")

        def on_batch(done: int, total: int) -> None:
            ctx.info(f"{done}/{total} written", ProgressCounter(current=done, total=total))

        count = await collab.artifacts.seed_artifacts(
            kind,
            primary_uid,
            secondary_uid,
            on_batch=on_batch if batched else None,
        )
        ctx.success(f"Seeded {count} {label}")
        ctx.record(f"{count} {label}")

    return run


def job_step(collab: DemoCollaborators, kind: JobKind, label: str, *, uid_key: str = "primary_uid") -> StepFn:
    async def run(ctx: StepContext) -> None:
        uid = ctx.require(uid_key)
        ctx.info(f"Triggering {label.lower()} generation...")
        result = await collab.jobs.trigger_downstream_job(kind, uid)
        message = result.get("message") or f"{label} generation triggered"
        if result.get("success") is False:
            # 생성 작업이 빈 결과를 낸 경우는 파이프라인 실패가 아님
            ctx.warning(message)
            return
        ctx.success(message)
        posts = result.get("postsCreated")
        if posts:
            ctx.record(f"{posts} {label.lower()} posts")

    return run


def cleanup_data_step(collab: DemoCollaborators, *keys: str) -> StepFn:
    async def run(ctx: StepContext) -> None:
        uids = [ctx.values[key] for key in keys if ctx.values.get(key)]
        if not uids:
            ctx.info("No existing demo data to clean up")
            return
        for uid in uids:
            deleted = await collab.artifacts.delete_artifacts(uid)
            ctx.success(f"Deleted {deleted} documents for {uid}")
            ctx.record(f"{deleted} documents")

    return run


def delete_accounts_step(collab: DemoCollaborators, *keys: str) -> StepFn:
    async def run(ctx: StepContext) -> None:
        uids = [ctx.values[key] for key in keys if ctx.values.get(key)]
        if not uids:
            ctx.info("No accounts to delete")
            return
        for uid in uids:
            await collab.identities.delete_identity(uid)
            ctx.success(f"Deleted account {uid}")
            ctx.record(f"account {uid}")

    return run


def create_demo_user_step(collab: DemoCollaborators) -> StepFn:
    async def run(ctx: StepContext) -> None:
        ctx.info("Creating demo user account...")
        uid = await collab.identities.create_identity(
            demo_data.DEMO_EMAIL, demo_data.DEMO_PASSWORD, demo_data.DEMO_DISPLAY_NAME
        )
        ctx.provide("primary_uid", uid)
        ctx.provide("primary_name", demo_data.DEMO_DISPLAY_NAME)
        ctx.success(f"Created demo user: {uid}")
        ctx.record(f"demo account {demo_data.DEMO_DISPLAY_NAME}")

    return run


def verify_clean_state_step(collab: DemoCollaborators) -> StepFn:
    async def run(ctx: StepContext) -> None:
        status = await collab.status.resolve_demo_status()
        if status.exists:
            raise IdentityConflictError(f"Demo account still exists: {status.uid}")
        ctx.info("No demo account present - ready to seed")

    return run


def create_friend_step(collab: DemoCollaborators, *, with_posts: bool = False) -> StepFn:
    async def run(ctx: StepContext) -> None:
        primary_uid = ctx.require("primary_uid")
        ctx.info(f"Creating friend account {demo_data.DEMO_FRIEND_DISPLAY_NAME}...")
        friend_uid = await collab.identities.create_identity(
            demo_data.DEMO_FRIEND_EMAIL,
            demo_data.DEMO_FRIEND_PASSWORD,
            demo_data.DEMO_FRIEND_DISPLAY_NAME,
        )
        ctx.provide("friend_uid", friend_uid)
        ctx.success(f"Created friend account: {friend_uid}")
        ctx.record(f"friend account {demo_data.DEMO_FRIEND_DISPLAY_NAME}")
        if with_posts:
            count = await collab.artifacts.seed_artifacts(ArtifactKind.FRIEND_POSTS, primary_uid, friend_uid)
            ctx.success(f"Seeded {count} friend posts")
            ctx.record(f"{count} friend posts")

    return run


def friendship_step(collab: DemoCollaborators) -> StepFn:
    async def run(ctx: StepContext) -> None:
        primary_uid = ctx.require("primary_uid")
        friend_uid = ctx.require("friend_uid")
        await collab.social.link_identities(primary_uid, friend_uid)
        ctx.success(
            f"Linked {demo_data.DEMO_DISPLAY_NAME} and {demo_data.DEMO_FRIEND_DISPLAY_NAME} as friends"
        )
        ctx.record("bidirectional friendship")

    return run


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def _status_gate(collab: DemoCollaborators, judge):
    async def gate() -> GateDecision:
        return judge(await collab.status.resolve_demo_status())

    return gate


def build_demo_seed_operation(
    collab: DemoCollaborators,
    *,
    reset: bool = False,
    skip_photos: bool = False,
    skip_life_feed: bool = False,
    skip_friend: bool = False,
) -> GatedOperation:
    """전체 데모 시드 (16 페이즈). 기본 계정이 있으면 reset 없이는 Skip"""
    seed_friend = not skip_friend
    phases: list[PhaseDefinition] = []
    steps: list[PhaseStep] = []

    def add(index: int, name: str, run: StepFn, precondition: PhasePrecondition | None = None) -> None:
        phases.append(PhaseDefinition(index, name, precondition))
        steps.append(PhaseStep(index, run))

    if reset:
        add(0, "Cleanup", cleanup_data_then_delete(collab))
    add(1, "Account Status", verify_clean_state_step(collab))
    add(2, "Create User", create_demo_user_step(collab))
    add(3, "Health Data", seed_step(collab, ArtifactKind.HEALTH_DATA, "health records", batched=True))
    add(4, "Location Data", seed_step(collab, ArtifactKind.LOCATION_DATA, "location records", batched=True))
    add(5, "Voice Notes", seed_step(collab, ArtifactKind.VOICE_NOTES, "voice notes"))
    add(6, "Text Notes", seed_step(collab, ArtifactKind.TEXT_NOTES, "text notes"))
    add(7, "Photos", seed_step(collab, ArtifactKind.PHOTOS, "photos"),
        when(not skip_photos, "photo upload disabled"))
    add(8, "Embeddings", job_step(collab, JobKind.EMBEDDINGS, "Embeddings"))
    add(9, "Life Feed", job_step(collab, JobKind.LIFE_FEED, "Life Feed"),
        when(not skip_life_feed, "life feed generation disabled"))
    add(10, "Keywords", job_step(collab, JobKind.KEYWORDS, "Keywords"))
    add(11, "Insights", job_step(collab, JobKind.INSIGHTS, "Insights"))
    add(12, "Memories", job_step(collab, JobKind.MEMORIES, "Memories"))
    add(13, "Friend Account", create_friend_step(collab, with_posts=True),
        when(seed_friend, "friend seeding disabled", "primary_uid"))
    add(14, "Friendship", friendship_step(collab),
        when(seed_friend, "friend seeding disabled", "friend_uid"))
    add(15, "Circles", seed_step(collab, ArtifactKind.CIRCLES, "circles", secondary_key="friend_uid"),
        when(seed_friend, "friend seeding disabled", "friend_uid"))
    add(16, "Social Engagement",
        seed_step(collab, ArtifactKind.ENGAGEMENT, "engagement records", secondary_key="friend_uid"),
        when(seed_friend, "friend seeding disabled", "friend_uid"))

    registry = PhaseRegistry("Demo seeding", phases)
    return GatedOperation(
        "demo.seed",
        _status_gate(collab, lambda status: demo_seed_gate(status, reset=reset)),
        NativePhaseExecutor(registry, steps),
        gate_failure_prefix=STATUS_FAILURE_PREFIX,
    )


def cleanup_data_then_delete(collab: DemoCollaborators) -> StepFn:
    """reset 시 phase 0: 기존 친구/기본 계정의 데이터와 계정 삭제"""
    delete_data = cleanup_data_step(collab, "existing_friend_uid", "existing_uid")
    delete_accounts = delete_accounts_step(collab, "existing_friend_uid", "existing_uid")

    async def run(ctx: StepContext) -> None:
        await delete_data(ctx)
        await delete_accounts(ctx)

    return run


FRIEND_SEED_PHASES = [
    PhaseDefinition(1, "Account Status"),
    PhaseDefinition(2, "Friend Account"),
    PhaseDefinition(3, "Friendship"),
    PhaseDefinition(4, "Friend Posts"),
    PhaseDefinition(5, "Circles"),
    PhaseDefinition(6, "Social Engagement"),
    PhaseDefinition(7, "Friend Life Feed"),
]


def build_friend_seed_operation(collab: DemoCollaborators) -> GatedOperation:
    """친구 계정(Sarah) 시드. 기본 계정 없으면 Reject, 친구가 이미 있으면 Skip"""
    registry = PhaseRegistry("Friend seeding", FRIEND_SEED_PHASES)
    steps = [
        PhaseStep(1, confirm_account_step()),
        PhaseStep(2, create_friend_step(collab)),
        PhaseStep(3, friendship_step(collab)),
        PhaseStep(4, seed_step(collab, ArtifactKind.FRIEND_POSTS, "friend posts", secondary_key="friend_uid")),
        PhaseStep(5, seed_step(collab, ArtifactKind.CIRCLES, "circles", secondary_key="friend_uid")),
        PhaseStep(6, seed_step(collab, ArtifactKind.ENGAGEMENT, "engagement records", secondary_key="friend_uid")),
        PhaseStep(7, job_step(collab, JobKind.LIFE_FEED, "Friend Life Feed", uid_key="friend_uid")),
    ]
    return GatedOperation(
        "demo.seed-friend",
        _status_gate(collab, friend_seed_gate),
        NativePhaseExecutor(registry, steps),
        gate_failure_prefix=STATUS_FAILURE_PREFIX,
    )


CLEANUP_PHASES = [
    PhaseDefinition(1, "Cleanup Data"),
    PhaseDefinition(2, "Delete Accounts"),
]


def build_cleanup_operation(collab: DemoCollaborators) -> GatedOperation:
    """데모/친구 계정 데이터 및 계정 삭제. 계정이 없으면 Skip"""
    registry = PhaseRegistry("Demo cleanup", CLEANUP_PHASES)
    steps = [
        PhaseStep(1, cleanup_data_step(collab, "friend_uid", "primary_uid")),
        PhaseStep(2, delete_accounts_step(collab, "friend_uid", "primary_uid")),
    ]
    return GatedOperation(
        "demo.cleanup",
        _status_gate(collab, cleanup_gate),
        NativePhaseExecutor(registry, steps, summary_label="Removed"),
        gate_failure_prefix=STATUS_FAILURE_PREFIX,
    )


def build_job_operation(collab: DemoCollaborators, kind: JobKind) -> GatedOperation:
    """다운스트림 생성 작업 1건 (life feed / keywords / insights / memories)"""
    kind = JobKind(kind)
    label = JOB_LABELS[kind]
    registry = PhaseRegistry(f"{label} generation", [
        PhaseDefinition(1, "Account Status"),
        PhaseDefinition(2, label),
    ])
    steps = [
        PhaseStep(1, confirm_account_step()),
        PhaseStep(2, job_step(collab, kind, label)),
    ]
    return GatedOperation(
        f"demo.{kind.value}",
        _status_gate(collab, demo_account_gate),
        NativePhaseExecutor(registry, steps),
        gate_failure_prefix=STATUS_FAILURE_PREFIX,
    )
