"""
E2E Test Data Pipelines

모바일 E2E / 성능 대시보드 테스트 데이터 작업 (Gate + Phase Registry + Native Executor).

    e2e seed          : 1 Auth Users → 2 Firestore Data → 3 Commit → 99 Complete
    e2e cleanup       : 0 Cleanup → 99 Complete
    performance seed  : 1 Write Metrics → 2 Aggregate → 99 Complete
    performance clean : 0 Cleanup → 1 Delete Metrics → 2 Delete Aggregates → 99 Complete

페이즈 이름은 관리 콘솔 테스트 페이지의 표시와 같습니다.
"""

import logging

from core.e2e import e2e_data, perf_data
from core.e2e.collaborators import DocumentWrite, E2ECollaborators, E2EStatus
from core.e2e.gates import e2e_cleanup_gate, e2e_seed_gate, perf_cleanup_gate, perf_seed_gate
from core.operations.events import ProgressCounter
from core.operations.executor import GatedOperation, NativePhaseExecutor, PhaseStep, StepContext, StepFn
from core.operations.gate import GateDecision
from core.operations.phases import PhaseDefinition, PhaseRegistry

logger = logging.getLogger(__name__)

E2E_STATUS_FAILURE_PREFIX = "Failed to check E2E status"
PERF_STATUS_FAILURE_PREFIX = "Failed to check performance data"

# 한 번에 커밋/삭제하는 최대 문서 수
MAX_BATCH_WRITES = 500


async def resolve_e2e_status(collab: E2ECollaborators) -> E2EStatus:
    """테스트 계정 2개 + 결정적 ID 문서 존재 여부"""
    primary = await collab.accounts.find_identity(e2e_data.E2E_PRIMARY_EMAIL)
    friend = await collab.accounts.find_identity(e2e_data.E2E_FRIEND_EMAIL)

    counts: dict[str, int] = {}
    for collection, doc_ids in e2e_data.E2E_COLLECTIONS.items():
        counts[collection] = await collab.documents.count_documents(collection, doc_ids)
    profile_ids = [user.uid for user in (primary, friend) if user.uid]
    if profile_ids:
        counts[e2e_data.USERS_COLLECTION] = await collab.documents.count_documents(
            e2e_data.USERS_COLLECTION, profile_ids
        )

    return E2EStatus(
        primaryUser=primary,
        friendUser=friend,
        dataCounts=counts,
        totalDocuments=sum(counts.values()),
    )


# ---------------------------------------------------------------------------
# E2E seed
# ---------------------------------------------------------------------------

def _reused(ctx: StepContext, key: str) -> str:
    return " - updated existing account" if ctx.values.get(key) else ""


def ensure_users_step(collab: E2ECollaborators) -> StepFn:
    async def run(ctx: StepContext) -> None:
        ctx.info("Creating/updating E2E test users...")
        primary_uid = await collab.accounts.ensure_identity(
            e2e_data.E2E_PRIMARY_EMAIL, e2e_data.E2E_PRIMARY_PASSWORD, e2e_data.E2E_PRIMARY_DISPLAY_NAME
        )
        ctx.success(
            f"Primary user: {e2e_data.E2E_PRIMARY_EMAIL} (uid: {primary_uid})"
            + _reused(ctx, "existing_primary_uid")
        )
        friend_uid = await collab.accounts.ensure_identity(
            e2e_data.E2E_FRIEND_EMAIL, e2e_data.E2E_FRIEND_PASSWORD, e2e_data.E2E_FRIEND_DISPLAY_NAME
        )
        ctx.success(
            f"Friend user: {e2e_data.E2E_FRIEND_EMAIL} (uid: {friend_uid})"
            + _reused(ctx, "existing_friend_uid")
        )
        ctx.provide("primary_uid", primary_uid)
        ctx.provide("friend_uid", friend_uid)
        ctx.record(f"users {e2e_data.E2E_PRIMARY_EMAIL} and {e2e_data.E2E_FRIEND_EMAIL}")

    return run


def _docs(collection: str, docs: list[dict]) -> list[DocumentWrite]:
    return [
        DocumentWrite(collection, doc["id"], {k: v for k, v in doc.items() if k != "id"})
        for doc in docs
    ]


def queue_documents_step() -> StepFn:
    """쓰기만 모아두고 다음 페이즈에서 한 번에 커밋"""

    async def run(ctx: StepContext) -> None:
        primary_uid = ctx.require("primary_uid")
        friend_uid = ctx.require("friend_uid")
        ctx.info("Writing Firestore documents...")
        writes: list[DocumentWrite] = []

        writes += [
            DocumentWrite(e2e_data.USERS_COLLECTION, primary_uid, e2e_data.user_profile(
                e2e_data.E2E_PRIMARY_DISPLAY_NAME, e2e_data.E2E_PRIMARY_EMAIL)),
            DocumentWrite(e2e_data.USERS_COLLECTION, friend_uid, e2e_data.user_profile(
                e2e_data.E2E_FRIEND_DISPLAY_NAME, e2e_data.E2E_FRIEND_EMAIL)),
        ]
        ctx.info("Queued 2 user profiles")

        for collection, docs, label in (
            ("textNotes", e2e_data.diary_entries(primary_uid), "diary entries"),
            ("lifeFeedPosts", e2e_data.life_feed_posts(primary_uid), "life feed posts"),
            ("locationData", e2e_data.locations(primary_uid), "locations"),
            ("healthData", e2e_data.health_data(primary_uid), "health records"),
        ):
            writes += _docs(collection, docs)
            ctx.info(f"Queued {len(docs)} {label}")

        writes += [
            DocumentWrite(e2e_data.friends_collection(primary_uid), friend_uid, e2e_data.friendship(
                friend_uid, e2e_data.E2E_FRIEND_DISPLAY_NAME, e2e_data.E2E_FRIEND_EMAIL)),
            DocumentWrite(e2e_data.friends_collection(friend_uid), primary_uid, e2e_data.friendship(
                primary_uid, e2e_data.E2E_PRIMARY_DISPLAY_NAME, e2e_data.E2E_PRIMARY_EMAIL)),
        ]
        ctx.info("Queued bidirectional friendship")

        circle = e2e_data.circle(primary_uid, friend_uid)
        writes += _docs("circles", [circle])
        ctx.info(f"Queued circle: {circle['name']}")

        challenge = e2e_data.challenge(primary_uid, friend_uid)
        writes += _docs("challenges", [challenge])
        ctx.info(f"Queued challenge: {challenge['title']}")

        ctx.provide("pending_writes", writes)

    return run


def commit_step(collab: E2ECollaborators) -> StepFn:
    async def run(ctx: StepContext) -> None:
        writes = ctx.require("pending_writes")
        ctx.info("Committing batch writes...")
        written = await collab.documents.commit_writes(writes)
        ctx.success("All documents written successfully")
        ctx.record(f"{written} documents")

    return run


E2E_SEED_PHASES = [
    PhaseDefinition(1, "Auth Users"),
    PhaseDefinition(2, "Firestore Data"),
    PhaseDefinition(3, "Commit"),
]


def _e2e_status_gate(collab: E2ECollaborators, judge):
    async def gate() -> GateDecision:
        return judge(await resolve_e2e_status(collab))

    return gate


def build_e2e_seed_operation(collab: E2ECollaborators) -> GatedOperation:
    """E2E 테스트 계정 + 문서 시드 (멱등: 계정 재사용, merge 쓰기)"""
    registry = PhaseRegistry("E2E seed", E2E_SEED_PHASES)
    steps = [
        PhaseStep(1, ensure_users_step(collab)),
        PhaseStep(2, queue_documents_step()),
        PhaseStep(3, commit_step(collab)),
    ]
    return GatedOperation(
        "e2e.seed",
        _e2e_status_gate(collab, e2e_seed_gate),
        NativePhaseExecutor(registry, steps, summary_label="Written"),
        gate_failure_prefix=E2E_STATUS_FAILURE_PREFIX,
    )


# ---------------------------------------------------------------------------
# E2E cleanup
# ---------------------------------------------------------------------------

def e2e_cleanup_step(collab: E2ECollaborators) -> StepFn:
    async def run(ctx: StepContext) -> None:
        ctx.info("Starting E2E data cleanup...")
        primary_uid = ctx.values.get("primary_uid")
        friend_uid = ctx.values.get("friend_uid")
        deleted = 0

        for collection, doc_ids in e2e_data.E2E_COLLECTIONS.items():
            removed = await collab.documents.delete_documents(collection, doc_ids)
            deleted += removed
            ctx.info(f"Cleaned {collection} ({removed}/{len(doc_ids)} docs)")

        if primary_uid and friend_uid:
            deleted += await collab.documents.delete_documents(
                e2e_data.friends_collection(primary_uid), [friend_uid]
            )
            deleted += await collab.documents.delete_documents(
                e2e_data.friends_collection(friend_uid), [primary_uid]
            )
            ctx.info("Deleted friendship documents")

        uids = [uid for uid in (primary_uid, friend_uid) if uid]
        deleted += await collab.documents.delete_documents(e2e_data.USERS_COLLECTION, uids)
        ctx.info("Deleted user profile documents")
        ctx.record(f"{deleted} documents")

        for uid, email in ((primary_uid, e2e_data.E2E_PRIMARY_EMAIL), (friend_uid, e2e_data.E2E_FRIEND_EMAIL)):
            if uid:
                await collab.accounts.delete_identity(uid)
                ctx.info(f"Deleted auth user: {email}")
                ctx.record(f"auth user {email}")

        ctx.success(f"Deleted {deleted} documents and {len(uids)} auth users")

    return run


def build_e2e_cleanup_operation(collab: E2ECollaborators) -> GatedOperation:
    """E2E 테스트 문서와 계정 삭제. 지울 것이 없으면 Skip"""
    registry = PhaseRegistry("E2E cleanup", [PhaseDefinition(0, "Cleanup")])
    return GatedOperation(
        "e2e.cleanup",
        _e2e_status_gate(collab, e2e_cleanup_gate),
        NativePhaseExecutor(registry, [PhaseStep(0, e2e_cleanup_step(collab))], summary_label="Removed"),
        gate_failure_prefix=E2E_STATUS_FAILURE_PREFIX,
    )


# ---------------------------------------------------------------------------
# Performance data
# ---------------------------------------------------------------------------

def _perf_status_gate(collab: E2ECollaborators, days: int, judge):
    async def gate() -> GateDecision:
        metrics = await collab.documents.count_documents(
            perf_data.METRICS_COLLECTION, perf_data.all_perf_doc_ids(days)
        )
        aggregates = await collab.documents.count_documents(
            perf_data.AGGREGATES_COLLECTION, perf_data.perf_dates(days)
        )
        return judge(metrics, aggregates)

    return gate


def write_metrics_step(collab: E2ECollaborators, days: int) -> StepFn:
    async def run(ctx: StepContext) -> None:
        users = perf_data.PERF_USER_IDS
        ctx.info(f"Generating synthetic metrics for {days} days, {len(users)} users...")
        if ctx.values.get("existing_metrics"):
            ctx.info(f"Overwriting {ctx.values['existing_metrics']} existing metric documents")

        total = days * len(users)
        written = 0
        for day, date_str in enumerate(perf_data.perf_dates(days)):
            for position, user_id in enumerate(users):
                metrics = perf_data.generate_daily_metrics(user_id, date_str, day)
                for start in range(0, len(metrics), MAX_BATCH_WRITES):
                    chunk = metrics[start:start + MAX_BATCH_WRITES]
                    written += await collab.documents.commit_writes(
                        _docs(perf_data.METRICS_COLLECTION, chunk)
                    )
                ctx.info(
                    f"Day {day + 1}/{days}: Wrote {len(metrics)} metrics for {user_id}",
                    ProgressCounter(current=day * len(users) + position + 1, total=total),
                )

        ctx.success(f"Wrote {written} raw metric documents")
        ctx.record(f"{written} raw metrics")

    return run


def aggregate_step(collab: E2ECollaborators, days: int) -> StepFn:
    async def run(ctx: StepContext) -> None:
        ctx.info(f"Aggregating {days} days of metrics...")
        by_date: dict[str, list[dict]] = {}
        for metric in await collab.documents.list_documents(perf_data.METRICS_COLLECTION):
            by_date.setdefault(metric["timestamp"][:10], []).append(metric)

        written = 0
        for day, date_str in enumerate(perf_data.perf_dates(days)):
            metrics = by_date.get(date_str)
            if metrics:
                aggregate = perf_data.aggregate_metrics(metrics, date_str)
                written += await collab.documents.commit_writes([
                    DocumentWrite(perf_data.AGGREGATES_COLLECTION, date_str, aggregate, merge=False)
                ])
            ctx.info(
                f"Aggregated day {day + 1}/{days}: {date_str}",
                ProgressCounter(current=day + 1, total=days),
            )

        ctx.success(f"Aggregated all {days} days")
        ctx.record(f"{written} aggregate documents")

    return run


PERF_SEED_PHASES = [
    PhaseDefinition(1, "Write Metrics"),
    PhaseDefinition(2, "Aggregate"),
]


def build_perf_seed_operation(collab: E2ECollaborators, *, days: int = perf_data.DEFAULT_PERF_DAYS) -> GatedOperation:
    """합성 성능 지표 (사용자 3명 × days일) + 일별 집계 문서"""
    registry = PhaseRegistry("Performance seed", PERF_SEED_PHASES)
    steps = [
        PhaseStep(1, write_metrics_step(collab, days)),
        PhaseStep(2, aggregate_step(collab, days)),
    ]
    return GatedOperation(
        "e2e.performance.seed",
        _perf_status_gate(collab, days, perf_seed_gate),
        NativePhaseExecutor(registry, steps, summary_label="Written"),
        gate_failure_prefix=PERF_STATUS_FAILURE_PREFIX,
    )


def perf_cleanup_start_step() -> StepFn:
    async def run(ctx: StepContext) -> None:
        ctx.info("Starting performance data cleanup...")
        ctx.info(
            f"Found {ctx.values.get('existing_metrics', 0)} metric and "
            f"{ctx.values.get('existing_aggregates', 0)} aggregate documents"
        )

    return run


def delete_metrics_step(collab: E2ECollaborators, days: int) -> StepFn:
    async def run(ctx: StepContext) -> None:
        doc_ids = perf_data.all_perf_doc_ids(days)
        ctx.info(f"Deleting {len(doc_ids)} raw metric documents...")
        processed = 0
        deleted = 0
        for start in range(0, len(doc_ids), MAX_BATCH_WRITES):
            chunk = doc_ids[start:start + MAX_BATCH_WRITES]
            deleted += await collab.documents.delete_documents(perf_data.METRICS_COLLECTION, chunk)
            processed += len(chunk)
            ctx.info(
                f"Deleted {processed}/{len(doc_ids)} metrics...",
                ProgressCounter(current=processed, total=len(doc_ids)),
            )
        ctx.success(f"Deleted {deleted} raw metric documents")
        ctx.record(f"{deleted} metrics")

    return run


def delete_aggregates_step(collab: E2ECollaborators, days: int) -> StepFn:
    async def run(ctx: StepContext) -> None:
        dates = perf_data.perf_dates(days)
        ctx.info(f"Deleting {len(dates)} aggregate documents...")
        deleted = await collab.documents.delete_documents(perf_data.AGGREGATES_COLLECTION, dates)
        ctx.success(f"Deleted {deleted} aggregate documents")
        ctx.record(f"{deleted} aggregates")

    return run


PERF_CLEANUP_PHASES = [
    PhaseDefinition(0, "Cleanup"),
    PhaseDefinition(1, "Delete Metrics"),
    PhaseDefinition(2, "Delete Aggregates"),
]


def build_perf_cleanup_operation(
    collab: E2ECollaborators,
    *,
    days: int = perf_data.DEFAULT_PERF_DAYS,
) -> GatedOperation:
    """시드와 같은 기간의 결정적 ID로 지표/집계 삭제. 없으면 Skip"""
    registry = PhaseRegistry("Performance cleanup", PERF_CLEANUP_PHASES)
    steps = [
        PhaseStep(0, perf_cleanup_start_step()),
        PhaseStep(1, delete_metrics_step(collab, days)),
        PhaseStep(2, delete_aggregates_step(collab, days)),
    ]
    return GatedOperation(
        "e2e.performance.cleanup",
        _perf_status_gate(collab, days, perf_cleanup_gate),
        NativePhaseExecutor(registry, steps, summary_label="Removed"),
        gate_failure_prefix=PERF_STATUS_FAILURE_PREFIX,
    )
