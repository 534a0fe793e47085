"""
In-Memory Demo Backend

문서 저장소 + 계정 제공자 + 다운스트림 작업을 메모리에서 흉내내는 구현.
개발 서버와 테스트에서 DemoCollaborators로 주입됩니다.
"""

import logging
import uuid
from collections import defaultdict
from typing import Any

from core.demo import demo_data
from core.demo.collaborators import (
    ArtifactKind,
    BatchProgress,
    DemoCollaborators,
    DemoStatus,
    IdentityConflictError,
    JobKind,
)

logger = logging.getLogger(__name__)


class InMemoryDemoBackend:
    """모든 데모 협력자 프로토콜 구현"""

    def __init__(self, days: int = 60, batch_size: int = demo_data.WRITE_BATCH_SIZE) -> None:
        self.days = days
        self.batch_size = batch_size
        self.identities: dict[str, dict[str, str]] = {}
        self.collections: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.friendships: dict[str, dict[str, Any]] = {}
        self.triggered_jobs: list[tuple[JobKind, str]] = []

    def collaborators(self) -> DemoCollaborators:
        return DemoCollaborators(
            status=self,
            identities=self,
            social=self,
            artifacts=self,
            jobs=self,
        )

    def _uid_for(self, email: str) -> str | None:
        for uid, identity in self.identities.items():
            if identity["email"] == email:
                return uid
        return None

    def count_for(self, uid: str) -> dict[str, int]:
        counts = {}
        for name, docs in self.collections.items():
            counts[name] = sum(1 for d in docs if d.get("userId") == uid)
        return counts

    # ---- DemoStatusResolver ----
    async def resolve_demo_status(self) -> DemoStatus:
        uid = self._uid_for(demo_data.DEMO_EMAIL)
        # 친구 계정은 기본 계정과 무관하게 조회 (고아 계정 포함)
        friend_uid = self._uid_for(demo_data.DEMO_FRIEND_EMAIL)
        friend = self.identities.get(friend_uid) if friend_uid else None
        if uid is None:
            return DemoStatus(
                exists=False,
                friendExists=friend is not None,
                friendUid=friend_uid,
                friendDisplayName=friend["displayName"] if friend else None,
            )
        return DemoStatus(
            exists=True,
            uid=uid,
            email=demo_data.DEMO_EMAIL,
            displayName=self.identities[uid]["displayName"],
            friendExists=friend is not None,
            friendUid=friend_uid,
            friendDisplayName=friend["displayName"] if friend else None,
            counts=self.count_for(uid),
        )

    # ---- IdentityProvider ----
    async def create_identity(self, email: str, password: str, display_name: str) -> str:
        if self._uid_for(email) is not None:
            raise IdentityConflictError(f"An account already exists for {email}")
        uid = uuid.uuid4().hex[:28]
        self.identities[uid] = {"email": email, "password": password, "displayName": display_name}
        logger.debug("Created identity %s (%s)", uid, email)
        return uid

    async def delete_identity(self, uid: str) -> None:
        if self.identities.pop(uid, None) is None:
            raise LookupError(f"No identity {uid}")

    # ---- SocialGraph ----
    async def link_identities(self, primary_uid: str, secondary_uid: str) -> None:
        for uid in (primary_uid, secondary_uid):
            if uid not in self.identities:
                raise LookupError(f"No identity {uid}")
        for doc in demo_data.friendship_docs(primary_uid, secondary_uid):
            self.friendships[doc["docId"]] = doc

    # ---- ArtifactStore ----
    def _build(self, kind: ArtifactKind, primary_uid: str, secondary_uid: str | None) -> list[dict[str, Any]]:
        if kind is ArtifactKind.HEALTH_DATA:
            return demo_data.health_docs(primary_uid, self.days)
        if kind is ArtifactKind.LOCATION_DATA:
            return demo_data.location_docs(primary_uid, self.days)
        if kind is ArtifactKind.VOICE_NOTES:
            return demo_data.voice_note_docs(primary_uid)
        if kind is ArtifactKind.TEXT_NOTES:
            return demo_data.text_note_docs(primary_uid)
        if kind is ArtifactKind.PHOTOS:
            return demo_data.photo_docs(primary_uid)
        if secondary_uid is None:
            raise ValueError(f"{kind.value} requires a second account")
        if kind is ArtifactKind.FRIEND_POSTS:
            return demo_data.friend_post_docs(secondary_uid, primary_uid)
        if kind is ArtifactKind.CIRCLES:
            return demo_data.circle_docs(primary_uid, secondary_uid)
        if kind is ArtifactKind.ENGAGEMENT:
            return demo_data.engagement_docs(primary_uid, secondary_uid)
        raise ValueError(f"Unknown artifact kind: {kind}")

    async def seed_artifacts(
        self,
        kind: ArtifactKind,
        primary_uid: str,
        secondary_uid: str | None = None,
        *,
        on_batch: BatchProgress | None = None,
    ) -> int:
        docs = self._build(ArtifactKind(kind), primary_uid, secondary_uid)
        target = self.collections[ArtifactKind(kind).value]
        for start in range(0, len(docs), self.batch_size):
            chunk = docs[start:start + self.batch_size]
            target.extend(chunk)
            if on_batch is not None:
                on_batch(start + len(chunk), len(docs))
        return len(docs)

    async def delete_artifacts(self, uid: str) -> int:
        deleted = 0
        for name, docs in self.collections.items():
            kept = [d for d in docs if d.get("userId") != uid]
            deleted += len(docs) - len(kept)
            self.collections[name] = kept
        for doc_id in [k for k, v in self.friendships.items() if uid in (v["userId"], v["friendUid"])]:
            del self.friendships[doc_id]
            deleted += 1
        return deleted

    # ---- DownstreamJobTrigger ----
    async def trigger_downstream_job(self, kind: JobKind, uid: str) -> dict[str, Any]:
        kind = JobKind(kind)
        if uid not in self.identities:
            raise LookupError(f"No identity {uid}")
        self.triggered_jobs.append((kind, uid))
        if kind is JobKind.LIFE_FEED:
            posts = [
                {"userId": uid, "content": f"Weekly highlight #{i + 1}", "publishedAt": demo_data.days_ago_iso(i)}
                for i in range(3)
            ]
            self.collections[ArtifactKind.FRIEND_POSTS.value].extend(posts)
            return {"success": True, "postsCreated": len(posts), "message": f"Generated {len(posts)} posts"}
        if kind is JobKind.EMBEDDINGS:
            total = sum(self.count_for(uid).values())
            return {"success": True, "message": f"Embeddings queued for {total} documents"}
        return {"success": True, "message": f"{kind.value} generation triggered"}
