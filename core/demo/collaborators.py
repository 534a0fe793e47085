"""
Demo Collaborator Interfaces

데모 파이프라인이 소비하는 외부 협력자 인터페이스.
전역 싱글톤 대신 DemoCollaborators 번들을 파이프라인 생성 시 주입합니다.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Protocol

from pydantic import BaseModel, Field

from core.operations.errors import OperationError

# (완료 건수, 전체 건수) 배치 진행 콜백
BatchProgress = Callable[[int, int], None]


class IdentityConflictError(OperationError):
    """동일 이메일의 계정이 이미 존재"""


class DownstreamJobError(OperationError):
    """다운스트림 작업 트리거 실패"""


class ArtifactKind(str, Enum):
    """시드 대상 컬렉션"""
    HEALTH_DATA = "healthData"
    LOCATION_DATA = "locationData"
    VOICE_NOTES = "voiceNotes"
    TEXT_NOTES = "textNotes"
    PHOTOS = "photoMemories"
    FRIEND_POSTS = "lifeFeedPosts"
    CIRCLES = "circles"
    ENGAGEMENT = "engagement"


class JobKind(str, Enum):
    """다운스트림 작업 (Cloud Function 등)"""
    EMBEDDINGS = "embeddings"
    LIFE_FEED = "lifeFeed"
    KEYWORDS = "keywords"
    INSIGHTS = "insights"
    MEMORIES = "memories"


class DemoStatus(BaseModel):
    """데모 계정 상태 스냅샷 (게이트 입력)"""
    exists: bool = Field(..., description="기본 데모 계정 존재 여부")
    uid: str | None = None
    email: str | None = None
    displayName: str | None = None
    friendExists: bool = False
    friendUid: str | None = None
    friendDisplayName: str | None = None
    counts: dict[str, int] = Field(default_factory=dict, description="컬렉션별 문서 수")


class DemoStatusResolver(Protocol):
    async def resolve_demo_status(self) -> DemoStatus: ...


class IdentityProvider(Protocol):
    async def create_identity(self, email: str, password: str, display_name: str) -> str: ...

    async def delete_identity(self, uid: str) -> None: ...


class SocialGraph(Protocol):
    async def link_identities(self, primary_uid: str, secondary_uid: str) -> None: ...


class ArtifactStore(Protocol):
    async def seed_artifacts(
        self,
        kind: ArtifactKind,
        primary_uid: str,
        secondary_uid: str | None = None,
        *,
        on_batch: BatchProgress | None = None,
    ) -> int: ...

    async def delete_artifacts(self, uid: str) -> int: ...


class DownstreamJobTrigger(Protocol):
    async def trigger_downstream_job(self, kind: JobKind, uid: str) -> dict[str, Any]: ...


@dataclass(frozen=True)
class DemoCollaborators:
    """파이프라인에 주입되는 협력자 묶음"""
    status: DemoStatusResolver
    identities: IdentityProvider
    social: SocialGraph
    artifacts: ArtifactStore
    jobs: DownstreamJobTrigger
