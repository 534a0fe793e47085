"""
E2E Test Data Collaborator Interfaces

E2E/성능 테스트 데이터 파이프라인이 소비하는 계정 디렉터리와 문서 저장소.
모든 문서는 결정적 ID를 사용하므로 시드/정리는 반복 실행해도 안전합니다.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class DocumentWrite:
    """배치 쓰기 1건 (merge=True면 기존 필드 유지)"""
    collection: str
    doc_id: str
    data: dict[str, Any] = field(default_factory=dict)
    merge: bool = True


class E2EUserStatus(BaseModel):
    """E2E 테스트 계정 1개의 상태"""
    exists: bool = False
    uid: str | None = None
    email: str | None = None
    displayName: str | None = None


class E2EStatus(BaseModel):
    """E2E 테스트 데이터 상태 스냅샷 (관리 콘솔 상태 카드)"""
    primaryUser: E2EUserStatus = Field(default_factory=E2EUserStatus)
    friendUser: E2EUserStatus = Field(default_factory=E2EUserStatus)
    dataCounts: dict[str, int] = Field(default_factory=dict, description="컬렉션별 시드 문서 수")
    totalDocuments: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.primaryUser.exists and not self.friendUser.exists and self.totalDocuments == 0


class AccountDirectory(Protocol):
    async def find_identity(self, email: str) -> E2EUserStatus: ...

    async def ensure_identity(self, email: str, password: str, display_name: str) -> str: ...

    async def delete_identity(self, uid: str) -> None: ...


class DocumentStore(Protocol):
    async def commit_writes(self, writes: list[DocumentWrite]) -> int: ...

    async def delete_documents(self, collection: str, doc_ids: list[str]) -> int: ...

    async def count_documents(self, collection: str, doc_ids: list[str]) -> int: ...

    async def list_documents(self, collection: str) -> list[dict[str, Any]]: ...


@dataclass(frozen=True)
class E2ECollaborators:
    """E2E 파이프라인 협력자 번들"""
    accounts: AccountDirectory
    documents: DocumentStore
