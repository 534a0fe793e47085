"""
In-Memory E2E Backend

계정 디렉터리 + 문서 저장소의 메모리 구현 (개발 서버와 테스트에서 주입).
"""

import logging
import uuid
from collections import defaultdict
from typing import Any

from core.e2e.collaborators import DocumentWrite, E2ECollaborators, E2EUserStatus

logger = logging.getLogger(__name__)


class InMemoryE2EBackend:
    """AccountDirectory / DocumentStore 구현"""

    def __init__(self) -> None:
        self.accounts: dict[str, dict[str, str]] = {}
        self.documents: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self.commits = 0

    def collaborators(self) -> E2ECollaborators:
        return E2ECollaborators(accounts=self, documents=self)

    # ---- AccountDirectory ----
    async def find_identity(self, email: str) -> E2EUserStatus:
        for uid, account in self.accounts.items():
            if account["email"] == email:
                return E2EUserStatus(exists=True, uid=uid, email=email, displayName=account["displayName"])
        return E2EUserStatus()

    async def ensure_identity(self, email: str, password: str, display_name: str) -> str:
        """없으면 생성, 있으면 비밀번호/표시 이름 갱신 후 기존 uid 반환"""
        existing = await self.find_identity(email)
        if existing.uid:
            self.accounts[existing.uid].update(password=password, displayName=display_name)
            return existing.uid
        uid = uuid.uuid4().hex[:28]
        self.accounts[uid] = {"email": email, "password": password, "displayName": display_name}
        logger.debug("Created test account %s (%s)", uid, email)
        return uid

    async def delete_identity(self, uid: str) -> None:
        if self.accounts.pop(uid, None) is None:
            raise LookupError(f"No account {uid}")

    # ---- DocumentStore ----
    async def commit_writes(self, writes: list[DocumentWrite]) -> int:
        for write in writes:
            target = self.documents[write.collection]
            if write.merge and write.doc_id in target:
                target[write.doc_id] = {**target[write.doc_id], **write.data}
            else:
                target[write.doc_id] = dict(write.data)
        self.commits += 1
        return len(writes)

    async def delete_documents(self, collection: str, doc_ids: list[str]) -> int:
        target = self.documents[collection]
        return sum(1 for doc_id in doc_ids if target.pop(doc_id, None) is not None)

    async def count_documents(self, collection: str, doc_ids: list[str]) -> int:
        target = self.documents.get(collection, {})
        return sum(1 for doc_id in doc_ids if doc_id in target)

    async def list_documents(self, collection: str) -> list[dict[str, Any]]:
        return list(self.documents.get(collection, {}).values())
