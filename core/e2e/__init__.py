"""
E2E Module

통합/E2E 테스트 실행 스트림과 E2E/성능 테스트 데이터 시드/정리 파이프라인.
"""

from core.e2e.collaborators import E2ECollaborators, E2EStatus
from core.e2e.memory_store import InMemoryE2EBackend

__all__ = [
    "E2ECollaborators",
    "E2EStatus",
    "InMemoryE2EBackend",
]
