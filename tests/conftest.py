"""
공통 pytest 설정

Settings는 import 시점에 생성되므로 테스트 모듈 import 전에 환경 변수를 채웁니다.
"""

import os

os.environ.setdefault("SECRET_KEY", "opstream-admin-test-secret-key-0123456789abcdef")
os.environ.setdefault("REQUIRE_AUTH", "true")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.pop("DOWNSTREAM_BASE_URL", None)

import pytest

from core.demo.memory_backend import InMemoryDemoBackend
from core.e2e.memory_store import InMemoryE2EBackend
from core.operations.events import ProgressEvent


class EventRecorder:
    """emit 대체: 받은 이벤트를 순서대로 보관"""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def __call__(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def phases(self) -> list[int]:
        return [e.phase for e in self.events]

    @property
    def last(self) -> ProgressEvent:
        return self.events[-1]


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def backend() -> InMemoryDemoBackend:
    return InMemoryDemoBackend(days=7, batch_size=4)


@pytest.fixture
def e2e_backend() -> InMemoryE2EBackend:
    return InMemoryE2EBackend()
