"""
작업 스트림 통합 테스트

HTTP → 게이트/실행기 → SSE 프레임 전체 경로 검증.
협력자와 프로세스 spawner는 dependency_overrides로 교체합니다.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_demo_collaborators, get_e2e_collaborators, get_process_spawner
from api.sse_utils import parse_sse_events
from core.demo import demo_data
from core.demo.memory_backend import InMemoryDemoBackend
from core.e2e import perf_data
from core.security.auth import create_token
from main import app


def _auth_headers(role: str = "admin") -> dict[str, str]:
    """테스트용 JWT 헤더"""
    token = create_token(user_id="test-admin", role=role, email="admin@example.test")
    return {"Authorization": f"Bearer {token}"}


class ScriptedProcess:
    """고정 출력을 내고 종료하는 가짜 프로세스"""

    def __init__(self, stdout: bytes, exit_code: int) -> None:
        self.stdout = asyncio.StreamReader()
        self.stdout.feed_data(stdout)
        self.stdout.feed_eof()
        self.stderr = asyncio.StreamReader()
        self.stderr.feed_eof()
        self.returncode: int | None = None
        self._exit_code = exit_code

    async def wait(self) -> int:
        self.returncode = self._exit_code
        return self.returncode

    def kill(self) -> None:
        self.returncode = -9


@pytest.fixture
def backend() -> InMemoryDemoBackend:
    return InMemoryDemoBackend(days=5)


@pytest.fixture
def spawn_calls() -> list:
    return []


@pytest.fixture
def client(backend, e2e_backend, spawn_calls):
    async def spawner(executable, args):
        spawn_calls.append([executable, *args])
        return ScriptedProcess("Suite: api\n===\n✓ seeds demo\n✗ links friend\n".encode("utf-8"), exit_code=1)

    app.dependency_overrides[get_demo_collaborators] = backend.collaborators
    app.dependency_overrides[get_process_spawner] = lambda: spawner
    app.dependency_overrides[get_e2e_collaborators] = e2e_backend.collaborators
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _stream(client: TestClient, path: str, **kwargs):
    response = client.post(path, headers=_auth_headers(), **kwargs)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"
    events = parse_sse_events(response.text)
    assert "[DONE]" not in response.text
    return events


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_requires_authentication(client):
    response = client.post("/admin/demo/seed")
    assert response.status_code == 401


def test_requires_admin_role(client):
    response = client.post("/admin/demo/seed", headers=_auth_headers(role="user"))
    assert response.status_code == 403


def test_unknown_body_field_rejected(client):
    response = client.post("/admin/demo/seed", json={"reset": True, "force": True}, headers=_auth_headers())
    assert response.status_code == 422


def test_seed_then_rerun_skips(client, backend):
    events = _stream(client, "/admin/demo/seed", json={"skipPhotos": True})
    assert events[-1].phase == 99
    assert events[-1].level.value == "success"
    assert sum(1 for e in events if e.is_terminal) == 1

    status = client.get("/admin/demo/status", headers=_auth_headers()).json()
    assert status["exists"] is True
    assert status["friendExists"] is True

    again = _stream(client, "/admin/demo/seed")
    assert len(again) == 1
    assert (again[0].phase, again[0].level.value) == (99, "warning")


def test_seed_without_body_uses_defaults(client):
    events = _stream(client, "/admin/demo/seed")
    assert events[-1].level.value == "success"
    assert any(e.phaseName == "Photos" and e.level.value == "success" for e in events)


def test_seed_friend_without_account_is_fatal(client):
    events = _stream(client, "/admin/demo/seed-friend")
    assert [(e.phase, e.level.value) for e in events] == [(-1, "error")]
    assert events[0].message == "Demo account not found. Seed the demo account first."


def test_cleanup_and_jobs(client, backend):
    _stream(client, "/admin/demo/seed", json={"skipFriend": True})

    for path in ("/admin/demo/life-feed", "/admin/demo/keywords", "/admin/demo/insights", "/admin/demo/memories"):
        events = _stream(client, path)
        assert events[-1].phase == 99, path
        assert events[-1].level.value == "success", path

    events = _stream(client, "/admin/demo/cleanup")
    assert events[-1].level.value == "success"
    assert backend.identities == {}

    events = _stream(client, "/admin/demo/cleanup")
    assert [(e.phase, e.level.value) for e in events] == [(99, "warning")]


def test_test_run_streams_process_output(client, spawn_calls):
    events = _stream(client, "/admin/e2e/tests", json={"filter": "demo", "skipE2E": True})

    assert spawn_calls == [["npm", "test", "--", "--filter", "demo", "--skip-e2e"]]
    assert events[0].phase == 0
    assert events[0].message == "Running: npm test -- --filter demo --skip-e2e"
    body = events[1:-1]
    assert [(e.phase, e.level.value) for e in body] == [(1, "info"), (2, "success"), (2, "error")]
    assert all(e.phaseName == "Tests" for e in body)
    assert events[-1].phase == 99
    assert events[-1].level.value == "error"
    assert "exit code 1" in events[-1].message


def test_test_run_rejects_conflicting_flags(client, spawn_calls):
    response = client.post("/admin/e2e/tests", json={"skipE2E": True, "e2eOnly": True}, headers=_auth_headers())
    assert response.status_code == 422
    assert spawn_calls == []


def test_request_id_header_on_responses(client):
    first = client.get("/health").headers["x-request-id"]
    second = client.get("/health").headers["x-request-id"]
    assert first and second and first != second


def test_reset_seed_clears_orphan_friend(client, backend):
    backend.identities["orphan-friend"] = {
        "email": demo_data.DEMO_FRIEND_EMAIL,
        "password": demo_data.DEMO_FRIEND_PASSWORD,
        "displayName": demo_data.DEMO_FRIEND_DISPLAY_NAME,
    }
    status = client.get("/admin/demo/status", headers=_auth_headers()).json()
    assert (status["exists"], status["friendExists"], status["friendUid"]) == (False, True, "orphan-friend")

    events = _stream(client, "/admin/demo/seed", json={"reset": True})
    assert events[0].phaseName == "Cleanup"
    assert events[-1].level.value == "success"
    assert "orphan-friend" not in backend.identities
    assert client.get("/admin/demo/status", headers=_auth_headers()).json()["friendExists"] is True


def test_demo_phases_lists_declared_phases(client):
    response = client.get("/admin/demo/phases", headers=_auth_headers())
    assert response.status_code == 200
    operations = {item["operation"]: item for item in response.json()}
    seed = operations["demo.seed"]
    assert seed["phases"][0] == {"index": 0, "name": "Cleanup"}
    assert [p["index"] for p in seed["phases"]] == list(range(0, 17))
    assert [p["name"] for p in operations["demo.cleanup"]["phases"]] == ["Cleanup Data", "Delete Accounts"]
    assert "demo.lifeFeed" in operations


def test_e2e_status_requires_admin(client):
    assert client.get("/admin/e2e/status").status_code == 401
    assert client.get("/admin/e2e/status", headers=_auth_headers(role="user")).status_code == 403


def test_e2e_seed_status_cleanup(client, e2e_backend):
    before = client.get("/admin/e2e/status", headers=_auth_headers()).json()
    assert before["primaryUser"]["exists"] is False
    assert before["totalDocuments"] == 0

    events = _stream(client, "/admin/e2e/seed")
    assert [e.phaseName for e in events[:2]] == ["Auth Users", "Auth Users"]
    assert (events[-1].phase, events[-1].level.value) == (99, "success")

    after = client.get("/admin/e2e/status", headers=_auth_headers()).json()
    assert after["primaryUser"]["exists"] is True
    assert after["friendUser"]["email"] == "e2e-friend@personalai.app"
    assert after["totalDocuments"] == 18

    events = _stream(client, "/admin/e2e/cleanup")
    assert {e.phase for e in events[:-1]} == {0}
    assert events[-1].level.value == "success"
    assert e2e_backend.accounts == {}

    events = _stream(client, "/admin/e2e/cleanup")
    assert [(e.phase, e.level.value) for e in events] == [(99, "warning")]


def test_performance_seed_and_cleanup(client, e2e_backend):
    events = _stream(client, "/admin/e2e/performance/seed")
    assert {e.phaseName for e in events[:-1]} == {"Write Metrics", "Aggregate"}
    assert events[-1].level.value == "success"
    assert len(e2e_backend.documents[perf_data.AGGREGATES_COLLECTION]) == perf_data.DEFAULT_PERF_DAYS

    events = _stream(client, "/admin/e2e/performance/cleanup")
    assert [e.phase for e in events if e.phase != 99] == sorted(e.phase for e in events if e.phase != 99)
    assert events[0].phaseName == "Cleanup"
    assert events[-1].level.value == "success"
    assert not e2e_backend.documents[perf_data.METRICS_COLLECTION]


def test_e2e_phases_lists_test_data_operations(client):
    response = client.get("/admin/e2e/phases", headers=_auth_headers())
    assert response.status_code == 200
    assert [item["operation"] for item in response.json()] == [
        "e2e.seed", "e2e.cleanup", "e2e.performance.seed", "e2e.performance.cleanup",
    ]
