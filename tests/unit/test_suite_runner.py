"""
E2E Suite Runner 인자 구성 단위 테스트
"""

import pytest
from pydantic import ValidationError

from core.config import get_settings
from core.e2e.suite_runner import SuiteRunOptions, build_suite_args, build_suite_run_operation

BASE = ["test", "--"]


def test_default_options_pass_base_args_only():
    assert build_suite_args(SuiteRunOptions(), BASE) == ["test", "--"]


def test_filter_and_flags_are_appended():
    options = SuiteRunOptions(filter=" auth flow ", skipE2E=True)
    assert build_suite_args(options, BASE) == ["test", "--", "--filter", "auth flow", "--skip-e2e"]
    assert build_suite_args(SuiteRunOptions(e2eOnly=True), BASE)[-1] == "--e2e-only"


def test_base_args_not_mutated():
    base = list(BASE)
    build_suite_args(SuiteRunOptions(skipE2E=True), base)
    assert base == BASE


@pytest.mark.parametrize("payload", [
    {"skipE2E": True, "e2eOnly": True},
    {"filter": "auth; rm -rf /"},
    {"filter": "x" * 201},
    {"verbose": True},
])
def test_invalid_options_rejected(payload):
    with pytest.raises(ValidationError):
        SuiteRunOptions(**payload)


def test_operation_uses_configured_runner():
    settings = get_settings()

    async def spawner(executable, args):
        raise AssertionError("not spawned in this test")

    adapter = build_suite_run_operation(SuiteRunOptions(filter="memories"), settings, spawner=spawner)
    assert adapter.executable == settings.test_runner_executable
    assert adapter.args[-2:] == ["--filter", "memories"]
    assert adapter.spawner is spawner
