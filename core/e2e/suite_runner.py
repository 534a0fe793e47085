"""
Integration / E2E Suite Runner

외부 테스트 러너 프로세스를 Process Phase Adapter로 감싸는 파이프라인.
전달 가능한 인자는 filter / skipE2E / e2eOnly 뿐이며 나머지 실행 설정은 고정(Settings).
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.config import Settings
from core.operations.process_adapter import ProcessPhaseAdapter, ProcessSpawner, make_process_spawner


class SuiteRunOptions(BaseModel):
    """테스트 실행 요청 본문 (본문 없음 = 기본값)"""
    model_config = ConfigDict(extra="forbid")

    filter: str | None = Field(
        default=None,
        max_length=200,
        pattern=r"^[\w\-. ]*$",
        description="테스트 이름 필터 키워드",
    )
    skipE2E: bool = Field(default=False, description="E2E 테스트 제외 (Standard만)")
    e2eOnly: bool = Field(default=False, description="E2E 테스트만 실행")

    @model_validator(mode="after")
    def validate_exclusive(self) -> "SuiteRunOptions":
        if self.skipE2E and self.e2eOnly:
            raise ValueError("skipE2E and e2eOnly cannot both be set")
        return self


def build_suite_args(options: SuiteRunOptions, base_args: list[str]) -> list[str]:
    """기본 인자 뒤에 pass-through 인자 추가"""
    args = list(base_args)
    if options.filter and options.filter.strip():
        args += ["--filter", options.filter.strip()]
    if options.skipE2E:
        args.append("--skip-e2e")
    if options.e2eOnly:
        args.append("--e2e-only")
    return args


def build_suite_run_operation(
    options: SuiteRunOptions,
    settings: Settings,
    *,
    spawner: ProcessSpawner | None = None,
) -> ProcessPhaseAdapter:
    """설정된 테스트 러너를 실행하는 어댑터 생성"""
    return ProcessPhaseAdapter(
        executable=settings.test_runner_executable,
        args=build_suite_args(options, settings.test_runner_args),
        spawner=spawner or make_process_spawner(settings.test_runner_cwd),
    )
