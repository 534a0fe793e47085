"""
Progress Event Schema

장시간 관리 작업 스트림의 유일한 와이어 객체.
{"phase","phaseName","level","message"} (+ 선택적 "progress": {"current","total"})

phase 규약:
    0  : 준비/시작 전 (Setup, Cleanup)
    1..: 레지스트리에 선언된 순서형 페이즈
    99 : 종료 - 성공/요약 (level로 성공/실패 구분)
    -1 : 종료 - 치명적 오류 (선언된 페이즈와 무관)
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SETUP_PHASE = 0
TERMINAL_PHASE = 99
FATAL_PHASE = -1
TERMINAL_PHASES = frozenset({TERMINAL_PHASE, FATAL_PHASE})

COMPLETE_PHASE_NAME = "Complete"
FATAL_PHASE_NAME = "Error"


class ProgressLevel(str, Enum):
    """이벤트 레벨 (클라이언트 스타일링 및 pass/fail 추론용)"""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

    @property
    def severity(self) -> int:
        """심각도 순서: info < success < warning < error"""
        return _SEVERITY[self]


_SEVERITY = {
    ProgressLevel.INFO: 0,
    ProgressLevel.SUCCESS: 1,
    ProgressLevel.WARNING: 2,
    ProgressLevel.ERROR: 3,
}


class ProgressCounter(BaseModel):
    """배치 쓰기 진행률 {"current","total"}"""
    model_config = ConfigDict(extra="forbid", frozen=True)

    current: int = Field(ge=0)
    total: int = Field(ge=0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "ProgressCounter":
        if self.current > self.total:
            raise ValueError(f"current ({self.current}) exceeds total ({self.total})")
        return self


class ProgressEvent(BaseModel):
    """
    진행 이벤트 (닫힌 스키마)

    message의 개행은 직렬화 전에 공백으로 치환됩니다 (전송 인코딩이 줄 단위).
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    phase: int = Field(..., ge=FATAL_PHASE, le=TERMINAL_PHASE, description="페이즈 번호")
    phaseName: str = Field(..., min_length=1, description="페이즈 이름 (런 내에서 phase별로 고정)")
    level: ProgressLevel = Field(..., description="info | success | warning | error")
    message: str = Field(..., description="한 줄 메시지")
    progress: ProgressCounter | None = Field(default=None, description="진행률 (선택)")

    @field_validator("message")
    @classmethod
    def collapse_newlines(cls, v: str) -> str:
        if "\n" in v or "\r" in v:
            v = " ".join(part.strip() for part in v.splitlines() if part.strip())
        return v

    @property
    def is_terminal(self) -> bool:
        """종료 이벤트 여부 (phase 99 또는 -1)"""
        return self.phase in TERMINAL_PHASES

    def to_payload(self) -> dict:
        """와이어 페이로드 (progress 미지정 시 생략)"""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def fatal(cls, message: str) -> "ProgressEvent":
        """선언된 페이즈와 무관한 치명적 종료 이벤트"""
        return cls(phase=FATAL_PHASE, phaseName=FATAL_PHASE_NAME, level=ProgressLevel.ERROR, message=message)

    @classmethod
    def complete(cls, message: str, level: ProgressLevel = ProgressLevel.SUCCESS) -> "ProgressEvent":
        """종료 요약 이벤트 (phase 99)"""
        return cls(phase=TERMINAL_PHASE, phaseName=COMPLETE_PHASE_NAME, level=level, message=message)
