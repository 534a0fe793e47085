"""
Phase Registry

파이프라인의 이름 있는 페이즈를 순서대로 선언하는 정적 레지스트리.
실행 전략(native / process)과 무관하며, 런 동안 불변입니다.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterator

from core.operations.errors import PhaseRegistryError
from core.operations.events import (
    FATAL_PHASE,
    TERMINAL_PHASE,
    ProgressCounter,
    ProgressEvent,
    ProgressLevel,
)
from core.operations.gate import GateDecision

# 페이즈 단위 게이트: 이전 단계가 만든 값(context)을 보고 판정
PhasePrecondition = Callable[[dict[str, Any]], GateDecision]


@dataclass(frozen=True)
class PhaseDefinition:
    """레지스트리 항목 {index, name, precondition?}"""
    index: int
    name: str
    precondition: PhasePrecondition | None = None


class PhaseRegistry:
    """순서형 페이즈 선언 (인덱스 엄격 증가, 99 / -1 예약)"""

    def __init__(self, name: str, phases: list[PhaseDefinition]) -> None:
        if not phases:
            raise PhaseRegistryError(f"Registry '{name}' declares no phases")
        previous: int | None = None
        for phase in phases:
            if phase.index in (TERMINAL_PHASE, FATAL_PHASE) or phase.index < 0:
                raise PhaseRegistryError(
                    f"Registry '{name}': phase index {phase.index} is reserved or negative"
                )
            if previous is not None and phase.index <= previous:
                raise PhaseRegistryError(
                    f"Registry '{name}': phase {phase.index} ({phase.name}) is not after {previous}"
                )
            previous = phase.index
        self.name = name
        self._phases: tuple[PhaseDefinition, ...] = tuple(phases)
        self._by_index = {p.index: p for p in self._phases}

    def __iter__(self) -> Iterator[PhaseDefinition]:
        return iter(self._phases)

    def __len__(self) -> int:
        return len(self._phases)

    def __contains__(self, index: object) -> bool:
        return index in self._by_index

    def get(self, index: int) -> PhaseDefinition:
        try:
            return self._by_index[index]
        except KeyError:
            raise PhaseRegistryError(f"Registry '{self.name}' has no phase {index}") from None

    def event(
        self,
        index: int,
        level: ProgressLevel,
        message: str,
        progress: ProgressCounter | None = None,
    ) -> ProgressEvent:
        """선언된 이름으로 이벤트 생성 (phaseName 고정 보장)"""
        return ProgressEvent(
            phase=index,
            phaseName=self.get(index).name,
            level=level,
            message=message,
            progress=progress,
        )

    def describe(self) -> list[dict[str, Any]]:
        """클라이언트 표시용 페이즈 목록"""
        return [{"index": p.index, "name": p.name} for p in self._phases]
