"""
Operation Errors

스트리밍 작업 엔진 공통 예외.
"""


class OperationError(Exception):
    """작업 엔진 예외 기본 클래스"""


class PhaseRegistryError(OperationError):
    """페이즈 레지스트리 정의 오류 (중복/역순/예약 인덱스)"""


class MissingDependencyError(OperationError):
    """이전 단계가 만들어야 할 식별자가 없음"""

    def __init__(self, key: str) -> None:
        super().__init__(f"Required value '{key}' was not produced by an earlier phase")
        self.key = key


class TransportClosedError(OperationError):
    """클라이언트 연결 종료 또는 이미 닫힌 전송 채널에 쓰기 시도"""
