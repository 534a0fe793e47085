"""
Opstream-Admin Core Module

공통 핵심 로직을 제공하는 모듈:
- 전역 설정
- 보안 및 인증 (관리자 세션)
- 단계형 작업 스트리밍 엔진 (operations)
- 데모 환경 / 테스트 실행 파이프라인
"""

from core.config import settings

__all__ = ["settings"]
