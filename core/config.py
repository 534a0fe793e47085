"""
Core Configuration Module

환경변수 및 전역 설정을 관리하는 모듈.
Pydantic Settings를 사용하여 타입 안전성과 검증을 보장합니다.
"""

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    애플리케이션 전역 설정 클래스

    환경변수에서 값을 로드하며, .env 파일을 지원합니다.
    모든 설정은 타입 안전하며 자동으로 검증됩니다.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="",
    )

    # ==================== Application Configuration ====================
    app_env: str = Field(
        default="development",
        description="애플리케이션 환경 (development, staging, production)"
    )
    app_name: str = Field(
        default="Opstream-Admin",
        description="애플리케이션 이름"
    )
    app_version: str = Field(
        default="0.1.0",
        description="애플리케이션 버전"
    )
    debug: bool = Field(
        default=True,
        description="디버그 모드 활성화 여부"
    )

    # ==================== API Configuration ====================
    api_host: str = Field(
        default="0.0.0.0",
        description="API 서버 호스트"
    )
    api_port: int = Field(
        default=9000,
        gt=0,
        lt=65536,
        description="API 서버 포트"
    )
    api_reload: bool = Field(
        default=True,
        description="자동 리로드 활성화 (개발 모드용)"
    )
    allowed_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="CORS 허용 Origin (관리자 콘솔)"
    )

    # ==================== Security Configuration ====================
    # SECRET_KEY 또는 JWT_SECRET 환경 변수 지원
    secret_key: str | None = Field(
        default=None,
        min_length=32,
        description="관리자 세션 JWT 서명용 비밀 키 (최소 32바이트). SECRET_KEY 또는 JWT_SECRET 환경 변수 사용"
    )
    jwt_secret: str | None = Field(
        default=None,
        min_length=32,
        description="JWT_SECRET 환경 변수 (secret_key가 없을 때 사용)"
    )
    algorithm: str = Field(
        default="HS256",
        description="JWT 알고리즘"
    )
    access_token_expire_minutes: int = Field(
        default=30,
        gt=0,
        description="액세스 토큰 만료 시간 (분)"
    )
    require_auth: bool = Field(
        default=True,
        description="관리자 인증 필수 여부 (개발 시 false 가능)"
    )

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """
        SECRET_KEY 또는 JWT_SECRET 환경 변수 중 하나는 필수입니다.
        JWT_SECRET이 있으면 secret_key에 할당합니다.
        """
        if not self.secret_key and self.jwt_secret:
            self.secret_key = self.jwt_secret

        if not self.secret_key:
            raise ValueError(
                "SECRET_KEY or JWT_SECRET environment variable is required "
                "(minimum 32 bytes for HS256 algorithm)"
            )

        if len(self.secret_key) < 32:
            raise ValueError(
                f"SECRET_KEY must be at least 32 bytes (current: {len(self.secret_key)} bytes). "
                "For HS256 algorithm, 256-bit (32-byte) key is required."
            )

        return self

    # ==================== Logging Configuration ====================
    log_level: str = Field(
        default="INFO",
        description="로그 레벨 (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # ==================== Operations (Streaming Engine) ====================
    # 엔진 자체에는 데드라인이 없음. 스트림을 소비하는 HTTP 계층에서만 적용
    demo_operation_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="데모 시드/서브 작업 스트림 최대 시간 (초)",
    )
    test_run_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="통합/E2E 테스트 실행 스트림 최대 시간 (초)",
    )
    test_runner_executable: str = Field(
        default="npm",
        description="통합 테스트 실행 파일",
    )
    test_runner_args: list[str] = Field(
        default=["test", "--"],
        description="실행 파일에 항상 전달되는 기본 인자 (필터/스킵 인자는 그 뒤에 추가)",
    )
    test_runner_cwd: str | None = Field(
        default=None,
        description="테스트 프로세스 작업 디렉터리 (미지정 시 현재 디렉터리)",
    )
    downstream_base_url: str | None = Field(
        default=None,
        description="다운스트림 작업(Cloud Function 등) Base URL. 미지정 시 in-memory 기록만 수행",
    )
    downstream_timeout: float = Field(
        default=60.0,
        gt=0,
        description="다운스트림 작업 HTTP 요청 타임아웃 (초)",
    )
    demo_data_days: int = Field(
        default=60,
        gt=0,
        le=365,
        description="데모 시드 데이터 기간 (일)",
    )
    perf_seed_days: int = Field(
        default=7,
        gt=0,
        le=90,
        description="성능 지표 시드 기간 (일). 정리 작업도 같은 기간의 문서 ID를 사용",
    )

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """애플리케이션 환경 검증"""
        allowed_envs = {"development", "staging", "production"}
        if v.lower() not in allowed_envs:
            raise ValueError(f"app_env must be one of {allowed_envs}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """로그 레벨 검증"""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed_levels:
            raise ValueError(f"log_level must be one of {allowed_levels}")
        return v_upper


@lru_cache()
def get_settings() -> Settings:
    """
    Settings 인스턴스를 반환하는 캐시된 함수

    이 함수는 애플리케이션 전체에서 단일 Settings 인스턴스를 공유합니다.
    FastAPI의 의존성 주입에서 사용됩니다.

    Returns:
        Settings 인스턴스
    """
    return Settings()


# 전역 설정 인스턴스
settings = get_settings()
