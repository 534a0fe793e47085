"""
작업 스트림 요청 스키마

모든 본문은 선택이며, 본문 없음 = 기본값입니다.
알 수 없는 필드는 거부합니다 (extra="forbid").
"""

from pydantic import BaseModel, ConfigDict, Field

from core.e2e.suite_runner import SuiteRunOptions

__all__ = ["DemoSeedRequest", "SuiteRunOptions"]


class DemoSeedRequest(BaseModel):
    """POST /admin/demo/seed 본문"""
    model_config = ConfigDict(extra="forbid")

    reset: bool = Field(default=False, description="기존 데모 계정/데이터 삭제 후 재생성")
    skipPhotos: bool = Field(default=False, description="사진 메모리 생략")
    skipLifeFeed: bool = Field(default=False, description="라이프 피드 생성 생략")
    skipFriend: bool = Field(default=False, description="친구 계정/소셜 데이터 생략")
