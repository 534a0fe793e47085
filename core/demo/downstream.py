"""
HTTP Downstream Job Trigger

다운스트림 생성 작업(life feed, keywords, insights, memories, embeddings)을
HTTP POST로 트리거합니다. 응답 대기는 요청 1회까지만 (폴링/재시도 없음).
"""

import logging
from typing import Any

import httpx

from core.demo.collaborators import DownstreamJobError, JobKind
from core.http_client import post_json

logger = logging.getLogger(__name__)

# JobKind → 함수 경로
JOB_ENDPOINTS: dict[JobKind, str] = {
    JobKind.EMBEDDINGS: "generateEmbeddings",
    JobKind.LIFE_FEED: "generateLifeFeedNow",
    JobKind.KEYWORDS: "generateKeywordsNow",
    JobKind.INSIGHTS: "generateUnifiedInsightsNow",
    JobKind.MEMORIES: "generateThisDayMemories",
}


class HttpDownstreamJobTrigger:
    """base_url/{endpoint} 로 {"data": {"userId": uid}} POST"""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = client

    async def trigger_downstream_job(self, kind: JobKind, uid: str) -> dict[str, Any]:
        kind = JobKind(kind)
        url = f"{self.base_url}/{JOB_ENDPOINTS[kind]}"
        try:
            status_code, body = await post_json(
                url,
                {"data": {"userId": uid}},
                timeout=self.timeout,
                client=self.client,
            )
        except httpx.HTTPError as e:
            raise DownstreamJobError(f"Failed to call {JOB_ENDPOINTS[kind]}: {e}") from e

        if not 200 <= status_code < 300:
            detail = body.get("error", body) if isinstance(body, dict) else body
            raise DownstreamJobError(f"{JOB_ENDPOINTS[kind]} returned {status_code}: {detail}")

        # callable 함수 응답은 {"result": {...}} 형태
        if isinstance(body, dict):
            result = body.get("result", body)
            return result if isinstance(result, dict) else {"result": result}
        logger.warning("%s returned non-JSON body", JOB_ENDPOINTS[kind])
        return {"message": str(body)[:200]}
