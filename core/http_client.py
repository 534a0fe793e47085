"""
공통 HTTP 클라이언트

다운스트림 작업(Cloud Function 등) 호출용 비동기 POST 헬퍼.
재시도하지 않습니다. 재시도는 클라이언트가 작업 전체를 다시 실행하는 방식.
"""

import json
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


async def post_json(
    url: str,
    json_body: Any,
    *,
    headers: dict[str, str] | None = None,
    timeout: float = 10.0,
    client: httpx.AsyncClient | None = None,
) -> tuple[int, Any]:
    """
    JSON POST 요청 수행.

    Args:
        client: 주입된 클라이언트 (테스트용 MockTransport 등). 없으면 요청마다 생성

    Returns:
        (status_code, 응답 본문 - JSON이면 파싱된 값, 아니면 text)

    Raises:
        httpx.HTTPError: 연결/타임아웃 오류
    """
    if client is None:
        async with httpx.AsyncClient(timeout=timeout) as owned:
            resp = await owned.post(url, json=json_body, headers=headers or {})
    else:
        resp = await client.post(url, json=json_body, headers=headers or {}, timeout=timeout)
    try:
        body: Any = resp.json()
    except (json.JSONDecodeError, ValueError):
        body = resp.text
    logger.debug("POST %s -> %s", url, resp.status_code)
    return resp.status_code, body
