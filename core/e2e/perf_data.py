"""
Performance Test Data

성능 대시보드용 합성 지표 생성기 (6종) 와 일별 집계.

- 사용자 3명 × N일, 사용자·일자 기반 시드로 결정적 생성
- 문서 ID도 결정적이라 정리 작업은 같은 기간의 ID만 다시 계산하면 됨
- aggregate_metrics는 저장소와 무관한 순수 함수
"""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Any

PERF_USER_IDS = ["e2e-perf-user-1", "e2e-perf-user-2", "e2e-perf-user-3"]
PERF_SCREENS = ["Home", "Chat", "LifeFeed", "DiaryList", "Settings"]
PERF_COMPONENTS = ["StatsFeedCard", "DiaryFeedCard", "PhotoFeedCard", "VoiceNoteFeedCard", "LifeFeedPostCard"]
PERF_ENDPOINTS = [
    "cf:queryRAG",
    "cf:queryRAGStream",
    "cf:generateLifeFeedNow",
    "cf:generateUnifiedInsightsNow",
    "cf:generateAISummary",
]
PERF_DOC_ID_PREFIX = "e2e-perf-"

METRICS_COLLECTION = "performanceMetrics"
AGGREGATES_COLLECTION = "performanceAggregates"

DEFAULT_PERF_DAYS = 7

SCREEN_TRANSITION_BASE = {"Home": 120, "Chat": 180, "LifeFeed": 250, "DiaryList": 160, "Settings": 100}
SCREEN_SCROLL_FPS_BASE = {"Home": 57, "Chat": 56, "LifeFeed": 52, "DiaryList": 55, "Settings": 58}
COMPONENT_RENDER_BASE = {
    "StatsFeedCard": 6,
    "DiaryFeedCard": 14,
    "PhotoFeedCard": 16,
    "VoiceNoteFeedCard": 18,
    "LifeFeedPostCard": 22,
}
COMPONENT_SCREEN = {
    "StatsFeedCard": "HomeFeed",
    "DiaryFeedCard": "HomeFeed",
    "PhotoFeedCard": "HomeFeed",
    "VoiceNoteFeedCard": "HomeFeed",
    "LifeFeedPostCard": "LifeFeed",
}
ENDPOINT_LATENCY_BASE = {
    "cf:queryRAG": 800,
    "cf:queryRAGStream": 650,
    "cf:generateLifeFeedNow": 2200,
    "cf:generateUnifiedInsightsNow": 3500,
    "cf:generateAISummary": 1800,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def seeded_random(seed: int) -> float:
    """시드 기반 [0, 1) 의사 난수"""
    x = math.sin(seed * 9301 + 49297) * 49297
    return x - math.floor(x)


def _pick(values: list[str], seed: int) -> str:
    return values[math.floor(seeded_random(seed) * len(values))]


def _range(low: float, high: float, seed: int) -> float:
    return low + seeded_random(seed) * (high - low)


def _round(value: float) -> int:
    """half-up 반올림 (대시보드 수치와 동일한 규칙)"""
    return math.floor(value + 0.5)


def _round1(value: float) -> float:
    return _round(value * 10) / 10


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _platform(seed: int) -> str:
    return "ios" if seeded_random(seed) > 0.5 else "android"


def days_ago_str(days: int) -> str:
    return (datetime.now(timezone.utc).date() - timedelta(days=days)).isoformat()


def build_doc_id(user_id: str, kind: str, day_offset: int, index: int) -> str:
    return f"{PERF_DOC_ID_PREFIX}{user_id}-{kind}-d{day_offset}-{index}"


def _stamp(date_str: str, hour: int, minute: int = 0) -> str:
    return f"{date_str}T{hour:02d}:{minute:02d}:00.000Z"


def _metric(
    user_id: str,
    kind: str,
    metric_type: str,
    date_str: str,
    day_offset: int,
    index: int,
    hour: int,
    seed: int,
    value: float,
    screen: str | None = None,
    metadata: dict[str, Any] | None = None,
    session: int = 0,
) -> dict[str, Any]:
    doc = {
        "id": build_doc_id(user_id, kind, day_offset, index),
        "userId": user_id,
        "timestamp": _stamp(date_str, hour, math.floor(seeded_random(seed) * 60)),
        "metricType": metric_type,
        "value": value,
        "platform": _platform(seed + 1),
        "sessionId": f"session-{user_id}-d{day_offset}-{session}",
        "createdAt": _stamp(date_str, hour),
    }
    if screen is not None:
        doc["screenName"] = screen
    if metadata is not None:
        doc["metadata"] = metadata
    return doc


# ---------------------------------------------------------------------------
# Per-type generators
# ---------------------------------------------------------------------------

def _app_startup(user_id: str, date_str: str, day_offset: int, seed: int) -> list[dict[str, Any]]:
    count = 2 + math.floor(seeded_random(seed) * 2)
    weekend = date.fromisoformat(date_str).weekday() >= 5
    metrics = []
    for i in range(count):
        s = seed * 100 + i
        base = 1200 + (300 if i == 0 else 0) + (200 if weekend else 0)
        value = _clamp(_round(base + _range(-400, 800, s)), 800, 3000)
        metrics.append(_metric(
            user_id, "startup", "app_startup", date_str, day_offset, i,
            hour=8 + i * 4, seed=s + 1, value=value, session=i,
        ))
    return metrics


def _screen_transitions(user_id: str, date_str: str, day_offset: int, seed: int) -> list[dict[str, Any]]:
    count = 8 + math.floor(seeded_random(seed) * 5)
    metrics = []
    for i in range(count):
        s = seed * 200 + i
        screen = _pick(PERF_SCREENS, s)
        value = _round(_clamp(SCREEN_TRANSITION_BASE[screen] + _range(-40, 200, s + 1), 80, 800))
        metrics.append(_metric(
            user_id, "transition", "screen_transition", date_str, day_offset, i,
            hour=9 + i * 12 // count, seed=s + 2, value=value, screen=screen,
        ))
    return metrics


def _scroll_fps(user_id: str, date_str: str, day_offset: int, seed: int) -> list[dict[str, Any]]:
    count = 4 + math.floor(seeded_random(seed) * 3)
    metrics = []
    for i in range(count):
        s = seed * 300 + i
        screen = _pick(PERF_SCREENS, s)
        dropped = seeded_random(s + 1) < 0.1
        jitter = _range(-20, -5, s + 2) if dropped else _range(-3, 5, s + 2)
        value = _round(_clamp(SCREEN_SCROLL_FPS_BASE[screen] + jitter, 28, 60))
        frames = math.floor(_range(5, 20, s + 3) if dropped else _range(0, 3, s + 3))
        metrics.append(_metric(
            user_id, "scroll", "scroll_fps", date_str, day_offset, i,
            hour=10 + i * 8 // count, seed=s + 4, value=value, screen=screen,
            metadata={"droppedFrames": frames},
        ))
    return metrics


def _component_render(user_id: str, date_str: str, day_offset: int, seed: int) -> list[dict[str, Any]]:
    count = 4 + math.floor(seeded_random(seed) * 3)
    metrics = []
    for i in range(count):
        s = seed * 400 + i
        component = _pick(PERF_COMPONENTS, s)
        slow = seeded_random(s + 2) < 0.15
        multiplier = _range(3, 8, s + 3) if slow else _range(0.5, 2, s + 3)
        value = _round(_clamp(COMPONENT_RENDER_BASE[component] * multiplier, 3, 200))
        metrics.append(_metric(
            user_id, "render", "component_render", date_str, day_offset, i,
            hour=10 + i * 8 // count, seed=s + 4, value=value,
            screen=COMPONENT_SCREEN.get(component, "HomeFeed"),
            metadata={"componentName": component},
        ))
    return metrics


def _js_thread_fps(user_id: str, date_str: str, day_offset: int, seed: int) -> list[dict[str, Any]]:
    count = 2 + math.floor(seeded_random(seed) * 2)
    metrics = []
    for i in range(count):
        s = seed * 500 + i
        dip = seeded_random(s + 1) < 0.08
        jitter = _range(-24, -10, s + 2) if dip else _range(-4, 4, s + 2)
        value = _round(_clamp(56 + jitter, 32, 60))
        metrics.append(_metric(
            user_id, "jsthread", "js_thread_fps", date_str, day_offset, i,
            hour=11 + i * 6 // count, seed=s + 3, value=value,
        ))
    return metrics


def _api_response_time(user_id: str, date_str: str, day_offset: int, seed: int) -> list[dict[str, Any]]:
    count = 5 + math.floor(seeded_random(seed) * 4)
    metrics = []
    for i in range(count):
        s = seed * 600 + i
        endpoint = _pick(PERF_ENDPOINTS, s)
        slow = seeded_random(s + 1) < 0.1
        multiplier = _range(2, 3, s + 2) if slow else _range(0.6, 1.4, s + 2)
        value = _round(_clamp(ENDPOINT_LATENCY_BASE[endpoint] * multiplier, 80, 2500))
        failed = seeded_random(s + 3) < 0.05
        metrics.append(_metric(
            user_id, "api", "api_response_time", date_str, day_offset, i,
            hour=9 + i * 12 // count, seed=s + 4, value=value,
            metadata={"endpoint": endpoint, "method": "CALL", "status": 500 if failed else 200, "success": not failed},
        ))
    return metrics


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate_daily_metrics(user_id: str, date_str: str, day_offset: int) -> list[dict[str, Any]]:
    """사용자 1명, 하루치 지표 전체"""
    base_seed = (PERF_USER_IDS.index(user_id) + 1) * 1000 + day_offset
    return [
        *_app_startup(user_id, date_str, day_offset, base_seed + 1),
        *_screen_transitions(user_id, date_str, day_offset, base_seed + 2),
        *_scroll_fps(user_id, date_str, day_offset, base_seed + 3),
        *_component_render(user_id, date_str, day_offset, base_seed + 4),
        *_js_thread_fps(user_id, date_str, day_offset, base_seed + 5),
        *_api_response_time(user_id, date_str, day_offset, base_seed + 6),
    ]


def perf_dates(days: int = DEFAULT_PERF_DAYS) -> list[str]:
    """오래된 날짜부터 오늘까지"""
    return [days_ago_str(days - 1 - day) for day in range(days)]


def all_perf_doc_ids(days: int = DEFAULT_PERF_DAYS) -> list[str]:
    return [
        metric["id"]
        for day, date_str in enumerate(perf_dates(days))
        for user_id in PERF_USER_IDS
        for metric in generate_daily_metrics(user_id, date_str, day)
    ]


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def percentile(values: list[float], p: float) -> float:
    if not values:
        return 0
    ordered = sorted(values)
    return ordered[max(0, math.ceil(p / 100 * len(ordered)) - 1)]


def _avg(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0


def _latency(values: list[float]) -> dict[str, Any]:
    return {
        "count": len(values),
        "avgMs": _round(_avg(values)),
        "p50Ms": _round(percentile(values, 50)),
        "p95Ms": _round(percentile(values, 95)),
    }


def aggregate_metrics(metrics: list[dict[str, Any]], date_str: str) -> dict[str, Any]:
    """
    하루치 원시 지표 → 일별 집계 문서.

    startup / jsThreadFps는 해당 지표가 있을 때만 포함됩니다.
    slowRenders는 평균 렌더 시간 내림차순 상위 20개.
    """
    by_type: dict[str, list[dict[str, Any]]] = {}
    for metric in metrics:
        by_type.setdefault(metric["metricType"], []).append(metric)

    aggregate: dict[str, Any] = {"date": date_str, "computedAt": datetime.now(timezone.utc).isoformat()}

    startup = [m["value"] for m in by_type.get("app_startup", [])]
    if startup:
        aggregate["startup"] = _latency(startup)

    transitions: dict[str, list[float]] = {}
    for m in by_type.get("screen_transition", []):
        transitions.setdefault(m.get("screenName") or "unknown", []).append(m["value"])
    aggregate["screenTransitions"] = {screen: _latency(values) for screen, values in transitions.items()}

    scroll: dict[str, tuple[list[float], list[float]]] = {}
    for m in by_type.get("scroll_fps", []):
        fps, dropped = scroll.setdefault(m.get("screenName") or "unknown", ([], []))
        fps.append(m["value"])
        dropped.append((m.get("metadata") or {}).get("droppedFrames", 0))
    aggregate["scrollFps"] = {
        screen: {
            "count": len(fps),
            "avgFps": _round1(_avg(fps)),
            "minFps": min(fps),
            "avgDroppedFrames": _round1(_avg(dropped)),
        }
        for screen, (fps, dropped) in scroll.items()
    }

    js_fps = [m["value"] for m in by_type.get("js_thread_fps", [])]
    if js_fps:
        aggregate["jsThreadFps"] = {
            "count": len(js_fps),
            "avgFps": _round1(_avg(js_fps)),
            "minFps": min(js_fps),
            "below30Count": sum(1 for v in js_fps if v < 30),
            "below45Count": sum(1 for v in js_fps if v < 45),
        }

    endpoints: dict[str, tuple[list[float], list[bool]]] = {}
    for m in by_type.get("api_response_time", []):
        metadata = m.get("metadata") or {}
        values, errors = endpoints.setdefault(metadata.get("endpoint") or "unknown", ([], []))
        values.append(m["value"])
        errors.append(metadata.get("success") is False)
    aggregate["apiLatency"] = {
        endpoint: {**_latency(values), "errorCount": sum(errors)}
        for endpoint, (values, errors) in endpoints.items()
    }

    renders: dict[str, tuple[str, list[float]]] = {}
    for m in by_type.get("component_render", []):
        component = (m.get("metadata") or {}).get("componentName") or "unknown"
        renders.setdefault(component, (m.get("screenName") or "unknown", []))[1].append(m["value"])
    slow = [
        {
            "componentName": component,
            "screenName": screen,
            "count": len(values),
            "avgDurationMs": _round(_avg(values)),
            "maxDurationMs": max(values),
        }
        for component, (screen, values) in renders.items()
    ]
    slow.sort(key=lambda r: r["avgDurationMs"], reverse=True)
    aggregate["slowRenders"] = slow[:20]

    aggregate["totalMetrics"] = len(metrics)
    aggregate["uniqueUsers"] = len({m["userId"] for m in metrics})
    return aggregate
