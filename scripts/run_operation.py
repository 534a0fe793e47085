#!/usr/bin/env python3
"""
관리 작업 콘솔 실행 스크립트

HTTP 서버 없이 같은 파이프라인을 in-process로 실행하고 진행 이벤트를 출력합니다.
in-memory 백엔드를 사용하므로 한 번의 실행 안에서만 상태가 유지됩니다.

사용 예:
    python scripts/run_operation.py seed --reset --skip-photos
    python scripts/run_operation.py seed seed-friend cleanup
    python scripts/run_operation.py tests --filter auth --skip-e2e
    python scripts/run_operation.py e2e-seed perf-seed perf-cleanup e2e-cleanup
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.config import get_settings
from core.demo.collaborators import JobKind
from core.demo.memory_backend import InMemoryDemoBackend
from core.demo.pipelines import (
    build_cleanup_operation,
    build_demo_seed_operation,
    build_friend_seed_operation,
    build_job_operation,
)
from core.e2e.memory_store import InMemoryE2EBackend
from core.e2e.pipelines import (
    build_e2e_cleanup_operation,
    build_e2e_seed_operation,
    build_perf_cleanup_operation,
    build_perf_seed_operation,
)
from core.e2e.suite_runner import SuiteRunOptions, build_suite_run_operation
from core.operations.events import ProgressEvent
from core.operations.publisher import QueueTransport, StreamPublisher

LEVEL_ICONS = {"info": "·", "success": "✅", "warning": "⚠️", "error": "❌"}

JOB_COMMANDS = {
    "life-feed": JobKind.LIFE_FEED,
    "keywords": JobKind.KEYWORDS,
    "insights": JobKind.INSIGHTS,
    "memories": JobKind.MEMORIES,
}

TEST_DATA_COMMANDS = {
    "e2e-seed": lambda data, days: build_e2e_seed_operation(data),
    "e2e-cleanup": lambda data, days: build_e2e_cleanup_operation(data),
    "perf-seed": lambda data, days: build_perf_seed_operation(data, days=days),
    "perf-cleanup": lambda data, days: build_perf_cleanup_operation(data, days=days),
}


def build_operation(
    command: str,
    args: argparse.Namespace,
    backend: InMemoryDemoBackend,
    test_data: InMemoryE2EBackend,
):
    collab = backend.collaborators()
    if command in TEST_DATA_COMMANDS:
        return TEST_DATA_COMMANDS[command](test_data.collaborators(), args.perf_days)
    if command == "seed":
        return build_demo_seed_operation(
            collab,
            reset=args.reset,
            skip_photos=args.skip_photos,
            skip_life_feed=args.skip_life_feed,
            skip_friend=args.skip_friend,
        )
    if command == "seed-friend":
        return build_friend_seed_operation(collab)
    if command == "cleanup":
        return build_cleanup_operation(collab)
    if command in JOB_COMMANDS:
        return build_job_operation(collab, JOB_COMMANDS[command])
    options = SuiteRunOptions(filter=args.filter, skipE2E=args.skip_e2e, e2eOnly=args.e2e_only)
    return build_suite_run_operation(options, get_settings())


def print_event(event: ProgressEvent) -> None:
    icon = LEVEL_ICONS.get(event.level.value, " ")
    line = f"[{event.phase:>3}] {event.phaseName:<20} {icon} {event.message}"
    if event.progress:
        line += f" ({event.progress.current}/{event.progress.total})"
    print(line)


async def run_one(
    command: str,
    args: argparse.Namespace,
    backend: InMemoryDemoBackend,
    test_data: InMemoryE2EBackend,
) -> ProgressEvent | None:
    transport = QueueTransport()
    publisher = StreamPublisher(transport, name=command)
    task = asyncio.create_task(publisher.run(build_operation(command, args, backend, test_data)))

    print("=" * 80)
    print(f"▶ {command}")
    print("=" * 80)
    async for frame in transport.frames():
        payload = json.loads(frame[len("data: "):])
        if args.json:
            print(json.dumps(payload, ensure_ascii=False))
        else:
            print_event(ProgressEvent.model_validate(payload))
    await task
    return publisher.terminal_event


async def main(args: argparse.Namespace) -> int:
    backend = InMemoryDemoBackend(days=args.days)
    test_data = InMemoryE2EBackend()
    exit_code = 0
    for command in args.commands:
        terminal = await run_one(command, args, backend, test_data)
        if terminal is None or terminal.level.value == "error":
            exit_code = 1
    return exit_code


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run admin operations and print progress events")
    parser.add_argument(
        "commands",
        nargs="+",
        choices=["seed", "seed-friend", "cleanup", "tests", *JOB_COMMANDS, *TEST_DATA_COMMANDS],
        help="작업 (여러 개면 같은 in-memory 백엔드에서 순서대로 실행)",
    )
    parser.add_argument("--reset", action="store_true", help="seed: 기존 계정 삭제 후 재생성")
    parser.add_argument("--skip-photos", action="store_true")
    parser.add_argument("--skip-life-feed", action="store_true")
    parser.add_argument("--skip-friend", action="store_true")
    parser.add_argument("--days", type=int, default=get_settings().demo_data_days, help="생성할 데이터 일수")
    parser.add_argument(
        "--perf-days", type=int, default=get_settings().perf_seed_days, help="perf-seed/perf-cleanup: 지표 일수"
    )
    parser.add_argument("--filter", default=None, help="tests: 테스트 이름 필터")
    parser.add_argument("--skip-e2e", action="store_true")
    parser.add_argument("--e2e-only", action="store_true")
    parser.add_argument("--json", action="store_true", help="이벤트를 JSON 그대로 출력")
    return parser.parse_args(argv)


if __name__ == "__main__":
    sys.exit(asyncio.run(main(parse_args())))
