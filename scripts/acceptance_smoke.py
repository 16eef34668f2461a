"""
Acceptance smoke checks for the review orchestrator against a live backend.

Usage:
  API_BASE_URL=http://localhost:8080 API_TOKEN=... PYTHONPATH=src python scripts/acceptance_smoke.py --log-id <id>
  API_BASE_URL=http://localhost:8080 API_TOKEN=... PYTHONPATH=src python scripts/acceptance_smoke.py --code-file solution.py
  add --with-feedback to submit a LIKE once the review is ready
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable


@dataclass
class CheckResult:
    name: str
    passed: bool
    detail: str


def _ok(name: str, detail: str) -> CheckResult:
    return CheckResult(name=name, passed=True, detail=detail)


def _fail(name: str, detail: str) -> CheckResult:
    return CheckResult(name=name, passed=False, detail=detail)


async def run_check(name: str, fn: Callable[[], Awaitable[CheckResult]]) -> CheckResult:
    try:
        return await fn()
    except Exception as exc:  # pragma: no cover - smoke tool
        return _fail(name, f"exception: {exc}")


async def run(args: argparse.Namespace) -> int:
    from review_orchestrator.api import LogApi, get_api_client
    from review_orchestrator.core import get_settings, setup_logging
    from review_orchestrator.models import FeedbackStatus, ReviewStatus
    from review_orchestrator.services import (
        FeedbackLedger,
        LogEnsurer,
        PollingEngine,
        ReviewRequestCoordinator,
        UsageQuotaGate,
    )

    settings = get_settings()
    setup_logging(settings.log_level)

    client = get_api_client()
    log_api = LogApi(client)
    gate = UsageQuotaGate(log_api)
    ledger = FeedbackLedger(log_api)
    coordinator = ReviewRequestCoordinator(
        quota_gate=gate,
        log_ensurer=LogEnsurer(log_api),
        polling_engine=PollingEngine(log_api),
        feedback_ledger=ledger,
    )

    code = Path(args.code_file).read_text(encoding="utf-8") if args.code_file else None
    results: list[CheckResult] = []

    async def check_usage() -> CheckResult:
        quota = await gate.refresh()
        if quota is None:
            return _fail("GET /logs/ai-usage/me", "quota unavailable")
        return _ok(
            "GET /logs/ai-usage/me",
            f"usage={quota.usage}/{quota.limit}, service_enabled={quota.service_enabled}",
        )

    async def check_review() -> CheckResult:
        request = await coordinator.request_review(log_id=args.log_id, code=code)
        if request.status != ReviewStatus.READY:
            error = request.error
            return _fail(
                "AI review",
                f"status={request.status.value}, category={error.category.value if error else None}, "
                f"message={error.message if error else None}",
            )
        return _ok(
            "AI review",
            f"log_id={request.log_id}, cached={request.cached}, attempts={request.attempt_count}, "
            f"review={request.review_text[:80]}",
        )

    async def check_feedback() -> CheckResult:
        current = coordinator.current
        if current is None or current.status != ReviewStatus.READY:
            return _fail("POST /logs/{id}/feedback", "review not ready")
        record = await ledger.submit_feedback(current.log_id, FeedbackStatus.LIKE)
        again = await ledger.submit_feedback(current.log_id, FeedbackStatus.DISLIKE, "GENERIC")
        if again is not record:
            return _fail("POST /logs/{id}/feedback", "second submission was not idempotent")
        return _ok("POST /logs/{id}/feedback", f"status={record.status.value}, message={record.message}")

    try:
        results.append(await run_check("GET /logs/ai-usage/me", check_usage))
        results.append(await run_check("AI review", check_review))
        if args.with_feedback:
            results.append(await run_check("POST /logs/{id}/feedback", check_feedback))
    finally:
        coordinator.close()
        await client.aclose()

    passed = sum(1 for item in results if item.passed)
    failed = len(results) - passed

    print("\nAcceptance Smoke Report")
    print("=" * 24)
    for item in results:
        status = "PASS" if item.passed else "FAIL"
        print(f"[{status}] {item.name}: {item.detail}")

    print("-" * 24)
    print(f"passed={passed}, failed={failed}, total={len(results)}")
    return 0 if failed == 0 else 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Run acceptance smoke checks.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--log-id", help="Review an existing log.")
    source.add_argument("--code-file", help="Create a log from this file, then review it.")
    parser.add_argument(
        "--with-feedback",
        action="store_true",
        help="Submit a LIKE for the finished review (only once per log).",
    )
    args = parser.parse_args()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
