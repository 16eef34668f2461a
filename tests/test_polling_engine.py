"""
轮询引擎测试
"""
import asyncio
from unittest.mock import AsyncMock, call, patch

import pytest

from conftest import pending_response, review_response
from review_orchestrator.core.exceptions import ApiError
from review_orchestrator.models import ErrorCategory, ReviewRequest, ReviewStatus
from review_orchestrator.services.polling_engine import PollingEngine, is_pending


def requesting(log_id: str) -> ReviewRequest:
    """构造处于 REQUESTING 状态的请求"""
    request = ReviewRequest(log_id=log_id)
    request.transition(ReviewStatus.VALIDATING_INPUT)
    request.transition(ReviewStatus.REQUESTING)
    return request


class TestIsPending:
    """“生成中”判定测试"""

    def test_sentinel_not_cached_is_pending(self):
        assert is_pending(pending_response())

    def test_sentinel_from_cache_is_terminal(self):
        response = pending_response()
        response.cached = True
        assert not is_pending(response)

    def test_real_review_is_terminal(self):
        assert not is_pending(review_response("Consider using a deque."))


class TestPoll:
    """poll 循环测试"""

    @pytest.mark.asyncio
    async def test_first_response_final_needs_no_polling(self, log_api):
        engine = PollingEngine(log_api, interval=0.0, max_attempts=20)

        request = await engine.poll(requesting("L1"))

        assert request.status == ReviewStatus.READY
        assert request.attempt_count == 0
        assert log_api.get_ai_review.await_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("k", [1, 5, 19])
    async def test_pending_then_final_spaced_by_interval(self, log_api, k):
        """前 k 次生成中、第 k+1 次完成：共 k+1 次拉取，间隔均为轮询间隔"""
        log_api.get_ai_review.side_effect = [pending_response()] * k + [review_response("done")]
        engine = PollingEngine(log_api, interval=3.0, max_attempts=20)

        with patch("review_orchestrator.services.polling_engine.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            request = await engine.poll(requesting("L2"))

        assert request.status == ReviewStatus.READY
        assert request.review_text == "done"
        assert request.cached is False
        assert log_api.get_ai_review.await_count == k + 1
        assert mock_sleep.await_args_list == [call(3.0)] * k
        assert request.attempt_count == k + 1

    @pytest.mark.asyncio
    async def test_ceiling_reached_after_exactly_max_attempts(self, log_api):
        log_api.get_ai_review.side_effect = [pending_response()] * 25
        engine = PollingEngine(log_api, interval=0.0, max_attempts=20)

        request = await engine.poll(requesting("L3"))

        assert request.status == ReviewStatus.FAILED
        assert request.error.category == ErrorCategory.TIMEOUT
        assert request.error.message
        assert request.attempt_count == 20
        assert log_api.get_ai_review.await_count == 20

    @pytest.mark.asyncio
    async def test_error_during_polling_is_terminal(self, log_api):
        log_api.get_ai_review.side_effect = [
            pending_response(),
            ApiError(message="오늘 사용량 초과", code="AI_USER_LIMIT_EXCEEDED", status_code=429),
            review_response(),
        ]
        engine = PollingEngine(log_api, interval=0.0, max_attempts=20)

        request = await engine.poll(requesting("L4"))

        assert request.status == ReviewStatus.FAILED
        assert request.error.category == ErrorCategory.QUOTA_EXCEEDED
        assert request.error.message == "오늘 사용량 초과"
        assert request.review_text is None
        assert log_api.get_ai_review.await_count == 2

    @pytest.mark.asyncio
    async def test_on_change_called_per_fetch(self, log_api):
        log_api.get_ai_review.side_effect = [pending_response(), pending_response(), review_response()]
        engine = PollingEngine(log_api, interval=0.0, max_attempts=20)
        seen = []

        await engine.poll(requesting("L5"), on_change=lambda r: seen.append((r.status, r.attempt_count)))

        assert seen == [
            (ReviewStatus.POLLING, 1),
            (ReviewStatus.POLLING, 2),
            (ReviewStatus.READY, 3),
        ]

    @pytest.mark.asyncio
    async def test_handle_released_after_terminal(self, log_api):
        engine = PollingEngine(log_api, interval=0.0, max_attempts=20)

        await engine.poll(requesting("L6"))

        assert not engine.is_active("L6")
        assert engine.active_log_ids == []


class TestCancel:
    """取消测试"""

    @pytest.mark.asyncio
    async def test_cancel_stops_further_fetches(self, log_api):
        calls = []

        async def fetch(log_id):
            calls.append(log_id)
            return pending_response()

        log_api.get_ai_review.side_effect = fetch
        engine = PollingEngine(log_api, interval=0.01, max_attempts=20)

        task = asyncio.create_task(engine.poll(requesting("L7")))
        await asyncio.sleep(0.035)
        assert engine.cancel("L7") is True

        request = await task
        attempts = request.attempt_count
        fetched = len(calls)
        await asyncio.sleep(0.05)

        assert request.status == ReviewStatus.POLLING
        assert request.is_cancelled
        assert request.attempt_count == attempts
        assert len(calls) == fetched
        assert not engine.is_active("L7")

    @pytest.mark.asyncio
    async def test_cancel_unknown_log_returns_false(self, log_api):
        engine = PollingEngine(log_api, interval=0.0, max_attempts=20)
        assert engine.cancel("missing") is False
        assert engine.cancel(None) is False

    @pytest.mark.asyncio
    async def test_new_loop_for_same_log_cancels_old_one(self, log_api):
        release = asyncio.Event()

        async def fetch(log_id):
            await release.wait()
            return review_response()

        log_api.get_ai_review.side_effect = fetch
        engine = PollingEngine(log_api, interval=0.0, max_attempts=20)
        first_request = requesting("L8")
        second_request = requesting("L8")

        first = asyncio.create_task(engine.poll(first_request))
        await asyncio.sleep(0.01)
        second = asyncio.create_task(engine.poll(second_request))
        await asyncio.sleep(0.01)
        release.set()

        assert await first is first_request
        assert await second is second_request
        assert first_request.status == ReviewStatus.REQUESTING
        assert first_request.is_cancelled
        assert second_request.status == ReviewStatus.READY
        assert not engine.is_active("L8")

    @pytest.mark.asyncio
    async def test_cancel_all(self, log_api):
        release = asyncio.Event()

        async def fetch(log_id):
            await release.wait()
            return review_response()

        log_api.get_ai_review.side_effect = fetch
        engine = PollingEngine(log_api, interval=0.0, max_attempts=20)
        requests = [requesting("A"), requesting("B")]

        tasks = [asyncio.create_task(engine.poll(r)) for r in requests]
        await asyncio.sleep(0.01)
        assert sorted(engine.active_log_ids) == ["A", "B"]

        engine.cancel_all()
        await asyncio.gather(*tasks)

        assert all(r.status == ReviewStatus.REQUESTING for r in requests)
        assert engine.active_log_ids == []

    @pytest.mark.asyncio
    async def test_caller_cancellation_propagates(self, log_api):
        release = asyncio.Event()

        async def fetch(log_id):
            await release.wait()
            return review_response()

        log_api.get_ai_review.side_effect = fetch
        engine = PollingEngine(log_api, interval=0.0, max_attempts=20)
        request = requesting("L9")

        task = asyncio.create_task(engine.poll(request))
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert request.is_cancelled
        assert not engine.is_active("L9")
