"""
评审请求状态机测试
"""
import pytest
from pydantic import ValidationError

from review_orchestrator.core.exceptions import InvalidTransitionError
from review_orchestrator.models import (
    ErrorCategory,
    ReviewError,
    ReviewRequest,
    ReviewStatus,
)


def generic_error() -> ReviewError:
    return ReviewError(category=ErrorCategory.GENERIC, message="boom")


class TestTransitions:
    """状态迁移表"""

    def test_happy_path(self):
        request = ReviewRequest()
        for status in (
            ReviewStatus.VALIDATING_INPUT,
            ReviewStatus.CREATING_LOG,
            ReviewStatus.REQUESTING,
            ReviewStatus.POLLING,
        ):
            request.transition(status)
        request.mark_ready("Nice.", cached=False)

        assert request.status == ReviewStatus.READY
        assert request.is_terminal
        assert request.review_text == "Nice."
        assert request.error is None

    def test_skip_to_polling_rejected(self):
        request = ReviewRequest()
        request.transition(ReviewStatus.VALIDATING_INPUT)

        with pytest.raises(InvalidTransitionError):
            request.transition(ReviewStatus.POLLING)
        assert request.status == ReviewStatus.VALIDATING_INPUT

    def test_terminal_status_only_via_mark(self):
        request = ReviewRequest()
        request.transition(ReviewStatus.VALIDATING_INPUT)

        with pytest.raises(InvalidTransitionError):
            request.transition(ReviewStatus.FAILED)

    def test_idle_cannot_fail(self):
        with pytest.raises(InvalidTransitionError):
            ReviewRequest().mark_failed(generic_error())

    def test_terminal_is_final(self):
        request = ReviewRequest()
        request.transition(ReviewStatus.VALIDATING_INPUT)
        request.mark_failed(generic_error())

        with pytest.raises(InvalidTransitionError):
            request.mark_ready("late", cached=False)
        with pytest.raises(InvalidTransitionError):
            request.record_attempt()
        assert request.review_text is None
        assert request.status == ReviewStatus.FAILED


class TestInvariants:
    """review_text / error 与状态的对应关系"""

    def test_review_text_requires_ready(self):
        with pytest.raises(ValidationError):
            ReviewRequest(status=ReviewStatus.POLLING, review_text="text")

    def test_ready_requires_review_text(self):
        with pytest.raises(ValidationError):
            ReviewRequest(status=ReviewStatus.READY)

    def test_failed_requires_error(self):
        with pytest.raises(ValidationError):
            ReviewRequest(status=ReviewStatus.FAILED)

    def test_error_message_not_empty(self):
        with pytest.raises(ValidationError):
            ReviewError(category=ErrorCategory.GENERIC, message="")


class TestLogBinding:
    """日志ID绑定"""

    def test_attach_once(self):
        request = ReviewRequest()
        request.attach_log("L1")
        request.attach_log("L1")
        assert request.log_id == "L1"

    def test_rebind_rejected(self):
        request = ReviewRequest(log_id="L1")
        with pytest.raises(InvalidTransitionError):
            request.attach_log("L2")


class TestCancel:
    """取消标记"""

    def test_cancel_in_flight(self):
        request = ReviewRequest()
        request.transition(ReviewStatus.VALIDATING_INPUT)
        request.cancel()
        assert request.is_cancelled
        assert request.status == ReviewStatus.VALIDATING_INPUT

    def test_cancel_terminal_is_noop(self):
        request = ReviewRequest()
        request.transition(ReviewStatus.VALIDATING_INPUT)
        request.mark_failed(generic_error())
        request.cancel()
        assert not request.is_cancelled
