"""
AI 评审请求编排 - 额度闸门 → 日志保障 → 首次拉取 → 轮询

状态流转:
    IDLE → VALIDATING_INPUT → CREATING_LOG → REQUESTING → POLLING → READY / FAILED
"""
from typing import Callable, Optional

from review_orchestrator.core import get_logger
from review_orchestrator.core.exceptions import (
    InputValidationError,
    LogCreationError,
    ReviewInProgressError,
)
from review_orchestrator.models import ErrorCategory, ReviewError, ReviewRequest, ReviewStatus
from review_orchestrator.services.error_classifier import fallback_message
from review_orchestrator.services.feedback_ledger import FeedbackLedger
from review_orchestrator.services.log_ensurer import LogEnsurer
from review_orchestrator.services.polling_engine import PollingEngine
from review_orchestrator.services.quota_gate import UsageQuotaGate

logger = get_logger(__name__)


class ReviewRequestCoordinator:
    """
    评审请求编排器

    一个编排器对应一个调用方上下文（例如一张评审卡片），
    current 是该上下文最近一次的请求。
    """

    def __init__(
        self,
        quota_gate: Optional[UsageQuotaGate] = None,
        log_ensurer: Optional[LogEnsurer] = None,
        polling_engine: Optional[PollingEngine] = None,
        feedback_ledger: Optional[FeedbackLedger] = None,
        on_change: Optional[Callable[[ReviewRequest], None]] = None,
    ):
        self.quota_gate = quota_gate or UsageQuotaGate()
        self.log_ensurer = log_ensurer or LogEnsurer()
        self.polling_engine = polling_engine or PollingEngine()
        self.feedback_ledger = feedback_ledger
        self.on_change = on_change
        self.current: Optional[ReviewRequest] = None

    def _notify(self, request: ReviewRequest) -> None:
        if self.on_change is not None:
            self.on_change(request)

    def _advance(self, request: ReviewRequest, status: ReviewStatus) -> None:
        request.transition(status)
        logger.debug(f"评审状态: log_id={request.log_id}, status={status.value}")
        self._notify(request)

    def _fail(self, request: ReviewRequest, error: ReviewError) -> ReviewRequest:
        request.mark_failed(error)
        logger.warning(
            f"评审请求失败: log_id={request.log_id}, category={error.category.value}, "
            f"message={error.message}"
        )
        self._notify(request)
        return request

    def _stop(self, request: ReviewRequest) -> None:
        request.cancel()
        self.polling_engine.cancel(request.log_id)

    def _guard_reentry(self, log_id: Optional[str]) -> None:
        """
        同一上下文中未结束的请求不允许重复发起；
        传入不同的 log_id 时视为新请求取代旧请求
        """
        current = self.current
        if current is None or current.is_terminal or current.is_cancelled:
            return
        if log_id and current.log_id and log_id != current.log_id:
            logger.info(f"新请求取代旧请求: {current.log_id} -> {log_id}")
            self._stop(current)
            return
        raise ReviewInProgressError(current.log_id or log_id)

    async def request_review(
        self,
        log_id: Optional[str] = None,
        code: Optional[str] = None,
        problem_id: Optional[str] = None,
        problem_title: Optional[str] = None,
        is_success: Optional[bool] = None,
    ) -> ReviewRequest:
        """
        发起 AI 评审

        有 log_id 时直接拉取评审，否则先用 code 创建日志。
        所有失败都体现在返回请求的 FAILED 状态上，不会抛出；
        只有重复发起时抛出 ReviewInProgressError。

        Args:
            log_id: 已有日志ID
            code: 代码（没有 log_id 时必填，去除空白后至少 10 个字符）
            problem_id: 题号，用于日志标题
            problem_title: 题名，用于日志标题
            is_success: 是否解题成功

        Returns:
            终止状态的请求；被取消时为取消前的状态
        """
        self._guard_reentry(log_id)

        request = ReviewRequest(log_id=log_id or None)
        self.current = request
        self._advance(request, ReviewStatus.VALIDATING_INPUT)

        # 额度闸门：拦截时不发起任何评审相关请求
        await self.quota_gate.ensure_snapshot()
        if request.is_cancelled:
            return request
        decision = self.quota_gate.check()
        if not decision.allowed:
            logger.info(f"额度闸门拦截: reason={decision.reason.value}")
            self._fail(request, self.quota_gate.blocked_error(decision))
            # 拦截也是终止状态，同样刷新快照
            await self._finish(request)
            return request

        if request.log_id is None:
            try:
                self.log_ensurer.validate_code(code)
            except InputValidationError:
                category = ErrorCategory.VALIDATION
                self._fail(request, ReviewError(category=category, message=fallback_message(category)))
                await self._finish(request)
                return request

            self._advance(request, ReviewStatus.CREATING_LOG)
            try:
                resolved = await self.log_ensurer.ensure_log(
                    None,
                    code,
                    problem_id=problem_id,
                    problem_title=problem_title,
                    is_success=is_success,
                )
            except LogCreationError as e:
                if request.is_cancelled:
                    return request
                self._fail(request, ReviewError(
                    category=ErrorCategory.LOG_CREATION,
                    message=e.message or fallback_message(ErrorCategory.LOG_CREATION),
                ))
                await self._finish(request)
                return request

            if request.is_cancelled:
                return request
            request.attach_log(resolved)

        self._advance(request, ReviewStatus.REQUESTING)
        await self.polling_engine.poll(request, on_change=self._notify)

        if request.is_terminal:
            await self._finish(request)
        return request

    async def _finish(self, request: ReviewRequest) -> None:
        """
        终止状态的收尾：登记反馈资格、刷新额度

        READY 和 FAILED 都会刷新，被取消的请求不走到这里
        """
        if request.status == ReviewStatus.READY and self.feedback_ledger is not None:
            self.feedback_ledger.register_review(request)
        await self.quota_gate.refresh()

    def cancel(self) -> bool:
        """取消当前请求，请求保持现有状态"""
        current = self.current
        if current is None or current.is_terminal or current.is_cancelled:
            return False
        self._stop(current)
        return True

    def close(self) -> None:
        """调用方销毁时调用"""
        self.cancel()
