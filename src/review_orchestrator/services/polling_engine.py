"""
AI 评审轮询引擎 - 固定间隔、有上限的重复拉取

后端生成评审是异步的：未生成完时返回一段固定的“生成中”文本，
需要隔一段时间再拉取。两次拉取之间的等待从上一次响应返回后才开始，
所以同一请求的拉取不会重叠。
"""
import asyncio
from dataclasses import dataclass
from typing import Callable, Optional

from review_orchestrator.core import get_settings, get_logger
from review_orchestrator.core.exceptions import PollingTimeoutError
from review_orchestrator.models import ReviewRequest, ReviewStatus
from review_orchestrator.services.error_classifier import classify_exception

logger = get_logger(__name__)

# 后端返回的完整文本为 "AI review is being generated. Please retry shortly."
PENDING_MARKER = "AI review is being generated"

ChangeCallback = Callable[[ReviewRequest], None]


def is_pending(response) -> bool:
    """非缓存且带“生成中”标记的响应视为仍在生成"""
    return not response.cached and PENDING_MARKER in response.review


@dataclass
class PollHandle:
    """一个轮询循环的句柄"""

    request: ReviewRequest
    task: Optional[asyncio.Task] = None

    def cancel(self) -> None:
        self.request.cancel()
        if self.task is not None and not self.task.done():
            self.task.cancel()


class PollingEngine:
    """
    轮询引擎

    每个 log_id 同时最多只有一个轮询循环；为同一 log_id 启动新循环时，
    旧循环先被取消。
    """

    def __init__(
        self,
        review_api=None,
        interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
    ):
        settings = get_settings()
        if review_api is None:
            from review_orchestrator.api.logs import get_log_api
            review_api = get_log_api()
        self.review_api = review_api
        self.interval = settings.poll_interval_seconds if interval is None else interval
        self.max_attempts = max_attempts or settings.max_poll_attempts
        self._handles: dict[str, PollHandle] = {}

    def is_active(self, log_id: str) -> bool:
        return log_id in self._handles

    @property
    def active_log_ids(self) -> list[str]:
        return list(self._handles)

    def handle_response(self, request: ReviewRequest, response) -> bool:
        """
        处理一次评审响应

        进入轮询阶段后的每次拉取（包括触发轮询的那次）都计入 attempt_count。

        Returns:
            True 表示仍在生成，需要继续轮询
        """
        pending = is_pending(response)
        if pending or request.status == ReviewStatus.POLLING:
            request.record_attempt()

        if not pending:
            request.mark_ready(response.review, response.cached)
            logger.info(
                f"AI 评审完成: log_id={request.log_id}, cached={response.cached}, "
                f"attempts={request.attempt_count}"
            )
            return False

        if request.attempt_count >= self.max_attempts:
            self.handle_error(request, PollingTimeoutError(request.log_id, request.attempt_count))
            return False

        logger.debug(f"AI 评审生成中: log_id={request.log_id}, attempts={request.attempt_count}")
        return True

    def handle_error(self, request: ReviewRequest, exc: Exception) -> None:
        """拉取失败：分类后进入 FAILED"""
        error = classify_exception(exc)
        request.mark_failed(error)
        logger.warning(
            f"AI 评审失败: log_id={request.log_id}, category={error.category.value}, "
            f"code={error.code}, message={error.message}"
        )

    async def fetch_once(self, request: ReviewRequest) -> bool:
        """拉取一次评审并处理结果，返回是否仍在生成"""
        try:
            response = await self.review_api.get_ai_review(request.log_id)
        except Exception as e:
            self.handle_error(request, e)
            return False
        return self.handle_response(request, response)

    async def _run(self, request: ReviewRequest, on_change: Optional[ChangeCallback]) -> None:
        while not request.is_cancelled:
            if request.status == ReviewStatus.POLLING:
                await asyncio.sleep(self.interval)
                # 安排下一次拉取前检查是否已取消
                if request.is_cancelled:
                    return

            pending = await self.fetch_once(request)
            if pending and request.status == ReviewStatus.REQUESTING:
                request.transition(ReviewStatus.POLLING)
            if on_change is not None:
                on_change(request)
            if not pending:
                return

    async def poll(
        self,
        request: ReviewRequest,
        on_change: Optional[ChangeCallback] = None,
    ) -> ReviewRequest:
        """
        拉取评审直到终止状态、达到上限或被取消

        REQUESTING 状态的请求立即发起首次拉取，仍在生成则进入 POLLING；
        POLLING 状态的请求先等待一个间隔再拉取。
        被取消时请求保持取消前的状态，不再发生任何修改。

        Args:
            request: 处于 REQUESTING 或 POLLING 状态、已绑定 log_id 的请求
            on_change: 每次拉取处理完后的回调

        Returns:
            同一个 request 对象
        """
        if request.is_cancelled or request.is_terminal:
            return request

        log_id = request.log_id
        existing = self._handles.get(log_id)
        if existing is not None:
            logger.info(f"取消同一日志的旧轮询: log_id={log_id}")
            existing.cancel()

        handle = PollHandle(request=request)
        handle.task = asyncio.create_task(
            self._run(request, on_change),
            name=f"ai-review-poll-{log_id}",
        )
        self._handles[log_id] = handle

        try:
            await handle.task
        except asyncio.CancelledError:
            if not request.is_cancelled:
                # 调用方自身被取消，继续向上传播
                handle.cancel()
                raise
            logger.info(f"轮询已取消: log_id={log_id}, status={request.status.value}")
        finally:
            if self._handles.get(log_id) is handle:
                del self._handles[log_id]

        return request

    def cancel(self, log_id: Optional[str]) -> bool:
        """取消某个日志的轮询，返回是否存在可取消的循环"""
        handle = self._handles.pop(log_id, None) if log_id else None
        if handle is None:
            return False
        handle.cancel()
        logger.info(f"取消轮询: log_id={log_id}")
        return True

    def cancel_all(self) -> None:
        """取消所有轮询"""
        for log_id in list(self._handles):
            self.cancel(log_id)
