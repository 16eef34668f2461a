"""
评审反馈台账 - 每个日志只接受一次反馈

本地锁只是防止重复提交的第一道防线，后端才是最终裁决方。
"""
import asyncio
from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from review_orchestrator.core import get_logger
from review_orchestrator.core.exceptions import (
    ApiError,
    FeedbackRejectedError,
    FeedbackTransportError,
    InputValidationError,
)
from review_orchestrator.models import (
    DislikeReason,
    FeedbackRecord,
    FeedbackStatus,
    ReviewRequest,
    ReviewStatus,
)

logger = get_logger(__name__)

HTTP_CONFLICT = 409


def _parse_reason(reason: Union[DislikeReason, str, None]) -> DislikeReason:
    if reason is None:
        raise InputValidationError("DISLIKE 反馈必须提供原因")
    try:
        return DislikeReason(reason)
    except ValueError:
        raise InputValidationError(f"无效的 DISLIKE 原因: {reason}") from None


class FeedbackLedger:
    """
    反馈台账

    以 log_id 为键。检查与写入在同一把 per-log_id 的 asyncio.Lock 内完成，
    并发提交时只有先完成的一方写入记录，另一方直接拿到这条记录。
    """

    def __init__(self, feedback_api=None, engine: Optional[Engine] = None):
        if feedback_api is None:
            from review_orchestrator.api.logs import get_log_api
            feedback_api = get_log_api()
        if engine is None:
            from review_orchestrator.core.database import get_engine
            engine = get_engine()
        self.feedback_api = feedback_api
        self.engine = engine
        self._records: dict[str, FeedbackRecord] = {}
        self._ready_log_ids: set[str] = set()
        self._locks: dict[str, asyncio.Lock] = {}

    def register_review(self, request: ReviewRequest) -> None:
        """登记已完成的评审，之后才允许对该日志提交反馈"""
        if request.status != ReviewStatus.READY or not request.log_id:
            raise FeedbackRejectedError(
                f"评审尚未完成，不能登记: log_id={request.log_id}, status={request.status.value}"
            )
        self._ready_log_ids.add(request.log_id)

    def is_ready(self, log_id: str) -> bool:
        return log_id in self._ready_log_ids

    def get_record(self, log_id: str) -> Optional[FeedbackRecord]:
        """获取已提交的反馈（内存优先，其次台账表）"""
        record = self._records.get(log_id)
        if record is not None:
            return record

        with Session(self.engine) as session:
            statement = select(FeedbackRecord).where(FeedbackRecord.log_id == log_id)
            record = session.exec(statement).first()

        if record is not None:
            self._records[log_id] = record
        return record

    def has_feedback(self, log_id: str) -> bool:
        return self.get_record(log_id) is not None

    def _save(self, record: FeedbackRecord) -> FeedbackRecord:
        with Session(self.engine) as session:
            session.add(record)
            session.commit()
            session.refresh(record)
        return record

    async def submit_feedback(
        self,
        log_id: str,
        status: Union[FeedbackStatus, str],
        reason: Union[DislikeReason, str, None] = None,
    ) -> FeedbackRecord:
        """
        提交反馈

        Args:
            log_id: 日志ID
            status: LIKE / DISLIKE
            reason: DISLIKE 时必填

        Returns:
            该日志的反馈记录；已提交过时原样返回第一次的记录
        """
        existing = self.get_record(log_id)
        if existing is not None:
            logger.info(f"反馈已存在，忽略重复提交: log_id={log_id}")
            return existing

        if not self.is_ready(log_id):
            raise FeedbackRejectedError(f"评审尚未完成，不能提交反馈: log_id={log_id}")

        try:
            status = FeedbackStatus(status)
        except ValueError:
            raise InputValidationError(f"无效的反馈类型: {status}") from None
        reason = _parse_reason(reason) if status == FeedbackStatus.DISLIKE else None

        lock = self._locks.setdefault(log_id, asyncio.Lock())
        async with lock:
            # 等锁期间可能已有另一笔提交完成
            existing = self.get_record(log_id)
            if existing is not None:
                logger.info(f"并发提交落后方，返回已有反馈: log_id={log_id}")
                return existing

            try:
                response = await self.feedback_api.submit_feedback(log_id, status, reason)
            except ApiError as e:
                if e.status_code == HTTP_CONFLICT:
                    raise FeedbackRejectedError(e.message) from e
                logger.error(f"反馈提交失败: log_id={log_id}, error={e!r}")
                raise FeedbackTransportError(e.message, cause=e) from e
            except Exception as e:
                logger.error(f"反馈提交失败: log_id={log_id}, error={e!r}")
                raise FeedbackTransportError(str(e) or type(e).__name__, cause=e) from e

            record = FeedbackRecord(
                log_id=log_id,
                status=status,
                reason=reason,
                message=getattr(response, "message", None) or None,
                submitted_at=datetime.now(timezone.utc),
            )
            # 后端已接受，先锁定内存记录，本地落库失败不影响锁定
            self._records[log_id] = record
            try:
                self._save(record)
            except SQLAlchemyError as e:
                logger.error(f"反馈记录落库失败: log_id={log_id}, error={e!r}")

        self._locks.pop(log_id, None)

        logger.info(f"反馈已提交: log_id={log_id}, status={status.value}, reason={reason}")
        return record
