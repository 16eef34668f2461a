"""
评审请求数据模型
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, PrivateAttr, model_validator

from review_orchestrator.core.exceptions import InvalidTransitionError


class ReviewStatus(str, Enum):
    """评审请求状态"""

    IDLE = "idle"
    VALIDATING_INPUT = "validating_input"
    CREATING_LOG = "creating_log"
    REQUESTING = "requesting"
    POLLING = "polling"
    READY = "ready"
    FAILED = "failed"


class ErrorCategory(str, Enum):
    """失败请求的错误分类"""

    VALIDATION = "validation"
    QUOTA_EXCEEDED = "quota_exceeded"
    SERVICE_UNAVAILABLE = "service_unavailable"
    LOG_CREATION = "log_creation"
    TIMEOUT = "timeout"
    GENERIC = "generic"


class QuotaScope(str, Enum):
    """额度超限的范围：个人或全局"""

    USER = "user"
    GLOBAL = "global"


TERMINAL_STATUSES = frozenset({ReviewStatus.READY, ReviewStatus.FAILED})

# 状态迁移表，未列出的迁移一律非法
ALLOWED_TRANSITIONS: dict[ReviewStatus, frozenset[ReviewStatus]] = {
    ReviewStatus.IDLE: frozenset({ReviewStatus.VALIDATING_INPUT}),
    ReviewStatus.VALIDATING_INPUT: frozenset({
        ReviewStatus.CREATING_LOG,
        ReviewStatus.REQUESTING,
        ReviewStatus.FAILED,
    }),
    ReviewStatus.CREATING_LOG: frozenset({ReviewStatus.REQUESTING, ReviewStatus.FAILED}),
    ReviewStatus.REQUESTING: frozenset({
        ReviewStatus.POLLING,
        ReviewStatus.READY,
        ReviewStatus.FAILED,
    }),
    ReviewStatus.POLLING: frozenset({ReviewStatus.READY, ReviewStatus.FAILED}),
    ReviewStatus.READY: frozenset(),
    ReviewStatus.FAILED: frozenset(),
}


class ReviewError(BaseModel):
    """失败请求携带的错误信息，message 总是可直接展示给用户"""

    category: ErrorCategory
    message: str = Field(min_length=1)
    scope: Optional[QuotaScope] = None
    code: Optional[str] = Field(default=None, description="后端原始错误码")


class ReviewRequest(BaseModel):
    """
    一次评审请求

    状态只能通过下面的方法修改，每次修改都会查迁移表，
    保证 review_text 只在 READY 时存在、error 只在 FAILED 时存在。
    """

    log_id: Optional[str] = None
    status: ReviewStatus = ReviewStatus.IDLE
    attempt_count: int = Field(default=0, ge=0, description="轮询阶段的拉取次数")
    review_text: Optional[str] = None
    cached: bool = False
    error: Optional[ReviewError] = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    # 取消后不再发生任何状态修改
    _cancelled: bool = PrivateAttr(default=False)

    @model_validator(mode="after")
    def validate_terminal_fields(self) -> "ReviewRequest":
        if (self.review_text is not None) != (self.status == ReviewStatus.READY):
            raise ValueError("review_text must be set if and only if status is READY")
        if (self.error is not None) != (self.status == ReviewStatus.FAILED):
            raise ValueError("error must be set if and only if status is FAILED")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """标记为已取消；已结束的请求不受影响"""
        if not self.is_terminal:
            self._cancelled = True

    def _check_transition(self, target: ReviewStatus) -> None:
        if target not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"非法状态迁移: {self.status.value} -> {target.value} (log_id={self.log_id})"
            )

    def transition(self, target: ReviewStatus) -> None:
        """迁移到非终止状态"""
        if target in TERMINAL_STATUSES:
            raise InvalidTransitionError(
                f"终止状态必须通过 mark_ready/mark_failed 进入: {target.value}"
            )
        self._check_transition(target)
        self.status = target
        self.updated_at = datetime.now()

    def attach_log(self, log_id: str) -> None:
        """绑定日志ID，绑定后不可更换"""
        if self.log_id is not None and self.log_id != log_id:
            raise InvalidTransitionError(f"log_id 已绑定为 {self.log_id}，不能改为 {log_id}")
        self.log_id = log_id

    def record_attempt(self) -> int:
        """记录一次轮询阶段的拉取，返回累计次数"""
        if self.is_terminal:
            raise InvalidTransitionError(f"请求已结束，不能继续轮询 (log_id={self.log_id})")
        self.attempt_count += 1
        self.updated_at = datetime.now()
        return self.attempt_count

    def mark_ready(self, review_text: str, cached: bool) -> None:
        self._check_transition(ReviewStatus.READY)
        self.review_text = review_text
        self.cached = cached
        self.status = ReviewStatus.READY
        self.updated_at = datetime.now()

    def mark_failed(self, error: ReviewError) -> None:
        self._check_transition(ReviewStatus.FAILED)
        self.error = error
        self.status = ReviewStatus.FAILED
        self.updated_at = datetime.now()
