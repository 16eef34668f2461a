"""
数据模型模块
"""
from .review_request import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    ErrorCategory,
    QuotaScope,
    ReviewError,
    ReviewRequest,
    ReviewStatus,
)
from .usage_quota import UsageQuota
from .feedback_record import DislikeReason, FeedbackRecord, FeedbackStatus

__all__ = [
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "ErrorCategory",
    "QuotaScope",
    "ReviewError",
    "ReviewRequest",
    "ReviewStatus",
    "UsageQuota",
    "DislikeReason",
    "FeedbackRecord",
    "FeedbackStatus",
]
