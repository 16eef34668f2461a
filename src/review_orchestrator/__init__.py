"""
AI 代码评审请求编排库
"""
from review_orchestrator.core.exceptions import (
    ApiError,
    FeedbackRejectedError,
    FeedbackTransportError,
    InputValidationError,
    ReviewInProgressError,
    ReviewOrchestratorError,
)
from review_orchestrator.models import (
    DislikeReason,
    ErrorCategory,
    FeedbackRecord,
    FeedbackStatus,
    QuotaScope,
    ReviewRequest,
    ReviewStatus,
    UsageQuota,
)
from review_orchestrator.services import (
    FeedbackLedger,
    LogEnsurer,
    PollingEngine,
    ReviewRequestCoordinator,
    UsageQuotaGate,
    classify,
)

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "FeedbackRejectedError",
    "FeedbackTransportError",
    "InputValidationError",
    "ReviewInProgressError",
    "ReviewOrchestratorError",
    "DislikeReason",
    "ErrorCategory",
    "FeedbackRecord",
    "FeedbackStatus",
    "QuotaScope",
    "ReviewRequest",
    "ReviewStatus",
    "UsageQuota",
    "FeedbackLedger",
    "LogEnsurer",
    "PollingEngine",
    "ReviewRequestCoordinator",
    "UsageQuotaGate",
    "classify",
]
