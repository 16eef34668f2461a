"""
服务模块
"""
from .error_classifier import BackendErrorCode, classify, classify_exception
from .quota_gate import BlockReason, QuotaDecision, UsageQuotaGate
from .log_ensurer import LogEnsurer
from .polling_engine import PENDING_MARKER, PollingEngine, is_pending
from .feedback_ledger import FeedbackLedger
from .review_coordinator import ReviewRequestCoordinator

__all__ = [
    "BackendErrorCode",
    "classify",
    "classify_exception",
    "BlockReason",
    "QuotaDecision",
    "UsageQuotaGate",
    "LogEnsurer",
    "PENDING_MARKER",
    "PollingEngine",
    "is_pending",
    "FeedbackLedger",
    "ReviewRequestCoordinator",
]
