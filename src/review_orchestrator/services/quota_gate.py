"""
AI 使用额度闸门 - 在发起任何网络请求前判断是否允许评审
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from review_orchestrator.core import get_logger
from review_orchestrator.core.exceptions import ApiError
from review_orchestrator.models import ErrorCategory, QuotaScope, ReviewError, UsageQuota
from review_orchestrator.services.error_classifier import fallback_message

logger = get_logger(__name__)


class BlockReason(str, Enum):
    """拦截原因"""

    QUOTA_EXHAUSTED = "quota_exhausted"
    SERVICE_DISABLED = "service_disabled"


@dataclass(frozen=True)
class QuotaDecision:
    """闸门判断结果"""

    allowed: bool
    reason: Optional[BlockReason] = None


ALLOWED = QuotaDecision(allowed=True)


class UsageQuotaGate:
    """
    额度闸门

    持有最近一次的额度快照。判断本身是纯函数，
    快照只在 refresh() 时整体替换。
    """

    def __init__(self, usage_api=None, snapshot: Optional[UsageQuota] = None):
        if usage_api is None:
            from review_orchestrator.api.logs import get_log_api
            usage_api = get_log_api()
        self.usage_api = usage_api
        self._snapshot = snapshot

    @property
    def snapshot(self) -> Optional[UsageQuota]:
        return self._snapshot

    @staticmethod
    def can_request(quota: Optional[UsageQuota]) -> QuotaDecision:
        """
        判断是否允许发起评审

        没有快照时放行，由后端做最终判断
        """
        if quota is None:
            return ALLOWED
        if not quota.service_enabled:
            return QuotaDecision(allowed=False, reason=BlockReason.SERVICE_DISABLED)
        if quota.usage >= quota.limit:
            return QuotaDecision(allowed=False, reason=BlockReason.QUOTA_EXHAUSTED)
        return ALLOWED

    def check(self) -> QuotaDecision:
        """用当前快照判断"""
        return self.can_request(self._snapshot)

    @staticmethod
    def blocked_error(decision: QuotaDecision) -> ReviewError:
        """把拦截结果转换为请求失败信息"""
        if decision.reason == BlockReason.SERVICE_DISABLED:
            category = ErrorCategory.SERVICE_UNAVAILABLE
            return ReviewError(category=category, message=fallback_message(category))
        # 快照来自 /logs/ai-usage/me，只反映个人额度；全局超限只能由后端错误码得知
        category = ErrorCategory.QUOTA_EXCEEDED
        return ReviewError(category=category, scope=QuotaScope.USER, message=fallback_message(category))

    async def refresh(self) -> Optional[UsageQuota]:
        """
        重新获取额度快照

        获取失败时保留旧快照并返回 None
        """
        try:
            quota = await self.usage_api.get_ai_usage()
        except ApiError as e:
            logger.warning(f"AI 使用额度获取失败: {e.message}")
            return None
        except Exception as e:
            logger.warning(f"AI 使用额度获取失败: {e!r}")
            return None

        self._snapshot = quota
        logger.debug(
            f"AI 使用额度已更新: usage={quota.usage}, limit={quota.limit}, "
            f"service_enabled={quota.service_enabled}"
        )
        return quota

    async def ensure_snapshot(self) -> Optional[UsageQuota]:
        """没有快照时先获取一次"""
        if self._snapshot is None:
            await self.refresh()
        return self._snapshot
