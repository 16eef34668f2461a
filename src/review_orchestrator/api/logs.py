"""
日志相关接口 - 日志创建、AI 评审、评审反馈、AI 使用额度
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from review_orchestrator.api.client import ApiClient, get_api_client
from review_orchestrator.core import get_logger
from review_orchestrator.models import DislikeReason, FeedbackStatus, UsageQuota

logger = get_logger(__name__)


# ============ 请求/响应模型 ============

class LogCreateRequest(BaseModel):
    """创建日志请求"""
    model_config = ConfigDict(populate_by_name=True)

    title: str
    content: str
    code: str
    is_success: Optional[bool] = Field(default=None, alias="isSuccess")


class LogResponse(BaseModel):
    """创建日志响应"""
    model_config = ConfigDict(extra="ignore")

    id: str


class AiReviewResponse(BaseModel):
    """AI 评审响应：评审文本，或“生成中”占位文本"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    review: str
    cached: bool = False
    in_progress: bool = Field(default=False, alias="inProgress")


class LogFeedbackRequest(BaseModel):
    """评审反馈请求"""

    status: FeedbackStatus
    reason: Optional[DislikeReason] = None


class LogFeedbackResponse(BaseModel):
    """评审反馈响应"""
    model_config = ConfigDict(extra="ignore")

    message: str = ""


# ============ 接口 ============

class LogApi:
    """日志接口"""

    def __init__(self, client: Optional[ApiClient] = None):
        self.client = client or get_api_client()

    async def create_log(
        self,
        title: str,
        content: str,
        code: str,
        is_success: Optional[bool] = None,
    ) -> LogResponse:
        """创建日志（AI 评审的前置步骤）"""
        payload = LogCreateRequest(title=title, content=content, code=code, is_success=is_success)
        data = await self.client.post("/logs", json=payload.model_dump(by_alias=True))
        return LogResponse.model_validate(data)

    async def get_ai_review(self, log_id: str) -> AiReviewResponse:
        """生成/查询 AI 评审"""
        data = await self.client.post(f"/logs/{log_id}/ai-review")
        return AiReviewResponse.model_validate(data)

    async def submit_feedback(
        self,
        log_id: str,
        status: FeedbackStatus,
        reason: Optional[DislikeReason] = None,
    ) -> LogFeedbackResponse:
        """提交 AI 评审反馈"""
        payload = LogFeedbackRequest(status=status, reason=reason)
        data = await self.client.post(
            f"/logs/{log_id}/feedback",
            json=payload.model_dump(mode="json", exclude_none=True),
        )
        return LogFeedbackResponse.model_validate(data or {})

    async def get_ai_usage(self) -> UsageQuota:
        """查询当前用户的 AI 使用额度"""
        data = await self.client.get("/logs/ai-usage/me")
        return UsageQuota.model_validate(data)


# 全局单例
_log_api: Optional[LogApi] = None


def get_log_api() -> LogApi:
    """获取日志接口单例"""
    global _log_api
    if _log_api is None:
        _log_api = LogApi()
    return _log_api
