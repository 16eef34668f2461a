"""
后端接口模块
"""
from .client import ApiClient, get_api_client
from .logs import (
    AiReviewResponse,
    LogApi,
    LogFeedbackResponse,
    LogResponse,
    get_log_api,
)

__all__ = [
    "ApiClient",
    "get_api_client",
    "AiReviewResponse",
    "LogApi",
    "LogFeedbackResponse",
    "LogResponse",
    "get_log_api",
]
