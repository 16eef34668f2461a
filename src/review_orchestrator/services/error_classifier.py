"""
后端错误分类 - 把后端错误码映射到固定的错误分类
"""
from enum import Enum
from typing import Optional

from review_orchestrator.core.exceptions import ApiError, PollingTimeoutError
from review_orchestrator.models import ErrorCategory, QuotaScope, ReviewError


class BackendErrorCode(str, Enum):
    """需要特殊处理的后端错误码"""

    AI_USER_LIMIT_EXCEEDED = "AI_USER_LIMIT_EXCEEDED"
    AI_GLOBAL_LIMIT_EXCEEDED = "AI_GLOBAL_LIMIT_EXCEEDED"
    AI_SERVICE_DISABLED = "AI_SERVICE_DISABLED"


# 错误码 -> (分类, 额度范围)
_CODE_MAPPING: dict[BackendErrorCode, tuple[ErrorCategory, Optional[QuotaScope]]] = {
    BackendErrorCode.AI_USER_LIMIT_EXCEEDED: (ErrorCategory.QUOTA_EXCEEDED, QuotaScope.USER),
    BackendErrorCode.AI_GLOBAL_LIMIT_EXCEEDED: (ErrorCategory.QUOTA_EXCEEDED, QuotaScope.GLOBAL),
    BackendErrorCode.AI_SERVICE_DISABLED: (ErrorCategory.SERVICE_UNAVAILABLE, None),
}

# 服务端没有返回信息时使用的默认提示
FALLBACK_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.VALIDATION: "코드가 너무 짧습니다. 최소 10자 이상의 코드가 필요합니다.",
    ErrorCategory.QUOTA_EXCEEDED: "오늘 AI 리뷰 사용량을 모두 소진했습니다.",
    ErrorCategory.SERVICE_UNAVAILABLE: "AI 서비스를 사용할 수 없습니다.",
    ErrorCategory.LOG_CREATION: "AI 리뷰를 요청할 수 없습니다.",
    ErrorCategory.TIMEOUT: "AI 리뷰 생성 시간이 초과되었습니다. 잠시 후 다시 시도해주세요.",
    ErrorCategory.GENERIC: "AI 리뷰를 불러올 수 없습니다.",
}


def fallback_message(category: ErrorCategory) -> str:
    return FALLBACK_MESSAGES[category]


def _lookup(code: Optional[str]) -> Optional[BackendErrorCode]:
    if not code:
        return None
    try:
        return BackendErrorCode(code)
    except ValueError:
        return None


def classify(code: Optional[str], message: Optional[str]) -> ReviewError:
    """
    错误分类

    纯函数，对任何输入都返回唯一分类；未知错误码一律归为 GENERIC。

    Args:
        code: 后端错误码（可能为空）
        message: 后端错误信息（可能为空）

    Returns:
        ReviewError，message 优先使用服务端信息
    """
    known = _lookup(code)
    if known is None:
        category, scope = ErrorCategory.GENERIC, None
    else:
        category, scope = _CODE_MAPPING[known]

    text = message.strip() if message else ""
    return ReviewError(
        category=category,
        scope=scope,
        message=text or fallback_message(category),
        code=code,
    )


def classify_exception(exc: Exception) -> ReviewError:
    """对协作方调用抛出的异常做分类"""
    if isinstance(exc, ApiError):
        return classify(exc.code, exc.message)
    if isinstance(exc, PollingTimeoutError):
        category = ErrorCategory.TIMEOUT
        return ReviewError(category=category, message=fallback_message(category))
    return classify(None, str(exc))
