"""
异常定义

所有本库抛出的异常都继承自 ReviewOrchestratorError，
调用方可以只捕获这一个基类。
"""
from typing import Optional


class ReviewOrchestratorError(Exception):
    """本库异常基类"""


class InputValidationError(ReviewOrchestratorError):
    """
    本地输入校验失败

    例如代码过短、Dislike 缺少原因。永远不会触发网络调用。
    """


class ApiError(ReviewOrchestratorError):
    """
    后端接口调用失败

    Attributes:
        status_code: HTTP 状态码（网络层失败时为 None）
        code: 后端错误码，如 AI_USER_LIMIT_EXCEEDED
        message: 后端返回的错误信息
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"ApiError(status_code={self.status_code!r}, code={self.code!r}, message={self.message!r})"


class LogCreationError(ReviewOrchestratorError):
    """创建日志失败，对当前评审请求是终止性的"""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class PollingTimeoutError(ReviewOrchestratorError):
    """轮询次数达到上限仍未拿到评审结果"""

    def __init__(self, log_id: str, attempts: int):
        super().__init__(f"log_id={log_id} 轮询 {attempts} 次后仍在生成")
        self.log_id = log_id
        self.attempts = attempts


class ReviewInProgressError(ReviewOrchestratorError):
    """同一请求尚未结束时再次发起评审"""

    def __init__(self, log_id: Optional[str]):
        super().__init__(f"评审请求仍在进行中: log_id={log_id}")
        self.log_id = log_id


class InvalidTransitionError(ReviewOrchestratorError):
    """非法的状态迁移"""


class FeedbackRejectedError(ReviewOrchestratorError):
    """反馈前置条件不满足（评审未完成）或后端拒绝重复提交"""


class FeedbackTransportError(ReviewOrchestratorError):
    """
    反馈提交失败

    可恢复：台账不会锁定该 log_id，调用方可以重试。
    """

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
