"""
日志保障服务 - 确保评审请求有可用的日志ID
"""
from typing import Optional

from review_orchestrator.core import get_settings, get_logger
from review_orchestrator.core.exceptions import ApiError, InputValidationError, LogCreationError

logger = get_logger(__name__)

DEFAULT_LOG_TITLE = "코드 리뷰"
LOG_CONTENT = "AI 리뷰를 위한 코드 제출"


def build_log_title(problem_id: Optional[str] = None, problem_title: Optional[str] = None) -> str:
    """生成日志标题：有题号和题名时用“题号. 题名”，否则用默认标题"""
    if problem_id and problem_title:
        return f"{problem_id}. {problem_title}"
    return DEFAULT_LOG_TITLE


class LogEnsurer:
    """日志保障服务"""

    def __init__(self, log_api=None, min_code_length: Optional[int] = None):
        if log_api is None:
            from review_orchestrator.api.logs import get_log_api
            log_api = get_log_api()
        self.log_api = log_api
        self.min_code_length = min_code_length or get_settings().min_code_length

    def validate_code(self, code: Optional[str]) -> str:
        """校验代码长度，返回原始代码"""
        if code is None or len(code.strip()) < self.min_code_length:
            raise InputValidationError("code too short")
        return code

    async def ensure_log(
        self,
        existing_log_id: Optional[str],
        code: Optional[str],
        problem_id: Optional[str] = None,
        problem_title: Optional[str] = None,
        is_success: Optional[bool] = None,
    ) -> str:
        """
        确保日志存在

        Args:
            existing_log_id: 已有日志ID，存在时原样返回
            code: 代码，没有日志ID时用它创建日志
            problem_id: 题号（用于标题）
            problem_title: 题名（用于标题）
            is_success: 是否解题成功

        Returns:
            日志ID
        """
        if existing_log_id:
            return existing_log_id

        code = self.validate_code(code)
        title = build_log_title(problem_id, problem_title)

        logger.info(f"创建日志: title={title}")
        try:
            created = await self.log_api.create_log(
                title=title,
                content=LOG_CONTENT,
                code=code,
                is_success=is_success,
            )
        except ApiError as e:
            logger.error(f"日志创建失败: {e!r}")
            raise LogCreationError(e.message, cause=e) from e
        except Exception as e:
            # 协作方的其他异常（如响应体无法解析）同样视为创建失败
            logger.error(f"日志创建失败: {e!r}")
            raise LogCreationError(str(e) or type(e).__name__, cause=e) from e

        logger.info(f"日志创建完成: log_id={created.id}")
        return created.id
