"""
评审反馈记录数据模型
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field


class FeedbackStatus(str, Enum):
    """反馈类型"""

    LIKE = "LIKE"
    DISLIKE = "DISLIKE"


class DislikeReason(str, Enum):
    """不满意的原因"""

    INACCURATE = "INACCURATE"
    GENERIC = "GENERIC"
    NOT_HELPFUL = "NOT_HELPFUL"


class FeedbackRecord(SQLModel, table=True):
    """
    反馈记录模型

    每个 log_id 最多一条，写入后不再修改
    """
    __tablename__ = "feedback_records"

    # 主键
    id: Optional[int] = Field(default=None, primary_key=True)

    log_id: str = Field(index=True, unique=True, description="关联的日志ID")

    status: FeedbackStatus = Field(description="反馈类型: LIKE/DISLIKE")
    reason: Optional[DislikeReason] = Field(
        default=None,
        description="DISLIKE 原因: INACCURATE/GENERIC/NOT_HELPFUL"
    )

    # 后端返回的确认信息
    message: Optional[str] = Field(default=None, description="后端确认信息")

    submitted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="提交时间（UTC）"
    )
