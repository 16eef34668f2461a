"""
AI 使用额度模型
"""
from pydantic import BaseModel, ConfigDict, Field


class UsageQuota(BaseModel):
    """
    当日 AI 评审额度快照

    只整体替换，不做增量修改。
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    usage: int = Field(ge=0, description="今日已使用次数")
    limit: int = Field(ge=0, description="今日上限")
    service_enabled: bool = Field(default=True, alias="isServiceEnabled", description="AI 服务是否开启")

    @property
    def remaining(self) -> int:
        return self.limit - self.usage
