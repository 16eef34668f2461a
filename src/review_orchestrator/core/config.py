"""
配置管理 - 类似 Java 的 @ConfigurationProperties
"""
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """应用配置"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 后端 API 配置
    # 保留 VITE_API_BASE_URL 作为兼容别名，前端与本库可共用同一份 .env
    api_base_url: str = Field(
        default="http://localhost:8080",
        validation_alias=AliasChoices("API_BASE_URL", "VITE_API_BASE_URL"),
    )
    api_token: str = ""
    request_timeout: float = 30.0

    # AI 评审轮询配置
    poll_interval_seconds: float = Field(default=3.0, ge=0.0)
    max_poll_attempts: int = Field(default=20, ge=1)

    # 生成日志前的代码最短长度（去除首尾空白后）
    min_code_length: int = Field(default=10, ge=1)

    # 反馈台账数据库（默认内存 SQLite）
    ledger_database_url: str = "sqlite://"

    # 日志配置
    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()
