"""
数据库连接管理 - 反馈台账使用的本地数据库
"""
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from review_orchestrator.core.config import get_settings

_engine: Optional[Engine] = None


def create_ledger_engine(database_url: str) -> Engine:
    """创建引擎并确保台账表存在"""
    # 注册表结构
    from review_orchestrator.models.feedback_record import FeedbackRecord  # noqa: F401

    engine = create_engine(database_url, echo=False)
    SQLModel.metadata.create_all(engine)
    return engine


def get_engine() -> Engine:
    """获取全局台账数据库引擎"""
    global _engine
    if _engine is None:
        _engine = create_ledger_engine(get_settings().ledger_database_url)
    return _engine


__all__ = ["create_ledger_engine", "get_engine"]
