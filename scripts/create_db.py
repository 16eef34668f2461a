"""
创建反馈台账数据库表
"""
from sqlmodel import SQLModel, create_engine
from review_orchestrator.models import FeedbackRecord
from review_orchestrator.core import get_settings

settings = get_settings()

if __name__ == "__main__":
    # 内存库没有意义，需要配置 LEDGER_DATABASE_URL 指向文件库
    engine = create_engine(settings.ledger_database_url, echo=True)

    # 创建所有表
    SQLModel.metadata.create_all(engine)

    print(f"✅ 台账表创建完成: {FeedbackRecord.__tablename__}")
