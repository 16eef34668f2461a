"""
测试配置
"""
import os
import sys
from unittest.mock import AsyncMock, Mock

import pytest

# 添加 src 目录到 Python 路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

# 设置测试环境变量
os.environ["API_BASE_URL"] = "http://testserver"
os.environ["API_TOKEN"] = "test-token"
os.environ["LEDGER_DATABASE_URL"] = "sqlite://"

PENDING_TEXT = "AI review is being generated. Please retry shortly."


def pending_response():
    """后端“生成中”响应"""
    from review_orchestrator.api.logs import AiReviewResponse
    return AiReviewResponse(review=PENDING_TEXT, cached=False, in_progress=True)


def review_response(text: str = "Solid use of two pointers.", cached: bool = False):
    """后端评审完成响应"""
    from review_orchestrator.api.logs import AiReviewResponse
    return AiReviewResponse(review=text, cached=cached)


@pytest.fixture
def test_db():
    """测试数据库 fixture"""
    from sqlmodel import create_engine, SQLModel
    from review_orchestrator.models import FeedbackRecord  # noqa: F401

    engine = create_engine("sqlite:///:memory:", echo=False)
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def log_api():
    """模拟后端的四个协作接口"""
    from review_orchestrator.api.logs import LogFeedbackResponse, LogResponse
    from review_orchestrator.models import UsageQuota

    api = Mock()
    api.create_log = AsyncMock(return_value=LogResponse(id="L1"))
    api.get_ai_review = AsyncMock(return_value=review_response())
    api.submit_feedback = AsyncMock(return_value=LogFeedbackResponse(message="피드백이 저장되었습니다."))
    api.get_ai_usage = AsyncMock(return_value=UsageQuota(usage=3, limit=5, service_enabled=True))
    return api


@pytest.fixture
def make_coordinator(log_api, test_db):
    """按需组装编排器，轮询间隔为 0"""
    from review_orchestrator.models import UsageQuota
    from review_orchestrator.services import (
        FeedbackLedger,
        LogEnsurer,
        PollingEngine,
        ReviewRequestCoordinator,
        UsageQuotaGate,
    )

    def _make(snapshot=UsageQuota(usage=3, limit=5, service_enabled=True), interval=0.0, on_change=None):
        return ReviewRequestCoordinator(
            quota_gate=UsageQuotaGate(log_api, snapshot=snapshot),
            log_ensurer=LogEnsurer(log_api),
            polling_engine=PollingEngine(log_api, interval=interval, max_attempts=20),
            feedback_ledger=FeedbackLedger(log_api, engine=test_db),
            on_change=on_change,
        )

    return _make
