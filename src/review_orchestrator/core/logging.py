"""
日志配置
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 对轮询和台账来说这些库的 INFO 日志过于频繁
NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy")

_HANDLER_NAME = "review_orchestrator.console"


def setup_logging(log_level: str = "INFO") -> None:
    """
    配置日志系统

    库本身不主动调用，由上层（展示层或脚本）在启动时调用。
    重复调用只更新级别，不会重复添加处理器。
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    if not any(h.get_name() == _HANDLER_NAME for h in root_logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.set_name(_HANDLER_NAME)
        console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    获取日志记录器

    用法:
        logger = get_logger(__name__)
        logger.info(f"轮询开始: log_id={log_id}")
    """
    return logging.getLogger(name)
