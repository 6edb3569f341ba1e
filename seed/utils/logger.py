"""seed 日志配置

提供统一的日志配置和格式化功能，支持普通文本和结构化 JSON 两种输出格式。
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

LOG_LEVEL_ENV = "SEED_LOG_LEVEL"
LOG_JSON_ENV = "SEED_LOG_JSON"


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器，便于 CI 流水线消费

    输出格式:
        {
            "timestamp": "2024-01-01T12:00:00+00:00",
            "level": "INFO",
            "logger": "seed.core.dep_manager",
            "message": "log message",
            "module": "dep_manager",
            "function": "install",
            "line": 42,
            "package": "github.com/org/repo@v1" (仅在 extra 中带 package 时),
            "exception": "traceback..." (仅在有异常时)
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            # 使用 record.created 而非 datetime.now()，记录事件发生时间而非格式化时间
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        package = getattr(record, "package", None)
        if package:
            log_entry["package"] = package
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """配置根日志器

    参数:
        level: 日志级别字符串（DEBUG, INFO, WARNING, ERROR），
            不传时读取 SEED_LOG_LEVEL，默认 INFO
        json_output: 为 True 时使用 JSON 格式（适用于 CI），
            不传时 SEED_LOG_JSON=1 开启

    说明:
        - 输出到 stderr，stdout 留给命令结果
        - 自动清理已有 handlers，避免重复输出
    """
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO")
    if json_output is None:
        json_output = os.getenv(LOG_JSON_ENV, "") == "1"

    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        fmt = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"
        handler.setFormatter(logging.Formatter(fmt))

    root.addHandler(handler)


def reset_logging() -> None:
    """清理根日志器上已注册的 handlers，恢复到未配置状态"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
