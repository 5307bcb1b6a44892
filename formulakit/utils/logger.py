"""formulakit 日志配置

两种输出格式：人类可读文本（终端）与结构化 JSON（CI 流水线）。
流水线步骤通过 extra={"formula": ..., "step": ...} 附加上下文，JSON 格式会一并输出。
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

ENV_LOG_LEVEL = "FORMULAKIT_LOG_LEVEL"
ENV_LOG_JSON = "FORMULAKIT_LOG_JSON"

# 透传到 JSON 输出的 extra 字段
_CONTEXT_FIELDS = ("formula", "step")


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器

    输出格式:
        {"timestamp": "...", "level": "INFO", "logger": "formulakit.x",
         "message": "...", "formula": "prs", "step": "fetch"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器，输出到 stderr

    参数:
        level: 日志级别字符串（DEBUG, INFO, WARNING, ERROR）
        json_output: 为 True 时使用 JSON 格式（适用于 CI）

    已有 handlers 会被清理，重复调用不会导致日志重复输出。
    """
    root = logging.getLogger()
    reset_logging()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        fmt = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"
        handler.setFormatter(logging.Formatter(fmt))
    root.addHandler(handler)


def setup_logging_from_env() -> None:
    """按环境变量 FORMULAKIT_LOG_LEVEL / FORMULAKIT_LOG_JSON 配置日志"""
    setup_logging(
        level=os.getenv(ENV_LOG_LEVEL, "INFO"),
        json_output=os.getenv(ENV_LOG_JSON, "") == "1",
    )


def reset_logging() -> None:
    """清理根日志器上的全部 handlers"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
