"""日志配置

只配置 asset_installer 包自己的日志器，不触碰根日志器，
作为 Composer 插件或库被嵌入时不会改动宿主的日志设置。

环境变量（参数未显式给出时读取）:
  ASSET_INSTALLER_LOG_LEVEL  日志级别，默认 INFO
  ASSET_INSTALLER_LOG_JSON   为 1/true/yes 时输出 JSON

日志调用可通过 extra= 附带上下文（包名、资源名、命令行、文件路径），
JSON 格式下这些字段原样输出，文本格式下追加在消息末尾。
npm 自身的输出不经过日志系统，直接写入 OutputSink。
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

PACKAGE_LOGGER = "asset_installer"

ENV_LOG_LEVEL = "ASSET_INSTALLER_LOG_LEVEL"
ENV_LOG_JSON = "ASSET_INSTALLER_LOG_JSON"

DEFAULT_LEVEL = "INFO"

# 可经 extra= 附加到日志记录上的上下文字段
CONTEXT_FIELDS = ("package", "assets", "command", "path")

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _context(record: logging.LogRecord) -> dict[str, object]:
    return {
        name: getattr(record, name)
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志，一行一条，便于 CI 流水线消费"""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(_context(record))
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        # Path 等非 JSON 类型按 str 输出
        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ContextTextFormatter(logging.Formatter):
    """文本格式，附带上下文字段: ... [package=a/b command=npm ci]"""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        ctx = _context(record)
        if not ctx:
            return text
        parts = []
        for name, value in ctx.items():
            if isinstance(value, (list, tuple)):
                value = " ".join(str(v) for v in value)
            parts.append(f"{name}={value}")
        return f"{text} [{' '.join(parts)}]"


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """配置 asset_installer 日志器，输出到 stderr

    参数:
        level: 日志级别字符串，None 时读 ASSET_INSTALLER_LOG_LEVEL
        json_output: None 时读 ASSET_INSTALLER_LOG_JSON

    重复调用会先清理已有 handlers。
    """
    if level is None:
        level = os.environ.get(ENV_LOG_LEVEL, DEFAULT_LEVEL)
    if json_output is None:
        json_output = os.environ.get(ENV_LOG_JSON, "").strip().lower() in _TRUE_VALUES

    reset_logging()
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    pkg_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    pkg_logger.propagate = False

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else ContextTextFormatter(TEXT_FORMAT))
    pkg_logger.addHandler(handler)


def reset_logging() -> None:
    """撤销 setup_logging 的全部设置"""
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in pkg_logger.handlers[:]:
        pkg_logger.removeHandler(handler)
        handler.close()
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True
