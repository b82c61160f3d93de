"""元数据文件读写

- load_document(): 读取解析器产出的包元数据或本工具的配置文件，
  .yml/.yaml 走 PyYAML，其余按 JSON 解析
- write_atomic(): package.json 落盘，写入中断时原文件保持不变
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# installed.json 在大型项目里可达数 MB，超过该值视为异常输入
MAX_FILE_SIZE = 10 * 1024 * 1024

YAML_SUFFIXES = (".yml", ".yaml")


def write_atomic(path: Path, content: str) -> None:
    """把 content 按 UTF-8 原样写入 path（不做换行转换）

    先写同目录临时文件并 fsync，再 os.replace 覆盖目标。
    失败时删除临时文件，OSError 原样抛出。
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", newline="", dir=path.parent,
        prefix=f".{path.name}.", suffix=".tmp", delete=False,
    )
    try:
        with tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except OSError:
        Path(tmp.name).unlink(missing_ok=True)
        raise
    logger.debug("已写入 %s (%d 字符)", path, len(content), extra={"path": path})


def load_document(path: str | Path) -> Any:
    """读取 JSON / YAML 文档，返回原始结构，不限定顶层类型

    文件不存在时返回 None；空 YAML 文件同样得到 None。

    异常:
        json.JSONDecodeError / yaml.YAMLError: 格式错误
        UnicodeDecodeError: 不是 UTF-8 文本
        OSError: 读取失败
        ValueError: 文件超过 MAX_FILE_SIZE
    """
    p = Path(path)
    if not p.exists():
        return None

    size = p.stat().st_size
    if size > MAX_FILE_SIZE:
        raise ValueError(f"文件过大: {p} ({size} 字节), 超过限制 {MAX_FILE_SIZE} 字节")

    with open(p, encoding="utf-8") as f:
        if p.suffix.lower() in YAML_SUFFIXES:
            return yaml.safe_load(f)
        return json.load(f)
