"""package.json 同步

用汇总结果替换清单的 dependencies 段，其余字段保持原样（含键顺序）。

  - 清单已存在: 读取并解析，失败直接报错，绝不回退为新建
  - 清单不存在: 生成带说明字段的新清单
  - 写入: 4 空格缩进、斜杠不转义、单个结尾换行，原子替换

相同输入重复同步时输出字节完全一致。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from asset_installer.core.exceptions import ManifestFormatError, ManifestIOError
from asset_installer.utils.file_io import write_atomic

logger = logging.getLogger(__name__)

GENERATED_NOTICE = (
    "THE FILE IS GENERATED PROGRAMMATICALLY, "
    "ALL MANUAL CHANGES IN DEPENDENCIES SECTION WILL BE LOST"
)
DOC_HOMEPAGE = (
    "https://doc.oroinc.com/master/frontend/javascript/composer-js-dependencies/"
)


def new_manifest(dependencies: dict[str, str]) -> dict[str, Any]:
    return {
        "description": GENERATED_NOTICE,
        "homepage": DOC_HOMEPAGE,
        "dependencies": dependencies,
        "private": True,
    }


def dump_manifest(data: dict[str, Any]) -> str:
    # json 模块本身不转义 "/"，与 JSON_UNESCAPED_SLASHES 一致
    return json.dumps(data, indent=4) + "\n"


class ManifestSynchronizer:
    """清单同步器"""

    def __init__(self, manifest_path: Path) -> None:
        self.manifest_path = manifest_path

    def load(self) -> dict[str, Any] | None:
        """读取已存在的清单，不存在返回 None"""
        path = self.manifest_path
        if not path.exists():
            return None

        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ManifestFormatError(
                f'无法解析 "{path}"，请确认文件是合法的 JSON: {e}', path=str(path),
            ) from e
        except OSError as e:
            raise ManifestIOError(
                f'无法读取 "{path}"，请确认当前用户有读权限: {e}', path=str(path),
            ) from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ManifestFormatError(
                f'无法解析 "{path}"，请确认文件是合法的 JSON: {e}', path=str(path),
            ) from e

        if not isinstance(data, dict):
            raise ManifestFormatError(
                f'"{path}" 顶层必须是 JSON 对象 (实际类型: {type(data).__name__})',
                path=str(path),
            )
        return data

    def synchronize(self, aggregated: dict[str, str]) -> Path:
        """写入 dependencies 段，返回清单路径"""
        data = self.load()
        if data is None:
            logger.info(
                "清单不存在，新建: %s", self.manifest_path,
                extra={"path": self.manifest_path},
            )
            data = new_manifest(dict(aggregated))
        else:
            data["dependencies"] = dict(aggregated)

        try:
            write_atomic(self.manifest_path, dump_manifest(data))
        except OSError as e:
            raise ManifestIOError(
                f'无法写入 "{self.manifest_path}": {e}', path=str(self.manifest_path),
            ) from e

        logger.info(
            "已写入 %s (%d 个依赖)", self.manifest_path, len(aggregated),
            extra={"path": self.manifest_path, "assets": list(aggregated)},
        )
        return self.manifest_path
