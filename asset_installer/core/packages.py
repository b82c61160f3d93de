"""包元数据模型与加载

职责:
- Package: 依赖图中一个节点的只读视图（名称 + 元数据 extra）
- asset_declaration(): 从 extra 中提取资源声明，格式不合法时视为空
- PackageRegistry: 读取外部解析器的产出文件（根包 + 已安装包列表）

已安装包文件兼容两种结构:
  1. 顶层即列表:        [{"name": "a/b", "extra": {...}}, ...]
  2. 带 packages 字段:  {"packages": [...], "dev": true}
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from asset_installer.core.exceptions import ConfigError
from asset_installer.utils.file_io import load_document

logger = logging.getLogger(__name__)

ROOT_PACKAGE_NAME = "__root__"


@dataclass(frozen=True)
class Package:
    """单个包的元信息"""

    name: str
    extra: Mapping[str, Any] = field(default_factory=dict)


def asset_declaration(package: Package, key: str = "npm") -> dict[str, str]:
    """返回包声明的资源 {资源名: 版本约束}

    缺失或非字典的声明视为空；字典中键或值不是字符串的条目单独丢弃，
    其余条目照常参与汇总和冲突检查。从不抛异常。
    """
    raw = package.extra.get(key) if isinstance(package.extra, Mapping) else None
    if not raw:
        return {}
    if not isinstance(raw, Mapping):
        logger.warning(
            "包 %s 的 extra.%s 不是字典 (实际类型: %s)，忽略",
            package.name, key, type(raw).__name__,
            extra={"package": package.name},
        )
        return {}
    declared = {
        k: v for k, v in raw.items() if isinstance(k, str) and isinstance(v, str)
    }
    dropped = [k for k in raw if k not in declared]
    if dropped:
        logger.warning(
            "包 %s 的 extra.%s 中以下条目不是字符串，已忽略: %s",
            package.name, key, ", ".join(map(repr, dropped)),
            extra={"package": package.name, "assets": [str(k) for k in dropped]},
        )
    return declared


def _to_package(entry: Any, default_name: str = "") -> Package | None:
    if not isinstance(entry, Mapping):
        return None
    name = entry.get("name") or default_name
    if not isinstance(name, str) or not name:
        return None
    extra = entry.get("extra")
    return Package(name=name, extra=extra if isinstance(extra, Mapping) else {})


class PackageRegistry:
    """包注册表: 从解析器产出文件加载根包和已安装包"""

    def __init__(self, root_path: Path, installed_path: Path) -> None:
        self.root_path = root_path
        self.installed_path = installed_path

    def _read(self, path: Path) -> Any:
        try:
            return load_document(path)
        except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
            raise ConfigError(f"无法解析包元数据文件 {path}: {e}") from e
        except (OSError, ValueError) as e:
            raise ConfigError(f"无法读取包元数据文件 {path}: {e}") from e

    def load_root(self) -> Package:
        """加载根包，文件不存在时返回空元数据的根包"""
        data = self._read(self.root_path)
        if data is None:
            logger.warning(
                "根包文件不存在: %s", self.root_path, extra={"path": self.root_path},
            )
            return Package(name=ROOT_PACKAGE_NAME)
        if not isinstance(data, Mapping):
            raise ConfigError(f"根包文件顶层必须是对象: {self.root_path}")
        root = _to_package(data, default_name=ROOT_PACKAGE_NAME)
        if root is None:
            # name 字段非字符串时仍按根包处理
            root = _to_package({**data, "name": ROOT_PACKAGE_NAME})
        return root  # type: ignore[return-value]

    def load_installed(self) -> list[Package]:
        """按文件中的顺序加载已安装包，不做排序"""
        data = self._read(self.installed_path)
        if data is None:
            logger.warning(
                "已安装包文件不存在: %s", self.installed_path,
                extra={"path": self.installed_path},
            )
            return []

        if isinstance(data, Mapping):
            entries = data.get("packages") or []
        else:
            entries = data
        if not isinstance(entries, list):
            raise ConfigError(f"已安装包列表格式无效: {self.installed_path}")

        packages: list[Package] = []
        for entry in entries:
            pkg = _to_package(entry)
            if pkg is None:
                logger.debug("跳过无名称的包条目: %r", entry)
                continue
            packages.append(pkg)

        logger.info("已加载 %d 个已安装包", len(packages))
        return packages
