"""集中配置管理

提供统一的配置入口，支持从 YAML 文件加载 + 编程式覆盖（CLI 选项）。
所有相对路径都以 project_dir 为基准解析。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from asset_installer.core.exceptions import ConfigError
from asset_installer.utils.file_io import load_document

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "asset-installer.yml"


@dataclass
class Config:
    """资源安装器配置"""

    # 目录 / 文件
    project_dir: str = "."
    manifest_file: str = "package.json"
    lock_file: str = "package-lock.json"
    root_file: str = "composer.json"
    installed_file: str = "vendor/composer/installed.json"

    # 资源声明所在的元数据键（extra.npm）
    asset_key: str = "npm"

    # 执行
    tool: str = "npm"
    process_timeout: int = 60
    verbose: bool = False

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(
        cls, path: str | Path = DEFAULT_CONFIG_FILE, *, required: bool = False,
    ) -> Config:
        """从 YAML 文件加载配置

        文件不存在时: required=False 返回默认配置，required=True 抛 ConfigError
        （用户用 --config 显式指定的路径必须存在）。
        """
        if required and not Path(path).is_file():
            raise ConfigError(f"配置文件不存在: {path}")
        try:
            data = load_document(path)
        except (yaml.YAMLError, OSError, ValueError) as e:
            raise ConfigError(f"无法加载配置文件 {path}: {e}") from e
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(
                f"配置文件顶层必须是映射: {path} (实际类型: {type(data).__name__})"
            )
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        cfg.validate()
        logger.info("配置已加载: %s", path, extra={"path": path})
        return cfg

    def validate(self) -> None:
        if not isinstance(self.process_timeout, int) or self.process_timeout < 0:
            raise ConfigError(
                f"process_timeout 必须是非负整数，实际: {self.process_timeout!r}"
            )
        if not self.tool:
            raise ConfigError("tool 不能为空")
        if not self.asset_key:
            raise ConfigError("asset_key 不能为空")

    def override(self, **kwargs: Any) -> Config:
        """返回应用了非 None 覆盖项的新配置"""
        changes = {k: v for k, v in kwargs.items() if v is not None}
        cfg = replace(self, **changes)
        cfg.validate()
        return cfg

    def path(self, name: str) -> Path:
        """解析相对 project_dir 的文件路径"""
        return Path(self.project_dir) / name

    @property
    def manifest_path(self) -> Path:
        return self.path(self.manifest_file)

    @property
    def lock_path(self) -> Path:
        return self.path(self.lock_file)

    @property
    def root_path(self) -> Path:
        return self.path(self.root_file)

    @property
    def installed_path(self) -> Path:
        return self.path(self.installed_file)

