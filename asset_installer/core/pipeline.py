"""资源安装管线

显式组合四个阶段，每个阶段的前置条件是上一阶段已落盘的副作用:

  AssetAggregator → ManifestSynchronizer → InstallOrchestrator → ProcessExecutor

汇总结果为空时整条管线不做任何写入，也不启动子进程。

用法:
    pipeline = AssetPipeline.from_config(cfg, executor=ProcessExecutor(ConsoleSink()))
    result = pipeline.install()
    result = pipeline.update()     # 先删除锁文件，再按无锁流程安装
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from asset_installer.core.aggregator import AssetAggregator
from asset_installer.core.installer import InstallOrchestrator, LockState
from asset_installer.core.manifest import ManifestSynchronizer
from asset_installer.core.packages import Package, PackageRegistry

if TYPE_CHECKING:
    from asset_installer.core.config import Config
    from asset_installer.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)

STATUS_SKIPPED = "skipped"
STATUS_INSTALLED = "installed"


@dataclass
class PipelineResult:
    """一次管线运行的结果"""

    status: str
    assets: dict[str, str] = field(default_factory=dict)
    lock_state: LockState | None = None
    command: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return self.status == STATUS_SKIPPED


class AssetPipeline:
    """资源安装管线: 所有外部依赖经构造参数注入"""

    def __init__(
        self,
        root_package: Package,
        packages: Sequence[Package],
        aggregator: AssetAggregator,
        synchronizer: ManifestSynchronizer,
        orchestrator: InstallOrchestrator,
        *,
        timeout: int | None = 60,
        verbose: bool = False,
    ) -> None:
        self.root_package = root_package
        self.packages = list(packages)
        self.aggregator = aggregator
        self.synchronizer = synchronizer
        self.orchestrator = orchestrator
        self.timeout = timeout
        self.verbose = verbose

    @classmethod
    def from_config(cls, cfg: Config, executor: CommandExecutor) -> AssetPipeline:
        """按配置组装管线，包元数据从解析器产出文件读取"""
        registry = PackageRegistry(cfg.root_path, cfg.installed_path)
        return cls(
            root_package=registry.load_root(),
            packages=registry.load_installed(),
            aggregator=AssetAggregator(asset_key=cfg.asset_key),
            synchronizer=ManifestSynchronizer(cfg.manifest_path),
            orchestrator=InstallOrchestrator(
                executor, cfg.lock_path, tool=cfg.tool, cwd=cfg.project_dir,
            ),
            timeout=cfg.process_timeout,
            verbose=cfg.verbose,
        )

    def collect(self) -> dict[str, str]:
        return self.aggregator.aggregate(self.root_package, self.packages)

    def install(self) -> PipelineResult:
        """汇总 → 同步清单 → 安装"""
        assets = self.collect()
        if not assets:
            logger.info("没有任何包声明前端资源，跳过")
            return PipelineResult(status=STATUS_SKIPPED)

        self.synchronizer.synchronize(assets)

        state = self.orchestrator.lock_state()
        cmd = self.orchestrator.install(
            timeout=self.timeout, verbose=self.verbose, state=state,
        )
        return PipelineResult(
            status=STATUS_INSTALLED, assets=assets, lock_state=state, command=cmd,
        )

    def update(self) -> PipelineResult:
        """删除锁文件后重新安装（必然走无锁流程）"""
        self.orchestrator.remove_lock()
        return self.install()
