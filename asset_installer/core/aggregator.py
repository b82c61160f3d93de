"""资源声明汇总

把根包和全部已安装包的资源声明合并为一份按键排序的映射。

合并规则:
  1. 按解析器给出的顺序遍历已安装包，同名包只处理一次
  2. 非根包之间出现同名资源，且根包未声明该资源 → ConflictError
  3. 非冲突键后写者覆盖前者
  4. 根包声明最后合并，无条件覆盖（根包是解决冲突的手段，自身不参与冲突检查）
  5. 结果按键的码点顺序排序
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from asset_installer.core.exceptions import ConflictError
from asset_installer.core.packages import Package, asset_declaration

logger = logging.getLogger(__name__)


class AssetAggregator:
    """资源声明汇总器（无状态，可重复调用）"""

    def __init__(self, asset_key: str = "npm") -> None:
        self.asset_key = asset_key

    def aggregate(
        self, root_package: Package, packages: Iterable[Package],
    ) -> dict[str, str]:
        root_assets = asset_declaration(root_package, self.asset_key)

        assets: dict[str, str] = {}
        seen: set[str] = set()
        for package in packages:
            if package.name in seen:
                logger.debug("包 %s 已处理，跳过重复条目", package.name)
                continue
            seen.add(package.name)

            declared = asset_declaration(package, self.asset_key)
            if not declared:
                continue

            conflicts = [
                name for name in declared
                if name in assets and name not in root_assets
            ]
            if conflicts:
                logger.error(
                    "包 %s 的资源与已声明资源冲突: %s",
                    package.name, ", ".join(conflicts),
                    extra={"package": package.name, "assets": conflicts},
                )
                raise ConflictError(conflicts)

            logger.debug(
                "合并 %s: %d 个资源", package.name, len(declared),
                extra={"package": package.name, "assets": sorted(declared)},
            )
            assets.update(declared)

        assets.update(root_assets)
        logger.info(
            "资源汇总完成: %d 个资源 (根包覆盖 %d 个)", len(assets), len(root_assets),
        )
        return dict(sorted(assets.items()))
