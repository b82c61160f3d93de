"""asset-installer 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
业务异常统一转换为 click.ClickException，退出码为 1。
"""

from pathlib import Path

import click

from asset_installer import __version__
from asset_installer.core.config import DEFAULT_CONFIG_FILE, Config
from asset_installer.utils.logger import setup_logging


def load_cli_config(
    config_path: str | None,
    project_dir: str | None,
    timeout: int | None,
    verbose: bool,
) -> Config:
    """加载配置文件并应用命令行覆盖项

    未指定 --config 时在项目目录下查找默认配置文件，找不到则用默认值；
    显式指定的 --config 文件必须存在。
    """
    required = config_path is not None
    if config_path is None:
        config_path = str(Path(project_dir or ".") / DEFAULT_CONFIG_FILE)
    cfg = Config.from_file(config_path, required=required)
    return cfg.override(
        project_dir=project_dir,
        process_timeout=timeout,
        verbose=True if verbose else None,
    )


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """asset-installer - 汇总依赖包声明的 npm 资源并安装"""
    setup_logging()


# 注册各领域子命令
from asset_installer.cli.cmd_assets import register as _reg_assets  # noqa: E402

_reg_assets(main)
