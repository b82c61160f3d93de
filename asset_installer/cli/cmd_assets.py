"""CLI: 资源安装命令"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

import click

from asset_installer.cli import load_cli_config
from asset_installer.core.exceptions import AssetInstallerError
from asset_installer.core.pipeline import AssetPipeline, PipelineResult
from asset_installer.utils.shell import ConsoleSink, ProcessExecutor


def register(group: click.Group) -> None:
    group.add_command(install)
    group.add_command(update)
    group.add_command(show)


def _common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """install / update / show 共用的选项"""
    func = click.option("--verbose", "-v", is_flag=True, help="npm 使用 info 日志级别")(func)
    func = click.option(
        "--timeout", type=click.IntRange(min=0), default=None,
        help="npm 进程超时秒数（0 表示不限制，默认取配置）",
    )(func)
    func = click.option("--project-dir", default=None, help="项目根目录")(func)
    func = click.option("--config", "config_path", default=None, help="配置文件路径")(func)
    return func


def _handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except AssetInstallerError as e:
            raise click.ClickException(f"[{e.code}] {e}") from e
    return wrapper


def _build_pipeline(
    config_path: str | None, project_dir: str | None,
    timeout: int | None, verbose: bool,
) -> AssetPipeline:
    cfg = load_cli_config(config_path, project_dir, timeout, verbose)
    return AssetPipeline.from_config(cfg, executor=ProcessExecutor(ConsoleSink()))


def _report(result: PipelineResult) -> None:
    if result.skipped:
        click.echo("没有需要安装的 npm 资源。")
    else:
        click.echo(f"已安装 {len(result.assets)} 个 npm 资源。")


@click.command()
@_common_options
@_handle_errors
def install(
    config_path: str | None, project_dir: str | None,
    timeout: int | None, verbose: bool,
) -> None:
    """汇总资源、同步 package.json 并安装（有锁文件时使用 npm ci）"""
    pipeline = _build_pipeline(config_path, project_dir, timeout, verbose)
    _report(pipeline.install())


@click.command()
@_common_options
@_handle_errors
def update(
    config_path: str | None, project_dir: str | None,
    timeout: int | None, verbose: bool,
) -> None:
    """删除锁文件后重新汇总并安装"""
    pipeline = _build_pipeline(config_path, project_dir, timeout, verbose)
    _report(pipeline.update())


@click.command()
@_common_options
@_handle_errors
def show(
    config_path: str | None, project_dir: str | None,
    timeout: int | None, verbose: bool,
) -> None:
    """打印汇总后的资源（不写文件、不执行 npm）"""
    pipeline = _build_pipeline(config_path, project_dir, timeout, verbose)
    assets = pipeline.collect()
    if not assets:
        click.echo("没有任何包声明 npm 资源。")
        return
    for name, spec in assets.items():
        click.echo(f"  {name:30s} {spec}")
