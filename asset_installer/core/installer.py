"""npm 安装编排

根据锁文件是否存在选择子命令（每次运行只判定一次）:

  NO_LOCK   npm install --no-audit --save-exact --no-optional --loglevel <lvl>
            生成锁文件并安装（锁文件由 npm 创建）
  HAS_LOCK  npm ci --loglevel <lvl>
            严格按锁文件安装，不修改锁文件

lvl: verbose 时为 info，否则为 error。
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from asset_installer.core.exceptions import InstallError, ManifestIOError
from asset_installer.utils.shell import TIMEOUT_EXIT_CODE, CommandExecutor

logger = logging.getLogger(__name__)


class LockState(str, Enum):
    NO_LOCK = "no_lock"
    HAS_LOCK = "has_lock"


def log_level(verbose: bool) -> str:
    return "info" if verbose else "error"


def install_command(tool: str, verbose: bool) -> list[str]:
    return [
        tool, "install", "--no-audit", "--save-exact", "--no-optional",
        "--loglevel", log_level(verbose),
    ]


def ci_command(tool: str, verbose: bool) -> list[str]:
    return [tool, "ci", "--loglevel", log_level(verbose)]


class InstallOrchestrator:
    """安装编排器"""

    def __init__(
        self,
        executor: CommandExecutor,
        lock_path: Path,
        *,
        tool: str = "npm",
        cwd: str = ".",
    ) -> None:
        self.executor = executor
        self.lock_path = lock_path
        self.tool = tool
        self.cwd = cwd

    def lock_state(self) -> LockState:
        if self.lock_path.exists():
            return LockState.HAS_LOCK
        return LockState.NO_LOCK

    def command_for(self, state: LockState, verbose: bool) -> list[str]:
        if state is LockState.HAS_LOCK:
            return ci_command(self.tool, verbose)
        return install_command(self.tool, verbose)

    def install(
        self, timeout: int | None = 60, verbose: bool = False,
        state: LockState | None = None,
    ) -> list[str]:
        """执行安装，返回实际执行的命令；非零退出码抛 InstallError

        state 由调用方预先判定时直接使用，否则在此检查锁文件。
        """
        if state is None:
            state = self.lock_state()
        cmd = self.command_for(state, verbose)
        logger.info(
            "锁文件状态: %s，执行: %s", state.value, " ".join(cmd),
            extra={"command": cmd},
        )

        rc = self.executor.run(cmd, timeout=timeout, cwd=self.cwd)
        if rc == 0:
            return cmd

        if state is LockState.HAS_LOCK:
            message = "npm 资源安装失败"
        else:
            message = f"生成 {self.lock_path.name} 失败"
        if rc == TIMEOUT_EXIT_CODE:
            message += f" (超时 {timeout}s)"
        else:
            message += f" (rc={rc})"
        raise InstallError(message, returncode=rc, command=cmd)

    def remove_lock(self) -> bool:
        """删除锁文件，不存在时忽略；返回是否实际删除"""
        try:
            self.lock_path.unlink()
        except FileNotFoundError:
            logger.debug("锁文件不存在，无需删除: %s", self.lock_path)
            return False
        except OSError as e:
            raise ManifestIOError(
                f'无法删除 "{self.lock_path}": {e}', path=str(self.lock_path),
            ) from e
        logger.info("已删除锁文件: %s", self.lock_path)
        return True
