"""子进程执行工具: 流式输出 + 超时

通过 CommandExecutor 协议抽象子进程执行，OutputSink 协议抽象输出目标，
测试时注入假实现即可，无需 patch subprocess。

约定:
  - 执行前先把命令行回显到 sink.write
  - stdout 数据块原样转发到 sink.write，stderr 转发到 sink.write_error
  - 非零退出码是正常返回值，由调用方决定是否致命
  - 超时截止时间同时约束进程退出和输出管道关闭；超时后 kill 整个进程组，
    返回 TIMEOUT_EXIT_CODE
"""

from __future__ import annotations

import codecs
import logging
import os
import signal
import subprocess
import threading
import time
from collections.abc import Callable, Sequence
from typing import IO, Protocol

import click

logger = logging.getLogger(__name__)

# 超时标记，位于正常退出码 (0..255) 与信号退出码 (负的信号值) 之外
TIMEOUT_EXIT_CODE = -1000
COMMAND_NOT_FOUND_EXIT_CODE = 127

# kill 后等待读线程收尾的上限
_READER_JOIN_TIMEOUT = 5.0

_POSIX = os.name == "posix"


# =========================================================================
# 输出协议
# =========================================================================

class OutputSink(Protocol):
    """子进程输出目标，两个方法分别对应 stdout / stderr"""

    def write(self, data: str) -> None:
        ...

    def write_error(self, data: str) -> None:
        ...


class ConsoleSink:
    """默认实现：经 click.echo 写到当前终端，不追加换行"""

    def write(self, data: str) -> None:
        click.echo(data, nl=False)

    def write_error(self, data: str) -> None:
        click.echo(data, nl=False, err=True)


# =========================================================================
# 执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议: 返回退出码，不因非零退出码抛异常"""

    def run(
        self,
        cmd: Sequence[str],
        *,
        timeout: float | None = None,
        cwd: str = ".",
    ) -> int:
        ...


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


class ProcessExecutor:
    """本地子进程执行器（默认实现）"""

    def __init__(self, sink: OutputSink, chunk_size: int = 4096) -> None:
        self.sink = sink
        self.chunk_size = chunk_size
        self._lock = threading.Lock()

    def run(
        self,
        cmd: Sequence[str],
        *,
        timeout: float | None = None,
        cwd: str = ".",
    ) -> int:
        """执行命令并阻塞到结束，返回退出码

        参数:
            cmd: 命令参数列表（不经过 shell）
            timeout: 超时秒数，None 或 0 表示不限制
            cwd: 工作目录

        子进程退出但孙进程仍占用输出管道时，同样按超时处理。
        """
        args = list(cmd)
        self.sink.write(" ".join(args) + "\n")
        logger.debug("执行命令: %s (cwd=%s, timeout=%s)", args, cwd, timeout)

        deadline = time.monotonic() + timeout if timeout else None
        try:
            # 独立会话，超时时可以连同 npm 的生命周期脚本一起终止
            proc = subprocess.Popen(
                args, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                cwd=cwd, start_new_session=_POSIX,
            )
        except OSError as e:
            logger.error("无法启动命令 %s: %s", args[0], e, extra={"command": args})
            self.sink.write_error(f"无法启动命令 {args[0]}: {e}\n")
            return COMMAND_NOT_FOUND_EXIT_CODE

        readers = [
            threading.Thread(
                target=self._pump, args=(proc.stdout, self.sink.write), daemon=True,
            ),
            threading.Thread(
                target=self._pump, args=(proc.stderr, self.sink.write_error), daemon=True,
            ),
        ]
        for t in readers:
            t.start()

        try:
            timed_out = self._wait(proc, readers, deadline)
        except KeyboardInterrupt:
            self._kill(proc)
            raise

        if timed_out:
            logger.warning(
                "命令超时 (%ss)，强制终止进程组: %s", timeout, " ".join(args),
                extra={"command": args},
            )
            self._kill(proc)
            for t in readers:
                t.join(timeout=_READER_JOIN_TIMEOUT)
            return TIMEOUT_EXIT_CODE
        return proc.returncode

    @staticmethod
    def _wait(
        proc: subprocess.Popen[bytes],
        readers: list[threading.Thread],
        deadline: float | None,
    ) -> bool:
        """在同一截止时间内等待进程退出和管道关闭，返回是否超时"""
        try:
            proc.wait(timeout=_remaining(deadline))
        except subprocess.TimeoutExpired:
            return True
        for t in readers:
            t.join(timeout=_remaining(deadline))
        return any(t.is_alive() for t in readers)

    @staticmethod
    def _kill(proc: subprocess.Popen[bytes]) -> None:
        if _POSIX:
            try:
                # 会话首进程的 pid 即进程组 id
                os.killpg(proc.pid, signal.SIGKILL)
            except ProcessLookupError:
                pass
        else:
            proc.kill()
        proc.wait()

    def _pump(self, stream: IO[bytes], write: Callable[[str], None]) -> None:
        """逐块读取管道并转发，按 UTF-8 增量解码，避免截断多字节字符"""
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        with stream:
            for chunk in iter(lambda: stream.read1(self.chunk_size), b""):
                text = decoder.decode(chunk)
                if text:
                    with self._lock:
                        write(text)
            tail = decoder.decode(b"", final=True)
            if tail:
                with self._lock:
                    write(tail)
