"""测试共享 fixture: 假执行器 / 假输出"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest


@dataclass
class RecordingSink:
    """按到达顺序记录 (stream, data)"""

    chunks: list[tuple[str, str]] = field(default_factory=list)

    def write(self, data: str) -> None:
        self.chunks.append(("out", data))

    def write_error(self, data: str) -> None:
        self.chunks.append(("err", data))

    def text(self, stream: str) -> str:
        return "".join(d for s, d in self.chunks if s == stream)


@dataclass
class FakeExecutor:
    """记录调用的假执行器，按预设返回退出码"""

    returncode: int = 0
    calls: list[dict] = field(default_factory=list)

    def run(
        self, cmd: Sequence[str], *, timeout: float | None = None, cwd: str = ".",
    ) -> int:
        self.calls.append({"cmd": list(cmd), "timeout": timeout, "cwd": cwd})
        return self.returncode


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()
