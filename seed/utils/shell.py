"""外部命令执行工具 - 统一子进程调用

git / go 等外部工具都通过 CommandExecutor 协议调用，
拉取器只依赖该协议，测试时可注入假执行器，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Protocol

from seed.core.exceptions import ExecutionError

logger = logging.getLogger(__name__)

# 与 shell 一致：命令不存在时返回 127
COMMAND_NOT_FOUND = 127


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议 - 抽象子进程调用

    实现此协议即可替换底层执行方式（本地进程、容器内执行等）。
    """

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """执行命令并返回结果"""
        ...


# =========================================================================
# 默认实现: 本地进程执行器
# =========================================================================

class LocalExecutor:
    """本地子进程执行器（默认实现），不设超时"""

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else cmd
        try:
            r = subprocess.run(
                args, capture_output=True, text=True,
                cwd=cwd, env=env, check=False,
            )
        except OSError as e:
            logger.debug("命令无法启动: %s (%s)", args[0], e)
            return CommandResult(
                returncode=COMMAND_NOT_FOUND, stdout="", stderr=str(e),
            )
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )


# =========================================================================
# 全局默认执行器（可替换）
# =========================================================================

_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor


def run_cmd(
    cmd: str | list[str], *, cwd: str = ".",
    env: dict[str, str] | None = None,
    label: str = "cmd",
    executor: CommandExecutor | None = None,
) -> CommandResult:
    """执行命令，失败抛 ExecutionError

    Args:
        cmd: 命令字符串或参数列表
        cwd: 工作目录
        env: 环境变量（不传则继承当前进程）
        label: 日志标签
        executor: 命令执行器，默认使用全局执行器
    """
    executor = executor or get_executor()
    shown = cmd if isinstance(cmd, str) else shlex.join(cmd)
    logger.debug("  %s: %s (cwd=%s)", label, shown, cwd)
    r = executor.execute(cmd, cwd=cwd, env=env)
    if not r.success:
        raise ExecutionError(
            f"{label}失败 (rc={r.returncode}): {r.stderr.strip()[:500]}"
        )
    return r
