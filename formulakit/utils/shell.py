"""子进程执行工具

通过 CommandExecutor 协议抽象子进程调用：构建、补全生成、冒烟测试共用同一执行器，
测试时注入假实现即可，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

from formulakit.core.exceptions import ExecutionError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）

    merge_stderr=True 时 stderr 已合并进 stdout，stderr 为空串。
    """

    returncode: int
    stdout: str
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandExecutor(Protocol):
    """命令执行器协议"""

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
        merge_stderr: bool = False,
    ) -> CommandResult:
        """执行命令并返回结果，不因非零退出码抛异常"""
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
        merge_stderr: bool = False,
    ) -> CommandResult:
        logger.debug("执行: %s (cwd=%s)", " ".join(cmd), cwd)
        try:
            r = subprocess.run(
                cmd, cwd=cwd, env=env, check=False, timeout=timeout,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
                text=True, encoding="utf-8", errors="replace",
            )
        except FileNotFoundError as e:
            raise ExecutionError(f"命令不存在: {cmd[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise ExecutionError(f"命令超时 ({timeout}s): {' '.join(cmd)}") from e
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout or "",
            stderr=r.stderr or "",
        )


def run_checked(
    executor: CommandExecutor,
    cmd: list[str],
    *,
    cwd: str = ".",
    env: dict[str, str] | None = None,
    timeout: int | None = None,
    label: str = "cmd",
) -> CommandResult:
    """执行命令，非零退出码抛 ExecutionError

    Args:
        executor: 命令执行器
        cmd: 参数列表（不经过 shell）
        label: 日志与错误信息中的步骤标签
    """
    logger.info("  %s: %s (cwd=%s)", label, " ".join(cmd), cwd)
    r = executor.execute(cmd, cwd=cwd, env=env, timeout=timeout)
    if not r.success:
        detail = (r.stderr or r.stdout)[:500]
        raise ExecutionError(f"{label}失败 (rc={r.returncode}): {detail}")
    return r
