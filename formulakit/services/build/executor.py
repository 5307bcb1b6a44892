"""安装步骤执行器

职责:
- 安装回执检查（同版本同校验和不重复构建；回执由编排器在全部步骤通过后写入）
- 占位符展开 + 按顺序执行安装步骤
- 任一步骤非零退出即整体失败，不重试
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path

from formulakit.core.exceptions import BuildError, ExecutionError
from formulakit.core.models import BuildResult, InstallStep, PackageFormula, expand
from formulakit.services.build.receipt import InstallReceipt
from formulakit.utils.shell import CommandExecutor, run_checked

logger = logging.getLogger(__name__)


def std_cargo_args(prefix: Path | str, path: str = ".") -> list[str]:
    """cargo install 标准参数: 锁定依赖版本并安装到前缀目录"""
    return ["--locked", "--root", str(prefix), "--path", path]


class FormulaBuilder:
    """构建安装执行器"""

    def __init__(self, executor: CommandExecutor, timeout: int | None = None) -> None:
        self.executor = executor
        self.timeout = timeout

    def command_for(
        self, step: InstallStep, formula: PackageFormula, prefix: Path,
    ) -> list[str]:
        """把安装步骤展开为最终参数列表"""
        values = formula.placeholders(prefix=prefix)
        if step.kind == "cargo_install":
            extra = [expand(a, values) for a in step.args]
            return ["cargo", "install", *extra, *std_cargo_args(prefix, step.path)]
        return [expand(a, values) for a in step.args]

    def install(
        self,
        formula: PackageFormula,
        source_dir: Path,
        prefix: Path,
        env: dict[str, str] | None = None,
        force: bool = False,
    ) -> BuildResult:
        """在 source_dir 中执行全部安装步骤，产物安装到 prefix"""
        receipt = InstallReceipt.read(prefix)
        if receipt is not None and receipt.matches(formula) and not force:
            logger.info("已安装，跳过构建: %s@%s -> %s", formula.name, formula.version, prefix)
            return BuildResult(
                formula=formula.name, version=formula.version, prefix=str(prefix),
                status="cached", message=f"回执已存在 ({receipt.installed_at})",
                cached=True,
            )

        prefix.mkdir(parents=True, exist_ok=True)
        run_env = {**os.environ, **(env or {})}
        start = time.monotonic()
        for idx, step in enumerate(formula.install_steps, 1):
            cmd = self.command_for(step, formula, prefix)
            try:
                run_checked(
                    self.executor, cmd, cwd=str(source_dir), env=run_env,
                    timeout=self.timeout, label=f"install[{idx}]",
                )
            except ExecutionError as e:
                logger.error("构建失败 %s: %s", formula.name, e)
                raise BuildError(f"构建失败 {formula.name}: {e}") from e

        duration = time.monotonic() - start
        logger.info("安装完成: %s@%s -> %s (%.1fs)", formula.name, formula.version, prefix, duration)
        return BuildResult(
            formula=formula.name, version=formula.version, prefix=str(prefix),
            status="success", duration=duration,
        )
