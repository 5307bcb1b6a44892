"""shell 补全脚本生成

调用已安装的可执行文件输出补全脚本，按 shell 写入前缀目录的约定位置:

  bash → etc/bash_completion.d/<exe>
  zsh  → share/zsh/site-functions/_<exe>
  fish → share/fish/vendor_completions.d/<exe>.fish
"""

from __future__ import annotations

import logging
from pathlib import Path

from formulakit.core.exceptions import BuildError, ExecutionError, ValidationError
from formulakit.core.models import PackageFormula, expand
from formulakit.utils.shell import CommandExecutor
from formulakit.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

_SHELL_LAYOUT = {
    "bash": ("etc/bash_completion.d", "{exe}"),
    "zsh": ("share/zsh/site-functions", "_{exe}"),
    "fish": ("share/fish/vendor_completions.d", "{exe}.fish"),
}


def completion_path(prefix: Path, shell: str, exe: str) -> Path:
    if shell not in _SHELL_LAYOUT:
        raise ValidationError(
            f"不支持的 shell: {shell}，仅支持: {', '.join(_SHELL_LAYOUT)}"
        )
    subdir, pattern = _SHELL_LAYOUT[shell]
    return prefix / subdir / pattern.format(exe=exe)


class CompletionGenerator:
    """补全脚本生成器"""

    def __init__(self, executor: CommandExecutor, timeout: int | None = None) -> None:
        self.executor = executor
        self.timeout = timeout

    def generate(self, formula: PackageFormula, prefix: Path) -> dict[str, Path]:
        """为配方声明的每个 shell 生成补全脚本，返回 {shell: 文件路径}"""
        spec = formula.completions
        if spec is None:
            return {}

        values = formula.placeholders(prefix=prefix)
        exe = prefix / "bin" / spec.executable
        written: dict[str, Path] = {}
        for shell in spec.shells:
            dest = completion_path(prefix, shell, spec.executable)
            cmd = [str(exe), *(expand(a, values) for a in spec.args), shell]
            try:
                r = self.executor.execute(cmd, cwd=str(prefix), timeout=self.timeout)
            except ExecutionError as e:
                raise BuildError(f"补全脚本生成失败 ({shell}): {e}") from e
            if not r.success:
                raise BuildError(
                    f"补全脚本生成失败 ({shell}, rc={r.returncode}): {r.stderr[:500]}"
                )
            atomic_write(dest, r.stdout)
            written[shell] = dest
            logger.info("  补全脚本 [%s] -> %s", shell, dest)
        return written
