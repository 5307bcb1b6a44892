"""编排器数据模型

数据类:
- InstallPlan: 安装计划
- InstallReport: 安装报告（各步骤产出 + 步骤记录）
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from formulakit.core.models import (
    BuildResult,
    Dependency,
    PackageFormula,
    SmokeTestResult,
)


@dataclass
class InstallPlan:
    """安装计划 — 声明本次安装的配方、平台与选项"""

    formula: str
    platform: str = ""           # 为空时识别宿主平台
    prefix: str = ""             # 为空时使用 <prefix_root>/<name>/<version>
    force: bool = False          # 忽略安装回执，强制重新构建
    run_tests: bool = True
    check_deps: bool | None = None  # None 表示沿用配置
    keep_work_dir: bool = False


@dataclass
class InstallReport:
    """安装执行报告"""

    plan: InstallPlan
    formula: PackageFormula
    prefix: Path
    platform: str = ""
    dependencies: list[Dependency] = field(default_factory=list)
    archive: Path | None = None
    work_dir: Path | None = None
    source_dir: Path | None = None
    build: BuildResult | None = None
    completions: dict[str, Path] = field(default_factory=dict)
    smoke: SmokeTestResult | None = None
    steps: list[dict[str, Any]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        if self.build is None:
            return False
        return self.smoke is None or self.smoke.success
