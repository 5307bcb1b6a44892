"""编排器步骤实现 - 6 步流水线

步骤顺序:
1. resolve - 解析平台依赖并探测构建工具
2. fetch - 下载、校验、解压源码包
3. build - 执行安装步骤
4. completions - 生成 shell 补全脚本
5. test - 冒烟测试
6. receipt - 全部通过后写入安装回执

每一步失败都直接抛出异常，中止后续步骤；teardown 由协调器在 finally 中执行。
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from formulakit.services.container import ServiceContainer
    from formulakit.services.orchestrator.models import InstallPlan, InstallReport

from formulakit.core.formula.resolver import (
    check_available,
    detect_platform,
    resolve_dependencies,
)
from formulakit.services.build.receipt import InstallReceipt

logger = logging.getLogger(__name__)


class InstallSteps:
    """安装步骤集合"""

    def __init__(self, container: ServiceContainer) -> None:
        self.c = container

    def resolve(self, plan: InstallPlan, report: InstallReport) -> None:
        """步骤1: 合并无条件依赖与平台依赖，按需探测"""
        platform = plan.platform or detect_platform()
        deps = resolve_dependencies(report.formula, platform)
        report.platform = platform
        report.dependencies = deps

        check = self.c.config.check_deps if plan.check_deps is None else plan.check_deps
        probed = check_available(deps) if check else []
        report.steps.append({
            "step": "resolve", "status": "done", "platform": platform,
            "dependencies": [d.name for d in deps],
            "probed": [d.probe for d in probed],
        })
        logger.info(
            "[Step 1] 依赖解析完成: %s (%d 项)", platform, len(deps),
            extra={"formula": report.formula.name, "step": "resolve"},
        )

    def fetch(self, plan: InstallPlan, report: InstallReport) -> None:
        """步骤2: 下载并校验源码包，解压到本次安装独占的工作目录"""
        formula = report.formula
        receipt = InstallReceipt.read(report.prefix)
        if receipt is not None and receipt.matches(formula) and not plan.force:
            report.steps.append({
                "step": "fetch", "status": "skipped", "detail": "已安装",
            })
            logger.info("[Step 2] 已安装，跳过拉取: %s@%s", formula.name, formula.version)
            return

        archive = self.c.fetcher.fetch(formula)
        work_root = Path(self.c.config.work_dir)
        work_root.mkdir(parents=True, exist_ok=True)
        work_dir = Path(tempfile.mkdtemp(
            prefix=f"{formula.name}-{formula.version}-", dir=str(work_root),
        ))
        report.archive = archive
        report.work_dir = work_dir
        report.source_dir = self.c.fetcher.extract(archive, work_dir)
        report.steps.append({
            "step": "fetch", "status": "done",
            "archive": str(archive), "source_dir": str(report.source_dir),
        })
        logger.info(
            "[Step 2] 源码就绪: %s", report.source_dir,
            extra={"formula": formula.name, "step": "fetch"},
        )

    def build(self, plan: InstallPlan, report: InstallReport) -> None:
        """步骤3: 执行安装步骤（回执一致时为空操作）"""
        source_dir = report.source_dir or report.prefix
        result = self.c.builder.install(
            report.formula, source_dir, report.prefix, force=plan.force,
        )
        report.build = result
        report.steps.append({
            "step": "build", "status": result.status,
            "prefix": result.prefix, "duration": round(result.duration, 3),
        })
        logger.info(
            "[Step 3] 构建%s: %s", "跳过" if result.cached else "完成", result.prefix,
            extra={"formula": report.formula.name, "step": "build"},
        )

    def completions(self, plan: InstallPlan, report: InstallReport) -> None:
        """步骤4: 生成 shell 补全脚本"""
        if report.formula.completions is None or (report.build and report.build.cached):
            report.steps.append({"step": "completions", "status": "skipped"})
            return
        written = self.c.completions.generate(report.formula, report.prefix)
        report.completions = written
        report.steps.append({
            "step": "completions", "status": "done",
            "files": {shell: str(p) for shell, p in written.items()},
        })
        logger.info(
            "[Step 4] 补全脚本已生成: %s", ", ".join(written),
            extra={"formula": report.formula.name, "step": "completions"},
        )

    def test(self, plan: InstallPlan, report: InstallReport) -> None:
        """步骤5: 冒烟测试"""
        if not plan.run_tests or not report.formula.test_assertions:
            report.steps.append({"step": "test", "status": "skipped"})
            return
        result = self.c.tester.run(report.formula, report.prefix)
        report.smoke = result
        report.steps.append({
            "step": "test", "status": "done", "passed": result.passed,
        })
        logger.info(
            "[Step 5] 冒烟测试通过: %d 项", result.passed,
            extra={"formula": report.formula.name, "step": "test"},
        )

    def receipt(self, plan: InstallPlan, report: InstallReport) -> None:
        """步骤6: 写入安装回执，此后同版本重复安装为空操作"""
        if report.build is not None and report.build.cached:
            report.steps.append({"step": "receipt", "status": "skipped"})
            return
        path = InstallReceipt.for_formula(report.formula).write(report.prefix)
        report.steps.append({"step": "receipt", "status": "done", "path": str(path)})
        logger.info(
            "[Step 6] 安装回执已写入: %s", path,
            extra={"formula": report.formula.name, "step": "receipt"},
        )

    def teardown(self, plan: InstallPlan, report: InstallReport) -> None:
        """清理本次安装的工作目录"""
        if report.work_dir is not None and not plan.keep_work_dir:
            shutil.rmtree(report.work_dir, ignore_errors=True)
        report.steps.append({"step": "teardown", "status": "done"})
