"""安装编排器 - 协调 6 步流水线

resolve → fetch → build → completions → test → receipt，严格顺序、单次执行；
任一步骤抛出异常即中止，teardown 在 finally 中执行。
"""

from __future__ import annotations

from pathlib import Path

from formulakit.services.container import ServiceContainer
from formulakit.services.orchestrator.models import InstallPlan, InstallReport
from formulakit.services.orchestrator.steps import InstallSteps


class Orchestrator:
    """安装编排器"""

    def __init__(self, container: ServiceContainer | None = None) -> None:
        self.c = container or ServiceContainer()
        self.steps = InstallSteps(self.c)

    def default_prefix(self, name: str, version: str) -> Path:
        return Path(self.c.config.prefix_root) / name / version

    def run(self, plan: InstallPlan) -> InstallReport:
        """执行安装流水线"""
        formula = self.c.loader.load(plan.formula)
        prefix = Path(plan.prefix) if plan.prefix else self.default_prefix(
            formula.name, formula.version,
        )
        report = InstallReport(plan=plan, formula=formula, prefix=prefix)

        try:
            self.steps.resolve(plan, report)
            self.steps.fetch(plan, report)
            self.steps.build(plan, report)
            self.steps.completions(plan, report)
            self.steps.test(plan, report)
            self.steps.receipt(plan, report)
        finally:
            self.steps.teardown(plan, report)

        return report
