"""安装编排模块

拆分说明:
- models.py: 安装计划与报告
- steps.py: 5 个步骤实现
- orchestrator.py: 协调器
"""

from formulakit.services.orchestrator.models import InstallPlan, InstallReport
from formulakit.services.orchestrator.orchestrator import Orchestrator
from formulakit.services.orchestrator.steps import InstallSteps

__all__ = [
    "InstallPlan",
    "InstallReport",
    "InstallSteps",
    "Orchestrator",
]
