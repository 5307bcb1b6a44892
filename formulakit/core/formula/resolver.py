"""依赖解析器

职责:
- 识别宿主平台（linux / macos）
- 合并无条件依赖与平台条件依赖，保持声明顺序
- 按 probe 在 PATH 中探测构建工具是否就绪
"""

from __future__ import annotations

import logging
import shutil
import sys
from collections.abc import Iterable

from formulakit.core.exceptions import DependencyResolutionError
from formulakit.core.models import (
    SUPPORTED_PLATFORMS,
    Dependency,
    DependencyStage,
    PackageFormula,
)

logger = logging.getLogger(__name__)


def detect_platform(sys_platform: str | None = None) -> str:
    """把 sys.platform 映射为配方平台标识"""
    value = sys_platform if sys_platform is not None else sys.platform
    if value.startswith("linux"):
        return "linux"
    if value == "darwin":
        return "macos"
    raise DependencyResolutionError(f"不支持的宿主平台: {value}")


def resolve_dependencies(
    formula: PackageFormula,
    platform: str,
    stages: Iterable[DependencyStage] | None = None,
) -> list[Dependency]:
    """解析指定平台的具体依赖列表

    无条件依赖在前，平台依赖在后；同名依赖保留首次出现者。
    stages 非空时只保留对应阶段的依赖。
    """
    if platform not in SUPPORTED_PLATFORMS:
        raise DependencyResolutionError(
            f"未知平台 '{platform}'，仅支持: {', '.join(SUPPORTED_PLATFORMS)}"
        )
    wanted = set(stages) if stages is not None else None

    resolved: list[Dependency] = []
    seen: set[str] = set()
    for dep in [*formula.dependencies, *formula.platform_dependencies.get(platform, [])]:
        if dep.name in seen:
            continue
        seen.add(dep.name)
        if wanted is not None and dep.stage not in wanted:
            continue
        resolved.append(dep)

    logger.info(
        "依赖解析完成: %s@%s [%s] -> %s",
        formula.name, formula.version, platform,
        ", ".join(d.name for d in resolved) or "(无)",
    )
    return resolved


def check_available(deps: Iterable[Dependency]) -> list[Dependency]:
    """探测声明了 probe 的依赖，缺失时抛 DependencyResolutionError

    返回实际被探测的依赖；未声明 probe 的依赖视为由宿主包管理器提供。
    """
    probed: list[Dependency] = []
    missing: list[str] = []
    for dep in deps:
        if not dep.probe:
            continue
        probed.append(dep)
        if shutil.which(dep.probe) is None:
            missing.append(f"{dep.name} ({dep.probe})")
    if missing:
        raise DependencyResolutionError(
            f"缺少依赖: {', '.join(missing)}", missing=missing,
        )
    return probed
