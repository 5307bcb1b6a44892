"""核心数据模型

配方描述（PackageFormula 及其组成部分）与流水线各步骤的结果集中定义于此，
loader / resolver / fetcher / 各服务统一从这里导入。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

# =========================================================================
# 配方描述
# =========================================================================

SUPPORTED_PLATFORMS = ("linux", "macos")


class DependencyStage(str, Enum):
    """依赖作用阶段"""

    BUILD = "build"
    RUNTIME = "runtime"
    TEST = "test"


@dataclass(frozen=True)
class Dependency:
    """单个依赖声明

    probe 为可选的可执行文件名，非空时可在 PATH 中探测该依赖是否就绪。
    """

    name: str
    stage: DependencyStage = DependencyStage.RUNTIME
    probe: str = ""


@dataclass
class InstallStep:
    """安装步骤

    kind:
      - "system": 按 args 原样执行（占位符展开后）
      - "cargo_install": cargo install + std_cargo_args，path 为包子路径
    """

    kind: str
    args: list[str] = field(default_factory=list)
    path: str = "."


@dataclass
class CompletionSpec:
    """shell 补全脚本生成方式: <bin>/<executable> <args...> <shell>"""

    executable: str
    args: list[str] = field(default_factory=list)
    shells: list[str] = field(default_factory=lambda: ["bash", "zsh", "fish"])


@dataclass
class TestAssertion:
    """冒烟测试断言: 执行命令并与期望输出逐字比较"""

    __test__ = False  # 避免被 pytest 当作测试类收集

    name: str
    command: list[str]
    expected: str
    merge_stderr: bool = False
    exit_status: int = 0


@dataclass
class PackageFormula:
    """软件包配方"""

    name: str
    description: str
    homepage: str
    url: str
    sha256: str
    license: str
    version: str
    dependencies: list[Dependency] = field(default_factory=list)
    platform_dependencies: dict[str, list[Dependency]] = field(default_factory=dict)
    install_steps: list[InstallStep] = field(default_factory=list)
    completions: CompletionSpec | None = None
    test_env: dict[str, str] = field(default_factory=dict)
    test_assertions: list[TestAssertion] = field(default_factory=list)

    @property
    def archive_name(self) -> str:
        """源码包文件名（取 URL 最后一段）"""
        return self.url.rstrip("/").rsplit("/", 1)[-1]

    def placeholders(self, prefix: Path | str = "", testpath: Path | str = "") -> dict[str, str]:
        """命令/环境变量/期望输出中可用的占位符"""
        values = {"name": self.name, "version": self.version}
        if prefix:
            values["prefix"] = str(prefix)
            values["bin"] = str(Path(prefix) / "bin")
        if testpath:
            values["testpath"] = str(testpath)
        return values


def expand(template: str, values: dict[str, str]) -> str:
    """展开 {name} 形式占位符，未知占位符原样保留"""
    out = template
    for key, val in values.items():
        out = out.replace("{" + key + "}", val)
    return out


# =========================================================================
# 流水线结果
# =========================================================================


@dataclass
class BuildResult:
    """构建安装结果"""

    formula: str
    version: str
    prefix: str
    status: str  # "success", "cached"
    duration: float = 0.0
    message: str = ""
    cached: bool = False


@dataclass
class AssertionResult:
    """单条冒烟断言结果"""

    name: str
    command: list[str]
    expected: str
    actual: str
    returncode: int
    passed: bool
    diff: str = ""


@dataclass
class SmokeTestResult:
    """冒烟测试汇总"""

    formula: str
    testpath: str = ""
    results: list[AssertionResult] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.passed)

    @property
    def success(self) -> bool:
        return self.failed == 0
