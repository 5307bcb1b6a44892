"""安装后冒烟测试

在隔离的临时目录中执行配方声明的断言命令，逐字比较原始输出。
首个不一致即抛出 SmokeTestError（附 unified diff），不重试。
"""

from __future__ import annotations

import difflib
import logging
import os
import tempfile
from pathlib import Path

from formulakit.core.exceptions import SmokeTestError
from formulakit.core.models import (
    AssertionResult,
    PackageFormula,
    SmokeTestResult,
    TestAssertion,
    expand,
)
from formulakit.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


def output_diff(expected: str, actual: str, label: str = "output") -> str:
    """期望/实际输出的 unified diff（保留行尾，空白差异可见）"""
    lines = difflib.unified_diff(
        expected.splitlines(keepends=True),
        actual.splitlines(keepends=True),
        fromfile=f"{label} (expected)",
        tofile=f"{label} (actual)",
    )
    return "".join(lines) or f"expected {expected!r}, got {actual!r}\n"


class SmokeTester:
    """冒烟测试执行器"""

    def __init__(self, executor: CommandExecutor, timeout: int | None = None) -> None:
        self.executor = executor
        self.timeout = timeout

    def run(
        self,
        formula: PackageFormula,
        prefix: Path,
        testpath: Path | None = None,
    ) -> SmokeTestResult:
        """执行全部断言；未指定 testpath 时使用用完即删的临时目录"""
        if testpath is not None:
            testpath.mkdir(parents=True, exist_ok=True)
            return self._run_in(formula, prefix, testpath)
        with tempfile.TemporaryDirectory(prefix=f"{formula.name}-test-") as tmp:
            return self._run_in(formula, prefix, Path(tmp))

    def _run_in(
        self, formula: PackageFormula, prefix: Path, testpath: Path,
    ) -> SmokeTestResult:
        values = formula.placeholders(prefix=prefix, testpath=testpath)
        env = {
            **os.environ,
            **{k: expand(v, values) for k, v in formula.test_env.items()},
        }
        result = SmokeTestResult(formula=formula.name, testpath=str(testpath))

        for assertion in formula.test_assertions:
            outcome = self._check(assertion, values, env, testpath)
            result.results.append(outcome)
            if not outcome.passed:
                logger.error("断言失败 [%s]:\n%s", outcome.name, outcome.diff)
                raise SmokeTestError(
                    f"冒烟测试失败: {formula.name} [{outcome.name}]",
                    diff=outcome.diff, result=result,
                )
            logger.info("  断言通过 [%s]", outcome.name)

        logger.info("冒烟测试通过: %s (%d 项)", formula.name, result.passed)
        return result

    def _check(
        self,
        assertion: TestAssertion,
        values: dict[str, str],
        env: dict[str, str],
        testpath: Path,
    ) -> AssertionResult:
        cmd = [expand(a, values) for a in assertion.command]
        expected = expand(assertion.expected, values)
        r = self.executor.execute(
            cmd, cwd=str(testpath), env=env,
            timeout=self.timeout, merge_stderr=assertion.merge_stderr,
        )
        diff = ""
        if r.returncode != assertion.exit_status:
            diff = (
                f"exit status: expected {assertion.exit_status}, got {r.returncode}\n"
                + output_diff(expected, r.stdout, assertion.name)
            )
        elif r.stdout != expected:
            diff = output_diff(expected, r.stdout, assertion.name)
        return AssertionResult(
            name=assertion.name, command=cmd, expected=expected,
            actual=r.stdout, returncode=r.returncode,
            passed=not diff, diff=diff,
        )
