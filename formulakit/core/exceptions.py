"""统一异常体系

所有业务异常继承 FormulaError，替代散落的 ValueError / RuntimeError。
CLI 层据此输出带错误码的友好提示，流水线任一步骤抛出即中止后续步骤。
"""

from __future__ import annotations

from typing import Any


class FormulaError(Exception):
    """配方框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(FormulaError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(FormulaError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class DependencyError(FormulaError):
    """源码包下载失败"""

    code = "DEPENDENCY_ERROR"


class DependencyResolutionError(FormulaError):
    """依赖解析失败（平台不支持或构建工具缺失）"""

    code = "DEPENDENCY_RESOLUTION_FAILURE"

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class ChecksumMismatchError(FormulaError):
    """源码包摘要与配方声明的 sha256 不一致"""

    code = "CHECKSUM_MISMATCH"

    def __init__(self, path: str, expected: str, actual: str) -> None:
        super().__init__(f"校验和不匹配 {path}: 期望 {expected}, 实际 {actual}")
        self.path = path
        self.expected = expected
        self.actual = actual


class ExecutionError(FormulaError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"


class BuildError(FormulaError):
    """构建工具或补全脚本生成返回非零"""

    code = "BUILD_FAILURE"


class SmokeTestError(FormulaError):
    """冒烟测试断言失败，附带期望/实际差异"""

    code = "ASSERTION_FAILURE"

    def __init__(self, message: str, diff: str = "", result: Any = None) -> None:
        super().__init__(message)
        self.diff = diff
        self.result = result
