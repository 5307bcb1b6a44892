"""配方管理模块

拆分说明:
- loader.py: YAML 配方加载与校验
- resolver.py: 按平台解析依赖
- fetcher.py: 源码包下载、校验和验证、解压
"""

from formulakit.core.formula.fetcher import FormulaFetcher, sha256_file
from formulakit.core.formula.loader import FormulaLoader, infer_version
from formulakit.core.formula.resolver import (
    check_available,
    detect_platform,
    resolve_dependencies,
)

__all__ = [
    "FormulaFetcher",
    "FormulaLoader",
    "check_available",
    "detect_platform",
    "infer_version",
    "resolve_dependencies",
    "sha256_file",
]
