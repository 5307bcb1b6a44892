"""构建安装模块

拆分说明:
- receipt.py: 安装回执（幂等判断）
- executor.py: 安装步骤执行
"""

from formulakit.services.build.executor import FormulaBuilder, std_cargo_args
from formulakit.services.build.receipt import InstallReceipt

__all__ = ["FormulaBuilder", "InstallReceipt", "std_cargo_args"]
