"""formulakit - 声明式软件包配方与安装流水线"""

__version__ = "0.4.1"
