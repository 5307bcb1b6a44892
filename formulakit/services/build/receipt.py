"""安装回执

构建、补全与冒烟测试全部通过后在前缀目录写入 INSTALL_RECEIPT.json，记录版本与源码包校验和。
任一步骤失败都不会留下回执，下次安装从头重来。
回执与配方一致时重复安装直接跳过。
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path

from formulakit.core.models import PackageFormula
from formulakit.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

RECEIPT_NAME = "INSTALL_RECEIPT.json"


@dataclass
class InstallReceipt:
    name: str
    version: str
    sha256: str
    installed_at: str = ""

    @classmethod
    def for_formula(cls, formula: PackageFormula) -> InstallReceipt:
        return cls(
            name=formula.name,
            version=formula.version,
            sha256=formula.sha256,
            installed_at=datetime.now(timezone.utc).isoformat(),
        )

    @classmethod
    def read(cls, prefix: Path) -> InstallReceipt | None:
        """读取回执，不存在或内容损坏时返回 None"""
        path = prefix / RECEIPT_NAME
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return cls(
                name=data["name"], version=data["version"],
                sha256=data["sha256"], installed_at=data.get("installed_at", ""),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("安装回执无法解析，忽略: %s (%s)", path, e)
            return None

    def write(self, prefix: Path) -> Path:
        path = prefix / RECEIPT_NAME
        atomic_write(path, json.dumps(asdict(self), indent=2))
        return path

    def matches(self, formula: PackageFormula) -> bool:
        return (
            self.name == formula.name
            and self.version == formula.version
            and self.sha256 == formula.sha256
        )
