"""YAML 文件统一读写工具

统一 encoding="utf-8"、空值保护、大小限制、原子写入。
配方描述文件与全局配置均经由此模块读取。
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 配方文件通常只有几 KB，1MB 足够且可防止误读大文件
MAX_YAML_SIZE = 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """原子写入：同目录临时文件 + os.replace，失败时清理临时文件"""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, str(path))
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def load_yaml(path: str | Path) -> dict[str, Any]:
    """安全读取 YAML 文件

    返回:
        dict: 解析结果。文件不存在、为空或顶层不是映射时返回空字典

    异常:
        yaml.YAMLError: YAML 格式错误
        ValueError: 文件超过 MAX_YAML_SIZE
    """
    p = Path(path)
    if not p.exists():
        return {}

    file_size = p.stat().st_size
    if file_size > MAX_YAML_SIZE:
        raise ValueError(
            f"YAML 文件过大: {p} ({file_size} 字节), "
            f"超过限制 {MAX_YAML_SIZE} 字节"
        )

    try:
        with open(p, encoding="utf-8") as f:
            result = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("解析 YAML 文件失败: %s, 错误: %s", path, e)
        raise

    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，返回空字典",
            path, type(result).__name__,
        )
        return {}
    return result

