"""集中配置管理

配方目录、下载缓存、安装前缀、工作目录等统一在此定义。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from formulakit.core.exceptions import ConfigError
from formulakit.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/default.yml"

# 随包发布的配方目录，与当前工作目录无关
BUNDLED_FORMULA_DIR = str(Path(__file__).resolve().parent.parent / "formulas")


@dataclass
class Config:
    """框架全局配置"""

    # 目录
    formula_dir: str = BUNDLED_FORMULA_DIR
    cache_dir: str = "data/cache"
    prefix_root: str = "data/cellar"  # 安装前缀根目录: <prefix_root>/<name>/<version>
    work_dir: str = "data/work"       # 解压/构建临时目录，每次安装后清理

    # 执行
    command_timeout: int = 3600
    check_deps: bool = True

    # 自定义扩展
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_PATH) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError, OSError) as e:
            raise ConfigError(f"配置文件无效: {path}: {e}") from e
        if not data:
            return cls()
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置项无效: {path}: {e}") from e
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# 全局单例，由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
