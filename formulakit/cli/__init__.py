"""formulakit 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, TypeVar

import click

from formulakit import __version__
from formulakit.core.config import DEFAULT_CONFIG_PATH, init_config
from formulakit.core.exceptions import FormulaError, ValidationError
from formulakit.services.container import ServiceContainer, get_container, reset_container
from formulakit.utils.logger import setup_logging_from_env

F = TypeVar("F", bound=Callable[..., Any])


def _svc() -> ServiceContainer:
    """获取全局服务容器的快捷方式"""
    return get_container()


def handle_errors(func: F) -> F:
    """把 FormulaError 转为带错误码的 ClickException（非零退出）"""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except FormulaError as e:
            lines = [f"[{e.code}] {e}"]
            if isinstance(e, ValidationError):
                lines.extend(f"  - {d}" for d in e.details)
            diff = getattr(e, "diff", "")
            if diff:
                lines.append(diff.rstrip("\n"))
            raise click.ClickException("\n".join(lines)) from e

    return wrapper  # type: ignore[return-value]


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", default=DEFAULT_CONFIG_PATH, help="配置文件路径")
def main(config: str) -> None:
    """formulakit - 声明式软件包配方安装工具"""
    setup_logging_from_env()
    try:
        init_config(config)
    except FormulaError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e
    reset_container()


# 注册各领域子命令
from formulakit.cli.cmd_formula import register as _reg_formula  # noqa: E402
from formulakit.cli.cmd_install import register as _reg_install  # noqa: E402

_reg_formula(main)
_reg_install(main)
