"""服务容器 — 统一依赖注入

loader / fetcher / builder / completions / tester 均通过容器懒加载，
同一容器内共享同一个 CommandExecutor，测试时注入假执行器即可覆盖全部子进程调用。

用法:
    container = ServiceContainer()
    formula = container.loader.load("prs")

    # 显式注入配置与执行器
    container = ServiceContainer(config=Config.from_file("my.yml"), executor=fake)
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from formulakit.utils.shell import CommandExecutor, LocalExecutor

if TYPE_CHECKING:
    from formulakit.core.config import Config
    from formulakit.core.formula.fetcher import FormulaFetcher
    from formulakit.core.formula.loader import FormulaLoader
    from formulakit.services.build.executor import FormulaBuilder
    from formulakit.services.completions import CompletionGenerator
    from formulakit.services.smoke_test import SmokeTester

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(
        self,
        config: Config | None = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from formulakit.core.config import get_config
            config = get_config()
        self._config = config
        self._executor: CommandExecutor = executor or LocalExecutor()

    @property
    def config(self) -> Config:
        return self._config

    @property
    def executor(self) -> CommandExecutor:
        return self._executor

    @property
    def loader(self) -> FormulaLoader:
        if "loader" not in self._instances:
            from formulakit.core.formula.loader import FormulaLoader
            self._instances["loader"] = FormulaLoader(self._config.formula_dir)
        return self._instances["loader"]  # type: ignore[return-value]

    @property
    def fetcher(self) -> FormulaFetcher:
        if "fetcher" not in self._instances:
            from formulakit.core.formula.fetcher import FormulaFetcher
            self._instances["fetcher"] = FormulaFetcher(self._config.cache_dir)
        return self._instances["fetcher"]  # type: ignore[return-value]

    @property
    def builder(self) -> FormulaBuilder:
        if "builder" not in self._instances:
            from formulakit.services.build.executor import FormulaBuilder
            self._instances["builder"] = FormulaBuilder(
                self._executor, timeout=self._config.command_timeout,
            )
        return self._instances["builder"]  # type: ignore[return-value]

    @property
    def completions(self) -> CompletionGenerator:
        if "completions" not in self._instances:
            from formulakit.services.completions import CompletionGenerator
            self._instances["completions"] = CompletionGenerator(
                self._executor, timeout=self._config.command_timeout,
            )
        return self._instances["completions"]  # type: ignore[return-value]

    @property
    def tester(self) -> SmokeTester:
        if "tester" not in self._instances:
            from formulakit.services.smoke_test import SmokeTester
            self._instances["tester"] = SmokeTester(
                self._executor, timeout=self._config.command_timeout,
            )
        return self._instances["tester"]  # type: ignore[return-value]


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例（线程安全）"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def reset_container() -> None:
    """重置全局容器（仅用于测试）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
