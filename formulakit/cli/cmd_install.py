"""CLI — 安装命令: fetch, install, test"""

from __future__ import annotations

from pathlib import Path

import click

from formulakit.cli import _svc, handle_errors
from formulakit.core.models import SUPPORTED_PLATFORMS
from formulakit.services.orchestrator import InstallPlan, Orchestrator


def register(group: click.Group) -> None:
    group.add_command(fetch)
    group.add_command(install)
    group.add_command(test)


@click.command()
@click.argument("name")
@handle_errors
def fetch(name: str) -> None:
    """下载并校验源码包"""
    svc = _svc()
    path = svc.fetcher.fetch(svc.loader.load(name))
    click.echo(f"就绪: {name} -> {path}")


@click.command()
@click.argument("name")
@click.option("--prefix", default="", help="安装前缀（默认 <prefix_root>/<name>/<version>）")
@click.option("--platform", type=click.Choice(list(SUPPORTED_PLATFORMS)), default=None)
@click.option("--force", is_flag=True, help="忽略安装回执，强制重新构建")
@click.option("--no-test", is_flag=True, help="跳过冒烟测试")
@click.option("--skip-deps-check", is_flag=True, help="不探测构建工具")
@click.option("--keep-work-dir", is_flag=True, help="保留解压/构建工作目录")
@handle_errors
def install(
    name: str, prefix: str, platform: str | None, force: bool,
    no_test: bool, skip_deps_check: bool, keep_work_dir: bool,
) -> None:
    """执行完整安装流水线: resolve → fetch → build → completions → test → receipt"""
    plan = InstallPlan(
        formula=name, platform=platform or "", prefix=prefix,
        force=force, run_tests=not no_test,
        check_deps=False if skip_deps_check else None,
        keep_work_dir=keep_work_dir,
    )
    report = Orchestrator(_svc()).run(plan)
    for step in report.steps:
        click.echo(f"  [{step['status']:8s}] {step['step']}")
    if report.build is not None and report.build.cached:
        click.echo(f"已安装: {name} {report.formula.version} -> {report.prefix}")
    else:
        click.echo(f"安装完成: {name} {report.formula.version} -> {report.prefix}")


@click.command()
@click.argument("name")
@click.option("--prefix", default="", help="安装前缀（默认 <prefix_root>/<name>/<version>）")
@handle_errors
def test(name: str, prefix: str) -> None:
    """对已安装的配方执行冒烟测试"""
    svc = _svc()
    formula = svc.loader.load(name)
    root = Path(prefix) if prefix else (
        Path(svc.config.prefix_root) / formula.name / formula.version
    )
    result = svc.tester.run(formula, root)
    for r in result.results:
        click.echo(f"  [OK] {r.name}")
    click.echo(f"冒烟测试通过: {name} ({result.passed} 项)")
