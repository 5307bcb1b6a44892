"""CLI — 配方查询命令: list, info, deps"""

from __future__ import annotations

import click

from formulakit.cli import _svc, handle_errors
from formulakit.core.formula.resolver import detect_platform, resolve_dependencies
from formulakit.core.models import SUPPORTED_PLATFORMS, DependencyStage


def register(group: click.Group) -> None:
    group.add_command(list_formulas)
    group.add_command(info)
    group.add_command(deps)


@click.command(name="list")
def list_formulas() -> None:
    """列出可用配方"""
    names = _svc().loader.list_formulas()
    if not names:
        click.echo("没有可用的配方。")
        return
    for name in names:
        click.echo(name)


@click.command()
@click.argument("name")
@handle_errors
def info(name: str) -> None:
    """显示配方详情"""
    f = _svc().loader.load(name)
    click.echo(f"{f.name}: {f.version}")
    click.echo(f.description)
    click.echo(f.homepage)
    click.echo(f"License: {f.license}")
    click.echo(f"From: {f.url}")
    click.echo(f"sha256: {f.sha256}")
    if f.dependencies:
        click.echo("Dependencies: " + ", ".join(
            f"{d.name} ({d.stage.value})" for d in f.dependencies
        ))
    for platform, items in f.platform_dependencies.items():
        click.echo(f"  on {platform}: " + ", ".join(
            f"{d.name} ({d.stage.value})" for d in items
        ))


@click.command()
@click.argument("name")
@click.option(
    "--platform", type=click.Choice(list(SUPPORTED_PLATFORMS)), default=None,
    help="目标平台（默认识别宿主平台）",
)
@click.option(
    "--stage", "stages", multiple=True,
    type=click.Choice([s.value for s in DependencyStage]),
    help="只显示指定阶段的依赖（可多次指定）",
)
@handle_errors
def deps(name: str, platform: str | None, stages: tuple[str, ...]) -> None:
    """解析指定平台的依赖列表"""
    f = _svc().loader.load(name)
    resolved = resolve_dependencies(
        f, platform or detect_platform(),
        stages=[DependencyStage(s) for s in stages] if stages else None,
    )
    for d in resolved:
        click.echo(f"{d.name:20s} {d.stage.value}")
