"""测试共享 fixture — 假执行器 + 配方/源码包构造

假执行器模拟 cargo 与已安装的 prs 可执行文件，整条流水线无需真实构建。
"""

from __future__ import annotations

import hashlib
import io
import logging
import tarfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

import formulakit.core.config as cfgmod
from formulakit.services.container import reset_container
from formulakit.utils.shell import CommandResult

PRS_INIT_BANNER = (
    "Now generate and add a new recipient key for yourself:\n"
    "    prs recipients generate\n"
    "\n"
)


class FakeExecutor:
    """记录调用并按 handler 返回结果的执行器"""

    def __init__(self, handler: Callable[[list[str]], CommandResult] | None = None) -> None:
        self.handler = handler
        self.calls: list[dict[str, Any]] = []

    def execute(
        self,
        cmd: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
        merge_stderr: bool = False,
    ) -> CommandResult:
        self.calls.append({
            "cmd": list(cmd), "cwd": cwd, "env": env, "merge_stderr": merge_stderr,
        })
        if self.handler is None:
            return CommandResult(0, "")
        return self.handler(list(cmd))

    @property
    def commands(self) -> list[list[str]]:
        return [c["cmd"] for c in self.calls]


def fake_prs(version: str = "0.4.1", init_output: str = PRS_INIT_BANNER) -> Callable[[list[str]], CommandResult]:
    """模拟 cargo install 与 prs 各子命令的输出"""

    def handler(cmd: list[str]) -> CommandResult:
        if cmd[0] == "cargo":
            return CommandResult(0, "", "Installed package `prs-cli`\n")
        args = cmd[1:]
        if args[:2] == ["internal", "completions"]:
            return CommandResult(0, f"# {args[2]} completions for prs\n")
        if args == ["--version"]:
            return CommandResult(0, f"prs-cli {version}\n")
        if args[:1] == ["init"]:
            return CommandResult(0, init_output)
        if args[:1] == ["list"]:
            return CommandResult(0, "")
        return CommandResult(2, "", f"unexpected: {cmd}\n")

    return handler


@pytest.fixture()
def make_executor() -> type[FakeExecutor]:
    return FakeExecutor


@pytest.fixture()
def prs_handler() -> Callable[..., Callable[[list[str]], CommandResult]]:
    return fake_prs


def build_archive(dest: Path, top: str = "prs-0.4.1") -> str:
    """生成带单一顶层目录的 tar.gz，返回其 sha256"""
    dest.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(dest, "w:gz") as tf:
        for name, content in {
            f"{top}/Cargo.toml": b"[workspace]\n",
            f"{top}/cli/Cargo.toml": b"[package]\nname = \"prs-cli\"\n",
        }.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tf.addfile(info, io.BytesIO(content))
    return hashlib.sha256(dest.read_bytes()).hexdigest()


@pytest.fixture()
def archive_factory(tmp_path: Path) -> Callable[..., tuple[Path, str]]:
    def _make(name: str = "v0.4.1.tar.gz", top: str = "prs-0.4.1") -> tuple[Path, str]:
        path = tmp_path / "upstream" / name
        return path, build_archive(path, top=top)
    return _make


def formula_data(**overrides: Any) -> dict[str, Any]:
    """最小可用配方字典，字段可覆盖"""
    data: dict[str, Any] = {
        "name": "prs",
        "description": "Secure, fast & convenient password manager CLI with GPG & git sync",
        "homepage": "https://timvisee.com/projects/prs",
        "url": "https://github.com/timvisee/prs/archive/v0.4.1.tar.gz",
        "sha256": "f7f8f5d815cf1c4034f1c2aa36ed29b7e3ab2a884791b4b69ffc845d5d111524",
        "license": "GPL-3.0-only",
        "dependencies": [{"name": "rust", "stage": "build", "probe": "cargo"}, "gpgme"],
        "platform_dependencies": {
            "linux": [
                {"name": "pkg-config", "stage": "build", "probe": "pkg-config"},
                "libxcb",
                "openssl@3",
            ],
        },
        "install": [{"kind": "cargo_install", "path": "cli"}],
        "completions": {"executable": "prs", "args": ["internal", "completions"]},
        "test": {
            "env": {"PASSWORD_STORE_DIR": "{testpath}/.store"},
            "assertions": [
                {
                    "name": "init",
                    "command": ["{bin}/prs", "init", "--no-interactive"],
                    "merge_stderr": True,
                    "expected": PRS_INIT_BANNER,
                },
                {
                    "name": "version",
                    "command": ["{bin}/prs", "--version"],
                    "expected": "prs-cli {version}\n",
                },
                {
                    "name": "list",
                    "command": ["{bin}/prs", "list", "--no-interactive", "--quiet"],
                    "expected": "",
                },
            ],
        },
    }
    data.update(overrides)
    return data


@pytest.fixture()
def write_formula(tmp_path: Path) -> Callable[..., Path]:
    """把配方字典写入 <tmp>/formulas/<name>.yml，返回配方目录"""
    formula_dir = tmp_path / "formulas"

    def _write(data: dict[str, Any] | None = None, **overrides: Any) -> Path:
        payload = data if data is not None else formula_data(**overrides)
        formula_dir.mkdir(parents=True, exist_ok=True)
        (formula_dir / f"{payload['name']}.yml").write_text(
            yaml.dump(payload, allow_unicode=True, sort_keys=False), encoding="utf-8",
        )
        return formula_dir

    return _write


@pytest.fixture()
def config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> cfgmod.Config:
    """独立的全局配置，目录均位于 tmp_path"""
    cfg = cfgmod.Config(
        formula_dir=str(tmp_path / "formulas"),
        cache_dir=str(tmp_path / "cache"),
        prefix_root=str(tmp_path / "cellar"),
        work_dir=str(tmp_path / "work"),
        check_deps=False,
    )
    monkeypatch.setattr(cfgmod, "_current", cfg)
    reset_container()
    yield cfg
    reset_container()


@pytest.fixture()
def restore_logging():
    """测试内调用 setup_logging 后恢复根日志器原有 handlers 与级别"""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for h in root.handlers[:]:
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)
