"""配方加载器

职责:
- 从 <formula_dir>/<name>.yml 读取配方描述
- 字段校验（必填项、sha256 格式、URL 协议、平台与阶段取值）
- 未声明 version 时从源码包 URL 推断
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from formulakit.core.exceptions import ValidationError
from formulakit.core.models import (
    SUPPORTED_PLATFORMS,
    CompletionSpec,
    Dependency,
    DependencyStage,
    InstallStep,
    PackageFormula,
    TestAssertion,
)
from formulakit.utils.net import is_http_url
from formulakit.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "description", "homepage", "url", "sha256", "license")
INSTALL_KINDS = ("system", "cargo_install")

_SHA256_RE = re.compile(r"^[0-9a-f]{64}$")
_VERSION_RE = re.compile(
    r"[-_/]v?(\d+(?:\.\d+)+(?:[-.]?(?:alpha|beta|rc)\.?\d*)?)"
    r"(?:\.tar\.gz|\.tgz|\.tar\.xz|\.tar\.bz2|\.zip)$"
)


def infer_version(url: str) -> str:
    """从源码包 URL 推断版本号，无法推断时返回空串

    >>> infer_version("https://github.com/timvisee/prs/archive/v0.4.1.tar.gz")
    '0.4.1'
    """
    m = _VERSION_RE.search(url)
    return m.group(1) if m else ""


class FormulaLoader:
    """配方加载器 - 从 YAML 描述文件构造 PackageFormula"""

    def __init__(self, formula_dir: str | Path) -> None:
        self.formula_dir = Path(formula_dir)

    def path_for(self, name: str) -> Path:
        return self.formula_dir / f"{name}.yml"

    def list_formulas(self) -> list[str]:
        """列出配方目录下全部配方名"""
        if not self.formula_dir.is_dir():
            return []
        return sorted(p.stem for p in self.formula_dir.glob("*.yml"))

    def load(self, name: str) -> PackageFormula:
        """加载并校验配方"""
        path = self.path_for(name)
        if not path.exists():
            raise ValidationError(
                f"配方 '{name}' 不存在: {path}。可用: {self.list_formulas()}"
            )
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError, OSError) as e:
            raise ValidationError(f"配方文件无法解析: {path}: {e}") from e
        formula = parse_formula(data, source=str(path))
        if formula.name != name:
            raise ValidationError(
                f"配方文件名与 name 字段不一致: {path.name} vs {formula.name}"
            )
        logger.info("已加载配方: %s %s", formula.name, formula.version)
        return formula


def parse_formula(data: dict[str, Any], source: str = "<memory>") -> PackageFormula:
    """把原始字典转换为 PackageFormula，校验失败汇总抛出 ValidationError"""
    errors: list[str] = []

    for key in REQUIRED_FIELDS:
        if not str(data.get(key) or "").strip():
            errors.append(f"缺少必填字段: {key}")
    if errors:
        raise ValidationError(f"配方无效: {source}", details=errors)

    sha256 = str(data["sha256"]).strip().lower()
    if not _SHA256_RE.match(sha256):
        errors.append(f"sha256 必须为 64 位十六进制: {data['sha256']}")

    for key in ("homepage", "url"):
        if not is_http_url(str(data[key])):
            errors.append(f"{key} 仅支持 http/https: {data[key]}")

    url = str(data["url"])
    version = str(data.get("version") or "") or infer_version(url)
    if not version:
        errors.append(f"无法从 URL 推断版本号，请显式声明 version: {url}")

    dependencies = _parse_deps(
        _section(data, "dependencies", list, errors), "dependencies", errors,
    )

    platform_deps: dict[str, list[Dependency]] = {}
    for platform, items in _section(data, "platform_dependencies", dict, errors).items():
        if platform not in SUPPORTED_PLATFORMS:
            errors.append(
                f"未知平台 '{platform}'，仅支持: {', '.join(SUPPORTED_PLATFORMS)}"
            )
            continue
        scope = f"platform_dependencies.{platform}"
        if items is not None and not isinstance(items, list):
            errors.append(f"{scope}: 必须为列表")
            continue
        platform_deps[platform] = _parse_deps(items or [], scope, errors)

    install_steps = _parse_install(_section(data, "install", list, errors), errors)
    completions = _parse_completions(data.get("completions"), errors)

    test_section = _section(data, "test", dict, errors)
    test_env = {
        str(k): str(v) for k, v in _section(test_section, "env", dict, errors, "test.").items()
    }
    assertions = _parse_assertions(
        _section(test_section, "assertions", list, errors, "test."), errors,
    )

    if errors:
        raise ValidationError(f"配方无效: {source}", details=errors)

    return PackageFormula(
        name=str(data["name"]),
        description=str(data["description"]),
        homepage=str(data["homepage"]),
        url=url,
        sha256=sha256,
        license=str(data["license"]),
        version=version,
        dependencies=dependencies,
        platform_dependencies=platform_deps,
        install_steps=install_steps,
        completions=completions,
        test_env=test_env,
        test_assertions=assertions,
    )




def _section(
    data: dict[str, Any], key: str, kind: type, errors: list[str], scope: str = "",
) -> Any:
    """取可选段落，缺省为空；类型不符时记录错误并按空处理"""
    value = data.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        label = "映射" if kind is dict else "列表"
        errors.append(f"{scope}{key}: 必须为{label}，实际为 {type(value).__name__}")
        return kind()
    return value


def _str_list(value: Any, scope: str, errors: list[str]) -> list[str] | None:
    """参数列表必须是 YAML 列表，单个字符串不会被拆开"""
    if value is None:
        return []
    if not isinstance(value, list):
        errors.append(f"{scope}: 必须为列表，实际为 {type(value).__name__}")
        return None
    return [str(a) for a in value]


def _parse_deps(items: list[Any], scope: str, errors: list[str]) -> list[Dependency]:
    """依赖项支持两种写法: "gpgme" 或 {name: rust, stage: build, probe: cargo}"""
    deps: list[Dependency] = []
    seen: set[str] = set()
    for item in items:
        if isinstance(item, str):
            item = {"name": item}
        if not isinstance(item, dict) or not item.get("name"):
            errors.append(f"{scope}: 依赖项格式无效: {item!r}")
            continue
        name = str(item["name"])
        try:
            stage = DependencyStage(item.get("stage", "runtime"))
        except ValueError:
            errors.append(f"{scope}: 依赖 {name} 的 stage 无效: {item.get('stage')}")
            continue
        if name in seen:
            errors.append(f"{scope}: 依赖重复声明: {name}")
            continue
        seen.add(name)
        deps.append(Dependency(name=name, stage=stage, probe=str(item.get("probe") or "")))
    return deps


def _parse_install(items: list[Any], errors: list[str]) -> list[InstallStep]:
    steps: list[InstallStep] = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            errors.append(f"install[{idx}]: 步骤格式无效: {item!r}")
            continue
        kind = item.get("kind", "system")
        if kind not in INSTALL_KINDS:
            errors.append(f"install[{idx}]: 不支持的步骤类型: {kind}")
            continue
        args = _str_list(item.get("args"), f"install[{idx}].args", errors)
        if args is None:
            continue
        if kind == "system" and not args:
            errors.append(f"install[{idx}]: system 步骤缺少 args")
            continue
        steps.append(InstallStep(kind=kind, args=args, path=str(item.get("path", "."))))
    return steps


def _parse_completions(item: Any, errors: list[str]) -> CompletionSpec | None:
    if not item:
        return None
    if not isinstance(item, dict) or not item.get("executable"):
        errors.append("completions: 缺少 executable")
        return None
    args = _str_list(item.get("args"), "completions.args", errors)
    shells = _str_list(item.get("shells"), "completions.shells", errors)
    if args is None or shells is None:
        return None
    spec = CompletionSpec(executable=str(item["executable"]), args=args)
    if shells:
        spec.shells = shells
    return spec


def _parse_assertions(items: list[Any], errors: list[str]) -> list[TestAssertion]:
    assertions: list[TestAssertion] = []
    for idx, item in enumerate(items):
        scope = f"test.assertions[{idx}]"
        if not isinstance(item, dict) or not item.get("command"):
            errors.append(f"{scope}: 缺少 command")
            continue
        command = _str_list(item["command"], f"{scope}.command", errors)
        if command is None:
            continue
        if "expected" not in item:
            errors.append(f"{scope}: 缺少 expected")
            continue
        exit_status = item.get("exit_status", 0)
        if isinstance(exit_status, bool) or not isinstance(exit_status, int):
            errors.append(f"{scope}: exit_status 必须为整数: {exit_status!r}")
            continue
        assertions.append(TestAssertion(
            name=str(item.get("name") or f"assertion-{idx}"),
            command=command,
            expected="" if item["expected"] is None else str(item["expected"]),
            merge_stderr=bool(item.get("merge_stderr", False)),
            exit_status=exit_status,
        ))
    return assertions
