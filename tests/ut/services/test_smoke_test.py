"""冒烟测试执行器测试 - 三个 prs 场景"""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import formula_data
from formulakit.core.exceptions import SmokeTestError
from formulakit.core.formula.loader import parse_formula
from formulakit.services.smoke_test import SmokeTester, output_diff
from formulakit.utils.shell import CommandResult


@pytest.fixture()
def formula():
    return parse_formula(formula_data())


class TestSmokeTester:
    def test_all_scenarios_pass(self, formula, tmp_path, make_executor, prs_handler) -> None:
        fake = make_executor(prs_handler())
        prefix = tmp_path / "prefix"
        testpath = tmp_path / "testpath"

        result = SmokeTester(fake).run(formula, prefix, testpath=testpath)

        assert result.success
        assert result.passed == 3
        assert fake.commands == [
            [str(prefix / "bin" / "prs"), "init", "--no-interactive"],
            [str(prefix / "bin" / "prs"), "--version"],
            [str(prefix / "bin" / "prs"), "list", "--no-interactive", "--quiet"],
        ]
        assert [c["merge_stderr"] for c in fake.calls] == [True, False, False]

    def test_store_dir_sandboxed(self, formula, tmp_path, make_executor, prs_handler) -> None:
        fake = make_executor(prs_handler())
        testpath = tmp_path / "testpath"
        SmokeTester(fake).run(formula, tmp_path / "prefix", testpath=testpath)
        for call in fake.calls:
            assert call["env"]["PASSWORD_STORE_DIR"] == f"{testpath}/.store"
            assert call["cwd"] == str(testpath)

    def test_temporary_testpath_removed(self, formula, tmp_path, make_executor, prs_handler) -> None:
        fake = make_executor(prs_handler())
        result = SmokeTester(fake).run(formula, tmp_path / "prefix")
        assert result.testpath
        assert not Path(result.testpath).exists()

    def test_version_mismatch(self, formula, tmp_path, make_executor, prs_handler) -> None:
        fake = make_executor(prs_handler(version="0.4.0"))
        with pytest.raises(SmokeTestError) as exc:
            SmokeTester(fake).run(formula, tmp_path / "prefix", testpath=tmp_path / "t")
        assert "[version]" in str(exc.value)
        assert "-prs-cli 0.4.1" in exc.value.diff
        assert "+prs-cli 0.4.0" in exc.value.diff
        # init 已通过，list 未执行
        assert [r.name for r in exc.value.result.results] == ["init", "version"]
        assert len(fake.calls) == 2

    def test_banner_whitespace_is_significant(self, formula, tmp_path, make_executor, prs_handler) -> None:
        banner = "Now generate and add a new recipient key for yourself:\n    prs recipients generate\n"
        fake = make_executor(prs_handler(init_output=banner))
        with pytest.raises(SmokeTestError, match="init"):
            SmokeTester(fake).run(formula, tmp_path / "prefix", testpath=tmp_path / "t")

    def test_exit_status_checked(self, formula, tmp_path, make_executor) -> None:
        fake = make_executor(lambda cmd: CommandResult(1, ""))
        formula.test_assertions = formula.test_assertions[2:]
        with pytest.raises(SmokeTestError) as exc:
            SmokeTester(fake).run(formula, tmp_path / "prefix", testpath=tmp_path / "t")
        assert "exit status: expected 0, got 1" in exc.value.diff

    def test_no_assertions(self, formula, tmp_path, make_executor) -> None:
        formula.test_assertions = []
        result = SmokeTester(make_executor()).run(formula, tmp_path, testpath=tmp_path)
        assert result.success
        assert result.results == []


class TestOutputDiff:
    def test_identical_text_reports_repr(self) -> None:
        assert output_diff("a\n", "a\n") == "expected 'a\\n', got 'a\\n'\n"

    def test_unified(self) -> None:
        diff = output_diff("one\n", "two\n", "x")
        assert "--- x (expected)" in diff
        assert "+++ x (actual)" in diff
