"""子进程执行工具测试"""

from __future__ import annotations

import os
import sys

import pytest

from formulakit.core.exceptions import ExecutionError
from formulakit.utils.shell import CommandResult, LocalExecutor, run_checked


class TestLocalExecutor:
    def test_success(self, tmp_path) -> None:
        r = LocalExecutor().execute(["echo", "hello"], cwd=str(tmp_path))
        assert r.success
        assert r.stdout == "hello\n"

    def test_nonzero_does_not_raise(self, tmp_path) -> None:
        r = LocalExecutor().execute(["false"], cwd=str(tmp_path))
        assert r.returncode != 0
        assert not r.success

    def test_merge_stderr(self, tmp_path) -> None:
        cmd = [sys.executable, "-c", "import sys; sys.stderr.write('err\\n')"]
        r = LocalExecutor().execute(cmd, cwd=str(tmp_path), merge_stderr=True)
        assert r.stdout == "err\n"
        assert r.stderr == ""

    def test_undecodable_output_replaced(self, tmp_path) -> None:
        cmd = [sys.executable, "-c", "import sys; sys.stdout.buffer.write(b\"ok \\xff\\n\")"]
        r = LocalExecutor().execute(cmd, cwd=str(tmp_path))
        assert r.success
        assert r.stdout == "ok \ufffd\n"

    def test_env_passed(self, tmp_path) -> None:
        env = {**os.environ, "MY_TEST_VAR": "42"}
        r = LocalExecutor().execute(["env"], cwd=str(tmp_path), env=env)
        assert "MY_TEST_VAR=42" in r.stdout

    def test_missing_binary(self, tmp_path) -> None:
        with pytest.raises(ExecutionError, match="命令不存在"):
            LocalExecutor().execute(["definitely-not-a-command-xyz"], cwd=str(tmp_path))


class TestRunChecked:
    def test_failure_raises_with_label(self, make_executor) -> None:
        fake = make_executor(lambda cmd: CommandResult(101, "", "error: could not compile\n"))
        with pytest.raises(ExecutionError, match="install\\[1\\]失败 \\(rc=101\\)"):
            run_checked(fake, ["cargo", "install"], label="install[1]")

    def test_success_returns_result(self, make_executor) -> None:
        fake = make_executor(lambda cmd: CommandResult(0, "ok\n"))
        assert run_checked(fake, ["true"]).stdout == "ok\n"
