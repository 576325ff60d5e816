"""Tests for Runner.execute."""

import pytest
from invoke.exceptions import UnexpectedExit

from debugbin.core.runner import Runner


def test_execute_captures_output(tmp_path):
    result = Runner().execute("echo hello", cwd=tmp_path)

    assert result.exited == 0
    assert result.stdout.strip() == "hello"


def test_execute_writes_log_file(tmp_path):
    log_file = tmp_path / "logs" / "out.log"

    Runner().execute(
        "sh -c 'echo out; echo err >&2'", log_file=log_file, check=False
    )

    content = log_file.read_text()
    assert "out" in content
    assert "err" in content


def test_execute_check_raises_on_failure():
    with pytest.raises(UnexpectedExit):
        Runner().execute("false", check=True)


def test_execute_no_check_returns_exit_code():
    result = Runner().execute("sh -c 'exit 4'", check=False)

    assert result.exited == 4


def test_execute_env_is_merged(tmp_path):
    result = Runner().execute(
        "sh -c 'echo $DEBUGBIN_TEST_VALUE'",
        env={"DEBUGBIN_TEST_VALUE": "42"},
    )

    assert result.stdout.strip() == "42"


def test_execute_logs_lines_at_level():
    """Per-line logging accepts debugbin's own levels."""
    result = Runner().execute(
        "printf 'a\\nb\\n'", log_level="spew", check=False
    )

    assert result.stdout.splitlines() == ["a", "b"]


@pytest.mark.parametrize("level", ["spew", "info"])
def test_execute_logs_lines_with_braces(level, recwarn):
    """Compiler snippets and JSON records are logged as plain text."""
    result = Runner().execute(
        "printf '%s\\n' 'fn main() {' '{\"reason\":\"build-finished\"}' '}'",
        log_level=level,
        check=False,
    )

    assert result.exited == 0
    assert result.stdout.splitlines()[0] == "fn main() {"
    assert not [
        w for w in recwarn
        if "Formatting" in type(w.message).__name__
    ]
