"""End-to-end tests for the CLI commands."""

import asyncio
import os
import shlex
import stat

import pytest

from debugbin.command import (
    AdapterCommand,
    BuildTestsCommand,
    ProgramCommand,
    TestBinaryCommand,
)
from debugbin.core.errors import NoMatchFound, ParseError, ToolNotFound
from debugbin.extract.store import read_binary_path


def printf_lines(*lines: str) -> str:
    """Shell command printing each line to stdout."""
    return "printf '%s\\n' " + " ".join(shlex.quote(line) for line in lines)


JSON_BUILD = printf_lines(
    '{"profile":{"test":true},"filenames":["/tmp/t1","/tmp/t2"]}',
    '{"profile":{"test":false},"filenames":["/tmp/x"]}',
)

TEXT_BUILD = (
    "sh -c 'echo \"   Compiling app v0.1.0\" >&2; "
    "echo \"  Executable unittests src/main.rs "
    "(target/debug/deps/app-3f2a9c)\" >&2'"
)


def run(command, state):
    return asyncio.run(command.run_workflow(state))


def test_build_tests_json_writes_path(make_state, tmp_path):
    """The first test artifact is written to the path file."""
    state = make_state(build={"command": JSON_BUILD})

    exit_code = run(BuildTestsCommand(), state)

    assert exit_code == 0
    path_file = tmp_path / ".nvim" / "test_binary_path.txt"
    assert state.config.output.path_file == path_file
    assert path_file.read_text() == "/tmp/t1\n"
    assert state.runtime.build.status == "persisted"


def test_build_tests_text_output_on_stderr(make_state, tmp_path):
    """Plain logs are searched in the combined output."""
    state = make_state(build={"command": TEXT_BUILD})

    exit_code = run(BuildTestsCommand(), state)

    assert exit_code == 0
    assert read_binary_path(state.config.output.path_file) == (
        "target/debug/deps/app-3f2a9c"
    )


def test_build_tests_overwrites_previous_path(make_state, tmp_path):
    path_file = tmp_path / "bin_path.txt"
    path_file.write_text("/stale/binary\n")
    state = make_state(
        build={"command": JSON_BUILD},
        output={"path_file": str(path_file)},
    )

    run(BuildTestsCommand(), state)

    assert path_file.read_text() == "/tmp/t1\n"


def test_build_failure_mirrors_exit_code(make_state, tmp_path, capsys):
    """A failed build returns the tool's exit code and writes nothing."""
    state = make_state(
        build={"command": "sh -c 'echo error: mismatched types >&2; exit 101'"}
    )

    exit_code = run(BuildTestsCommand(), state)

    assert exit_code == 101
    assert state.runtime.build.status == "build-failed"
    assert not state.config.output.path_file.exists()
    assert "mismatched types" in capsys.readouterr().err


def test_no_match_fails_by_default(make_state):
    state = make_state(build={"command": "echo '   Finished dev'"})

    with pytest.raises(NoMatchFound):
        run(BuildTestsCommand(), state)

    assert state.runtime.build.status == "no-match"
    assert state.runtime.build.binary_path is None
    assert not state.config.output.path_file.exists()


def test_no_match_allowed(make_state):
    state = make_state(
        build={"command": "echo '   Finished dev'"},
        extract={"require_match": False},
    )

    assert run(BuildTestsCommand(), state) == 0
    assert not state.config.output.path_file.exists()


def test_selection_last(make_state):
    state = make_state(
        build={"command": printf_lines(
            '{"profile":{"test":true},"filenames":["/tmp/a"]}',
            '{"profile":{"test":true},"filenames":["/tmp/b"]}',
        )},
        extract={"selection": "last"},
    )

    run(BuildTestsCommand(), state)

    assert state.runtime.build.binary_path == "/tmp/b"


def test_malformed_json_raises_parse_error(make_state):
    state = make_state(
        build={"command": printf_lines('{"profile":', "oops")},
        extract={"format": "json"},
    )

    with pytest.raises(ParseError):
        run(BuildTestsCommand(), state)


def test_missing_tool_raises(make_state, tmp_path):
    state = make_state(
        build={
            "command": "no-such-build-tool-xyz test --no-run",
            "scratch_dir": str(tmp_path / "scratch"),
        }
    )

    with pytest.raises(ToolNotFound):
        run(BuildTestsCommand(), state)

    scratch = tmp_path / "scratch"
    assert not scratch.exists() or list(scratch.iterdir()) == []


def test_test_binary_prints_without_persisting(make_state, capsys):
    state = make_state(build={"command": JSON_BUILD})

    exit_code = run(TestBinaryCommand(), state)

    assert exit_code == 0
    assert capsys.readouterr().out == "/tmp/t1\n"
    assert not state.config.output.path_file.exists()


def test_program_prints_binary(make_state, tmp_path, capsys):
    state = make_state(
        program={
            "build_command": "echo Finished",
            "binary": "target/debug/app",
        }
    )

    exit_code = run(ProgramCommand(), state)

    assert exit_code == 0
    assert capsys.readouterr().out.strip() == str(
        tmp_path / "target" / "debug" / "app"
    )


def test_program_build_failure(make_state, capsys):
    state = make_state(
        program={
            "build_command": "sh -c 'echo link failed >&2; exit 2'",
            "binary": "target/debug/app",
        }
    )

    exit_code = run(ProgramCommand(), state)

    captured = capsys.readouterr()
    assert exit_code == 2
    assert captured.out == ""
    assert "link failed" in captured.err


def test_program_requires_binary(make_state, capsys):
    state = make_state(program={"build_command": "echo ok"})

    assert run(ProgramCommand(), state) == 2
    assert capsys.readouterr().out == ""


def test_program_binary_from_cargo_manifest(make_state, tmp_path, capsys):
    """Without program.binary the package name in Cargo.toml is used."""
    (tmp_path / "Cargo.toml").write_text(
        "[package]\nname = \"acquire\"\nversion = \"0.1.0\"\n"
    )
    state = make_state(program={"build_command": "echo Finished"})

    assert run(ProgramCommand(), state) == 0
    assert capsys.readouterr().out.strip() == str(
        tmp_path / "target" / "debug" / "acquire"
    )


def test_program_manifest_without_package(make_state, tmp_path):
    (tmp_path / "Cargo.toml").write_text("[workspace]\nmembers = []\n")
    state = make_state(program={"build_command": "echo ok"})

    assert run(ProgramCommand(), state) == 2


@pytest.fixture
def fake_adapter(tmp_path):
    bin_dir = tmp_path / "mason" / "bin"
    bin_dir.mkdir(parents=True)
    adapter = bin_dir / "fake-lldb-adapter"
    adapter.write_text("#!/bin/sh\n")
    adapter.chmod(adapter.stat().st_mode | stat.S_IXUSR)
    return adapter


def test_adapter_substitutes_port(make_state, fake_adapter, capsys):
    state = make_state(
        debugger={
            "command": fake_adapter.name,
            "search_dirs": [str(fake_adapter.parent)],
        }
    )

    assert run(AdapterCommand(port=13000), state) == 0
    assert capsys.readouterr().out.split() == [
        str(fake_adapter), "--port", "13000"
    ]


def test_adapter_keeps_port_placeholder(make_state, fake_adapter, capsys):
    """${port} survives config templating for the editor to fill in."""
    state = make_state(debugger={"command": str(fake_adapter)})

    run(AdapterCommand(), state)

    assert state.config.debugger.args == ["--port", "${port}"]
    assert "${port}" in capsys.readouterr().out


def test_cli_build_tests(tmp_path, monkeypatch, mock_argv):
    """build_tests through the CLI exits with the workflow's code."""
    from pydantic_settings import CliApp

    from debugbin.cli import CliState

    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit) as excinfo:
        CliApp.run(CliState, cli_args=[
            "--config.build.workdir", str(tmp_path),
            "--config.build.command", JSON_BUILD,
            "build_tests",
        ])

    assert excinfo.value.code == 0
    assert (tmp_path / ".nvim" / "test_binary_path.txt").read_text() == (
        "/tmp/t1\n"
    )


def test_cli_reports_missing_tool(tmp_path, monkeypatch, mock_argv):
    from pydantic_settings import CliApp

    from debugbin.cli import CliState

    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit) as excinfo:
        CliApp.run(CliState, cli_args=[
            "--config.build.workdir", str(tmp_path),
            "--config.build.command", "no-such-build-tool-xyz test",
            "build_tests",
        ])

    assert excinfo.value.code == 2
    assert not os.path.exists(tmp_path / ".nvim")


def test_cli_no_match_exits_one(tmp_path, monkeypatch, mock_argv):
    from pydantic_settings import CliApp

    from debugbin.cli import CliState

    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit) as excinfo:
        CliApp.run(CliState, cli_args=[
            "--config.build.workdir", str(tmp_path),
            "--config.build.command", "echo Finished",
            "test_binary",
        ])

    assert excinfo.value.code == 1


def test_cli_reports_malformed_record(tmp_path, monkeypatch, mock_argv):
    """A parse error quoting a JSON line is reported, not a traceback."""
    from pydantic_settings import CliApp

    from debugbin.cli import CliState

    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit) as excinfo:
        CliApp.run(CliState, cli_args=[
            "--config.build.workdir", str(tmp_path),
            "--config.build.command", printf_lines('{"profile":'),
            "--config.extract.format", "json",
            "build_tests",
        ])

    assert excinfo.value.code == 2
