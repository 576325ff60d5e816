"""Build runner with scratch-file capture and log management."""

from __future__ import annotations

import contextlib
import os
import shlex
import shutil
import tempfile
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

from invoke.exceptions import Failure, ThreadException

from debugbin.core.errors import SpawnError, ToolNotFound
from debugbin.core.log import logger
from debugbin.core.result import BuildResult
from debugbin.core.runner import Runner


@contextlib.contextmanager
def scratch_file(directory: Path | None = None) -> Iterator[Path]:
    """Yield a fresh, uniquely named file that is removed on exit.

    Args:
        directory: Where to create it (system temp dir when None)
    """
    if directory is not None:
        directory.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(
        prefix="debugbin-", suffix=".log", dir=directory
    )
    os.close(fd)
    path = Path(name)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.spew("Removed scratch file", path=str(path))


class BuildRunner:
    """Execute build commands and capture their output."""

    def __init__(
        self,
        workdir: Path,
        command: str = "cargo test --no-run --message-format=json",
        tool: str | None = None,
        scratch_dir: Path | None = None,
        log_dir: Path | None = None,
        output_level: str | None = "spew",
    ):
        """Initialize build runner.

        Args:
            workdir: Project root the commands run in
            command: Test build command used by run_test_build()
            tool: Executable to look up on PATH; defaults to the first
                word of whichever command is run
            scratch_dir: Directory for the temporary capture file
            log_dir: Keep timestamped copies of build output here
            output_level: Level for echoing output lines, None for off
        """
        self.workdir = workdir
        self.command = command
        self.tool = tool
        self.scratch_dir = scratch_dir
        self.log_dir = log_dir
        self.output_level = output_level
        self.runner = Runner()

    @classmethod
    def from_config(cls, config) -> BuildRunner:
        """Create a runner from a Config's build section."""
        build = config.build
        return cls(
            workdir=build.workdir,
            command=build.command,
            tool=build.tool,
            scratch_dir=build.scratch_dir,
            log_dir=build.log_dir,
            output_level=build.output_level,
        )

    def run_test_build(self) -> BuildResult:
        """Compile the tests without running them.

        Returns:
            BuildResult; a failed build is reported through exit_code

        Raises:
            ToolNotFound: If the build tool is not on PATH
            SpawnError: If the process cannot be run
        """
        return self.run(self.command, tool=self.tool)

    def run(self, command: str, tool: str | None = None) -> BuildResult:
        """Run one build command in the working directory.

        Output is captured to a scratch file, read back and the file
        removed, whether or not the command succeeds.
        """
        if not Path(self.workdir).is_dir():
            raise SpawnError(
                command, f"working directory {self.workdir} does not exist"
            )
        self._require_tool(tool or self._tool_of(command))

        timestamp = datetime.now()
        with logger.span("Build", command=command), \
                scratch_file(self.scratch_dir) as scratch:
            try:
                result = self.runner.execute(
                    command,
                    cwd=self.workdir,
                    log_file=scratch,
                    log_level=self.output_level,
                    check=False,
                )
            except (OSError, ThreadException, Failure) as e:
                raise SpawnError(command, str(e)) from e

            combined = scratch.read_text(encoding="utf-8")

        log_file = None
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            log_file = (
                self.log_dir
                / f"build-{timestamp.strftime('%Y%m%d-%H%M%S')}.log"
            )
            log_file.write_text(combined, encoding="utf-8")

        build = BuildResult(
            command=command,
            exit_code=result.exited,
            combined_output=combined,
            stdout=result.stdout,
            stderr=result.stderr,
            timestamp=timestamp,
            log_file=log_file,
        )
        if build.success:
            logger.info("Build succeeded", command=command)
        else:
            logger.warn(
                "Build failed", command=command, exit_code=build.exit_code
            )
        return build

    @staticmethod
    def _tool_of(command: str) -> str:
        """First word of a shell command, skipping VAR=value prefixes."""
        try:
            words = shlex.split(command)
        except ValueError:
            words = command.split()
        for word in words:
            if "=" in word and not word.startswith(("/", ".")):
                continue
            return word
        return command.strip()

    def _require_tool(self, tool: str) -> None:
        """Raise ToolNotFound unless tool would run from workdir.

        Paths such as ./build.sh are resolved against workdir, where
        the command runs, rather than the current directory.
        """
        if tool and os.sep in tool:
            path = Path(tool).expanduser()
            if not path.is_absolute():
                path = Path(self.workdir) / path
            if path.is_file() and os.access(path, os.X_OK):
                return
        elif tool and shutil.which(tool) is not None:
            return
        raise ToolNotFound(tool)
