"""Command execution on top of invoke."""

from pathlib import Path

from invoke import Context, Result

from debugbin.core.log import logger


class Runner(Context):
    """invoke.Context with a single execute() entry point.

    Output is always captured rather than echoed; it can be mirrored
    to a log file and to the logger line by line.
    """

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        log_file: Path | None = None,
        log_level: str | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> Result:
        """Run a shell command and wait for it to exit.

        Args:
            command: Command string to execute
            cwd: Working directory for command execution
            log_file: Path to write combined stdout/stderr output
            log_level: Level at which each output line is logged
            check: If True, raise on non-zero exit code
            env: Extra environment variables (merged into os.environ)

        Returns:
            invoke.Result with stdout, stderr, exited (return code)

        Raises:
            invoke.UnexpectedExit: If check=True and command
                returns non-zero
        """
        kwargs = {
            "hide": True,
            "warn": not check,
            "in_stream": False,
        }
        if env:
            kwargs["env"] = env

        logger.debug("Running command", command=command, cwd=str(cwd or "."))
        if cwd:
            with self.cd(str(cwd)):
                result = self.run(command, **kwargs)
        else:
            result = self.run(command, **kwargs)

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            log_file.write_text(result.stdout + result.stderr, encoding="utf-8")

        if log_level:
            for line in (result.stdout + result.stderr).splitlines():
                # Output goes in as data, never as a message template
                logger.log(log_level, "{line}", line=line.rstrip())

        return result
