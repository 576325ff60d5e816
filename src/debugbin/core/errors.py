"""Exceptions raised while building and locating test binaries."""


class DebugbinError(Exception):
    """Base class for all debugbin failures."""


class ToolNotFound(DebugbinError):
    """The build tool or debug adapter is not on the search path."""

    def __init__(self, tool: str, searched: list[str] | None = None):
        self.tool = tool
        self.searched = searched or []
        msg = f"'{tool}' not found on PATH"
        if self.searched:
            msg += f" or in {', '.join(self.searched)}"
        super().__init__(msg)


class SpawnError(DebugbinError):
    """The build process could not be started or its output read."""

    def __init__(self, command: str, reason: str):
        self.command = command
        super().__init__(f"Failed to run '{command}': {reason}")


class ParseError(DebugbinError):
    """Structured build output contained a malformed record."""

    def __init__(self, line_no: int, line: str, reason: str):
        self.line_no = line_no
        self.line = line
        super().__init__(
            f"Malformed record at line {line_no}: {reason}"
        )


class NoMatchFound(DebugbinError):
    """Build output announced no test binary."""

    def __init__(self, fmt: str):
        self.format = fmt
        super().__init__(
            f"No test binary found in build output (format: {fmt}). "
            f"Check the build command and extract settings."
        )


__all__ = [
    "DebugbinError",
    "ToolNotFound",
    "SpawnError",
    "ParseError",
    "NoMatchFound",
]
