"""Locate the debug adapter and build the command that starts it."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from debugbin.core.errors import ToolNotFound
from debugbin.core.log import logger

PORT_PLACEHOLDER = "${port}"


def find_adapter(command: str, search_dirs: list[Path] | None = None) -> str:
    """Resolve the adapter executable.

    An absolute or relative path is used as is if it exists. A bare
    name is looked up on PATH first, then in each of search_dirs.

    Raises:
        ToolNotFound: If no executable is found
    """
    search_dirs = [Path(d).expanduser() for d in search_dirs or []]

    if os.sep in command or (os.altsep and os.altsep in command):
        path = Path(command).expanduser()
        if path.is_file() and os.access(path, os.X_OK):
            return str(path)
        raise ToolNotFound(command)

    found = shutil.which(command)
    if found:
        return found

    for directory in search_dirs:
        found = shutil.which(command, path=str(directory))
        if found:
            return found

    raise ToolNotFound(command, [str(d) for d in search_dirs])


def adapter_command(
    command: str,
    args: list[str],
    port: int | None = None,
    search_dirs: list[Path] | None = None,
) -> list[str]:
    """Adapter executable followed by its arguments.

    Args:
        command: Adapter executable name or path
        args: Arguments, possibly containing ${port}
        port: Listen port; ${port} is left for the editor when None
        search_dirs: Extra directories searched after PATH

    Raises:
        ToolNotFound: If the adapter executable is not found
    """
    executable = find_adapter(command, search_dirs)
    logger.debug("Using debug adapter", executable=executable)
    if port is None:
        return [executable, *args]
    return [executable, *(arg.replace(PORT_PLACEHOLDER, str(port)) for arg in args)]
