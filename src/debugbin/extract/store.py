"""Hand the extracted path to the editor through a file."""

from pathlib import Path

from debugbin.core.log import logger


def write_binary_path(path: str, path_file: Path) -> Path:
    """Overwrite path_file with path, creating parent directories.

    Returns:
        The file written
    """
    path_file.parent.mkdir(parents=True, exist_ok=True)
    path_file.write_text(path.strip() + "\n", encoding="utf-8")
    logger.info("Wrote test binary path", path=path, file=str(path_file))
    return path_file


def read_binary_path(path_file: Path) -> str | None:
    """Path stored by write_binary_path(), or None if there is none."""
    try:
        content = path_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    return content.strip() or None
