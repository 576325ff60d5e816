"""Result types for build execution."""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field


class BuildResult(BaseModel):
    """Outcome of one build tool invocation.

    A non-zero exit_code is ordinary data; callers decide whether to
    go on and extract a binary path.
    """

    command: str
    exit_code: int
    combined_output: str
    stdout: str = ""
    stderr: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    log_file: Path | None = None

    @property
    def success(self) -> bool:
        return self.exit_code == 0
