"""program command - build the application and print its binary."""

from __future__ import annotations

import sys
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel

from debugbin.core.log import logger
from debugbin.runner.build import BuildRunner

if TYPE_CHECKING:
    from debugbin.core.config import State


def cargo_binary(workdir: Path) -> Path | None:
    """target/debug/<package name> from workdir's Cargo.toml, if any."""
    manifest = workdir / "Cargo.toml"
    if not manifest.is_file():
        return None
    with open(manifest, "rb") as f:
        name = tomllib.load(f).get("package", {}).get("name")
    if not name:
        return None
    return Path("target") / "debug" / name


class ProgramCommand(BaseModel):
    """Build the application and print the binary to debug.

    The binary is program.binary, or target/debug/<package name> read
    from Cargo.toml when that is unset. On a failed build the output is
    shown and the build tool's exit code returned, so the debugger is
    not started.
    """

    async def run_workflow(self, state: State) -> int:
        program = state.config.program
        workdir = Path(state.config.build.workdir)

        binary = program.binary or cargo_binary(workdir)
        if binary is None:
            logger.error(
                "program.binary is not configured and no package name "
                "was found in Cargo.toml "
                "(e.g. --config.program.binary target/debug/myapp)"
            )
            return 2

        result = BuildRunner.from_config(state.config).run(
            program.build_command
        )
        if not result.success:
            logger.error(
                "Build failed with exit code {exit_code}",
                exit_code=result.exit_code,
            )
            sys.stderr.write(result.combined_output)
            return result.exit_code

        print(workdir / binary)
        return 0
