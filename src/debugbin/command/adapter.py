"""adapter command - print the debug adapter command line."""

from __future__ import annotations

import shlex
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from debugbin.debugger.adapter import adapter_command

if TYPE_CHECKING:
    from debugbin.core.config import State


class AdapterCommand(BaseModel):
    """Print the command that starts the debug adapter server."""

    port: int | None = Field(
        default=None,
        description=(
            "Port to substitute for ${port}; "
            "left as ${port} for the editor when omitted"
        ),
    )

    async def run_workflow(self, state: State) -> int:
        debugger = state.config.debugger
        argv = adapter_command(
            debugger.command,
            debugger.args,
            port=self.port,
            search_dirs=debugger.search_dirs,
        )
        print(shlex.join(argv))
        return 0
