"""test_binary command - build and print the test binary path."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from debugbin.core.config import State


class TestBinaryCommand(BaseModel):
    """Compile the tests and print the test binary path on stdout.

    Intended to be called from a debugger configuration that needs
    the program path; nothing is written to disk.
    """

    # Not a pytest test class
    __test__ = False

    async def run_workflow(self, state: State) -> int:
        from debugbin.workflow.graph import run_workflow

        state.runtime.build.persist = False
        exit_code = await run_workflow(state)
        if exit_code == 0 and state.runtime.build.binary_path:
            print(state.runtime.build.binary_path)
        return exit_code
