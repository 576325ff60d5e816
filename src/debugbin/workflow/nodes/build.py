"""Build node - compile the tests without running them."""

from __future__ import annotations

import sys
from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from debugbin.core.config import State
from debugbin.core.log import logger
from debugbin.runner.build import BuildRunner
from debugbin.workflow.nodes.extract import Extract


@dataclass
class Build(BaseNode[State, None, int]):
    """Run the configured test build command."""

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> Extract | End[int]:
        """Build and route on the exit code.

        A failed build ends the workflow with the tool's exit code
        after echoing its output, so no debug session starts with a
        stale binary.

        Raises:
            ToolNotFound: If the build tool is not on PATH
            SpawnError: If the build process cannot be run
        """
        result = BuildRunner.from_config(ctx.state.config).run_test_build()
        ctx.state.runtime.build.result = result

        if not result.success:
            ctx.state.runtime.build.status = "build-failed"
            logger.error(
                "Build failed with exit code {exit_code}",
                exit_code=result.exit_code,
                command=result.command,
            )
            sys.stderr.write(result.combined_output)
            return End(result.exit_code)

        ctx.state.runtime.build.status = "built"
        return Extract()
