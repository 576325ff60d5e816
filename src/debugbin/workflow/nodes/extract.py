"""Extract node - find the test binary in the build output."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from debugbin.core.config import State
from debugbin.core.errors import NoMatchFound
from debugbin.core.log import logger
from debugbin.extract.parser import detect_format, extract_binary_path
from debugbin.workflow.nodes.persist import Persist


@dataclass
class Extract(BaseNode[State, None, int]):
    """Pull the binary path out of the last build's output."""

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> Persist | End[int]:
        """Extract the path and route on whether one was found.

        Records are read from stdout only, since the build tool
        prints progress text on stderr alongside them. Plain logs are
        searched in the combined output.

        Returns:
            Persist: If a path was found and should be written
            End[int]: 0 when done

        Raises:
            ParseError: If json output contains a malformed record
            NoMatchFound: If nothing matched and a match is required
        """
        config = ctx.state.config.extract
        build = ctx.state.runtime.build
        result = build.result

        fmt = config.format
        if fmt == "auto":
            fmt = detect_format(result.stdout)
        output = result.stdout if fmt == "json" else result.combined_output

        path = extract_binary_path(
            output,
            format=fmt,
            marker=config.marker,
            selection=config.selection,
        )

        if path is None:
            build.status = "no-match"
            if config.require_match:
                raise NoMatchFound(fmt)
            logger.warn("No test binary found in build output", format=fmt)
            return End(0)

        build.binary_path = path
        build.status = "extracted"
        logger.info("Found test binary", path=path, format=fmt)

        if build.persist:
            return Persist()
        return End(0)
