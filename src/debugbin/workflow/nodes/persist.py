"""Persist node - write the binary path for the editor."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from debugbin.core.config import State
from debugbin.extract.store import write_binary_path


@dataclass
class Persist(BaseNode[State, None, int]):
    """Overwrite the path file with the extracted binary path."""

    async def run(self, ctx: GraphRunContext[State]) -> End[int]:
        build = ctx.state.runtime.build
        write_binary_path(
            build.binary_path, ctx.state.config.output.path_file
        )
        build.status = "persisted"
        return End(0)
