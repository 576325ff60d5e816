"""Graph workflow definition."""

from pydantic_graph import Graph

from debugbin.core.config import State
from debugbin.core.log import logger


def create_workflow() -> Graph:
    """Create the build-and-extract workflow graph.

    Build -> Extract -> Persist, ending early with the build tool's
    exit code when the build fails.

    Returns:
        Graph workflow with State as state_type
    """
    logger.debug("Building workflow graph")

    from debugbin.workflow.nodes import Build, Extract, Persist

    return Graph(nodes=(Build, Extract, Persist), state_type=State)


async def run_workflow(state: State) -> int:
    """Run the workflow from Build and return its exit code."""
    from debugbin.workflow.nodes import Build

    workflow = create_workflow()
    async with workflow.iter(Build(), state=state) as run:
        async for node in run:
            logger.trace("Workflow step", node=type(node).__name__)
    return run.result.output
