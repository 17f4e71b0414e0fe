"""
Request pipeline

A handler made of ordered async steps over a shared state object. Each
step either returns None to let the next step run, or a Respond that
ends the request with its response.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from starlette.responses import Response

StateType = TypeVar("StateType")


@dataclass
class Respond:
    """Stop the pipeline and send `response`."""

    response: Response


Step = Callable[[StateType], Awaitable[Optional[Respond]]]


class PipelineError(Exception):
    """Raised when no step produced a response."""
    pass


async def run_steps(state: StateType, steps: Sequence[Step]) -> Response:
    """
    Run `steps` in order until one responds.

    Raises:
        PipelineError: If every step passed without responding
    """
    for step in steps:
        outcome = await step(state)
        if outcome is not None:
            return outcome.response

    raise PipelineError("Pipeline finished without a response")
