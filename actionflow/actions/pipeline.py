"""
Action Pipeline: run one action's steps in order
(reset → policies → before → service → page config → after).
A step returning False stops the pipeline; step exceptions propagate to the caller.
"""
from typing import Any, List

from actionflow.actions.context import ExecutionContext


class Step:
    """Step protocol: name, run(ctx) -> bool (False stops the pipeline)."""

    name: str = ""

    def run(self, ctx: ExecutionContext) -> bool:
        raise NotImplementedError


def run_pipeline(steps: List[Step], ctx: ExecutionContext) -> bool:
    """Run steps in order. Returns False if a step stopped the pipeline early."""
    for step in steps:
        if step.run(ctx) is False:
            return False
    return True


def run_action_with_pipeline(ctx: ExecutionContext, default_steps_fn: Any) -> bool:
    """Controllers may provide pipeline_steps(ctx); otherwise default_steps_fn(ctx) is used."""
    custom = getattr(ctx.controller, "pipeline_steps", None)
    steps = custom(ctx) if callable(custom) else None
    if steps is None:
        steps = default_steps_fn(ctx)
    return run_pipeline(steps, ctx)
