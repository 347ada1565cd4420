"""
Refinement loop: bounded critique/revise passes over the whole script.

Each pass asks the editor for a critique grounded on the original summaries
(never on earlier drafts) and, unless the editor returns the
NO_IMPROVEMENTS_MARKER sentinel, has the host model apply it. The loop stops
at the sentinel or after ``max_iterations`` passes, whichever comes first.
"""

from __future__ import annotations

from collections.abc import Sequence

from podcaster.agents.state import RefinementState
from podcaster.core.logging import get_logger
from podcaster.services.language_model import NO_IMPROVEMENTS_MARKER, LanguageModelService

logger = get_logger(__name__)


async def refine_once(
    state: RefinementState,
    summaries: Sequence[str],
    llm: LanguageModelService,
) -> RefinementState:
    """One pass: critique, then revise unless the editor signals convergence."""
    iteration = state.iteration + 1

    critique = await llm.critique(summaries, state.script)
    if critique.strip() == NO_IMPROVEMENTS_MARKER:
        logger.info("refinement_converged", iteration=iteration)
        return RefinementState(script=state.script, iteration=iteration, should_continue=False)

    revised = await llm.revise(critique, summaries, state.script)
    logger.info(
        "refinement_pass_complete",
        iteration=iteration,
        critique_length=len(critique),
        script_length=len(revised),
    )
    return RefinementState(script=revised, iteration=iteration, should_continue=True)


async def refine_script(
    script: str,
    summaries: Sequence[str],
    llm: LanguageModelService,
    max_iterations: int,
) -> RefinementState:
    """Run passes until convergence or the cap; returns the terminal state."""
    state = RefinementState(script=script)
    logger.info("refinement_started", max_iterations=max_iterations)

    while state.can_continue(max_iterations):
        logger.debug("refinement_pass", iteration=state.iteration + 1, max_iterations=max_iterations)
        state = await refine_once(state, summaries, llm)

    logger.info(
        "refinement_finished",
        passes=state.iteration,
        converged=not state.should_continue,
    )
    return state
