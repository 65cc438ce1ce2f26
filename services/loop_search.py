"""Bounded backtracking search over per-session placements."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from models.entities import FeasiblePlacement, LoopSolution, PartialSolution
from services.solution_ranker import build_solution
from services.solver_context import SolverContext

log = logging.getLogger(__name__)


def _should_stop(context: SolverContext, solutions: list[LoopSolution]) -> bool:
    policy = context.policy
    if context.elapsed_ms() >= policy.solver_timeout_ms:
        if not context.timed_out:
            log.debug("Search timed out after %d iterations", context.iterations)
        context.timed_out = True
        return True
    if context.iterations >= policy.max_search_iterations:
        context.iteration_limit_reached = True
        return True
    # Over-collect so the ranker has something to choose from
    if len(solutions) >= policy.max_solutions_to_return * 2:
        return True
    return False


def _extend(partial: PartialSolution, placement: FeasiblePlacement) -> PartialSolution:
    used_by_day = {day: set(emails) for day, emails in partial.used_interviewers_by_day.items()}
    used_by_day.setdefault(placement.day_key, set()).add(placement.interviewer_email)
    return PartialSolution(
        placements=partial.placements + [placement],
        days_used=partial.days_used | {placement.day_key},
        used_interviewers_by_day=used_by_day
    )


def search(
    partial: PartialSolution,
    session_index: int,
    feasible_by_session: dict[str, list[FeasiblePlacement]],
    context: SolverContext,
    solutions: list[LoopSolution]
) -> None:
    """
    Place session `session_index` and recurse.

    Complete placement sequences are materialized into `solutions`. The walk
    stops early on timeout, on the iteration budget, or once twice the
    requested number of solutions has been collected.
    """
    if _should_stop(context, solutions):
        return

    context.iterations += 1

    if session_index >= len(context.sessions):
        solutions.append(build_solution(partial, context))
        return

    session = context.sessions[session_index]
    placements = feasible_by_session.get(session.id, [])

    min_start: Optional[datetime] = None
    if partial.placements:
        previous = partial.placements[-1]
        previous_session = context.sessions[session_index - 1]
        gap = previous_session.constraints.min_gap_to_next_minutes or 0
        min_start = previous.end + timedelta(minutes=gap)

    for placement in placements:
        if min_start is not None and placement.start < min_start:
            context.gap_rejections += 1
            continue

        if (
            placement.day_key not in partial.days_used
            and len(partial.days_used) >= context.policy.max_days_span
        ):
            context.day_span_rejections += 1
            continue

        search(_extend(partial, placement), session_index + 1, feasible_by_session, context, solutions)
        if _should_stop(context, solutions):
            return
