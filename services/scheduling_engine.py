"""Loop Autopilot solver: schedules a multi-session interview loop."""

import logging
import uuid
from typing import Optional

from models.entities import (
    Booking,
    CandidateAvailabilityBlock,
    ConstraintViolation,
    FeasiblePlacement,
    InterviewerSchedule,
    LoopSessionTemplate,
    LoopSolution,
    LoopSolveResult,
    PartialSolution,
    SchedulingPolicy,
    SolveMetadata,
)
from services.diagnostics import (
    build_recommended_actions,
    no_availability_violation,
    track_search_violations,
    track_session_violation,
)
from services.feasibility import build_feasible_placements
from services.loop_search import search
from services.solution_ranker import rank_solutions
from services.solver_context import SolverContext

log = logging.getLogger(__name__)

TOP_CONSTRAINTS_LIMIT = 5


class SchedulingEngine:
    """Engine for finding ranked schedules for an interview loop."""

    def __init__(self, default_policy: Optional[SchedulingPolicy] = None):
        """Initialize scheduling engine."""
        self.default_policy = default_policy or SchedulingPolicy()

    def solve_loop(
        self,
        sessions: list[LoopSessionTemplate],
        candidate_blocks: list[CandidateAvailabilityBlock],
        candidate_timezone: str,
        interviewer_schedules: dict[str, InterviewerSchedule],
        existing_bookings: Optional[list[Booking]] = None,
        policy: Optional[SchedulingPolicy] = None
    ) -> LoopSolveResult:
        """
        Find the best schedules for a loop.

        Args:
            sessions: Loop sessions; solved in ascending `order`
            candidate_blocks: Candidate availability (UTC)
            candidate_timezone: IANA zone used only for display times
            interviewer_schedules: Busy calendars keyed by email; interviewers
                without an entry are never placed
            existing_bookings: Committed bookings for conflict suppression
            policy: Solver policy (engine default if omitted)

        Returns:
            LoopSolveResult. Infeasibility is reported through status,
            top_constraints and recommended_actions, never raised.
        """
        context = SolverContext(
            policy=policy or self.default_policy,
            candidate_timezone=candidate_timezone,
            candidate_blocks=list(candidate_blocks),
            sessions=sorted(sessions, key=lambda s: s.order),
            interviewer_schedules=dict(interviewer_schedules),
            existing_bookings=list(existing_bookings or []),
            graph_api_calls=len(interviewer_schedules)
        )
        solve_id = f"solve-{uuid.uuid4().hex[:12]}"

        if not context.sessions:
            context.add_violation(no_availability_violation(
                "No sessions defined in the loop template",
                "The loop template has no sessions"
            ))
            return self._unsatisfiable(solve_id, context)

        if not context.candidate_blocks:
            context.add_violation(no_availability_violation(
                "Candidate has not provided any availability",
                "No availability blocks found"
            ))
            return self._unsatisfiable(solve_id, context)

        feasible_by_session: dict[str, list[FeasiblePlacement]] = {}
        for session in context.sessions:
            placements = build_feasible_placements(session, context)
            feasible_by_session[session.id] = placements
            if not placements:
                track_session_violation(session, context)

        if any(not feasible_by_session[s.id] for s in context.sessions):
            return self._unsatisfiable(solve_id, context)

        solutions: list[LoopSolution] = []
        search(PartialSolution(), 0, feasible_by_session, context, solutions)

        if context.iterations >= context.policy.max_search_iterations:
            context.iteration_limit_reached = True

        if not solutions:
            track_search_violations(context)
            return self._unsatisfiable(solve_id, context)

        ranked = rank_solutions(solutions, context.policy)
        top = ranked[:context.policy.max_solutions_to_return]

        log.info(
            "Solve %s: %d solution(s) from %d candidates, %d iterations, %d slots evaluated",
            solve_id, len(top), len(solutions), context.iterations, context.slots_evaluated
        )

        return LoopSolveResult(
            solve_id=solve_id,
            status="SOLVED",
            solutions=top,
            top_constraints=[],
            recommended_actions=[],
            confidence="HIGH" if len(top) >= 3 else "MEDIUM",
            metadata=self._metadata(context)
        )

    def _metadata(self, context: SolverContext) -> SolveMetadata:
        return SolveMetadata(
            solve_duration_ms=int(context.elapsed_ms()),
            search_iterations=context.iterations,
            slots_evaluated=context.slots_evaluated,
            graph_api_calls=context.graph_api_calls,
            timed_out=context.timed_out,
            iteration_limit_reached=context.iteration_limit_reached
        )

    def _unsatisfiable(self, solve_id: str, context: SolverContext) -> LoopSolveResult:
        """Build a result with diagnostics; status TIMEOUT if the search budget ran out."""
        violations: list[ConstraintViolation] = context.violations
        stopped_early = context.timed_out or context.iteration_limit_reached
        status = "TIMEOUT" if stopped_early else "UNSATISFIABLE"

        log.info(
            "Solve %s: %s (%s)",
            solve_id, status, ", ".join(v.key for v in violations) or "no diagnostics"
        )

        return LoopSolveResult(
            solve_id=solve_id,
            status=status,
            solutions=[],
            top_constraints=violations[:TOP_CONSTRAINTS_LIMIT],
            recommended_actions=build_recommended_actions(violations, context.policy.max_days_span),
            confidence="HIGH" if violations else "LOW",
            metadata=self._metadata(context)
        )
