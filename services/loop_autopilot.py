"""Loop Autopilot service: idempotent, persisted solves."""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from models.entities import LoopSolveRequest, LoopSolveResult, SchedulingPolicy, SolveMetadata
from services.calendar_service import CalendarService
from services.loop_store import LoopStore
from services.policy_config import apply_policy_overrides
from services.scheduling_engine import SchedulingEngine

log = logging.getLogger(__name__)


@dataclass
class SolveResponse:
    """Solve outcome as returned to callers."""
    solve_id: str  # solve run id, the handle a commit refers to
    cached: bool
    result: LoopSolveResult


class LoopAutopilotService:
    """Runs loop solves against live calendars and records each run."""

    def __init__(
        self,
        calendar_service: CalendarService,
        store: LoopStore,
        engine: Optional[SchedulingEngine] = None,
        base_policy: Optional[SchedulingPolicy] = None
    ):
        """Initialize autopilot service."""
        self.calendar_service = calendar_service
        self.store = store
        self.engine = engine or SchedulingEngine()
        self.base_policy = base_policy or self.engine.default_policy

    def solve(self, request: LoopSolveRequest) -> SolveResponse:
        """
        Solve a loop for a candidate's availability.

        A repeated solve_idempotency_key returns the stored result without
        searching again. Failures while fetching calendars or solving are
        recorded on the run and reported as an ERROR result.
        """
        if request.solve_idempotency_key:
            existing = self.store.get_solve_run_by_idempotency_key(request.solve_idempotency_key)
            if existing and existing.result_snapshot:
                log.info("Solve key %s already ran as %s", request.solve_idempotency_key, existing.id)
                return SolveResponse(solve_id=existing.id, cached=True, result=existing.result_snapshot)

        sessions = [
            replace(s, interviewer_pool=request.interviewer_pool_overrides[s.id])
            if s.id in request.interviewer_pool_overrides else s
            for s in request.sessions
        ]

        run = self.store.create_solve_run(request)

        try:
            policy = apply_policy_overrides(self.base_policy, request.policy_overrides)
            schedules = self.calendar_service.get_interviewer_schedules(
                sessions,
                request.candidate_blocks,
                policy.slot_granularity_minutes
            )
            result = self.engine.solve_loop(
                sessions,
                request.candidate_blocks,
                request.candidate_timezone,
                schedules,
                request.existing_bookings,
                policy
            )
        except Exception as e:
            log.exception("Solve run %s failed", run.id)
            run = self.store.update_solve_run_error(run.id, e)
            result = LoopSolveResult(
                solve_id=run.id,
                status="ERROR",
                solutions=[],
                top_constraints=[],
                recommended_actions=[],
                confidence="LOW",
                metadata=SolveMetadata(
                    solve_duration_ms=0,
                    search_iterations=0,
                    slots_evaluated=0,
                    graph_api_calls=0
                ),
                error_message=run.error_message
            )
            # No snapshot is stored, so a retry with the same key runs again
            return SolveResponse(solve_id=run.id, cached=False, result=result)

        self.store.update_solve_run_result(run.id, result)
        return SolveResponse(solve_id=run.id, cached=False, result=result)
