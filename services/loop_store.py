"""In-memory persistence for solve runs and loop bookings."""

import traceback
import uuid
from datetime import datetime
from typing import Dict, List, Optional

import pytz

from models.entities import (
    LoopBooking,
    LoopBookingItem,
    LoopBookingStatus,
    LoopSolveRequest,
    LoopSolveResult,
    LoopSolveRun,
    RollbackDetails,
)


def _now() -> datetime:
    return datetime.now(pytz.UTC)


class LoopStore:
    """Stores solve runs and commits, indexed by id and idempotency key."""

    def __init__(self):
        """Initialize empty store."""
        self._solve_runs: Dict[str, LoopSolveRun] = {}
        self._solve_runs_by_key: Dict[str, str] = {}
        self._bookings: Dict[str, LoopBooking] = {}
        self._bookings_by_key: Dict[str, str] = {}
        self._booking_items: Dict[str, List[LoopBookingItem]] = {}
        self._availability_status: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Solve runs
    # ------------------------------------------------------------------

    def create_solve_run(self, request: LoopSolveRequest) -> LoopSolveRun:
        run = LoopSolveRun(
            id=f"run-{uuid.uuid4().hex[:12]}",
            availability_request_id=request.availability_request_id,
            loop_template_id=request.loop_template_id,
            inputs_snapshot=request,
            status="PARTIAL",
            created_at=_now(),
            solve_idempotency_key=request.solve_idempotency_key
        )
        self._solve_runs[run.id] = run
        if request.solve_idempotency_key:
            self._solve_runs_by_key[request.solve_idempotency_key] = run.id
        return run

    def get_solve_run(self, run_id: str) -> Optional[LoopSolveRun]:
        return self._solve_runs.get(run_id)

    def get_solve_run_by_idempotency_key(self, key: str) -> Optional[LoopSolveRun]:
        run_id = self._solve_runs_by_key.get(key)
        return self._solve_runs.get(run_id) if run_id else None

    def get_latest_solve_run(self, availability_request_id: str) -> Optional[LoopSolveRun]:
        """Most recently created run for an availability request."""
        latest = None
        for run in self._solve_runs.values():
            if run.availability_request_id == availability_request_id:
                latest = run
        return latest

    def update_solve_run_result(self, run_id: str, result: LoopSolveResult) -> LoopSolveRun:
        run = self._solve_runs[run_id]
        run.status = result.status
        run.result_snapshot = result
        run.solutions_count = len(result.solutions)
        run.solve_duration_ms = result.metadata.solve_duration_ms
        run.search_iterations = result.metadata.search_iterations
        run.graph_api_calls = result.metadata.graph_api_calls
        return run

    def update_solve_run_error(self, run_id: str, error: BaseException) -> LoopSolveRun:
        run = self._solve_runs[run_id]
        run.status = "ERROR"
        run.error_message = str(error) or type(error).__name__
        run.error_stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return run

    # ------------------------------------------------------------------
    # Loop bookings
    # ------------------------------------------------------------------

    def create_loop_booking(self, run: LoopSolveRun, solution_id: str, commit_idempotency_key: str) -> LoopBooking:
        now = _now()
        booking = LoopBooking(
            id=f"loop-booking-{uuid.uuid4().hex[:12]}",
            availability_request_id=run.availability_request_id,
            loop_template_id=run.loop_template_id,
            solve_run_id=run.id,
            chosen_solution_id=solution_id,
            commit_idempotency_key=commit_idempotency_key,
            status="PENDING",
            created_at=now,
            updated_at=now
        )
        self._bookings[booking.id] = booking
        self._bookings_by_key[commit_idempotency_key] = booking.id
        self._booking_items[booking.id] = []
        return booking

    def get_loop_booking(self, booking_id: str) -> Optional[LoopBooking]:
        return self._bookings.get(booking_id)

    def get_loop_booking_by_idempotency_key(self, key: str) -> Optional[LoopBooking]:
        booking_id = self._bookings_by_key.get(key)
        return self._bookings.get(booking_id) if booking_id else None

    def get_committed_loop_booking(self, availability_request_id: str) -> Optional[LoopBooking]:
        for booking in self._bookings.values():
            if booking.availability_request_id == availability_request_id and booking.status == "COMMITTED":
                return booking
        return None

    def update_loop_booking_status(
        self,
        booking_id: str,
        status: LoopBookingStatus,
        error_message: Optional[str] = None,
        rollback_details: Optional[RollbackDetails] = None
    ) -> LoopBooking:
        booking = self._bookings[booking_id]
        booking.status = status
        booking.updated_at = _now()
        booking.error_message = error_message
        if rollback_details is not None:
            booking.rollback_attempted = True
            booking.rollback_details = rollback_details
        return booking

    def add_loop_booking_item(self, item: LoopBookingItem) -> None:
        self._booking_items.setdefault(item.loop_booking_id, []).append(item)

    def list_loop_booking_items(self, booking_id: str) -> List[LoopBookingItem]:
        return list(self._booking_items.get(booking_id, []))

    # ------------------------------------------------------------------
    # Availability requests
    # ------------------------------------------------------------------

    def get_availability_status(self, availability_request_id: str) -> str:
        return self._availability_status.get(availability_request_id, "submitted")

    def set_availability_status(self, availability_request_id: str, status: str) -> None:
        self._availability_status[availability_request_id] = status
