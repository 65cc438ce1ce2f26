"""Commit workflow: books every session of a chosen solution, or none of them."""

import logging
from typing import Optional, Protocol

from models.entities import (
    Booking,
    BookedSessionInfo,
    LoopBookingItem,
    LoopCommitRequest,
    LoopCommitResult,
    RollbackDetails,
    ScheduledSession,
)
from services.errors import CommitError, CommitInProgressError
from services.loop_store import LoopStore

log = logging.getLogger(__name__)


class SessionBooker(Protocol):
    def book_session(
        self,
        session: ScheduledSession,
        organizer_email: Optional[str] = None,
        meeting_title: Optional[str] = None
    ) -> Booking:
        ...

    def cancel_booking(self, booking_id: str) -> None:
        ...


class LoopCommitService:
    """Turns a solution from a stored solve run into calendar bookings."""

    def __init__(self, store: LoopStore, booker: SessionBooker):
        """Initialize commit service."""
        self.store = store
        self.booker = booker

    def commit(self, request: LoopCommitRequest) -> LoopCommitResult:
        """
        Book all sessions of request.solution_id.

        Idempotent on request.commit_idempotency_key: a committed key returns
        ALREADY_COMMITTED, a pending one raises CommitInProgressError, and a
        failed one may be retried. If any session fails to book, every event
        created so far is cancelled and the booking is marked FAILED.

        Raises:
            CommitError: unknown solve run or solution, a run that is not
                SOLVED, or an availability request that is already booked
        """
        existing = self.store.get_loop_booking_by_idempotency_key(request.commit_idempotency_key)
        if existing:
            if existing.status == "COMMITTED":
                return LoopCommitResult(status="ALREADY_COMMITTED", loop_booking_id=existing.id)
            if existing.status == "PENDING":
                raise CommitInProgressError(
                    f"Commit {request.commit_idempotency_key} is already in progress"
                )

        run = self.store.get_solve_run(request.solve_id)
        if run is None:
            raise CommitError(f"Solve run {request.solve_id} not found")
        if run.result_snapshot is None:
            raise CommitError(f"Solve run {request.solve_id} has no result")
        if run.status != "SOLVED":
            raise CommitError(f"Cannot commit - solve status is {run.status}")

        solution = next(
            (s for s in run.result_snapshot.solutions if s.solution_id == request.solution_id),
            None
        )
        if solution is None:
            raise CommitError(f"Solution {request.solution_id} not found in solve result")

        availability_status = self.store.get_availability_status(run.availability_request_id)
        if availability_status in ("booked", "cancelled", "expired"):
            raise CommitError(f"Availability request is {availability_status}")

        loop_booking = self.store.create_loop_booking(run, solution.solution_id, request.commit_idempotency_key)

        booked: list[BookedSessionInfo] = []
        errors: list[str] = []

        for session in solution.sessions:
            try:
                booking = self.booker.book_session(
                    session,
                    organizer_email=request.organizer_email,
                    meeting_title=request.meeting_title
                )
            except Exception as e:
                log.exception("Error booking session %s", session.session_id)
                errors.append(f'Failed to book "{session.session_name}": {e}')
                break

            calendar_event_id = booking.calendar_event_id or "pending"
            self.store.add_loop_booking_item(LoopBookingItem(
                loop_booking_id=loop_booking.id,
                session_template_id=session.session_id,
                booking_id=booking.id,
                calendar_event_id=calendar_event_id
            ))
            booked.append(BookedSessionInfo(
                session_id=session.session_id,
                session_name=session.session_name,
                booking_id=booking.id,
                calendar_event_id=calendar_event_id,
                start_utc_iso=session.start_utc_iso,
                end_utc_iso=session.end_utc_iso,
                interviewer_email=session.interviewer_email
            ))

        if errors:
            rollback = self._rollback(booked)
            message = "; ".join(errors)
            self.store.update_loop_booking_status(
                loop_booking.id, "FAILED", error_message=message, rollback_details=rollback
            )
            return LoopCommitResult(
                status="FAILED",
                loop_booking_id=loop_booking.id,
                error_message=message,
                rollback_details=rollback
            )

        self.store.update_loop_booking_status(loop_booking.id, "COMMITTED")
        self.store.set_availability_status(run.availability_request_id, "booked")
        log.info("Committed loop booking %s with %d session(s)", loop_booking.id, len(booked))

        return LoopCommitResult(
            status="COMMITTED",
            loop_booking_id=loop_booking.id,
            booked_sessions=booked
        )

    def _rollback(self, booked: list[BookedSessionInfo]) -> RollbackDetails:
        """Cancel every booking created during a failed commit."""
        details = RollbackDetails(events_created=len(booked))
        for info in booked:
            try:
                self.booker.cancel_booking(info.booking_id)
                details.events_rolled_back += 1
            except Exception as e:
                log.error("Failed to roll back booking %s: %s", info.booking_id, e)
                details.rollback_errors.append(f"Failed to rollback {info.session_id}: {e}")
        return details
