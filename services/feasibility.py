"""Per-session feasibility: every independently valid placement."""

import logging
from datetime import datetime, timedelta

from models.entities import (
    Booking,
    BusyInterval,
    CandidateAvailabilityBlock,
    FeasiblePlacement,
    LoopSessionTemplate,
    SessionConstraints,
)
from services.slot_generator import ensure_utc
from services.solver_context import SolverContext

log = logging.getLogger(__name__)

DEFAULT_EARLIEST_START = "09:00"
DEFAULT_LATEST_END = "17:00"


def _minutes_of_day(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def is_within_business_hours(
    start: datetime,
    end: datetime,
    constraints: SessionConstraints
) -> bool:
    """
    Check a placement against the session's allowed window.

    The window is evaluated on UTC wall-clock time, not the candidate's
    timezone.
    """
    earliest = _minutes_of_day(constraints.earliest_start_local or DEFAULT_EARLIEST_START)
    latest = _minutes_of_day(constraints.latest_end_local or DEFAULT_LATEST_END)

    start_utc = ensure_utc(start)
    end_utc = ensure_utc(end)
    start_minutes = start_utc.hour * 60 + start_utc.minute
    end_minutes = end_utc.hour * 60 + end_utc.minute

    return start_minutes >= earliest and end_minutes <= latest


def is_within_candidate_blocks(
    start: datetime,
    end: datetime,
    blocks: list[CandidateAvailabilityBlock]
) -> bool:
    """True if a single block contains [start, end)."""
    for block in blocks:
        if start >= ensure_utc(block.start_at) and end <= ensure_utc(block.end_at):
            return True
    return False


def is_interviewer_busy(
    start: datetime,
    end: datetime,
    busy_intervals: list[BusyInterval]
) -> bool:
    for busy in busy_intervals:
        if start < ensure_utc(busy.end) and end > ensure_utc(busy.start):
            return True
    return False


def has_conflicting_booking(
    start: datetime,
    end: datetime,
    interviewer_email: str,
    bookings: list[Booking]
) -> bool:
    """True if a live booking for this interviewer overlaps [start, end)."""
    for booking in bookings:
        if booking.status == "cancelled":
            continue
        if booking.interviewer_email != interviewer_email:
            continue
        if start < ensure_utc(booking.scheduled_end) and end > ensure_utc(booking.scheduled_start):
            return True
    return False


def build_feasible_placements(
    session: LoopSessionTemplate,
    context: SolverContext
) -> list[FeasiblePlacement]:
    """
    Enumerate every (start, end, interviewer) triple valid for one session.

    Placements come out in slot order, then in pool order. Every slot looked
    at counts towards context.slots_evaluated.
    """
    placements: list[FeasiblePlacement] = []
    policy = context.policy

    if session.duration_minutes <= 0:
        log.warning(
            "Session %s has non-positive duration %s; treating as infeasible",
            session.id, session.duration_minutes
        )
        return placements

    duration = timedelta(minutes=session.duration_minutes)

    for slot in context.candidate_slots:
        context.slots_evaluated += 1
        session_end = slot.start + duration

        if policy.enforce_business_hours and not is_within_business_hours(
            slot.start, session_end, session.constraints
        ):
            continue

        if not is_within_candidate_blocks(slot.start, session_end, context.candidate_blocks):
            context.boundary_rejections += 1
            continue

        for email in session.interviewer_pool.emails:
            schedule = context.interviewer_schedules.get(email)
            if schedule is None:
                continue

            if is_interviewer_busy(slot.start, session_end, schedule.busy_intervals):
                context.busy_rejections += 1
                continue

            if has_conflicting_booking(slot.start, session_end, email, context.existing_bookings):
                if policy.enforce_existing_bookings:
                    context.booking_rejections += 1
                    continue
                log.debug(
                    "Booking conflict for %s at %s ignored (enforce_existing_bookings off)",
                    email, slot.start.isoformat()
                )

            placements.append(FeasiblePlacement(
                session_id=session.id,
                session_name=session.name,
                start=slot.start,
                end=session_end,
                interviewer_email=email,
                day_key=slot.date_key
            ))

    log.debug("Session %s: %d feasible placements", session.id, len(placements))
    return placements
