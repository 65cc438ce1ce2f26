"""Builders shared by the test modules."""

from datetime import datetime, timedelta
from typing import Optional

import pytz

from models.entities import (
    BusyInterval,
    CandidateAvailabilityBlock,
    InterviewerPoolConfig,
    InterviewerSchedule,
    LoopSessionTemplate,
    SchedulingPolicy,
    SessionConstraints,
)
from services.solver_context import SolverContext


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=pytz.UTC)


def at(hour: int, minute: int = 0, day: int = 1) -> datetime:
    """A time on March <day>, 2024 (UTC). March 1st 2024 is a Friday."""
    return utc(2024, 3, day, hour, minute)


def make_session(
    session_id: str,
    order: int,
    duration: int,
    emails: list[str],
    gap: int = 15,
    earliest: str = "09:00",
    latest: str = "17:00",
    name: Optional[str] = None
) -> LoopSessionTemplate:
    return LoopSessionTemplate(
        id=session_id,
        order=order,
        name=name or session_id,
        duration_minutes=duration,
        interviewer_pool=InterviewerPoolConfig(emails=list(emails)),
        constraints=SessionConstraints(
            earliest_start_local=earliest,
            latest_end_local=latest,
            min_gap_to_next_minutes=gap
        )
    )


def make_block(start: datetime, end: datetime) -> CandidateAvailabilityBlock:
    return CandidateAvailabilityBlock(start_at=start, end_at=end)


def make_schedules(*emails: str, busy: Optional[dict[str, list[tuple[datetime, datetime]]]] = None):
    busy = busy or {}
    return {
        email: InterviewerSchedule(
            email=email,
            busy_intervals=[BusyInterval(start=s, end=e) for s, e in busy.get(email, [])]
        )
        for email in emails
    }


def make_context(
    sessions,
    blocks,
    schedules,
    policy: Optional[SchedulingPolicy] = None,
    bookings=None,
    timezone: str = "UTC"
) -> SolverContext:
    return SolverContext(
        policy=policy or SchedulingPolicy(),
        candidate_timezone=timezone,
        candidate_blocks=list(blocks),
        sessions=sorted(sessions, key=lambda s: s.order),
        interviewer_schedules=schedules,
        existing_bookings=list(bookings or []),
        graph_api_calls=len(schedules)
    )


class StaticProvider:
    """Schedule provider returning fixed busy intervals; counts calls."""

    def __init__(self, busy: Optional[dict[str, list[BusyInterval]]] = None, known: Optional[set[str]] = None, error=None):
        self.busy = busy or {}
        self.known = known
        self.error = error
        self.calls = 0

    def get_schedules(self, emails, window_start, window_end, interval_minutes=15):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return [
            InterviewerSchedule(email=e, busy_intervals=list(self.busy.get(e, [])))
            for e in emails
            if self.known is None or e in self.known
        ]


def minutes(n: int) -> timedelta:
    return timedelta(minutes=n)
