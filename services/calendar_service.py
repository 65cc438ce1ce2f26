"""Calendar service: turns provider free/busy data into solver schedules."""

import logging
from typing import Optional, Protocol

from models.entities import (
    AvailabilityWindow,
    BusyInterval,
    CandidateAvailabilityBlock,
    InterviewerSchedule,
    LoopSessionTemplate,
)
from services.slot_generator import ensure_utc

log = logging.getLogger(__name__)


class ScheduleProvider(Protocol):
    def get_schedules(self, emails, window_start, window_end, interval_minutes: int = 15) -> list[InterviewerSchedule]:
        ...


class CalendarService:
    """Service for loading interviewer busy calendars for a loop."""

    def __init__(self, provider: ScheduleProvider):
        """Initialize with a free/busy provider (API client or mock)."""
        self.provider = provider

    @staticmethod
    def collect_interviewer_emails(sessions: list[LoopSessionTemplate]) -> list[str]:
        """Unique pool emails across sessions, in first-seen order."""
        seen: dict[str, None] = {}
        for session in sessions:
            for email in session.interviewer_pool.emails:
                seen.setdefault(email, None)
        return list(seen)

    @staticmethod
    def get_availability_window(blocks: list[CandidateAvailabilityBlock]) -> Optional[AvailabilityWindow]:
        """Span from the earliest block start to the latest block end."""
        if not blocks:
            return None
        return AvailabilityWindow(
            start=min(ensure_utc(b.start_at) for b in blocks),
            end=max(ensure_utc(b.end_at) for b in blocks)
        )

    @staticmethod
    def merge_busy_intervals(intervals: list[BusyInterval]) -> list[BusyInterval]:
        """Convert to UTC, sort by start and merge overlapping or touching intervals."""
        ordered = sorted(
            (BusyInterval(start=ensure_utc(i.start), end=ensure_utc(i.end)) for i in intervals),
            key=lambda i: i.start
        )
        merged: list[BusyInterval] = []
        for interval in ordered:
            if interval.end <= interval.start:
                continue
            if merged and interval.start <= merged[-1].end:
                merged[-1].end = max(merged[-1].end, interval.end)
            else:
                merged.append(interval)
        return merged

    def get_interviewer_schedules(
        self,
        sessions: list[LoopSessionTemplate],
        candidate_blocks: list[CandidateAvailabilityBlock],
        interval_minutes: int = 15
    ) -> dict[str, InterviewerSchedule]:
        """
        Fetch busy calendars for every interviewer referenced by the loop.

        Only the window covered by the candidate's blocks is requested.
        Interviewers the provider does not return are left out of the map,
        which makes them ineligible rather than an error.
        """
        emails = self.collect_interviewer_emails(sessions)
        window = self.get_availability_window(candidate_blocks)
        if not emails or window is None:
            return {}

        fetched = self.provider.get_schedules(emails, window.start, window.end, interval_minutes)

        schedules: dict[str, InterviewerSchedule] = {}
        for schedule in fetched:
            schedules[schedule.email] = InterviewerSchedule(
                email=schedule.email,
                busy_intervals=self.merge_busy_intervals(schedule.busy_intervals)
            )

        missing = [e for e in emails if e not in schedules]
        if missing:
            log.warning("No calendar returned for %d interviewer(s): %s", len(missing), ", ".join(missing))

        return schedules
