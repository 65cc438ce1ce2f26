"""Mock calendar provider with synthetic interviewer busy time."""

from datetime import datetime, time
from typing import Optional

import pytz

from models.entities import AvailabilityWindow, BusyInterval, InterviewerSchedule


DEFAULT_INTERVIEWERS = {
    "alice.hm@example.com": "America/New_York",
    "bob.eng@example.com": "America/New_York",
    "carol.eng@example.com": "America/Chicago",
    "dan.design@example.com": "America/Los_Angeles",
    "erin.values@example.com": "Europe/London",
}


class CalendarServiceMock:
    """Mock provider returning synthetic weekday meetings for known interviewers."""

    def __init__(
        self,
        interviewers: Optional[dict[str, str]] = None,
        extra_busy: Optional[dict[str, list[BusyInterval]]] = None
    ):
        """
        Initialize with interviewer timezones.

        Args:
            interviewers: email -> IANA timezone of the interviewer's working day
            extra_busy: email -> explicit busy intervals added on top
        """
        self.interviewers = dict(DEFAULT_INTERVIEWERS if interviewers is None else interviewers)
        self.extra_busy = extra_busy or {}
        self.calls = 0

    def _local_interval(self, tz, day, start: time, end: time) -> BusyInterval:
        return BusyInterval(
            start=tz.localize(datetime.combine(day, start)).astimezone(pytz.UTC),
            end=tz.localize(datetime.combine(day, end)).astimezone(pytz.UTC)
        )

    def _synthetic_busy(self, email: str, window: AvailabilityWindow) -> list[BusyInterval]:
        tz = pytz.timezone(self.interviewers[email])
        busy = []

        for day in window.days:
            # Skip weekends
            if day.weekday() >= 5:
                continue
            ordinal = day.toordinal()

            # Morning standup (9:00-9:30 local)
            busy.append(self._local_interval(tz, day, time(9, 0), time(9, 30)))

            # Team meeting (14:00-15:00 local) - every other day
            if ordinal % 2 == 0:
                busy.append(self._local_interval(tz, day, time(14, 0), time(15, 0)))

            # Client sync (11:00-12:00 local) - every third day
            if ordinal % 3 == 0:
                busy.append(self._local_interval(tz, day, time(11, 0), time(12, 0)))

        return [b for b in busy if b.start < window.end and b.end > window.start]

    def get_schedules(
        self,
        emails: list[str],
        window_start: datetime,
        window_end: datetime,
        interval_minutes: int = 15
    ) -> list[InterviewerSchedule]:
        """Return schedules for the known emails; unknown emails are left out."""
        self.calls += 1
        window = AvailabilityWindow(start=window_start, end=window_end)
        schedules = []

        for email in emails:
            if email not in self.interviewers:
                continue
            busy = self._synthetic_busy(email, window) + list(self.extra_busy.get(email, []))
            schedules.append(InterviewerSchedule(email=email, busy_intervals=busy))

        return schedules
