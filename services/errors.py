"""Exceptions raised by Loop Autopilot services."""


class LoopAutopilotError(Exception):
    """Base class for service-level failures."""


class CalendarFetchError(LoopAutopilotError):
    """Interviewer calendars could not be fetched."""


class CommitError(LoopAutopilotError):
    """A solution cannot be committed."""


class CommitInProgressError(CommitError):
    """Another commit with the same idempotency key is still pending."""


class BookingError(LoopAutopilotError):
    """The calendar refused to create or cancel an event."""
