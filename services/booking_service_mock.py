"""Mock booking service that records calendar events instead of creating them."""

import uuid
from datetime import datetime
from typing import Optional

import pytz

from models.entities import Booking, ScheduledSession
from services.errors import BookingError
from services.solution_ranker import parse_utc_iso


class BookingServiceMock:
    """Mock session booker that keeps events and invites in memory."""

    def __init__(
        self,
        fail_session_ids: Optional[set[str]] = None,
        fail_cancel_booking_ids: Optional[set[str]] = None
    ):
        """
        Initialize booking service.

        Args:
            fail_session_ids: session ids whose booking should fail
            fail_cancel_booking_ids: booking ids whose cancellation should fail
        """
        self.fail_session_ids = set(fail_session_ids or ())
        self.fail_cancel_booking_ids = set(fail_cancel_booking_ids or ())
        self.bookings: dict[str, Booking] = {}
        self.sent_invites: list[dict] = []

    def book_session(
        self,
        session: ScheduledSession,
        organizer_email: Optional[str] = None,
        meeting_title: Optional[str] = None
    ) -> Booking:
        """
        Create a calendar event for one scheduled session (mock).

        Returns:
            The confirmed Booking
        """
        if session.session_id in self.fail_session_ids:
            raise BookingError(f"Calendar rejected event for {session.interviewer_email}")

        booking = Booking(
            id=f"booking-{uuid.uuid4().hex[:10]}",
            scheduled_start=parse_utc_iso(session.start_utc_iso),
            scheduled_end=parse_utc_iso(session.end_utc_iso),
            status="confirmed",
            interviewer_email=session.interviewer_email,
            calendar_event_id=f"event-{uuid.uuid4().hex[:10]}"
        )
        self.bookings[booking.id] = booking

        subject, body = self._generate_invite_content(session, meeting_title)
        self.sent_invites.append({
            "to": [session.interviewer_email],
            "cc": [organizer_email] if organizer_email else [],
            "subject": subject,
            "body": body,
            "sent_at": datetime.now(pytz.UTC),
            "booking_id": booking.id
        })
        return booking

    def cancel_booking(self, booking_id: str) -> None:
        """Cancel a previously created event (mock)."""
        if booking_id in self.fail_cancel_booking_ids:
            raise BookingError(f"Calendar refused to cancel {booking_id}")
        booking = self.bookings.get(booking_id)
        if booking is None:
            raise BookingError(f"Unknown booking {booking_id}")
        booking.status = "cancelled"

    def _generate_invite_content(
        self,
        session: ScheduledSession,
        meeting_title: Optional[str]
    ) -> tuple[str, str]:
        """Generate invite subject and body."""
        subject = meeting_title or f"Interview: {session.session_name}"
        duration_minutes = int(
            (parse_utc_iso(session.end_utc_iso) - parse_utc_iso(session.start_utc_iso)).total_seconds() / 60
        )

        body = f"""Hi,

You're scheduled to run the "{session.session_name}" session of an interview loop.

📅 **When:** {session.display_start} - {session.display_end} (candidate's local time)
• Start (UTC): {session.start_utc_iso}
• Duration: {duration_minutes} minutes

Please let the recruiting team know if you can no longer make it.

Best regards,
Talent Acquisition Team
""".strip()

        return subject, body

    def active_bookings(self) -> list[Booking]:
        return [b for b in self.bookings.values() if b.status != "cancelled"]
