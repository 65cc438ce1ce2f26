"""Free/busy calendar API client (getSchedule-style endpoint)."""

import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
import pytz

from models.entities import BusyInterval, InterviewerSchedule
from services.errors import CalendarFetchError

log = logging.getLogger(__name__)

BUSY_STATUSES = {"busy", "oof", "tentative"}


class FreeBusyClient:
    """Client that fetches interviewer busy intervals from a calendar API."""

    def __init__(
        self,
        base_url: str = None,
        api_token: str = None,
        organizer_email: str = None,
        timeout_seconds: float = None,
        batch_size: int = 20,
        http_client: Optional[httpx.Client] = None
    ):
        """
        Initialize free/busy client.

        Args:
            base_url: API root (defaults to env var FREEBUSY_BASE_URL)
            api_token: Bearer token (defaults to env var FREEBUSY_API_TOKEN)
            organizer_email: Mailbox the schedule lookup runs as
                (defaults to env var FREEBUSY_ORGANIZER_EMAIL)
            timeout_seconds: Request timeout (defaults to env var FREEBUSY_TIMEOUT_SECONDS or 30)
            batch_size: Max emails per request
            http_client: Pre-built httpx client (tests inject a MockTransport here)
        """
        self.base_url = (base_url or os.getenv(
            "FREEBUSY_BASE_URL",
            "https://graph.microsoft.com/v1.0"
        )).rstrip("/")
        self.api_token = api_token or os.getenv("FREEBUSY_API_TOKEN", "")
        self.organizer_email = organizer_email or os.getenv("FREEBUSY_ORGANIZER_EMAIL", "scheduler@example.com")
        self.timeout_seconds = timeout_seconds or float(os.getenv("FREEBUSY_TIMEOUT_SECONDS", "30"))
        self.batch_size = batch_size
        self._http_client = http_client

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def _schedule_url(self) -> str:
        return f"{self.base_url}/users/{self.organizer_email}/calendar/getSchedule"

    @staticmethod
    def _parse_datetime(payload: Dict[str, Any]) -> datetime:
        """Parse {"dateTime": "2024-03-01T14:00:00.0000000", "timeZone": "UTC"}."""
        raw = payload["dateTime"][:19]
        naive = datetime.strptime(raw, "%Y-%m-%dT%H:%M:%S")
        tz = pytz.timezone(payload.get("timeZone") or "UTC")
        return tz.localize(naive).astimezone(pytz.UTC)

    def _parse_schedules(self, result: Dict[str, Any]) -> List[InterviewerSchedule]:
        schedules = []
        for entry in result.get("value", []):
            email = entry.get("scheduleId", "")
            if not email:
                continue
            if "error" in entry:
                log.warning("Calendar API returned an error for %s: %s", email, entry["error"])
                continue

            busy = [
                BusyInterval(
                    start=self._parse_datetime(item["start"]),
                    end=self._parse_datetime(item["end"])
                )
                for item in entry.get("scheduleItems", [])
                if item.get("status", "busy").lower() in BUSY_STATUSES
            ]
            schedules.append(InterviewerSchedule(email=email, busy_intervals=busy))
        return schedules

    def _post(self, client: httpx.Client, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = client.post(self._schedule_url(), json=payload, headers=self._get_headers())
        response.raise_for_status()
        return response.json()

    def get_schedules(
        self,
        emails: List[str],
        window_start: datetime,
        window_end: datetime,
        interval_minutes: int = 15
    ) -> List[InterviewerSchedule]:
        """
        Get busy intervals for each email within [window_start, window_end).

        Raises:
            CalendarFetchError: on transport errors, non-2xx responses or
                malformed JSON
        """
        if not emails:
            return []

        schedules: List[InterviewerSchedule] = []
        client = self._http_client or httpx.Client(timeout=self.timeout_seconds)
        try:
            for i in range(0, len(emails), self.batch_size):
                batch = emails[i:i + self.batch_size]
                payload = {
                    "schedules": batch,
                    "startTime": {
                        "dateTime": window_start.astimezone(pytz.UTC).strftime("%Y-%m-%dT%H:%M:%S"),
                        "timeZone": "UTC"
                    },
                    "endTime": {
                        "dateTime": window_end.astimezone(pytz.UTC).strftime("%Y-%m-%dT%H:%M:%S"),
                        "timeZone": "UTC"
                    },
                    "availabilityViewInterval": interval_minutes
                }
                schedules.extend(self._parse_schedules(self._post(client, payload)))
        except httpx.HTTPError as e:
            log.error("HTTP error fetching schedules for %d interviewer(s): %s", len(emails), e)
            raise CalendarFetchError(f"Failed to fetch interviewer calendars: {e}") from e
        except (ValueError, KeyError) as e:
            log.error("Malformed calendar API response: %s", e)
            raise CalendarFetchError(f"Malformed calendar API response: {e}") from e
        finally:
            if self._http_client is None:
                client.close()

        return schedules
