"""
Pattern-based event detection for email messages.

The extractor looks for a date, an optional time and an optional location in
the message body and, when a date is present, turns the message into a
one-hour CalendarEvent. When a body contains several candidates the first one
in reading order wins; a body such as "moved from January 10 to January 15"
therefore yields January 10. Ranges are not interpreted.
"""

import re
import time
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from dateutil import parser as date_parser

from calsync.common.logging_config import get_logger
from calsync.sync.models import (
    EMAIL_ACCOUNT_SENTINEL,
    CalendarEvent,
    ContactInfo,
    EventSource,
)

logger = get_logger(__name__)

DESCRIPTION_MAX_LENGTH = 500
DEFAULT_EVENT_DURATION = timedelta(hours=1)

EVENT_KEYWORDS = (
    "meeting",
    "conference",
    "appointment",
    "event",
    "reminder",
    "invitation",
    "rsvp",
    "schedule",
    "calendar",
    "date",
    "time",
)

_MONTHS = (
    "January|February|March|April|May|June|July|August|September|October|November|December"
)

# Regex patterns. Numeric parts must not touch other digits but may touch
# letters, as in "2024-01-15T14:00" or "Starts:01/15/2024".
US_DATE_REGEX = re.compile(r"(?<!\d)\d{1,2}/\d{1,2}/\d{4}(?!\d)")
ISO_DATE_REGEX = re.compile(r"(?<!\d)\d{4}-\d{2}-\d{2}(?!\d)")
MONTH_NAME_DATE_REGEX = re.compile(
    rf"\b(?:{_MONTHS})\s+\d{{1,2}},?\s+\d{{4}}(?!\d)", re.IGNORECASE
)
# Month and day without a year; only used to reject location candidates
MONTH_DAY_REGEX = re.compile(rf"\b(?:{_MONTHS})\s+\d{{1,2}}(?!\d)", re.IGNORECASE)
DATE_REGEXES = (US_DATE_REGEX, ISO_DATE_REGEX, MONTH_NAME_DATE_REGEX)

MERIDIEM_TIME_REGEX = re.compile(r"(?<!\d)(\d{1,2}):(\d{2})\s*([AaPp][Mm])\b")
BARE_TIME_REGEX = re.compile(r"(?<!\d)(\d{1,2}):(\d{2})(?!\d)")

LOCATION_LEAD_REGEX = re.compile(
    r"(?:\b(?:at|location:?|venue:?)|@)\s+", re.IGNORECASE
)
LOCATION_VALUE_REGEX = re.compile(r"[^\n,.]+")

EMAIL_REGEX = re.compile(r"[\w.-]+@[\w.-]+\.\w+")
PHONE_REGEX = re.compile(r"(?:\+\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")


def find_dates(text: str) -> List[str]:
    """Return every date-shaped substring of ``text`` in reading order."""
    matches = [m for regex in DATE_REGEXES for m in regex.finditer(text)]
    matches.sort(key=lambda m: m.start())
    return [m.group(0) for m in matches]


def find_times(text: str) -> List[str]:
    """Return time-shaped substrings, meridiem forms first."""
    times = [m.group(0) for m in MERIDIEM_TIME_REGEX.finditer(text)]
    times.extend(m.group(0) for m in BARE_TIME_REGEX.finditer(text))
    return times


def _is_when(candidate: str) -> bool:
    return bool(
        MERIDIEM_TIME_REGEX.match(candidate)
        or BARE_TIME_REGEX.match(candidate)
        or MONTH_DAY_REGEX.match(candidate)
        or any(regex.match(candidate) for regex in DATE_REGEXES)
    )


def find_locations(text: str) -> List[str]:
    """
    Return trimmed location candidates in reading order.

    Each lead-in starts its own candidate, so in "at 4:00 PM @ Main Office"
    the time-led candidate is skipped and "Main Office" is still found.
    """
    locations = []
    for lead in LOCATION_LEAD_REGEX.finditer(text):
        value = LOCATION_VALUE_REGEX.match(text, lead.end())
        if not value:
            continue
        candidate = value.group(0).strip()
        if candidate and not _is_when(candidate):
            locations.append(candidate)
    return locations


def parse_date(date_str: str) -> datetime:
    """
    Parse a matched date string into a naive local-midnight datetime.

    Raises:
        ValueError: If the string is not a valid calendar date
    """
    if ISO_DATE_REGEX.fullmatch(date_str):
        return datetime.strptime(date_str, "%Y-%m-%d")
    if US_DATE_REGEX.fullmatch(date_str):
        # Always month/day/year
        return datetime.strptime(date_str, "%m/%d/%Y")
    parsed = date_parser.parse(date_str)
    return parsed.replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)


def apply_time(start: datetime, time_str: str) -> datetime:
    """Overlay an ``H:MM [AM|PM]`` string on ``start``."""
    match = MERIDIEM_TIME_REGEX.match(time_str) or BARE_TIME_REGEX.match(time_str)
    if not match:
        return start

    hours = int(match.group(1))
    minutes = int(match.group(2))
    meridiem = match.group(3).upper() if match.lastindex == 3 else None

    if meridiem == "PM" and hours < 12:
        hours += 12
    if meridiem == "AM" and hours == 12:
        hours = 0

    return start.replace(hour=hours, minute=minutes, second=0, microsecond=0)


def generate_event_id() -> str:
    """Generate an ID for a mail-derived event."""
    return f"email-{time.time_ns()}-{uuid.uuid4().hex[:8]}"


class EventExtractor:
    """Detects calendar events in email subject/body text."""

    def extract(self, subject: str, body: str) -> Optional[CalendarEvent]:
        """
        Extract a calendar event from an email.

        Only the presence of a date decides whether the message is an event
        candidate; keywords play no part here (see is_likely_event).

        Args:
            subject: Message subject, used verbatim as the event title
            body: Message body text

        Returns:
            CalendarEvent, or None when no valid date was found
        """
        dates = find_dates(body)
        if not dates:
            return None

        times = find_times(body)
        locations = find_locations(body)

        try:
            date_str = dates[0]
            try:
                start = parse_date(date_str)
            except (ValueError, OverflowError):
                logger.warning("Invalid date parsed from email", date=date_str)
                return None

            if times:
                start = apply_time(start, times[0])

            return CalendarEvent(
                id=generate_event_id(),
                title=subject,
                description=body[:DESCRIPTION_MAX_LENGTH],
                start=start,
                end=start + DEFAULT_EVENT_DURATION,
                location=locations[0] if locations else None,
                source=EventSource.EMAIL,
                account_id=EMAIL_ACCOUNT_SENTINEL,
            )
        except Exception as e:
            logger.error("Error parsing event from email", subject=subject, error=str(e))
            return None

    def is_likely_event(self, subject: str, body: str) -> bool:
        """Check if an email likely contains event information."""
        text = f"{subject} {body}".lower()
        return any(keyword in text for keyword in EVENT_KEYWORDS)

    def extract_contact_info(self, body: str) -> ContactInfo:
        """Extract the first email address and phone number from a body."""
        email_match = EMAIL_REGEX.search(body)
        phone_match = PHONE_REGEX.search(body)
        return ContactInfo(
            email=email_match.group(0) if email_match else None,
            phone=phone_match.group(0) if phone_match else None,
        )


# Shared extractor instance
event_extractor = EventExtractor()
