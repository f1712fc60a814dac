"""
Provider payload normalization.

Calendar fetch collaborators use these helpers to turn raw Google Calendar and
Microsoft Graph event payloads into unified CalendarEvent records, and to turn
an EventDraft into the request body each provider expects. No network I/O
happens here.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser
from dateutil import tz

from calsync.common.errors import UnsupportedProviderError, ValidationError
from calsync.common.logging_config import get_logger
from calsync.sync.core.event_extractor import DEFAULT_EVENT_DURATION
from calsync.sync.models import (
    CalendarAccount,
    CalendarEvent,
    EventDraft,
    EventSource,
    Provider,
)

logger = get_logger(__name__)

UNTITLED_EVENT = "Untitled"


def _safe_log_raw_data(raw_data: Dict[str, Any], max_content_length: int = 100) -> str:
    """Summarize a raw payload for logs without dumping descriptions."""
    safe = {}
    for key, value in raw_data.items():
        if key in ("description", "body", "bodyPreview"):
            safe[key] = f"<{len(str(value))} chars>"
        else:
            text = str(value)
            safe[key] = (
                text[:max_content_length] + "..."
                if len(text) > max_content_length
                else text
            )
    return str(safe)


def _parse_google_datetime(dt_data: Dict[str, Any]) -> datetime:
    """Parse a Google Calendar start/end object."""
    datetime_str = dt_data.get("dateTime")
    if datetime_str:
        parsed = date_parser.isoparse(datetime_str)
        if parsed.tzinfo is None:
            zone = tz.gettz(dt_data["timeZone"]) if dt_data.get("timeZone") else None
            parsed = parsed.replace(tzinfo=zone or timezone.utc)
        return parsed

    # All-day events only carry a date
    date_str = dt_data.get("date")
    if date_str:
        return date_parser.isoparse(date_str).replace(tzinfo=timezone.utc)

    raise ValidationError("Missing dateTime/date in Google Calendar event time")


def _parse_graph_datetime(dt_data: Dict[str, Any]) -> datetime:
    """Parse a Microsoft Graph dateTimeTimeZone object."""
    datetime_str = dt_data.get("dateTime")
    if not datetime_str:
        raise ValidationError("Missing dateTime in Outlook event time")

    parsed = date_parser.isoparse(datetime_str)
    if parsed.tzinfo is None:
        zone_name = dt_data.get("timeZone") or "UTC"
        zone = tz.gettz(zone_name)
        if zone is None:
            logger.warning("Unknown Outlook time zone, assuming UTC", time_zone=zone_name)
            zone = timezone.utc
        parsed = parsed.replace(tzinfo=zone)
    return parsed


def _ensure_positive_duration(
    start: datetime, end: datetime, event_id: str
) -> datetime:
    if end <= start:
        logger.warning(
            "Event ends before it starts, using default duration", event_id=event_id
        )
        return start + DEFAULT_EVENT_DURATION
    return end


def normalize_google_calendar_event(
    raw_data: Dict[str, Any], account: CalendarAccount
) -> CalendarEvent:
    """
    Convert a raw Google Calendar API event into a CalendarEvent.

    Args:
        raw_data: Raw JSON event from the Google Calendar events list
        account: Account the event was fetched for

    Returns:
        CalendarEvent: Unified calendar event model

    Raises:
        ValidationError: If required fields are missing from raw_data
    """
    try:
        event_id = raw_data.get("id")
        if not event_id:
            raise ValidationError(
                "Missing required field 'id' in Google Calendar response", field="id"
            )

        start = _parse_google_datetime(raw_data.get("start") or {})
        end = _parse_google_datetime(raw_data.get("end") or {})

        return CalendarEvent(
            id=event_id,
            title=raw_data.get("summary") or UNTITLED_EVENT,
            description=raw_data.get("description"),
            start=start,
            end=_ensure_positive_duration(start, end, event_id),
            location=raw_data.get("location"),
            source=EventSource.GOOGLE,
            account_id=account.id,
            color=raw_data.get("colorId"),
        )

    except Exception as e:
        logger.error(f"Failed to normalize Google Calendar event: {e}")
        logger.error(f"Safe raw data: {_safe_log_raw_data(raw_data)}")
        raise


def normalize_outlook_calendar_event(
    raw_data: Dict[str, Any], account: CalendarAccount
) -> CalendarEvent:
    """
    Convert a raw Microsoft Graph calendar event into a CalendarEvent.

    Args:
        raw_data: Raw JSON event from /me/calendar/events
        account: Account the event was fetched for

    Returns:
        CalendarEvent: Unified calendar event model

    Raises:
        ValidationError: If required fields are missing from raw_data
    """
    try:
        event_id = raw_data.get("id")
        if not event_id:
            raise ValidationError(
                "Missing required field 'id' in Outlook response", field="id"
            )

        start = _parse_graph_datetime(raw_data.get("start") or {})
        end = _parse_graph_datetime(raw_data.get("end") or {})
        location = (raw_data.get("location") or {}).get("displayName") or None

        return CalendarEvent(
            id=event_id,
            title=raw_data.get("subject") or UNTITLED_EVENT,
            description=raw_data.get("bodyPreview"),
            start=start,
            end=_ensure_positive_duration(start, end, event_id),
            location=location,
            source=EventSource.OUTLOOK,
            account_id=account.id,
        )

    except Exception as e:
        logger.error(f"Failed to normalize Outlook event: {e}")
        logger.error(f"Safe raw data: {_safe_log_raw_data(raw_data)}")
        raise


def normalize_calendar_events(
    raw_items: List[Dict[str, Any]], account: CalendarAccount
) -> List[CalendarEvent]:
    """Normalize a provider event list, skipping items that fail to normalize."""
    if account.provider == Provider.GOOGLE:
        normalize = normalize_google_calendar_event
    elif account.provider == Provider.OUTLOOK:
        normalize = normalize_outlook_calendar_event
    else:
        raise UnsupportedProviderError(account.provider, operation="normalize")

    events = []
    for raw_data in raw_items:
        try:
            events.append(normalize(raw_data, account))
        except Exception:
            logger.warning(
                "Skipping event that failed to normalize",
                account_id=account.id,
                provider=account.provider.value,
            )
    return events


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.astimezone(timezone.utc).isoformat() if value else None


def google_event_body(draft: EventDraft) -> Dict[str, Any]:
    """Build a Google Calendar insert request body from a draft."""
    body: Dict[str, Any] = {
        "summary": draft.title,
        "description": draft.description,
        "location": draft.location,
        "start": {"dateTime": _iso(draft.start)},
        "end": {"dateTime": _iso(draft.end)},
    }
    if draft.color:
        body["colorId"] = draft.color
    return body


def outlook_event_body(draft: EventDraft) -> Dict[str, Any]:
    """Build a Microsoft Graph create-event request body from a draft."""

    def graph_time(value: Optional[datetime]) -> Dict[str, Any]:
        return {
            "dateTime": (
                value.astimezone(timezone.utc).replace(tzinfo=None).isoformat()
                if value
                else None
            ),
            "timeZone": "UTC",
        }

    return {
        "subject": draft.title,
        "body": {"contentType": "HTML", "content": draft.description or ""},
        "start": graph_time(draft.start),
        "end": graph_time(draft.end),
        "location": {"displayName": draft.location or ""},
    }
