"""
Value objects shared by the event extractor and the sync coordinator.

Events are produced by calendar providers and by email parsing and carry no
back-reference to their account; once merged, the ``account_id``/``source``
pair on the record is the only link to its origin.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

# Account id carried by every mail-derived event
EMAIL_ACCOUNT_SENTINEL = "email-parsed"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Provider(str, Enum):
    """Calendar provider enumeration."""

    GOOGLE = "google"
    OUTLOOK = "outlook"


class EventSource(str, Enum):
    """Provenance tag of an event record."""

    GOOGLE = "google"
    OUTLOOK = "outlook"
    EMAIL = "email"


class MailProtocol(str, Enum):
    IMAP = "imap"
    POP3 = "pop3"


def _as_aware(value: datetime) -> datetime:
    # Naive values are local wall-clock time
    if value.tzinfo is None:
        return value.astimezone()
    return value


class CalendarEvent(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    start: datetime
    end: datetime
    location: Optional[str] = None
    source: EventSource
    account_id: str
    color: Optional[str] = None

    @field_validator("start", "end")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Attach the local timezone to naive datetimes."""
        return _as_aware(v)

    @model_validator(mode="after")
    def validate_end_after_start(self) -> "CalendarEvent":
        """Validate that end time is after start time."""
        if self.end <= self.start:
            raise ValueError("end time must be after start time")
        return self

    @property
    def start_epoch_ms(self) -> int:
        """Start instant in whole epoch milliseconds."""
        return (self.start - _EPOCH) // timedelta(milliseconds=1)

    @property
    def dedup_key(self) -> Tuple[str, int]:
        """Key under which two events are considered the same occurrence."""
        return (self.title, self.start_epoch_ms)


class EventDraft(BaseModel):
    """Partial event accepted when creating an event on a provider."""

    title: Optional[str] = None
    description: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    location: Optional[str] = None
    color: Optional[str] = None

    @field_validator("start", "end")
    @classmethod
    def ensure_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_aware(v) if v is not None else v


class CalendarAccount(BaseModel):
    id: str
    provider: Provider
    email: str
    display_name: str = ""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    enabled: bool = True


class EmailAccount(BaseModel):
    id: str
    email: str
    protocol: MailProtocol = MailProtocol.IMAP
    host: str
    port: int = Field(..., ge=1, le=65535)
    username: str
    password: SecretStr
    enabled: bool = True


class MailMessage(BaseModel):
    """Raw message handed to the event extractor."""

    subject: str = ""
    body: str = ""
    sender: Optional[str] = None
    received_at: Optional[datetime] = None


class ContactInfo(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
