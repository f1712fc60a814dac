from datetime import datetime, timedelta, timezone

import pytest

from calsync.sync.models import (
    CalendarAccount,
    CalendarEvent,
    EmailAccount,
    EventSource,
    Provider,
)
from calsync.sync.settings import Settings


@pytest.fixture(autouse=True)
def patch_settings(monkeypatch):
    """Patch the _settings global so tests never read the environment."""
    test_settings = Settings(
        LOG_FORMAT="text",
        FETCH_TIMEOUT_SECONDS=0.0,
        MAIL_KEYWORD_PREFILTER=False,
    )
    monkeypatch.setattr("calsync.sync.settings._settings", test_settings)
    return test_settings


@pytest.fixture
def base_time():
    return datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_event(base_time):
    def _make_event(
        title="Standup",
        offset=timedelta(0),
        source=EventSource.GOOGLE,
        account_id="cal-1",
        event_id=None,
    ):
        start = base_time + offset
        return CalendarEvent(
            id=event_id or f"{source.value}-{title}-{int(offset.total_seconds())}",
            title=title,
            start=start,
            end=start + timedelta(minutes=30),
            source=source,
            account_id=account_id,
        )

    return _make_event


@pytest.fixture
def make_calendar_account():
    def _make_calendar_account(account_id, provider=Provider.GOOGLE, enabled=True):
        return CalendarAccount(
            id=account_id,
            provider=provider,
            email=f"{account_id}@example.com",
            display_name=account_id,
            access_token="token",
            enabled=enabled,
        )

    return _make_calendar_account


@pytest.fixture
def make_email_account():
    def _make_email_account(account_id, enabled=True):
        return EmailAccount(
            id=account_id,
            email=f"{account_id}@example.com",
            host="imap.example.com",
            port=993,
            username=account_id,
            password="secret",
            enabled=enabled,
        )

    return _make_email_account
