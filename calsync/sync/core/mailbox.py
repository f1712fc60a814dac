"""
Mailbox fetch collaborator.

Wraps a message retriever (IMAP, POP3 or a backend API, supplied by the
application shell) and turns the retrieved messages into calendar events with
the EventExtractor. Messages that do not yield an event are dropped here, so
the coordinator only ever sees complete event lists.
"""

from typing import Awaitable, Callable, List, Optional

from calsync.common.logging_config import get_logger
from calsync.sync.core.event_extractor import EventExtractor, event_extractor
from calsync.sync.models import CalendarEvent, EmailAccount, MailMessage
from calsync.sync.settings import get_settings

logger = get_logger(__name__)

MessageRetriever = Callable[[EmailAccount], Awaitable[List[MailMessage]]]


class MailboxEventSource:
    """Mail fetcher that extracts events from retrieved messages."""

    def __init__(
        self,
        retrieve_messages: MessageRetriever,
        extractor: Optional[EventExtractor] = None,
        keyword_prefilter: Optional[bool] = None,
    ):
        """
        Args:
            retrieve_messages: Async callable returning the account's messages
            extractor: EventExtractor to use (defaults to the shared instance)
            keyword_prefilter: Skip messages without event keywords before
                extraction (defaults to MAIL_KEYWORD_PREFILTER)
        """
        self.retrieve_messages = retrieve_messages
        self.extractor = extractor or event_extractor
        if keyword_prefilter is None:
            keyword_prefilter = get_settings().MAIL_KEYWORD_PREFILTER
        self.keyword_prefilter = keyword_prefilter

    async def __call__(self, account: EmailAccount) -> List[CalendarEvent]:
        return await self.fetch_and_parse(account)

    async def fetch_and_parse(self, account: EmailAccount) -> List[CalendarEvent]:
        """Retrieve messages for ``account`` and return the events they describe."""
        logger.info("Fetching emails", account_id=account.id, email=account.email)
        messages = await self.retrieve_messages(account)

        events: List[CalendarEvent] = []
        skipped = 0
        for message in messages:
            if self.keyword_prefilter and not self.extractor.is_likely_event(
                message.subject, message.body
            ):
                skipped += 1
                continue
            event = self.parse_message(message)
            if event is not None:
                events.append(event)

        logger.info(
            f"Extracted {len(events)} events from {len(messages)} emails",
            account_id=account.id,
            prefiltered=skipped,
        )
        return events

    def parse_message(self, message: MailMessage) -> Optional[CalendarEvent]:
        """Parse a single message for calendar event data."""
        return self.extractor.extract(message.subject, message.body)
