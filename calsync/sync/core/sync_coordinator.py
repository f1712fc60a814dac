"""
Multi-source sync coordinator.

Fetches events from every enabled calendar and mailbox account concurrently,
isolates per-account failures, and merges the results into one deduplicated,
chronologically ordered list.
"""

import asyncio
from typing import (
    Any,
    Awaitable,
    Callable,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
    Tuple,
    TypeVar,
    Union,
)

from calsync.common.errors import (
    AuthError,
    ErrorCode,
    ProviderError,
    UnsupportedProviderError,
)
from calsync.common.logging_config import account_id_var, get_logger, sync_id_context
from calsync.sync.models import (
    CalendarAccount,
    CalendarEvent,
    EmailAccount,
    EventDraft,
    Provider,
)
from calsync.sync.settings import Settings, get_settings

logger = get_logger(__name__)

CalendarFetcher = Callable[[CalendarAccount], Awaitable[List[CalendarEvent]]]
MailFetcher = Callable[[EmailAccount], Awaitable[List[CalendarEvent]]]
EventCreator = Callable[[CalendarAccount, EventDraft], Awaitable[CalendarEvent]]

AccountT = TypeVar("AccountT", CalendarAccount, EmailAccount)


def _provider_name(account: Union[CalendarAccount, EmailAccount]) -> str:
    if isinstance(account, CalendarAccount):
        return account.provider.value
    return account.protocol.value


def _require_access_token(account: CalendarAccount) -> None:
    if not account.access_token:
        raise AuthError(
            "No access token available",
            details={"account_id": account.id, "provider": account.provider.value},
        )


class SyncCoordinator:
    """
    Aggregates events from calendar providers and parsed email.

    Provider routing is a closed lookup: each Provider maps to exactly one
    fetcher (and optionally one creator). An account whose provider has no
    registered handler raises UnsupportedProviderError.
    """

    def __init__(
        self,
        calendar_fetchers: Mapping[Provider, CalendarFetcher],
        mail_fetcher: MailFetcher,
        event_creators: Optional[Mapping[Provider, EventCreator]] = None,
        settings: Optional[Settings] = None,
    ):
        self.calendar_fetchers = dict(calendar_fetchers)
        self.mail_fetcher = mail_fetcher
        self.event_creators = dict(event_creators or {})
        self.settings = settings or get_settings()

    def _route_fetch(self, account: CalendarAccount) -> CalendarFetcher:
        fetcher = self.calendar_fetchers.get(account.provider)
        if fetcher is None:
            raise UnsupportedProviderError(account.provider, operation="fetch")
        return fetcher

    def _route_create(self, account: CalendarAccount) -> EventCreator:
        creator = self.event_creators.get(account.provider)
        if creator is None:
            raise UnsupportedProviderError(account.provider, operation="create_event")
        return creator

    async def _run_fetch(
        self,
        fetch: Callable[[AccountT], Awaitable[List[CalendarEvent]]],
        account: AccountT,
    ) -> List[CalendarEvent]:
        token = account_id_var.set(account.id)
        try:
            if isinstance(account, CalendarAccount):
                _require_access_token(account)

            timeout = self.settings.FETCH_TIMEOUT_SECONDS
            if not timeout or timeout <= 0:
                return await fetch(account)
            try:
                return await asyncio.wait_for(fetch(account), timeout=timeout)
            except asyncio.TimeoutError as e:
                raise ProviderError(
                    f"Fetch timed out after {timeout}s",
                    provider=_provider_name(account),
                    code=ErrorCode.PROVIDER_UNAVAILABLE,
                ) from e
        finally:
            account_id_var.reset(token)

    async def _fan_out(
        self,
        jobs: Sequence[Tuple[AccountT, Callable[[AccountT], Awaitable[List[CalendarEvent]]]]],
        kind: str,
    ) -> List[CalendarEvent]:
        """Run one fetch per account concurrently; failed accounts contribute nothing."""
        results: List[Union[List[CalendarEvent], BaseException]] = await asyncio.gather(
            *(self._run_fetch(fetch, account) for account, fetch in jobs),
            return_exceptions=True,
        )

        events: List[CalendarEvent] = []
        for (account, _), result in zip(jobs, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Error syncing {kind} account",
                    account_id=account.id,
                    email=account.email,
                    error_type=type(result).__name__,
                    error=str(result),
                )
            elif isinstance(result, BaseException):
                raise result
            else:
                logger.info(
                    f"{kind.capitalize()} account returned {len(result)} events",
                    account_id=account.id,
                )
                events.extend(result)
        return events

    async def sync_calendar_accounts(
        self, accounts: Sequence[CalendarAccount]
    ) -> List[CalendarEvent]:
        """Sync all enabled calendar accounts and return their events, flattened."""
        return await self._fan_out(self._calendar_jobs(accounts), "calendar")

    def _calendar_jobs(
        self, accounts: Sequence[CalendarAccount]
    ) -> List[Tuple[CalendarAccount, CalendarFetcher]]:
        # An unknown provider raises here, before any fetch is started
        enabled = [account for account in accounts if account.enabled]
        return [(account, self._route_fetch(account)) for account in enabled]

    async def sync_email_accounts(
        self, accounts: Sequence[EmailAccount]
    ) -> List[CalendarEvent]:
        """Sync all enabled mailbox accounts and return the extracted events."""
        enabled = [account for account in accounts if account.enabled]
        jobs = [(account, self.mail_fetcher) for account in enabled]
        return await self._fan_out(jobs, "email")

    async def sync_all(
        self,
        calendar_accounts: Sequence[CalendarAccount],
        email_accounts: Sequence[EmailAccount],
    ) -> List[CalendarEvent]:
        """
        Sync all sources (calendars and emails).

        Args:
            calendar_accounts: Calendar account descriptors; disabled ones are skipped
            email_accounts: Mailbox account descriptors; disabled ones are skipped

        Returns:
            Deduplicated events sorted by start time

        Raises:
            UnsupportedProviderError: If a calendar account has no registered fetcher
        """
        with sync_id_context() as sync_id:
            logger.info(
                "Starting sync",
                sync_id=sync_id,
                calendar_accounts=len(calendar_accounts),
                email_accounts=len(email_accounts),
            )

            calendar_jobs = self._calendar_jobs(calendar_accounts)
            calendar_events, email_events = await asyncio.gather(
                self._fan_out(calendar_jobs, "calendar"),
                self.sync_email_accounts(email_accounts),
            )

            all_events = [*calendar_events, *email_events]
            unique_events = self.remove_duplicates(all_events)
            sorted_events = self.sort_events(unique_events)

            logger.info(
                "Sync complete",
                sync_id=sync_id,
                fetched=len(all_events),
                duplicates=len(all_events) - len(unique_events),
                returned=len(sorted_events),
            )
            return sorted_events

    @staticmethod
    def remove_duplicates(events: Sequence[CalendarEvent]) -> List[CalendarEvent]:
        """Keep the first event seen for each (title, start instant) key."""
        seen: Set[Tuple[str, int]] = set()
        unique = []
        for event in events:
            key = event.dedup_key
            if key in seen:
                continue
            seen.add(key)
            unique.append(event)
        return unique

    @staticmethod
    def sort_events(events: Sequence[CalendarEvent]) -> List[CalendarEvent]:
        """Sort by start instant; ties keep their input order."""
        return sorted(events, key=lambda event: event.start_epoch_ms)

    async def create_event(self, account: Any, draft: EventDraft) -> CalendarEvent:
        """
        Create an event in the account's calendar provider.

        Raises:
            UnsupportedProviderError: For mailbox accounts and providers without a creator
            AuthError: If the account has no access token
        """
        if not isinstance(account, CalendarAccount):
            raise UnsupportedProviderError(
                getattr(account, "protocol", type(account).__name__),
                operation="create_event",
            )
        creator = self._route_create(account)
        _require_access_token(account)
        event = await creator(account, draft)
        logger.info(
            "Created event",
            account_id=account.id,
            provider=account.provider.value,
            event_id=event.id,
        )
        return event

    async def validate_account(
        self, account: Union[CalendarAccount, EmailAccount]
    ) -> bool:
        """Check account credentials with a lightweight fetch."""
        if isinstance(account, CalendarAccount):
            fetch: Callable[[Any], Awaitable[List[CalendarEvent]]] = self._route_fetch(
                account
            )
        else:
            fetch = self.mail_fetcher

        try:
            await self._run_fetch(fetch, account)
            return True
        except Exception as e:
            logger.error("Account validation failed", account_id=account.id, error=str(e))
            return False
