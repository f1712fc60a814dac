from calsync.sync.core.event_extractor import EventExtractor, event_extractor
from calsync.sync.core.mailbox import MailboxEventSource
from calsync.sync.core.sync_coordinator import SyncCoordinator

__all__ = ["EventExtractor", "MailboxEventSource", "SyncCoordinator", "event_extractor"]
