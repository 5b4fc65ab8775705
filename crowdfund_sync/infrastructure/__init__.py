"""
Infrastructure for talking to the crowdfunding ledger.

Provides:
- Ledger read/write protocols and adapters (HTTP JSON-RPC, in-memory)
- Error taxonomy and fetch failure classification
- Notification side channel
"""

from .errors import (
    ERROR_MESSAGES,
    FailureKind,
    LedgerAccessError,
    LedgerConnectionError,
    LedgerError,
    LedgerRejection,
    classify_failure,
    message_for,
)
from .ledger import (
    HttpLedgerClient,
    InMemoryLedger,
    LedgerReader,
    LedgerWriter,
)
from .notifications import (
    CollectingNotifier,
    LogNotifier,
    Notification,
    NotificationLevel,
    Notifier,
)

__all__ = [
    # Errors
    "ERROR_MESSAGES",
    "FailureKind",
    "LedgerAccessError",
    "LedgerConnectionError",
    "LedgerError",
    "LedgerRejection",
    "classify_failure",
    "message_for",
    # Ledger
    "HttpLedgerClient",
    "InMemoryLedger",
    "LedgerReader",
    "LedgerWriter",
    # Notifications
    "CollectingNotifier",
    "LogNotifier",
    "Notification",
    "NotificationLevel",
    "Notifier",
]
