"""
SmartMark - personal bookmarks with live updates.

Each signed-in user keeps a private collection of titled URLs. A session
loads the collection newest first, then stays in step with the store
through a change feed, so bookmarks added or deleted in one session show
up in every other session of the same user.

Example Usage:
    >>> from smartmark import SqlStore, PollingFeed, BookmarkSynchronizer
    >>> store = SqlStore(path="smartmark.db")
    >>> store.sign_in("ada@example.com", full_name="Ada Lovelace")
    >>> feed = PollingFeed(store)
    >>> with BookmarkSynchronizer.open(store, feed) as sync, feed:
    ...     sync.add("Example", "https://example.com")
"""

__version__ = "0.3.0"
__author__ = "SmartMark Contributors"

# Configuration
from smartmark.config import SmartmarkConfig, get_config, init_config

# Records and errors
from smartmark.records import BookmarkRecord, UserRecord, ChangeEvent, EventType
from smartmark.errors import (
    SmartmarkError,
    ValidationError,
    RemoteError,
    SubscriptionError,
    MalformedRecordError,
    NotAuthenticatedError,
)

# Store, feed and session
from smartmark.store import RemoteStore, SqlStore
from smartmark.feed import ChangeFeed, PollingFeed, Subscription
from smartmark.notify import Notifier, Notification, NotificationKind
from smartmark.sync import BookmarkSynchronizer

# Utilities
from smartmark.validation import is_absolute_url, validate_bookmark

__all__ = [
    # Config
    "SmartmarkConfig",
    "get_config",
    "init_config",
    # Records
    "BookmarkRecord",
    "UserRecord",
    "ChangeEvent",
    "EventType",
    # Errors
    "SmartmarkError",
    "ValidationError",
    "RemoteError",
    "SubscriptionError",
    "MalformedRecordError",
    "NotAuthenticatedError",
    # Store and feed
    "RemoteStore",
    "SqlStore",
    "ChangeFeed",
    "PollingFeed",
    "Subscription",
    # Session
    "Notifier",
    "Notification",
    "NotificationKind",
    "BookmarkSynchronizer",
    # Utilities
    "is_absolute_url",
    "validate_bookmark",
]
