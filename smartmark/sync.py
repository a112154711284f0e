"""
Bookmark state synchronization.

A ``BookmarkSynchronizer`` owns the local, ordered bookmark list of one
signed-in session. User actions go to the remote store; the local list only
changes when the change feed reports the corresponding insert or delete.

The feed subscription is not filtered by owner. Keeping other users' rows
out of the list is left to the store's row-level access policy.

Example:
    store = SqlStore(path="smartmark.db", user="ada@example.com")
    feed = PollingFeed(store)
    with BookmarkSynchronizer.open(store, feed) as sync:
        sync.add("Example", "https://example.com")
        feed.poll()
        print(sync.bookmarks)
"""
import logging
import threading
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from smartmark.constants import BOOKMARKS_TABLE, MSG_ADDED, MSG_DELETED
from smartmark.errors import (
    MalformedRecordError, NotAuthenticatedError, RemoteError, SubscriptionError,
    ValidationError
)
from smartmark.feed import ChangeFeed
from smartmark.notify import Notification, Notifier
from smartmark.records import BookmarkId, BookmarkRecord, EventType, UserRecord
from smartmark.store import RemoteStore
from smartmark.validation import validate_bookmark

logger = logging.getLogger(__name__)


def _parse_rows(rows: Iterable[Union[BookmarkRecord, Mapping[str, Any]]]) -> List[BookmarkRecord]:
    """Validate rows from the store, dropping malformed ones."""
    records = []
    for row in rows:
        if isinstance(row, BookmarkRecord):
            records.append(row)
            continue
        try:
            records.append(BookmarkRecord.from_payload(row))
        except MalformedRecordError as e:
            logger.warning(f"Skipping malformed bookmark row: {e}")
    return records


class BookmarkSynchronizer:
    """
    Keeps a local bookmark list in step with the remote store.

    Args:
        user: The signed-in user
        initial: Bookmarks loaded before the session became interactive
        store: Remote store client
        feed: Change feed client; one subscription is made immediately
        notifier: Notification surface (a fresh one if omitted)
        dedupe_inserts: Replace an entry whose id is already listed instead
            of appending a second copy
    """

    def __init__(self, user: UserRecord,
                 initial: Iterable[Union[BookmarkRecord, Mapping[str, Any]]],
                 store: RemoteStore, feed: ChangeFeed,
                 notifier: Optional[Notifier] = None,
                 dedupe_inserts: bool = False):
        self.user = user
        self.store = store
        self.feed = feed
        self.notifier = notifier or Notifier()
        self.dedupe_inserts = dedupe_inserts

        self._lock = threading.RLock()
        self._bookmarks: List[BookmarkRecord] = _parse_rows(initial)
        self._closed = False

        self._subscription = feed.subscribe(
            BOOKMARKS_TABLE,
            [EventType.INSERT, EventType.DELETE],
            on_insert=self._on_insert,
            on_delete=self._on_delete,
        )
        logger.debug(f"Session for {user.email} started with {len(self._bookmarks)} bookmarks")

    @classmethod
    def open(cls, store: RemoteStore, feed: ChangeFeed,
             notifier: Optional[Notifier] = None,
             dedupe_inserts: bool = False) -> "BookmarkSynchronizer":
        """
        Start a session for the store's signed-in user.

        Loads the user's bookmarks newest first, then subscribes to the feed.

        Raises:
            NotAuthenticatedError: If nobody is signed in
            RemoteError: If the initial load fails
        """
        user = store.get_current_user()
        if user is None:
            raise NotAuthenticatedError("No signed-in user")

        rows = store.select(BOOKMARKS_TABLE, order_by="created_at", descending=True)
        return cls(user, rows, store, feed, notifier=notifier, dedupe_inserts=dedupe_inserts)

    # ===== Read-only views =====

    @property
    def bookmarks(self) -> Tuple[BookmarkRecord, ...]:
        with self._lock:
            return tuple(self._bookmarks)

    @property
    def notification(self) -> Optional[Notification]:
        return self.notifier.current

    @property
    def closed(self) -> bool:
        return self._closed

    def find(self, bookmark_id: BookmarkId) -> Optional[BookmarkRecord]:
        with self._lock:
            for bookmark in self._bookmarks:
                if bookmark.id == bookmark_id:
                    return bookmark
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._bookmarks)

    # ===== User actions =====

    def add(self, title: str, url: str) -> bool:
        """
        Ask the store to insert a bookmark.

        The list is not touched here; the insert shows up once the feed
        echoes it.

        Returns:
            True if the store accepted the insert (the caller may clear its inputs)
        """
        try:
            title, url = validate_bookmark(title, url)
        except ValidationError as e:
            self.notifier.error(str(e))
            return False

        try:
            self.store.insert(BOOKMARKS_TABLE, {
                "title": title,
                "url": url,
                "user_id": self.user.id,
            })
        except RemoteError as e:
            logger.warning(f"Insert failed for {url}: {e}")
            self.notifier.error(str(e))
            return False

        self.notifier.success(MSG_ADDED)
        return True

    def remove(self, bookmark_id: BookmarkId) -> bool:
        """
        Ask the store to delete a bookmark, listed locally or not.

        The list is not touched here; the entry goes once the feed reports
        the delete.

        Returns:
            True if the store accepted the delete
        """
        try:
            self.store.delete(BOOKMARKS_TABLE, {"id": bookmark_id})
        except RemoteError as e:
            logger.warning(f"Delete failed for {bookmark_id}: {e}")
            self.notifier.error(str(e))
            return False

        self.notifier.success(MSG_DELETED)
        return True

    def refresh(self) -> bool:
        """Replace the list with the store's current, newest-first view."""
        try:
            rows = self.store.select(BOOKMARKS_TABLE, order_by="created_at", descending=True)
        except RemoteError as e:
            self.notifier.error(str(e))
            return False

        records = _parse_rows(rows)
        with self._lock:
            if self._closed:
                return False
            self._bookmarks = records
        return True

    # ===== Feed handlers =====

    def _on_insert(self, payload: Mapping[str, Any]) -> None:
        try:
            record = BookmarkRecord.from_payload(payload)
        except MalformedRecordError as e:
            logger.warning(f"Dropping malformed insert event: {e}")
            return

        with self._lock:
            if self._closed:
                return
            if self.dedupe_inserts:
                for index, existing in enumerate(self._bookmarks):
                    if existing.id == record.id:
                        self._bookmarks[index] = record
                        return
            self._bookmarks.append(record)

    def _on_delete(self, payload: Mapping[str, Any]) -> None:
        bookmark_id = payload.get("id") if isinstance(payload, Mapping) else None
        if bookmark_id is None:
            logger.warning(f"Dropping delete event without id: {payload!r}")
            return

        with self._lock:
            if self._closed:
                return
            for index, existing in enumerate(self._bookmarks):
                if existing.id == bookmark_id:
                    del self._bookmarks[index]
                    return

    # ===== Teardown =====

    def close(self) -> None:
        """Release the feed subscription. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        try:
            self.feed.unsubscribe(self._subscription)
        except SubscriptionError as e:
            logger.warning(f"Could not release feed subscription: {e}")
        logger.debug(f"Session for {self.user.email} closed")

    def logout(self) -> None:
        """Close the session and sign out of the store."""
        self.close()
        self.store.sign_out()

    def __enter__(self) -> "BookmarkSynchronizer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self):
        state = "closed" if self._closed else "open"
        return f"<BookmarkSynchronizer(user='{self.user.email}', bookmarks={len(self)}, {state})>"
