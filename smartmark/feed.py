"""
Change feed clients for SmartMark.

``ChangeFeed`` is an in-process publish/subscribe channel for row-level
insert and delete events. ``PollingFeed`` feeds it from a ``SqlStore``
change log on a background thread, which gives live updates across
sessions sharing one database.
"""
import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional

from smartmark.constants import DEFAULT_POLL_INTERVAL, DEFAULT_POLL_BATCH_SIZE
from smartmark.errors import SubscriptionError
from smartmark.records import ChangeEvent, EventType
from smartmark.store import SqlStore

logger = logging.getLogger(__name__)

RowCallback = Callable[[Dict[str, Any]], None]


@dataclass
class Subscription:
    """Handle for one subscription; pass it back to ``unsubscribe``."""
    id: int
    table: str
    events: FrozenSet[EventType]
    on_insert: Optional[RowCallback] = None
    on_delete: Optional[RowCallback] = None
    active: bool = True

    def matches(self, event: ChangeEvent) -> bool:
        return self.active and event.table == self.table and event.event_type in self.events

    def deliver(self, event: ChangeEvent) -> None:
        if not self.matches(event):
            return
        if event.event_type is EventType.INSERT and self.on_insert:
            self.on_insert(event.record)
        elif event.event_type is EventType.DELETE and self.on_delete:
            self.on_delete(event.record)


class ChangeFeed:
    """
    In-process change feed.

    Subscriptions are filtered by table and event type only. Events are
    delivered synchronously, in publish order, to subscriptions in the order
    they were made.
    """

    def __init__(self):
        self._subscriptions: Dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, table: str, events: Iterable[EventType],
                  on_insert: Optional[RowCallback] = None,
                  on_delete: Optional[RowCallback] = None) -> Subscription:
        """
        Subscribe to changes on a table.

        Args:
            table: Table name
            events: Event types to receive
            on_insert: Called with the new row for each insert
            on_delete: Called with the old row (primary key only) for each delete

        Returns:
            Subscription handle
        """
        events = frozenset(events)
        if not events:
            raise SubscriptionError("Subscription needs at least one event type")

        with self._lock:
            subscription = Subscription(
                id=next(self._ids), table=table, events=events,
                on_insert=on_insert, on_delete=on_delete
            )
            self._subscriptions[subscription.id] = subscription

        logger.debug(f"Subscription {subscription.id} on {table} for "
                     f"{sorted(e.value for e in events)}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """
        Release a subscription. No callbacks fire for it afterwards.

        Raises:
            SubscriptionError: If the handle is unknown or already released
        """
        with self._lock:
            if self._subscriptions.pop(subscription.id, None) is None:
                raise SubscriptionError(f"Subscription {subscription.id} is not active")
            subscription.active = False
        logger.debug(f"Subscription {subscription.id} released")

    @property
    def subscriptions(self) -> List[Subscription]:
        with self._lock:
            return list(self._subscriptions.values())

    def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every matching subscription."""
        for subscription in self.subscriptions:
            try:
                subscription.deliver(event)
            except Exception:
                logger.exception(f"Subscriber {subscription.id} failed on "
                                 f"{event.event_type.value} {event.table}")


class PollingFeed(ChangeFeed):
    """
    Change feed driven by a store's change log.

    Only changes made after the feed was created are delivered.

    Example:
        with PollingFeed(store, interval=0.5) as feed:
            feed.subscribe("bookmarks", [EventType.INSERT], on_insert=print)
            ...
    """

    def __init__(self, store: SqlStore, interval: float = DEFAULT_POLL_INTERVAL,
                 batch_size: int = DEFAULT_POLL_BATCH_SIZE):
        super().__init__()
        self.store = store
        self.interval = interval
        self.batch_size = batch_size
        self.cursor = store.latest_change_id()
        self._poll_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def poll(self) -> int:
        """
        Publish all pending changes.

        Returns:
            Number of changes published
        """
        published = 0
        with self._poll_lock:
            while True:
                events = self.store.changes_since(self.cursor, limit=self.batch_size)
                for change in events:
                    self.publish(change)
                    self.cursor = change.sequence
                published += len(events)
                if len(events) < self.batch_size:
                    break
        return published

    def start(self) -> None:
        """Start polling on a daemon thread."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="smartmark-feed", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the polling thread and wait for it to exit."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.poll()
            except Exception as e:
                logger.error(f"Change feed poll failed: {e}")

    def __enter__(self) -> "PollingFeed":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
