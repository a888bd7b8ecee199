"""
Realtime change feed
====================
Publishes row INSERT/UPDATE/DELETE events to subscribers after the
transaction that produced them commits.

Changes are collected from the unit of work in ``after_flush`` (where
attribute history is still available), held on ``session.info`` and
published on ``after_commit``. A rollback discards them, so subscribers
never see rows that were not persisted.

Usage:
    subscription = subscribe_to_review_comments(backend.realtime, review_id, on_comment)
    ...
    unsubscribe(subscription)
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
import threading
import logging

from sqlalchemy import event, inspect

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"
ALL_EVENTS = "*"

_PENDING_KEY = "realtime_pending"


@dataclass
class ChangeEvent:
    """A single row change as delivered to subscribers"""
    event_type: str
    table: str
    new: Dict[str, Any] = field(default_factory=dict)
    old: Dict[str, Any] = field(default_factory=dict)
    commit_timestamp: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "eventType": self.event_type,
            "table": self.table,
            "new": {k: _jsonable(v) for k, v in self.new.items()},
            "old": {k: _jsonable(v) for k, v in self.old.items()},
            "commit_timestamp": _jsonable(self.commit_timestamp),
        }


def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass
class _Binding:
    event: str
    table: str
    handler: Callable[[ChangeEvent], None]
    filter: Optional[Tuple[str, Any]] = None

    def matches(self, change: ChangeEvent) -> bool:
        if self.table != change.table:
            return False
        if self.event != ALL_EVENTS and self.event != change.event_type:
            return False
        if self.filter is None:
            return True
        column, value = self.filter
        row = change.old if change.event_type == DELETE else change.new
        return row.get(column) == value


class Subscription:
    """
    Cancellable handle returned by Channel.subscribe().

    Lifecycle: open -> (receiving events)* -> closed. There is no
    timeout and no reconnect; it stays open until unsubscribed.
    """

    def __init__(self, channel: "Channel", bindings: List[_Binding]):
        self.channel = channel
        self._bindings = bindings
        self.state = "open"

    @property
    def closed(self) -> bool:
        return self.state == "closed"

    def deliver(self, change: ChangeEvent) -> None:
        if self.closed:
            return
        for binding in self._bindings:
            if not binding.matches(change):
                continue
            try:
                binding.handler(change)
            except Exception:
                logger.exception(f"Realtime handler failed on channel {self.channel.name}")

    def unsubscribe(self) -> None:
        if self.closed:
            return
        self.state = "closed"
        self.channel.remove(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unsubscribe()


class Channel:
    """Named group of subscriptions, created through ChangeFeed.channel()"""

    def __init__(self, feed: "ChangeFeed", name: str):
        self.feed = feed
        self.name = name
        self._pending: List[_Binding] = []
        self._subscriptions: List[Subscription] = []

    def on(
        self,
        event_type: str,
        table: str,
        handler: Callable[[ChangeEvent], None],
        filter: Optional[Tuple[str, Any]] = None,
    ) -> "Channel":
        """Register a handler for the next subscribe() call"""
        if event_type not in (INSERT, UPDATE, DELETE, ALL_EVENTS):
            raise ValueError(f"Unknown event type: {event_type}")
        self._pending.append(_Binding(event_type, table, handler, filter))
        return self

    def subscribe(self) -> Subscription:
        subscription = Subscription(self, self._pending)
        self._pending = []
        with self.feed._lock:
            self._subscriptions.append(subscription)
        logger.debug(f"Subscribed to channel {self.name}")
        return subscription

    def remove(self, subscription: Subscription) -> None:
        with self.feed._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
            if not self._subscriptions:
                self.feed._channels.pop(self.name, None)
        logger.debug(f"Unsubscribed from channel {self.name}")

    @property
    def subscriptions(self) -> List[Subscription]:
        with self.feed._lock:
            return list(self._subscriptions)


class ChangeFeed:
    """In-process change feed fed by SQLAlchemy session events"""

    def __init__(self):
        self._channels: Dict[str, Channel] = {}
        self._lock = threading.RLock()

    def channel(self, name: str) -> Channel:
        with self._lock:
            channel = self._channels.get(name)
            if channel is None:
                channel = Channel(self, name)
                self._channels[name] = channel
            return channel

    @property
    def channels(self) -> List[str]:
        with self._lock:
            return list(self._channels)

    def publish(self, change: ChangeEvent) -> None:
        with self._lock:
            subscriptions = [s for c in self._channels.values() for s in c._subscriptions]
        for subscription in subscriptions:
            subscription.deliver(change)

    def close(self) -> None:
        for channel_name in self.channels:
            for subscription in self.channel(channel_name).subscriptions:
                subscription.unsubscribe()

    # ---- session wiring ----

    def attach(self, session_factory) -> None:
        event.listen(session_factory, "after_flush", self._collect)
        event.listen(session_factory, "after_commit", self._flush_to_subscribers)
        event.listen(session_factory, "after_soft_rollback", self._discard)

    def _collect(self, session, flush_context) -> None:
        pending = session.info.setdefault(_PENDING_KEY, [])
        for obj in session.new:
            pending.append(ChangeEvent(INSERT, obj.__tablename__, new=_row(obj)))
        for obj in session.dirty:
            if not session.is_modified(obj, include_collections=False):
                continue
            pending.append(ChangeEvent(UPDATE, obj.__tablename__, new=_row(obj), old=_previous(obj)))
        for obj in session.deleted:
            pending.append(ChangeEvent(DELETE, obj.__tablename__, old=_row(obj)))

    def _flush_to_subscribers(self, session) -> None:
        pending = session.info.pop(_PENDING_KEY, [])
        committed_at = datetime.now(timezone.utc)
        for change in pending:
            change.commit_timestamp = committed_at
            self.publish(change)

    def _discard(self, session, previous_transaction) -> None:
        session.info.pop(_PENDING_KEY, None)


def _row(obj) -> Dict[str, Any]:
    state = inspect(obj)
    return {attr.key: state.dict.get(attr.key) for attr in state.mapper.column_attrs}


def _previous(obj) -> Dict[str, Any]:
    """Primary key plus the pre-change value of every modified column"""
    state = inspect(obj)
    old = {key.name: state.dict.get(key.name) for key in state.mapper.primary_key}
    for attr in state.mapper.column_attrs:
        history = state.attrs[attr.key].history
        if history.has_changes() and history.deleted:
            old[attr.key] = history.deleted[0]
    return old


# ---- subscription helpers ----

def subscribe_to_review_comments(feed: ChangeFeed, review_id: str, handler: Callable) -> Subscription:
    """
    Call ``handler`` with each comment inserted on ``review_id``.

    The handler receives a CommentResponse built from the new row.
    """
    from cinesocial.schemas.review import CommentResponse

    def on_insert(change: ChangeEvent) -> None:
        handler(CommentResponse.model_validate(change.new))

    return (
        feed.channel(f"review:{review_id}:comments")
        .on(INSERT, "comments", on_insert, filter=("review_id", review_id))
        .subscribe()
    )


def subscribe_to_comment_votes(feed: ChangeFeed, comment_id: str, handler: Callable[[ChangeEvent], None]) -> Subscription:
    """Call ``handler`` with the raw ChangeEvent for any vote change on ``comment_id``"""
    return (
        feed.channel(f"comment:{comment_id}:votes")
        .on(ALL_EVENTS, "comment_votes", handler, filter=("comment_id", comment_id))
        .subscribe()
    )


def unsubscribe(subscription: Subscription) -> None:
    subscription.unsubscribe()
