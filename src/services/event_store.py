"""
Event storage behind one subscribe/add/remove capability.

Two interchangeable backends:
  - LocalEventStore: one JSON blob per owner in SQLite, synchronous, notifies
    subscribers in-process right after each write.
  - FirestoreEventStore: users/{uid}/events collection, live-subscribed with
    on_snapshot; changes arrive from the backend's watch thread.

Subscribers always receive the complete DateKey -> [Event] map, with every
bucket ordered by time of day (untimed events first) then creation time.
"""

import json
import logging
import sqlite3
import threading
import uuid
from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Protocol

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import firestore

from core.config import DB_PATH, EVENT_BACKEND, EVENTS_COLLECTION, USERS_COLLECTION
from core.database import get_connection, init_schema, read_blob, write_blob
from core.dates import to_date_key
from core.errors import StorageCorruption, StoreError
from core.validation import validate_event_input
from models.events import Event, EventsMap

logger = logging.getLogger(__name__)

OnChange = Callable[[EventsMap], None]


class Subscription:
    """Handle returned by subscribe(); unsubscribe() stops further deliveries."""

    def __init__(self, owner_id: str, on_change: OnChange):
        self.owner_id = owner_id
        self._on_change = on_change
        self._cancel: Callable[[], None] | None = None
        self.active = True

    def on_cancel(self, cancel: Callable[[], None]) -> None:
        self._cancel = cancel

    def deliver(self, events_map: EventsMap) -> None:
        if self.active:
            self._on_change(events_map)

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        if self._cancel is not None:
            cancel, self._cancel = self._cancel, None
            cancel()


class EventStore(Protocol):
    def subscribe(self, owner_id: str, on_change: OnChange) -> Subscription: ...

    def snapshot(self, owner_id: str) -> EventsMap: ...

    def add(self, owner_id: str, date_key: str, title: str, time: str = "") -> Event: ...

    def remove(self, owner_id: str, date_key: str, event_id: str) -> None: ...

    def close(self) -> None: ...


# =============================================================================
# SHARED HELPERS
# =============================================================================


def event_sort_key(event: Event) -> tuple[str, str]:
    return (event.get("time") or "", event.get("created_at") or "")


def build_events_map(events: Iterable[Event]) -> EventsMap:
    """Group events by date and order each bucket."""
    events_map: EventsMap = defaultdict(list)
    for event in events:
        events_map[event["date"]].append(event)
    return {key: sorted(bucket, key=event_sort_key) for key, bucket in events_map.items()}


def copy_events_map(events_map: EventsMap) -> EventsMap:
    return {key: [dict(event) for event in bucket] for key, bucket in events_map.items()}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _coerce_event(raw, date_key: str) -> Event | None:
    if not isinstance(raw, dict):
        return None
    event_id = raw.get("id")
    title = raw.get("title")
    if not isinstance(event_id, str) or not event_id or not isinstance(title, str):
        return None
    return {
        "id": event_id,
        "title": title,
        "time": raw.get("time") if isinstance(raw.get("time"), str) else "",
        "date": date_key,
        "created_at": raw.get("created_at") if isinstance(raw.get("created_at"), str) else "",
    }


def encode_events_map(events_map: EventsMap) -> str:
    return json.dumps(events_map, ensure_ascii=False)


def decode_events_map(payload: str) -> EventsMap:
    """
    Decode a persisted blob.

    Raises:
        StorageCorruption: if the payload is not a JSON object of lists
    """
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise StorageCorruption(f"Events blob is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise StorageCorruption("Events blob is not a JSON object")

    events: list[Event] = []
    for date_key, bucket in data.items():
        if not isinstance(bucket, list):
            raise StorageCorruption(f"Events bucket for {date_key} is not a list")
        for raw in bucket:
            event = _coerce_event(raw, date_key)
            if event is None:
                logger.warning("Dropping unreadable stored event on %s: %r", date_key, raw)
                continue
            events.append(event)
    return build_events_map(events)


# =============================================================================
# LOCAL (SQLITE) BACKEND
# =============================================================================


class LocalEventStore:
    """Owner-scoped events persisted as one JSON blob per owner."""

    def __init__(self, db_path: Path | str = DB_PATH):
        self._db_path = db_path
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)
        # held from load through save, and around the subscriber lists.
        # Subscriber callbacks run while it is held.
        self._lock = threading.RLock()
        init_schema(db_path)

    def _load(self, owner_id: str) -> EventsMap:
        conn = get_connection(self._db_path)
        try:
            payload = read_blob(conn, owner_id)
        except sqlite3.Error as e:
            raise StoreError(f"Could not read events for {owner_id}: {e}") from e
        finally:
            conn.close()

        if payload is None:
            return {}
        try:
            return decode_events_map(payload)
        except StorageCorruption as e:
            logger.warning("Resetting events for %s to empty: %s", owner_id, e)
            return {}

    def _save(self, owner_id: str, events_map: EventsMap) -> None:
        conn = get_connection(self._db_path)
        try:
            write_blob(conn, owner_id, encode_events_map(events_map))
        except sqlite3.Error as e:
            raise StoreError(f"Could not save events for {owner_id}: {e}") from e
        finally:
            conn.close()

    def _notify(self, owner_id: str, events_map: EventsMap) -> None:
        for subscription in list(self._subscriptions.get(owner_id, [])):
            subscription.deliver(copy_events_map(events_map))

    def _detach(self, subscription: Subscription) -> None:
        with self._lock:
            subscriptions = self._subscriptions.get(subscription.owner_id, [])
            if subscription in subscriptions:
                subscriptions.remove(subscription)
            if not subscriptions:
                self._subscriptions.pop(subscription.owner_id, None)

    def subscribe(self, owner_id: str, on_change: OnChange) -> Subscription:
        with self._lock:
            events_map = self._load(owner_id)
            subscription = Subscription(owner_id, on_change)
            subscription.on_cancel(lambda: self._detach(subscription))
            self._subscriptions[owner_id].append(subscription)
            subscription.deliver(events_map)
        return subscription

    def snapshot(self, owner_id: str) -> EventsMap:
        with self._lock:
            return self._load(owner_id)

    def add(self, owner_id: str, date_key: str, title: str, time: str = "") -> Event:
        title, time = validate_event_input(title, time)

        with self._lock:
            events_map = self._load(owner_id)
            existing_ids = {e["id"] for bucket in events_map.values() for e in bucket}
            event_id = uuid.uuid4().hex
            while event_id in existing_ids:
                event_id = uuid.uuid4().hex

            event: Event = {
                "id": event_id,
                "title": title,
                "time": time,
                "date": date_key,
                "created_at": utc_now_iso(),
            }
            bucket = events_map.get(date_key, []) + [event]
            events_map[date_key] = sorted(bucket, key=event_sort_key)

            self._save(owner_id, events_map)
            self._notify(owner_id, events_map)
        return dict(event)

    def remove(self, owner_id: str, date_key: str, event_id: str) -> None:
        with self._lock:
            events_map = self._load(owner_id)
            bucket = events_map.get(date_key, [])
            remaining = [e for e in bucket if e["id"] != event_id]
            if len(remaining) == len(bucket):
                return

            if remaining:
                events_map[date_key] = remaining
            else:
                del events_map[date_key]

            self._save(owner_id, events_map)
            self._notify(owner_id, events_map)

    def close(self) -> None:
        with self._lock:
            subscriptions = [s for group in self._subscriptions.values() for s in group]
        for subscription in subscriptions:
            subscription.unsubscribe()


# =============================================================================
# FIRESTORE (LIVE-SYNC) BACKEND
# =============================================================================


def _event_from_document(doc) -> Event:
    data = doc.to_dict() or {}
    created_at = data.get("createdAt")
    if isinstance(created_at, datetime):
        created_at = created_at.isoformat()
    date_key = data.get("date")
    if not isinstance(date_key, str) or not date_key:
        # Documents written without a date land on today
        date_key = to_date_key(date.today())
    return {
        "id": doc.id,
        "title": str(data.get("title") or ""),
        "time": data.get("time") if isinstance(data.get("time"), str) else "",
        "date": date_key,
        "created_at": created_at if isinstance(created_at, str) else "",
    }


class FirestoreEventStore:
    """Owner-scoped events in Firestore, delivered through live snapshots."""

    def __init__(self, client: firestore.Client):
        self._client = client
        self._subscriptions: list[Subscription] = []

    def _events_ref(self, owner_id: str):
        return (
            self._client.collection(USERS_COLLECTION)
            .document(owner_id)
            .collection(EVENTS_COLLECTION)
        )

    def _query(self, owner_id: str):
        return self._events_ref(owner_id).order_by("createdAt")

    def subscribe(self, owner_id: str, on_change: OnChange) -> Subscription:
        subscription = Subscription(owner_id, on_change)

        def handle_snapshot(docs, changes, read_time):
            subscription.deliver(build_events_map(_event_from_document(doc) for doc in docs))

        watch = self._query(owner_id).on_snapshot(handle_snapshot)

        def cancel():
            watch.unsubscribe()
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        subscription.on_cancel(cancel)
        self._subscriptions.append(subscription)
        return subscription

    def snapshot(self, owner_id: str) -> EventsMap:
        try:
            docs = list(self._query(owner_id).stream())
        except GoogleAPICallError as e:
            raise StoreError(f"Could not read events for {owner_id}: {e}") from e
        return build_events_map(_event_from_document(doc) for doc in docs)

    def add(self, owner_id: str, date_key: str, title: str, time: str = "") -> Event:
        title, time = validate_event_input(title, time)
        created_at = datetime.now(timezone.utc)

        try:
            _, doc_ref = self._events_ref(owner_id).add(
                {"title": title, "time": time, "date": date_key, "createdAt": created_at}
            )
        except GoogleAPICallError as e:
            raise StoreError(f"Failed to add event: {e}") from e

        return {
            "id": doc_ref.id,
            "title": title,
            "time": time,
            "date": date_key,
            "created_at": created_at.isoformat(),
        }

    def remove(self, owner_id: str, date_key: str, event_id: str) -> None:
        # Deleting a missing document is a no-op in Firestore
        try:
            self._events_ref(owner_id).document(event_id).delete()
        except GoogleAPICallError as e:
            raise StoreError(f"Failed to delete event: {e}") from e

    def close(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()


def create_event_store(
    backend: str = EVENT_BACKEND,
    *,
    db_path: Path | str = DB_PATH,
    firestore_client: firestore.Client | None = None,
) -> EventStore:
    """Build the configured event store backend."""
    if backend == "local":
        return LocalEventStore(db_path)
    if backend == "firestore":
        if firestore_client is None:
            raise ValueError("Firestore backend requires a Firestore client")
        return FirestoreEventStore(firestore_client)
    raise ValueError(f"Unknown event backend '{backend}', expected 'local' or 'firestore'")
