"""
Pytest configuration and shared fixtures.
"""

import itertools
import sys
from pathlib import Path

import httpx
import pytest
from google.api_core.exceptions import ServiceUnavailable

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from services.event_store import LocalEventStore  # noqa: E402
from services.festivals import festivals_for_year  # noqa: E402
from services.holidays import HolidayService  # noqa: E402

HOLIDAY_API_BASE = "https://holidays.test/api/v3/PublicHolidays"
FESTIVALS_URL = "https://calendar.test/festivals"

NATIONAL_2025 = [
    {"date": "2025-01-26", "localName": "Republic Day", "name": "Republic Day"},
    {"date": "2025-08-15", "localName": "Independence Day", "name": "Independence Day"},
    {"date": "2025-10-20", "localName": "Diwali", "name": "Diwali"},
]
REGIONAL_2025 = [
    {"date": "2025-01-26", "name": "Local RD"},
    {"date": "2025-01-15", "name": "Thiruvalluvar Day"},
]


# -------------------------
# Fake Firestore
# -------------------------
class FakeDocument:
    def __init__(self, doc_id: str, data: dict):
        self.id = doc_id
        self._data = data

    def to_dict(self) -> dict:
        return dict(self._data)


class FakeWatch:
    def __init__(self, collection: "FakeCollection", order_field: str, callback):
        self._collection = collection
        self._order_field = order_field
        self._callback = callback
        self.active = True

    def fire(self) -> None:
        if self.active:
            self._callback(self._collection.documents(self._order_field), [], None)

    def unsubscribe(self) -> None:
        self.active = False
        if self in self._collection.watches:
            self._collection.watches.remove(self)


class FakeQuery:
    def __init__(self, collection: "FakeCollection", order_field: str):
        self._collection = collection
        self._order_field = order_field

    def on_snapshot(self, callback) -> FakeWatch:
        watch = FakeWatch(self._collection, self._order_field, callback)
        self._collection.watches.append(watch)
        watch.fire()
        return watch

    def stream(self):
        return iter(self._collection.documents(self._order_field))


class FakeDocumentRef:
    def __init__(self, client: "FakeFirestoreClient", parent: "FakeCollection", doc_id: str):
        self._client = client
        self._parent = parent
        self.id = doc_id

    def collection(self, name: str) -> "FakeCollection":
        return self._client.collection(f"{self._parent.path}/{self.id}/{name}")

    def delete(self) -> None:
        self._parent.delete(self.id)


class FakeCollection:
    def __init__(self, client: "FakeFirestoreClient", path: str):
        self._client = client
        self.path = path
        self.docs: dict[str, dict] = {}
        self.watches: list[FakeWatch] = []

    def document(self, doc_id: str) -> FakeDocumentRef:
        return FakeDocumentRef(self._client, self, doc_id)

    def order_by(self, field: str) -> FakeQuery:
        return FakeQuery(self, field)

    def documents(self, order_field: str) -> list[FakeDocument]:
        ordered = sorted(self.docs.items(), key=lambda item: item[1].get(order_field))
        return [FakeDocument(doc_id, data) for doc_id, data in ordered]

    def add(self, data: dict):
        self._client.check_writable()
        doc_id = f"doc-{next(self._client.ids)}"
        self.docs[doc_id] = dict(data)
        self._broadcast()
        return None, FakeDocumentRef(self._client, self, doc_id)

    def delete(self, doc_id: str) -> None:
        self._client.check_writable()
        self.docs.pop(doc_id, None)
        self._broadcast()

    def _broadcast(self) -> None:
        for watch in list(self.watches):
            watch.fire()


class FakeFirestoreClient:
    """In-memory stand-in for the slice of firestore.Client the store uses."""

    def __init__(self):
        self.collections: dict[str, FakeCollection] = {}
        self.ids = itertools.count(1)
        self.fail_writes = False

    def collection(self, path: str) -> FakeCollection:
        if path not in self.collections:
            self.collections[path] = FakeCollection(self, path)
        return self.collections[path]

    def check_writable(self) -> None:
        if self.fail_writes:
            raise ServiceUnavailable("backend unavailable")


# -------------------------
# Fixtures
# -------------------------
@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "calendar.db"


@pytest.fixture
def local_store(db_path):
    store = LocalEventStore(db_path)
    yield store
    store.close()


@pytest.fixture
def firestore_client():
    return FakeFirestoreClient()


def holiday_handler(request: httpx.Request) -> httpx.Response:
    """Serve the three holiday sources for 2025; other years are empty."""
    path = request.url.path
    if request.url.host == "calendar.test":
        year = int(request.url.params.get("year", "2025"))
        return httpx.Response(200, json=festivals_for_year(year) if year == 2025 else [])
    if path.endswith("/2025/IN"):
        return httpx.Response(200, json=NATIONAL_2025)
    if path.endswith("/2025/IN-TN"):
        return httpx.Response(200, json=REGIONAL_2025)
    return httpx.Response(200, json=[])


@pytest.fixture
def holiday_requests():
    return []


@pytest.fixture
def holiday_service(holiday_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        holiday_requests.append(str(request.url))
        return holiday_handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HolidayService(
        client,
        api_base=HOLIDAY_API_BASE,
        country_code="IN",
        region_code="IN-TN",
        festivals_url=FESTIVALS_URL,
    )


@pytest.fixture
def api_client(monkeypatch, db_path, local_store, holiday_service):
    """TestClient wired to the local store and mocked holiday sources."""
    from fastapi.testclient import TestClient

    from api.main import app

    monkeypatch.setattr("api.logging.DB_PATH", db_path)
    monkeypatch.setattr("api.dependencies.CALENDAR_API_KEY", "test-key")
    monkeypatch.setattr(app.state, "event_store", local_store, raising=False)
    monkeypatch.setattr(app.state, "holiday_service", holiday_service, raising=False)
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {
        "X-API-Key": "test-key",
        "X-User-Id": "user-1",
        "X-User-Email": "user@example.com",
        "X-User-Name": "Test User",
    }
