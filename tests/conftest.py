import os
from typing import Any, Dict, List, Optional

import pytest

from smartmark.errors import RemoteError
from smartmark.feed import ChangeFeed
from smartmark.records import ChangeEvent, EventType, UserRecord
from smartmark.store import RemoteStore, SqlStore


ADA = UserRecord(id=1, email="ada@example.com", metadata={"full_name": "Ada Lovelace"})


@pytest.fixture(autouse=True)
def clean_smartmark_env(monkeypatch, tmp_path):
    """
    Isolate every test from the real config.

    Removes SMARTMARK_ environment variables, points HOME at a temp
    directory, runs from a temp cwd and drops the cached global config.
    """
    import smartmark.config

    for key in list(os.environ.keys()):
        if key.startswith("SMARTMARK_"):
            monkeypatch.delenv(key, raising=False)

    mock_home = tmp_path / "home"
    mock_home.mkdir()
    monkeypatch.setenv("HOME", str(mock_home))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(smartmark.config, "_config", None)

    return tmp_path


@pytest.fixture
def temp_db(tmp_path):
    """Path for a temporary database file."""
    return str(tmp_path / "test.db")


@pytest.fixture
def store(temp_db):
    """SqlStore signed in as ada@example.com."""
    store = SqlStore(path=temp_db)
    store.sign_in("ada@example.com", full_name="Ada Lovelace")
    yield store
    store.dispose()


@pytest.fixture
def feed():
    return ChangeFeed()


class FakeStore(RemoteStore):
    """
    Remote store double that records requests.

    Set ``error`` to make every request fail with that message.
    """

    def __init__(self, user: Optional[UserRecord] = ADA, rows: Optional[List[Dict[str, Any]]] = None):
        self.user = user
        self.rows = list(rows or [])
        self.inserts: List[Dict[str, Any]] = []
        self.deletes: List[Dict[str, Any]] = []
        self.selects = 0
        self.signed_out = False
        self.error: Optional[str] = None

    def _maybe_fail(self):
        if self.error:
            raise RemoteError(self.error)

    def insert(self, table, record):
        self._maybe_fail()
        self.inserts.append(dict(record))
        return dict(record)

    def delete(self, table, match):
        self._maybe_fail()
        self.deletes.append(dict(match))
        return 1

    def select(self, table, order_by=None, descending=False):
        self.selects += 1
        self._maybe_fail()
        return list(self.rows)

    def get_current_user(self):
        return self.user

    def sign_out(self):
        self.signed_out = True
        self.user = None


@pytest.fixture
def fake_store():
    return FakeStore()


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


# ============ Event Helpers ============

def bookmark_row(id, title=None, url=None, user_id=1, created_at="2024-05-01T12:00:00+00:00"):
    return {
        "id": id,
        "title": title or f"Bookmark {id}",
        "url": url or f"https://example.com/{id}",
        "user_id": user_id,
        "created_at": created_at,
    }


def insert_event(row, table="bookmarks"):
    return ChangeEvent(event_type=EventType.INSERT, table=table, new=row)


def delete_event(id, table="bookmarks"):
    return ChangeEvent(event_type=EventType.DELETE, table=table, old={"id": id})
