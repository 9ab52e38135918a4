"""
Shared fixtures: an in-memory stand-in for the Supabase table API and an
authenticated FastAPI test client.
"""
import copy
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from storytime.api_service.core.auth import get_current_user_id
from storytime.api_service.core.database import db_manager
from storytime.api_service.main import app

TEST_USER_ID = "user_test_123"

# Column defaults from supabase/schema.sql
TABLE_DEFAULTS = {
    "users": {"onboarding_complete": False, "created_at": "2024-01-01T00:00:00"},
}


class FakeQuery:
    """Records a select, insert, update or upsert chain and applies it on execute()"""

    def __init__(self, rows: List[Dict[str, Any]], defaults: Dict[str, Any] = None):
        self._rows = rows
        self._defaults = defaults or {}
        self._filters = []
        self._order = None
        self._limit = None
        self._insert = None
        self._update = None
        self._upsert = None

    def select(self, *columns):
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def insert(self, data):
        self._insert = data
        return self

    def update(self, data):
        self._update = data
        return self

    def upsert(self, data, on_conflict=None):
        self._upsert = (data, on_conflict)
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self._filters)

    def _new_row(self, data):
        row = {**copy.deepcopy(self._defaults), **copy.deepcopy(data)}
        self._rows.append(row)
        return row

    def execute(self):
        if self._upsert is not None:
            data, on_conflict = self._upsert
            for row in self._rows:
                if on_conflict and row.get(on_conflict) == data.get(on_conflict):
                    row.update(copy.deepcopy(data))
                    return SimpleNamespace(data=[copy.deepcopy(row)])
            return SimpleNamespace(data=[copy.deepcopy(self._new_row(data))])

        if self._insert is not None:
            row = self._new_row(self._insert)
            return SimpleNamespace(data=[copy.deepcopy(row)])

        matched = [row for row in self._rows if self._matches(row)]

        if self._update is not None:
            for row in matched:
                row.update(copy.deepcopy(self._update))
            return SimpleNamespace(data=copy.deepcopy(matched))

        if self._order:
            column, desc = self._order
            matched = sorted(matched, key=lambda r: r.get(column) or "", reverse=desc)
        if self._limit is not None:
            matched = matched[:self._limit]

        return SimpleNamespace(data=copy.deepcopy(matched))


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}

    def table(self, name):
        return FakeQuery(self.tables.setdefault(name, []), TABLE_DEFAULTS.get(name))


@pytest.fixture
def fake_db():
    fake = FakeSupabase()
    db_manager.set_client(fake)
    yield fake
    db_manager.set_client(None)


@pytest.fixture
def client(fake_db):
    """Test client authenticated as TEST_USER_ID"""
    app.dependency_overrides[get_current_user_id] = lambda: TEST_USER_ID
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(fake_db):
    app.dependency_overrides.clear()
    return TestClient(app)


@pytest.fixture
def onboarded_user(fake_db):
    """A completed profile for TEST_USER_ID"""
    row = {
        "clerk_id": TEST_USER_ID,
        "parent_name": "Sam",
        "child_name": "Mia",
        "chosen_voice": "warm",
        "chosen_voice_id": "voice_chosen",
        "voice_clone_id": None,
        "onboarding_complete": True,
        "created_at": "2024-01-01T00:00:00",
        "updated_at": "2024-01-01T00:00:00",
    }
    fake_db.tables.setdefault("users", []).append(row)
    return row
