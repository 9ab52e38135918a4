"""
Tests for the Supabase repositories and the table definitions they rely on.
"""
import re
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from storytime.api_service.core.database import db_manager
from storytime.api_service.repositories.user_repository import USERS_TABLE, UserRepository
from tests.conftest import TEST_USER_ID

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "supabase" / "schema.sql"


@pytest.fixture
def supabase_mock():
    client = Mock()
    query = client.table.return_value
    query.upsert.return_value.execute.return_value = SimpleNamespace(data=[{
        "clerk_id": TEST_USER_ID,
        "parent_name": "Sam",
        "child_name": "Mia",
        "onboarding_complete": False,
    }])
    db_manager.set_client(client)
    yield client
    db_manager.set_client(None)


class TestUserRepository:

    def test_save_is_a_single_upsert_on_clerk_id(self, supabase_mock):
        user = UserRepository().save_user(TEST_USER_ID, {"parent_name": "Sam", "child_name": "Mia"})

        query = supabase_mock.table.return_value
        supabase_mock.table.assert_called_once_with(USERS_TABLE)
        query.upsert.assert_called_once()
        query.insert.assert_not_called()
        query.select.assert_not_called()

        data = query.upsert.call_args.args[0]
        assert query.upsert.call_args.kwargs == {"on_conflict": "clerk_id"}
        assert data["clerk_id"] == TEST_USER_ID
        assert data["parent_name"] == "Sam"
        # Left to the column defaults so an update never resets them
        assert "created_at" not in data
        assert "onboarding_complete" not in data

        assert user.parent_name == "Sam"

    def test_repeated_saves_keep_one_profile(self, fake_db):
        repository = UserRepository()

        repository.save_user(TEST_USER_ID, {"parent_name": "Sam", "child_name": "Mia"})
        repository.complete_onboarding(TEST_USER_ID)
        user = repository.save_user(TEST_USER_ID, {"parent_name": "Alex", "child_name": "Mia"})

        assert len(fake_db.tables["users"]) == 1
        assert user.parent_name == "Alex"
        assert user.onboarding_complete is True

    def test_save_without_rows_raises(self, supabase_mock):
        supabase_mock.table.return_value.upsert.return_value.execute.return_value = SimpleNamespace(data=[])

        with pytest.raises(Exception):
            UserRepository().save_user(TEST_USER_ID, {"parent_name": "Sam"})


class TestSchema:

    def test_stories_do_not_require_a_profile(self):
        schema = SCHEMA_PATH.read_text()
        stories = re.search(r"create table if not exists stories \((.*?)\n\);", schema, re.S).group(1)

        assert "references" not in stories
        assert "stories_user_created_idx" in schema

    def test_story_can_start_before_onboarding(self, client, fake_db):
        response = client.post("/api/story/start", json={"mode": "predefined"})

        assert response.status_code == 200
        assert "users" not in fake_db.tables
        assert fake_db.tables["stories"][0]["clerk_user_id"] == TEST_USER_ID
