"""
Security tests for the DICED progression engine.

Tests cover:
- SQL injection prevention in PostgreSQL storage
- Path-like keys in file storage
- Tampered stored profiles
- Input validation at the API boundary
"""

import json
from unittest import mock

import pytest
from fastapi.testclient import TestClient

from app import app, get_services
from diced.bootstrap import create_services
from diced.config import Settings
from diced.storage.key_value import InMemoryStorage, JsonFileStorage, PostgresStorage
from diced.storage.profile_store import ProfileStore
from diced.utils.constants import (
    MAX_RECENT_ACHIEVEMENTS,
    STORAGE_KEY_QUEST_CACHE,
    STORAGE_KEY_USER_PROFILE,
)


MALICIOUS_KEY = "x'; DROP TABLE diced_kv; --"


class TestSQLInjectionPrevention:
    """Test SQL injection prevention."""

    def test_key_passed_as_parameter(self):
        """Ensure keys never end up inside the SQL text."""
        cursor = mock.MagicMock()
        cursor.fetchone.return_value = None
        conn = mock.MagicMock()
        conn.cursor.return_value.__enter__.return_value = cursor

        with mock.patch("diced.storage.key_value.pool.SimpleConnectionPool") as pool_cls:
            pool_cls.return_value.getconn.return_value = conn
            storage = PostgresStorage("postgresql://localhost/diced")
            storage.get(MALICIOUS_KEY)
            storage.set(MALICIOUS_KEY, "'); DELETE FROM diced_kv; --")

        for call in cursor.execute.call_args_list:
            sql, params = call[0]
            assert "DROP TABLE" not in sql
            assert "DELETE FROM" not in sql
            assert MALICIOUS_KEY in params


class TestFileStorageKeys:
    """Test that keys cannot escape the storage file."""

    def test_path_like_key_stays_in_file(self, tmp_path):
        path = tmp_path / "storage.json"
        storage = JsonFileStorage(path)

        storage.set("../../etc/passwd", "value")

        assert [p.name for p in tmp_path.iterdir()] == ["storage.json"]
        assert json.loads(path.read_text()) == {"../../etc/passwd": "value"}


class TestTamperedProfiles:
    """Test that edited stored profiles cannot break invariants."""

    def _load(self, data):
        storage = InMemoryStorage({STORAGE_KEY_USER_PROFILE: json.dumps(data)})
        return ProfileStore(storage).load()

    def test_inflated_derived_fields_recomputed(self):
        """Ensure levels and percentages are derived from hours, not trusted."""
        profile = self._load({
            "currentRank": {"title": "Home Cook", "level": 9, "progressPercentage": 99},
            "attributes": {
                name: {"totalHours": 0, "currentRank": "Home Cook", "currentLevel": 9}
                for name in ("technique", "ingredients", "flavor", "management")
            },
            "milestones": {},
            "recentAchievements": [],
        })

        assert profile.current_rank.level == 1
        assert profile.current_rank.progress_percentage == 0
        assert all(attr.current_level == 1 for attr in profile.attributes.values())

    def test_oversized_achievement_log_accepted_then_capped(self):
        profile = self._load({
            "milestones": {},
            "recentAchievements": [
                {"type": "quest_complete", "questId": f"Q{i}"} for i in range(50)
            ],
        })
        profile.record_achievement(profile.recent_achievements[0])

        assert len(profile.recent_achievements) == MAX_RECENT_ACHIEVEMENTS


class TestInputValidation:
    """Test input validation at the API boundary."""

    @pytest.fixture
    def client(self):
        storage = InMemoryStorage({
            STORAGE_KEY_QUEST_CACHE: json.dumps({"fetchedAt": 1e12, "quests": []}),
        })
        services = create_services(Settings(), storage=storage)
        app.dependency_overrides[get_services] = lambda: services
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_hours_must_be_numeric(self, client):
        response = client.post("/attributes/technique/hours", json={"hours": "lots"})
        assert response.status_code == 422

    def test_missing_body_rejected(self, client):
        assert client.post("/attributes/technique/hours").status_code == 422

    def test_injection_in_quest_id(self, client):
        response = client.post("/quests/T1-1' OR '1'='1/complete")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_injection_in_attribute_name(self, client):
        response = client.post(
            "/attributes/technique;DROP/hours", json={"hours": 1},
        )
        assert response.status_code == 404
