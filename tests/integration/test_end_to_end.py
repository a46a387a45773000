"""
End-to-end integration tests.

Tests the complete flow from settings to a persisted rank-up: services are
built by the bootstrap on file storage, the catalog comes through the
loader (stub session), and quests are completed through the transaction.
"""

import json
from pathlib import Path

import pytest

from diced.bootstrap import create_services, build_storage
from diced.config import Settings
from diced.progression.stats import summarize_profile
from diced.storage.key_value import JsonFileStorage
from diced.storage.profile_store import ProfileStore


FIXTURES = Path(__file__).parent.parent / "fixtures"


class FixtureResponse:
    def raise_for_status(self):
        pass

    def json(self):
        return json.loads((FIXTURES / "sample_quests.json").read_text())


class FixtureSession:
    def __init__(self):
        self.calls = 0

    def get(self, url, timeout=None):
        self.calls += 1
        return FixtureResponse()


class TestEndToEnd:
    """End-to-end tests for the complete progression flow."""

    @pytest.fixture
    def settings(self, tmp_path):
        return Settings(storage_path=str(tmp_path / "storage.json"))

    def test_file_storage_selected_without_database(self, settings):
        assert isinstance(build_storage(settings), JsonFileStorage)

    def test_quest_flow_survives_restart(self, settings):
        """Test complete flow: fetch catalog -> complete quests -> reload."""
        session = FixtureSession()
        services = create_services(settings, session=session)

        # Step 1: Catalog fetched once and cached
        assert len(services.catalog) == 10
        assert session.calls == 1

        # Step 2: Complete a chain of quests
        assert services.transaction.complete("T1-1").success
        assert services.transaction.complete("T1-4").success
        result = services.transaction.complete("M1-1")
        assert result.success

        # Step 3: Restart with a fresh service graph on the same file
        restarted_session = FixtureSession()
        restarted = create_services(settings, session=restarted_session)
        profile = restarted.profile_store.load()

        assert profile.completed_quests == ["T1-1", "T1-4", "M1-1"]
        assert profile.attribute("technique").total_hours == 10
        assert profile.milestones.quests_completed == 3
        assert len(restarted.catalog) == 10
        assert restarted_session.calls == 0  # served from the cache

        # Step 4: Stats reflect the progress
        stats = summarize_profile(profile, restarted.engine.rank_table)
        assert stats.quests_completed == 3
        assert stats.total_hours == 13

    def test_rank_up_through_practice(self, settings):
        """Test that practice hours on every attribute advance the rank."""
        services = create_services(settings, session=FixtureSession())
        store = services.profile_store

        for name in ("technique", "ingredients", "flavor", "management"):
            store.update_attribute(name, 55)

        profile = ProfileStore(JsonFileStorage(settings.storage_path)).load()

        assert profile.current_rank.title == "Culinary Student"
        assert profile.current_rank.color_tier == "Bronze"
        assert all(
            attr.current_rank == "Culinary Student" and not attr.waiting_for_user_rank_up
            for attr in profile.attributes.values()
        )

        status = services.engine.hours_for_next_rank(profile)
        assert status.next_rank == "Kitchen Assistant"
        assert status.total_required == 4 * 154
