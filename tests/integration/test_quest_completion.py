"""
Integration tests for quest completion.

Runs QuestCompletionTransaction against a real ProfileStore on in-memory
storage and a catalog built from the sample quest fixture.
"""

import json
from pathlib import Path

import pytest

from diced.models.achievement import (
    LevelUpAchievement,
    QuestCompleteAchievement,
    RankUpAchievement,
)
from diced.models.quest_record import QuestRecord
from diced.quests.catalog import QuestCatalog
from diced.quests.completion import QuestCompletionTransaction
from diced.storage.key_value import InMemoryStorage
from diced.storage.profile_store import ProfileStore
from diced.utils.constants import STORAGE_KEY_USER_PROFILE
from diced.utils.exceptions import StorageError


FIXTURES = Path(__file__).parent.parent / "fixtures"


class FailOnceStorage(InMemoryStorage):
    """Storage that fails a single write once armed, after `skip` good ones."""

    armed = False
    skip = 0

    def set(self, key, value):
        if self.armed:
            if self.skip:
                self.skip -= 1
            else:
                self.armed = False
                raise StorageError("disk full")
        super().set(key, value)


@pytest.fixture
def catalog():
    return QuestCatalog.from_dicts(json.loads((FIXTURES / "sample_quests.json").read_text()))


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def store(storage):
    return ProfileStore(storage)


@pytest.fixture
def transaction(store, catalog):
    return QuestCompletionTransaction(store, catalog)


def big_quest(quest_id, **rewards):
    return QuestRecord.from_dict({
        'id': quest_id,
        'title': quest_id,
        'type': "main",
        'rank': {'title': "Home Cook", 'level': 1},
        'attributeRewards': rewards,
    })


class TestSuccessfulCompletion:
    """Tests for the happy path."""

    def test_technique_reaches_level_two(self, transaction, store):
        """Test that 5 technique hours move technique to level 2."""
        result = transaction.complete("T1-1")
        profile = store.load()

        assert result.success
        assert result.message == "Quest completed!"
        assert result.rewards == {'technique': 5.0}
        assert profile.attribute("technique").current_level == 2
        assert profile.attribute("technique").total_hours == 5
        assert profile.current_rank.level == 1
        assert not result.level_up

    def test_records_completion_and_milestones(self, transaction, store):
        transaction.complete("M1-1")
        profile = store.load()

        assert profile.completed_quests == ["M1-1"]
        assert profile.milestones.quests_completed == 1
        assert profile.milestones.hours_accumulated == 4

    def test_unlocks_follow_up_quests(self, transaction, store):
        """Test that completing a quest unlocks the quests it names."""
        assert not store.load().is_unlocked("T1-4")

        transaction.complete("T1-1")

        assert store.load().is_unlocked("T1-4")
        assert transaction.complete("T1-4").success

    def test_quest_complete_achievement(self, transaction, store):
        transaction.complete("S1-1")
        achievement = store.load().recent_achievements[0]

        assert isinstance(achievement, QuestCompleteAchievement)
        assert achievement.quest_id == "S1-1"
        assert achievement.quest_title == "Taste the Salt"
        assert achievement.quest_type == "side"
        assert achievement.rewards == {'flavor': 2.0}

    def test_persisted(self, transaction, storage):
        transaction.complete("T1-1")

        reloaded = ProfileStore(storage).load()

        assert reloaded.completed_quests == ["T1-1"]
        assert reloaded.attribute("technique").total_hours == 5

    def test_result_dict(self, transaction):
        assert transaction.complete("T1-2").to_dict() == {
            'success': True,
            'message': "Quest completed!",
            'rewards': {'technique': 2.0, 'management': 1.0},
        }


class TestRejectedCompletion:
    """Tests for rejected completions, which must not change anything."""

    def test_unknown_quest(self, transaction, storage):
        transaction.complete("T1-1")
        before = storage.get(STORAGE_KEY_USER_PROFILE)

        result = transaction.complete("X9-9")

        assert not result.success
        assert result.message == "Quest not found"
        assert storage.get(STORAGE_KEY_USER_PROFILE) == before

    def test_duplicate_completion(self, transaction, store, storage):
        """Test that completing a quest twice fails without side effects."""
        transaction.complete("T1-1")
        before = storage.get(STORAGE_KEY_USER_PROFILE)

        result = transaction.complete("T1-1")

        assert not result.success
        assert result.message == "Quest already completed"
        assert storage.get(STORAGE_KEY_USER_PROFILE) == before
        assert store.load().attribute("technique").total_hours == 5
        assert store.load().milestones.quests_completed == 1

    def test_locked_quest(self, transaction, store, storage):
        """Test that a locked quest fails without side effects."""
        store.load()
        before = storage.get(STORAGE_KEY_USER_PROFILE)

        result = transaction.complete("C1-1")

        assert not result.success
        assert result.message == "Quest not unlocked yet"
        assert storage.get(STORAGE_KEY_USER_PROFILE) == before
        assert store.load().completed_quests == []


class TestLevelAndRankChanges:
    """Tests for level-up and rank-up outcomes."""

    def test_level_up(self, store):
        catalog = QuestCatalog([
            big_quest("ALL-5", technique=5, ingredients=5, flavor=5, management=5),
        ])
        profile = store.load().model_copy(deep=True)
        profile.unlock("ALL-5")
        store.replace(profile)

        result = QuestCompletionTransaction(store, catalog).complete("ALL-5")
        profile = store.load()

        assert result.level_up
        assert result.new_level == 2
        assert result.message == "Quest completed! You reached Home Cook Level 2!"
        assert profile.milestones.level_ups == 1
        assert isinstance(profile.recent_achievements[0], LevelUpAchievement)
        assert isinstance(profile.recent_achievements[1], QuestCompleteAchievement)

    def test_rank_up(self, store):
        """Test that clearing the rank advances the user and records it."""
        catalog = QuestCatalog([
            big_quest("BIG", technique=60, ingredients=55, flavor=55, management=55),
        ])
        profile = store.load().model_copy(deep=True)
        profile.unlock("BIG")
        store.replace(profile)

        result = QuestCompletionTransaction(store, catalog).complete("BIG")
        profile = store.load()

        assert result.rank_up
        assert result.new_rank == "Culinary Student"
        assert result.message == "Quest completed! You advanced to Culinary Student!"
        assert result.rewards == {
            'technique': 55.0, 'ingredients': 55.0, 'flavor': 55.0, 'management': 55.0,
        }
        assert profile.current_rank.title == "Culinary Student"
        assert profile.milestones.rank_advances == 1
        assert profile.milestones.hours_accumulated == 220
        achievement = profile.recent_achievements[0]
        assert isinstance(achievement, RankUpAchievement)
        assert achievement.previous_rank == "Home Cook"
        assert achievement.new_rank == "Culinary Student"

    def test_rewards_report_hours_actually_credited(self, store):
        """Test that waiting attributes credit nothing and report zero."""
        catalog = QuestCatalog([
            big_quest("FIRST", technique=55),
            big_quest("SECOND", technique=5, flavor=3),
        ])
        profile = store.load().model_copy(deep=True)
        profile.unlock("FIRST")
        profile.unlock("SECOND")
        store.replace(profile)
        transaction = QuestCompletionTransaction(store, catalog)

        transaction.complete("FIRST")
        result = transaction.complete("SECOND")

        assert result.success
        assert result.rewards == {'technique': 0.0, 'flavor': 3.0}
        assert store.load().attribute("technique").total_hours == 55
        assert store.load().milestones.hours_accumulated == 58

    def test_zero_rewards_skipped(self, store):
        catalog = QuestCatalog([big_quest("Z", technique=0, flavor=1)])
        profile = store.load().model_copy(deep=True)
        profile.unlock("Z")
        store.replace(profile)

        result = QuestCompletionTransaction(store, catalog).complete("Z")

        assert result.rewards == {'flavor': 1.0}


class TestFailures:
    """Tests for errors raised during completion."""

    def test_unknown_rank_in_profile_returns_failure(self, store, catalog):
        profile = store.load().model_copy(deep=True)
        profile.current_rank.title = "Grand Poobah"
        store.replace(profile)

        result = QuestCompletionTransaction(store, catalog).complete("T1-1")

        assert not result.success
        assert "Grand Poobah" in result.message
        assert store.load().completed_quests == []

    def test_storage_error_propagates(self, catalog):
        storage = FailOnceStorage()
        store = ProfileStore(storage)
        store.load()
        storage.armed = True

        with pytest.raises(StorageError):
            QuestCompletionTransaction(store, catalog).complete("T1-1")

        assert store.load().completed_quests == []
        assert json.loads(storage.get(STORAGE_KEY_USER_PROFILE))["completedQuests"] == []

    def test_retry_after_storage_error(self, catalog):
        """Test that a completion lost to a storage error can be retried."""
        storage = FailOnceStorage()
        store = ProfileStore(storage)
        store.load()
        storage.armed = True
        transaction = QuestCompletionTransaction(store, catalog)

        with pytest.raises(StorageError):
            transaction.complete("T1-1")
        result = transaction.complete("T1-1")

        assert result.success
        assert result.rewards == {"technique": 5.0}
        persisted = json.loads(storage.get(STORAGE_KEY_USER_PROFILE))
        assert persisted["completedQuests"] == ["T1-1"]
        assert persisted == json.loads(store.load().model_dump_json(by_alias=True))

    def test_failed_rank_up_persist_keeps_store_consistent(self):
        """Test that held and stored profiles agree when the rank-up write fails."""
        storage = FailOnceStorage()
        store = ProfileStore(storage)
        profile = store.load().model_copy(deep=True)
        profile.unlock("BIG")
        store.replace(profile)
        catalog = QuestCatalog([
            big_quest("BIG", technique=55, ingredients=55, flavor=55, management=55),
        ])
        storage.armed = True
        storage.skip = 1

        with pytest.raises(StorageError):
            QuestCompletionTransaction(store, catalog).complete("BIG")

        persisted = json.loads(storage.get(STORAGE_KEY_USER_PROFILE))
        held = store.load()
        assert persisted == json.loads(held.model_dump_json(by_alias=True))
        assert held.has_completed("BIG")
        assert held.milestones.rank_advances == 0
