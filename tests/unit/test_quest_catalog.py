"""
Unit tests for the quest catalog.

Tests cover:
- Construction and lookup
- Filters: by type, by level, prerequisites
- Available, completed and recommended quests
- Difficulty and time formatting
"""

import json
from pathlib import Path

import pytest

from diced.models.quest_record import QuestRecord
from diced.progression.engine import ProgressionEngine
from diced.quests.catalog import (
    QuestCatalog,
    format_time_required,
    quest_difficulty,
    quest_hours,
)
from diced.utils.exceptions import QuestNotFoundError, RankNotFoundError


@pytest.fixture
def catalog():
    path = Path(__file__).parent.parent / "fixtures" / "sample_quests.json"
    return QuestCatalog.from_dicts(json.loads(path.read_text()))


@pytest.fixture
def profile():
    return ProgressionEngine().create_default_profile()


def quest(quest_id, quest_type="training", level=1, rank_title="Home Cook", **extra):
    return QuestRecord.from_dict({
        'id': quest_id,
        'type': quest_type,
        'rank': {'title': rank_title, 'level': level},
        **extra,
    })


class TestCatalogBasics:
    """Tests for construction and lookup."""

    def test_loads_fixture(self, catalog):
        assert len(catalog) == 10
        assert "T1-1" in catalog

    def test_find_by_id(self, catalog):
        assert catalog.find_by_id("T1-1").title == "Knife Skills: The Basic Dice"
        assert catalog.find_by_id("X9-9") is None

    def test_get_raises_for_unknown_id(self, catalog):
        assert catalog.get("T1-2").id == "T1-2"
        with pytest.raises(QuestNotFoundError) as exc_info:
            catalog.get("X9-9")
        assert exc_info.value.quest_id == "X9-9"

    def test_iteration_keeps_order(self, catalog):
        assert [q.id for q in catalog][:3] == ["T1-1", "T1-2", "T1-4"]

    def test_reject_duplicate_ids(self):
        with pytest.raises(ValueError, match="Duplicate"):
            QuestCatalog([quest("A"), quest("A")])

    def test_empty_catalog(self, profile):
        catalog = QuestCatalog()
        assert len(catalog) == 0
        assert catalog.available_quests(profile) == []

    def test_to_dicts(self, catalog):
        assert catalog.to_dicts()[0]['attributeRewards'] == {'technique': 5.0}


class TestFilters:
    """Tests for catalog filters."""

    def test_by_type(self, catalog):
        assert [q.id for q in catalog.by_type("Main")] == ["M1-1", "M1-2"]

    def test_by_level(self, catalog):
        assert [q.id for q in catalog.by_level("Home Cook", 2)] == ["T1-4", "M1-2"]

    def test_prerequisites_met(self, catalog):
        assert catalog.prerequisites_met("T1-1", [])
        assert not catalog.prerequisites_met("T1-4", [])
        assert catalog.prerequisites_met("T1-4", ["T1-1"])

    def test_unknown_quest_has_no_prerequisites(self, catalog):
        assert catalog.prerequisites_met("X9-9", [])


class TestProfileQueries:
    """Tests for queries against a user profile."""

    def test_available_quests(self, catalog, profile):
        """Test that only unlocked, uncompleted catalog quests are offered."""
        available = [q.id for q in catalog.available_quests(profile)]

        assert available == ["T1-1", "T1-2", "S1-1", "S1-5", "M1-1", "E1-1"]

    def test_available_requires_prerequisites(self, catalog, profile):
        profile.unlock("T1-4")
        assert "T1-4" not in [q.id for q in catalog.available_quests(profile)]

        profile.mark_completed("T1-1")
        available = [q.id for q in catalog.available_quests(profile)]
        assert "T1-4" in available
        assert "T1-1" not in available

    def test_completed_quests(self, catalog, profile):
        profile.mark_completed("T1-2")
        profile.mark_completed("GONE-1")
        profile.mark_completed("T1-1")

        assert [q.id for q in catalog.completed_quests(profile)] == ["T1-2", "T1-1"]

    def test_recommended_orders_by_level_then_type(self, catalog, profile):
        profile.unlock("T1-4")
        profile.unlock("M1-2")

        recommended = [q.id for q in catalog.recommended_quests(profile, count=10)]

        assert recommended == ["T1-1", "T1-2", "S1-1", "S1-5", "M1-1", "E1-1", "T1-4", "M1-2"]

    def test_recommended_respects_count(self, catalog, profile):
        assert len(catalog.recommended_quests(profile)) == 5
        assert catalog.recommended_quests(profile, count=0) == []

    def test_recommended_excludes_levels_too_far_ahead(self, catalog, profile):
        profile.unlock("C1-1")
        assert "C1-1" not in [q.id for q in catalog.recommended_quests(profile, count=20)]

    def test_next_challenge(self, catalog, profile):
        assert catalog.next_challenge_quest(profile).id == "C1-1"

        profile.mark_completed("C1-1")
        assert catalog.next_challenge_quest(profile) is None


class TestHelpers:
    """Tests for module-level helpers."""

    def test_quest_hours(self, catalog):
        assert quest_hours(catalog.find_by_id("M1-2")) == 9

    @pytest.mark.parametrize("quest_id,expected", [
        ("T1-1", "moderate"),
        ("T1-4", "challenging"),
        ("T2-1", "challenging"),
    ])
    def test_quest_difficulty_for_new_profile(self, catalog, profile, quest_id, expected):
        assert quest_difficulty(catalog.find_by_id(quest_id), profile) == expected

    def test_quest_difficulty_after_progress(self, catalog, profile):
        profile.current_rank.level = 2
        assert quest_difficulty(catalog.find_by_id("T1-1"), profile) == "easy"
        assert quest_difficulty(catalog.find_by_id("T1-4"), profile) == "moderate"

        profile.current_rank.title = "Culinary Student"
        profile.current_rank.level = 1
        assert quest_difficulty(catalog.find_by_id("T1-4"), profile) == "easy"
        assert quest_difficulty(catalog.find_by_id("T2-1"), profile) == "moderate"

    def test_quest_difficulty_unknown_rank(self, profile):
        with pytest.raises(RankNotFoundError):
            quest_difficulty(quest("Z1", rank_title="Grand Poobah"), profile)

    @pytest.mark.parametrize("minutes,expected", [
        (None, "Unknown"),
        (0, "Unknown"),
        (45, "45 min"),
        (60, "1 hr"),
        (90, "1 hr 30 min"),
        (180, "3 hr"),
    ])
    def test_format_time_required(self, minutes, expected):
        assert format_time_required(minutes) == expected
