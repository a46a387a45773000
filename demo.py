#!/usr/bin/env python3
"""
DICED Progression Demo

Walks a fresh profile through the progression system:
1. Create the default profile
2. Load a quest catalog
3. Complete a quest and see the level change
4. Try a duplicate and a locked quest
5. Max out an attribute and watch it wait for the user's rank
6. Clear the rank and advance

Usage:
    python demo.py [quests_json]
    python demo.py  # Uses the sample quest file
"""

import json
import sys
from pathlib import Path

from diced.progression.engine import ProgressionEngine
from diced.progression.stats import summarize_profile
from diced.quests.catalog import QuestCatalog, format_time_required
from diced.quests.completion import QuestCompletionTransaction
from diced.storage.key_value import InMemoryStorage
from diced.storage.profile_store import ProfileStore


def print_attributes(profile):
    for name, attribute in profile.attributes.items():
        waiting = " (waiting)" if attribute.waiting_for_user_rank_up else ""
        print(
            f"    -> {name.value:<12} {attribute.total_hours:>6.1f}h  "
            f"{attribute.current_rank} L{attribute.current_level}  "
            f"rank {attribute.rank_progress_percentage:.0f}%{waiting}"
        )


def print_rank(profile):
    rank = profile.current_rank
    print(f"    -> Rank: {rank.title} ({rank.color_tier}) Level {rank.level}, "
          f"{rank.progress_percentage:.1f}% to next rank")


def main(quests_path: str = None):
    """Run the demo walkthrough."""
    print("=" * 50)
    print("DICED Progression Demo")
    print("=" * 50)
    print()

    if quests_path is None:
        quests_path = Path(__file__).parent / "tests" / "fixtures" / "sample_quests.json"
        print(f"Using sample file: {quests_path.name}")
    else:
        quests_path = Path(quests_path)

    if not quests_path.exists():
        print(f"Error: File not found: {quests_path}")
        return 1

    # =========================================================================
    # Step 1: Default profile
    # =========================================================================
    print()
    print("[1] Creating profile...")

    engine = ProgressionEngine()
    store = ProfileStore(InMemoryStorage(), engine)
    profile = store.load()

    print_rank(profile)
    print(f"    -> Unlocked quests: {len(profile.unlocked_quests)}")

    # =========================================================================
    # Step 2: Quest catalog
    # =========================================================================
    print()
    print("[2] Loading quest catalog...")

    try:
        catalog = QuestCatalog.from_dicts(json.loads(quests_path.read_text()))
    except (ValueError, KeyError) as e:
        print(f"    Error loading quests: {e}")
        return 1

    print(f"    -> Loaded {len(catalog)} quests")
    for quest in catalog.recommended_quests(profile):
        print(f"    -> Recommended: {quest.id} {quest.title} "
              f"[{quest.type}, {format_time_required(quest.time_required)}]")

    transaction = QuestCompletionTransaction(store, catalog, engine)

    # =========================================================================
    # Step 3: Complete a quest
    # =========================================================================
    print()
    print("[3] Completing T1-1...")

    result = transaction.complete("T1-1")
    print(f"    -> {result.message}")
    print(f"    -> Rewards: {result.rewards}")
    print_rank(store.load())

    # =========================================================================
    # Step 4: Rejected completions
    # =========================================================================
    print()
    print("[4] Trying rejected completions...")

    for quest_id in ("T1-1", "C1-1", "X9-9"):
        result = transaction.complete(quest_id)
        print(f"    -> {quest_id}: {result.message}")

    # =========================================================================
    # Step 5: Max out one attribute
    # =========================================================================
    print()
    print("[5] Practicing technique to the rank cap...")

    update = store.update_attribute("technique", 100)
    print(f"    -> {update.status}")
    print_attributes(store.load())
    print_rank(store.load())

    # =========================================================================
    # Step 6: Clear the rank
    # =========================================================================
    print()
    print("[6] Practicing the remaining attributes...")

    for name in ("flavor", "ingredients", "management"):
        update = store.update_attribute(name, 55)
        print(f"    -> {update.status}")

    profile = store.load()
    print_attributes(profile)
    print_rank(profile)

    # =========================================================================
    # Summary
    # =========================================================================
    print()
    print("=" * 50)
    print(f"Complete! Now a {profile.current_rank.title}")
    print("=" * 50)

    print()
    print("Profile Stats (JSON):")
    print("-" * 30)
    print(json.dumps(summarize_profile(profile, engine.rank_table).to_dict(), indent=2))

    print()
    print("Recent achievements:")
    for achievement in store.recent_achievements(5):
        print(f"    -> {achievement.type} at {achievement.timestamp:%Y-%m-%d %H:%M}")

    return 0


if __name__ == "__main__":
    quests_file = sys.argv[1] if len(sys.argv) > 1 else None
    sys.exit(main(quests_file))
