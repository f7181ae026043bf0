"""Tests for the achievement catalog and unlock bookkeeping."""

import pytest

from puff_tracker.core.achievements import (
    AchievementCategory, AchievementDefinition, AchievementManager, AchievementRegistry,
    AchievementSnapshot, ConditionalChecker, ThresholdChecker
)
from puff_tracker.core.models import UnlockedAchievement, ValidationError


def _snapshot(day_count=0, daily_goal=10, streak=0, cost_saved=0.0):
    return AchievementSnapshot(day_count=day_count, daily_goal=daily_goal,
                               streak=streak, cost_saved=cost_saved)


class TestCatalog:

    def test_declared_order(self):
        ids = [definition.achievement_id for definition in AchievementRegistry()]
        assert ids == ["first_log", "goal_met", "streak_3", "streak_7", "streak_30",
                       "saved_10", "saved_50"]

    def test_duplicate_id_rejected(self):
        registry = AchievementRegistry()
        with pytest.raises(ValidationError):
            registry.register_achievement(AchievementDefinition(
                achievement_id="first_log", title="Again", description="", icon="",
                category=AchievementCategory.MILESTONES,
                predicate=ConditionalChecker(lambda s: True)
            ))

    @pytest.mark.parametrize("day_count,expected", [(0, False), (1, True), (10, True), (11, False)])
    def test_goal_met_predicate(self, day_count, expected):
        goal_met = AchievementRegistry().get_achievement("goal_met")
        assert goal_met.predicate(_snapshot(day_count=day_count)) is expected

    def test_savings_predicate(self):
        saver = AchievementRegistry().get_achievement("saved_10")
        assert not saver.predicate(_snapshot(cost_saved=9.5))
        assert saver.predicate(_snapshot(cost_saved=10.0))

    def test_threshold_progress(self):
        checker = ThresholdChecker(7, lambda s: s.streak)
        assert checker.get_progress(_snapshot(streak=3)) == (3, 7)
        assert checker.get_progress(_snapshot(streak=12)) == (7, 7)


class TestManager:

    def test_reports_all_new_unlocks(self):
        manager = AchievementManager()
        unlocked = manager.evaluate(_snapshot(day_count=5, streak=3), unlocked_at="t1")
        assert [r.achievement_id for r in unlocked] == ["first_log", "goal_met", "streak_3"]
        assert all(r.unlocked_at == "t1" for r in unlocked)

    def test_never_unlocks_twice(self):
        manager = AchievementManager()
        manager.evaluate(_snapshot(day_count=1))
        assert manager.evaluate(_snapshot(day_count=2)) == []
        assert len(manager.unlocked_records()) == 2

    def test_unlock_is_monotonic(self):
        manager = AchievementManager()
        manager.evaluate(_snapshot(day_count=1, streak=7))
        manager.evaluate(_snapshot(day_count=20, streak=0))
        assert manager.is_unlocked("streak_7")

    def test_load_unlocked_skips_duplicates(self):
        manager = AchievementManager()
        manager.load_unlocked([
            UnlockedAchievement("first_log", "First Step", "", "", unlocked_at="a"),
            UnlockedAchievement("first_log", "First Step", "", "", unlocked_at="b"),
        ])
        assert [r.unlocked_at for r in manager.unlocked_records()] == ["a"]

    def test_summary_and_progress(self):
        manager = AchievementManager()
        manager.evaluate(_snapshot(day_count=1))

        summary = {entry["id"]: entry for entry in manager.get_achievements_summary()}
        assert summary["first_log"]["unlocked"] is True
        assert summary["streak_30"]["unlocked"] is False
        assert summary["streak_30"]["unlockedAt"] is None

        assert manager.get_progress("first_log", _snapshot()) == (1, 1)
        assert manager.get_progress("streak_30", _snapshot(streak=12)) == (12, 30)
        assert manager.get_progress("unknown", _snapshot()) is None
