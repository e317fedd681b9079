"""
Tests for the difficulty recommender.
"""

import unittest

from practice_core.common.config import DifficultyConfig
from practice_core.recommendation.difficulty import MODE_PRESETS, DifficultyRecommender
from practice_core.recommendation.models import (
    DifficultyTier,
    ModePerformanceAnalysis,
    PracticeMode,
    Trend,
)


def analysis(
    accuracy,
    sessions,
    trend=Trend.STABLE,
    rate=None,
    confidence=50.0,
    mode=PracticeMode.NUMBER
):
    return ModePerformanceAnalysis(
        mode=mode,
        accuracy=accuracy,
        trend=trend,
        session_count=sessions,
        confidence=confidence,
        improvement_rate_per_day=rate
    )


class TestTiers(unittest.TestCase):

    def setUp(self):
        self.recommender = DifficultyRecommender(DifficultyConfig())

    def test_never_advanced_below_session_threshold(self):
        high_tiers = (DifficultyTier.ADVANCED, DifficultyTier.EXPERT)
        for sessions in range(0, 5):
            for accuracy in (0.5, 0.7, 0.9, 0.99, 1.0):
                for trend in Trend:
                    rec = self.recommender.recommend(analysis(accuracy, sessions, trend, rate=0.05))
                    self.assertNotIn(rec.current_level, high_tiers)
                    self.assertNotIn(rec.recommended_difficulty, high_tiers)

    def test_below_min_sessions_is_beginner(self):
        rec = self.recommender.recommend(analysis(0.99, 4, Trend.IMPROVING))
        self.assertEqual(rec.current_level, DifficultyTier.BEGINNER)

    def test_expert_needs_ten_sessions(self):
        rec = self.recommender.recommend(analysis(0.97, 6))
        self.assertEqual(rec.current_level, DifficultyTier.ADVANCED)
        self.assertEqual(rec.recommended_difficulty, DifficultyTier.ADVANCED)

        rec = self.recommender.recommend(analysis(0.97, 12))
        self.assertEqual(rec.current_level, DifficultyTier.EXPERT)
        self.assertEqual(rec.recommended_difficulty, DifficultyTier.EXPERT)

    def test_accuracy_thresholds(self):
        self.assertEqual(self.recommender.current_tier(analysis(0.59, 8)), DifficultyTier.BEGINNER)
        self.assertEqual(self.recommender.current_tier(analysis(0.6, 8)), DifficultyTier.INTERMEDIATE)
        self.assertEqual(self.recommender.current_tier(analysis(0.8, 8)), DifficultyTier.ADVANCED)

    def test_improving_lifts_one_tier(self):
        self.assertEqual(
            self.recommender.current_tier(analysis(0.7, 8, Trend.IMPROVING)),
            DifficultyTier.ADVANCED
        )

    def test_above_target_band_steps_up(self):
        rec = self.recommender.recommend(analysis(0.9, 12))
        self.assertEqual(rec.current_level, DifficultyTier.ADVANCED)
        self.assertEqual(rec.recommended_difficulty, DifficultyTier.EXPERT)
        self.assertIn("above the target range", rec.reason)

    def test_within_band_holds(self):
        rec = self.recommender.recommend(analysis(0.7, 8))
        self.assertEqual(rec.recommended_difficulty, rec.current_level)

    def test_struggling_and_declining_steps_down(self):
        recommender = DifficultyRecommender(DifficultyConfig(struggle_accuracy=0.7))
        rec = recommender.recommend(analysis(0.65, 8, Trend.DECLINING))
        self.assertEqual(rec.current_level, DifficultyTier.INTERMEDIATE)
        self.assertEqual(rec.recommended_difficulty, DifficultyTier.BEGINNER)


class TestSettings(unittest.TestCase):

    def setUp(self):
        self.recommender = DifficultyRecommender(DifficultyConfig())

    def test_every_mode_has_every_tier(self):
        for mode in PracticeMode:
            self.assertEqual(set(MODE_PRESETS[mode]), set(DifficultyTier))

    def test_newcomer_gets_first_preset(self):
        rec = self.recommender.recommend(analysis(0.0, 0, mode=PracticeMode.TIME))
        self.assertEqual(rec.recommended_setting, "year-only")

    def test_middle_preset(self):
        rec = self.recommender.recommend(analysis(0.7, 8))
        self.assertEqual(rec.recommended_setting, "0-69")


class TestConfidence(unittest.TestCase):

    def setUp(self):
        self.recommender = DifficultyRecommender(DifficultyConfig())

    def test_trend_adjustment(self):
        self.assertEqual(self.recommender.recommend(analysis(0.7, 8, confidence=50)).confidence, 50)
        self.assertEqual(
            self.recommender.recommend(analysis(0.7, 8, Trend.IMPROVING, confidence=50)).confidence, 60
        )
        self.assertEqual(
            self.recommender.recommend(analysis(0.7, 8, Trend.DECLINING, confidence=50)).confidence, 40
        )

    def test_clipped(self):
        rec = self.recommender.recommend(analysis(0.7, 8, Trend.IMPROVING, confidence=95))
        self.assertEqual(rec.confidence, 100)


class TestProjection(unittest.TestCase):

    def setUp(self):
        self.recommender = DifficultyRecommender(DifficultyConfig())

    def test_projection_when_improving(self):
        rec = self.recommender.recommend(analysis(0.7, 8, Trend.IMPROVING, rate=0.02))
        self.assertEqual(rec.current_level, DifficultyTier.ADVANCED)
        self.assertEqual(rec.estimated_days_to_mastery, 13)
        self.assertEqual(rec.next_milestone, "Reach 95% accuracy to move up to expert")

    def test_days_are_clamped(self):
        slow = self.recommender.recommend(analysis(0.7, 8, Trend.IMPROVING, rate=0.0001))
        self.assertEqual(slow.estimated_days_to_mastery, 365)

        there = self.recommender.recommend(analysis(0.97, 8, Trend.IMPROVING, rate=0.05))
        self.assertEqual(there.estimated_days_to_mastery, 1)

    def test_no_projection(self):
        cases = [
            analysis(0.7, 8, Trend.STABLE, rate=0.02),
            analysis(0.7, 8, Trend.IMPROVING, rate=None),
            analysis(0.7, 8, Trend.IMPROVING, rate=-0.01),
            analysis(0.7, 4, Trend.IMPROVING, rate=0.02),
            analysis(0.97, 12, Trend.IMPROVING, rate=0.02),
        ]
        for case in cases:
            rec = self.recommender.recommend(case)
            self.assertIsNone(rec.next_milestone)
            self.assertIsNone(rec.estimated_days_to_mastery)
            data = rec.to_dict()
            self.assertNotIn("next_milestone", data)
            self.assertNotIn("estimated_days_to_mastery", data)


class TestRecommendAll(unittest.TestCase):

    def test_priority_order(self):
        recommender = DifficultyRecommender(DifficultyConfig())
        analyses = [analysis(0.5, 1, mode=mode) for mode in reversed(list(PracticeMode))]
        recs = recommender.recommend_all(analyses)
        self.assertEqual([r.mode for r in recs], list(PracticeMode))
