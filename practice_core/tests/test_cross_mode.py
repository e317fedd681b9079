"""
Tests for the cross-mode comparator and learning-pattern inference.
"""

import datetime
import unittest

import numpy as np

from practice_core.common.config import AnalysisConfig, CrossModeConfig
from practice_core.recommendation.cross_mode import CrossModeComparator, normalized_entropy
from practice_core.recommendation.mode_analysis import ModePerformanceAnalyzer
from practice_core.recommendation.models import (
    ChallengePreference,
    ConsistencyLevel,
    DifficultyTier,
    LearningStyle,
    ModeSession,
    OverallProgress,
    PracticeMode,
)
from practice_core.tests.helpers import START, make_sessions


def sessions_for(layout, spacing=datetime.timedelta(days=1)):
    """Build sessions from ``{mode: (accuracy, count)}``."""
    sessions = []
    for mode, (accuracy, count) in layout.items():
        sessions.extend(make_sessions(mode, [accuracy] * count, spacing=spacing))
    return sessions


class CrossModeTestCase(unittest.TestCase):

    def setUp(self):
        self.analyzer = ModePerformanceAnalyzer(AnalysisConfig())
        self.comparator = CrossModeComparator(CrossModeConfig())

    def compare(self, layout):
        sessions = sessions_for(layout)
        analyses = self.analyzer.analyze_all(sessions)
        return self.comparator.compare(analyses), analyses, sessions


class TestCompare(CrossModeTestCase):

    def test_equal_accuracies_are_balanced(self):
        cross, _, _ = self.compare({mode: (0.8, 4) for mode in PracticeMode})
        self.assertEqual(cross.balance_score, 100.0)
        self.assertAlmostEqual(cross.diversity_score, 100.0)
        self.assertEqual(cross.overall_progress, OverallProgress.GOOD)
        self.assertIsNone(cross.recommended_focus_mode)

    def test_unequal_accuracies(self):
        cross, _, _ = self.compare({
            PracticeMode.NUMBER: (0.6, 4),
            PracticeMode.TIME: (0.9, 4),
            PracticeMode.DIRECTION: (0.6, 4),
            PracticeMode.LENGTH: (0.7, 4),
        })
        self.assertLess(cross.balance_score, 100.0)
        self.assertAlmostEqual(cross.balance_score, 70.0)
        self.assertEqual(cross.strongest_mode, PracticeMode.TIME)
        self.assertEqual(cross.weakest_mode, PracticeMode.NUMBER)
        self.assertEqual(cross.overall_progress, OverallProgress.AVERAGE)

    def test_ties_prefer_more_sessions(self):
        cross, _, _ = self.compare({
            PracticeMode.TIME: (0.9, 3),
            PracticeMode.LENGTH: (0.9, 5),
        })
        self.assertEqual(cross.strongest_mode, PracticeMode.LENGTH)

    def test_ties_fall_back_to_priority(self):
        cross, _, _ = self.compare({
            PracticeMode.LENGTH: (0.9, 4),
            PracticeMode.TIME: (0.9, 4),
        })
        self.assertEqual(cross.strongest_mode, PracticeMode.TIME)
        self.assertEqual(cross.weakest_mode, PracticeMode.NUMBER)

    def test_no_sessions(self):
        cross, _, _ = self.compare({})
        self.assertEqual(cross.diversity_score, 0.0)
        self.assertEqual(cross.balance_score, 100.0)
        self.assertEqual(cross.overall_progress, OverallProgress.NEEDS_IMPROVEMENT)
        self.assertIsNone(cross.recommended_focus_mode)
        self.assertNotIn("recommended_focus_mode", cross.to_dict())

    def test_overall_progress_ignores_unpracticed(self):
        cross, _, _ = self.compare({PracticeMode.NUMBER: (0.95, 6)})
        self.assertEqual(cross.overall_progress, OverallProgress.EXCELLENT)

    def test_rankings(self):
        cross, _, _ = self.compare({
            PracticeMode.NUMBER: (0.6, 4),
            PracticeMode.TIME: (0.8, 4),
        })
        self.assertEqual([r.mode for r in cross.mode_rankings][:2], [PracticeMode.TIME, PracticeMode.NUMBER])
        self.assertEqual(cross.mode_rankings[0].rank, 1)
        self.assertAlmostEqual(cross.mode_rankings[0].score, 88.0)
        self.assertEqual(cross.mode_rankings[-1].score, 0.0)

    def test_requires_analyses(self):
        with self.assertRaises(ValueError):
            self.comparator.compare({})


class TestFocusMode(CrossModeTestCase):

    def test_low_balance_targets_weakest(self):
        cross, _, _ = self.compare({
            PracticeMode.NUMBER: (0.95, 4),
            PracticeMode.TIME: (0.3, 4),
            PracticeMode.DIRECTION: (0.9, 4),
            PracticeMode.LENGTH: (0.9, 4),
        })
        self.assertEqual(cross.recommended_focus_mode, PracticeMode.TIME)

    def test_untried_mode(self):
        self.comparator = CrossModeComparator(CrossModeConfig(focus_balance_threshold=0))
        cross, _, _ = self.compare({
            PracticeMode.NUMBER: (0.8, 4),
            PracticeMode.TIME: (0.8, 4),
            PracticeMode.LENGTH: (0.8, 4),
        })
        self.assertEqual(cross.recommended_focus_mode, PracticeMode.DIRECTION)

    def test_under_practiced_mode(self):
        cross, _, _ = self.compare({
            PracticeMode.NUMBER: (0.8, 10),
            PracticeMode.TIME: (0.8, 10),
            PracticeMode.DIRECTION: (0.8, 10),
            PracticeMode.LENGTH: (0.8, 2),
        })
        self.assertEqual(cross.recommended_focus_mode, PracticeMode.LENGTH)

    def test_accuracy_gap(self):
        cross, _, _ = self.compare({
            PracticeMode.NUMBER: (0.9, 4),
            PracticeMode.TIME: (0.9, 4),
            PracticeMode.DIRECTION: (0.9, 4),
            PracticeMode.LENGTH: (0.6, 4),
        })
        self.assertGreaterEqual(cross.balance_score, 40)
        self.assertEqual(cross.recommended_focus_mode, PracticeMode.LENGTH)


class TestLearningPatterns(CrossModeTestCase):

    def patterns(self, layout, spacing=datetime.timedelta(days=1)):
        sessions = sessions_for(layout, spacing)
        analyses = self.analyzer.analyze_all(sessions)
        return self.comparator.identify_learning_patterns(analyses, sessions)

    def test_beginner(self):
        pattern = self.patterns({PracticeMode.TIME: (0.8, 2), PracticeMode.NUMBER: (0.8, 2)})
        self.assertEqual(pattern.learning_style, LearningStyle.BEGINNER)

    def test_focused(self):
        pattern = self.patterns({PracticeMode.LENGTH: (0.8, 6)})
        self.assertEqual(pattern.learning_style, LearningStyle.FOCUSED)
        self.assertEqual(pattern.preferred_modes, [PracticeMode.LENGTH])

    def test_balanced(self):
        pattern = self.patterns({mode: (0.8, 3) for mode in PracticeMode})
        self.assertEqual(pattern.learning_style, LearningStyle.BALANCED)

    def test_explorer(self):
        pattern = self.patterns({PracticeMode.TIME: (0.8, 6), PracticeMode.NUMBER: (0.8, 3)})
        self.assertEqual(pattern.learning_style, LearningStyle.EXPLORER)
        self.assertEqual(pattern.preferred_modes, [PracticeMode.TIME, PracticeMode.NUMBER])

    def test_consistency_levels(self):
        self.assertEqual(self.patterns({PracticeMode.TIME: (0.8, 7)}).consistency_level, ConsistencyLevel.HIGH)
        self.assertEqual(self.patterns({PracticeMode.TIME: (0.8, 3)}).consistency_level, ConsistencyLevel.MEDIUM)
        same_day = self.patterns({PracticeMode.TIME: (0.8, 7)}, spacing=datetime.timedelta(minutes=5))
        self.assertEqual(same_day.consistency_level, ConsistencyLevel.LOW)

    def _rated(self, pairs):
        return [
            ModeSession(PracticeMode.NUMBER, START + datetime.timedelta(days=i), round(acc * 10), 10,
                        difficulty=tier)
            for i, (tier, acc) in enumerate(pairs)
        ]

    def test_challenge_from_correlation(self):
        thriving = self._rated([
            (DifficultyTier.BEGINNER, 0.5), (DifficultyTier.INTERMEDIATE, 0.7), (DifficultyTier.ADVANCED, 0.9),
        ])
        analyses = self.analyzer.analyze_all(thriving)
        pattern = self.comparator.identify_learning_patterns(analyses, thriving)
        self.assertEqual(pattern.challenge_preference, ChallengePreference.HIGH_CHALLENGE)

        struggling = self._rated([
            (DifficultyTier.BEGINNER, 0.9), (DifficultyTier.INTERMEDIATE, 0.7), (DifficultyTier.ADVANCED, 0.5),
        ])
        analyses = self.analyzer.analyze_all(struggling)
        pattern = self.comparator.identify_learning_patterns(analyses, struggling)
        self.assertEqual(pattern.challenge_preference, ChallengePreference.COMFORT_ZONE)

    def test_challenge_fallback(self):
        self.assertEqual(
            self.patterns({PracticeMode.TIME: (1.0, 5)}).challenge_preference,
            ChallengePreference.COMFORT_ZONE
        )
        self.assertEqual(
            self.patterns({PracticeMode.TIME: (0.8, 5)}).challenge_preference,
            ChallengePreference.MODERATE_CHALLENGE
        )
        self.assertEqual(
            self.patterns({PracticeMode.TIME: (0.5, 5)}).challenge_preference,
            ChallengePreference.HIGH_CHALLENGE
        )


class TestModeSwitchSuggestions(CrossModeTestCase):

    def test_focused_learner_is_pointed_elsewhere(self):
        sessions = sessions_for({PracticeMode.TIME: (0.8, 6)})
        analyses = self.analyzer.analyze_all(sessions)
        cross = self.comparator.compare(analyses)
        pattern = self.comparator.identify_learning_patterns(analyses, sessions)

        suggestions = self.comparator.mode_switch_suggestions(cross, pattern)
        self.assertTrue(any("number dictation" in s for s in suggestions))


class TestNormalizedEntropy(unittest.TestCase):

    def test_bounds(self):
        self.assertEqual(normalized_entropy(np.array([0.0, 0.0, 0.0, 0.0])), 0.0)
        self.assertEqual(normalized_entropy(np.array([5.0, 0.0, 0.0, 0.0])), 0.0)
        self.assertAlmostEqual(normalized_entropy(np.array([3.0, 3.0, 3.0, 3.0])), 100.0)
