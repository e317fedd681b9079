"""
Practice-Habit Analyzer

Looks at when and how long the learner practices over a trailing window,
scores consistency and effectiveness, and finds the time of day, weekday
and session length that go with the best accuracy.
"""

import math
import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from practice_core.common.config import PracticeConfig, get_config
from practice_core.common.logger import app_logger
from practice_core.recommendation.models import (
    EffectivenessSummary,
    ModeSession,
    PracticeAnalysis,
    TimeOfDay,
    Trend,
    to_naive_utc,
)

# Module logger
logger = app_logger.getChild("recommendation.practice")

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Session length bands in minutes: (label, lower bound inclusive, upper bound exclusive)
DURATION_BANDS: Tuple[Tuple[str, float, float], ...] = (
    ("0-5", 0.0, 5.0),
    ("5-10", 5.0, 10.0),
    ("10-20", 10.0, 20.0),
    ("20+", 20.0, math.inf),
)

TIME_OF_DAY_ADVICE = {
    TimeOfDay.MORNING: "Practice in the morning, when you are sharpest; good for challenging drills",
    TimeOfDay.AFTERNOON: "Practice in the afternoon, when your focus is steady; good for regular drills",
    TimeOfDay.EVENING: "Practice in the evening, when you are relaxed; good for review",
    TimeOfDay.NIGHT: "Practice at night, when it is quiet; good for focused sessions",
}

# Effectiveness summary cutoffs
IMPROVING_EFFECTIVENESS = 70.0
STABLE_EFFECTIVENESS = 50.0
WEAK_EFFECTIVENESS = 60.0
STRONG_ACCURACY = 0.8
WEAK_ACCURACY = 0.6
STRONG_CONSISTENCY = 70.0
WEAK_CONSISTENCY = 50.0

TREND_ADVICE = {
    Trend.IMPROVING: (
        "Keep up your current momentum",
        "You are ready to try a harder challenge",
    ),
    Trend.STABLE: (
        "Add some harder questions to break through the plateau",
        "Keep your current rhythm and improve steadily",
    ),
    Trend.DECLINING: (
        "Review the basics to consolidate what you have learned",
        "Lower the difficulty for a while to rebuild confidence",
    ),
}


def duration_band(minutes: float) -> str:
    """Label of the duration band a session length falls into."""
    for label, low, high in DURATION_BANDS:
        if low <= minutes < high:
            return label
    return DURATION_BANDS[-1][0]


def sessions_to_frame(sessions: Iterable[ModeSession]) -> pd.DataFrame:
    """
    Convert sessions to a DataFrame ordered by timestamp.

    Columns: timestamp, mode, correct, total, minutes, accuracy.
    """
    rows = [
        {
            "timestamp": s.timestamp,
            "mode": s.mode.value,
            "correct": s.correct,
            "total": s.total,
            "minutes": s.duration_minutes,
            "accuracy": s.accuracy,
        }
        for s in sessions
    ]
    columns = ["timestamp", "mode", "correct", "total", "minutes", "accuracy"]
    df = pd.DataFrame(rows, columns=columns)
    if df.empty:
        return df
    return df.sort_values("timestamp", kind="stable").reset_index(drop=True)


class PracticeHabitAnalyzer:
    """Practice-habit analysis over a trailing window of days."""

    def __init__(self, config: Optional[PracticeConfig] = None):
        """
        Initialize the analyzer.

        Args:
            config: Practice analysis configuration
        """
        self.config = config or get_config().practice

    def _window(self, df: pd.DataFrame, now: datetime.datetime) -> pd.DataFrame:
        start = now - datetime.timedelta(days=self.config.window_days)
        mask = [(start < ts <= now) for ts in df["timestamp"]]
        return df[mask].reset_index(drop=True)

    def consistency_score(self, df: pd.DataFrame) -> Tuple[float, int]:
        """
        Score (0-100) how regularly the learner practices.

        70% coverage of the window by active days, 30% regularity of the gaps
        between them (1 minus their coefficient of variation).

        Returns:
            Score and number of active days
        """
        if df.empty:
            return 0.0, 0

        days = sorted({ts.date() for ts in df["timestamp"]})
        active_days = len(days)
        coverage = min(1.0, active_days / self.config.window_days)

        regularity = 0.0
        if active_days >= 2:
            gaps = np.array([(b - a).days for a, b in zip(days, days[1:])], dtype=float)
            mean_gap = gaps.mean()
            if mean_gap > 0:
                regularity = max(0.0, 1.0 - float(gaps.std()) / mean_gap)

        score = 100.0 * (0.7 * coverage + 0.3 * regularity)
        return round(min(100.0, score), 2), active_days

    def effectiveness_score(self, df: pd.DataFrame) -> float:
        """
        Score (0-100) whether invested time pays off in accuracy.

        ``50 + 50 * r`` where r correlates cumulative practice minutes with
        session accuracy. Neutral (50) for short histories or flat series,
        0 when there is nothing to measure.
        """
        if df.empty:
            return 0.0
        if len(df) < self.config.min_effectiveness_sessions:
            return 50.0

        cumulative = df["minutes"].cumsum().to_numpy(dtype=float)
        accuracy = df["accuracy"].to_numpy(dtype=float)
        if accuracy.std() == 0 or cumulative.std() == 0:
            return 50.0

        r = float(np.corrcoef(cumulative, accuracy)[0, 1])
        return round(float(np.clip(50.0 + 50.0 * r, 0.0, 100.0)), 2)

    def best_bucket(self, df: pd.DataFrame, keys: pd.Series, order: Sequence[str]) -> Optional[str]:
        """
        Bucket with the highest pooled accuracy.

        Buckets need at least ``min_bucket_sessions`` sessions; ties go to the
        bucket with more sessions, then to the earlier bucket in ``order``.
        """
        if df.empty:
            return None

        grouped = df.assign(bucket=keys.values).groupby("bucket").agg(
            sessions=("accuracy", "size"),
            correct=("correct", "sum"),
            total=("total", "sum"),
        )
        grouped = grouped[grouped["sessions"] >= self.config.min_bucket_sessions]
        if grouped.empty:
            return None

        candidates: List[Tuple[float, int, int, str]] = []
        for bucket, row in grouped.iterrows():
            accuracy = row["correct"] / row["total"] if row["total"] > 0 else 0.0
            position = order.index(bucket) if bucket in order else len(order)
            candidates.append((-accuracy, -int(row["sessions"]), position, bucket))

        return min(candidates)[3]

    @staticmethod
    def effectiveness_summary(df: pd.DataFrame, consistency: float, effectiveness: float) -> EffectivenessSummary:
        """
        Overall trend, strength and improvement areas, and matching advice.

        The trend follows the effectiveness score; the areas compare pooled
        accuracy, consistency and effectiveness against fixed cutoffs.
        """
        answered = float(df["total"].sum())
        accuracy = float(df["correct"].sum()) / answered if answered > 0 else 0.0

        if effectiveness >= IMPROVING_EFFECTIVENESS:
            trend = Trend.IMPROVING
        elif effectiveness >= STABLE_EFFECTIVENESS:
            trend = Trend.STABLE
        else:
            trend = Trend.DECLINING

        strengths = []
        if accuracy > STRONG_ACCURACY:
            strengths.append("answer accuracy")
        if consistency >= STRONG_CONSISTENCY:
            strengths.append("practice consistency")

        improvements = []
        if accuracy < WEAK_ACCURACY:
            improvements.append("answer accuracy")
        if consistency < WEAK_CONSISTENCY:
            improvements.append("practice regularity")
        if effectiveness < WEAK_EFFECTIVENESS:
            improvements.append("practice effectiveness")

        return EffectivenessSummary(
            overall_trend=trend,
            strength_areas=strengths,
            improvement_areas=improvements,
            recommendations=list(TREND_ADVICE[trend])
        )

    def _recommended_sessions_per_week(self, consistency: float, weekly_frequency: float) -> int:
        if consistency >= 80:
            return max(3, min(7, round(weekly_frequency)))
        elif consistency >= 60:
            return 5
        elif consistency >= 40:
            return 4
        else:
            return 3

    @staticmethod
    def _frequency_text(consistency: float, weekly_frequency: float) -> str:
        if consistency >= 80:
            return "Keep your current practice frequency"
        elif consistency >= 60:
            return "Practice 4-5 times a week to keep your momentum"
        elif consistency >= 40:
            return "Practice 3-4 times a week to build a habit"
        elif weekly_frequency < 2:
            return "Practice at least 2-3 times a week to start a habit"
        else:
            return "Keep a regular rhythm of 2-3 sessions a week"

    @staticmethod
    def _duration_text(effectiveness: float, daily_minutes: float, band: Optional[str]) -> str:
        if band is not None:
            return f"Sessions of {band} minutes give your best results"
        if effectiveness >= 80:
            if daily_minutes < 10:
                return "Try extending sessions to 15-20 minutes"
            return "Keep your current session length"
        elif effectiveness >= 60:
            return "Aim for 10-15 minute sessions and stay focused"
        elif effectiveness >= 40:
            return "Aim for 5-10 minute sessions; quality over quantity"
        else:
            return "Start with 5 minute sessions and build up gradually"

    @staticmethod
    def _time_text(best_time: Optional[TimeOfDay]) -> str:
        if best_time is None:
            return "Try practicing at different times of day to find what suits you"
        return TIME_OF_DAY_ADVICE[best_time]

    def analyze(
        self,
        sessions: Iterable[ModeSession],
        now: Optional[datetime.datetime] = None
    ) -> PracticeAnalysis:
        """
        Analyze practice habits.

        Args:
            sessions: Sessions across all modes
            now: End of the trailing window (defaults to the latest session)

        Returns:
            Practice analysis
        """
        window_days = self.config.window_days
        df = sessions_to_frame(sessions)

        if not df.empty:
            end = to_naive_utc(now) if now is not None else df["timestamp"].iloc[-1]
            df = self._window(df, end)

        if df.empty:
            return PracticeAnalysis(
                window_days=window_days,
                active_days=0,
                daily_average_minutes=0.0,
                weekly_frequency=0.0,
                consistency_score=0.0,
                effectiveness_score=0.0,
                recommended_sessions_per_week=self._recommended_sessions_per_week(0.0, 0.0),
                recommended_frequency=self._frequency_text(0.0, 0.0),
                recommended_duration=self._duration_text(0.0, 0.0, None),
                optimal_practice_time=self._time_text(None)
            )

        daily_minutes = round(float(df["minutes"].sum()) / window_days, 2)
        weekly_frequency = round(len(df) / (window_days / 7.0), 2)
        consistency, active_days = self.consistency_score(df)
        effectiveness = self.effectiveness_score(df)

        timestamps = pd.Series(list(df["timestamp"]))
        time_keys = timestamps.map(lambda ts: TimeOfDay.from_hour(ts.hour).value)
        day_keys = timestamps.map(lambda ts: WEEKDAYS[ts.weekday()])
        band_keys = df["minutes"].map(duration_band)

        best_time = self.best_bucket(df, time_keys, [t.value for t in TimeOfDay])
        best_day = self.best_bucket(df, day_keys, list(WEEKDAYS))
        best_band = self.best_bucket(df, band_keys, [label for label, _, _ in DURATION_BANDS])

        best_time_of_day = TimeOfDay(best_time) if best_time else None

        analysis = PracticeAnalysis(
            window_days=window_days,
            active_days=active_days,
            daily_average_minutes=daily_minutes,
            weekly_frequency=weekly_frequency,
            consistency_score=consistency,
            effectiveness_score=effectiveness,
            recommended_sessions_per_week=self._recommended_sessions_per_week(consistency, weekly_frequency),
            recommended_frequency=self._frequency_text(consistency, weekly_frequency),
            recommended_duration_minutes=best_band,
            recommended_duration=self._duration_text(effectiveness, daily_minutes, best_band),
            best_performance_time_of_day=best_time_of_day,
            optimal_practice_time=self._time_text(best_time_of_day),
            best_practice_day=best_day,
            effectiveness_summary=self.effectiveness_summary(df, consistency, effectiveness)
        )

        logger.debug(
            f"Practice habits: {len(df)} sessions over {active_days} days, "
            f"consistency {consistency}, effectiveness {effectiveness}"
        )
        return analysis
