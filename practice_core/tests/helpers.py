"""
Session builders shared by the recommendation tests.
"""

import datetime
from typing import List, Optional, Sequence

from practice_core.recommendation.models import DifficultyTier, ModeSession, PracticeMode

START = datetime.datetime(2024, 3, 1, 9, 0)


def make_sessions(
    mode: PracticeMode,
    accuracies: Sequence[float],
    total: int = 10,
    start: datetime.datetime = START,
    spacing: datetime.timedelta = datetime.timedelta(days=1),
    duration_seconds: float = 600.0,
    difficulty: Optional[DifficultyTier] = None,
    sub_type: Optional[str] = None
) -> List[ModeSession]:
    """One session per accuracy value, ``spacing`` apart."""
    return [
        ModeSession(
            mode=mode,
            timestamp=start + spacing * index,
            correct=round(accuracy * total),
            total=total,
            duration_seconds=duration_seconds,
            difficulty=difficulty,
            sub_type=sub_type
        )
        for index, accuracy in enumerate(accuracies)
    ]
