"""
Experience Curve Engine

This module maps levels to cumulative experience and back using a piecewise
exponential growth model:

- Rapid phase (levels 2-10): quick early level-ups to keep new users engaged
- Steady phase (levels 11-30): slower growth while practice habits form
- Challenge phase (levels 31+): long-term goals

Each level's increment is floored to an integer before it is accumulated, so
the cumulative totals are exact integers and identical across calls.
Out-of-range inputs are clamped, never rejected.
"""

import math
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from practice_core.common.config import CurveSettings, get_config
from practice_core.common.exceptions import ConfigurationError
from practice_core.common.logger import app_logger
from practice_core.common.serialization import SerializableMixin
from practice_core.progression.milestones import (
    LEVEL_MILESTONES,
    Milestone,
    find_milestone,
    find_next_milestone,
)

# Module logger
logger = app_logger.getChild("progression.curve")

# Decimal places kept before flooring an increment
FLOAT_PRECISION = 6


@dataclass(frozen=True)
class CurvePhase:
    """
    One segment of the growth curve.

    The increment for level ``i`` inside the phase is
    ``floor(base * growth ** (i - start_level))``.
    """

    name: str
    start_level: int
    end_level: Optional[int]
    base: int
    growth: float

    def covers(self, level: int) -> bool:
        """Check whether a level belongs to this phase."""
        if level < self.start_level:
            return False
        return self.end_level is None or level <= self.end_level

    def increment(self, level: int) -> int:
        """Experience needed to go from ``level - 1`` to ``level``."""
        # Round first: 100 * 1.4 ** 2 evaluates to 195.99999999999997
        raw = self.base * self.growth ** (level - self.start_level)
        return math.floor(round(raw, FLOAT_PRECISION))


DEFAULT_PHASES: Tuple[CurvePhase, ...] = (
    CurvePhase("rapid", 2, 10, 100, 1.4),
    CurvePhase("steady", 11, 30, 500, 1.3),
    CurvePhase("challenge", 31, None, 2000, 1.25),
)


@dataclass(frozen=True)
class CurveConfig:
    """Revision of the experience curve: schema version, level cap and phases."""

    version: int = 2
    max_level: int = 100
    phases: Tuple[CurvePhase, ...] = DEFAULT_PHASES

    def __post_init__(self):
        if self.max_level < 2:
            raise ConfigurationError(f"max_level must be at least 2, got {self.max_level}", "max_level")
        if not self.phases:
            raise ConfigurationError("At least one curve phase is required", "phases")

        expected_start = 2
        for index, phase in enumerate(self.phases):
            if phase.start_level != expected_start:
                raise ConfigurationError(
                    f"Phase '{phase.name}' starts at {phase.start_level}, expected {expected_start}",
                    "phases"
                )
            if phase.base < 1 or phase.growth < 1:
                raise ConfigurationError(
                    f"Phase '{phase.name}' must have base >= 1 and growth >= 1",
                    "phases"
                )
            is_last = index == len(self.phases) - 1
            if phase.end_level is None:
                if not is_last:
                    raise ConfigurationError("Only the last phase may be open-ended", "phases")
            else:
                expected_start = phase.end_level + 1

        if self.phases[-1].end_level is not None and self.phases[-1].end_level < self.max_level:
            raise ConfigurationError("Phases do not cover every level up to max_level", "phases")

    @classmethod
    def from_settings(cls, settings: CurveSettings) -> 'CurveConfig':
        """Build a curve revision from the configuration section."""
        return cls(version=settings.version, max_level=settings.max_level)


@dataclass
class LevelProgress(SerializableMixin):
    """Position of an experience total within its level."""

    __serializable_fields__ = ["level", "current_level_exp", "next_level_exp", "progress"]

    level: int
    current_level_exp: int
    next_level_exp: int
    progress: float


class ExperienceCache:
    """
    Append-only map from level to cumulative experience.

    Owned by a single curve instance, so curves with different
    configurations never see each other's values. ``clear`` is the only
    way entries are removed.
    """

    def __init__(self):
        self._values: Dict[int, int] = {}
        self._lock = threading.RLock()

    def get(self, level: int) -> Optional[int]:
        return self._values.get(level)

    def put(self, level: int, value: int) -> None:
        with self._lock:
            self._values.setdefault(level, value)

    def clear(self) -> None:
        with self._lock:
            self._values.clear()

    def __contains__(self, level: int) -> bool:
        return level in self._values

    def __len__(self) -> int:
        return len(self._values)


class ExperienceCurve:
    """
    Level and experience calculator for one curve revision.

    All lookups clamp their input to the valid range and perform no I/O.
    """

    def __init__(
        self,
        config: Optional[CurveConfig] = None,
        milestones: Tuple[Milestone, ...] = LEVEL_MILESTONES
    ):
        """
        Initialize the curve.

        Args:
            config: Curve revision (defaults to the configured curve settings)
            milestones: Milestone table, ordered by ascending level
        """
        self.config = config or CurveConfig.from_settings(get_config().curve)
        self.milestones = milestones
        self.cache = ExperienceCache()

    @property
    def version(self) -> int:
        """Schema version of this curve revision."""
        return self.config.version

    @property
    def max_level(self) -> int:
        """Highest reachable level."""
        return self.config.max_level

    def _clamp_level(self, level: int) -> int:
        return max(1, min(int(level), self.config.max_level))

    def _phase_for(self, level: int) -> CurvePhase:
        for phase in self.config.phases:
            if phase.covers(level):
                return phase
        return self.config.phases[-1]

    def experience_required_for_level(self, level: int) -> int:
        """
        Calculate the total experience required to reach a level.

        Args:
            level: Target level (clamped to [1, max_level])

        Returns:
            Cumulative experience needed to reach the level from level 1
        """
        safe_level = self._clamp_level(level)
        if safe_level <= 1:
            return 0

        cached = self.cache.get(safe_level)
        if cached is not None:
            return cached

        total_exp = 0
        for current in range(2, safe_level + 1):
            total_exp += self._phase_for(current).increment(current)

        self.cache.put(safe_level, total_exp)
        return total_exp

    def experience_for_next_level(self, level: int) -> int:
        """
        Calculate the experience needed to advance from a level to the next one.

        Args:
            level: Current level

        Returns:
            Experience for the next level, or 0 at the level cap
        """
        safe_level = self._clamp_level(level)
        if safe_level >= self.config.max_level:
            return 0

        return (
            self.experience_required_for_level(safe_level + 1)
            - self.experience_required_for_level(safe_level)
        )

    def calculate_level(self, experience: int) -> int:
        """
        Find the level reached with a total amount of experience.

        Uses binary search for the highest level whose cumulative requirement
        does not exceed the experience.

        Args:
            experience: Total experience

        Returns:
            Level in [1, max_level]
        """
        if experience <= 0:
            return 1

        left, right = 1, self.config.max_level
        result = 1
        while left <= right:
            mid = (left + right) // 2
            if self.experience_required_for_level(mid) <= experience:
                result = mid
                left = mid + 1
            else:
                right = mid - 1

        return result

    def experience_progress(self, experience: int) -> LevelProgress:
        """
        Describe progress through the current level.

        Args:
            experience: Total experience

        Returns:
            Level, experience earned inside the level, experience span of the
            level and a progress fraction in [0, 1]
        """
        safe_experience = max(0, experience)
        level = self.calculate_level(safe_experience)

        current_required = self.experience_required_for_level(level)
        current_level_exp = max(0, safe_experience - current_required)
        next_level_exp = self.experience_for_next_level(level)

        if next_level_exp > 0:
            progress = current_level_exp / next_level_exp
        else:
            # Level cap reached
            progress = 1.0

        return LevelProgress(
            level=level,
            current_level_exp=int(current_level_exp),
            next_level_exp=next_level_exp,
            progress=min(1.0, max(0.0, progress))
        )

    def get_milestone(self, level: int) -> Optional[Milestone]:
        """Get the milestone defined at exactly this level."""
        return find_milestone(level, self.milestones)

    def get_next_milestone(self, level: int) -> Optional[Milestone]:
        """Get the first milestone above this level."""
        return find_next_milestone(level, self.milestones)

    def clear_cache(self) -> None:
        """Drop every memoized cumulative value."""
        self.cache.clear()
        logger.debug("Experience cache cleared")

    def level_distribution(self, max_level: int = 50) -> List[Dict[str, Any]]:
        """
        Tabulate the curve for tuning and debugging.

        Args:
            max_level: Last level to include (clamped to the curve's cap)

        Returns:
            One row per level with total experience, the increment into that
            level and the phase name
        """
        distribution = []
        for level in range(1, self._clamp_level(max_level) + 1):
            distribution.append({
                "level": level,
                "total_exp": self.experience_required_for_level(level),
                "exp_for_level": 0 if level == 1 else self.experience_for_next_level(level - 1),
                "phase": self._phase_for(max(level, 2)).name,
            })
        return distribution


# Shared curve for callers that do not manage their own revision
default_curve = ExperienceCurve()
