"""
Progression

Experience curve, level milestones and the migration manager that keeps
stored progression records valid across curve revisions.
"""

from practice_core.progression.milestones import (
    LEVEL_MILESTONES,
    Milestone,
    MilestoneReward,
    RewardType,
)
from practice_core.progression.curve import (
    DEFAULT_PHASES,
    CurveConfig,
    CurvePhase,
    ExperienceCache,
    ExperienceCurve,
    LevelProgress,
    default_curve,
)
from practice_core.progression.models import (
    BackupRecord,
    BackupResult,
    BackupValidation,
    MigrationAction,
    MigrationLogEntry,
    MigrationResult,
    MigrationStats,
    ProgressionRecord,
    RestoreResult,
)
from practice_core.progression.migration import MigrationManager, compute_checksum

__all__ = [
    "LEVEL_MILESTONES",
    "Milestone",
    "MilestoneReward",
    "RewardType",
    "DEFAULT_PHASES",
    "CurveConfig",
    "CurvePhase",
    "ExperienceCache",
    "ExperienceCurve",
    "LevelProgress",
    "default_curve",
    "BackupRecord",
    "BackupResult",
    "BackupValidation",
    "MigrationAction",
    "MigrationLogEntry",
    "MigrationResult",
    "MigrationStats",
    "ProgressionRecord",
    "RestoreResult",
    "MigrationManager",
    "compute_checksum",
]
