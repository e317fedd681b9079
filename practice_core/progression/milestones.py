"""
Level Milestones

Static reference table of named level checkpoints. The table is immutable
and ordered by ascending level; lookups rely on that ordering.
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


class RewardType(enum.Enum):
    """Kinds of reward unlocked by a milestone."""
    BADGE = "badge"
    TITLE = "title"
    FEATURE = "feature"


@dataclass(frozen=True)
class MilestoneReward:
    """A reward tag attached to a milestone."""

    type: RewardType
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "value": self.value}


@dataclass(frozen=True)
class Milestone:
    """A fixed, named level checkpoint."""

    level: int
    title: str
    description: str
    reward: Optional[MilestoneReward] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary; the reward key is absent when there is none."""
        data = {
            "level": self.level,
            "title": self.title,
            "description": self.description,
        }
        if self.reward is not None:
            data["reward"] = self.reward.to_dict()
        return data


LEVEL_MILESTONES: Tuple[Milestone, ...] = (
    Milestone(5, "Beginner", "Completed the basic exercises",
              MilestoneReward(RewardType.BADGE, "first_steps")),
    Milestone(10, "Practitioner", "Built a regular practice habit",
              MilestoneReward(RewardType.TITLE, "practitioner")),
    Milestone(20, "Adept", "Mastered the core listening skills",
              MilestoneReward(RewardType.FEATURE, "mixed_mode_drills")),
    Milestone(30, "Expert", "Reached an advanced level",
              MilestoneReward(RewardType.TITLE, "expert")),
    Milestone(50, "Master", "Became a dictation master",
              MilestoneReward(RewardType.BADGE, "dictation_master")),
)


def find_milestone(level: int, milestones: Tuple[Milestone, ...] = LEVEL_MILESTONES) -> Optional[Milestone]:
    """Return the milestone defined exactly at ``level``, if any."""
    for milestone in milestones:
        if milestone.level == level:
            return milestone
    return None


def find_next_milestone(level: int, milestones: Tuple[Milestone, ...] = LEVEL_MILESTONES) -> Optional[Milestone]:
    """Return the first milestone strictly above ``level``, if any."""
    for milestone in milestones:
        if milestone.level > level:
            return milestone
    return None
