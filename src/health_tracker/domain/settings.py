"""Domain model for the user settings singleton."""

from dataclasses import dataclass
from enum import Enum


class Gender(Enum):
    """Sex used by the BMR formula."""

    MALE = "male"
    FEMALE = "female"


class ActivityLevel(Enum):
    """Activity levels with their TDEE multipliers."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "veryActive"


ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

WEIGHT_UNITS = frozenset({"kg", "lb"})


@dataclass(frozen=True)
class UserSettings:
    """Profile and goal settings shared by the whole store."""

    target_weight: float = 70
    unit: str = "kg"
    height: float | None = 170
    age: int | None = None
    gender: Gender = Gender.MALE
    activity_level: ActivityLevel = ActivityLevel.SEDENTARY


DEFAULT_SETTINGS = UserSettings()
