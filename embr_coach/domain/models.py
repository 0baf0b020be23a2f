"""
Domain models for the wellness coach.

Health, goal and workout records are owned by external collaborators (sync,
goal management) and are read-only here, so they are frozen. Optional metrics
are ``None`` when the wearable did not report them, never a sentinel number.
"""

from datetime import UTC, date, datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class GoalCategory(str, Enum):
    """Goal categories the goals screen lets users pick from."""

    STEPS = "steps"
    CALORIES = "calories"
    WORKOUTS = "workouts"
    SLEEP = "sleep"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class MessageSender(str, Enum):
    USER = "user"
    COACH = "coach"


class HealthRecord(BaseModel):
    """Daily activity, heart, sleep and cardio-fitness summary for one calendar day."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    day: date
    step_count: int = Field(ge=0)
    active_energy: float = Field(ge=0.0, description="Active energy burned (kcal)")
    active_minutes: int = Field(ge=0)
    distance_km: float | None = Field(default=None, ge=0.0)
    resting_heart_rate: float | None = Field(default=None, gt=0.0, description="bpm")
    max_heart_rate: float | None = Field(default=None, gt=0.0, description="bpm")
    sleep_hours: float | None = Field(default=None, ge=0.0)
    sleep_efficiency: float | None = Field(default=None, ge=0.0, le=1.0)
    vo2_max: float | None = Field(default=None, gt=0.0, description="ml/kg/min")


class GoalRecord(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    title: str
    category: GoalCategory
    target_value: float = Field(ge=0.0)
    progress_value: float = Field(default=0.0, ge=0.0)
    deadline: datetime | None = None
    is_archived: bool = False

    @property
    def completion_ratio(self) -> float:
        """Progress toward the target, capped at 1. Zero when no target is set."""
        if self.target_value <= 0:
            return 0.0
        return min(self.progress_value / self.target_value, 1.0)


class WorkoutRecord(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    performed_at: datetime
    duration_seconds: float = Field(ge=0.0)
    calories_burned: float = Field(ge=0.0)
    workout_type: str
    notes: str | None = None


class ChatMessage(BaseModel):
    """One entry of a coaching conversation. Messages are never edited."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    sender: MessageSender
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class PrivacySettings(BaseModel):
    """User consent for sending summaries to the AI coach."""

    allows_wellness_ai: bool = False
    privacy_notice_accepted_at: datetime | None = None

    def grant_wellness_ai(self, accepted_at: datetime | None = None) -> None:
        self.allows_wellness_ai = True
        self.privacy_notice_accepted_at = accepted_at or datetime.now(UTC)

    def revoke_wellness_ai(self) -> None:
        self.allows_wellness_ai = False


class WellnessBenchmarks:
    """Reference bands quoted back to the user in offline summaries."""

    # Typical resting heart rate band for healthy adults (bpm)
    RESTING_HEART_RATE_RANGE: tuple[float, float] = (60.0, 100.0)

    # Recommended nightly sleep duration for adults (hours)
    RECOMMENDED_SLEEP_HOURS: tuple[float, float] = (7.0, 9.0)

    # VO2 max for moderately active adults (ml/kg/min)
    VO2_HEALTHY_RANGE: tuple[float, float] = (35.0, 52.0)
