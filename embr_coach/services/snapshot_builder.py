"""
Wellness snapshot: the statistical context sent alongside every coaching request.

Key decisions:
- Bounded window: only the most recent records are summarised
- Absent metrics stay absent: an average over zero readings is None, not 0
- Immutable output: a snapshot is built per request and never persisted
- The rendered context always ends with the privacy instruction for the model
"""

import math
from collections import Counter
from collections.abc import Iterable, Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field

from embr_coach.config import MAX_SNAPSHOT_RECORDS
from embr_coach.domain.models import GoalCategory, GoalRecord, HealthRecord, WorkoutRecord

logger = structlog.get_logger(__name__)

DEFAULT_WORKOUT_TYPE = "General"
MAX_PREDOMINANT_TYPES = 3

INSUFFICIENT_DATA_LINE = (
    "Observation window: insufficient recent data. "
    "Provide general guidance based on healthy habits."
)
PRIVACY_TRAILER = (
    "Never disclose personal identifiers. Focus on wellness education, habit formation, "
    "recovery guidance, and actionable insights within scope."
)


class GoalStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: GoalCategory
    completion_ratio: float = Field(ge=0.0)
    target: float


class WorkoutDigest(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_duration_seconds: float = 0.0
    count: int = 0
    calorie_burn: float = 0.0
    predominant_types: tuple[str, ...] = (DEFAULT_WORKOUT_TYPE,)


class WellnessSnapshot(BaseModel):
    """Aggregated view of the user's recent health history."""

    model_config = ConfigDict(frozen=True)

    observation_window_days: int = Field(ge=0)
    average_steps: int = 0
    average_active_energy: float = 0.0
    average_exercise_minutes: float = 0.0
    average_resting_heart_rate: float | None = None
    average_max_heart_rate: float | None = None
    average_sleep_hours: float | None = None
    average_sleep_efficiency: float | None = None
    average_vo2_max: float | None = None
    goal_statuses: tuple[GoalStatus, ...] = ()
    workouts: WorkoutDigest = Field(default_factory=WorkoutDigest)

    def sanitized_context(self) -> str:
        """Render the snapshot as plain-text context for the language model."""
        lines: list[str] = []
        if self.observation_window_days > 0:
            lines.append(f"Observation window: last {self.observation_window_days} days.")
        else:
            lines.append(INSUFFICIENT_DATA_LINE)

        lines.append(f"Average daily steps: {self.average_steps}.")
        lines.append(
            f"Average active energy burn: {round_half_up(self.average_active_energy)} kcal."
        )
        lines.append(
            f"Average exercise minutes: {round_half_up(self.average_exercise_minutes)}."
        )

        if self.average_resting_heart_rate is not None:
            lines.append(
                "Resting heart rate average: "
                f"{round_half_up(self.average_resting_heart_rate)} bpm."
            )
        if self.average_max_heart_rate is not None:
            lines.append(
                f"Peak heart rate average: {round_half_up(self.average_max_heart_rate)} bpm."
            )
        if self.average_sleep_hours is not None:
            hours = f"{self.average_sleep_hours:.1f}"
            if self.average_sleep_efficiency is not None:
                lines.append(
                    f"Average sleep duration: {hours} hours with "
                    f"{self.average_sleep_efficiency:.0%} efficiency."
                )
            else:
                lines.append(f"Average sleep duration: {hours} hours.")
        if self.average_vo2_max is not None:
            lines.append(f"Average VO₂ max: {self.average_vo2_max:.1f} ml/kg·min.")

        for status in self.goal_statuses:
            ratio = min(max(status.completion_ratio, 0.0), 1.0)
            lines.append(
                f"{status.category.display_name} goals are {ratio:.0%} "
                f"of {status.target:,.0f} target."
            )

        digest = self.workouts
        lines.append(
            f"Workouts completed: {digest.count} sessions totalling "
            f"{int(digest.total_duration_seconds // 60)} minutes and "
            f"{round_half_up(digest.calorie_burn)} kcal. "
            f"Predominant types: {', '.join(digest.predominant_types)}."
        )

        lines.append(PRIVACY_TRAILER)
        return "\n".join(lines)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _mean_or_none(values: Iterable[float | None]) -> float | None:
    present = [v for v in values if v is not None]
    return sum(present) / len(present) if present else None


class SnapshotBuilder:
    """
    Builds a WellnessSnapshot from raw records.

    Input order does not matter; records are sorted internally.
    """

    def __init__(self, max_records: int = MAX_SNAPSHOT_RECORDS) -> None:
        if max_records <= 0:
            raise ValueError("max_records must be positive")
        self.max_records = max_records
        self.logger = logger.bind(component="snapshot_builder")

    def snapshot(
        self,
        records: Sequence[HealthRecord],
        goals: Sequence[GoalRecord],
        workouts: Sequence[WorkoutRecord],
    ) -> WellnessSnapshot:
        recent = sorted(records, key=lambda r: r.day, reverse=True)[: self.max_records]

        sleep_hours = _mean_or_none(r.sleep_hours for r in recent)
        # Efficiency is meaningless without a duration to qualify it
        sleep_efficiency = (
            _mean_or_none(r.sleep_efficiency for r in recent) if sleep_hours is not None else None
        )

        snapshot = WellnessSnapshot(
            observation_window_days=len(recent),
            average_steps=round_half_up(_mean([r.step_count for r in recent])),
            average_active_energy=_mean([r.active_energy for r in recent]),
            average_exercise_minutes=_mean([r.active_minutes for r in recent]),
            average_resting_heart_rate=_mean_or_none(r.resting_heart_rate for r in recent),
            average_max_heart_rate=_mean_or_none(r.max_heart_rate for r in recent),
            average_sleep_hours=sleep_hours,
            average_sleep_efficiency=sleep_efficiency,
            average_vo2_max=_mean_or_none(r.vo2_max for r in recent),
            goal_statuses=self._goal_statuses(goals),
            workouts=self._workout_digest(workouts, recent),
        )

        self.logger.debug(
            "snapshot_built",
            window_days=snapshot.observation_window_days,
            records_supplied=len(records),
            goals=len(snapshot.goal_statuses),
            workouts=snapshot.workouts.count,
        )
        return snapshot

    def _goal_statuses(self, goals: Sequence[GoalRecord]) -> tuple[GoalStatus, ...]:
        return tuple(
            GoalStatus(
                category=goal.category,
                completion_ratio=goal.completion_ratio,
                target=goal.target_value,
            )
            for goal in goals
            if not goal.is_archived
        )

    def _workout_digest(
        self, workouts: Sequence[WorkoutRecord], recent: Sequence[HealthRecord]
    ) -> WorkoutDigest:
        if recent:
            earliest = recent[-1].day
            selected = [w for w in workouts if w.performed_at.date() >= earliest]
        else:
            selected = list(workouts)

        # Counter.most_common keeps first-seen order among equal counts
        type_counts = Counter(w.workout_type for w in selected)
        predominant = tuple(label for label, _ in type_counts.most_common(MAX_PREDOMINANT_TYPES))

        return WorkoutDigest(
            total_duration_seconds=sum(w.duration_seconds for w in selected),
            count=len(selected),
            calorie_burn=sum(w.calories_burned for w in selected),
            predominant_types=predominant or (DEFAULT_WORKOUT_TYPE,),
        )
