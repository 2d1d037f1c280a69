from datetime import datetime

from sqlmodel import SQLModel

from hoist.models import DistanceUnit, ExerciseType, ImplementType, WeightUnit, WorkoutStatus

# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class WorkoutSetRead(SQLModel):
    id: int
    position: int
    weight: float | None
    reps: int | None
    duration: int | None
    distance: float | None
    bodyweight: float | None
    band_color: str | None
    weight_unit: WeightUnit | None
    distance_unit: DistanceUnit | None


class WorkoutExerciseRead(SQLModel):
    id: int
    exercise_template_id: int | None
    exercise_name: str
    implement_type: ImplementType
    exercise_type: ExerciseType
    position: int
    sets: list[WorkoutSetRead]


class WorkoutDetail(SQLModel):
    id: int
    template_name: str
    status: WorkoutStatus
    started_at: datetime
    ended_at: datetime | None
    notes: str | None
    rating: int | None
    location_id: int | None
    location_name: str | None
    exercises: list[WorkoutExerciseRead]


class WorkoutBrief(SQLModel):
    id: int
    template_name: str
    started_at: datetime
    ended_at: datetime | None
    rating: int | None
    location_name: str | None


class WorkoutPage(SQLModel):
    items: list[WorkoutBrief]
    next_cursor: str | None = None


class CreatedId(SQLModel):
    id: int


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class StartWorkoutBody(SQLModel):
    workout_template_id: int


class CompleteWorkoutBody(SQLModel):
    notes: str | None = None
    rating: int | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None


class UpdateWorkoutBody(SQLModel):
    location_id: int | None = None
    notes: str | None = None
    rating: int | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None


class ReplaceExercisesBody(SQLModel):
    exercise_template_ids: list[int]


class SetInput(SQLModel):
    """Measurements for one set. Also used for updates, which replace every field."""

    weight: float | None = None
    reps: int | None = None
    duration: int | None = None
    distance: float | None = None
    bodyweight: float | None = None
    band_color: str | None = None
    weight_unit: WeightUnit | None = None
    distance_unit: DistanceUnit | None = None
