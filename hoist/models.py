from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import DateTime, Index, text
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalise to aware UTC. Naive values are taken to already be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC timestamp on every backend.

    SQLite keeps no offset, so values are written as UTC wall time and
    tagged with UTC again when read back.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return as_utc(value)

    def process_result_value(self, value, dialect):
        return as_utc(value)


class WorkoutStatus(str, Enum):
    in_progress = "in_progress"
    completed = "completed"


class ImplementType(str, Enum):
    barbell = "barbell"
    dumbbell = "dumbbell"
    selectorized_machine = "selectorized_machine"
    plate_loaded_machine = "plate_loaded_machine"
    bodyweight = "bodyweight"
    band = "band"
    kettlebell = "kettlebell"
    plate = "plate"
    medicine_ball = "medicine_ball"


class ExerciseType(str, Enum):
    reps = "reps"
    duration = "duration"
    distance = "distance"


class WeightUnit(str, Enum):
    lbs = "lbs"
    kg = "kg"


class DistanceUnit(str, Enum):
    miles = "miles"
    kilometers = "kilometers"
    meters = "meters"
    yards = "yards"


class Location(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    name: str
    address: str | None = None
    notes: str | None = None
    is_deleted: bool = False
    deleted_at: datetime | None = Field(default=None, sa_type=UTCDateTime)


class ExerciseTemplate(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    name: str
    implement_type: ImplementType
    exercise_type: ExerciseType
    model: str | None = None
    is_deleted: bool = False
    deleted_at: datetime | None = Field(default=None, sa_type=UTCDateTime)


class WorkoutTemplate(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    name: str
    notes: str | None = None
    location_id: int | None = Field(default=None, foreign_key="location.id")


class WorkoutTemplateExercise(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    workout_template_id: int = Field(foreign_key="workouttemplate.id", index=True)
    exercise_template_id: int = Field(foreign_key="exercisetemplate.id")
    position: int


class Workout(SQLModel, table=True):
    __table_args__ = (
        # At most one in-progress workout per user
        Index(
            "uq_workout_user_in_progress",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'in_progress'"),
            postgresql_where=text("status = 'in_progress'"),
        ),
        Index("ix_workout_user_status_ended_at", "user_id", "status", "ended_at"),
    )

    id: int | None = Field(default=None, primary_key=True)
    user_id: str
    workout_template_id: int | None = Field(default=None, foreign_key="workouttemplate.id")
    template_name: str  # snapshot, not a live reference
    status: WorkoutStatus = WorkoutStatus.in_progress
    started_at: datetime = Field(sa_type=UTCDateTime)
    ended_at: datetime | None = Field(default=None, sa_type=UTCDateTime)
    notes: str | None = Field(default=None, max_length=2000)
    rating: int | None = None
    location_id: int | None = Field(default=None, foreign_key="location.id")
    location_name: str | None = None  # snapshot taken when the location is assigned


class WorkoutExercise(SQLModel, table=True):
    __table_args__ = (Index("ix_workoutexercise_workout_position", "workout_id", "position"),)

    id: int | None = Field(default=None, primary_key=True)
    workout_id: int = Field(foreign_key="workout.id")
    exercise_template_id: int | None = Field(default=None, foreign_key="exercisetemplate.id")
    # Snapshotted from the exercise template when attached
    exercise_name: str
    implement_type: ImplementType
    exercise_type: ExerciseType
    position: int


class WorkoutSet(SQLModel, table=True):
    __table_args__ = (
        Index("ix_workoutset_exercise_position", "workout_exercise_id", "position"),
    )

    id: int | None = Field(default=None, primary_key=True)
    workout_exercise_id: int = Field(foreign_key="workoutexercise.id")
    position: int
    weight: float | None = None
    reps: int | None = None
    duration: int | None = None  # seconds
    distance: float | None = None
    bodyweight: float | None = None
    band_color: str | None = None
    weight_unit: WeightUnit | None = None
    distance_unit: DistanceUnit | None = None
