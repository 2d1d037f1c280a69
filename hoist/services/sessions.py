"""Workout session lifecycle: start, complete, discard, update, and reads."""

from datetime import datetime

import structlog
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from hoist.config import settings
from hoist.errors import ValidationError, ValidationFailure
from hoist.models import (
    ExerciseTemplate,
    Location,
    Workout,
    WorkoutExercise,
    WorkoutStatus,
    WorkoutTemplateExercise,
    as_utc,
    utcnow,
)
from hoist.schemas import WorkoutBrief, WorkoutDetail
from hoist.services.aggregate import WorkoutAggregate
from hoist.services.ownership import (
    get_owned_location,
    get_owned_workout,
    get_owned_workout_template,
)

logger = structlog.get_logger(__name__)

NOTES_MAX_LENGTH = 2000
ALREADY_IN_PROGRESS = "You already have a workout in progress"

# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _validate_patch(
    notes: str | None,
    rating: int | None,
    started_at: datetime | None,
    ended_at: datetime | None,
) -> None:
    failures: list[ValidationFailure] = []
    if rating is not None and not 1 <= rating <= 5:
        failures.append(ValidationFailure("rating", "Rating must be between 1 and 5"))
    if notes is not None and len(notes) > NOTES_MAX_LENGTH:
        failures.append(
            ValidationFailure("notes", f"Notes must not exceed {NOTES_MAX_LENGTH} characters")
        )
    if started_at is not None and ended_at is not None and not ended_at > started_at:
        failures.append(ValidationFailure("ended_at", "EndedAt must be after StartedAt"))
    if failures:
        raise ValidationError(failures)


def _has_in_progress(session: Session, user_id: str) -> bool:
    return (
        session.exec(
            select(Workout.id).where(
                Workout.user_id == user_id, Workout.status == WorkoutStatus.in_progress
            )
        ).first()
        is not None
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def start_workout(session: Session, user_id: str, workout_template_id: int) -> int:
    """Start a workout from a template and return the new workout's id.

    Template name, location and each exercise's metadata are copied, so later
    edits to the templates never rewrite this workout.
    """
    if _has_in_progress(session, user_id):
        raise ValidationError.single("", ALREADY_IN_PROGRESS)

    template = get_owned_workout_template(session, user_id, workout_template_id)

    location_name = None
    if template.location_id is not None:
        location = session.get(Location, template.location_id)
        location_name = location.name if location else None

    template_exercises = session.exec(
        select(WorkoutTemplateExercise, ExerciseTemplate)
        .join(ExerciseTemplate, WorkoutTemplateExercise.exercise_template_id == ExerciseTemplate.id)
        .where(WorkoutTemplateExercise.workout_template_id == template.id)
        .order_by(WorkoutTemplateExercise.position, WorkoutTemplateExercise.id)
    ).all()

    workout = Workout(
        user_id=user_id,
        workout_template_id=template.id,
        template_name=template.name,
        status=WorkoutStatus.in_progress,
        started_at=utcnow(),
        location_id=template.location_id,
        location_name=location_name,
    )
    session.add(workout)
    try:
        session.flush()
    except IntegrityError:
        # A concurrent start won the race; the partial unique index caught it
        session.rollback()
        logger.warning("workout_start_conflict", user_id=user_id)
        raise ValidationError.single("", ALREADY_IN_PROGRESS)

    for position, (_, exercise_template) in enumerate(template_exercises, start=1):
        session.add(
            WorkoutExercise(
                workout_id=workout.id,
                exercise_template_id=exercise_template.id,
                exercise_name=exercise_template.name,
                implement_type=exercise_template.implement_type,
                exercise_type=exercise_template.exercise_type,
                position=position,
            )
        )
    session.commit()

    logger.info(
        "workout_started",
        workout_id=workout.id,
        user_id=user_id,
        workout_template_id=template.id,
        exercise_count=len(template_exercises),
    )
    return workout.id


def complete_workout(
    session: Session,
    user_id: str,
    workout_id: int,
    *,
    notes: str | None = None,
    rating: int | None = None,
    started_at: datetime | None = None,
    ended_at: datetime | None = None,
) -> None:
    """Mark an in-progress workout completed. Only the supplied fields change."""
    started_at = as_utc(started_at)
    ended_at = as_utc(ended_at)
    _validate_patch(notes, rating, started_at, ended_at)

    workout = get_owned_workout(session, user_id, workout_id)
    if workout.status != WorkoutStatus.in_progress:
        raise ValidationError.single("status", "Workout is not in progress")

    workout.status = WorkoutStatus.completed
    workout.ended_at = ended_at or utcnow()
    if notes is not None:
        workout.notes = notes
    if rating is not None:
        workout.rating = rating
    if started_at is not None:
        workout.started_at = started_at

    session.add(workout)
    session.commit()
    logger.info("workout_completed", workout_id=workout_id, user_id=user_id, rating=workout.rating)


def discard_workout(session: Session, user_id: str, workout_id: int) -> None:
    """Hard-delete an in-progress workout with its exercises and sets."""
    workout = get_owned_workout(session, user_id, workout_id)
    aggregate = WorkoutAggregate.load(session, workout)
    aggregate.require_in_progress("Only in-progress workouts can be discarded")

    aggregate.delete(session)
    session.commit()
    logger.info("workout_discarded", workout_id=workout_id, user_id=user_id)


def update_workout(
    session: Session,
    user_id: str,
    workout_id: int,
    *,
    location_id: int | None = None,
    notes: str | None = None,
    rating: int | None = None,
    started_at: datetime | None = None,
    ended_at: datetime | None = None,
) -> None:
    """Patch a workout in any status. Absent fields are left untouched."""
    started_at = as_utc(started_at)
    ended_at = as_utc(ended_at)
    _validate_patch(notes, rating, started_at, ended_at)

    workout = get_owned_workout(session, user_id, workout_id)

    if location_id is not None and location_id != workout.location_id:
        location = get_owned_location(session, user_id, location_id)
        workout.location_id = location.id
        workout.location_name = location.name
    if notes is not None:
        workout.notes = notes
    if rating is not None:
        workout.rating = rating
    if started_at is not None:
        workout.started_at = started_at
    if ended_at is not None:
        workout.ended_at = ended_at

    session.add(workout)
    session.commit()
    logger.info("workout_updated", workout_id=workout_id, user_id=user_id)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def get_workout(session: Session, user_id: str, workout_id: int) -> WorkoutDetail:
    workout = get_owned_workout(session, user_id, workout_id)
    return WorkoutAggregate.load(session, workout).to_detail()


def get_in_progress_workout(session: Session, user_id: str) -> WorkoutDetail | None:
    workout = session.exec(
        select(Workout).where(
            Workout.user_id == user_id, Workout.status == WorkoutStatus.in_progress
        )
    ).first()
    if workout is None:
        return None
    return WorkoutAggregate.load(session, workout).to_detail()


def get_recent_workouts(
    session: Session, user_id: str, limit: int = settings.RECENT_WORKOUTS_LIMIT
) -> list[WorkoutBrief]:
    """Most recently finished completed workouts, newest first."""
    workouts = session.exec(
        select(Workout)
        .where(Workout.user_id == user_id, Workout.status == WorkoutStatus.completed)
        .order_by(Workout.ended_at.desc(), Workout.id)
        .limit(limit)
    ).all()
    return [WorkoutBrief.model_validate(w, from_attributes=True) for w in workouts]
