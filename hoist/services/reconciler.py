"""Keep a workout's exercise list and each exercise's set list dense and ordered."""

import structlog
from sqlmodel import Session, select

from hoist.errors import NotFoundError, ValidationError, ValidationFailure
from hoist.models import ExerciseTemplate, WorkoutExercise, WorkoutSet
from hoist.schemas import SetInput
from hoist.services.aggregate import WorkoutAggregate, resequence_after_removal
from hoist.services.ownership import get_owned_workout, resolve_exercise_chain, resolve_set_chain

logger = structlog.get_logger(__name__)

NUMERIC_SET_FIELDS = ("weight", "reps", "duration", "distance", "bodyweight")


def _validate_set(data: SetInput) -> None:
    failures: list[ValidationFailure] = []
    for name in NUMERIC_SET_FIELDS:
        value = getattr(data, name)
        if value is not None and value < 0:
            failures.append(ValidationFailure(name, f"{name.capitalize()} must not be negative"))
    has_measurement = any(getattr(data, name) is not None for name in NUMERIC_SET_FIELDS)
    if not has_measurement and not data.band_color:
        failures.append(ValidationFailure("", "At least one measurement field must be provided"))
    if failures:
        raise ValidationError(failures)


def _apply_set_fields(workout_set: WorkoutSet, data: SetInput) -> None:
    # Full replacement: a field missing from ``data`` is cleared
    workout_set.weight = data.weight
    workout_set.reps = data.reps
    workout_set.duration = data.duration
    workout_set.distance = data.distance
    workout_set.bodyweight = data.bodyweight
    workout_set.band_color = data.band_color
    workout_set.weight_unit = data.weight_unit
    workout_set.distance_unit = data.distance_unit


# ---------------------------------------------------------------------------
# Exercise list
# ---------------------------------------------------------------------------


def replace_exercise_list(
    session: Session, user_id: str, workout_id: int, exercise_template_ids: list[int]
) -> None:
    """Make the workout's exercises match ``exercise_template_ids``, in that order.

    Exercises already in the workout are matched by exercise template id and
    keep their sets; only their position changes. New ids get a fresh
    exercise with snapshotted metadata. Exercises not requested are removed
    along with their sets.
    """
    workout = get_owned_workout(session, user_id, workout_id)
    aggregate = WorkoutAggregate.load(session, workout)
    aggregate.require_in_progress("Only in-progress workouts can be modified")

    if not exercise_template_ids:
        raise ValidationError.single("exercise_template_ids", "At least one exercise is required")
    if len(set(exercise_template_ids)) != len(exercise_template_ids):
        raise ValidationError.single(
            "exercise_template_ids", "Each exercise may only appear once in a workout"
        )

    existing = {
        ex.exercise_template_id: ex
        for ex in aggregate.exercises
        if ex.exercise_template_id is not None
    }
    templates = {
        t.id: t
        for t in session.exec(
            select(ExerciseTemplate).where(
                ExerciseTemplate.id.in_(exercise_template_ids),
                ExerciseTemplate.user_id == user_id,
            )
        ).all()
    }
    for template_id in exercise_template_ids:
        template = templates.get(template_id)
        # A deleted template may stay in the workout, but cannot be newly added
        if template is None or (template.is_deleted and template_id not in existing):
            raise NotFoundError("ExerciseTemplate", template_id)

    kept_ids: set[int] = set()
    added = 0
    for position, template_id in enumerate(exercise_template_ids, start=1):
        exercise = existing.get(template_id)
        if exercise is not None:
            exercise.position = position
            session.add(exercise)
            kept_ids.add(exercise.id)
        else:
            template = templates[template_id]
            exercise = WorkoutExercise(
                workout_id=workout.id,
                exercise_template_id=template.id,
                exercise_name=template.name,
                implement_type=template.implement_type,
                exercise_type=template.exercise_type,
                position=position,
            )
            session.add(exercise)
            added += 1

    removed = [ex for ex in aggregate.exercises if ex.id not in kept_ids]
    for exercise in removed:
        aggregate.remove_exercise(session, exercise)

    session.commit()
    logger.info(
        "workout_exercises_replaced",
        workout_id=workout_id,
        kept=len(kept_ids),
        added=added,
        removed=len(removed),
    )


# ---------------------------------------------------------------------------
# Sets
# ---------------------------------------------------------------------------


def create_set(
    session: Session, user_id: str, workout_id: int, exercise_id: int, data: SetInput
) -> int:
    """Append a set to the exercise and return its id."""
    _validate_set(data)
    workout, exercise = resolve_exercise_chain(session, user_id, workout_id, exercise_id)
    aggregate = WorkoutAggregate.load(session, workout)

    workout_set = WorkoutSet(
        workout_exercise_id=exercise.id,
        position=aggregate.next_set_position(exercise.id),
    )
    _apply_set_fields(workout_set, data)
    session.add(workout_set)
    session.commit()
    session.refresh(workout_set)

    logger.info(
        "set_created",
        workout_id=workout_id,
        workout_exercise_id=exercise_id,
        set_id=workout_set.id,
        position=workout_set.position,
    )
    return workout_set.id


def update_set(
    session: Session,
    user_id: str,
    workout_id: int,
    exercise_id: int,
    set_id: int,
    data: SetInput,
) -> None:
    """Replace every measurement of a set; omitted fields become empty."""
    _validate_set(data)
    _, _, workout_set = resolve_set_chain(session, user_id, workout_id, exercise_id, set_id)

    _apply_set_fields(workout_set, data)
    session.add(workout_set)
    session.commit()
    logger.info("set_updated", workout_id=workout_id, workout_exercise_id=exercise_id, set_id=set_id)


def delete_set(
    session: Session, user_id: str, workout_id: int, exercise_id: int, set_id: int
) -> None:
    """Delete a set and close the gap it leaves in its exercise's positions."""
    _, exercise, workout_set = resolve_set_chain(
        session, user_id, workout_id, exercise_id, set_id
    )
    removed_position = workout_set.position

    siblings = session.exec(
        select(WorkoutSet).where(
            WorkoutSet.workout_exercise_id == exercise.id, WorkoutSet.id != workout_set.id
        )
    ).all()
    session.delete(workout_set)
    shifted = resequence_after_removal(list(siblings), removed_position)
    for sibling in siblings:
        session.add(sibling)
    session.commit()

    logger.info(
        "set_deleted",
        workout_id=workout_id,
        workout_exercise_id=exercise_id,
        set_id=set_id,
        resequenced=shifted,
    )
