"""Resolve entities by id on behalf of a user.

Every lookup is scoped to the acting user, and each link of the
workout -> exercise -> set chain is checked on its own. Any mismatch raises
``NotFoundError`` for the entity at that link, so callers can never tell
"does not exist" from "not yours".
"""

from sqlmodel import Session, select

from hoist.errors import NotFoundError
from hoist.models import Location, Workout, WorkoutExercise, WorkoutSet, WorkoutTemplate


def get_owned_workout(session: Session, user_id: str, workout_id: int) -> Workout:
    workout = session.exec(
        select(Workout).where(Workout.id == workout_id, Workout.user_id == user_id)
    ).first()
    if workout is None:
        raise NotFoundError("Workout", workout_id)
    return workout


def get_workout_exercise(session: Session, workout: Workout, exercise_id: int) -> WorkoutExercise:
    exercise = session.get(WorkoutExercise, exercise_id)
    if exercise is None or exercise.workout_id != workout.id:
        raise NotFoundError("WorkoutExercise", exercise_id)
    return exercise


def get_exercise_set(session: Session, exercise: WorkoutExercise, set_id: int) -> WorkoutSet:
    workout_set = session.get(WorkoutSet, set_id)
    if workout_set is None or workout_set.workout_exercise_id != exercise.id:
        raise NotFoundError("WorkoutSet", set_id)
    return workout_set


def resolve_exercise_chain(
    session: Session, user_id: str, workout_id: int, exercise_id: int
) -> tuple[Workout, WorkoutExercise]:
    workout = get_owned_workout(session, user_id, workout_id)
    return workout, get_workout_exercise(session, workout, exercise_id)


def resolve_set_chain(
    session: Session, user_id: str, workout_id: int, exercise_id: int, set_id: int
) -> tuple[Workout, WorkoutExercise, WorkoutSet]:
    workout, exercise = resolve_exercise_chain(session, user_id, workout_id, exercise_id)
    return workout, exercise, get_exercise_set(session, exercise, set_id)


def get_owned_workout_template(session: Session, user_id: str, template_id: int) -> WorkoutTemplate:
    template = session.exec(
        select(WorkoutTemplate).where(
            WorkoutTemplate.id == template_id, WorkoutTemplate.user_id == user_id
        )
    ).first()
    if template is None:
        raise NotFoundError("WorkoutTemplate", template_id)
    return template


def get_owned_location(session: Session, user_id: str, location_id: int) -> Location:
    """Return an active (not soft-deleted) location owned by the user."""
    location = session.exec(
        select(Location).where(
            Location.id == location_id,
            Location.user_id == user_id,
            Location.is_deleted == False,  # noqa: E712
        )
    ).first()
    if location is None:
        raise NotFoundError("Location", location_id)
    return location
