"""
Seed the database with a demo user's templates and workout history.
Run with: python -m hoist.seed

WARNING: Drops all existing data before inserting.
"""

import random
from datetime import timedelta

import structlog
from sqlmodel import Session, SQLModel

import hoist.models as _models  # noqa: F401, registers tables with SQLModel metadata
from hoist.config import settings
from hoist.database import engine
from hoist.logging_config import configure_logging
from hoist.models import (
    ExerciseTemplate,
    ExerciseType,
    ImplementType,
    Location,
    WeightUnit,
    WorkoutTemplate,
    WorkoutTemplateExercise,
    utcnow,
)
from hoist.schemas import SetInput
from hoist.services import reconciler, sessions

logger = structlog.get_logger(__name__)

# Reproducible data
RANDOM_SEED = 42

DEMO_USER_ID = "demo-user"

LOCATIONS = ["Downtown Gym", "Home Garage"]

# name -> (implement, type, base weight in lbs; None = bodyweight / reps-only)
EXERCISES: dict[str, tuple[ImplementType, ExerciseType, float | None]] = {
    "Bench Press": (ImplementType.barbell, ExerciseType.reps, 185.0),
    "Incline Dumbbell Press": (ImplementType.dumbbell, ExerciseType.reps, 55.0),
    "Lat Pulldown": (ImplementType.selectorized_machine, ExerciseType.reps, 140.0),
    "Squat": (ImplementType.barbell, ExerciseType.reps, 225.0),
    "Leg Press": (ImplementType.plate_loaded_machine, ExerciseType.reps, 360.0),
    "Pull-up": (ImplementType.bodyweight, ExerciseType.reps, None),
    "Kettlebell Swing": (ImplementType.kettlebell, ExerciseType.reps, 53.0),
    "Plank": (ImplementType.bodyweight, ExerciseType.duration, None),
}

WORKOUT_TEMPLATES: dict[str, tuple[str, list[str]]] = {
    "Push": ("Downtown Gym", ["Bench Press", "Incline Dumbbell Press", "Plank"]),
    "Pull": ("Downtown Gym", ["Lat Pulldown", "Pull-up", "Kettlebell Swing"]),
    "Legs": ("Home Garage", ["Squat", "Leg Press", "Plank"]),
}

WORKOUT_COUNT = 12

NOTES = ["Felt strong", "", "Short on time", "New PR on the first lift", "", "Deload"]


def _set_for(exercise_name: str, workout_idx: int, rng: random.Random) -> SetInput:
    _, exercise_type, base = EXERCISES[exercise_name]
    if exercise_type == ExerciseType.duration:
        return SetInput(duration=30 + 5 * workout_idx + rng.randint(0, 10))
    if base is None:
        return SetInput(reps=max(1, 5 + workout_idx // 3 + rng.randint(-1, 1)))
    weight = round(base * (1.0 + 0.02 * workout_idx) / 5) * 5
    return SetInput(weight=weight, reps=rng.randint(5, 10), weight_unit=WeightUnit.lbs)


def seed() -> None:
    rng = random.Random(RANDOM_SEED)

    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    logger.info("seed_tables_recreated", database_url=settings.DATABASE_URL)

    with Session(engine) as session:
        location_map: dict[str, Location] = {}
        for name in LOCATIONS:
            location = Location(user_id=DEMO_USER_ID, name=name)
            session.add(location)
            location_map[name] = location

        exercise_map: dict[str, ExerciseTemplate] = {}
        for name, (implement, exercise_type, _) in EXERCISES.items():
            template = ExerciseTemplate(
                user_id=DEMO_USER_ID,
                name=name,
                implement_type=implement,
                exercise_type=exercise_type,
            )
            session.add(template)
            exercise_map[name] = template
        session.commit()

        template_ids: list[int] = []
        for name, (location_name, exercise_names) in WORKOUT_TEMPLATES.items():
            template = WorkoutTemplate(
                user_id=DEMO_USER_ID, name=name, location_id=location_map[location_name].id
            )
            session.add(template)
            session.flush()
            for position, exercise_name in enumerate(exercise_names, start=1):
                session.add(
                    WorkoutTemplateExercise(
                        workout_template_id=template.id,
                        exercise_template_id=exercise_map[exercise_name].id,
                        position=position,
                    )
                )
            template_ids.append(template.id)
        session.commit()
        logger.info(
            "seed_templates_created",
            locations=len(location_map),
            exercises=len(exercise_map),
            workout_templates=len(template_ids),
        )

        # Workouts spread over the last ~3 months, oldest first
        first_start = utcnow() - timedelta(days=90)
        for workout_idx in range(WORKOUT_COUNT):
            template_id = template_ids[workout_idx % len(template_ids)]
            workout_id = sessions.start_workout(session, DEMO_USER_ID, template_id)
            detail = sessions.get_workout(session, DEMO_USER_ID, workout_id)

            for exercise in detail.exercises:
                for _ in range(rng.randint(3, 4)):
                    reconciler.create_set(
                        session,
                        DEMO_USER_ID,
                        workout_id,
                        exercise.id,
                        _set_for(exercise.exercise_name, workout_idx, rng),
                    )

            started_at = first_start + timedelta(days=workout_idx * 7, hours=rng.randint(6, 19))
            sessions.complete_workout(
                session,
                DEMO_USER_ID,
                workout_id,
                notes=rng.choice(NOTES) or None,
                rating=rng.randint(2, 5),
                started_at=started_at,
                ended_at=started_at + timedelta(minutes=rng.randint(40, 90)),
            )

        logger.info("seed_complete", workouts=WORKOUT_COUNT, user_id=DEMO_USER_ID)


if __name__ == "__main__":
    configure_logging(settings.LOG_LEVEL)
    seed()
