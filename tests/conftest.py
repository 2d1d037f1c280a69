from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import hoist.models as _models  # noqa: F401, register all tables
from hoist.database import get_session
from hoist.main import app
from hoist.models import (
    ExerciseTemplate,
    ExerciseType,
    ImplementType,
    Location,
    Workout,
    WorkoutStatus,
    WorkoutTemplate,
    WorkoutTemplateExercise,
)

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture(name="session")
def session_fixture():
    # StaticPool ensures the in-memory DB is shared across all connections,
    # including those spawned by TestClient's anyio thread pool.
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app, headers={"X-User-Id": USER_ID})
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_exercise(session: Session):
    def _make(
        name: str,
        user_id: str = USER_ID,
        implement_type: ImplementType = ImplementType.barbell,
        exercise_type: ExerciseType = ExerciseType.reps,
        is_deleted: bool = False,
    ) -> ExerciseTemplate:
        template = ExerciseTemplate(
            user_id=user_id,
            name=name,
            implement_type=implement_type,
            exercise_type=exercise_type,
            is_deleted=is_deleted,
        )
        session.add(template)
        session.commit()
        session.refresh(template)
        return template

    return _make


@pytest.fixture
def make_location(session: Session):
    def _make(name: str, user_id: str = USER_ID, is_deleted: bool = False) -> Location:
        location = Location(user_id=user_id, name=name, is_deleted=is_deleted)
        session.add(location)
        session.commit()
        session.refresh(location)
        return location

    return _make


@pytest.fixture
def make_template(session: Session):
    def _make(
        name: str,
        exercises: list[ExerciseTemplate],
        user_id: str = USER_ID,
        location: Location | None = None,
    ) -> WorkoutTemplate:
        template = WorkoutTemplate(
            user_id=user_id, name=name, location_id=location.id if location else None
        )
        session.add(template)
        session.commit()
        session.refresh(template)
        for position, exercise in enumerate(exercises, start=1):
            session.add(
                WorkoutTemplateExercise(
                    workout_template_id=template.id,
                    exercise_template_id=exercise.id,
                    position=position,
                )
            )
        session.commit()
        return template

    return _make


@pytest.fixture
def make_completed(session: Session):
    def _make(
        ended_at: datetime,
        rating: int | None = None,
        notes: str | None = None,
        location: Location | None = None,
        user_id: str = USER_ID,
        name: str = "Workout",
    ) -> Workout:
        workout = Workout(
            user_id=user_id,
            template_name=name,
            status=WorkoutStatus.completed,
            started_at=ended_at - timedelta(hours=1),
            ended_at=ended_at,
            rating=rating,
            notes=notes,
            location_id=location.id if location else None,
            location_name=location.name if location else None,
        )
        session.add(workout)
        session.commit()
        session.refresh(workout)
        return workout

    return _make
