from datetime import UTC, datetime, timedelta, timezone

import pytest
from sqlmodel import Session, select

from hoist.errors import NotFoundError, ValidationError
from hoist.models import (
    Location,
    Workout,
    WorkoutExercise,
    WorkoutSet,
    WorkoutStatus,
    WorkoutTemplateExercise,
)
from hoist.schemas import SetInput
from hoist.services import reconciler, sessions

from conftest import OTHER_USER_ID, USER_ID


@pytest.fixture
def push_template(make_exercise, make_location, make_template):
    bench = make_exercise("Bench Press")
    dips = make_exercise("Dips")
    gym = make_location("Downtown Gym")
    return make_template("Push", [bench, dips], location=gym)


def _start(session: Session, template) -> int:
    return sessions.start_workout(session, USER_ID, template.id)


# ---------------------------------------------------------------------------
# Start
# ---------------------------------------------------------------------------


def test_start_snapshots_template(session: Session, push_template):
    workout_id = _start(session, push_template)
    detail = sessions.get_workout(session, USER_ID, workout_id)

    assert detail.status == WorkoutStatus.in_progress
    assert detail.template_name == "Push"
    assert detail.location_name == "Downtown Gym"
    assert detail.ended_at is None
    assert [(ex.exercise_name, ex.position) for ex in detail.exercises] == [
        ("Bench Press", 1),
        ("Dips", 2),
    ]
    assert all(ex.sets == [] for ex in detail.exercises)


def test_start_renumbers_sparse_template_positions(session: Session, make_exercise, make_template):
    a = make_exercise("A")
    b = make_exercise("B")
    template = make_template("Sparse", [])
    session.add(WorkoutTemplateExercise(workout_template_id=template.id, exercise_template_id=b.id, position=7))
    session.add(WorkoutTemplateExercise(workout_template_id=template.id, exercise_template_id=a.id, position=3))
    session.commit()

    detail = sessions.get_workout(session, USER_ID, _start(session, template))
    assert [(ex.exercise_name, ex.position) for ex in detail.exercises] == [("A", 1), ("B", 2)]


def test_template_edits_do_not_rewrite_started_workout(session: Session, push_template):
    workout_id = _start(session, push_template)

    push_template.name = "Push (renamed)"
    session.add(push_template)
    location = session.get(Location, push_template.location_id)
    location.name = "Moved Gym"
    session.add(location)
    session.commit()

    detail = sessions.get_workout(session, USER_ID, workout_id)
    assert detail.template_name == "Push"
    assert detail.location_name == "Downtown Gym"


def test_second_start_rejected_while_one_is_in_progress(session: Session, push_template):
    _start(session, push_template)
    with pytest.raises(ValidationError) as exc_info:
        _start(session, push_template)
    assert "already have a workout in progress" in str(exc_info.value)
    assert len(session.exec(select(Workout)).all()) == 1


def test_start_allowed_again_after_completion(session: Session, push_template):
    first = _start(session, push_template)
    sessions.complete_workout(session, USER_ID, first)
    second = _start(session, push_template)
    assert second != first


def test_in_progress_limit_is_per_user(session: Session, push_template, make_template):
    _start(session, push_template)
    other_template = make_template("Other", [], user_id=OTHER_USER_ID)
    assert sessions.start_workout(session, OTHER_USER_ID, other_template.id)


def test_start_from_another_users_template_is_not_found(session: Session, make_template):
    template = make_template("Theirs", [], user_id=OTHER_USER_ID)
    with pytest.raises(NotFoundError) as exc_info:
        _start(session, template)
    assert exc_info.value.entity == "WorkoutTemplate"
    assert session.exec(select(Workout)).all() == []


def test_start_race_lost_at_storage_layer_reports_in_progress(
    session: Session, push_template, monkeypatch
):
    first = _start(session, push_template)
    # Simulate a concurrent start that slipped past the explicit check
    monkeypatch.setattr(sessions, "_has_in_progress", lambda session, user_id: False)

    with pytest.raises(ValidationError) as exc_info:
        _start(session, push_template)
    assert exc_info.value.errors_by_field() == {"": [sessions.ALREADY_IN_PROGRESS]}
    assert [w.id for w in session.exec(select(Workout)).all()] == [first]
    assert {ex.workout_id for ex in session.exec(select(WorkoutExercise)).all()} == {first}


# ---------------------------------------------------------------------------
# Complete
# ---------------------------------------------------------------------------


def test_complete_sets_status_and_end_time(session: Session, push_template):
    workout_id = _start(session, push_template)
    sessions.complete_workout(session, USER_ID, workout_id, notes="Solid", rating=4)

    detail = sessions.get_workout(session, USER_ID, workout_id)
    assert detail.status == WorkoutStatus.completed
    assert detail.ended_at is not None
    assert detail.ended_at >= detail.started_at
    assert detail.notes == "Solid"
    assert detail.rating == 4


def test_complete_uses_supplied_times(session: Session, push_template):
    workout_id = _start(session, push_template)
    started = datetime(2026, 1, 5, 8, 0, tzinfo=UTC)
    ended = datetime(2026, 1, 5, 9, 15, tzinfo=UTC)
    sessions.complete_workout(session, USER_ID, workout_id, started_at=started, ended_at=ended)

    detail = sessions.get_workout(session, USER_ID, workout_id)
    assert detail.started_at == started
    assert detail.ended_at == ended


def test_complete_treats_naive_times_as_utc(session: Session, push_template):
    workout_id = _start(session, push_template)
    sessions.complete_workout(
        session,
        USER_ID,
        workout_id,
        started_at=datetime(2026, 1, 5, 8, 0),
        ended_at=datetime(2026, 1, 5, 10, 0, tzinfo=timezone(timedelta(hours=1))),
    )

    detail = sessions.get_workout(session, USER_ID, workout_id)
    assert detail.started_at == datetime(2026, 1, 5, 8, 0, tzinfo=UTC)
    assert detail.ended_at == datetime(2026, 1, 5, 9, 0, tzinfo=UTC)


def test_complete_twice_is_rejected(session: Session, push_template):
    workout_id = _start(session, push_template)
    sessions.complete_workout(session, USER_ID, workout_id)
    with pytest.raises(ValidationError) as exc_info:
        sessions.complete_workout(session, USER_ID, workout_id)
    assert exc_info.value.errors_by_field() == {"status": ["Workout is not in progress"]}


@pytest.mark.parametrize("rating", [0, 6])
def test_complete_rejects_out_of_range_rating(session: Session, push_template, rating):
    workout_id = _start(session, push_template)
    with pytest.raises(ValidationError) as exc_info:
        sessions.complete_workout(session, USER_ID, workout_id, rating=rating)
    assert "rating" in exc_info.value.errors_by_field()
    assert session.get(Workout, workout_id).status == WorkoutStatus.in_progress


def test_complete_rejects_end_before_start(session: Session, push_template):
    workout_id = _start(session, push_template)
    started = datetime(2026, 1, 5, 9, 0, tzinfo=UTC)
    with pytest.raises(ValidationError) as exc_info:
        sessions.complete_workout(
            session, USER_ID, workout_id, started_at=started, ended_at=started - timedelta(minutes=1)
        )
    assert exc_info.value.errors_by_field() == {"ended_at": ["EndedAt must be after StartedAt"]}


def test_complete_rejects_overlong_notes(session: Session, push_template):
    workout_id = _start(session, push_template)
    with pytest.raises(ValidationError):
        sessions.complete_workout(
            session, USER_ID, workout_id, notes="x" * (sessions.NOTES_MAX_LENGTH + 1)
        )


def test_complete_other_users_workout_is_not_found(session: Session, push_template):
    workout_id = _start(session, push_template)
    with pytest.raises(NotFoundError):
        sessions.complete_workout(session, OTHER_USER_ID, workout_id)


# ---------------------------------------------------------------------------
# Discard
# ---------------------------------------------------------------------------


def test_discard_removes_workout_exercises_and_sets(session: Session, push_template):
    workout_id = _start(session, push_template)
    exercise_id = sessions.get_workout(session, USER_ID, workout_id).exercises[0].id
    reconciler.create_set(session, USER_ID, workout_id, exercise_id, SetInput(reps=10))

    sessions.discard_workout(session, USER_ID, workout_id)

    assert session.exec(select(Workout)).all() == []
    assert session.exec(select(WorkoutExercise)).all() == []
    assert session.exec(select(WorkoutSet)).all() == []
    with pytest.raises(NotFoundError):
        sessions.get_workout(session, USER_ID, workout_id)


def test_discard_completed_workout_is_rejected(session: Session, push_template):
    workout_id = _start(session, push_template)
    sessions.complete_workout(session, USER_ID, workout_id)
    with pytest.raises(ValidationError) as exc_info:
        sessions.discard_workout(session, USER_ID, workout_id)
    assert exc_info.value.errors_by_field() == {
        "status": ["Only in-progress workouts can be discarded"]
    }
    assert session.get(Workout, workout_id) is not None


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


def test_update_completed_workout_patches_fields(session: Session, push_template):
    workout_id = _start(session, push_template)
    sessions.complete_workout(session, USER_ID, workout_id, notes="before", rating=2)

    sessions.update_workout(session, USER_ID, workout_id, rating=5)

    detail = sessions.get_workout(session, USER_ID, workout_id)
    assert detail.rating == 5
    assert detail.notes == "before"
    assert detail.status == WorkoutStatus.completed


def test_update_location_snapshots_new_name(session: Session, push_template, make_location):
    workout_id = _start(session, push_template)
    garage = make_location("Home Garage")

    sessions.update_workout(session, USER_ID, workout_id, location_id=garage.id)

    detail = sessions.get_workout(session, USER_ID, workout_id)
    assert detail.location_id == garage.id
    assert detail.location_name == "Home Garage"


def test_update_to_deleted_location_is_not_found(session: Session, push_template, make_location):
    workout_id = _start(session, push_template)
    closed = make_location("Closed Gym", is_deleted=True)
    with pytest.raises(NotFoundError) as exc_info:
        sessions.update_workout(session, USER_ID, workout_id, location_id=closed.id)
    assert exc_info.value.entity == "Location"


def test_update_rejects_end_before_start(session: Session, push_template):
    workout_id = _start(session, push_template)
    started = datetime(2026, 2, 1, 10, 0, tzinfo=UTC)
    with pytest.raises(ValidationError):
        sessions.update_workout(
            session, USER_ID, workout_id, started_at=started, ended_at=started
        )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def test_in_progress_query(session: Session, push_template):
    assert sessions.get_in_progress_workout(session, USER_ID) is None
    workout_id = _start(session, push_template)
    detail = sessions.get_in_progress_workout(session, USER_ID)
    assert detail is not None
    assert detail.id == workout_id
    assert sessions.get_in_progress_workout(session, OTHER_USER_ID) is None


def test_recent_returns_three_newest_completed(session: Session, make_completed, push_template):
    base = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    created = [make_completed(base + timedelta(days=i)) for i in range(5)]
    make_completed(base + timedelta(days=10), user_id=OTHER_USER_ID)
    _start(session, push_template)

    recent = sessions.get_recent_workouts(session, USER_ID)
    assert [w.id for w in recent] == [created[4].id, created[3].id, created[2].id]
