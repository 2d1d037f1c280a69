from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from hoist.auth import CurrentUserId
from hoist.config import settings
from hoist.database import get_session
from hoist.schemas import (
    CompleteWorkoutBody,
    CreatedId,
    ReplaceExercisesBody,
    StartWorkoutBody,
    UpdateWorkoutBody,
    WorkoutBrief,
    WorkoutDetail,
    WorkoutPage,
)
from hoist.services import history, reconciler, sessions

router = APIRouter()

SessionDep = Annotated[Session, Depends(get_session)]


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@router.get("/", response_model=WorkoutPage)
def get_workout_history(
    session: SessionDep,
    user_id: CurrentUserId,
    sort_by: str = "date",
    sort_direction: str = "desc",
    location_id: int | None = None,
    min_rating: int | None = None,
    search: str | None = None,
    cursor: str | None = None,
    page_size: Annotated[
        int, Query(ge=1, le=settings.HISTORY_MAX_PAGE_SIZE)
    ] = settings.HISTORY_DEFAULT_PAGE_SIZE,
):
    return history.query_history(
        session,
        user_id,
        sort_by=sort_by,
        sort_direction=sort_direction,
        location_id=location_id,
        min_rating=min_rating,
        search=search,
        cursor=cursor,
        page_size=page_size,
    )


@router.get("/in-progress", response_model=WorkoutDetail | None)
def get_in_progress_workout(session: SessionDep, user_id: CurrentUserId):
    return sessions.get_in_progress_workout(session, user_id)


@router.get("/recent", response_model=list[WorkoutBrief])
def get_recent_workouts(session: SessionDep, user_id: CurrentUserId):
    return sessions.get_recent_workouts(session, user_id)


@router.get("/{id}", response_model=WorkoutDetail)
def get_workout(id: int, session: SessionDep, user_id: CurrentUserId):
    return sessions.get_workout(session, user_id, id)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.post("/", response_model=CreatedId, status_code=201)
def start_workout(body: StartWorkoutBody, session: SessionDep, user_id: CurrentUserId):
    return CreatedId(id=sessions.start_workout(session, user_id, body.workout_template_id))


@router.put("/{id}/complete", status_code=204)
def complete_workout(
    id: int, body: CompleteWorkoutBody, session: SessionDep, user_id: CurrentUserId
):
    sessions.complete_workout(
        session,
        user_id,
        id,
        notes=body.notes,
        rating=body.rating,
        started_at=body.started_at,
        ended_at=body.ended_at,
    )


@router.put("/{id}", status_code=204)
def update_workout(id: int, body: UpdateWorkoutBody, session: SessionDep, user_id: CurrentUserId):
    sessions.update_workout(
        session,
        user_id,
        id,
        location_id=body.location_id,
        notes=body.notes,
        rating=body.rating,
        started_at=body.started_at,
        ended_at=body.ended_at,
    )


@router.delete("/{id}", status_code=204)
def discard_workout(id: int, session: SessionDep, user_id: CurrentUserId):
    sessions.discard_workout(session, user_id, id)


@router.put("/{id}/exercises", status_code=204)
def replace_workout_exercises(
    id: int, body: ReplaceExercisesBody, session: SessionDep, user_id: CurrentUserId
):
    reconciler.replace_exercise_list(session, user_id, id, body.exercise_template_ids)
