from typing import Annotated

from fastapi import APIRouter, Depends
from sqlmodel import Session

from hoist.auth import CurrentUserId
from hoist.database import get_session
from hoist.schemas import CreatedId, SetInput
from hoist.services import reconciler

router = APIRouter()

SessionDep = Annotated[Session, Depends(get_session)]


@router.post("/{workout_id}/exercises/{exercise_id}/sets", response_model=CreatedId, status_code=201)
def add_set(
    workout_id: int,
    exercise_id: int,
    body: SetInput,
    session: SessionDep,
    user_id: CurrentUserId,
):
    set_id = reconciler.create_set(session, user_id, workout_id, exercise_id, body)
    return CreatedId(id=set_id)


@router.put("/{workout_id}/exercises/{exercise_id}/sets/{set_id}", status_code=204)
def replace_set(
    workout_id: int,
    exercise_id: int,
    set_id: int,
    body: SetInput,
    session: SessionDep,
    user_id: CurrentUserId,
):
    reconciler.update_set(session, user_id, workout_id, exercise_id, set_id, body)


@router.delete("/{workout_id}/exercises/{exercise_id}/sets/{set_id}", status_code=204)
def delete_set(
    workout_id: int, exercise_id: int, set_id: int, session: SessionDep, user_id: CurrentUserId
):
    reconciler.delete_set(session, user_id, workout_id, exercise_id, set_id)
