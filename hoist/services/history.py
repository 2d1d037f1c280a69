"""Cursor-paginated history of completed workouts.

Rows are ordered by a primary column (``ended_at`` or ``rating``) in the
requested direction, NULLs last, and then by id ascending in both directions.
The id tie-break makes the order total, so a cursor holding the last row's
primary value and id identifies exactly where the next page starts, even when
many rows share a primary value.

Cursors are URL-safe base64 over JSON. They are opaque to clients; a token
that does not decode is treated as no cursor at all.
"""

import base64
import binascii
from datetime import datetime

import structlog
from pydantic import BaseModel, Field
from sqlalchemy import ColumnElement, and_, or_
from sqlalchemy.orm import InstrumentedAttribute
from sqlmodel import Session, select

from hoist.config import settings
from hoist.models import Workout, WorkoutStatus
from hoist.schemas import WorkoutBrief, WorkoutPage

logger = structlog.get_logger(__name__)

SORT_BY_DATE = "date"
SORT_BY_RATING = "rating"

# Largest value a signed 64-bit INTEGER column can bind
MAX_ROW_ID = 2**63 - 1


class HistoryCursor(BaseModel):
    ended_at: datetime | None = None
    rating: int | None = Field(default=None, ge=1, le=5)
    id: int = Field(ge=1, le=MAX_ROW_ID)

    @classmethod
    def after(cls, workout: Workout) -> "HistoryCursor":
        return cls(ended_at=workout.ended_at, rating=workout.rating, id=workout.id)


def encode_cursor(cursor: HistoryCursor) -> str:
    return base64.urlsafe_b64encode(cursor.model_dump_json().encode()).decode()


def decode_cursor(token: str | None) -> HistoryCursor | None:
    """Decode a cursor token, or return None if it is missing or malformed."""
    if not token or not token.strip():
        return None
    try:
        raw = base64.urlsafe_b64decode(token.strip().encode())
        return HistoryCursor.model_validate_json(raw)
    except (binascii.Error, ValueError):
        # pydantic's ValidationError and UnicodeDecodeError are both ValueErrors
        logger.warning("history_cursor_invalid", token_length=len(token))
        return None


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _resume_after(
    column: InstrumentedAttribute,
    value: datetime | int | None,
    last_id: int,
    ascending: bool,
) -> ColumnElement[bool]:
    """Rows strictly after (value, last_id) in the page order."""
    if value is None:
        # NULLs sort last, so only NULLs with a larger id remain
        return and_(column.is_(None), Workout.id > last_id)
    beyond = column > value if ascending else column < value
    return or_(beyond, and_(column == value, Workout.id > last_id), column.is_(None))


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


def query_history(
    session: Session,
    user_id: str,
    *,
    sort_by: str | None = SORT_BY_DATE,
    sort_direction: str | None = "desc",
    location_id: int | None = None,
    min_rating: int | None = None,
    search: str | None = None,
    cursor: str | None = None,
    page_size: int = settings.HISTORY_DEFAULT_PAGE_SIZE,
) -> WorkoutPage:
    """Return one page of the user's completed workouts and the cursor for the next."""
    by_rating = (sort_by or SORT_BY_DATE).lower() == SORT_BY_RATING
    ascending = (sort_direction or "desc").lower() == "asc"
    column = Workout.rating if by_rating else Workout.ended_at

    statement = select(Workout).where(
        Workout.user_id == user_id, Workout.status == WorkoutStatus.completed
    )
    if location_id is not None:
        statement = statement.where(Workout.location_id == location_id)
    if min_rating is not None:
        statement = statement.where(Workout.rating >= min_rating)
    if search and search.strip():
        statement = statement.where(Workout.notes.contains(search, autoescape=True))

    resume = decode_cursor(cursor)
    if resume is not None:
        value = resume.rating if by_rating else resume.ended_at
        statement = statement.where(_resume_after(column, value, resume.id, ascending))

    primary = column.asc() if ascending else column.desc()
    statement = statement.order_by(primary.nulls_last(), Workout.id.asc()).limit(page_size + 1)

    rows = list(session.exec(statement).all())
    has_more = len(rows) > page_size
    rows = rows[:page_size]

    next_cursor = None
    if has_more and rows:
        next_cursor = encode_cursor(HistoryCursor.after(rows[-1]))

    items = [WorkoutBrief.model_validate(w, from_attributes=True) for w in rows]
    return WorkoutPage(items=items, next_cursor=next_cursor)
