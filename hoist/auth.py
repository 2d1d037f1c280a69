from typing import Annotated

from fastapi import Depends, HTTPException, Request

from hoist.config import settings


def get_current_user_id(request: Request) -> str:
    """Return the caller's opaque user id as supplied by the identity layer."""
    user_id = request.headers.get(settings.USER_ID_HEADER, "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user_id


CurrentUserId = Annotated[str, Depends(get_current_user_id)]
