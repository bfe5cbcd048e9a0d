from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from app.schemas.error import ApiError
from app.schemas.user import UserProfile
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ApiError, "description": "Validation failed"},
    status.HTTP_404_NOT_FOUND: {"model": ApiError, "description": "User not found"},
}


def get_user_store(request: Request) -> UserStore:
    """Return the store owned by the running application."""
    return request.app.state.user_store


UserStoreDep = Annotated[UserStore, Depends(get_user_store)]


@router.get("", response_model=list[UserProfile])
def list_users(store: UserStoreDep) -> list[UserProfile]:
    """Return every user profile."""
    logger.debug("users.listed", extra={"total_users": len(store)})
    return store.list_users()


@router.get("/{user_id}", response_model=UserProfile, responses=_ERROR_RESPONSES)
def get_user(user_id: str, store: UserStoreDep) -> UserProfile:
    """Return one user profile by id."""
    return store.get_user(user_id)


@router.post(
    "",
    response_model=UserProfile,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: _ERROR_RESPONSES[status.HTTP_400_BAD_REQUEST],
        status.HTTP_409_CONFLICT: {"model": ApiError, "description": "Duplicate id"},
    },
)
def create_user(
    user: UserProfile,
    request: Request,
    response: Response,
    store: UserStoreDep,
) -> UserProfile:
    """Create a user profile.

    Returns 201 with a ``Location`` header pointing at the new resource.
    """
    created = store.create_user(user)
    response.headers["Location"] = f"{request.url.path.rstrip('/')}/{created.id}"
    return created


@router.put("/{user_id}", response_model=UserProfile, responses=_ERROR_RESPONSES)
def update_user(user_id: str, user: UserProfile, store: UserStoreDep) -> UserProfile:
    """Replace a user profile. The id in the path always wins over the body."""
    return store.update_user(user_id, user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={status.HTTP_404_NOT_FOUND: _ERROR_RESPONSES[status.HTTP_404_NOT_FOUND]},
)
def delete_user(user_id: str, store: UserStoreDep) -> Response:
    """Delete a user profile."""
    store.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
