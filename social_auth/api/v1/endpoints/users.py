"""
User Endpoints

Endpoints:
----------
- GET   /users/me              - Current user (login required)
- GET   /users/profile/{id}    - Public profile, aware of the viewer
- GET   /users                 - List users (admins only)
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from social_auth.api.deps import (
    get_current_user,
    get_optional_user,
    get_user_directory,
    require_roles,
)
from social_auth.core.exceptions import NotFoundError
from social_auth.models import User, UserRole
from social_auth.repositories.user_repo import UserDirectory
from social_auth.schemas.auth import ProfileResponse, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """
    Get the current authenticated user.

    Accepts `Authorization: Bearer <token>` or the `jwt` cookie.
    """
    return UserResponse.model_validate(current_user)


@router.get("/profile/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: UUID,
    viewer: Optional[User] = Depends(get_optional_user),
    directory: UserDirectory = Depends(get_user_directory),
):
    """Public profile; anonymous visitors are allowed."""
    user = await directory.get_by_id(user_id)
    if user is None:
        raise NotFoundError("No user found with that ID")

    return ProfileResponse(
        user=UserResponse.model_validate(user),
        is_me=viewer is not None and viewer.id == user.id,
    )


@router.get(
    "",
    response_model=List[UserResponse],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    directory: UserDirectory = Depends(get_user_directory),
):
    users = await directory.get_all_users(skip=skip, limit=limit)
    return [UserResponse.model_validate(u) for u in users]
