"""User endpoints."""

from fastapi import APIRouter, Depends

from education_api.api.deps import get_current_identity, get_user_service
from education_api.core.exceptions import FORBIDDEN_MESSAGE, ForbiddenError
from education_api.core.security import TokenIdentity
from education_api.schemas.user import UserResponse
from education_api.services.user_service import UserService

router = APIRouter()


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    identity: TokenIdentity = Depends(get_current_identity),
    users: UserService = Depends(get_user_service),
):
    """
    Get a user profile by ID.

    **Auth**: JWT required. Users can only read their own account.
    """
    if identity.user_id != user_id:
        raise ForbiddenError(FORBIDDEN_MESSAGE)
    return await users.get_by_id(user_id)
