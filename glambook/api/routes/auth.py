from fastapi import APIRouter, Depends

from glambook.api.deps import get_current_user
from glambook.models.user import User, UserPublic

router = APIRouter(prefix="/auth", tags=["auth"])


def user_to_public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
    )


@router.get("/me", response_model=UserPublic)
async def me(current_user: User = Depends(get_current_user)) -> UserPublic:
    """Caller identity as resolved from the bearer token."""
    return user_to_public(current_user)
