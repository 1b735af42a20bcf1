from __future__ import annotations

from fastapi import APIRouter, Depends

from speech_auth.api.deps import get_get_current_user_use_case, get_update_current_user_use_case
from speech_auth.api.guard import get_current_user
from speech_auth.api.schemas.user import UpdateUserRequest, UserResponse
from speech_auth.application.dto.auth import UpdateProfileInput
from speech_auth.application.use_cases.current_user import (
    GetCurrentUserUseCase,
    UpdateCurrentUserUseCase,
)
from speech_auth.domain.entities.user import User


router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
def get_me(
    user: User = Depends(get_current_user),
    use_case: GetCurrentUserUseCase = Depends(get_get_current_user_use_case),
):
    return UserResponse.from_user(use_case.execute(user=user))


@router.patch("/me", response_model=UserResponse)
def update_me(
    req: UpdateUserRequest,
    user: User = Depends(get_current_user),
    use_case: UpdateCurrentUserUseCase = Depends(get_update_current_user_use_case),
):
    updated = use_case.execute(
        user=user,
        command=UpdateProfileInput(
            first_name=req.first_name,
            last_name=req.last_name,
            avatar=req.avatar,
            language=req.language,
        ),
    )
    return UserResponse.from_user(updated)
